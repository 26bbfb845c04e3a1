"""Scoring client: request shape, response parsing and best-effort degradation."""

import json

import httpx
import pytest

from matildus.components.scoring import client as scoring
from matildus.platform.config import settings


@pytest.fixture
def transport(monkeypatch):
    """Route every httpx.Client created by the scoring client through a mock transport."""
    captured = {"requests": [], "response": httpx.Response(200, json=[])}

    def handler(request):
        captured["requests"].append(request)
        response = captured["response"]
        if isinstance(response, Exception):
            raise response
        return response

    real_client = httpx.Client
    monkeypatch.setattr(
        scoring.httpx,
        "Client",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
    )
    return captured


def test_scores_listings_for_candidate(transport):
    transport["response"] = httpx.Response(
        200, json=[{"id": 11, "score": 0.7, "reasons": ["same_role", ""]}, {"id": 12, "score": 0.1}]
    )
    client = scoring.ScoringClient("https://scorer.test/", "secret")
    results = client.score_listings_for_candidate(5, [11, 12])
    assert results == [
        scoring.ScoreResult(id=11, score=0.7, reasons=["same_role"]),
        scoring.ScoreResult(id=12, score=0.1, reasons=[]),
    ]
    request = transport["requests"][0]
    assert str(request.url) == "https://scorer.test/score/listings"
    assert request.headers["Authorization"] == "Bearer secret"
    assert json.loads(request.content) == {"candidate_id": 5, "listing_ids": [11, 12]}


def test_scores_candidates_with_wrapped_results(transport):
    transport["response"] = httpx.Response(200, json={"results": [{"id": 3, "score": "0.5"}]})
    client = scoring.ScoringClient("https://scorer.test")
    results = client.score_candidates_for_listing(9, [3])
    assert results == [scoring.ScoreResult(id=3, score=0.5, reasons=[])]
    request = transport["requests"][0]
    assert request.url.path == "/score/candidates"
    assert "Authorization" not in request.headers


def test_batch_is_capped(transport):
    client = scoring.ScoringClient("https://scorer.test")
    client.score_listings_for_candidate(1, list(range(scoring.MAX_BATCH_SIZE + 20)))
    body = json.loads(transport["requests"][0].content)
    assert len(body["listing_ids"]) == scoring.MAX_BATCH_SIZE


def test_empty_request_skips_the_call(transport):
    client = scoring.ScoringClient("https://scorer.test")
    assert client.score_listings_for_candidate(1, []) == []
    assert transport["requests"] == []


def test_http_error_raises(transport):
    transport["response"] = httpx.Response(503)
    client = scoring.ScoringClient("https://scorer.test")
    with pytest.raises(httpx.HTTPStatusError):
        client.score_listings_for_candidate(1, [1])


def test_parse_results_drops_unusable_rows():
    body = [
        {"id": 1, "score": 0.5},
        {"id": 2, "score": float("nan")},
        {"id": "x", "score": 0.1},
        {"id": 99, "score": 0.9},
        "garbage",
        {"id": 3},
    ]
    assert scoring._parse_results(body, [1, 2, 3]) == [scoring.ScoreResult(id=1, score=0.5, reasons=[])]


def test_parse_results_rejects_non_list():
    with pytest.raises(scoring.ScoringError):
        scoring._parse_results("nope", [1])


def test_best_effort_swallows_failures(transport):
    transport["response"] = httpx.ConnectError("refused")
    client = scoring.ScoringClient("https://scorer.test")
    assert scoring.score_best_effort(client.score_listings_for_candidate, 1, [1, 2]) == []


def test_unconfigured_scorer_is_null(monkeypatch):
    monkeypatch.setattr(settings, "SCORING_SERVICE_URL", "")
    scorer = scoring.get_scorer()
    assert isinstance(scorer, scoring.NullScorer)
    assert scorer.score_listings_for_candidate(1, [1, 2]) == []


def test_configured_scorer_uses_http_client(monkeypatch):
    monkeypatch.setattr(settings, "SCORING_SERVICE_URL", "https://scorer.test")
    monkeypatch.setattr(settings, "MVP_DISABLE_SCORING", False)
    scorer = scoring.get_scorer()
    assert isinstance(scorer, scoring.ScoringClient)
    assert scorer.base_url == "https://scorer.test"
