"""Client for the external match-scoring service.

The scorer is opaque: it returns a numeric score and reason codes per item.
Calls are best-effort. Any failure degrades to "no score available" and never
blocks a feed.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

import httpx

from ...platform.config import settings

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 100


class ScoringError(RuntimeError):
    """Raised when the scoring service answers with an unusable response."""


@dataclass(frozen=True)
class ScoreResult:
    id: int
    score: float
    reasons: List[str] = field(default_factory=list)


def _parse_results(body: Any, requested_ids: Iterable[int]) -> List[ScoreResult]:
    if isinstance(body, dict):
        body = body.get("results", [])
    if not isinstance(body, list):
        raise ScoringError("Scoring response is not a list")
    allowed = set(requested_ids)
    results: List[ScoreResult] = []
    for row in body:
        if not isinstance(row, dict):
            continue
        try:
            item_id = int(row.get("id"))
            score = float(row.get("score"))
        except (TypeError, ValueError):
            continue
        if item_id not in allowed or math.isnan(score):
            continue
        reasons = [str(reason) for reason in (row.get("reasons") or []) if reason]
        results.append(ScoreResult(id=item_id, score=score, reasons=reasons))
    return results


class ScoringClient:
    """HTTP client for ``SCORING_SERVICE_URL``."""

    def __init__(self, base_url: str, api_key: str = "", *, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json"}
        if api_key:
            self.headers["Authorization"] = f"Bearer {api_key}"

    def _post(self, path: str, payload: Dict[str, Any]) -> Any:
        with httpx.Client(timeout=self.timeout) as client:
            response = client.post(f"{self.base_url}{path}", json=payload, headers=self.headers)
        response.raise_for_status()
        return response.json() if response.content else []

    def score_listings_for_candidate(self, candidate_id: int, listing_ids: List[int]) -> List[ScoreResult]:
        ids = list(listing_ids)[:MAX_BATCH_SIZE]
        if not ids:
            return []
        body = self._post("/score/listings", {"candidate_id": candidate_id, "listing_ids": ids})
        return _parse_results(body, ids)

    def score_candidates_for_listing(self, listing_id: int, candidate_ids: List[int]) -> List[ScoreResult]:
        ids = list(candidate_ids)[:MAX_BATCH_SIZE]
        if not ids:
            return []
        body = self._post("/score/candidates", {"listing_id": listing_id, "candidate_ids": ids})
        return _parse_results(body, ids)


class NullScorer:
    """Used when no scoring service is configured."""

    def score_listings_for_candidate(self, candidate_id: int, listing_ids: List[int]) -> List[ScoreResult]:
        return []

    def score_candidates_for_listing(self, listing_id: int, candidate_ids: List[int]) -> List[ScoreResult]:
        return []


def get_scorer():
    """FastAPI dependency returning the configured scorer."""
    if settings.mvp_flags.disable_scoring:
        return NullScorer()
    return ScoringClient(
        settings.SCORING_SERVICE_URL,
        settings.SCORING_API_KEY,
        timeout=settings.SCORING_TIMEOUT_SECONDS,
    )


def score_best_effort(score_call, *args) -> List[ScoreResult]:
    """Run a scorer call; on any failure log it and return no scores."""
    try:
        return list(score_call(*args) or [])
    except Exception:
        logger.exception("Scoring call %s failed; continuing without scores", getattr(score_call, "__name__", "score"))
        return []
