"""Ranked presentation stack for swipe feeds.

Scores arrive after the raw item list and must not reorder cards the user is
already swiping through. A stack may be reordered by scores only until its
first removal; after that it is locked and scores only update metadata.
"""

from __future__ import annotations

import hashlib
import json
import threading
from collections import OrderedDict
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional, Tuple

from ...platform.config import settings
from ..scoring.client import ScoreResult


def build_context_key(filters: Mapping[str, Any], mode: str) -> str:
    """Stable hash of the active filters plus the data mode (live / demo:<id>)."""
    normalized = {key: value for key, value in filters.items() if value not in (None, "")}
    raw = json.dumps({"filters": normalized, "mode": mode}, sort_keys=True, default=str)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:32]


class RankedStack:
    def __init__(self, context_key: str, item_ids: Iterable[int]):
        self.context_key = context_key
        self._order: List[int] = list(dict.fromkeys(item_ids))
        self._initial_index: Dict[int, int] = {item_id: idx for idx, item_id in enumerate(self._order)}
        self._scores: Dict[int, ScoreResult] = {}
        self._removed: set[int] = set()
        self.locked = False

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._order

    @property
    def item_ids(self) -> List[int]:
        return list(self._order)

    def unscored_ids(self) -> List[int]:
        return [item_id for item_id in self._order if item_id not in self._scores]

    def score_for(self, item_id: int) -> Optional[ScoreResult]:
        return self._scores.get(item_id)

    def apply_scores(self, scores: Iterable[ScoreResult]) -> None:
        for result in scores:
            if result.id in self._initial_index:
                self._scores[result.id] = result
        if not self.locked:
            self._order = sorted(self._order, key=self._sort_key)

    def _sort_key(self, item_id: int) -> Tuple[int, float, int]:
        result = self._scores.get(item_id)
        if result is None:
            return (1, 0.0, self._initial_index[item_id])
        return (0, -result.score, self._initial_index[item_id])

    def sync(self, item_ids: Iterable[int]) -> None:
        """Reconcile with a fresh raw list for the same context.

        Items that disappeared are dropped. New items are appended while the
        stack is unlocked and ignored once it is locked. Removed items never
        come back.
        """
        fresh = list(dict.fromkeys(item_ids))
        present = set(fresh)
        self._order = [item_id for item_id in self._order if item_id in present]
        if self.locked:
            return
        kept = set(self._order)
        for item_id in fresh:
            if item_id in self._removed or item_id in kept:
                continue
            self._initial_index.setdefault(item_id, len(self._initial_index))
            self._order.append(item_id)
        self._order = sorted(self._order, key=self._sort_key)

    def remove_top(self) -> Optional[int]:
        if not self._order:
            return None
        item_id = self._order.pop(0)
        self._removed.add(item_id)
        self.locked = True
        return item_id

    def remove(self, item_id: int) -> bool:
        """Remove a specific card (the one just swiped) and lock the stack."""
        if item_id not in self._order:
            return False
        self._order.remove(item_id)
        self._removed.add(item_id)
        self.locked = True
        return True

    def presented(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        ids = self._order if limit is None else self._order[:limit]
        rows = []
        for item_id in ids:
            result = self._scores.get(item_id)
            rows.append(
                {
                    "id": item_id,
                    "score": result.score if result else None,
                    "reasons": list(result.reasons) if result else [],
                }
            )
        return rows


class StackRegistry:
    """Per-(user, feed) stacks, least recently used evicted first.

    Each owner keeps at most ``max_per_owner`` stacks and the registry holds
    at most ``max_stacks`` overall. Pages are built while holding the lock.
    """

    def __init__(self, max_per_owner: Optional[int] = None, max_stacks: Optional[int] = None):
        self.max_per_owner = max_per_owner or settings.FEED_STACKS_PER_USER
        self.max_stacks = max_stacks or settings.FEED_STACKS_MAX
        self._stacks: "OrderedDict[Tuple[Hashable, str], RankedStack]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._stacks)

    def _lookup(self, owner: Hashable, feed: str, context_key: Optional[str] = None) -> Optional[RankedStack]:
        stack = self._stacks.get((owner, feed))
        if stack is None or (context_key is not None and stack.context_key != context_key):
            return None
        self._stacks.move_to_end((owner, feed))
        return stack

    def _evict(self, owner: Hashable) -> None:
        owned = [key for key in self._stacks if key[0] == owner]
        for key in owned[: max(0, len(owned) - self.max_per_owner)]:
            del self._stacks[key]
        while len(self._stacks) > self.max_stacks:
            self._stacks.popitem(last=False)

    def get(self, owner: Hashable, feed: str) -> Optional[RankedStack]:
        with self._lock:
            return self._lookup(owner, feed)

    def get_or_build(self, owner: Hashable, feed: str, context_key: str, item_ids: Iterable[int]) -> Tuple[RankedStack, bool]:
        """Return the stack for ``context_key``; rebuild when the key changed.

        The boolean is True when a new stack was built.
        """
        item_ids = list(item_ids)
        with self._lock:
            stack = self._lookup(owner, feed, context_key)
            if stack is not None:
                stack.sync(item_ids)
                return stack, False
            stack = RankedStack(context_key, item_ids)
            self._stacks[(owner, feed)] = stack
            self._stacks.move_to_end((owner, feed))
            self._evict(owner)
            return stack, True

    def unscored_ids(self, owner: Hashable, feed: str, context_key: str) -> List[int]:
        with self._lock:
            stack = self._lookup(owner, feed, context_key)
            return stack.unscored_ids() if stack is not None else []

    def apply_scores(self, owner: Hashable, feed: str, context_key: str, scores: Iterable[ScoreResult]) -> None:
        with self._lock:
            stack = self._lookup(owner, feed, context_key)
            if stack is not None:
                stack.apply_scores(scores)

    def present(self, owner: Hashable, feed: str, context_key: str, limit: Optional[int] = None) -> Optional[Dict[str, Any]]:
        """Page of the stack for ``context_key``, or None when it was replaced or evicted."""
        with self._lock:
            stack = self._lookup(owner, feed, context_key)
            if stack is None:
                return None
            return {"locked": stack.locked, "remaining": len(stack), "cards": stack.presented(limit)}

    def remove_item(self, owner: Hashable, feed: str, item_id: int) -> bool:
        with self._lock:
            stack = self._lookup(owner, feed)
            return stack.remove(item_id) if stack is not None else False

    def invalidate(self, owner: Hashable, feed: str) -> None:
        with self._lock:
            self._stacks.pop((owner, feed), None)

    def clear(self) -> None:
        with self._lock:
            self._stacks.clear()


stack_registry = StackRegistry()
