"""
Recompute scheduler — dirty marking with a single flush point.

Mutations call ``mark_dirty(key)``; nothing is recomputed at that moment.
Recomputation happens in ``flush()``, which runs either:
    - explicitly (readers call ``get(key)``, which flushes first), or
    - from a debounce timer started by the first mark in a batching window
      (``debounce_seconds`` > 0), so a burst of edits costs one recompute.

Keys are audit codes; the computed value is whatever ``compute(key)``
returns (a RenderPlan in the app). Pass the owning state lock as
``outer_lock`` so recomputes and mutations acquire locks in the same order.
"""

from __future__ import annotations

import logging
import threading
from contextlib import nullcontext
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RecomputeScheduler(Generic[T]):
    """Coalesces dirty marks and recomputes cached values on flush."""

    def __init__(
        self,
        compute: Callable[[str], T],
        debounce_seconds: float = 0.0,
        outer_lock=None,
    ) -> None:
        self._compute = compute
        # taken before the scheduler lock on every recompute path
        self._outer = outer_lock if outer_lock is not None else nullcontext()
        self._debounce = max(0.0, float(debounce_seconds or 0.0))
        self._dirty: set[str] = set()
        self._cache: dict[str, T] = {}
        self._lock = threading.RLock()
        self._timer: threading.Timer | None = None
        self.recompute_count = 0

    @property
    def pending(self) -> set[str]:
        with self._lock:
            return set(self._dirty)

    def mark_dirty(self, key: str) -> None:
        with self._lock:
            self._dirty.add(key)
            if self._debounce and self._timer is None:
                self._timer = threading.Timer(self._debounce, self._on_timer)
                self._timer.daemon = True
                self._timer.start()

    def invalidate_all(self, keys) -> None:
        """Drop every cached value and mark ``keys`` dirty (used after import)."""
        with self._lock:
            self._cache.clear()
            for key in keys:
                self.mark_dirty(key)

    def flush(self) -> dict[str, T]:
        """Recompute every dirty key. Returns the freshly computed values."""
        with self._outer, self._lock:
            self._cancel_timer()
            fresh: dict[str, T] = {}
            for key in sorted(self._dirty):
                fresh[key] = self._compute(key)
                self._cache[key] = fresh[key]
            self._dirty.clear()
            if fresh:
                self.recompute_count += 1
                logger.debug("Recomputed %d timeline(s): %s", len(fresh), ", ".join(fresh))
            return fresh

    def get(self, key: str) -> T:
        """Return the up-to-date value for ``key``, flushing pending marks first."""
        with self._outer, self._lock:
            if key not in self._cache:
                self._dirty.add(key)
            if self._dirty:
                self.flush()
            return self._cache[key]

    def discard(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)
            self._dirty.discard(key)

    def shutdown(self) -> None:
        with self._lock:
            self._cancel_timer()

    # ── internals ────────────────────────────────────────────────────

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        with self._outer, self._lock:
            self._timer = None
            try:
                self.flush()
            except Exception:
                # marks are kept, the next reader retries
                logger.exception("Debounced timeline recompute failed")
