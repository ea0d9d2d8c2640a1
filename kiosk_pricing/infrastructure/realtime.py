"""Idempotent handling of backend change events (inserts/updates pushed by the realtime feed)"""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict


@dataclass
class RealtimeEvent:
    """One change notification from the backend"""

    event_id: str
    table: str  # e.g. "transactions", "notifications", "users"
    kind: str  # INSERT | UPDATE | DELETE
    record: Dict[str, Any] = field(default_factory=dict)


class RealtimeEventApplier:
    """
    Applies each event at most once and hands it to a refresh callback.

    Events are treated as "something changed, refetch" signals rather than deltas
    to merge, so a redelivered or reordered event never corrupts derived state.
    """

    def __init__(self, max_remembered: int = 1000):
        self.max_remembered = max_remembered
        self._seen: "OrderedDict[str, None]" = OrderedDict()
        self._lock = threading.Lock()

    def _accept(self, event_id: str) -> bool:
        with self._lock:
            if event_id in self._seen:
                self._seen.move_to_end(event_id)
                return False
            self._seen[event_id] = None
            while len(self._seen) > self.max_remembered:
                self._seen.popitem(last=False)
            return True

    def apply(self, event: RealtimeEvent, refresh: Callable[[RealtimeEvent], None]) -> bool:
        """Run refresh(event) unless the event was already applied. Returns True if applied."""
        if not self._accept(event.event_id):
            logging.info(
                "Duplicate realtime event ignored",
                extra={"event_id": event.event_id, "table": event.table, "step": "realtime"},
            )
            return False

        try:
            refresh(event)
        except Exception:
            # let a later redelivery retry the refresh
            with self._lock:
                self._seen.pop(event.event_id, None)
            raise
        return True
