"""Decision trace of per-task placement choices."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any


@dataclass(slots=True)
class DecisionTraceCollector:
    """Collect one record per placement attempt, in the order attempts are made.

    Timestamps are synthetic (``start_timestamp`` plus one second per record)
    so two runs over the same input produce the same trace.
    """

    start_timestamp: datetime
    _sequence: int = 0
    _items: list[dict[str, Any]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.start_timestamp.tzinfo is None:
            self.start_timestamp = self.start_timestamp.replace(tzinfo=timezone.utc)

    def record(
        self,
        *,
        task_id: str,
        candidate_slots: list[str],
        scores_by_slot: dict[str, float],
        selected_slots: list[str],
        applied_rules: list[str],
        tradeoff_note: str,
    ) -> None:
        self._sequence += 1
        timestamp = self.start_timestamp + timedelta(seconds=self._sequence)
        self._items.append(
            {
                "decision_id": f"d-{self._sequence:06d}",
                "timestamp": timestamp.isoformat().replace("+00:00", "Z"),
                "task_id": task_id,
                "candidate_slots": sorted(candidate_slots),
                "scores_by_slot": {slot: round(float(scores_by_slot[slot]), 6) for slot in sorted(scores_by_slot)},
                "selected_slots": list(selected_slots),
                "applied_rules": list(applied_rules),
                "tradeoff_note": tradeoff_note,
            }
        )

    def __len__(self) -> int:
        return len(self._items)

    def as_list(self) -> list[dict[str, Any]]:
        return sorted(self._items, key=lambda item: (str(item["timestamp"]), str(item["decision_id"])))
