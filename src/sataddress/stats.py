"""Aggregate usage statistics over every stored address (O(n) batch job)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sataddress.models.record import UsageStats
    from sataddress.store.client import RecordStore


@dataclass(slots=True)
class StatsReport:
    """Per-address counters plus their sums."""

    data: dict[str, UsageStats] = field(default_factory=dict)
    calls: int = 0
    edits: int = 0
    invoices: int = 0

    @property
    def summary(self) -> dict[str, int]:
        return {"calls": self.calls, "edits": self.edits, "invoices": self.invoices}

    def top(self, limit: int = 10) -> list[tuple[str, UsageStats]]:
        """Most active addresses first, by total of all three counters."""
        ranked = sorted(self.data.items(), key=lambda item: item[1].total, reverse=True)
        return ranked[:limit]

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": {key: stats.model_dump(mode="json") for key, stats in self.data.items()},
            "summary": self.summary,
        }


async def generate_stats(store: RecordStore) -> StatsReport:
    """Walk the store once and collect every address's counters."""
    report = StatsReport()
    async for record in store.iter_records():
        report.data[record.key] = record.stats
        report.calls += record.stats.calls.num
        report.edits += record.stats.edits.num
        report.invoices += record.stats.invoices.num
    return report
