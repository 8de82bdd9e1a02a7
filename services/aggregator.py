"""Aggregation logic for waste readings."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List

from models.records import WasteReading

DEFAULT_WINDOW_DAYS = 7
MAX_WINDOW_DAYS = 30

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class DailySummary:
    """Totals for the readings of one UTC calendar day."""

    date: str
    total_kg: float
    avg_moisture: float
    count: int


@dataclass(frozen=True)
class BinSummary:
    """Totals and averages for the readings of one bin."""

    bin_id: str
    total_kg: float
    avg_weight: float
    avg_moisture: float
    entries: int


@dataclass
class _Totals:
    weight: float = 0.0
    moisture: float = 0.0
    count: int = 0

    def add(self, reading: WasteReading) -> None:
        self.weight += reading.weight_kg
        self.moisture += reading.moisture_raw
        self.count += 1

    def mean(self, total: float) -> float:
        return round_half_away(total / self.count) if self.count else 0.0


def round_half_away(value: float, places: int = 2) -> float:
    """Round to ``places`` decimals with halves going away from zero."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def parse_days(
    value: Any,
    default: int = DEFAULT_WINDOW_DAYS,
    maximum: int = MAX_WINDOW_DAYS,
) -> int:
    """Interpret a caller-supplied window length.

    Only the leading integer of a string counts, so ``"3.5"`` is 3 and
    ``"12 days"`` is 12. Missing, non-numeric and non-positive values fall
    back to ``default``; anything above ``maximum`` is clamped to it.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        parsed = value
    else:
        match = _LEADING_INT.match(str(value))
        if match is None:
            return default
        parsed = int(match.group(1))
    if parsed <= 0:
        return default
    return min(parsed, maximum)


def summarize_bin(bin_id: str, readings: Iterable[WasteReading]) -> BinSummary:
    """Build the statistics for one bin; an empty selection yields zeros."""
    totals = _Totals()
    for reading in readings:
        totals.add(reading)
    return _bin_summary(bin_id, totals)


def _bin_summary(bin_id: str, totals: _Totals) -> BinSummary:
    return BinSummary(
        bin_id=bin_id,
        total_kg=round_half_away(totals.weight),
        avg_weight=totals.mean(totals.weight),
        avg_moisture=totals.mean(totals.moisture),
        entries=totals.count,
    )


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def filter_by_days(
        self, readings: Iterable[WasteReading], days: int, now: datetime
    ) -> List[WasteReading]:
        """Keep readings taken at or after ``now - days``; input order is kept."""
        cutoff = now - timedelta(days=days)
        return [reading for reading in readings if reading.timestamp >= cutoff]

    def by_date(self, readings: Iterable[WasteReading]) -> List[DailySummary]:
        """Group readings per UTC day, newest day first."""
        per_day: Dict[str, _Totals] = {}
        for reading in readings:
            day = reading.timestamp.astimezone(timezone.utc).date().isoformat()
            per_day.setdefault(day, _Totals()).add(reading)

        summaries = [
            DailySummary(
                date=day,
                total_kg=round_half_away(totals.weight),
                avg_moisture=totals.mean(totals.moisture),
                count=totals.count,
            )
            for day, totals in per_day.items()
        ]
        summaries.sort(key=lambda summary: summary.date, reverse=True)
        return summaries

    def by_bin(self, readings: Iterable[WasteReading]) -> List[BinSummary]:
        """Group readings per bin in the order each bin is first seen."""
        per_bin: Dict[str, _Totals] = {}
        for reading in readings:
            per_bin.setdefault(reading.bin_id, _Totals()).add(reading)
        return [_bin_summary(bin_id, totals) for bin_id, totals in per_bin.items()]
