"""Reading intake and the derived views served to the dashboard."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Callable, List, Optional
from uuid import uuid4

from pydantic import ValidationError

from app.schemas import ReadingCreate
from datastore.json_store import ReadingStore, build_default_store
from models.records import WasteReading
from services.aggregator import Aggregator, BinSummary, DailySummary, parse_days, summarize_bin
from services.errors import BinNotFoundError, ReadingValidationError
from services.scoring import TOP_LIMIT, ScoredBin, TopBins, rank_bins, score_bin, score_bins
from settings import get_settings

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

DEFAULT_RECENT_LIMIT = 50


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_reading(payload: Any) -> ReadingCreate:
    """Validate an untyped request body into a reading creation request."""
    try:
        return ReadingCreate.model_validate(payload)
    except ValidationError as exc:
        fields: list[str] = []
        problems: list[str] = []
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "body"
            fields.append(field)
            problems.append(f"{field}: {error['msg']}")
        message = "; ".join(problems)
        logger.warning("Rejected reading.", extra={"reason": message})
        raise ReadingValidationError(f"Invalid reading: {message}", fields) from exc


class ReadingService:
    """Coordinates the store, the clock and the aggregation pipeline."""

    def __init__(
        self,
        store: ReadingStore,
        aggregator: Aggregator,
        clock: Clock = utc_now,
        recent_limit: int = DEFAULT_RECENT_LIMIT,
    ) -> None:
        self.store = store
        self.aggregator = aggregator
        self.clock = clock
        self.recent_limit = recent_limit

    def record(self, payload: Any) -> WasteReading:
        """Validate, timestamp and append a new reading."""
        request = payload if isinstance(payload, ReadingCreate) else parse_reading(payload)
        reading = WasteReading(
            id=str(uuid4()),
            bin_id=request.bin_id,
            weight_kg=request.weight_kg,
            moisture_raw=request.moisture_raw,
            waste_tag=request.waste_tag,
            timestamp=self.clock(),
        )
        self.store.append(reading)
        logger.info(
            "Recorded reading.",
            extra={"reading_id": reading.id, "bin_id": reading.bin_id},
        )
        return reading

    def recent(self, limit: Optional[int] = None) -> List[WasteReading]:
        """Newest readings first; equal timestamps keep insertion order."""
        count = limit if limit and limit > 0 else self.recent_limit
        ordered = sorted(self.store.all(), key=lambda reading: reading.timestamp, reverse=True)
        return ordered[:count]

    def daily(self, days: Any = None) -> List[DailySummary]:
        window = parse_days(days)
        readings = self._within(self.store.all(), window)
        summaries = self.aggregator.by_date(readings)
        logger.debug(
            "Computed daily totals.",
            extra={"days": window, "reading_count": len(readings)},
        )
        return summaries

    def bin_stats(self, days: Any = None) -> List[BinSummary]:
        window = parse_days(days)
        readings = self._within(self.store.all(), window)
        summaries = self.aggregator.by_bin(readings)
        summaries.sort(key=lambda summary: summary.entries, reverse=True)
        logger.debug(
            "Computed bin statistics.",
            extra={"days": window, "bin_count": len(summaries)},
        )
        return summaries

    def bin_score(self, bin_id: str, days: Any = None) -> ScoredBin:
        """Score one bin over its whole history, or over a window when ``days`` is given."""
        readings = self.store.by_bin(bin_id)
        window = None
        if days is not None:
            window = parse_days(days)
            readings = self._within(readings, window)
        if not readings:
            logger.warning(
                "No readings for bin.", extra={"bin_id": bin_id, "days": window}
            )
            raise BinNotFoundError(bin_id)
        return score_bin(summarize_bin(bin_id, readings))

    def top_bins(self, limit: int = TOP_LIMIT) -> TopBins:
        """Rank every bin ever seen by its all-time score."""
        scored = score_bins(self.aggregator.by_bin(self.store.all()))
        return rank_bins(scored, limit=limit)

    def _within(self, readings: List[WasteReading], days: int) -> List[WasteReading]:
        return self.aggregator.filter_by_days(readings, days, self.clock())


@lru_cache
def build_default_service() -> ReadingService:
    """Factory that wires the service with the configured store."""
    settings = get_settings()
    return ReadingService(
        store=build_default_store(),
        aggregator=Aggregator(),
        recent_limit=settings.recent_limit,
    )
