"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

import math
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from models.records import WasteReading
from services.aggregator import BinSummary, DailySummary
from services.scoring import ScoredBin


class _CamelModel(BaseModel):
    """Base for payloads exchanged with the dashboard using camelCase keys."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class ReadingCreate(_CamelModel):
    """Validated, immutable request to record a new reading."""

    model_config = ConfigDict(frozen=True)

    bin_id: str = Field(..., description="Bin identifier; any non-empty string.")
    weight_kg: float = Field(..., description="Measured weight in kilograms.")
    moisture_raw: float = Field(..., description="Raw moisture sensor value.")
    waste_tag: str = Field(..., description="Free-text waste category.")

    @field_validator("bin_id", "waste_tag", mode="before")
    @classmethod
    def require_text(cls, value: Any) -> str:
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise PydanticCustomError("non_empty_text", "must be a non-empty string")
        text = str(value)
        if not text.strip():
            raise PydanticCustomError("non_empty_text", "must be a non-empty string")
        return text

    @field_validator("weight_kg", "moisture_raw", mode="before")
    @classmethod
    def require_finite_number(cls, value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise PydanticCustomError("finite_number", "must be a finite number")
        try:
            number = float(value.strip() if isinstance(value, str) else value)
        except (ValueError, OverflowError):
            raise PydanticCustomError("finite_number", "must be a finite number") from None
        if not math.isfinite(number):
            raise PydanticCustomError("finite_number", "must be a finite number")
        return number


class ReadingOut(_CamelModel):
    """A stored reading as returned by the API and written to the store file."""

    id: str
    bin_id: str
    weight_kg: float
    moisture_raw: float
    waste_tag: str
    timestamp: datetime

    @classmethod
    def from_record(cls, reading: WasteReading) -> "ReadingOut":
        return cls.model_validate(asdict(reading))

    def to_record(self) -> WasteReading:
        timestamp = self.timestamp
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return WasteReading(
            id=self.id,
            bin_id=self.bin_id,
            weight_kg=self.weight_kg,
            moisture_raw=self.moisture_raw,
            waste_tag=self.waste_tag,
            timestamp=timestamp.astimezone(timezone.utc),
        )


class DailySummaryOut(_CamelModel):
    """Totals for one UTC calendar day."""

    date: str = Field(..., description="Calendar day in YYYY-MM-DD form (UTC).")
    total_kg: float
    avg_moisture: float
    count: int = Field(..., ge=0)

    @classmethod
    def from_summary(cls, summary: DailySummary) -> "DailySummaryOut":
        return cls.model_validate(asdict(summary))


class BinSummaryOut(_CamelModel):
    """Totals and averages for one bin."""

    bin_id: str
    total_kg: float
    avg_weight: float
    avg_moisture: float
    entries: int = Field(..., ge=0)

    @classmethod
    def from_summary(cls, summary: BinSummary) -> "BinSummaryOut":
        return cls.model_validate(asdict(summary))


class ScoredBinOut(BinSummaryOut):
    """Bin statistics together with the segregation score."""

    score: int = Field(..., ge=0, le=100)

    @classmethod
    def from_scored(cls, scored: ScoredBin) -> "ScoredBinOut":
        return cls.model_validate({**asdict(scored.summary), "score": scored.score})


class TopBinsResponse(_CamelModel):
    """Best and worst bins by all-time segregation score."""

    performers: List[ScoredBinOut] = Field(default_factory=list)
    offenders: List[ScoredBinOut] = Field(default_factory=list)
