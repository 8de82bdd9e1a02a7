"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class WasteReading:
    """A single bin sensor observation as it is stored."""

    id: str
    bin_id: str
    weight_kg: float
    moisture_raw: float
    waste_tag: str
    timestamp: datetime
