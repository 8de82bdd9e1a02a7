from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import List, Optional, Protocol, Sequence

from pydantic import ValidationError

from app.schemas import ReadingOut
from models.records import WasteReading
from settings import get_settings

logger = logging.getLogger(__name__)

_COLLECTION_KEY = "wasteReadings"


class ReadingStore(Protocol):
    """Append-only, insertion-ordered collection of readings."""

    def append(self, reading: WasteReading) -> WasteReading: ...

    def all(self) -> Sequence[WasteReading]: ...

    def by_bin(self, bin_id: str) -> Sequence[WasteReading]: ...


class JsonReadingStore:
    """Readings held in memory and mirrored to a JSON document when a path is set."""

    def __init__(self, persistence_path: Optional[Path] = None) -> None:
        self._readings: List[WasteReading] = []
        self._ids: set[str] = set()
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def append(self, reading: WasteReading) -> WasteReading:
        with self._lock:
            if reading.id in self._ids:
                raise ValueError(f"Reading {reading.id!r} already exists.")
            self._readings.append(reading)
            self._ids.add(reading.id)
            self._persist()
        return reading

    def all(self) -> List[WasteReading]:
        """Return a snapshot of every reading in insertion order."""

        with self._lock:
            return list(self._readings)

    def by_bin(self, bin_id: str) -> List[WasteReading]:
        with self._lock:
            return [reading for reading in self._readings if reading.bin_id == bin_id]

    def __len__(self) -> int:
        with self._lock:
            return len(self._readings)

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {
            _COLLECTION_KEY: [
                ReadingOut.from_record(reading).model_dump(mode="json", by_alias=True)
                for reading in self._readings
            ]
        }
        directory = self.persistence_path.parent
        fd, temp_name = tempfile.mkstemp(
            dir=directory, prefix=f".{self.persistence_path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2)
            os.replace(temp_name, self.persistence_path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

    def _set_aside(self, keep_original: bool) -> Path:
        """Preserve the current store file under a ``.corrupt-<timestamp>`` name."""
        assert self.persistence_path is not None
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        backup = self.persistence_path.with_name(f"{self.persistence_path.name}.corrupt-{stamp}")
        if keep_original:
            shutil.copyfile(self.persistence_path, backup)
        else:
            self.persistence_path.replace(backup)
        return backup

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            backup = self._set_aside(keep_original=False)
            logger.warning(
                "Moved unreadable reading store aside.",
                extra={"path": str(backup), "reason": str(exc)},
            )
            return

        if not isinstance(data, dict) or not isinstance(data.get(_COLLECTION_KEY, []), list):
            backup = self._set_aside(keep_original=False)
            logger.warning(
                "Moved reading store with unexpected layout aside.",
                extra={"path": str(backup)},
            )
            return

        skipped = 0
        for position, payload in enumerate(data.get(_COLLECTION_KEY, [])):
            try:
                reading = ReadingOut.model_validate(payload).to_record()
            except ValidationError as exc:
                logger.warning(
                    "Skipping malformed stored reading at position %d.",
                    position,
                    extra={"path": str(self.persistence_path), "reason": f"{exc.error_count()} invalid fields"},
                )
                skipped += 1
                continue
            if reading.id in self._ids:
                continue
            self._readings.append(reading)
            self._ids.add(reading.id)

        if skipped:
            backup = self._set_aside(keep_original=True)
            logger.warning(
                "Kept a copy of the reading store before dropping malformed entries.",
                extra={"path": str(backup), "reason": f"{skipped} skipped"},
            )

        logger.info(
            "Loaded reading store.",
            extra={"path": str(self.persistence_path), "reading_count": len(self._readings)},
        )


@lru_cache
def build_default_store(path: Optional[str] = None) -> JsonReadingStore:
    settings = get_settings()
    store_path = settings.db_path if path is None else path
    persistence = Path(store_path) if store_path else None
    return JsonReadingStore(persistence_path=persistence)
