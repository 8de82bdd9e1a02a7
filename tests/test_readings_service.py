from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest

from app.schemas import ReadingCreate
from datastore.json_store import JsonReadingStore
from models.records import WasteReading
from services.aggregator import Aggregator
from services.errors import BinNotFoundError, ReadingValidationError
from services.readings import ReadingService, parse_reading

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest.fixture()
def service(clock: FrozenClock) -> ReadingService:
    return ReadingService(store=JsonReadingStore(), aggregator=Aggregator(), clock=clock)


def _body(bin_id="BIN-001", weight=1.0, moisture=500.0, tag="organic") -> dict:
    return {"binId": bin_id, "weightKg": weight, "moistureRaw": moisture, "wasteTag": tag}


def _record_at(service: ReadingService, clock: FrozenClock, when: datetime, **body) -> WasteReading:
    clock.now = when
    try:
        return service.record(_body(**body))
    finally:
        clock.now = NOW


def test_record_assigns_id_and_clock_timestamp(service: ReadingService) -> None:
    reading = service.record(_body(weight="2.5", moisture=640))

    assert reading.id
    assert reading.timestamp == NOW
    assert reading.bin_id == "BIN-001"
    assert reading.weight_kg == 2.5
    assert reading.moisture_raw == 640.0
    assert service.store.all() == [reading]


def test_record_generates_unique_ids(service: ReadingService) -> None:
    ids = {service.record(_body()).id for _ in range(5)}

    assert len(ids) == 5


def test_record_accepts_validated_request(service: ReadingService) -> None:
    request = ReadingCreate(bin_id="BIN-9", weight_kg=1, moisture_raw=2, waste_tag="glass")

    reading = service.record(request)

    assert reading.bin_id == "BIN-9"


def test_record_logs_creation(service: ReadingService, caplog) -> None:
    with caplog.at_level(logging.INFO):
        reading = service.record(_body())

    records = [record for record in caplog.records if record.name == "services.readings"]
    assert any(getattr(record, "reading_id", None) == reading.id for record in records)


@pytest.mark.parametrize(
    ("body", "field"),
    [
        ({"weightKg": 1, "moistureRaw": 1, "wasteTag": "x"}, "binId"),
        (_body(bin_id=""), "binId"),
        (_body(bin_id="   "), "binId"),
        (_body(bin_id=None), "binId"),
        (_body(tag=""), "wasteTag"),
        (_body(tag=["a"]), "wasteTag"),
        (_body(weight="heavy"), "weightKg"),
        (_body(weight=""), "weightKg"),
        (_body(weight=None), "weightKg"),
        (_body(weight=True), "weightKg"),
        (_body(moisture="nan"), "moistureRaw"),
        (_body(moisture="Infinity"), "moistureRaw"),
        (_body(moisture=float("inf")), "moistureRaw"),
    ],
)
def test_invalid_bodies_are_rejected(service: ReadingService, body: dict, field: str) -> None:
    with pytest.raises(ReadingValidationError) as excinfo:
        service.record(body)

    assert field in excinfo.value.fields
    assert service.store.all() == []


def test_non_object_body_is_rejected() -> None:
    with pytest.raises(ReadingValidationError):
        parse_reading(None)
    with pytest.raises(ReadingValidationError):
        parse_reading(["BIN-001", 1, 2, "x"])


def test_parse_reading_coerces_numbers_and_keeps_text_as_sent() -> None:
    request = parse_reading({"binId": 42, "weightKg": " 1.5 ", "moistureRaw": 700, "wasteTag": " paper "})

    assert request.bin_id == "42"
    assert request.weight_kg == 1.5
    assert request.moisture_raw == 700.0
    assert request.waste_tag == " paper "


def test_bin_ids_are_stored_and_grouped_exactly(service: ReadingService) -> None:
    padded = service.record(_body(bin_id=" BIN-1 "))
    service.record(_body(bin_id="BIN-1"))

    assert padded.bin_id == " BIN-1 "
    assert service.bin_score(" BIN-1 ").summary.entries == 1
    assert service.bin_score("BIN-1").summary.entries == 1
    assert sorted(summary.bin_id for summary in service.bin_stats()) == [" BIN-1 ", "BIN-1"]


def test_validation_error_lists_every_bad_field() -> None:
    with pytest.raises(ReadingValidationError) as excinfo:
        parse_reading({"binId": "", "weightKg": "x", "moistureRaw": 1, "wasteTag": "t"})

    assert set(excinfo.value.fields) == {"binId", "weightKg"}
    assert "binId: must be a non-empty string" in str(excinfo.value)
    assert "weightKg: must be a finite number" in str(excinfo.value)


def test_recent_is_newest_first_and_limited(service: ReadingService, clock: FrozenClock) -> None:
    for minutes in range(60):
        _record_at(service, clock, NOW - timedelta(minutes=minutes), bin_id=f"BIN-{minutes}")

    recent = service.recent()

    assert len(recent) == 50
    assert recent[0].bin_id == "BIN-0"
    assert recent[-1].bin_id == "BIN-49"
    assert [reading.timestamp for reading in recent] == sorted(
        (reading.timestamp for reading in recent), reverse=True
    )
    assert len(service.recent(limit=5)) == 5


def test_recent_keeps_insertion_order_for_equal_timestamps(service: ReadingService) -> None:
    first = service.record(_body(bin_id="first"))
    second = service.record(_body(bin_id="second"))

    assert service.recent() == [first, second]


def test_daily_uses_window(service: ReadingService, clock: FrozenClock) -> None:
    _record_at(service, clock, NOW - timedelta(days=2), weight=1.0)
    _record_at(service, clock, NOW - timedelta(days=2, hours=1), weight=2.0)
    _record_at(service, clock, NOW - timedelta(days=9), weight=4.0)

    default_window = service.daily()
    wide_window = service.daily("10")

    assert [(day.date, day.count, day.total_kg) for day in default_window] == [("2024-06-13", 2, 3.0)]
    assert [day.date for day in wide_window] == ["2024-06-13", "2024-06-06"]
    assert service.daily("not-a-number") == default_window


def test_bin_stats_sorted_by_entries(service: ReadingService, clock: FrozenClock) -> None:
    service.record(_body(bin_id="quiet"))
    for _ in range(3):
        service.record(_body(bin_id="busy"))
    service.record(_body(bin_id="middle"))
    service.record(_body(bin_id="middle"))
    _record_at(service, clock, NOW - timedelta(days=20), bin_id="old")

    stats = service.bin_stats()

    assert [(summary.bin_id, summary.entries) for summary in stats] == [
        ("busy", 3),
        ("middle", 2),
        ("quiet", 1),
    ]
    assert "old" in {summary.bin_id for summary in service.bin_stats(45)}


def test_bin_score_reference_example(service: ReadingService) -> None:
    for weight, moisture in [(1, 500), (2, 700), (3, 900)]:
        service.record(_body(weight=weight, moisture=moisture))

    scored = service.bin_score("BIN-001")

    assert scored.summary.total_kg == 6.0
    assert scored.summary.avg_weight == 2.0
    assert scored.summary.avg_moisture == 700.0
    assert scored.summary.entries == 3
    assert scored.score == 78


def test_bin_score_unknown_bin_raises(service: ReadingService, caplog) -> None:
    service.record(_body(bin_id="BIN-001"))

    with caplog.at_level(logging.WARNING), pytest.raises(BinNotFoundError) as excinfo:
        service.bin_score("UNKNOWN-BIN")

    assert excinfo.value.bin_id == "UNKNOWN-BIN"
    assert "UNKNOWN-BIN" in str(excinfo.value)
    assert any(getattr(record, "bin_id", None) == "UNKNOWN-BIN" for record in caplog.records)


def test_bin_score_covers_history_unless_windowed(service: ReadingService, clock: FrozenClock) -> None:
    _record_at(service, clock, NOW - timedelta(days=60), weight=5.0)
    service.record(_body(weight=1.0))

    assert service.bin_score("BIN-001").summary.entries == 2
    assert service.bin_score("BIN-001", days="7").summary.entries == 1

    _record_at(service, clock, NOW - timedelta(days=60), bin_id="STALE")
    with pytest.raises(BinNotFoundError):
        service.bin_score("STALE", days="7")


def test_top_bins_uses_entire_history(service: ReadingService, clock: FrozenClock) -> None:
    _record_at(service, clock, NOW - timedelta(days=365), bin_id="ancient", moisture=900)
    service.record(_body(bin_id="fresh", moisture=100))
    service.record(_body(bin_id="damp", moisture=700))

    ranking = service.top_bins()

    assert [item.bin_id for item in ranking.performers] == ["fresh", "damp", "ancient"]
    assert [item.bin_id for item in ranking.offenders] == ["ancient", "damp", "fresh"]
    assert [item.score for item in ranking.offenders] == [70, 85, 100]
