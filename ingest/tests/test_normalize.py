from datetime import datetime

import pytest

from ingest.firms_csv import parse_csv
from ingest.normalize import (
    categorize,
    classify_confidence,
    compute_risk_level,
    epoch_millis,
    normalize_record,
    normalize_rows,
    parse_confidence,
    to_local_time,
)
from ingest.rules import CONFIDENCE_TIERS


def test_scenario_row_normalizes_to_expected_classification(scenario_csv, fixed_now):
    records, _ = parse_csv(scenario_csv)

    detection = normalize_record(records[0], "VIIRS NOAA-20", clock=lambda: fixed_now)

    assert detection is not None
    assert detection.confidence == 72
    assert detection.confidence_tier == "high"
    assert detection.risk_level == 100
    assert detection.category == "large active fire"
    assert detection.severity == "very_high"
    assert detection.pixel_area == pytest.approx(1.32)
    assert detection.pixel_area == detection.scan * detection.track
    assert detection.estimated_temperature_c == pytest.approx(61.9)
    assert detection.description == "large active fire - VIIRS"
    assert detection.source_label == "VIIRS NOAA-20"


def test_local_time_is_utc_minus_four_hours(scenario_csv, fixed_now):
    records, _ = parse_csv(scenario_csv)

    detection = normalize_record(records[0], "VIIRS NOAA-20", clock=lambda: fixed_now)

    assert detection.local_date == "2024-08-15"
    assert detection.local_time == "10:30"
    assert detection.acq_time_label == "14:30"
    assert detection.timestamp_ms == epoch_millis(datetime(2024, 8, 15, 10, 30))


def test_local_time_crosses_midnight_backwards():
    local = to_local_time("2024-08-15", "0215")
    assert local == datetime(2024, 8, 14, 22, 15)


def test_short_acq_time_is_zero_padded():
    assert to_local_time("2024-08-15", "530") == datetime(2024, 8, 15, 1, 30)
    assert to_local_time("2024-08-15", "5") == datetime(2024, 8, 14, 20, 5)


def test_non_digit_acq_time_is_not_padded():
    # "5:" is not a valid hour, "30" is read as the minute.
    assert to_local_time("2024-08-15", "5:30") == datetime(2024, 8, 14, 20, 30)


@pytest.mark.parametrize(
    "acq_date, acq_time",
    [
        ("", "1430"),
        ("2024-08-15", ""),
        ("2024-13-45", "1430"),
        ("not-a-date", "1430"),
    ],
)
def test_missing_or_invalid_date_falls_back_to_clock(acq_date, acq_time, fixed_now):
    local = to_local_time(acq_date, acq_time, clock=lambda: fixed_now)
    assert local == datetime(2024, 8, 16, 8, 0)


def test_invalid_time_parts_read_as_zero():
    assert to_local_time("2024-08-15", "xx99") == datetime(2024, 8, 14, 20, 0)


def test_risk_level_adds_all_bonuses_and_clamps():
    assert compute_risk_level(72, 335, 325, 120) == 100
    assert compute_risk_level(10, 0, 0, 120) == 35
    assert compute_risk_level(10, 0, 0, 60) == 25
    assert compute_risk_level(10, 331, 0, 0) == 20
    assert compute_risk_level(10, 330, 320, 50) == 10


@pytest.mark.parametrize("confidence", [0, 25, 50, 99, 100])
@pytest.mark.parametrize("frp", [0.0, 51.0, 150.0])
def test_risk_level_stays_in_range(confidence, frp):
    assert 0 <= compute_risk_level(confidence, 400.0, 400.0, frp) <= 100


@pytest.mark.parametrize(
    "frp, expected",
    [
        (150.0, ("large active fire", "very_high")),
        (100.0, ("moderate active fire", "high")),
        (60.0, ("moderate active fire", "high")),
        (50.0, ("small active fire", "medium")),
        (11.0, ("small active fire", "medium")),
        (10.0, ("heat source", "low")),
        (0.0, ("heat source", "low")),
    ],
)
def test_categorize_by_frp_thresholds(frp, expected):
    assert categorize(frp, 1.0, 1.0) == expected


def test_categorize_appends_extensive_area_without_changing_severity():
    assert categorize(5.0, 1.5, 1.5) == ("heat source (extensive area)", "low")
    assert categorize(120.0, 2.0, 1.0) == ("large active fire", "very_high")


@pytest.mark.parametrize(
    "confidence, tier",
    [(0, "nominal"), (29, "nominal"), (30, "low"), (49, "low"), (50, "medium"), (70, "high"), (84, "high"), (85, "very_high"), (100, "very_high")],
)
def test_confidence_tier_boundaries(confidence, tier):
    assert classify_confidence(confidence) == tier


def test_every_confidence_maps_to_exactly_one_tier():
    keys = [tier.key for tier in CONFIDENCE_TIERS]
    for confidence in range(0, 101):
        matches = [
            t.key
            for t in CONFIDENCE_TIERS
            if t.min <= confidence < t.max or (t is CONFIDENCE_TIERS[-1] and confidence == t.max)
        ]
        assert len(matches) == 1
        assert classify_confidence(confidence) == matches[0]
        assert matches[0] in keys


def test_confidence_parse_defaults_and_clamps():
    assert parse_confidence("n") == 0
    assert parse_confidence("") == 0
    assert parse_confidence("72.9") == 72
    assert parse_confidence("140") == 100
    assert parse_confidence("-5") == 0
    assert parse_confidence("inf") == 0


def test_absent_fields_use_placeholders(fixed_now):
    record = {"latitude": "-16.5", "longitude": "-63.2", "acq_date": "2024-08-15", "acq_time": "1430", "confidence": "40"}

    detection = normalize_record(record, "VIIRS S-NPP", clock=lambda: fixed_now)

    assert detection.satellite == "unknown"
    assert detection.instrument == "unknown"
    assert detection.day_night == "D"
    assert detection.sensor_version == ""
    assert detection.frp == 0.0
    assert detection.pixel_area == 0.0
    assert detection.estimated_temperature_c is None
    assert detection.description == "heat source - FIRMS"
    assert detection.confidence_tier == "low"


def test_normalize_rows_drops_records_without_coordinates(fixed_now):
    records = [
        {"latitude": "-16.5", "longitude": "-63.2", "acq_date": "2024-08-15", "acq_time": "1430", "confidence": "40"},
        {"latitude": "", "longitude": "-63.2", "acq_date": "2024-08-15", "acq_time": "1430", "confidence": "40"},
    ]

    detections = normalize_rows(records, "MODIS Terra & Aqua", clock=lambda: fixed_now)

    assert len(detections) == 1
    assert detections[0].source_label == "MODIS Terra & Aqua"


def test_custom_offset_is_applied():
    assert to_local_time("2024-08-15", "1430", offset_hours=0) == datetime(2024, 8, 15, 14, 30)
    assert epoch_millis(datetime(1970, 1, 1, 0, 0, 1)) == 1000
