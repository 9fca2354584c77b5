import asyncio

import httpx
import pytest

from api.errors import InvalidQueryError, MissingMapKeyError
from api.fires.service import clamp_days, parse_bbox, resolve_query
from ingest.config import FirmsSettings
from ingest.rules import REGIONS, SOURCES


def test_resolve_query_applies_defaults(firms_settings):
    query = resolve_query(firms_settings)

    assert query.sources == ("VIIRS_SNPP_NRT",)
    assert query.days == 1
    assert query.bbox == REGIONS["bolivia"].bbox
    assert query.area_label == "bolivia"


def test_resolve_query_expands_all_sources(firms_settings):
    query = resolve_query(firms_settings, source="ALL")

    assert query.source == "ALL"
    assert query.sources == tuple(SOURCES)


def test_known_region_overrides_bbox(firms_settings):
    query = resolve_query(firms_settings, region="beni", bbox="not,a,valid,bbox")

    assert query.bbox == REGIONS["beni"].bbox
    assert query.stats_key == ("VIIRS_SNPP_NRT", 1, "beni")


def test_unknown_region_falls_back_to_bbox(firms_settings):
    query = resolve_query(firms_settings, region="atlantis", bbox="-70, -20, -60, -10")

    assert query.bbox == "-70,-20,-60,-10"
    assert query.area_label == "-70,-20,-60,-10"


@pytest.mark.parametrize("bbox", ["1,2,3", "a,b,c,d", "-200,0,10,10", "0,-95,10,10"])
def test_invalid_bbox_is_rejected(bbox):
    with pytest.raises(InvalidQueryError):
        parse_bbox(bbox)


@pytest.mark.parametrize(
    "days, expected",
    [(None, 1), ("junk", 1), ("0", 1), (-3, 1), ("4", 4), (10, 10), ("30", 10)],
)
def test_clamp_days(days, expected):
    assert clamp_days(days, 10) == expected


def test_days_above_maximum_are_clamped_before_fetching(make_service, firms, firms_settings):
    service = make_service()

    result = asyncio.run(service.get_detections(resolve_query(firms_settings, days="30")))

    assert len(result.detections) == 1
    assert firms.days_requested() == [10]


def test_second_identical_query_is_served_from_cache(make_service, firms, firms_settings):
    service = make_service()
    query = resolve_query(firms_settings, days=2)

    first = asyncio.run(service.get_detections(query))
    second = asyncio.run(service.get_detections(query))

    assert len(firms.requests) == 1
    assert [d.to_dict() for d in second.detections] == [d.to_dict() for d in first.detections]


def test_cache_expiry_triggers_a_new_fetch(make_service, firms, firms_settings, fake_clock):
    service = make_service()
    query = resolve_query(firms_settings)

    asyncio.run(service.get_detections(query))
    fake_clock.advance(firms_settings.detections_ttl_seconds + 1)
    asyncio.run(service.get_detections(query))

    assert len(firms.requests) == 2


def test_empty_results_are_not_cached(make_service, firms, firms_settings):
    firms.bodies["VIIRS_SNPP_NRT"] = ""
    service = make_service()
    query = resolve_query(firms_settings)

    assert asyncio.run(service.get_detections(query)).is_empty
    assert asyncio.run(service.get_detections(query)).is_empty
    assert len(firms.requests) == 2


def test_missing_map_key_fails_without_upstream_call(make_service, firms):
    settings = FirmsSettings(FIRMS_MAP_KEY="")
    service = make_service(settings)

    with pytest.raises(MissingMapKeyError):
        asyncio.run(service.get_detections(resolve_query(settings)))
    assert firms.requests == []


def test_failing_source_is_reported_alongside_detections(make_service, firms, firms_settings):
    firms.bodies["MODIS_NRT"] = httpx.ConnectError("refused")
    service = make_service()

    result = asyncio.run(service.get_detections(resolve_query(firms_settings, source="ALL")))

    assert len(result.detections) == 1
    assert [e.source for e in result.errors] == ["MODIS_NRT"]


def test_statistics_are_cached_separately(make_service, firms, firms_settings):
    service = make_service()
    query = resolve_query(firms_settings, region="bolivia")

    snapshot = asyncio.run(service.get_statistics(query))
    service.cache.detections.clear()
    again = asyncio.run(service.get_statistics(query))

    assert snapshot.total == 1
    assert again is snapshot
    assert len(firms.requests) == 1


def test_validate_key_reports_rejected_key(make_service, firms):
    firms.bodies["VIIRS_SNPP_NRT"] = "Invalid MAP_KEY."
    service = make_service()

    assert asyncio.run(service.validate_key()) is False


def test_statistics_after_outage_are_recomputed_on_recovery(make_service, firms, firms_settings, fake_clock):
    healthy_body = firms.bodies["VIIRS_SNPP_NRT"]
    firms.bodies["VIIRS_SNPP_NRT"] = httpx.ConnectError("refused")
    service = make_service()
    query = resolve_query(firms_settings)

    outage = asyncio.run(service.get_statistics(query))

    assert outage.total == 0
    assert [e["source"] for e in outage.to_dict()["errors"]] == ["VIIRS_SNPP_NRT"]
    assert len(service.cache.stats) == 0

    firms.bodies["VIIRS_SNPP_NRT"] = healthy_body
    fake_clock.advance(60)
    recovered = asyncio.run(service.get_statistics(query))
    detections = asyncio.run(service.get_detections(query))

    assert recovered.total == len(detections.detections) == 1
    assert "errors" not in recovered.to_dict()
