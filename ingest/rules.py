"""Static lookup tables for FIRMS detections: confidence tiers, risk heuristics, catalogs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

INVALID_KEY_SENTINEL = "Invalid MAP_KEY."
HEADER_MARKER = "latitude"
REQUIRED_FIELDS: Tuple[str, ...] = ("latitude", "longitude", "acq_date", "confidence")
KELVIN_OFFSET = 273.15
EXTENSIVE_AREA_THRESHOLD = 2.0
ALL_SOURCES = "ALL"


@dataclass(frozen=True, slots=True)
class ConfidenceTier:
    key: str
    min: int
    max: int
    label: str
    color: str

    def to_dict(self) -> Dict[str, object]:
        return {"min": self.min, "max": self.max, "label": self.label, "color": self.color}


# Ascending by `min`; the lookup scans in this order and the first
# half-open [min, max) interval wins. The last tier also owns `max`.
CONFIDENCE_TIERS: Tuple[ConfidenceTier, ...] = (
    ConfidenceTier("nominal", 0, 30, "Nominal", "#84cc16"),
    ConfidenceTier("low", 30, 50, "Low", "#fbbf24"),
    ConfidenceTier("medium", 50, 70, "Medium", "#f59e0b"),
    ConfidenceTier("high", 70, 85, "High", "#dc2626"),
    ConfidenceTier("very_high", 85, 100, "Very High", "#7f1d1d"),
)
DEFAULT_CONFIDENCE_TIER = "nominal"


@dataclass(frozen=True, slots=True)
class RiskBonus:
    """Additive bump applied when `field` strictly exceeds `threshold`."""

    field: str
    threshold: float
    bonus: int


RISK_BONUSES: Tuple[RiskBonus, ...] = (
    RiskBonus("brightness_ti4", 330.0, 10),
    RiskBonus("brightness_ti5", 320.0, 5),
    RiskBonus("frp", 50.0, 15),
    RiskBonus("frp", 100.0, 10),
)
RISK_RANGE = (0, 100)


@dataclass(frozen=True, slots=True)
class SeverityRule:
    frp_above: float
    category: str
    severity: str


# Checked from the highest FRP threshold down; first match wins.
SEVERITY_RULES: Tuple[SeverityRule, ...] = (
    SeverityRule(100.0, "large active fire", "very_high"),
    SeverityRule(50.0, "moderate active fire", "high"),
    SeverityRule(10.0, "small active fire", "medium"),
)
DEFAULT_CATEGORY = "heat source"
DEFAULT_SEVERITY = "low"
EXTENSIVE_AREA_SUFFIX = " (extensive area)"
SEVERITY_LEVELS: Tuple[str, ...] = ("low", "medium", "high", "very_high")


@dataclass(frozen=True, slots=True)
class FirmsSource:
    key: str
    label: str
    description: str


SOURCES: Dict[str, FirmsSource] = {
    src.key: src
    for src in (
        FirmsSource(
            "VIIRS_SNPP_NRT",
            "VIIRS S-NPP",
            "Suomi NPP satellite, VIIRS sensor. 375m resolution, updated every 3 hours.",
        ),
        FirmsSource(
            "VIIRS_NOAA20_NRT",
            "VIIRS NOAA-20",
            "NOAA-20 satellite, VIIRS sensor. 375m resolution, daily global coverage.",
        ),
        FirmsSource(
            "MODIS_NRT",
            "MODIS Terra & Aqua",
            "Terra and Aqua satellites, MODIS sensor. 1km resolution, archive since 2000.",
        ),
        FirmsSource(
            "VIIRS_NOAA21_NRT",
            "VIIRS NOAA-21",
            "NOAA-21 satellite (newest). 375m resolution, more frequent overpasses.",
        ),
    )
}


@dataclass(frozen=True, slots=True)
class Region:
    key: str
    bbox: str  # "minLon,minLat,maxLon,maxLat"
    description: str


REGIONS: Dict[str, Region] = {
    region.key: region
    for region in (
        Region("bolivia", "-69.6,-22.9,-57.5,-9.7", "The whole Bolivian territory"),
        Region("santaCruz", "-64.0,-20.0,-58.0,-15.0", "Santa Cruz department and surroundings"),
        Region("laPaz", "-69.0,-17.0,-66.0,-14.0", "La Paz department and surroundings"),
        Region("beni", "-67.0,-16.0,-63.0,-10.0", "Beni department and surroundings"),
        Region("pando", "-69.5,-13.0,-65.0,-9.0", "Pando department"),
        Region("tarija", "-65.0,-23.0,-62.0,-20.5", "Tarija department"),
        Region("cochabamba", "-67.0,-18.5,-64.0,-16.0", "Cochabamba department"),
        Region("oruro", "-68.5,-19.5,-66.0,-17.0", "Oruro department"),
        Region("potosi", "-68.0,-22.0,-65.0,-19.0", "Potosi department"),
    )
}

# Tiny box used to probe whether a map key is accepted.
VALIDATION_BBOX = "-69,-17,-68,-16"


def source_label(source: str) -> str:
    """Human-readable label for a source identifier, falling back to the identifier."""
    known = SOURCES.get(source)
    return known.label if known else source
