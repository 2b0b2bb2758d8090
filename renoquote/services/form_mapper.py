"""
Form-to-quantity mapping.

Translates a customer's intake answers into {line_code: quantity}. Every
rule is independent and reads only the form; absent answers skip the rule.
No I/O, no shared state: the same form always maps to the same quantities.
"""
from typing import Dict, Optional

from renoquote.models.quote_form import QuoteFormData
from renoquote.models.quote_response import QuantityMap

DEMOLITION_CODE = "DEM"
PLUMBING_CODE = "PLM"
ELECTRICAL_CODE = "ELE"
FLOOR_TILE_CODE = "TILE-FLR"
SHOWER_FLOOR_TILE_CODE = "TILE-SHWR"
DISPOSAL_CODE = "DUMP"
WET_WALL_TILE_CODE = "TILE-WET"
WET_WALL_PREP_CODES = ("SUB-GRB", "WPF-KER")  # backerboard, waterproofing
DRY_WALL_TILE_CODE = "TILE-DRY"
ACCENT_TILE_CODE = "TILE-ACCENT"
VANITY_CODE = "VAN"
ASBESTOS_TEST_CODE = "ASB-T"

# Bathroom types with a dedicated fixed line
BATHROOM_TYPE_CODES: Dict[str, str] = {
    "walk_in": "RECESS",
}

SHOWER_FLOOR_TYPES = ("walk_in", "tub_shower")

UPGRADE_CODES: Dict[str, str] = {
    "heated_floors": "HEATED-FLR",
    "heated_towel_rack": "HEATED-RACK",
    "bidet_addon": "BIDET-ADDON",
    "smart_mirror": "SMART-MIRROR",
    "premium_exhaust_fan": "PREMIUM-FAN",
    "built_in_niche": "NICHE",
    "shower_bench": "BENCH",
    "safety_grab_bars": "GRAB-BARS",
}


def _positive(value: Optional[float]) -> float:
    return value if value is not None and value > 0 else 0


def plumbing_points(form: QuoteFormData) -> int:
    """+3 shower pan/tub and +1 shower set unless powder, +1 sink, +1 toilet unless walk-in."""
    points = 1  # sink
    if form.bathroom_type != "powder":
        points += 3 + 1
    if form.bathroom_type != "walk_in":
        points += 1
    return points


def shower_floor_sqft(form: QuoteFormData) -> float:
    if form.bathroom_type not in SHOWER_FLOOR_TYPES:
        return 0
    return _positive(form.shower_floor_sqft)


def wet_wall_sqft(form: QuoteFormData) -> float:
    # Powder rooms have no wet walls
    if form.bathroom_type == "powder":
        return 0
    return _positive(form.wet_wall_sqft)


def dry_wall_sqft(form: QuoteFormData) -> float:
    return _positive(form.tile_other_walls_sqft) if form.tile_other_walls else 0


def accent_feature_sqft(form: QuoteFormData) -> float:
    return _positive(form.accent_feature_sqft) if form.add_accent_feature else 0


def map_form_to_quantities(form: QuoteFormData) -> QuantityMap:
    quantities: QuantityMap = {}

    quantities[DEMOLITION_CODE] = 1

    bathroom_code = BATHROOM_TYPE_CODES.get(form.bathroom_type)
    if bathroom_code:
        quantities[bathroom_code] = 1

    quantities[PLUMBING_CODE] = plumbing_points(form)

    floor = _positive(form.floor_sqft)
    shower_floor = shower_floor_sqft(form)
    if floor > 0:
        quantities[FLOOR_TILE_CODE] = floor
    if shower_floor > 0:
        quantities[SHOWER_FLOOR_TILE_CODE] = shower_floor
    if floor + shower_floor > 0:
        quantities[DISPOSAL_CODE] = floor + shower_floor

    wet_wall = wet_wall_sqft(form)
    if wet_wall > 0:
        quantities[WET_WALL_TILE_CODE] = wet_wall
        for code in WET_WALL_PREP_CODES:
            quantities[code] = wet_wall

    dry_wall = dry_wall_sqft(form)
    if dry_wall > 0:
        quantities[DRY_WALL_TILE_CODE] = dry_wall

    accent = accent_feature_sqft(form)
    if accent > 0:
        quantities[ACCENT_TILE_CODE] = accent

    # Width only decides inclusion, never the quantity
    if _positive(form.vanity_width_in) > 0:
        quantities[VANITY_CODE] = 1

    electrical = _positive(form.electrical_items)
    if electrical > 0:
        quantities[ELECTRICAL_CODE] = electrical

    for field, code in UPGRADE_CODES.items():
        if getattr(form.upgrades, field):
            quantities[code] = 1

    if form.year_built == "pre_1980":
        quantities[ASBESTOS_TEST_CODE] = 1

    return quantities


def summarize_form(form: QuoteFormData) -> Dict[str, float]:
    """Derived measurements reported alongside a quote."""
    return {
        "plumbing_points": plumbing_points(form),
        "electrical_items": _positive(form.electrical_items),
        "total_floor_sqft": _positive(form.floor_sqft) + shower_floor_sqft(form),
        "wet_wall_sqft": wet_wall_sqft(form),
        "dry_wall_sqft": dry_wall_sqft(form),
        "accent_feature_sqft": accent_feature_sqft(form),
    }
