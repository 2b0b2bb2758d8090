import os
os.environ.setdefault("CATALOG_SOURCE", "static")  # never reach the hosted database from tests

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from renoquote.models.quote_form import QuoteFormData
from renoquote.models.rate_line import ProjectMultipliers, RateLine


@pytest.fixture
def anyio_backend():
    # Only the asyncio backend; no trio in the stack
    return "asyncio"


@pytest.fixture
def fixed_now():
    return datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def multipliers():
    return ProjectMultipliers(
        contingency_rate=Decimal("0.10"),
        pm_fee_rate=Decimal("0.05"),
        condo_uplift_rate=Decimal("0.08"),
        oldhome_uplift_rate=Decimal("0.04"),
    )


@pytest.fixture
def small_catalog():
    rates = [
        RateLine(code="TILE-FLR", name="Floor tile", base_price=Decimal("123.00"), price_per_unit=Decimal("12.30"), unit="sqft"),
        RateLine(code="VAN", name="Vanity install", base_price=Decimal("264.45"), price_per_unit=Decimal("0"), unit="unit"),
        RateLine(code="ELE", name="Electrical items", base_price=Decimal("0"), price_per_unit=Decimal("184.50"), unit="item"),
        RateLine(code="HEATED-FLR", name="Heated floors", base_price=Decimal("800.00"), price_per_unit=Decimal("0"), unit="unit", active=False),
    ]
    return {rate.code: rate for rate in rates}


@pytest.fixture
def scenario_form():
    # walk-in condo, pre-1980, heated floors only
    return QuoteFormData(
        bathroom_type="walk_in",
        building_type="condo",
        year_built="pre_1980",
        floor_sqft=40,
        shower_floor_sqft=12,
        wet_wall_sqft=60,
        upgrades={"heated_floors": True},
    )


@pytest.fixture
def full_form():
    return QuoteFormData(
        quote_name="Main floor bathroom",
        customer_name="Jordan Lee",
        customer_email="jordan@example.com",
        project_address="12 Elm St",
        bathroom_type="tub_shower",
        building_type="house",
        year_built="post_1980",
        floor_sqft=50,
        shower_floor_sqft=12,
        wet_wall_sqft=80,
        tile_other_walls=True,
        tile_other_walls_sqft=40,
        add_accent_feature=True,
        accent_feature_sqft=20,
        vanity_width_in=48,
        electrical_items=3,
        upgrades={"smart_mirror": True, "safety_grab_bars": True},
    )
