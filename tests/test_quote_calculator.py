from decimal import Decimal

import pytest

from renoquote.core.errors import CatalogUnavailable
from renoquote.models.rate_line import RateLine
from renoquote.services.quote_calculator import calculate_quote, price_quote
from renoquote.services.rate_catalog import DEFAULT_RATE_ROWS, RateCatalogSource, StaticRateCatalog


class FailingCatalog(RateCatalogSource):
    name = "failing"

    async def load_rate_lines(self, codes=None):
        raise CatalogUnavailable("connection refused", source=self.name)

    async def load_project_multipliers(self):
        raise CatalogUnavailable("connection refused", source=self.name)


@pytest.fixture
def default_rates():
    rates = (RateLine.model_validate(row) for row in DEFAULT_RATE_ROWS)
    return {rate.code: rate for rate in rates}


def test_inactive_upgrade_is_dropped_from_totals(scenario_form, multipliers, default_rates, fixed_now):
    active = price_quote(scenario_form, default_rates, multipliers, now=fixed_now)

    rates = dict(default_rates)
    rates["HEATED-FLR"] = rates["HEATED-FLR"].model_copy(update={"active": False})
    dropped = price_quote(scenario_form, rates, multipliers, now=fixed_now)

    assert dropped.quantities["HEATED-FLR"] == 1
    assert "HEATED-FLR" not in [i.line_code for i in dropped.line_items]
    assert [(d.line_code, d.reason) for d in dropped.rate_drift] == [("HEATED-FLR", "inactive")]
    assert active.totals.labour_subtotal - dropped.totals.labour_subtotal == Decimal("800.00")


def test_labour_subtotal_matches_line_items(full_form, multipliers, default_rates):
    quote = price_quote(full_form, default_rates, multipliers)

    assert quote.totals.labour_subtotal == sum(i.extended for i in quote.line_items)
    assert quote.rate_drift == []
    assert [i.line_code for i in quote.line_items] == list(quote.quantities)


def test_scenario_line_items_and_uplifts(scenario_form, multipliers, default_rates):
    quote = price_quote(scenario_form, default_rates, multipliers)
    by_code = {i.line_code: i for i in quote.line_items}

    assert by_code["DEM"].extended == Decimal("1107.00")
    assert by_code["RECESS"].extended == Decimal("492.00")
    assert by_code["PLM"].extended == Decimal("1537.50")
    assert by_code["TILE-FLR"].extended == Decimal("615.00")
    assert by_code["ASB-T"].extended == Decimal("450.00")
    assert quote.totals.condo_uplift > 0
    assert quote.totals.oldhome_uplift > 0


def test_calculation_meta(full_form, multipliers, fixed_now):
    quote = price_quote(
        full_form, {}, multipliers, rate_card_version="test-card", currency="USD", now=fixed_now
    )
    meta = quote.calculation_meta

    assert meta.calculated_at == fixed_now
    assert meta.rate_card_version == "test-card"
    assert meta.plumbing_points == 6
    assert meta.electrical_items == 3
    assert meta.total_floor_sqft == 62
    assert quote.currency == "USD"
    # empty catalog: everything drifts, nothing is priced
    assert quote.line_items == []
    assert quote.totals.grand_total == 0
    assert len(quote.rate_drift) == len(quote.quantities)


@pytest.mark.anyio
async def test_calculate_quote_uses_source_snapshot(scenario_form, fixed_now):
    quote = await calculate_quote(scenario_form, StaticRateCatalog(), now=fixed_now)

    assert quote.calculation_meta.rate_card_version == "static-v1"
    assert quote.currency == "CAD"
    assert quote.totals.labour_subtotal == Decimal("7609.10")
    assert quote.totals.contingency == Decimal("152.18")
    assert quote.totals.grand_total == Decimal("7761.28")


@pytest.mark.anyio
async def test_calculate_quote_propagates_catalog_failure(scenario_form):
    with pytest.raises(CatalogUnavailable):
        await calculate_quote(scenario_form, FailingCatalog())


@pytest.mark.anyio
async def test_calculation_is_deterministic(full_form, fixed_now):
    first = await calculate_quote(full_form, StaticRateCatalog(), now=fixed_now)
    second = await calculate_quote(full_form, StaticRateCatalog(), now=fixed_now)
    assert first.model_dump() == second.model_dump()
