from datetime import datetime, timezone
from typing import List, Optional

from renoquote.core.config import settings
from renoquote.core.errors import RateDrift
from renoquote.core.logger import get_logger
from renoquote.models.quote_form import QuoteFormData
from renoquote.models.quote_response import CalculatedQuote, CalculationMeta
from renoquote.models.rate_line import ProjectMultipliers, RateCatalog
from renoquote.services.form_mapper import map_form_to_quantities, summarize_form
from renoquote.services.line_items import calculate_line_items
from renoquote.services.rate_catalog import RateCatalogSource
from renoquote.services.totals import aggregate_totals

logger = get_logger(__name__)


def price_quote(
    form: QuoteFormData,
    rates: RateCatalog,
    multipliers: ProjectMultipliers,
    *,
    rate_card_version: str = "unknown",
    currency: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CalculatedQuote:
    """Map, price and total one form against an already-loaded catalog snapshot."""
    quantities = map_form_to_quantities(form)

    drift: List[RateDrift] = []
    line_items = calculate_line_items(quantities, rates, drift)
    totals = aggregate_totals(line_items, multipliers, form)

    summary = summarize_form(form)
    meta = CalculationMeta(
        calculated_at=now or datetime.now(timezone.utc),
        rate_card_version=rate_card_version,
        plumbing_points=int(summary["plumbing_points"]),
        electrical_items=int(summary["electrical_items"]),
        total_floor_sqft=summary["total_floor_sqft"],
        wet_wall_sqft=summary["wet_wall_sqft"],
        dry_wall_sqft=summary["dry_wall_sqft"],
        accent_feature_sqft=summary["accent_feature_sqft"],
    )

    if drift:
        logger.warning(f"Quote priced with {len(drift)} drifted codes: {[d.line_code for d in drift]}")

    return CalculatedQuote(
        form_data=form,
        quantities=quantities,
        line_items=line_items,
        totals=totals,
        rate_drift=drift,
        calculation_meta=meta,
        currency=currency or settings.QUOTE_CURRENCY,
    )


async def calculate_quote(
    form: QuoteFormData,
    source: RateCatalogSource,
    *,
    now: Optional[datetime] = None,
) -> CalculatedQuote:
    """
    Load a fresh catalog snapshot and price the form against it.

    CatalogUnavailable from the source propagates; nothing is priced
    against a partial or empty catalog.
    """
    logger.info(
        f"Calculating quote: bathroom={form.bathroom_type} building={form.building_type} "
        f"year_built={form.year_built} source={source.name}"
    )
    rates = await source.load_rate_lines()
    multipliers = await source.load_project_multipliers()

    quote = price_quote(form, rates, multipliers, rate_card_version=source.name, now=now)
    logger.info(
        f"Quote calculated: {len(quote.line_items)} line items, "
        f"grand_total={quote.totals.grand_total} {quote.currency}"
    )
    return quote
