from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from renoquote.models.quote_form import QuoteFormData
from renoquote.models.quote_response import QuoteLineItem, QuoteTotals
from renoquote.models.rate_line import CENT, ProjectMultipliers

ZERO = Decimal("0.00")


def _cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def aggregate_totals(
    line_items: Iterable[QuoteLineItem],
    multipliers: ProjectMultipliers,
    form: QuoteFormData,
) -> QuoteTotals:
    """
    Apply the project multipliers to the labour subtotal.

    Every component is rounded to cents first and the grand total is
    the sum of the rounded components, so the parts always add up.
    """
    labour_subtotal = _cents(sum((item.extended for item in line_items), ZERO))

    contingency = _cents(labour_subtotal * multipliers.contingency_rate)
    pm_fee = _cents(labour_subtotal * multipliers.pm_fee_rate)

    condo_uplift = ZERO
    if form.building_type == "condo":
        condo_uplift = _cents(labour_subtotal * multipliers.condo_uplift_rate)

    oldhome_uplift = ZERO
    if form.year_built == "pre_1980":
        oldhome_uplift = _cents(labour_subtotal * multipliers.oldhome_uplift_rate)

    grand_total = labour_subtotal + contingency + pm_fee + condo_uplift + oldhome_uplift

    return QuoteTotals(
        labour_subtotal=labour_subtotal,
        contingency=contingency,
        pm_fee=pm_fee,
        condo_uplift=condo_uplift,
        oldhome_uplift=oldhome_uplift,
        grand_total=grand_total,
    )
