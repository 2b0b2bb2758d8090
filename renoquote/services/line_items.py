from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from renoquote.core.errors import RateDrift
from renoquote.core.logger import get_logger
from renoquote.models.quote_response import QuantityMap, QuoteLineItem
from renoquote.models.rate_line import CENT, RateCatalog

logger = get_logger(__name__)


def calculate_line_items(
    quantities: QuantityMap,
    rates: RateCatalog,
    drift: Optional[List[RateDrift]] = None,
) -> List[QuoteLineItem]:
    """
    Price each quantity against the catalog, in quantity-map order.

    The base price is charged once per code whenever its quantity is
    positive. Codes without an active rate are left out and reported
    through `drift` (and the log) so the catalog can be brought back in
    line with the form rules.
    """
    line_items: List[QuoteLineItem] = []

    for line_code, quantity in quantities.items():
        if quantity is None or quantity <= 0:
            continue

        rate = rates.get(line_code)
        if rate is None or not rate.active:
            event = RateDrift(
                line_code=line_code,
                quantity=quantity,
                reason="missing" if rate is None else "inactive",
            )
            logger.warning(
                f"Rate drift: {line_code} (qty {quantity}) has no active rate "
                f"[{event.reason}]; line excluded from quote"
            )
            if drift is not None:
                drift.append(event)
            continue

        qty = Decimal(str(quantity))
        extended = (rate.base_price + rate.price_per_unit * qty).quantize(CENT, rounding=ROUND_HALF_UP)

        line_items.append(
            QuoteLineItem(
                line_code=line_code,
                line_name=rate.name,
                quantity=quantity,
                unit_price=rate.price_per_unit,
                base_applied=True,
                extended=extended,
                unit=rate.unit,
            )
        )

    return line_items
