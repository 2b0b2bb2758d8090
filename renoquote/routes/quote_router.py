from fastapi import APIRouter, Depends

from renoquote.core.logger import get_logger
from renoquote.models.quote_form import QuoteFormData
from renoquote.models.quote_response import (
    CalculatedQuote,
    QuantityPreviewResponse,
    SubmittedQuoteResponse,
)
from renoquote.services.form_mapper import map_form_to_quantities, summarize_form
from renoquote.services.quote_calculator import calculate_quote
from renoquote.services.quote_store import build_quote_record, submit_quote
from renoquote.services.rate_catalog import RateCatalogSource, get_rate_catalog_source

quote_router = APIRouter(prefix="/quote", tags=["Quote"])

logger = get_logger(__name__)


@quote_router.post("/quantities", response_model=QuantityPreviewResponse)
async def preview_quantities(payload: QuoteFormData):
    """
    Show which line codes and quantities a form produces, without pricing.
    """
    quantities = map_form_to_quantities(payload)
    logger.info(f"Mapped form to {len(quantities)} line codes")
    return QuantityPreviewResponse(quantities=quantities, meta=summarize_form(payload))


@quote_router.post("/calculate", response_model=CalculatedQuote)
async def calculate(
    payload: QuoteFormData,
    source: RateCatalogSource = Depends(get_rate_catalog_source),
):
    return await calculate_quote(payload, source)


@quote_router.post("/submit", response_model=SubmittedQuoteResponse)
async def submit(
    payload: QuoteFormData,
    source: RateCatalogSource = Depends(get_rate_catalog_source),
):
    """
    Calculate a quote and hand it to the quote store as a draft.
    """
    quote = await calculate_quote(payload, source)
    if quote.rate_drift:
        logger.warning(
            f"Submitting quote with excluded codes {[d.line_code for d in quote.rate_drift]}"
        )

    record = build_quote_record(quote)
    stored = await submit_quote(record)
    quote_id = stored.get("id")
    logger.info(f"Quote submitted: id={quote_id} grand_total={quote.totals.grand_total}")

    return SubmittedQuoteResponse(quote_id=str(quote_id) if quote_id is not None else None, quote=quote)
