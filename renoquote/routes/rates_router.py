from fastapi import APIRouter, Depends

from renoquote.core.logger import get_logger
from renoquote.models.quote_response import MultipliersResponse, RateListResponse
from renoquote.services.rate_catalog import RateCatalogSource, get_rate_catalog_source

rates_router = APIRouter(prefix="/rates", tags=["Rates"])
logger = get_logger("rates_router")


@rates_router.get("", response_model=RateListResponse)
async def list_rates(source: RateCatalogSource = Depends(get_rate_catalog_source)):
    """
    Returns the rate catalog, inactive lines included.
    """
    catalog = await source.load_rate_lines()
    rates = [catalog[code] for code in sorted(catalog)]
    logger.info(f"Listing {len(rates)} rate lines from {source.name}")
    return RateListResponse(count=len(rates), rates=rates)


@rates_router.get("/multipliers", response_model=MultipliersResponse)
async def get_multipliers(source: RateCatalogSource = Depends(get_rate_catalog_source)):
    multipliers = await source.load_project_multipliers()
    return MultipliersResponse(multipliers=multipliers)
