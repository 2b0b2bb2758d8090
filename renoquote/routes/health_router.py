from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from renoquote.core.errors import CatalogUnavailable
from renoquote.core.logger import get_logger
from renoquote.models.quote_response import HealthResponse
from renoquote.services.rate_catalog import (
    RateCatalogSource,
    get_rate_catalog_source,
    validate_rate_catalog,
)

health_router = APIRouter(tags=["Health"])
logger = get_logger("health_router")


@health_router.get("/health", response_model=HealthResponse)
async def health(source: RateCatalogSource = Depends(get_rate_catalog_source)):
    """
    Checks catalog connectivity and that every required rate code is active.
    """
    now = datetime.now(timezone.utc)
    try:
        rates = await source.load_rate_lines()
    except CatalogUnavailable as e:
        logger.error(f"Health check failed: {e}")
        body = HealthResponse(
            status="unhealthy",
            timestamp=now,
            checks={"database": "fail", "rate_catalog": "fail"},
            error=str(e),
        )
        return JSONResponse(status_code=503, content=body.model_dump(mode="json"))

    missing = validate_rate_catalog(rates)
    if missing:
        logger.warning(f"Rate catalog missing required codes: {missing}")
        body = HealthResponse(
            status="unhealthy",
            timestamp=now,
            checks={"database": "pass", "rate_catalog": "fail"},
            missing_rate_codes=missing,
        )
        return JSONResponse(status_code=503, content=body.model_dump(mode="json"))

    return HealthResponse(
        status="healthy",
        timestamp=now,
        checks={"database": "pass", "rate_catalog": "pass"},
    )
