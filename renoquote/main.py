from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from renoquote.core.config import settings
from renoquote.core.errors import CatalogUnavailable, InvalidForm
from renoquote.core.logger import get_logger
from renoquote.core.middleware import log_requests
from renoquote.routes.health_router import health_router
from renoquote.routes.quote_router import quote_router
from renoquote.routes.rates_router import rates_router

logger = get_logger(__name__)

CATALOG_RETRY_AFTER_SECONDS = 5


@asynccontextmanager
async def lifespan(app: FastAPI):

    logger.info(f"{settings.APP_NAME} startup complete (catalog source: {settings.CATALOG_SOURCE})")

    yield

    logger.info(f"{settings.APP_NAME} shutdown initiated")


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(log_requests)


@app.exception_handler(CatalogUnavailable)
async def catalog_unavailable_handler(request: Request, exc: CatalogUnavailable):
    logger.error(f"Catalog unavailable during {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"error": "catalog_unavailable", "detail": str(exc), "retryable": True},
        headers={"Retry-After": str(CATALOG_RETRY_AFTER_SECONDS)},
    )


@app.exception_handler(InvalidForm)
async def invalid_form_handler(request: Request, exc: InvalidForm):
    logger.warning(f"Rejected form on {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"error": "invalid_form", "detail": exc.errors})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Request bodies are quote forms; report them the same way as InvalidForm
    errors = [{k: v for k, v in e.items() if k in ("type", "loc", "msg")} for e in exc.errors()]
    return await invalid_form_handler(request, InvalidForm(errors))


app.include_router(quote_router)
app.include_router(rates_router)
app.include_router(health_router)
