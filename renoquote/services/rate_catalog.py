import asyncio
import random
from abc import ABC, abstractmethod
from decimal import InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

import httpx
from pydantic import ValidationError

from renoquote.core.config import settings
from renoquote.core.errors import CatalogUnavailable
from renoquote.core.logger import get_logger
from renoquote.models.rate_line import ProjectMultipliers, RateCatalog, RateLine

logger = get_logger(__name__)

# Codes every quote form can produce; a catalog without them cannot price a bathroom.
REQUIRED_RATE_CODES = [
    "DEM", "PLM", "ELE", "SUB-GRB", "WPF-KER", "TILE-WET", "TILE-DRY", "TILE-FLR",
    "DUMP", "VAN", "RECESS", "NICHE", "BENCH",
]

# V1 rate card
DEFAULT_RATE_ROWS: List[Dict[str, Any]] = [
    {"line_code": "DEM", "line_name": "Demolition (per bathroom)", "unit": "unit", "base_price": "1107.00", "price_per_unit": "0"},
    {"line_code": "PLM", "line_name": "Plumbing rough-in/fixture points", "unit": "point", "base_price": "0", "price_per_unit": "307.50"},
    {"line_code": "ELE", "line_name": "Electrical items", "unit": "item", "base_price": "0", "price_per_unit": "184.50"},
    {"line_code": "SUB-GRB", "line_name": "Backerboard / Greenboard install (wet areas)", "unit": "sqft", "base_price": "184.50", "price_per_unit": "3.69"},
    {"line_code": "DRY", "line_name": "Drywall & repair (dry areas)", "unit": "sqft", "base_price": "369.00", "price_per_unit": "3.69"},
    {"line_code": "WPF-KER", "line_name": "Waterproofing (Kerdi system)", "unit": "sqft", "base_price": "246.00", "price_per_unit": "4.92"},
    {"line_code": "TILE-WET", "line_name": "Tile setting & grout, shower/wet walls", "unit": "sqft", "base_price": "369.00", "price_per_unit": "12.30"},
    {"line_code": "TILE-DRY", "line_name": "Tile setting & grout, dry walls", "unit": "sqft", "base_price": "0", "price_per_unit": "12.30"},
    {"line_code": "TILE-ACCENT", "line_name": "Tile setting & grout, accent feature", "unit": "sqft", "base_price": "0", "price_per_unit": "12.30"},
    {"line_code": "TILE-FLR", "line_name": "Tile setting & grout, floor", "unit": "sqft", "base_price": "123.00", "price_per_unit": "12.30"},
    {"line_code": "TILE-SHWR", "line_name": "Tile setting & grout, shower floor", "unit": "sqft", "base_price": "0", "price_per_unit": "14.76"},
    {"line_code": "PAINT", "line_name": "Painting (walls/ceiling)", "unit": "sqft", "base_price": "246.00", "price_per_unit": "3.69"},
    {"line_code": "VAN", "line_name": "Vanity install (up to 48\")", "unit": "unit", "base_price": "264.45", "price_per_unit": "0"},
    {"line_code": "GLASS", "line_name": "Shower glass install (fixed/door)", "unit": "unit", "base_price": "492.00", "price_per_unit": "0"},
    {"line_code": "NICHE", "line_name": "Built-in niche / recessed med cabinet", "unit": "unit", "base_price": "369.00", "price_per_unit": "0"},
    {"line_code": "BENCH", "line_name": "Shower bench build & tile", "unit": "unit", "base_price": "600.00", "price_per_unit": "0"},
    {"line_code": "RECESS", "line_name": "Recess subfloor for walk-in shower", "unit": "unit", "base_price": "492.00", "price_per_unit": "0"},
    {"line_code": "DUMP", "line_name": "Disposal & dumping", "unit": "sqft", "base_price": "184.50", "price_per_unit": "3.69"},
    {"line_code": "ASB-T", "line_name": "Asbestos testing (pre-1980 homes)", "unit": "unit", "base_price": "450.00", "price_per_unit": "0"},
    {"line_code": "HEATED-FLR", "line_name": "Heated floors installation", "unit": "unit", "base_price": "800.00", "price_per_unit": "0"},
    {"line_code": "HEATED-RACK", "line_name": "Heated towel rack installation", "unit": "unit", "base_price": "350.00", "price_per_unit": "0"},
    {"line_code": "BIDET-ADDON", "line_name": "Bidet attachment installation", "unit": "unit", "base_price": "250.00", "price_per_unit": "0"},
    {"line_code": "SMART-MIRROR", "line_name": "Smart mirror installation", "unit": "unit", "base_price": "450.00", "price_per_unit": "0"},
    {"line_code": "PREMIUM-FAN", "line_name": "Premium exhaust fan installation", "unit": "unit", "base_price": "300.00", "price_per_unit": "0"},
    {"line_code": "GRAB-BARS", "line_name": "Safety grab bars installation", "unit": "unit", "base_price": "180.00", "price_per_unit": "0"},
]

DEFAULT_MULTIPLIER_ROWS: List[Dict[str, Any]] = [
    {"code": "CONTINGENCY", "name": "Contingency on labour subtotal", "default_percent": "2.0"},
    {"code": "PM-FEE", "name": "Project management fee", "default_percent": "0.0"},
    {"code": "CONDO-FCTR", "name": "Condo/logistics factor (elevator, parking)", "default_percent": "0.0"},
    {"code": "OLDHOME-ASB", "name": "Pre-1980 asbestos handling factor", "default_percent": "0.0"},
]


def _catalog_from_rows(rows: Iterable[Dict[str, Any]], source: str) -> RateCatalog:
    catalog: RateCatalog = {}
    for row in rows:
        try:
            rate = RateLine.model_validate(row)
        except ValidationError as e:
            raise CatalogUnavailable(f"malformed rate line {row.get('line_code')!r}: {e}", source=source) from e
        catalog[rate.code] = rate
    return catalog


def _scoped(catalog: RateCatalog, codes: Optional[Iterable[str]]) -> RateCatalog:
    if codes is None:
        return dict(catalog)
    wanted = set(codes)
    return {code: rate for code, rate in catalog.items() if code in wanted}


def validate_rate_catalog(rates: RateCatalog, required: Iterable[str] = REQUIRED_RATE_CODES) -> List[str]:
    """Return the required codes that are missing or inactive in `rates`."""
    return [code for code in required if code not in rates or not rates[code].active]


class RateCatalogSource(ABC):
    """
    Read-only access to rate lines and project multipliers.

    `load_rate_lines` returns every known code including inactive ones;
    callers filter on `active`. Both loaders raise CatalogUnavailable
    rather than returning an empty result.
    """

    name = "base"

    @abstractmethod
    async def load_rate_lines(self, codes: Optional[Iterable[str]] = None) -> RateCatalog:
        ...

    @abstractmethod
    async def load_project_multipliers(self) -> ProjectMultipliers:
        ...


class StaticRateCatalog(RateCatalogSource):
    name = "static-v1"

    def __init__(
        self,
        rate_lines: Optional[Iterable[RateLine]] = None,
        multipliers: Optional[ProjectMultipliers] = None,
    ):
        if rate_lines is None:
            self._rates = _catalog_from_rows(DEFAULT_RATE_ROWS, source=self.name)
        else:
            self._rates = {rate.code: rate for rate in rate_lines}
        self._multipliers = multipliers or ProjectMultipliers.from_rows(DEFAULT_MULTIPLIER_ROWS)

    async def load_rate_lines(self, codes: Optional[Iterable[str]] = None) -> RateCatalog:
        if not self._rates:
            raise CatalogUnavailable("static catalog is empty", source=self.name)
        return _scoped(self._rates, codes)

    async def load_project_multipliers(self) -> ProjectMultipliers:
        return self._multipliers


class SupabaseRateCatalog(RateCatalogSource):
    """Rate catalog backed by the hosted database's PostgREST endpoint."""

    name = "supabase"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        *,
        timeout: float = 10.0,
        attempts: int = 3,
        backoff_base: float = 0.2,
        backoff_cap: float = 2.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.attempts = max(1, attempts)
        self.backoff_base = backoff_base
        self.backoff_cap = backoff_cap
        self._transport = transport
        self.headers = {"Accept": "application/json"}
        if api_key:
            self.headers["apikey"] = api_key
            self.headers["Authorization"] = f"Bearer {api_key}"

    def _backoff(self, attempt: int) -> float:
        delay = min(self.backoff_base * (2 ** attempt), self.backoff_cap)
        return delay + random.uniform(0, delay * 0.25)

    async def _fetch_rows(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/rest/v1/{table}"
        last_error = "no attempt made"

        async with httpx.AsyncClient(
            timeout=self.timeout, headers=self.headers, transport=self._transport
        ) as client:
            for attempt in range(self.attempts):
                logger.info(f"Catalog GET {url} (attempt {attempt + 1}/{self.attempts})")
                try:
                    resp = await client.get(url, params=params)
                except httpx.TimeoutException as e:
                    last_error = f"timeout after {self.timeout}s: {e!r}"
                except httpx.TransportError as e:
                    last_error = f"transport error: {e!r}"
                else:
                    if resp.status_code < 400:
                        try:
                            data = resp.json()
                        except ValueError as e:
                            raise CatalogUnavailable(f"{table}: response is not JSON", source=self.name) from e
                        if not isinstance(data, list):
                            raise CatalogUnavailable(f"{table}: expected a list of rows", source=self.name)
                        return data
                    last_error = f"HTTP {resp.status_code}: {resp.text[:200]}"
                    if resp.status_code < 500:
                        # Client errors (bad key, missing table) will not heal on retry
                        break

                if attempt < self.attempts - 1:
                    delay = self._backoff(attempt)
                    logger.warning(f"Catalog fetch for {table} failed ({last_error}); retrying in {delay:.2f}s")
                    await asyncio.sleep(delay)

        logger.error(f"Catalog fetch for {table} failed: {last_error}")
        raise CatalogUnavailable(f"{table}: {last_error}", source=self.name)

    async def load_rate_lines(self, codes: Optional[Iterable[str]] = None) -> RateCatalog:
        params = {"select": "*", "order": "line_code"}
        scope = sorted(set(codes)) if codes is not None else None
        if scope is not None:
            params["line_code"] = f"in.({','.join(scope)})"

        rows = await self._fetch_rows("rate_lines", params)
        if not rows and scope is None:
            raise CatalogUnavailable("rate_lines returned no rows", source=self.name)

        catalog = _catalog_from_rows(rows, source=self.name)
        logger.info(f"Loaded {len(catalog)} rate lines from {self.name}")
        return _scoped(catalog, scope)

    async def load_project_multipliers(self) -> ProjectMultipliers:
        rows = await self._fetch_rows("project_multipliers", {"select": "*", "order": "code"})
        if not rows:
            raise CatalogUnavailable("project_multipliers returned no rows", source=self.name)

        try:
            return ProjectMultipliers.from_rows(rows)
        except (InvalidOperation, ValidationError) as e:
            raise CatalogUnavailable(f"malformed project multipliers: {e}", source=self.name) from e


def get_rate_catalog_source() -> RateCatalogSource:
    """FastAPI dependency: the catalog source configured in settings."""
    if settings.CATALOG_SOURCE == "static":
        return StaticRateCatalog()
    return SupabaseRateCatalog(
        settings.SUPABASE_URL,
        settings.SUPABASE_KEY,
        timeout=settings.CATALOG_TIMEOUT_SECONDS,
        attempts=settings.CATALOG_FETCH_ATTEMPTS,
    )
