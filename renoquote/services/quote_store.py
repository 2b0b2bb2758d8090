from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

import aiohttp
from fastapi import HTTPException

from renoquote.core.config import settings
from renoquote.core.logger import get_logger
from renoquote.models.quote_response import CalculatedQuote

logger = get_logger("quote_store")

QUOTES_TABLE = "quotes"


def _to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_quote_record(
    quote: CalculatedQuote,
    *,
    currency: Optional[str] = None,
    deposit_required_pct: Optional[float] = None,
    expiry_days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Shape a calculated quote as a draft `quotes` row.
    Amounts are stored in cents; materials are added later in the flow.
    """
    now = now or datetime.now(timezone.utc)
    expiry_days = settings.QUOTE_EXPIRY_DAYS if expiry_days is None else expiry_days
    form = quote.form_data

    return {
        "status": "draft",
        "quote_name": form.quote_name or f"{form.bathroom_type.replace('_', ' ')} renovation",
        "currency": currency or quote.currency,
        "bathroom_type": form.bathroom_type,
        "building_type": form.building_type,
        "year_built": form.year_built,
        "labour_subtotal_cents": _to_cents(quote.totals.labour_subtotal),
        "materials_subtotal_cents": 0,
        "grand_total_cents": _to_cents(quote.totals.grand_total),
        "deposit_required_pct": (
            settings.DEPOSIT_REQUIRED_PCT if deposit_required_pct is None else deposit_required_pct
        ),
        "expires_at": (now + timedelta(days=expiry_days)).isoformat(),
        "labour_inputs": form.model_dump(mode="json"),
        "line_items": [item.model_dump(mode="json") for item in quote.line_items],
        "totals": quote.totals.model_dump(mode="json"),
    }


async def submit_quote(
    record: Dict[str, Any],
    *,
    base_url: Optional[str] = None,
    api_key: Optional[str] = None,
) -> Dict[str, Any]:
    """Persist a quote record in the hosted database and return the stored row."""
    base_url = base_url or settings.SUPABASE_URL
    api_key = api_key or settings.SUPABASE_KEY

    url = f"{base_url.rstrip('/')}/rest/v1/{QUOTES_TABLE}"
    headers = {
        "Content-Type": "application/json",
        "Prefer": "return=representation",
    }
    if api_key:
        headers["apikey"] = api_key
        headers["Authorization"] = f"Bearer {api_key}"

    logger.info(f"Submitting quote record ({record.get('grand_total_cents')} cents) to {url}")

    async with aiohttp.ClientSession(headers=headers) as session:
        try:
            async with session.post(url, json=record) as res:
                text = await res.text()
                if res.status not in (200, 201):
                    logger.error(f"Quote submission failed: {res.status} {text}")
                    raise HTTPException(status_code=502, detail=f"Quote store error {res.status}: {text}")
                try:
                    body = await res.json(content_type=None)
                except ValueError:
                    body = {}
        except aiohttp.ClientError as e:
            logger.error(f"Quote store unreachable: {e!r}")
            raise HTTPException(status_code=502, detail="Quote store unreachable") from e

    # PostgREST returns the inserted rows as a list
    stored = body[0] if isinstance(body, list) and body else body
    logger.info(f"Quote stored with id {stored.get('id') if isinstance(stored, dict) else None}")
    return stored if isinstance(stored, dict) else {}
