from datetime import timedelta
from decimal import Decimal

import pytest
from aiohttp import test_utils, web
from fastapi import HTTPException

from renoquote.models.rate_line import RateLine
from renoquote.services.quote_calculator import price_quote
from renoquote.services.quote_store import build_quote_record, submit_quote

RATES = {
    "DEM": RateLine(code="DEM", name="Demolition", base_price=Decimal("1107.00")),
    "PLM": RateLine(code="PLM", name="Plumbing", price_per_unit=Decimal("307.50"), unit="point"),
}


def test_record_amounts_are_in_cents(scenario_form, multipliers, fixed_now):
    quote = price_quote(scenario_form, RATES, multipliers, now=fixed_now)
    record = build_quote_record(quote, now=fixed_now)

    # 1107.00 + 5 * 307.50
    assert quote.totals.labour_subtotal == Decimal("2644.50")
    assert record["labour_subtotal_cents"] == 264450
    assert record["grand_total_cents"] == int(quote.totals.grand_total * 100)
    assert record["materials_subtotal_cents"] == 0


def test_record_is_a_draft_with_expiry(scenario_form, multipliers, fixed_now):
    quote = price_quote(scenario_form, RATES, multipliers, now=fixed_now)
    record = build_quote_record(quote, deposit_required_pct=40.0, expiry_days=14, now=fixed_now)

    assert record["status"] == "draft"
    assert record["quote_name"] == "walk in renovation"
    assert record["currency"] == "CAD"
    assert record["deposit_required_pct"] == 40.0
    assert record["expires_at"] == (fixed_now + timedelta(days=14)).isoformat()
    assert record["bathroom_type"] == "walk_in"
    assert record["year_built"] == "pre_1980"


def test_record_carries_form_and_line_items_as_json(full_form, multipliers, fixed_now):
    quote = price_quote(full_form, RATES, multipliers, now=fixed_now)
    record = build_quote_record(quote, now=fixed_now)

    assert record["quote_name"] == "Main floor bathroom"
    assert record["labour_inputs"]["customer_email"] == "jordan@example.com"
    assert record["labour_inputs"]["upgrades"]["smart_mirror"] is True
    assert [item["line_code"] for item in record["line_items"]] == ["DEM", "PLM"]
    assert record["line_items"][0]["extended"] == 1107.0
    assert record["totals"]["grand_total"] == float(quote.totals.grand_total)


RECORD = {"status": "draft", "grand_total_cents": 156789, "currency": "CAD"}


def _quotes_app(handler):
    app = web.Application()
    app.router.add_post("/rest/v1/quotes", handler)
    return app


@pytest.mark.anyio
async def test_submit_quote_returns_first_stored_row():
    received = []

    async def handler(request):
        received.append((dict(request.headers), await request.json()))
        return web.json_response([{"id": "q-1", **RECORD}], status=201)

    async with test_utils.TestServer(_quotes_app(handler)) as server:
        stored = await submit_quote(RECORD, base_url=str(server.make_url("/")), api_key="service-key")

    assert stored == {"id": "q-1", **RECORD}
    headers, body = received[0]
    assert body == RECORD
    assert headers["Prefer"] == "return=representation"
    assert headers["apikey"] == "service-key"
    assert headers["Authorization"] == "Bearer service-key"


@pytest.mark.anyio
async def test_submit_quote_accepts_single_object_body():
    async def handler(request):
        return web.json_response({"id": "q-2"}, status=200)

    async with test_utils.TestServer(_quotes_app(handler)) as server:
        stored = await submit_quote(RECORD, base_url=str(server.make_url("/")))

    assert stored == {"id": "q-2"}


@pytest.mark.anyio
@pytest.mark.parametrize("status", [400, 401, 409, 500, 503])
async def test_submit_quote_upstream_error_is_bad_gateway(status):
    async def handler(request):
        return web.json_response({"message": "rejected"}, status=status)

    async with test_utils.TestServer(_quotes_app(handler)) as server:
        with pytest.raises(HTTPException) as exc_info:
            await submit_quote(RECORD, base_url=str(server.make_url("/")))

    assert exc_info.value.status_code == 502
    assert str(status) in exc_info.value.detail


@pytest.mark.anyio
async def test_submit_quote_unreachable_store_is_bad_gateway():
    async def handler(request):
        return web.json_response([], status=201)

    async with test_utils.TestServer(_quotes_app(handler)) as server:
        base_url = str(server.make_url("/"))

    # server is closed, the port now refuses connections
    with pytest.raises(HTTPException) as exc_info:
        await submit_quote(RECORD, base_url=base_url)

    assert exc_info.value.status_code == 502
    assert exc_info.value.detail == "Quote store unreachable"
