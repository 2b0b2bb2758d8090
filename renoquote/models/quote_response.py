from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from renoquote.core.errors import RateDrift
from renoquote.models.quote_form import QuoteFormData
from renoquote.models.rate_line import Money, ProjectMultipliers, RateLine, Unit

QuantityMap = Dict[str, float]


class QuoteLineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    line_code: str
    line_name: str
    quantity: float
    unit_price: Money
    base_applied: bool
    extended: Money
    unit: Unit


class QuoteTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    labour_subtotal: Money
    contingency: Money
    pm_fee: Money
    condo_uplift: Money
    oldhome_uplift: Money
    grand_total: Money


class CalculationMeta(BaseModel):
    calculated_at: datetime
    rate_card_version: str
    plumbing_points: int
    electrical_items: int
    total_floor_sqft: float
    wet_wall_sqft: float
    dry_wall_sqft: float
    accent_feature_sqft: float


class CalculatedQuote(BaseModel):
    form_data: QuoteFormData
    quantities: QuantityMap
    line_items: List[QuoteLineItem]
    totals: QuoteTotals
    rate_drift: List[RateDrift] = Field(default_factory=list)
    calculation_meta: CalculationMeta
    currency: str = "CAD"


class QuantityPreviewResponse(BaseModel):
    quantities: QuantityMap
    meta: Dict[str, float]


class SubmittedQuoteResponse(BaseModel):
    quote_id: Optional[str] = None
    quote: CalculatedQuote


class RateListResponse(BaseModel):
    count: int
    rates: List[RateLine]


class MultipliersResponse(BaseModel):
    multipliers: ProjectMultipliers


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    checks: Dict[str, str]
    missing_rate_codes: List[str] = Field(default_factory=list)
    error: Optional[str] = None
