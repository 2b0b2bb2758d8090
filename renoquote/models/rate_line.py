from decimal import Decimal
from typing import Annotated, Any, Dict, Iterable, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

from renoquote.core.logger import get_logger

logger = get_logger(__name__)

# Serialised as a JSON number, kept as Decimal in Python
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
Rate = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

Unit = Literal["unit", "sqft", "item", "point"]

CENT = Decimal("0.01")


class RateLine(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    code: str = Field(..., alias="line_code", min_length=1)
    name: str = Field(..., alias="line_name")
    base_price: Money = Field(Decimal("0"), ge=0)
    price_per_unit: Money = Field(Decimal("0"), ge=0)
    unit: Unit = "unit"
    active: bool = True
    notes: Optional[str] = None


RateCatalog = Dict[str, RateLine]

# Backing-store code -> ProjectMultipliers field
MULTIPLIER_CODES: Dict[str, str] = {
    "CONTINGENCY": "contingency_rate",
    "PM-FEE": "pm_fee_rate",
    "CONDO-FCTR": "condo_uplift_rate",
    "OLDHOME-ASB": "oldhome_uplift_rate",
}


class ProjectMultipliers(BaseModel):
    """Global multipliers applied to the labour subtotal, as fractions (0.10 == 10%)."""

    model_config = ConfigDict(frozen=True)

    contingency_rate: Rate = Field(Decimal("0"), ge=0)
    pm_fee_rate: Rate = Field(Decimal("0"), ge=0)
    condo_uplift_rate: Rate = Field(Decimal("0"), ge=0)
    oldhome_uplift_rate: Rate = Field(Decimal("0"), ge=0)

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]]) -> "ProjectMultipliers":
        """
        Build from `project_multipliers` rows shaped {code, default_percent}.
        Unknown codes are ignored, missing ones default to 0.
        """
        values: Dict[str, Decimal] = {}
        for row in rows:
            field = MULTIPLIER_CODES.get(str(row.get("code", "")))
            if field is None:
                continue
            percent = Decimal(str(row.get("default_percent") or 0))
            values[field] = percent / Decimal("100")

        missing = [code for code, field in MULTIPLIER_CODES.items() if field not in values]
        if missing:
            logger.warning(f"Project multipliers missing codes {missing}; defaulting to 0")

        return cls(**values)
