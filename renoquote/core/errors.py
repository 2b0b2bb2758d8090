from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict


class QuoteEngineError(Exception):
    """Base class for errors raised by the pricing core."""


class CatalogUnavailable(QuoteEngineError):
    """
    The rate catalog or project multipliers could not be fetched.
    Fatal for the calculation; callers may retry the whole request.
    """

    def __init__(self, message: str, *, source: Optional[str] = None):
        self.message = message
        self.source = source
        super().__init__(message if not source else f"{source}: {message}")


class InvalidForm(QuoteEngineError):
    """Malformed or missing required form fields, rejected before mapping."""

    def __init__(self, errors: List[Dict[str, Any]]):
        self.errors = errors
        fields = ", ".join(".".join(str(p) for p in e.get("loc", ())) for e in errors)
        super().__init__(f"Invalid quote form: {fields or 'unknown field'}")


class RateDrift(BaseModel):
    """
    A quantity was computed for a code with no active rate.
    Recorded and logged; the line is left out of the quote.
    """

    model_config = ConfigDict(frozen=True)

    line_code: str
    quantity: float
    reason: Literal["missing", "inactive"]
