from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

BathroomType = Literal["walk_in", "tub_shower", "tub_only", "powder"]
BuildingType = Literal["house", "condo"]
YearBuilt = Literal["pre_1980", "post_1980", "unknown"]


class Upgrades(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    heated_floors: bool = False
    heated_towel_rack: bool = False
    bidet_addon: bool = False
    smart_mirror: bool = False
    premium_exhaust_fan: bool = False
    built_in_niche: bool = False
    shower_bench: bool = False
    safety_grab_bars: bool = False

    @field_validator("*", mode="before")
    @classmethod
    def _null_is_not_selected(cls, value: Any) -> Any:
        return False if value is None else value


class QuoteFormData(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    # Customer / project details, carried through to the stored quote
    quote_name: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = None
    project_address: Optional[str] = None

    bathroom_type: BathroomType
    building_type: BuildingType
    year_built: YearBuilt

    floor_sqft: Optional[float] = Field(None, ge=0)
    shower_floor_sqft: Optional[float] = Field(
        None, ge=0, description="Only counted for walk_in and tub_shower"
    )

    wet_wall_sqft: Optional[float] = Field(None, ge=0, description="Optional for powder rooms")
    tile_other_walls: bool = False
    tile_other_walls_sqft: Optional[float] = Field(None, ge=0)
    add_accent_feature: bool = False
    accent_feature_sqft: Optional[float] = Field(None, ge=0)

    vanity_width_in: Optional[float] = Field(None, ge=0)
    electrical_items: Optional[int] = Field(None, ge=0)

    upgrades: Upgrades = Field(default_factory=Upgrades)

    @field_validator("tile_other_walls", "add_accent_feature", mode="before")
    @classmethod
    def _null_flag_is_false(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("upgrades", mode="before")
    @classmethod
    def _null_upgrades_are_empty(cls, value: Any) -> Any:
        return Upgrades() if value is None else value
