"""Pydantic schemas for request/response validation."""

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from feedplanner.core.domain import AnimalStatus, Breed, HealthStatus, Sex, WeighMethod
from feedplanner.core.units import WeightUnit


# Ingredient schemas
class NutrientProfileSchema(BaseModel):
    cp: float = Field(0, ge=0, description="Crude protein, % DM")
    me: float = Field(0, ge=0, description="Metabolizable energy, MJ/kg DM")
    ndf: float = Field(0, ge=0, description="Neutral detergent fiber, % DM")
    ca: float = Field(0, ge=0, description="Calcium, % DM")
    p: float = Field(0, ge=0, description="Phosphorus, % DM")


class IngredientCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    category: str = Field("other", min_length=1, max_length=100)
    cost_per_kg: float = Field(0, ge=0)
    nutrients: NutrientProfileSchema = NutrientProfileSchema()


class IngredientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    cost_per_kg: Optional[float] = Field(None, ge=0)
    nutrients: Optional[NutrientProfileSchema] = None


class IngredientResponse(BaseModel):
    id: int
    name: str
    category: str
    cost_per_kg: float
    nutrients: NutrientProfileSchema

    class Config:
        from_attributes = True


# Blend analysis schemas
class BlendItemSchema(BaseModel):
    ingredient_id: int
    inclusion_kg: float = Field(..., ge=0, allow_inf_nan=False)
    cost_per_kg_override: Optional[float] = Field(None, ge=0, allow_inf_nan=False)


class AnalyzeRequest(BaseModel):
    species: str = Field(..., min_length=1, max_length=50)
    stage: str = Field(..., min_length=1, max_length=50)
    target_weight_kg: Optional[float] = Field(None, gt=0, le=2000)
    items: list[BlendItemSchema]


class TotalsResponse(BaseModel):
    total_kg: float
    total_cost: float
    cost_per_kg: float
    cp: float
    me: float
    ndf: float
    ca: float
    p: float


class RequirementRangeResponse(BaseModel):
    species: str
    stage: str
    nutrient: str
    min: float
    max: float


class NutrientCheckResponse(BaseModel):
    nutrient: str
    label: str
    value: float
    min: float
    max: float
    status: str  # BELOW, OK, ABOVE


class ItemShareResponse(BaseModel):
    ingredient_id: int
    ingredient_name: str
    inclusion_kg: float
    share_pct: float
    cost_per_kg: float
    line_cost: float


class AnalyzeResponse(BaseModel):
    species: str
    stage: str
    target_weight_kg: Optional[float]
    totals: TotalsResponse
    total_cost_display: str
    requirements: list[RequirementRangeResponse]
    status: dict[str, str]
    advice: list[str]
    checks: list[NutrientCheckResponse]
    breakdown: list[ItemShareResponse]
    ca_p_ratio: Optional[float]


# Formulation schemas
class FormulationCreate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    species: str = Field(..., min_length=1, max_length=50)
    stage: str = Field(..., min_length=1, max_length=50)
    target_weight_kg: Optional[float] = Field(None, gt=0, le=2000)
    is_template: bool = False
    items: list[BlendItemSchema]
    notes: str = ""


class FormulationResponse(BaseModel):
    id: int
    name: str
    species: str
    stage: str
    target_weight_kg: Optional[float]
    is_template: bool
    notes: str
    items: list[BlendItemSchema]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


# Animal schemas
class AnimalCreate(BaseModel):
    tag_id: str = Field(..., min_length=1, max_length=50)
    name: Optional[str] = Field(None, max_length=100)
    breed: Breed
    sex: Sex
    dob: Optional[datetime] = None
    status: AnimalStatus = AnimalStatus.ACTIVE
    health_status: HealthStatus = HealthStatus.GOOD
    notes: str = ""


class AnimalResponse(BaseModel):
    id: int
    tag_id: str
    name: Optional[str]
    breed: Breed
    sex: Sex
    dob: Optional[datetime]
    age: str
    status: AnimalStatus
    health_status: HealthStatus
    notes: str
    current_weight: Optional[float]
    active_episode_id: Optional[int]


class WeightRecordCreate(BaseModel):
    date: datetime
    weight: float = Field(..., gt=0, le=5000, allow_inf_nan=False)
    unit: WeightUnit = WeightUnit.KG
    measured_by: str = ""
    notes: str = ""
    method: WeighMethod = WeighMethod.SCALE


class WeightRecordResponse(BaseModel):
    date: datetime
    weight: float
    measured_by: str
    notes: str
    method: WeighMethod


class WeightSummaryResponse(BaseModel):
    animal_id: int
    records: int
    current_weight: Optional[float]
    gain: Optional[float]
    days: Optional[int]
    adg: Optional[float]


# Fattening episode schemas
class ConcentrateFeedSchema(BaseModel):
    amount: float = Field(0, ge=0, description="kg per day")
    composition: str = ""
    cost_per_kg: float = Field(0, ge=0)


class ForageFeedSchema(BaseModel):
    amount: float = Field(0, ge=0, description="kg per day")
    type: str = ""
    cost_per_kg: float = Field(0, ge=0)


class EpisodeCreate(BaseModel):
    start_date: datetime
    initial_weight: float = Field(..., gt=0, le=5000)
    target_weight: float = Field(..., gt=0, le=5000)
    daily_gain_target: float = Field(..., ge=0, le=10)
    concentrate_feed: ConcentrateFeedSchema = ConcentrateFeedSchema()
    forage_feed: ForageFeedSchema = ForageFeedSchema()
    water_requirement: float = Field(0, ge=0, description="Litres per day")
    duration_days: int = Field(0, ge=0, le=1000)
    notes: str = ""


class ObservationCreate(BaseModel):
    date: datetime
    weight: float = Field(..., gt=0, le=5000, allow_inf_nan=False)
    unit: WeightUnit = WeightUnit.KG
    measured_by: str = ""
    notes: str = ""


class ObservationResponse(BaseModel):
    date: datetime
    weight: float
    measured_by: str
    notes: str


class FeedAdjustmentCreate(BaseModel):
    date: datetime
    concentrate_change: float = Field(0, allow_inf_nan=False)
    forage_change: float = Field(0, allow_inf_nan=False)
    reason: str = ""
    adjusted_by: str = ""
    cost_impact: float = Field(0, allow_inf_nan=False)


class FeedAdjustmentResponse(BaseModel):
    date: datetime
    concentrate_change: float
    forage_change: float
    reason: str
    adjusted_by: str
    cost_impact: float


class EpisodeClose(BaseModel):
    ended_at: Optional[datetime] = None


class EpisodeProgressResponse(BaseModel):
    days_elapsed: float
    days_remaining: Optional[float]
    latest_weight: float
    target_gain: float
    gain_achieved_pct: float
    projected_days_to_target: Optional[float]
    on_target_pace: Optional[bool]


class EpisodeResponse(BaseModel):
    id: int
    animal_id: int
    state: str  # active, ended
    is_active: bool
    start_date: datetime
    ended_at: Optional[datetime]
    initial_weight: float
    target_weight: float
    daily_gain_target: float
    concentrate_feed: ConcentrateFeedSchema
    forage_feed: ForageFeedSchema
    water_requirement: float
    duration_days: int
    notes: str
    observations: list[ObservationResponse] = []
    adjustments: list[FeedAdjustmentResponse] = []
    # Derived from the latest observation
    actual_adg: Optional[float] = None
    total_feed_cost: Optional[float] = None
    total_weight_gain: Optional[float] = None
    feed_conversion_ratio: Optional[float] = None
    daily_feed_cost: float = 0
    total_feed_cost_display: Optional[str] = None


class EpisodeDetailResponse(EpisodeResponse):
    progress: EpisodeProgressResponse
