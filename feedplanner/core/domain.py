"""
Domain value objects.

Everything here is a frozen dataclass. Core operations never mutate these;
they return updated copies built with dataclasses.replace().
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


# Fixed nutrient order used for requirement tables, advice and checks
NUTRIENTS = ("cp", "me", "ndf", "ca", "p")

NUTRIENT_LABELS = {
    "cp": "Crude protein",
    "me": "Metabolizable energy",
    "ndf": "Neutral detergent fiber",
    "ca": "Calcium",
    "p": "Phosphorus",
}

# cp, ndf, ca, p are % of dry matter; me is MJ/kg DM
NUTRIENT_UNITS = {
    "cp": "%",
    "me": "MJ/kg",
    "ndf": "%",
    "ca": "%",
    "p": "%",
}


class Species(str, enum.Enum):
    CATTLE = "cattle"
    SHEEP = "sheep"
    GOAT = "goat"


class Stage(str, enum.Enum):
    GROWTH = "growth"
    LACTATION = "lactation"
    MAINTENANCE = "maintenance"
    DAIRY = "dairy"
    FATTENING = "fattening"
    BREEDING = "breeding"


class Breed(str, enum.Enum):
    WHITE_FULANI = "White Fulani"
    SOKOTO_GUDALI = "Sokoto Gudali"
    NDAMA = "Ndama"
    OTHER = "Other"


class Sex(str, enum.Enum):
    MALE = "Male"
    FEMALE = "Female"


class AnimalStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    SOLD = "Sold"
    DECEASED = "Deceased"
    UNDER_TREATMENT = "Under Treatment"
    QUARANTINED = "Quarantined"


class HealthStatus(str, enum.Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    CRITICAL = "Critical"


class WeighMethod(str, enum.Enum):
    SCALE = "Scale"
    TAPE = "Tape"
    ESTIMATE = "Estimate"


class EpisodeState(str, enum.Enum):
    ACTIVE = "active"
    ENDED = "ended"


# =============================================================================
# Feed formulation
# =============================================================================

@dataclass(frozen=True)
class NutrientProfile:
    """Nutrient content of an ingredient or a blend."""
    cp: float = 0
    me: float = 0
    ndf: float = 0
    ca: float = 0
    p: float = 0

    def get(self, nutrient: str) -> float:
        return getattr(self, nutrient)


@dataclass(frozen=True)
class Ingredient:
    """Catalog entry: nutrient profile plus base unit cost."""
    id: int
    name: str
    category: str = "other"
    cost_per_kg: float = 0
    nutrients: NutrientProfile = field(default_factory=NutrientProfile)


@dataclass(frozen=True)
class BlendItem:
    ingredient_id: int
    inclusion_kg: float
    cost_per_kg_override: Optional[float] = None


@dataclass(frozen=True)
class Blend:
    """A candidate feed mixture for a species and production stage."""
    species: str
    stage: str
    items: tuple[BlendItem, ...] = ()
    target_weight_kg: Optional[float] = None


@dataclass(frozen=True)
class Totals:
    """Aggregate quantity, cost and weighted nutrient content of a blend."""
    total_kg: float = 0
    total_cost: float = 0
    cp: float = 0
    me: float = 0
    ndf: float = 0
    ca: float = 0
    p: float = 0

    @property
    def cost_per_kg(self) -> float:
        if self.total_kg <= 0:
            return 0
        return self.total_cost / self.total_kg

    def get(self, nutrient: str) -> float:
        return getattr(self, nutrient)


@dataclass(frozen=True)
class ItemShare:
    """One included ingredient's contribution to a blend."""
    ingredient_id: int
    ingredient_name: str
    inclusion_kg: float
    share_pct: float
    cost_per_kg: float
    line_cost: float


@dataclass(frozen=True)
class RequirementRange:
    species: str
    stage: str
    nutrient: str
    min: float
    max: float


@dataclass(frozen=True)
class Formulation:
    """A blend persisted under an account, either one-off or a template."""
    name: str
    owner_id: str
    blend: Blend
    is_template: bool = False
    notes: str = ""
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# Animals and fattening episodes
# =============================================================================

@dataclass(frozen=True)
class WeightRecord:
    date: datetime
    weight: float
    measured_by: str = ""
    notes: str = ""
    method: WeighMethod = WeighMethod.SCALE


@dataclass(frozen=True)
class ConcentrateFeed:
    amount: float = 0
    composition: str = ""
    cost_per_kg: float = 0

    @property
    def daily_cost(self) -> float:
        return self.amount * self.cost_per_kg


@dataclass(frozen=True)
class ForageFeed:
    amount: float = 0
    type: str = ""
    cost_per_kg: float = 0

    @property
    def daily_cost(self) -> float:
        return self.amount * self.cost_per_kg


@dataclass(frozen=True)
class DailyWeightObservation:
    date: datetime
    weight: float
    measured_by: str = ""
    notes: str = ""


@dataclass(frozen=True)
class FeedAdjustment:
    date: datetime
    concentrate_change: float = 0
    forage_change: float = 0
    reason: str = ""
    adjusted_by: str = ""
    cost_impact: float = 0


@dataclass(frozen=True)
class EpisodeParams:
    """Everything needed to start a fattening program."""
    start_date: datetime
    initial_weight: float
    target_weight: float
    daily_gain_target: float
    concentrate_feed: ConcentrateFeed = field(default_factory=ConcentrateFeed)
    forage_feed: ForageFeed = field(default_factory=ForageFeed)
    duration_days: int = 0
    water_requirement: float = 0
    notes: str = ""


@dataclass(frozen=True)
class FatteningEpisode:
    start_date: datetime
    initial_weight: float
    target_weight: float
    daily_gain_target: float
    concentrate_feed: ConcentrateFeed = field(default_factory=ConcentrateFeed)
    forage_feed: ForageFeed = field(default_factory=ForageFeed)
    duration_days: int = 0
    water_requirement: float = 0
    notes: str = ""
    is_active: bool = True
    observations: tuple[DailyWeightObservation, ...] = ()
    adjustments: tuple[FeedAdjustment, ...] = ()
    actual_adg: Optional[float] = None
    total_feed_cost: Optional[float] = None
    total_weight_gain: Optional[float] = None
    feed_conversion_ratio: Optional[float] = None
    ended_at: Optional[datetime] = None
    id: Optional[int] = None

    @property
    def state(self) -> EpisodeState:
        return EpisodeState.ACTIVE if self.is_active else EpisodeState.ENDED

    @property
    def daily_feed_cost(self) -> float:
        return self.concentrate_feed.daily_cost + self.forage_feed.daily_cost

    @property
    def latest_observation(self) -> Optional[DailyWeightObservation]:
        return self.observations[-1] if self.observations else None


@dataclass(frozen=True)
class Animal:
    """An animal and its exclusively owned fattening history."""
    tag_id: str
    breed: Breed
    sex: Sex
    dob: Optional[datetime]
    status: AnimalStatus = AnimalStatus.ACTIVE
    health_status: HealthStatus = HealthStatus.GOOD
    name: Optional[str] = None
    notes: str = ""
    weight_records: tuple[WeightRecord, ...] = ()
    episodes: tuple[FatteningEpisode, ...] = ()
    id: Optional[int] = None

    @property
    def active_episode(self) -> Optional[FatteningEpisode]:
        for episode in self.episodes:
            if episode.is_active:
                return episode
        return None
