from sqlalchemy import Column, Integer, String, Float, Boolean, Enum, ForeignKey, DateTime, Text
from sqlalchemy.orm import relationship

from feedplanner.core.database import Base
from feedplanner.core.domain import AnimalStatus, Breed, HealthStatus, Sex, WeighMethod
from feedplanner.core.growth import utc_now


class Ingredient(Base):
    __tablename__ = "ingredients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False, default="other")
    cost_per_kg = Column(Float, nullable=False, default=0)
    cp = Column(Float, default=0)
    me = Column(Float, default=0)
    ndf = Column(Float, default=0)
    ca = Column(Float, default=0)
    p = Column(Float, default=0)

    formulation_items = relationship("FormulationItem", back_populates="ingredient")


class Formulation(Base):
    __tablename__ = "formulations"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    species = Column(String, nullable=False)
    stage = Column(String, nullable=False)
    target_weight_kg = Column(Float, nullable=True)
    is_template = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, default="")
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    items = relationship(
        "FormulationItem",
        back_populates="formulation",
        cascade="all, delete-orphan",
        order_by="FormulationItem.id",
    )


class FormulationItem(Base):
    __tablename__ = "formulation_items"

    id = Column(Integer, primary_key=True, index=True)
    formulation_id = Column(Integer, ForeignKey("formulations.id"), nullable=False)
    ingredient_id = Column(Integer, ForeignKey("ingredients.id"), nullable=False)
    inclusion_kg = Column(Float, nullable=False, default=0)
    cost_per_kg_override = Column(Float, nullable=True)

    formulation = relationship("Formulation", back_populates="items")
    ingredient = relationship("Ingredient", back_populates="formulation_items")


class Animal(Base):
    __tablename__ = "animals"

    id = Column(Integer, primary_key=True, index=True)
    tag_id = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=True)
    breed = Column(Enum(Breed), nullable=False)
    sex = Column(Enum(Sex), nullable=False)
    dob = Column(DateTime, nullable=True)
    status = Column(Enum(AnimalStatus), default=AnimalStatus.ACTIVE)
    health_status = Column(Enum(HealthStatus), default=HealthStatus.GOOD)
    notes = Column(Text, default="")

    weight_records = relationship(
        "WeightRecord",
        back_populates="animal",
        cascade="all, delete-orphan",
        order_by="WeightRecord.id",
    )
    episodes = relationship(
        "FatteningEpisode",
        back_populates="animal",
        cascade="all, delete-orphan",
        order_by="FatteningEpisode.id",
    )


class WeightRecord(Base):
    __tablename__ = "weight_records"

    id = Column(Integer, primary_key=True, index=True)
    animal_id = Column(Integer, ForeignKey("animals.id"), nullable=False)
    date = Column(DateTime, nullable=False)
    weight = Column(Float, nullable=False)
    measured_by = Column(String, default="")
    notes = Column(Text, default="")
    method = Column(Enum(WeighMethod), default=WeighMethod.SCALE)

    animal = relationship("Animal", back_populates="weight_records")


class FatteningEpisode(Base):
    __tablename__ = "fattening_episodes"

    id = Column(Integer, primary_key=True, index=True)
    animal_id = Column(Integer, ForeignKey("animals.id"), nullable=False)
    start_date = Column(DateTime, nullable=False)
    initial_weight = Column(Float, nullable=False)
    target_weight = Column(Float, nullable=False)
    daily_gain_target = Column(Float, nullable=False)
    concentrate_amount = Column(Float, default=0)
    concentrate_composition = Column(String, default="")
    concentrate_cost_per_kg = Column(Float, default=0)
    forage_amount = Column(Float, default=0)
    forage_type = Column(String, default="")
    forage_cost_per_kg = Column(Float, default=0)
    water_requirement = Column(Float, default=0)
    duration_days = Column(Integer, default=0)
    notes = Column(Text, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    ended_at = Column(DateTime, nullable=True)
    actual_adg = Column(Float, nullable=True)
    total_feed_cost = Column(Float, nullable=True)
    total_weight_gain = Column(Float, nullable=True)
    feed_conversion_ratio = Column(Float, nullable=True)

    animal = relationship("Animal", back_populates="episodes")
    observations = relationship(
        "EpisodeObservation",
        back_populates="episode",
        cascade="all, delete-orphan",
        order_by="EpisodeObservation.id",
    )
    adjustments = relationship(
        "FeedAdjustment",
        back_populates="episode",
        cascade="all, delete-orphan",
        order_by="FeedAdjustment.id",
    )


class EpisodeObservation(Base):
    __tablename__ = "episode_observations"

    id = Column(Integer, primary_key=True, index=True)
    episode_id = Column(Integer, ForeignKey("fattening_episodes.id"), nullable=False)
    date = Column(DateTime, nullable=False)
    weight = Column(Float, nullable=False)
    measured_by = Column(String, default="")
    notes = Column(Text, default="")

    episode = relationship("FatteningEpisode", back_populates="observations")


class FeedAdjustment(Base):
    __tablename__ = "feed_adjustments"

    id = Column(Integer, primary_key=True, index=True)
    episode_id = Column(Integer, ForeignKey("fattening_episodes.id"), nullable=False)
    date = Column(DateTime, nullable=False)
    concentrate_change = Column(Float, default=0)
    forage_change = Column(Float, default=0)
    reason = Column(Text, default="")
    adjusted_by = Column(String, default="")
    cost_impact = Column(Float, default=0)

    episode = relationship("FatteningEpisode", back_populates="adjustments")
