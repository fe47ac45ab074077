"""
SQL-backed persistence for animals and their fattening history.

Animals are loaded as whole aggregates (weight records, episodes,
observations, adjustments) and written back with save(). Child records are
append-only: save() inserts what is new and updates episode scalars, it
never deletes history.
"""

from sqlalchemy.orm import Session, selectinload

from feedplanner.core.domain import (
    Animal,
    ConcentrateFeed,
    DailyWeightObservation,
    FatteningEpisode,
    FeedAdjustment,
    ForageFeed,
    WeightRecord,
)
from feedplanner.core.errors import NotFoundError, ValidationError
from feedplanner.core.logging import get_logger
from feedplanner.models import models

logger = get_logger(__name__)


def _episode_to_domain(row: models.FatteningEpisode) -> FatteningEpisode:
    return FatteningEpisode(
        id=row.id,
        start_date=row.start_date,
        initial_weight=row.initial_weight,
        target_weight=row.target_weight,
        daily_gain_target=row.daily_gain_target,
        concentrate_feed=ConcentrateFeed(
            amount=row.concentrate_amount or 0,
            composition=row.concentrate_composition or "",
            cost_per_kg=row.concentrate_cost_per_kg or 0,
        ),
        forage_feed=ForageFeed(
            amount=row.forage_amount or 0,
            type=row.forage_type or "",
            cost_per_kg=row.forage_cost_per_kg or 0,
        ),
        duration_days=row.duration_days or 0,
        water_requirement=row.water_requirement or 0,
        notes=row.notes or "",
        is_active=row.is_active,
        ended_at=row.ended_at,
        actual_adg=row.actual_adg,
        total_feed_cost=row.total_feed_cost,
        total_weight_gain=row.total_weight_gain,
        feed_conversion_ratio=row.feed_conversion_ratio,
        observations=tuple(
            DailyWeightObservation(
                date=obs.date,
                weight=obs.weight,
                measured_by=obs.measured_by or "",
                notes=obs.notes or "",
            )
            for obs in row.observations
        ),
        adjustments=tuple(
            FeedAdjustment(
                date=adj.date,
                concentrate_change=adj.concentrate_change or 0,
                forage_change=adj.forage_change or 0,
                reason=adj.reason or "",
                adjusted_by=adj.adjusted_by or "",
                cost_impact=adj.cost_impact or 0,
            )
            for adj in row.adjustments
        ),
    )


def to_domain(row: models.Animal) -> Animal:
    return Animal(
        id=row.id,
        tag_id=row.tag_id,
        name=row.name,
        breed=row.breed,
        sex=row.sex,
        dob=row.dob,
        status=row.status,
        health_status=row.health_status,
        notes=row.notes or "",
        weight_records=tuple(
            WeightRecord(
                date=rec.date,
                weight=rec.weight,
                measured_by=rec.measured_by or "",
                notes=rec.notes or "",
                method=rec.method,
            )
            for rec in row.weight_records
        ),
        episodes=tuple(_episode_to_domain(ep) for ep in row.episodes),
    )


def _apply_episode(row: models.FatteningEpisode, episode: FatteningEpisode) -> None:
    """Copy episode scalars onto a row and append unseen child records."""
    row.start_date = episode.start_date
    row.initial_weight = episode.initial_weight
    row.target_weight = episode.target_weight
    row.daily_gain_target = episode.daily_gain_target
    row.concentrate_amount = episode.concentrate_feed.amount
    row.concentrate_composition = episode.concentrate_feed.composition
    row.concentrate_cost_per_kg = episode.concentrate_feed.cost_per_kg
    row.forage_amount = episode.forage_feed.amount
    row.forage_type = episode.forage_feed.type
    row.forage_cost_per_kg = episode.forage_feed.cost_per_kg
    row.water_requirement = episode.water_requirement
    row.duration_days = episode.duration_days
    row.notes = episode.notes
    row.is_active = episode.is_active
    row.ended_at = episode.ended_at
    row.actual_adg = episode.actual_adg
    row.total_feed_cost = episode.total_feed_cost
    row.total_weight_gain = episode.total_weight_gain
    row.feed_conversion_ratio = episode.feed_conversion_ratio

    for obs in episode.observations[len(row.observations):]:
        row.observations.append(models.EpisodeObservation(
            date=obs.date,
            weight=obs.weight,
            measured_by=obs.measured_by,
            notes=obs.notes,
        ))
    for adj in episode.adjustments[len(row.adjustments):]:
        row.adjustments.append(models.FeedAdjustment(
            date=adj.date,
            concentrate_change=adj.concentrate_change,
            forage_change=adj.forage_change,
            reason=adj.reason,
            adjusted_by=adj.adjusted_by,
            cost_impact=adj.cost_impact,
        ))


class SqlHerdStore:
    """Load and save Animal aggregates."""

    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(models.Animal).options(
            selectinload(models.Animal.weight_records),
            selectinload(models.Animal.episodes).selectinload(models.FatteningEpisode.observations),
            selectinload(models.Animal.episodes).selectinload(models.FatteningEpisode.adjustments),
        )

    def _get_row(self, animal_id: int, for_update: bool = False) -> models.Animal:
        query = self._query().filter(models.Animal.id == animal_id)
        if for_update:
            # Serializes writers on the same animal where the database supports it
            query = query.with_for_update()
        row = query.first()
        if not row:
            raise NotFoundError("Animal not found")
        return row

    def get(self, animal_id: int, for_update: bool = False) -> Animal:
        return to_domain(self._get_row(animal_id, for_update=for_update))

    def list(self) -> list[Animal]:
        return [to_domain(row) for row in self._query().order_by(models.Animal.id).all()]

    def create(self, animal: Animal) -> Animal:
        existing = self.db.query(models.Animal).filter(models.Animal.tag_id == animal.tag_id).first()
        if existing:
            raise ValidationError(f"An animal with tag {animal.tag_id} already exists")

        row = models.Animal(
            tag_id=animal.tag_id,
            name=animal.name,
            breed=animal.breed,
            sex=animal.sex,
            dob=animal.dob,
            status=animal.status,
            health_status=animal.health_status,
            notes=animal.notes,
        )
        self.db.add(row)
        self.db.flush()
        self._sync(row, animal)
        self.db.commit()
        logger.info("Registered animal %s (tag %s)", row.id, row.tag_id)
        return self.get(row.id)

    def save(self, animal: Animal) -> Animal:
        """Write back an updated aggregate and return it with fresh ids."""
        if animal.id is None:
            raise ValidationError("Animal must be created before it can be saved")
        row = self._get_row(animal.id)
        self._sync(row, animal)
        self.db.commit()
        self.db.expire_all()
        return self.get(animal.id)

    def _sync(self, row: models.Animal, animal: Animal) -> None:
        row.status = animal.status
        row.health_status = animal.health_status

        for rec in animal.weight_records[len(row.weight_records):]:
            row.weight_records.append(models.WeightRecord(
                date=rec.date,
                weight=rec.weight,
                measured_by=rec.measured_by,
                notes=rec.notes,
                method=rec.method,
            ))

        rows_by_id = {ep.id: ep for ep in row.episodes}
        for episode in animal.episodes:
            if episode.id is None:
                ep_row = models.FatteningEpisode()
                row.episodes.append(ep_row)
            else:
                ep_row = rows_by_id.get(episode.id)
                if ep_row is None:
                    raise NotFoundError(f"Fattening episode {episode.id} not found")
            _apply_episode(ep_row, episode)
