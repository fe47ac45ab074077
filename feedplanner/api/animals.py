"""Animal, weight record and fattening episode API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from feedplanner.core.config import settings
from feedplanner.core.database import get_db
from feedplanner.core.domain import (
    Animal,
    ConcentrateFeed,
    DailyWeightObservation,
    EpisodeParams,
    FatteningEpisode,
    FeedAdjustment,
    ForageFeed,
    WeightRecord,
)
from feedplanner.core.growth import (
    add_weight_record,
    apply_feed_adjustment,
    as_datetime,
    calculate_age,
    close_episode,
    current_weight,
    episode_progress,
    find_episode,
    record_weight,
    replace_episode,
    start_episode,
    utc_now,
    weight_gain_summary,
)
from feedplanner.core.units import format_currency, to_kg
from feedplanner.schemas.schemas import (
    AnimalCreate,
    AnimalResponse,
    ConcentrateFeedSchema,
    EpisodeClose,
    EpisodeCreate,
    EpisodeDetailResponse,
    EpisodeProgressResponse,
    EpisodeResponse,
    FeedAdjustmentCreate,
    FeedAdjustmentResponse,
    ForageFeedSchema,
    ObservationCreate,
    ObservationResponse,
    WeightRecordCreate,
    WeightRecordResponse,
    WeightSummaryResponse,
)
from feedplanner.services.herd_store import SqlHerdStore

router = APIRouter(prefix="/animal", tags=["animals"])


# ==================== Animals ====================

@router.post("", response_model=AnimalResponse, status_code=201)
def create_animal(data: AnimalCreate, db: Session = Depends(get_db)):
    """Register an animal."""
    animal = SqlHerdStore(db).create(Animal(
        tag_id=data.tag_id,
        name=data.name,
        breed=data.breed,
        sex=data.sex,
        dob=as_datetime(data.dob) if data.dob else None,
        status=data.status,
        health_status=data.health_status,
        notes=data.notes,
    ))
    return _animal_to_response(animal)


@router.get("", response_model=list[AnimalResponse])
def list_animals(db: Session = Depends(get_db)):
    """List all animals."""
    return [_animal_to_response(a) for a in SqlHerdStore(db).list()]


@router.get("/{animal_id}", response_model=AnimalResponse)
def get_animal(animal_id: int, db: Session = Depends(get_db)):
    """Get an animal with its age and current weight."""
    return _animal_to_response(SqlHerdStore(db).get(animal_id))


# ==================== Weight records ====================

@router.post("/{animal_id}/weight", response_model=list[WeightRecordResponse], status_code=201)
def add_weight(animal_id: int, data: WeightRecordCreate, db: Session = Depends(get_db)):
    """Record a routine weighing outside of any fattening program."""
    store = SqlHerdStore(db)
    animal = store.get(animal_id, for_update=True)
    animal = add_weight_record(animal, WeightRecord(
        date=data.date,
        weight=to_kg(data.weight, data.unit),
        measured_by=data.measured_by,
        notes=data.notes,
        method=data.method,
    ))
    animal = store.save(animal)
    return [_weight_record_to_response(r) for r in animal.weight_records]


@router.get("/{animal_id}/weight/summary", response_model=WeightSummaryResponse)
def get_weight_summary(animal_id: int, db: Session = Depends(get_db)):
    """Gain and average daily gain across all routine weighings."""
    animal = SqlHerdStore(db).get(animal_id)
    summary = weight_gain_summary(animal.weight_records) or {}
    return WeightSummaryResponse(
        animal_id=animal.id,
        records=len(animal.weight_records),
        current_weight=current_weight(animal.weight_records),
        gain=summary.get("gain"),
        days=summary.get("days"),
        adg=summary.get("adg"),
    )


# ==================== Fattening episodes ====================

@router.post("/{animal_id}/fattening", response_model=EpisodeResponse, status_code=201)
def create_episode(animal_id: int, data: EpisodeCreate, db: Session = Depends(get_db)):
    """Start a fattening program; any running program for the animal is ended."""
    store = SqlHerdStore(db)
    animal = store.get(animal_id, for_update=True)
    animal, _ = start_episode(animal, EpisodeParams(
        start_date=data.start_date,
        initial_weight=data.initial_weight,
        target_weight=data.target_weight,
        daily_gain_target=data.daily_gain_target,
        concentrate_feed=ConcentrateFeed(**data.concentrate_feed.model_dump()),
        forage_feed=ForageFeed(**data.forage_feed.model_dump()),
        duration_days=data.duration_days,
        water_requirement=data.water_requirement,
        notes=data.notes,
    ))
    animal = store.save(animal)
    return _episode_to_response(animal.id, animal.active_episode)


@router.get("/{animal_id}/fattening", response_model=list[EpisodeResponse])
def list_episodes(animal_id: int, db: Session = Depends(get_db)):
    """Full fattening history for an animal, oldest first."""
    animal = SqlHerdStore(db).get(animal_id)
    return [_episode_to_response(animal.id, e) for e in animal.episodes]


@router.get("/{animal_id}/fattening/{episode_id}", response_model=EpisodeDetailResponse)
def get_episode(animal_id: int, episode_id: int, db: Session = Depends(get_db)):
    """One episode with progress towards its target weight."""
    animal = SqlHerdStore(db).get(animal_id)
    episode = find_episode(animal, episode_id)
    as_of = episode.ended_at or utc_now()
    progress = episode_progress(episode, as_of)
    return EpisodeDetailResponse(
        **_episode_to_response(animal.id, episode).model_dump(),
        progress=EpisodeProgressResponse(
            days_elapsed=round(progress.days_elapsed, 2),
            days_remaining=_round(progress.days_remaining, 2),
            latest_weight=progress.latest_weight,
            target_gain=progress.target_gain,
            gain_achieved_pct=round(progress.gain_achieved_pct, 1),
            projected_days_to_target=_round(progress.projected_days_to_target, 1),
            on_target_pace=progress.on_target_pace,
        ),
    )


@router.post("/{animal_id}/fattening/{episode_id}/weight", response_model=EpisodeResponse)
def add_episode_weight(
    animal_id: int,
    episode_id: int,
    data: ObservationCreate,
    db: Session = Depends(get_db)
):
    """Record a weight observation and refresh growth metrics."""
    return _update_episode(db, animal_id, episode_id, lambda episode: record_weight(
        episode,
        DailyWeightObservation(
            date=data.date,
            weight=to_kg(data.weight, data.unit),
            measured_by=data.measured_by,
            notes=data.notes,
        ),
    ))


@router.post("/{animal_id}/fattening/{episode_id}/feed", response_model=EpisodeResponse)
def add_feed_adjustment(
    animal_id: int,
    episode_id: int,
    data: FeedAdjustmentCreate,
    db: Session = Depends(get_db)
):
    """Change daily concentrate/forage amounts."""
    return _update_episode(db, animal_id, episode_id, lambda episode: apply_feed_adjustment(
        episode,
        FeedAdjustment(**data.model_dump()),
    ))


@router.post("/{animal_id}/fattening/{episode_id}/close", response_model=EpisodeResponse)
def end_episode(
    animal_id: int,
    episode_id: int,
    data: EpisodeClose,
    db: Session = Depends(get_db)
):
    """End a fattening program."""
    ended_at = data.ended_at or utc_now()
    return _update_episode(db, animal_id, episode_id, lambda episode: close_episode(episode, ended_at))


def _update_episode(db: Session, animal_id: int, episode_id: int, operation) -> EpisodeResponse:
    """Load the animal under lock, apply a core operation, persist the result."""
    store = SqlHerdStore(db)
    animal = store.get(animal_id, for_update=True)
    updated = operation(find_episode(animal, episode_id))
    animal = store.save(replace_episode(animal, updated))
    return _episode_to_response(animal.id, find_episode(animal, episode_id))


# ==================== Converters ====================

def _round(value, digits):
    return round(value, digits) if value is not None else None


def _animal_to_response(animal: Animal) -> AnimalResponse:
    active = animal.active_episode
    return AnimalResponse(
        id=animal.id,
        tag_id=animal.tag_id,
        name=animal.name,
        breed=animal.breed,
        sex=animal.sex,
        dob=animal.dob,
        age=calculate_age(animal.dob, utc_now()),
        status=animal.status,
        health_status=animal.health_status,
        notes=animal.notes,
        current_weight=current_weight(animal.weight_records),
        active_episode_id=active.id if active else None,
    )


def _weight_record_to_response(record: WeightRecord) -> WeightRecordResponse:
    return WeightRecordResponse(
        date=record.date,
        weight=record.weight,
        measured_by=record.measured_by,
        notes=record.notes,
        method=record.method,
    )


def _episode_to_response(animal_id: int, episode: FatteningEpisode) -> EpisodeResponse:
    return EpisodeResponse(
        id=episode.id,
        animal_id=animal_id,
        state=episode.state.value,
        is_active=episode.is_active,
        start_date=episode.start_date,
        ended_at=episode.ended_at,
        initial_weight=episode.initial_weight,
        target_weight=episode.target_weight,
        daily_gain_target=episode.daily_gain_target,
        concentrate_feed=ConcentrateFeedSchema(
            amount=episode.concentrate_feed.amount,
            composition=episode.concentrate_feed.composition,
            cost_per_kg=episode.concentrate_feed.cost_per_kg,
        ),
        forage_feed=ForageFeedSchema(
            amount=episode.forage_feed.amount,
            type=episode.forage_feed.type,
            cost_per_kg=episode.forage_feed.cost_per_kg,
        ),
        water_requirement=episode.water_requirement,
        duration_days=episode.duration_days,
        notes=episode.notes,
        observations=[
            ObservationResponse(
                date=o.date, weight=o.weight, measured_by=o.measured_by, notes=o.notes
            )
            for o in episode.observations
        ],
        adjustments=[
            FeedAdjustmentResponse(
                date=a.date,
                concentrate_change=a.concentrate_change,
                forage_change=a.forage_change,
                reason=a.reason,
                adjusted_by=a.adjusted_by,
                cost_impact=a.cost_impact,
            )
            for a in episode.adjustments
        ],
        actual_adg=_round(episode.actual_adg, 3),
        total_feed_cost=_round(episode.total_feed_cost, 2),
        total_weight_gain=_round(episode.total_weight_gain, 2),
        feed_conversion_ratio=_round(episode.feed_conversion_ratio, 2),
        daily_feed_cost=round(episode.daily_feed_cost, 2),
        total_feed_cost_display=(
            format_currency(episode.total_feed_cost, settings.CURRENCY)
            if episode.total_feed_cost is not None else None
        ),
    )
