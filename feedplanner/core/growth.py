"""
Fattening episode tracking and growth metrics.

For the latest observation of an episode:

    elapsedDays      = observation.date - startDate (fractional)
    weightGain       = observation.weight - initialWeight
    actualADG        = weightGain / elapsedDays      (None when elapsedDays <= 0)
    periodFeedCost   = daily feed cost at current rates × elapsedDays
    feedConversion   = periodFeedCost / weightGain   (0 when weightGain <= 0)

feedConversion is a cost per kg gained, not kg feed per kg gained.
"""

import calendar
import math
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from typing import Iterable, Optional, Union

from feedplanner.core.domain import (
    Animal,
    DailyWeightObservation,
    EpisodeParams,
    FatteningEpisode,
    FeedAdjustment,
    WeightRecord,
)
from feedplanner.core.errors import NotFoundError, ValidationError
from feedplanner.core.logging import get_logger

logger = get_logger(__name__)

SECONDS_PER_DAY = 86400

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class PerformanceMetrics:
    elapsed_days: float
    weight_gain: float
    actual_adg: Optional[float]
    period_feed_cost: float
    feed_conversion_ratio: float


@dataclass(frozen=True)
class EpisodeProgress:
    days_elapsed: float
    days_remaining: Optional[float]
    latest_weight: float
    target_gain: float
    gain_achieved_pct: float
    projected_days_to_target: Optional[float]
    on_target_pace: Optional[bool]


def as_datetime(value: DateLike) -> datetime:
    """Normalize a date or datetime to a naive UTC datetime."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    return datetime(value.year, value.month, value.day)


def utc_now() -> datetime:
    """Current time as a naive UTC datetime."""
    return as_datetime(datetime.now(timezone.utc))


def elapsed_days(start: DateLike, end: DateLike) -> float:
    """Fractional days between two dates."""
    return (as_datetime(end) - as_datetime(start)).total_seconds() / SECONDS_PER_DAY


# =============================================================================
# Metrics
# =============================================================================

def performance_metrics(
    episode: FatteningEpisode,
    observation: DailyWeightObservation
) -> PerformanceMetrics:
    """
    Growth and feed-cost metrics as of one observation.

    Args:
        episode: Episode whose start, initial weight and feed rates are used
        observation: Weight observation to measure against

    Returns:
        PerformanceMetrics; divide-by-zero cases come back as None or 0
    """
    days = elapsed_days(episode.start_date, observation.date)
    gain = observation.weight - episode.initial_weight
    adg = gain / days if days > 0 else None
    feed_cost = episode.daily_feed_cost * days
    fcr = feed_cost / gain if gain > 0 else 0

    return PerformanceMetrics(
        elapsed_days=days,
        weight_gain=gain,
        actual_adg=adg,
        period_feed_cost=feed_cost,
        feed_conversion_ratio=fcr,
    )


def recompute(episode: FatteningEpisode) -> FatteningEpisode:
    """Refresh derived fields from the latest observation at or after start."""
    start = as_datetime(episode.start_date)
    latest = None
    for obs in episode.observations:
        if as_datetime(obs.date) >= start:
            latest = obs
    if latest is None:
        return episode

    metrics = performance_metrics(episode, latest)
    return replace(
        episode,
        actual_adg=metrics.actual_adg,
        total_feed_cost=metrics.period_feed_cost,
        total_weight_gain=metrics.weight_gain,
        feed_conversion_ratio=metrics.feed_conversion_ratio,
    )


# =============================================================================
# Episode lifecycle
# =============================================================================

def _is_positive(value: float) -> bool:
    return math.isfinite(value) and value > 0


def _is_non_negative(value: float) -> bool:
    return math.isfinite(value) and value >= 0


def _validate_params(params: EpisodeParams) -> None:
    if not _is_positive(params.initial_weight):
        raise ValidationError("Initial weight must be positive")
    if not _is_positive(params.target_weight):
        raise ValidationError("Target weight must be positive")
    if not _is_non_negative(params.daily_gain_target):
        raise ValidationError("Daily gain target cannot be negative")
    if not _is_non_negative(params.duration_days):
        raise ValidationError("Duration cannot be negative")
    if not _is_non_negative(params.water_requirement):
        raise ValidationError("Water requirement cannot be negative")
    for label, feed in (("Concentrate", params.concentrate_feed), ("Forage", params.forage_feed)):
        if not _is_non_negative(feed.amount):
            raise ValidationError(f"{label} amount cannot be negative")
        if not _is_non_negative(feed.cost_per_kg):
            raise ValidationError(f"{label} cost per kg cannot be negative")


def _require_active(episode: FatteningEpisode) -> None:
    if not episode.is_active:
        raise ValidationError("Episode has ended and is read-only")


def _check_supersede(episode: FatteningEpisode, start: datetime) -> None:
    """A new program may only end the running one on or after its last record."""
    if start < as_datetime(episode.start_date):
        raise ValidationError("New episode cannot start before the active episode's start date")
    latest = episode.latest_observation
    if latest is not None and start < as_datetime(latest.date):
        raise ValidationError("New episode cannot start before the active episode's latest observation")


def start_episode(animal: Animal, params: EpisodeParams) -> tuple[Animal, FatteningEpisode]:
    """
    Start a fattening program for an animal.

    Any active episode is ended first, so exactly one episode is active
    afterwards. History is kept; nothing is removed.

    Args:
        animal: Animal with its current episodes
        params: Starting weights, targets and feed rates

    Returns:
        (updated animal, new episode)

    Raises:
        ValidationError: invalid params, or a start date before the active
            episode's start or latest observation
    """
    _validate_params(params)
    start = as_datetime(params.start_date)

    history = []
    for episode in animal.episodes:
        if episode.is_active:
            _check_supersede(episode, start)
            logger.info(
                "Ending episode %s for animal %s: superseded by new episode",
                episode.id, animal.tag_id
            )
            episode = replace(episode, is_active=False, ended_at=start)
        history.append(episode)

    new_episode = FatteningEpisode(
        start_date=start,
        initial_weight=params.initial_weight,
        target_weight=params.target_weight,
        daily_gain_target=params.daily_gain_target,
        concentrate_feed=params.concentrate_feed,
        forage_feed=params.forage_feed,
        duration_days=params.duration_days,
        water_requirement=params.water_requirement,
        notes=params.notes,
        is_active=True,
    )
    history.append(new_episode)

    return replace(animal, episodes=tuple(history)), new_episode


def record_weight(
    episode: FatteningEpisode,
    observation: DailyWeightObservation
) -> FatteningEpisode:
    """
    Append a weight observation and recompute performance metrics.

    Raises:
        ValidationError: episode ended, weight not positive, or date before
            the start date or the latest observation
    """
    _require_active(episode)
    if not _is_positive(observation.weight):
        raise ValidationError("Weight must be positive")

    obs_date = as_datetime(observation.date)
    if obs_date < as_datetime(episode.start_date):
        raise ValidationError("Observation date is before the episode start date")
    latest = episode.latest_observation
    if latest is not None and obs_date < as_datetime(latest.date):
        raise ValidationError("Observation date is before the latest recorded observation")

    observation = replace(observation, date=obs_date)
    updated = replace(episode, observations=episode.observations + (observation,))
    return recompute(updated)


def apply_feed_adjustment(
    episode: FatteningEpisode,
    adjustment: FeedAdjustment
) -> FatteningEpisode:
    """
    Change daily feed amounts and keep the adjustment in history.

    Raises:
        ValidationError: episode ended, a change is not finite, or a
            resulting amount is negative
    """
    _require_active(episode)
    for label, value in (
        ("Concentrate change", adjustment.concentrate_change),
        ("Forage change", adjustment.forage_change),
        ("Cost impact", adjustment.cost_impact),
    ):
        if not math.isfinite(value):
            raise ValidationError(f"{label} must be a finite number")

    concentrate = episode.concentrate_feed.amount + adjustment.concentrate_change
    forage = episode.forage_feed.amount + adjustment.forage_change
    if concentrate < 0:
        raise ValidationError(f"Concentrate amount would become negative ({concentrate:.2f} kg)")
    if forage < 0:
        raise ValidationError(f"Forage amount would become negative ({forage:.2f} kg)")

    return replace(
        episode,
        concentrate_feed=replace(episode.concentrate_feed, amount=concentrate),
        forage_feed=replace(episode.forage_feed, amount=forage),
        adjustments=episode.adjustments + (replace(adjustment, date=as_datetime(adjustment.date)),),
    )


def close_episode(episode: FatteningEpisode, ended_at: DateLike) -> FatteningEpisode:
    """End an active episode explicitly."""
    _require_active(episode)
    ended_at = as_datetime(ended_at)
    if ended_at < as_datetime(episode.start_date):
        raise ValidationError("Episode cannot end before it starts")
    return replace(episode, is_active=False, ended_at=ended_at)


def find_episode(animal: Animal, episode_id: int) -> FatteningEpisode:
    for episode in animal.episodes:
        if episode.id == episode_id:
            return episode
    raise NotFoundError(f"Fattening episode {episode_id} not found")


def replace_episode(animal: Animal, updated: FatteningEpisode) -> Animal:
    """Swap one episode (matched by id) inside the animal's history."""
    if updated.id is None:
        raise ValidationError("Only persisted episodes can be replaced")
    episodes = tuple(updated if e.id == updated.id else e for e in animal.episodes)
    return replace(animal, episodes=episodes)


def episode_progress(episode: FatteningEpisode, as_of: DateLike) -> EpisodeProgress:
    """
    Progress of an episode towards its target weight.

    Args:
        episode: Episode to report on
        as_of: Reference time for elapsed/remaining days

    Returns:
        EpisodeProgress
    """
    days = max(0.0, elapsed_days(episode.start_date, as_of))
    remaining = None
    if episode.duration_days:
        remaining = max(0.0, episode.duration_days - days)

    latest = episode.latest_observation
    latest_weight = latest.weight if latest else episode.initial_weight
    target_gain = episode.target_weight - episode.initial_weight
    gained = latest_weight - episode.initial_weight

    if target_gain > 0:
        achieved_pct = max(0.0, min(100.0, gained / target_gain * 100))
    else:
        achieved_pct = 100.0

    projected = None
    pace = None
    if episode.actual_adg is not None:
        if episode.actual_adg > 0:
            projected = max(0.0, episode.target_weight - latest_weight) / episode.actual_adg
        pace = episode.actual_adg >= episode.daily_gain_target

    return EpisodeProgress(
        days_elapsed=days,
        days_remaining=remaining,
        latest_weight=latest_weight,
        target_gain=target_gain,
        gain_achieved_pct=achieved_pct,
        projected_days_to_target=projected,
        on_target_pace=pace,
    )


# =============================================================================
# Plain weight records
# =============================================================================

def add_weight_record(animal: Animal, record: WeightRecord) -> Animal:
    if not _is_positive(record.weight):
        raise ValidationError("Weight must be positive")
    record = replace(record, date=as_datetime(record.date))
    return replace(animal, weight_records=animal.weight_records + (record,))


def weight_gain_summary(records: Iterable[WeightRecord]) -> Optional[dict]:
    """
    Gain and average daily gain between the first and last weighing.

    Args:
        records: Weight records in any order

    Returns:
        Dict with gain, whole days and adg (2 dp), or None with fewer than
        two records
    """
    ordered = sorted(records, key=lambda r: as_datetime(r.date))
    if len(ordered) < 2:
        return None

    first, last = ordered[0], ordered[-1]
    gain = last.weight - first.weight
    days = (as_datetime(last.date) - as_datetime(first.date)).days
    adg = gain / days if days > 0 else 0

    return {
        "gain": gain,
        "days": days,
        "adg": round(adg, 2),
    }


def current_weight(records: Iterable[WeightRecord]) -> Optional[float]:
    """Most recent recorded weight."""
    ordered = sorted(records, key=lambda r: as_datetime(r.date))
    if not ordered:
        return None
    return ordered[-1].weight


def _add_months(value: date, months: int) -> date:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def calculate_age(dob: Optional[DateLike], today: DateLike) -> str:
    """
    Human readable age, e.g. "2 years 3 months" or "1 month 12 days".

    Days are only shown for animals younger than a year.
    """
    if dob is None:
        return "Unknown"
    birth = as_datetime(dob).date()
    now = as_datetime(today).date()

    years = now.year - birth.year - ((now.month, now.day) < (birth.month, birth.day))
    anchor = _add_months(birth, years * 12)
    months = (now.year - anchor.year) * 12 + now.month - anchor.month
    if now.day < anchor.day:
        months -= 1
    anchor = _add_months(anchor, months)
    days = (now - anchor).days

    parts = []
    if years > 0:
        parts.append(f"{years} year{'s' if years > 1 else ''}")
    if months > 0:
        parts.append(f"{months} month{'s' if months > 1 else ''}")
    if days > 0 and years < 1:
        parts.append(f"{days} day{'s' if days > 1 else ''}")

    return " ".join(parts) or "0 days"
