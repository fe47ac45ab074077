"""Tests for fattening episodes, weight records and age helpers."""

from dataclasses import replace
from datetime import date, datetime, timedelta, timezone

import pytest
from feedplanner.core.domain import (
    Animal,
    Breed,
    ConcentrateFeed,
    DailyWeightObservation,
    EpisodeParams,
    EpisodeState,
    FeedAdjustment,
    ForageFeed,
    Sex,
    WeightRecord,
)
from feedplanner.core.errors import NotFoundError, ValidationError
from feedplanner.core.growth import (
    add_weight_record,
    apply_feed_adjustment,
    as_datetime,
    calculate_age,
    close_episode,
    current_weight,
    elapsed_days,
    episode_progress,
    find_episode,
    record_weight,
    replace_episode,
    start_episode,
    utc_now,
    weight_gain_summary,
)
from feedplanner.core.units import WeightUnit, format_currency, to_kg

START = datetime(2024, 1, 1)


def make_animal(**overrides):
    values = dict(tag_id="NG-001", breed=Breed.WHITE_FULANI, sex=Sex.MALE, dob=datetime(2022, 3, 15))
    values.update(overrides)
    return Animal(**values)


def make_params(**overrides):
    values = dict(
        start_date=START,
        initial_weight=100,
        target_weight=160,
        daily_gain_target=0.8,
        concentrate_feed=ConcentrateFeed(amount=2, composition="maize/cotton seed cake", cost_per_kg=100),
        forage_feed=ForageFeed(amount=5, type="groundnut haulms", cost_per_kg=20),
        duration_days=90,
    )
    values.update(overrides)
    return EpisodeParams(**values)


def started_episode(**overrides):
    _, episode = start_episode(make_animal(), make_params(**overrides))
    return episode


class TestStartEpisode:
    """Tests for start_episode."""

    def test_new_episode_active(self):
        animal, episode = start_episode(make_animal(), make_params())
        assert episode.state == EpisodeState.ACTIVE
        assert animal.active_episode == episode
        assert episode.observations == ()

    def test_single_active_episode(self):
        """Starting a second program ends the first and keeps it in history."""
        animal, first = start_episode(make_animal(), make_params())
        animal, second = start_episode(animal, make_params(start_date=datetime(2024, 4, 1)))

        assert len(animal.episodes) == 2
        assert [e.is_active for e in animal.episodes] == [False, True]
        assert animal.episodes[0].ended_at == datetime(2024, 4, 1)
        assert animal.active_episode == second
        assert first.is_active

    def test_backdated_start_rejected(self):
        """A new program cannot end the running one before that one began."""
        animal, first = start_episode(make_animal(), make_params(start_date=datetime(2024, 4, 1)))
        with pytest.raises(ValidationError):
            start_episode(animal, make_params(start_date=datetime(2024, 1, 1)))
        assert animal.active_episode == first

    def test_start_before_latest_observation_rejected(self):
        animal, first = start_episode(make_animal(), make_params())
        observed = record_weight(first, DailyWeightObservation(date=datetime(2024, 2, 1), weight=125))
        animal = replace(animal, episodes=(observed,))
        with pytest.raises(ValidationError):
            start_episode(animal, make_params(start_date=datetime(2024, 1, 20)))

    def test_same_day_restart_allowed(self):
        animal, _ = start_episode(make_animal(), make_params())
        animal, _ = start_episode(animal, make_params())
        assert animal.episodes[0].ended_at == animal.episodes[0].start_date

    @pytest.mark.parametrize("overrides", [
        {"initial_weight": 0},
        {"initial_weight": float("nan")},
        {"target_weight": float("inf")},
        {"water_requirement": float("nan")},
        {"target_weight": -5},
        {"daily_gain_target": -0.1},
        {"concentrate_feed": ConcentrateFeed(amount=-1)},
        {"forage_feed": ForageFeed(amount=1, cost_per_kg=-3)},
    ])
    def test_invalid_params(self, overrides):
        with pytest.raises(ValidationError):
            start_episode(make_animal(), make_params(**overrides))


class TestRecordWeight:
    """Tests for record_weight and metric recomputation."""

    def test_adg_example(self):
        """100kg on 2024-01-01 to 110kg on 2024-01-11 is 1.0 kg/day."""
        episode = record_weight(
            started_episode(),
            DailyWeightObservation(date=datetime(2024, 1, 11), weight=110),
        )
        assert episode.actual_adg == pytest.approx(1.0)
        assert episode.total_weight_gain == pytest.approx(10)

    def test_feed_cost_and_conversion(self):
        """Daily cost 2*100 + 5*20 = 300 over 10 days, per 10kg gained."""
        episode = record_weight(
            started_episode(),
            DailyWeightObservation(date=datetime(2024, 1, 11), weight=110),
        )
        assert episode.total_feed_cost == pytest.approx(3000)
        assert episode.feed_conversion_ratio == pytest.approx(300)

    def test_metrics_follow_latest_observation(self):
        episode = started_episode()
        episode = record_weight(episode, DailyWeightObservation(date=datetime(2024, 1, 6), weight=104))
        episode = record_weight(episode, DailyWeightObservation(date=datetime(2024, 1, 21), weight=118))
        assert len(episode.observations) == 2
        assert episode.actual_adg == pytest.approx(0.9)

    def test_same_day_observation(self):
        """No elapsed time gives no ADG and no feed cost."""
        episode = record_weight(started_episode(), DailyWeightObservation(date=START, weight=101))
        assert episode.actual_adg is None
        assert episode.total_feed_cost == 0

    def test_weight_loss_conversion_zero(self):
        episode = record_weight(
            started_episode(),
            DailyWeightObservation(date=datetime(2024, 1, 5), weight=98),
        )
        assert episode.actual_adg == pytest.approx(-0.5)
        assert episode.feed_conversion_ratio == 0

    def test_date_before_start_rejected(self):
        with pytest.raises(ValidationError):
            record_weight(started_episode(), DailyWeightObservation(date=datetime(2023, 12, 31), weight=100))

    def test_out_of_order_rejected(self):
        episode = record_weight(
            started_episode(),
            DailyWeightObservation(date=datetime(2024, 1, 11), weight=110),
        )
        with pytest.raises(ValidationError):
            record_weight(episode, DailyWeightObservation(date=datetime(2024, 1, 5), weight=105))

    def test_non_positive_weight_rejected(self):
        with pytest.raises(ValidationError):
            record_weight(started_episode(), DailyWeightObservation(date=datetime(2024, 1, 2), weight=0))

    @pytest.mark.parametrize("weight", [float("nan"), float("inf")])
    def test_non_finite_weight_rejected(self, weight):
        episode = started_episode()
        with pytest.raises(ValidationError):
            record_weight(episode, DailyWeightObservation(date=datetime(2024, 1, 2), weight=weight))
        assert episode.observations == ()

    def test_input_not_mutated(self):
        episode = started_episode()
        record_weight(episode, DailyWeightObservation(date=datetime(2024, 1, 11), weight=110))
        assert episode.observations == ()
        assert episode.actual_adg is None


class TestFeedAdjustment:
    """Tests for apply_feed_adjustment."""

    def test_amounts_change(self):
        episode = apply_feed_adjustment(
            started_episode(),
            FeedAdjustment(date=datetime(2024, 1, 10), concentrate_change=0.5, forage_change=-1, reason="slow gain"),
        )
        assert episode.concentrate_feed.amount == pytest.approx(2.5)
        assert episode.forage_feed.amount == pytest.approx(4)
        assert episode.daily_feed_cost == pytest.approx(2.5 * 100 + 4 * 20)
        assert len(episode.adjustments) == 1

    def test_negative_result_rejected(self):
        with pytest.raises(ValidationError):
            apply_feed_adjustment(
                started_episode(),
                FeedAdjustment(date=datetime(2024, 1, 10), concentrate_change=-3),
            )

    @pytest.mark.parametrize("change", [
        {"concentrate_change": float("nan")},
        {"forage_change": float("inf")},
        {"concentrate_change": float("-inf")},
        {"cost_impact": float("nan")},
    ])
    def test_non_finite_change_rejected(self, change):
        """Feed rates are never replaced by NaN or infinity."""
        episode = started_episode()
        with pytest.raises(ValidationError):
            apply_feed_adjustment(episode, FeedAdjustment(date=datetime(2024, 1, 10), **change))
        assert episode.concentrate_feed.amount == 2
        assert episode.adjustments == ()


class TestCloseEpisode:
    """Tests for close_episode and ended episodes."""

    def test_close(self):
        episode = close_episode(started_episode(), datetime(2024, 3, 1))
        assert episode.state == EpisodeState.ENDED
        assert episode.ended_at == datetime(2024, 3, 1)

    def test_ended_episode_read_only(self):
        episode = close_episode(started_episode(), datetime(2024, 3, 1))
        with pytest.raises(ValidationError):
            record_weight(episode, DailyWeightObservation(date=datetime(2024, 3, 2), weight=150))
        with pytest.raises(ValidationError):
            apply_feed_adjustment(episode, FeedAdjustment(date=datetime(2024, 3, 2), forage_change=1))
        with pytest.raises(ValidationError):
            close_episode(episode, datetime(2024, 3, 3))

    def test_close_before_start_rejected(self):
        with pytest.raises(ValidationError):
            close_episode(started_episode(), datetime(2023, 12, 1))


class TestEpisodeLookup:
    """Tests for find_episode and replace_episode."""

    def test_find_and_replace(self):
        persisted = replace(started_episode(), id=7)
        animal = make_animal(episodes=(persisted,))

        updated = record_weight(persisted, DailyWeightObservation(date=datetime(2024, 1, 11), weight=110))
        animal = replace_episode(animal, updated)
        assert find_episode(animal, 7).actual_adg == pytest.approx(1.0)

    def test_find_missing(self):
        with pytest.raises(NotFoundError):
            find_episode(make_animal(), 1)

    def test_replace_unsaved_rejected(self):
        with pytest.raises(ValidationError):
            replace_episode(make_animal(), started_episode())


class TestEpisodeProgress:
    """Tests for episode_progress."""

    def test_progress(self):
        episode = record_weight(
            started_episode(),
            DailyWeightObservation(date=datetime(2024, 1, 11), weight=110),
        )
        progress = episode_progress(episode, datetime(2024, 1, 11))

        assert progress.days_elapsed == pytest.approx(10)
        assert progress.days_remaining == pytest.approx(80)
        assert progress.latest_weight == 110
        assert progress.target_gain == 60
        assert progress.gain_achieved_pct == pytest.approx(10 / 60 * 100)
        assert progress.projected_days_to_target == pytest.approx(50)
        assert progress.on_target_pace is True

    def test_progress_without_observations(self):
        progress = episode_progress(started_episode(duration_days=0), datetime(2024, 1, 5))
        assert progress.latest_weight == 100
        assert progress.days_remaining is None
        assert progress.projected_days_to_target is None
        assert progress.on_target_pace is None


class TestWeightRecords:
    """Tests for routine weighings."""

    def test_summary(self):
        animal = make_animal()
        animal = add_weight_record(animal, WeightRecord(date=datetime(2024, 2, 1), weight=230))
        animal = add_weight_record(animal, WeightRecord(date=datetime(2024, 1, 1), weight=200))

        summary = weight_gain_summary(animal.weight_records)
        assert summary == {"gain": 30, "days": 31, "adg": 0.97}
        assert current_weight(animal.weight_records) == 230

    def test_summary_needs_two_records(self):
        animal = add_weight_record(make_animal(), WeightRecord(date=datetime(2024, 1, 1), weight=200))
        assert weight_gain_summary(animal.weight_records) is None

    def test_same_day_summary(self):
        records = [
            WeightRecord(date=datetime(2024, 1, 1, 8), weight=200),
            WeightRecord(date=datetime(2024, 1, 1, 18), weight=201),
        ]
        assert weight_gain_summary(records)["adg"] == 0

    def test_current_weight_empty(self):
        assert current_weight([]) is None

    def test_non_positive_rejected(self):
        with pytest.raises(ValidationError):
            add_weight_record(make_animal(), WeightRecord(date=datetime(2024, 1, 1), weight=-1))

    def test_nan_weight_rejected(self):
        with pytest.raises(ValidationError):
            add_weight_record(make_animal(), WeightRecord(date=datetime(2024, 1, 1), weight=float("nan")))


class TestDates:
    """Tests for date normalization and age formatting."""

    def test_as_datetime(self):
        assert as_datetime(date(2024, 1, 1)) == START
        aware = datetime(2024, 1, 1, 1, tzinfo=timezone(timedelta(hours=1)))
        assert as_datetime(aware) == START

    def test_elapsed_days_fractional(self):
        assert elapsed_days(START, datetime(2024, 1, 1, 12)) == pytest.approx(0.5)

    def test_utc_now_is_naive(self):
        now = utc_now()
        assert now.tzinfo is None
        assert abs((datetime.now(timezone.utc).replace(tzinfo=None) - now).total_seconds()) < 5

    @pytest.mark.parametrize("dob,today,expected", [
        (None, date(2024, 1, 1), "Unknown"),
        (date(2024, 1, 1), date(2024, 1, 1), "0 days"),
        (date(2023, 11, 20), date(2024, 1, 2), "1 month 13 days"),
        (date(2022, 3, 15), date(2024, 6, 20), "2 years 3 months"),
        (date(2023, 1, 1), date(2024, 1, 1), "1 year"),
    ])
    def test_calculate_age(self, dob, today, expected):
        assert calculate_age(dob, today) == expected


class TestUnits:
    """Tests for unit conversion and currency display."""

    def test_to_kg(self):
        assert to_kg(100, WeightUnit.LBS) == pytest.approx(45.36)
        assert to_kg(100, WeightUnit.KG) == 100

    def test_format_currency(self):
        assert format_currency(1250.5) == "₦1,250.50"
        assert format_currency(-3, "usd") == "-$3.00"
