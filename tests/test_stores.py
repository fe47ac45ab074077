"""Tests for the SQL-backed catalog, formulation and herd stores."""

from dataclasses import replace
from datetime import datetime

import pytest
from feedplanner.core.domain import (
    Animal,
    Blend,
    BlendItem,
    Breed,
    DailyWeightObservation,
    EpisodeParams,
    FeedAdjustment,
    Formulation,
    Sex,
    WeightRecord,
)
from feedplanner.core.errors import NotFoundError, ValidationError
from feedplanner.core.growth import (
    add_weight_record,
    apply_feed_adjustment,
    find_episode,
    record_weight,
    replace_episode,
    start_episode,
)
from feedplanner.models import models
from feedplanner.seed_data import SAMPLE_INGREDIENTS, seed_sample_ingredients
from feedplanner.services.catalog import SqlIngredientCatalog
from feedplanner.services.formulation_store import SqlFormulationStore
from feedplanner.services.herd_store import SqlHerdStore


@pytest.fixture
def seeded(db_session):
    seed_sample_ingredients(db_session)
    return db_session


def ingredient_id(db, name):
    return db.query(models.Ingredient).filter(models.Ingredient.name == name).one().id


class TestCatalog:
    """Tests for SqlIngredientCatalog."""

    def test_seed_is_idempotent(self, seeded):
        seed_sample_ingredients(seeded)
        assert seeded.query(models.Ingredient).count() == len(SAMPLE_INGREDIENTS)

    def test_search_by_category(self, seeded):
        names = [i.name for i in SqlIngredientCatalog(seeded).list("MINERAL")]
        assert names == ["Bone meal", "Limestone", "Salt"]

    def test_get_missing(self, seeded):
        with pytest.raises(NotFoundError):
            SqlIngredientCatalog(seeded).get(9999)

    def test_snapshot_skips_unknown(self, seeded):
        maize = ingredient_id(seeded, "Maize grain")
        snapshot = SqlIngredientCatalog(seeded).snapshot([maize, 9999])
        assert set(snapshot) == {maize}
        assert snapshot[maize].nutrients.me == 13.5


class TestFormulationStore:
    """Tests for SqlFormulationStore."""

    def make_formulation(self, db, owner="farmer-1", **overrides):
        values = dict(
            name="Finisher",
            owner_id=owner,
            blend=Blend(
                species="cattle",
                stage="fattening",
                items=(BlendItem(ingredient_id=ingredient_id(db, "Maize grain"), inclusion_kg=60),),
            ),
        )
        values.update(overrides)
        return Formulation(**values)

    def test_save_and_get(self, seeded):
        store = SqlFormulationStore(seeded)
        formulation_id = store.save(self.make_formulation(seeded))

        saved = store.get(formulation_id, "farmer-1")
        assert saved.name == "Finisher"
        assert saved.blend.items[0].inclusion_kg == 60
        assert saved.created_at is not None

    def test_owner_scoping(self, seeded):
        store = SqlFormulationStore(seeded)
        formulation_id = store.save(self.make_formulation(seeded))

        with pytest.raises(NotFoundError):
            store.get(formulation_id, "someone-else")
        assert store.list("someone-else") == []
        with pytest.raises(NotFoundError):
            store.delete(formulation_id, "someone-else")

    def test_list_newest_first(self, seeded):
        store = SqlFormulationStore(seeded)
        first = store.save(self.make_formulation(seeded, name="First"))
        second = store.save(self.make_formulation(seeded, name="Second", is_template=True))
        assert [f.id for f in store.list("farmer-1")] == [second, first]

    def test_unknown_ingredient(self, seeded):
        formulation = self.make_formulation(
            seeded,
            blend=Blend(species="cattle", stage="growth", items=(BlendItem(ingredient_id=9999, inclusion_kg=1),)),
        )
        with pytest.raises(NotFoundError):
            SqlFormulationStore(seeded).save(formulation)

    def test_delete(self, seeded):
        store = SqlFormulationStore(seeded)
        formulation_id = store.save(self.make_formulation(seeded))
        store.delete(formulation_id, "farmer-1")
        assert store.list("farmer-1") == []
        assert seeded.query(models.FormulationItem).count() == 0


class TestHerdStore:
    """Tests for SqlHerdStore aggregate load/save."""

    def create_animal(self, db, tag="NG-001"):
        return SqlHerdStore(db).create(Animal(
            tag_id=tag, breed=Breed.SOKOTO_GUDALI, sex=Sex.FEMALE, dob=datetime(2022, 5, 1),
        ))

    def test_create_and_get(self, db_session):
        animal = self.create_animal(db_session)
        assert animal.id is not None
        assert SqlHerdStore(db_session).get(animal.id).breed == Breed.SOKOTO_GUDALI

    def test_duplicate_tag(self, db_session):
        self.create_animal(db_session)
        with pytest.raises(ValidationError):
            self.create_animal(db_session)

    def test_get_missing(self, db_session):
        with pytest.raises(NotFoundError):
            SqlHerdStore(db_session).get(42)

    def test_weight_records_appended(self, db_session):
        store = SqlHerdStore(db_session)
        animal = self.create_animal(db_session)
        animal = store.save(add_weight_record(animal, WeightRecord(date=datetime(2024, 1, 1), weight=210)))
        animal = store.save(add_weight_record(animal, WeightRecord(date=datetime(2024, 2, 1), weight=225)))
        assert [r.weight for r in store.get(animal.id).weight_records] == [210, 225]

    def test_episode_history_round_trip(self, db_session):
        """Episodes, observations and adjustments survive a save/load cycle."""
        store = SqlHerdStore(db_session)
        animal = self.create_animal(db_session)
        params = EpisodeParams(
            start_date=datetime(2024, 1, 1), initial_weight=100, target_weight=150, daily_gain_target=0.8,
        )
        animal, _ = start_episode(animal, params)
        animal = store.save(animal)
        episode_id = animal.active_episode.id
        assert episode_id is not None

        episode = record_weight(
            find_episode(animal, episode_id),
            DailyWeightObservation(date=datetime(2024, 1, 11), weight=110),
        )
        episode = apply_feed_adjustment(episode, FeedAdjustment(date=datetime(2024, 1, 11), forage_change=2))
        animal = store.save(replace_episode(animal, episode))

        loaded = find_episode(store.get(animal.id), episode_id)
        assert loaded.actual_adg == pytest.approx(1.0)
        assert len(loaded.observations) == 1
        assert loaded.forage_feed.amount == 2

        animal, _ = start_episode(store.get(animal.id), replace(params, start_date=datetime(2024, 2, 1)))
        animal = store.save(animal)
        assert [e.is_active for e in animal.episodes] == [False, True]
        assert len(find_episode(animal, episode_id).observations) == 1
