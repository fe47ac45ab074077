"""
SQL-backed ingredient catalog.

The core only ever sees immutable Ingredient snapshots produced here.
"""

from typing import Iterable, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from feedplanner.core.domain import Ingredient, NutrientProfile
from feedplanner.core.errors import NotFoundError, ValidationError
from feedplanner.core.logging import get_logger
from feedplanner.models import models

logger = get_logger(__name__)


def to_domain(row: models.Ingredient) -> Ingredient:
    """Convert an ingredient row to its domain value."""
    return Ingredient(
        id=row.id,
        name=row.name,
        category=row.category or "other",
        cost_per_kg=row.cost_per_kg or 0,
        nutrients=NutrientProfile(
            cp=row.cp or 0,
            me=row.me or 0,
            ndf=row.ndf or 0,
            ca=row.ca or 0,
            p=row.p or 0,
        ),
    )


class SqlIngredientCatalog:
    """IngredientCatalog over the ingredients table."""

    def __init__(self, db: Session):
        self.db = db

    def _get_row(self, ingredient_id: int) -> models.Ingredient:
        row = self.db.query(models.Ingredient).filter(models.Ingredient.id == ingredient_id).first()
        if not row:
            raise NotFoundError(f"Ingredient {ingredient_id} not found")
        return row

    def get(self, ingredient_id: int) -> Ingredient:
        return to_domain(self._get_row(ingredient_id))

    def update(self, ingredient_id: int, fields: dict) -> Ingredient:
        """Apply column updates (name, category, cost_per_kg, nutrients) to an ingredient."""
        row = self._get_row(ingredient_id)
        for field, value in fields.items():
            setattr(row, field, value)
        self.db.commit()
        self.db.refresh(row)
        return to_domain(row)

    def delete(self, ingredient_id: int) -> None:
        """Remove an ingredient that no saved formulation references."""
        row = self._get_row(ingredient_id)
        if row.formulation_items:
            raise ValidationError("Cannot delete ingredient that is used in saved formulations.")
        name = row.name
        self.db.delete(row)
        self.db.commit()
        logger.info("Deleted ingredient %s (%s)", ingredient_id, name)

    def list(self, query: Optional[str] = None) -> list[Ingredient]:
        """List ingredients, optionally filtered by name or category substring."""
        q = self.db.query(models.Ingredient)
        if query and query.strip():
            pattern = f"%{query.strip().lower()}%"
            q = q.filter(or_(
                func.lower(models.Ingredient.name).like(pattern),
                func.lower(models.Ingredient.category).like(pattern),
            ))
        return [to_domain(row) for row in q.order_by(models.Ingredient.name).all()]

    def snapshot(self, ingredient_ids: Iterable[int]) -> dict[int, Ingredient]:
        """
        Fetch the given ingredients in one query.

        Unknown ids are simply absent from the result; compute_totals
        reports them as NotFoundError.
        """
        ids = set(ingredient_ids)
        if not ids:
            return {}
        rows = self.db.query(models.Ingredient).filter(models.Ingredient.id.in_(ids)).all()
        return {row.id: to_domain(row) for row in rows}
