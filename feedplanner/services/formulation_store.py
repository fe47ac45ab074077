"""SQL-backed store for account-owned formulations and templates."""

from sqlalchemy.orm import Session

from feedplanner.core.domain import Blend, BlendItem, Formulation
from feedplanner.core.errors import NotFoundError
from feedplanner.core.logging import get_logger
from feedplanner.models import models

logger = get_logger(__name__)


def to_domain(row: models.Formulation) -> Formulation:
    return Formulation(
        id=row.id,
        owner_id=row.owner_id,
        name=row.name,
        is_template=row.is_template,
        notes=row.notes or "",
        created_at=row.created_at,
        updated_at=row.updated_at,
        blend=Blend(
            species=row.species,
            stage=row.stage,
            target_weight_kg=row.target_weight_kg,
            items=tuple(
                BlendItem(
                    ingredient_id=item.ingredient_id,
                    inclusion_kg=item.inclusion_kg,
                    cost_per_kg_override=item.cost_per_kg_override,
                )
                for item in row.items
            ),
        ),
    )


class SqlFormulationStore:
    """FormulationStore over the formulations tables."""

    def __init__(self, db: Session):
        self.db = db

    def save(self, formulation: Formulation) -> int:
        """Persist a new formulation and return its id."""
        ingredient_ids = {item.ingredient_id for item in formulation.blend.items}
        found = {
            row.id for row in
            self.db.query(models.Ingredient.id).filter(models.Ingredient.id.in_(ingredient_ids)).all()
        }
        missing = sorted(ingredient_ids - found)
        if missing:
            raise NotFoundError(f"Ingredient {missing[0]} not found")

        row = models.Formulation(
            owner_id=formulation.owner_id,
            name=formulation.name,
            species=formulation.blend.species,
            stage=formulation.blend.stage,
            target_weight_kg=formulation.blend.target_weight_kg,
            is_template=formulation.is_template,
            notes=formulation.notes,
            items=[
                models.FormulationItem(
                    ingredient_id=item.ingredient_id,
                    inclusion_kg=item.inclusion_kg,
                    cost_per_kg_override=item.cost_per_kg_override,
                )
                for item in formulation.blend.items
            ],
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info(
            "Saved %s %s for owner %s",
            "template" if row.is_template else "formulation", row.id, row.owner_id
        )
        return row.id

    def _get_row(self, formulation_id: int, owner_id: str) -> models.Formulation:
        row = self.db.query(models.Formulation).filter(
            models.Formulation.id == formulation_id,
            models.Formulation.owner_id == owner_id,
        ).first()
        if not row:
            raise NotFoundError("Formulation not found")
        return row

    def get(self, formulation_id: int, owner_id: str) -> Formulation:
        return to_domain(self._get_row(formulation_id, owner_id))

    def list(self, owner_id: str) -> list[Formulation]:
        rows = (
            self.db.query(models.Formulation)
            .filter(models.Formulation.owner_id == owner_id)
            .order_by(models.Formulation.created_at.desc(), models.Formulation.id.desc())
            .all()
        )
        return [to_domain(row) for row in rows]

    def delete(self, formulation_id: int, owner_id: str) -> None:
        row = self._get_row(formulation_id, owner_id)
        self.db.delete(row)
        self.db.commit()
        logger.info("Deleted formulation %s for owner %s", formulation_id, owner_id)
