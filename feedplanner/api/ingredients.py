"""Ingredient catalog API endpoints."""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from feedplanner.core.database import get_db
from feedplanner.core.domain import Ingredient as IngredientValue
from feedplanner.models.models import Ingredient
from feedplanner.schemas.schemas import (
    IngredientCreate,
    IngredientUpdate,
    IngredientResponse,
    NutrientProfileSchema,
)
from feedplanner.services.catalog import SqlIngredientCatalog, to_domain

router = APIRouter(prefix="/ingredient", tags=["ingredients"])


@router.post("", response_model=IngredientResponse, status_code=201)
def create_ingredient(ingredient: IngredientCreate, db: Session = Depends(get_db)):
    """Add an ingredient to the catalog."""
    db_ingredient = Ingredient(
        name=ingredient.name,
        category=ingredient.category.lower(),
        cost_per_kg=ingredient.cost_per_kg,
        **ingredient.nutrients.model_dump(),
    )
    db.add(db_ingredient)
    db.commit()
    db.refresh(db_ingredient)
    return _ingredient_to_response(to_domain(db_ingredient))


@router.get("/{ingredient_id}", response_model=IngredientResponse)
def get_ingredient(ingredient_id: int, db: Session = Depends(get_db)):
    """Get an ingredient by ID."""
    return _ingredient_to_response(SqlIngredientCatalog(db).get(ingredient_id))


@router.get("", response_model=list[IngredientResponse])
def list_ingredients(
    q: Optional[str] = Query(None, description="Filter by name or category"),
    db: Session = Depends(get_db)
):
    """List catalog ingredients."""
    return [_ingredient_to_response(ing) for ing in SqlIngredientCatalog(db).list(q)]


@router.put("/{ingredient_id}", response_model=IngredientResponse)
def update_ingredient(
    ingredient_id: int,
    ingredient_update: IngredientUpdate,
    db: Session = Depends(get_db)
):
    """Update an ingredient."""
    update_data = ingredient_update.model_dump(exclude_unset=True)
    nutrients = update_data.pop("nutrients", None)
    if nutrients:
        update_data.update(nutrients)
    if "category" in update_data:
        update_data["category"] = update_data["category"].lower()

    return _ingredient_to_response(SqlIngredientCatalog(db).update(ingredient_id, update_data))


@router.delete("/{ingredient_id}", status_code=204)
def delete_ingredient(ingredient_id: int, db: Session = Depends(get_db)):
    """Delete an ingredient that no saved formulation uses."""
    SqlIngredientCatalog(db).delete(ingredient_id)
    return None


def _ingredient_to_response(ingredient: IngredientValue) -> IngredientResponse:
    n = ingredient.nutrients
    return IngredientResponse(
        id=ingredient.id,
        name=ingredient.name,
        category=ingredient.category,
        cost_per_kg=ingredient.cost_per_kg,
        nutrients=NutrientProfileSchema(cp=n.cp, me=n.me, ndf=n.ndf, ca=n.ca, p=n.p),
    )
