"""
Blend math for feed formulation.

totalKg:   Σ inclusionKg over items with inclusionKg > 0
totalCost: Σ inclusionKg × effective cost per kg
nutrient:  Σ (inclusionKg × nutrient) / totalKg  (inclusion-weighted average)
"""

import math
from typing import Iterable, Mapping, Optional

from feedplanner.core.domain import (
    NUTRIENTS,
    BlendItem,
    Ingredient,
    ItemShare,
    Totals,
)
from feedplanner.core.errors import NotFoundError, ValidationError
from feedplanner.core.logging import get_logger

logger = get_logger(__name__)

CatalogSnapshot = Mapping[int, Ingredient]


def effective_cost(item: BlendItem, ingredient: Ingredient) -> float:
    """
    Cost per kg used for an item.

    Args:
        item: Blend item, possibly carrying a cost override
        ingredient: Catalog entry the item refers to

    Returns:
        The override when present, otherwise the catalog cost
    """
    if item.cost_per_kg_override is not None:
        return item.cost_per_kg_override
    return ingredient.cost_per_kg


def weighted_average(pairs: Iterable[tuple[float, float]]) -> float:
    """
    Inclusion-weighted average of (weight, value) pairs.

    Returns 0 when the total weight is not positive.
    """
    total_weight = 0.0
    total = 0.0
    for weight, value in pairs:
        total_weight += weight
        total += weight * value
    if total_weight <= 0:
        return 0
    return total / total_weight


def _validate_item(item: BlendItem) -> None:
    # Rejects NaN and infinities as well as negatives
    if not (math.isfinite(item.inclusion_kg) and item.inclusion_kg >= 0):
        raise ValidationError(
            f"Inclusion for ingredient {item.ingredient_id} must be a non-negative number ({item.inclusion_kg})"
        )
    override = item.cost_per_kg_override
    if override is not None and not (math.isfinite(override) and override >= 0):
        raise ValidationError(
            f"Cost override for ingredient {item.ingredient_id} must be a non-negative number"
        )


def _resolve(
    items: Iterable[BlendItem],
    catalog: CatalogSnapshot
) -> list[tuple[BlendItem, Ingredient]]:
    """Validate items and pair each included one with its catalog entry."""
    resolved = []
    for item in items:
        _validate_item(item)
        if item.inclusion_kg == 0:
            continue
        ingredient = catalog.get(item.ingredient_id)
        if ingredient is None:
            raise NotFoundError(f"Ingredient {item.ingredient_id} not found")
        resolved.append((item, ingredient))
    if not resolved:
        raise ValidationError("Blend needs at least one ingredient with a positive quantity")
    return resolved


def compute_totals(items: Iterable[BlendItem], catalog: CatalogSnapshot) -> Totals:
    """
    Aggregate blend items into total quantity, cost and nutrient content.

    Args:
        items: Blend items; zero-quantity items are ignored
        catalog: Snapshot of the ingredient catalog keyed by ingredient id

    Returns:
        Totals for the blend

    Raises:
        ValidationError: negative quantity or cost, or nothing included
        NotFoundError: an included item references an unknown ingredient
    """
    resolved = _resolve(items, catalog)

    total_kg = sum(item.inclusion_kg for item, _ in resolved)
    total_cost = sum(item.inclusion_kg * effective_cost(item, ing) for item, ing in resolved)

    nutrients = {
        name: weighted_average(
            (item.inclusion_kg, ing.nutrients.get(name)) for item, ing in resolved
        )
        for name in NUTRIENTS
    }

    totals = Totals(total_kg=total_kg, total_cost=total_cost, **nutrients)
    logger.debug(
        "Computed totals for %d ingredients: %.2f kg, cost %.2f",
        len(resolved), totals.total_kg, totals.total_cost
    )
    return totals


def item_breakdown(items: Iterable[BlendItem], catalog: CatalogSnapshot) -> list[ItemShare]:
    """
    Per-ingredient share of the mix and line cost.

    Args:
        items: Blend items; zero-quantity items are ignored
        catalog: Snapshot of the ingredient catalog keyed by ingredient id

    Returns:
        One ItemShare per included item, in input order
    """
    resolved = _resolve(items, catalog)
    total_kg = sum(item.inclusion_kg for item, _ in resolved)

    shares = []
    for item, ing in resolved:
        cost = effective_cost(item, ing)
        shares.append(ItemShare(
            ingredient_id=ing.id,
            ingredient_name=ing.name,
            inclusion_kg=item.inclusion_kg,
            share_pct=(item.inclusion_kg / total_kg) * 100,
            cost_per_kg=cost,
            line_cost=item.inclusion_kg * cost,
        ))
    return shares


def prepare_formulation_items(
    items: Iterable[BlendItem],
    is_template: bool
) -> tuple[BlendItem, ...]:
    """
    Apply the commit rule for persisting a blend.

    Templates keep zero quantities so they can be filled in later; a
    one-off formulation drops them and must include something.

    Args:
        items: Items as entered
        is_template: Whether the blend is saved as a reusable template

    Returns:
        Items to persist
    """
    items = tuple(items)
    for item in items:
        _validate_item(item)

    if is_template:
        if not items:
            raise ValidationError("Add at least one ingredient to save a template")
        return items

    kept = tuple(item for item in items if item.inclusion_kg > 0)
    if not kept:
        raise ValidationError("Formulation needs at least one ingredient with a positive quantity")
    return kept


def dedupe_items(items: Iterable[BlendItem]) -> tuple[BlendItem, ...]:
    """Merge repeated ingredient references, summing their quantities.

    The last cost override seen for an ingredient wins.
    """
    merged: dict[int, BlendItem] = {}
    for item in items:
        _validate_item(item)
        existing: Optional[BlendItem] = merged.get(item.ingredient_id)
        if existing is None:
            merged[item.ingredient_id] = item
            continue
        override = item.cost_per_kg_override
        if override is None:
            override = existing.cost_per_kg_override
        merged[item.ingredient_id] = BlendItem(
            ingredient_id=item.ingredient_id,
            inclusion_kg=existing.inclusion_kg + item.inclusion_kg,
            cost_per_kg_override=override,
        )
    return tuple(merged.values())
