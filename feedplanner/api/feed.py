"""Feed analysis, requirement lookup and saved formulation endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from feedplanner.core.advisor import analyze
from feedplanner.core.auth import Account, require_auth
from feedplanner.core.calculations import (
    compute_totals,
    dedupe_items,
    item_breakdown,
    prepare_formulation_items,
)
from feedplanner.core.config import settings
from feedplanner.core.database import get_db
from feedplanner.core.domain import NUTRIENT_LABELS, Blend, BlendItem, Formulation
from feedplanner.core.logging import get_logger
from feedplanner.core.growth import utc_now
from feedplanner.core.requirements import get_requirements
from feedplanner.core.units import format_currency
from feedplanner.schemas.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    BlendItemSchema,
    FormulationCreate,
    FormulationResponse,
    ItemShareResponse,
    NutrientCheckResponse,
    RequirementRangeResponse,
    TotalsResponse,
)
from feedplanner.services.catalog import SqlIngredientCatalog
from feedplanner.services.formulation_store import SqlFormulationStore

logger = get_logger(__name__)

router = APIRouter(prefix="/feed", tags=["feed formulation"])


def _to_items(items: list[BlendItemSchema]) -> tuple[BlendItem, ...]:
    return tuple(
        BlendItem(
            ingredient_id=i.ingredient_id,
            inclusion_kg=i.inclusion_kg,
            cost_per_kg_override=i.cost_per_kg_override,
        )
        for i in items
    )


def _requirements_response(ranges) -> list[RequirementRangeResponse]:
    return [
        RequirementRangeResponse(
            species=r.species, stage=r.stage, nutrient=r.nutrient, min=r.min, max=r.max
        )
        for r in ranges
    ]


@router.get("/requirements/{species}/{stage}", response_model=list[RequirementRangeResponse])
def read_requirements(species: str, stage: str):
    """Nutrient target ranges for a species and production stage."""
    ranges = get_requirements(species, stage, strict=settings.REQUIREMENTS_STRICT)
    return _requirements_response(ranges)


@router.post("/analyze", response_model=AnalyzeResponse)
def analyze_blend(request: AnalyzeRequest, db: Session = Depends(get_db)):
    """
    Analyze a candidate blend.

    Returns:
    - Total quantity, cost and weighted nutrient content
    - Requirement ranges used for the species/stage
    - Per-nutrient status and ordered advice
    - Per-ingredient share of the mix
    """
    items = dedupe_items(_to_items(request.items))
    catalog = SqlIngredientCatalog(db).snapshot(item.ingredient_id for item in items)

    totals = compute_totals(items, catalog)
    breakdown = item_breakdown(items, catalog)
    requirements = get_requirements(request.species, request.stage, strict=settings.REQUIREMENTS_STRICT)
    result = analyze(totals, requirements)
    logger.debug(
        "Analyzed %d-item blend for %s/%s: %s",
        len(items), request.species, request.stage,
        ", ".join(f"{n}={s.value}" for n, s in result.status.items())
    )

    return AnalyzeResponse(
        species=request.species,
        stage=request.stage,
        target_weight_kg=request.target_weight_kg,
        totals=TotalsResponse(
            total_kg=round(totals.total_kg, 3),
            total_cost=round(totals.total_cost, 2),
            cost_per_kg=round(totals.cost_per_kg, 2),
            cp=round(totals.cp, 2),
            me=round(totals.me, 2),
            ndf=round(totals.ndf, 2),
            ca=round(totals.ca, 3),
            p=round(totals.p, 3),
        ),
        total_cost_display=format_currency(totals.total_cost, settings.CURRENCY),
        requirements=_requirements_response(requirements),
        status={nutrient: s.value for nutrient, s in result.status.items()},
        advice=list(result.advice),
        checks=[
            NutrientCheckResponse(
                nutrient=c.nutrient,
                label=NUTRIENT_LABELS[c.nutrient],
                value=round(c.value, 3),
                min=c.min,
                max=c.max,
                status=c.status.value,
            )
            for c in result.checks
        ],
        breakdown=[
            ItemShareResponse(
                ingredient_id=s.ingredient_id,
                ingredient_name=s.ingredient_name,
                inclusion_kg=s.inclusion_kg,
                share_pct=round(s.share_pct, 2),
                cost_per_kg=s.cost_per_kg,
                line_cost=round(s.line_cost, 2),
            )
            for s in breakdown
        ],
        ca_p_ratio=round(result.ca_p_ratio, 2) if result.ca_p_ratio is not None else None,
    )


@router.post("/formulations", response_model=FormulationResponse, status_code=201)
def save_formulation(
    data: FormulationCreate,
    db: Session = Depends(get_db),
    account: Account = Depends(require_auth)
):
    """Save a blend as a formulation or reusable template."""
    items = prepare_formulation_items(_to_items(data.items), is_template=data.is_template)
    name = data.name or f"Feed Mix - {data.species} {data.stage} {utc_now():%Y-%m-%d}"

    store = SqlFormulationStore(db)
    formulation_id = store.save(Formulation(
        name=name,
        owner_id=account.id,
        is_template=data.is_template,
        notes=data.notes,
        blend=Blend(
            species=data.species,
            stage=data.stage,
            target_weight_kg=data.target_weight_kg,
            items=items,
        ),
    ))
    return _formulation_to_response(store.get(formulation_id, account.id))


@router.get("/formulations", response_model=list[FormulationResponse])
def list_formulations(
    db: Session = Depends(get_db),
    account: Account = Depends(require_auth)
):
    """List the account's formulations and templates, newest first."""
    return [_formulation_to_response(f) for f in SqlFormulationStore(db).list(account.id)]


@router.get("/formulations/{formulation_id}", response_model=FormulationResponse)
def get_formulation(
    formulation_id: int,
    db: Session = Depends(get_db),
    account: Account = Depends(require_auth)
):
    """Get one saved formulation."""
    return _formulation_to_response(SqlFormulationStore(db).get(formulation_id, account.id))


@router.delete("/formulations/{formulation_id}", status_code=204)
def delete_formulation(
    formulation_id: int,
    db: Session = Depends(get_db),
    account: Account = Depends(require_auth)
):
    """Delete a saved formulation or template."""
    SqlFormulationStore(db).delete(formulation_id, account.id)
    return None


def _formulation_to_response(formulation: Formulation) -> FormulationResponse:
    blend = formulation.blend
    return FormulationResponse(
        id=formulation.id,
        name=formulation.name,
        species=blend.species,
        stage=blend.stage,
        target_weight_kg=blend.target_weight_kg,
        is_template=formulation.is_template,
        notes=formulation.notes,
        items=[
            BlendItemSchema(
                ingredient_id=item.ingredient_id,
                inclusion_kg=item.inclusion_kg,
                cost_per_kg_override=item.cost_per_kg_override,
            )
            for item in blend.items
        ],
        created_at=formulation.created_at,
        updated_at=formulation.updated_at,
    )
