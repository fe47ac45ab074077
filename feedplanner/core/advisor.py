"""
Compare blend totals against requirement ranges and produce advice.

Status per nutrient:
    BELOW  value < min
    ABOVE  value > max
    OK     otherwise

Advice follows the fixed nutrient order (cp, me, ndf, ca, p).
"""

import enum
from dataclasses import dataclass
from typing import Iterable, Optional

from feedplanner.core.domain import (
    NUTRIENTS,
    NUTRIENT_LABELS,
    NUTRIENT_UNITS,
    RequirementRange,
    Totals,
)

ALL_OK_MESSAGE = "Formulation meets all nutritional requirements"

# Corrective hints for each direction
LOW_HINTS = {
    "cp": "add protein-rich ingredients such as oilseed cakes or legume hay",
    "me": "add energy-dense ingredients such as maize or other cereal grains",
    "ndf": "add roughage such as grass hay or crop residues",
    "ca": "add a calcium source such as limestone or bone meal",
    "p": "add a phosphorus source such as bone meal or wheat bran",
}

HIGH_HINTS = {
    "cp": "reduce protein concentrates or dilute with energy feeds",
    "me": "replace part of the grain with roughage",
    "ndf": "reduce roughage and add concentrates",
    "ca": "reduce calcium supplements",
    "p": "reduce bran and phosphorus supplements",
}


class NutrientStatus(str, enum.Enum):
    BELOW = "BELOW"
    OK = "OK"
    ABOVE = "ABOVE"


@dataclass(frozen=True)
class NutrientCheck:
    nutrient: str
    value: float
    min: float
    max: float
    status: NutrientStatus


@dataclass(frozen=True)
class AnalysisResult:
    status: dict[str, NutrientStatus]
    advice: tuple[str, ...]
    checks: tuple[NutrientCheck, ...]
    ca_p_ratio: Optional[float]

    @property
    def all_ok(self) -> bool:
        return all(s == NutrientStatus.OK for s in self.status.values())


def classify(value: float, minimum: float, maximum: float) -> NutrientStatus:
    """Place a value relative to an inclusive [min, max] range."""
    if value < minimum:
        return NutrientStatus.BELOW
    if value > maximum:
        return NutrientStatus.ABOVE
    return NutrientStatus.OK


def _format_value(nutrient: str, value: float) -> str:
    unit = NUTRIENT_UNITS[nutrient]
    if unit == "%":
        return f"{value:.2f}%"
    return f"{value:.2f} {unit}"


def advice_for(check: NutrientCheck) -> Optional[str]:
    """
    Build the advice line for one nutrient check.

    Args:
        check: Result of comparing a nutrient against its range

    Returns:
        Advice text, or None when the nutrient is within range
    """
    label = NUTRIENT_LABELS[check.nutrient]
    value = _format_value(check.nutrient, check.value)
    if check.status == NutrientStatus.BELOW:
        bound = _format_value(check.nutrient, check.min)
        return f"{label} is deficient ({value} < {bound}): {LOW_HINTS[check.nutrient]}"
    if check.status == NutrientStatus.ABOVE:
        bound = _format_value(check.nutrient, check.max)
        return f"{label} is excessive ({value} > {bound}): {HIGH_HINTS[check.nutrient]}"
    return None


def ca_p_ratio(totals: Totals) -> Optional[float]:
    """Calcium to phosphorus ratio of the blend, None without phosphorus."""
    if totals.p <= 0:
        return None
    return totals.ca / totals.p


def analyze(totals: Totals, requirements: Iterable[RequirementRange]) -> AnalysisResult:
    """
    Assess blend totals against requirement ranges.

    Args:
        totals: Output of compute_totals
        requirements: Ranges from get_requirements; nutrients without a
            range are not assessed

    Returns:
        AnalysisResult with per-nutrient status, ordered advice and checks
    """
    by_nutrient = {req.nutrient: req for req in requirements}

    checks = []
    for nutrient in NUTRIENTS:
        req = by_nutrient.get(nutrient)
        if req is None:
            continue
        value = totals.get(nutrient)
        checks.append(NutrientCheck(
            nutrient=nutrient,
            value=value,
            min=req.min,
            max=req.max,
            status=classify(value, req.min, req.max),
        ))

    advice = [line for line in (advice_for(c) for c in checks) if line is not None]
    if not advice:
        advice = [ALL_OK_MESSAGE]

    return AnalysisResult(
        status={c.nutrient: c.status for c in checks},
        advice=tuple(advice),
        checks=tuple(checks),
        ca_p_ratio=ca_p_ratio(totals),
    )
