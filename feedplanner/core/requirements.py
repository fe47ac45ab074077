"""
Nutrient target ranges by species and production stage.

Values are on a dry-matter basis: cp, ndf, ca and p in %, me in MJ/kg DM.
Unknown (species, stage) pairs fall back to DEFAULT_KEY unless strict
lookup is requested.
"""

from feedplanner.core.domain import NUTRIENTS, RequirementRange, Species, Stage
from feedplanner.core.errors import NotFoundError
from feedplanner.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_KEY = (Species.CATTLE.value, Stage.MAINTENANCE.value)

# (species, stage) -> nutrient -> (min, max)
REQUIREMENT_TABLE = {
    ("cattle", "growth"): {
        "cp": (14, 16), "me": (10.5, 11.5), "ndf": (30, 40), "ca": (0.5, 0.8), "p": (0.3, 0.45),
    },
    ("cattle", "lactation"): {
        "cp": (16, 18), "me": (10.5, 12), "ndf": (28, 35), "ca": (0.6, 0.9), "p": (0.35, 0.45),
    },
    ("cattle", "maintenance"): {
        "cp": (8, 10), "me": (8, 9.5), "ndf": (40, 55), "ca": (0.3, 0.5), "p": (0.2, 0.3),
    },
    ("cattle", "dairy"): {
        "cp": (15, 17), "me": (10.5, 11.5), "ndf": (28, 35), "ca": (0.6, 0.8), "p": (0.35, 0.45),
    },
    ("cattle", "fattening"): {
        "cp": (12, 14), "me": (11, 12.5), "ndf": (20, 30), "ca": (0.4, 0.7), "p": (0.25, 0.4),
    },
    ("cattle", "breeding"): {
        "cp": (10, 12), "me": (9, 10.5), "ndf": (35, 45), "ca": (0.4, 0.6), "p": (0.25, 0.35),
    },
    ("sheep", "growth"): {
        "cp": (14, 17), "me": (10.5, 12), "ndf": (25, 35), "ca": (0.4, 0.8), "p": (0.25, 0.4),
    },
    ("sheep", "lactation"): {
        "cp": (14, 16), "me": (10, 11.5), "ndf": (30, 40), "ca": (0.4, 0.7), "p": (0.3, 0.4),
    },
    ("sheep", "maintenance"): {
        "cp": (8, 10), "me": (8, 9), "ndf": (40, 55), "ca": (0.2, 0.4), "p": (0.15, 0.3),
    },
    ("sheep", "dairy"): {
        "cp": (15, 17), "me": (10.5, 11.5), "ndf": (30, 38), "ca": (0.5, 0.8), "p": (0.3, 0.45),
    },
    ("sheep", "fattening"): {
        "cp": (12, 15), "me": (11, 12.5), "ndf": (20, 30), "ca": (0.4, 0.7), "p": (0.25, 0.4),
    },
    ("sheep", "breeding"): {
        "cp": (10, 12), "me": (9, 10), "ndf": (35, 45), "ca": (0.3, 0.5), "p": (0.2, 0.3),
    },
    ("goat", "growth"): {
        "cp": (14, 16), "me": (10, 11.5), "ndf": (25, 35), "ca": (0.4, 0.8), "p": (0.25, 0.4),
    },
    ("goat", "lactation"): {
        "cp": (14, 17), "me": (10, 11.5), "ndf": (28, 38), "ca": (0.5, 0.8), "p": (0.3, 0.45),
    },
    ("goat", "maintenance"): {
        "cp": (8, 11), "me": (8, 9.5), "ndf": (35, 50), "ca": (0.3, 0.5), "p": (0.2, 0.3),
    },
    ("goat", "dairy"): {
        "cp": (15, 18), "me": (10.5, 12), "ndf": (28, 36), "ca": (0.6, 0.9), "p": (0.35, 0.45),
    },
    ("goat", "fattening"): {
        "cp": (12, 15), "me": (10.5, 12), "ndf": (20, 32), "ca": (0.4, 0.7), "p": (0.25, 0.4),
    },
    ("goat", "breeding"): {
        "cp": (10, 12), "me": (9, 10), "ndf": (32, 45), "ca": (0.35, 0.55), "p": (0.2, 0.35),
    },
}


def _normalize(value: str) -> str:
    return (value or "").strip().lower()


def has_requirements(species: str, stage: str) -> bool:
    """Whether the table defines this exact combination."""
    return (_normalize(species), _normalize(stage)) in REQUIREMENT_TABLE


def get_requirements(species: str, stage: str, strict: bool = False) -> list[RequirementRange]:
    """
    Look up nutrient target ranges.

    Args:
        species: Animal species (cattle, sheep, goat)
        stage: Production stage (growth, lactation, maintenance, ...)
        strict: Raise NotFoundError instead of using the default pair

    Returns:
        RequirementRange per nutrient, in fixed nutrient order. The ranges
        carry the species/stage they were actually taken from.
    """
    key = (_normalize(species), _normalize(stage))
    ranges = REQUIREMENT_TABLE.get(key)

    if ranges is None:
        if strict:
            raise NotFoundError(f"No nutrient requirements defined for {species}/{stage}")
        logger.warning(
            "No requirements for %s/%s, falling back to %s/%s",
            species, stage, *DEFAULT_KEY
        )
        key = DEFAULT_KEY
        ranges = REQUIREMENT_TABLE[key]

    return [
        RequirementRange(
            species=key[0],
            stage=key[1],
            nutrient=nutrient,
            min=ranges[nutrient][0],
            max=ranges[nutrient][1],
        )
        for nutrient in NUTRIENTS
        if nutrient in ranges
    ]
