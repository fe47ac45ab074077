"""
Seed data for the Livestock Feed Planner database.

Includes a sample ingredient catalog of common West African feedstuffs.
Nutrients are approximate dry-matter values (cp, ndf, ca, p in %, me in
MJ/kg); costs are indicative NGN per kg.
"""

from feedplanner.core.database import SessionLocal, init_db
from feedplanner.core.logging import get_logger, setup_logging
from feedplanner.models.models import Ingredient

logger = get_logger(__name__)

SAMPLE_INGREDIENTS = [
    {"name": "Maize grain", "category": "energy", "cost_per_kg": 420,
     "cp": 9.0, "me": 13.5, "ndf": 10.0, "ca": 0.03, "p": 0.28},
    {"name": "Sorghum grain", "category": "energy", "cost_per_kg": 380,
     "cp": 10.5, "me": 12.8, "ndf": 12.0, "ca": 0.04, "p": 0.30},
    {"name": "Wheat offal", "category": "energy", "cost_per_kg": 250,
     "cp": 16.0, "me": 11.0, "ndf": 42.0, "ca": 0.13, "p": 1.10},
    {"name": "Cotton seed cake", "category": "protein", "cost_per_kg": 350,
     "cp": 36.0, "me": 11.5, "ndf": 35.0, "ca": 0.20, "p": 1.00},
    {"name": "Groundnut cake", "category": "protein", "cost_per_kg": 600,
     "cp": 45.0, "me": 12.5, "ndf": 14.0, "ca": 0.20, "p": 0.60},
    {"name": "Soybean meal", "category": "protein", "cost_per_kg": 750,
     "cp": 48.0, "me": 13.2, "ndf": 12.0, "ca": 0.30, "p": 0.70},
    {"name": "Brewers dried grain", "category": "protein", "cost_per_kg": 200,
     "cp": 25.0, "me": 10.5, "ndf": 48.0, "ca": 0.30, "p": 0.55},
    {"name": "Groundnut haulms", "category": "roughage", "cost_per_kg": 150,
     "cp": 12.0, "me": 8.5, "ndf": 45.0, "ca": 1.20, "p": 0.15},
    {"name": "Rice straw", "category": "roughage", "cost_per_kg": 60,
     "cp": 4.0, "me": 6.5, "ndf": 70.0, "ca": 0.25, "p": 0.08},
    {"name": "Maize stover", "category": "roughage", "cost_per_kg": 70,
     "cp": 5.5, "me": 7.5, "ndf": 68.0, "ca": 0.35, "p": 0.10},
    {"name": "Limestone", "category": "mineral", "cost_per_kg": 100,
     "cp": 0, "me": 0, "ndf": 0, "ca": 38.0, "p": 0},
    {"name": "Bone meal", "category": "mineral", "cost_per_kg": 300,
     "cp": 0, "me": 0, "ndf": 0, "ca": 30.0, "p": 14.0},
    {"name": "Salt", "category": "mineral", "cost_per_kg": 200,
     "cp": 0, "me": 0, "ndf": 0, "ca": 0, "p": 0},
]


def seed_sample_ingredients(db):
    """Insert sample ingredients that are not already in the catalog."""
    added = 0
    for data in SAMPLE_INGREDIENTS:
        existing = db.query(Ingredient).filter(Ingredient.name == data["name"]).first()
        if not existing:
            db.add(Ingredient(**data))
            added += 1

    db.commit()
    logger.info("Sample ingredients seeded (%d new).", added)


def run_seed():
    """Run all seed functions."""
    init_db()
    db = SessionLocal()
    try:
        seed_sample_ingredients(db)
        logger.info("Seed data complete!")
    finally:
        db.close()


if __name__ == "__main__":
    setup_logging()
    run_seed()
