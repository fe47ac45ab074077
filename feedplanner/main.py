"""
Livestock Feed Planner API - Main Application

Feed formulation analysis for cattle, sheep and goats, plus per-animal
fattening performance tracking.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from feedplanner.core.config import settings
from feedplanner.core.database import init_db
from feedplanner.core.errors import NotFoundError, ValidationError
from feedplanner.core.logging import get_logger, setup_logging
from feedplanner.api import animals, feed, ingredients

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)

init_db()

app = FastAPI(
    title=settings.APP_NAME,
    description="""
    ## Livestock Feed Planner API

    Formulate feed blends and track fattening performance.

    ### Features
    - Blend totals: quantity, cost and inclusion-weighted nutrients
    - Species/stage nutrient requirement ranges (CP, ME, NDF, Ca, P)
    - Per-nutrient status and ordered recommendations
    - Saved formulations and templates per account
    - Fattening episodes with ADG, feed cost and feed conversion

    ### Core Endpoints
    - `/ingredient` - Ingredient catalog
    - `/feed/analyze` - Analyze a blend
    - `/feed/formulations` - Saved formulations
    - `/animal` - Animals, weighings and fattening episodes
    """,
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


app.include_router(ingredients.router)
app.include_router(feed.router)
app.include_router(animals.router)


@app.get("/")
def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
        "docs": "/docs",
        "endpoints": {
            "ingredients": "/ingredient",
            "analyze": "/feed/analyze",
            "requirements": "/feed/requirements/{species}/{stage}",
            "formulations": "/feed/formulations",
            "animals": "/animal",
        }
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
