"""
FastAPI application entry point and endpoint definitions.

This module initializes the FastAPI application and defines the API
routes of the soap fat-blend optimizer.

Responsibilities:
- Initialize FastAPI application with CORS and error handling
- Wire the optimizer services to the fat database
- Translate request models into optimizer calls
- Map optimizer outcomes onto HTTP status codes
"""

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Dict, Iterable, List, Set
import logging
import random

from soapblend.config import settings
from soapblend.models.fat import DietaryFilters, Fat, FatSummary
from soapblend.models.mixture import BlendAnalysis, CupboardResult, OptimizationResult
from soapblend.models.requests import (
    CalculateRequest,
    CupboardRequest,
    FattyAcidTargetResponse,
    FindBlendRequest,
    FindBlendResponse,
    OptimizeWeightsRequest,
    PropertyTargetsRequest,
    PropertyValidationResponse,
    RandomBlendRequest
)
from soapblend.services.blend_builder import BlendBuilder
from soapblend.services.composition import aggregate, calculate_ins, calculate_iodine, derive_properties
from soapblend.services.cupboard_advisor import CupboardAdvisor
from soapblend.services.fat_database import FatDatabaseError, FatDatabaseService, get_dietary_exclusions
from soapblend.services.random_generator import RandomBlendGenerator
from soapblend.services.scoring import BlendScorer, properties_out_of_range
from soapblend.services.target_mapper import properties_to_fatty_acid_targets, validate_property_targets
from soapblend.services.weight_optimizer import WeightOptimizer
from soapblend.utils.helpers import clean_target

# Configure logging
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """
    Initialize and configure the FastAPI application.

    Sets up:
    - CORS middleware for frontend communication
    - Exception handlers for consistent error responses
    - Application metadata

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title="Soap Fat-Blend Optimizer API",
        description="Finds fat blends whose fatty acid profile and soap properties match a target",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # Configure CORS to allow frontend communication
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:5173", "http://localhost:8080", "http://127.0.0.1:8080"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handler for consistent error responses
    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """
        Handle all uncaught exceptions with consistent error format.

        Args:
            request: The incoming request object
            exc: The exception that was raised

        Returns:
            JSONResponse: Formatted error response
        """
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal server error occurred",
                "error": str(exc)
            }
        )

    return app


# Initialize FastAPI application
app = create_app()

# Initialize service layer instances
fat_database = FatDatabaseService()
blend_scorer = BlendScorer()
weight_optimizer = WeightOptimizer(
    min_share=settings.MIN_FAT_PERCENT,
    max_share=settings.MAX_FAT_PERCENT,
    step_size=settings.OPTIMIZER_STEP_SIZE,
    iterations=settings.OPTIMIZER_ITERATIONS,
    threshold=settings.CONVERGENCE_THRESHOLD
)
blend_builder = BlendBuilder(weight_optimizer, blend_scorer, default_max_size=settings.DEFAULT_MAX_FATS)
random_generator = RandomBlendGenerator(
    weight_optimizer,
    blend_scorer,
    rng=random.Random(settings.RANDOM_SEED)
)
cupboard_advisor = CupboardAdvisor(
    blend_scorer,
    min_share=settings.MIN_FAT_PERCENT,
    max_share=settings.MAX_FAT_PERCENT
)


def _load_database() -> Dict[str, Fat]:
    try:
        return fat_database.load()
    except FatDatabaseError as e:
        logger.error(f"Fat database unavailable: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Fat database unavailable: {str(e)}"
        )


def _require_known(ids: Iterable[str], database: Dict[str, Fat]) -> None:
    unknown = [fat_id for fat_id in ids if fat_id not in database]
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown fat(s): {', '.join(unknown)}"
        )


def _exclusions(exclude: Iterable[str], dietary: DietaryFilters, database: Dict[str, Fat]) -> Set[str]:
    return set(exclude) | get_dietary_exclusions(database, dietary)


def _bad_request(e: ValueError) -> HTTPException:
    logger.warning(f"Rejected request: {str(e)}")
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@app.get("/")
def root():
    """
    Root endpoint for health check.

    Returns:
        dict: API status and version information
    """
    return {
        "message": "Soap Fat-Blend Optimizer API",
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/health")
def health_check():
    """
    Health check endpoint for monitoring and deployment.

    Returns:
        dict: Service status, fat database state and optimizer settings
    """
    warnings = []
    fat_count = 0
    try:
        fat_count = len(fat_database.load())
    except FatDatabaseError as e:
        warnings.append(f"Fat database could not be loaded: {str(e)}")

    return {
        "status": "healthy" if not warnings else "degraded",
        "service": "soap-fat-blend-optimizer",
        "fat_database": {
            "source": fat_database.source,
            "fats_loaded": fat_count
        },
        "optimizer": {
            "min_fat_percent": settings.MIN_FAT_PERCENT,
            "max_fat_percent": settings.MAX_FAT_PERCENT,
            "iterations": settings.OPTIMIZER_ITERATIONS,
            "step_size": settings.OPTIMIZER_STEP_SIZE,
            "random_seed": settings.RANDOM_SEED
        },
        "warnings": warnings if warnings else None
    }


@app.get("/fats", response_model=List[FatSummary])
def list_fats() -> List[FatSummary]:
    """List every fat in the database, sorted by name."""
    _load_database()
    return fat_database.list_fats()


@app.get("/fats/{fat_id}", response_model=Fat)
def get_fat(fat_id: str) -> Fat:
    """
    Get the full reference record of one fat.

    Raises:
        HTTPException: 404 if the fat is not in the database
    """
    _load_database()
    fat = fat_database.get_fat(fat_id)
    if fat is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Fat '{fat_id}' not found in database"
        )
    return fat


@app.post("/calculate", response_model=BlendAnalysis)
def calculate_blend(request: CalculateRequest) -> BlendAnalysis:
    """
    Evaluate a given mixture.

    Works with percentages or weights: shares are normalized by their
    total before the profile is computed.

    Args:
        request: CalculateRequest containing the mixture

    Returns:
        BlendAnalysis: Fatty acid profile, soap properties, iodine, INS and
        range checks

    Raises:
        HTTPException: 404 for unknown fats, 400 for an all-zero mixture
    """
    database = _load_database()
    _require_known([share.id for share in request.mixture], database)

    if sum(share.value for share in request.mixture) <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Mixture shares must total more than zero"
        )

    fatty_acids = aggregate(request.mixture, database)
    properties = derive_properties(fatty_acids)
    return BlendAnalysis(
        fatty_acids=fatty_acids,
        properties=properties,
        iodine=calculate_iodine(request.mixture, database),
        ins=calculate_ins(request.mixture, database),
        range_score=blend_scorer.range_score(properties),
        all_in_range=blend_scorer.all_in_range(properties),
        out_of_range=properties_out_of_range(properties, blend_scorer.ranges)
    )


@app.post("/optimize-weights", response_model=OptimizationResult)
def optimize_weights(request: OptimizeWeightsRequest) -> OptimizationResult:
    """
    Find the best shares for a fixed set of fats.

    Args:
        request: OptimizeWeightsRequest with fat ids, target and bounds

    Returns:
        OptimizationResult: Integer shares summing to 100 and their scores

    Raises:
        HTTPException: 404 for unknown fats, 400 for invalid bounds
    """
    database = _load_database()
    _require_known(request.fat_ids, database)

    try:
        mixture = weight_optimizer.optimize_weights(
            request.fat_ids,
            request.target,
            database,
            min_share=request.min_share,
            max_share=request.max_share
        )
        return blend_scorer.summarize(mixture, request.target, database)
    except ValueError as e:
        raise _bad_request(e)


@app.post("/find-blend", response_model=FindBlendResponse)
def find_blend(request: FindBlendRequest) -> FindBlendResponse:
    """
    Build a blend from the whole database for a target.

    Property targets are checked for consistency and converted to a
    fatty acid target before the greedy builder runs.

    Args:
        request: FindBlendRequest with a fatty acid or property target

    Returns:
        FindBlendResponse: Target used, exclusions and the built blend

    Raises:
        HTTPException: 422 for inconsistent property targets, 404 for
        unknown required/locked fats, 400 for invalid settings
    """
    database = _load_database()
    _require_known(request.require, database)
    _require_known([share.id for share in request.locked], database)

    if request.property_targets is not None:
        message = validate_property_targets(request.property_targets)
        if message:
            raise HTTPException(status_code=422, detail=message)
        target = properties_to_fatty_acid_targets(request.property_targets)
    else:
        target = clean_target(request.target)

    excluded = _exclusions(request.exclude, request.dietary, database)
    logger.info(f"Finding blend for target {target} with {len(excluded)} exclusion(s)")

    try:
        blend = blend_builder.find_best_set(
            target,
            database,
            max_size=request.max_fats,
            exclude=excluded,
            require=request.require,
            locked=request.locked
        )
    except ValueError as e:
        raise _bad_request(e)

    return FindBlendResponse(
        target={key: float(value) for key, value in target.items()},
        excluded=sorted(excluded),
        blend=blend
    )


@app.post("/generate-random", response_model=OptimizationResult)
def generate_random(request: RandomBlendRequest) -> OptimizationResult:
    """
    Generate a random blend with every property in range.

    Args:
        request: RandomBlendRequest with count range, exclusions and locks

    Returns:
        OptimizationResult: First in-range blend found, or the best draw
        (check all_in_range)

    Raises:
        HTTPException: 404 when too few fats are eligible, 400 for an
        invalid count range
    """
    database = _load_database()
    _require_known([share.id for share in request.locked], database)

    generator = random_generator
    if request.seed is not None:
        generator = RandomBlendGenerator(weight_optimizer, blend_scorer, rng=random.Random(request.seed))

    excluded = _exclusions(request.exclude, request.dietary, database)

    try:
        result = generator.generate(
            database,
            exclude=excluded,
            locked=request.locked,
            min_count=request.min_fats or settings.RANDOM_MIN_FATS,
            max_count=request.max_fats or settings.RANDOM_MAX_FATS,
            max_attempts=settings.RANDOM_MAX_ATTEMPTS
        )
    except ValueError as e:
        raise _bad_request(e)

    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not enough eligible fats to generate a blend"
        )
    return result


@app.post("/cupboard/suggest", response_model=CupboardResult)
def suggest_cupboard_additions(request: CupboardRequest) -> CupboardResult:
    """
    Suggest fats to add to what the user already has.

    Args:
        request: CupboardRequest with the base fats and options

    Returns:
        CupboardResult: Suggestions with weights to add, plus current and
        improved properties

    Raises:
        HTTPException: 404 for unknown base fats
    """
    database = _load_database()
    _require_known([share.id for share in request.base], database)
    _require_known([share.id for share in request.locked_suggestions], database)

    excluded = _exclusions(request.exclude, request.dietary, database)

    try:
        return cupboard_advisor.suggest_additions(
            request.base,
            database,
            exclude=excluded,
            max_suggestions=request.max_suggestions or settings.CUPBOARD_MAX_SUGGESTIONS,
            locked_suggestions=request.locked_suggestions,
            allow_base_adjustment=request.allow_base_adjustment
        )
    except ValueError as e:
        raise _bad_request(e)


@app.post("/properties/validate", response_model=PropertyValidationResponse)
def check_property_targets(request: PropertyTargetsRequest) -> PropertyValidationResponse:
    """Check soap property targets for combinations no blend can reach."""
    message = validate_property_targets(request.targets)
    return PropertyValidationResponse(valid=message is None, message=message)


@app.post("/properties/to-fatty-acids", response_model=FattyAcidTargetResponse)
def convert_property_targets(request: PropertyTargetsRequest) -> FattyAcidTargetResponse:
    """Convert soap property targets into an approximate fatty acid target."""
    return FattyAcidTargetResponse(targets=properties_to_fatty_acid_targets(request.targets))


def run():
    """Run the API with uvicorn (development server)."""
    import uvicorn

    uvicorn.run(
        "soapblend.main:app",
        host="0.0.0.0",
        port=8000,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    run()
