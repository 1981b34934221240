import logging
from fastapi import APIRouter, HTTPException, Request
from slowapi.errors import RateLimitExceeded
from app.core.config import get_settings
from app.core.errors import ErrorCodes, get_error_response
from app.core.performance import track_performance
from app.core.sanitization import sanitize_for_logging
from app.core.schemas import (
    AggregateRequest,
    AggregateResponse,
    Dataset,
    ProfileRequest,
    ProfileResponse,
    RecommendRequest,
    RecommendResponse,
    VisualizationRequest,
    VisualizationResponse,
)
from app.services.aggregator import aggregate
from app.services.pipeline import run_visualization_pipeline
from app.services.profiler import profile_dataset
from app.services.recommender import recommend_chart_type

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(request: Request, status_code: int, code: str, detail: str = None) -> HTTPException:
    error_info = get_error_response(code, detail)
    error_info['correlation_id'] = getattr(request.state, 'correlation_id', 'unknown')
    return HTTPException(status_code=status_code, detail=error_info)


def _check_dataset_size(request: Request, dataset: Dataset) -> None:
    settings = request.app.state.settings
    if len(dataset) > settings.max_dataset_rows:
        raise _error(
            request, 413, ErrorCodes.DATASET_TOO_LARGE,
            f"Maximum is {settings.max_dataset_rows} rows; received {len(dataset)}."
        )


@router.get("/health")
async def health_check():
    return {"status": "ok"}


@router.post("/profile", response_model=ProfileResponse)
@track_performance("profile_dataset")
async def profile_endpoint(body: ProfileRequest, request: Request):
    """Classify every field of the dataset as numeric, categorical or date."""
    _check_dataset_size(request, body.dataset)
    profile = profile_dataset(body.dataset)
    return ProfileResponse(row_count=len(body.dataset), fields=list(profile.values()))


@router.post("/recommend", response_model=RecommendResponse)
@track_performance("recommend_chart_type")
async def recommend_endpoint(body: RecommendRequest, request: Request):
    """Recommend a chart type for the dataset and question."""
    _check_dataset_size(request, body.dataset)
    chart_type = recommend_chart_type(body.dataset, body.query, body.suggested_type)
    return RecommendResponse(chart_type=chart_type)


@router.post("/aggregate", response_model=AggregateResponse)
@track_performance("aggregate")
async def aggregate_endpoint(body: AggregateRequest, request: Request):
    """Group, reduce, sort and limit the dataset as described by the config."""
    _check_dataset_size(request, body.dataset)
    return AggregateResponse(rows=aggregate(body.dataset, body.config))


async def _visualize(body: VisualizationRequest, request: Request) -> VisualizationResponse:
    _check_dataset_size(request, body.dataset)
    logger.info(
        f"Visualizing {len(body.dataset)} rows for query: {sanitize_for_logging(body.query)}"
    )

    result = run_visualization_pipeline(
        body.dataset, body.query, body.proposal, request.app.state.settings
    )
    if not result.is_valid:
        raise _error(request, 400, ErrorCodes.NO_DATA)

    proposal = body.proposal
    return VisualizationResponse(
        is_valid=result.is_valid,
        errors=result.errors,
        warnings=result.warnings,
        recommended_type=result.recommended_type,
        corrected_spec=result.corrected_spec,
        chart=result.chart,
        sql=proposal.sql if proposal else None,
        insights=proposal.insights if proposal else [],
        summary=proposal.summary if proposal else [],
        confidence=proposal.confidence if proposal else None,
        next_steps=proposal.next_steps if proposal else None,
    )


@router.post("/visualize", response_model=VisualizationResponse)
async def visualize_endpoint(body: VisualizationRequest, request: Request):
    """
    Turn a question, its dataset and an untrusted chart proposal into chart data.

    Rate limited per client IP (RATE_LIMIT_PER_MINUTE).
    """
    limiter = request.app.state.limiter
    app_settings = request.app.state.settings

    @limiter.limit(f"{app_settings.rate_limit_per_minute}/minute")
    async def _rate_limited_handler(request: Request):
        return await _visualize(body, request)

    try:
        return await _rate_limited_handler(request)
    except (HTTPException, RateLimitExceeded):
        raise
    except Exception as e:
        logger.error(f"Unexpected error preparing chart: {e}", exc_info=True)
        raise _error(request, 500, ErrorCodes.UNKNOWN_ERROR)
