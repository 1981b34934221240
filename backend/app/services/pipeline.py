"""
End-to-end visualization pipeline.

dataset + query + untrusted proposal -> profile -> chart type decision ->
validated spec -> prepared chart data.
"""
import logging
from typing import List, Optional, Tuple
from app.core.config import Settings
from app.core.performance import track_performance
from app.core.sanitization import sanitize_for_logging
from app.core.schemas import CHART_TYPES, ChartProposal, ChartSpec, ChartType, Dataset, PipelineResult
from app.services.preparer import prepare_chart_data
from app.services.profiler import Profile, profile_dataset
from app.services.recommender import query_driven_type, recommend_chart_type
from app.services.validator import validate_chart_spec

logger = logging.getLogger(__name__)

AXIS_TYPES = ('bar', 'line')


def _carry_bindings(spec: ChartSpec, new_type: ChartType) -> ChartSpec:
    """Move key bindings across when switching between pie and an axis chart."""
    carried = ChartSpec(
        type=new_type,
        x_key=spec.x_key,
        y_key=spec.y_key,
        name_key=spec.name_key,
        value_key=spec.value_key,
    )
    if new_type == 'pie' and spec.type in AXIS_TYPES:
        carried.name_key = spec.name_key or spec.x_key
        carried.value_key = spec.value_key or spec.y_key
    elif new_type in AXIS_TYPES and spec.type == 'pie':
        carried.x_key = spec.x_key or spec.name_key
        carried.y_key = spec.y_key or spec.value_key
    return carried


def resolve_chart_type(
    dataset: Dataset,
    profile: Profile,
    query: str,
    proposal: Optional[ChartSpec],
) -> Tuple[ChartSpec, ChartType, List[str]]:
    """
    Decide the chart type for a proposal.

    A missing or unsupported proposed type is replaced by the recommendation.
    A supported type is kept unless the query wording (trend or proportion)
    points to a different type.

    Returns the spec to validate, the recommended type and any warnings.
    """
    spec = proposal or ChartSpec()
    recommended = recommend_chart_type(dataset, query, spec.type, profile)
    warnings: List[str] = []

    if spec.type not in CHART_TYPES:
        if spec.type:
            warnings.append(f"Chart type '{spec.type}' is not supported; using '{recommended}'")
        else:
            warnings.append(f"Chart type not provided; using '{recommended}'")
        return _carry_bindings(spec, recommended), recommended, warnings

    evidence = query_driven_type(profile, query)
    if evidence and evidence != spec.type:
        warnings.append(f"Chart type '{spec.type}' contradicts the question; using '{evidence}'")
        return _carry_bindings(spec, evidence), recommended, warnings

    return _carry_bindings(spec, spec.type), recommended, warnings


@track_performance("visualization_pipeline")
def run_visualization_pipeline(
    dataset: Dataset,
    query: str,
    proposal: Optional[ChartProposal] = None,
    settings: Optional[Settings] = None,
) -> PipelineResult:
    """Run profiling, type resolution, validation and preparation for one question."""
    profile = profile_dataset(dataset)
    spec, recommended, warnings = resolve_chart_type(dataset, profile, query, proposal)

    validation = validate_chart_spec(spec, dataset, profile, query)
    if not validation.is_valid:
        logger.info(f"No chart for query '{sanitize_for_logging(query)}': {validation.errors}")
        return PipelineResult(
            is_valid=False,
            errors=validation.errors,
            warnings=warnings + validation.warnings,
            recommended_type=recommended,
        )

    chart = prepare_chart_data(dataset, validation.corrected_spec, settings)
    warnings = warnings + validation.warnings
    logger.info(
        f"Prepared {chart.type} chart ({len(chart.data)} rows, {len(warnings)} repairs) "
        f"for query '{sanitize_for_logging(query)}'"
    )
    return PipelineResult(
        is_valid=True,
        errors=[],
        warnings=warnings,
        recommended_type=recommended,
        corrected_spec=validation.corrected_spec,
        chart=chart,
    )
