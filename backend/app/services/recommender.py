"""
Chart type recommendation.

Maps dataset shape and query wording to one of bar/line/pie/table using
deterministic rules evaluated in order; the first rule that fires wins.
"""
import logging
from typing import Optional
from app.core.schemas import ChartType, Dataset, FieldKind
from app.services.profiler import Profile, profile_dataset, fields_of_kind, first_field_of_kind

logger = logging.getLogger(__name__)

TREND_KEYWORDS = ('trend', 'over time', 'timeline')
PROPORTION_KEYWORDS = ('proportion', 'distribution', 'breakdown')

PIE_MAX_CATEGORIES = 8
PIE_PREFERRED_CATEGORIES = (2, 5)
LINE_MIN_ROWS = 20


def _contains_any(text: str, keywords) -> bool:
    return any(keyword in text for keyword in keywords)


def first_category_cardinality(profile: Profile) -> int:
    """Distinct values of the first categorical field, 0 when there is none."""
    name = first_field_of_kind(profile, FieldKind.CATEGORICAL)
    return profile[name].unique_count if name else 0


def query_driven_type(profile: Profile, query: str) -> Optional[ChartType]:
    """Type implied by the query wording alone (trend or proportion), else None."""
    text = (query or "").lower()
    if _contains_any(text, TREND_KEYWORDS):
        return 'line' if fields_of_kind(profile, FieldKind.DATE) else 'bar'
    if _contains_any(text, PROPORTION_KEYWORDS):
        return 'pie' if first_category_cardinality(profile) <= PIE_MAX_CATEGORIES else 'bar'
    return None


def recommend_chart_type(
    dataset: Dataset,
    query: str,
    suggested_type: Optional[str] = None,
    profile: Optional[Profile] = None,
) -> ChartType:
    """
    Recommend a chart type for a dataset and question.

    Rules, first match wins:
    1. trend wording -> line if a date field exists, else bar
    2. proportion wording -> pie if the first categorical field has <= 8 values, else bar
    3. a date field and more than 20 rows -> line
    4. first categorical field has 2..5 values -> pie
    5. a categorical and a numeric field -> bar
    6. table

    ``suggested_type`` is accepted so callers can pass the proposal through,
    but the rules never depend on it.
    """
    if profile is None:
        profile = profile_dataset(dataset)

    chart_type = query_driven_type(profile, query)
    if chart_type is None:
        date_fields = fields_of_kind(profile, FieldKind.DATE)
        low, high = PIE_PREFERRED_CATEGORIES
        if date_fields and len(dataset) > LINE_MIN_ROWS:
            chart_type = 'line'
        elif low <= first_category_cardinality(profile) <= high:
            chart_type = 'pie'
        elif fields_of_kind(profile, FieldKind.CATEGORICAL) and fields_of_kind(profile, FieldKind.NUMERIC):
            chart_type = 'bar'
        else:
            chart_type = 'table'

    if suggested_type and suggested_type != chart_type:
        logger.debug(f"Recommended '{chart_type}' over suggested '{suggested_type}'")
    return chart_type
