"""
Chart spec validation and repair.

A proposed chart spec is untrusted: its keys may be missing or name fields
that do not exist. validate_chart_spec returns a spec whose bindings resolve
against the dataset, substituting fields through keyword and best-match
fallbacks. Only an empty dataset is a failure.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union
from pydantic import ValidationError
from app.core.errors import NO_DATA_MESSAGE
from app.core.schemas import CHART_TYPES, ChartSpec, Dataset, FieldKind, ValidationResult
from app.core.sanitization import sanitize_for_logging
from app.services.aliases import extract_base_field
from app.services.profiler import Profile, dataset_fields, fields_of_kind, profile_dataset
from app.services.recommender import recommend_chart_type

logger = logging.getLogger(__name__)

# Query keyword -> categorical candidates, checked in this order
X_KEYWORD_GROUPS: Sequence[Tuple[str, List[str]]] = (
    ('product', ['product_name', 'product_category', 'product']),
    ('region', ['region', 'country', 'location']),
    ('customer', ['customer_segment', 'customer_type', 'segment']),
)

# Common aggregated names proposed for y -> raw numeric candidates
Y_ALIAS_CANDIDATES: Dict[str, List[str]] = {
    'total_revenue': ['revenue', 'sales', 'amount'],
    'avg_revenue': ['revenue', 'sales', 'amount'],
    'total_quantity': ['quantity', 'units', 'count'],
    'avg_quantity': ['quantity', 'units', 'count'],
    'avg_profit_margin': ['profit_margin', 'margin', 'profit'],
}

# Query keywords -> numeric candidates
Y_KEYWORD_GROUPS: Sequence[Tuple[Tuple[str, ...], List[str]]] = (
    (('revenue', 'sales'), ['revenue', 'sales', 'amount', 'total']),
    (('quantity', 'units'), ['quantity', 'units', 'count']),
    (('profit',), ['profit', 'profit_margin', 'margin']),
)

DEFAULT_X = 'category'
DEFAULT_LINE_X = 'date'
DEFAULT_Y = 'value'
DEFAULT_NAME = 'name'
DEFAULT_VALUE = 'value'


def find_best_match(candidates: Iterable[str], available: Sequence[str]) -> Optional[str]:
    """
    First candidate present in ``available``; failing that, the first
    available field that contains or is contained by a candidate
    (case-insensitive), scanning candidates in order.
    """
    candidates = [c for c in candidates if c]
    for candidate in candidates:
        if candidate in available:
            return candidate

    for candidate in candidates:
        needle = candidate.lower()
        for field in available:
            haystack = field.lower()
            if haystack in needle or needle in haystack:
                return field

    return None


def _first(fields: Sequence[str], default: str) -> str:
    return fields[0] if fields else default


def _repair_bar_x(query: str, categorical: Sequence[str]) -> str:
    for keyword, candidates in X_KEYWORD_GROUPS:
        if keyword in query:
            return find_best_match(candidates, categorical) or _first(categorical, DEFAULT_X)
    return _first(categorical, DEFAULT_X)


def _repair_y(proposed: Optional[str], query: str, numeric: Sequence[str]) -> str:
    found = None
    if proposed:
        candidates = [extract_base_field(proposed)]
        candidates += [c for c in Y_ALIAS_CANDIDATES.get(proposed, []) if c not in candidates]
        found = find_best_match(candidates, numeric)

    if not found:
        for keywords, candidates in Y_KEYWORD_GROUPS:
            if any(keyword in query for keyword in keywords):
                found = find_best_match(candidates, numeric)
                break

    return found or _first(numeric, DEFAULT_Y)


class _Repairer:
    """Collects substitutions for one validation call."""

    def __init__(self, available: Sequence[str]):
        self.available = set(available)
        self.warnings: List[str] = []

    def resolves(self, value: Optional[str]) -> bool:
        return bool(value) and value in self.available

    def substitute(self, key: str, proposed: Optional[str], replacement: str) -> str:
        if proposed:
            message = f"{key} '{proposed}' not found in dataset; using '{replacement}'"
        else:
            message = f"{key} not provided; using '{replacement}'"
        self.note(message)
        return replacement

    def note(self, message: str) -> None:
        self.warnings.append(message)
        logger.info(f"Spec repair: {sanitize_for_logging(message)}")


SPEC_KEYS = ('type', 'x_key', 'xKey', 'y_key', 'yKey', 'name_key', 'nameKey', 'value_key', 'valueKey')


def _coerce_spec(spec: Any, repair: _Repairer) -> ChartSpec:
    """Build a ChartSpec from untrusted input, dropping values that are not strings."""
    if spec is None:
        return ChartSpec()
    if isinstance(spec, ChartSpec):
        return spec
    if not isinstance(spec, dict):
        repair.note(f"Chart spec ignored: expected an object, got {type(spec).__name__}")
        return ChartSpec()

    try:
        return ChartSpec.model_validate(spec)
    except ValidationError:
        cleaned = {}
        for key in SPEC_KEYS:
            if key not in spec or spec[key] is None:
                continue
            if isinstance(spec[key], str):
                cleaned[key] = spec[key]
            else:
                repair.note(f"{key} ignored: expected a field name, got {type(spec[key]).__name__}")
        return ChartSpec.model_validate(cleaned)


def validate_chart_spec(
    spec: Union[ChartSpec, dict, None],
    dataset: Dataset,
    profile: Optional[Profile] = None,
    query: str = "",
) -> ValidationResult:
    """
    Validate and repair a chart spec against the dataset.

    Never raises. Returns is_valid=False without a corrected spec only when
    the dataset is empty; otherwise every bar/line/pie binding in the
    corrected spec names a field of the first record (unless the dataset has
    no usable field at all, in which case literal defaults are used).
    """
    if not dataset:
        return ValidationResult(is_valid=False, errors=[NO_DATA_MESSAGE])

    repair = _Repairer(dataset_fields(dataset))
    spec = _coerce_spec(spec, repair)

    if profile is None:
        profile = profile_dataset(dataset)

    query_text = (query or "").lower()
    numeric = fields_of_kind(profile, FieldKind.NUMERIC)
    categorical = fields_of_kind(profile, FieldKind.CATEGORICAL)
    dates = fields_of_kind(profile, FieldKind.DATE)

    corrected = ChartSpec(
        type=spec.type,
        x_key=spec.x_key,
        y_key=spec.y_key,
        name_key=spec.name_key,
        value_key=spec.value_key,
    )
    if corrected.type not in CHART_TYPES:
        recommended = recommend_chart_type(dataset, query, None, profile)
        if corrected.type:
            repair.note(f"Chart type '{corrected.type}' is not supported; using '{recommended}'")
        else:
            repair.note(f"Chart type not provided; using '{recommended}'")
        corrected.type = recommended

    if corrected.type in ('bar', 'line'):
        if not repair.resolves(spec.x_key):
            if corrected.type == 'bar':
                replacement = _repair_bar_x(query_text, categorical)
            else:
                replacement = _first(dates, DEFAULT_LINE_X)
            corrected.x_key = repair.substitute('xKey', spec.x_key, replacement)

        if not repair.resolves(spec.y_key):
            corrected.y_key = repair.substitute(
                'yKey', spec.y_key, _repair_y(spec.y_key, query_text, numeric)
            )

    elif corrected.type == 'pie':
        if not repair.resolves(spec.name_key):
            corrected.name_key = repair.substitute('nameKey', spec.name_key, _first(categorical, DEFAULT_NAME))
        if not repair.resolves(spec.value_key):
            corrected.value_key = repair.substitute('valueKey', spec.value_key, _first(numeric, DEFAULT_VALUE))

    return ValidationResult(
        is_valid=True,
        errors=[],
        warnings=repair.warnings,
        corrected_spec=corrected,
    )
