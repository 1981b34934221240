"""
Alias-prefix adapter.

Proposed chart specs encode the aggregation in the key name
("avg_revenue", "total_quantity"). This module is the only place that
parses that convention; everything downstream works with explicit
Metric objects.
"""
from typing import Iterable, Optional
from app.core.schemas import AggregationOperation, Metric

ALIAS_PREFIXES = (
    ('total_', 'sum'),
    ('sum_', 'sum'),
    ('avg_', 'avg'),
    ('average_', 'avg'),
    ('count_', 'count'),
    ('min_', 'min'),
    ('max_', 'max'),
)

DEFAULT_OPERATION: AggregationOperation = 'sum'


def extract_aggregation_type(key: str) -> AggregationOperation:
    for prefix, operation in ALIAS_PREFIXES:
        if key.startswith(prefix):
            return operation
    return DEFAULT_OPERATION


def extract_base_field(key: str) -> str:
    for prefix, _ in ALIAS_PREFIXES:
        if key.startswith(prefix):
            return key[len(prefix):]
    return key


def has_alias_prefix(key: str) -> bool:
    return any(key.startswith(prefix) for prefix, _ in ALIAS_PREFIXES)


def parse_metric_alias(key: str, available: Optional[Iterable[str]] = None, alias: Optional[str] = None) -> Metric:
    """
    Translate a possibly prefix-encoded key into a Metric.

    When ``available`` is given and the stripped base field is missing while
    the full key exists (a pre-aggregated column such as "total_sales"), the
    full key is summed instead.
    """
    operation = extract_aggregation_type(key)
    field = extract_base_field(key)

    if available is not None:
        available = set(available)
        if field not in available and key in available:
            operation, field = DEFAULT_OPERATION, key

    return Metric(field=field, operation=operation, alias=alias or key)
