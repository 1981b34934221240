"""
Group-by / aggregate engine.

Rows are bucketed by one field, each metric is reduced per bucket over the
values that read as numbers, then the buckets are sorted and truncated.
"""
import logging
from functools import cmp_to_key
from typing import Any, Dict, List
import pandas as pd
from app.core.schemas import AggregationConfig, Dataset, Metric, Record
from app.services.coercion import coerce_number, is_native_number, is_null

logger = logging.getLogger(__name__)

GROUP_KEY = '_group'
COUNT_KEY = '_count'
OTHER_GROUP = 'Other'

# pandas reducer per operation; empty groups are filled with 0 afterwards
_REDUCERS = {
    'sum': 'sum',
    'avg': 'mean',
    'count': 'count',
    'min': 'min',
    'max': 'max',
}


def compare_values(a: Any, b: Any) -> int:
    """Numeric comparison when both sides are numbers, string comparison otherwise."""
    if is_null(a):
        a = 0
    if is_null(b):
        b = 0
    if not (is_native_number(a) and is_native_number(b)):
        a, b = str(a), str(b)
    return (a > b) - (a < b)


def sort_rows(rows: List[Record], sort_by: str, order: str = 'desc') -> List[Record]:
    """Stable sort; rows with equal keys keep their current order."""
    key = cmp_to_key(lambda left, right: compare_values(left.get(sort_by), right.get(sort_by)))
    return sorted(rows, key=key, reverse=(order == 'desc'))


def _group_keys(dataset: Dataset, group_by: str) -> pd.Series:
    keys = [row.get(group_by) for row in dataset]
    return pd.Series([OTHER_GROUP if is_null(k) else k for k in keys], dtype=object)


def _reduce_metric(numbers: pd.Series, keys: pd.Series, metric: Metric) -> pd.Series:
    grouped = numbers.groupby(keys, sort=False)
    reduced = grouped.agg(_REDUCERS[metric.operation])
    return reduced.fillna(0)


def _to_python(value: Any) -> Any:
    return value.item() if hasattr(value, 'item') else value


def aggregate(dataset: Dataset, config: AggregationConfig) -> List[Record]:
    """
    Aggregate rows into one record per group.

    Each record carries ``_group`` (the group key, "Other" for missing keys),
    ``_count`` (rows in the group) and one value per metric under its
    alias. Metrics over no numeric values are 0. Groups come out in the
    order they were first seen unless ``sort_by`` is set.
    """
    if not dataset:
        return []

    keys = _group_keys(dataset, config.group_by)
    sizes = keys.groupby(keys, sort=False).size()

    rows: Dict[Any, Record] = {
        key: {GROUP_KEY: _to_python(key), COUNT_KEY: int(size)} for key, size in sizes.items()
    }

    for metric in config.metrics:
        raw = pd.Series([row.get(metric.field) for row in dataset], dtype=object)
        numbers = pd.to_numeric(raw.map(coerce_number), errors='coerce').astype(float)
        reduced = _reduce_metric(numbers, keys, metric)
        for key, value in reduced.items():
            value = _to_python(value)
            rows[key][metric.output_name] = int(value) if metric.operation == 'count' else float(value)

    results = list(rows.values())

    if config.sort_by:
        results = sort_rows(results, config.sort_by, config.sort_order)

    if config.limit is not None:
        results = results[:config.limit]

    logger.debug(
        f"Aggregated {len(dataset)} rows into {len(rows)} groups by '{config.group_by}'"
    )
    return results
