"""
Chart data preparation.

Turns a validated chart spec and the raw dataset into the rows a renderer
consumes: aggregated and ranked for bar and pie, aggregated and ordered by
x for line, and a capped pass-through for tables.
"""
import logging
from functools import cmp_to_key
from typing import Any, List, Optional
import pandas as pd
from app.core.config import Settings, get_settings
from app.core.schemas import AggregationConfig, ChartData, ChartSpec, Dataset, Record
from app.services.aggregator import GROUP_KEY, aggregate, compare_values
from app.services.aliases import parse_metric_alias
from app.services.coercion import is_native_number, parse_dates
from app.services.profiler import dataset_fields

logger = logging.getLogger(__name__)

PIE_VALUE_KEY = 'value'
PIE_NAME_KEY = 'name'


def round_value(value: Any, digits: int = 2) -> Any:
    if is_native_number(value):
        return round(float(value), digits)
    return value


def _chronological_order(rows: List[Record], key: str) -> List[Record]:
    """Ascending by key: by date when every key parses as one, else natural order."""
    keys = pd.Series([row[key] for row in rows], dtype=object)
    parsed = parse_dates(keys)
    if rows and bool(parsed.notna().all()):
        order = parsed.sort_values(kind='stable').index
        return [rows[i] for i in order]
    return sorted(rows, key=cmp_to_key(lambda a, b: compare_values(a[key], b[key])))


def prepare_bar_data(dataset: Dataset, x_key: str, y_key: str, settings: Settings) -> List[Record]:
    metric = parse_metric_alias(y_key, dataset_fields(dataset))
    base = metric.field
    rows = aggregate(dataset, AggregationConfig(
        group_by=x_key,
        metrics=[metric],
        sort_by=metric.output_name,
        sort_order='desc',
        limit=settings.bar_limit,
    ))

    prepared = []
    for row in rows:
        value = round_value(row[metric.output_name], settings.round_digits)
        # Companion names so renderers bound to any naming convention resolve a value
        prepared_row = {
            f"total_{base}": value,
            f"avg_{base}": value,
            base: value,
            y_key: value,
        }
        # The group label wins when x shares a name with a companion
        prepared_row[x_key] = row[GROUP_KEY]
        prepared.append(prepared_row)
    return prepared


def prepare_line_data(dataset: Dataset, x_key: str, y_key: str, settings: Settings) -> List[Record]:
    metric = parse_metric_alias(y_key, dataset_fields(dataset))
    rows = aggregate(dataset, AggregationConfig(group_by=x_key, metrics=[metric]))
    rows = _chronological_order(rows, GROUP_KEY)
    return [
        {
            x_key: row[GROUP_KEY],
            y_key: round_value(row[metric.output_name], settings.round_digits),
        }
        for row in rows
    ]


def prepare_pie_data(dataset: Dataset, name_key: str, value_key: str, settings: Settings) -> List[Record]:
    metric = parse_metric_alias(value_key, dataset_fields(dataset), alias=PIE_VALUE_KEY)
    rows = aggregate(dataset, AggregationConfig(
        group_by=name_key,
        metrics=[metric],
        sort_by=PIE_VALUE_KEY,
        sort_order='desc',
        limit=settings.pie_limit,
    ))
    return [
        {
            PIE_NAME_KEY: row[GROUP_KEY],
            PIE_VALUE_KEY: round_value(row[PIE_VALUE_KEY], settings.round_digits),
        }
        for row in rows
    ]


def prepare_table_data(dataset: Dataset, settings: Settings) -> List[Record]:
    return [dict(row) for row in dataset[:settings.table_row_limit]]


def prepare_chart_data(
    dataset: Dataset,
    spec: ChartSpec,
    settings: Optional[Settings] = None,
) -> ChartData:
    """
    Shape the dataset for the chart type of a validated spec.

    bar:   sum/avg/... per x (operation read from the y alias), top N descending
    line:  per x, ascending by x, no truncation
    pie:   per name, top N descending, {name, value} rows only
    table: first N rows unchanged, columns taken from the first row
    """
    settings = settings or get_settings()
    chart_type = spec.type or 'table'

    if chart_type == 'bar':
        data = prepare_bar_data(dataset, spec.x_key, spec.y_key, settings)
        chart = ChartData(type='bar', data=data, x_key=spec.x_key, y_key=spec.y_key)
    elif chart_type == 'line':
        data = prepare_line_data(dataset, spec.x_key, spec.y_key, settings)
        chart = ChartData(type='line', data=data, x_key=spec.x_key, y_key=spec.y_key)
    elif chart_type == 'pie':
        data = prepare_pie_data(dataset, spec.name_key, spec.value_key, settings)
        chart = ChartData(type='pie', data=data, name_key=PIE_NAME_KEY, value_key=PIE_VALUE_KEY)
    else:
        data = prepare_table_data(dataset, settings)
        chart = ChartData(type='table', data=data, columns=list(data[0].keys()) if data else [])

    logger.debug(f"Prepared {len(chart.data)} rows for {chart.type} chart")
    return chart
