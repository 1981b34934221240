"""
Unit tests for the alias-prefix adapter.
"""
import pytest
from app.services.aliases import (
    extract_aggregation_type,
    extract_base_field,
    has_alias_prefix,
    parse_metric_alias,
)


@pytest.mark.unit
@pytest.mark.parametrize('key, operation, base', [
    ('total_revenue', 'sum', 'revenue'),
    ('sum_revenue', 'sum', 'revenue'),
    ('avg_revenue', 'avg', 'revenue'),
    ('average_revenue', 'avg', 'revenue'),
    ('count_orders', 'count', 'orders'),
    ('min_price', 'min', 'price'),
    ('max_price', 'max', 'price'),
    ('revenue', 'sum', 'revenue'),
])
def test_prefix_parsing(key, operation, base):
    assert extract_aggregation_type(key) == operation
    assert extract_base_field(key) == base


@pytest.mark.unit
def test_only_leading_prefix_is_stripped():
    assert extract_base_field('total_avg_price') == 'avg_price'
    assert extract_base_field('subtotal_revenue') == 'subtotal_revenue'


@pytest.mark.unit
def test_has_alias_prefix():
    assert has_alias_prefix('avg_margin')
    assert not has_alias_prefix('margin')


@pytest.mark.unit
def test_parse_metric_alias_keeps_original_key_as_alias():
    metric = parse_metric_alias('avg_revenue')

    assert metric.field == 'revenue'
    assert metric.operation == 'avg'
    assert metric.output_name == 'avg_revenue'


@pytest.mark.unit
def test_parse_metric_alias_explicit_alias():
    metric = parse_metric_alias('total_revenue', alias='value')
    assert metric.output_name == 'value'


@pytest.mark.unit
def test_pre_aggregated_column_is_summed():
    """A column literally named total_sales is used as-is when 'sales' does not exist."""
    metric = parse_metric_alias('total_sales', ['region', 'total_sales'])

    assert metric.field == 'total_sales'
    assert metric.operation == 'sum'


@pytest.mark.unit
def test_base_field_preferred_when_present():
    metric = parse_metric_alias('avg_sales', ['sales', 'avg_sales'])

    assert metric.field == 'sales'
    assert metric.operation == 'avg'
