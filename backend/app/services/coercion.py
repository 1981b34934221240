"""
Scalar coercion helpers shared by profiling and aggregation.

Records arrive from spreadsheets and JSON, so a numeric column may hold
floats, ints, booleans or strings such as "12.5". Everything that reads a
value as a number or a date goes through here.
"""
import math
import numbers
import warnings
from typing import Any, Optional
import pandas as pd


def is_null(value: Any) -> bool:
    """True for None and NaN-like values."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return value is pd.NaT


def coerce_number(value: Any) -> Optional[float]:
    """
    Permissive numeric parse.

    Returns a finite float, or None when the value does not read as a number.
    Booleans count as 1/0 and numeric strings are parsed after stripping
    whitespace; empty strings and "1_000"-style spellings are not numbers.
    """
    if is_null(value):
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        # float() also takes digit separators like "1_000"
        if not text or '_' in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
    return number if math.isfinite(number) else None


def profile_number(value: Any) -> Optional[float]:
    """coerce_number for field profiling: booleans are flags, not numbers."""
    if isinstance(value, bool):
        return None
    return coerce_number(value)


def _to_datetime(values: pd.Series, **kwargs) -> pd.Series:
    with warnings.catch_warnings():
        # format inference warns when it falls back to per-element parsing
        warnings.simplefilter('ignore', UserWarning)
        return pd.to_datetime(values, errors='coerce', utc=True, **kwargs)


def parse_dates(values: pd.Series) -> pd.Series:
    """
    Parse a Series as calendar dates in one pass.

    Non-strings and blank strings are NaT. Values the inferred format misses
    are retried once with per-element format detection.
    """
    is_text = values.map(lambda v: isinstance(v, str) and bool(v.strip())).astype(bool)
    text = values[is_text]
    if text.empty:
        return pd.Series(pd.NaT, index=values.index, dtype='datetime64[ns, UTC]')

    try:
        dates = _to_datetime(text)
        missing = dates.isna()
        if missing.any():
            dates = dates.fillna(_to_datetime(text[missing], format='mixed'))
    except (ValueError, TypeError, OverflowError):
        dates = pd.Series(pd.NaT, index=text.index, dtype='datetime64[ns, UTC]')
    return dates.reindex(values.index)


def all_look_like_dates(values: pd.Series) -> bool:
    """
    Date heuristic: every value is a string containing a literal '-' that
    parses as a date.

    Known false positives: hyphenated codes that happen to parse (e.g. "A-1")
    are read as dates.
    """
    if values.empty:
        return False
    hyphenated = values.map(lambda v: isinstance(v, str) and '-' in v).astype(bool)
    if not hyphenated.all():
        return False
    return bool(parse_dates(values).notna().all())


def is_native_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)
