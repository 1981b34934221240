import json
import logging
import pandas as pd
from typing import Any, Dict, List, Optional
from app.core.schemas import Dataset, FieldKind, FieldProfile
from app.services.coercion import all_look_like_dates, is_null, profile_number

logger = logging.getLogger(__name__)

Profile = Dict[str, FieldProfile]


def dataset_fields(dataset: Dataset) -> List[str]:
    """Canonical field list: the first record's keys, in order."""
    if not dataset:
        return []
    return list(dataset[0].keys())


def _serialize(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def infer_kind(non_null: pd.Series) -> FieldKind:
    """
    Classify a field from its non-null values.

    numeric: more than half of the values parse as finite numbers. Booleans
    are flags and never count.
    date: every value is a string that contains '-' and parses as a date.
    Anything else is categorical.
    """
    if non_null.empty:
        return FieldKind.CATEGORICAL

    numeric_count = int(non_null.map(profile_number).notna().sum())
    if numeric_count > len(non_null) / 2:
        return FieldKind.NUMERIC

    if all_look_like_dates(non_null):
        return FieldKind.DATE

    return FieldKind.CATEGORICAL


def profile_field(name: str, values: pd.Series) -> FieldProfile:
    null_mask = values.map(is_null).astype(bool)
    non_null = values[~null_mask]
    kind = infer_kind(non_null)

    min_val = None
    max_val = None
    avg_val = None
    if kind == FieldKind.NUMERIC:
        numbers = non_null.map(profile_number).dropna().astype(float)
        min_val = float(numbers.min())
        max_val = float(numbers.max())
        avg_val = float(numbers.mean())

    return FieldProfile(
        name=name,
        kind=kind,
        unique_count=int(non_null.map(_serialize).nunique()),
        null_count=int(null_mask.sum()),
        min=min_val,
        max=max_val,
        avg=avg_val,
    )


def profile_dataset(dataset: Dataset) -> Profile:
    """
    Profile every field of the first record across the whole dataset.

    An empty dataset yields an empty mapping; callers treat that as
    "no safe field exists".
    """
    fields = dataset_fields(dataset)
    if not fields:
        logger.debug("Nothing to profile: dataset has no fields")
        return {}

    profile: Profile = {}
    for name in fields:
        # object dtype keeps 1 and "1" distinct and None as None
        values = pd.Series([row.get(name) for row in dataset], dtype=object)
        profile[name] = profile_field(name, values)

    logger.debug(
        f"Profiled {len(dataset)} rows: "
        + ", ".join(f"{p.name}={p.kind.value}" for p in profile.values())
    )
    return profile


def fields_of_kind(profile: Profile, kind: FieldKind) -> List[str]:
    """Field names of one kind, in canonical field order."""
    return [name for name, field in profile.items() if field.kind == kind]


def first_field_of_kind(profile: Profile, kind: FieldKind) -> Optional[str]:
    fields = fields_of_kind(profile, kind)
    return fields[0] if fields else None
