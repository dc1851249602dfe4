"""Lookup resolver. Turns a configuration source into a canonical mapping.

A source is one of:
  - a mapping, used as-is (callers must key it correctly)
  - a pandas DataFrame, grouped on its key column(s)
  - a path to a CSV file, read into a DataFrame first
  - None, which resolves to an empty mapping

Resolve once per configuration and reuse the result: the registry alone
can run to >100k rows.
"""

import logging
import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any, TypeVar

import pandas as pd

from send_settings.core.errors import ConfigurationError
from send_settings.core.types import (
    AnalystSetting,
    AreaDefinition,
    CategoryDefinition,
    DesignationDefinition,
    EstablishmentIdentity,
    EstabType,
)
from send_settings.ingestion.csv_sources import read_csv_source

logger = logging.getLogger(__name__)

LookupSource = Mapping | pd.DataFrame | Path | None

IDENTITY_COLUMNS = ["urn", "ukprn", "sen_unit_indicator", "resourced_provision_indicator", "sen_setting"]
ESTAB_TYPE_COLUMNS = [
    "type_of_establishment_name",
    "sen_unit_indicator",
    "resourced_provision_indicator",
    "sen_setting",
]
ANALYST_COLUMNS = ["estab_name", "estab_cat", "designation", "la_code"]

_TRUE_STRINGS = {"true", "t", "yes", "y", "1"}
_FALSE_STRINGS = {"false", "f", "no", "n", "0", ""}

D = TypeVar("D", CategoryDefinition, DesignationDefinition, AreaDefinition)


# ---------------------------------------------------------------------------
# Cell normalisation
# ---------------------------------------------------------------------------

def column_key(name: Any) -> str:
    """'sen-unit-indicator' / 'designate?' -> 'sen_unit_indicator' / 'designate'."""
    return str(name).strip().replace("-", "_").rstrip("?")


def clean_value(value: Any) -> Any:
    """Missing cells (None, NaN, NA, blank strings) become None."""
    if value is None:
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, (list, tuple, set, frozenset)):
        return value
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


def clean_str(value: Any) -> str | None:
    """Identifier-like cell as a string; 113644.0 -> '113644'."""
    value = clean_value(value)
    if value is None:
        return None
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def clean_bool(value: Any) -> bool:
    value = clean_value(value)
    if value is None:
        return False
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ValueError(f"Not a boolean: {value!r}")
    return bool(value)


def clean_int(value: Any) -> int | None:
    value = clean_value(value)
    if value is None:
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        raise ValueError(f"Not an integer: {value!r}") from None


def coerce(clean: Callable[[Any], Any], column: str, value: Any) -> Any:
    """Apply a cell cleaner, naming `column` in any error."""
    try:
        return clean(value)
    except ValueError as e:
        raise ValueError(f"{column}: {e}") from None


def normalise_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename columns to snake_case keys so hyphenated CSV headers match."""
    return df.rename(columns={c: column_key(c) for c in df.columns})


def normalise_attrs(attrs: Mapping) -> dict[str, Any]:
    """Attribute dict with snake_case keys and missing values as None."""
    return {column_key(k): clean_value(v) for k, v in attrs.items()}


# ---------------------------------------------------------------------------
# Generic resolution
# ---------------------------------------------------------------------------

def frame_to_map(
    df: pd.DataFrame,
    key_cols: str | Sequence[str],
    val_cols: str | Sequence[str] | None = None,
    *,
    as_records: bool = False,
) -> dict[Any, Any]:
    """Map the key column(s) of `df` to the remaining (or `val_cols`) columns.

    A single key column gives scalar keys, several give tuple keys in
    `key_cols` order. A single value column gives scalar values, several
    (or `as_records`) give dicts keyed by column name. Missing cells become
    None. Later rows win on duplicate keys.
    """
    df = normalise_columns(df)
    keys = [key_cols] if isinstance(key_cols, str) else list(key_cols)
    if val_cols is None:
        vals = [c for c in df.columns if c not in keys]
    else:
        vals = [val_cols] if isinstance(val_cols, str) else list(val_cols)

    missing = [c for c in keys + vals if c not in df.columns]
    if missing:
        raise KeyError(f"Columns not in dataset: {missing}")

    result: dict[Any, Any] = {}
    for row in df[keys + vals].itertuples(index=False, name=None):
        key_cells = tuple(clean_value(v) for v in row[:len(keys)])
        val_cells = [clean_value(v) for v in row[len(keys):]]
        key = key_cells[0] if len(keys) == 1 else key_cells
        if len(vals) == 1 and not as_records:
            result[key] = val_cells[0]
        else:
            result[key] = dict(zip(vals, val_cells))
    return result


def with_columns(df: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    """Normalise column names and add any of `columns` missing as all-None."""
    df = normalise_columns(df)
    absent = [c for c in columns if c not in df.columns]
    if not absent:
        return df
    return df.assign(**{c: None for c in absent})


def as_frame(source: pd.DataFrame | Path | str) -> pd.DataFrame:
    if isinstance(source, pd.DataFrame):
        return source
    return read_csv_source(source)


def resolve_lookup(
    source: LookupSource,
    key_cols: str | Sequence[str],
    val_cols: str | Sequence[str] | None = None,
) -> Mapping:
    """Resolve any lookup source to a mapping, never None."""
    if source is None:
        return {}
    if isinstance(source, Mapping):
        return source
    if isinstance(source, (pd.DataFrame, Path)):
        return frame_to_map(as_frame(source), key_cols, val_cols)
    raise TypeError(f"Unsupported lookup source: {type(source).__name__}")


# ---------------------------------------------------------------------------
# Setting component definitions
# ---------------------------------------------------------------------------

def _definition(cls: type[D], abbreviation: Any, attrs: Any, position: int) -> D:
    if isinstance(attrs, cls):
        if attrs.order is None:
            return replace(attrs, order=position)
        return attrs
    values = normalise_attrs(attrs or {})
    kwargs: dict[str, Any] = {
        "abbreviation": str(abbreviation),
        "order": coerce(clean_int, "order", values.get("order")),
        "name": clean_str(values.get("name")),
        "label": clean_str(values.get("label")),
        "definition": clean_str(values.get("definition")),
    }
    if kwargs["order"] is None:
        kwargs["order"] = position
    if cls is CategoryDefinition:
        kwargs["designate"] = coerce(clean_bool, "designate?", values.get("designate"))
        kwargs["split_area"] = coerce(clean_bool, "split-area?", values.get("split_area"))
    return cls(**kwargs)


def _resolve_definitions(source: LookupSource, cls: type[D]) -> dict[str, D]:
    if isinstance(source, (pd.DataFrame, Path)):
        raw = frame_to_map(as_frame(source), "abbreviation", as_records=True)
    else:
        raw = resolve_lookup(source, "abbreviation")
    definitions: list[D] = []
    problems: list[str] = []
    for position, (abbreviation, attrs) in enumerate(raw.items()):
        if clean_value(abbreviation) is None:
            continue
        try:
            definitions.append(_definition(cls, abbreviation, attrs, position))
        except ValueError as e:
            problems.append(f"{cls.__name__} {abbreviation!r}: {e}")
    if problems:
        raise ConfigurationError(problems)
    definitions.sort(key=lambda d: (d.order, d.abbreviation))
    logger.debug("Resolved %d %s entries", len(definitions), cls.__name__, extra={"count": len(definitions)})
    return {d.abbreviation: d for d in definitions}


def resolve_estab_cats(source: LookupSource) -> dict[str, CategoryDefinition]:
    """Establishment category definitions keyed by abbreviation, in order."""
    return _resolve_definitions(source, CategoryDefinition)


def resolve_designations(source: LookupSource) -> dict[str, DesignationDefinition]:
    """Designation definitions keyed by abbreviation, in order."""
    return _resolve_definitions(source, DesignationDefinition)


def resolve_areas(source: LookupSource) -> dict[str, AreaDefinition]:
    """Area definitions keyed by abbreviation, in order."""
    return _resolve_definitions(source, AreaDefinition)


# ---------------------------------------------------------------------------
# Establishment type -> category
# ---------------------------------------------------------------------------

def to_estab_type(key: Any) -> EstabType:
    if isinstance(key, EstabType):
        return key
    name, unit, rp, sen_setting = key
    return EstabType(
        type_of_establishment_name=clean_str(name),
        is_unit=coerce(clean_bool, "sen-unit-indicator", unit),
        is_resourced_provision=coerce(clean_bool, "resourced-provision-indicator", rp),
        sen_setting=clean_str(sen_setting),
    )


def resolve_estab_type_to_estab_cat(source: LookupSource) -> dict[EstabType, str]:
    """Map establishment types (split by unit/RP, plus setting label) to categories."""
    if isinstance(source, (pd.DataFrame, Path)):
        source = with_columns(as_frame(source), ESTAB_TYPE_COLUMNS)
    raw = resolve_lookup(source, ESTAB_TYPE_COLUMNS, "estab_cat")
    mapping: dict[EstabType, str] = {}
    problems: list[str] = []
    for key, value in raw.items():
        if isinstance(value, Mapping):
            value = normalise_attrs(value).get("estab_cat")
        estab_cat = clean_str(value)
        if estab_cat is None:
            continue
        try:
            mapping[to_estab_type(key)] = estab_cat
        except ValueError as e:
            problems.append(f"estab type {key!r}: {e}")
    if problems:
        raise ConfigurationError(problems)
    return mapping


# ---------------------------------------------------------------------------
# Manual / override tables
# ---------------------------------------------------------------------------

def to_identity(key: Any) -> EstablishmentIdentity:
    """Coerce an identity-like key (identity, 5-tuple or dict) to an identity."""
    if isinstance(key, EstablishmentIdentity):
        return key
    if isinstance(key, Mapping):
        values = normalise_attrs(key)
        return EstablishmentIdentity(
            reference_id=clean_str(values.get("reference_id", values.get("urn"))),
            provider_id=clean_str(values.get("provider_id", values.get("ukprn"))),
            is_unit=coerce(
                clean_bool, "sen-unit-indicator",
                values.get("is_unit", values.get("sen_unit_indicator")),
            ),
            is_resourced_provision=coerce(
                clean_bool, "resourced-provision-indicator",
                values.get("is_resourced_provision", values.get("resourced_provision_indicator")),
            ),
            sen_setting=clean_str(values.get("sen_setting")),
        )
    urn, ukprn, unit, rp, sen_setting = key
    return EstablishmentIdentity(
        reference_id=clean_str(urn),
        provider_id=clean_str(ukprn),
        is_unit=coerce(clean_bool, "sen-unit-indicator", unit),
        is_resourced_provision=coerce(clean_bool, "resourced-provision-indicator", rp),
        sen_setting=clean_str(sen_setting),
    )


def _analyst_setting(value: Any) -> AnalystSetting:
    if isinstance(value, AnalystSetting):
        return value
    values = normalise_attrs(value or {})
    return AnalystSetting(**{f: clean_str(values.get(f)) for f in ANALYST_COLUMNS})


def resolve_analyst_settings(source: LookupSource) -> dict[EstablishmentIdentity, AnalystSetting]:
    """Resolve a manual or override table keyed by establishment identity.

    Value columns are optional; only those present (of estab_name,
    estab_cat, designation, la_code) are read.
    """
    if isinstance(source, (pd.DataFrame, Path)):
        df = with_columns(as_frame(source), IDENTITY_COLUMNS)
        val_cols = [c for c in ANALYST_COLUMNS if c in df.columns]
        raw = frame_to_map(df, IDENTITY_COLUMNS, val_cols, as_records=True)
    else:
        raw = resolve_lookup(source, IDENTITY_COLUMNS)
    table: dict[EstablishmentIdentity, AnalystSetting] = {}
    problems: list[str] = []
    for key, value in raw.items():
        try:
            table[to_identity(key)] = _analyst_setting(value)
        except ValueError as e:
            problems.append(f"identity {key!r}: {e}")
    if problems:
        raise ConfigurationError(problems)
    return table
