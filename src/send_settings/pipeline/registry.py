"""Establishment registry: official attributes looked up by URN or UKPRN.

The registry is built once (typically from a directory extract of every
open and closed establishment) and shared read-only across classifications.
Secondary (provider ID) lookups scan unless the registry has been indexed.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import pandas as pd

from send_settings.core.errors import ConfigurationError
from send_settings.core.types import RegistryRecord
from send_settings.pipeline.lookups import as_frame, clean_str, clean_value, normalise_attrs, with_columns

logger = logging.getLogger(__name__)

REGISTRY_COLUMNS = [
    "urn",
    "ukprn",
    "establishment_name",
    "type_of_establishment_name",
    "la_code",
    "sen_provision_types",
]

_CODE_DELIMITERS = re.compile(r"[,|;]")


def split_provision_types(value: Any) -> tuple[str, ...]:
    """Provision type codes as a tuple, from a list or a delimited string."""
    value = clean_value(value)
    if value is None:
        return ()
    if isinstance(value, str):
        parts = _CODE_DELIMITERS.split(value)
    else:
        parts = [clean_str(v) or "" for v in value]
    return tuple(p.strip() for p in parts if p and p.strip())


def to_registry_record(reference_id: str, attrs: Mapping[str, Any]) -> RegistryRecord:
    """Record from an attribute dict (hyphenated or snake_case keys).

    Accepts the directory extract column names (ukprn, establishment-name,
    ...) or the RegistryRecord field names. `reference_id` is the registry
    key and wins over any urn in `attrs`.
    """
    values = normalise_attrs(attrs)
    return RegistryRecord(
        reference_id=reference_id,
        provider_id=clean_str(values.get("provider_id", values.get("ukprn"))),
        establishment_name=clean_str(values.get("establishment_name")),
        type_of_establishment_name=clean_str(values.get("type_of_establishment_name")),
        la_code=clean_str(values.get("la_code")),
        sen_provision_types=split_provision_types(values.get("sen_provision_types")),
    )


class Registry:
    """Read-only view over registry records keyed by reference ID."""

    def __init__(
        self,
        records: Mapping[str, RegistryRecord] | None = None,
        provider_index: Mapping[str, str] | None = None,
    ):
        self._records: dict[str, RegistryRecord] = dict(records or {})
        self._provider_index = dict(provider_index) if provider_index is not None else None

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, reference_id: object) -> bool:
        return reference_id in self._records

    def __repr__(self) -> str:
        indexed = "indexed" if self.is_indexed else "unindexed"
        return f"Registry({len(self._records)} records, {indexed})"

    @property
    def is_indexed(self) -> bool:
        return self._provider_index is not None

    def get(self, reference_id: str | None) -> RegistryRecord | None:
        if reference_id is None:
            return None
        return self._records.get(reference_id)

    def find_by_provider_id(self, provider_id: str | None) -> RegistryRecord | None:
        """Return the record with this provider ID, scanning if not indexed."""
        if provider_id is None:
            return None
        if self._provider_index is not None:
            reference_id = self._provider_index.get(provider_id)
            return self._records.get(reference_id) if reference_id else None
        for record in self._records.values():
            if record.provider_id == provider_id:
                return record
        return None

    def lookup(self, reference_id: str | None, provider_id: str | None) -> RegistryRecord | None:
        """Reference ID first; provider ID only when that finds nothing."""
        return self.get(reference_id) or self.find_by_provider_id(provider_id)

    def indexed(self) -> "Registry":
        """Copy of this registry with a provider-ID index for O(1) secondary lookups."""
        index: dict[str, str] = {}
        for reference_id, record in self._records.items():
            if record.provider_id is not None:
                index.setdefault(record.provider_id, reference_id)
        return Registry(self._records, index)

    def restricted_to(self, reference_ids: Iterable[str | None]) -> "Registry":
        """Registry holding only the given reference IDs (others dropped)."""
        wanted = {r for r in reference_ids if r is not None}
        records = {k: v for k, v in self._records.items() if k in wanted}
        logger.info("Restricted registry from %d to %d records", len(self._records), len(records))
        return Registry(records)

    @classmethod
    def from_records(cls, records: Iterable[RegistryRecord]) -> "Registry":
        return cls({r.reference_id: r for r in records})

    @classmethod
    def from_mapping(cls, mapping: Mapping[Any, Any]) -> "Registry":
        """Build from reference ID -> RegistryRecord or attribute dict.

        Raises ConfigurationError for any other value, so a malformed
        registry fails at resolution rather than part way through a batch.
        """
        records: dict[str, RegistryRecord] = {}
        problems: list[str] = []
        for key, value in mapping.items():
            reference_id = clean_str(key)
            if reference_id is None:
                problems.append(f"registry key {key!r} is not a reference ID")
            elif isinstance(value, RegistryRecord):
                records[reference_id] = value
            elif isinstance(value, Mapping):
                records[reference_id] = to_registry_record(reference_id, value)
            else:
                problems.append(
                    f"registry entry {key!r} is a {type(value).__name__}, "
                    "expected a RegistryRecord or attribute mapping"
                )
        if problems:
            raise ConfigurationError(problems)
        return cls(records)

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "Registry":
        """Build from a directory extract.

        Expects columns urn, ukprn, establishment-name,
        type-of-establishment-name, la-code and sen-provision-types
        (hyphenated or snake_case; any may be absent except urn).
        """
        df = with_columns(df, REGISTRY_COLUMNS)
        records: dict[str, RegistryRecord] = {}
        skipped = 0
        for row in df[REGISTRY_COLUMNS].itertuples(index=False, name=None):
            reference_id = clean_str(row[0])
            if reference_id is None:
                skipped += 1
                continue
            records[reference_id] = to_registry_record(reference_id, dict(zip(REGISTRY_COLUMNS, row)))
        if skipped:
            logger.warning("Skipped %d registry rows without a URN", skipped)
        logger.info("Built registry of %d establishments", len(records), extra={"count": len(records)})
        return cls(records)


RegistrySource = Registry | Mapping | pd.DataFrame | Path | None


def resolve_registry(source: RegistrySource) -> Registry:
    """Resolve a registry source (registry, mapping, dataset, path or None)."""
    if source is None:
        return Registry()
    if isinstance(source, Registry):
        return source
    if isinstance(source, Mapping):
        return Registry.from_mapping(source)
    if isinstance(source, (pd.DataFrame, Path)):
        return Registry.from_frame(as_frame(source))
    raise TypeError(f"Unsupported registry source: {type(source).__name__}")
