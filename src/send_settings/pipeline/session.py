"""Classifier configuration, and its one-shot resolution into lookups.

ClassifierConfig enumerates every recognised option and rejects unknown
keys. resolve_config() turns each source into an immutable mapping once,
so a batch of classifications shares one set of lookups.
"""

import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import pandas as pd
from pydantic import BaseModel, ConfigDict, field_validator

from send_settings.core.errors import ConfigurationError
from send_settings.core.types import (
    AnalystSetting,
    AreaDefinition,
    CategoryDefinition,
    DesignationDefinition,
    EstablishmentIdentity,
    EstabType,
)
from send_settings.pipeline.catalog import validate_definitions
from send_settings.pipeline.codes import setting_split_pattern
from send_settings.pipeline.derivation import AreaStrategy, DesignationStrategy
from send_settings.pipeline.lookups import (
    resolve_analyst_settings,
    resolve_areas,
    resolve_designations,
    resolve_estab_cats,
    resolve_estab_type_to_estab_cat,
)
from send_settings.pipeline.registry import Registry, resolve_registry

logger = logging.getLogger(__name__)

DEFAULT_SEN_UNIT_NAME = "(SEN Unit)"
DEFAULT_RESOURCED_PROVISION_NAME = "(Resourced Provision)"

_LOOKUP_FIELDS = (
    "estab_cats",
    "designations",
    "areas",
    "estab_type_to_estab_cat",
    "settings_manual",
    "settings_override",
)


class ClassifierConfig(BaseModel):
    """Every option the classifier recognises, with its default.

    Lookup fields accept a mapping, a pandas DataFrame, a path to a CSV
    file, or None. The registry additionally accepts a Registry.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    estab_cats: Any = None
    designations: Any = None
    areas: Any = None
    estab_type_to_estab_cat: Any = None
    settings_manual: Any = None
    settings_override: Any = None
    registry: Any = None

    designation_f: Callable[..., str | None] | None = None
    area_split_f: Callable[..., str | None] | None = None
    in_area_la_codes: frozenset[str] = frozenset()
    area_abbreviations: tuple[str, ...] | None = None

    sen_unit_name: str = DEFAULT_SEN_UNIT_NAME
    resourced_provision_name: str = DEFAULT_RESOURCED_PROVISION_NAME

    @field_validator(*_LOOKUP_FIELDS, mode="before")
    @classmethod
    def _check_lookup_source(cls, value: Any) -> Any:
        if isinstance(value, str):
            return Path(value)
        if value is None or isinstance(value, (Mapping, pd.DataFrame, Path)):
            return value
        raise ValueError(f"expected a mapping, DataFrame, path or None, got {type(value).__name__}")

    @field_validator("registry", mode="before")
    @classmethod
    def _check_registry_source(cls, value: Any) -> Any:
        if isinstance(value, str):
            return Path(value)
        if value is None or isinstance(value, (Registry, Mapping, pd.DataFrame, Path)):
            return value
        raise ValueError(
            f"expected a Registry, mapping, DataFrame, path or None, got {type(value).__name__}"
        )


@dataclass(frozen=True)
class ResolvedConfig:
    """Canonical lookups for one classification session. Read-only."""

    estab_cats: Mapping[str, CategoryDefinition] = field(default_factory=dict)
    designations: Mapping[str, DesignationDefinition] = field(default_factory=dict)
    areas: Mapping[str, AreaDefinition] = field(default_factory=dict)
    estab_type_to_estab_cat: Mapping[EstabType, str] = field(default_factory=dict)
    settings_manual: Mapping[EstablishmentIdentity, AnalystSetting] = field(default_factory=dict)
    settings_override: Mapping[EstablishmentIdentity, AnalystSetting] = field(default_factory=dict)
    registry: Registry = field(default_factory=Registry)

    designation_f: DesignationStrategy | None = None
    area_split_f: AreaStrategy | None = None
    in_area_la_codes: frozenset[str] = frozenset()
    area_abbreviations: tuple[str, ...] | None = None

    sen_unit_name: str = DEFAULT_SEN_UNIT_NAME
    resourced_provision_name: str = DEFAULT_RESOURCED_PROVISION_NAME

    def split_pattern(self) -> re.Pattern[str]:
        """Pattern for parse_setting; explicit area_abbreviations win over the area catalog."""
        return setting_split_pattern(self.area_abbreviations, self.areas)

    def __repr__(self) -> str:
        return (
            f"ResolvedConfig({len(self.estab_cats)} estab_cats, "
            f"{len(self.designations)} designations, {len(self.areas)} areas, "
            f"{len(self.estab_type_to_estab_cat)} estab types, "
            f"{len(self.settings_manual)} manual, {len(self.settings_override)} override, "
            f"{self.registry!r})"
        )


def resolve_config(cfg: ClassifierConfig | None = None, *, strict: bool = False) -> ResolvedConfig:
    """Resolve every lookup source in `cfg` once.

    Definition problems (see validate_definitions) are logged as warnings,
    or raised as ConfigurationError when `strict`.
    """
    cfg = cfg or ClassifierConfig()
    resolved = ResolvedConfig(
        estab_cats=MappingProxyType(resolve_estab_cats(cfg.estab_cats)),
        designations=MappingProxyType(resolve_designations(cfg.designations)),
        areas=MappingProxyType(resolve_areas(cfg.areas)),
        estab_type_to_estab_cat=MappingProxyType(
            resolve_estab_type_to_estab_cat(cfg.estab_type_to_estab_cat)
        ),
        settings_manual=MappingProxyType(resolve_analyst_settings(cfg.settings_manual)),
        settings_override=MappingProxyType(resolve_analyst_settings(cfg.settings_override)),
        registry=resolve_registry(cfg.registry),
        designation_f=cfg.designation_f,
        area_split_f=cfg.area_split_f,
        in_area_la_codes=cfg.in_area_la_codes,
        area_abbreviations=cfg.area_abbreviations,
        sen_unit_name=cfg.sen_unit_name,
        resourced_provision_name=cfg.resourced_provision_name,
    )

    problems = validate_definitions(resolved.estab_cats, resolved.designations, resolved.areas)
    if problems and strict:
        raise ConfigurationError(problems)
    for problem in problems:
        logger.warning("Setting configuration: %s", problem)

    logger.info("Resolved %r", resolved, extra={"step": "resolve_config"})
    return resolved
