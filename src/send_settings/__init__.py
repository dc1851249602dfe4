"""Tri-part establishment settings (category, designation, area) for SEND modelling."""

from send_settings.core.errors import ConfigurationError
from send_settings.core.types import (
    ClassificationRecord,
    EstablishmentIdentity,
    Sentinel,
    SettingCatalogEntry,
)
from send_settings.pipeline.catalog import build_catalog, catalog_by_abbreviation, validate_definitions
from send_settings.pipeline.classifier import classify, classify_batch, classify_frame, classify_setting
from send_settings.pipeline.codes import compose_setting, parse_setting, setting_split_pattern
from send_settings.pipeline.derivation import standard_area_split, standard_designation
from send_settings.pipeline.registry import Registry
from send_settings.pipeline.session import ClassifierConfig, ResolvedConfig, resolve_config

__version__ = "0.1.0"

__all__ = [
    "ClassificationRecord",
    "ClassifierConfig",
    "ConfigurationError",
    "EstablishmentIdentity",
    "Registry",
    "ResolvedConfig",
    "Sentinel",
    "SettingCatalogEntry",
    "build_catalog",
    "catalog_by_abbreviation",
    "classify",
    "classify_batch",
    "classify_frame",
    "classify_setting",
    "compose_setting",
    "parse_setting",
    "resolve_config",
    "setting_split_pattern",
    "standard_area_split",
    "standard_designation",
    "validate_definitions",
]
