"""Core domain types shared across all send_settings modules."""

from send_settings.core.errors import ConfigurationError
from send_settings.core.types import (
    AnalystSetting,
    AreaDefinition,
    CategoryDefinition,
    ClassificationRecord,
    DesignationDefinition,
    EstablishmentIdentity,
    EstabType,
    RegistryRecord,
    Sentinel,
    SettingCatalogEntry,
    SettingComponents,
)

__all__ = [
    "AnalystSetting",
    "AreaDefinition",
    "CategoryDefinition",
    "ClassificationRecord",
    "ConfigurationError",
    "DesignationDefinition",
    "EstablishmentIdentity",
    "EstabType",
    "RegistryRecord",
    "Sentinel",
    "SettingCatalogEntry",
    "SettingComponents",
]
