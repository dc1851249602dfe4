"""Domain types for SEND establishment setting classification.

All shared dataclasses and type definitions live here to prevent
circular imports and establish a single source of truth for the
domain model. Every other module imports from here.
"""

from dataclasses import astuple, dataclass, field
from enum import StrEnum


# ---------------------------------------------------------------------------
# Sentinels
# ---------------------------------------------------------------------------

class Sentinel(StrEnum):
    """Placeholder component values.

    UNKNOWN means the placement carried no establishment data at all.
    UNDETERMINABLE means data was present but the component could not be
    derived from it. The two are never interchangeable.
    """

    UNKNOWN = "UKN"
    UNDETERMINABLE = "XxX"


SEPARATOR = "_"


def is_sentinel(value: str | None) -> bool:
    """True if `value` is one of the sentinel abbreviations."""
    return value in (Sentinel.UNKNOWN, Sentinel.UNDETERMINABLE)


# ---------------------------------------------------------------------------
# Placement identity
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EstablishmentIdentity:
    """Identifies an establishment (or provision within one) for a placement.

    Equality is structural over all five fields, so an identity is used
    directly as the key of the manual and override tables.
    """

    reference_id: str | None = None        # URN
    provider_id: str | None = None         # UKPRN
    is_unit: bool = False                  # SEN unit indicator
    is_resourced_provision: bool = False   # resourced provision indicator
    sen_setting: str | None = None         # free-text setting label

    def is_empty(self) -> bool:
        """True if every field is falsy (no placement data)."""
        return not any(astuple(self))


@dataclass(frozen=True)
class EstabType:
    """Key of the establishment-type to category table.

    The registry's establishment type, split by the identity's unit and
    resourced-provision flags and augmented by its setting label.
    """

    type_of_establishment_name: str | None = None
    is_unit: bool = False
    is_resourced_provision: bool = False
    sen_setting: str | None = None


@dataclass(frozen=True)
class AnalystSetting:
    """One row of a manual or override table. None = not specified."""

    estab_name: str | None = None
    estab_cat: str | None = None
    designation: str | None = None
    la_code: str | None = None


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RegistryRecord:
    """Official attributes of one establishment from the external registry."""

    reference_id: str
    provider_id: str | None = None
    establishment_name: str | None = None
    type_of_establishment_name: str | None = None
    la_code: str | None = None
    sen_provision_types: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Setting component definitions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CategoryDefinition:
    """An establishment category and whether it is split further."""

    abbreviation: str
    order: int | None = None
    name: str | None = None
    label: str | None = None
    definition: str | None = None
    designate: bool = False
    split_area: bool = False


@dataclass(frozen=True)
class DesignationDefinition:
    """A designation (group of needs served)."""

    abbreviation: str
    order: int | None = None
    name: str | None = None
    label: str | None = None
    definition: str | None = None


@dataclass(frozen=True)
class AreaDefinition:
    """An area (in-area vs out-of-area placement)."""

    abbreviation: str
    order: int | None = None
    name: str | None = None
    label: str | None = None
    definition: str | None = None


@dataclass(frozen=True)
class SettingCatalogEntry:
    """One enumerable setting: category[_designation][_area]."""

    abbreviation: str
    order: int
    estab_cat: str
    designation: str | None = None
    area: str | None = None
    name: str | None = None
    label: str | None = None
    definition: str | None = None


@dataclass(frozen=True)
class SettingComponents:
    """Components recovered from a composite setting abbreviation."""

    estab_cat: str
    designation: str | None = None
    area: str | None = None


# ---------------------------------------------------------------------------
# Classification output
# ---------------------------------------------------------------------------

@dataclass
class ClassificationRecord:
    """Setting for one identity, with every intermediate value kept for tracing.

    `setting` is the composite code; everything else shows how it was reached.
    """

    identity: EstablishmentIdentity
    setting: str
    estab_cat: str
    designation: str | None = None
    area: str | None = None
    designate: bool = False
    split_area: bool = False
    la_code: str | None = None
    estab_name: str | None = None

    # Lookups applied
    override: AnalystSetting | None = None
    manual: AnalystSetting | None = None
    registry_record: RegistryRecord | None = None

    # Registry derivations
    estab_type: EstabType = field(default_factory=EstabType)
    estab_name_via_registry: str | None = None
    estab_cat_via_registry: str | None = None

    def components(self) -> SettingComponents:
        return SettingComponents(self.estab_cat, self.designation, self.area)
