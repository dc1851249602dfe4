"""Designation and area derivation strategies.

Pure functions, no I/O. A designation strategy maps an establishment's
provision types to a designation abbreviation; an area strategy maps its
local authority code to an area abbreviation. Returning None means "could
not derive", which the classifier turns into a fallback or "XxX".
"""

from collections.abc import Collection, Sequence
from typing import Protocol

from send_settings.core.types import RegistryRecord, Sentinel

IN_AREA = "InA"
OUT_OF_AREA = "OoA"
GENERAL = "GEN"


class DesignationStrategy(Protocol):
    def __call__(
        self,
        estab_cat: str,
        sen_provision_types: Sequence[str],
        registry_record: RegistryRecord | None,
    ) -> str | None: ...


class AreaStrategy(Protocol):
    def __call__(
        self,
        estab_cat: str,
        la_code: str | None,
        in_area_la_codes: Collection[str],
    ) -> str | None: ...


# ---------------------------------------------------------------------------
# Standard designation
# ---------------------------------------------------------------------------

# | Area of Need                            | Code       | Needs Served          |
# |:----------------------------------------|:-----------|:----------------------|
# | Social, Emotional & Mental Health Needs | SEMH       | SEMH                  |
# | Communication & Interaction Needs       | COIN       | SLCN                  |
# | High Communication & Interaction Needs  | HCOIN      | ASD                   |
# | High COIN & SEMH                        | HCOIN+SEMH | ASD plus SEMH         |
# | Sensory & Physical Disability Needs     | SPN        | HI or VI or PD        |
# | Cognition & Learning Needs              | C+L        | MLD or SpLD           |
# | High Cognition & Learning Needs         | HC+L       | SLD or PMLD           |
# | Complex Social & Care Needs             | CS+CN      | ASD plus SLD or PMLD  |
#
# Checked in order; the first rule whose every group is served wins.
DESIGNATION_RULES: list[tuple[str, list[set[str]]]] = [
    ("CS+CN", [{"ASD"}, {"SLD", "PMLD"}]),
    ("HCOIN+SEMH", [{"ASD"}, {"SEMH"}]),
    ("SEMH", [{"SEMH"}]),
    ("HCOIN", [{"ASD"}]),
    ("HC+L", [{"SLD", "PMLD"}]),
    ("COIN", [{"SLCN"}]),
    ("SPN", [{"HI", "VI", "PD"}]),
    ("C+L", [{"MLD", "SPLD", "SpLD"}]),
]


def sen_provision_types_to_designation(sen_provision_types: Sequence[str] | None) -> str:
    """Standard designation for a list of provision type codes; "GEN" if none apply."""
    served = set(sen_provision_types or ())
    for designation, groups in DESIGNATION_RULES:
        if all(served & group for group in groups):
            return designation
    return GENERAL


class StandardDesignation:
    """Designation from the registry's provision types, ignoring the category."""

    def __call__(
        self,
        estab_cat: str,
        sen_provision_types: Sequence[str],
        registry_record: RegistryRecord | None,
    ) -> str | None:
        return sen_provision_types_to_designation(sen_provision_types)

    def __repr__(self) -> str:
        return "StandardDesignation()"


# ---------------------------------------------------------------------------
# Standard area split
# ---------------------------------------------------------------------------

def area_for_la_code(in_area_la_codes: Collection[str], la_code: str | None) -> str:
    """"InA" if `la_code` is in area, "OoA" if outside, "XxX" if unknown."""
    if la_code is None:
        return Sentinel.UNDETERMINABLE
    if la_code in in_area_la_codes:
        return IN_AREA
    return OUT_OF_AREA


class StandardAreaSplit:
    """In/out of area by local authority code."""

    def __call__(
        self,
        estab_cat: str,
        la_code: str | None,
        in_area_la_codes: Collection[str],
    ) -> str | None:
        return area_for_la_code(in_area_la_codes, la_code)

    def __repr__(self) -> str:
        return "StandardAreaSplit()"


standard_designation = StandardDesignation()
standard_area_split = StandardAreaSplit()
