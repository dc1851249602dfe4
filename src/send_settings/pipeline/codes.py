"""Compose setting abbreviations from components, and split them back.

A setting abbreviation is estab_cat[_designation][_area]. Splitting relies
on area abbreviations being disjoint from designation abbreviations (checked
when the catalog is built): the area is pulled off the end only if it is a
known area, and whatever remains after the category is the designation.
"""

import re
from collections.abc import Iterable, Mapping

from send_settings.core.types import SEPARATOR, SettingComponents


def compose_setting(estab_cat: str, designation: str | None = None, area: str | None = None) -> str:
    """Join the non-None components with "_"."""
    return SEPARATOR.join(str(c) for c in (estab_cat, designation, area) if c is not None)


def setting_split_pattern(
    area_abbreviations: Iterable[str] | None = None,
    areas: Mapping | None = None,
) -> re.Pattern[str]:
    """Regex with groups estab_cat, designation and area.

    Area abbreviations come from `area_abbreviations` if given, otherwise
    from the keys of the `areas` definitions.
    """
    if area_abbreviations is None:
        area_abbreviations = list(areas or {})
    # Longest first so one area that prefixes another is never matched short.
    alternatives = "|".join(re.escape(a) for a in sorted(area_abbreviations, key=len, reverse=True))
    return re.compile(
        r"^(?P<estab_cat>[^_]+)"
        r"_??(?P<designation>[^_]+)??"
        rf"_?(?P<area>{alternatives})?$"
    )


def parse_setting(setting: str, pattern: re.Pattern[str]) -> SettingComponents | None:
    """Split a setting abbreviation into components; None if it doesn't parse."""
    if not setting:
        return None
    m = pattern.match(setting)
    if not m:
        return None
    return SettingComponents(
        estab_cat=m.group("estab_cat"),
        designation=m.group("designation"),
        area=m.group("area") or None,
    )
