"""Setting catalog: every setting the definitions can produce.

Categories flagged `designate` are crossed with every designation, and
categories flagged `split_area` with every area. The result is sorted by
(category order, designation order, area order) and re-sequenced 1..n,
which is the canonical axis order for downstream reports.
"""

import logging
from collections.abc import Mapping

import mlflow
from mlflow.entities import SpanType

from send_settings.core.errors import ConfigurationError
from send_settings.core.types import (
    SEPARATOR,
    AreaDefinition,
    CategoryDefinition,
    DesignationDefinition,
    SettingCatalogEntry,
)
from send_settings.pipeline.codes import compose_setting

logger = logging.getLogger(__name__)


def validate_definitions(
    estab_cats: Mapping[str, CategoryDefinition],
    designations: Mapping[str, DesignationDefinition],
    areas: Mapping[str, AreaDefinition],
) -> list[str]:
    """Return every problem that would make the catalog or code parsing wrong."""
    problems: list[str] = []

    designated = [a for a, c in estab_cats.items() if c.designate]
    if designated and not designations:
        problems.append(
            f"Categories {designated} are flagged designate but no designations are defined"
        )
    split = [a for a, c in estab_cats.items() if c.split_area]
    if split and not areas:
        problems.append(
            f"Categories {split} are flagged split_area but no areas are defined"
        )

    clashes = sorted(set(designations) & set(areas))
    if clashes:
        problems.append(
            f"Abbreviations {clashes} are both designations and areas; settings cannot be split"
        )

    for kind, abbreviations in (
        ("category", estab_cats),
        ("designation", designations),
        ("area", areas),
    ):
        for abbreviation in abbreviations:
            if SEPARATOR in abbreviation:
                problems.append(f"{kind} abbreviation {abbreviation!r} contains {SEPARATOR!r}")

    return problems


def _compose(base: str | None, designation: str | None, area: str | None) -> str | None:
    if base is None:
        return None
    text = base
    if designation is not None:
        text += f" - {designation}"
    if area is not None:
        text += f" [{area}]"
    return text


def _label(
    estab_cat: CategoryDefinition,
    designation: DesignationDefinition | None,
    area: AreaDefinition | None,
) -> str | None:
    if estab_cat.label is None:
        return None
    text = estab_cat.label
    if area is not None and area.label is not None:
        text += f" ({area.label})"
    if designation is not None and designation.label is not None:
        text += f" - {designation.label}"
    return text


def _definition(
    estab_cat: CategoryDefinition,
    designation: DesignationDefinition | None,
    area: AreaDefinition | None,
) -> str | None:
    if estab_cat.definition is None:
        return None
    text = estab_cat.definition
    if area is not None and area.definition is not None:
        text = f"{area.definition} {text}"
    if designation is not None:
        text += f"; providing for ({designation.abbreviation})"
        if designation.definition is not None:
            text += f" {designation.definition}"
    return text


def _entry(
    estab_cat: CategoryDefinition,
    designation: DesignationDefinition | None,
    area: AreaDefinition | None,
    order: int,
) -> SettingCatalogEntry:
    return SettingCatalogEntry(
        abbreviation=compose_setting(
            estab_cat.abbreviation,
            designation.abbreviation if designation else None,
            area.abbreviation if area else None,
        ),
        order=order,
        estab_cat=estab_cat.abbreviation,
        designation=designation.abbreviation if designation else None,
        area=area.abbreviation if area else None,
        name=_compose(
            estab_cat.name,
            designation.name if designation else None,
            area.name if area else None,
        ),
        label=_label(estab_cat, designation, area),
        definition=_definition(estab_cat, designation, area),
    )


@mlflow.trace(name="build_catalog", span_type=SpanType.CHAIN)
def build_catalog(
    estab_cats: Mapping[str, CategoryDefinition],
    designations: Mapping[str, DesignationDefinition],
    areas: Mapping[str, AreaDefinition],
) -> tuple[SettingCatalogEntry, ...]:
    """Expand category definitions into the full, ordered setting catalog.

    Raises ConfigurationError if the definitions are inconsistent rather
    than silently dropping categories that cannot be expanded.
    """
    problems = validate_definitions(estab_cats, designations, areas)
    if problems:
        raise ConfigurationError(problems)

    rows: list[tuple[tuple, CategoryDefinition, DesignationDefinition | None, AreaDefinition | None]] = []
    for estab_cat in estab_cats.values():
        designation_options = list(designations.values()) if estab_cat.designate else [None]
        area_options = list(areas.values()) if estab_cat.split_area else [None]
        for designation in designation_options:
            for area in area_options:
                sort_key = (
                    estab_cat.order or 0,
                    designation.order if designation and designation.order is not None else -1,
                    area.order if area and area.order is not None else -1,
                )
                rows.append((sort_key, estab_cat, designation, area))

    rows.sort(key=lambda row: row[0])
    catalog = tuple(
        _entry(estab_cat, designation, area, order)
        for order, (_, estab_cat, designation, area) in enumerate(rows, start=1)
    )
    logger.info(
        "Built setting catalog: %d settings from %d categories",
        len(catalog), len(estab_cats),
        extra={"count": len(catalog), "step": "build_catalog"},
    )
    return catalog


def catalog_by_abbreviation(catalog: tuple[SettingCatalogEntry, ...]) -> dict[str, SettingCatalogEntry]:
    """Abbreviation-keyed view of the catalog, in catalog order."""
    return {entry.abbreviation: entry for entry in catalog}
