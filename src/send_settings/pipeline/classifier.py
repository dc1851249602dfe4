"""Setting classification for SEN2 establishment identities.

Pure functions with no I/O beyond resolving configuration. Each of the three
setting components is resolved independently, highest precedence first:

  estab_cat    override > registry (via estab type) > manual > UKN | XxX
  designation  override > designation_f > manual > UKN | XxX
  la_code      override > registry > manual
  area         area_split_f(la_code) > UKN | XxX

Designation and area are only resolved for categories flagged `designate`
and `split_area`. "UKN" is reserved for identities with no data at all;
anything else that cannot be resolved is "XxX". Manual entries are a last
resort: they never displace a category derived from the registry.
"""

import logging
import time
from collections import Counter
from collections.abc import Iterable, Mapping
from typing import Any

import mlflow
import pandas as pd
from mlflow.entities import SpanType

from send_settings.core.types import (
    AnalystSetting,
    ClassificationRecord,
    EstablishmentIdentity,
    EstabType,
    RegistryRecord,
    Sentinel,
)
from send_settings.pipeline.codes import compose_setting
from send_settings.pipeline.lookups import IDENTITY_COLUMNS, to_identity, with_columns
from send_settings.pipeline.session import ClassifierConfig, ResolvedConfig, resolve_config

logger = logging.getLogger(__name__)

IdentityLike = EstablishmentIdentity | Mapping[str, Any]

FRAME_OUTPUT_COLUMNS = ["estab_name", "estab_cat", "designation", "la_code", "area", "setting"]


def _fallback(identity: EstablishmentIdentity) -> Sentinel:
    return Sentinel.UNKNOWN if identity.is_empty() else Sentinel.UNDETERMINABLE


def _as_resolved(cfg: ClassifierConfig | ResolvedConfig | None) -> ResolvedConfig:
    if isinstance(cfg, ResolvedConfig):
        return cfg
    if cfg is None:
        return resolve_config()
    logger.warning("Resolving classifier config for a single call; resolve once and reuse for batches")
    return resolve_config(cfg)


def _estab_name_via_registry(
    record: RegistryRecord | None,
    identity: EstablishmentIdentity,
    cfg: ResolvedConfig,
) -> str | None:
    if record is None or not record.establishment_name:
        return None
    name = record.establishment_name
    if identity.is_unit:
        name += f" {cfg.sen_unit_name}"
    if identity.is_resourced_provision:
        name += f" {cfg.resourced_provision_name}"
    return name


def classify(
    identity: IdentityLike,
    cfg: ClassifierConfig | ResolvedConfig | None = None,
) -> ClassificationRecord:
    """Resolve the setting for one establishment identity.

    `cfg` should be a ResolvedConfig shared across calls; a ClassifierConfig
    is accepted but resolved afresh every time.
    """
    identity = to_identity(identity)
    cfg = _as_resolved(cfg)
    fallback = _fallback(identity)

    override = cfg.settings_override.get(identity)
    manual = cfg.settings_manual.get(identity)
    ovr = override or AnalystSetting()
    man = manual or AnalystSetting()

    record = cfg.registry.lookup(identity.reference_id, identity.provider_id)
    estab_name_via_registry = _estab_name_via_registry(record, identity, cfg)

    # sen_setting is part of the key, so setting labels map to categories too
    estab_type = EstabType(
        type_of_establishment_name=record.type_of_establishment_name if record else None,
        is_unit=identity.is_unit,
        is_resourced_provision=identity.is_resourced_provision,
        sen_setting=identity.sen_setting,
    )
    estab_cat_via_registry = cfg.estab_type_to_estab_cat.get(estab_type)

    estab_name = (
        ovr.estab_name
        or estab_name_via_registry
        or man.estab_name
        or (f"(SEN Setting: {identity.sen_setting})" if identity.sen_setting else None)
    )

    estab_cat = ovr.estab_cat or estab_cat_via_registry or man.estab_cat or fallback
    category = cfg.estab_cats.get(estab_cat)
    designate = bool(category and category.designate)
    split_area = bool(category and category.split_area)

    designation = None
    if designate:
        derived = None
        if not ovr.designation and cfg.designation_f is not None:
            derived = cfg.designation_f(
                estab_cat,
                record.sen_provision_types if record else (),
                record,
            )
        designation = ovr.designation or derived or man.designation or fallback

    la_code = ovr.la_code or (record.la_code if record else None) or man.la_code

    area = None
    if split_area:
        derived = None
        if cfg.area_split_f is not None:
            derived = cfg.area_split_f(estab_cat, la_code, cfg.in_area_la_codes)
        area = derived or fallback

    setting = compose_setting(estab_cat, designation, area)
    logger.debug(
        "Classified %s as %s", identity, setting,
        extra={"reference_id": identity.reference_id, "setting": setting},
    )
    return ClassificationRecord(
        identity=identity,
        setting=setting,
        estab_cat=estab_cat,
        designation=designation,
        area=area,
        designate=designate,
        split_area=split_area,
        la_code=la_code,
        estab_name=estab_name,
        override=override,
        manual=manual,
        registry_record=record,
        estab_type=estab_type,
        estab_name_via_registry=estab_name_via_registry,
        estab_cat_via_registry=estab_cat_via_registry,
    )


def classify_setting(identity: IdentityLike, cfg: ClassifierConfig | ResolvedConfig | None = None) -> str:
    """Setting abbreviation only."""
    return classify(identity, cfg).setting


def sentinel_counts(records: Iterable[ClassificationRecord]) -> dict[str, int]:
    """Count sentinel components by position, e.g. {"estab_cat:XxX": 3}."""
    counts: Counter[str] = Counter()
    for r in records:
        for component in ("estab_cat", "designation", "area"):
            value = getattr(r, component)
            if value in (Sentinel.UNKNOWN, Sentinel.UNDETERMINABLE):
                counts[f"{component}:{value}"] += 1
    return dict(counts)


def classify_batch(
    identities: Iterable[IdentityLike],
    cfg: ClassifierConfig | ResolvedConfig | None = None,
) -> list[ClassificationRecord]:
    """Classify many identities against one resolved configuration."""
    resolved = cfg if isinstance(cfg, ResolvedConfig) else resolve_config(cfg)
    t0 = time.monotonic()
    with mlflow.start_span(name="classify_batch", span_type=SpanType.CHAIN) as span:
        records = [classify(identity, resolved) for identity in identities]
        counts = sentinel_counts(records)
        span.set_inputs({"identities": len(records)})
        span.set_outputs({"settings": len({r.setting for r in records}), **counts})

    duration_ms = round((time.monotonic() - t0) * 1000, 1)
    logger.info(
        "Classified %d identities into %d settings",
        len(records), len({r.setting for r in records}),
        extra={"count": len(records), "step": "classify_batch", "duration_ms": duration_ms},
    )
    for key, n in sorted(counts.items()):
        logger.info("%d identities with %s", n, key, extra={"count": n})
    return records


def classify_frame(
    placements: pd.DataFrame,
    cfg: ClassifierConfig | ResolvedConfig | None = None,
) -> pd.DataFrame:
    """Classify each row of a placement dataset.

    Rows are read by the identity columns (urn, ukprn, sen-unit-indicator,
    resourced-provision-indicator, sen-setting; absent columns count as
    empty). Returns a copy of `placements`, column names untouched, with
    estab_name, estab_cat, designation, la_code, area and setting appended.
    """
    df = with_columns(placements, IDENTITY_COLUMNS)
    identities = [dict(zip(IDENTITY_COLUMNS, row)) for row in df[IDENTITY_COLUMNS].itertuples(index=False, name=None)]
    records = classify_batch(identities, cfg)

    result = placements.copy()
    for column in FRAME_OUTPUT_COLUMNS:
        result[column] = [
            None if getattr(r, column) is None else str(getattr(r, column)) for r in records
        ]
    return result
