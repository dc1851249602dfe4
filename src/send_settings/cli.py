"""send-settings CLI: catalog listing and placement classification."""

import argparse
import logging
import sys
from dataclasses import asdict

import mlflow

from send_settings.config import app_settings
from send_settings.core.errors import ConfigurationError
from send_settings.observability.logging import correlation_scope, setup_logging

logger = logging.getLogger(__name__)


def _init_mlflow() -> None:
    """Initialize MLflow tracking for the current process."""
    mlflow.set_tracking_uri(app_settings.mlflow_tracking_uri)
    mlflow.set_experiment(app_settings.mlflow_experiment_name)


def _dir_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dir",
        default=app_settings.settings_dir,
        help="Directory of setting definition CSVs (estab-cats.csv, designations.csv, ...)",
    )


def catalog_main(argv: list[str] | None = None) -> None:
    """Print the setting catalog: send-settings-catalog [--dir DIR]"""
    parser = argparse.ArgumentParser(prog="send-settings-catalog", description=catalog_main.__doc__)
    _dir_arg(parser)
    args = parser.parse_args(argv)
    setup_logging(app_settings.log_json, app_settings.log_level)
    _init_mlflow()

    import pandas as pd

    from send_settings.ingestion.csv_sources import load_settings_dir
    from send_settings.pipeline.catalog import build_catalog
    from send_settings.pipeline.lookups import resolve_areas, resolve_designations, resolve_estab_cats

    if args.dir is None:
        parser.error("no settings directory: pass --dir or set SEND_SETTINGS_SETTINGS_DIR")

    with correlation_scope():
        sources = load_settings_dir(args.dir)
        try:
            catalog = build_catalog(
                resolve_estab_cats(sources["estab_cats"]),
                resolve_designations(sources["designations"]),
                resolve_areas(sources["areas"]),
            )
        except ConfigurationError as e:
            print(e, file=sys.stderr)
            sys.exit(2)

    pd.DataFrame([asdict(entry) for entry in catalog]).to_csv(sys.stdout, index=False)


def classify_main(argv: list[str] | None = None) -> None:
    """Classify placements: send-settings-classify PLACEMENTS_CSV [options]"""
    parser = argparse.ArgumentParser(prog="send-settings-classify", description=classify_main.__doc__)
    parser.add_argument("placements", help="CSV with urn, ukprn, sen-unit-indicator, "
                                           "resourced-provision-indicator, sen-setting columns")
    _dir_arg(parser)
    parser.add_argument("--registry", help="Establishment registry extract CSV")
    parser.add_argument("--in-area", nargs="*", default=[], metavar="LA_CODE",
                        help="Local authority codes counted as in area")
    parser.add_argument("--standard-designation", action="store_true",
                        help="Derive designations from registry provision types")
    parser.add_argument("--standard-area-split", action="store_true",
                        help="Split areas into InA/OoA by --in-area codes")
    parser.add_argument("--strict", action="store_true",
                        help="Fail on inconsistent setting definitions instead of warning")
    args = parser.parse_args(argv)
    setup_logging(app_settings.log_json, app_settings.log_level)
    _init_mlflow()

    from send_settings.ingestion.csv_sources import load_settings_dir, read_csv_source
    from send_settings.pipeline.classifier import classify_frame
    from send_settings.pipeline.derivation import standard_area_split, standard_designation
    from send_settings.pipeline.registry import Registry
    from send_settings.pipeline.session import ClassifierConfig, resolve_config

    with correlation_scope():
        placements = read_csv_source(args.placements)
        registry = None
        if args.registry:
            registry = Registry.from_frame(read_csv_source(args.registry)).indexed()

        cfg = ClassifierConfig(
            **load_settings_dir(args.dir),
            registry=registry,
            designation_f=standard_designation if args.standard_designation else None,
            area_split_f=standard_area_split if args.standard_area_split else None,
            in_area_la_codes=frozenset(args.in_area),
        )
        try:
            resolved = resolve_config(cfg, strict=args.strict)
        except ConfigurationError as e:
            print(e, file=sys.stderr)
            sys.exit(2)

        result = classify_frame(placements, resolved)
        logger.info("Writing %d classified placements", len(result), extra={"count": len(result)})

    result.to_csv(sys.stdout, index=False)


if __name__ == "__main__":
    classify_main()
