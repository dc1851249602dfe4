"""CSV sources for setting definitions, lookup tables and placements.

Reads every file as strings; the lookup resolver owns type coercion so
that DataFrames built in memory and DataFrames read from disk go through
the same normalisation.
"""

import logging
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)

# Default filenames within a settings directory, keyed by config field.
DEFAULT_FILENAMES = {
    "estab_cats": "estab-cats.csv",
    "designations": "designations.csv",
    "areas": "areas.csv",
    "estab_type_to_estab_cat": "estab-type-to-estab-cat.csv",
    "settings_manual": "sen2-estab-settings-manual.csv",
    "settings_override": "sen2-estab-settings-override.csv",
}

# Free-text columns carried in analyst tables that are never used.
IGNORED_COLUMNS = {"reference-website", "reference_website", "notes"}


def resolve_filepath(filename: str, directory: str | Path | None = None) -> Path | None:
    """Locate a definitions file.

    A filename containing a "/" is used as the path. Otherwise it is
    joined to `directory`. Returns None when there is nowhere to look.
    """
    if "/" in filename:
        return Path(filename)
    if directory is not None:
        return Path(directory) / filename
    return None


def read_csv_source(path: str | Path) -> pd.DataFrame:
    """Read a comma-separated file with a header row, all cells as strings."""
    path = Path(path)
    df = pd.read_csv(
        path,
        sep=",",
        dtype=str,
        usecols=lambda column: column not in IGNORED_COLUMNS,
    )
    logger.info("Read %d rows from %s", len(df), path, extra={"count": len(df)})
    return df


def load_settings_dir(
    directory: str | Path | None,
    filenames: dict[str, str] | None = None,
) -> dict[str, pd.DataFrame | None]:
    """Read whichever definition files exist in `directory`.

    Returns a dict keyed by config field; files that are absent map to
    None, which resolves to an empty lookup.
    """
    names = {**DEFAULT_FILENAMES, **(filenames or {})}
    sources: dict[str, pd.DataFrame | None] = {}
    for key, filename in names.items():
        path = resolve_filepath(filename, directory)
        if path is None or not path.exists():
            logger.info("No %s file at %s", key, path)
            sources[key] = None
            continue
        sources[key] = read_csv_source(path)
    return sources
