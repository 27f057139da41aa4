"""
Loader for the SSQ primary workbook.

Reads ``SSQ_PrimaryData.xlsx``, cleans column names to UpperCamel case,
drops the spreadsheet row counter and fully empty rows, and checks that
every column the pipeline needs is present. Missing files and columns are
input-shape errors and abort the run.
"""

import os
import re

import pandas as pd

from ssq_pipeline import config
from ssq_pipeline.logging_config import get_pipeline_logger

log = get_pipeline_logger(__name__)

_SEPARATORS = re.compile(r"[^0-9A-Za-z]+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def clean_column_name(name):
    """Convert a header to UpperCamel case.

    ``"F_ID"`` → ``"FId"``, ``"Chick1ID"`` → ``"Chick1Id"``,
    ``"Habitat of ringing"`` → ``"HabitatOfRinging"``, ``"LD"`` → ``"Ld"``.
    """
    words = []
    for chunk in _SEPARATORS.split(str(name)):
        words.extend(w for w in _CAMEL_BOUNDARY.split(chunk) if w)
    return "".join(w[:1].upper() + w[1:].lower() for w in words)


def clean_names(df):
    """Rename all columns with clean_column_name()."""
    cleaned = [clean_column_name(c) for c in df.columns]
    duplicates = sorted({c for c in cleaned if cleaned.count(c) > 1})
    if duplicates:
        raise ValueError(f"Column names collide after cleaning: {duplicates}")
    return df.set_axis(cleaned, axis=1)


def check_required_columns(df, required=None):
    """Raise ValueError listing any required column absent from *df*."""
    if required is None:
        required = config.REQUIRED_INPUT_COLUMNS
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(
            f"Primary data is missing {len(missing)} expected column(s): {missing}"
        )


def primary_data_path(db):
    return os.path.join(db, config.PRIMARY_DATA_FILE)


def load_primary_data(db):
    """Read and clean the SSQ primary workbook.

    Parameters
    ----------
    db : str
        Directory containing ``SSQ_PrimaryData.xlsx``.

    Returns
    -------
    pd.DataFrame
        Cleaned raw table (UpperCamel column names, no ``Row`` column,
        no fully empty rows).

    Raises
    ------
    FileNotFoundError
        If the workbook does not exist.
    ValueError
        If expected columns are missing.
    """
    path = primary_data_path(db)
    if not os.path.exists(path):
        raise FileNotFoundError(f"Primary data not found: {path}")

    df = pd.read_excel(path, engine="openpyxl")
    log.info("Loaded %d rows x %d columns from %s", len(df), len(df.columns), path)

    df = clean_names(df)
    if "Row" in df.columns:
        df = df.drop(columns="Row")

    n_before = len(df)
    df = df.dropna(how="all").reset_index(drop=True)
    if len(df) < n_before:
        log.info("Dropped %d empty rows", n_before - len(df))

    check_required_columns(df)
    return df
