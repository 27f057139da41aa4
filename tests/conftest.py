"""
Shared fixtures for SSQ pipeline tests.

Provides a small synthetic primary workbook (raw spreadsheet headers,
two seasons, both species plus one unsupported species and one empty
row) so each test module can check pipeline logic against known inputs.
"""

import os
import tempfile

# Keep the rotating pipeline.log out of the working tree.
os.environ.setdefault("SSQ_LOG_DIR", tempfile.mkdtemp(prefix="ssq_logs_"))

import numpy as np
import pandas as pd
import pytest

from ssq_pipeline import config
from ssq_pipeline.loader import clean_names
from ssq_pipeline.normalize import normalize_primary_data


RAW_CHICK_HEADERS = [f"Chick{i}_ID" for i in range(1, config.MAX_CHICKS_PER_BROOD + 1)]


def _raw_row(row, year, species, ld, cs, hd, hs, fs, fid, mid, fage, mage,
             nest, habitat, x, y, cls, chicks=()):
    """Helper: one raw spreadsheet row with the original header spelling."""
    rec = {
        "Row": row, "Year": year, "Species": species,
        "LD": ld, "CS": cs, "HD": hd, "HS": hs, "FS": fs,
        "F_ID": fid, "M_ID": mid, "F_Age": fage, "M_Age": mage,
        "Nest_ID": nest, "Habitat of ringing": habitat,
        "X_coord": x, "Y_coord": y, "Class": cls,
    }
    for i, header in enumerate(RAW_CHICK_HEADERS):
        rec[header] = chicks[i] if i < len(chicks) else None
    return rec


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after test."""
    with tempfile.TemporaryDirectory(prefix="ssq_test_") as d:
        yield d


@pytest.fixture
def raw_primary_df():
    """Raw primary data as read from the workbook, before name cleaning.

    2020:
      - F1 (yearling) + M1: nest 5, lay day 10, failed (0 fledged), class 1
      - F1 + M2: nest 12, lay day 25, 4 fledged, chicks C1 C2, class 2
      - F2 (blue tit, unaged): nest 5, lay day 40, clutch 6, chicks C3-C5
    2021:
      - C1 (ringed 2020 as chick) + M1: nest 12, lay day 12, chick C6
      - X9 + F1 (now recorded as male): nest 7, lay day 20
      - unsupported species at nest 99
    plus one fully empty row.
    """
    nan = np.nan
    rows = [
        _raw_row(1, 2020, "Parus major", 10, 6, 30, 0, 0, "F1", "M1", 1, 2,
                 5, "Oak", 13.50, 37.60, 1),
        _raw_row(2, 2020, "Parus major", 25, 5, 45, 5, 4, "F1", "M2", 1, nan,
                 12, "Oak", 13.60, 37.70, 2, chicks=("C1", "C2")),
        _raw_row(3, 2020, "Cyanistes caeruleus", 40, 6, 60, 6, 6, "F2", None, nan, nan,
                 5, "Oak", 13.51, 37.61, 1, chicks=("C3", "C4", "C5")),
        _raw_row(4, 2021, "Parus major", 12, 7, 33, 7, 7, "C1", "M1", 1, 2,
                 12, "Pine", 13.60, 37.70, 1, chicks=("C6",)),
        _raw_row(5, 2021, "Parus major", 20, 8, 40, 8, 3, "X9", "F1", 2, nan,
                 7, "Pine", 13.70, 37.80, 1),
        _raw_row(6, 2021, "Sitta europaea", 15, 6, 35, 5, 5, "S1", None, nan, nan,
                 99, "Pine", 13.90, 37.90, 1),
    ]
    empty = {k: None for k in rows[0]}
    rows.append(empty)
    return pd.DataFrame(rows)


@pytest.fixture
def primary_df(raw_primary_df):
    """Cleaned primary data: UpperCamel names, no Row column, no empty rows."""
    df = clean_names(raw_primary_df).drop(columns="Row")
    return df.dropna(how="all").reset_index(drop=True)


@pytest.fixture
def normalized(primary_df):
    """NormalizedData for all supported species."""
    return normalize_primary_data(primary_df)


@pytest.fixture
def db_dir(tmp_dir, raw_primary_df):
    """Directory containing the synthetic SSQ_PrimaryData.xlsx."""
    path = os.path.join(tmp_dir, config.PRIMARY_DATA_FILE)
    raw_primary_df.to_excel(path, index=False, engine="openpyxl")
    return tmp_dir

