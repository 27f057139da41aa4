"""
Normalization of the cleaned SSQ primary table.

Renames raw columns to standard-format names, maps species, converts
day-of-season numbers to dates, builds BroodIDs and splits the wide
``Chick1Id..Chick13Id`` columns into a narrow chick relation. Unparseable
values become nulls; only configuration errors raise.
"""

from dataclasses import dataclass

import numpy as np
import pandas as pd

from ssq_pipeline import config
from ssq_pipeline.formulas.species import resolve_species_filter, species_code
from ssq_pipeline.logging_config import get_pipeline_logger

log = get_pipeline_logger(__name__)

# Raw (cleaned) column → standard-format column
RENAME_MAP = {
    "Year": "BreedingSeason",
    "Ld": "LayDay",
    "Cs": "ClutchSize_observed",
    "Hd": "HatchDay",
    "Hs": "BroodSize_observed",
    "Fs": "NumberFledged_observed",
    "FId": "FemaleID",
    "MId": "MaleID",
    "FAge": "FemaleAge",
    "MAge": "MaleAge",
    "NestId": "LocationID",
    "HabitatOfRinging": "Plot",
    "YCoord": "Latitude",
    "XCoord": "Longitude",
}

INTEGER_COLUMNS = [
    "BreedingSeason", "LayDay", "HatchDay", "ClutchSize_observed",
    "BroodSize_observed", "NumberFledged_observed", "FemaleAge", "MaleAge",
    "Class",
]


@dataclass
class NormalizedData:
    """Normalized primary data: one row per brood plus the chick relation."""

    broods: pd.DataFrame
    chicks: pd.DataFrame  # BroodKey, BroodID, ChickNumber, IndvID

    @property
    def n_broods(self):
        return len(self.broods)

    @property
    def n_chicks(self):
        return len(self.chicks)


def to_int(series):
    """Coerce to nullable Int64; non-numeric and non-integral values become NA."""
    numeric = pd.to_numeric(series, errors="coerce")
    return numeric.where(numeric % 1 == 0).astype("Int64")


def format_id(value):
    """Return an identifier as a clean string, or None when missing.

    Excel stores numeric ring and nest numbers as floats; integral floats
    lose their trailing ``.0``.
    """
    if value is None or pd.isna(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value).strip()
    return text or None


def pad_location_id(value, width=None):
    """Zero-pad a nest identifier, e.g. ``"7"`` → ``"007"``."""
    if width is None:
        width = config.LOCATION_ID_WIDTH
    text = format_id(value)
    if text is None:
        return None
    return text.zfill(width)


def season_day_to_date(season, day):
    """Convert day-of-season numbers (day 1 = 1 March) to timestamps.

    Parameters
    ----------
    season, day : pd.Series
        Nullable integer series of equal length.

    Returns
    -------
    pd.Series
        datetime64 series; NaT where either part is missing.
    """
    season_start = f"-{config.SEASON_START_MONTH:02d}-{config.SEASON_START_DAY:02d}"
    start = pd.to_datetime(
        season.astype("string") + season_start, format="%Y-%m-%d", errors="coerce",
    )
    days = pd.Series(day.to_numpy(dtype="float64", na_value=np.nan), index=day.index)
    offset = pd.to_timedelta(days - 1, unit="D")
    return start + offset


def make_brood_id(season, location_id, lay_day):
    """BroodID = BreedingSeason_LocationID_LayDay (lay day zero-padded)."""
    if pd.isna(lay_day):
        day = "NA"
    else:
        day = str(int(lay_day)).zfill(config.LAY_DAY_WIDTH)
    return f"{season}_{location_id}_{day}"


def map_observed_clutch_type(class_codes):
    """Map observed class codes to clutch types; unknown codes become None."""
    return class_codes.map(
        lambda c: config.OBSERVED_CLUTCH_CLASSES.get(int(c)) if pd.notna(c) else None
    )


def chick_relation(df):
    """Reshape wide chick identifier columns into one row per chick.

    Parameters
    ----------
    df : pd.DataFrame
        Must contain BroodKey, BroodID and ``config.CHICK_ID_COLUMNS``.

    Returns
    -------
    pd.DataFrame
        Columns BroodKey, BroodID, ChickNumber (1-13), IndvID; missing IDs
        dropped. BroodKey is the row of the brood the chick came from, which
        stays unique when two broods share a BroodID.
    """
    long = df.melt(
        id_vars=["BroodKey", "BroodID"],
        value_vars=config.CHICK_ID_COLUMNS,
        var_name="ChickColumn",
        value_name="IndvID",
    )
    long["IndvID"] = long["IndvID"].map(format_id)
    long = long.dropna(subset=["IndvID"])
    long["ChickNumber"] = (
        long["ChickColumn"].str.extract(r"(\d+)", expand=False).astype(int)
    )
    long = long.sort_values(["BroodKey", "ChickNumber"], kind="stable")
    return long[["BroodKey", "BroodID", "ChickNumber", "IndvID"]].reset_index(drop=True)


def normalize_primary_data(raw, species=None):
    """Turn the cleaned primary table into standard-format brood rows.

    Parameters
    ----------
    raw : pd.DataFrame
        Output of loader.load_primary_data().
    species : iterable of str, optional
        Species codes to keep (default: all supported).

    Returns
    -------
    NormalizedData
    """
    species = resolve_species_filter(species)

    df = raw.rename(columns=RENAME_MAP).copy()
    for col in INTEGER_COLUMNS:
        df[col] = to_int(df[col])

    df["Species"] = df["Species"].map(species_code)
    unmapped = int(df["Species"].isna().sum())
    if unmapped:
        log.warning("%d rows with unrecognised species names dropped", unmapped)
    n_before = len(df)
    df = df[df["Species"].isin(species)].reset_index(drop=True)
    log.info("Species filter %s kept %d of %d rows", species, len(df), n_before)
    df["BroodKey"] = df.index

    df["PopID"] = config.POP_ID
    df["LocationID"] = df["LocationID"].map(pad_location_id)
    df["FemaleID"] = df["FemaleID"].map(format_id)
    df["MaleID"] = df["MaleID"].map(format_id)
    df["BroodID"] = [
        make_brood_id(season, loc, day)
        for season, loc, day in zip(df["BreedingSeason"], df["LocationID"], df["LayDay"])
    ]
    df["ClutchType_observed"] = map_observed_clutch_type(df["Class"])
    df["LayDate_observed"] = season_day_to_date(df["BreedingSeason"], df["LayDay"])
    df["HatchDate_observed"] = season_day_to_date(df["BreedingSeason"], df["HatchDay"])
    df["FledgeDate_observed"] = pd.NaT

    chicks = chick_relation(df)
    broods = df.drop(columns=config.CHICK_ID_COLUMNS)

    missing_lay = int(broods["LayDate_observed"].isna().sum())
    if missing_lay:
        log.warning("%d broods have no lay date", missing_lay)

    return NormalizedData(broods=broods, chicks=chicks)
