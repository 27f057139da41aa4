"""
Assembly of the four standard-format tables from normalized SSQ data.

All functions are pure: they take DataFrames and return new DataFrames
in template column order.
"""

import numpy as np
import pandas as pd

from ssq_pipeline import config
from ssq_pipeline.formulas.age import calc_age
from ssq_pipeline.formulas.clutch_type import ClutchType, calc_clutch_type
from ssq_pipeline.logging_config import get_pipeline_logger
from ssq_pipeline.templates import (
    BROOD_COLUMNS,
    CAPTURE_COLUMNS,
    INDIVIDUAL_COLUMNS,
    LOCATION_COLUMNS,
    conform_to_template,
)

log = get_pipeline_logger(__name__)


# ── Brood ────────────────────────────────────────────────────────────────


def create_brood_table(broods, max_renest_interval=None):
    """Classify clutch types and conform broods to the Brood template.

    Unknown clutch types are written as nulls.
    """
    brood = calc_clutch_type(broods, max_renest_interval)
    brood["ClutchType_calculated"] = brood["ClutchType_calculated"].where(
        brood["ClutchType_calculated"] != ClutchType.UNKNOWN.value, None
    )
    return conform_to_template(brood, BROOD_COLUMNS)


# ── Capture ──────────────────────────────────────────────────────────────


def chick_capture_date(lay_date, clutch_size, offset_days=None):
    """Proxy capture date for chicks: lay date + clutch size + offset days.

    One egg is laid per day, so clutch completion falls ``clutch_size``
    days after the lay date; chicks were ringed ``offset_days`` later
    (incubation + ringing age). Works on scalars and Series; a missing
    part gives NaT.
    """
    if offset_days is None:
        offset_days = config.CHICK_CAPTURE_OFFSET_DAYS
    if isinstance(clutch_size, pd.Series):
        days = pd.Series(
            clutch_size.to_numpy(dtype="float64", na_value=np.nan),
            index=clutch_size.index,
        )
    else:
        days = np.nan if pd.isna(clutch_size) else float(clutch_size)
    return lay_date + pd.to_timedelta(days + offset_days, unit="D")


def _adult_captures(broods):
    """One capture per identified parent, dated at the nest's lay date."""
    shared = ["BreedingSeason", "PopID", "Plot", "LocationID", "Species", "LayDate_observed"]
    parts = []
    for id_col, age_col in (("FemaleID", "FemaleAge"), ("MaleID", "MaleAge")):
        part = broods[shared + [id_col, age_col]].rename(
            columns={id_col: "IndvID", age_col: "ParentAge"}
        )
        parts.append(part)

    adults = pd.concat(parts, ignore_index=True)
    adults = adults[adults["IndvID"].notna()].copy()
    # Missing parent age: an adult of unknown age, no code assumed.
    adults["Age_observed"] = (
        adults["ParentAge"].map(config.PARENT_AGE_TO_EURING).astype("Int64")
    )
    adults["CaptureDate"] = adults["LayDate_observed"]
    return adults.drop(columns=["ParentAge", "LayDate_observed"])


def _chick_captures(broods, chicks):
    """One capture per ringed chick, dated by the chick-ringing proxy."""
    brood_cols = [
        "BroodKey", "BreedingSeason", "PopID", "Plot", "LocationID", "Species",
        "LayDate_observed", "ClutchSize_observed",
    ]
    # BroodKey, not BroodID: broods without a lay day can share a BroodID.
    chick_rows = chicks[["BroodKey", "IndvID"]].merge(
        broods[brood_cols], on="BroodKey", how="left", validate="many_to_one",
    )
    chick_rows["CaptureDate"] = chick_capture_date(
        chick_rows["LayDate_observed"], chick_rows["ClutchSize_observed"]
    )
    chick_rows["Age_observed"] = pd.array(
        [config.CHICK_EURING_AGE] * len(chick_rows), dtype="Int64"
    )
    return chick_rows.drop(columns=["BroodKey", "LayDate_observed", "ClutchSize_observed"])


def create_capture_table(broods, chicks):
    """Build the Capture table from parents and ringed chicks.

    Captures are sorted by individual and date, numbered per individual
    (``CaptureID = IndvID_n``) and aged with calc_age().
    """
    captures = pd.concat(
        [_adult_captures(broods), _chick_captures(broods, chicks)],
        ignore_index=True,
    )
    captures["CapturePopID"] = captures["PopID"]
    captures["CapturePlot"] = captures["Plot"]
    captures["ReleasePopID"] = captures["PopID"]
    captures["ReleasePlot"] = captures["Plot"]
    captures["CaptureAlive"] = True
    captures["ReleaseAlive"] = True

    captures = calc_age(captures)
    captures["CaptureID"] = (
        captures["IndvID"] + "_"
        + (captures.groupby("IndvID").cumcount() + 1).astype(str)
    )
    return conform_to_template(captures, CAPTURE_COLUMNS)


# ── Individual ───────────────────────────────────────────────────────────


def calculate_sex(individual_ids, female_ids, male_ids):
    """Sex from parental role: F, M, or C (conflicted) when both."""
    females = set(female_ids.dropna())
    males = set(male_ids.dropna())

    def _sex(indv):
        is_female = indv in females
        is_male = indv in males
        if is_female and is_male:
            return config.CONFLICTED_SEX
        if is_female:
            return "F"
        if is_male:
            return "M"
        return None

    return individual_ids.map(_sex)


def create_individual_table(captures, broods, chicks):
    """Summarise each captured individual.

    Parameters
    ----------
    captures : pd.DataFrame
        Output of create_capture_table() (sorted by IndvID, CaptureDate).
    broods : pd.DataFrame
        Brood rows with FemaleID and MaleID.
    chicks : pd.DataFrame
        Chick relation (BroodID, IndvID).

    Returns
    -------
    pd.DataFrame
        Individual template columns. Ring numbers reused across nests
        yield one row per nest of origin.
    """
    ordered = captures.sort_values(
        ["IndvID", "CaptureDate"], kind="stable", na_position="last",
    )
    grouped = ordered.groupby("IndvID", sort=True)

    species_n = grouped["Species"].nunique()
    first_capture = ordered.drop_duplicates("IndvID", keep="first").set_index("IndvID")

    indv = pd.DataFrame(index=species_n.index)
    indv["Species"] = np.where(
        species_n > 1,
        config.CONFLICTED_SPECIES,
        first_capture["Species"].reindex(indv.index),
    )
    indv["RingSeason"] = grouped["BreedingSeason"].min().astype("Int64")
    first_age = first_capture["Age_observed"].reindex(indv.index)
    indv["RingAge"] = np.where(
        first_age.fillna(0).astype(int) == config.CHICK_EURING_AGE, "chick", "adult"
    )
    indv = indv.reset_index()
    indv["Sex_calculated"] = calculate_sex(
        indv["IndvID"], broods["FemaleID"], broods["MaleID"]
    )

    conflicted = int((indv["Species"] == config.CONFLICTED_SPECIES).sum())
    if conflicted:
        log.warning("%d individuals recorded under more than one species", conflicted)

    origin = chicks[["IndvID", "BroodID"]].rename(columns={"BroodID": "BroodIDLaid"})
    reused = int(origin["IndvID"].duplicated().sum())
    if reused:
        log.warning(
            "%d chick ring numbers appear in more than one brood; kept as-is", reused
        )
    indv = indv.merge(origin, on="IndvID", how="left")
    indv["BroodIDFledged"] = indv["BroodIDLaid"]
    indv["PopID"] = config.POP_ID

    return conform_to_template(indv, INDIVIDUAL_COLUMNS)


# ── Location ─────────────────────────────────────────────────────────────


def create_location_table(broods):
    """One nest box per LocationID with its first recorded coordinates.

    Broods without a nest number share a single row with a null
    LocationID, sorted last.
    """
    boxes = (
        broods.drop_duplicates("LocationID", keep="first")
        .sort_values("LocationID", na_position="last")
        [["LocationID", "Latitude", "Longitude"]]
        .copy()
    )
    boxes["NestboxID"] = boxes["LocationID"]
    boxes["LocationType"] = config.LOCATION_TYPE
    boxes["PopID"] = config.POP_ID
    boxes["StartSeason"] = config.LOCATION_START_SEASON
    boxes["EndSeason"] = pd.array([pd.NA] * len(boxes), dtype="Int64")
    return conform_to_template(boxes, LOCATION_COLUMNS)


# ── Audit ────────────────────────────────────────────────────────────────


def count_unresolved(tables):
    """Count records carrying null sentinels, for manual review.

    Parameters
    ----------
    tables : dict[str, pd.DataFrame]
        Output tables keyed as in templates.TEMPLATES.

    Returns
    -------
    dict[str, int]
    """
    brood = tables["Brood_data"]
    capture = tables["Capture_data"]
    indv = tables["Individual_data"]
    location = tables["Location_data"]
    return {
        "brood_lay_date_missing": int(brood["LayDate_observed"].isna().sum()),
        "brood_clutch_type_unknown": int(brood["ClutchType_calculated"].isna().sum()),
        "capture_date_missing": int(capture["CaptureDate"].isna().sum()),
        "capture_age_unresolved": int(capture["Age_calculated"].isna().sum()),
        "individual_species_conflicted": int(
            (indv["Species"] == config.CONFLICTED_SPECIES).sum()
        ),
        "individual_sex_conflicted": int(
            (indv["Sex_calculated"] == config.CONFLICTED_SEX).sum()
        ),
        "individual_sex_unknown": int(indv["Sex_calculated"].isna().sum()),
        "location_id_missing": int(location["LocationID"].isna().sum()),
    }
