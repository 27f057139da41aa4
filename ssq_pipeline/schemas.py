"""
Pandera DataFrame schemas for pipeline validation gates.

One schema for the cleaned primary workbook and one per standard-format
output table. They check structure and plausibility (value ranges,
allowed codes) without rejecting records that carry null sentinels.

Usage:
    from ssq_pipeline.schemas import BroodSchema
    BroodSchema.validate(df)  # raises pa.errors.SchemaError on failure
"""

import pandas as pd
import pandera as pa
from pandera import Column, Check, DataFrameSchema

from ssq_pipeline import config
from ssq_pipeline.formulas.euring import EURING_AGE_CODES
from ssq_pipeline.formulas.species import SUPPORTED_SPECIES

SEASON_RANGE = (config.LOCATION_START_SEASON, 2100)
EURING_CODES = list(EURING_AGE_CODES)
CLUTCH_TYPES = ["first", "second", "replacement"]

_is_datetime = Check(
    lambda s: pd.api.types.is_datetime64_any_dtype(s),
    element_wise=False,
    error="column is not datetime64",
)


# ── Primary workbook (cleaned names) ────────────────────────────────────

PrimaryDataSchema = DataFrameSchema(
    columns={
        "Year": Column(None, Check.in_range(*SEASON_RANGE), nullable=False),
        "Species": Column(None, nullable=True),
        "Ld": Column(None, Check.in_range(1, 200), nullable=True),
        "Cs": Column(None, Check.in_range(0, 20), nullable=True),
        "Hs": Column(None, Check.greater_than_or_equal_to(0), nullable=True),
        "Fs": Column(None, Check.greater_than_or_equal_to(0), nullable=True),
        "Class": Column(None, Check.isin(list(config.OBSERVED_CLUTCH_CLASSES)), nullable=True),
        "NestId": Column(None, nullable=True),
    },
    # Chick, parent and coordinate columns are checked by the loader only.
    strict=False,
    coerce=False,
    name="PrimaryDataSchema",
)


# ── Brood ───────────────────────────────────────────────────────────────

BroodSchema = DataFrameSchema(
    columns={
        "BroodID": Column(str, nullable=False),
        "PopID": Column(str, Check.equal_to(config.POP_ID), nullable=False),
        "BreedingSeason": Column("Int64", Check.in_range(*SEASON_RANGE), nullable=False),
        "Species": Column(str, Check.isin(list(SUPPORTED_SPECIES)), nullable=False),
        "ClutchType_observed": Column(None, Check.isin(CLUTCH_TYPES), nullable=True),
        "ClutchType_calculated": Column(None, Check.isin(CLUTCH_TYPES), nullable=True),
        "LayDate_observed": Column(None, _is_datetime, nullable=True),
        "ClutchSize_observed": Column("Int64", Check.in_range(0, 20), nullable=True),
        "BroodSize_observed": Column("Int64", Check.greater_than_or_equal_to(0), nullable=True),
        "NumberFledged_observed": Column("Int64", Check.greater_than_or_equal_to(0), nullable=True),
    },
    strict=False,
    coerce=False,
    name="BroodSchema",
)


# ── Capture ─────────────────────────────────────────────────────────────

CaptureSchema = DataFrameSchema(
    columns={
        "CaptureID": Column(str, nullable=False, unique=True),
        "IndvID": Column(str, nullable=False),
        "BreedingSeason": Column("Int64", Check.in_range(*SEASON_RANGE), nullable=False),
        "CaptureDate": Column(None, _is_datetime, nullable=True),
        "CapturePopID": Column(str, Check.equal_to(config.POP_ID), nullable=False),
        "Age_observed": Column("Int64", Check.isin(EURING_CODES), nullable=True),
        "Age_calculated": Column("Int64", Check.isin(EURING_CODES), nullable=True),
    },
    strict=False,
    coerce=False,
    name="CaptureSchema",
)


# ── Individual ──────────────────────────────────────────────────────────

IndividualSchema = DataFrameSchema(
    columns={
        "IndvID": Column(str, nullable=False),
        "Species": Column(
            str,
            Check.isin(list(SUPPORTED_SPECIES) + [config.CONFLICTED_SPECIES]),
            nullable=False,
        ),
        "RingSeason": Column("Int64", Check.in_range(*SEASON_RANGE), nullable=False),
        "RingAge": Column(str, Check.isin(["chick", "adult"]), nullable=False),
        "Sex_calculated": Column(
            None, Check.isin(["F", "M", config.CONFLICTED_SEX]), nullable=True
        ),
    },
    strict=False,
    coerce=False,
    name="IndividualSchema",
)


# ── Location ────────────────────────────────────────────────────────────

LocationSchema = DataFrameSchema(
    columns={
        "LocationID": Column(str, nullable=True, unique=True),
        "LocationType": Column(str, Check.equal_to(config.LOCATION_TYPE), nullable=False),
        "Latitude": Column(None, Check.in_range(-90.0, 90.0), nullable=True),
        "Longitude": Column(None, Check.in_range(-180.0, 180.0), nullable=True),
    },
    strict=False,
    coerce=False,
    name="LocationSchema",
)

TABLE_SCHEMAS = {
    "Brood_data": BroodSchema,
    "Capture_data": CaptureSchema,
    "Individual_data": IndividualSchema,
    "Location_data": LocationSchema,
}


# ── Convenience validation function ─────────────────────────────────────

def validate_schema(df, schema, step_name, strict=False):
    """Validate a DataFrame against a Pandera schema.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to validate.
    schema : pa.DataFrameSchema
        Schema to validate against.
    step_name : str
        Pipeline step name for error messages.
    strict : bool
        If True, raise on failure. If False, return warnings list.

    Returns
    -------
    list[str]
        Validation warning messages (empty if all pass).

    Raises
    ------
    ValueError
        Only if strict=True and validation fails.
    """
    warnings_list = []

    if df is None:
        msg = f"[{step_name}] DataFrame is None"
        if strict:
            raise ValueError(msg)
        return [msg]

    if len(df) == 0:
        msg = f"[{step_name}] DataFrame is empty (0 rows)"
        if strict:
            raise ValueError(msg)
        return [msg]

    try:
        schema.validate(df, lazy=True)
    except pa.errors.SchemaErrors as exc:
        for failure in exc.failure_cases.itertuples():
            msg = (
                f"[{step_name}] Schema violation: "
                f"column='{failure.column}' check='{failure.check}' "
                f"failure_case={failure.failure_case}"
            )
            warnings_list.append(msg)

        if strict:
            raise ValueError(
                f"[{step_name}] Schema validation failed with "
                f"{len(warnings_list)} errors"
            ) from exc

    return warnings_list
