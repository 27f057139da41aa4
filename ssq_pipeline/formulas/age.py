"""
Age resolution across an individual's capture history.
"""

from typing import Sequence

import pandas as pd

from ssq_pipeline.formulas.euring import AGE_CODE_CEILING, is_known_age, project_age
from ssq_pipeline.records import CaptureRecord


def find_age_anchor(captures: Sequence[CaptureRecord]):
    """Return (season, code) of the earliest capture with a known age, or None."""
    for capture in captures:
        if is_known_age(capture.age_observed) and capture.season is not None:
            return capture.season, int(capture.age_observed)
    return None


def resolve_ages(captures: Sequence[CaptureRecord], ceiling: int = AGE_CODE_CEILING):
    """Resolve an EURING age code for every capture of one individual.

    The earliest capture carrying a known age code is the anchor; every
    capture (the anchor included) gets the anchor code projected by the
    number of seasons between them. A chick ringed as pullus therefore
    anchors its hatch year at the ring season.

    Parameters
    ----------
    captures : sequence of CaptureRecord
        One individual's captures sorted by capture date.
    ceiling : int
        Highest code produced by forward projection.

    Returns
    -------
    list[int | None]
        Aligned 1:1 with *captures*. All None when no capture carries a
        known age; None is never a EURING code, so this stays distinct
        from an explicitly coded unknown-age adult (2 or 4).
    """
    anchor = find_age_anchor(captures)
    if anchor is None:
        return [None] * len(captures)

    anchor_season, anchor_code = anchor
    ages = []
    for capture in captures:
        season = capture.season
        if season is None:
            ages.append(None)
        else:
            ages.append(project_age(anchor_code, season - anchor_season, ceiling))
    return ages


def calc_age(capture_df, age_column="Age_observed", output_column="Age_calculated"):
    """Add resolved ages to a capture table.

    Captures are ordered stably by IndvID and CaptureDate (missing dates
    last) and each individual is resolved independently.

    Parameters
    ----------
    capture_df : pd.DataFrame
        Standard-format captures (IndvID, CaptureDate, BreedingSeason and
        *age_column*).
    age_column : str
        Column holding observed EURING codes (nullable).
    output_column : str
        Column receiving resolved codes, nullable Int64.

    Returns
    -------
    pd.DataFrame
        Sorted copy with *output_column* added.
    """
    ordered = capture_df.sort_values(
        ["IndvID", "CaptureDate"], kind="stable", na_position="last",
    ).reset_index(drop=True)
    resolved = pd.Series(pd.NA, index=ordered.index, dtype="Int64")

    for _, group in ordered.groupby("IndvID", sort=False):
        records = [
            CaptureRecord.from_row(row, age_column=age_column)
            for row in group.to_dict("records")
        ]
        resolved.loc[group.index] = pd.array(resolve_ages(records), dtype="Int64")

    ordered[output_column] = resolved
    return ordered
