"""
Clutch-type classification: first, second or replacement clutch.

All functions are pure (no I/O). ``classify_clutch_types`` labels the
broods of one female in one season; ``calc_clutch_type`` applies it to
every (BreedingSeason, FemaleID) group of a brood table.
"""

from enum import Enum
from typing import Sequence

import pandas as pd

from ssq_pipeline import config
from ssq_pipeline.records import BroodRecord


class ClutchType(str, Enum):
    """Calculated clutch type of a brood."""
    FIRST = "first"
    SECOND = "second"
    REPLACEMENT = "replacement"
    UNKNOWN = "unknown"


def _is_missing(value):
    return value is None or bool(pd.isna(value))


def _days_between(earlier, later):
    """Whole days from *earlier* to *later* for dates or plain day numbers."""
    delta = later - earlier
    return getattr(delta, "days", delta)


def brood_succeeded(brood: BroodRecord) -> bool:
    """True if at least one young survived the brood.

    Fledgling count decides when recorded; otherwise a non-zero brood size
    counts as success. Zero or missing on both counts as failure.
    """
    if not _is_missing(brood.number_fledged):
        return brood.number_fledged > 0
    if not _is_missing(brood.brood_size):
        return brood.brood_size > 0
    return False


def classify_clutch_types(
    broods: Sequence[BroodRecord],
    max_renest_interval: int | None = None,
) -> list[ClutchType]:
    """Classify the broods of one female in one breeding season.

    Single left-to-right scan carrying only the lay date and outcome of the
    previous classified (non-unknown) brood:

        no lay date                                → unknown
        no previous classified brood              → first
        same lay date as previous                 → unknown (companion brood)
        gap > max_renest_interval                 → unknown
        previous failed,    gap <= interval       → replacement
        previous succeeded, gap <= interval       → second

    Unknown broods never become the anchor for later broods.

    Parameters
    ----------
    broods : sequence of BroodRecord
        Broods sorted ascending by lay date (stable; missing dates last).
    max_renest_interval : int, optional
        Days. Defaults to config.MAX_RENEST_INTERVAL_DAYS.

    Returns
    -------
    list[ClutchType]
        Aligned 1:1 with *broods*.
    """
    if max_renest_interval is None:
        max_renest_interval = config.MAX_RENEST_INTERVAL_DAYS

    labels = []
    previous = None  # (lay_date, succeeded)

    for brood in broods:
        if _is_missing(brood.lay_date):
            labels.append(ClutchType.UNKNOWN)
            continue

        if previous is None:
            labels.append(ClutchType.FIRST)
            previous = (brood.lay_date, brood_succeeded(brood))
            continue

        previous_date, previous_succeeded = previous
        gap = _days_between(previous_date, brood.lay_date)

        if gap <= 0 or gap > max_renest_interval:
            labels.append(ClutchType.UNKNOWN)
            continue

        labels.append(ClutchType.SECOND if previous_succeeded else ClutchType.REPLACEMENT)
        previous = (brood.lay_date, brood_succeeded(brood))

    return labels


def calc_clutch_type(brood_df, max_renest_interval=None,
                     column="ClutchType_calculated"):
    """Add the calculated clutch type to a brood table.

    Rows are sorted stably by BreedingSeason, FemaleID and LayDate_observed
    (missing lay dates last) and each (BreedingSeason, FemaleID) group is
    classified independently. Broods without a FemaleID cannot be placed
    in a breeding sequence and are unknown.

    Parameters
    ----------
    brood_df : pd.DataFrame
        Standard-format brood columns (BreedingSeason, FemaleID,
        LayDate_observed, BroodSize_observed, NumberFledged_observed).
    max_renest_interval : int, optional
        Days. Defaults to config.MAX_RENEST_INTERVAL_DAYS.
    column : str
        Output column name.

    Returns
    -------
    pd.DataFrame
        Sorted copy with *column* holding ClutchType values
        ("first", "second", "replacement", "unknown").
    """
    ordered = brood_df.sort_values(
        ["BreedingSeason", "FemaleID", "LayDate_observed"],
        kind="stable",
        na_position="last",
    ).reset_index(drop=True)
    labels = pd.Series(ClutchType.UNKNOWN.value, index=ordered.index, dtype="object")

    for _, group in ordered.groupby(["BreedingSeason", "FemaleID"], sort=False):
        records = [BroodRecord.from_row(row) for row in group.to_dict("records")]
        group_labels = classify_clutch_types(records, max_renest_interval)
        labels.loc[group.index] = [label.value for label in group_labels]

    ordered[column] = labels
    return ordered
