"""
Record types consumed by the clutch-type and age algorithms.

Both are immutable views of one table row. ``from_row`` accepts a mapping
keyed by standard-format column names (e.g. one entry of
``DataFrame.to_dict("records")``).
"""

from dataclasses import dataclass
from typing import Any, Optional

import pandas as pd


def _value(row, key):
    """Return row[key], with pandas missing markers (NaN, NaT, NA) as None."""
    value = row.get(key)
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        # Array-like values are never missing markers.
        pass
    return value


@dataclass(frozen=True)
class BroodRecord:
    """One nesting attempt."""

    breeding_season: Optional[int] = None
    female_id: Optional[str] = None
    location_id: Optional[str] = None
    lay_date: Any = None
    clutch_size: Optional[int] = None
    hatch_date: Any = None
    brood_size: Optional[int] = None
    number_fledged: Optional[int] = None

    @classmethod
    def from_row(cls, row):
        return cls(
            breeding_season=_value(row, "BreedingSeason"),
            female_id=_value(row, "FemaleID"),
            location_id=_value(row, "LocationID"),
            lay_date=_value(row, "LayDate_observed"),
            clutch_size=_value(row, "ClutchSize_observed"),
            hatch_date=_value(row, "HatchDate_observed"),
            brood_size=_value(row, "BroodSize_observed"),
            number_fledged=_value(row, "NumberFledged_observed"),
        )


@dataclass(frozen=True)
class CaptureRecord:
    """One capture of one individual."""

    individual_id: Optional[str] = None
    capture_date: Any = None
    age_observed: Optional[int] = None
    breeding_season: Optional[int] = None

    @property
    def season(self):
        """Season used to count elapsed years; falls back to the capture year."""
        if self.breeding_season is not None:
            return int(self.breeding_season)
        if self.capture_date is not None:
            return int(self.capture_date.year)
        return None

    @classmethod
    def from_row(cls, row, age_column="Age_observed"):
        return cls(
            individual_id=_value(row, "IndvID"),
            capture_date=_value(row, "CaptureDate"),
            age_observed=_value(row, age_column),
            breeding_season=_value(row, "BreedingSeason"),
        )
