"""
Tests for ssq_pipeline/formulas/clutch_type.py.

Verifies the per-female, per-season clutch-type scan and its DataFrame
adapter.

CRITICAL: ClutchType_calculated is what comparative analyses use to
separate first from repeat breeding attempts. A wrong anchor or outcome
rule silently shifts every later brood of a female into the wrong class.
"""

import pandas as pd
import pytest

from ssq_pipeline import config
from ssq_pipeline.formulas.clutch_type import (
    ClutchType,
    brood_succeeded,
    calc_clutch_type,
    classify_clutch_types,
)
from ssq_pipeline.records import BroodRecord

FIRST = ClutchType.FIRST
SECOND = ClutchType.SECOND
REPLACEMENT = ClutchType.REPLACEMENT
UNKNOWN = ClutchType.UNKNOWN


def _brood(lay_date, fledged=None, brood_size=None):
    """Helper: BroodRecord with only the fields the classifier reads."""
    return BroodRecord(
        breeding_season=2020,
        female_id="F1",
        lay_date=lay_date,
        brood_size=brood_size,
        number_fledged=fledged,
    )


class TestBroodOutcome:

    def test_fledglings_mean_success(self):
        assert brood_succeeded(_brood(10, fledged=3))

    def test_zero_fledglings_mean_failure(self):
        assert not brood_succeeded(_brood(10, fledged=0, brood_size=5))

    def test_brood_size_used_when_fledging_unknown(self):
        assert brood_succeeded(_brood(10, brood_size=4))
        assert not brood_succeeded(_brood(10, brood_size=0))

    def test_all_missing_counts_as_failure(self):
        assert not brood_succeeded(_brood(10))

    def test_nan_counts_as_missing(self):
        assert not brood_succeeded(_brood(10, fledged=float("nan")))


class TestClassifyClutchTypes:
    """Core scan rules on one female/season group."""

    def test_single_brood_is_first(self):
        assert classify_clutch_types([_brood(10, fledged=2)]) == [FIRST]

    def test_empty_group(self):
        assert classify_clutch_types([]) == []

    def test_failed_then_renest_is_replacement(self):
        """Lay-days 10 (0 fledged) and 25 within a 30-day window."""
        broods = [_brood(10, fledged=0), _brood(25, fledged=3)]
        assert classify_clutch_types(broods, 30) == [FIRST, REPLACEMENT]

    def test_success_then_renest_is_second(self):
        broods = [_brood(10, fledged=5), _brood(35, fledged=2)]
        assert classify_clutch_types(broods, 30) == [FIRST, SECOND]

    def test_gap_beyond_interval_is_unknown(self):
        """Lay-days 10 (succeeds) and 100: gap 90 > 30."""
        broods = [_brood(10, fledged=5), _brood(100, fledged=2)]
        assert classify_clutch_types(broods, 30) == [FIRST, UNKNOWN]

    def test_gap_equal_to_interval_is_within(self):
        broods = [_brood(10, fledged=0), _brood(40)]
        assert classify_clutch_types(broods, 30) == [FIRST, REPLACEMENT]

    def test_same_day_companion_is_unknown(self):
        broods = [_brood(10, fledged=3), _brood(10, fledged=3)]
        assert classify_clutch_types(broods, 30) == [FIRST, UNKNOWN]

    def test_missing_lay_date_is_unknown(self):
        broods = [_brood(None, fledged=3)]
        assert classify_clutch_types(broods, 30) == [UNKNOWN]

    def test_missing_lay_date_does_not_become_anchor(self):
        broods = [_brood(10, fledged=0), _brood(20, fledged=4), _brood(None)]
        assert classify_clutch_types(broods, 30) == [FIRST, REPLACEMENT, UNKNOWN]

    def test_unknown_brood_is_not_carried_forward(self):
        """After an unknown brood, later broods compare with the last anchor."""
        broods = [
            _brood(10, fledged=0),
            _brood(10, fledged=5),   # companion, unknown
            _brood(30, fledged=5),
        ]
        assert classify_clutch_types(broods, 30) == [FIRST, UNKNOWN, REPLACEMENT]

    def test_state_is_previous_classified_brood_only(self):
        """Third brood depends on the second brood's outcome, not the first's."""
        broods = [
            _brood(10, fledged=0),
            _brood(25, fledged=4),
            _brood(50, fledged=1),
        ]
        assert classify_clutch_types(broods, 30) == [FIRST, REPLACEMENT, SECOND]

    def test_dates_accepted(self):
        day = pd.Timestamp("2020-03-10")
        broods = [
            _brood(day, fledged=0),
            _brood(day + pd.Timedelta(days=15)),
        ]
        assert classify_clutch_types(broods, 30) == [FIRST, REPLACEMENT]

    def test_nat_lay_date_is_unknown(self):
        broods = [_brood(pd.Timestamp("2020-03-10"), fledged=2), _brood(pd.NaT)]
        assert classify_clutch_types(broods, 30) == [FIRST, UNKNOWN]

    def test_default_interval_from_config(self):
        gap = config.MAX_RENEST_INTERVAL_DAYS
        broods = [_brood(1, fledged=3), _brood(1 + gap), _brood(1 + 3 * gap)]
        assert classify_clutch_types(broods) == [FIRST, SECOND, UNKNOWN]

    def test_output_aligned_with_input(self):
        broods = [_brood(d, fledged=1) for d in (5, 10, 10, 60, None, 61)]
        assert len(classify_clutch_types(broods, 30)) == len(broods)

    def test_labels_are_strings(self):
        """ClutchType is a str enum so it serializes as its value."""
        assert FIRST == "first"
        assert REPLACEMENT.value == "replacement"


class TestCalcClutchType:
    """DataFrame adapter: grouping, sorting and null handling."""

    def _df(self, rows):
        return pd.DataFrame(
            rows,
            columns=["BreedingSeason", "FemaleID", "LayDate_observed",
                     "BroodSize_observed", "NumberFledged_observed"],
        )

    def test_groups_by_female_and_season(self):
        df = self._df([
            (2020, "A", 10, 5, 0),
            (2020, "A", 25, 5, 4),
            (2020, "B", 25, 5, 4),
            (2021, "A", 12, 5, 4),
        ])
        out = calc_clutch_type(df, 30)
        labels = dict(zip(zip(out["BreedingSeason"], out["FemaleID"], out["LayDate_observed"]),
                          out["ClutchType_calculated"]))
        assert labels[(2020, "A", 10)] == "first"
        assert labels[(2020, "A", 25)] == "replacement"
        assert labels[(2020, "B", 25)] == "first"
        assert labels[(2021, "A", 12)] == "first"

    def test_unsorted_input_is_sorted_by_lay_date(self):
        df = self._df([
            (2020, "A", 40, 5, 5),
            (2020, "A", 20, 5, 5),
        ])
        out = calc_clutch_type(df, 30)
        assert out["LayDate_observed"].tolist() == [20, 40]
        assert out["ClutchType_calculated"].tolist() == ["first", "second"]

    def test_missing_female_is_unknown(self):
        df = self._df([
            (2020, None, 10, 5, 5),
            (2020, "A", 10, 5, 5),
        ])
        out = calc_clutch_type(df, 30)
        by_female = dict(zip(out["FemaleID"].fillna("none"), out["ClutchType_calculated"]))
        assert by_female == {"A": "first", "none": "unknown"}

    def test_missing_lay_date_sorted_last(self):
        df = self._df([
            (2020, "A", None, 5, 5),
            (2020, "A", 30, 5, 5),
        ])
        out = calc_clutch_type(df, 30)
        assert out["ClutchType_calculated"].tolist() == ["first", "unknown"]

    def test_stable_order_for_ties(self):
        df = self._df([
            (2020, "A", 10, 5, 0),
            (2020, "A", 10, 5, 5),
        ])
        df["tag"] = ["row0", "row1"]
        out = calc_clutch_type(df, 30)
        assert out["tag"].tolist() == ["row0", "row1"]
        assert out["ClutchType_calculated"].tolist() == ["first", "unknown"]

    def test_does_not_mutate_input(self):
        df = self._df([(2020, "A", 10, 5, 0)])
        calc_clutch_type(df, 30)
        assert "ClutchType_calculated" not in df.columns

    def test_timestamps(self):
        df = self._df([
            (2020, "A", pd.Timestamp("2020-04-01"), 5, 0),
            (2020, "A", pd.Timestamp("2020-04-20"), 5, 3),
        ])
        out = calc_clutch_type(df, 30)
        assert out["ClutchType_calculated"].tolist() == ["first", "replacement"]
