"""
Tests for ssq_pipeline/formulas/euring.py and ssq_pipeline/formulas/age.py.

Verifies EURING projection rules, anchor selection and the DataFrame
adapter used on the Capture table.
"""

import pandas as pd
import pytest

from ssq_pipeline.formulas.age import calc_age, find_age_anchor, resolve_ages
from ssq_pipeline.formulas.euring import (
    AGE_CODE_CEILING,
    EURING_AGE_CODES,
    is_known_age,
    project_age,
)
from ssq_pipeline.records import CaptureRecord


def _captures(*pairs):
    """Helper: CaptureRecords from (season, age_observed) pairs."""
    return [
        CaptureRecord(individual_id="A", breeding_season=season, age_observed=age)
        for season, age in pairs
    ]


class TestEuringTable:

    def test_codes_are_contiguous(self):
        assert sorted(EURING_AGE_CODES) == list(range(1, AGE_CODE_CEILING + 1))

    def test_exact_codes_are_odd(self):
        for code, entry in EURING_AGE_CODES.items():
            assert entry.code == code
            assert entry.exact == (code % 2 == 1), f"code {code}"

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            EURING_AGE_CODES[9] = None

    @pytest.mark.parametrize("value,expected", [
        (1, True), (5, True), (5.0, True), (8, True),
        (0, False), (9, False), (None, False), (float("nan"), False),
        (pd.NA, False), ("5", False), (2.5, False),
    ])
    def test_is_known_age(self, value, expected):
        assert is_known_age(value) is expected


class TestProjectAge:

    def test_zero_seasons_keeps_code(self):
        for code in EURING_AGE_CODES:
            assert project_age(code, 0) == code

    def test_pullus_projects_from_first_year(self):
        assert project_age(1, 1) == 5
        assert project_age(1, 2) == 7

    def test_two_steps_per_season(self):
        assert project_age(5, 1) == 7
        assert project_age(4, 1) == 6
        assert project_age(2, 1) == 4

    def test_ceiling(self):
        assert project_age(7, 1) == AGE_CODE_CEILING
        assert project_age(6, 5) == AGE_CODE_CEILING
        assert project_age(1, 10) == AGE_CODE_CEILING

    def test_backwards_exact(self):
        assert project_age(5, -1) == 3
        assert project_age(7, -2) == 3
        assert project_age(5, -2) is None

    def test_backwards_open_ended(self):
        assert project_age(6, -1) == 4
        assert project_age(6, -2) == 2
        assert project_age(6, -3) is None

    def test_no_backwards_before_hatching(self):
        assert project_age(1, -1) is None
        assert project_age(3, -1) is None
        assert project_age(2, -1) is None


class TestResolveAges:

    def test_no_known_age_all_unresolved(self):
        captures = _captures((2019, None), (2020, None), (2021, float("nan")))
        assert resolve_ages(captures) == [None, None, None]

    def test_empty_history(self):
        assert resolve_ages([]) == []

    def test_chick_ring_year_is_hatch_year(self):
        captures = _captures((2019, 1), (2020, None), (2021, 5))
        assert resolve_ages(captures) == [1, 5, 7]

    def test_earliest_known_age_is_anchor(self):
        """A later conflicting code does not override the earliest anchor."""
        captures = _captures((2019, None), (2020, 5), (2021, 4))
        assert find_age_anchor(captures) == (2020, 5)
        assert resolve_ages(captures) == [3, 5, 7]

    def test_same_season_captures_share_code(self):
        captures = _captures((2020, 6), (2020, None))
        assert resolve_ages(captures) == [6, 6]

    def test_unknown_codes_skipped_as_anchor(self):
        captures = _captures((2019, 0), (2020, 6))
        assert resolve_ages(captures) == [4, 6]

    def test_falls_back_to_capture_year(self):
        captures = [
            CaptureRecord("A", pd.Timestamp("2019-05-01"), 5, None),
            CaptureRecord("A", pd.Timestamp("2020-05-01"), None, None),
        ]
        assert resolve_ages(captures) == [5, 7]

    def test_missing_season_and_date(self):
        captures = [
            CaptureRecord("A", None, 5, 2019),
            CaptureRecord("A", None, None, None),
        ]
        assert resolve_ages(captures) == [5, None]

    def test_idempotent(self):
        captures = _captures((2018, None), (2019, 6), (2020, None), (2022, None))
        first = resolve_ages(captures)
        again = resolve_ages(_captures(*zip([2018, 2019, 2020, 2022], first)))
        assert first == [4, 6, 8, 8]
        assert again == first


class TestCalcAge:

    def test_groups_by_individual(self):
        df = pd.DataFrame({
            "IndvID": ["B", "A", "A", "B"],
            "CaptureDate": pd.to_datetime(
                ["2021-05-01", "2020-05-10", "2021-04-01", "2020-04-01"]
            ),
            "BreedingSeason": [2021, 2020, 2021, 2020],
            "Age_observed": pd.array([None, 1, None, None], dtype="Int64"),
        })
        out = calc_age(df)
        assert out["IndvID"].tolist() == ["A", "A", "B", "B"]
        assert out["Age_calculated"].dtype == "Int64"
        assert out["Age_calculated"].iloc[0] == 1
        assert out["Age_calculated"].iloc[1] == 5
        assert out["Age_calculated"].isna().iloc[2:].all()

    def test_sorted_by_capture_date(self):
        df = pd.DataFrame({
            "IndvID": ["A", "A"],
            "CaptureDate": pd.to_datetime(["2021-05-01", "2020-05-01"]),
            "BreedingSeason": [2021, 2020],
            "Age_observed": pd.array([6, 5], dtype="Int64"),
        })
        out = calc_age(df)
        assert out["BreedingSeason"].tolist() == [2020, 2021]
        assert out["Age_calculated"].tolist() == [5, 7]
