"""
Unit tests for edit sessions and applying edits to data.
"""

import copy

from src.indicator_qa.processors.edits import (
    DataEdit,
    IndicatorEdit,
    EditSession,
    apply_edits_to_data,
    apply_indicator_edits,
    merge_data_edits,
)
from tests.qa.fixtures.data_generators import make_record, yearly_series


class TestMergeDataEdits:

    def test_last_edit_wins(self):
        first = DataEdit("GDP", "Total", 2020, new_value=1, timestamp=1)
        second = DataEdit("GDP", "Total", 2020, new_value=2, timestamp=1)

        merged = merge_data_edits([first], [second], now=99)

        assert len(merged) == 1
        assert merged[0].new_value == 2
        assert merged[0].timestamp == 99

    def test_different_periods_kept(self):
        edits = [
            DataEdit("CPI", "All", 2023, new_value=1, month=1),
            DataEdit("CPI", "All", 2023, new_value=2, month=2),
            DataEdit("CPI", "All", 2023, new_value=3, quarter=1),
        ]

        merged = merge_data_edits([], edits, now=1)

        assert len(merged) == 3

    def test_existing_edits_keep_timestamp(self):
        existing = DataEdit("GDP", "Total", 2019, new_value=1, timestamp=5)

        merged = merge_data_edits([existing], [DataEdit("GDP", "Total", 2020, new_value=2)], now=10)

        assert [e.timestamp for e in merged] == [5, 10]

    def test_dict_round_trip(self):
        edit = DataEdit("GDP", "Total", 2020, new_value=2, old_value=1, month=3, timestamp=7, comment="fix")

        assert DataEdit.from_dict(edit.to_dict()) == edit
        assert "quarter" not in edit.to_dict()


class TestApplyEdits:

    def test_updates_matching_record(self):
        records = yearly_series([10, 11, 12], start_year=2020)

        edited = apply_edits_to_data(records, [DataEdit("GDP", "Total", 2021, new_value=99)])

        assert [r["value"] for r in edited] == [10, 99, 12]
        assert [r["value"] for r in records] == [10, 11, 12]

    def test_matches_on_month(self):
        records = [
            make_record("CPI", "All", 2023, 1, month=1),
            make_record("CPI", "All", 2023, 2, month=2),
        ]

        edited = apply_edits_to_data(records, [DataEdit("CPI", "All", 2023, new_value=50, month=2)])

        assert [r["value"] for r in edited] == [1, 50]

    def test_appends_missing_period(self):
        records = [make_record("GDP", "Total", 2019, 10), make_record("GDP", "Total", 2021, 12)]
        records[0]["unit"] = "SAR"

        edited = apply_edits_to_data(records, [DataEdit("GDP", "Total", 2020, new_value=11)])

        assert len(edited) == 3
        assert edited[2] == {"indicatorName": "GDP", "filterName": "Total", "year": 2020, "value": 11, "unit": "SAR"}

    def test_appended_record_gets_edit_period(self):
        records = [make_record("CPI", "All", 2023, 1, month=1)]

        edited = apply_edits_to_data(records, [DataEdit("CPI", "All", 2023, new_value=3, month=3)])

        assert edited[1]["month"] == 3
        assert edited[1]["value"] == 3

    def test_unknown_series_skipped(self):
        records = yearly_series([1, 2])

        edited = apply_edits_to_data(records, [DataEdit("Unknown", "Total", 2020, new_value=5)])

        assert edited == records
        assert edited is not records

    def test_input_not_mutated(self):
        records = yearly_series([1, 2, 3])
        snapshot = copy.deepcopy(records)

        apply_edits_to_data(records, [DataEdit("GDP", "Total", 2015, new_value=0),
                                      DataEdit("GDP", "Total", 2030, new_value=0)])

        assert records == snapshot

    def test_indicator_rename(self):
        records = yearly_series([1, 2], indicator="Old")

        renamed = apply_indicator_edits(records, [])
        assert renamed == records

        renamed = apply_indicator_edits(records, [IndicatorEdit("Old", "New")])

        assert {r["indicatorName"] for r in renamed} == {"New"}
        assert {r["indicatorName"] for r in records} == {"Old"}


class TestEditSession:

    def test_add_edits_refreshes_timestamp(self):
        session = EditSession(file_name="data.xlsx")

        session.add_edits([DataEdit("GDP", "Total", 2020, new_value=1)], now=42)
        session.add_edits([DataEdit("GDP", "Total", 2020, new_value=2)], now=43)

        assert session.last_updated == 43
        assert len(session.data_edits) == 1
        assert session.data_edits[0].new_value == 2

    def test_apply_renames_then_values(self):
        records = yearly_series([1, 2], indicator="Old", start_year=2020)
        session = EditSession(file_name="data.xlsx")
        session.rename_indicator("Old", "New", now=1)
        session.add_edits([DataEdit("New", "Total", 2021, new_value=20)], now=2)

        edited = session.apply(records)

        assert [(r["indicatorName"], r["value"]) for r in edited] == [("New", 1), ("New", 20)]

    def test_dict_round_trip(self):
        session = EditSession(file_name="data.xlsx")
        session.add_edits([DataEdit("GDP", "Total", 2020, new_value=1, old_value=0)], now=5)
        session.rename_indicator("A", "B", now=6)

        assert EditSession.from_dict(session.to_dict()) == session
