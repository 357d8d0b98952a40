"""
Unit tests for QA result and status storage.
"""

import json
import os

import pytest

from src.indicator_qa.processors.issue_lifecycle import IssueStatus
from src.indicator_qa.processors.qa import QAResults, process_qa
from tests.qa.fixtures.data_generators import yearly_series


@pytest.fixture
def results():
    return process_qa(yearly_series([10, 11, -5, 12], start_year=2018))


class TestInMemoryRepository:

    def test_missing_project(self, memory_repository):
        assert memory_repository.load_results("p1") is None
        assert memory_repository.load_statuses("p1") == []

    def test_returns_copies(self, memory_repository):
        statuses = [IssueStatus("QA-1", "resolved")]
        memory_repository.save_statuses("p1", statuses)
        statuses[0].status = "active"

        loaded = memory_repository.load_statuses("p1")
        loaded[0].metadata["x"] = 1

        assert memory_repository.load_statuses("p1") == [IssueStatus("QA-1", "resolved")]

    def test_results_round_trip(self, memory_repository, results):
        memory_repository.save_results("p1", results)

        assert memory_repository.load_results("p1") == results


class TestJsonFileRepository:

    def test_results_round_trip(self, json_repository, results):
        json_repository.save_results("p1", results)

        loaded = json_repository.load_results("p1")

        assert isinstance(loaded, QAResults)
        assert loaded.issues == results.issues
        assert loaded.summary == results.summary
        assert loaded.quality_score == results.quality_score
        assert loaded.processed_at == results.processed_at
        assert loaded.missing_periods == results.missing_periods

    def test_file_layout(self, json_repository, results):
        json_repository.save_results("p1", results)
        json_repository.save_statuses("p1", [IssueStatus("QA-1", "dismissed", 1, "محلل")])

        project_dir = os.path.join(json_repository.base_dir, "p1")
        assert sorted(os.listdir(project_dir)) == ["issue_statuses.json", "qa_results.json"]

        with open(os.path.join(project_dir, "issue_statuses.json"), encoding="utf-8") as f:
            raw = f.read()
        assert "محلل" in raw
        assert json.loads(raw)[0]["userName"] == "محلل"

    def test_statuses_round_trip(self, json_repository):
        statuses = [IssueStatus("QA-1", "resolved", 5, "system", {"autoResolved": True, "comment": "c"})]

        json_repository.save_statuses("p1", statuses)

        assert json_repository.load_statuses("p1") == statuses

    def test_missing_project(self, json_repository):
        assert json_repository.load_results("nothing") is None
        assert json_repository.load_statuses("nothing") == []

    @pytest.mark.parametrize("project_id", ["", "..", "a/b", "../etc"])
    def test_invalid_project_id(self, json_repository, project_id):
        with pytest.raises(ValueError):
            json_repository.load_statuses(project_id)
