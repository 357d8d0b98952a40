"""
Integration tests for the project-level QA workflow with file storage.
"""

import pytest

from src.indicator_qa.db.dal import JsonFileQARepository
from src.indicator_qa.processors.edits import DataEdit, EditSession
from src.indicator_qa.processors.issue_lifecycle import AUTO_RESOLVED_COMMENT
from src.indicator_qa.processors.qa_core import CheckType
from src.indicator_qa.processors.qa_processor import QAProcessor
from tests.qa.fixtures.data_generators import yearly_series


@pytest.fixture
def processor(json_repository):
    return QAProcessor(repository=json_repository)


@pytest.fixture
def records():
    return yearly_series([10, 11, -5, 12], start_year=2018)


class TestQAProcessorService:

    def test_default_repository_is_in_memory(self, records):
        processor = QAProcessor()

        results = processor.scan("p1", records)

        assert processor.active_issues("p1") == results.issues

    def test_scan_persists_results(self, processor, records, tmp_path):
        results = processor.scan("p1", records)

        reopened = QAProcessor(repository=JsonFileQARepository(str(tmp_path / "projects")))
        assert reopened.active_issues("p1") == results.issues

    def test_active_issues_unknown_project(self, processor):
        assert processor.active_issues("nothing") == []
        assert processor.quality_score("nothing", []) is None

    def test_dismiss_removes_from_active(self, processor, records):
        results = processor.scan("p1", records)
        issue_id = results.issues[0].id

        statuses = processor.dismiss("p1", issue_id, "analyst", comment="known revision")

        assert statuses[0].status == "dismissed"
        assert statuses[0].metadata == {"comment": "known revision"}
        assert processor.active_issues("p1") == []

    def test_dismiss_restores_quality(self, processor, records):
        results = processor.scan("p1", records)
        assert results.quality_score.overall < 100

        processor.dismiss("p1", results.issues[0].id, "analyst", records=records)

        assert processor.quality_score("p1", records).overall == 100
        stored = processor.repository.load_results("p1")
        assert stored.quality_score.overall == 100

    def test_unknown_issue_id(self, processor, records):
        processor.scan("p1", records)

        with pytest.raises(KeyError):
            processor.resolve("p1", "QA-missing", "analyst")

    def test_invalid_status(self, processor, records):
        results = processor.scan("p1", records)

        with pytest.raises(ValueError):
            processor.set_status("p1", results.issues[0].id, "closed", "analyst")

    def test_reactivate_issue(self, processor, records):
        results = processor.scan("p1", records)
        issue_id = results.issues[0].id
        processor.resolve("p1", issue_id, "analyst")

        processor.set_status("p1", issue_id, "active", "analyst")

        assert [i.id for i in processor.active_issues("p1")] == [issue_id]


class TestRevalidation:

    def test_edit_auto_resolves_and_persists(self, processor, records):
        results = processor.scan("p1", records)
        issue_id = results.issues[0].id
        assert results.issues[0].check_type == CheckType.VALUE_RANGE

        edited = [dict(r) for r in records]
        edited[2]["value"] = 5
        outcome = processor.revalidate("p1", edited, updated_by="editor")

        assert outcome.auto_resolved_count == 1
        assert outcome.auto_resolved_ids == [issue_id]
        assert outcome.updated_issues == []

        stored = processor.repository.load_statuses("p1")
        assert stored[0].issue_id == issue_id
        assert stored[0].status == "resolved"
        assert stored[0].updated_by == "editor"
        assert stored[0].metadata == {"autoResolved": True, "comment": AUTO_RESOLVED_COMMENT}
        assert processor.repository.load_results("p1").issues == []

    def test_unrelated_edit_keeps_issue(self, processor, records):
        processor.scan("p1", records)

        edited = [dict(r) for r in records]
        edited[0]["value"] = 10.5
        outcome = processor.revalidate("p1", edited)

        assert outcome.auto_resolved_count == 0
        assert len(processor.active_issues("p1")) == 1

    def test_dismissed_issue_not_auto_resolved(self, processor, records):
        results = processor.scan("p1", records)
        issue_id = results.issues[0].id
        processor.dismiss("p1", issue_id, "analyst")

        edited = [dict(r) for r in records]
        edited[2]["value"] = 5
        outcome = processor.revalidate("p1", edited)

        assert outcome.auto_resolved_count == 0
        assert processor.repository.load_statuses("p1")[0].status == "dismissed"

    def test_first_revalidation_resolves_nothing(self, processor, records):
        outcome = processor.revalidate("fresh", records)

        assert outcome.auto_resolved_count == 0
        assert len(processor.active_issues("fresh")) == 1

    def test_apply_edit_session(self, processor, records):
        processor.scan("p1", records)
        session = EditSession(file_name="gdp.xlsx")
        session.add_edits([DataEdit("GDP", "Total", 2020, new_value=5, old_value=-5)], now=1)

        outcome = processor.apply_edit_session("p1", records, session, updated_by="editor")

        assert outcome.auto_resolved_count == 1
        assert processor.active_issues("p1") == []
        assert records[2]["value"] == -5
