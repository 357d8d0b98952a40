#!/usr/bin/env python3
"""
QA Processor Service
====================

Project-level QA workflow on top of the pure analysis functions:
- scan: analyse a dataset and store the results
- revalidate: re-run after edits and persist auto-resolved statuses
- set_status: record a user's resolve/dismiss action
- active_issues / quality_score: views that honour issue statuses

Storage is injected; the default keeps everything in memory.
"""

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from .edits import EditSession
from .issue_lifecycle import (
    IssueStatus, RevalidationResult, STATUS_DISMISSED, STATUS_RESOLVED,
    get_active_issues, recalculate_quality_with_filtered_issues,
    revalidate_issues_after_edit, set_issue_status,
)
from .qa import QAResults, process_qa
from .qa_core import QAConfig, QAIssue
from .quality import QualityScore
from ..db.dal import InMemoryQARepository, QARepository

logger = logging.getLogger(__name__)


class QAProcessor:
    """
    QA workflow for one repository of projects.

    Example:
        processor = QAProcessor(QAConfig.from_env(), JsonFileQARepository("data/projects"))
        results = processor.scan("budget-2024", records)
        processor.set_status("budget-2024", results.issues[0].id, "dismissed", "analyst")
    """

    def __init__(self, config: Optional[QAConfig] = None, repository: Optional[QARepository] = None):
        self.config = config or QAConfig()
        self.repository = repository if repository is not None else InMemoryQARepository()

    def scan(self, project_id: str, records: List[Dict]) -> QAResults:
        """Run QA on a dataset and store the results for the project."""
        results = process_qa(records, self.config)
        self.repository.save_results(project_id, results)
        return results

    def revalidate(self, project_id: str, records: List[Dict], updated_by: str = "system") -> RevalidationResult:
        """
        Re-run QA on edited data, auto-resolving issues that disappeared.

        Without stored results this is a first scan and nothing is resolved.
        """
        previous = self.repository.load_results(project_id)
        statuses = self.repository.load_statuses(project_id)
        old_issues = previous.issues if previous else []

        outcome = revalidate_issues_after_edit(
            records, old_issues, statuses, config=self.config, updated_by=updated_by,
        )

        results = outcome.qa_results
        if results is not None:
            results = replace(
                results,
                quality_score=recalculate_quality_with_filtered_issues(
                    records, results.issues, outcome.updated_statuses,
                ),
            )
            self.repository.save_results(project_id, results)
            outcome.qa_results = results
        self.repository.save_statuses(project_id, outcome.updated_statuses)

        if outcome.auto_resolved_count:
            logger.info(f"Project {project_id}: {outcome.auto_resolved_count} issues auto-resolved")
        return outcome

    def apply_edit_session(self, project_id: str, records: List[Dict], session: EditSession,
                           updated_by: str = "system") -> RevalidationResult:
        """Apply a session's edits to the source records and revalidate."""
        return self.revalidate(project_id, session.apply(records), updated_by=updated_by)

    def set_status(
        self,
        project_id: str,
        issue_id: str,
        status: str,
        updated_by: str,
        comment: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        records: Optional[List[Dict]] = None,
    ) -> List[IssueStatus]:
        """
        Record a status change for an issue of the project.

        When records are given, the stored quality score is recomputed over
        the issues that remain active.

        Raises:
            KeyError: If the project has stored results without that issue id
            ValueError: If the status is not active/resolved/dismissed
        """
        results = self.repository.load_results(project_id)
        if results is not None and issue_id not in {i.id for i in results.issues}:
            raise KeyError(f"Issue {issue_id} not found in project {project_id}")

        extra = dict(metadata or {})
        if comment:
            extra["comment"] = comment

        statuses = set_issue_status(
            self.repository.load_statuses(project_id), issue_id, status, updated_by, metadata=extra,
        )
        self.repository.save_statuses(project_id, statuses)
        logger.info(f"Project {project_id}: issue {issue_id} marked {status} by {updated_by}")

        if results is not None and records is not None:
            self.repository.save_results(project_id, replace(
                results,
                quality_score=recalculate_quality_with_filtered_issues(records, results.issues, statuses),
            ))
        return statuses

    def resolve(self, project_id: str, issue_id: str, updated_by: str, **kwargs) -> List[IssueStatus]:
        return self.set_status(project_id, issue_id, STATUS_RESOLVED, updated_by, **kwargs)

    def dismiss(self, project_id: str, issue_id: str, updated_by: str, **kwargs) -> List[IssueStatus]:
        return self.set_status(project_id, issue_id, STATUS_DISMISSED, updated_by, **kwargs)

    def active_issues(self, project_id: str) -> List[QAIssue]:
        results = self.repository.load_results(project_id)
        if results is None:
            return []
        return get_active_issues(results.issues, self.repository.load_statuses(project_id))

    def quality_score(self, project_id: str, records: List[Dict]) -> Optional[QualityScore]:
        """Score the records counting only the project's active issues."""
        results = self.repository.load_results(project_id)
        if results is None:
            return None
        return recalculate_quality_with_filtered_issues(
            records, results.issues, self.repository.load_statuses(project_id),
        )
