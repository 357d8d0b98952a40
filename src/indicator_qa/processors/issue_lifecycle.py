"""
Issue Lifecycle Module

Tracks what happened to each issue across edits and user actions:
- IssueStatus records (active / resolved / dismissed)
- Revalidation after data edits with auto-resolution of vanished issues
- Active issue filtering and quality recalculation on active issues only

All functions return new lists; caller-owned statuses are never mutated.
"""

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Set, Tuple

from .qa import QAResults, process_qa
from .qa_core import QAConfig, QAIssue
from .quality import QualityScore, calculate_quality_score

logger = logging.getLogger(__name__)

STATUS_ACTIVE = "active"
STATUS_RESOLVED = "resolved"
STATUS_DISMISSED = "dismissed"
VALID_STATUSES = (STATUS_ACTIVE, STATUS_RESOLVED, STATUS_DISMISSED)

AUTO_RESOLVED_COMMENT = "Issue resolved automatically after a data edit"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class IssueStatus:
    """User-facing state of one issue."""
    issue_id: str
    status: str = STATUS_ACTIVE
    timestamp: int = 0
    updated_by: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "issueId": self.issue_id,
            "status": self.status,
            "timestamp": self.timestamp,
            "userName": self.updated_by,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "IssueStatus":
        return cls(
            issue_id=payload["issueId"],
            status=payload.get("status", STATUS_ACTIVE),
            timestamp=payload.get("timestamp") or 0,
            updated_by=payload.get("userName") or payload.get("updatedBy") or "",
            metadata=dict(payload.get("metadata") or {}),
        )


@dataclass
class RevalidationResult:
    """Outcome of re-running QA after an edit."""
    updated_issues: List[QAIssue]
    auto_resolved_count: int
    updated_statuses: List[IssueStatus]
    qa_results: Optional[QAResults] = None

    @property
    def auto_resolved_ids(self) -> List[str]:
        return [
            s.issue_id for s in self.updated_statuses
            if s.status == STATUS_RESOLVED and s.metadata.get("autoResolved")
        ]


def _match_key(issue: QAIssue) -> Tuple:
    return (
        issue.check_type,
        issue.indicator_name,
        issue.filter_name,
        issue.detail("year"),
        issue.detail("month"),
        issue.detail("quarter"),
    )


def _status_index(statuses: List[IssueStatus]) -> Dict[str, IssueStatus]:
    # First status wins, matching a front-to-back lookup
    index: Dict[str, IssueStatus] = {}
    for status in statuses:
        index.setdefault(status.issue_id, status)
    return index


def revalidate_issues_after_edit(
    records: List[Dict],
    all_issues: List[QAIssue],
    issue_statuses: List[IssueStatus],
    config: Optional[QAConfig] = None,
    updated_by: str = "system",
    now: Optional[int] = None,
) -> RevalidationResult:
    """
    Re-run QA on edited data and auto-resolve issues that disappeared.

    An old issue still exists when a fresh issue has the same check type,
    indicator, filter and details year/month/quarter. Vanished issues that
    are unreviewed or active become resolved with autoResolved metadata;
    resolved and dismissed statuses are left alone.

    Args:
        records: Dataset after the edits were applied
        all_issues: Issues from the previous run
        issue_statuses: Current statuses (not modified)
        config: QA limits for the fresh run
        updated_by: Name recorded on auto-resolved statuses
        now: Timestamp override in epoch ms

    Returns:
        RevalidationResult with the fresh issues and the new status list
    """
    fresh = process_qa(records, config)
    fresh_keys = {_match_key(issue) for issue in fresh.issues}
    index = _status_index(issue_statuses)
    timestamp = now if now is not None else _now_ms()

    auto_resolved: List[str] = []
    seen: Set[str] = set()
    for old_issue in all_issues:
        if not old_issue.id or old_issue.id in seen:
            continue
        seen.add(old_issue.id)
        if _match_key(old_issue) in fresh_keys:
            continue
        existing = index.get(old_issue.id)
        if existing is None or existing.status == STATUS_ACTIVE:
            auto_resolved.append(old_issue.id)

    updated_statuses = _upsert_statuses(
        issue_statuses, auto_resolved, STATUS_RESOLVED, updated_by,
        {"autoResolved": True, "comment": AUTO_RESOLVED_COMMENT}, timestamp,
    )

    logger.info(f"Revalidation: {len(fresh.issues)} issues after edit, {len(auto_resolved)} auto-resolved")

    return RevalidationResult(
        updated_issues=fresh.issues,
        auto_resolved_count=len(auto_resolved),
        updated_statuses=updated_statuses,
        qa_results=fresh,
    )


def _upsert_statuses(
    statuses: List[IssueStatus],
    issue_ids: List[str],
    status: str,
    updated_by: str,
    metadata: Optional[Dict[str, Any]],
    timestamp: int,
) -> List[IssueStatus]:
    """Set one status on many issues in a single pass over the list.

    The first entry per id is updated; ids without an entry are appended
    in the given order.
    """
    pending = set(issue_ids)
    updated = []
    for existing in statuses:
        if existing.issue_id in pending:
            pending.discard(existing.issue_id)
            merged = dict(existing.metadata)
            merged.update(metadata or {})
            updated.append(replace(
                existing, status=status, timestamp=timestamp,
                updated_by=updated_by or existing.updated_by, metadata=merged,
            ))
        else:
            updated.append(existing)

    for issue_id in issue_ids:
        if issue_id in pending:
            pending.discard(issue_id)
            updated.append(IssueStatus(
                issue_id=issue_id, status=status, timestamp=timestamp,
                updated_by=updated_by, metadata=dict(metadata or {}),
            ))
    return updated


def set_issue_status(
    statuses: List[IssueStatus],
    issue_id: str,
    status: str,
    updated_by: str,
    metadata: Optional[Dict[str, Any]] = None,
    now: Optional[int] = None,
) -> List[IssueStatus]:
    """Record a user action on an issue and return the new status list."""
    if status not in VALID_STATUSES:
        raise ValueError(f"Invalid issue status {status!r}; expected one of {', '.join(VALID_STATUSES)}")
    if not issue_id:
        raise ValueError("issue_id is required")

    timestamp = now if now is not None else _now_ms()
    return _upsert_statuses(statuses, [issue_id], status, updated_by, metadata, timestamp)


def get_active_issues(issues: List[QAIssue], statuses: List[IssueStatus]) -> List[QAIssue]:
    """Issues with no status, an active status, or no id at all."""
    index = _status_index(statuses)
    active = []
    for issue in issues:
        if not issue.id:
            active.append(issue)
            continue
        status = index.get(issue.id)
        if status is None or status.status == STATUS_ACTIVE:
            active.append(issue)
    return active


def recalculate_quality_with_filtered_issues(
    records: List[Dict],
    issues: List[QAIssue],
    statuses: List[IssueStatus],
) -> QualityScore:
    """Quality score counting only the issues still active."""
    return calculate_quality_score(records, get_active_issues(issues, statuses))
