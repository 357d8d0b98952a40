"""Processors package for QA analysis, scoring and issue tracking."""

from .qa import process_qa, format_report, export_report_json, QAResults, QASummary
from .quality import calculate_quality_score, QualityScore
from .issue_lifecycle import (
    IssueStatus,
    revalidate_issues_after_edit,
    get_active_issues,
    recalculate_quality_with_filtered_issues,
    set_issue_status,
)
from .edits import DataEdit, EditSession, merge_data_edits, apply_edits_to_data

__all__ = [
    'process_qa',
    'format_report',
    'export_report_json',
    'QAResults',
    'QASummary',
    'calculate_quality_score',
    'QualityScore',
    'IssueStatus',
    'revalidate_issues_after_edit',
    'get_active_issues',
    'recalculate_quality_with_filtered_issues',
    'set_issue_status',
    'DataEdit',
    'EditSession',
    'merge_data_edits',
    'apply_edits_to_data'
]
