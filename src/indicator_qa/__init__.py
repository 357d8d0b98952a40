"""Indicator QA Package.

A quality assurance engine for statistical indicator datasets: structural,
temporal and statistical checks, weighted quality scoring and issue
lifecycle tracking across data edits.
"""

__version__ = "1.0.0"
__author__ = "Indicator QA Project"
__description__ = "Quality assurance engine for statistical indicator datasets"

from .processors.qa import process_qa, QAResults
from .processors.qa_core import QAConfig, QAIssue
from .processors.quality import calculate_quality_score, QualityScore
from .processors.issue_lifecycle import (
    IssueStatus,
    revalidate_issues_after_edit,
    get_active_issues,
    recalculate_quality_with_filtered_issues,
)
from .processors.qa_processor import QAProcessor

__all__ = [
    'process_qa',
    'QAResults',
    'QAConfig',
    'QAIssue',
    'calculate_quality_score',
    'QualityScore',
    'IssueStatus',
    'revalidate_issues_after_edit',
    'get_active_issues',
    'recalculate_quality_with_filtered_issues',
    'QAProcessor'
]
