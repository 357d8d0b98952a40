"""
QA Module - Quality Assurance analysis of statistical indicator datasets.

Architecture:
- Checks: read-only functions over the record list, each returning a QAScanResult
- Analyzer: process_qa runs the checks, assigns issue ids and scores the dataset
- Reports: console and JSON rendering of QAResults

Usage:
    from indicator_qa.processors.qa import process_qa, format_report
    results = process_qa(records)
    print(format_report(results))
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .qa_core import (
    CheckSeverity, CheckType, QAConfig, QAIssue, QAScanResult, assign_issue_ids,
)
from .qa_checks import (
    check_missing_columns,
    check_missing_data,
    check_data_types,
    check_duplicates,
    check_timeline_gaps,
    check_value_range,
    check_statistical_anomalies,
    TimelineScanResult,
)
from .quality import QualityScore, calculate_quality_score

logger = logging.getLogger(__name__)


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class QASummary:
    """Pass/fail counters of a QA run."""
    total_indicators: int
    passed_checks: int
    failed_checks: int
    checks_by_type: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalIndicators": self.total_indicators,
            "passedChecks": self.passed_checks,
            "failedChecks": self.failed_checks,
            "checksByType": {k: dict(v) for k, v in self.checks_by_type.items()},
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "QASummary":
        return cls(
            total_indicators=payload.get("totalIndicators", 0),
            passed_checks=payload.get("passedChecks", 0),
            failed_checks=payload.get("failedChecks", 0),
            checks_by_type={k: dict(v) for k, v in (payload.get("checksByType") or {}).items()},
        )


@dataclass(frozen=True)
class QAResults:
    """Complete, immutable output of one QA run."""
    summary: QASummary
    issues: List[QAIssue]
    processed_at: int  # epoch milliseconds
    quality_score: Optional[QualityScore] = None
    missing_periods: Dict[str, List[Dict[str, int]]] = field(default_factory=dict)
    scan_results: List[QAScanResult] = field(default_factory=list)

    @property
    def total_issues(self) -> int:
        return len(self.issues)

    @property
    def issues_by_severity(self) -> Dict[str, int]:
        counts = {severity: 0 for severity in CheckSeverity.ALL}
        for issue in self.issues:
            counts[issue.severity] = counts.get(issue.severity, 0) + 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "issues": [issue.to_dict() for issue in self.issues],
            "processedAt": self.processed_at,
            "qualityScore": self.quality_score.to_dict() if self.quality_score else None,
            "missingPeriods": {k: [dict(p) for p in v] for k, v in self.missing_periods.items()},
            "checks": [r.to_dict() for r in self.scan_results],
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "QAResults":
        quality = payload.get("qualityScore")
        return cls(
            summary=QASummary.from_dict(payload.get("summary") or {}),
            issues=[QAIssue.from_dict(i) for i in payload.get("issues", [])],
            processed_at=payload.get("processedAt", 0),
            quality_score=QualityScore.from_dict(quality) if quality else None,
            missing_periods={k: [dict(p) for p in v] for k, v in (payload.get("missingPeriods") or {}).items()},
        )


# =============================================================================
# Check registry
# =============================================================================

ALL_CHECKS: Dict[str, Callable[[List[Dict], QAConfig], QAScanResult]] = {
    # Structural checks
    "missing-columns": check_missing_columns,
    "missing-data": check_missing_data,
    "data-type": check_data_types,
    "duplicates": check_duplicates,
    # Temporal checks
    "timeline": check_timeline_gaps,
    "value-range": check_value_range,
    # Statistical checks
    "statistical-anomalies": check_statistical_anomalies,
}


def _now_ms() -> int:
    return int(time.time() * 1000)


def group_checks_by_type(issues: List[QAIssue]) -> Dict[str, Dict[str, int]]:
    """Failed counts per check type; passes are not broken down per type."""
    result: Dict[str, Dict[str, int]] = {}
    for issue in issues:
        result.setdefault(issue.check_type, {"passed": 0, "failed": 0})["failed"] += 1
    return result


def _empty_dataset_results() -> QAResults:
    issues = assign_issue_ids([QAIssue(
        check_type=CheckType.SYSTEM_ERROR,
        indicator_name="System",
        severity=CheckSeverity.CRITICAL,
        message="No data to process",
    )])
    return QAResults(
        summary=QASummary(
            total_indicators=0,
            passed_checks=0,
            failed_checks=1,
            checks_by_type=group_checks_by_type(issues),
        ),
        issues=issues,
        processed_at=_now_ms(),
        quality_score=calculate_quality_score([], issues),
    )


# =============================================================================
# Analyzer
# =============================================================================

def process_qa(
    records: List[Dict],
    config: Optional[QAConfig] = None,
    checks: Optional[List[str]] = None,
) -> QAResults:
    """
    Run QA analysis on a dataset.

    Never raises on bad business data: every defect becomes an issue, and an
    empty dataset yields a single critical "System Error" issue.

    Args:
        records: List of flat records (indicatorName, filterName, year, value,
                 optional month/quarter)
        config: Limits and thresholds; defaults to QAConfig()
        checks: Check names to run. None = all checks.

    Returns:
        QAResults with issues, counters, missing periods and quality score
    """
    config = config or QAConfig()
    if not records:
        logger.error("No data provided for QA processing")
        return _empty_dataset_results()

    records = list(records)
    logger.info(f"Starting QA processing with {len(records)} records")

    checks_to_run = list(ALL_CHECKS.keys()) if checks is None else checks

    scan_results: List[QAScanResult] = []
    for check_name in checks_to_run:
        check_fn = ALL_CHECKS.get(check_name)
        if not check_fn:
            logger.warning(f"Unknown check: {check_name}")
            continue

        logger.debug(f"Running check: {check_name}")
        scan_result = check_fn(records, config)
        scan_results.append(scan_result)
        logger.info(f"  → {check_name}: {scan_result.issues_found} issues out of {scan_result.total_scanned} checks")

    issues = assign_issue_ids([issue for r in scan_results for issue in r.issues])
    missing_periods: Dict[str, List[Dict[str, int]]] = {}
    for scan_result in scan_results:
        if isinstance(scan_result, TimelineScanResult):
            missing_periods.update(scan_result.missing_periods)

    summary = QASummary(
        total_indicators=len({record.get("indicatorName") for record in records}),
        passed_checks=sum(r.passed for r in scan_results),
        failed_checks=sum(r.issues_found for r in scan_results),
        checks_by_type=group_checks_by_type(issues),
    )
    logger.info(
        f"QA processing complete: {summary.total_indicators} indicators, "
        f"{summary.passed_checks} passed, {summary.failed_checks} failed"
    )

    return QAResults(
        summary=summary,
        issues=issues,
        processed_at=_now_ms(),
        quality_score=calculate_quality_score(records, issues),
        missing_periods=missing_periods,
        scan_results=scan_results,
    )


# =============================================================================
# Report Generation
# =============================================================================

def format_report(results: QAResults, max_issues: int = 20) -> str:
    """Format QA results for console output."""
    summary = results.summary
    lines = [
        "=" * 60,
        f"QA REPORT — {time.strftime('%Y-%m-%d %H:%M:%S', time.localtime(results.processed_at / 1000))}",
        f"Indicators: {summary.total_indicators}",
        f"Checks passed: {summary.passed_checks}  failed: {summary.failed_checks}",
        f"Total issues: {results.total_issues}",
        f"Issues by severity: {results.issues_by_severity}",
        "=" * 60,
    ]

    score = results.quality_score
    if score:
        lines.append("")
        lines.append(f"Quality score: {score.overall}/100 ({score.rating})")
        for dimension, value in score.breakdown.items():
            lines.append(f"  {dimension}: {value}")
        worst = [i for i in score.indicators if i.rating != "excellent"][:5]
        if worst:
            lines.append("  Lowest scoring indicators:")
            for indicator in worst:
                lines.append(f"    {indicator.score:>3} [{indicator.rating}] {indicator.name}")

    if summary.checks_by_type:
        lines.append("")
        lines.append("Issues by check type:")
        for check_type, counts in summary.checks_by_type.items():
            lines.append(f"  {check_type}: {counts['failed']}")

    if results.issues:
        lines.append("")
        lines.append("Sample issues:")
        for issue in results.issues[:max_issues]:
            scope = issue.indicator_name if not issue.filter_name else f"{issue.indicator_name} / {issue.filter_name}"
            lines.append(f"  [{issue.severity}] {issue.check_type} — {scope}: {issue.message}")
        if len(results.issues) > max_issues:
            lines.append(f"  ... {len(results.issues) - max_issues} more")

    lines.append("")
    lines.append("=" * 60)
    return "\n".join(lines)


def export_report_json(results: QAResults, filepath: str):
    """Export QA results as JSON."""
    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(results.to_dict(), f, ensure_ascii=False, indent=2, default=str)
    logger.info(f"Report exported to {filepath}")
