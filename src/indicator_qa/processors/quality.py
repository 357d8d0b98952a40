"""
Quality Scoring Module

Turns a dataset and a list of issues into a 0-100 quality score:
- Severity-weighted overall score normalised by dataset size
- Four breakdown dimensions (completeness, accuracy, consistency, validity)
- Per-indicator scores, worst first

Pure functions: inputs are never mutated.
"""

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from .qa_core import CheckSeverity, CheckType, QAIssue

logger = logging.getLogger(__name__)

SEVERITY_WEIGHTS = {
    CheckSeverity.CRITICAL: 10,
    CheckSeverity.WARNING: 5,
    CheckSeverity.INFO: 2,
}

# dimension -> (check types counted against it, penalty multiplier per issue/record ratio)
DIMENSION_RULES = {
    "completeness": ((CheckType.MISSING_DATA, CheckType.MISSING_COLUMNS), 100),
    "validity": ((CheckType.DATA_TYPE_ERROR, CheckType.VALUE_RANGE), 100),
    "consistency": ((CheckType.DUPLICATE_RECORDS, CheckType.DUPLICATE_YEARS), 100),
    "accuracy": ((CheckType.STATISTICAL_ANOMALY, CheckType.TIMELINE_GAP), 50),
}

RATING_THRESHOLDS = [
    (95, "excellent"),
    (80, "good"),
    (60, "fair"),
]


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive scores (2.5 -> 3), unlike round()."""
    return int(math.floor(value + 0.5))


def rate_score(score: float) -> str:
    """Map a 0-100 score to excellent/good/fair/poor."""
    for threshold, rating in RATING_THRESHOLDS:
        if score >= threshold:
            return rating
    return "poor"


def _clamp(score: float) -> float:
    return max(0.0, min(100.0, score))


@dataclass
class IssueCounts:
    critical: int = 0
    warning: int = 0
    info: int = 0

    @property
    def penalty(self) -> int:
        return (self.critical * SEVERITY_WEIGHTS[CheckSeverity.CRITICAL]
                + self.warning * SEVERITY_WEIGHTS[CheckSeverity.WARNING]
                + self.info * SEVERITY_WEIGHTS[CheckSeverity.INFO])

    def add(self, severity: str) -> None:
        if severity == CheckSeverity.CRITICAL:
            self.critical += 1
        elif severity == CheckSeverity.WARNING:
            self.warning += 1
        elif severity == CheckSeverity.INFO:
            self.info += 1

    def to_dict(self) -> Dict[str, int]:
        return {"critical": self.critical, "warning": self.warning, "info": self.info}


@dataclass
class IndicatorQuality:
    """Score of one indicator."""
    name: Any
    score: int
    rating: str
    issues_count: IssueCounts = field(default_factory=IssueCounts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "score": self.score,
            "rating": self.rating,
            "issuesCount": self.issues_count.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "IndicatorQuality":
        return cls(
            name=payload.get("name"),
            score=payload.get("score", 0),
            rating=payload.get("rating", "poor"),
            issues_count=IssueCounts(**payload.get("issuesCount", {})),
        )


@dataclass
class QualityScore:
    """Overall score, its rating, per-indicator scores and the breakdown."""
    overall: int
    rating: str
    indicators: List[IndicatorQuality] = field(default_factory=list)
    breakdown: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall,
            "rating": self.rating,
            "indicators": [i.to_dict() for i in self.indicators],
            "breakdown": dict(self.breakdown),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "QualityScore":
        return cls(
            overall=payload.get("overall", 0),
            rating=payload.get("rating", "poor"),
            indicators=[IndicatorQuality.from_dict(i) for i in payload.get("indicators", [])],
            breakdown=dict(payload.get("breakdown", {})),
        )


def _severity_penalty(issues: Iterable[QAIssue]) -> int:
    return sum(SEVERITY_WEIGHTS.get(issue.severity, 0) for issue in issues)


def calculate_quality_score(records: List[Dict], issues: List[QAIssue]) -> QualityScore:
    """
    Calculate the weighted quality score of a dataset given its issues.

    The overall score is 100 - (critical*10 + warning*5 + info*2) / N * 100,
    clamped to [0, 100], where N is the number of records. Each breakdown
    dimension subtracts its matching issue count relative to N (x50 for
    accuracy, x100 for the others). Indicator scores use the same penalty
    normalised by the indicator's own row count and are sorted worst first.

    Args:
        records: Dataset the issues were found in
        issues: Issues to score (typically only the active ones)

    Returns:
        QualityScore; an empty issue list scores 100 everywhere
    """
    total_records = max(len(records), 1)

    overall = round_half_up(_clamp(100 - (_severity_penalty(issues) / total_records) * 100))

    breakdown = {}
    for dimension, (check_types, multiplier) in DIMENSION_RULES.items():
        matching = sum(1 for issue in issues if issue.check_type in check_types)
        breakdown[dimension] = round_half_up(_clamp(100 - (matching / total_records) * multiplier))

    counts_by_indicator: Dict[Any, IssueCounts] = {}
    for issue in issues:
        counts_by_indicator.setdefault(issue.indicator_name, IssueCounts()).add(issue.severity)

    rows_by_indicator = Counter(record.get("indicatorName") for record in records)
    indicators = []
    for name, row_count in rows_by_indicator.items():
        counts = counts_by_indicator.get(name, IssueCounts())
        score = round_half_up(_clamp(100 - (counts.penalty / row_count) * 100))
        indicators.append(IndicatorQuality(
            name=name,
            score=score,
            rating=rate_score(score),
            issues_count=IssueCounts(**counts.to_dict()),
        ))

    indicators.sort(key=lambda i: i.score)

    return QualityScore(
        overall=overall,
        rating=rate_score(overall),
        indicators=indicators,
        breakdown={
            "completeness": breakdown["completeness"],
            "accuracy": breakdown["accuracy"],
            "consistency": breakdown["consistency"],
            "validity": breakdown["validity"],
        },
    )
