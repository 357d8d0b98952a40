#!/usr/bin/env python3
"""
QA Core Module for indicator-qa
===============================

Core quality assurance types shared by the analyzer, the scorer and the
issue lifecycle manager.

Provides:
- Severity levels and the check type taxonomy
- Typed, per-check issue details (serialised to the loose camelCase shape)
- QAIssue / QAScanResult data classes
- QAConfig with the tunable performance limits and thresholds
- Value and period coercion helpers for spreadsheet-sourced records
- Deterministic issue id derivation
"""

import hashlib
import logging
import math
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional

from .. import config

logger = logging.getLogger(__name__)


# =============================================================================
# Taxonomy
# =============================================================================

class CheckSeverity:
    """Issue severity levels."""
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    ALL = (CRITICAL, WARNING, INFO)


class CheckType:
    """Check type taxonomy. Each issue carries exactly one of these."""
    SYSTEM_ERROR = "System Error"
    MISSING_COLUMNS = "Missing Columns"
    MISSING_DATA = "Missing Data"
    DATA_TYPE_ERROR = "Data Type Error"
    DUPLICATE_RECORDS = "Duplicate Records"
    DUPLICATE_YEARS = "Duplicate Years"  # legacy result files only
    TIMELINE_GAP = "Timeline Gap"
    VALUE_RANGE = "Value Range"
    STATISTICAL_ANOMALY = "Statistical Anomaly"


class Frequency:
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


REQUIRED_COLUMNS = list(config.REQUIRED_COLUMNS)


# =============================================================================
# Issue details (one variant per check type)
# =============================================================================

def _drop_none(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None}


def _record_anchor(year: Any, month: Optional[int], quarter: Optional[int], value: Any) -> str:
    # Independent of the row index
    return f"{year}|{period_tag(month, quarter)}|{value!r}"


@dataclass
class IssueDetails:
    """Base for check-specific evidence attached to an issue."""

    def to_dict(self) -> Dict[str, Any]:
        return {}

    @property
    def anchor(self) -> str:
        """Discriminator that separates two defects of the same kind and scope."""
        return ""


@dataclass
class MissingColumnsDetails(IssueDetails):
    required: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"required": list(self.required)}


@dataclass
class MissingDataDetails(IssueDetails):
    row: int = 0
    fields: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"row": self.row, "fields": list(self.fields)}

    @property
    def anchor(self) -> str:
        return f"row:{self.row}"


@dataclass
class DataTypeDetails(IssueDetails):
    row: int = 0
    value: Any = None
    year: Optional[int] = None
    month: Optional[int] = None
    quarter: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = {"row": self.row, "value": self.value}
        payload.update(_drop_none({"year": self.year, "month": self.month, "quarter": self.quarter}))
        return payload

    @property
    def anchor(self) -> str:
        return _record_anchor(self.year, self.month, self.quarter, self.value)


@dataclass
class DuplicateRecordDetails(IssueDetails):
    row: int = 0
    year: Optional[int] = None
    month: Optional[int] = None
    quarter: Optional[int] = None
    value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "row": self.row,
            "year": self.year,
            "month": self.month,
            "quarter": self.quarter,
            "value": self.value,
        })

    @property
    def anchor(self) -> str:
        return _record_anchor(self.year, self.month, self.quarter, self.value)


@dataclass
class TimelineGapDetails(IssueDetails):
    from_period: str = ""
    to_period: str = ""
    gap: int = 0
    missing_periods: List[str] = field(default_factory=list)
    frequency: str = Frequency.YEARLY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_period,
            "to": self.to_period,
            "gap": self.gap,
            "missingPeriods": list(self.missing_periods),
            "frequency": self.frequency,
        }

    @property
    def anchor(self) -> str:
        first = self.missing_periods[0] if self.missing_periods else ""
        return f"{self.from_period}->{self.to_period}:{first}"


@dataclass
class ValueRangeDetails(IssueDetails):
    row: int = 0
    year: Optional[int] = None
    month: Optional[int] = None
    quarter: Optional[int] = None
    value: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "row": self.row,
            "year": self.year,
            "month": self.month,
            "quarter": self.quarter,
            "value": self.value,
        })

    @property
    def anchor(self) -> str:
        return _record_anchor(self.year, self.month, self.quarter, self.value)


@dataclass
class StatisticalAnomalyDetails(IssueDetails):
    period: str = ""
    year: Optional[int] = None
    month: Optional[int] = None
    quarter: Optional[int] = None
    value: Optional[float] = None
    z_score: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "period": self.period,
            "year": self.year,
            "month": self.month,
            "quarter": self.quarter,
            "value": self.value,
            "zScore": self.z_score,
        })

    @property
    def anchor(self) -> str:
        return self.period


@dataclass
class GenericDetails(IssueDetails):
    """Details of a check type this version does not know about."""
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.payload)

    def __getattr__(self, name):
        # Only reached for attributes the dataclass does not define
        if name.startswith("__") or name == "payload":
            raise AttributeError(name)
        return self.payload.get(name)


def details_from_dict(check_type: str, payload: Optional[Dict[str, Any]]) -> Optional[IssueDetails]:
    """Rebuild typed details from their serialised dict shape."""
    if payload is None:
        return None
    p = dict(payload)
    if check_type == CheckType.MISSING_COLUMNS:
        return MissingColumnsDetails(required=list(p.get("required", [])))
    if check_type == CheckType.MISSING_DATA:
        return MissingDataDetails(row=p.get("row", 0), fields=list(p.get("fields", [])))
    if check_type == CheckType.DATA_TYPE_ERROR:
        return DataTypeDetails(
            row=p.get("row", 0), value=p.get("value"), year=p.get("year"),
            month=p.get("month"), quarter=p.get("quarter"),
        )
    if check_type == CheckType.DUPLICATE_RECORDS:
        return DuplicateRecordDetails(
            row=p.get("row", 0), year=p.get("year"), month=p.get("month"),
            quarter=p.get("quarter"), value=p.get("value"),
        )
    if check_type == CheckType.TIMELINE_GAP:
        return TimelineGapDetails(
            from_period=str(p.get("from", "")), to_period=str(p.get("to", "")),
            gap=p.get("gap", 0), missing_periods=list(p.get("missingPeriods", [])),
            frequency=p.get("frequency", Frequency.YEARLY),
        )
    if check_type == CheckType.VALUE_RANGE:
        return ValueRangeDetails(
            row=p.get("row", 0), year=p.get("year"), month=p.get("month"),
            quarter=p.get("quarter"), value=p.get("value"),
        )
    if check_type == CheckType.STATISTICAL_ANOMALY:
        z_score = to_number(p.get("zScore"))
        return StatisticalAnomalyDetails(
            period=str(p.get("period", "")), year=p.get("year"), month=p.get("month"),
            quarter=p.get("quarter"), value=p.get("value"),
            z_score=z_score if z_score is not None else 0.0,
        )
    return GenericDetails(payload=p)


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class QAIssue:
    """Single QA issue found in a dataset."""
    check_type: str
    indicator_name: str
    severity: str  # "critical", "warning", "info"
    message: str
    filter_name: Optional[str] = None
    details: Optional[IssueDetails] = None
    id: Optional[str] = None

    def detail(self, name: str) -> Any:
        """Read a details attribute, None when the variant has no such field."""
        if self.details is None:
            return None
        return getattr(self.details, name, None)

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "id": self.id,
            "checkType": self.check_type,
            "indicatorName": self.indicator_name,
            "filterName": self.filter_name,
            "severity": self.severity,
            "message": self.message,
        }
        if self.details is not None:
            payload["details"] = self.details.to_dict()
        return payload

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "QAIssue":
        check_type = payload.get("checkType", "")
        return cls(
            check_type=check_type,
            indicator_name=payload.get("indicatorName", ""),
            severity=payload.get("severity", CheckSeverity.INFO),
            message=payload.get("message", ""),
            filter_name=payload.get("filterName"),
            details=details_from_dict(check_type, payload.get("details")),
            id=payload.get("id"),
        )


@dataclass
class QAScanResult:
    """Result of a single QA check."""
    check_name: str
    total_scanned: int = 0
    issues_found: int = 0
    issues: List[QAIssue] = field(default_factory=list)
    summary: Dict = field(default_factory=dict)

    @property
    def passed(self) -> int:
        return self.total_scanned - self.issues_found

    def add_pass(self) -> None:
        self.total_scanned += 1

    def add_issue(self, issue: QAIssue) -> None:
        self.total_scanned += 1
        self.issues_found += 1
        self.issues.append(issue)

    def to_dict(self) -> Dict:
        return {
            "check_name": self.check_name,
            "total_scanned": self.total_scanned,
            "issues_found": self.issues_found,
            "issue_rate": f"{(self.issues_found / self.total_scanned * 100):.1f}%" if self.total_scanned > 0 else "0%",
            "summary": self.summary,
            "sample_issues": [
                {
                    "id": i.id,
                    "indicator_name": i.indicator_name,
                    "filter_name": i.filter_name,
                    "severity": i.severity,
                    "message": i.message,
                }
                for i in self.issues[:10]
            ]
        }


@dataclass
class QAConfig:
    """Tunable limits and thresholds for a QA run.

    Limits set to None are unlimited. Defaults reproduce the interactive
    profile: a 100-row missing data sample, series over 500 points skipped,
    statistics for at most 100 indicators.
    """
    missing_data_sample_size: Optional[int] = 100
    max_series_length: Optional[int] = 500
    max_indicators_analyzed: Optional[int] = 100
    max_monthly_gap_periods: Optional[int] = 100
    max_quarterly_gap_periods: Optional[int] = 100
    max_yearly_gap_periods: Optional[int] = 50
    max_listed_missing_periods: int = 10
    min_series_length: int = 3
    zscore_threshold: float = 2.5
    zscore_warning_threshold: float = 3.0
    change_rate_multiplier: float = 3.0
    min_change_rate_percent: float = 100.0

    @classmethod
    def from_env(cls) -> "QAConfig":
        """Build a config from INDICATOR_QA_* environment settings."""
        return cls(
            missing_data_sample_size=config.MISSING_DATA_SAMPLE_SIZE,
            max_series_length=config.MAX_SERIES_LENGTH,
            max_indicators_analyzed=config.MAX_INDICATORS_ANALYZED,
            zscore_threshold=config.ZSCORE_THRESHOLD,
            zscore_warning_threshold=config.ZSCORE_WARNING_THRESHOLD,
        )


# =============================================================================
# Value helpers
# =============================================================================

_NULL_TOKENS = {"n/a", "nan"}


def is_missing(value: Any) -> bool:
    """True for None, empty string and float NaN."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, float):
        return math.isnan(value)
    return False


def is_numeric_type(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(value: Any) -> Optional[float]:
    """Lenient numeric coercion; None when the result is not a finite number.

    Empty and whitespace-only strings coerce to 0, booleans to 0/1.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        f = float(value)
        return f if math.isfinite(f) else None
    if isinstance(value, str):
        text = value.strip()
        if text == "":
            return 0.0
        try:
            f = float(text)
        except ValueError:
            return None
        return f if math.isfinite(f) else None
    return None


def format_number(value: float) -> str:
    """Render a number for messages: integral floats without a trailing .0."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _to_integral(value: Any) -> Optional[int]:
    if is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, str) and value.strip().lower() in _NULL_TOKENS:
        return None
    number = to_number(value)
    if number is None or number != int(number):
        return None
    return int(number)


def to_year(value: Any) -> Optional[int]:
    """Parse a record's year; None when it is absent or not an integer."""
    return _to_integral(value)


def valid_month(value: Any) -> Optional[int]:
    """Month as int when it is a valid calendar month (1-12), else None."""
    month = _to_integral(value)
    if month is None or not 1 <= month <= 12:
        return None
    return month


def valid_quarter(value: Any) -> Optional[int]:
    """Quarter as int when it is 1-4, else None."""
    quarter = _to_integral(value)
    if quarter is None or not 1 <= quarter <= 4:
        return None
    return quarter


def period_tag(month: Optional[int], quarter: Optional[int]) -> str:
    """Granularity tag used in duplicate keys: M{month}, Q{quarter} or Y."""
    if month:
        return f"M{month}"
    if quarter:
        return f"Q{quarter}"
    return "Y"


def period_label(year: Any, month: Optional[int] = None, quarter: Optional[int] = None) -> str:
    """Human period key: 2023-04, 2023-Q2 or 2023."""
    if month:
        return f"{year}-{month:02d}"
    if quarter:
        return f"{year}-Q{quarter}"
    return f"{year}"


def record_period(record: Dict[str, Any]):
    """(year, month, quarter) of a record with invalid parts set to None."""
    return (
        to_year(record.get("year")),
        valid_month(record.get("month")),
        valid_quarter(record.get("quarter")),
    )


def group_by(records: Iterable[Dict[str, Any]], key: str) -> Dict[Any, List[Dict[str, Any]]]:
    """Group records by a field, keeping first-appearance order."""
    groups: Dict[Any, List[Dict[str, Any]]] = {}
    for record in records:
        groups.setdefault(record.get(key), []).append(record)
    return groups


# =============================================================================
# Issue ids
# =============================================================================

def issue_period_tag(issue: QAIssue) -> str:
    month = issue.detail("month")
    quarter = issue.detail("quarter")
    year = issue.detail("year")
    if month:
        return f"M{month}"
    if quarter:
        return f"Q{quarter}"
    if year:
        return f"Y{year}"
    return ""


def derive_issue_id(issue: QAIssue) -> str:
    """Deterministic id from check type, scope, period and the details anchor."""
    anchor = issue.details.anchor if issue.details is not None else ""
    key = "|".join([
        issue.check_type,
        str(issue.indicator_name),
        str(issue.filter_name or ""),
        issue_period_tag(issue),
        anchor,
    ])
    return "QA-" + hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]


def assign_issue_ids(issues: List[QAIssue]) -> List[QAIssue]:
    """Return copies of the issues carrying deterministic, run-unique ids."""
    seen = Counter()
    assigned = []
    for issue in issues:
        base = derive_issue_id(issue)
        seen[base] += 1
        issue_id = base if seen[base] == 1 else f"{base}#{seen[base]}"
        assigned.append(replace(issue, id=issue_id))
    return assigned
