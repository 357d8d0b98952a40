"""
Timeline Consistency Checks Module

Detects gaps in each indicator/filter series:
- Frequency detection (monthly > quarterly > yearly)
- Leading/trailing years missing relative to the dataset-wide year range
- Missing periods between consecutive observations
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..qa_core import (
    CheckSeverity, CheckType, Frequency, QAConfig, QAIssue, QAScanResult,
    TimelineGapDetails, group_by, period_label, record_period,
)

logger = logging.getLogger(__name__)

FREQUENCY_UNITS = {
    Frequency.MONTHLY: "month",
    Frequency.QUARTERLY: "quarter",
    Frequency.YEARLY: "year",
}


@dataclass
class Observation:
    """A record placed on the timeline."""
    year: int
    month: Optional[int]
    quarter: Optional[int]
    record: Dict[str, Any]

    @property
    def sort_key(self) -> Tuple[int, int, int]:
        return (self.year, self.quarter or 0, self.month or 0)

    @property
    def label(self) -> str:
        return period_label(self.year, self.month, self.quarter)


@dataclass
class TimelineScanResult(QAScanResult):
    """Timeline check result plus every missing period per indicator|filter."""
    missing_periods: Dict[str, List[Dict[str, int]]] = field(default_factory=dict)


def to_observations(rows: List[Dict]) -> List[Observation]:
    """Records with a parseable year, sorted by (year, quarter, month)."""
    observations = []
    for row in rows:
        year, month, quarter = record_period(row)
        if year is None:
            continue
        observations.append(Observation(year, month, quarter, row))
    observations.sort(key=lambda o: o.sort_key)
    return observations


def detect_frequency(observations: List[Observation]) -> str:
    """Pick one frequency for a series.

    Any valid month makes the series monthly, even when most rows are
    quarterly; otherwise any valid quarter makes it quarterly.
    """
    if any(o.month is not None for o in observations):
        return Frequency.MONTHLY
    if any(o.quarter is not None for o in observations):
        return Frequency.QUARTERLY
    return Frequency.YEARLY


def _cap_reached(count: int, cap: Optional[int]) -> bool:
    return cap is not None and count >= cap


def enumerate_missing_periods(
    previous: Observation,
    current: Observation,
    frequency: str,
    config: QAConfig,
) -> Tuple[bool, List[str], List[Dict[str, int]]]:
    """Compare current against the period expected after previous.

    Returns (gap_found, missing labels, missing periods). gap_found can be
    True with no missing periods when current repeats or precedes previous.
    """
    labels: List[str] = []
    periods: List[Dict[str, int]] = []

    if frequency == Frequency.MONTHLY:
        prev_month = previous.month or 1
        curr_month = current.month or 1
        y, m = (previous.year + 1, 1) if prev_month == 12 else (previous.year, prev_month + 1)
        if (current.year, curr_month) == (y, m):
            return False, labels, periods
        while (y, m) < (current.year, curr_month):
            labels.append(period_label(y, m))
            periods.append({"year": y, "month": m})
            m += 1
            if m > 12:
                m, y = 1, y + 1
            if _cap_reached(len(labels), config.max_monthly_gap_periods):
                break
        return True, labels, periods

    if frequency == Frequency.QUARTERLY:
        prev_quarter = previous.quarter or 1
        curr_quarter = current.quarter or 1
        y, q = (previous.year + 1, 1) if prev_quarter == 4 else (previous.year, prev_quarter + 1)
        if (current.year, curr_quarter) == (y, q):
            return False, labels, periods
        while (y, q) < (current.year, curr_quarter):
            labels.append(period_label(y, quarter=q))
            periods.append({"year": y, "quarter": q})
            q += 1
            if q > 4:
                q, y = 1, y + 1
            if _cap_reached(len(labels), config.max_quarterly_gap_periods):
                break
        return True, labels, periods

    if current.year - previous.year <= 1:
        return False, labels, periods
    for y in range(previous.year + 1, current.year):
        labels.append(str(y))
        periods.append({"year": y})
        if _cap_reached(len(labels), config.max_yearly_gap_periods):
            break
    return True, labels, periods


def _edge_gap_issues(
    indicator: Any,
    filter_name: Any,
    observations: List[Observation],
    global_range: Tuple[int, int],
) -> Tuple[List[QAIssue], List[Dict[str, int]]]:
    """One issue per year missing before/after the series, against the dataset range."""
    issues: List[QAIssue] = []
    periods: List[Dict[str, int]] = []
    global_min, global_max = global_range
    series_min = min(o.year for o in observations)
    series_max = max(o.year for o in observations)

    for y in range(global_min, series_min):
        periods.append({"year": y})
        issues.append(QAIssue(
            check_type=CheckType.TIMELINE_GAP,
            indicator_name=indicator,
            filter_name=filter_name,
            severity=CheckSeverity.WARNING,
            message=f"Missing data at the start: year {y} is missing before the series begins ({series_min})",
            details=TimelineGapDetails(
                from_period=str(global_min), to_period=str(series_min),
                gap=series_min - global_min, missing_periods=[str(y)],
                frequency=Frequency.YEARLY,
            ),
        ))

    for y in range(series_max + 1, global_max + 1):
        periods.append({"year": y})
        issues.append(QAIssue(
            check_type=CheckType.TIMELINE_GAP,
            indicator_name=indicator,
            filter_name=filter_name,
            severity=CheckSeverity.WARNING,
            message=f"Missing data at the end: year {y} is missing after the series ends ({series_max})",
            details=TimelineGapDetails(
                from_period=str(series_max), to_period=str(global_max),
                gap=global_max - series_max, missing_periods=[str(y)],
                frequency=Frequency.YEARLY,
            ),
        ))

    return issues, periods


def check_timeline_gaps(records: List[Dict], config: Optional[QAConfig] = None) -> TimelineScanResult:
    """Check every indicator/filter series for missing periods."""
    config = config or QAConfig()
    result = TimelineScanResult(check_name="timeline")

    all_years = [o.year for o in to_observations(records)]
    if not all_years:
        result.summary = {"series": 0, "gaps": 0}
        return result
    global_range = (min(all_years), max(all_years))
    span = global_range[1] - global_range[0]
    if config.max_yearly_gap_periods is not None and span > config.max_yearly_gap_periods:
        logger.warning(
            f"Dataset years span {global_range[0]}-{global_range[1]} ({span} years); "
            f"edge gaps are reported for every missing year, check for mistyped years"
        )

    series_count = 0
    by_frequency = {Frequency.MONTHLY: 0, Frequency.QUARTERLY: 0, Frequency.YEARLY: 0}

    for indicator, rows in group_by(records, "indicatorName").items():
        for filter_name, filter_rows in group_by(rows, "filterName").items():
            observations = to_observations(filter_rows)
            if not observations:
                continue

            series_count += 1
            frequency = detect_frequency(observations)
            by_frequency[frequency] += 1
            series_key = f"{indicator}|{filter_name}"
            missing: List[Dict[str, int]] = []

            if frequency == Frequency.YEARLY:
                edge_issues, edge_periods = _edge_gap_issues(indicator, filter_name, observations, global_range)
                for issue in edge_issues:
                    result.add_issue(issue)
                missing.extend(edge_periods)

            for previous, current in zip(observations, observations[1:]):
                gap_found, labels, periods = enumerate_missing_periods(previous, current, frequency, config)
                if not gap_found:
                    result.add_pass()
                    continue
                if not labels:
                    continue

                missing.extend(periods)
                listed = labels[:config.max_listed_missing_periods]
                more = "..." if len(labels) > len(listed) else ""
                unit = FREQUENCY_UNITS[frequency]
                result.add_issue(QAIssue(
                    check_type=CheckType.TIMELINE_GAP,
                    indicator_name=indicator,
                    filter_name=filter_name,
                    severity=CheckSeverity.WARNING,
                    message=(
                        f"Timeline gap ({frequency} pattern): from {previous.label} to {current.label}. "
                        f"{len(labels)} missing {unit}(s): {', '.join(listed)}{more}"
                    ),
                    details=TimelineGapDetails(
                        from_period=previous.label, to_period=current.label,
                        gap=len(labels), missing_periods=listed, frequency=frequency,
                    ),
                ))

            if missing:
                result.missing_periods[series_key] = missing

    result.summary = {
        "series": series_count,
        "series_by_frequency": by_frequency,
        "gaps": result.issues_found,
    }
    return result
