"""
Statistical Anomaly Checks Module

Per-series outlier detection:
- Z-score against the series' population mean/standard deviation
- Sharp period-over-period change relative to the series' average change

Deterministic formulae only; numeric failures degrade to "not anomalous".
"""

import logging
import math
import statistics
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..qa_core import (
    CheckSeverity, CheckType, QAConfig, QAIssue, QAScanResult,
    StatisticalAnomalyDetails, group_by, to_number,
)
from .timeline import Observation, to_observations

logger = logging.getLogger(__name__)


@dataclass
class OutlierAssessment:
    """Verdict for one observation of a series."""
    observation: Observation
    value: Optional[float]
    is_outlier: bool = False
    z_score: float = 0.0
    reason: str = ""


def _change_rates(values: List[float]) -> List[float]:
    rates = []
    for prev, curr in zip(values, values[1:]):
        if prev == 0:
            continue
        rate = abs((curr - prev) / prev) * 100
        if math.isfinite(rate):
            rates.append(rate)
    return rates


def detect_statistical_outliers(
    observations: List[Observation],
    config: Optional[QAConfig] = None,
) -> List[OutlierAssessment]:
    """Assess every observation of a chronologically sorted series.

    A value is an outlier when |z| exceeds the z-score threshold, or failing
    that, when its change from a nonzero previous value exceeds both
    change_rate_multiplier times the average change and min_change_rate_percent.
    Non-numeric values count as 0 in the statistics and are never flagged.
    """
    config = config or QAConfig()
    values = [to_number(o.record.get("value")) for o in observations]
    assessments = [OutlierAssessment(observation=o, value=v) for o, v in zip(observations, values)]

    if len(observations) < config.min_series_length:
        return assessments

    numeric = [v if v is not None else 0.0 for v in values]
    try:
        mean = statistics.fmean(numeric)
        std_dev = statistics.pstdev(numeric, mu=mean)
    except (ArithmeticError, ValueError) as e:
        logger.error(f"Statistics failed for series of {len(numeric)} values: {e}")
        return assessments

    if std_dev == 0 or not math.isfinite(std_dev):
        return assessments

    rates = _change_rates(numeric)
    avg_change = sum(rates) / len(rates) if rates else 0.0

    for idx, assessment in enumerate(assessments):
        value = assessment.value
        if value is None:
            continue

        z_score = (value - mean) / std_dev
        if not math.isfinite(z_score):
            continue
        assessment.z_score = z_score

        if abs(z_score) > config.zscore_threshold:
            assessment.is_outlier = True
            assessment.reason = (
                f"Statistical outlier. Z-Score: {z_score:.2f}. Outside the normal range"
            )
            continue

        if idx == 0 or numeric[idx - 1] == 0:
            continue
        prev = numeric[idx - 1]
        change = abs((value - prev) / prev) * 100
        if (math.isfinite(change)
                and change > avg_change * config.change_rate_multiplier
                and change > config.min_change_rate_percent):
            assessment.is_outlier = True
            assessment.reason = (
                f"Sharp jump from {prev:.0f} to {value:.0f} ({change:.1f}% change). "
                f"Average change: {avg_change:.1f}%"
            )

    return assessments


def check_statistical_anomalies(records: List[Dict], config: Optional[QAConfig] = None) -> QAScanResult:
    """Run outlier detection on every indicator/filter series, within the configured limits."""
    config = config or QAConfig()
    result = QAScanResult(check_name="statistical-anomalies")

    analyzed_indicators = 0
    skipped_series = 0
    indicators_skipped = 0

    indicator_groups = group_by(records, "indicatorName")
    for indicator, rows in indicator_groups.items():
        limit = config.max_indicators_analyzed
        if limit is not None and analyzed_indicators >= limit:
            indicators_skipped = len(indicator_groups) - analyzed_indicators
            logger.info(f"Reached analysis limit of {limit} indicators, skipping {indicators_skipped} remaining")
            break

        for filter_name, filter_rows in group_by(rows, "filterName").items():
            max_length = config.max_series_length
            if max_length is not None and len(filter_rows) > max_length:
                skipped_series += 1
                logger.debug(f"Skipping {indicator}|{filter_name}: {len(filter_rows)} records > {max_length}")
                continue

            for assessment in detect_statistical_outliers(to_observations(filter_rows), config):
                if not assessment.is_outlier:
                    result.add_pass()
                    continue

                obs = assessment.observation
                z_score = assessment.z_score
                result.add_issue(QAIssue(
                    check_type=CheckType.STATISTICAL_ANOMALY,
                    indicator_name=indicator,
                    filter_name=filter_name,
                    severity=(
                        CheckSeverity.WARNING if abs(z_score) > config.zscore_warning_threshold
                        else CheckSeverity.INFO
                    ),
                    message=assessment.reason,
                    details=StatisticalAnomalyDetails(
                        period=obs.label, year=obs.year, month=obs.month, quarter=obs.quarter,
                        value=assessment.value, z_score=round(z_score, 2),
                    ),
                ))

        analyzed_indicators += 1

    result.summary = {
        "indicators_analyzed": analyzed_indicators,
        "indicators_skipped": indicators_skipped,
        "series_skipped": skipped_series,
        "anomalies": result.issues_found,
    }
    return result
