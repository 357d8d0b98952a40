"""
Structural Checks Module

Dataset-shape and per-row checks:
- Required columns present on the first record
- Missing required fields (sampled rows)
- Non-numeric values
- Duplicate records per indicator/filter/period
- Negative values
"""

import logging
from typing import Dict, List, Optional

from ..qa_core import (
    CheckSeverity, CheckType, QAConfig, QAIssue, QAScanResult, REQUIRED_COLUMNS,
    MissingColumnsDetails, MissingDataDetails, DataTypeDetails,
    DuplicateRecordDetails, ValueRangeDetails,
    format_number, is_missing, is_numeric_type, period_label, period_tag,
    record_period, to_number,
)

logger = logging.getLogger(__name__)


def check_missing_columns(records: List[Dict], config: Optional[QAConfig] = None) -> QAScanResult:
    """Check the dataset shape: the first record must carry every required column.

    Only record 0 is inspected; per-row gaps are the job of check_missing_data.
    """
    result = QAScanResult(check_name="missing-columns")
    if not records:
        return result

    first = records[0]
    missing = [col for col in REQUIRED_COLUMNS if col not in first]
    if missing:
        result.add_issue(QAIssue(
            check_type=CheckType.MISSING_COLUMNS,
            indicator_name="System",
            severity=CheckSeverity.CRITICAL,
            message=f"Missing columns ({', '.join(missing)}). Required columns: {', '.join(REQUIRED_COLUMNS)}",
            details=MissingColumnsDetails(required=list(REQUIRED_COLUMNS)),
        ))
    else:
        result.add_pass()

    result.summary = {"missing_columns": missing}
    return result


def check_missing_data(records: List[Dict], config: Optional[QAConfig] = None) -> QAScanResult:
    """Check required fields for null/empty values on a sample of rows."""
    config = config or QAConfig()
    result = QAScanResult(check_name="missing-data")

    limit = config.missing_data_sample_size
    sample = records if limit is None else records[:limit]

    for idx, row in enumerate(sample):
        missing_fields = [col for col in REQUIRED_COLUMNS if is_missing(row.get(col))]
        if not missing_fields:
            result.add_pass()
            continue

        result.add_issue(QAIssue(
            check_type=CheckType.MISSING_DATA,
            indicator_name=row.get("indicatorName") or f"Row {idx}",
            filter_name=row.get("filterName") or None,
            severity=CheckSeverity.CRITICAL,
            message=f"Missing data in row {idx}: {', '.join(missing_fields)}",
            details=MissingDataDetails(row=idx, fields=missing_fields),
        ))

    result.summary = {"rows_sampled": len(sample), "rows_with_gaps": result.issues_found}
    return result


def check_data_types(records: List[Dict], config: Optional[QAConfig] = None) -> QAScanResult:
    """Check every value is a number or a numeric string."""
    result = QAScanResult(check_name="data-type")

    for idx, row in enumerate(records):
        value = row.get("value")
        if is_numeric_type(value) or to_number(value) is not None:
            result.add_pass()
            continue

        year, month, quarter = record_period(row)
        result.add_issue(QAIssue(
            check_type=CheckType.DATA_TYPE_ERROR,
            indicator_name=row.get("indicatorName"),
            filter_name=row.get("filterName"),
            severity=CheckSeverity.CRITICAL,
            message=f'Value is not numeric: "{value}"',
            details=DataTypeDetails(row=idx, value=value, year=year, month=month, quarter=quarter),
        ))

    result.summary = {"non_numeric": result.issues_found}
    return result


def check_duplicates(records: List[Dict], config: Optional[QAConfig] = None) -> QAScanResult:
    """Flag every repeat of an indicator/filter/year/period combination.

    The first occurrence passes; later ones are critical issues.
    """
    result = QAScanResult(check_name="duplicates")
    seen = set()

    for idx, row in enumerate(records):
        year, month, quarter = record_period(row)
        year_key = year if year is not None else row.get("year")
        record_key = f"{row.get('indicatorName')}|{row.get('filterName')}|{year_key}|{period_tag(month, quarter)}"

        if record_key not in seen:
            seen.add(record_key)
            result.add_pass()
            continue

        if month:
            label = f"month {month}"
        elif quarter:
            label = f"quarter {quarter}"
        else:
            label = "year"

        result.add_issue(QAIssue(
            check_type=CheckType.DUPLICATE_RECORDS,
            indicator_name=row.get("indicatorName"),
            filter_name=row.get("filterName"),
            severity=CheckSeverity.CRITICAL,
            message=f"Duplicate record: same indicator, filter, year ({year_key}) and {label}",
            details=DuplicateRecordDetails(
                row=idx, year=year, month=month, quarter=quarter, value=row.get("value"),
            ),
        ))

    result.summary = {"unique_keys": len(seen), "duplicates": result.issues_found}
    return result


def check_value_range(records: List[Dict], config: Optional[QAConfig] = None) -> QAScanResult:
    """Flag negative values as informational."""
    result = QAScanResult(check_name="value-range")

    for idx, row in enumerate(records):
        number = to_number(row.get("value")) if row.get("value") is not None else None
        if number is None or number >= 0:
            result.add_pass()
            continue

        year, month, quarter = record_period(row)
        label = period_label(year if year is not None else row.get("year"), month, quarter)
        result.add_issue(QAIssue(
            check_type=CheckType.VALUE_RANGE,
            indicator_name=row.get("indicatorName"),
            filter_name=row.get("filterName"),
            severity=CheckSeverity.INFO,
            message=f"Negative value in {label}: {format_number(number)}",
            details=ValueRangeDetails(row=idx, year=year, month=month, quarter=quarter, value=number),
        ))

    result.summary = {"negative_values": result.issues_found}
    return result
