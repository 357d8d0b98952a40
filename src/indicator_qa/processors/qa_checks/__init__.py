"""
QA Checks Package

Contains the individual check implementations used by the analyzer.
"""

from .structure import (
    check_missing_columns,
    check_missing_data,
    check_data_types,
    check_duplicates,
    check_value_range,
)
from .timeline import check_timeline_gaps, detect_frequency, TimelineScanResult
from .anomalies import check_statistical_anomalies, detect_statistical_outliers

__all__ = [
    'check_missing_columns',
    'check_missing_data',
    'check_data_types',
    'check_duplicates',
    'check_value_range',
    'check_timeline_gaps',
    'detect_frequency',
    'TimelineScanResult',
    'check_statistical_anomalies',
    'detect_statistical_outliers',
]
