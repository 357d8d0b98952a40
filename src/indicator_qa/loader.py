"""Spreadsheet loading and export for indicator datasets."""

import logging
import os
from typing import Any, Dict, List, Optional

import pandas as pd

logger = logging.getLogger(__name__)

# Accepted headers per record field (compared case-insensitively, trimmed)
COLUMN_ALIASES = {
    'indicatorName': ['indicatorName', 'Indicator Name', 'Indicator', 'indicator_name', 'اسم المؤشر', 'المؤشر'],
    'filterName': ['filterName', 'Filter Name', 'Filter', 'filter_name', 'اسم الفلتر', 'الفلتر'],
    'year': ['year', 'Year', 'السنة'],
    'value': ['value', 'Value', 'القيمة'],
    'month': ['month', 'Month', 'الشهر'],
    'quarter': ['quarter', 'Quarter', 'الربع'],
}

INTEGER_FIELDS = ('year', 'month', 'quarter')

EXPORT_HEADERS = {
    'indicatorName': 'اسم المؤشر',
    'filterName': 'اسم الفلتر',
    'year': 'السنة',
    'month': 'الشهر',
    'quarter': 'الربع',
    'value': 'القيمة',
}


def _normalize_header(header: Any) -> str:
    return str(header).strip().casefold()


def build_column_map(columns, column_map: Optional[Dict[str, str]] = None) -> Dict[Any, str]:
    """Map source headers to record keys; explicit column_map entries win."""
    lookup = {}
    for field_name, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            lookup[_normalize_header(alias)] = field_name

    mapping = {}
    taken = set()
    for column in columns:
        if column_map and column in column_map:
            mapping[column] = column_map[column]
            taken.add(column_map[column])
            continue
        field_name = lookup.get(_normalize_header(column))
        if field_name and field_name not in taken:
            mapping[column] = field_name
            taken.add(field_name)
    return mapping


def _clean_value(key: str, value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, float):
        if value != value:  # NaN
            return None
        if key in INTEGER_FIELDS and value.is_integer():
            return int(value)
    return value


def records_from_dataframe(df: pd.DataFrame, column_map: Optional[Dict[str, str]] = None) -> List[Dict[str, Any]]:
    """
    Convert a DataFrame to flat records with the standard keys.

    Args:
        df: Source DataFrame (one row per observation)
        column_map: Optional explicit {source header: record key} overrides

    Returns:
        List of dicts; NaN cells become None
    """
    mapping = build_column_map(df.columns, column_map)
    renamed = df.rename(columns=mapping)
    missing = [field_name for field_name in ('indicatorName', 'filterName', 'year', 'value')
               if field_name not in renamed.columns]
    if missing:
        logger.warning(f"Source is missing expected columns: {', '.join(missing)}")

    cleaned = renamed.astype(object).where(pd.notna(renamed), None)
    records = []
    for row in cleaned.to_dict(orient='records'):
        records.append({key: _clean_value(key, value) for key, value in row.items()})
    return records


def load_records(path: str, sheet_name=0, column_map: Optional[Dict[str, str]] = None) -> List[Dict[str, Any]]:
    """
    Load a CSV or Excel file into flat indicator records.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the extension is not .csv, .xlsx or .xls
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Data file not found: {path}")

    ext = os.path.splitext(path)[1].lower()
    if ext == '.csv':
        df = pd.read_csv(path, encoding='utf-8-sig')
    elif ext in ('.xlsx', '.xls'):
        df = pd.read_excel(path, sheet_name=sheet_name)
    else:
        raise ValueError(f"Unsupported file type: {ext or path}")

    records = records_from_dataframe(df, column_map)
    logger.info(f"Loaded {len(records)} records from {path}")
    return records


def save_records(records: List[Dict[str, Any]], path: str, arabic_headers: bool = False) -> str:
    """
    Write records sorted by indicator, filter and year to CSV or Excel.

    Returns:
        The path written
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    df = pd.DataFrame(records)
    sort_columns = [c for c in ('indicatorName', 'filterName', 'year') if c in df.columns]
    if sort_columns and not df.empty:
        df = df.sort_values(by=sort_columns, kind='stable', na_position='last')
    if arabic_headers:
        df = df.rename(columns=EXPORT_HEADERS)

    if path.lower().endswith('.xlsx'):
        df.to_excel(path, index=False)
    else:
        df.to_csv(path, index=False, encoding='utf-8-sig')

    logger.info(f"Saved {len(df)} records to {path}")
    return path
