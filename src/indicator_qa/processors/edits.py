"""
Data Edit Sessions

Manual corrections made during review, kept apart from the source file:
- DataEdit / IndicatorEdit records and the EditSession that collects them
- merge_data_edits: last edit per indicator/filter/period wins
- apply_edits_to_data: produce an edited copy of the dataset for revalidation
"""

import copy
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from .qa_core import period_tag, record_period, to_year, valid_month, valid_quarter

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class DataEdit:
    """A single value correction for one indicator/filter/period."""
    indicator_name: str
    filter_name: str
    year: int
    new_value: Any
    old_value: Any = None
    month: Optional[int] = None
    quarter: Optional[int] = None
    timestamp: int = 0
    table_number: Optional[str] = None
    comment: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.indicator_name}|{self.filter_name}|{self.year}|{period_tag(self.month, self.quarter)}"

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "indicatorName": self.indicator_name,
            "filterName": self.filter_name,
            "year": self.year,
            "month": self.month,
            "quarter": self.quarter,
            "oldValue": self.old_value,
            "newValue": self.new_value,
            "timestamp": self.timestamp,
            "tableNumber": self.table_number,
            "comment": self.comment,
        }
        return {k: v for k, v in payload.items() if v is not None}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "DataEdit":
        return cls(
            indicator_name=payload["indicatorName"],
            filter_name=payload["filterName"],
            year=payload["year"],
            new_value=payload.get("newValue"),
            old_value=payload.get("oldValue"),
            month=payload.get("month"),
            quarter=payload.get("quarter"),
            timestamp=payload.get("timestamp") or 0,
            table_number=payload.get("tableNumber"),
            comment=payload.get("comment"),
        )


@dataclass
class IndicatorEdit:
    """Rename of an indicator."""
    old_name: str
    new_name: str
    timestamp: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"oldName": self.old_name, "newName": self.new_name, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "IndicatorEdit":
        return cls(payload["oldName"], payload["newName"], payload.get("timestamp") or 0)


def merge_data_edits(
    existing: List[DataEdit],
    new: List[DataEdit],
    now: Optional[int] = None,
) -> List[DataEdit]:
    """Merge edits keyed by indicator|filter|year|period; new edits win and get a fresh timestamp."""
    timestamp = now if now is not None else _now_ms()
    merged: Dict[str, DataEdit] = {}
    for edit in existing:
        merged[edit.key] = edit
    for edit in new:
        merged[edit.key] = replace(edit, timestamp=timestamp)
    return list(merged.values())


def _same_period(row: Dict[str, Any], edit: DataEdit) -> bool:
    year, month, quarter = record_period(row)
    return (
        year == to_year(edit.year)
        and month == valid_month(edit.month)
        and quarter == valid_quarter(edit.quarter)
    )


def apply_edits_to_data(records: List[Dict[str, Any]], edits: List[DataEdit]) -> List[Dict[str, Any]]:
    """
    Return a copy of the records with the edits applied.

    An edit replaces the value of the first record with the same indicator,
    filter and period. When no such record exists a new one is appended,
    copied from a record of the same series with the edit's period and
    value. Edits for a series absent from the data are skipped.
    """
    edited = [dict(row) for row in records]
    skipped = 0

    for edit in edits:
        target = next(
            (
                i for i, row in enumerate(edited)
                if row.get("indicatorName") == edit.indicator_name
                and row.get("filterName") == edit.filter_name
                and _same_period(row, edit)
            ),
            None,
        )
        if target is not None:
            edited[target]["value"] = edit.new_value
            continue

        sample = next(
            (
                row for row in records
                if row.get("indicatorName") == edit.indicator_name
                and row.get("filterName") == edit.filter_name
            ),
            None,
        )
        if sample is None:
            skipped += 1
            logger.warning(f"Skipping edit for unknown series {edit.indicator_name}|{edit.filter_name}")
            continue

        new_row = copy.deepcopy(sample)
        new_row["year"] = edit.year
        new_row["value"] = edit.new_value
        new_row.pop("month", None)
        new_row.pop("quarter", None)
        if edit.month is not None:
            new_row["month"] = edit.month
        if edit.quarter is not None:
            new_row["quarter"] = edit.quarter
        edited.append(new_row)

    logger.debug(f"Applied {len(edits) - skipped} of {len(edits)} edits")
    return edited


def apply_indicator_edits(records: List[Dict[str, Any]], edits: List[IndicatorEdit]) -> List[Dict[str, Any]]:
    """Return a copy of the records with indicator renames applied in order."""
    edited = [dict(row) for row in records]
    for edit in edits:
        for row in edited:
            if row.get("indicatorName") == edit.old_name:
                row["indicatorName"] = edit.new_name
    return edited


@dataclass
class EditSession:
    """All manual edits made to one source file."""
    file_name: str
    data_edits: List[DataEdit] = field(default_factory=list)
    indicator_edits: List[IndicatorEdit] = field(default_factory=list)
    last_updated: int = 0

    def add_edits(self, edits: List[DataEdit], now: Optional[int] = None) -> None:
        timestamp = now if now is not None else _now_ms()
        self.data_edits = merge_data_edits(self.data_edits, edits, now=timestamp)
        self.last_updated = timestamp

    def rename_indicator(self, old_name: str, new_name: str, now: Optional[int] = None) -> None:
        timestamp = now if now is not None else _now_ms()
        self.indicator_edits.append(IndicatorEdit(old_name, new_name, timestamp))
        self.last_updated = timestamp

    def apply(self, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Edited copy of the records: renames first, then value edits."""
        return apply_edits_to_data(apply_indicator_edits(records, self.indicator_edits), self.data_edits)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fileName": self.file_name,
            "dataEdits": [e.to_dict() for e in self.data_edits],
            "indicatorEdits": [e.to_dict() for e in self.indicator_edits],
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "EditSession":
        return cls(
            file_name=payload.get("fileName", ""),
            data_edits=[DataEdit.from_dict(e) for e in payload.get("dataEdits", [])],
            indicator_edits=[IndicatorEdit.from_dict(e) for e in payload.get("indicatorEdits", [])],
            last_updated=payload.get("lastUpdated") or 0,
        )
