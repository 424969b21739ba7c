"""Behavior report records consumed by the DSS engine."""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

import pandas as pd

SEVERITIES = ("High", "Medium", "Low")


def is_missing(value: Any) -> bool:
    """Handle pd.NA/NaN/NaT/None uniformly."""
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def clean_text(value: Any) -> str | None:
    if is_missing(value):
        return None
    text = str(value).strip()
    return text or None


def clean_id(value: Any) -> str | int | None:
    """Keep integer ids as ints (CSV floats like 42.0 included), everything else as stripped text."""
    if is_missing(value):
        return None
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return clean_text(value)


def parse_timestamp(value: Any) -> Optional[datetime]:
    if is_missing(value):
        return None
    if isinstance(value, datetime):
        return value
    parsed = pd.to_datetime(value, errors="coerce")
    if is_missing(parsed):
        return None
    return parsed.to_pydatetime()


def _parse_flag(value: Any) -> bool:
    if is_missing(value):
        return False
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "t", "yes", "y"}
    return bool(value)


@dataclass(frozen=True)
class BehaviorReport:
    id: str | int | None = None
    student_id: str | int | None = None
    student_name: str | None = None
    section_id: str | int | None = None
    teacher_id: str | int | None = None
    category: str | None = None
    severity: str | None = None
    notes: str | None = None
    created_at: Optional[datetime] = None
    section_name: str | None = None
    teacher_name: str | None = None
    grade_level: str | None = None
    is_done: bool = False

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "BehaviorReport":
        """Build a report from a database or CSV row.

        Accepts the column aliases produced by the guidance analytics query
        (``student_full_name``, ``report_date``) next to the plain names.
        """
        name = row.get("student_name")
        if is_missing(name) or not str(name).strip():
            name = row.get("student_full_name")
        created = row.get("created_at")
        if is_missing(created):
            created = row.get("report_date")

        return cls(
            id=clean_id(row.get("id")),
            student_id=clean_id(row.get("student_id")),
            student_name=clean_text(name),
            section_id=clean_id(row.get("section_id")),
            teacher_id=clean_id(row.get("teacher_id")),
            category=clean_text(row.get("category")),
            severity=clean_text(row.get("severity")),
            notes=clean_text(row.get("notes")),
            created_at=parse_timestamp(created),
            section_name=clean_text(row.get("section_name")),
            teacher_name=clean_text(row.get("teacher_name")),
            grade_level=clean_text(row.get("grade_level")),
            is_done=_parse_flag(row.get("is_done")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "student_id": self.student_id,
            "student_name": self.student_name,
            "section_id": self.section_id,
            "teacher_id": self.teacher_id,
            "category": self.category,
            "severity": self.severity,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "section_name": self.section_name,
            "teacher_name": self.teacher_name,
            "grade_level": self.grade_level,
            "is_done": self.is_done,
        }
