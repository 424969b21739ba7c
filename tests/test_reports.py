"""Tests for behavior report normalization and loading."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest

from guidancedss.reports.loader import load_reports_csv, reports_from_frame, reports_from_records
from guidancedss.reports.types import BehaviorReport


def test_from_mapping_accepts_query_aliases() -> None:
    report = BehaviorReport.from_mapping(
        {
            "id": 11,
            "student_id": 42,
            "student_full_name": "Dela Cruz, Pedro ",
            "report_date": "2026-01-04T09:00:00",
            "category": " Disruption ",
            "severity": "High",
            "notes": "Pedro refusing to do schoolwork.",
            "is_done": "false",
        }
    )

    assert report.student_name == "Dela Cruz, Pedro"
    assert report.created_at == datetime(2026, 1, 4, 9, 0)
    assert report.category == "Disruption"
    assert report.is_done is False


def test_from_mapping_normalizes_missing_values() -> None:
    report = BehaviorReport.from_mapping(
        {"id": pd.Series([3], dtype="int64").iloc[0], "student_id": 7.0, "notes": float("nan"), "severity": "", "created_at": "not a date"}
    )

    assert report.id == 3
    assert isinstance(report.id, int)
    assert report.student_id == 7
    assert report.notes is None
    assert report.severity is None
    assert report.created_at is None
    assert report.student_name is None


def test_load_reports_csv(tmp_path: Path) -> None:
    path = tmp_path / "reports.csv"
    pd.DataFrame(
        {
            " id ": [1, 2, 3],
            "student_id": [5, None, 6],
            "student_name": ["Maria", "Ghost", "Carlos"],
            "category": ["Academic", "Conduct", "Academic"],
            "severity": ["Medium", "High", "Low"],
            "notes": ["Struggles with reading.", "n/a", None],
            "report_date": ["2026-01-05", "2026-01-05", "2026-01-06"],
        }
    ).to_csv(path, index=False)

    reports = load_reports_csv(path)

    assert [r.student_name for r in reports] == ["Maria", "Carlos"]
    assert [r.student_id for r in reports] == [5, 6]
    assert reports[0].id == 1
    assert reports[1].notes is None
    assert reports[1].created_at == datetime(2026, 1, 6)


def test_load_reports_csv_errors(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_reports_csv(tmp_path / "missing.csv")

    path = tmp_path / "bad.csv"
    pd.DataFrame({"student_id": [1], "notes": ["x"]}).to_csv(path, index=False)
    with pytest.raises(ValueError):
        load_reports_csv(path)


def test_archived_reports_can_be_excluded() -> None:
    rows = [
        {"id": 1, "student_id": 1, "category": "Conduct", "is_done": True},
        {"id": 2, "student_id": 1, "category": "Conduct", "is_done": False},
    ]

    assert len(reports_from_records(rows)) == 2
    kept = reports_from_records(rows, {"dss": {"include_archived": False}})
    assert [r.id for r in kept] == [2]


def test_reports_from_empty_frame() -> None:
    assert reports_from_frame(pd.DataFrame()) == []


def test_load_reports_csv_keeps_na_like_text(tmp_path: Path) -> None:
    path = tmp_path / "reports.csv"
    path.write_text(
        "id,student_id,student_name,category,severity,notes\n"
        "1,5,NA,None,Low,N/A\n"
        "2,6,,,,\n",
        encoding="utf-8",
    )

    first, second = load_reports_csv(path)

    assert first.student_name == "NA"
    assert first.category == "None"
    assert first.notes == "N/A"
    assert second.student_name is None
    assert second.category is None
    assert second.notes is None
