"""Load behavior reports from CSV exports or query rows."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

import pandas as pd

from guidancedss.reports.types import BehaviorReport

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("student_id", "category")


def _include_archived(cfg: Dict[str, Any] | None) -> bool:
    dss_cfg = (cfg or {}).get("dss") or {}
    return bool(dss_cfg.get("include_archived", True))


def reports_from_records(rows: Iterable[Mapping[str, Any]], cfg: Dict[str, Any] | None = None) -> List[BehaviorReport]:
    """Normalize raw rows (e.g. database results) into report records."""
    reports = [BehaviorReport.from_mapping(row) for row in rows]
    if not _include_archived(cfg):
        kept = [report for report in reports if not report.is_done]
        logger.debug("Dropped %d archived reports", len(reports) - len(kept))
        reports = kept
    return reports


def reports_from_frame(df: pd.DataFrame, cfg: Dict[str, Any] | None = None) -> List[BehaviorReport]:
    """Convert a report DataFrame into report records."""
    if df.empty:
        return []
    return reports_from_records(df.to_dict(orient="records"), cfg)


def load_reports_csv(path: Path | str, cfg: Dict[str, Any] | None = None) -> List[BehaviorReport]:
    """Load a behavior report CSV export and drop rows without a student reference."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Behavior report file not found: {path}")

    # Only empty cells are missing; "None" or "N/A" in a text column is data.
    df = pd.read_csv(path, keep_default_na=False, na_values=[""])
    df.columns = [str(c).strip() for c in df.columns]

    for column in REQUIRED_COLUMNS:
        if column not in df.columns:
            raise ValueError(f"required column '{column}' not found in {path}")

    missing_student = df["student_id"].isna()
    if missing_student.any():
        logger.warning("Skipping %d report rows without student_id in %s", int(missing_student.sum()), path)
        df = df[~missing_student]

    reports = reports_from_frame(df, cfg)
    logger.info("Loaded %d behavior reports from %s", len(reports), path)
    return reports
