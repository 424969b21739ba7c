"""Guidance behavior-analytics payload and tabular exports."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

import pandas as pd

from guidancedss.analytics.dashboard import analyze_all_reports, report_recommendations
from guidancedss.interventions.rules import matched_rules
from guidancedss.interventions.types import Recommendation
from guidancedss.reports.types import BehaviorReport

RECOMMENDATION_COLUMNS = [
    "report_id",
    "student_id",
    "student_name",
    "category",
    "severity",
    "type",
    "title",
    "priority",
    "effort",
    "confidence",
    "keywords",
    "owners",
    "timeframe",
    "expected_impact",
    "review_after_days",
    "matched_rules",
]


def distinct_students(reports: Sequence[BehaviorReport]) -> List[Dict[str, Any]]:
    students: List[Dict[str, Any]] = []
    seen = set()
    for report in reports:
        if report.student_id in seen:
            continue
        seen.add(report.student_id)
        students.append(
            {"id": report.student_id, "full_name": report.student_name, "section_name": report.section_name}
        )
    return students


def build_behavior_analytics(
    reports: Sequence[BehaviorReport],
    cfg: Dict[str, Any] | None = None,
    recommendations: Sequence[Sequence[Recommendation]] | None = None,
) -> Dict[str, Any]:
    """Reports with attached recommendations plus the dashboard analysis, ready for JSON."""
    reports = list(reports)
    if recommendations is None:
        recommendations = report_recommendations(reports, cfg)
    enriched = []
    for report, recs in zip(reports, recommendations):
        row = report.to_dict()
        row["recommendations"] = [rec.to_dict() for rec in recs]
        row["hasRecommendations"] = bool(recs)
        enriched.append(row)

    return {
        "success": True,
        "reports": enriched,
        "students": distinct_students(reports),
        "dashboardAnalysis": analyze_all_reports(reports, cfg, recommendations).to_dict(),
    }


def flatten_recommendations(
    reports: Sequence[BehaviorReport],
    cfg: Dict[str, Any] | None = None,
    recommendations: Sequence[Sequence[Recommendation]] | None = None,
) -> pd.DataFrame:
    """One row per (report, recommendation) for CSV export."""
    reports = list(reports)
    if recommendations is None:
        recommendations = report_recommendations(reports, cfg)
    elif len(recommendations) != len(reports):
        raise ValueError("recommendations must be aligned with reports.")
    records = []
    for report, recs in zip(reports, recommendations):
        if not recs:
            continue
        rules = "; ".join(matched_rules(report, reports, cfg))
        for rec in recs:
            plan = rec.plan
            records.append(
                {
                    "report_id": report.id,
                    "student_id": report.student_id,
                    "student_name": report.student_name,
                    "category": report.category,
                    "severity": report.severity,
                    "type": str(rec.type),
                    "title": rec.title,
                    "priority": rec.priority,
                    "effort": rec.effort,
                    "confidence": rec.confidence,
                    "keywords": "; ".join(rec.keywords or []),
                    "owners": "; ".join(plan.owners) if plan else "",
                    "timeframe": plan.timeframe if plan else "",
                    "expected_impact": plan.expected_impact if plan else "",
                    "review_after_days": plan.review_after_days if plan else None,
                    "matched_rules": rules,
                }
            )
    return pd.DataFrame(records, columns=RECOMMENDATION_COLUMNS)
