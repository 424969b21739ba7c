"""Dashboard-level analysis across the whole behavior report collection."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

import pandas as pd

from guidancedss.interventions.rules import dss_thresholds, generate_recommendations
from guidancedss.interventions.types import Recommendation
from guidancedss.reports.types import SEVERITIES, BehaviorReport

logger = logging.getLogger(__name__)

DEFAULT_RECOMMENDATIONS_PER_REPORT = 2
DEFAULT_TOP_RECOMMENDATIONS = 10


@dataclass
class AtRiskStudent:
    student_id: str | int | None
    student_name: str | None
    report_count: int
    risk_level: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "studentId": self.student_id,
            "studentName": self.student_name,
            "reportCount": self.report_count,
            "riskLevel": self.risk_level,
        }


@dataclass
class DashboardAnalysis:
    total_reports: int = 0
    high_severity_count: int = 0
    medium_severity_count: int = 0
    low_severity_count: int = 0
    at_risk_students: List[AtRiskStudent] = field(default_factory=list)
    category_breakdown: Dict[str, int] = field(default_factory=dict)
    uncategorized_count: int = 0
    severity_trends: List[Dict[str, Any]] = field(default_factory=list)
    top_recommendations: List[Recommendation] = field(default_factory=list)
    student_risk_profile: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalReports": self.total_reports,
            "highSeverityCount": self.high_severity_count,
            "mediumSeverityCount": self.medium_severity_count,
            "lowSeverityCount": self.low_severity_count,
            "atRiskStudents": [student.to_dict() for student in self.at_risk_students],
            "categoryBreakdown": dict(self.category_breakdown),
            "uncategorizedCount": self.uncategorized_count,
            "severityTrends": list(self.severity_trends),
            "topRecommendations": [rec.to_dict() for rec in self.top_recommendations],
            "studentRiskProfile": dict(self.student_risk_profile),
        }


def dashboard_settings(cfg: Dict[str, Any] | None = None) -> Tuple[int, int]:
    """Return (recommendations taken per report, size of the top list)."""
    dashboard_cfg = ((cfg or {}).get("dss") or {}).get("dashboard") or {}
    per_report = int(dashboard_cfg.get("recommendations_per_report", DEFAULT_RECOMMENDATIONS_PER_REPORT))
    top_n = int(dashboard_cfg.get("top_recommendations", DEFAULT_TOP_RECOMMENDATIONS))
    if per_report < 1 or top_n < 1:
        raise ValueError("dss.dashboard values must be positive integers.")
    return per_report, top_n


def find_at_risk_students(reports: Sequence[BehaviorReport], cfg: Dict[str, Any] | None = None) -> List[AtRiskStudent]:
    """Students with enough reports to be flagged, in first-seen order."""
    thresholds = dss_thresholds(cfg)
    counts: Counter[Tuple[Any, Any]] = Counter((r.student_id, r.student_name) for r in reports)

    flagged = []
    for (student_id, student_name), count in counts.items():
        if count < thresholds["at_risk_min_reports"]:
            continue
        risk_level = "CRITICAL" if count >= thresholds["critical_min_reports"] else "HIGH"
        flagged.append(AtRiskStudent(student_id, student_name, count, risk_level))
    return flagged


def severity_trends(reports: Sequence[BehaviorReport]) -> List[Dict[str, Any]]:
    """Daily High/Medium/Low counts for reports that carry a timestamp."""
    rows = [
        {"date": r.created_at.date().isoformat(), "severity": r.severity}
        for r in reports
        if r.created_at is not None and r.severity in SEVERITIES
    ]
    if not rows:
        return []

    df = pd.DataFrame(rows)
    counts = pd.crosstab(df["date"], df["severity"]).reindex(columns=list(SEVERITIES), fill_value=0).sort_index()
    return [
        {"date": str(day), **{severity: int(row[severity]) for severity in SEVERITIES}}
        for day, row in counts.iterrows()
    ]


def student_risk_profiles(reports: Sequence[BehaviorReport]) -> Dict[str, Dict[str, Any]]:
    """Per-student report count, High-severity count and category breakdown."""
    profiles: Dict[str, Dict[str, Any]] = {}
    for report in reports:
        profile = profiles.setdefault(
            str(report.student_id),
            {"studentName": report.student_name, "reportCount": 0, "highSeverityCount": 0, "categories": {}},
        )
        profile["reportCount"] += 1
        if report.severity == "High":
            profile["highSeverityCount"] += 1
        category = report.category or "General"
        profile["categories"][category] = profile["categories"].get(category, 0) + 1
    return profiles


def report_recommendations(
    reports: Sequence[BehaviorReport], cfg: Dict[str, Any] | None = None
) -> List[List[Recommendation]]:
    """Recommendations for every report against the whole collection, aligned with ``reports``."""
    reports = list(reports)
    return [generate_recommendations(report, reports, cfg) for report in reports]


def top_recommendations(
    recommendations: Sequence[Sequence[Recommendation]], cfg: Dict[str, Any] | None = None
) -> List[Recommendation]:
    """Highest-confidence recommendations, taking the first few of each report."""
    per_report, top_n = dashboard_settings(cfg)
    pooled: List[Recommendation] = []
    for recs in recommendations:
        pooled.extend(recs[:per_report])
    pooled.sort(key=lambda rec: rec.confidence, reverse=True)
    return pooled[:top_n]


def analyze_all_reports(
    all_reports: Sequence[BehaviorReport],
    cfg: Dict[str, Any] | None = None,
    recommendations: Sequence[Sequence[Recommendation]] | None = None,
) -> DashboardAnalysis:
    """Summarize the report collection for the guidance dashboard.

    ``recommendations`` may carry the output of :func:`report_recommendations`
    for the same reports so callers that already evaluated the rules do not
    evaluate them again.
    """
    reports = list(all_reports)
    if recommendations is None:
        recommendations = report_recommendations(reports, cfg)
    elif len(recommendations) != len(reports):
        raise ValueError("recommendations must be aligned with all_reports.")
    analysis = DashboardAnalysis(total_reports=len(reports))

    severity_counts = Counter(r.severity for r in reports)
    analysis.high_severity_count = severity_counts.get("High", 0)
    analysis.medium_severity_count = severity_counts.get("Medium", 0)
    analysis.low_severity_count = severity_counts.get("Low", 0)

    for report in reports:
        if report.category is None:
            analysis.uncategorized_count += 1
            continue
        analysis.category_breakdown[report.category] = analysis.category_breakdown.get(report.category, 0) + 1

    analysis.at_risk_students = find_at_risk_students(reports, cfg)
    analysis.severity_trends = severity_trends(reports)
    analysis.top_recommendations = top_recommendations(recommendations, cfg)
    analysis.student_risk_profile = student_risk_profiles(reports)

    logger.debug(
        "Analyzed %d reports: %d at-risk students, %d top recommendations",
        analysis.total_reports,
        len(analysis.at_risk_students),
        len(analysis.top_recommendations),
    )
    return analysis
