"""Rule table that turns a behavior report into ranked intervention recommendations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Sequence, Tuple

from guidancedss.interventions.plans import build_plan
from guidancedss.interventions.types import Recommendation, RecommendationType
from guidancedss.keywords.lexicon import CATEGORIES, category_keywords
from guidancedss.keywords.scoring import calculate_confidence, extract_keywords
from guidancedss.reports.types import BehaviorReport

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLDS: Dict[str, int] = {
    "frequent_reporter_min_reports": 5,
    "group_pattern_min_reports": 3,
    "at_risk_min_reports": 5,
    "critical_min_reports": 10,
}

BEHAVIORAL_CATEGORIES = ("Disruption", "Conduct")

_CATEGORY_PHRASES: Dict[str, FrozenSet[str]] = {name: frozenset(category_keywords(name)) for name in CATEGORIES}


def dss_thresholds(cfg: Dict[str, Any] | None = None) -> Dict[str, int]:
    """Merge configured rule thresholds over the defaults."""
    dss_cfg = (cfg or {}).get("dss") or {}
    configured = dss_cfg.get("thresholds") or {}
    if not isinstance(configured, dict):
        raise ValueError("dss.thresholds must be a mapping.")

    thresholds = dict(DEFAULT_THRESHOLDS)
    for key, value in configured.items():
        if key not in DEFAULT_THRESHOLDS:
            raise ValueError(f"Unknown dss threshold: {key}")
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValueError(f"dss.thresholds.{key} must be a positive integer, got {value!r}")
        thresholds[key] = value
    return thresholds


@dataclass(frozen=True)
class RuleInput:
    report: BehaviorReport
    all_reports: Sequence[BehaviorReport]
    keywords: List[str]
    confidence: int
    thresholds: Mapping[str, int]

    @property
    def student_report_count(self) -> int:
        return sum(1 for r in self.all_reports if r.student_id == self.report.student_id)

    @property
    def category_report_count(self) -> int:
        return sum(1 for r in self.all_reports if r.category == self.report.category)

    @property
    def category(self) -> str:
        return self.report.category or "General"

    def keywords_in(self, lexicon_category: str) -> List[str]:
        phrases = _CATEGORY_PHRASES[lexicon_category]
        return [k for k in self.keywords if k in phrases]


@dataclass(frozen=True)
class Rule:
    name: str
    type: RecommendationType
    check: Callable[[RuleInput], bool]
    recommend: Callable[[RuleInput], Recommendation]


def _urgent_intervention(inputs: RuleInput) -> Recommendation:
    return Recommendation(
        type=RecommendationType.URGENT_INTERVENTION,
        title=f"URGENT: {inputs.category} - High Severity",
        description="High severity report requires immediate attention and parent communication",
        actions=[
            "Schedule parent meeting within 48 hours",
            "Create intervention plan",
            "Assign support staff",
            "Daily check-ins",
        ],
        priority="CRITICAL",
        effort="HIGH",
        confidence=95,
    )


def _individual_plan(inputs: RuleInput) -> Recommendation:
    return Recommendation(
        type=RecommendationType.INDIVIDUAL_PLAN,
        title=f"At-Risk Student: {inputs.report.student_name or 'Student'}",
        description=f"{inputs.student_report_count} reports indicate ongoing concerns - comprehensive support needed",
        actions=[
            "Create Behavior Improvement Plan (BIP)",
            "Counselor referral",
            "Parent partnership meeting",
            "Daily progress monitoring",
            "Consider assessment for support services",
        ],
        priority="CRITICAL",
        effort="HIGH",
        confidence=92,
    )


def _group_intervention(inputs: RuleInput) -> Recommendation:
    return Recommendation(
        type=RecommendationType.GROUP_INTERVENTION,
        title=f"{inputs.category} Workshop Program",
        description=(
            f"{inputs.category_report_count} students showing {inputs.category} issues - recommend group intervention"
        ),
        actions=[
            "Schedule group workshop/intervention",
            "Create action plan template",
            "Track progress weekly",
        ],
        priority="HIGH",
        effort="MEDIUM",
        confidence=88,
    )


def _parent_communication(inputs: RuleInput) -> Recommendation:
    return Recommendation(
        type=RecommendationType.PARENT_COMMUNICATION,
        title="Attendance Issue Detected",
        description="Student showing attendance/punctuality concerns",
        actions=[
            "Contact parents about attendance policy",
            "Discuss barriers to attendance",
            "Create attendance contract",
            "Monitor daily attendance",
        ],
        priority="MEDIUM",
        effort="LOW",
        confidence=90,
        keywords=inputs.keywords_in("attendance"),
    )


def _academic_support(inputs: RuleInput) -> Recommendation:
    return Recommendation(
        type=RecommendationType.ACADEMIC_SUPPORT,
        title="Academic Support Needed",
        description="Student shows academic struggle - tutoring or intervention recommended",
        actions=[
            "Recommend tutoring program",
            "Assess learning needs",
            "Differentiate instruction",
            "Weekly progress checks",
        ],
        priority="HIGH",
        effort="MEDIUM",
        confidence=max(inputs.confidence, 75),
        keywords=inputs.keywords_in("academic"),
    )


def _behavioral_support(inputs: RuleInput) -> Recommendation:
    return Recommendation(
        type=RecommendationType.BEHAVIORAL_SUPPORT,
        title="Behavioral Intervention Recommended",
        description="Student behavior requires structured support",
        actions=[
            "Implement positive reinforcement plan",
            "Clear behavior expectations",
            "Classroom management strategy",
            "Check-in with student daily",
        ],
        priority="HIGH",
        effort="MEDIUM",
        confidence=max(inputs.confidence, 80),
        keywords=inputs.keywords_in("behavioral"),
    )


def _counseling_referral(inputs: RuleInput) -> Recommendation:
    return Recommendation(
        type=RecommendationType.COUNSELING_REFERRAL,
        title="Social-Emotional Support Recommended",
        description="Student may benefit from counseling or emotional support",
        actions=[
            "Refer to school counselor",
            "Monitor emotional well-being",
            "Create safe peer group",
            "Provide coping strategies",
        ],
        priority="MEDIUM",
        effort="MEDIUM",
        confidence=max(inputs.confidence, 78),
        keywords=inputs.keywords_in("social"),
    )


# Evaluated in this order; a report may trigger several rules.
RULES: Tuple[Rule, ...] = (
    Rule(
        name="High Severity Alert",
        type=RecommendationType.URGENT_INTERVENTION,
        check=lambda inputs: inputs.report.severity == "High",
        recommend=_urgent_intervention,
    ),
    Rule(
        name="Frequent Reporter Pattern",
        type=RecommendationType.INDIVIDUAL_PLAN,
        check=lambda inputs: inputs.student_report_count >= inputs.thresholds["frequent_reporter_min_reports"],
        recommend=_individual_plan,
    ),
    Rule(
        name="Multiple Students - Same Issue",
        type=RecommendationType.GROUP_INTERVENTION,
        check=lambda inputs: inputs.category_report_count >= inputs.thresholds["group_pattern_min_reports"],
        recommend=_group_intervention,
    ),
    Rule(
        name="Attendance Concern",
        type=RecommendationType.PARENT_COMMUNICATION,
        check=lambda inputs: inputs.report.category == "Attendance" or bool(inputs.keywords_in("attendance")),
        recommend=_parent_communication,
    ),
    Rule(
        name="Academic Intervention",
        type=RecommendationType.ACADEMIC_SUPPORT,
        check=lambda inputs: inputs.report.category == "Academic" or bool(inputs.keywords_in("academic")),
        recommend=_academic_support,
    ),
    Rule(
        name="Behavioral Support",
        type=RecommendationType.BEHAVIORAL_SUPPORT,
        check=lambda inputs: inputs.report.category in BEHAVIORAL_CATEGORIES or bool(inputs.keywords_in("behavioral")),
        recommend=_behavioral_support,
    ),
    Rule(
        name="Social-Emotional Support",
        type=RecommendationType.COUNSELING_REFERRAL,
        check=lambda inputs: bool(inputs.keywords_in("social")),
        recommend=_counseling_referral,
    ),
)


def matched_rules(
    report: BehaviorReport, all_reports: Sequence[BehaviorReport] = (), cfg: Dict[str, Any] | None = None
) -> List[str]:
    """Names of the rules a report triggers, in evaluation order."""
    inputs = rule_input(report, all_reports, cfg)
    return [rule.name for rule in RULES if rule.check(inputs)]


def rule_input(
    report: BehaviorReport, all_reports: Sequence[BehaviorReport] = (), cfg: Dict[str, Any] | None = None
) -> RuleInput:
    """Bundle what every rule predicate and builder reads for one report."""
    keywords = extract_keywords(report.notes)
    return RuleInput(
        report=report,
        all_reports=all_reports,
        keywords=keywords,
        confidence=calculate_confidence(report.notes, keywords),
        thresholds=dss_thresholds(cfg),
    )


def generate_recommendations(
    report: BehaviorReport, all_reports: Sequence[BehaviorReport] = (), cfg: Dict[str, Any] | None = None
) -> List[Recommendation]:
    """Evaluate every rule for a report and return one plan-enriched recommendation per type.

    Candidates are ranked by confidence (highest first, ties keep rule order)
    and only the first recommendation of each type survives.
    """
    inputs = rule_input(report, all_reports, cfg)
    candidates = [rule.recommend(inputs) for rule in RULES if rule.check(inputs)]
    candidates.sort(key=lambda rec: rec.confidence, reverse=True)

    recommendations: List[Recommendation] = []
    seen: set[str] = set()
    for rec in candidates:
        rec_type = str(rec.type)
        if rec_type in seen:
            continue
        seen.add(rec_type)
        plan = build_plan(rec, report, inputs.all_reports, inputs.keywords)
        recommendations.append(rec.with_plan(plan))

    logger.debug(
        "Report %s: %d keywords, %d recommendations", report.id, len(inputs.keywords), len(recommendations)
    )
    return recommendations
