"""Tests for prescriptive plan builders."""

from __future__ import annotations

from datetime import datetime

import pytest

from guidancedss.interventions.plans import PLAN_BUILDERS, build_plan, round_half_up, severity_multiplier
from guidancedss.interventions.types import PrescriptivePlan, Recommendation, RecommendationType
from guidancedss.reports.types import BehaviorReport


def _rec(rec_type) -> Recommendation:
    return Recommendation(type=rec_type, title="title", description="description")


def _report(report_id: int = 1, student_id: int = 1, **fields) -> BehaviorReport:
    defaults = {"student_name": "Lara", "category": "Conduct", "severity": "Medium", "notes": None}
    defaults.update(fields)
    return BehaviorReport(id=report_id, student_id=student_id, **defaults)


def test_every_type_has_a_builder() -> None:
    assert set(PLAN_BUILDERS) == set(RecommendationType)


def test_urgent_plan_escalates_with_high_history() -> None:
    notes = "Threw a chair across the room during math and then ran out of the building without permission."
    report = _report(category="Conduct", severity="High", notes=notes)

    with_history = build_plan(_rec(RecommendationType.URGENT_INTERVENTION), report, [report])
    assert with_history.owners == ["Guidance Counselor", "Adviser", "Parent/Guardian", "School Administrator"]
    assert with_history.timeframe == "Immediate (48 hours) + 6 weeks intensive monitoring"
    assert with_history.risk_if_ignored == "Critical: Potential for suspension or expulsion; pattern escalation"
    assert with_history.steps[0] == "Immediate alert to principal about Lara's conduct incident"
    assert with_history.steps[2] == f'Create Crisis Response Plan addressing: "{notes[:80]}..."'
    assert with_history.metrics[0] == 'Zero High incidents of "Conduct" within 2 weeks'
    assert with_history.review_after_days == 5

    first_time = build_plan(_rec(RecommendationType.URGENT_INTERVENTION), report, [])
    assert first_time.timeframe == "Immediate (48 hours) + 4 weeks intensive monitoring"
    assert first_time.review_after_days == 7
    assert first_time.steps[4] == "Establish behavior expectations and early warning signs"


def test_individual_plan_academic_and_behavioral() -> None:
    reports = [_report(i, category="Academic", notes="Failing math quizzes every week.") for i in range(5)]
    academic = build_plan(_rec(RecommendationType.INDIVIDUAL_PLAN), reports[0], reports)

    assert academic.timeframe == "8-10 weeks with reviews every 2 weeks"
    assert academic.steps[2] == "Assign subject tutor + modified assignments for math"
    assert academic.metrics[0] == "Lara's grades improve by at least 1 letter grade by week 6"
    assert academic.review_after_days == 21

    conduct = [_report(i, category="Conduct") for i in range(3)]
    behavioral = build_plan(_rec(RecommendationType.INDIVIDUAL_PLAN), conduct[0], conduct)

    assert behavioral.timeframe == "6-8 weeks with reviews every 3 weeks"
    assert behavioral.steps[2] == "Implement token economy with daily point tracking and weekly reward"
    assert behavioral.metrics[0] == "Incident rate drops from 3 reports to ≤2 by week 8"
    assert behavioral.metrics[2] == "Parent engagement in 4+ touchpoints"


def test_group_plan_recounts_affected_students() -> None:
    five = [_report(i, student_id=i, category="Attendance") for i in range(5)]
    wide = build_plan(_rec(RecommendationType.GROUP_INTERVENTION), five[0], five)

    assert wide.expected_impact == "HIGH"
    assert wide.review_after_days == 21
    assert wide.steps[0] == "SCOPE: 5 students showing attendance concerns - group intervention required"
    assert "6-session intensive" in wide.steps[1]
    assert "time management, morning routines" in wide.steps[1]

    three = five[:3]
    narrow = build_plan(_rec(RecommendationType.GROUP_INTERVENTION), three[0], three)

    assert narrow.expected_impact == "MEDIUM"
    assert narrow.review_after_days == 28
    assert narrow.metrics[0] == "Workshop attendance: ≥75% of 3 targeted students"


def test_academic_plan_scales_with_severity() -> None:
    high = _report(category="Academic", severity="High", notes="Struggles in science labs.")
    plan = build_plan(_rec(RecommendationType.ACADEMIC_SUPPORT), high, [high])

    assert plan.owners == ["Subject Teacher", "Adviser", "Academic Coordinator"]
    assert plan.timeframe == "6-9 weeks with twice-weekly checks"
    assert plan.metrics[0] == "Lara achieves passing grade (≥75%) in science by week 9"
    assert plan.review_after_days == 14

    low = _report(category="Academic", severity="Low", notes="Needs help.")
    low_plan = build_plan(_rec(RecommendationType.ACADEMIC_SUPPORT), low, [low])

    assert low_plan.owners == ["Subject Teacher", "Adviser"]
    assert low_plan.timeframe == "3-4 weeks with weekly checks"
    assert "this subject" in low_plan.steps[0]
    assert low_plan.review_after_days == 21

    medium = _report(category="Academic", severity="Medium")
    assert build_plan(_rec(RecommendationType.ACADEMIC_SUPPORT), medium, []).timeframe == "4-6 weeks with weekly checks"


def test_behavioral_plan_aggression_branch() -> None:
    aggressive = _report(notes="Tried to hit a classmate at recess.")
    plan = build_plan(_rec(RecommendationType.BEHAVIORAL_SUPPORT), aggressive, [aggressive])

    assert plan.owners == ["Adviser", "Subject Teachers", "Guidance Counselor"]
    assert plan.timeframe == "6-8 weeks with daily monitoring"
    assert plan.metrics[0] == "Zero aggressive incidents for Lara within 3 weeks"
    assert plan.review_after_days == 14

    disruptive = _report(notes="Likes to disrupt group work.")
    calm = build_plan(_rec(RecommendationType.BEHAVIORAL_SUPPORT), disruptive, [disruptive])

    assert calm.owners == ["Adviser", "Subject Teachers"]
    assert calm.steps[0].startswith("Target behavior: Address Lara's disrupt issue")
    assert calm.metrics[0] == "Disrupt tallies reduced by ≥60% by week 4"
    assert calm.review_after_days == 21


def test_counseling_plan_crisis_and_coping_skills() -> None:
    anxious = _report(notes="She seems anxious before tests.")
    plan = build_plan(_rec(RecommendationType.COUNSELING_REFERRAL), anxious, [anxious])

    assert plan.owners == ["Guidance Counselor", "Adviser"]
    assert plan.timeframe == "6 sessions, weekly"
    assert plan.steps[2] == "Teach coping skills: Grounding techniques, cognitive reframing"
    assert plan.review_after_days == 21

    conflict = _report(notes="Constant conflict with classmates.")
    conflict_plan = build_plan(_rec(RecommendationType.COUNSELING_REFERRAL), conflict, [conflict])
    assert conflict_plan.steps[2] == "Teach coping skills: Conflict resolution, assertiveness"

    crisis = _report(severity="High", notes="Crying in the hallway.")
    crisis_plan = build_plan(_rec(RecommendationType.COUNSELING_REFERRAL), crisis, [crisis])

    assert crisis_plan.owners == ["Guidance Counselor", "School Psychologist", "Adviser"]
    assert crisis_plan.steps[0].startswith("🚨 CRISIS PROTOCOL")
    assert crisis_plan.review_after_days == 7


def test_parent_communication_plan_tiers() -> None:
    urgent = _report(category="Attendance", severity="High", notes="Absent all week.", created_at=datetime(2026, 1, 8, 10))
    plan = build_plan(_rec(RecommendationType.PARENT_COMMUNICATION), urgent, [urgent])

    assert plan.owners == ["Adviser", "Guidance Counselor"]
    assert plan.timeframe == "1 week"
    assert plan.expected_impact == "MEDIUM"
    assert plan.steps[0] == 'URGENT parent contact for Lara: "Absent all week...."'
    assert plan.steps[2] == "Share specific data: Attendance incident on 1/8/2026 + any prior reports (1 total)"
    assert plan.review_after_days == 7

    routine = _report(category="Attendance", severity="Low")
    routine_plan = build_plan(_rec(RecommendationType.PARENT_COMMUNICATION), routine, [])

    assert routine_plan.owners == ["Adviser"]
    assert routine_plan.expected_impact == "LOW"
    assert routine_plan.steps[0].startswith("Routine parent contact")
    assert routine_plan.steps[1] == "Phone call or virtual meeting with parent/guardian within 1 week"
    assert "recent date" in routine_plan.steps[2]
    assert "(0 total)" in routine_plan.steps[2]
    assert routine_plan.review_after_days == 14


def test_unknown_type_falls_back_to_parent_communication() -> None:
    report = _report(category="Attendance", severity="Medium", notes="Late again.")
    fallback = build_plan(_rec("MYSTERY_TYPE"), report, [report])
    expected = build_plan(_rec(RecommendationType.PARENT_COMMUNICATION), report, [report])

    assert fallback == expected


@pytest.mark.parametrize("rec_type", list(RecommendationType))
def test_missing_fields_use_display_defaults(rec_type: RecommendationType) -> None:
    report = BehaviorReport()
    plan = build_plan(_rec(rec_type), report, [report])
    context = plan.context

    assert context.student_name == "Student"
    assert context.category == "General"
    assert context.severity == "Medium"
    assert context.report_date is None
    assert context.specific_issue == "Behavior concern"
    assert context.keywords == "None detected"
    assert 4 <= len(plan.steps) <= 6
    assert 2 <= len(plan.metrics) <= 4
    assert 5 <= plan.review_after_days <= 28


def test_context_snapshot_and_wire_shape() -> None:
    report = _report(notes="Absent and sad. " * 10, created_at=datetime(2026, 2, 3, 9, 30))
    plan = build_plan(_rec(RecommendationType.COUNSELING_REFERRAL), report, [report])

    assert plan.context.keywords == "absent, sad"
    assert len(plan.context.specific_issue) == 100
    assert plan.context.report_date == "2026-02-03T09:30:00"

    payload = plan.to_dict()
    assert set(payload) == {
        "owners",
        "timeframe",
        "expectedImpact",
        "riskIfIgnored",
        "steps",
        "metrics",
        "reviewAfterDays",
        "context",
    }
    assert payload["context"]["specificIssue"] == plan.context.specific_issue


def test_owners_are_deduplicated_and_filtered() -> None:
    plan = PrescriptivePlan(owners=["Adviser", None, "Adviser", "Guidance Counselor"])  # type: ignore[list-item]

    assert plan.owners == ["Adviser", "Guidance Counselor"]


def test_multiplier_rounding() -> None:
    assert [severity_multiplier(s) for s in ("High", "Low", "Medium", None)] == [1.5, 0.7, 1.0, 1.0]
    assert round_half_up(2.5) == 3
    assert round_half_up(4.2) == 4
