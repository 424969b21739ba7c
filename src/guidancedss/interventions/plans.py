"""Prescriptive plan builders, one intervention protocol per recommendation type."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Sequence

from guidancedss.interventions.types import PlanContext, PrescriptivePlan, Recommendation, RecommendationType
from guidancedss.keywords.scoring import extract_keywords
from guidancedss.reports.types import BehaviorReport

ACADEMIC_SUBJECTS = ("math", "reading", "writing", "science")
BEHAVIOR_TYPES = ("disrupt", "aggressive", "defiant", "bully")
AGGRESSION_KEYWORDS = ("hit", "fight", "aggressive", "violent")
EMOTIONAL_CONCERNS = ("sad", "cry", "anxious", "withdrawn", "conflict")
CRISIS_KEYWORDS = ("suicide", "self-harm", "crisis")

REPEAT_OFFENDER_MIN_REPORTS = 3
CHRONIC_MIN_REPORTS = 5
WIDESPREAD_MIN_REPORTS = 5


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_report_date(report: BehaviorReport) -> str:
    if report.created_at is None:
        return "recent date"
    day = report.created_at
    return f"{day.month}/{day.day}/{day.year}"


@dataclass(frozen=True)
class ReportHistory:
    """A report together with what the collection says about its student."""

    report: BehaviorReport
    all_reports: Sequence[BehaviorReport]
    keywords: List[str] = field(default_factory=list)

    @classmethod
    def build(
        cls, report: BehaviorReport, all_reports: Sequence[BehaviorReport], keywords: List[str] | None = None
    ) -> "ReportHistory":
        if keywords is None:
            keywords = extract_keywords(report.notes)
        return cls(report=report, all_reports=list(all_reports), keywords=list(keywords))

    @property
    def student_reports(self) -> List[BehaviorReport]:
        return [r for r in self.all_reports if r.student_id == self.report.student_id]

    @property
    def report_count(self) -> int:
        return len(self.student_reports)

    @property
    def is_repeat_offender(self) -> bool:
        return self.report_count >= REPEAT_OFFENDER_MIN_REPORTS

    @property
    def has_high_severity_history(self) -> bool:
        return any(r.severity == "High" for r in self.student_reports)

    @property
    def name(self) -> str:
        return self.report.student_name or "Student"

    @property
    def category(self) -> str:
        return self.report.category or "General"

    @property
    def severity(self) -> str:
        return self.report.severity or "Medium"

    def notes(self, length: int) -> str:
        return (self.report.notes or "")[:length]

    def has_keyword(self, *candidates: str) -> bool:
        return any(k in candidates for k in self.keywords)

    def first_keyword(self, candidates: Sequence[str], default: str) -> str:
        return next((k for k in self.keywords if k in candidates), default)

    def context(self) -> PlanContext:
        report = self.report
        return PlanContext(
            student_name=self.name,
            category=self.category,
            severity=self.severity,
            report_date=report.created_at.isoformat() if report.created_at else None,
            specific_issue=report.notes[:100] if report.notes else "Behavior concern",
            keywords=", ".join(self.keywords) or "None detected",
        )


PlanHandler = Callable[[ReportHistory], PrescriptivePlan]


def urgent_intervention_plan(history: ReportHistory) -> PrescriptivePlan:
    name = history.name
    prior_high = history.has_high_severity_history
    conduct = history.report.category == "Conduct"

    return PrescriptivePlan(
        owners=["Guidance Counselor", "Adviser", "Parent/Guardian", "School Administrator"],
        timeframe=f"Immediate (48 hours) + {'6' if prior_high else '4'} weeks intensive monitoring",
        expected_impact="HIGH",
        risk_if_ignored=(
            f"Critical: Potential for {'suspension or expulsion' if conduct else 'safety incident'}; "
            f"{'pattern escalation' if prior_high else 'behavioral crisis'}"
        ),
        steps=[
            f"Immediate alert to principal about {name}'s {history.category.lower()} incident",
            f"Parent meeting scheduled within 24-48 hours ({'REQUIRED in-person' if prior_high else 'phone or in-person'})",
            f'Create Crisis Response Plan addressing: "{history.notes(80)}..."',
            "Assign dedicated adult mentor for daily check-ins (morning + after incident-prone periods)",
            "Consider short-term behavior contract with clear consequences"
            if history.is_repeat_offender
            else "Establish behavior expectations and early warning signs",
            "Document all interactions and progress in student file (legal protection)",
        ],
        metrics=[
            f'Zero {history.severity} incidents of "{history.category}" within 2 weeks',
            "Parent communication documented at least 2x per week",
            f"{name} completes daily check-in log with 90%+ compliance",
            "Behavioral assessment completed by week 3" if prior_high else "Trend analysis shows improvement by week 2",
        ],
        review_after_days=5 if prior_high else 7,
        context=history.context(),
    )


def individual_plan(history: ReportHistory) -> PrescriptivePlan:
    name = history.name
    count = history.report_count
    chronic = count >= CHRONIC_MIN_REPORTS
    academic = history.report.category == "Academic"

    if academic:
        if "math" in history.keywords:
            subject = "math"
        elif "reading" in history.keywords:
            subject = "reading"
        else:
            subject = "struggling subjects"
        support_step = f"Assign subject tutor + modified assignments for {subject}"
        first_metric = f"{name}'s grades improve by at least 1 letter grade by week 6"
    else:
        support_step = "Implement token economy with daily point tracking and weekly reward"
        first_metric = f"Incident rate drops from {count} reports to ≤2 by week 8"

    plan_name = "Academic Success Plan (ASP)" if academic else "Behavior Improvement Plan (BIP)"
    return PrescriptivePlan(
        owners=["Guidance Counselor", "Adviser", "Parent/Guardian"],
        timeframe=f"{'8-10' if chronic else '6-8'} weeks with reviews every {'2' if chronic else '3'} weeks",
        expected_impact="HIGH",
        risk_if_ignored=(
            f"Chronic pattern solidifies; {'grade retention risk' if academic else 'escalation to suspension'} likely"
        ),
        steps=[
            f"Conduct root cause analysis for {name}'s {history.category.lower()} issues (past {count} reports reviewed)",
            f'Create personalized {plan_name} targeting: "{history.notes(70)}..."',
            support_step,
            f"Schedule {'twice-weekly' if chronic else 'weekly'} check-in sessions (counselor + adviser rotation)",
            "Parent progress reports every Friday via SMS/email with specific data",
            'Develop "trigger management" plan with student input'
            if history.is_repeat_offender
            else "Teach replacement behaviors with role-play practice",
        ],
        metrics=[
            first_metric,
            "≥ 70% of daily goals met in week 3; ≥ 85% by week 6",
            "Parent engagement in 4+ touchpoints" if history.is_repeat_offender else "Parent meeting attendance 100%",
        ],
        review_after_days=21,
        context=history.context(),
    )


def _workshop_focus(category: str | None) -> str:
    if category == "Attendance":
        return "time management, morning routines"
    if category == "Academic":
        return "study skills, test-taking"
    return "self-regulation, peer conflict"


def group_intervention_plan(history: ReportHistory) -> PrescriptivePlan:
    # Recounted from the whole collection, independent of the rule that fired.
    affected = sum(1 for r in history.all_reports if r.category == history.report.category)
    widespread = affected >= WIDESPREAD_MIN_REPORTS
    category = history.category

    return PrescriptivePlan(
        owners=["Guidance Team", "Grade Level Chair", "Class Advisers"],
        timeframe=f"{'6' if widespread else '4'} weeks, {'2 sessions per week' if widespread else '1 session per week'}",
        expected_impact="HIGH" if widespread else "MEDIUM",
        risk_if_ignored=(
            f"{'School-wide climate issue' if widespread else 'Pattern spreads to peers'}; classroom disruption continues"
        ),
        steps=[
            f"SCOPE: {affected} students showing {category.lower()} concerns - group intervention required",
            f"Design {'6-session intensive' if widespread else '4-session'} workshop targeting \"{category}\" "
            f"(e.g., {_workshop_focus(history.report.category)})",
            "Coordinate with teachers to reinforce skills during regular class time",
            "Provide parent info session or handouts on supporting the skill at home",
            "Conduct classroom-wide culture check and adjust environment/systems"
            if widespread
            else "Monitor non-participants for emerging similar issues",
        ],
        metrics=[
            f"Workshop attendance: ≥{'85' if widespread else '75'}% of {affected} targeted students",
            f"{category} incidents reduced by ≥40% across the group by week {'6' if widespread else '4'}",
            "Teacher ratings: Classroom climate improves by ≥1 level on post-survey",
        ],
        review_after_days=21 if widespread else 28,
        context=history.context(),
    )


def severity_multiplier(severity: str | None) -> float:
    if severity == "High":
        return 1.5
    if severity == "Low":
        return 0.7
    return 1.0


def academic_support_plan(history: ReportHistory) -> PrescriptivePlan:
    name = history.name
    subject = history.first_keyword(ACADEMIC_SUBJECTS, "this subject")
    high = history.report.severity == "High"
    multiplier = severity_multiplier(history.report.severity)
    short_weeks = round_half_up(4 * multiplier)
    long_weeks = round_half_up(6 * multiplier)

    if high:
        tutoring = "URGENT: Intensive tutoring (3x/week minimum) + modified grading for catch-up period"
        first_metric = f"{name} achieves passing grade (≥75%) in {subject} by week {long_weeks}"
    else:
        tutoring = f"Enroll in after-school tutoring or peer support for {subject} (2x/week)"
        first_metric = f"Quiz/test scores in {subject} improve by ≥15 points within 4 weeks"

    return PrescriptivePlan(
        owners=["Subject Teacher", "Adviser", "Academic Coordinator" if high else None],
        timeframe=f"{short_weeks}-{long_weeks} weeks with {'twice-weekly' if high else 'weekly'} checks",
        expected_impact="HIGH" if high else "MEDIUM",
        risk_if_ignored=(
            f"{'Failing grade IMMINENT; retention risk' if high else 'Academic gaps widen'}; "
            f"confidence erosion in {subject}"
        ),
        steps=[
            f'Diagnostic assessment: Identify {name}\'s exact gaps in {subject} (issue: "{history.notes(50)}...")',
            tutoring,
            "Scaffolding: "
            + (
                "Break assignments into daily mini-tasks; provide answer banks"
                if high
                else "Provide study guides + extended time on assessments"
            ),
            f"Homework accountability: {name} checks off completed work with teacher daily"
            if "homework" in history.keywords
            else "Weekly progress check-ins with subject teacher",
            f"Parent communication: {'Twice-weekly progress updates' if high else 'Bi-weekly summary of improvements'}",
        ],
        metrics=[
            first_metric,
            f"Homework completion rate: ≥{'90' if high else '80'}% for {name}",
            f'Self-report survey: {name} rates confidence in {subject} as "improved" by end',
        ],
        review_after_days=14 if high else 21,
        context=history.context(),
    )


def behavioral_support_plan(history: ReportHistory) -> PrescriptivePlan:
    name = history.name
    behavior = history.first_keyword(BEHAVIOR_TYPES, "behavior")
    aggressive = history.has_keyword(*AGGRESSION_KEYWORDS)

    if aggressive:
        first_metric = f"Zero aggressive incidents for {name} within 3 weeks"
    else:
        first_metric = f"{behavior[0].upper() + behavior[1:]} tallies reduced by ≥60% by week 4"

    return PrescriptivePlan(
        owners=["Adviser", "Subject Teachers", "Guidance Counselor" if aggressive else None],
        timeframe=f"{'6-8' if aggressive else '4-6'} weeks with {'daily' if aggressive else 'twice-weekly'} monitoring",
        expected_impact="HIGH" if aggressive else "MEDIUM",
        risk_if_ignored=(
            f"{'Safety risk; potential suspension' if aggressive else 'Persistent disruption'}; "
            "loss of instructional time for all students"
        ),
        steps=[
            f'Target behavior: Address {name}\'s {behavior} issue - "{history.notes(60)}..."',
            "Safety protocol: Establish de-escalation plan with clear adult response steps"
            if aggressive
            else "Post visual behavior expectations in classroom; review with student",
            f"Positive reinforcement: {name} earns points for "
            f"{'calm conflict resolution' if aggressive else 'on-task behavior'} (exchangeable for privileges)",
            "Mandatory cool-down space + teach alternative coping strategies (deep breathing, self-talk)"
            if aggressive
            else "Use low-level responses to disruption (proximity, non-verbal cues) - avoid power struggles",
            "Parent contract: Immediate notification if aggressive incident occurs"
            if aggressive
            else "Weekly behavior report card sent to parents",
        ],
        metrics=[
            first_metric,
            f"{name} earns daily reinforcement target on ≥{'5' if aggressive else '4'} days/week",
            'Teacher satisfaction rating: "Behavior manageable without major disruption" '
            f"by week {'6' if aggressive else '4'}",
        ],
        review_after_days=14 if aggressive else 21,
        context=history.context(),
    )


def _coping_skills(concern: str) -> str:
    if "anxious" in concern:
        return "Grounding techniques, cognitive reframing"
    if "conflict" in concern:
        return "Conflict resolution, assertiveness"
    return "Emotion regulation, self-advocacy"


def counseling_referral_plan(history: ReportHistory) -> PrescriptivePlan:
    name = history.name
    concern = history.first_keyword(EMOTIONAL_CONCERNS, "emotional/social concern")
    crisis = history.has_keyword(*CRISIS_KEYWORDS) or history.report.severity == "High"

    if crisis:
        intake = "🚨 CRISIS PROTOCOL: Immediate safety assessment + parent notification within 24 hours"
        metrics = [
            f"{name} maintains safety (zero harm incidents) for 4+ consecutive weeks",
            "External counselor/therapist engaged by week 2",
        ]
    else:
        intake = "Intake session: Assess concern"
        metrics = [
            f'Self-report: {name} rates {concern} as "improved" (≥2 points on 10-point scale) by session 4',
            f"Peer relationships: {name} demonstrates improved social skills (teacher observation)",
        ]
    metrics.append("Academic performance: No grade decline during counseling period")

    return PrescriptivePlan(
        owners=["Guidance Counselor", "School Psychologist" if crisis else None, "Adviser"],
        timeframe="8-10 sessions (2x/week initially)" if crisis else "6 sessions, weekly",
        expected_impact="HIGH" if crisis else "MEDIUM",
        risk_if_ignored=(
            f"{'Mental health crisis; safety risk' if crisis else 'Emotional distress persists'}; "
            "peer conflicts continue; academic impact"
        ),
        steps=[
            f'{intake} - {name} reports "{history.notes(50)}..."',
            "Referral to external mental health provider + create Safety Plan with student/parent"
            if crisis
            else f"Establish counseling goals targeting {concern} (student input required)",
            f"Teach coping skills: {_coping_skills(concern)}",
            "Coordinate with teachers for classroom supports (breaks, check-ins, modified participation)",
            "Parent engagement: "
            + ("Weekly progress updates + resource referrals" if crisis else "Mid-point and end-of-counseling conferences"),
        ],
        metrics=metrics,
        review_after_days=7 if crisis else 21,
        context=history.context(),
    )


def parent_communication_plan(history: ReportHistory) -> PrescriptivePlan:
    name = history.name
    severity = history.report.severity
    high = severity == "High"
    category = history.category
    if high:
        urgency = "URGENT"
    elif severity == "Medium":
        urgency = "Important"
    else:
        urgency = "Routine"

    if high:
        meeting = (
            "Schedule FACE-TO-FACE meeting within 48 hours (both parents if possible) "
            f"to discuss {category.lower()} concern"
        )
    else:
        meeting = (
            "Phone call or virtual meeting with parent/guardian within "
            f"{'3 school days' if severity == 'Medium' else '1 week'}"
        )

    return PrescriptivePlan(
        owners=["Adviser", "Guidance Counselor" if high else None],
        timeframe="1 week" if high else "2 weeks",
        expected_impact="MEDIUM" if high else "LOW",
        risk_if_ignored=(
            f"{'Issue escalates without parent support' if high else 'Continued misalignment'}; "
            "lack of home-school partnership"
        ),
        steps=[
            f'{urgency} parent contact for {name}: "{history.notes(70)}..."',
            meeting,
            f"Share specific data: {category} incident on {format_report_date(history.report)} "
            f"+ any prior reports ({history.report_count} total)",
            "Partnership plan: Agree on "
            f"{'DAILY check-in method (SMS/email)' if high else 'weekly communication cadence'} "
            "+ home consequences/supports",
            "Document agreements in writing; both parties sign and keep copy"
            if high
            else "Log all communications in student file",
        ],
        metrics=[
            f"Parent contact completed and documented within {'48 hours' if high else '3 school days'}",
            "Communication cadence maintained: "
            + ("5+ contacts in week 1" if high else "Minimum 2 touchpoints across 2 weeks"),
            f"{name}'s {category.lower()} behavior shows improvement "
            f"(verified by {'daily logs' if high else 'week 2 follow-up'})",
        ],
        review_after_days=7 if high else 14,
        context=history.context(),
    )


PLAN_BUILDERS: Dict[RecommendationType, PlanHandler] = {
    RecommendationType.URGENT_INTERVENTION: urgent_intervention_plan,
    RecommendationType.INDIVIDUAL_PLAN: individual_plan,
    RecommendationType.GROUP_INTERVENTION: group_intervention_plan,
    RecommendationType.ACADEMIC_SUPPORT: academic_support_plan,
    RecommendationType.BEHAVIORAL_SUPPORT: behavioral_support_plan,
    RecommendationType.COUNSELING_REFERRAL: counseling_referral_plan,
    RecommendationType.PARENT_COMMUNICATION: parent_communication_plan,
}


def build_plan(
    recommendation: Recommendation,
    report: BehaviorReport,
    all_reports: Sequence[BehaviorReport],
    keywords: List[str] | None = None,
) -> PrescriptivePlan:
    """Elaborate a recommendation into a prescriptive plan for this report.

    Unknown recommendation types get the parent-communication protocol.
    """
    history = ReportHistory.build(report, all_reports, keywords)
    handler = PLAN_BUILDERS.get(str(recommendation.type), parent_communication_plan)
    return handler(history)
