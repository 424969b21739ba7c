"""Recommendation and prescriptive plan data structures."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional


class RecommendationType(str, Enum):
    GROUP_INTERVENTION = "GROUP_INTERVENTION"
    URGENT_INTERVENTION = "URGENT_INTERVENTION"
    INDIVIDUAL_PLAN = "INDIVIDUAL_PLAN"
    PARENT_COMMUNICATION = "PARENT_COMMUNICATION"
    ACADEMIC_SUPPORT = "ACADEMIC_SUPPORT"
    BEHAVIORAL_SUPPORT = "BEHAVIORAL_SUPPORT"
    COUNSELING_REFERRAL = "COUNSELING_REFERRAL"

    def __str__(self) -> str:
        return self.value


PRIORITY_LEVELS = ("LOW", "MEDIUM", "HIGH", "CRITICAL")
EFFORT_LEVELS = ("LOW", "MEDIUM", "HIGH")


@dataclass
class PlanContext:
    """Snapshot of the triggering report shown next to a plan."""

    student_name: str = "Student"
    category: str = "General"
    severity: str = "Medium"
    report_date: Optional[str] = None
    specific_issue: str = "Behavior concern"
    keywords: str = "None detected"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "studentName": self.student_name,
            "category": self.category,
            "severity": self.severity,
            "reportDate": self.report_date,
            "specificIssue": self.specific_issue,
            "keywords": self.keywords,
        }


@dataclass
class PrescriptivePlan:
    owners: List[str] = field(default_factory=list)
    timeframe: str = ""
    expected_impact: str = "MEDIUM"
    risk_if_ignored: str = ""
    steps: List[str] = field(default_factory=list)
    metrics: List[str] = field(default_factory=list)
    review_after_days: int = 14
    context: PlanContext = field(default_factory=PlanContext)

    def __post_init__(self) -> None:
        owners: List[str] = []
        for owner in self.owners:
            if owner and owner not in owners:
                owners.append(owner)
        self.owners = owners

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owners": list(self.owners),
            "timeframe": self.timeframe,
            "expectedImpact": self.expected_impact,
            "riskIfIgnored": self.risk_if_ignored,
            "steps": list(self.steps),
            "metrics": list(self.metrics),
            "reviewAfterDays": self.review_after_days,
            "context": self.context.to_dict(),
        }


@dataclass
class Recommendation:
    type: RecommendationType | str
    title: str
    description: str
    actions: List[str] = field(default_factory=list)
    priority: str = "MEDIUM"
    effort: str = "MEDIUM"
    confidence: int = 0
    keywords: Optional[List[str]] = None
    plan: Optional[PrescriptivePlan] = None

    def with_plan(self, plan: PrescriptivePlan) -> "Recommendation":
        return replace(self, plan=plan)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": str(self.type),
            "title": self.title,
            "description": self.description,
            "actions": list(self.actions),
            "priority": self.priority,
            "effort": self.effort,
            "confidence": self.confidence,
        }
        if self.keywords is not None:
            payload["keywords"] = list(self.keywords)
        if self.plan is not None:
            payload["plan"] = self.plan.to_dict()
        return payload
