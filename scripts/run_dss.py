"""Run the behavior DSS over a report export and write dashboard outputs."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import Any, Dict

import pandas as pd
import yaml

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from guidancedss.analytics.dashboard import report_recommendations
from guidancedss.analytics.payload import build_behavior_analytics, flatten_recommendations
from guidancedss.reports.loader import load_reports_csv

DEFAULT_CONFIG_PATH = Path("configs") / "config.yaml"

# Six demonstration cases, each aimed at one rule family.
DEMO_REPORTS = [
    # Academic group: three reading-comprehension reports
    (1, "Maria", "Academic", "Medium", "2026-01-05T08:30:00",
     "Maria struggles to understand what she reads. She can decode words but doesn't get the meaning. "
     "Needs to reread passages multiple times."),
    (2, "Carlos", "Academic", "Medium", "2026-01-05T09:10:00",
     "Carlos has difficulty with reading comprehension. Cannot explain what he just read. "
     "Struggles with academic performance in language arts."),
    (3, "Juan", "Academic", "Low", "2026-01-05T10:00:00",
     "Juan reading skills need improvement. Has trouble understanding written instructions and text comprehension."),
    # High severity
    (4, "Miguel", "Conduct", "High", "2026-01-06T11:00:00",
     "Miguel got into a physical altercation with another student. Punched and kicked. Aggressive behavior. "
     "Needs immediate intervention."),
    (5, "Anna", "Disruption", "High", "2026-01-06T13:00:00",
     "Anna constantly interrupts class, uses offensive language, and refuses to follow instructions. "
     "Disruptive and aggressive toward teacher."),
    # Frequent reporter: five reports for the same student
    (6, "Pedro", "Disruption", "Medium", "2026-01-01T09:00:00",
     "Pedro talking during class again. Not paying attention to lessons."),
    (6, "Pedro", "Attendance", "High", "2026-01-02T09:00:00", "Pedro absent from class. Third time this week."),
    (6, "Pedro", "Conduct", "Medium", "2026-01-03T09:00:00",
     "Pedro was disrespectful to classmates. Arguing with peers."),
    (6, "Pedro", "Disruption", "High", "2026-01-04T09:00:00", "Pedro refusing to do schoolwork. Completely disruptive."),
    (6, "Pedro", "Conduct", "Medium", "2026-01-05T09:00:00", "Pedro caught cheating on quiz. Dishonest behavior."),
    # Behavioral support
    (7, "Sofia", "Disruption", "Medium", "2026-01-07T08:00:00",
     "Sofia interrupts class constantly. Makes noise and seeks attention. Disrupts learning environment."),
    (8, "Diego", "Disruption", "Medium", "2026-01-07T10:00:00",
     "Diego talks during lessons. Not respecting classroom rules. Causes distraction."),
    # Social-emotional
    (9, "Rafael", "Attendance", "Medium", "2026-01-08T09:00:00",
     "Rafael appears sad and withdrawn. Cries during class. Emotional distress. Sits alone. Isolated from peers."),
    # Attendance
    (10, "Leo", "Attendance", "High", "2026-01-08T10:00:00",
     "Leo has been absent 8 times this month. Skipping classes frequently. Truant behavior."),
]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the behavior decision support system.")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to config YAML.")
    parser.add_argument("--demo", action="store_true", help="Generate a demo report export if reports_path is missing.")
    return parser.parse_args()


def load_config(cfg_path: Path) -> Dict[str, Any]:
    with cfg_path.open("r", encoding="utf-8") as handle:
        cfg = yaml.safe_load(handle) or {}
    if not isinstance(cfg, dict):
        raise ValueError("Configuration file must be a mapping.")
    return cfg


def resolve_path(path: Path | str) -> Path:
    path = Path(path)
    return path if path.is_absolute() else PROJECT_ROOT / path


def ensure_demo_data(path: Path) -> None:
    """Write a small report export that triggers every recommendation type."""
    rows = []
    for report_id, (student_id, name, category, severity, reported_at, notes) in enumerate(DEMO_REPORTS, start=1):
        rows.append(
            {
                "id": report_id,
                "student_id": student_id,
                "student_name": name,
                "section_id": 1,
                "section_name": "Grade 7 - Sampaguita",
                "teacher_id": 1,
                "category": category,
                "severity": severity,
                "notes": notes,
                "report_date": reported_at,
                "is_done": False,
            }
        )

    path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(rows).to_csv(path, index=False)
    print(f"Demo behavior reports written to {path}")


def write_outputs(payload: Dict[str, Any], recommendations: pd.DataFrame, output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    json_path = output_dir / "behavior_analytics.json"
    csv_path = output_dir / "dss_recommendations.csv"

    json_path.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
    recommendations.to_csv(csv_path, index=False)
    print(f"Wrote outputs to {json_path} and {csv_path}")


def print_summary(payload: Dict[str, Any], recommendations: pd.DataFrame) -> None:
    analysis = payload["dashboardAnalysis"]
    print("DSS summary:")
    print(f"Reports: {analysis['totalReports']}")
    print(
        "Severity: "
        f"High={analysis['highSeverityCount']}, Medium={analysis['mediumSeverityCount']}, Low={analysis['lowSeverityCount']}"
    )
    print(f"Categories: {analysis['categoryBreakdown']}")
    for student in analysis["atRiskStudents"]:
        print(f"At-risk: {student['studentName']} ({student['reportCount']} reports, {student['riskLevel']})")

    type_counts: Counter[str] = Counter(recommendations["type"]) if not recommendations.empty else Counter()
    print(f"Recommendation types: {type_counts.most_common()}")
    without = sum(1 for report in payload["reports"] if not report["hasRecommendations"])
    print(f"Reports without recommendations: {without}")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    args = parse_args()
    cfg_path = resolve_path(args.config)
    if not cfg_path.exists():
        print(f"Config not found: {cfg_path}", file=sys.stderr)
        sys.exit(1)

    cfg = load_config(cfg_path)
    dss_cfg = cfg.get("dss") or {}

    reports_path = resolve_path(dss_cfg.get("reports_path", Path("data") / "raw" / "behavior_reports.csv"))
    if not reports_path.exists():
        if args.demo:
            ensure_demo_data(reports_path)
        else:
            print(f"Behavior reports not found at {reports_path}. Use --demo to generate sample data.", file=sys.stderr)
            sys.exit(1)

    reports = load_reports_csv(reports_path, cfg)
    per_report = report_recommendations(reports, cfg)
    payload = build_behavior_analytics(reports, cfg, per_report)
    recommendations = flatten_recommendations(reports, cfg, per_report)

    write_outputs(payload, recommendations, resolve_path(dss_cfg.get("output_dir", "reports")))
    print_summary(payload, recommendations)


if __name__ == "__main__":
    main()
