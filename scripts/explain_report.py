"""Explain the DSS recommendations for a single behavior report."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

import yaml

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from guidancedss.interventions.rules import generate_recommendations, matched_rules
from guidancedss.keywords.scoring import extract_keywords
from guidancedss.reports.loader import load_reports_csv
from guidancedss.reports.types import BehaviorReport

DEFAULT_CONFIG_PATH = Path("configs") / "config.yaml"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Explain DSS recommendations for one behavior report.")
    parser.add_argument("--report_id", required=True, help="Behavior report identifier to explain.")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to config YAML.")
    return parser.parse_args()


def load_config(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        cfg = yaml.safe_load(handle) or {}
    if not isinstance(cfg, dict):
        raise ValueError("Configuration must be a mapping.")
    return cfg


def find_report(reports: List[BehaviorReport], report_id: str) -> BehaviorReport:
    wanted = str(report_id).strip()
    for report in reports:
        if str(report.id) == wanted:
            return report
    raise ValueError(f"report_id {report_id} not found")


def explain(report: BehaviorReport, reports: List[BehaviorReport], cfg: Dict[str, Any]) -> Dict[str, Any]:
    recommendations = generate_recommendations(report, reports, cfg)
    return {
        "report": report.to_dict(),
        "keywords": extract_keywords(report.notes),
        "matched_rules": matched_rules(report, reports, cfg),
        "recommendations": [rec.to_dict() for rec in recommendations],
    }


def render_markdown(payload: Dict[str, Any]) -> str:
    report = payload["report"]
    lines = [
        f"# Behavior Report {report['id']}: {report['student_name'] or 'Student'}",
        f"Category: {report['category']} | Severity: {report['severity']}",
        "## Notes",
        report["notes"] or "",
        "## Keywords",
        ", ".join(payload["keywords"]) or "None detected",
        "## Matched Rules",
        "\n".join(f"- {name}" for name in payload["matched_rules"]) or "- none",
    ]
    for rec in payload["recommendations"]:
        plan = rec["plan"]
        lines.extend(
            [
                f"## {rec['title']} ({rec['type']}, confidence {rec['confidence']})",
                rec["description"],
                f"Owners: {', '.join(plan['owners'])}",
                f"Timeframe: {plan['timeframe']} | Expected impact: {plan['expectedImpact']}",
                f"Risk if ignored: {plan['riskIfIgnored']}",
                "### Steps",
                "\n".join(f"{idx}. {step}" for idx, step in enumerate(plan["steps"], start=1)),
                "### Metrics",
                "\n".join(f"- {metric}" for metric in plan["metrics"]),
                f"Review after {plan['reviewAfterDays']} days.",
            ]
        )
    return "\n\n".join(lines)


def write_outputs(report_id: str, payload: Dict[str, Any], output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    json_path = output_dir / f"report_{report_id}_{timestamp}.json"
    md_path = output_dir / f"report_{report_id}_{timestamp}.md"

    json_path.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
    md_path.write_text(render_markdown(payload), encoding="utf-8")
    print(f"Wrote outputs to {json_path} and {md_path}")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    args = parse_args()
    cfg_path = args.config if args.config.is_absolute() else PROJECT_ROOT / args.config
    if not cfg_path.exists():
        print(f"Config not found: {cfg_path}", file=sys.stderr)
        sys.exit(1)

    cfg = load_config(cfg_path)
    dss_cfg = cfg.get("dss") or {}
    reports_path = Path(dss_cfg.get("reports_path", Path("data") / "raw" / "behavior_reports.csv"))
    if not reports_path.is_absolute():
        reports_path = PROJECT_ROOT / reports_path
    if not reports_path.exists():
        print(f"Behavior reports not found at {reports_path}", file=sys.stderr)
        sys.exit(1)

    reports = load_reports_csv(reports_path, cfg)
    try:
        report = find_report(reports, args.report_id)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(1)
    payload = explain(report, reports, cfg)

    output_dir = PROJECT_ROOT / dss_cfg.get("output_dir", "reports") / "dss_outputs"
    write_outputs(str(args.report_id), payload, output_dir)


if __name__ == "__main__":
    main()
