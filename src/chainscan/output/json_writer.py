"""JSON output for analysis reports."""

import json
from pathlib import Path

from chainscan.models.results import AnalysisReport


def write_report(report: AnalysisReport, output_path: Path) -> None:
    """Write the report.json file."""
    data = report.to_dict()

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def load_report(report_path: Path) -> dict:
    """Load a report.json file."""
    with open(report_path, "r", encoding="utf-8") as f:
        return json.load(f)
