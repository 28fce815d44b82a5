"""Output modules for CLI display and file writing."""

from chainscan.output.json_writer import load_report, write_report
from chainscan.output.tree import build_report_tree, build_summary_table, display_tree

__all__ = ["build_report_tree", "build_summary_table", "display_tree", "load_report", "write_report"]
