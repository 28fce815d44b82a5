"""Centralized path management for chainscan output files."""

from pathlib import Path

# Directory name for chainscan outputs
CHAINSCAN_DIR = ".chainscan"

# File names within the .chainscan directory
CONFIG_FILE = "config.json"
REPORT_FILE = "report.json"

# Maven layout
POM_FILE = "pom.xml"
SRC_MAIN_JAVA = Path("src") / "main" / "java"


def get_chainscan_dir(project_path: Path) -> Path:
    """Get the .chainscan directory path for a project."""
    return project_path / CHAINSCAN_DIR


def ensure_chainscan_dir(project_path: Path) -> Path:
    """Ensure .chainscan directory exists and return its path."""
    chainscan_dir = get_chainscan_dir(project_path)
    chainscan_dir.mkdir(parents=True, exist_ok=True)
    return chainscan_dir


def get_config_path(project_path: Path) -> Path:
    """Get the config.json path for a project."""
    return get_chainscan_dir(project_path) / CONFIG_FILE


def get_report_path(project_path: Path) -> Path:
    """Get the report.json path for a project."""
    return get_chainscan_dir(project_path) / REPORT_FILE


def get_pom_path(project_path: Path) -> Path:
    """Get the pom.xml path for a project."""
    return project_path / POM_FILE


def get_source_root(project_path: Path) -> Path:
    """Get the main Java source root (src/main/java) for a project."""
    return project_path / SRC_MAIN_JAVA
