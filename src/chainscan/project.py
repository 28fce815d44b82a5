"""Maven project validation and Java source discovery."""

import logging
from pathlib import Path

from chainscan.errors import InvalidProjectError, UnsupportedProjectError
from chainscan.exclusion import FileExcluder
from chainscan.paths import POM_FILE, SRC_MAIN_JAVA, get_pom_path, get_source_root

logger = logging.getLogger(__name__)

# Directories of a single-module project that may legitimately hold a pom.xml copy
IGNORED_MODULE_DIRS = {"src", "target"}


def validate_project(project_path: Path) -> None:
    """Check that project_path is a Maven module with main Java sources.

    Raises:
        InvalidProjectError: If the path is missing, not a directory, or has
            no pom.xml or src/main/java.
    """
    if not project_path.exists():
        raise InvalidProjectError(f"Project path does not exist: {project_path}")
    if not project_path.is_dir():
        raise InvalidProjectError(f"Project path is not a directory: {project_path}")
    if not get_pom_path(project_path).is_file():
        raise InvalidProjectError(f"No {POM_FILE} found in {project_path}")
    if not get_source_root(project_path).is_dir():
        raise InvalidProjectError(f"No {SRC_MAIN_JAVA.as_posix()} directory found in {project_path}")


def check_single_module(project_path: Path) -> None:
    """Reject multi-module builds: any visible subdirectory carrying its own pom.xml.

    Raises:
        UnsupportedProjectError: If a sub-module is found.
    """
    for child in sorted(project_path.iterdir()):
        if not child.is_dir() or child.name.startswith("."):
            continue
        if child.name in IGNORED_MODULE_DIRS:
            continue
        if (child / POM_FILE).exists():
            raise UnsupportedProjectError(
                f"Multi-module projects are not supported: found module {child.name}/ in {project_path}"
            )


def find_java_files(source_root: Path, excluder: FileExcluder | None = None) -> list[Path]:
    """All .java files under source_root, sorted, minus excluded ones."""
    files = sorted(source_root.rglob("*.java"))
    if excluder is not None:
        files = excluder.filter_files(files)
    logger.debug("Found %d Java files under %s", len(files), source_root)
    return files
