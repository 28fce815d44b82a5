"""Source file exclusion for Java source discovery.

Combines default build-output patterns, the project's .gitignore and
configured excludes, matched gitignore-style with pathspec.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import pathspec

logger = logging.getLogger(__name__)


@dataclass
class ExclusionConfig:
    """Patterns by origin."""

    default_patterns: list[str] = field(default_factory=list)
    gitignore_patterns: list[str] = field(default_factory=list)
    configured_patterns: list[str] = field(default_factory=list)


# Build output and VCS/IDE directories at the project root. Anchored so that
# Java packages named "build" or "out" are still scanned.
DEFAULT_EXCLUDES = [
    "/.git/",
    "/.idea/",
    "/.chainscan/",
    "/target/",
    "/build/",
    "/out/",
    "node_modules/",
]


class FileExcluder:
    """Decides which files under the project root are skipped."""

    def __init__(
        self,
        project_root: Path,
        extra_excludes: list[str] | None = None,
    ) -> None:
        """Initialize the file excluder.

        Args:
            project_root: Root directory of the project.
            extra_excludes: Additional gitignore-style patterns, e.g. from config.
        """
        self.project_root = project_root
        self._config = ExclusionConfig(
            default_patterns=list(DEFAULT_EXCLUDES),
            configured_patterns=list(extra_excludes or []),
        )
        self._load_gitignore()
        self._spec = pathspec.PathSpec.from_lines("gitignore", self.patterns)

    def _load_gitignore(self) -> None:
        gitignore_path = self.project_root / ".gitignore"
        if not gitignore_path.exists():
            return
        try:
            content = gitignore_path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Could not read %s: %s", gitignore_path, e)
            return
        self._config.gitignore_patterns = [
            line.strip()
            for line in content.splitlines()
            if line.strip() and not line.startswith("#")
        ]
        logger.debug(
            "Loaded %d patterns from %s",
            len(self._config.gitignore_patterns),
            gitignore_path,
        )

    def should_exclude(self, file_path: Path) -> bool:
        """Check if a file should be excluded.

        Paths outside the project root are never excluded.
        """
        try:
            rel_path = file_path.relative_to(self.project_root)
        except ValueError:
            return False

        return self._spec.match_file(rel_path.as_posix())

    def filter_files(self, files: list[Path]) -> list[Path]:
        return [f for f in files if not self.should_exclude(f)]

    @property
    def patterns(self) -> list[str]:
        return (
            self._config.default_patterns
            + self._config.gitignore_patterns
            + self._config.configured_patterns
        )
