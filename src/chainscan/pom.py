"""Reads function and service dependencies from a Maven pom.xml."""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path

from chainscan.config import DependencyGroups
from chainscan.paths import get_pom_path

logger = logging.getLogger(__name__)

MAVEN_NAMESPACE = "http://maven.apache.org/POM/4.0.0"


@dataclass(frozen=True)
class DependantEntry:
    """A dependency of interest. name_of_note is the service or function id."""

    group_id: str
    artifact_id: str
    version: str | None
    name_of_note: str


@dataclass
class DependencyAnalysis:
    services: set[DependantEntry] = field(default_factory=set)
    functions: set[DependantEntry] = field(default_factory=set)

    @property
    def service_ids(self) -> set[str]:
        return {entry.name_of_note for entry in self.services}

    @property
    def function_ids(self) -> set[str]:
        return {entry.name_of_note for entry in self.functions}


def _child_text(element: ET.Element, tag: str, ns: str) -> str | None:
    child = element.find(f"{ns}{tag}")
    if child is None or child.text is None:
        return None
    return child.text.strip()


class PomAnalyzer:
    """Scans pom.xml dependencies. scan_pom() must run before artifact_id is read."""

    def __init__(self, groups: DependencyGroups | None = None) -> None:
        self.groups = groups or DependencyGroups()
        self.artifact_id: str | None = None

    def scan_pom(self, project_path: Path) -> DependencyAnalysis:
        """Collect service and function dependencies.

        A missing or unparseable pom yields an empty analysis and a logged error.
        """
        analysis = DependencyAnalysis()
        pom_path = get_pom_path(project_path)

        if not pom_path.exists():
            logger.error("No pom.xml found at path: %s", project_path)
            return analysis

        try:
            root = ET.parse(pom_path).getroot()
        except (ET.ParseError, OSError) as e:
            logger.error("Failed to parse %s: %s", pom_path, e)
            return analysis

        ns = f"{{{MAVEN_NAMESPACE}}}" if root.tag.startswith(f"{{{MAVEN_NAMESPACE}}}") else ""
        self.artifact_id = _child_text(root, "artifactId", ns)

        dependencies = root.find(f"{ns}dependencies")
        if dependencies is None:
            return analysis

        for dependency in dependencies.findall(f"{ns}dependency"):
            group_id = _child_text(dependency, "groupId", ns)
            artifact_id = _child_text(dependency, "artifactId", ns)
            version = _child_text(dependency, "version", ns)
            if not group_id or not artifact_id:
                continue

            if group_id == self.groups.services_group:
                analysis.services.add(DependantEntry(group_id, artifact_id, version, artifact_id))
                logger.debug("Found service id: %s", artifact_id)
            elif group_id == self.groups.functions_group and artifact_id.endswith(
                self.groups.function_artifact_suffix
            ):
                function_id = artifact_id[: -len(self.groups.function_artifact_suffix)]
                analysis.functions.add(DependantEntry(group_id, artifact_id, version, function_id))
                logger.debug("Found function id: %s", function_id)

        logger.info(
            "pom.xml declares %d service and %d function dependencies",
            len(analysis.services),
            len(analysis.functions),
        )
        return analysis
