"""Orchestrates one analysis run over a Maven module."""

import logging
import time
from datetime import datetime
from pathlib import Path

from chainscan.analysis.callgraph import CallChainWalker
from chainscan.config import AnalysisConfig, ScanSettings
from chainscan.detection import (
    EventPublishDetector,
    FunctionClientDetector,
    ServiceDetector,
    SmartServiceDetector,
)
from chainscan.exclusion import FileExcluder
from chainscan.models.results import AnalysisMetadata, AnalysisReport, SmartServiceInfo
from chainscan.models.usage import EventPublishUsage, FunctionClientUsage, ServiceUsage
from chainscan.paths import get_source_root
from chainscan.pom import PomAnalyzer
from chainscan.program.builder import build_model
from chainscan.program.model import ProgramModel
from chainscan.project import check_single_module, find_java_files, validate_project

logger = logging.getLogger(__name__)

CIRCULAR_WARNING_PREFIX = "Circular reference detected"


class SourceAnalyzer:
    """Validates a project, builds its program model and runs all detectors."""

    def __init__(self, settings: ScanSettings | None = None) -> None:
        self.settings = settings or ScanSettings()
        self.pom_analyzer = PomAnalyzer(self.settings.groups)

    def get_report(self, project_root: Path, config: AnalysisConfig | None = None) -> AnalysisReport:
        """Analyze project_root and return the full report.

        Args:
            project_root: Root of a single-module Maven project
            config: Traversal config, overriding the settings' analysis config

        Raises:
            InvalidProjectError: If the project structure is invalid
            UnsupportedProjectError: If a multi-module build is detected
        """
        config = config or self.settings.analysis
        logger.info("Starting analysis of project: %s", project_root)
        started_at = datetime.now()
        start = time.monotonic()

        validate_project(project_root)
        check_single_module(project_root)

        dependencies = self.pom_analyzer.scan_pom(project_root)
        function_ids = dependencies.function_ids
        service_ids = dependencies.service_ids
        logger.info(
            "Found %d function dependencies and %d service dependencies in pom.xml",
            len(function_ids),
            len(service_ids),
        )

        warnings: list[str] = []
        try:
            model = self.build_model(project_root)
        except Exception as e:
            logger.exception("Failed to build program model")
            return self._error_report(project_root, started_at, start, f"Failed to parse project: {e}")
        warnings.extend(model.warnings)

        walker = CallChainWalker(model, config, warnings)
        patterns = self.settings.patterns

        function_usages: list[FunctionClientUsage] = self._guarded(
            lambda: FunctionClientDetector(model, walker, patterns).detect(function_ids), warnings
        )
        service_usages: list[ServiceUsage] = self._guarded(
            lambda: ServiceDetector(model, walker, patterns).detect(service_ids), warnings
        )
        event_usages: list[EventPublishUsage] = self._guarded(
            lambda: EventPublishDetector(model, walker, patterns).detect(), warnings
        )

        smart_service: SmartServiceInfo | None = None
        try:
            smart_service = SmartServiceDetector(model, patterns).analyze(self.pom_analyzer.artifact_id)
        except Exception as e:
            logger.exception("Smart service detection failed")
            warnings.append(f"Smart service detection failed: {e}")

        metadata = AnalysisMetadata(
            total_files_scanned=len(model.files),
            total_classes_analyzed=len(model.types),
            total_methods_analyzed=len(model.all_methods()),
            warnings=warnings,
            usage_counts={
                "function_clients": len(function_usages),
                "services": len(service_usages),
                "event_publish": len(event_usages),
            },
            analysis_duration_ms=_elapsed_ms(start),
            has_circular_references=any(w.startswith(CIRCULAR_WARNING_PREFIX) for w in warnings),
            skipped_files=list(model.skipped_files),
            cache_stats=walker.cache_stats(),
        )
        logger.info("Analysis completed: %s", metadata)

        return AnalysisReport(
            project_path=project_root,
            analyzed_at=started_at,
            metadata=metadata,
            function_client_usages=function_usages,
            service_usages=service_usages,
            event_publish_usages=event_usages,
            smart_service=smart_service,
        )

    def build_model(self, project_root: Path) -> ProgramModel:
        """Parse every non-excluded .java file under src/main/java."""
        source_root = get_source_root(project_root)
        logger.info("Building program model for: %s", source_root)

        excluder = FileExcluder(project_root, extra_excludes=self.settings.excludes)
        return build_model(
            project_root,
            find_java_files(source_root, excluder),
            singleton_accessors=self.settings.patterns.singleton_accessors,
        )

    @staticmethod
    def _guarded(detect, warnings: list[str]) -> list:
        """Run one detector; a failure yields no usages and a warning."""
        try:
            return detect()
        except Exception as e:
            logger.exception("Failed to detect usages")
            warnings.append(f"Usage detection partially failed: {e}")
            return []

    @staticmethod
    def _error_report(
        project_root: Path, started_at: datetime, start: float, message: str
    ) -> AnalysisReport:
        metadata = AnalysisMetadata(
            total_files_scanned=0,
            total_classes_analyzed=0,
            total_methods_analyzed=0,
            warnings=[f"CRITICAL: {message}"],
            analysis_duration_ms=_elapsed_ms(start),
            had_errors=True,
        )
        return AnalysisReport(project_path=project_root, analyzed_at=started_at, metadata=metadata)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
