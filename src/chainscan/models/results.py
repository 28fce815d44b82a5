"""Data models for analysis reports."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from chainscan.models.usage import EventPublishUsage, FunctionClientUsage, ServiceUsage


@dataclass(frozen=True)
class FunctionMetadata:
    """@Function metadata declared on a smart service interface method."""

    id: str
    name: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


@dataclass
class SmartServiceInfo:
    """The @SmartService interface a project implements."""

    service_id: str
    is_ui_service: bool
    interface_name: str
    function_methods: dict[str, FunctionMetadata] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "service_id": self.service_id,
            "is_ui_service": self.is_ui_service,
            "interface_name": self.interface_name,
            "function_methods": {
                signature: meta.to_dict() for signature, meta in self.function_methods.items()
            },
        }


@dataclass
class AnalysisMetadata:
    """Statistics, warnings and diagnostics about the analysis run."""

    total_files_scanned: int
    total_classes_analyzed: int
    total_methods_analyzed: int
    warnings: list[str] = field(default_factory=list)
    usage_counts: dict[str, int] = field(default_factory=dict)
    analysis_duration_ms: int = 0
    has_circular_references: bool = False
    had_errors: bool = False
    skipped_files: list[str] = field(default_factory=list)
    cache_stats: dict[str, int] = field(default_factory=dict)

    def __str__(self) -> str:
        return (
            f"Analysis: {self.total_files_scanned} files, {self.total_classes_analyzed} classes, "
            f"{self.total_methods_analyzed} methods in {self.analysis_duration_ms}ms. "
            f"Usages: {self.usage_counts}. Warnings: {len(self.warnings)}, "
            f"Errors: {self.had_errors}"
        )

    def to_dict(self) -> dict:
        return {
            "total_files_scanned": self.total_files_scanned,
            "total_classes_analyzed": self.total_classes_analyzed,
            "total_methods_analyzed": self.total_methods_analyzed,
            "warnings": self.warnings,
            "usage_counts": self.usage_counts,
            "analysis_duration_ms": self.analysis_duration_ms,
            "has_circular_references": self.has_circular_references,
            "had_errors": self.had_errors,
            "skipped_files": self.skipped_files,
            "cache_stats": self.cache_stats,
        }


@dataclass
class AnalysisReport:
    """Complete output of one analysis run."""

    project_path: Path
    analyzed_at: datetime
    metadata: AnalysisMetadata
    function_client_usages: list[FunctionClientUsage] = field(default_factory=list)
    service_usages: list[ServiceUsage] = field(default_factory=list)
    event_publish_usages: list[EventPublishUsage] = field(default_factory=list)
    smart_service: SmartServiceInfo | None = None
    version: str = "1.0"

    @property
    def total_usages(self) -> int:
        return (
            len(self.function_client_usages)
            + len(self.service_usages)
            + len(self.event_publish_usages)
        )

    def __str__(self) -> str:
        return (
            f"AnalysisReport[project={self.project_path.name}, timestamp={self.analyzed_at}, "
            f"total={self.total_usages} usages ({len(self.function_client_usages)} functions, "
            f"{len(self.service_usages)} services, {len(self.event_publish_usages)} events)]"
        )

    def to_dict(self) -> dict:
        result: dict = {
            "version": self.version,
            "project": str(self.project_path),
            "analyzed_at": self.analyzed_at.isoformat(),
            "metadata": self.metadata.to_dict(),
            "function_client_usages": [u.to_dict() for u in self.function_client_usages],
            "service_usages": [u.to_dict() for u in self.service_usages],
            "event_publish_usages": [u.to_dict() for u in self.event_publish_usages],
        }
        if self.smart_service:
            result["smart_service"] = self.smart_service.to_dict()
        return result
