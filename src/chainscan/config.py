"""Configuration for chainscan analysis runs."""

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import ClassVar

from chainscan.errors import InvalidConfigurationError

# Sentinel meaning "no depth limit"
UNLIMITED_DEPTH = -1
DEFAULT_MAX_DEPTH = 100


@dataclass(frozen=True)
class AnalysisConfig:
    """Parameters for call chain traversal.

    max_depth bounds how far the walker climbs from a usage site. Any positive
    value is a bound; UNLIMITED_DEPTH (-1) disables the bound. Zero and values
    below the sentinel are rejected here, never at traversal time.

    time_budget_ms, when set, bounds the wall-clock time of a single
    call chain trace. Branches still open when it runs out are truncated
    exactly like a depth limit hit.
    """

    DEFAULT: ClassVar["AnalysisConfig"]
    UNLIMITED: ClassVar["AnalysisConfig"]

    max_depth: int = DEFAULT_MAX_DEPTH
    time_budget_ms: int | None = None

    def __post_init__(self) -> None:
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int):
            raise InvalidConfigurationError(
                f"max_depth must be an integer, got: {self.max_depth!r}"
            )
        if self.max_depth < UNLIMITED_DEPTH or self.max_depth == 0:
            raise InvalidConfigurationError(
                f"max_depth must be positive or {UNLIMITED_DEPTH} for unlimited, "
                f"got: {self.max_depth}"
            )
        if self.time_budget_ms is None:
            return
        if isinstance(self.time_budget_ms, bool) or not isinstance(self.time_budget_ms, int):
            raise InvalidConfigurationError(
                f"time_budget_ms must be an integer, got: {self.time_budget_ms!r}"
            )
        if self.time_budget_ms <= 0:
            raise InvalidConfigurationError(
                f"time_budget_ms must be positive, got: {self.time_budget_ms}"
            )

    @property
    def is_unlimited(self) -> bool:
        return self.max_depth == UNLIMITED_DEPTH

    @classmethod
    def with_max_depth(cls, depth: int) -> "AnalysisConfig":
        return cls(max_depth=depth)


AnalysisConfig.DEFAULT = AnalysisConfig()
AnalysisConfig.UNLIMITED = AnalysisConfig(max_depth=UNLIMITED_DEPTH)


@dataclass(frozen=True)
class DetectionPatterns:
    """Naming conventions the usage detectors match against."""

    # Function clients: <FunctionId>Function.instance().execute(...)
    function_package: str = "dev.myorg.mysection.function.client"
    function_class_suffix: str = "Function"
    function_methods: frozenset[str] = frozenset(
        {"execute", "executeAsync", "executeAsyncOnOrAfter"}
    )
    scheduled_method: str = "executeAsyncOnOrAfter"
    singleton_accessors: frozenset[str] = frozenset({"instance"})

    # Services: dev.myorg.services.<serviceid>.*
    service_package: str = "dev.myorg.services"

    # Event publishing: publisher.publishEvent("<topic>", messageData)
    publisher_type: str = "dev.myorg.mysection.eda.publisher.service.IEventPublisher"
    publish_method: str = "publishEvent"
    transitive_publisher_check: bool = False

    # Smart service annotations
    smart_service_annotation: str = "dev.myorg.mysection.smart.SmartService"
    ui_service_annotation: str = "dev.myorg.mysection.smart.UIService"
    function_annotation: str = "dev.myorg.mysection.smart.Function"

    def service_package_for(self, service_id: str) -> str:
        """Expected base package of a service: MDZ017J -> dev.myorg.services.mdz017j"""
        return f"{self.service_package}.{service_id.lower()}"


@dataclass(frozen=True)
class DependencyGroups:
    """Maven coordinates that identify function and service dependencies."""

    services_group: str = "dev.myorg.services"
    functions_group: str = "dev.myorg.functions"
    function_artifact_suffix: str = "-func-client"


@dataclass
class ScanSettings:
    """Everything a scan needs besides the project path."""

    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    patterns: DetectionPatterns = field(default_factory=DetectionPatterns)
    groups: DependencyGroups = field(default_factory=DependencyGroups)
    excludes: list[str] = field(default_factory=list)


def load_config(config_path: Path) -> dict:
    """Load a .chainscan/config.json configuration file."""
    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


def get_analysis_config(config: dict) -> AnalysisConfig:
    """Build the traversal config from the "analysis" section."""
    analysis = _section(config, "analysis")
    return AnalysisConfig(
        max_depth=analysis.get("max_depth", DEFAULT_MAX_DEPTH),
        time_budget_ms=analysis.get("time_budget_ms"),
    )


def get_detection_patterns(config: dict) -> DetectionPatterns:
    """Build detection patterns, overriding defaults from the "patterns" section."""
    patterns = dict(_section(config, "patterns"))
    for key in ("function_methods", "singleton_accessors"):
        if key in patterns:
            patterns[key] = _name_set(key, patterns[key])
    return _build_section(DetectionPatterns, "patterns", patterns)


def get_dependency_groups(config: dict) -> DependencyGroups:
    """Build Maven dependency groups from the "dependencies" section."""
    return _build_section(DependencyGroups, "dependencies", _section(config, "dependencies"))


def _section(config: dict, name: str) -> dict:
    """A top-level config section, empty when absent."""
    section = config.get(name, {})
    if not isinstance(section, dict):
        raise InvalidConfigurationError(
            f"\"{name}\" section must be an object, got: {type(section).__name__}"
        )
    return section


def _name_set(key: str, value) -> frozenset[str]:
    if not isinstance(value, list):
        raise InvalidConfigurationError(f"{key} must be a list of names, got: {value!r}")
    if not all(isinstance(name, str) for name in value):
        raise InvalidConfigurationError(f"{key} must contain only strings, got: {value!r}")
    return frozenset(value)


def _build_section(cls, section: str, values: dict):
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise InvalidConfigurationError(
            f"Unknown keys in \"{section}\" section: {', '.join(unknown)}"
        )
    return cls(**values)


def get_excludes(config: dict) -> list[str]:
    """Get extra gitignore-style exclude patterns for source discovery."""
    excludes = _section(config, "sources").get("exclude", [])
    if not isinstance(excludes, list):
        raise InvalidConfigurationError(
            f"sources.exclude must be a list of patterns, got: {excludes!r}"
        )
    return excludes


def get_scan_settings(config: dict) -> ScanSettings:
    """Build all scan settings from a loaded config dict."""
    if not isinstance(config, dict):
        raise InvalidConfigurationError("Config file must contain a JSON object")
    return ScanSettings(
        analysis=get_analysis_config(config),
        patterns=get_detection_patterns(config),
        groups=get_dependency_groups(config),
        excludes=get_excludes(config),
    )
