"""Data models for chainscan."""

from chainscan.models.results import (
    AnalysisMetadata,
    AnalysisReport,
    FunctionMetadata,
    SmartServiceInfo,
)
from chainscan.models.usage import (
    CallChain,
    CallChainEntry,
    EventPublishUsage,
    FunctionClientUsage,
    ServiceUsage,
    SourceLocation,
    TopicResolution,
    TopicResolutionStatus,
    UsageType,
    Visibility,
)

__all__ = [
    # Usage models
    "CallChain",
    "CallChainEntry",
    "EventPublishUsage",
    "FunctionClientUsage",
    "ServiceUsage",
    "SourceLocation",
    "TopicResolution",
    "TopicResolutionStatus",
    "UsageType",
    "Visibility",
    # Report models
    "AnalysisMetadata",
    "AnalysisReport",
    "FunctionMetadata",
    "SmartServiceInfo",
]
