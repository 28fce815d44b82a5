"""Shared plumbing for the usage detectors."""

import logging

from chainscan.analysis.callgraph import CallChainWalker
from chainscan.config import DetectionPatterns
from chainscan.models.usage import CallChain, SourceLocation
from chainscan.program.model import Expression, ProgramModel

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"


def simple_name(type_name: str) -> str:
    """dev.myorg.Foo.Bar -> Bar"""
    return type_name.rsplit(".", 1)[-1]


def build_source_location(expression: Expression) -> SourceLocation:
    """Location of an expression: file, enclosing type and method, line."""
    position = expression.position
    enclosing_type = expression.enclosing_type
    enclosing_method = expression.enclosing_method
    return SourceLocation(
        file_path=position.file.as_posix() if position else UNKNOWN,
        class_name=enclosing_type.qualified_name if enclosing_type else UNKNOWN,
        method_name=enclosing_method.name if enclosing_method else UNKNOWN,
        line_number=position.line if position else -1,
    )


def location_string(expression: Expression) -> str:
    return str(expression.position) if expression.position else "unknown location"


class UsageDetector:
    """Base class: holds the model, the run's walker and the warning sink."""

    def __init__(
        self,
        model: ProgramModel,
        walker: CallChainWalker,
        patterns: DetectionPatterns | None = None,
        warnings: list[str] | None = None,
    ) -> None:
        self.model = model
        self.walker = walker
        self.patterns = patterns or DetectionPatterns()
        self.warnings = warnings if warnings is not None else walker.warnings

    def call_chains(self, site: Expression) -> tuple[CallChain, ...]:
        """All chains for a confirmed usage. The first one is the primary chain."""
        chains = self.walker.build_call_chains(site)
        if len(chains) > 1:
            logger.debug("Multiple call chains found (%d total) for %s", len(chains), location_string(site))
        return tuple(chains)

    def skip(self, expression: Expression, what: str, error: Exception) -> None:
        """Record an expression that could not be inspected."""
        where = location_string(expression)
        logger.warning("Error analyzing %s at %s: %s", what, where, error)
        self.warnings.append(f"Skipped {what} at {where}: {error}")
