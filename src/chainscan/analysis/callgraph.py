"""Upward call graph traversal from usage sites to entry points.

An entry point is a method with no detectable caller in the scanned sources,
whatever its declared visibility. Every usage site inside a method yields at
least one chain; sites outside methods (field initializers, constructors,
static blocks) yield a single empty chain.
"""

from __future__ import annotations

import logging
import threading
from time import monotonic
from typing import NamedTuple

from chainscan.config import AnalysisConfig
from chainscan.models.usage import CallChain, CallChainEntry
from chainscan.program.model import Expression, MethodDecl, ProgramModel

logger = logging.getLogger(__name__)


class CallerCache:
    """Run-scoped memo of resolved callers, keyed by qualified method signature."""

    def __init__(self) -> None:
        self._callers: dict[str, tuple[MethodDecl, ...]] = {}
        self._ambiguous: set[str] = set()
        self._lock = threading.Lock()

    def get(self, signature: str) -> tuple[MethodDecl, ...] | None:
        with self._lock:
            return self._callers.get(signature)

    def put(self, signature: str, callers: list[MethodDecl], ambiguous: bool = False) -> None:
        with self._lock:
            self._callers[signature] = tuple(callers)
            if ambiguous:
                self._ambiguous.add(signature)

    def is_ambiguous(self, signature: str) -> bool:
        with self._lock:
            return signature in self._ambiguous

    def clear(self) -> None:
        with self._lock:
            self._callers.clear()
            self._ambiguous.clear()

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "cached_methods": len(self._callers),
                "total_callers": sum(len(c) for c in self._callers.values()),
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._callers)

    def __contains__(self, signature: str) -> bool:
        with self._lock:
            return signature in self._callers


class _Frame(NamedTuple):
    """One pending branch of the upward trace. Never mutated."""

    method: MethodDecl
    depth: int
    visited: frozenset[str]
    chain: CallChain
    via_ambiguous: bool  # method was reached through an ambiguous overload match


class CallChainWalker:
    """Builds call chains by tracing callers upward from a usage site.

    One walker is created per analysis run. Warnings (cycles, depth limit
    hits, failures) are appended to the shared warnings list.
    """

    def __init__(
        self,
        model: ProgramModel,
        config: AnalysisConfig | None = None,
        warnings: list[str] | None = None,
        cache: CallerCache | None = None,
    ) -> None:
        self.model = model
        self.config = config or AnalysisConfig.DEFAULT
        self.warnings = warnings if warnings is not None else []
        self.cache = cache or CallerCache()

    def build_call_chains(self, site: Expression | MethodDecl | None) -> list[CallChain]:
        """Return one call chain per caller lineage of the method enclosing site.

        Args:
            site: A usage expression, or a method to start from directly

        Returns:
            At least one chain. [()] when site is not inside a method or the
            trace failed.
        """
        if isinstance(site, MethodDecl):
            method = site
        else:
            method = site.enclosing_method if site is not None else None
            logger.debug("Building call chain from usage at %s", _location(site))

        if method is None:
            logger.debug("Usage not within a method, returning empty chain")
            return [()]

        try:
            chains = self._trace_upward(method)
        except Exception as e:
            logger.warning("Error building call chain: %s", e)
            self.warnings.append(f"Call chain construction failed: {e}")
            return [()]

        if not chains:
            # Every branch was a cycle
            logger.debug("No entry point found, using containing method as single entry")
            return [(self._entry(method, is_entry_point=True),)]
        return chains

    def _trace_upward(self, start: MethodDecl) -> list[CallChain]:
        deadline = None
        if self.config.time_budget_ms is not None:
            deadline = monotonic() + self.config.time_budget_ms / 1000

        chains: list[CallChain] = []
        stack = [_Frame(start, 0, frozenset(), (), False)]

        while stack:
            frame = stack.pop()
            method = frame.method
            signature = method.qualified_signature

            if signature in frame.visited:
                logger.warning("Circular reference detected: %s", signature)
                self.warnings.append(f"Circular reference detected in {signature}")
                continue

            if not self.config.is_unlimited and frame.depth >= self.config.max_depth:
                logger.debug("Max depth %d reached at %s", self.config.max_depth, signature)
                self.warnings.append(f"Max depth reached at {signature}")
                chains.append(frame.chain + (self._entry(method, True, frame.via_ambiguous),))
                continue

            if deadline is not None and monotonic() >= deadline:
                logger.debug("Time budget exhausted at %s", signature)
                self.warnings.append(f"Time budget exceeded at {signature}")
                chains.append(frame.chain + (self._entry(method, True, frame.via_ambiguous),))
                continue

            callers = self.find_callers(method)
            if not callers:
                logger.debug("Found entry point: %s", signature)
                chains.append(frame.chain + (self._entry(method, True, frame.via_ambiguous),))
                continue

            visited = frame.visited | {signature}
            chain = frame.chain + (self._entry(method, False, frame.via_ambiguous),)
            ambiguous = self.cache.is_ambiguous(signature)
            # Reversed so branches complete in caller order
            for caller in reversed(callers):
                stack.append(_Frame(caller, frame.depth + 1, visited, chain, ambiguous))

        return chains

    def find_callers(self, method: MethodDecl) -> list[MethodDecl]:
        """Methods containing a call that matches method by name, declaring type and arity.

        Self-calls are excluded. The result is cached for the run.
        """
        signature = method.qualified_signature
        cached = self.cache.get(signature)
        if cached is not None:
            return list(cached)

        logger.debug("Finding callers of: %s", signature)
        target_type = method.owner.qualified_name
        arity = len(method.parameters)

        callers: list[MethodDecl] = []
        seen: set[int] = set()
        for invocation in self.model.invocations:
            if (
                invocation.name != method.name
                or invocation.declaring_type != target_type
                or invocation.argument_count != arity
            ):
                continue
            caller = invocation.enclosing_method
            if caller is None or caller is method or id(caller) in seen:
                continue
            seen.add(id(caller))
            callers.append(caller)

        ambiguous = bool(callers) and self.model.declares_overloads(method)
        if ambiguous:
            logger.warning("Ambiguous overload: %s", signature)
            self.warnings.append(
                f"Ambiguous overload: callers of {signature} matched by name and parameter count only"
            )

        logger.debug("Found %d callers for %s", len(callers), signature)
        self.cache.put(signature, callers, ambiguous)
        return callers

    def clear_cache(self) -> None:
        """Drop all cached callers, e.g. to bound memory on very large projects."""
        self.cache.clear()

    def cache_stats(self) -> dict[str, int]:
        return self.cache.stats()

    def _entry(
        self, method: MethodDecl, is_entry_point: bool, ambiguous_overload: bool = False
    ) -> CallChainEntry:
        return CallChainEntry(
            class_name=method.owner.qualified_name,
            method_signature=method.signature,
            visibility=method.visibility,
            line_number=method.line,
            is_entry_point=is_entry_point,
            ambiguous_overload=ambiguous_overload,
        )


def _location(site: Expression | None) -> str:
    if site is None or site.position is None:
        return "unknown location"
    return str(site.position)
