"""Data models for detected usages and their call chains."""

from dataclasses import dataclass, field
from enum import Enum


class Visibility(Enum):
    """Java member visibility."""

    PUBLIC = "public"
    PRIVATE = "private"
    PROTECTED = "protected"
    PACKAGE = "package"  # default / package-private


class UsageType(Enum):
    """How a service dependency is used."""

    INSTANTIATION = "instantiation"  # new ServiceClass()
    METHOD_CALL = "method-call"  # instance.method()
    STATIC_CALL = "static-call"  # ServiceClass.staticMethod()


class TopicResolutionStatus(Enum):
    """Whether a publish call's topic argument reduced to a string literal."""

    RESOLVED = "resolved"
    UNKNOWN_VARIABLE = "unknown-variable"
    UNKNOWN_COMPLEX = "unknown-complex"


@dataclass(frozen=True)
class CallChainEntry:
    """One frame of a reconstructed call chain."""

    class_name: str
    method_signature: str  # e.g. "handle(java.lang.String, int)"
    visibility: Visibility
    line_number: int
    is_entry_point: bool
    ambiguous_overload: bool = False

    def __str__(self) -> str:
        entry_point = " [ENTRY POINT]" if self.is_entry_point else ""
        return (
            f"{self.class_name}.{self.method_signature} "
            f"[{self.visibility.value}, line {self.line_number}]{entry_point}"
        )

    def to_dict(self) -> dict:
        return {
            "class_name": self.class_name,
            "method_signature": self.method_signature,
            "visibility": self.visibility.value,
            "line_number": self.line_number,
            "is_entry_point": self.is_entry_point,
            "ambiguous_overload": self.ambiguous_overload,
        }


# First element: method containing the usage. Last element: entry point.
CallChain = tuple[CallChainEntry, ...]


@dataclass(frozen=True)
class SourceLocation:
    """Where in the source a usage occurs."""

    file_path: str  # relative to project root
    class_name: str
    method_name: str
    line_number: int

    def __str__(self) -> str:
        return f"{self.class_name}.{self.method_name}() [{self.file_path}:{self.line_number}]"

    def to_dict(self) -> dict:
        return {
            "file_path": self.file_path,
            "class_name": self.class_name,
            "method_name": self.method_name,
            "line_number": self.line_number,
        }


def _chains_to_dict(chains: tuple[CallChain, ...]) -> list[list[dict]]:
    return [[entry.to_dict() for entry in chain] for chain in chains]


@dataclass(frozen=True)
class _UsageBase:
    location: SourceLocation
    call_chains: tuple[CallChain, ...] = field(default=())

    @property
    def call_chain(self) -> CallChain:
        """The primary (first) call chain, or an empty chain."""
        return self.call_chains[0] if self.call_chains else ()


@dataclass(frozen=True)
class FunctionClientUsage(_UsageBase):
    """A function client invocation: <Id>Function.instance().execute(...)"""

    function_id: str = ""
    method_name: str = ""
    input_type: str = "void"
    has_scheduling: bool = False
    scheduling_expression: str | None = None

    def __str__(self) -> str:
        return (
            f"FunctionClient[{self.function_id}.{self.method_name}({self.input_type})] "
            f"at {self.location}"
        )

    def to_dict(self) -> dict:
        return {
            "function_id": self.function_id,
            "method_name": self.method_name,
            "input_type": self.input_type,
            "has_scheduling": self.has_scheduling,
            "scheduling_expression": self.scheduling_expression,
            "location": self.location.to_dict(),
            "call_chain": [entry.to_dict() for entry in self.call_chain],
            "call_chains": _chains_to_dict(self.call_chains),
        }


@dataclass(frozen=True)
class ServiceUsage(_UsageBase):
    """A usage of a class from a service dependency's package."""

    service_id: str = ""
    service_package: str = ""
    usage_type: UsageType = UsageType.INSTANTIATION
    target_class: str = ""
    target_method: str | None = None  # None for instantiations

    def __str__(self) -> str:
        method = f".{self.target_method}()" if self.target_method else ""
        return (
            f"Service[{self.service_id}] {self.usage_type.value}: "
            f"{self.target_class}{method} at {self.location}"
        )

    def to_dict(self) -> dict:
        return {
            "service_id": self.service_id,
            "service_package": self.service_package,
            "usage_type": self.usage_type.value,
            "target_class": self.target_class,
            "target_method": self.target_method,
            "location": self.location.to_dict(),
            "call_chain": [entry.to_dict() for entry in self.call_chain],
            "call_chains": _chains_to_dict(self.call_chains),
        }


@dataclass(frozen=True)
class EventPublishUsage(_UsageBase):
    """A publishEvent(topic, messageData) call on an event publisher."""

    topic_name: str | None = None
    topic_status: TopicResolutionStatus = TopicResolutionStatus.RESOLVED
    topic_variable_type: str | None = None  # only when unresolved
    message_data_type: str | None = None

    def __str__(self) -> str:
        return (
            f"EventPublish[topic={self.topic_name}, status={self.topic_status.value}] "
            f"at {self.location}"
        )

    def to_dict(self) -> dict:
        return {
            "topic_name": self.topic_name,
            "topic_status": self.topic_status.value,
            "topic_variable_type": self.topic_variable_type,
            "message_data_type": self.message_data_type,
            "location": self.location.to_dict(),
            "call_chain": [entry.to_dict() for entry in self.call_chain],
            "call_chains": _chains_to_dict(self.call_chains),
        }


@dataclass(frozen=True)
class TopicResolution:
    """Outcome of resolving a publish call's topic argument."""

    topic_name: str | None
    status: TopicResolutionStatus
    variable_type: str | None = None  # type of the unresolved expression
