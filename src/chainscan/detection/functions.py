"""Function client invocations: <FunctionId>Function.instance().execute(...)"""

import logging
from collections.abc import Iterable

from chainscan.detection.common import UsageDetector, build_source_location, simple_name
from chainscan.models.usage import FunctionClientUsage
from chainscan.program.model import Expression, ExpressionKind, Invocation

logger = logging.getLogger(__name__)

MAX_SCHEDULE_EXPRESSION = 100


def _receiver_type(expression: Expression) -> str | None:
    if expression.kind is ExpressionKind.TYPE_ACCESS:
        return expression.accessed_type
    return expression.static_type


def input_type(invocation: Invocation) -> str:
    """Type of the first argument: "void" without arguments, "String" for strings."""
    if not invocation.arguments:
        return "void"
    type_name = invocation.arguments[0].static_type
    if type_name is None:
        return "Unknown"
    if type_name == "java.lang.String":
        return "String"
    return type_name


def schedule_expression(argument: Expression | None) -> str | None:
    if argument is None:
        return None
    text = argument.text
    if len(text) > MAX_SCHEDULE_EXPRESSION:
        text = text[: MAX_SCHEDULE_EXPRESSION - 3] + "..."
    return text


class FunctionClientDetector(UsageDetector):
    """Finds invocations of function clients declared as Maven dependencies."""

    def detect(self, function_ids: Iterable[str]) -> list[FunctionClientUsage]:
        ids = set(function_ids)
        logger.info("Detecting function client usages for %d functions", len(ids))
        if not ids:
            logger.debug("No function IDs to detect")
            return []

        suffix = self.patterns.function_class_suffix
        class_names = {f"{function_id}{suffix}" for function_id in ids}

        usages: list[FunctionClientUsage] = []
        for invocation in self.model.invocations:
            try:
                usage = self._inspect(invocation, ids, class_names)
            except Exception as e:
                self.skip(invocation, "invocation", e)
                continue
            if usage is not None:
                logger.debug("Found function client usage: %s.%s()", usage.function_id, usage.method_name)
                usages.append(usage)

        logger.info("Found %d function client usages", len(usages))
        return usages

    def _inspect(
        self, invocation: Invocation, ids: set[str], class_names: set[str]
    ) -> FunctionClientUsage | None:
        if invocation.name not in self.patterns.function_methods:
            return None

        function_id = self._function_id(invocation.target, ids, class_names)
        if function_id is None:
            return None

        declaring_type = invocation.declaring_type
        if declaring_type and not declaring_type.startswith(self.patterns.function_package):
            return None

        has_scheduling = invocation.name == self.patterns.scheduled_method
        scheduling = None
        if has_scheduling and invocation.argument_count >= 2:
            scheduling = schedule_expression(invocation.arguments[1])

        return FunctionClientUsage(
            location=build_source_location(invocation),
            call_chains=self.call_chains(invocation),
            function_id=function_id,
            method_name=invocation.name,
            input_type=input_type(invocation),
            has_scheduling=has_scheduling,
            scheduling_expression=scheduling,
        )

    def _function_id(
        self, target: Expression | None, ids: set[str], class_names: set[str]
    ) -> str | None:
        if target is None:
            return None

        if isinstance(target, Invocation):
            # XFunction.instance().execute(...)
            if target.name not in self.patterns.singleton_accessors or target.target is None:
                return None
            type_name = _receiver_type(target.target)
        else:
            # A stored client: client.execute(...)
            type_name = _receiver_type(target)

        if not type_name:
            return None
        name = simple_name(type_name)
        if name not in class_names:
            return None

        function_id = name[: -len(self.patterns.function_class_suffix)]
        return function_id if function_id in ids else None
