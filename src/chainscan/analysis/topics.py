"""Resolution of event topic arguments to string constants."""

from chainscan.models.usage import TopicResolution, TopicResolutionStatus
from chainscan.program.model import Expression, ExpressionKind

UNKNOWN_TYPE = "Unknown"


def _string_literal(expression: Expression | None) -> str | None:
    if expression is None or expression.kind is not ExpressionKind.LITERAL:
        return None
    return expression.value if isinstance(expression.value, str) else None


def resolve_topic_name(argument: Expression) -> TopicResolution:
    """Reduce a topic argument to a literal string where statically visible.

    Only string literals and variables (fields or locals) initialized with a
    string literal resolve. Anything else keeps a readable placeholder and the
    static type of the expression for diagnostics.
    """
    literal = _string_literal(argument)
    if literal is not None:
        return TopicResolution(literal, TopicResolutionStatus.RESOLVED)

    if argument.kind is ExpressionKind.VARIABLE_READ:
        variable = argument.variable
        initializer = variable.initializer if variable is not None else None
        value = _string_literal(initializer)
        if value is not None:
            return TopicResolution(value, TopicResolutionStatus.RESOLVED)

        declared = variable.type_name if variable is not None else None
        return TopicResolution(
            argument.variable_name or argument.text,
            TopicResolutionStatus.UNKNOWN_VARIABLE,
            declared or argument.static_type or UNKNOWN_TYPE,
        )

    return TopicResolution(
        argument.text,
        TopicResolutionStatus.UNKNOWN_COMPLEX,
        argument.static_type or UNKNOWN_TYPE,
    )
