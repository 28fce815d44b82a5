"""Tests for event topic resolution."""

import textwrap

from chainscan.analysis.topics import resolve_topic_name
from chainscan.models.usage import TopicResolutionStatus
from chainscan.program.builder import build_model_from_sources
from chainscan.program.model import Expression


def topic_argument(body: str, members: str = "") -> Expression:
    """First argument of the send(...) call in body."""
    source = textwrap.dedent(
        """
        package app;

        public class Sender {{
            {members}

            public void run(String prefix, String param) {{
                {body}
            }}

            void send(String topic) {{}}
        }}

        class Topics {{
            public static final String CREATED = "orders.created";
            public static String dynamic() {{ return "x"; }}
        }}
        """
    ).format(members=members, body=body)
    model = build_model_from_sources({"app/Sender.java": source})
    return next(i for i in model.invocations if i.name == "send").arguments[0]


class TestResolvedTopics:
    """Tests for topics that reduce to a string literal."""

    def test_string_literal(self) -> None:
        result = resolve_topic_name(topic_argument('send("orders.created");'))

        assert result.topic_name == "orders.created"
        assert result.status is TopicResolutionStatus.RESOLVED
        assert result.variable_type is None

    def test_local_variable_with_literal_initializer(self) -> None:
        """A local initialized with a literal resolves to that literal."""
        result = resolve_topic_name(
            topic_argument('String topic = "orders.shipped"; send(topic);')
        )

        assert result.topic_name == "orders.shipped"
        assert result.status is TopicResolutionStatus.RESOLVED

    def test_constant_on_another_class(self) -> None:
        """Type.CONSTANT resolves through the field initializer."""
        result = resolve_topic_name(topic_argument("send(Topics.CREATED);"))

        assert result.topic_name == "orders.created"
        assert result.status is TopicResolutionStatus.RESOLVED

    def test_own_field_constant(self) -> None:
        result = resolve_topic_name(
            topic_argument(
                "send(TOPIC);",
                members='private static final String TOPIC = "orders.cancelled";',
            )
        )

        assert result.topic_name == "orders.cancelled"
        assert result.status is TopicResolutionStatus.RESOLVED


class TestUnresolvedTopics:
    """Tests for topics that are not statically visible."""

    def test_parameter_is_unknown_variable(self) -> None:
        """A parameter keeps its name and declared type."""
        result = resolve_topic_name(topic_argument("send(param);"))

        assert result.topic_name == "param"
        assert result.status is TopicResolutionStatus.UNKNOWN_VARIABLE
        assert result.variable_type == "java.lang.String"

    def test_variable_with_computed_initializer(self) -> None:
        """A variable initialized from a call is not resolved."""
        result = resolve_topic_name(
            topic_argument("String topic = Topics.dynamic(); send(topic);")
        )

        assert result.topic_name == "topic"
        assert result.status is TopicResolutionStatus.UNKNOWN_VARIABLE
        assert result.variable_type == "java.lang.String"

    def test_concatenation_is_unknown_complex(self) -> None:
        """Non-variable expressions keep their source text."""
        result = resolve_topic_name(topic_argument('send(prefix + ".created");'))

        assert result.topic_name == 'prefix + ".created"'
        assert result.status is TopicResolutionStatus.UNKNOWN_COMPLEX
        assert result.variable_type == "java.lang.String"

    def test_untyped_expression_reports_unknown_type(self) -> None:
        result = resolve_topic_name(topic_argument("send(lookup(1));"))

        assert result.topic_name == "lookup(1)"
        assert result.status is TopicResolutionStatus.UNKNOWN_COMPLEX
        assert result.variable_type == "Unknown"
