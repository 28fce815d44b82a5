"""Tests for event publish usage detection."""

import textwrap
from pathlib import Path

from chainscan.analysis.callgraph import CallChainWalker
from chainscan.config import DetectionPatterns
from chainscan.detection.events import EventPublishDetector
from chainscan.models.usage import TopicResolutionStatus
from chainscan.program.builder import build_model_from_sources
from chainscan.program.model import Expression, ExpressionKind, Invocation, Position, ProgramModel

PUBLISHER = "dev.myorg.mysection.eda.publisher.service.IEventPublisher"


def build(source: str) -> ProgramModel:
    return build_model_from_sources({"app/Orders.java": textwrap.dedent(source)})


def detector(model: ProgramModel, **patterns) -> EventPublishDetector:
    return EventPublishDetector(model, CallChainWalker(model), DetectionPatterns(**patterns))


ORDERS = """
    package app;

    import dev.myorg.mysection.eda.publisher.service.IEventPublisher;

    public class Orders {
        private final IEventPublisher publisher;
        private final KafkaPublisher kafka = new KafkaPublisher();
        private final AuditPublisher audit = new AuditPublisher();

        public Orders(IEventPublisher publisher) {
            this.publisher = publisher;
        }

        public void create(Order order) {
            publisher.publishEvent("orders.created", order);
        }

        public void update(Order order) {
            kafka.publishEvent("orders.updated", order);
        }

        public void record(Order order) {
            audit.publishEvent("orders.audited", order);
        }

        public void incomplete() {
            kafka.publishEvent("orders.partial");
        }
    }

    class KafkaPublisher implements IEventPublisher {
        public void publishEvent(String topic, Object data) {}
        public void publishEvent(String topic) {}
    }

    class AuditPublisher extends KafkaPublisher {}

    class Order {}
"""


class TestEventPublishDetection:
    """Tests for publishEvent calls on publishers."""

    def test_publisher_interface_receiver(self) -> None:
        """A receiver typed as the publisher interface is a usage."""
        usages = detector(build(ORDERS)).detect()
        usage = next(u for u in usages if u.location.method_name == "create")

        assert usage.topic_name == "orders.created"
        assert usage.topic_status is TopicResolutionStatus.RESOLVED
        assert usage.topic_variable_type is None
        assert usage.message_data_type == "app.Order"
        assert [e.method_signature for e in usage.call_chain] == ["create(app.Order)"]

    def test_direct_implementation_receiver(self) -> None:
        """A class that directly implements the publisher interface is a publisher."""
        usages = detector(build(ORDERS)).detect()

        assert "orders.updated" in [u.topic_name for u in usages]

    def test_indirect_implementation_needs_transitive_check(self) -> None:
        """Inherited implementations count only with the transitive check enabled."""
        model = build(ORDERS)

        default_topics = [u.topic_name for u in detector(model).detect()]
        transitive_topics = [
            u.topic_name for u in detector(model, transitive_publisher_check=True).detect()
        ]

        assert "orders.audited" not in default_topics
        assert "orders.audited" in transitive_topics

    def test_single_argument_call_is_ignored(self) -> None:
        usages = detector(build(ORDERS)).detect()

        assert "incomplete" not in [u.location.method_name for u in usages]
        assert len(usages) == 2

    def test_non_publisher_receiver_is_ignored(self) -> None:
        usages = detector(
            build(
                """
                package app;

                public class Bus {
                    private final Local local = new Local();

                    public void send() {
                        local.publishEvent("orders.created", "data");
                    }
                }

                class Local {
                    void publishEvent(String topic, Object data) {}
                }
                """
            )
        ).detect()

        assert usages == []

    def test_unresolved_topic_keeps_variable_name(self) -> None:
        usages = detector(
            build(
                """
                package app;

                import dev.myorg.mysection.eda.publisher.service.IEventPublisher;

                public class Relay {
                    private IEventPublisher publisher;

                    public void relay(String topic, Object data) {
                        publisher.publishEvent(topic, data);
                    }
                }
                """
            )
        ).detect()

        assert len(usages) == 1
        assert usages[0].topic_name == "topic"
        assert usages[0].topic_status is TopicResolutionStatus.UNKNOWN_VARIABLE
        assert usages[0].topic_variable_type == "java.lang.String"
        assert usages[0].message_data_type == "java.lang.Object"

    def test_malformed_expression_is_skipped(self) -> None:
        """One bad expression is reported and does not stop detection."""
        model = build(ORDERS)
        broken = Invocation(
            name="publishEvent",
            target=Expression(kind=ExpressionKind.VARIABLE_READ, static_type=PUBLISHER),
            arguments=[None, None],
            position=Position(file=Path("app/Broken.java"), line=3),
        )
        model.invocations.insert(0, broken)
        event_detector = detector(model)

        usages = event_detector.detect()

        assert len(usages) == 2
        assert any(
            w.startswith("Skipped event publish at app/Broken.java:3")
            for w in event_detector.warnings
        )

    def test_is_event_publisher(self) -> None:
        model = build(ORDERS)
        event_detector = detector(model)

        assert event_detector.is_event_publisher(PUBLISHER)
        assert event_detector.is_event_publisher("app.KafkaPublisher")
        assert not event_detector.is_event_publisher("app.AuditPublisher")
        assert not event_detector.is_event_publisher(None)
