"""Event publish calls: publisher.publishEvent("<topic>", messageData)"""

import logging

from chainscan.analysis.topics import resolve_topic_name
from chainscan.detection.common import UsageDetector, build_source_location
from chainscan.models.usage import EventPublishUsage
from chainscan.program.model import Invocation

logger = logging.getLogger(__name__)


class EventPublishDetector(UsageDetector):
    """Finds publishEvent calls on event publishers and resolves their topics."""

    def detect(self) -> list[EventPublishUsage]:
        logger.info("Detecting event publish usages")
        invocations = self.model.invocations
        logger.debug("Scanning %d invocations for event publish calls", len(invocations))

        usages: list[EventPublishUsage] = []
        for invocation in invocations:
            try:
                usage = self._inspect(invocation)
            except Exception as e:
                self.skip(invocation, "event publish", e)
                continue
            if usage is not None:
                logger.debug(
                    "Found event publish: topic=%s, status=%s",
                    usage.topic_name,
                    usage.topic_status.value,
                )
                usages.append(usage)

        logger.info("Found %d event publish usages", len(usages))
        return usages

    def is_event_publisher(self, type_name: str | None) -> bool:
        """The publisher type itself, or a type implementing it."""
        return self.model.implements(
            type_name,
            self.patterns.publisher_type,
            transitive=self.patterns.transitive_publisher_check,
        )

    def _inspect(self, invocation: Invocation) -> EventPublishUsage | None:
        if invocation.name != self.patterns.publish_method:
            return None

        target = invocation.target
        if target is None or not target.static_type:
            return None
        if not self.is_event_publisher(target.static_type):
            return None
        if invocation.argument_count < 2:
            return None

        topic = resolve_topic_name(invocation.arguments[0])
        return EventPublishUsage(
            location=build_source_location(invocation),
            call_chains=self.call_chains(invocation),
            topic_name=topic.topic_name,
            topic_status=topic.status,
            topic_variable_type=topic.variable_type,
            message_data_type=invocation.arguments[1].static_type,
        )
