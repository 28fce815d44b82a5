"""Usages of classes from service dependencies: dev.myorg.services.<serviceid>.*"""

import logging
from collections.abc import Iterable

from chainscan.detection.common import UsageDetector, build_source_location, simple_name
from chainscan.models.usage import ServiceUsage, UsageType
from chainscan.program.model import Expression, ExpressionKind

logger = logging.getLogger(__name__)


class ServiceDetector(UsageDetector):
    """Finds instantiations, instance calls and static calls into service packages."""

    def detect(self, service_ids: Iterable[str]) -> list[ServiceUsage]:
        ids = sorted(set(service_ids))
        logger.info("Detecting service usages for %d services", len(ids))
        if not ids:
            logger.debug("No service IDs to detect")
            return []

        packages = {service_id: self.patterns.service_package_for(service_id) for service_id in ids}

        usages: list[ServiceUsage] = []
        usages.extend(self.detect_instantiations(packages))
        usages.extend(self.detect_method_calls(packages))
        usages.extend(self.detect_static_calls(packages))

        logger.info("Found %d service usages", len(usages))
        return usages

    @staticmethod
    def _match(qualified_name: str, packages: dict[str, str]) -> tuple[str, str] | None:
        for service_id, package in packages.items():
            if qualified_name.startswith(package + "."):
                return service_id, package
        return None

    def _usage(
        self,
        site: Expression,
        match: tuple[str, str],
        usage_type: UsageType,
        target_class: str,
        target_method: str | None = None,
    ) -> ServiceUsage:
        service_id, package = match
        return ServiceUsage(
            location=build_source_location(site),
            call_chains=self.call_chains(site),
            service_id=service_id,
            service_package=package,
            usage_type=usage_type,
            target_class=target_class,
            target_method=target_method,
        )

    def detect_instantiations(self, packages: dict[str, str]) -> list[ServiceUsage]:
        """new ServiceClass()"""
        calls = self.model.constructor_calls
        logger.debug("Scanning %d constructor calls for service instantiations", len(calls))

        usages = []
        for call in calls:
            try:
                if not call.static_type:
                    continue
                match = self._match(call.static_type, packages)
                if match is None:
                    continue
                usages.append(
                    self._usage(call, match, UsageType.INSTANTIATION, simple_name(call.static_type))
                )
                logger.debug("Found service instantiation: %s - %s", match[0], call.static_type)
            except Exception as e:
                self.skip(call, "constructor call", e)
        return usages

    def detect_method_calls(self, packages: dict[str, str]) -> list[ServiceUsage]:
        """instance.method() on a receiver whose static type is a service class."""
        invocations = self.model.invocations
        logger.debug("Scanning %d invocations for service method calls", len(invocations))

        usages = []
        for invocation in invocations:
            try:
                target = invocation.target
                if target is None or target.kind is ExpressionKind.TYPE_ACCESS:
                    continue
                if not target.static_type:
                    continue
                match = self._match(target.static_type, packages)
                if match is None:
                    continue
                usages.append(
                    self._usage(
                        invocation,
                        match,
                        UsageType.METHOD_CALL,
                        simple_name(target.static_type),
                        invocation.name,
                    )
                )
                logger.debug("Found service method call: %s.%s()", match[0], invocation.name)
            except Exception as e:
                self.skip(invocation, "invocation", e)
        return usages

    def detect_static_calls(self, packages: dict[str, str]) -> list[ServiceUsage]:
        """ServiceClass.staticMethod(), or an unqualified statically imported call."""
        invocations = self.model.invocations
        logger.debug("Scanning %d invocations for service static calls", len(invocations))

        usages = []
        for invocation in invocations:
            try:
                target = invocation.target
                if target is not None and target.kind is not ExpressionKind.TYPE_ACCESS:
                    continue
                declaring_type = invocation.declaring_type
                if not declaring_type:
                    continue
                match = self._match(declaring_type, packages)
                if match is None:
                    continue
                usages.append(
                    self._usage(
                        invocation,
                        match,
                        UsageType.STATIC_CALL,
                        simple_name(declaring_type),
                        invocation.name,
                    )
                )
                logger.debug("Found service static call: %s.%s()", match[0], invocation.name)
            except Exception as e:
                self.skip(invocation, "static invocation", e)
        return usages
