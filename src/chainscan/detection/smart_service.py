"""Detection of the @SmartService interface a project implements."""

import logging

from chainscan.config import DetectionPatterns
from chainscan.models.results import FunctionMetadata, SmartServiceInfo
from chainscan.program.model import Annotation, Expression, ExpressionKind, ProgramModel, TypeDecl, TypeKind

logger = logging.getLogger(__name__)


def _annotation_string(annotation: Annotation, key: str) -> str | None:
    """String value of an annotation attribute, or its source text when not a literal."""
    value: Expression | None = annotation.value(key)
    if value is None:
        return None
    if value.kind is ExpressionKind.LITERAL and isinstance(value.value, str):
        return value.value
    return value.text


class SmartServiceDetector:
    """Finds @SmartService("<artifactId>"), its UI flag and its @Function methods."""

    def __init__(self, model: ProgramModel, patterns: DetectionPatterns | None = None) -> None:
        self.model = model
        self.patterns = patterns or DetectionPatterns()

    def analyze(self, artifact_id: str | None) -> SmartServiceInfo | None:
        if not artifact_id:
            logger.debug("No artifactId, skipping smart service detection")
            return None

        logger.info("Analyzing for SmartService(%s)", artifact_id)
        interface = self.find_interface(artifact_id)
        if interface is None:
            logger.warning('No @SmartService("%s") interface found', artifact_id)
            return None

        logger.info("Found SmartService interface: %s", interface.qualified_name)
        is_ui_service = self.is_ui_service(interface)
        return SmartServiceInfo(
            service_id=artifact_id,
            is_ui_service=is_ui_service,
            interface_name=interface.qualified_name,
            function_methods={} if is_ui_service else self.function_metadata(interface),
        )

    def find_interface(self, artifact_id: str) -> TypeDecl | None:
        """The interface whose @SmartService value equals artifact_id, ignoring case."""
        for type_decl in self.model.all_types():
            if not type_decl.is_interface:
                continue
            annotation = type_decl.annotation(self.patterns.smart_service_annotation)
            if annotation is None:
                continue
            value = annotation.value()
            if value is None or value.kind is not ExpressionKind.LITERAL:
                continue
            if isinstance(value.value, str) and value.value.lower() == artifact_id.lower():
                return type_decl
        return None

    def is_ui_service(self, interface: TypeDecl) -> bool:
        """@UIService on the interface itself or on a class directly implementing it."""
        ui_annotation = self.patterns.ui_service_annotation
        if interface.annotation(ui_annotation) is not None:
            logger.info("@UIService detected directly on interface")
            return True

        for type_decl in self.model.all_types():
            if type_decl.kind is not TypeKind.CLASS:
                continue
            if interface.qualified_name not in type_decl.super_interfaces:
                continue
            if type_decl.annotation(ui_annotation) is not None:
                logger.info("@UIService detected on implementing class %s", type_decl.qualified_name)
                return True
        return False

    def function_metadata(self, interface: TypeDecl) -> dict[str, FunctionMetadata]:
        """@Function methods keyed by fully qualified signature."""
        results: dict[str, FunctionMetadata] = {}
        for method in interface.methods:
            annotation = next(
                (a for a in method.annotations if a.name == self.patterns.function_annotation),
                None,
            )
            if annotation is None:
                continue
            results[method.qualified_signature] = FunctionMetadata(
                id=_annotation_string(annotation, "id") or method.name,
                name=_annotation_string(annotation, "name") or method.name,
            )
        return results
