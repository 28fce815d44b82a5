"""Best-effort Java type name resolution.

Resolution order mirrors javac's scoping closely enough for call site
matching: nested types of the enclosing types, single-type imports, the
current package, on-demand imports of packages present in the model, and
java.lang. Names that cannot be resolved keep their simple name.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from tree_sitter import Node, Tree

from chainscan.program.model import TypeDecl

PRIMITIVES = {"int", "long", "short", "byte", "double", "float", "boolean", "char", "void"}

JAVA_LANG = {
    "AutoCloseable",
    "Boolean",
    "Byte",
    "CharSequence",
    "Character",
    "Class",
    "Cloneable",
    "Comparable",
    "Deprecated",
    "Double",
    "Enum",
    "Error",
    "Exception",
    "Float",
    "FunctionalInterface",
    "IllegalArgumentException",
    "IllegalStateException",
    "IndexOutOfBoundsException",
    "Integer",
    "InterruptedException",
    "Iterable",
    "Long",
    "Math",
    "NullPointerException",
    "Number",
    "Object",
    "Override",
    "Record",
    "Runnable",
    "RuntimeException",
    "Short",
    "String",
    "StringBuffer",
    "StringBuilder",
    "SuppressWarnings",
    "System",
    "Thread",
    "ThreadLocal",
    "Throwable",
    "UnsupportedOperationException",
    "Void",
}

_GENERIC_ARGS = re.compile(r"<.*>", re.DOTALL)


@dataclass
class CompilationUnit:
    """One parsed .java file plus its package and import context."""

    path: Path  # relative to the project root
    source: bytes
    tree: Tree
    package: str = ""
    imports: dict[str, str] = field(default_factory=dict)  # simple -> qualified
    wildcard_imports: list[str] = field(default_factory=list)  # packages or types
    static_imports: dict[str, str] = field(default_factory=dict)  # member -> type
    static_wildcards: list[str] = field(default_factory=list)  # types

    def text(self, node: Node | None) -> str:
        if node is None:
            return ""
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def strip_generics(name: str) -> str:
    """List<Map<String, X>> -> List"""
    return _GENERIC_ARGS.sub("", name).strip()


class TypeResolver:
    """Resolves type names against the model's declared types."""

    def __init__(self, types: dict[str, TypeDecl]) -> None:
        self.types = types

    def resolve(self, name: str, unit: CompilationUnit, context: TypeDecl | None) -> str:
        """Resolve a type name, falling back to the name itself."""
        return self.resolve_known(name, unit, context) or strip_generics(name)

    def resolve_known(
        self, name: str, unit: CompilationUnit, context: TypeDecl | None
    ) -> str | None:
        """Resolve a type name, or None when no scope knows it."""
        name = strip_generics(name)
        if not name:
            return None

        if name.endswith("..."):
            element = self.resolve(name[:-3], unit, context)
            return f"{element}[]"
        if name.endswith("[]"):
            element = self.resolve(name[:-2], unit, context)
            return f"{element}[]"

        if name in PRIMITIVES:
            return name

        if "." in name:
            return self._resolve_dotted(name, unit, context)

        # Nested types visible from the enclosing types
        scope = context
        while scope is not None:
            if scope.simple_name == name:
                return scope.qualified_name
            nested = f"{scope.qualified_name}.{name}"
            if nested in self.types:
                return nested
            scope = scope.outer

        if name in unit.imports:
            return unit.imports[name]

        same_package = f"{unit.package}.{name}" if unit.package else name
        if same_package in self.types:
            return same_package

        for prefix in unit.wildcard_imports:
            candidate = f"{prefix}.{name}"
            if candidate in self.types:
                return candidate

        if name in JAVA_LANG:
            return f"java.lang.{name}"

        return None

    def _resolve_dotted(
        self, name: str, unit: CompilationUnit, context: TypeDecl | None
    ) -> str:
        if name in self.types:
            return name
        head, _, rest = name.partition(".")
        if head[:1].isupper():
            # Outer.Inner where Outer is resolvable
            outer = self.resolve_known(head, unit, context)
            if outer:
                return f"{outer}.{rest}"
        return name

    def resolve_node(
        self, node: Node | None, unit: CompilationUnit, context: TypeDecl | None
    ) -> str | None:
        """Resolve a tree-sitter type node (type_identifier, generic_type, array_type...)."""
        if node is None:
            return None

        if node.type in ("integral_type", "floating_point_type", "boolean_type", "void_type"):
            return unit.text(node)

        if node.type == "generic_type":
            for child in node.named_children:
                if child.type in ("type_identifier", "scoped_type_identifier"):
                    return self.resolve(unit.text(child), unit, context)
            return self.resolve(unit.text(node), unit, context)

        if node.type == "array_type":
            element = self.resolve_node(node.child_by_field_name("element"), unit, context)
            dimensions = unit.text(node.child_by_field_name("dimensions")).count("[")
            return f"{element}{'[]' * max(dimensions, 1)}"

        if node.type == "annotated_type":
            for child in node.named_children:
                if child.type not in ("marker_annotation", "annotation"):
                    return self.resolve_node(child, unit, context)

        text = unit.text(node)
        if text == "var":
            return None
        return self.resolve(text, unit, context)
