"""In-memory semantic model of a Java source tree.

The model is built once per run by JavaModelBuilder and is read-only
afterwards. Type information is best effort: any static type may be None and
unresolvable type names keep their simple name.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path

from chainscan.models.usage import Visibility


class TypeKind(Enum):
    """Kinds of Java type declarations."""

    CLASS = auto()
    INTERFACE = auto()
    ENUM = auto()
    RECORD = auto()
    ANNOTATION = auto()


class VariableKind(Enum):
    """Where a variable is declared."""

    FIELD = auto()
    LOCAL = auto()
    PARAMETER = auto()


class ExpressionKind(Enum):
    """Shapes of expressions the detectors care about."""

    LITERAL = auto()
    VARIABLE_READ = auto()  # local, parameter or field read (incl. Type.FIELD)
    TYPE_ACCESS = auto()  # the "Foo" in Foo.bar()
    THIS = auto()
    INVOCATION = auto()
    CONSTRUCTOR_CALL = auto()
    OTHER = auto()


@dataclass(frozen=True)
class Position:
    """Source position. file is relative to the project root, line is 1-based."""

    file: Path
    line: int
    column: int = 0

    def __str__(self) -> str:
        return f"{self.file}:{self.line}"


@dataclass(eq=False)
class Annotation:
    """An annotation use, e.g. @SmartService("ABC")."""

    name: str  # qualified when resolvable
    values: dict[str, Expression] = field(default_factory=dict)

    def value(self, key: str = "value") -> Expression | None:
        return self.values.get(key)


@dataclass(eq=False)
class Variable:
    """A field, local variable or parameter."""

    name: str
    type_name: str | None
    kind: VariableKind
    initializer: Expression | None = None
    position: Position | None = None
    owner: TypeDecl | None = None  # declaring type, for fields
    is_static: bool = False


@dataclass(eq=False)
class MethodDecl:
    """A method declaration. Constructors are not modelled as methods."""

    name: str
    owner: TypeDecl
    parameters: list[Variable] = field(default_factory=list)
    visibility: Visibility = Visibility.PACKAGE
    return_type: str | None = None
    is_static: bool = False
    annotations: list[Annotation] = field(default_factory=list)
    position: Position | None = None

    @property
    def parameter_types(self) -> list[str]:
        return [p.type_name or "?" for p in self.parameters]

    @property
    def signature(self) -> str:
        """Name plus ordered qualified parameter types: handle(java.lang.String, int)"""
        return f"{self.name}({', '.join(self.parameter_types)})"

    @property
    def qualified_signature(self) -> str:
        """Unique key: owning type + signature."""
        return f"{self.owner.qualified_name}.{self.signature}"

    @property
    def line(self) -> int:
        return self.position.line if self.position else -1

    def __repr__(self) -> str:
        return f"MethodDecl({self.qualified_signature})"


@dataclass(eq=False)
class TypeDecl:
    """A class, interface, enum, record or annotation type."""

    qualified_name: str
    simple_name: str
    kind: TypeKind
    package: str = ""
    position: Position | None = None
    superclass: str | None = None
    super_interfaces: list[str] = field(default_factory=list)
    fields: dict[str, Variable] = field(default_factory=dict)
    methods: list[MethodDecl] = field(default_factory=list)
    annotations: list[Annotation] = field(default_factory=list)
    outer: TypeDecl | None = None

    @property
    def is_interface(self) -> bool:
        return self.kind is TypeKind.INTERFACE

    def methods_named(self, name: str, arity: int | None = None) -> list[MethodDecl]:
        return [
            m
            for m in self.methods
            if m.name == name and (arity is None or len(m.parameters) == arity)
        ]

    def annotation(self, name: str) -> Annotation | None:
        for ann in self.annotations:
            if ann.name == name:
                return ann
        return None

    def __repr__(self) -> str:
        return f"TypeDecl({self.qualified_name})"


@dataclass(eq=False)
class Expression:
    """Any expression in a method body or initializer."""

    kind: ExpressionKind
    text: str = ""
    position: Position | None = None
    static_type: str | None = None
    enclosing_method: MethodDecl | None = None
    enclosing_type: TypeDecl | None = None
    value: object = None  # literal value
    variable: Variable | None = None  # for VARIABLE_READ, when the declaration is known
    variable_name: str | None = None  # for VARIABLE_READ
    accessed_type: str | None = None  # for TYPE_ACCESS

    def __str__(self) -> str:
        return self.text


@dataclass(eq=False)
class Invocation(Expression):
    """A method call: target.name(arguments)."""

    kind: ExpressionKind = ExpressionKind.INVOCATION
    name: str = ""
    target: Expression | None = None
    arguments: list[Expression] = field(default_factory=list)
    declaring_type: str | None = None  # qualified name of the resolved method's owner

    @property
    def argument_count(self) -> int:
        return len(self.arguments)


@dataclass(eq=False)
class ConstructorCall(Expression):
    """A `new Type(arguments)` expression. static_type is the constructed type."""

    kind: ExpressionKind = ExpressionKind.CONSTRUCTOR_CALL
    arguments: list[Expression] = field(default_factory=list)


@dataclass
class ProgramModel:
    """All declared types and call/construction expressions of a source tree."""

    root: Path
    types: dict[str, TypeDecl] = field(default_factory=dict)
    invocations: list[Invocation] = field(default_factory=list)
    constructor_calls: list[ConstructorCall] = field(default_factory=list)
    files: list[Path] = field(default_factory=list)
    skipped_files: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def all_types(self) -> list[TypeDecl]:
        return list(self.types.values())

    def get_type(self, qualified_name: str | None) -> TypeDecl | None:
        if not qualified_name:
            return None
        return self.types.get(qualified_name)

    def all_methods(self) -> list[MethodDecl]:
        return [m for t in self.types.values() for m in t.methods]

    def supertypes(self, type_decl: TypeDecl) -> list[str]:
        """Direct supertypes (superclass first, then interfaces)."""
        result = []
        if type_decl.superclass:
            result.append(type_decl.superclass)
        result.extend(type_decl.super_interfaces)
        return result

    def lookup_method(
        self, type_name: str | None, name: str, arity: int
    ) -> MethodDecl | None:
        """Find a method by name and arity on a type or its model supertypes."""
        seen: set[str] = set()
        queue = deque([type_name] if type_name else [])
        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.add(current)
            type_decl = self.types.get(current)
            if type_decl is None:
                continue
            matches = type_decl.methods_named(name, arity)
            if matches:
                return matches[0]
            queue.extend(self.supertypes(type_decl))
        return None

    def lookup_field(self, type_name: str | None, name: str) -> Variable | None:
        """Find a field on a type or its model supertypes."""
        seen: set[str] = set()
        queue = deque([type_name] if type_name else [])
        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.add(current)
            type_decl = self.types.get(current)
            if type_decl is None:
                continue
            if name in type_decl.fields:
                return type_decl.fields[name]
            queue.extend(self.supertypes(type_decl))
        return None

    def declares_overloads(self, method: MethodDecl) -> bool:
        """True when the owner declares another method with the same name and arity."""
        return len(method.owner.methods_named(method.name, len(method.parameters))) > 1

    def implements(self, type_name: str | None, interface: str, transitive: bool = False) -> bool:
        """Check whether type_name is, or implements, interface.

        By default only the type's directly declared super-interfaces are
        checked. With transitive=True the whole model hierarchy (superclasses
        and super-interfaces at any depth) is walked.
        """
        if not type_name:
            return False
        if type_name == interface:
            return True

        type_decl = self.get_type(type_name)
        if type_decl is None:
            return False
        if not transitive:
            return interface in type_decl.super_interfaces

        seen: set[str] = set()
        queue = deque(self.supertypes(type_decl))
        while queue:
            current = queue.popleft()
            if current == interface:
                return True
            if current in seen:
                continue
            seen.add(current)
            parent = self.types.get(current)
            if parent is not None:
                queue.extend(self.supertypes(parent))
        return False
