"""Builds a ProgramModel from Java sources using tree-sitter.

Building happens in three passes over all parsed files so that every type,
field and method signature is known before method bodies are scanned:

1. declare types (including nested member types),
2. declare members (fields, method signatures, supertypes),
3. scan bodies and initializers into expressions, recording every method
   invocation and constructor call.
"""

import logging
import re
from collections.abc import Iterable
from pathlib import Path

import tree_sitter_java as tsjava
from tree_sitter import Language, Node, Parser

from chainscan.models.usage import Visibility
from chainscan.program.model import (
    Annotation,
    ConstructorCall,
    Expression,
    ExpressionKind,
    Invocation,
    MethodDecl,
    Position,
    ProgramModel,
    TypeDecl,
    TypeKind,
    Variable,
    VariableKind,
)
from chainscan.program.resolver import CompilationUnit, TypeResolver

logger = logging.getLogger(__name__)

JAVA_LANGUAGE = Language(tsjava.language())

TYPE_DECLARATIONS = {
    "class_declaration": TypeKind.CLASS,
    "interface_declaration": TypeKind.INTERFACE,
    "enum_declaration": TypeKind.ENUM,
    "record_declaration": TypeKind.RECORD,
    "annotation_type_declaration": TypeKind.ANNOTATION,
}

# Zero-argument accessors whose return type is assumed to be the receiver type
# when the receiver is not declared in the scanned sources.
DEFAULT_SINGLETON_ACCESSORS = frozenset({"instance", "getInstance"})

INTEGER_LITERALS = {
    "decimal_integer_literal",
    "hex_integer_literal",
    "octal_integer_literal",
    "binary_integer_literal",
}
FLOAT_LITERALS = {"decimal_floating_point_literal", "hex_floating_point_literal"}

EXPRESSION_NODES = {
    "array_access",
    "array_creation_expression",
    "assignment_expression",
    "binary_expression",
    "cast_expression",
    "character_literal",
    "class_literal",
    "false",
    "field_access",
    "identifier",
    "instanceof_expression",
    "lambda_expression",
    "method_invocation",
    "null_literal",
    "object_creation_expression",
    "parenthesized_expression",
    "string_literal",
    "ternary_expression",
    "this",
    "true",
    "unary_expression",
    "update_expression",
} | INTEGER_LITERALS | FLOAT_LITERALS

COMPARISON_OPERATORS = {"==", "!=", "<", ">", "<=", ">=", "&&", "||"}

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "s": " ",
    "0": "\0",
    '"': '"',
    "'": "'",
    "\\": "\\",
}
_ESCAPE_PATTERN = re.compile(r"\\(u+[0-9a-fA-F]{4}|.)", re.DOTALL)


def string_literal_value(text: str) -> str:
    """Decode a Java string literal or text block (including its quotes)."""
    if text.startswith('"""'):
        body = text[3:-3]
        # Text blocks start after the line terminator following the opening quotes
        if "\n" in body:
            body = body.split("\n", 1)[1]
    else:
        body = text[1:-1]

    def _unescape(match: re.Match) -> str:
        escape = match.group(1)
        if escape.startswith("u"):
            return chr(int(escape.lstrip("u"), 16))
        return _ESCAPES.get(escape, escape)

    return _ESCAPE_PATTERN.sub(_unescape, body)


def _collapse(text: str) -> str:
    return " ".join(text.split())


class JavaModelBuilder:
    """Parses Java sources and assembles the ProgramModel."""

    def __init__(
        self,
        project_root: Path,
        singleton_accessors: Iterable[str] = DEFAULT_SINGLETON_ACCESSORS,
    ) -> None:
        self.project_root = project_root
        self.parser = Parser(JAVA_LANGUAGE)
        self.model = ProgramModel(root=project_root)
        self.resolver = TypeResolver(self.model.types)
        self.singleton_accessors = frozenset(singleton_accessors)

        self._units: list[CompilationUnit] = []
        self._type_nodes: list[tuple[TypeDecl, Node, CompilationUnit]] = []
        # Filled in pass 2, consumed in pass 3
        self._method_nodes: dict[int, list[tuple[MethodDecl, Node]]] = {}
        self._field_nodes: dict[int, list[tuple[Variable, Node | None]]] = {}

    # === Input ===

    def add_file(self, path: Path) -> bool:
        """Parse a .java file. Unreadable files are recorded as skipped."""
        try:
            rel_path = path.relative_to(self.project_root)
        except ValueError:
            rel_path = path

        try:
            source = path.read_bytes()
        except OSError as e:
            logger.warning("Could not read %s: %s", path, e)
            self.model.skipped_files.append(str(rel_path))
            self.model.warnings.append(f"Skipped unreadable file {rel_path}: {e}")
            return False

        return self.add_source(source, rel_path)

    def add_source(self, source: str | bytes, path: Path | str) -> bool:
        """Parse Java source text attributed to path (relative to the project root)."""
        if isinstance(source, str):
            source = source.encode("utf-8")

        tree = self.parser.parse(source)
        unit = CompilationUnit(path=Path(path), source=source, tree=tree)

        if tree.root_node.has_error:
            logger.warning("Syntax errors in %s, model will be partial", unit.path)
            self.model.warnings.append(f"Syntax errors in {unit.path}; analysed partially")

        self._read_header(unit)
        self._units.append(unit)
        self.model.files.append(unit.path)
        return True

    def build(self) -> ProgramModel:
        """Run the declaration and body passes and return the finished model."""
        for unit in self._units:
            self._declare_types(unit, unit.tree.root_node.named_children, outer=None)

        for type_decl, node, unit in self._type_nodes:
            self._declare_members(type_decl, node, unit)

        for type_decl, node, unit in self._type_nodes:
            self._scan_type(type_decl, node, unit)

        logger.info(
            "Program model built: %d files, %d types, %d invocations, %d constructor calls",
            len(self.model.files),
            len(self.model.types),
            len(self.model.invocations),
            len(self.model.constructor_calls),
        )
        return self.model

    # === Helpers ===

    def position(self, unit: CompilationUnit, node: Node) -> Position:
        row, column = node.start_point
        return Position(file=unit.path, line=row + 1, column=column)

    def _read_header(self, unit: CompilationUnit) -> None:
        """Collect the package and imports of a compilation unit."""
        for child in unit.tree.root_node.named_children:
            if child.type == "package_declaration":
                for name_node in child.named_children:
                    if name_node.type in ("scoped_identifier", "identifier"):
                        unit.package = unit.text(name_node)
            elif child.type == "import_declaration":
                self._read_import(unit, child)

    def _read_import(self, unit: CompilationUnit, node: Node) -> None:
        is_static = any(c.type == "static" for c in node.children)
        is_wildcard = any(c.type == "asterisk" for c in node.children)
        name = ""
        for c in node.named_children:
            if c.type in ("scoped_identifier", "identifier"):
                name = unit.text(c)
        if not name:
            return

        if is_wildcard:
            if is_static:
                unit.static_wildcards.append(name)
            else:
                unit.wildcard_imports.append(name)
            return

        owner, _, simple = name.rpartition(".")
        if is_static:
            unit.static_imports[simple] = owner
        else:
            unit.imports[simple] = name

    @staticmethod
    def _body_members(body: Node | None) -> list[Node]:
        """Member nodes of a class/interface/enum body."""
        if body is None:
            return []
        members: list[Node] = []
        for child in body.named_children:
            if child.type == "enum_body_declarations":
                members.extend(child.named_children)
            else:
                members.append(child)
        return members

    @staticmethod
    def _modifiers(node: Node) -> Node | None:
        for child in node.children:
            if child.type == "modifiers":
                return child
        return None

    @staticmethod
    def _modifier_keywords(modifiers: Node | None) -> set[str]:
        if modifiers is None:
            return set()
        return {c.type for c in modifiers.children if not c.is_named}

    # === Pass 1: types ===

    def _declare_types(
        self, unit: CompilationUnit, nodes: Iterable[Node], outer: TypeDecl | None
    ) -> None:
        for node in nodes:
            kind = TYPE_DECLARATIONS.get(node.type)
            if kind is None:
                continue
            name = unit.text(node.child_by_field_name("name"))
            if outer is not None:
                qualified_name = f"{outer.qualified_name}.{name}"
            elif unit.package:
                qualified_name = f"{unit.package}.{name}"
            else:
                qualified_name = name

            if qualified_name in self.model.types:
                logger.debug("Ignoring duplicate declaration of %s in %s", qualified_name, unit.path)
                continue

            type_decl = TypeDecl(
                qualified_name=qualified_name,
                simple_name=name,
                kind=kind,
                package=unit.package,
                position=self.position(unit, node),
                outer=outer,
            )
            self.model.types[qualified_name] = type_decl
            self._type_nodes.append((type_decl, node, unit))

            body = node.child_by_field_name("body")
            self._declare_types(unit, self._body_members(body), type_decl)

    # === Pass 2: members ===

    def _declare_members(self, type_decl: TypeDecl, node: Node, unit: CompilationUnit) -> None:
        for child in node.children:
            if child.type == "superclass":
                type_node = child.named_children[0] if child.named_children else None
                type_decl.superclass = self.resolver.resolve_node(type_node, unit, type_decl)
            elif child.type in ("super_interfaces", "extends_interfaces"):
                for type_list in child.named_children:
                    for type_node in type_list.named_children:
                        resolved = self.resolver.resolve_node(type_node, unit, type_decl)
                        if resolved:
                            type_decl.super_interfaces.append(resolved)

        methods: list[tuple[MethodDecl, Node]] = []
        fields: list[tuple[Variable, Node | None]] = []

        if type_decl.kind is TypeKind.RECORD:
            params = node.child_by_field_name("parameters")
            for param in self._parameters(params, unit, type_decl):
                param.kind = VariableKind.FIELD
                param.owner = type_decl
                type_decl.fields[param.name] = param

        body = node.child_by_field_name("body")
        if body is not None and type_decl.kind is TypeKind.ENUM:
            for constant in body.named_children:
                if constant.type != "enum_constant":
                    continue
                variable = Variable(
                    name=unit.text(constant.child_by_field_name("name")),
                    type_name=type_decl.qualified_name,
                    kind=VariableKind.FIELD,
                    position=self.position(unit, constant),
                    owner=type_decl,
                    is_static=True,
                )
                type_decl.fields[variable.name] = variable
                fields.append((variable, constant))

        for member in self._body_members(body):
            if member.type in ("field_declaration", "constant_declaration"):
                for variable, value in self._field_declaration(member, unit, type_decl):
                    type_decl.fields[variable.name] = variable
                    fields.append((variable, value))
            elif member.type == "method_declaration":
                method = self._method_declaration(member, unit, type_decl)
                type_decl.methods.append(method)
                methods.append((method, member))

        self._method_nodes[id(type_decl)] = methods
        self._field_nodes[id(type_decl)] = fields

    def _field_declaration(
        self, node: Node, unit: CompilationUnit, type_decl: TypeDecl
    ) -> list[tuple[Variable, Node | None]]:
        keywords = self._modifier_keywords(self._modifiers(node))
        is_static = "static" in keywords or type_decl.kind in (
            TypeKind.INTERFACE,
            TypeKind.ANNOTATION,
        )
        declared = self.resolver.resolve_node(node.child_by_field_name("type"), unit, type_decl)

        result = []
        for declarator in node.children_by_field_name("declarator"):
            type_name = declared
            if declared and declarator.child_by_field_name("dimensions") is not None:
                type_name = f"{declared}[]"
            variable = Variable(
                name=unit.text(declarator.child_by_field_name("name")),
                type_name=type_name,
                kind=VariableKind.FIELD,
                position=self.position(unit, declarator),
                owner=type_decl,
                is_static=is_static,
            )
            result.append((variable, declarator.child_by_field_name("value")))
        return result

    def _method_declaration(
        self, node: Node, unit: CompilationUnit, type_decl: TypeDecl
    ) -> MethodDecl:
        keywords = self._modifier_keywords(self._modifiers(node))
        if "public" in keywords:
            visibility = Visibility.PUBLIC
        elif "private" in keywords:
            visibility = Visibility.PRIVATE
        elif "protected" in keywords:
            visibility = Visibility.PROTECTED
        elif type_decl.kind in (TypeKind.INTERFACE, TypeKind.ANNOTATION):
            # Interface members are implicitly public
            visibility = Visibility.PUBLIC
        else:
            visibility = Visibility.PACKAGE

        return MethodDecl(
            name=unit.text(node.child_by_field_name("name")),
            owner=type_decl,
            parameters=self._parameters(node.child_by_field_name("parameters"), unit, type_decl),
            visibility=visibility,
            return_type=self.resolver.resolve_node(node.child_by_field_name("type"), unit, type_decl),
            is_static="static" in keywords,
            position=self.position(unit, node),
        )

    def _parameters(
        self, node: Node | None, unit: CompilationUnit, context: TypeDecl | None
    ) -> list[Variable]:
        """Parameters of a formal_parameters node."""
        if node is None:
            return []

        params: list[Variable] = []
        for param in node.named_children:
            if param.type == "formal_parameter":
                type_name = self.resolver.resolve_node(param.child_by_field_name("type"), unit, context)
                if type_name and param.child_by_field_name("dimensions") is not None:
                    type_name = f"{type_name}[]"
                name_node = param.child_by_field_name("name")
            elif param.type == "spread_parameter":
                # Type varargs... name
                type_node = next(
                    (c for c in param.named_children if c.type not in ("modifiers", "variable_declarator")),
                    None,
                )
                element = self.resolver.resolve_node(type_node, unit, context)
                type_name = f"{element}[]" if element else None
                declarator = next(
                    (c for c in param.named_children if c.type == "variable_declarator"), None
                )
                name_node = declarator.child_by_field_name("name") if declarator else None
            else:
                continue

            params.append(
                Variable(
                    name=unit.text(name_node),
                    type_name=type_name,
                    kind=VariableKind.PARAMETER,
                    position=self.position(unit, param),
                )
            )
        return params

    # === Pass 3: bodies ===

    def _scan_type(self, type_decl: TypeDecl, node: Node, unit: CompilationUnit) -> None:
        scanner = _BodyScanner(self, unit, type_decl, method=None)
        type_decl.annotations = scanner.annotations(self._modifiers(node))

        for variable, value in self._field_nodes.get(id(type_decl), []):
            if value is None:
                continue
            if value.type == "enum_constant":
                # Enum constant arguments and bodies run during class initialization
                for child in value.named_children:
                    if child.type in ("argument_list", "class_body"):
                        scanner.visit(child)
                continue
            variable.initializer = scanner.expression(value)

        for method, method_node in self._method_nodes.get(id(type_decl), []):
            method_scanner = _BodyScanner(self, unit, type_decl, method=method)
            method.annotations = method_scanner.annotations(self._modifiers(method_node))
            body = method_node.child_by_field_name("body")
            if body is not None:
                method_scanner.visit(body)

        # Constructors and initializers are not methods: their usages have no
        # containing method and they never count as callers.
        for member in self._body_members(node.child_by_field_name("body")):
            if member.type in ("constructor_declaration", "compact_constructor_declaration"):
                ctor_scanner = _BodyScanner(self, unit, type_decl, method=None)
                for param in self._parameters(member.child_by_field_name("parameters"), unit, type_decl):
                    ctor_scanner.declare(param)
                body = member.child_by_field_name("body")
                if body is not None:
                    ctor_scanner.visit(body)
            elif member.type in ("static_initializer", "block"):
                _BodyScanner(self, unit, type_decl, method=None).visit(member)


class _BodyScanner:
    """Turns statements and expressions of one executable body into model expressions."""

    def __init__(
        self,
        builder: JavaModelBuilder,
        unit: CompilationUnit,
        owner: TypeDecl,
        method: MethodDecl | None,
    ) -> None:
        self.builder = builder
        self.model = builder.model
        self.resolver = builder.resolver
        self.unit = unit
        self.owner = owner
        self.method = method
        self.scopes: list[dict[str, Variable]] = [{}]
        if method is not None:
            for param in method.parameters:
                self.declare(param)

    # --- scopes ---

    def declare(self, variable: Variable) -> None:
        self.scopes[-1][variable.name] = variable

    def lookup_local(self, name: str) -> Variable | None:
        for scope in reversed(self.scopes):
            if name in scope:
                return scope[name]
        return None

    def lookup_field(self, name: str) -> Variable | None:
        scope = self.owner
        while scope is not None:
            found = self.model.lookup_field(scope.qualified_name, name)
            if found is not None:
                return found
            scope = scope.outer
        if name in self.unit.static_imports:
            return self.model.lookup_field(self.unit.static_imports[name], name)
        for type_name in self.unit.static_wildcards:
            found = self.model.lookup_field(type_name, name)
            if found is not None:
                return found
        return None

    def _push(self) -> None:
        self.scopes.append({})

    def _pop(self) -> None:
        self.scopes.pop()

    def _make(self, kind: ExpressionKind, node: Node, **kwargs) -> Expression:
        return Expression(
            kind=kind,
            text=_collapse(self.unit.text(node)),
            position=self.builder.position(self.unit, node),
            enclosing_method=self.method,
            enclosing_type=self.owner,
            **kwargs,
        )

    # --- annotations ---

    def annotations(self, modifiers: Node | None) -> list[Annotation]:
        if modifiers is None:
            return []
        result = []
        for child in modifiers.named_children:
            if child.type not in ("marker_annotation", "annotation"):
                continue
            name = self.resolver.resolve(
                self.unit.text(child.child_by_field_name("name")), self.unit, self.owner
            )
            annotation = Annotation(name=name)
            arguments = child.child_by_field_name("arguments")
            if arguments is not None:
                for arg in arguments.named_children:
                    if arg.type == "element_value_pair":
                        key = self.unit.text(arg.child_by_field_name("key"))
                        annotation.values[key] = self.expression(arg.child_by_field_name("value"))
                    else:
                        annotation.values["value"] = self.expression(arg)
            result.append(annotation)
        return result

    # --- statements ---

    def visit(self, node: Node) -> None:
        handler = getattr(self, f"_visit_{node.type}", None)
        if handler is not None:
            handler(node)
        elif node.type in EXPRESSION_NODES:
            self.expression(node)
        else:
            for child in node.named_children:
                self.visit(child)

    def _visit_scoped(self, node: Node) -> None:
        self._push()
        for child in node.named_children:
            self.visit(child)
        self._pop()

    _visit_block = _visit_scoped
    _visit_constructor_body = _visit_scoped
    _visit_switch_block_statement_group = _visit_scoped
    _visit_for_statement = _visit_scoped

    def _visit_local_variable_declaration(self, node: Node) -> None:
        declared = self.resolver.resolve_node(node.child_by_field_name("type"), self.unit, self.owner)
        for declarator in node.children_by_field_name("declarator"):
            value = declarator.child_by_field_name("value")
            initializer = self.expression(value) if value is not None else None
            type_name = declared
            if type_name is None and initializer is not None:
                # var x = ...
                type_name = initializer.static_type
            elif type_name and declarator.child_by_field_name("dimensions") is not None:
                type_name = f"{type_name}[]"
            self.declare(
                Variable(
                    name=self.unit.text(declarator.child_by_field_name("name")),
                    type_name=type_name,
                    kind=VariableKind.LOCAL,
                    initializer=initializer,
                    position=self.builder.position(self.unit, declarator),
                )
            )

    def _visit_enhanced_for_statement(self, node: Node) -> None:
        self._push()
        value = node.child_by_field_name("value")
        iterable = self.expression(value) if value is not None else None
        type_name = self.resolver.resolve_node(node.child_by_field_name("type"), self.unit, self.owner)
        if type_name is None and iterable is not None and iterable.static_type:
            if iterable.static_type.endswith("[]"):
                type_name = iterable.static_type[:-2]
        self.declare(
            Variable(
                name=self.unit.text(node.child_by_field_name("name")),
                type_name=type_name,
                kind=VariableKind.LOCAL,
                position=self.builder.position(self.unit, node),
            )
        )
        body = node.child_by_field_name("body")
        if body is not None:
            self.visit(body)
        self._pop()

    def _visit_catch_clause(self, node: Node) -> None:
        self._push()
        for child in node.named_children:
            if child.type == "catch_formal_parameter":
                catch_type = next((c for c in child.named_children if c.type == "catch_type"), None)
                type_node = catch_type.named_children[0] if catch_type and catch_type.named_children else None
                self.declare(
                    Variable(
                        name=self.unit.text(child.child_by_field_name("name")),
                        type_name=self.resolver.resolve_node(type_node, self.unit, self.owner),
                        kind=VariableKind.LOCAL,
                        position=self.builder.position(self.unit, child),
                    )
                )
            else:
                self.visit(child)
        self._pop()

    def _visit_try_with_resources_statement(self, node: Node) -> None:
        self._push()
        for child in node.named_children:
            if child.type == "resource_specification":
                for resource in child.named_children:
                    self._resource(resource)
            else:
                self.visit(child)
        self._pop()

    def _resource(self, node: Node) -> None:
        type_node = node.child_by_field_name("type")
        if type_node is None:
            self.visit(node)
            return
        value = node.child_by_field_name("value")
        initializer = self.expression(value) if value is not None else None
        type_name = self.resolver.resolve_node(type_node, self.unit, self.owner)
        if type_name is None and initializer is not None:
            type_name = initializer.static_type
        self.declare(
            Variable(
                name=self.unit.text(node.child_by_field_name("name")),
                type_name=type_name,
                kind=VariableKind.LOCAL,
                initializer=initializer,
                position=self.builder.position(self.unit, node),
            )
        )

    def _visit_class_body(self, node: Node) -> None:
        """Anonymous or local class body: attributed to the enclosing method."""
        for member in node.named_children:
            if member.type in ("method_declaration", "constructor_declaration"):
                self._push()
                for param in self.builder._parameters(
                    member.child_by_field_name("parameters"), self.unit, self.owner
                ):
                    self.declare(param)
                body = member.child_by_field_name("body")
                if body is not None:
                    self.visit(body)
                self._pop()
            elif member.type == "field_declaration":
                for declarator in member.children_by_field_name("declarator"):
                    value = declarator.child_by_field_name("value")
                    if value is not None:
                        self.expression(value)
            else:
                self.visit(member)

    def _visit_local_type(self, node: Node) -> None:
        body = node.child_by_field_name("body")
        if body is not None:
            self._visit_class_body(body)

    _visit_class_declaration = _visit_local_type
    _visit_interface_declaration = _visit_local_type
    _visit_enum_declaration = _visit_local_type
    _visit_record_declaration = _visit_local_type

    # --- expressions ---

    def expression(self, node: Node) -> Expression:
        t = node.type

        if t == "parenthesized_expression":
            inner = node.named_children
            return self.expression(inner[0]) if inner else self._make(ExpressionKind.OTHER, node)

        if t == "string_literal":
            return self._make(
                ExpressionKind.LITERAL,
                node,
                static_type="java.lang.String",
                value=string_literal_value(self.unit.text(node)),
            )
        if t in INTEGER_LITERALS:
            text = self.unit.text(node)
            static_type = "long" if text[-1:] in ("l", "L") else "int"
            return self._make(ExpressionKind.LITERAL, node, static_type=static_type, value=text)
        if t in FLOAT_LITERALS:
            text = self.unit.text(node)
            static_type = "float" if text[-1:] in ("f", "F") else "double"
            return self._make(ExpressionKind.LITERAL, node, static_type=static_type, value=text)
        if t in ("true", "false"):
            return self._make(ExpressionKind.LITERAL, node, static_type="boolean", value=t == "true")
        if t == "character_literal":
            return self._make(
                ExpressionKind.LITERAL, node, static_type="char", value=self.unit.text(node)[1:-1]
            )
        if t == "null_literal":
            return self._make(ExpressionKind.LITERAL, node)

        if t == "identifier":
            return self._identifier(node)
        if t == "this":
            return self._make(ExpressionKind.THIS, node, static_type=self.owner.qualified_name)
        if t == "field_access":
            return self._field_access(node)
        if t == "method_invocation":
            return self._invocation(node)
        if t == "object_creation_expression":
            return self._constructor_call(node)
        if t == "lambda_expression":
            return self._lambda(node)

        if t == "cast_expression":
            value = node.child_by_field_name("value")
            if value is not None:
                self.expression(value)
            cast_type = self.resolver.resolve_node(node.child_by_field_name("type"), self.unit, self.owner)
            return self._make(ExpressionKind.OTHER, node, static_type=cast_type)

        if t == "ternary_expression":
            parts = [
                self.expression(part)
                for part in (
                    node.child_by_field_name("condition"),
                    node.child_by_field_name("consequence"),
                    node.child_by_field_name("alternative"),
                )
                if part is not None
            ]
            branch_types = [p.static_type for p in parts[1:] if p.static_type]
            return self._make(
                ExpressionKind.OTHER, node, static_type=branch_types[0] if branch_types else None
            )

        if t == "binary_expression":
            left = self.expression(node.child_by_field_name("left"))
            right = self.expression(node.child_by_field_name("right"))
            operator = self.unit.text(node.child_by_field_name("operator"))
            if operator == "+" and "java.lang.String" in (left.static_type, right.static_type):
                static_type = "java.lang.String"
            elif operator in COMPARISON_OPERATORS:
                static_type = "boolean"
            elif left.static_type == right.static_type:
                static_type = left.static_type
            else:
                static_type = None
            return self._make(ExpressionKind.OTHER, node, static_type=static_type)

        if t == "assignment_expression":
            left = self.expression(node.child_by_field_name("left"))
            self.expression(node.child_by_field_name("right"))
            return self._make(ExpressionKind.OTHER, node, static_type=left.static_type)

        if t == "array_access":
            array = self.expression(node.child_by_field_name("array"))
            index = node.child_by_field_name("index")
            if index is not None:
                self.expression(index)
            element = None
            if array.static_type and array.static_type.endswith("[]"):
                element = array.static_type[:-2]
            return self._make(ExpressionKind.OTHER, node, static_type=element)

        if t == "class_literal":
            return self._make(ExpressionKind.OTHER, node, static_type="java.lang.Class")

        if t == "instanceof_expression":
            self.expression(node.child_by_field_name("left"))
            name = node.child_by_field_name("name")
            if name is not None:
                # Pattern matching: x instanceof Foo foo
                self.declare(
                    Variable(
                        name=self.unit.text(name),
                        type_name=self.resolver.resolve_node(
                            node.child_by_field_name("right"), self.unit, self.owner
                        ),
                        kind=VariableKind.LOCAL,
                        position=self.builder.position(self.unit, name),
                    )
                )
            return self._make(ExpressionKind.OTHER, node, static_type="boolean")

        for child in node.named_children:
            self.visit(child)
        return self._make(ExpressionKind.OTHER, node)

    def _identifier(self, node: Node) -> Expression:
        name = self.unit.text(node)

        variable = self.lookup_local(name) or self.lookup_field(name)
        if variable is not None:
            return self._make(
                ExpressionKind.VARIABLE_READ,
                node,
                static_type=variable.type_name,
                variable=variable,
                variable_name=name,
            )

        type_name = self.resolver.resolve_known(name, self.unit, self.owner)
        if type_name is None and name[:1].isupper() and not name.isupper():
            # Unknown CamelCase name: an external type (ALL_CAPS is a constant)
            type_name = name
        if type_name is not None:
            return self._make(ExpressionKind.TYPE_ACCESS, node, accessed_type=type_name)

        return self._make(ExpressionKind.VARIABLE_READ, node, variable_name=name)

    def _field_access(self, node: Node) -> Expression:
        object_node = node.child_by_field_name("object")
        field_name = self.unit.text(node.child_by_field_name("field"))
        full_name = "".join(self.unit.text(node).split())

        if full_name in self.model.types:
            return self._make(ExpressionKind.TYPE_ACCESS, node, accessed_type=full_name)

        field = None
        if object_node is not None and object_node.type == "this":
            field = self.model.lookup_field(self.owner.qualified_name, field_name)
        elif object_node is not None and object_node.type == "super":
            field = self.model.lookup_field(self.owner.superclass, field_name)
        elif object_node is not None:
            target = self.expression(object_node)
            is_type_name = field_name[:1].isupper() and not field_name.isupper()
            if target.kind is ExpressionKind.TYPE_ACCESS:
                field = self.model.lookup_field(target.accessed_type, field_name)
                nested = f"{target.accessed_type}.{field_name}"
                if field is None and (nested in self.model.types or is_type_name):
                    return self._make(ExpressionKind.TYPE_ACCESS, node, accessed_type=nested)
            elif (
                target.kind is ExpressionKind.VARIABLE_READ
                and target.variable is None
                and target.static_type is None
                and is_type_name
            ):
                # com.acme.Foo written out in full
                return self._make(ExpressionKind.TYPE_ACCESS, node, accessed_type=full_name)
            else:
                field = self.model.lookup_field(target.static_type, field_name)

        return self._make(
            ExpressionKind.VARIABLE_READ,
            node,
            static_type=field.type_name if field else None,
            variable=field,
            variable_name=field_name,
        )

    def _invocation(self, node: Node) -> Invocation:
        object_node = node.child_by_field_name("object")
        invocation = Invocation(
            text=_collapse(self.unit.text(node)),
            position=self.builder.position(self.unit, node),
            enclosing_method=self.method,
            enclosing_type=self.owner,
            name=self.unit.text(node.child_by_field_name("name")),
        )
        # Registered before its target and arguments: outer calls come first
        self.model.invocations.append(invocation)

        via_super = object_node is not None and object_node.type == "super"
        if object_node is not None and not via_super:
            invocation.target = self.expression(object_node)

        arguments = node.child_by_field_name("arguments")
        if arguments is not None:
            invocation.arguments = [self.expression(arg) for arg in arguments.named_children]

        invocation.declaring_type, invocation.static_type = self._resolve_call(
            invocation.target, invocation.name, invocation.argument_count, via_super
        )
        return invocation

    def _resolve_call(
        self, target: Expression | None, name: str, arity: int, via_super: bool
    ) -> tuple[str | None, str | None]:
        """Return (declaring type, return type) for a call."""
        if via_super:
            method = self.model.lookup_method(self.owner.superclass, name, arity)
            if method is not None:
                return method.owner.qualified_name, method.return_type
            return self.owner.superclass, None

        if target is None:
            scope = self.owner
            while scope is not None:
                method = self.model.lookup_method(scope.qualified_name, name, arity)
                if method is not None:
                    return method.owner.qualified_name, method.return_type
                scope = scope.outer

            if name in self.unit.static_imports:
                type_name = self.unit.static_imports[name]
                method = self.model.lookup_method(type_name, name, arity)
                if method is not None:
                    return method.owner.qualified_name, method.return_type
                return type_name, None

            for type_name in self.unit.static_wildcards:
                method = self.model.lookup_method(type_name, name, arity)
                if method is not None:
                    return method.owner.qualified_name, method.return_type
            if len(self.unit.static_wildcards) == 1:
                return self.unit.static_wildcards[0], None
            return None, None

        if target.kind is ExpressionKind.TYPE_ACCESS:
            type_name = target.accessed_type
        else:
            type_name = target.static_type
        if not type_name:
            return None, None

        method = self.model.lookup_method(type_name, name, arity)
        if method is not None:
            return method.owner.qualified_name, method.return_type

        if (
            target.kind is ExpressionKind.TYPE_ACCESS
            and arity == 0
            and name in self.builder.singleton_accessors
            and type_name not in self.model.types
        ):
            return type_name, type_name
        return type_name, None

    def _constructor_call(self, node: Node) -> ConstructorCall:
        call = ConstructorCall(
            text=_collapse(self.unit.text(node)),
            position=self.builder.position(self.unit, node),
            enclosing_method=self.method,
            enclosing_type=self.owner,
            static_type=self.resolver.resolve_node(node.child_by_field_name("type"), self.unit, self.owner),
        )
        self.model.constructor_calls.append(call)

        arguments = node.child_by_field_name("arguments")
        if arguments is not None:
            call.arguments = [self.expression(arg) for arg in arguments.named_children]

        for child in node.named_children:
            if child.type == "class_body":
                self._visit_class_body(child)
        return call

    def _lambda(self, node: Node) -> Expression:
        self._push()
        params = node.child_by_field_name("parameters")
        if params is not None:
            if params.type == "identifier":
                names = [params]
            elif params.type == "inferred_parameters":
                names = list(params.named_children)
            else:
                names = []
                for param in self.builder._parameters(params, self.unit, self.owner):
                    self.declare(param)
            for name in names:
                self.declare(
                    Variable(name=self.unit.text(name), type_name=None, kind=VariableKind.PARAMETER)
                )

        body = node.child_by_field_name("body")
        if body is not None:
            if body.type == "block":
                self.visit(body)
            else:
                self.expression(body)
        self._pop()
        return self._make(ExpressionKind.OTHER, node)


def build_model(project_root: Path, files: Iterable[Path], **kwargs) -> ProgramModel:
    """Parse files and build the program model in one call."""
    builder = JavaModelBuilder(project_root, **kwargs)
    for path in files:
        builder.add_file(path)
    return builder.build()


def build_model_from_sources(
    sources: dict[str, str], project_root: Path = Path("."), **kwargs
) -> ProgramModel:
    """Build a model from in-memory sources keyed by relative path."""
    builder = JavaModelBuilder(project_root, **kwargs)
    for path, source in sources.items():
        builder.add_source(source, path)
    return builder.build()
