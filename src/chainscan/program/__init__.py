"""Semantic program model of a Java source tree."""

from chainscan.program.builder import JavaModelBuilder, build_model, build_model_from_sources
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

__all__ = [
    "Annotation",
    "ConstructorCall",
    "Expression",
    "ExpressionKind",
    "Invocation",
    "JavaModelBuilder",
    "MethodDecl",
    "Position",
    "ProgramModel",
    "TypeDecl",
    "TypeKind",
    "Variable",
    "VariableKind",
    "build_model",
    "build_model_from_sources",
]
