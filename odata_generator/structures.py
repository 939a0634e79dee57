"""Abstract TypeScript source structures produced by the emitter.

The emitter builds these; codegen.py turns them into text. Every structure
is frozen and uses tuples, so two emissions compare equal with ==.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class StructureKind(Enum):
    IMPORT_DECLARATION = "ImportDeclaration"
    EXPORT_DECLARATION = "ExportDeclaration"
    CLASS = "Class"
    INTERFACE = "Interface"
    NAMESPACE = "Namespace"
    FUNCTION = "Function"
    VARIABLE_STATEMENT = "VariableStatement"
    TYPE_ALIAS = "TypeAlias"


@dataclass(frozen=True)
class ImportDeclaration:
    module_specifier: str
    named_imports: tuple[str, ...]
    is_type_only: bool = False

    kind = StructureKind.IMPORT_DECLARATION


@dataclass(frozen=True)
class ExportDeclaration:
    module_specifier: str

    kind = StructureKind.EXPORT_DECLARATION


@dataclass(frozen=True)
class Parameter:
    name: str
    type: str
    has_question_token: bool = False


@dataclass(frozen=True)
class PropertyDeclaration:
    name: str
    type: str
    is_static: bool = False
    is_readonly: bool = False
    has_question_token: bool = False
    has_exclamation_token: bool = False
    initializer: str | None = None
    docs: tuple[str, ...] = ()


@dataclass(frozen=True)
class MethodDeclaration:
    name: str
    parameters: tuple[Parameter, ...]
    return_type: str
    statements: str
    is_static: bool = False
    docs: tuple[str, ...] = ()


@dataclass(frozen=True)
class ClassDeclaration:
    name: str
    properties: tuple[PropertyDeclaration, ...] = ()
    methods: tuple[MethodDeclaration, ...] = ()
    extends: str | None = None
    implements: tuple[str, ...] = ()
    type_parameters: tuple[str, ...] = ()
    constructor: MethodDeclaration | None = None
    is_exported: bool = True
    docs: tuple[str, ...] = ()

    kind = StructureKind.CLASS


@dataclass(frozen=True)
class InterfaceDeclaration:
    name: str
    properties: tuple[PropertyDeclaration, ...] = ()
    extends: tuple[str, ...] = ()
    is_exported: bool = True
    docs: tuple[str, ...] = ()

    kind = StructureKind.INTERFACE


@dataclass(frozen=True)
class FunctionDeclaration:
    name: str
    parameters: tuple[Parameter, ...]
    return_type: str
    statements: str
    is_exported: bool = True
    docs: tuple[str, ...] = ()

    kind = StructureKind.FUNCTION


@dataclass(frozen=True)
class VariableStatement:
    name: str
    initializer: str
    type: str | None = None
    declaration_kind: str = "const"
    is_exported: bool = True
    docs: tuple[str, ...] = ()

    kind = StructureKind.VARIABLE_STATEMENT


@dataclass(frozen=True)
class TypeAliasDeclaration:
    name: str
    type: str
    is_exported: bool = True
    docs: tuple[str, ...] = ()

    kind = StructureKind.TYPE_ALIAS


@dataclass(frozen=True)
class NamespaceDeclaration:
    name: str
    statements: tuple[Union[FunctionDeclaration, VariableStatement], ...]
    is_exported: bool = True
    docs: tuple[str, ...] = ()

    kind = StructureKind.NAMESPACE


Statement = Union[
    ClassDeclaration,
    InterfaceDeclaration,
    FunctionDeclaration,
    VariableStatement,
    TypeAliasDeclaration,
    NamespaceDeclaration,
    ExportDeclaration,
]


@dataclass(frozen=True)
class EmittedFile:
    """One logical output file, relative to its service directory."""

    relative_path: str
    import_declarations: tuple[ImportDeclaration, ...]
    statements: tuple[Statement, ...]

    def statements_of_kind(self, kind: StructureKind) -> list[Statement]:
        return [s for s in self.statements if s.kind is kind]
