"""Import declarations for emitted files.

Every structure of a file declares the imports it needs on its own;
merge_import_declarations folds them into one declaration per module
specifier (two when a module is needed both as value and as type-only
import).
"""

from __future__ import annotations

from typing import Iterable

from .edm_types import map_primitive
from .structures import ImportDeclaration
from .vdm_types import VdmParameter, VdmProperty

CORE_MODULE = "@sap-cloud-sdk/core"


def core_import_declaration(named_imports: Iterable[str]) -> ImportDeclaration:
    return ImportDeclaration(CORE_MODULE, tuple(named_imports))


def relative_import_declaration(module: str, named_imports: Iterable[str], is_type_only: bool = False) -> ImportDeclaration:
    return ImportDeclaration(f"./{module}", tuple(named_imports), is_type_only)


def external_import_declarations(properties: Iterable[VdmProperty | VdmParameter]) -> list[ImportDeclaration]:
    """Imports of third-party types (BigNumber, Moment) used by primitives."""
    declarations = []
    for prop in properties:
        if getattr(prop, "is_complex", False):
            continue
        external = map_primitive(prop.edm_type).external_import
        if external is not None:
            declarations.append(ImportDeclaration(external.module, (external.name,)))
    return declarations


def core_property_type_import_names(properties: Iterable[VdmProperty | VdmParameter]) -> list[str]:
    """Runtime type names needed to declare primitive values."""
    return ["Time" for p in properties if p.js_type == "Time"]


def complex_type_import_declarations(properties: Iterable[VdmProperty]) -> list[ImportDeclaration]:
    return [
        relative_import_declaration(p.js_type, (p.js_type, p.field_type))
        for p in properties
        if p.is_complex
    ]


def _sort_key(key: tuple[str, bool]) -> tuple[bool, str, bool]:
    specifier, is_type_only = key
    return specifier.startswith("."), specifier, is_type_only


def merge_import_declarations(declarations: Iterable[ImportDeclaration]) -> tuple[ImportDeclaration, ...]:
    """Union named imports per (module specifier, type-only).

    Package imports come before relative ones; a name already imported as a
    value is dropped from the type-only import of the same module.
    """
    merged: dict[tuple[str, bool], set[str]] = {}
    for declaration in declarations:
        key = (declaration.module_specifier, declaration.is_type_only)
        merged.setdefault(key, set()).update(declaration.named_imports)

    for (specifier, is_type_only), names in merged.items():
        if is_type_only and (specifier, False) in merged:
            names -= merged[(specifier, False)]

    return tuple(
        ImportDeclaration(specifier, tuple(sorted(merged[(specifier, is_type_only)])), is_type_only)
        for specifier, is_type_only in sorted(merged, key=_sort_key)
        if merged[(specifier, is_type_only)]
    )
