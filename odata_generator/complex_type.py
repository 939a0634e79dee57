"""Emit the source file of a complex type.

A complex type file holds:
- interface <Type> with one member per property
- class <Type>Field, the selectable used inside entity field descriptors
- namespace <Type> with build(), which walks the properties in declaration
  order and delegates nested complex types to their own build()
- const <factoryName>, alias of <Type>.build
"""

from __future__ import annotations

from typing import Iterable

from .edm_types import complex_type_field_type, map_primitive
from .imports import (
    complex_type_import_declarations,
    core_import_declaration,
    core_property_type_import_names,
    external_import_declarations,
    merge_import_declarations,
)
from .model_builder import dependency_order
from .structures import (
    ClassDeclaration,
    EmittedFile,
    FunctionDeclaration,
    ImportDeclaration,
    InterfaceDeclaration,
    NamespaceDeclaration,
    Parameter,
    PropertyDeclaration,
    VariableStatement,
)
from .vdm_types import VdmComplexType, VdmProperty

BUILD_PARAMETER_TYPE = "{ [keys: string]: FieldType }"


def emission_order(complex_types: Iterable[VdmComplexType]) -> tuple[VdmComplexType, ...]:
    """Complex types with every nested type before the types using it."""
    by_name = {ct.type_name: ct for ct in complex_types}
    graph = {
        ct.type_name: [p.js_type for p in ct.properties if p.is_complex and p.js_type in by_name]
        for ct in by_name.values()
    }
    return tuple(by_name[name] for name in dependency_order(graph))


def _field_class(prop: VdmProperty) -> str:
    if prop.is_complex:
        return prop.field_type
    return complex_type_field_type(prop.field_type)


def import_declarations(complex_type: VdmComplexType) -> tuple[ImportDeclaration, ...]:
    properties = complex_type.properties
    return merge_import_declarations([
        *external_import_declarations(properties),
        core_import_declaration([
            "ComplexTypeField",
            "Entity",
            "FieldType",
            "createComplexType",
            "edmToTs",
            *(_field_class(p) for p in properties if not p.is_complex),
            *core_property_type_import_names(properties),
        ]),
        *complex_type_import_declarations(properties),
    ])


def complex_type_interface(complex_type: VdmComplexType) -> InterfaceDeclaration:
    return InterfaceDeclaration(
        name=complex_type.type_name,
        properties=tuple(
            PropertyDeclaration(
                name=p.instance_property_name,
                type=p.js_type,
                has_question_token=p.nullable,
                docs=(p.description,) if p.description else (),
            )
            for p in complex_type.properties
        ),
        docs=(complex_type.description or f"{complex_type.type_name} complex type.",),
    )


def _field_property(prop: VdmProperty) -> PropertyDeclaration:
    field_class = _field_class(prop)
    if prop.is_complex:
        initializer = f"new {field_class}('{prop.original_name}', this._fieldOf)"
    else:
        initializer = f"new {field_class}('{prop.original_name}', this, '{prop.edm_type}')"
    return PropertyDeclaration(
        name=prop.instance_property_name,
        type=f"{field_class}<EntityT>",
        initializer=initializer,
        docs=(f"Representation of the {{@link {prop.original_name}}} property for query construction.",),
    )


def complex_type_field_class(complex_type: VdmComplexType) -> ClassDeclaration:
    return ClassDeclaration(
        name=complex_type.field_type,
        type_parameters=("EntityT extends Entity",),
        extends="ComplexTypeField<EntityT>",
        properties=tuple(_field_property(p) for p in complex_type.properties),
        docs=(f"Selectable of {complex_type.type_name} for query construction.",),
    )


def _builder_entry(prop: VdmProperty) -> str:
    param = prop.property_name_as_param
    if prop.is_complex:
        value = f"{prop.js_type}.build({param})"
    else:
        value = map_primitive(prop.edm_type).to_target_expr(param)
    return f"{prop.original_name}: ({param}: {prop.js_type}) => ({{ {prop.instance_property_name}: {value} }})"


def build_function(complex_type: VdmComplexType) -> FunctionDeclaration:
    entries = ",\n".join(_builder_entry(p) for p in complex_type.properties)
    return FunctionDeclaration(
        name="build",
        parameters=(Parameter("json", BUILD_PARAMETER_TYPE),),
        return_type=complex_type.type_name,
        statements=f"return createComplexType(json, {{\n{entries}\n}});",
    )


def complex_type_namespace(complex_type: VdmComplexType) -> NamespaceDeclaration:
    return NamespaceDeclaration(name=complex_type.type_name, statements=(build_function(complex_type),))


def factory_alias(complex_type: VdmComplexType) -> VariableStatement:
    return VariableStatement(
        name=complex_type.factory_name,
        initializer=f"{complex_type.type_name}.build",
        docs=(f"@deprecated Use {complex_type.type_name}.build instead.",),
    )


def complex_type_source_file(complex_type: VdmComplexType) -> EmittedFile:
    return EmittedFile(
        relative_path=complex_type.type_name,
        import_declarations=import_declarations(complex_type),
        statements=(
            complex_type_interface(complex_type),
            complex_type_field_class(complex_type),
            complex_type_namespace(complex_type),
            factory_alias(complex_type),
        ),
    )
