"""Emit the function-imports source file of a service."""

from __future__ import annotations

from .imports import (
    core_import_declaration,
    core_property_type_import_names,
    external_import_declarations,
    merge_import_declarations,
    relative_import_declaration,
)
from .structures import (
    EmittedFile,
    FunctionDeclaration,
    ImportDeclaration,
    InterfaceDeclaration,
    Parameter,
    PropertyDeclaration,
    VariableStatement,
)
from .vdm_types import ReturnTypeCategory, VdmFunctionImport, VdmServiceMetadata

FILE_NAME = "function-imports"


def response_transformer(function_import: VdmFunctionImport) -> str:
    """Arrow function turning the raw response into the return type."""
    return_type = function_import.return_type
    transformer = return_type.transformer_function
    if return_type.category is ReturnTypeCategory.VOID:
        return f"(data) => {transformer}(data, (val) => undefined)"
    return f"(data) => {transformer}(data, {return_type.builder_function})"


def _generic_return_type(function_import: VdmFunctionImport) -> str:
    return_type = function_import.return_type
    if return_type.is_multi:
        return f"{return_type.return_type}[]"
    return return_type.return_type


def import_declarations(service: VdmServiceMetadata) -> tuple[ImportDeclaration, ...]:
    parameters = [p for f in service.function_imports for p in f.parameters]
    return_types = [f.return_type for f in service.function_imports]
    uses_edm = any(r.category is ReturnTypeCategory.EDM_TYPE for r in return_types)
    return merge_import_declarations([
        *external_import_declarations(parameters),
        core_import_declaration([
            *core_property_type_import_names(parameters),
            *(r.transformer_function for r in return_types),
            *(["edmToTs"] if uses_edm else []),
            "FunctionImportRequestBuilder",
            "FunctionImportParameter",
        ]),
        *(
            relative_import_declaration(r.return_type, [r.return_type])
            for r in return_types
            if r.category in (ReturnTypeCategory.ENTITY, ReturnTypeCategory.COMPLEX_TYPE)
        ),
    ])


def parameters_interface(function_import: VdmFunctionImport) -> InterfaceDeclaration:
    return InterfaceDeclaration(
        name=function_import.parameters_type_name,
        properties=tuple(
            PropertyDeclaration(
                name=p.parameter_name,
                type=p.js_type,
                has_question_token=p.nullable,
                docs=(p.description or f"{p.original_name}.",),
            )
            for p in function_import.parameters
        ),
        docs=(f"Type of the parameters to be passed to [[{function_import.function_name}]].",),
    )


def function_declaration(function_import: VdmFunctionImport, service: VdmServiceMetadata) -> FunctionDeclaration:
    parameters_type = function_import.parameters_type_name
    params = ",\n".join(
        f"{p.parameter_name}: new FunctionImportParameter('{p.original_name}', '{p.edm_type}', parameters.{p.parameter_name})"
        for p in function_import.parameters
    )
    statements = (
        f"const params = {{\n{params}\n}}\n\n"
        f"return new FunctionImportRequestBuilder('{function_import.http_method.lower()}', "
        f"'{service.service_path}', '{function_import.original_name}', "
        f"{response_transformer(function_import)}, params);"
    )
    return FunctionDeclaration(
        name=function_import.function_name,
        parameters=(Parameter("parameters", parameters_type),),
        return_type=f"FunctionImportRequestBuilder<{parameters_type}, {_generic_return_type(function_import)}>",
        statements=statements,
        docs=(
            f"{function_import.description or function_import.original_name}.\n\n"
            "@param parameters - Object containing all parameters for the function import.\n"
            "@returns A request builder that allows to overwrite some of the values and execute the resulting request.",
        ),
    )


def function_import_source_file(service: VdmServiceMetadata) -> EmittedFile:
    statements = []
    for function_import in service.function_imports:
        statements.append(parameters_interface(function_import))
        statements.append(function_declaration(function_import, service))
    members = ",\n".join(f.function_name for f in service.function_imports)
    statements.append(VariableStatement(name="functionImports", initializer=f"{{\n{members}\n}}"))
    return EmittedFile(
        relative_path=FILE_NAME,
        import_declarations=import_declarations(service),
        statements=tuple(statements),
    )
