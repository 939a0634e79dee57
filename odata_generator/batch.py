"""Emit the BatchRequest source file of a service.

The file offers batch() and changeset() for the service's request builders,
a map from entity set name to entity class used to deserialize batch
responses, and the read/write request builder unions of the service.
"""

from __future__ import annotations

from .imports import core_import_declaration, merge_import_declarations, relative_import_declaration
from .structures import (
    EmittedFile,
    FunctionDeclaration,
    ImportDeclaration,
    Parameter,
    TypeAliasDeclaration,
    VariableStatement,
)
from .vdm_types import VdmServiceMetadata

FILE_NAME = "BatchRequest"

READ_REQUEST_BUILDERS = ("GetAllRequestBuilder", "GetByKeyRequestBuilder")
WRITE_REQUEST_BUILDERS = ("CreateRequestBuilder", "UpdateRequestBuilder", "DeleteRequestBuilder")


def read_request_builder_type(service: VdmServiceMetadata) -> str:
    return f"Read{service.class_name}RequestBuilder"


def write_request_builder_type(service: VdmServiceMetadata) -> str:
    return f"Write{service.class_name}RequestBuilder"


def default_service_path_name(service: VdmServiceMetadata) -> str:
    return f"default{service.class_name}Path"


def _union(builders: tuple[str, ...], service: VdmServiceMetadata) -> str:
    members = [f"{b}<{e.class_name}>" for e in service.entities for b in builders]
    return " | ".join(members) or "never"


def import_declarations(service: VdmServiceMetadata) -> tuple[ImportDeclaration, ...]:
    return merge_import_declarations([
        core_import_declaration([
            *READ_REQUEST_BUILDERS,
            *WRITE_REQUEST_BUILDERS,
            "ODataBatchChangeSet",
            "ODataBatchRequestBuilder",
        ]),
        *(relative_import_declaration(e.class_name, [e.class_name]) for e in service.entities),
    ])


def batch_function(service: VdmServiceMetadata) -> FunctionDeclaration:
    read, write = read_request_builder_type(service), write_request_builder_type(service)
    return FunctionDeclaration(
        name="batch",
        parameters=(Parameter("...requests", f"Array<{read} | ODataBatchChangeSet<{write}>>"),),
        return_type="ODataBatchRequestBuilder",
        statements=f"return new ODataBatchRequestBuilder({default_service_path_name(service)}, requests, map);",
        docs=(
            f"Batch builder for operations supported on the {service.class_name}.\n"
            "@param requests The requests of the batch.\n"
            "@returns A request builder for batch.",
        ),
    )


def changeset_function(service: VdmServiceMetadata) -> FunctionDeclaration:
    write = write_request_builder_type(service)
    return FunctionDeclaration(
        name="changeset",
        parameters=(Parameter("...requests", f"Array<{write}>"),),
        return_type=f"ODataBatchChangeSet<{write}>",
        statements="return new ODataBatchChangeSet(requests);",
        docs=(
            f"Change set constructor consists of write operations supported on the {service.class_name}.\n"
            "@param requests The requests of the change set.\n"
            "@returns A change set for batch.",
        ),
    )


def batch_source_file(service: VdmServiceMetadata) -> EmittedFile:
    entries = ",\n".join(f"'{e.entity_set_name}': {e.class_name}" for e in service.entities)
    return EmittedFile(
        relative_path=FILE_NAME,
        import_declarations=import_declarations(service),
        statements=(
            batch_function(service),
            changeset_function(service),
            VariableStatement(
                name=default_service_path_name(service),
                initializer=f"'{service.service_path}'",
            ),
            VariableStatement(
                name="map",
                initializer=f"{{\n{entries}\n}}" if entries else "{}",
                is_exported=False,
            ),
            TypeAliasDeclaration(read_request_builder_type(service), _union(READ_REQUEST_BUILDERS, service)),
            TypeAliasDeclaration(write_request_builder_type(service), _union(WRITE_REQUEST_BUILDERS, service)),
        ),
    )
