"""Turn a resolved service model into the source structures of every file.

Output order per service:
  <Class>, <Class>RequestBuilder   for each entity in entity set order
  <ComplexType>                    nested types before the types using them
  function-imports                 only when the service has function imports
  BatchRequest                     batch and changeset builders
  index                            re-exports every module above

Nothing here touches the filesystem; see codegen.py.
"""

from __future__ import annotations

import logging

from .batch import batch_source_file
from .complex_type import complex_type_source_file, emission_order
from .entity import entity_source_file, request_builder_source_file
from .function_import import function_import_source_file
from .structures import EmittedFile, ExportDeclaration
from .vdm_types import VdmServiceMetadata

logger = logging.getLogger(__name__)

INDEX_FILE = "index"


def index_source_file(files: list[EmittedFile]) -> EmittedFile:
    return EmittedFile(
        relative_path=INDEX_FILE,
        import_declarations=(),
        statements=tuple(ExportDeclaration(f"./{f.relative_path}") for f in files),
    )


def emit_service(service: VdmServiceMetadata) -> tuple[EmittedFile, ...]:
    """Emit every file of one service, index last."""
    files: list[EmittedFile] = []
    for entity in service.entities:
        files.append(entity_source_file(entity, service))
        files.append(request_builder_source_file(entity))
    for complex_type in emission_order(service.complex_types):
        files.append(complex_type_source_file(complex_type))
    if service.function_imports:
        files.append(function_import_source_file(service))
    files.append(batch_source_file(service))
    files.append(index_source_file(files))

    logger.debug("Emitted %d files for %s", len(files), service.directory_name)
    return tuple(files)
