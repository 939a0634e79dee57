"""Generate typed TypeScript client sources from OData EDMX metadata.

Pipeline: schema_parser -> naming -> model_builder -> emitter -> codegen.
"""

__version__ = "1.0.0"
