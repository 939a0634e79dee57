"""Errors raised by the generation pipeline.

Every error is fatal for the service being generated but never for the run:
pipeline.py catches GeneratorError at the per-service boundary.
"""

from __future__ import annotations


class GeneratorError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str, construct: str | None = None) -> None:
        self.construct = construct
        if construct:
            message = f"{message} (in {construct})"
        super().__init__(message)


class SchemaParseError(GeneratorError):
    """Malformed or structurally inconsistent metadata document."""


class SemanticModelError(GeneratorError):
    """Unresolvable type reference or illegal complex type cycle."""


class NameCollisionError(GeneratorError):
    """A name could not be made unique."""


class UnknownEdmTypeError(GeneratorError):
    """An Edm primitive type the type mapper does not know."""
