"""Map Edm primitive types to TypeScript types and runtime field classes.

The mapping is a fixed table; anything outside it is a defect in the
primitive/complex classification upstream and raises UnknownEdmTypeError.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import UnknownEdmTypeError

_COLLECTION_RE = re.compile(r"^Collection\((?P<inner>.+)\)$")


@dataclass(frozen=True)
class ExternalImport:
    module: str
    name: str


@dataclass(frozen=True)
class EdmTypeMapping:
    """TypeScript representation of one Edm primitive type."""

    edm_type: str
    js_type: str
    field_type: str
    external_import: ExternalImport | None = None

    def to_target_expr(self, value: str) -> str:
        """Expression converting a wire value into the TypeScript type."""
        return f"edmToTs({value}, '{self.edm_type}')"

    def to_wire_expr(self, value: str) -> str:
        """Expression converting a TypeScript value into its wire format."""
        return f"tsToEdm({value}, '{self.edm_type}')"


_BIG_NUMBER = ExternalImport("bignumber.js", "BigNumber")
_MOMENT = ExternalImport("moment", "Moment")

# Edm primitive -> (TypeScript type, runtime field class, external import)
_EDM_TYPES: dict[str, tuple[str, str, ExternalImport | None]] = {
    "Edm.String": ("string", "StringField", None),
    "Edm.Boolean": ("boolean", "BooleanField", None),
    "Edm.Guid": ("string", "StringField", None),
    "Edm.Decimal": ("BigNumber", "BigNumberField", _BIG_NUMBER),
    "Edm.Double": ("number", "NumberField", None),
    "Edm.Single": ("number", "NumberField", None),
    "Edm.Float": ("number", "NumberField", None),
    "Edm.Int16": ("number", "NumberField", None),
    "Edm.Int32": ("number", "NumberField", None),
    "Edm.Int64": ("BigNumber", "BigNumberField", _BIG_NUMBER),
    "Edm.Byte": ("number", "NumberField", None),
    "Edm.SByte": ("number", "NumberField", None),
    "Edm.DateTime": ("Moment", "DateField", _MOMENT),
    "Edm.DateTimeOffset": ("Moment", "DateField", _MOMENT),
    "Edm.Time": ("Time", "TimeField", None),
    "Edm.Binary": ("string", "BinaryField", None),
}


def is_primitive(type_name: str) -> bool:
    """Return True for names in the Edm namespace."""
    return type_name.startswith("Edm.")


def parse_collection(type_name: str) -> tuple[str, bool]:
    """Split 'Collection(X)' into ('X', True); plain types give (type, False)."""
    match = _COLLECTION_RE.match(type_name.strip())
    if match:
        return match.group("inner").strip(), True
    return type_name.strip(), False


def map_primitive(edm_type: str) -> EdmTypeMapping:
    """Map an Edm primitive type name to its TypeScript representation."""
    try:
        js_type, field_type, external = _EDM_TYPES[edm_type]
    except KeyError:
        raise UnknownEdmTypeError(f"Unknown Edm type '{edm_type}'") from None
    return EdmTypeMapping(edm_type, js_type, field_type, external)


def supported_edm_types() -> tuple[str, ...]:
    return tuple(_EDM_TYPES)


def complex_type_field_type(field_type: str) -> str:
    """Field class used for a primitive property inside a complex type.

    StringField -> ComplexTypeStringPropertyField
    """
    base = field_type[: -len("Field")] if field_type.endswith("Field") else field_type
    return f"ComplexType{base}PropertyField"
