"""Resolve collision-free TypeScript identifiers from schema names.

Casing per kind:
  class              -> UpperCamel        A_TestEntity      -> TestEntity
  instance property  -> lowerCamel        KeyPropertyGuid   -> keyPropertyGuid
  static property    -> UPPER_SNAKE       KeyPropertyGuid   -> KEY_PROPERTY_GUID
  factory            -> create + Upper    A_TestComplexType -> createTestComplexType
  function           -> lowerCamel        Continue          -> fContinue (keyword)
  parameter          -> lowerCamel        Delete            -> pDelete (keyword)
  module             -> kebab-case        API_TEST_SRV      -> test-service

Collisions within one (namespace, scope, owner) get an ordinal suffix in
request order: name, name_1, name_2, ... Module names use '-1', '-2'.
"""

from __future__ import annotations

import re
import threading
from enum import Enum
from typing import Sequence

from .errors import NameCollisionError


class NameKind(Enum):
    CLASS = "class"
    INSTANCE_PROPERTY = "instanceProperty"
    STATIC_PROPERTY = "staticProperty"
    FACTORY = "factory"
    FUNCTION = "function"
    MODULE = "module"
    PARAMETER = "parameter"


# Factories and function imports both end up as top-level functions.
_SCOPES: dict[NameKind, str] = {
    NameKind.FACTORY: "function",
    NameKind.FUNCTION: "function",
}

RESERVED_KEYWORDS: frozenset[str] = frozenset({
    "arguments", "await", "break", "case", "catch", "class", "const",
    "continue", "debugger", "default", "delete", "do", "else", "enum", "eval",
    "export", "extends", "false", "finally", "for", "function", "if",
    "implements", "import", "in", "instanceof", "interface", "let", "new",
    "null", "package", "private", "protected", "public", "return", "static",
    "super", "switch", "this", "throw", "true", "try", "typeof", "var",
    "void", "while", "with", "yield",
})

_KEYWORD_PREFIXES: dict[NameKind, str] = {
    NameKind.FUNCTION: "f",
    NameKind.FACTORY: "f",
    NameKind.PARAMETER: "p",
}

# Names the generated code already uses, per scope.
_RESERVED_NAMES: dict[str, frozenset[str]] = {
    NameKind.CLASS.value: frozenset({
        "AllFields", "Array", "BigNumber", "Boolean", "ComplexTypeField",
        "CustomField", "Date", "Entity", "EntityBuilderType", "Field",
        "FieldType", "FunctionImportParameter", "FunctionImportRequestBuilder",
        "Link", "Moment", "Number", "Object", "OneToOneLink", "RequestBuilder",
        "Selectable", "String", "Time",
        # BatchRequest file and its imports
        "BatchRequest", "CreateRequestBuilder", "DeleteRequestBuilder",
        "GetAllRequestBuilder", "GetByKeyRequestBuilder", "ODataBatchChangeSet",
        "ODataBatchRequestBuilder", "UpdateRequestBuilder",
    }),
    NameKind.STATIC_PROPERTY.value: frozenset({"ALL_FIELDS"}),
    NameKind.INSTANCE_PROPERTY.value: frozenset({
        "getCustomField", "getCustomFields", "getUpdatedProperties",
        "hasCustomField", "setCustomField", "setCustomFields",
        "setVersionIdentifier", "toJSON",
    }),
    "function": frozenset({
        "batch", "changeset", "edmToTs", "functionImports",
        "transformReturnValueForComplexType", "transformReturnValueForComplexTypeList",
        "transformReturnValueForEdmType", "transformReturnValueForEdmTypeList",
        "transformReturnValueForEntity", "transformReturnValueForEntityList",
        "transformReturnValueForUndefined",
    }),
}

_COLLISION_LIMIT = 1000

# Identifiers the emitter derives from a class name.
ENTITY_DERIVED_SUFFIXES = ("RequestBuilder", "Type", "TypeForceMandatory")
COMPLEX_TYPE_DERIVED_SUFFIXES = ("Field",)

ENTITY_SET_PREFIX = "A_"
COLLECTION_SUFFIX = "Collection"


def _camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1).lower()


def _words(name: str) -> list[str]:
    """Split a schema name into lower-case words."""
    name = re.sub(r"[.\-\s/]", "_", name)
    name = re.sub(r"[^A-Za-z0-9_]", "", name)
    return [w for w in _camel_to_snake(name).split("_") if w]


def upper_camel(name: str) -> str:
    return "".join(w[:1].upper() + w[1:] for w in _words(name))


def lower_camel(name: str) -> str:
    camel = upper_camel(name)
    return camel[:1].lower() + camel[1:]


def upper_snake(name: str) -> str:
    return "_".join(_words(name)).upper()


def kebab(name: str) -> str:
    return "-".join(_words(name))


def transform_name(name: str, kind: NameKind) -> str:
    """Apply the casing of a kind and escape reserved keywords."""
    if kind is NameKind.CLASS:
        result = upper_camel(name)
    elif kind is NameKind.STATIC_PROPERTY:
        result = upper_snake(name)
    elif kind is NameKind.FACTORY:
        result = "create" + upper_camel(name)
    elif kind is NameKind.MODULE:
        result = kebab(name)
    else:
        result = lower_camel(name)

    if not result:
        raise NameCollisionError(f"Name '{name}' yields an empty identifier")
    if result[0].isdigit() and kind is not NameKind.MODULE:
        result = "_" + result
    if result in RESERVED_KEYWORDS and kind in _KEYWORD_PREFIXES:
        result = _KEYWORD_PREFIXES[kind] + result[0].upper() + result[1:]
    return result


def class_name_candidate(name: str) -> str:
    """Strip the 'A_' prefix of API entity set and type names."""
    if name.startswith(ENTITY_SET_PREFIX) and len(name) > len(ENTITY_SET_PREFIX):
        return name[len(ENTITY_SET_PREFIX):]
    return name


def strip_collection_suffix(entity_set_names: Sequence[str]) -> dict[str, str]:
    """Map each entity set name to the base of its class name.

    A trailing 'Collection' is dropped unless the shortened name would equal
    the class name derived from another entity set.
    """
    bases = {name: class_name_candidate(name) for name in entity_set_names}
    derived = {upper_camel(base) for base in bases.values()}
    result: dict[str, str] = {}
    for name, base in bases.items():
        if base.endswith(COLLECTION_SUFFIX) and len(base) > len(COLLECTION_SUFFIX):
            stripped = base[: -len(COLLECTION_SUFFIX)]
            if upper_camel(stripped) not in derived:
                base = stripped
        result[name] = base
    return result


def module_name_candidate(name: str) -> str:
    """API_TEST_SRV -> TEST_SERVICE"""
    name = re.sub(r"^API_", "", name, flags=re.IGNORECASE)
    return re.sub(r"_?SRV$", "_SERVICE", name, flags=re.IGNORECASE)


def _first_taken(name: str, derived_suffixes: Sequence[str], taken: set[str]) -> str | None:
    """First of name and its derived names that is already in use."""
    return next((name + s for s in ("", *derived_suffixes) if name + s in taken), None)


class NameRegistry:
    """Naming authority for one generation run.

    Resolved names are memoized per (namespace, kind, owner, original name),
    so asking twice returns the same identifier. Safe to share between
    threads generating different services.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._resolved: dict[tuple[str, NameKind, str, str], str] = {}
        self._taken: dict[tuple[str, str, str], set[str]] = {}

    def _scope(self, namespace: str, kind: NameKind, owner: str) -> set[str]:
        scope = _SCOPES.get(kind, kind.value)
        key = (namespace, scope, owner)
        if key not in self._taken:
            self._taken[key] = set(_RESERVED_NAMES.get(scope, ()))
        return self._taken[key]

    def resolve(
        self,
        namespace: str,
        original_name: str,
        kind: NameKind,
        override: str | None = None,
        owner: str = "",
        candidate: str | None = None,
        derived_suffixes: Sequence[str] = (),
    ) -> str:
        """Return the identifier for a schema name.

        `candidate` replaces `original_name` as the input of the casing
        transform when a domain rule already shortened it.

        `derived_suffixes` name the identifiers generated from this one
        (TestEntity -> TestEntityRequestBuilder). The name is only accepted
        when those are free as well, and they are registered with it.
        """
        key = (namespace, kind, owner, original_name)
        with self._lock:
            if key in self._resolved:
                return self._resolved[key]

            taken = self._scope(namespace, kind, owner)
            if override:
                clash = _first_taken(override, derived_suffixes, taken)
                if clash:
                    raise NameCollisionError(
                        f"Override '{override}' for '{original_name}' is already in use ('{clash}')",
                        namespace or None,
                    )
                name = override
            else:
                base = transform_name(candidate if candidate is not None else original_name, kind)
                name = self._disambiguate(base, kind, taken, namespace, derived_suffixes)

            taken.update(name + suffix for suffix in ("", *derived_suffixes))
            self._resolved[key] = name
            return name

    @staticmethod
    def _disambiguate(
        base: str,
        kind: NameKind,
        taken: set[str],
        namespace: str,
        derived_suffixes: Sequence[str] = (),
    ) -> str:
        if not _first_taken(base, derived_suffixes, taken):
            return base
        separator = "-" if kind is NameKind.MODULE else "_"
        for ordinal in range(1, _COLLISION_LIMIT + 1):
            name = f"{base}{separator}{ordinal}"
            if not _first_taken(name, derived_suffixes, taken):
                return name
        raise NameCollisionError(f"Could not find a free name for '{base}'", namespace or None)

    def names(self, namespace: str, kind: NameKind, owner: str = "") -> list[str]:
        """Identifiers resolved so far for one kind, in resolution order."""
        with self._lock:
            return [
                name for (ns, k, o, _), name in self._resolved.items()
                if ns == namespace and k is kind and o == owner
            ]


class ServiceNameResolver:
    """View of a NameRegistry bound to one service namespace."""

    def __init__(self, registry: NameRegistry, namespace: str) -> None:
        self.registry = registry
        self.namespace = namespace

    def class_name(
        self,
        original_name: str,
        candidate: str | None = None,
        derived_suffixes: Sequence[str] = (),
    ) -> str:
        return self.registry.resolve(
            self.namespace, original_name, NameKind.CLASS,
            candidate=candidate, derived_suffixes=derived_suffixes,
        )

    def instance_property_name(self, original_name: str, owner: str) -> str:
        return self.registry.resolve(self.namespace, original_name, NameKind.INSTANCE_PROPERTY, owner=owner)

    def static_property_name(self, original_name: str, owner: str) -> str:
        return self.registry.resolve(self.namespace, original_name, NameKind.STATIC_PROPERTY, owner=owner)

    def parameter_name(self, original_name: str, owner: str) -> str:
        return self.registry.resolve(self.namespace, original_name, NameKind.PARAMETER, owner=owner)

    def function_name(self, original_name: str) -> str:
        return self.registry.resolve(self.namespace, original_name, NameKind.FUNCTION)

    def factory_name(self, original_name: str, candidate: str | None = None) -> str:
        return self.registry.resolve(self.namespace, original_name, NameKind.FACTORY, candidate=candidate)

    def module_name(self, original_file_name: str, override: str | None = None) -> str:
        return resolve_module_name(self.registry, original_file_name, override)


def resolve_module_name(registry: NameRegistry, original_file_name: str, override: str | None = None) -> str:
    """Directory name of a service; unique across the whole run."""
    return registry.resolve(
        "", original_file_name, NameKind.MODULE,
        override=override, candidate=module_name_candidate(original_file_name),
    )
