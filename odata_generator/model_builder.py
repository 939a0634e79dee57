"""Build the resolved service model (VDM) from a raw schema.

Names are resolved in a fixed order so that repeated runs give the same
identifiers:
  1. entity class names (entity set order), then complex type class names
  2. function import names, then complex type factory names
  3. property, navigation property and parameter names, owner by owner

Complex types must form an acyclic graph; entity navigation may be cyclic.
"""

from __future__ import annotations

import graphlib
import logging
from typing import Any, Iterable, Mapping

from .edm_types import is_primitive, map_primitive, parse_collection
from .errors import SemanticModelError
from .naming import (
    COMPLEX_TYPE_DERIVED_SUFFIXES,
    ENTITY_DERIVED_SUFFIXES,
    NameRegistry,
    ServiceNameResolver,
    class_name_candidate,
    strip_collection_suffix,
    upper_camel,
)
from .options import ServiceMapping
from .schema_parser import (
    RawComplexType,
    RawEntitySet,
    RawEntityType,
    RawFunctionImport,
    RawNavigationProperty,
    RawParameter,
    RawProperty,
    RawSchema,
)
from .vdm_types import (
    ApiBusinessHubMetadata,
    ComplexTypeReturnType,
    EdmReturnType,
    EntityReturnType,
    VdmComplexType,
    VdmEntity,
    VdmFunctionImport,
    VdmFunctionImportReturnType,
    VdmNavigationProperty,
    VdmParameter,
    VdmProperty,
    VdmServiceMetadata,
    VoidReturnType,
)

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_PATH_PREFIX = "/sap/opu/odata/sap"
API_HUB_URL = "https://api.sap.com/api"


def dependency_order(graph: Mapping[str, Iterable[str]]) -> tuple[str, ...]:
    """Order nodes so that every node follows the nodes it depends on.

    Raises SemanticModelError naming the cycle if there is one.
    """
    sorter = graphlib.TopologicalSorter({node: set(deps) for node, deps in graph.items()})
    try:
        return tuple(sorter.static_order())
    except graphlib.CycleError as e:
        cycle = " -> ".join(e.args[1])
        raise SemanticModelError(f"Complex types must not contain themselves: {cycle}") from e


class ServiceModelBuilder:
    """Walks one RawSchema and produces the service's entities, complex
    types and function imports."""

    def __init__(
        self,
        raw: RawSchema,
        names: ServiceNameResolver,
        swagger: dict[str, Any] | None = None,
    ) -> None:
        self.raw = raw
        self.names = names
        self._definitions: dict[str, Any] = (swagger or {}).get("definitions") or {}
        self._paths: dict[str, Any] = (swagger or {}).get("paths") or {}
        self._entity_class_names: dict[str, str] = {}
        self._complex_type_names: dict[str, str] = {}
        self._function_names: dict[str, str] = {}
        self._factory_names: dict[str, str] = {}

    def build(self) -> tuple[tuple[VdmEntity, ...], tuple[VdmComplexType, ...], tuple[VdmFunctionImport, ...]]:
        self._resolve_class_names()
        self.check_complex_types()
        self._resolve_function_names()

        complex_types = tuple(self._complex_type(ct) for ct in self.raw.complex_types)
        entities = tuple(self._entity(es) for es in self.raw.entity_sets)
        function_imports = tuple(self._function_import(fi) for fi in self.raw.function_imports)
        return entities, complex_types, function_imports

    def _resolve_class_names(self) -> None:
        bases = strip_collection_suffix([es.name for es in self.raw.entity_sets])
        for entity_set in self.raw.entity_sets:
            self._entity_class_names[entity_set.name] = self.names.class_name(
                entity_set.name, candidate=bases[entity_set.name], derived_suffixes=ENTITY_DERIVED_SUFFIXES
            )
        for complex_type in self.raw.complex_types:
            self._complex_type_names[complex_type.qualified_name] = self.names.class_name(
                complex_type.qualified_name,
                candidate=class_name_candidate(complex_type.name),
                derived_suffixes=COMPLEX_TYPE_DERIVED_SUFFIXES,
            )

    def _resolve_function_names(self) -> None:
        # Function imports first: their names come straight from the service
        # API, factories are the ones that yield on a clash.
        for function_import in self.raw.function_imports:
            self._function_names[function_import.name] = self.names.function_name(function_import.name)
        for complex_type in self.raw.complex_types:
            self._factory_names[complex_type.qualified_name] = self.names.factory_name(
                complex_type.qualified_name, candidate=class_name_candidate(complex_type.name)
            )

    def check_complex_types(self) -> tuple[str, ...]:
        """Reject complex types that contain themselves at any depth."""
        graph = {
            ct.qualified_name: [
                self._find_complex_type(p.type, ct.qualified_name).qualified_name
                for p in ct.properties if not is_primitive(p.type)
            ]
            for ct in self.raw.complex_types
        }
        return dependency_order(graph)

    def _find_complex_type(self, type_name: str, construct: str) -> RawComplexType:
        complex_type = self.raw.find_complex_type(type_name)
        if complex_type is None:
            raise SemanticModelError(f"Unknown complex type '{type_name}'", construct)
        return complex_type

    def _class_for_entity_type(self, type_name: str, preferred_set: str | None = None) -> str | None:
        """Class name of the entity set exposing an entity type."""
        qualified = self.raw.qualify(type_name)
        candidates = [es for es in self.raw.entity_sets if self.raw.qualify(es.entity_type) == qualified]
        for entity_set in candidates:
            if entity_set.name == preferred_set:
                return self._entity_class_names[entity_set.name]
        if candidates:
            return self._entity_class_names[candidates[0].name]
        return None

    def _swagger_definition(self, namespace: str, name: str) -> dict[str, Any]:
        return self._definitions.get(f"{namespace}.{name}", {})

    def _property(
        self,
        prop: RawProperty,
        owner: str,
        keys: tuple[str, ...] = (),
        definition: dict[str, Any] | None = None,
    ) -> VdmProperty:
        is_key = prop.name in keys
        swagger_property = ((definition or {}).get("properties") or {}).get(prop.name) or {}
        description = swagger_property.get("description") or swagger_property.get("title") or prop.description

        if is_primitive(prop.type):
            mapping = map_primitive(prop.type)
            js_type, field_type, is_complex = mapping.js_type, mapping.field_type, False
        else:
            complex_type = self._find_complex_type(prop.type, f"{owner}.{prop.name}")
            js_type = self._complex_type_names[complex_type.qualified_name]
            field_type, is_complex = f"{js_type}Field", True

        return VdmProperty(
            original_name=prop.name,
            instance_property_name=self.names.instance_property_name(prop.name, owner),
            static_property_name=self.names.static_property_name(prop.name, owner),
            property_name_as_param=self.names.parameter_name(prop.name, owner),
            edm_type=prop.type,
            js_type=js_type,
            field_type=field_type,
            nullable=prop.nullable and not is_key,
            is_complex=is_complex,
            is_key=is_key,
            description=description,
        )

    def _complex_type(self, complex_type: RawComplexType) -> VdmComplexType:
        type_name = self._complex_type_names[complex_type.qualified_name]
        definition = self._swagger_definition(complex_type.namespace, complex_type.name)
        return VdmComplexType(
            type_name=type_name,
            original_name=complex_type.name,
            factory_name=self._factory_names[complex_type.qualified_name],
            field_type=f"{type_name}Field",
            properties=tuple(
                self._property(p, type_name, definition=definition) for p in complex_type.properties
            ),
            description=definition.get("description") or complex_type.description,
        )

    def _entity(self, entity_set: RawEntitySet) -> VdmEntity:
        entity_type = self.raw.find_entity_type(entity_set.entity_type)
        if entity_type is None:
            raise SemanticModelError(f"Unknown entity type '{entity_set.entity_type}'", entity_set.name)
        class_name = self._entity_class_names[entity_set.name]
        definition = self._swagger_definition(entity_type.namespace, entity_type.name)

        properties = tuple(
            self._property(p, class_name, entity_type.keys, definition) for p in entity_type.properties
        )
        navigation_properties = tuple(
            nav for nav in (
                self._navigation_property(entity_type, n, class_name)
                for n in entity_type.navigation_properties
            )
            if nav is not None
        )
        logger.debug("Entity %s: %d properties, %d links", class_name, len(properties), len(navigation_properties))
        return VdmEntity(
            entity_set_name=entity_set.name,
            entity_type_name=entity_type.name,
            class_name=class_name,
            properties=properties,
            keys=tuple(p for p in properties if p.is_key),
            navigation_properties=navigation_properties,
            description=(
                definition.get("description") or definition.get("title")
                or entity_set.description or entity_type.description
            ),
        )

    def _navigation_property(
        self, entity_type: RawEntityType, nav: RawNavigationProperty, owner: str
    ) -> VdmNavigationProperty | None:
        construct = f"{entity_type.qualified_name}.{nav.name}"
        association = self.raw.find_association(nav.relationship)
        end = association.end(nav.to_role) if association else None
        if end is None:
            raise SemanticModelError(f"Unresolved association role '{nav.to_role}'", construct)

        target = self._class_for_entity_type(end.type)
        if target is None:
            logger.warning("Skipping link %s: entity type %s has no entity set", construct, end.type)
            return None

        return VdmNavigationProperty(
            original_name=nav.name,
            instance_property_name=self.names.instance_property_name(nav.name, owner),
            static_property_name=self.names.static_property_name(nav.name, owner),
            to_entity_class_name=target,
            multiplicity="many" if end.multiplicity == "*" else "one",
        )

    def _parameter(self, param: RawParameter, owner: str) -> VdmParameter:
        if not is_primitive(param.type):
            raise SemanticModelError(
                f"Parameter '{param.name}' has non-primitive type '{param.type}'", f"FunctionImport {owner}"
            )
        return VdmParameter(
            original_name=param.name,
            parameter_name=self.names.parameter_name(param.name, owner),
            edm_type=param.type,
            js_type=map_primitive(param.type).js_type,
            nullable=param.nullable,
        )

    def _return_type(self, function_import: RawFunctionImport) -> VdmFunctionImportReturnType:
        if not function_import.return_type:
            return VoidReturnType()

        construct = f"FunctionImport {function_import.name}"
        inner, is_multi = parse_collection(function_import.return_type)
        if is_primitive(inner):
            return EdmReturnType(inner, map_primitive(inner).js_type, is_multi)

        complex_type = self.raw.find_complex_type(inner)
        if complex_type is not None:
            type_name = self._complex_type_names[complex_type.qualified_name]
            return ComplexTypeReturnType(type_name, f"{type_name}.build", is_multi)

        if self.raw.find_entity_type(inner) is not None:
            class_name = self._class_for_entity_type(inner, function_import.entity_set)
            if class_name is None:
                raise SemanticModelError(f"Return type '{inner}' is not exposed by any entity set", construct)
            return EntityReturnType(class_name, is_multi)

        raise SemanticModelError(f"Unresolvable return type '{function_import.return_type}'", construct)

    def _function_import(self, function_import: RawFunctionImport) -> VdmFunctionImport:
        function_name = self._function_names[function_import.name]
        operations = self._paths.get(f"/{function_import.name}", {})
        summary = next(
            (op["summary"] for op in operations.values() if isinstance(op, dict) and op.get("summary")),
            None,
        )
        return VdmFunctionImport(
            original_name=function_import.name,
            function_name=function_name,
            parameters=tuple(self._parameter(p, function_name) for p in function_import.parameters),
            return_type=self._return_type(function_import),
            http_method=function_import.http_method,
            description=summary or function_import.description,
        )


def build_service(
    raw: RawSchema,
    registry: NameRegistry,
    *,
    original_file_name: str,
    mapping: ServiceMapping | None = None,
    swagger: dict[str, Any] | None = None,
    edmx_path: str = "",
) -> VdmServiceMetadata:
    """Build the resolved model of one service.

    Explicit mapping values win over derived directory, package and path.
    """
    names = ServiceNameResolver(registry, raw.namespace)
    directory_name = names.module_name(original_file_name, mapping.directory_name if mapping else None)
    logger.info("Building model for service %s (%s)", raw.namespace, directory_name)

    builder = ServiceModelBuilder(raw, names, swagger)
    entities, complex_types, function_imports = builder.build()

    api_hub = None
    info = (swagger or {}).get("info") or {}
    if swagger:
        api_hub = ApiBusinessHubMetadata(
            url=f"{API_HUB_URL}/{original_file_name}",
            business_documentation_url=(swagger.get("externalDocs") or {}).get("url"),
        )

    return VdmServiceMetadata(
        namespace=raw.namespace,
        original_file_name=original_file_name,
        directory_name=directory_name,
        npm_package_name=mapping.npm_package_name if mapping else directory_name,
        service_path=mapping.service_path if mapping else f"{DEFAULT_SERVICE_PATH_PREFIX}/{original_file_name}",
        class_name=upper_camel(directory_name),
        entities=entities,
        complex_types=complex_types,
        function_imports=function_imports,
        edmx_path=edmx_path,
        description=info.get("description") or info.get("title") or raw.description,
        api_business_hub_metadata=api_hub,
    )
