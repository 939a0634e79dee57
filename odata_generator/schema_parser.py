"""Parse EDMX/CSDL metadata into a raw structural schema.

Handles:
- Multiple Schema elements, across one or more documents (merged)
- EntityType keys, properties and navigation properties
- ComplexType properties
- Association ends and multiplicities
- EntitySets and FunctionImports from every EntityContainer
- Schema aliases in qualified type names
- sap:label / Documentation descriptions

The result mirrors the document one to one; names are not resolved and no
TypeScript typing happens here. Declaration order is preserved everywhere.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from lxml import etree

from .edm_types import is_primitive, parse_collection
from .errors import SchemaParseError

SAP_NS = "http://www.sap.com/Protocols/SAPData"
METADATA_NS = "http://schemas.microsoft.com/ado/2007/08/dataservices/metadata"


@dataclass(frozen=True)
class RawProperty:
    name: str
    type: str
    nullable: bool = True
    description: str = ""
    max_length: str | None = None
    precision: str | None = None
    scale: str | None = None


@dataclass(frozen=True)
class RawNavigationProperty:
    name: str
    relationship: str
    from_role: str
    to_role: str


@dataclass(frozen=True)
class RawEntityType:
    name: str
    namespace: str
    properties: tuple[RawProperty, ...]
    keys: tuple[str, ...]
    navigation_properties: tuple[RawNavigationProperty, ...] = ()
    description: str = ""

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}"


@dataclass(frozen=True)
class RawComplexType:
    name: str
    namespace: str
    properties: tuple[RawProperty, ...]
    description: str = ""

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}"


@dataclass(frozen=True)
class RawAssociationEnd:
    role: str
    type: str
    multiplicity: str


@dataclass(frozen=True)
class RawAssociation:
    name: str
    namespace: str
    ends: tuple[RawAssociationEnd, ...]

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}"

    def end(self, role: str) -> RawAssociationEnd | None:
        return next((e for e in self.ends if e.role == role), None)


@dataclass(frozen=True)
class RawEntitySet:
    name: str
    entity_type: str
    description: str = ""


@dataclass(frozen=True)
class RawParameter:
    name: str
    type: str
    nullable: bool = True
    mode: str = "In"


@dataclass(frozen=True)
class RawFunctionImport:
    name: str
    parameters: tuple[RawParameter, ...]
    return_type: str | None
    http_method: str = "GET"
    entity_set: str | None = None
    description: str = ""


@dataclass(frozen=True)
class RawSchema:
    """Merged structural view of every schema describing one service."""

    namespaces: tuple[str, ...]
    entity_types: tuple[RawEntityType, ...]
    complex_types: tuple[RawComplexType, ...]
    associations: tuple[RawAssociation, ...]
    entity_sets: tuple[RawEntitySet, ...]
    function_imports: tuple[RawFunctionImport, ...]
    aliases: tuple[tuple[str, str], ...] = ()
    description: str = ""

    @property
    def namespace(self) -> str:
        return self.namespaces[0]

    def qualify(self, type_name: str) -> str:
        """Replace a schema alias prefix with the namespace it stands for."""
        for alias, namespace in self.aliases:
            if type_name.startswith(alias + "."):
                return namespace + type_name[len(alias):]
        return type_name

    def find_entity_type(self, type_name: str) -> RawEntityType | None:
        qualified = self.qualify(type_name)
        return next((t for t in self.entity_types if t.qualified_name == qualified), None)

    def find_complex_type(self, type_name: str) -> RawComplexType | None:
        qualified = self.qualify(type_name)
        return next((t for t in self.complex_types if t.qualified_name == qualified), None)

    def find_association(self, name: str) -> RawAssociation | None:
        qualified = self.qualify(name)
        return next((a for a in self.associations if a.qualified_name == qualified), None)


def _local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def _children(element: etree._Element, local_name: str) -> Iterator[etree._Element]:
    """Direct children with the given local name, in document order."""
    for child in element:
        if isinstance(child.tag, str) and _local_name(child) == local_name:
            yield child


def _require(element: etree._Element, attribute: str, construct: str) -> str:
    value = element.get(attribute)
    if not value:
        raise SchemaParseError(
            f"Missing required attribute '{attribute}' on {_local_name(element)}",
            construct,
        )
    return value


def _is_true(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() == "true"


def _description(element: etree._Element) -> str:
    """Label or documentation text attached to an element, if any."""
    label = element.get(f"{{{SAP_NS}}}label")
    if label:
        return label.strip()
    for documentation in _children(element, "Documentation"):
        for tag in ("Summary", "LongDescription"):
            for node in _children(documentation, tag):
                if node.text and node.text.strip():
                    return node.text.strip()
    return ""


def _parse_document(document: str | bytes) -> etree._Element:
    if isinstance(document, str):
        document = document.encode("utf-8")
    parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)
    try:
        return etree.fromstring(document, parser=parser)
    except etree.XMLSyntaxError as e:
        raise SchemaParseError(f"Metadata is not well-formed XML: {e}") from e


def _parse_properties(element: etree._Element, owner: str) -> tuple[RawProperty, ...]:
    properties = []
    for prop in _children(element, "Property"):
        name = _require(prop, "Name", owner)
        properties.append(RawProperty(
            name=name,
            type=_require(prop, "Type", f"{owner}.{name}"),
            nullable=_is_true(prop.get("Nullable"), True),
            description=_description(prop),
            max_length=prop.get("MaxLength"),
            precision=prop.get("Precision"),
            scale=prop.get("Scale"),
        ))
    return tuple(properties)


def _parse_entity_type(element: etree._Element, namespace: str) -> RawEntityType:
    name = _require(element, "Name", f"{namespace} EntityType")
    construct = f"{namespace}.{name}"
    keys: list[str] = []
    for key in _children(element, "Key"):
        keys.extend(_require(ref, "Name", construct) for ref in _children(key, "PropertyRef"))

    navigation_properties = []
    for nav in _children(element, "NavigationProperty"):
        nav_name = _require(nav, "Name", construct)
        nav_construct = f"{construct}.{nav_name}"
        navigation_properties.append(RawNavigationProperty(
            name=nav_name,
            relationship=_require(nav, "Relationship", nav_construct),
            from_role=_require(nav, "FromRole", nav_construct),
            to_role=_require(nav, "ToRole", nav_construct),
        ))

    properties = _parse_properties(element, construct)
    property_names = {p.name for p in properties}
    for key in keys:
        if key not in property_names:
            raise SchemaParseError(f"Key '{key}' is not a declared property", construct)

    return RawEntityType(
        name=name,
        namespace=namespace,
        properties=properties,
        keys=tuple(keys),
        navigation_properties=tuple(navigation_properties),
        description=_description(element),
    )


def _parse_association(element: etree._Element, namespace: str) -> RawAssociation:
    name = _require(element, "Name", f"{namespace} Association")
    construct = f"{namespace}.{name}"
    ends = tuple(
        RawAssociationEnd(
            role=_require(end, "Role", construct),
            type=_require(end, "Type", construct),
            multiplicity=_require(end, "Multiplicity", construct),
        )
        for end in _children(element, "End")
    )
    return RawAssociation(name=name, namespace=namespace, ends=ends)


def _parse_function_import(element: etree._Element) -> RawFunctionImport:
    name = _require(element, "Name", "FunctionImport")
    parameters = []
    for param in _children(element, "Parameter"):
        param_name = _require(param, "Name", f"FunctionImport {name}")
        mode = param.get("Mode") or param.get(f"{{{SAP_NS}}}Mode") or "In"
        if mode.lower() not in ("in", "inout"):
            continue
        parameters.append(RawParameter(
            name=param_name,
            type=_require(param, "Type", f"FunctionImport {name}.{param_name}"),
            nullable=_is_true(param.get("Nullable"), True),
            mode=mode,
        ))

    http_method = element.get(f"{{{METADATA_NS}}}HttpMethod") or element.get("HttpMethod") or "GET"
    return RawFunctionImport(
        name=name,
        parameters=tuple(parameters),
        return_type=element.get("ReturnType"),
        http_method=http_method.upper(),
        entity_set=element.get("EntitySet"),
        description=_description(element),
    )


def _check_unique(items: Iterable, kind: str) -> None:
    """Reject two declarations sharing an unqualified name."""
    seen: dict[str, str] = {}
    for item in items:
        if item.name in seen:
            raise SchemaParseError(
                f"{kind} '{item.name}' is declared in both '{seen[item.name]}' and '{item.namespace}'",
                item.qualified_name,
            )
        seen[item.name] = item.namespace


def _validate(schema: RawSchema) -> None:
    """Check that every type reference resolves inside the merged schema."""
    for complex_type in schema.complex_types:
        for prop in complex_type.properties:
            _check_property_type(schema, prop, f"{complex_type.qualified_name}.{prop.name}")

    for entity_type in schema.entity_types:
        for prop in entity_type.properties:
            _check_property_type(schema, prop, f"{entity_type.qualified_name}.{prop.name}")
        for nav in entity_type.navigation_properties:
            construct = f"{entity_type.qualified_name}.{nav.name}"
            association = schema.find_association(nav.relationship)
            if association is None:
                raise SchemaParseError(f"Unresolved association '{nav.relationship}'", construct)
            for role in (nav.from_role, nav.to_role):
                end = association.end(role)
                if end is None:
                    raise SchemaParseError(
                        f"Unresolved association role '{role}' of '{nav.relationship}'", construct
                    )
                if schema.find_entity_type(end.type) is None:
                    raise SchemaParseError(
                        f"Association end '{role}' references unknown entity type '{end.type}'",
                        construct,
                    )

    for entity_set in schema.entity_sets:
        if schema.find_entity_type(entity_set.entity_type) is None:
            raise SchemaParseError(
                f"Unknown entity type '{entity_set.entity_type}'", f"EntitySet {entity_set.name}"
            )

    for function_import in schema.function_imports:
        construct = f"FunctionImport {function_import.name}"
        for param in function_import.parameters:
            _check_reference(schema, param.type, construct)
        if function_import.return_type:
            _check_reference(schema, function_import.return_type, construct)


def _check_property_type(schema: RawSchema, prop: RawProperty, construct: str) -> None:
    if is_primitive(prop.type):
        return
    if schema.find_complex_type(prop.type) is None:
        raise SchemaParseError(f"Unparsable type reference '{prop.type}'", construct)


def _check_reference(schema: RawSchema, type_name: str, construct: str) -> None:
    inner, _ = parse_collection(type_name)
    if is_primitive(inner):
        return
    if schema.find_entity_type(inner) is None and schema.find_complex_type(inner) is None:
        raise SchemaParseError(f"Unresolved type reference '{type_name}'", construct)


def parse_schema(*documents: str | bytes) -> RawSchema:
    """Parse one or more metadata documents describing a single service."""
    if not documents:
        raise SchemaParseError("No metadata document given")

    namespaces: list[str] = []
    aliases: list[tuple[str, str]] = []
    entity_types: list[RawEntityType] = []
    complex_types: list[RawComplexType] = []
    associations: list[RawAssociation] = []
    entity_sets: list[RawEntitySet] = []
    function_imports: list[RawFunctionImport] = []
    description = ""

    for document in documents:
        root = _parse_document(document)
        schemas = [el for el in root.iter() if isinstance(el.tag, str) and _local_name(el) == "Schema"]
        if not schemas:
            raise SchemaParseError("Document contains no Schema element")

        for schema in schemas:
            namespace = _require(schema, "Namespace", "Schema")
            if namespace not in namespaces:
                namespaces.append(namespace)
            if schema.get("Alias"):
                aliases.append((schema.get("Alias"), namespace))
            description = description or _description(schema)

            entity_types.extend(_parse_entity_type(el, namespace) for el in _children(schema, "EntityType"))
            for el in _children(schema, "ComplexType"):
                name = _require(el, "Name", f"{namespace} ComplexType")
                complex_types.append(RawComplexType(
                    name=name,
                    namespace=namespace,
                    properties=_parse_properties(el, f"{namespace}.{name}"),
                    description=_description(el),
                ))
            associations.extend(_parse_association(el, namespace) for el in _children(schema, "Association"))

            for container in _children(schema, "EntityContainer"):
                for el in _children(container, "EntitySet"):
                    name = _require(el, "Name", "EntitySet")
                    entity_sets.append(RawEntitySet(
                        name=name,
                        entity_type=_require(el, "EntityType", f"EntitySet {name}"),
                        description=_description(el),
                    ))
                function_imports.extend(
                    _parse_function_import(el) for el in _children(container, "FunctionImport")
                )

    _check_unique(entity_types, "EntityType")
    _check_unique(complex_types, "ComplexType")
    _check_unique(associations, "Association")

    schema = RawSchema(
        namespaces=tuple(namespaces),
        entity_types=tuple(entity_types),
        complex_types=tuple(complex_types),
        associations=tuple(associations),
        entity_sets=tuple(entity_sets),
        function_imports=tuple(function_imports),
        aliases=tuple(aliases),
        description=description,
    )
    _validate(schema)
    return schema
