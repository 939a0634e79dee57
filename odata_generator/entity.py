"""Emit entity and request builder source files.

Entity file:    class <Class>, interfaces <Class>Type and
                <Class>TypeForceMandatory, namespace <Class> with one field
                descriptor constant per property and link.
Request builder: class <Class>RequestBuilder with getByKey, getAll,
                create, update and delete.

Field descriptors carry the wire name and the Edm type, e.g.
    new StringField('KeyPropertyGuid', TestEntity, 'Edm.Guid')
"""

from __future__ import annotations

from .imports import (
    complex_type_import_declarations,
    core_import_declaration,
    core_property_type_import_names,
    external_import_declarations,
    merge_import_declarations,
    relative_import_declaration,
)
from .structures import (
    ClassDeclaration,
    EmittedFile,
    ImportDeclaration,
    InterfaceDeclaration,
    MethodDeclaration,
    NamespaceDeclaration,
    Parameter,
    PropertyDeclaration,
    VariableStatement,
)
from .vdm_types import VdmEntity, VdmNavigationProperty, VdmProperty, VdmServiceMetadata


def _property_docs(prop: VdmProperty) -> tuple[str, ...]:
    docs = prop.description or f"{prop.original_name}."
    if prop.nullable:
        docs += "\n@nullable"
    return (docs,)


def _nav_type(nav: VdmNavigationProperty, suffix: str = "") -> str:
    target = nav.to_entity_class_name + suffix
    return f"{target}[]" if nav.is_multi_link else target


def entity_import_declarations(entity: VdmEntity) -> tuple[ImportDeclaration, ...]:
    properties = entity.properties
    links = entity.navigation_properties
    declarations = [
        relative_import_declaration(f"{entity.class_name}RequestBuilder", [f"{entity.class_name}RequestBuilder"]),
        *external_import_declarations(properties),
        core_import_declaration([
            "AllFields",
            "CustomField",
            "Entity",
            "EntityBuilderType",
            "Field",
            "Selectable",
            *(p.field_type for p in properties if not p.is_complex),
            *(nav.link_class for nav in links),
            *core_property_type_import_names(properties),
        ]),
        *complex_type_import_declarations(properties),
    ]
    for nav in links:
        if nav.to_entity_class_name == entity.class_name:
            continue
        target = nav.to_entity_class_name
        declarations.append(relative_import_declaration(target, [target]))
        declarations.append(relative_import_declaration(target, [f"{target}Type"], is_type_only=True))
    return merge_import_declarations(declarations)


def entity_class(entity: VdmEntity, service: VdmServiceMetadata) -> ClassDeclaration:
    class_name = entity.class_name
    static = (
        PropertyDeclaration("_entityName", "", is_static=True, initializer=f"'{entity.entity_set_name}'",
                            docs=(f"Technical entity name for {class_name}.",)),
        PropertyDeclaration("_serviceName", "", is_static=True, initializer=f"'{service.namespace}'",
                            docs=("@deprecated Use [[_defaultServicePath]] instead.",)),
        PropertyDeclaration("_defaultServicePath", "", is_static=True, initializer=f"'{service.service_path}'",
                            docs=("Default url path for the according service.",)),
    )
    fields = tuple(
        PropertyDeclaration(
            name=p.instance_property_name,
            type=p.js_type,
            has_question_token=p.nullable,
            has_exclamation_token=not p.nullable,
            docs=_property_docs(p),
        )
        for p in entity.properties
    )
    links = tuple(
        PropertyDeclaration(
            name=nav.instance_property_name,
            type=_nav_type(nav),
            has_question_token=not nav.is_multi_link,
            has_exclamation_token=nav.is_multi_link,
            docs=(f"{'Many' if nav.is_multi_link else 'One'}-to-{'Many' if nav.is_multi_link else 'One'} "
                  f"navigation property to the [[{nav.to_entity_class_name}]] entity.",),
        )
        for nav in entity.navigation_properties
    )
    key_values = ",\n".join(f"{k.original_name}: this.{k.instance_property_name}" for k in entity.keys)
    methods = (
        MethodDeclaration(
            name="builder",
            parameters=(),
            return_type=f"EntityBuilderType<{class_name}, {class_name}TypeForceMandatory>",
            statements=f"return Entity.entityBuilder({class_name});",
            is_static=True,
            docs=(f"Returns an entity builder to construct instances of `{class_name}`.",),
        ),
        MethodDeclaration(
            name="requestBuilder",
            parameters=(),
            return_type=f"{class_name}RequestBuilder",
            statements=f"return new {class_name}RequestBuilder();",
            is_static=True,
            docs=(f"Returns a request builder to construct requests for operations on the `{class_name}` entity type.",),
        ),
        MethodDeclaration(
            name="customField",
            parameters=(Parameter("fieldName", "string"),),
            return_type=f"CustomField<{class_name}>",
            statements=f"return Entity.customFieldSelector(fieldName, {class_name});",
            is_static=True,
            docs=(f"Returns a selectable object that allows the selection of custom field in a get request for the entity `{class_name}`.",),
        ),
        MethodDeclaration(
            name="getKeys",
            parameters=(),
            return_type="{ [key: string]: any }",
            statements=f"return {{\n{key_values}\n}};" if key_values else "return {};",
            docs=("Key property values of this entity, by their wire names.",),
        ),
        MethodDeclaration(
            name="toJSON",
            parameters=(),
            return_type="{ [key: string]: any }",
            statements="return { ...this, ...this._customFields };",
            docs=("Overwrites the default toJSON method so that all instance variables as well as all custom fields of the entity are returned.",),
        ),
    )
    return ClassDeclaration(
        name=class_name,
        extends="Entity",
        implements=(f"{class_name}Type",),
        properties=static + fields + links,
        methods=methods,
        docs=(entity.description or f"This class represents the entity \"{entity.entity_set_name}\" of service \"{service.namespace}\".",),
    )


def entity_interfaces(entity: VdmEntity) -> tuple[InterfaceDeclaration, InterfaceDeclaration]:
    class_name = entity.class_name
    links = tuple(
        PropertyDeclaration(nav.instance_property_name, _nav_type(nav, "Type"), has_question_token=True)
        for nav in entity.navigation_properties
    )
    optional = InterfaceDeclaration(
        name=f"{class_name}Type",
        properties=tuple(
            PropertyDeclaration(p.instance_property_name, p.js_type, has_question_token=p.nullable)
            for p in entity.properties
        ) + links,
    )
    mandatory = InterfaceDeclaration(
        name=f"{class_name}TypeForceMandatory",
        properties=tuple(
            PropertyDeclaration(p.instance_property_name, p.js_type) for p in entity.properties
        ) + links,
    )
    return optional, mandatory


def _field_descriptor(prop: VdmProperty, class_name: str) -> VariableStatement:
    if prop.is_complex:
        initializer = f"new {prop.field_type}('{prop.original_name}', {class_name})"
    else:
        initializer = f"new {prop.field_type}('{prop.original_name}', {class_name}, '{prop.edm_type}')"
    return VariableStatement(
        name=prop.static_property_name,
        type=f"{prop.field_type}<{class_name}>",
        initializer=initializer,
        docs=(f"Static representation of the [[{prop.instance_property_name}]] property for query construction.",),
    )


def _link_descriptor(nav: VdmNavigationProperty, class_name: str) -> VariableStatement:
    target = nav.to_entity_class_name
    return VariableStatement(
        name=nav.static_property_name,
        type=f"{nav.link_class}<{class_name}, {target}>",
        initializer=f"new {nav.link_class}('{nav.original_name}', {class_name}, {target})",
        docs=(f"Static representation of the [[{nav.instance_property_name}]] navigation property for query construction.",),
    )


def entity_namespace(entity: VdmEntity) -> NamespaceDeclaration:
    class_name = entity.class_name
    selectable = f"Selectable<{class_name}>"
    all_fields = ",\n".join(
        f"{class_name}.{member.static_property_name}"
        for member in (*entity.properties, *entity.navigation_properties)
    )
    key_fields = ",\n".join(f"{class_name}.{k.static_property_name}" for k in entity.keys)
    statements = (
        *(_field_descriptor(p, class_name) for p in entity.properties),
        *(_link_descriptor(nav, class_name) for nav in entity.navigation_properties),
        VariableStatement(
            name="_allFields",
            type=f"Array<{selectable}>",
            initializer=f"[\n{all_fields}\n]",
            docs=(f"All fields of the {class_name} entity.",),
        ),
        VariableStatement(
            name="ALL_FIELDS",
            type=f"AllFields<{class_name}>",
            initializer=f"new AllFields('*', {class_name})",
            docs=("All fields selector.",),
        ),
        VariableStatement(
            name="_keyFields",
            type=f"Array<{selectable}>",
            initializer=f"[{key_fields}]",
            docs=(f"All key fields of the {class_name} entity.",),
        ),
        VariableStatement(
            name="_keys",
            type=f"{{ [keys: string]: {selectable} }}",
            initializer=(
                f"{class_name}._keyFields.reduce((acc: {{ [keys: string]: {selectable} }}, field: {selectable}) => {{\n"
                "acc[field.fieldName] = field;\n"
                "return acc;\n"
                "}, {})"
            ),
            docs=(f"Mapping of all key field names to the respective static field property {class_name}.",),
        ),
    )
    return NamespaceDeclaration(name=class_name, statements=statements)


def entity_source_file(entity: VdmEntity, service: VdmServiceMetadata) -> EmittedFile:
    optional, mandatory = entity_interfaces(entity)
    return EmittedFile(
        relative_path=entity.class_name,
        import_declarations=entity_import_declarations(entity),
        statements=(
            entity_class(entity, service),
            optional,
            mandatory,
            entity_namespace(entity),
        ),
    )


def _key_parameters(entity: VdmEntity) -> tuple[Parameter, ...]:
    return tuple(Parameter(k.property_name_as_param, k.js_type) for k in entity.keys)


def _key_object(entity: VdmEntity) -> str:
    return ",\n".join(f"{k.original_name}: {k.property_name_as_param}" for k in entity.keys)


def request_builder_source_file(entity: VdmEntity) -> EmittedFile:
    class_name = entity.class_name
    key_parameters = _key_parameters(entity)
    methods = []
    if key_parameters:
        methods.append(MethodDeclaration(
            name="getByKey",
            parameters=key_parameters,
            return_type=f"GetByKeyRequestBuilder<{class_name}>",
            statements=f"return new GetByKeyRequestBuilder({class_name}, {{\n{_key_object(entity)}\n}});",
            docs=(f"Returns a request builder for retrieving one `{class_name}` entity based on its keys.",),
        ))
    methods.append(MethodDeclaration(
        name="getAll",
        parameters=(),
        return_type=f"GetAllRequestBuilder<{class_name}>",
        statements=f"return new GetAllRequestBuilder({class_name});",
        docs=(f"Returns a request builder for querying all `{class_name}` entities.",),
    ))
    methods.append(MethodDeclaration(
        name="create",
        parameters=(Parameter("entity", class_name),),
        return_type=f"CreateRequestBuilder<{class_name}>",
        statements=f"return new CreateRequestBuilder({class_name}, entity);",
        docs=(f"Returns a request builder for creating a `{class_name}` entity.",),
    ))
    methods.append(MethodDeclaration(
        name="update",
        parameters=(Parameter("entity", class_name),),
        return_type=f"UpdateRequestBuilder<{class_name}>",
        statements=f"return new UpdateRequestBuilder({class_name}, entity);",
        docs=(f"Returns a request builder for updating an entity of type `{class_name}`.",),
    ))
    if key_parameters:
        methods.append(MethodDeclaration(
            name="delete",
            parameters=key_parameters,
            return_type=f"DeleteRequestBuilder<{class_name}>",
            statements=f"return new DeleteRequestBuilder({class_name}, {{\n{_key_object(entity)}\n}});",
            docs=(f"Returns a request builder for deleting an entity of type `{class_name}`.",),
        ))

    core_names = ["CreateRequestBuilder", "GetAllRequestBuilder", "RequestBuilder", "UpdateRequestBuilder"]
    if key_parameters:
        core_names += ["DeleteRequestBuilder", "GetByKeyRequestBuilder"]
    imports = merge_import_declarations([
        *external_import_declarations(entity.keys),
        core_import_declaration([*core_names, *core_property_type_import_names(entity.keys)]),
        relative_import_declaration(class_name, [class_name]),
    ])
    return EmittedFile(
        relative_path=f"{class_name}RequestBuilder",
        import_declarations=imports,
        statements=(
            ClassDeclaration(
                name=f"{class_name}RequestBuilder",
                extends=f"RequestBuilder<{class_name}>",
                methods=tuple(methods),
                docs=(f"Request builder class for operations supported on the [[{class_name}]] entity.",),
            ),
        ),
    )
