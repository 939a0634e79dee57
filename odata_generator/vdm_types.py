"""Resolved service model consumed by the emitter and the aggregator.

Everything here is frozen; ordered collections are tuples in the order of
first appearance in the metadata.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


@dataclass(frozen=True)
class VdmProperty:
    original_name: str
    instance_property_name: str
    static_property_name: str
    property_name_as_param: str
    edm_type: str
    js_type: str
    field_type: str
    nullable: bool = True
    is_complex: bool = False
    is_key: bool = False
    description: str = ""


@dataclass(frozen=True)
class VdmNavigationProperty:
    original_name: str
    instance_property_name: str
    static_property_name: str
    to_entity_class_name: str
    multiplicity: str  # "one" or "many"

    @property
    def is_multi_link(self) -> bool:
        return self.multiplicity == "many"

    @property
    def link_class(self) -> str:
        return "Link" if self.is_multi_link else "OneToOneLink"


@dataclass(frozen=True)
class VdmEntity:
    entity_set_name: str
    entity_type_name: str
    class_name: str
    properties: tuple[VdmProperty, ...]
    keys: tuple[VdmProperty, ...]
    navigation_properties: tuple[VdmNavigationProperty, ...] = ()
    description: str = ""


@dataclass(frozen=True)
class VdmComplexType:
    type_name: str
    original_name: str
    factory_name: str
    field_type: str
    properties: tuple[VdmProperty, ...]
    description: str = ""


class ReturnTypeCategory(Enum):
    EDM_TYPE = "EDM_TYPE"
    ENTITY = "ENTITY"
    COMPLEX_TYPE = "COMPLEX_TYPE"
    VOID = "VOID"


@dataclass(frozen=True)
class EdmReturnType:
    edm_type: str
    js_type: str
    is_multi: bool = False

    category = ReturnTypeCategory.EDM_TYPE

    @property
    def return_type(self) -> str:
        return self.js_type

    @property
    def builder_function(self) -> str:
        return f"(val) => edmToTs(val, '{self.edm_type}')"

    @property
    def transformer_function(self) -> str:
        return "transformReturnValueForEdmTypeList" if self.is_multi else "transformReturnValueForEdmType"


@dataclass(frozen=True)
class EntityReturnType:
    entity_class_name: str
    is_multi: bool = False

    category = ReturnTypeCategory.ENTITY

    @property
    def return_type(self) -> str:
        return self.entity_class_name

    @property
    def builder_function(self) -> str:
        return self.entity_class_name

    @property
    def transformer_function(self) -> str:
        return "transformReturnValueForEntityList" if self.is_multi else "transformReturnValueForEntity"


@dataclass(frozen=True)
class ComplexTypeReturnType:
    type_name: str
    builder_function: str
    is_multi: bool = False

    category = ReturnTypeCategory.COMPLEX_TYPE

    @property
    def return_type(self) -> str:
        return self.type_name

    @property
    def transformer_function(self) -> str:
        return "transformReturnValueForComplexTypeList" if self.is_multi else "transformReturnValueForComplexType"


@dataclass(frozen=True)
class VoidReturnType:
    is_multi: bool = False

    category = ReturnTypeCategory.VOID

    @property
    def return_type(self) -> str:
        return "undefined"

    @property
    def builder_function(self) -> str:
        return ""

    @property
    def transformer_function(self) -> str:
        return "transformReturnValueForUndefined"


VdmFunctionImportReturnType = Union[EdmReturnType, EntityReturnType, ComplexTypeReturnType, VoidReturnType]


@dataclass(frozen=True)
class VdmParameter:
    original_name: str
    parameter_name: str
    edm_type: str
    js_type: str
    nullable: bool = True
    description: str = ""


@dataclass(frozen=True)
class VdmFunctionImport:
    original_name: str
    function_name: str
    parameters: tuple[VdmParameter, ...]
    return_type: VdmFunctionImportReturnType
    http_method: str = "GET"
    description: str = ""

    @property
    def parameters_type_name(self) -> str:
        return self.function_name[:1].upper() + self.function_name[1:] + "Parameters"


@dataclass(frozen=True)
class ApiBusinessHubMetadata:
    url: str
    business_documentation_url: str | None = None


@dataclass(frozen=True)
class VdmServiceMetadata:
    namespace: str
    original_file_name: str
    directory_name: str
    npm_package_name: str
    service_path: str
    class_name: str
    entities: tuple[VdmEntity, ...]
    complex_types: tuple[VdmComplexType, ...]
    function_imports: tuple[VdmFunctionImport, ...]
    edmx_path: str = ""
    description: str = ""
    api_business_hub_metadata: ApiBusinessHubMetadata | None = None

    def entity(self, class_name: str) -> VdmEntity | None:
        return next((e for e in self.entities if e.class_name == class_name), None)

    def complex_type(self, type_name: str) -> VdmComplexType | None:
        return next((c for c in self.complex_types if c.type_name == type_name), None)
