"""Tests for the schema_parser module."""

import pytest

from odata_generator.errors import SchemaParseError
from odata_generator.schema_parser import parse_schema

from edmx_helpers import MULTIPLE_SCHEMAS_EDMX, TEST_SERVICE_EDMX, edmx

_ENTITY = """
<EntityType Name="Item">
  <Key><PropertyRef Name="Id"/></Key>
  <Property Name="Id" Type="Edm.String" Nullable="false"/>
  <Property Name="Name" Type="Edm.String" MaxLength="40" sap:label="Item name"/>
  <Property Name="Price" Type="Edm.Decimal" Precision="13" Scale="3"/>
</EntityType>
"""

_CONTAINER = """
<EntityContainer Name="Container">
  <EntitySet Name="Items" EntityType="TEST_SRV.Item"/>
</EntityContainer>
"""


class TestParseTestService:
    """Parse the full test service fixture."""

    @classmethod
    def setup_class(cls):
        cls.raw = parse_schema(TEST_SERVICE_EDMX.read_bytes())

    def test_namespace(self):
        assert self.raw.namespace == "API_TEST_SRV"

    def test_entity_set_order(self):
        """Entity sets keep document order."""
        names = [es.name for es in self.raw.entity_sets]
        assert names[:3] == ["A_TestEntity", "A_TestEntityMultiLink", "A_TestEntityOtherMultiLink"]
        assert len(names) == 10

    def test_entity_type_includes_unused(self):
        """Entity types without entity set are still parsed."""
        assert self.raw.find_entity_type("API_TEST_SRV.A_TestEntityUnusedType") is not None

    def test_keys_and_properties(self):
        entity_type = self.raw.find_entity_type("API_TEST_SRV.A_TestEntityType")
        assert entity_type.keys == ("KeyPropertyGuid", "KeyPropertyString")
        assert len(entity_type.properties) == 18
        assert entity_type.properties[0].name == "KeyPropertyGuid"
        assert entity_type.properties[-1].type == "API_TEST_SRV.A_TestComplexType"

    def test_facets(self):
        entity_type = self.raw.find_entity_type("API_TEST_SRV.A_TestEntityType")
        decimal = next(p for p in entity_type.properties if p.name == "DecimalProperty")
        assert (decimal.precision, decimal.scale) == ("5", "2")

    def test_label_as_description(self):
        entity_type = self.raw.find_entity_type("API_TEST_SRV.A_TestEntityType")
        assert entity_type.description == "Test Entity"
        assert entity_type.properties[2].description == "String Property"

    def test_navigation_properties(self):
        entity_type = self.raw.find_entity_type("API_TEST_SRV.A_TestEntityType")
        assert [n.name for n in entity_type.navigation_properties] == [
            "to_MultiLink", "to_OtherMultiLink", "to_SingleLink",
        ]

    def test_association_end(self):
        association = self.raw.find_association("API_TEST_SRV.assoc_TestEntity_MultiLink")
        end = association.end("ToRole_TestEntity_MultiLink")
        assert end.multiplicity == "*"
        assert end.type == "API_TEST_SRV.A_TestEntityMultiLinkType"

    def test_complex_types(self):
        assert [ct.name for ct in self.raw.complex_types] == ["A_TestComplexType", "A_TestNestedComplexType"]
        assert len(self.raw.complex_types[0].properties) == 16

    def test_function_imports(self):
        by_name = {fi.name: fi for fi in self.raw.function_imports}
        assert by_name["TestFunctionImportNoReturnType"].return_type is None
        assert by_name["TestFunctionImportNoReturnType"].http_method == "POST"
        assert by_name["TestFunctionImportEdmReturnType"].return_type == "Edm.Boolean"
        assert by_name["TestFunctionImportEntityReturnType"].entity_set == "A_TestEntity"

    def test_function_import_parameters(self):
        fi = next(f for f in self.raw.function_imports if f.name == "TestFunctionImportMultipleParams")
        assert [p.name for p in fi.parameters] == [
            "StringParam", "NullableStringParam", "DecimalParam", "BooleanParam",
        ]
        assert fi.parameters[0].nullable is False
        assert fi.parameters[1].nullable is True


class TestMultipleSchemas:
    """Several Schema elements describe one service."""

    def test_merged(self):
        raw = parse_schema(MULTIPLE_SCHEMAS_EDMX.read_bytes())
        assert raw.namespaces == ("API_MULTIPLE_SCHEMAS_SRV", "API_MULTIPLE_SCHEMAS_SRV_Entities")
        assert len(raw.entity_sets) == 1
        assert raw.find_entity_type(raw.entity_sets[0].entity_type).name == "A_TestEntityType"

    def test_multiple_documents(self):
        types = edmx(_ENTITY)
        container = edmx(_CONTAINER, namespace="TEST_SRV_Container")
        raw = parse_schema(types, container)
        assert [es.name for es in raw.entity_sets] == ["Items"]

    def test_duplicate_entity_type_rejected(self):
        with pytest.raises(SchemaParseError, match="declared in both"):
            parse_schema(edmx(_ENTITY), edmx(_ENTITY, namespace="OTHER_SRV"))


class TestAliases:
    """Type references may use a schema alias."""

    def test_alias_resolves(self):
        doc = edmx(_ENTITY + _CONTAINER.replace("TEST_SRV.Item", "T.Item")).replace(
            'Namespace="TEST_SRV"', 'Namespace="TEST_SRV" Alias="T"'
        )
        raw = parse_schema(doc)
        assert raw.find_entity_type("T.Item").qualified_name == "TEST_SRV.Item"


class TestParseErrors:
    """Malformed metadata raises SchemaParseError."""

    def test_not_xml(self):
        with pytest.raises(SchemaParseError, match="not well-formed"):
            parse_schema("<Edmx><Schema")

    def test_no_document(self):
        with pytest.raises(SchemaParseError):
            parse_schema()

    def test_no_schema(self):
        with pytest.raises(SchemaParseError, match="no Schema"):
            parse_schema("<Edmx/>")

    def test_missing_property_type(self):
        doc = edmx('<EntityType Name="Item"><Property Name="Id"/></EntityType>')
        with pytest.raises(SchemaParseError, match="'Type'"):
            parse_schema(doc)

    def test_unknown_key(self):
        doc = edmx(
            '<EntityType Name="Item"><Key><PropertyRef Name="Missing"/></Key>'
            '<Property Name="Id" Type="Edm.String"/></EntityType>'
        )
        with pytest.raises(SchemaParseError, match="not a declared property"):
            parse_schema(doc)

    def test_unresolved_property_type(self):
        doc = edmx('<EntityType Name="Item"><Property Name="Data" Type="TEST_SRV.Missing"/></EntityType>')
        with pytest.raises(SchemaParseError, match="TEST_SRV.Item.Data"):
            parse_schema(doc)

    def test_unresolved_association(self):
        doc = edmx(
            '<EntityType Name="Item"><Property Name="Id" Type="Edm.String"/>'
            '<NavigationProperty Name="to_Other" Relationship="TEST_SRV.assoc_Missing"'
            ' FromRole="From" ToRole="To"/></EntityType>'
        )
        with pytest.raises(SchemaParseError, match="Unresolved association"):
            parse_schema(doc)

    def test_entity_set_of_unknown_type(self):
        doc = edmx(
            '<EntityContainer Name="C"><EntitySet Name="Items" EntityType="TEST_SRV.Missing"/></EntityContainer>'
        )
        with pytest.raises(SchemaParseError, match="EntitySet Items"):
            parse_schema(doc)

    def test_unresolved_return_type(self):
        doc = edmx(
            '<EntityContainer Name="C">'
            '<FunctionImport Name="DoIt" ReturnType="Collection(TEST_SRV.Missing)"/>'
            "</EntityContainer>"
        )
        with pytest.raises(SchemaParseError, match="FunctionImport DoIt"):
            parse_schema(doc)
