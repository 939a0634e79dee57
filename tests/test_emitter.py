"""Tests for service emission and rendering."""

from odata_generator.codegen import render_file, render_service
from odata_generator.emitter import emit_service
from odata_generator.structures import StructureKind

from edmx_helpers import TEST_SERVICE_EDMX, build, edmx


class TestEmitService:
    """File order and content of a whole service."""

    @classmethod
    def setup_class(cls):
        cls.service = build(TEST_SERVICE_EDMX.read_bytes(), "API_TEST_SRV")
        cls.files = emit_service(cls.service)
        cls.paths = [f.relative_path for f in cls.files]

    def test_entity_then_request_builder(self):
        assert self.paths[:4] == [
            "TestEntity", "TestEntityRequestBuilder", "TestEntityMultiLink", "TestEntityMultiLinkRequestBuilder",
        ]

    def test_complex_types_inner_first(self):
        assert self.paths.index("TestNestedComplexType") < self.paths.index("TestComplexType")

    def test_function_imports_batch_then_index(self):
        assert self.paths[-3:] == ["function-imports", "BatchRequest", "index"]

    def test_file_count(self):
        assert len(self.files) == 10 * 2 + 2 + 3

    def test_index_exports_everything(self):
        index = self.files[-1]
        exports = [s.module_specifier for s in index.statements_of_kind(StructureKind.EXPORT_DECLARATION)]
        assert exports == [f"./{p}" for p in self.paths[:-1]]

    def test_deterministic(self):
        """Emitting twice gives equal structures."""
        again = emit_service(build(TEST_SERVICE_EDMX.read_bytes(), "API_TEST_SRV"))
        assert again == self.files

    def test_no_function_imports_file(self):
        service = build(edmx(
            '<EntityType Name="Item"><Key><PropertyRef Name="Id"/></Key>'
            '<Property Name="Id" Type="Edm.String" Nullable="false"/></EntityType>'
            '<EntityContainer Name="C"><EntitySet Name="Items" EntityType="TEST_SRV.Item"/></EntityContainer>'
        ))
        assert [f.relative_path for f in emit_service(service)] == ["Items", "ItemsRequestBuilder", "BatchRequest", "index"]


class TestRender:
    """Jinja2 serialization of emitted files."""

    @classmethod
    def setup_class(cls):
        cls.service = build(TEST_SERVICE_EDMX.read_bytes(), "API_TEST_SRV")
        cls.rendered = render_service(cls.service, emit_service(cls.service))

    def test_file_names(self):
        assert "TestEntity.ts" in self.rendered
        assert "function-imports.ts" in self.rendered
        assert "index.ts" in self.rendered

    def test_header(self):
        text = self.rendered["TestEntity.ts"]
        assert text.startswith("/*\n * This is a generated file powered by odata-vdm-generator")
        assert "Service: API_TEST_SRV (API_TEST_SRV)" in text

    def test_imports(self):
        text = self.rendered["TestEntity.ts"]
        assert "import { BigNumber } from 'bignumber.js';" in text
        assert "import type { TestEntityMultiLinkType } from './TestEntityMultiLink';" in text

    def test_entity_class(self):
        text = self.rendered["TestEntity.ts"]
        assert "export class TestEntity extends Entity implements TestEntityType {" in text
        assert "  static _entityName = 'A_TestEntity';" in text
        assert "  keyPropertyGuid!: string;" in text
        assert "  stringProperty?: string;" in text
        assert "  static builder(): EntityBuilderType<TestEntity, TestEntityTypeForceMandatory> {" in text

    def test_entity_namespace(self):
        text = self.rendered["TestEntity.ts"]
        assert "export namespace TestEntity {" in text
        assert (
            "  export const KEY_PROPERTY_GUID: StringField<TestEntity> = "
            "new StringField('KeyPropertyGuid', TestEntity, 'Edm.Guid');"
        ) in text

    def test_docs(self):
        text = self.rendered["TestEntity.ts"]
        assert "  /**\n   * String Property\n   * @nullable\n   */\n  stringProperty?: string;" in text

    def test_complex_type(self):
        text = self.rendered["TestComplexType.ts"]
        assert "export class TestComplexTypeField<EntityT extends Entity> extends ComplexTypeField<EntityT> {" in text
        assert "  export function build(json: { [keys: string]: FieldType }): TestComplexType {" in text
        assert "export const createTestComplexType_1 = TestComplexType.build;" in text

    def test_function_imports(self):
        text = self.rendered["function-imports.ts"]
        assert "export function fContinue(parameters: FContinueParameters): " in text
        assert "export interface TestFunctionImportMultipleParamsParameters {" in text
        assert "  nullableStringParam?: string;" in text

    def test_index(self):
        text = self.rendered["index.ts"]
        assert "export * from './TestEntity';\nexport * from './TestEntityRequestBuilder';" in text
        assert text.endswith("export * from './function-imports';\nexport * from './BatchRequest';\n")

    def test_render_file_without_header(self):
        index = emit_service(self.service)[-1]
        assert render_file(index).startswith("/*\n */\n")


def _entities(*names: str, complex_types: str = "") -> str:
    types = "".join(
        f'<EntityType Name="{n}"><Key><PropertyRef Name="Id"/></Key>'
        f'<Property Name="Id" Type="Edm.String" Nullable="false"/></EntityType>'
        for n in names
    )
    sets = "".join(f'<EntitySet Name="{n}" EntityType="TEST_SRV.{n}"/>' for n in names)
    return edmx(f'{types}{complex_types}<EntityContainer Name="C">{sets}</EntityContainer>')


class TestGeneratedNamesUnique:
    """Class names never collide with the names generated from other classes."""

    def test_request_builder_name_taken_by_entity(self):
        service = build(_entities("A_Bar", "A_BarRequestBuilder"))
        assert [e.class_name for e in service.entities] == ["Bar", "BarRequestBuilder_1"]
        files = emit_service(service)
        paths = [f.relative_path for f in files]
        assert len(paths) == len(set(paths))
        assert len(render_service(service, files)) == len(files)

    def test_request_builder_entity_first(self):
        service = build(_entities("A_BarRequestBuilder", "A_Bar"))
        assert [e.class_name for e in service.entities] == ["BarRequestBuilder", "Bar_1"]

    def test_interface_name_taken_by_entity(self):
        service = build(_entities("A_Bar", "A_BarType"))
        assert [e.class_name for e in service.entities] == ["Bar", "BarType_1"]

    def test_complex_type_field_class_taken_by_entity(self):
        service = build(_entities(
            "A_FooField", complex_types='<ComplexType Name="Foo"><Property Name="Name" Type="Edm.String"/></ComplexType>'
        ))
        complex_type = service.complex_types[0]
        assert complex_type.type_name == "Foo_1"
        assert complex_type.field_type == "Foo_1Field"
