"""Tests for the loader module."""

import json

import httpx
import pytest

from odata_generator.errors import GeneratorError
from odata_generator.loader import (
    discover_service_files,
    fetch_metadata,
    load_service_mapping,
    load_service_source,
    metadata_url,
    service_name_from_url,
    swagger_shape_error,
)

from edmx_helpers import TEST_SERVICE_EDMX


class TestDiscovery:
    """Metadata files are found recursively."""

    def test_fixture_services(self, input_dir):
        names = [p.stem for p in discover_service_files(input_dir)]
        assert names == ["API_MULTIPLE_SCHEMAS_SRV", "API_TEST_SRV"]

    def test_swagger_files_ignored(self, input_dir):
        assert all(p.suffix == ".edmx" for p in discover_service_files(input_dir))

    def test_xml_suffix(self, tmp_path):
        (tmp_path / "nested").mkdir()
        (tmp_path / "nested" / "SERVICE.XML").write_text("<Edmx/>")
        assert [p.name for p in discover_service_files(tmp_path)] == ["SERVICE.XML"]


class TestLoadServiceSource:

    def test_without_swagger(self):
        source = load_service_source(TEST_SERVICE_EDMX)
        assert source.original_file_name == "API_TEST_SRV"
        assert source.swagger is None
        assert source.documents[0].startswith(b"<?xml")

    def test_with_swagger(self):
        source = load_service_source(TEST_SERVICE_EDMX, use_swagger=True)
        assert source.swagger["info"]["title"] == "Test Service"

    def test_missing_swagger(self, input_dir):
        source = load_service_source(
            input_dir / "API_MULTIPLE_SCHEMAS_SRV" / "API_MULTIPLE_SCHEMAS_SRV.edmx", use_swagger=True
        )
        assert source.swagger is None

    def test_malformed_swagger(self, tmp_path):
        metadata = tmp_path / "SERVICE.edmx"
        metadata.write_bytes(TEST_SERVICE_EDMX.read_bytes())
        (tmp_path / "SERVICE.json").write_text(json.dumps({"definitions": []}))
        assert load_service_source(metadata, use_swagger=True).swagger is None


class TestSwaggerShape:
    """Only documents the model builder can read are accepted."""

    def test_valid(self):
        assert swagger_shape_error({"info": {}, "definitions": {"NS.T": {"properties": {"a": {}}}}}) is None

    def test_empty_sections(self):
        assert swagger_shape_error({"info": None, "paths": {}}) is None

    def test_not_an_object(self):
        assert "JSON object" in swagger_shape_error([])

    def test_definitions_list(self):
        assert swagger_shape_error({"definitions": []}) == "'definitions' is not an object"

    def test_malformed_definition(self):
        assert swagger_shape_error({"definitions": {"NS.T": {"properties": {"a": "text"}}}}) is not None

    def test_malformed_path(self):
        assert swagger_shape_error({"paths": {"/Fn": []}}) == "path '/Fn' is not an object"


class TestLoadServiceMapping:

    def test_missing_file(self, tmp_path):
        assert load_service_mapping(tmp_path / "service-mapping.json") == {}

    def test_entries(self, tmp_path):
        path = tmp_path / "service-mapping.json"
        path.write_text(json.dumps({
            "API_TEST_SRV": {
                "directoryName": "custom-dir",
                "servicePath": "/custom",
                "npmPackageName": "@custom/pkg",
            }
        }))
        mapping = load_service_mapping(path)
        assert mapping["API_TEST_SRV"].npm_package_name == "@custom/pkg"

    def test_malformed_entry(self, tmp_path):
        path = tmp_path / "service-mapping.json"
        path.write_text(json.dumps({"API_TEST_SRV": {"directoryName": "x"}}))
        with pytest.raises(GeneratorError, match="Malformed"):
            load_service_mapping(path)

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "service-mapping.json"
        path.write_text("[]")
        with pytest.raises(GeneratorError):
            load_service_mapping(path)


class TestUrls:

    def test_service_name(self):
        assert service_name_from_url("https://host/sap/opu/odata/sap/API_TEST_SRV/$metadata") == "API_TEST_SRV"
        assert service_name_from_url("https://host/sap/opu/odata/sap/API_TEST_SRV/") == "API_TEST_SRV"

    def test_no_service_name(self):
        with pytest.raises(GeneratorError):
            service_name_from_url("https://host/$metadata")

    def test_metadata_url(self):
        assert metadata_url("https://host/API_TEST_SRV/") == "https://host/API_TEST_SRV/$metadata"
        assert metadata_url("https://host/API_TEST_SRV/$metadata") == "https://host/API_TEST_SRV/$metadata"


class TestFetchMetadata:
    """Remote metadata through httpx, served by a MockTransport."""

    async def test_fetch(self):
        body = TEST_SERVICE_EDMX.read_bytes()

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/sap/opu/odata/sap/API_TEST_SRV/$metadata"
            return httpx.Response(200, content=body)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            source = await fetch_metadata("https://host/sap/opu/odata/sap/API_TEST_SRV", client)
        assert source.original_file_name == "API_TEST_SRV"
        assert source.documents == (body,)
        assert source.edmx_path.endswith("/$metadata")

    async def test_http_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404))
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await fetch_metadata("https://host/API_TEST_SRV/$metadata", client)
