"""Tests for the aggregator module."""

from odata_generator.aggregator import (
    aggregator_package_json,
    npm_compliant_name,
    service_mapping,
    service_package_json,
)
from odata_generator.options import ServiceMapping

from edmx_helpers import MULTIPLE_SCHEMAS_EDMX, TEST_SERVICE_EDMX, build


class TestServiceMapping:
    """service-mapping.json content."""

    def test_single_service(self, test_service):
        assert service_mapping([test_service]) == {
            "API_TEST_SRV": {
                "directoryName": "test-service",
                "servicePath": "/sap/opu/odata/sap/API_TEST_SRV",
                "npmPackageName": "test-service",
            }
        }

    def test_sorted_by_file_name(self):
        services = [
            build(TEST_SERVICE_EDMX.read_bytes(), "API_TEST_SRV"),
            build(MULTIPLE_SCHEMAS_EDMX.read_bytes(), "API_MULTIPLE_SCHEMAS_SRV"),
        ]
        assert list(service_mapping(services)) == ["API_MULTIPLE_SCHEMAS_SRV", "API_TEST_SRV"]

    def test_round_trip_through_service_mapping(self, test_service):
        entry = service_mapping([test_service])["API_TEST_SRV"]
        assert ServiceMapping.from_dict(entry).directory_name == "test-service"


class TestNpmCompliantName:

    def test_lower_case(self):
        assert npm_compliant_name("API Test Service!") == "api-test-service"

    def test_scoped_name_kept(self):
        assert npm_compliant_name("@sap/cloud-sdk-vdm-test-service") == "@sap/cloud-sdk-vdm-test-service"


class TestPackageJson:

    def test_service_package(self, test_service):
        package = service_package_json(test_service, "1.2.3")
        assert package["name"] == "test-service"
        assert package["version"] == "1.2.3"
        assert package["dependencies"] == {"@sap-cloud-sdk/core": "^1.2.3"}

    def test_aggregator(self):
        package = aggregator_package_json("All Services", ["b-service", "a-service"])
        assert package["name"] == "all-services"
        assert package["version"] == "1.0.0"
        assert list(package["dependencies"]) == ["a-service", "b-service"]
