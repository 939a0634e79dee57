"""Combine the generated services of one run.

- service_mapping: the content of service-mapping.json, so a later run can
  reproduce the same directory names, service paths and package names
- aggregator_package_json: package.json of a package depending on all
  generated service packages
"""

from __future__ import annotations

import re
from typing import Any, Iterable

from .options import ServiceMapping
from .vdm_types import VdmServiceMetadata

DEFAULT_VERSION = "1.0.0"
CORE_PACKAGE = "@sap-cloud-sdk/core"

_NPM_INVALID_CHARS = re.compile(r"[^a-z0-9\-._~@/]")


def npm_compliant_name(name: str) -> str:
    """Lower-case a package name and replace characters npm rejects.

    'API Test Service!' -> 'api-test-service'
    """
    name = _NPM_INVALID_CHARS.sub("-", name.strip().lower())
    return re.sub(r"-{2,}", "-", name).strip("-")


def service_mapping(services: Iterable[VdmServiceMetadata]) -> dict[str, dict[str, str]]:
    """Mapping of original file name to the names used for its output."""
    return {
        service.original_file_name: ServiceMapping(
            directory_name=service.directory_name,
            service_path=service.service_path,
            npm_package_name=service.npm_package_name,
        ).to_dict()
        for service in sorted(services, key=lambda s: s.original_file_name)
    }


def service_package_json(service: VdmServiceMetadata, version: str | None = None) -> dict[str, Any]:
    """package.json of one generated service directory."""
    description = service.description or f"Typed client for the {service.namespace} OData service."
    return {
        "name": npm_compliant_name(service.npm_package_name),
        "version": version or DEFAULT_VERSION,
        "description": description,
        "main": "./index.js",
        "types": "./index.d.ts",
        "files": ["**/*.js", "**/*.js.map", "**/*.d.ts", "**/d.ts.map"],
        "dependencies": {CORE_PACKAGE: f"^{version or DEFAULT_VERSION}"},
    }


def aggregator_package_json(
    name: str,
    dependencies: Iterable[str],
    version: str | None = None,
) -> dict[str, Any]:
    """package.json of a package that depends on every generated service."""
    version = version or DEFAULT_VERSION
    return {
        "name": npm_compliant_name(name),
        "version": version,
        "description": "Aggregator package of all generated services.",
        "dependencies": {npm_compliant_name(d): f"^{version}" for d in sorted(dependencies)},
    }
