"""Locate and read service metadata.

Each .edmx/.xml file under the input directory is one service, named after
the file stem. A sibling <stem>.json holds its API documentation (Swagger)
when present. Remote services are fetched from their $metadata URL.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import httpx

from .errors import GeneratorError
from .options import ServiceMapping

logger = logging.getLogger(__name__)

METADATA_SUFFIXES = (".edmx", ".xml")
METADATA_SEGMENT = "$metadata"
FETCH_TIMEOUT = 30.0


@dataclass(frozen=True)
class ServiceSource:
    """Raw input of one service."""

    original_file_name: str
    documents: tuple[bytes, ...]
    edmx_path: str = ""
    swagger: dict[str, Any] | None = None


def discover_service_files(input_dir: Path) -> list[Path]:
    """All metadata files below input_dir, sorted by path."""
    return sorted(
        path for path in Path(input_dir).rglob("*")
        if path.is_file() and path.suffix.lower() in METADATA_SUFFIXES
    )


def swagger_shape_error(document: Any) -> str | None:
    """Describe why a Swagger document cannot be used, or None if it can.

    Only the parts read for descriptions are checked: info, externalDocs,
    definitions with their properties, and paths with their operations.
    """
    if not isinstance(document, dict):
        return f"expected a JSON object, got {type(document).__name__}"
    for key in ("info", "externalDocs", "definitions", "paths"):
        if not isinstance(document.get(key) or {}, dict):
            return f"'{key}' is not an object"
    for name, definition in (document.get("definitions") or {}).items():
        if not isinstance(definition, dict):
            return f"definition '{name}' is not an object"
        properties = definition.get("properties") or {}
        if not isinstance(properties, dict) or not all(isinstance(p, dict) for p in properties.values()):
            return f"definition '{name}' is malformed"
    for path, operations in (document.get("paths") or {}).items():
        if not isinstance(operations, dict):
            return f"path '{path}' is not an object"
    return None


def load_swagger(metadata_path: Path) -> dict[str, Any] | None:
    """Read the Swagger file next to a metadata file, if there is one.

    The file only contributes descriptions, so an unreadable or malformed
    one is ignored with a warning.
    """
    swagger_path = metadata_path.with_suffix(".json")
    if not swagger_path.is_file():
        logger.debug("No API documentation found for %s", metadata_path.name)
        return None
    try:
        with open(swagger_path, encoding="utf-8") as f:
            document = json.load(f)
    except ValueError as e:
        logger.warning("Ignoring API documentation %s: %s", swagger_path, e)
        return None
    error = swagger_shape_error(document)
    if error:
        logger.warning("Ignoring API documentation %s: %s", swagger_path, error)
        return None
    return document


def load_service_source(metadata_path: Path, use_swagger: bool = False) -> ServiceSource:
    return ServiceSource(
        original_file_name=metadata_path.stem,
        documents=(metadata_path.read_bytes(),),
        edmx_path=str(metadata_path),
        swagger=load_swagger(metadata_path) if use_swagger else None,
    )


def load_service_mapping(path: Path | None) -> dict[str, ServiceMapping]:
    """Read service-mapping.json; a missing file is an empty mapping."""
    if path is None or not Path(path).is_file():
        return {}
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise GeneratorError(f"Service mapping must be a JSON object, got {type(data).__name__}", str(path))
    try:
        return {name: ServiceMapping.from_dict(entry) for name, entry in data.items()}
    except (KeyError, TypeError) as e:
        raise GeneratorError(f"Malformed service mapping entry: {e}", str(path)) from e


def service_name_from_url(url: str) -> str:
    """https://host/sap/opu/odata/sap/API_TEST_SRV/$metadata -> API_TEST_SRV"""
    segments = [s for s in urlparse(url).path.split("/") if s]
    if segments and segments[-1] == METADATA_SEGMENT:
        segments = segments[:-1]
    if not segments:
        raise GeneratorError("Cannot derive a service name from URL", url)
    return segments[-1]


def metadata_url(url: str) -> str:
    url = url.rstrip("/")
    return url if url.endswith(METADATA_SEGMENT) else f"{url}/{METADATA_SEGMENT}"


async def fetch_metadata(url: str, client: httpx.AsyncClient | None = None) -> ServiceSource:
    """Download the metadata document of a remote service."""
    target = metadata_url(url)
    if client is None:
        async with httpx.AsyncClient(timeout=FETCH_TIMEOUT, follow_redirects=True) as own_client:
            return await fetch_metadata(url, own_client)

    logger.info("Fetching %s", target)
    response = await client.get(target, headers={"Accept": "application/xml"})
    response.raise_for_status()
    return ServiceSource(
        original_file_name=service_name_from_url(target),
        documents=(response.content,),
        edmx_path=target,
    )
