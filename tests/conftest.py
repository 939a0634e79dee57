"""Shared fixtures for the generator tests.

Metadata fixtures live in tests/resources/<SERVICE>/<SERVICE>.edmx. Tests
that run the whole pipeline copy them into tmp_path first, because a run
rewrites the service mapping file of its input directory.
"""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from odata_generator.model_builder import build_service
from odata_generator.naming import NameRegistry
from odata_generator.schema_parser import RawSchema, parse_schema
from odata_generator.vdm_types import VdmServiceMetadata

from edmx_helpers import RESOURCES, TEST_SERVICE_EDMX


@pytest.fixture(scope="session")
def test_service_raw() -> RawSchema:
    return parse_schema(TEST_SERVICE_EDMX.read_bytes())


@pytest.fixture(scope="session")
def test_service(test_service_raw: RawSchema) -> VdmServiceMetadata:
    return build_service(test_service_raw, NameRegistry(), original_file_name="API_TEST_SRV")


@pytest.fixture
def input_dir(tmp_path: Path) -> Path:
    """Writable copy of the metadata fixtures."""
    target = tmp_path / "input"
    shutil.copytree(RESOURCES, target)
    return target


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "output"
