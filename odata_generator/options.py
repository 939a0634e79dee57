"""Generator configuration and the service mapping file format."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

SERVICE_MAPPING_FILE = "service-mapping.json"


@dataclass(frozen=True)
class ServiceMapping:
    """Explicit names for one service, keyed by its original file name."""

    directory_name: str
    service_path: str
    npm_package_name: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ServiceMapping:
        return cls(
            directory_name=data["directoryName"],
            service_path=data["servicePath"],
            npm_package_name=data["npmPackageName"],
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "directoryName": self.directory_name,
            "servicePath": self.service_path,
            "npmPackageName": self.npm_package_name,
        }


@dataclass
class GeneratorOptions:
    """Options for one generation run."""

    input_dir: Path
    output_dir: Path
    service_mapping: Path | None = None
    use_swagger: bool = False
    force_overwrite: bool = False
    clear_output_dir: bool = False
    generate_package_json: bool = False
    version_in_package_json: str | None = None
    aggregator_npm_package_name: str | None = None
    aggregator_directory_name: str | None = None
    changelog_file: Path | None = None
    metadata_urls: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        self.input_dir = Path(self.input_dir)
        self.output_dir = Path(self.output_dir)
        if self.service_mapping is None:
            self.service_mapping = self.input_dir / SERVICE_MAPPING_FILE
        if self.aggregator_directory_name is None:
            self.aggregator_directory_name = self.aggregator_npm_package_name
