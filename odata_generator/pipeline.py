"""Run a generation: discover services, generate each one, aggregate.

Directory names are resolved up front, in a fixed order (mapped services
first, then the rest by file name), so the run-wide names never depend on
which worker finishes first. Each service then runs parse -> build ->
emit -> render -> write in its own worker thread. A failing service is
logged and recorded in the report; the others still complete.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

import httpx

from .aggregator import aggregator_package_json, service_mapping, service_package_json
from .codegen import (
    PACKAGE_JSON,
    clear_output_dir,
    copy_changelog,
    json_text,
    render_service,
    write_json,
    write_service,
)
from .emitter import emit_service
from .errors import GeneratorError
from .loader import (
    FETCH_TIMEOUT,
    ServiceSource,
    discover_service_files,
    fetch_metadata,
    load_service_mapping,
    load_service_source,
)
from .model_builder import build_service
from .naming import NameRegistry, resolve_module_name
from .options import GeneratorOptions, ServiceMapping
from .schema_parser import parse_schema
from .vdm_types import VdmServiceMetadata

logger = logging.getLogger(__name__)

ServiceInput = Union[Path, ServiceSource]


@dataclass(frozen=True)
class ServiceFailure:
    service: str
    error: str


@dataclass
class GenerationReport:
    services: list[VdmServiceMetadata] = field(default_factory=list)
    failures: list[ServiceFailure] = field(default_factory=list)
    written: list[Path] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def _original_name(item: ServiceInput) -> str:
    return item.stem if isinstance(item, Path) else item.original_file_name


def _load(item: ServiceInput, use_swagger: bool) -> ServiceSource:
    if isinstance(item, ServiceSource):
        return item
    return load_service_source(item, use_swagger)


def generate_service(
    item: ServiceInput,
    registry: NameRegistry,
    options: GeneratorOptions,
    mapping: ServiceMapping | None = None,
) -> tuple[VdmServiceMetadata, list[Path]]:
    """Generate one service and write its files."""
    source = _load(item, options.use_swagger)
    raw = parse_schema(*source.documents)
    service = build_service(
        raw,
        registry,
        original_file_name=source.original_file_name,
        mapping=mapping,
        swagger=source.swagger,
        edmx_path=source.edmx_path,
    )
    rendered = render_service(service, emit_service(service))
    if options.generate_package_json:
        rendered[PACKAGE_JSON] = json_text(service_package_json(service, options.version_in_package_json))

    written = write_service(options.output_dir, service, rendered, options.force_overwrite)
    if options.changelog_file:
        copied = copy_changelog(options.changelog_file, Path(options.output_dir) / service.directory_name)
        if copied:
            written.append(copied)
    return service, written


async def _fetch_remote(urls: tuple[str, ...], report: GenerationReport) -> list[ServiceSource]:
    if not urls:
        return []
    async with httpx.AsyncClient(timeout=FETCH_TIMEOUT, follow_redirects=True) as client:
        results = await asyncio.gather(*(fetch_metadata(url, client) for url in urls), return_exceptions=True)

    sources = []
    for url, result in zip(urls, results):
        if isinstance(result, (httpx.HTTPError, GeneratorError)):
            logger.error("Could not fetch metadata from %s: %s", url, result)
            report.failures.append(ServiceFailure(url, str(result)))
        elif isinstance(result, BaseException):
            raise result
        else:
            sources.append(result)
    return sources


def _resolve_directory_names(
    items: list[ServiceInput],
    registry: NameRegistry,
    mappings: dict[str, ServiceMapping],
    report: GenerationReport,
) -> list[ServiceInput]:
    """Reserve the directory name of every service, mapped ones first."""
    ordered = sorted(items, key=lambda i: (_original_name(i) not in mappings, _original_name(i)))
    accepted: list[ServiceInput] = []
    seen: set[str] = set()
    for item in ordered:
        name = _original_name(item)
        if name in seen:
            logger.error("Generation failed for service %s: duplicate service name", name)
            report.failures.append(ServiceFailure(name, "Duplicate service name"))
            continue
        seen.add(name)
        mapping = mappings.get(name)
        try:
            resolve_module_name(registry, name, mapping.directory_name if mapping else None)
        except GeneratorError as e:
            logger.error("Generation failed for service %s: %s", name, e)
            report.failures.append(ServiceFailure(name, str(e)))
            continue
        accepted.append(item)
    return accepted


async def generate(options: GeneratorOptions) -> GenerationReport:
    """Generate every service of the input directory and the given URLs."""
    report = GenerationReport()
    if options.clear_output_dir:
        clear_output_dir(options.output_dir)

    mappings = load_service_mapping(options.service_mapping)
    items: list[ServiceInput] = []
    if options.input_dir.is_dir():
        items.extend(discover_service_files(options.input_dir))
    else:
        logger.warning("Input directory %s does not exist", options.input_dir)
    items.extend(await _fetch_remote(options.metadata_urls, report))
    logger.info("Found %d service(s)", len(items))

    registry = NameRegistry()
    items = _resolve_directory_names(items, registry, mappings, report)

    async def run(item: ServiceInput) -> None:
        name = _original_name(item)
        try:
            service, written = await asyncio.to_thread(
                generate_service, item, registry, options, mappings.get(name)
            )
        except (GeneratorError, OSError, ValueError) as e:
            logger.error("Generation failed for service %s: %s", name, e)
            report.failures.append(ServiceFailure(name, str(e)))
            return
        report.services.append(service)
        report.written.extend(written)

    await asyncio.gather(*(run(item) for item in items))
    report.services.sort(key=lambda s: s.original_file_name)
    report.failures.sort(key=lambda f: f.service)

    if report.services:
        _write_run_artifacts(options, report, mappings)

    logger.info(
        "Generated %d service(s), %d failed", len(report.services), len(report.failures)
    )
    return report


def _write_run_artifacts(
    options: GeneratorOptions,
    report: GenerationReport,
    mappings: dict[str, ServiceMapping],
) -> None:
    """Service mapping file and aggregator package for a finished run."""
    merged = {name: m.to_dict() for name, m in mappings.items()}
    merged.update(service_mapping(report.services))
    report.written.append(write_json(options.service_mapping, dict(sorted(merged.items()))))

    if options.aggregator_npm_package_name:
        aggregator_dir = Path(options.output_dir) / options.aggregator_directory_name
        package = aggregator_package_json(
            options.aggregator_npm_package_name,
            [s.npm_package_name for s in report.services],
            options.version_in_package_json,
        )
        report.written.append(write_json(aggregator_dir / PACKAGE_JSON, package))
        if options.changelog_file:
            copied = copy_changelog(options.changelog_file, aggregator_dir)
            if copied:
                report.written.append(copied)
