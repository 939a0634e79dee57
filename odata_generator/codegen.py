"""Render emitted files and write the generated output.

Takes the EmittedFile structures of a service and produces
<output_dir>/<directoryName>/<relative_path>.ts plus the optional
package.json, the service mapping and the aggregator package.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable

import jinja2

from . import __version__
from .errors import GeneratorError
from .structures import EmittedFile, Parameter
from .vdm_types import VdmServiceMetadata

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
SOURCE_TEMPLATE = "source_file.ts.j2"
SOURCE_SUFFIX = ".ts"
CHANGELOG_FILE = "CHANGELOG.md"
PACKAGE_JSON = "package.json"


def _parameter_list(parameters: Iterable[Parameter]) -> str:
    return ", ".join(
        f"{p.name}{'?' if p.has_question_token else ''}: {p.type}" for p in parameters
    )


def _type_parameters(type_parameters: Iterable[str]) -> str:
    joined = ", ".join(type_parameters)
    return f"<{joined}>" if joined else ""


@lru_cache(maxsize=None)
def template_environment() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["parameter_list"] = _parameter_list
    env.filters["type_parameters"] = _type_parameters
    return env


def file_header(service: VdmServiceMetadata) -> tuple[str, ...]:
    return (
        f"This is a generated file powered by odata-vdm-generator {__version__}.",
        f"Service: {service.namespace} ({service.original_file_name})",
        "Do not edit by hand; changes are lost on the next generation.",
    )


def render_file(file: EmittedFile, header: Iterable[str] = ()) -> str:
    """Serialize one emitted file to TypeScript source text."""
    template = template_environment().get_template(SOURCE_TEMPLATE)
    return template.render(file=file, header=tuple(header))


def render_service(service: VdmServiceMetadata, files: Iterable[EmittedFile]) -> dict[str, str]:
    """Source text of every file of a service, keyed by relative file name."""
    header = file_header(service)
    rendered: dict[str, str] = {}
    for file in files:
        name = f"{file.relative_path}{SOURCE_SUFFIX}"
        if name in rendered:
            raise GeneratorError(f"Two generated files share the path '{name}'", service.directory_name)
        rendered[name] = render_file(file, header)
    return rendered


def json_text(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2) + "\n"


def write_service(
    output_dir: Path,
    service: VdmServiceMetadata,
    rendered: dict[str, str],
    force_overwrite: bool = False,
) -> list[Path]:
    """Write the rendered files of a service into its own directory.

    All checks run before anything is written: existing files are only
    replaced with force_overwrite, and a target taken by a directory is
    refused. Files are staged in a temporary sibling directory and moved
    into place; if a move fails, the files this call created are removed.
    """
    output_dir = Path(output_dir)
    service_dir = output_dir / service.directory_name
    targets = [service_dir / name for name in rendered]

    blocked = sorted(str(p) for p in targets if p.exists() and not p.is_file())
    if blocked:
        raise GeneratorError(f"{blocked[0]} exists and is not a file", service.directory_name)
    existing = {p for p in targets if p.exists()}
    if existing and not force_overwrite:
        raise GeneratorError(
            f"{len(existing)} file(s) already exist, e.g. {min(map(str, existing))}; "
            "use --force-overwrite to replace them",
            service.directory_name,
        )

    output_dir.mkdir(parents=True, exist_ok=True)
    new_dir = not service_dir.exists()
    staging = Path(tempfile.mkdtemp(prefix=f".{service.directory_name}-", dir=output_dir))
    created: list[Path] = []
    try:
        for name, text in rendered.items():
            (staging / name).write_text(text)
        service_dir.mkdir(exist_ok=True)
        for name, target in zip(rendered, targets):
            if target not in existing:
                created.append(target)
            os.replace(staging / name, target)
    except OSError:
        if new_dir:
            shutil.rmtree(service_dir, ignore_errors=True)
        else:
            for path in created:
                path.unlink(missing_ok=True)
        raise
    finally:
        shutil.rmtree(staging, ignore_errors=True)

    logger.info("Generated %s (%d files)", service_dir, len(targets))
    return targets


def write_json(path: Path, data: dict[str, Any]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json_text(data))
    logger.debug("Wrote %s", path)
    return path


def copy_changelog(changelog: Path, target_dir: Path) -> Path | None:
    """Copy the changelog into a generated package; failure is not fatal."""
    try:
        Path(target_dir).mkdir(parents=True, exist_ok=True)
        return Path(shutil.copyfile(changelog, Path(target_dir) / CHANGELOG_FILE))
    except OSError as e:
        logger.warning("Could not copy changelog %s to %s: %s", changelog, target_dir, e)
        return None


def clear_output_dir(output_dir: Path) -> None:
    output_dir = Path(output_dir)
    if output_dir.exists():
        logger.info("Clearing output directory %s", output_dir)
        shutil.rmtree(output_dir)
