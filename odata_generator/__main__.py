"""Entry point: python -m odata_generator

Reads the metadata files of an input directory and writes one TypeScript
client package per service into the output directory.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .options import GeneratorOptions
from .pipeline import generate


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="odata_generator",
        description="Generate typed TypeScript clients from OData EDMX metadata.",
    )
    parser.add_argument("-i", "--input-dir", type=Path, required=True,
                        help="Directory containing .edmx/.xml metadata files")
    parser.add_argument("-o", "--output-dir", type=Path, required=True,
                        help="Directory the generated services are written to")
    parser.add_argument("-s", "--service-mapping", type=Path,
                        help="Service mapping file (default: <input-dir>/service-mapping.json)")
    parser.add_argument("--url", dest="metadata_urls", action="append", default=[],
                        help="Also generate the service behind this $metadata URL (repeatable)")
    parser.add_argument("--use-swagger", action="store_true",
                        help="Read descriptions from <name>.json next to each metadata file")
    parser.add_argument("--force-overwrite", action="store_true",
                        help="Replace files that already exist")
    parser.add_argument("--clear-output-dir", action="store_true",
                        help="Delete the output directory before generating")
    parser.add_argument("--generate-package-json", action="store_true",
                        help="Write a package.json into every service directory")
    parser.add_argument("--version-in-package-json",
                        help="Version written to the generated package.json files")
    parser.add_argument("--aggregator-npm-package-name",
                        help="Also generate a package depending on all generated services")
    parser.add_argument("--aggregator-directory-name",
                        help="Directory of the aggregator package (default: its package name)")
    parser.add_argument("--changelog-file", type=Path,
                        help="Changelog copied into every generated package")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    return parser.parse_args(argv)


def options_from_args(args: argparse.Namespace) -> GeneratorOptions:
    return GeneratorOptions(
        input_dir=args.input_dir,
        output_dir=args.output_dir,
        service_mapping=args.service_mapping,
        use_swagger=args.use_swagger,
        force_overwrite=args.force_overwrite,
        clear_output_dir=args.clear_output_dir,
        generate_package_json=args.generate_package_json,
        version_in_package_json=args.version_in_package_json,
        aggregator_npm_package_name=args.aggregator_npm_package_name,
        aggregator_directory_name=args.aggregator_directory_name,
        changelog_file=args.changelog_file,
        metadata_urls=tuple(args.metadata_urls),
    )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    report = asyncio.run(generate(options_from_args(args)))
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
