"""
Generate Postman / OpenAPI schemas from a Bifrost service client.

Scans the client's Services folder for methods annotated with [BifrostPath],
synthesizes a sample request body for each from its parameter type, and
writes one file per selected output format.

Usage:
    bifrost2postman path/to/Hudl.Ticketing.Client
    bifrost2postman path/to/Hudl.Ticketing.Client --format postman
    bifrost2postman path/to/Hudl.Ticketing.Client --format postman --format openapi --output-dir out/
    bifrost2postman path/to/Hudl.Ticketing.Client --format openapi --verbose
"""

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.table import Table

from bifrost2postman.config import Config
from bifrost2postman.schema_generation.generator import SchemaGenerator
from bifrost2postman.schema_generation.models import GenerationResult
from bifrost2postman.transformers import SchemaSpecification, output_file_name, render_schema
from bifrost2postman.utils.cli_utils import (
    add_format_argument,
    derive_service_name,
    select_schema_specifications,
)
from bifrost2postman.utils.exceptions import CorpusError
from bifrost2postman.utils.logger import get_logger, set_log_level

logger = get_logger(__name__)

console = Console()


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point for schema generation."""
    parser = argparse.ArgumentParser(
        prog="bifrost2postman",
        description="Generate Postman collections and OpenAPI documents from Bifrost service clients.",
    )
    parser.add_argument(
        "client_root",
        help="Path to the <Org>.<Service>.Client project root",
    )
    add_format_argument(parser)
    parser.add_argument(
        "--output-dir", "-o",
        default=".",
        help="Directory to write generated files to (default: current directory)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)
    if args.verbose:
        set_log_level(logging.DEBUG)
        logger.debug("Configuration: %s", Config.as_dict())

    client_root = Path(args.client_root)
    services_root = client_root / Config.SERVICES_FOLDER_NAME
    if not services_root.is_dir():
        console.print(
            f"[bold red]Error: There is no '{Config.SERVICES_FOLDER_NAME}' folder. "
            f"Make sure you're in the {Config.ORGANIZATION_PREFIX}.Service.Client folder root.[/bold red]"
        )
        sys.exit(1)

    if args.formats:
        specifications = [spec for spec in SchemaSpecification if spec.value in args.formats]
    else:
        specifications = select_schema_specifications(console)
    if not specifications:
        return

    service_name = derive_service_name(client_root)
    console.print(f"Generating schemas for [bold]{service_name}[/bold]")

    try:
        result = SchemaGenerator(services_root, corpus_root=client_root).generate()
    except (FileNotFoundError, CorpusError) as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        sys.exit(1)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    for specification in specifications:
        output_path = output_dir / output_file_name(specification, service_name)
        output_path.write_text(
            render_schema(specification, result.requests_by_group, service_name),
            encoding="utf-8",
        )
        logger.info("Wrote %s", output_path)
        console.print(f"  [green]✓[/green] {output_path}")

    _print_summary(result)
    console.print(
        f"Schema files generated successfully (Types: {', '.join(spec.label for spec in specifications)})."
    )


def _print_summary(result: GenerationResult) -> None:
    """Print endpoint counts per group and any per-file diagnostics."""
    table = Table(title=f"{result.total_endpoints} endpoints from {result.total_files_parsed} files")
    table.add_column("Group")
    table.add_column("Endpoints", justify="right")
    for group_key, requests in result.requests_by_group.items():
        table.add_row(group_key, str(len(requests)))
    console.print(table)

    for diagnostic in result.diagnostics:
        console.print(f"[yellow]Skipped {diagnostic.file_path}: {diagnostic.message}[/yellow]")


if __name__ == "__main__":
    main()
