"""
bifrost2postman/utils/cli_utils.py

Utility functions for CLI argument parsing and interactive selection.
"""

from argparse import ArgumentParser
from pathlib import Path

from prompt_toolkit.shortcuts import checkboxlist_dialog
from rich.console import Console

from bifrost2postman.config import Config
from bifrost2postman.transformers import SchemaSpecification


def add_format_argument(parser: ArgumentParser) -> None:
    """
    Add the --format argument to an ArgumentParser.

    Args:
        parser: The ArgumentParser to add the argument to
    """
    parser.add_argument(
        "--format", "-f",
        dest="formats",
        action="append",
        choices=[spec.value for spec in SchemaSpecification],
        default=None,
        help=(
            "Output format to generate (can be specified multiple times). "
            "If omitted, formats are chosen interactively."
        ),
    )


def derive_service_name(client_root: Path) -> str:
    """
    Derive the service name from a client project folder.

    "Hudl.Ticketing.Client" -> "Ticketing"; anything else -> Config.DEFAULT_SERVICE_NAME.
    """
    folder_name = Path(client_root).resolve().name
    prefix = f"{Config.ORGANIZATION_PREFIX}."
    suffix = ".Client"
    if folder_name.startswith(prefix) and folder_name.endswith(suffix):
        service_name = folder_name[len(prefix):len(folder_name) - len(suffix)]
        if service_name:
            return service_name
    return Config.DEFAULT_SERVICE_NAME


def select_schema_specifications(console: Console) -> list[SchemaSpecification]:
    """
    Ask the user which output formats to generate.

    Args:
        console: Rich Console instance for user messages

    Returns:
        The selected formats, in declaration order. Empty if the user cancelled
        or selected nothing.
    """
    selected = checkboxlist_dialog(
        title="bifrost2postman",
        text="Select one or more output formats:",
        values=[(spec, f"Generate {spec.label} Schema") for spec in SchemaSpecification],
    ).run()
    if not selected:
        console.print("[yellow]No output format selected.[/yellow]")
        return []
    return [spec for spec in SchemaSpecification if spec in selected]
