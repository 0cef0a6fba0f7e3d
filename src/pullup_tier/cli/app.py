"""Shared Typer app object, shared option types, and store utility."""

from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.engine.config_loader import get_settings
from ..io.json_store import JsonFileDocumentStore

# Shared --data-dir option type used across all store-backed commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-d", help="Document store directory (default from settings.yaml)"),
]

JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="pullup-tier",
    help="Pull-up tier scoring, per-user aggregates and country rankings.",
    no_args_is_help=True,
)


def get_store(data_dir: Path | None) -> JsonFileDocumentStore:
    """Get the document store at data_dir or the configured default location."""
    if data_dir is None:
        data_dir = get_settings().data_dir
    return JsonFileDocumentStore(data_dir)
