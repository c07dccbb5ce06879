"""Main CLI entry point for Gerrit Bridge.

Usage:
    gerrit-bridge files tools/sonar master I8473b95 3
    gerrit-bridge review tools/sonar master I8473b95 3 --file review.json
    gerrit-bridge review tools/sonar master I8473b95 3 -m "LGTM" -l Code-Review=1
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gerrit_bridge.config import BridgeConfig, load_config
from gerrit_bridge.connector import GerritConnector
from gerrit_bridge.facade import GerritBridgeError, GerritFacade
from gerrit_bridge.logging import bind_revision_context, setup_logging
from gerrit_bridge.models import ReviewInput

app = typer.Typer(
    name="gerrit-bridge",
    help="Gerrit Bridge: list revision files and publish reviews",
    no_args_is_help=True,
)

console = Console()

# Set by the app callback before any command runs
_config: BridgeConfig | None = None


def get_config() -> BridgeConfig:
    """Return the configuration loaded by the app callback.

    Raises:
        RuntimeError: If the callback has not run
    """
    if _config is None:
        raise RuntimeError("Configuration not loaded")
    return _config


@app.callback()
def main(
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to TOML configuration file",
            dir_okay=False,
        ),
    ] = None,
) -> None:
    """Load configuration and set up logging."""
    global _config

    try:
        _config = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    setup_logging(_config.logging)


def parse_label(value: str) -> tuple[str, int]:
    """Parse a ``NAME=VALUE`` label vote.

    Raises:
        typer.BadParameter: If the vote is malformed
    """
    name, sep, vote = value.partition("=")
    if not sep or not name:
        raise typer.BadParameter(f"Expected NAME=VALUE, got {value!r}")
    try:
        return name, int(vote)
    except ValueError:
        raise typer.BadParameter(f"Label value must be an integer, got {vote!r}")


@app.command()
def files(
    project: Annotated[str, typer.Argument(help="Gerrit project name")],
    branch: Annotated[str, typer.Argument(help="Target branch")],
    change_id: Annotated[str, typer.Argument(help="Change identifier")],
    revision_id: Annotated[str, typer.Argument(help="Revision identifier")],
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """List the files touched by a revision.

    Args:
        project: Gerrit project name
        branch: Target branch
        change_id: Change identifier
        revision_id: Revision identifier
        format: Output format (table or json)
    """
    if format not in ("table", "json"):
        console.print(f"[red]Invalid format:[/red] {escape(format)}. Valid values: table, json")
        raise typer.Exit(code=1)

    bind_revision_context(project, change_id, revision_id)

    with GerritConnector(get_config().gerrit) as connector:
        facade = GerritFacade(connector)
        try:
            file_list = facade.list_files(project, branch, change_id, revision_id)
        except ValueError as e:
            console.print(f"[red]Invalid revision:[/red] {escape(str(e))}")
            raise typer.Exit(code=1)
        except GerritBridgeError as e:
            console.print(f"[red]{e}:[/red] {escape(str(e.cause))}")
            raise typer.Exit(code=1)

    if format == "json":
        typer.echo(json.dumps(dict(file_list), indent=2, sort_keys=True))
        return

    table = Table(title=f"Files in {change_id} revision {revision_id}")
    table.add_column("Local path", style="cyan", no_wrap=True)
    table.add_column("Gerrit path", no_wrap=True)
    for local_path in sorted(file_list):
        table.add_row(escape(local_path), escape(file_list[local_path]))
    console.print(table)


@app.command()
def review(
    project: Annotated[str, typer.Argument(help="Gerrit project name")],
    branch: Annotated[str, typer.Argument(help="Target branch")],
    change_id: Annotated[str, typer.Argument(help="Change identifier")],
    revision_id: Annotated[str, typer.Argument(help="Revision identifier")],
    review_file: Annotated[
        Optional[Path],
        typer.Option(
            "--file",
            "-f",
            help="Path to review JSON file",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    message: Annotated[
        Optional[str],
        typer.Option("--message", "-m", help="Summary message"),
    ] = None,
    labels: Annotated[
        Optional[list[str]],
        typer.Option("--label", "-l", help="Label vote as NAME=VALUE (repeatable)"),
    ] = None,
) -> None:
    """Publish a review onto a revision.

    The review is read from ``--file`` when given; ``--message`` and
    ``--label`` are applied on top of it.
    """
    try:
        review_input = (
            ReviewInput.model_validate_json(review_file.read_text(encoding="utf-8"))
            if review_file is not None
            else ReviewInput()
        )
    except ValidationError as e:
        console.print(f"[red]Invalid review file:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    if message is not None:
        review_input.message = message
    for label in labels or []:
        name, value = parse_label(label)
        review_input.set_label(name, value)

    if review_input.is_empty():
        console.print("[red]Nothing to publish:[/red] review has no message, label or comment")
        raise typer.Exit(code=1)

    bind_revision_context(project, change_id, revision_id)

    with GerritConnector(get_config().gerrit) as connector:
        facade = GerritFacade(connector)
        try:
            facade.set_review(project, branch, change_id, revision_id, review_input)
        except ValueError as e:
            console.print(f"[red]Invalid revision:[/red] {escape(str(e))}")
            raise typer.Exit(code=1)
        except GerritBridgeError as e:
            console.print(f"[red]{e}:[/red] {escape(str(e.cause))}")
            raise typer.Exit(code=1)

    console.print(
        f"[green]Review published[/green] "
        f"({review_input.comment_count} comments, {len(review_input.labels)} labels)"
    )


if __name__ == "__main__":
    app()
