"""
Command-line interface for Paste Provenance.

Annotates a document with the pasted content recorded in a paste log.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .config import ReconcileConfig
from .engine import ProvenanceReconciler
from .integrity import run_annotation_integrity_check
from .models import ReconcileReport

console = Console(stderr=True)


class EventLoadError(Exception):
    """Raised when the paste log cannot be read."""
    pass


def load_paste_events(path: Path) -> list:
    """
    Load a paste log from a JSON file.

    The file holds either a list of entries or an object with a
    ``pastedContent`` / ``paste_events`` list.

    Args:
        path: Path to the JSON file.

    Returns:
        List of raw entries, coerced later by the engine.

    Raises:
        EventLoadError: If the file is not valid JSON or has no event list.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise EventLoadError(f"Cannot read {path}: {e}")
    except json.JSONDecodeError as e:
        raise EventLoadError(f"Invalid JSON in {path}: {e}")

    if isinstance(data, dict):
        data = data.get("pastedContent", data.get("paste_events"))
    if not isinstance(data, list):
        raise EventLoadError(
            f"{path} must contain a list of paste events "
            f"(or an object with a 'pastedContent' list)"
        )
    return data


@click.command()
@click.argument(
    "document",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--events",
    "-e",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Path to the paste log (JSON).",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write annotated markup here instead of stdout.",
)
@click.option(
    "--preset",
    type=click.Choice(["default", "conservative"]),
    default="default",
    help="Matcher preset; 'conservative' disables structural and positional fallbacks.",
)
@click.option(
    "--policy",
    type=click.Choice(["best", "first"]),
    default="best",
    help="Accept the best-scoring window (default) or the first one above threshold.",
)
@click.option(
    "--report",
    "show_report",
    is_flag=True,
    default=False,
    help="Print a per-event report.",
)
@click.option(
    "--json-report",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the reconciliation report as JSON.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output.",
)
def main(
    document: Path,
    events: Path,
    output: Optional[Path],
    preset: str,
    policy: str,
    show_report: bool,
    json_report: Optional[Path],
    verbose: bool,
) -> None:
    """
    Paste Provenance - Highlight pasted content in a document.

    Reads DOCUMENT (HTML markup), reconciles it against the paste log and
    writes the annotated markup.

    Examples:

        paste-provenance essay.html --events pastes.json -o annotated.html

        paste-provenance essay.html -e pastes.json --preset conservative --report
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )

    try:
        markup = document.read_text(encoding="utf-8")
        paste_log = load_paste_events(events)
        config = ReconcileConfig.from_preset(preset, match_policy=policy)
    except EventLoadError as e:
        console.print(f"[red]Paste log error:[/red] {e}")
        sys.exit(1)
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Document error:[/red] {e}")
        sys.exit(1)

    reconciler = ProvenanceReconciler(config)
    result = reconciler.reconcile_with_report(markup, paste_log)

    integrity = run_annotation_integrity_check(markup, result.annotated_markup, config.highlight_class)
    if not integrity.is_valid:
        console.print(f"[yellow]{integrity.get_summary()}[/yellow]")

    if output:
        output.write_text(result.annotated_markup, encoding="utf-8")
        console.print(f"[bold green]Annotated document saved to:[/bold green] {output}")
    else:
        click.echo(result.annotated_markup)

    if json_report:
        json_report.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")

    if show_report:
        _display_report(result)


def _display_report(result: ReconcileReport) -> None:
    """Display reconciliation summary."""
    console.print(Panel.fit(
        f"[bold blue]Paste Provenance[/bold blue]\n{result.get_summary()}",
        border_style="blue",
    ))

    table = Table(title="Paste Events", show_header=True)
    table.add_column("#", style="dim")
    table.add_column("Status", style="cyan")
    table.add_column("Methods", style="yellow")
    table.add_column("Text", style="green")

    for outcome in result.outcomes:
        table.add_row(
            str(outcome.event_index),
            outcome.status.value,
            ", ".join(m.value for m in outcome.methods) or "-",
            outcome.text_preview,
        )

    console.print(table)
    console.print(
        f"\n[cyan]Pasted characters:[/cyan] {result.total_pasted_chars}  "
        f"[cyan]Highlights:[/cyan] {len(result.spans)}"
    )


def run_cli() -> None:
    """Entry point for the CLI."""
    main()


if __name__ == "__main__":
    run_cli()
