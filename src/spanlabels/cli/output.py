"""Rendering of pipeline results and metric rows for the CLI."""

from __future__ import annotations

import csv
import io
import json
from typing import Any

import click

from spanlabels.core.text_utils import format_validation_errors, preview
from spanlabels.core.types import PipelineResult

SPAN_COLUMNS = ["start", "end", "role", "confidence", "text"]
MAX_CELL_WIDTH = 50


def _cell(value: Any) -> str:
    # Span text may span lines; a table row must not
    return preview(" ".join(str(value).split()), MAX_CELL_WIDTH - 3)


def _text_table(rows: list[dict[str, Any]], columns: list[str]) -> list[str]:
    headers = [column.replace("_", " ").title() for column in columns]
    cells = [[_cell(row.get(column, "")) for column in columns] for row in rows]
    widths = [
        max([len(header)] + [len(line[i]) for line in cells])
        for i, header in enumerate(headers)
    ]

    def join(values: list[str]) -> str:
        return "  ".join(value.ljust(width) for value, width in zip(values, widths)).rstrip()

    header_line = join(headers)
    return [header_line, "-" * len(header_line)] + [join(line) for line in cells]


class OutputFormatter:
    """Print command output as a text table, JSON or CSV."""

    def __init__(self, output_format: str = "table", quiet: bool = False) -> None:
        self.format = output_format
        self.quiet = quiet

    def print_rows(self, rows: list[dict[str, Any]], columns: list[str]) -> None:
        """Print rows in the selected format; the header is printed even with no rows."""
        if self.format == "json":
            click.echo(json.dumps(rows, indent=2, default=str))
        elif self.format == "csv":
            buf = io.StringIO()
            writer = csv.DictWriter(buf, fieldnames=columns, extrasaction="ignore", lineterminator="\n")
            writer.writeheader()
            writer.writerows(rows)
            click.echo(buf.getvalue().rstrip("\n"))
        else:
            for line in _text_table(rows, columns):
                click.echo(line)

    def print_mapping(self, data: dict[str, Any]) -> None:
        """Print one record as JSON or as indented key: value lines."""
        if self.format == "json":
            click.echo(json.dumps(data, indent=2, default=str))
            return
        for key, value in data.items():
            click.echo(f"  {key}: {value}")

    def print_result(self, result: PipelineResult, label: str | None = None) -> None:
        """Print one pipeline result.

        JSON prints the result envelope; CSV prints span rows; the table
        format adds errors and notes around the span table.
        """
        if self.format == "json":
            click.echo(json.dumps(result.to_dict(), indent=2))
            return

        rows = [span.to_dict() for span in result.spans]
        if self.format == "csv":
            self.print_rows(rows, SPAN_COLUMNS)
            return

        if label:
            click.echo(f"\n{'=' * 50}")
            click.echo(f"Input: {label}")
            click.echo("-" * 50)
        status = "ok" if result.ok else "FAILED"
        click.echo(f"Status: {status}  (version {result.version}, {len(result.spans)} spans)")

        if result.errors:
            click.echo("\nErrors:")
            click.echo(format_validation_errors(result.errors))
        if rows:
            click.echo("")
            self.print_rows(rows, SPAN_COLUMNS)
        if result.notes and not self.quiet:
            click.echo("\nNotes:")
            for note in result.notes:
                click.echo(f"  - {note}")

    def print_message(self, message: str) -> None:
        """Print an informational line unless quiet."""
        if not self.quiet:
            click.echo(message)

    def print_error(self, message: str) -> None:
        click.echo(f"Error: {message}", err=True)
