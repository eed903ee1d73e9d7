"""
Validate command: run the span pipeline over model output files.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from spanlabels.cli.base import common_options, file_progress, format_option, settings_from_context
from spanlabels.cli.output import OutputFormatter
from spanlabels.cli.utils import collect_files, load_validation_input
from spanlabels.core.pipeline import validate_spans
from spanlabels.core.policy import load_policy, sanitize_options
from spanlabels.core.types import PipelineResult
from spanlabels.exceptions import InputFormatError, PolicyLoadError
from spanlabels.logging import set_run_id

logger = logging.getLogger(__name__)


def _run_file(path: Path, policy, options, attempt: int, retry_lenient: bool) -> PipelineResult:
    text, spans, meta = load_validation_input(path)
    set_run_id(path.name)
    try:
        result = validate_spans(spans, text, policy, options, attempt=attempt, meta=meta)
        if not result.ok and retry_lenient and attempt == 1:
            logger.info(f"Strict validation failed with {len(result.errors)} errors; retrying leniently")
            result = validate_spans(spans, text, policy, options, attempt=2, meta=meta)
        return result
    finally:
        set_run_id(None)


@click.command()
@click.argument("inputs", nargs=-1, required=True, type=click.Path(exists=True))
@click.option("--policy", "policy_file", type=click.Path(exists=True, dir_okay=False),
              help="Policy file (YAML or JSON); overrides configured policy")
@click.option("--attempt", default=1, type=click.IntRange(min=1),
              help="1 = strict, 2+ = lenient")
@click.option("--retry-lenient", is_flag=True,
              help="Re-run leniently when the strict run reports errors")
@click.option("--max-spans", type=int, default=None, help="Override options.max_spans")
@click.option("--min-confidence", type=float, default=None, help="Override options.min_confidence")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write JSON results to a file")
@format_option()
@common_options
@click.pass_context
def validate(
    ctx: click.Context,
    inputs: tuple[str, ...],
    policy_file: str | None,
    attempt: int,
    retry_lenient: bool,
    max_spans: int | None,
    min_confidence: float | None,
    output: str | None,
    output_format: str,
    quiet: bool,
):
    """Validate labeled spans against their source text.

    Each INPUT is a JSON file {"text": ..., "spans": [...], "meta": {...}}
    or a directory of such files. Exits with status 1 when any result is
    not ok.

    Examples:
        spanlabels validate response.json
        spanlabels validate responses/ --retry-lenient -o results.json
        spanlabels validate response.json --policy policy.yaml -f json
    """
    fmt = OutputFormatter(output_format, quiet)
    settings = settings_from_context(ctx)

    try:
        policy = load_policy(policy_file) if policy_file else settings.build_policy()
    except PolicyLoadError as e:
        raise click.ClickException(e.message) from e

    overrides = settings.options.model_dump()
    if max_spans is not None:
        overrides["max_spans"] = max_spans
    if min_confidence is not None:
        overrides["min_confidence"] = min_confidence
    options = sanitize_options(overrides)

    files = collect_files(inputs)
    if not files:
        raise click.ClickException("No input files found")

    results: list[tuple[Path, PipelineResult]] = []
    try:
        if len(files) > 1 and not quiet:
            with file_progress() as progress:
                task = progress.add_task("Validating", total=len(files))
                for path in files:
                    results.append((path, _run_file(path, policy, options, attempt, retry_lenient)))
                    progress.advance(task)
        else:
            for path in files:
                results.append((path, _run_file(path, policy, options, attempt, retry_lenient)))
    except InputFormatError as e:
        raise click.ClickException(e.message) from e

    if output:
        if len(results) == 1:
            payload = results[0][1].to_dict()
        else:
            payload = [{"file": str(path), **result.to_dict()} for path, result in results]
        with open(output, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        fmt.print_message(f"Results written to: {output}")
    else:
        for path, result in results:
            fmt.print_result(result, label=str(path) if len(results) > 1 else None)

    failed = [path for path, result in results if not result.ok]
    if len(results) > 1:
        fmt.print_message(f"\nSummary: {len(results) - len(failed)}/{len(results)} inputs ok")
    if failed:
        for path in failed:
            fmt.print_error(f"Validation failed: {path}")
        ctx.exit(1)
