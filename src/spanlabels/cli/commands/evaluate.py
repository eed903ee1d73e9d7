"""
Evaluate command: score predicted spans against gold annotations.
"""

from __future__ import annotations

from pathlib import Path

import click

from spanlabels.cli.base import format_option
from spanlabels.cli.output import OutputFormatter
from spanlabels.cli.utils import load_span_list
from spanlabels.core.evaluation import (
    calculate_fragmentation_rate,
    calculate_over_extraction_rate,
    evaluate_by_role,
    evaluate_spans,
    evaluate_taxonomy_accuracy,
)
from spanlabels.exceptions import InputFormatError


@click.command()
@click.argument("predicted", type=click.Path(exists=True, dir_okay=False))
@click.argument("gold", type=click.Path(exists=True, dir_okay=False))
@click.option("--iou-threshold", default=0.5, type=click.FloatRange(0.0, 1.0),
              help="Minimum IoU for a spatial match")
@click.option("--by-role", is_flag=True, help="Add a per-role breakdown")
@format_option(choices=["table", "json"])
def evaluate(predicted: str, gold: str, iou_threshold: float, by_role: bool, output_format: str):
    """Compute relaxed F1 of PREDICTED spans against GOLD spans.

    Both files hold a JSON list of spans or an object with a "spans" list
    (validate -f json output works as PREDICTED).

    Examples:
        spanlabels evaluate result.json gold.json
        spanlabels evaluate result.json gold.json --by-role -f json
    """
    try:
        pred_spans = load_span_list(Path(predicted))
        gold_spans = load_span_list(Path(gold))
    except InputFormatError as e:
        raise click.ClickException(e.message) from e

    metrics = evaluate_spans(pred_spans, gold_spans, iou_threshold)
    taxonomy = evaluate_taxonomy_accuracy(pred_spans, gold_spans, iou_threshold)
    fragmentation = calculate_fragmentation_rate(pred_spans, gold_spans)
    over_extraction = calculate_over_extraction_rate(pred_spans, gold_spans, iou_threshold)

    summary = {
        "precision": round(metrics.precision, 4),
        "recall": round(metrics.recall, 4),
        "f1": round(metrics.f1, 4),
        "true_positives": metrics.true_positives,
        "false_positives": metrics.false_positives,
        "false_negatives": metrics.false_negatives,
        "taxonomy_accuracy": round(taxonomy.accuracy, 4),
        "fragmentation_rate": round(fragmentation.rate, 4),
        "over_extraction_rate": round(over_extraction.rate, 4),
    }

    fmt = OutputFormatter(output_format)
    if not by_role:
        fmt.print_mapping(summary)
        return

    rows = [
        {
            "role": role,
            "precision": round(m.precision, 4),
            "recall": round(m.recall, 4),
            "f1": round(m.f1, 4),
            "support": m.total_gold,
        }
        for role, m in evaluate_by_role(pred_spans, gold_spans, iou_threshold).items()
    ]
    if output_format == "json":
        fmt.print_mapping({**summary, "by_role": rows})
    else:
        fmt.print_mapping(summary)
        click.echo("")
        fmt.print_rows(rows, ["role", "precision", "recall", "f1", "support"])
