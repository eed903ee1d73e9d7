"""
Span set evaluation against gold annotations.

Relaxed F1: a predicted span counts as a true positive when its IoU with
an unmatched gold span exceeds the threshold AND the roles are equal. This
forgives small boundary drift but not wrong labels.

Spans may be ValidatedSpan objects or plain dicts with start/end/role.

Usage:
    from spanlabels.core.evaluation import evaluate_spans

    metrics = evaluate_spans(result.spans, gold)
    print(f"F1={metrics.f1:.3f}")
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .taxonomy import parent_id

__all__ = [
    "SpanMetrics",
    "TaxonomyAccuracy",
    "RateResult",
    "calculate_iou",
    "evaluate_spans",
    "evaluate_taxonomy_accuracy",
    "calculate_fragmentation_rate",
    "calculate_over_extraction_rate",
    "update_confusion_matrix",
    "evaluate_by_role",
]

DEFAULT_IOU_THRESHOLD = 0.5
FRAGMENT_IOU_THRESHOLD = 0.1
MAX_EXAMPLES = 5

MISSED = "<missed>"
SPURIOUS = "<spurious>"


@dataclass
class SpanMetrics:
    precision: float
    recall: float
    f1: float
    true_positives: int
    false_positives: int
    false_negatives: int
    total_predicted: int
    total_gold: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TaxonomyAccuracy:
    accuracy: float
    correct: int
    total: int


@dataclass
class RateResult:
    """A rate over some population, with up to five examples."""
    rate: float
    count: int
    total: int
    examples: List[Any] = field(default_factory=list)


def _field(span: Any, name: str) -> Any:
    if isinstance(span, dict):
        return span.get(name)
    return getattr(span, name, None)


def _offset(span: Any, name: str) -> Optional[int]:
    value = _field(span, name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _role(span: Any) -> str:
    role = _field(span, "role")
    return role if isinstance(role, str) else "unknown"


def calculate_iou(predicted: Any, gold: Any) -> float:
    """Intersection over union of two character ranges (0 if either is malformed)."""
    p_start, p_end = _offset(predicted, "start"), _offset(predicted, "end")
    g_start, g_end = _offset(gold, "start"), _offset(gold, "end")
    if None in (p_start, p_end, g_start, g_end):
        return 0.0

    intersection = max(0, min(p_end, g_end) - max(p_start, g_start))
    union = max(p_end, g_end) - min(p_start, g_start)
    return intersection / union if union > 0 else 0.0


def _f1(precision: float, recall: float) -> float:
    total = precision + recall
    return 2 * precision * recall / total if total > 0 else 0.0


def evaluate_spans(
    predicted: Sequence[Any],
    gold: Sequence[Any],
    iou_threshold: float = DEFAULT_IOU_THRESHOLD,
) -> SpanMetrics:
    """Relaxed precision/recall/F1 with greedy one-to-one matching."""
    matched_gold = set()
    true_positives = 0

    for pred in predicted:
        for j, g in enumerate(gold):
            if j in matched_gold:
                continue
            if calculate_iou(pred, g) > iou_threshold and _role(pred) == _role(g):
                true_positives += 1
                matched_gold.add(j)
                break

    precision = true_positives / len(predicted) if predicted else 0.0
    recall = true_positives / len(gold) if gold else 0.0
    return SpanMetrics(
        precision=precision,
        recall=recall,
        f1=_f1(precision, recall),
        true_positives=true_positives,
        false_positives=len(predicted) - true_positives,
        false_negatives=len(gold) - true_positives,
        total_predicted=len(predicted),
        total_gold=len(gold),
    )


def evaluate_taxonomy_accuracy(
    predicted: Sequence[Any],
    gold: Sequence[Any],
    iou_threshold: float = DEFAULT_IOU_THRESHOLD,
) -> TaxonomyAccuracy:
    """Of the spatially matched spans, the share with the correct role."""
    matched_gold = set()
    correct = 0
    total = 0

    for pred in predicted:
        for j, g in enumerate(gold):
            if j in matched_gold:
                continue
            if calculate_iou(pred, g) > iou_threshold:
                total += 1
                matched_gold.add(j)
                if _role(pred) == _role(g):
                    correct += 1
                break

    return TaxonomyAccuracy(
        accuracy=correct / total if total else 0.0,
        correct=correct,
        total=total,
    )


def calculate_fragmentation_rate(
    predicted: Sequence[Any],
    gold: Sequence[Any],
    iou_threshold: float = FRAGMENT_IOU_THRESHOLD,
    use_parent_role: bool = True,
) -> RateResult:
    """Share of gold spans split across more than one prediction."""
    if not gold:
        return RateResult(rate=0.0, count=0, total=0)

    fragmented = 0
    examples: List[Any] = []
    for g in gold:
        pieces = [p for p in predicted if calculate_iou(p, g) > iou_threshold]
        if use_parent_role:
            pieces = [p for p in pieces if parent_id(_role(p)) == parent_id(_role(g))]
        if len(pieces) > 1:
            fragmented += 1
            if len(examples) < MAX_EXAMPLES:
                examples.append({"gold": g, "fragments": pieces})

    return RateResult(
        rate=fragmented / len(gold),
        count=fragmented,
        total=len(gold),
        examples=examples,
    )


def calculate_over_extraction_rate(
    predicted: Sequence[Any],
    gold: Sequence[Any],
    iou_threshold: float = DEFAULT_IOU_THRESHOLD,
) -> RateResult:
    """Share of predictions that overlap no gold span."""
    if not predicted:
        return RateResult(rate=0.0, count=0, total=0)

    spurious = [p for p in predicted if not any(calculate_iou(p, g) > iou_threshold for g in gold)]
    return RateResult(
        rate=len(spurious) / len(predicted),
        count=len(spurious),
        total=len(predicted),
        examples=spurious[:MAX_EXAMPLES],
    )


def update_confusion_matrix(
    matrix: Optional[Dict[str, Dict[str, int]]],
    predicted: Sequence[Any],
    gold: Sequence[Any],
    iou_threshold: float = DEFAULT_IOU_THRESHOLD,
) -> Dict[str, Dict[str, int]]:
    """
    Accumulate gold-role -> predicted-role counts.

    Unmatched gold spans count under MISSED; leftover predictions under the
    SPURIOUS row.
    """
    matrix = matrix if matrix is not None else {}
    used = set()

    for g in gold:
        best_index, best_iou = -1, 0.0
        for i, pred in enumerate(predicted):
            if i in used:
                continue
            iou = calculate_iou(pred, g)
            if iou > best_iou:
                best_index, best_iou = i, iou

        row = matrix.setdefault(_role(g), {})
        if best_index != -1 and best_iou > iou_threshold:
            column = _role(predicted[best_index])
            used.add(best_index)
        else:
            column = MISSED
        row[column] = row.get(column, 0) + 1

    for i, pred in enumerate(predicted):
        if i in used:
            continue
        row = matrix.setdefault(SPURIOUS, {})
        row[_role(pred)] = row.get(_role(pred), 0) + 1

    return matrix


def evaluate_by_role(
    predicted: Sequence[Any],
    gold: Sequence[Any],
    iou_threshold: float = DEFAULT_IOU_THRESHOLD,
) -> Dict[str, SpanMetrics]:
    """Per-role breakdown for every role present in the gold set."""
    by_role_pred: Dict[str, List[Any]] = defaultdict(list)
    by_role_gold: Dict[str, List[Any]] = defaultdict(list)
    for p in predicted:
        by_role_pred[_role(p)].append(p)
    for g in gold:
        by_role_gold[_role(g)].append(g)

    return {
        role: evaluate_spans(by_role_pred.get(role, []), spans, iou_threshold)
        for role, spans in sorted(by_role_gold.items())
    }
