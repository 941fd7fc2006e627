"""Descriptive statistics of board metrics, grouped by outcome category."""

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TypeAlias

import numpy as np

from sokoban_harness.harness.outcome import ExecutionOutcome, Failed, Passed, TimedOut
from sokoban_harness.metrics import METRIC_FIELDS, BoardMetrics

Category: TypeAlias = Callable[[ExecutionOutcome], bool]


def mean(values: Iterable[float]) -> float:
    """Arithmetic mean.  Raises ValueError on empty input."""
    arr = np.asarray(list(values), dtype=float)
    if arr.size == 0:
        raise ValueError("mean of empty sequence")
    return float(arr.mean())


def median(values: Iterable[float]) -> float:
    """Median after a full sort: middle element for odd counts, average of the two middle
    elements for even counts.  Raises ValueError on empty input."""
    arr = np.sort(np.asarray(list(values), dtype=float))
    n = arr.size
    if n == 0:
        raise ValueError("median of empty sequence")
    mid = n // 2
    if n % 2:
        return float(arr[mid])
    return float((arr[mid - 1] + arr[mid]) / 2)


@dataclass(frozen=True)
class Stats:
    mean: float
    median: float


@dataclass
class CategorySummary:
    """Statistics of each metric over the members of one category."""

    count: int
    stats: dict[str, Stats] = field(default_factory=dict)

    def ratio(self, numerator: str, denominator: str) -> Stats:
        """Derive a ratio (e.g. boxes / free) from the aggregated values.

        Note: this divides the means and the medians; it is not the mean of the
        per-board ratios.  NaN when the denominator is zero.
        """
        num, den = self.stats[numerator], self.stats[denominator]
        return Stats(
            mean=num.mean / den.mean if den.mean else float("nan"),
            median=num.median / den.median if den.median else float("nan"),
        )


def _solved_under(ms: float) -> Category:
    return lambda o: isinstance(o, Passed) and o.elapsed_ms < ms


DEFAULT_CATEGORIES: dict[str, Category] = {
    "timed out": lambda o: isinstance(o, TimedOut),
    "failed": lambda o: isinstance(o, Failed),
    "solved": lambda o: isinstance(o, Passed),
    "solved under 1 second": _solved_under(1000),
}


def summarize(
    outcomes: Iterable[ExecutionOutcome],
    categories: Mapping[str, Category],
    metrics: Mapping[int, BoardMetrics],
    fields: Sequence[str] = METRIC_FIELDS,
) -> dict[str, CategorySummary]:
    """Compute mean and median of each metric within each category.

    Args:
        outcomes: Outcomes of a batch.
        categories: Mapping of category name to a predicate selecting its members.  An
            outcome may belong to several categories.
        metrics: Board metrics by level identifier.  Outcomes without metrics (e.g. boards
            that failed to parse) are left out.
        fields: Names of the BoardMetrics fields to aggregate.

    Returns:
        A summary per category, in the order of `categories`.  Categories without any
        measured member are omitted.
    """
    outcomes = list(outcomes)
    ret: dict[str, CategorySummary] = {}
    for name, predicate in categories.items():
        members = [
            metrics[o.identifier] for o in outcomes if o.identifier in metrics and predicate(o)
        ]
        if not members:
            continue
        summary = CategorySummary(count=len(members))
        for f in fields:
            values = [getattr(m, f) for m in members]
            summary.stats[f] = Stats(mean=mean(values), median=median(values))
        ret[name] = summary
    return ret


def format_summary(summaries: Mapping[str, CategorySummary]) -> str:
    """Render category summaries as a plain-text table, with box density appended."""
    lines: list[str] = []
    for name, summary in summaries.items():
        lines.append(f"{name} ({summary.count}):")
        for f, s in summary.stats.items():
            lines.append(f"  {f:<10} mean {s.mean:8.2f}  median {s.median:8.2f}")
        if "boxes" in summary.stats and "free" in summary.stats:
            density = summary.ratio("boxes", "free")
            lines.append(
                f"  {'density':<10} mean {density.mean:8.3f}  median {density.median:8.3f}"
            )
    return "\n".join(lines)
