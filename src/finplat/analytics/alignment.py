from __future__ import annotations

from typing import Sequence

from finplat.domain.models import ZERO, AlignedSeries, MonthSeries


def align_series(series_list: Sequence[MonthSeries]) -> AlignedSeries:
    """Put every series on the sorted union of labels, zero-filling gaps."""
    labels = sorted({label for series in series_list for label in series.labels})
    values = []
    for series in series_list:
        lookup = dict(zip(series.labels, series.values))
        values.append(tuple(lookup.get(label, ZERO) for label in labels))
    return AlignedSeries(labels=tuple(labels), values=tuple(values))
