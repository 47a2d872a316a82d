"""Distribution summaries for box-plot rendering."""
from typing import Iterable, Optional

import pandas as pd

from classroom_analytics.domain.analytics import BoxPlot


def calculate_stats(values: Iterable[float]) -> Optional[BoxPlot]:
    """Summarize samples as min, quartiles, max and mean.

    Quartiles use linear interpolation over the sorted index space: the
    p-th percentile sits at index (p/100)*(n-1) and blends the two
    bracketing samples by fractional distance. This is pandas' default
    `quantile` method, and it must stay that way so struggle rankings and
    box plots agree on quartile placement.

    Args:
        values: Unordered numeric samples (may be empty)

    Returns:
        BoxPlot, or None when there are no samples

    Example:
        >>> calculate_stats([1, 2, 3, 4]).q1
        1.75
    """
    series = pd.Series(list(values), dtype="float64")
    if series.empty:
        return None
    quartiles = series.quantile([0.25, 0.5, 0.75], interpolation="linear")
    return BoxPlot(
        min=float(series.min()),
        q1=float(quartiles.loc[0.25]),
        median=float(quartiles.loc[0.5]),
        q3=float(quartiles.loc[0.75]),
        max=float(series.max()),
        mean=float(series.mean()),
    )


def mean_or_zero(values) -> float:
    """Arithmetic mean, 0.0 for no values."""
    values = list(values)
    return sum(values) / len(values) if values else 0.0
