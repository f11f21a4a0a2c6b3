"""Least-squares trend fitting over day-indexed series."""

from collections.abc import Sequence
from dataclasses import dataclass

from nutritrack.domain.stats import RegressionDataPoint

MIN_POINTS = 2


@dataclass(frozen=True)
class RegressionModel:
    """A fitted line over day-indexed values."""

    slope: float
    intercept: float

    def predict(self, x: float) -> float:
        """Return the fitted value at x; extrapolation is unbounded."""
        return self.slope * x + self.intercept


def fit(points: Sequence[RegressionDataPoint]) -> RegressionModel:
    """Fit an ordinary least-squares line through the points.

    Fewer than two points yields a flat zero model. When every x is the
    same the slope is undefined and the model predicts the mean of y.
    """
    n = len(points)
    if n < MIN_POINTS:
        return RegressionModel(slope=0.0, intercept=0.0)

    sum_x = 0.0
    sum_y = 0.0
    sum_xy = 0.0
    sum_xx = 0.0
    for point in points:
        sum_x += point.x
        sum_y += point.y
        sum_xy += point.x * point.y
        sum_xx += point.x * point.x

    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return RegressionModel(slope=0.0, intercept=sum_y / n)

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return RegressionModel(slope=slope, intercept=intercept)
