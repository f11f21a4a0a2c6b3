"""Regression-based goal forecasting."""

import math
from collections.abc import Sequence
from datetime import datetime
from typing import Literal

from nutritrack.domain.forecast import (
    ForecastStatus,
    ForecastValue,
    GoalForecasts,
    NutrientForecasts,
)
from nutritrack.domain.goals import MacroTargets, macro_targets
from nutritrack.domain.log import LogEntry
from nutritrack.domain.stats import RegressionDataPoint
from nutritrack.services.aggregation import historical_series
from nutritrack.services.regression import fit

Period = Literal["weekly", "monthly"]

HISTORICAL_WINDOW = 30
WEEKLY_REGRESSION_INPUT = 14
MIN_DAYS_WEEKLY = 5
MIN_DAYS_MONTHLY = 7
DAYS_PER_WEEK = 7

SIGNIFICANT_PERCENT = 15.0
SLIGHT_PERCENT = 5.0

NUTRIENTS = ("calories", "protein", "carbs", "fat")

_STATUS_TEXT = {
    ForecastStatus.ON_TRACK: "On track.",
    ForecastStatus.SLIGHTLY_OVER: "Slightly over goal by {percentage}%.",
    ForecastStatus.SIGNIFICANTLY_OVER: "Significantly over goal by {percentage}%.",
    ForecastStatus.SLIGHTLY_UNDER: "Slightly under goal by {percentage}%.",
    ForecastStatus.SIGNIFICANTLY_UNDER: "Significantly under goal by {percentage}%.",
}


def forecast(
    entries: Sequence[LogEntry], effective_goal: float, now: datetime
) -> GoalForecasts:
    """Project weekly and monthly nutrient intake against goal targets."""
    if not entries or effective_goal <= 0:
        return GoalForecasts(weekly=None, monthly=None)

    targets = macro_targets(effective_goal)
    history = historical_series(entries, now, HISTORICAL_WINDOW)
    weekly: dict[str, ForecastValue] = {}
    monthly: dict[str, ForecastValue] = {}
    for nutrient in NUTRIENTS:
        series = history.for_nutrient(nutrient)
        weekly[nutrient] = weekly_forecast(series, targets, nutrient)
        monthly[nutrient] = monthly_forecast(series, targets, nutrient)
    return GoalForecasts(
        weekly=NutrientForecasts(**weekly),
        monthly=NutrientForecasts(**monthly),
    )


def weekly_forecast(
    series: Sequence[RegressionDataPoint], targets: MacroTargets, nutrient: str
) -> ForecastValue:
    """Project next week's total from the most recent fourteen days."""
    goal = targets.for_nutrient(nutrient) * DAYS_PER_WEEK
    recent = [
        RegressionDataPoint(x=index, y=point.y)
        for index, point in enumerate(series[-WEEKLY_REGRESSION_INPUT:])
    ]
    if _logged_days(recent) < MIN_DAYS_WEEKLY:
        return _more_data_needed("weekly", goal)
    model = fit(recent)
    projected = sum(
        model.predict(len(recent) + offset) for offset in range(DAYS_PER_WEEK)
    )
    return build_forecast_value("weekly", nutrient, max(0.0, projected), goal)


def monthly_forecast(
    series: Sequence[RegressionDataPoint], targets: MacroTargets, nutrient: str
) -> ForecastValue:
    """Return the current daily trend level over the full history window."""
    goal = targets.for_nutrient(nutrient)
    if _logged_days(series) < MIN_DAYS_MONTHLY:
        return _more_data_needed("monthly", goal)
    model = fit(series)
    projected = model.predict(len(series) - 1)
    return build_forecast_value("monthly", nutrient, max(0.0, projected), goal)


def classify(projected: float, goal: float) -> ForecastStatus:
    """Classify a projection relative to its goal; thresholds are exclusive."""
    if goal <= 0 or not math.isfinite(goal):
        return ForecastStatus.TREND_NOT_RELIABLE
    diff_percent = (projected - goal) * 100 / goal
    if diff_percent > SIGNIFICANT_PERCENT:
        return ForecastStatus.SIGNIFICANTLY_OVER
    if diff_percent > SLIGHT_PERCENT:
        return ForecastStatus.SLIGHTLY_OVER
    if diff_percent < -SIGNIFICANT_PERCENT:
        return ForecastStatus.SIGNIFICANTLY_UNDER
    if diff_percent < -SLIGHT_PERCENT:
        return ForecastStatus.SLIGHTLY_UNDER
    return ForecastStatus.ON_TRACK


def build_forecast_value(
    period: Period, nutrient: str, projected: float, goal: float
) -> ForecastValue:
    """Classify a projection and attach its display message."""
    status = classify(projected, goal)
    return ForecastValue(
        value=projected,
        status=status,
        goal=goal,
        message=format_forecast_message(period, nutrient, projected, goal, status),
    )


def format_forecast_message(
    period: Period,
    nutrient: str,
    projected: float,
    goal: float,
    status: ForecastStatus,
) -> str:
    """Format a forecast for display."""
    if status == ForecastStatus.TREND_NOT_RELIABLE:
        return "Set a calorie goal to see forecasts."
    if status == ForecastStatus.MORE_DATA_NEEDED:
        days = MIN_DAYS_WEEKLY if period == "weekly" else MIN_DAYS_MONTHLY
        return f"Log food on at least {days} days to see this forecast."
    decimals = 0 if nutrient == "calories" else 1
    percentage = f"{abs((projected - goal) * 100 / goal):.0f}"
    status_text = _STATUS_TEXT[status].format(percentage=percentage)
    return (
        f"{period.capitalize()} {nutrient}: "
        f"{projected:.{decimals}f} / {goal:.{decimals}f}. {status_text}"
    )


def _more_data_needed(period: Period, goal: float) -> ForecastValue:
    return ForecastValue(
        value=0.0,
        status=ForecastStatus.MORE_DATA_NEEDED,
        goal=goal,
        message=format_forecast_message(
            period, "", 0.0, goal, ForecastStatus.MORE_DATA_NEEDED
        ),
    )


def _logged_days(series: Sequence[RegressionDataPoint]) -> int:
    return sum(1 for point in series if point.y > 0)
