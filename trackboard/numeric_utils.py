from __future__ import annotations

from typing import Any


def as_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def as_int(value: Any) -> int | None:
    parsed = as_float(value)
    if parsed is None:
        return None
    return int(round(parsed))


def format_distance(meters: Any, *, include_unit: bool = True, none_value: str = "N/A") -> str:
    parsed = as_float(meters)
    if parsed is None or parsed < 0:
        return none_value
    km = f"{parsed / 1000.0:.1f}"
    if include_unit:
        return f"{km} km"
    return km


def format_elevation(meters: Any, *, include_unit: bool = True, none_value: str = "N/A") -> str:
    parsed = as_float(meters)
    if parsed is None:
        return none_value
    value = f"{int(round(parsed)):,}"
    if include_unit:
        return f"{value} m"
    return value


def format_duration(seconds: Any, *, none_value: str = "N/A") -> str:
    parsed = as_float(seconds)
    if parsed is None or parsed < 0:
        return none_value
    total = int(parsed)
    hours = total // 3600
    minutes = (total % 3600) // 60
    if hours == 0:
        return f"{minutes}m"
    return f"{hours}h {minutes}m"


def format_metric(metric: str, value: Any) -> str:
    if metric == "distance":
        return format_distance(value)
    if metric == "elevation":
        return format_elevation(value)
    if metric == "time":
        return format_duration(value)
    parsed = as_int(value)
    if parsed is None:
        return "N/A"
    return f"{parsed} activities" if parsed != 1 else "1 activity"
