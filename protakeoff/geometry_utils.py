# ProTakeoff imports

# Standard library imports
import math
from typing import Sequence

# Third-party imports
import numpy as np


def _as_array(points: Sequence) -> np.ndarray:
    """
    Converts a sequence of points into an (N, 2) float array.

    Accepts objects exposing ``x`` and ``y`` attributes (e.g. ``Point``) as well
    as plain ``(x, y)`` pairs.
    """
    if len(points) == 0:
        return np.empty((0, 2), dtype=float)
    if hasattr(points[0], "x"):
        return np.array([(p.x, p.y) for p in points], dtype=float)
    return np.asarray(points, dtype=float).reshape(-1, 2)


def distance(a, b) -> float:
    """Euclidean distance between two points."""
    return math.hypot(b.x - a.x, b.y - a.y)


def polyline_length(points: Sequence) -> float:
    """
    Sum of the consecutive segment lengths of a polyline.

    Args:
        points: Ordered vertices of the polyline.

    Returns:
        float: Total length in the same units as the input. 0.0 when fewer than
               2 points are given.
    """
    if len(points) < 2:
        return 0.0
    coords = _as_array(points)
    deltas = np.diff(coords, axis=0)
    return float(np.hypot(deltas[:, 0], deltas[:, 1]).sum())


def polygon_area(points: Sequence) -> float:
    """
    Area of a simple polygon using the shoelace formula.

    The polygon is implicitly closed (the last vertex connects back to the
    first) and the result is non-negative for either winding order.

    Args:
        points: Polygon vertices, without a repeated closing vertex.

    Returns:
        float: Area in squared input units. 0.0 when fewer than 3 points are given.
    """
    if len(points) < 3:
        return 0.0
    coords = _as_array(points)
    xs, ys = coords[:, 0], coords[:, 1]
    return float(0.5 * abs(np.dot(xs, np.roll(ys, -1)) - np.dot(ys, np.roll(xs, -1))))


def segment_lengths(points: Sequence) -> list[float]:
    """Lengths of each consecutive segment of a polyline."""
    if len(points) < 2:
        return []
    coords = _as_array(points)
    deltas = np.diff(coords, axis=0)
    return [float(v) for v in np.hypot(deltas[:, 0], deltas[:, 1])]


def midpoint(a, b) -> tuple[float, float]:
    """Midpoint of segment a-b as an (x, y) tuple."""
    return (a.x + b.x) / 2, (a.y + b.y) / 2


# =============================================================================
# FORMATTING (pt-BR: "1.234,56")
# =============================================================================

def format_number(value: float, decimals: int = 2) -> str:
    """Formats a number with '.' as thousands separator and ',' as decimal separator."""
    text = f"{value:,.{decimals}f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_meters(value: float) -> str:
    return format_number(value) + " m"


def format_square_meters(value: float) -> str:
    return format_number(value) + " m²"


def format_units(value: float) -> str:
    return format_number(value, decimals=0) + " un"
