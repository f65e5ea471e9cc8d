"""Value types shared by the takeoff engine: points, committed shapes, temp measurements."""

# ProTakeoff imports
from protakeoff.materials import GeometryKind

# Standard library imports
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class Point:
    """A 2D point in image pixel space."""

    x: float
    y: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Shape:
    """
    A committed measurement owned by exactly one sheet.

    Attributes:
        material_id (str): Key into the project's material catalog.
        points (tuple[Point, ...]): Ordered vertices.
        geometry_kind (GeometryKind): Copied from the material when the shape is created.
        closed (bool): True only for completed area shapes.
        hidden (bool): Visibility flag; hidden shapes are not snap targets.
        id (str): Unique identifier.
    """

    material_id: str
    points: Tuple[Point, ...]
    geometry_kind: GeometryKind
    closed: bool = False
    hidden: bool = False
    id: str = field(default_factory=new_id)

    def __post_init__(self):
        self.points = tuple(p if isinstance(p, Point) else Point(*p) for p in self.points)
        self.geometry_kind = GeometryKind(self.geometry_kind)


@dataclass(frozen=True)
class TempMeasurement:
    """
    Result of a measure-category tool.

    Never stored in a sheet and never aggregated. ``value`` is in meters (linear),
    square meters (area) or units (point), or None when no scale is set.
    """

    points: Tuple[Point, ...]
    geometry_kind: GeometryKind
    closed: bool
    value: Optional[float]
    label: str


@dataclass(frozen=True, eq=False)
class ImageState:
    """
    A decoded base image as handed over by the image loader.

    ``source`` is an opaque handle (path, URL or array) the engine never inspects.
    """

    source: Any
    width: int
    height: int
