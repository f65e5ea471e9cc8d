"""Quantity aggregation.

Groups committed shapes by material and converts pixel geometry to meters
using the project calibration. Measure-category materials are never aggregated.
"""

# ProTakeoff imports
from protakeoff import config
from protakeoff.calibration import Calibration
from protakeoff.geometry_utils import format_meters, format_square_meters, format_units, polygon_area, polyline_length
from protakeoff.geometry_utils import segment_lengths as _segment_lengths_px
from protakeoff.materials import GeometryKind, Material, MaterialCatalog
from protakeoff.project import Project
from protakeoff.shapes import Shape

# Standard library imports
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

# Third-party imports
import pandas as pd

logger = logging.getLogger(__name__)

UNIT_SYMBOLS = {
    GeometryKind.LINEAR : "m",
    GeometryKind.AREA   : "m²",
    GeometryKind.POINT  : "un",
}


@dataclass
class ShapeQuantity:
    """One shape's converted value inside a group (m, m² or 1 unit)."""

    shape: Shape
    value: float


@dataclass
class QuantityGroup:
    """
    Totals for one material.

    Attributes:
        material (Material): Catalog entry (live reference).
        count (int): Number of shapes.
        primary_value (float): Total meters (linear), square meters (area) or units (point).
        vertical_area (float, optional): primary_value * height for linear materials with a height.
        items (list[ShapeQuantity]): Per-shape breakdown, in drawing order.
    """

    material: Material
    count: int = 0
    primary_value: float = 0.0
    vertical_area: Optional[float] = None
    items: List[ShapeQuantity] = field(default_factory=list)

    @property
    def unit(self) -> str:
        return UNIT_SYMBOLS[self.material.geometry_kind]

    @property
    def category_label(self) -> str:
        return self.material.category.label

    @property
    def primary_label(self) -> str:
        return format_quantity(self.primary_value, self.material.geometry_kind)

    @property
    def vertical_area_label(self) -> Optional[str]:
        if self.vertical_area is None:
            return None
        return format_square_meters(self.vertical_area)


@dataclass(frozen=True)
class ReportRow:
    """A row handed to the external report renderer."""

    material_name: str
    category_label: str
    count: int
    primary_value: str
    vertical_area: Optional[str]


def format_quantity(value: float, kind: GeometryKind) -> str:
    if kind == GeometryKind.LINEAR:
        return format_meters(value)
    if kind == GeometryKind.AREA:
        return format_square_meters(value)
    return format_units(value)


def shape_value(shape: Shape, calibration: Calibration) -> float:
    """
    Converted value of a single shape.

    Returns:
        float: Meters for linear shapes, square meters for areas, 1.0 for points.
    """
    if shape.geometry_kind == GeometryKind.POINT:
        return 1.0
    if shape.geometry_kind == GeometryKind.AREA:
        return calibration.to_square_meters(polygon_area(shape.points))
    return calibration.to_meters(polyline_length(shape.points))


def segment_lengths(shape: Shape, calibration: Calibration) -> List[float]:
    """Real length of every segment of a shape (meters), for on-canvas labels."""
    if not calibration.is_ready:
        return []
    return [calibration.to_meters(px) for px in _segment_lengths_px(shape.points)]


def aggregate(
    shapes:         Iterable[Shape],
    catalog:        MaterialCatalog,
    calibration:    Calibration,
) -> List[QuantityGroup]:
    """
    Groups shapes by material and computes per-material totals.

    Args:
        shapes: Shapes to aggregate (e.g. the active sheet or the whole project).
        catalog: Material catalog used to resolve ``material_id``.
        calibration: Scale used for unit conversion.

    Returns:
        list[QuantityGroup]: One group per material in first-encountered order.
                             Empty when the calibration is not set.
    """
    if not calibration.is_ready:
        logger.debug("Aggregation skipped: no calibration")
        return []

    groups: "OrderedDict[str, QuantityGroup]" = OrderedDict()
    for shape in shapes:
        material = catalog.find(shape.material_id)
        if material is None:
            logger.warning(f"Shape {shape.id} references unknown material '{shape.material_id}'")
            continue
        if material.is_measure:
            continue

        group = groups.get(material.id)
        if group is None:
            group = groups[material.id] = QuantityGroup(material=material)
        value = shape_value(shape, calibration)
        group.items.append(ShapeQuantity(shape=shape, value=value))
        group.count += 1
        group.primary_value += value

    for group in groups.values():
        material = group.material
        if material.geometry_kind == GeometryKind.LINEAR and material.height:
            group.vertical_area = group.primary_value * material.height

    return list(groups.values())


def aggregate_project(project: Project, active_only: bool = False) -> List[QuantityGroup]:
    """Aggregates the whole project, or only the active sheet."""
    return aggregate(project.iter_shapes(active_only), project.catalog, project.calibration)


def report_rows(project: Project) -> List[ReportRow]:
    """Whole-project rows for the quantity report."""
    return [
        ReportRow(
            material_name=group.material.name,
            category_label=group.category_label,
            count=group.count,
            primary_value=group.primary_label,
            vertical_area=group.vertical_area_label,
        )
        for group in aggregate_project(project)
    ]


def sort_for_display(groups: List[QuantityGroup]) -> List[QuantityGroup]:
    """Stable sort of groups by the configured category order."""
    order = {category: i for i, category in enumerate(config.CATEGORY_ORDER)}
    return sorted(groups, key=lambda g: order.get(g.material.category.value, len(order)))


def to_dataframe(groups: List[QuantityGroup]) -> pd.DataFrame:
    """Summary table with one row per material."""
    columns = ["material", "category", "count", "quantity", "unit", "height_m", "vertical_area_m2"]
    rows = [
        {
            "material": g.material.name,
            "category": g.category_label,
            "count": g.count,
            "quantity": g.primary_value,
            "unit": g.unit,
            "height_m": g.material.height,
            "vertical_area_m2": g.vertical_area,
        }
        for g in groups
    ]
    return pd.DataFrame(rows, columns=columns)


def items_to_dataframe(project: Project, groups: List[QuantityGroup]) -> pd.DataFrame:
    """Per-shape breakdown with the sheet each shape lives on."""
    columns = ["material", "sheet", "shape_id", "item", "quantity", "unit", "hidden"]
    rows = []
    for g in groups:
        for i, item in enumerate(g.items, start=1):
            found = project.find_shape(item.shape.id)
            rows.append({
                "material": g.material.name,
                "sheet": found[0].name if found else None,
                "shape_id": item.shape.id,
                "item": i,
                "quantity": item.value,
                "unit": g.unit,
                "hidden": item.shape.hidden,
            })
    return pd.DataFrame(rows, columns=columns)
