"""
Material catalog for the takeoff engine.

This module contains:
- MaterialCategory: taxonomy of takeoff categories (wall, floor, ...)
- GeometryKind: how a material is drawn (point, linear, area)
- Material: a catalog entry with its visual and physical attributes
- MaterialCatalog: ordered, id-indexed collection of materials shared by a project
"""

# ProTakeoff imports
from protakeoff import config
from protakeoff.errors import InvalidInputError

# Standard library imports
import logging
import math
import re
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Union

logger = logging.getLogger(__name__)

# Plain decimal with one optional separator (already normalized to '.')
_DECIMAL_PATTERN = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)")


class MaterialCategory(str, Enum):
    WALL = "wall"
    FLOOR = "floor"
    STRUCTURE = "structure"
    FINISH = "finish"
    ROOF = "roof"
    MEASURE = "measure"

    @property
    def label(self) -> str:
        return config.CATEGORY_LABELS[self.value]


class GeometryKind(str, Enum):
    POINT = "point"
    LINEAR = "linear"
    AREA = "area"

    @property
    def min_points(self) -> int:
        return {GeometryKind.POINT: 1, GeometryKind.LINEAR: 2, GeometryKind.AREA: 3}[self]


@dataclass
class Material:
    """
    A named, typed category of measurable item.

    Attributes:
        id (str): Unique, stable identifier referenced by shapes.
        name (str): Display name.
        category (MaterialCategory): Takeoff category; ``measure`` materials are ephemeral.
        geometry_kind (GeometryKind): Fixed at creation.
        color (str): Hex color used by renderers.
        line_width (float, optional): Real-world stroke width in meters.
        fill_opacity (float, optional): Fill opacity for area materials.
        height (float, optional): Height in meters, used for vertical area of linear materials.
    """

    id: str
    name: str
    category: MaterialCategory
    geometry_kind: GeometryKind
    color: str
    line_width: Optional[float] = None
    fill_opacity: Optional[float] = None
    height: Optional[float] = None

    def __post_init__(self):
        self.category = MaterialCategory(self.category)
        self.geometry_kind = GeometryKind(self.geometry_kind)

    def __setattr__(self, name, value):
        if name == "geometry_kind" and "geometry_kind" in self.__dict__:
            if GeometryKind(value) != self.__dict__["geometry_kind"]:
                raise AttributeError(f"geometry kind of material '{self.id}' cannot change")
        super().__setattr__(name, value)

    @property
    def is_measure(self) -> bool:
        return self.category == MaterialCategory.MEASURE


def parse_decimal(text: Union[str, float, int]) -> float:
    """
    Parses a user-typed decimal number, accepting ',' or '.' as decimal separator.

    Raises:
        InvalidInputError: If the text is not a finite number.
    """
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        value = float(text)
    else:
        normalized = str(text).strip().replace(",", ".")
        if not _DECIMAL_PATTERN.fullmatch(normalized):
            raise InvalidInputError(f"'{text}' is not a number")
        value = float(normalized)
    if not math.isfinite(value):
        raise InvalidInputError(f"'{text}' is not a finite number")
    return value


class MaterialCatalog:
    """Ordered set of materials indexed by id.

    A single catalog is owned by a project and passed by reference to every
    component that needs it. Shapes hold only the material id, so height edits
    apply retroactively to existing shapes.
    """

    def __init__(self, materials: Iterable[Material] = ()):
        self._materials: "OrderedDict[str, Material]" = OrderedDict()
        for material in materials:
            if material.id in self._materials:
                raise ValueError(f"Duplicate material id: {material.id}")
            self._materials[material.id] = material

    @classmethod
    def default(cls) -> "MaterialCatalog":
        """Builds the starter catalog from ``config.DEFAULT_MATERIALS``."""
        return cls(
            Material(
                id=entry["id"],
                name=entry["name"],
                category=entry["category"],
                geometry_kind=entry["kind"],
                color=entry["color"],
                line_width=entry.get("line_width"),
                fill_opacity=entry.get("opacity"),
                height=entry.get("height"),
            )
            for entry in config.DEFAULT_MATERIALS
        )

    def __iter__(self) -> Iterator[Material]:
        return iter(self._materials.values())

    def __len__(self) -> int:
        return len(self._materials)

    def __contains__(self, material_id: str) -> bool:
        return material_id in self._materials

    def list(self) -> List[Material]:
        return list(self._materials.values())

    def find(self, material_id: str) -> Optional[Material]:
        return self._materials.get(material_id)

    def by_category(self, category: Union[MaterialCategory, str]) -> List[Material]:
        category = MaterialCategory(category)
        return [m for m in self._materials.values() if m.category == category]

    def update_height(self, material_id: str, new_height: Optional[Union[float, str]]) -> bool:
        """
        Sets the height of a linear material.

        Args:
            material_id: Material to update.
            new_height: Height in meters, a decimal string (',' or '.'), or None/blank to clear.

        Returns:
            bool: True if the height was applied, False if the material is unknown
                  or is not linear (the edit is ignored).

        Raises:
            InvalidInputError: If the height is not a number or is negative.
        """
        material = self._materials.get(material_id)
        if material is None or material.geometry_kind != GeometryKind.LINEAR:
            logger.debug(f"Ignoring height edit for non-linear or unknown material '{material_id}'")
            return False

        if new_height is None or (isinstance(new_height, str) and not new_height.strip()):
            height = None
        else:
            height = parse_decimal(new_height)
            if height < 0:
                raise InvalidInputError(f"Height must not be negative: {new_height}")

        material.height = height
        logger.info(f"Height of '{material.name}' set to {height}")
        return True
