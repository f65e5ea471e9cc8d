"""
Project and sheet management (the shape store).

A Project owns the material catalog, the calibration, and an ordered list of
sheets. Exactly one sheet is active at a time. Id-scoped operations (single
delete, visibility toggle) search across every sheet because the selection may
come from an aggregated, cross-sheet view.
"""

# ProTakeoff imports
from protakeoff import config
from protakeoff.calibration import Calibration
from protakeoff.errors import InvalidShapeError, LastSheetError
from protakeoff.materials import MaterialCatalog
from protakeoff.shapes import ImageState, Shape, new_id

# Standard library imports
import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class Sheet:
    """An independent drawing surface holding its own committed shapes."""

    name: str
    shapes: List[Shape] = field(default_factory=list)
    id: str = field(default_factory=new_id)


class Project:
    """Sheets, shared catalog and calibration for one base image.

    Args:
        catalog: Material catalog shared by reference. Defaults to the starter catalog.
        calibration: Calibration state. Defaults to an empty (absent) calibration.
    """

    def __init__(
        self,
        catalog:        Optional[MaterialCatalog]   = None,
        calibration:    Optional[Calibration]       = None,
    ):
        self.catalog:           MaterialCatalog         = catalog if catalog is not None else MaterialCatalog.default()
        self.calibration:       Calibration             = calibration if calibration is not None else Calibration()
        self.image:             Optional[ImageState]    = None
        self.sheets:            List[Sheet]             = [Sheet(name=config.DEFAULT_SHEET_NAME)]
        self.active_sheet_id:   str                     = self.sheets[0].id
        self._sheet_counter:    int                     = 1

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    @property
    def active_sheet(self) -> Sheet:
        return self.get_sheet(self.active_sheet_id)

    def get_sheet(self, sheet_id: str) -> Sheet:
        for sheet in self.sheets:
            if sheet.id == sheet_id:
                return sheet
        raise KeyError(f"Unknown sheet: {sheet_id}")

    def find_shape(self, shape_id: str) -> Optional[Tuple[Sheet, Shape]]:
        """Returns (sheet, shape) for a shape id on any sheet, or None."""
        for sheet in self.sheets:
            for shape in sheet.shapes:
                if shape.id == shape_id:
                    return sheet, shape
        return None

    def iter_shapes(self, active_only: bool = False) -> Iterator[Shape]:
        sheets = [self.active_sheet] if active_only else self.sheets
        for sheet in sheets:
            yield from sheet.shapes

    def shapes(self, active_only: bool = False) -> List[Shape]:
        return list(self.iter_shapes(active_only))

    # -------------------------------------------------------------------------
    # Shape store
    # -------------------------------------------------------------------------

    def validate_shape(self, shape: Shape) -> None:
        """
        Checks a shape against the catalog and the minimum point counts.

        Raises:
            InvalidShapeError: If the material is unknown, its geometry kind differs
                               from the shape's, or the point count is too low.
        """
        material = self.catalog.find(shape.material_id)
        if material is None:
            raise InvalidShapeError(f"Unknown material: {shape.material_id}")
        if shape.geometry_kind != material.geometry_kind:
            raise InvalidShapeError(
                f"{shape.geometry_kind.value} shape does not match {material.geometry_kind.value} material '{material.id}'"
            )
        minimum = shape.geometry_kind.min_points
        if len(shape.points) < minimum:
            raise InvalidShapeError(
                f"{shape.geometry_kind.value} shape needs at least {minimum} points, got {len(shape.points)}"
            )

    def add(self, shape: Shape) -> Shape:
        """Appends a validated shape to the active sheet."""
        self.validate_shape(shape)
        if self.find_shape(shape.id) is not None:
            raise InvalidShapeError(f"Duplicate shape id: {shape.id}")
        self.active_sheet.shapes.append(shape)
        logger.info(
            f"Added {shape.geometry_kind.value} shape {shape.id} ({shape.material_id}, "
            f"{len(shape.points)} pts) to '{self.active_sheet.name}'"
        )
        return shape

    def remove_last(self) -> Optional[Shape]:
        """Drops the most recently added shape on the active sheet. No-op if empty."""
        shapes = self.active_sheet.shapes
        if not shapes:
            return None
        removed = shapes.pop()
        logger.info(f"Removed last shape {removed.id}")
        return removed

    def remove_one(self, shape_id: str) -> Optional[Shape]:
        """Removes a shape by id from whichever sheet holds it."""
        found = self.find_shape(shape_id)
        if found is None:
            return None
        sheet, shape = found
        sheet.shapes.remove(shape)
        logger.info(f"Removed shape {shape_id} from '{sheet.name}'")
        return shape

    def remove_by_material(self, material_id: str) -> int:
        """Removes every shape of a material across all sheets. Returns the number removed."""
        removed = 0
        for sheet in self.sheets:
            kept = [s for s in sheet.shapes if s.material_id != material_id]
            removed += len(sheet.shapes) - len(kept)
            sheet.shapes[:] = kept
        logger.info(f"Removed {removed} shapes of material '{material_id}'")
        return removed

    def toggle_visibility(self, shape_id: str) -> Optional[bool]:
        """Flips the hidden flag of one shape. Returns the new flag, or None if not found."""
        found = self.find_shape(shape_id)
        if found is None:
            return None
        _, shape = found
        shape.hidden = not shape.hidden
        return shape.hidden

    def toggle_visibility_for_material(self, material_id: str) -> Optional[bool]:
        """
        Normalizes visibility of all shapes of a material.

        If every shape of the material is hidden they all become visible,
        otherwise they all become hidden.

        Returns:
            bool or None: The hidden flag applied, or None if the material has no shapes.
        """
        shapes = [s for s in self.iter_shapes() if s.material_id == material_id]
        if not shapes:
            return None
        hide = not all(s.hidden for s in shapes)
        for shape in shapes:
            shape.hidden = hide
        return hide

    def clear_sheet(self, sheet_id: Optional[str] = None) -> int:
        """Removes every shape of a sheet (active sheet by default)."""
        sheet = self.get_sheet(sheet_id) if sheet_id is not None else self.active_sheet
        count = len(sheet.shapes)
        sheet.shapes.clear()
        logger.info(f"Cleared {count} shapes from '{sheet.name}'")
        return count

    # -------------------------------------------------------------------------
    # Sheets
    # -------------------------------------------------------------------------

    def create_sheet(self, name: Optional[str] = None) -> Sheet:
        """Creates an empty sheet and makes it active."""
        self._sheet_counter += 1
        if name is None or not name.strip():
            name = config.SHEET_NAME_PATTERN.format(index=self._sheet_counter)
        sheet = Sheet(name=name.strip())
        self.sheets.append(sheet)
        self.active_sheet_id = sheet.id
        logger.info(f"Created sheet '{sheet.name}'")
        return sheet

    def delete_sheet(self, sheet_id: str) -> Sheet:
        """
        Deletes a sheet and its shapes.

        When the active sheet is deleted, the first remaining sheet becomes active.

        Raises:
            LastSheetError: If it is the only remaining sheet.
            KeyError: If the sheet does not exist.
        """
        sheet = self.get_sheet(sheet_id)
        if len(self.sheets) == 1:
            raise LastSheetError("A project must keep at least one sheet")
        self.sheets.remove(sheet)
        if self.active_sheet_id == sheet_id:
            self.active_sheet_id = self.sheets[0].id
        logger.info(f"Deleted sheet '{sheet.name}' ({len(sheet.shapes)} shapes)")
        return sheet

    def rename_sheet(self, sheet_id: str, name: str) -> bool:
        """Renames a sheet. Blank names are ignored."""
        if name is None or not name.strip():
            return False
        self.get_sheet(sheet_id).name = name.strip()
        return True

    def set_active_sheet(self, sheet_id: str) -> Sheet:
        sheet = self.get_sheet(sheet_id)
        self.active_sheet_id = sheet.id
        return sheet

    # -------------------------------------------------------------------------
    # Base image
    # -------------------------------------------------------------------------

    def load_image(self, image: ImageState) -> None:
        """Replaces the base image: clears calibration and resets to one empty sheet."""
        self.image = image
        self.calibration.reset()
        self.sheets = [Sheet(name=config.DEFAULT_SHEET_NAME)]
        self.active_sheet_id = self.sheets[0].id
        self._sheet_counter = 1
        logger.info(f"Loaded base image {image.width}x{image.height} px")
