"""
Interactive drawing protocol.

Turns raw pointer and key events into committed shapes, temp measurements,
calibration captures and selections. The pending (mid-shape) state is an
explicit tagged value:

    Idle                             nothing pending
    AccumulatingPoints(kind, points) linear or area shape in progress
    AwaitingCalibrationPoint(first)  first reference point placed

Clicks are passed through the snap resolver before any transition. Clicks that
cannot advance the protocol (e.g. finishing a one-point line) are ignored.
"""

# ProTakeoff imports
from protakeoff import config
from protakeoff.errors import InvalidInputError
from protakeoff.geometry_utils import distance, format_meters, format_square_meters, format_units, polygon_area, polyline_length
from protakeoff.materials import GeometryKind, Material
from protakeoff.project import Project
from protakeoff.shapes import ImageState, Point, Shape, TempMeasurement

# Standard library imports
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

# Third-party imports
import numpy as np
from matplotlib.path import Path as MplPath

logger = logging.getLogger(__name__)


class ToolMode(str, Enum):
    SELECT = "select"
    CALIBRATE = "calibrate"
    DRAW = "draw"


class CancelResult(str, Enum):
    """Which rung of the cancel priority chain fired."""

    PENDING = "pending"
    TEMP_MEASUREMENT = "temp_measurement"
    SELECTION = "selection"
    NOTHING = "nothing"


# -----------------------------------------------------------------------------
# Pending states
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Idle:
    points: Tuple[Point, ...] = ()


@dataclass(frozen=True)
class AccumulatingPoints:
    kind: GeometryKind
    points: Tuple[Point, ...]


@dataclass(frozen=True)
class AwaitingCalibrationPoint:
    first: Point

    @property
    def points(self) -> Tuple[Point, ...]:
        return (self.first,)


PendingState = Union[Idle, AccumulatingPoints, AwaitingCalibrationPoint]
IDLE = Idle()


@dataclass(frozen=True)
class Preview:
    """
    Live feedback for the pointer position.

    Attributes:
        cursor: Effective pointer position (snapped if a snap target was found).
        snap: Snap target, if any.
        anchor: Last pending point the rubber band starts from, if any.
        label: Length of the rubber-band segment, "..." without scale, or "FECHAR".
        closing: True when a click here would close the pending area.
    """

    cursor: Point
    snap: Optional[Point] = None
    anchor: Optional[Point] = None
    label: Optional[str] = None
    closing: bool = False


class DrawingStateMachine:
    """Drawing, calibration and selection protocol over a project.

    Args:
        project: Project holding the shape store, catalog and calibration.
        snap_threshold: Snap radius in image pixels.
        snap_enabled: Global snapping toggle; a held modifier key inverts it per event.
    """

    def __init__(
        self,
        project:        Project,
        snap_threshold: float   = config.SNAP_THRESHOLD_PX,
        snap_enabled:   bool    = config.SNAP_ENABLED,
    ):
        self.project                                        = project
        self.snap_threshold:        float                   = snap_threshold
        self.snap_enabled:          bool                    = snap_enabled

        self.mode:                  ToolMode                = ToolMode.SELECT
        self.material_id:           Optional[str]           = None
        self.state:                 PendingState            = IDLE
        self.temp_measurement:      Optional[TempMeasurement] = None
        self.selected_shape_id:     Optional[str]           = None

        # Pixel length of a finished calibration capture awaiting the real length
        self.pending_calibration_px: Optional[float]        = None

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def material(self) -> Optional[Material]:
        if self.material_id is None:
            return None
        return self.project.catalog.find(self.material_id)

    @property
    def pending_points(self) -> Tuple[Point, ...]:
        return self.state.points

    @property
    def is_idle(self) -> bool:
        return isinstance(self.state, Idle)

    @property
    def selected_shape(self) -> Optional[Shape]:
        if self.selected_shape_id is None:
            return None
        found = self.project.find_shape(self.selected_shape_id)
        return found[1] if found else None

    # -------------------------------------------------------------------------
    # Mode / material / sheet / image
    # -------------------------------------------------------------------------

    def _discard_work(self) -> None:
        self.state = IDLE
        self.temp_measurement = None

    def set_mode(self, mode: Union[ToolMode, str]) -> None:
        """Switches tool mode. A half-drawn shape and any temp measurement are dropped."""
        self.mode = ToolMode(mode)
        self._discard_work()
        logger.debug(f"Mode: {self.mode.value}")

    def set_material(self, material_id: str) -> None:
        """Selects a drawing material and switches to DRAW mode."""
        if self.project.catalog.find(material_id) is None:
            raise KeyError(f"Unknown material: {material_id}")
        self.material_id = material_id
        self.set_mode(ToolMode.DRAW)

    def switch_sheet(self, sheet_id: str) -> None:
        """Activates another sheet. Pending work and the selection are dropped."""
        self.project.set_active_sheet(sheet_id)
        self._discard_work()
        self.clear_selection()

    def load_image(self, image: ImageState) -> None:
        """Installs a new base image: resets the project and enters CALIBRATE mode."""
        self.project.load_image(image)
        self.selected_shape_id = None
        self.pending_calibration_px = None
        self.set_mode(ToolMode.CALIBRATE)

    # -------------------------------------------------------------------------
    # Snapping
    # -------------------------------------------------------------------------

    def _snapping_active(self, modifier: bool) -> bool:
        return self.snap_enabled != bool(modifier)

    def resolve_snap(self, raw: Point, modifier: bool = False) -> Optional[Point]:
        """
        Finds the nearest snap target within the snap threshold.

        Candidates are the first pending point (once 3+ points are pending) and
        every vertex of every visible shape on the active sheet.
        """
        if not self._snapping_active(modifier):
            return None

        candidates = []
        pending = self.pending_points
        if len(pending) >= 3:
            candidates.append(pending[0])
        for shape in self.project.active_sheet.shapes:
            if not shape.hidden:
                candidates.extend(shape.points)
        if not candidates:
            return None

        coords = np.array([(p.x, p.y) for p in candidates], dtype=float)
        dists = np.hypot(coords[:, 0] - raw.x, coords[:, 1] - raw.y)
        min_idx = int(np.argmin(dists))
        if dists[min_idx] < self.snap_threshold:
            logger.debug(f"Snapped ({raw.x:.1f}, {raw.y:.1f}) to ({candidates[min_idx].x:.1f}, {candidates[min_idx].y:.1f})")
            return candidates[min_idx]
        return None

    def effective_point(self, raw: Point, modifier: bool = False) -> Point:
        snap = self.resolve_snap(raw, modifier)
        return snap if snap is not None else raw

    # -------------------------------------------------------------------------
    # Pointer events
    # -------------------------------------------------------------------------

    def on_click(self, raw: Point, modifier: bool = False) -> Optional[Union[Shape, TempMeasurement]]:
        """
        Handles a single pointer click.

        Args:
            raw: Click position in image pixels.
            modifier: True while the snap-toggle key is held.

        Returns:
            The committed Shape or TempMeasurement when the click completes one, else None.
        """
        if not isinstance(raw, Point):
            raw = Point(*raw)

        if self.mode == ToolMode.SELECT:
            self._select_at(raw)
            return None

        point = self.effective_point(raw, modifier)

        if self.mode == ToolMode.CALIBRATE:
            self._calibration_click(point)
            return None

        material = self.material
        if material is None:
            logger.debug("Click ignored: no material selected")
            return None

        if self.temp_measurement is not None:
            self.temp_measurement = None

        kind = material.geometry_kind
        if kind == GeometryKind.POINT:
            return self._complete(material, (point,), closed=False)

        pending = self.pending_points
        if kind == GeometryKind.AREA and len(pending) >= 3 and distance(point, pending[0]) < self.snap_threshold:
            return self._complete(material, pending, closed=True)

        if pending and distance(point, pending[-1]) < self.snap_threshold:
            # Click on the previous vertex finishes a line; anything else is degenerate
            if kind == GeometryKind.LINEAR and len(pending) >= 2:
                return self._complete(material, pending, closed=False)
            logger.debug("Click ignored: repeats the previous vertex")
            return None

        self.state = AccumulatingPoints(kind=kind, points=pending + (point,))
        return None

    def on_double_click(self, raw: Optional[Point] = None) -> Optional[Union[Shape, TempMeasurement]]:
        """Finishes a pending linear shape (2+ points)."""
        return self._finish_linear()

    def on_confirm(self) -> Optional[Union[Shape, TempMeasurement]]:
        """
        Explicit finish key.

        Finishes a pending linear shape with 2+ points, or closes a pending area
        with 3+ points. Otherwise ignored.
        """
        if self.mode != ToolMode.DRAW or self.material is None:
            return None
        if isinstance(self.state, AccumulatingPoints) and self.state.kind == GeometryKind.AREA:
            if len(self.state.points) >= 3:
                return self._complete(self.material, self.state.points, closed=True)
            return None
        return self._finish_linear()

    def on_move(self, raw: Point, modifier: bool = False) -> Preview:
        """Computes live feedback for the pointer position without changing state."""
        if not isinstance(raw, Point):
            raw = Point(*raw)
        if self.mode == ToolMode.SELECT:
            return Preview(cursor=raw)

        snap = self.resolve_snap(raw, modifier)
        cursor = snap if snap is not None else raw
        pending = self.pending_points
        if not pending:
            return Preview(cursor=cursor, snap=snap)

        closing = (
            isinstance(self.state, AccumulatingPoints)
            and self.state.kind == GeometryKind.AREA
            and len(pending) >= 3
            and snap is not None
            and snap == pending[0]
        )
        if closing:
            label = config.CLOSING_LABEL
        elif self.project.calibration.is_ready:
            label = format_meters(self.project.calibration.to_meters(distance(pending[-1], cursor)))
        else:
            label = config.PENDING_LABEL
        return Preview(cursor=cursor, snap=snap, anchor=pending[-1], label=label, closing=closing)

    # -------------------------------------------------------------------------
    # Key events
    # -------------------------------------------------------------------------

    def on_cancel(self) -> CancelResult:
        """
        Cancel key. Clears exactly one thing, in priority order:
        pending points, then the temp measurement, then the selection.
        """
        if not self.is_idle:
            self.state = IDLE
            return CancelResult.PENDING
        if self.temp_measurement is not None:
            self.temp_measurement = None
            return CancelResult.TEMP_MEASUREMENT
        if self.selected_shape_id is not None:
            self.selected_shape_id = None
            return CancelResult.SELECTION
        return CancelResult.NOTHING

    def on_delete(self) -> Optional[Shape]:
        """Delete key: removes the selected shape, if any."""
        if self.selected_shape_id is None:
            return None
        removed = self.project.remove_one(self.selected_shape_id)
        self.selected_shape_id = None
        return removed

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def select_shape(self, shape_id: str) -> Optional[Shape]:
        """
        Selects a shape by id from any sheet.

        If the shape lives on another sheet, that sheet becomes active and the
        mode is forced back to SELECT.
        """
        found = self.project.find_shape(shape_id)
        if found is None:
            return None
        sheet, shape = found
        if sheet.id != self.project.active_sheet_id:
            self.project.set_active_sheet(sheet.id)
            self.set_mode(ToolMode.SELECT)
        self.selected_shape_id = shape.id
        return shape

    def clear_selection(self) -> None:
        self.selected_shape_id = None

    def hit_test(self, raw: Point) -> Optional[Shape]:
        """
        Returns the visible shape on the active sheet under ``raw``.

        Points and lines are hit within the snap threshold (or half their stroke
        width when calibrated); areas are hit by containment. The most recently
        drawn shape wins.
        """
        calibration = self.project.calibration
        for shape in reversed(self.project.active_sheet.shapes):
            if shape.hidden:
                continue
            tolerance = self.snap_threshold
            material = self.project.catalog.find(shape.material_id)
            if calibration.is_ready and material is not None and material.line_width:
                tolerance = max(tolerance, material.line_width * calibration.pixels_per_meter / 2)

            if shape.geometry_kind == GeometryKind.AREA:
                verts = np.array([p.as_tuple() for p in shape.points])
                if MplPath(verts).contains_point(raw.as_tuple()):
                    return shape
                continue
            if shape.geometry_kind == GeometryKind.POINT:
                if distance(raw, shape.points[0]) <= tolerance:
                    return shape
                continue
            for a, b in zip(shape.points[:-1], shape.points[1:]):
                if _point_to_segment_dist(raw, a, b) <= tolerance:
                    return shape
        return None

    def _select_at(self, raw: Point) -> None:
        shape = self.hit_test(raw)
        self.selected_shape_id = shape.id if shape is not None else None

    # -------------------------------------------------------------------------
    # Calibration
    # -------------------------------------------------------------------------

    def _calibration_click(self, point: Point) -> None:
        if isinstance(self.state, AwaitingCalibrationPoint):
            first = self.state.first
            self.state = IDLE
            pixels = self.project.calibration.capture(first, point)
            if pixels <= 0:
                logger.debug("Calibration capture ignored: zero-length segment")
                return
            self.pending_calibration_px = pixels
            self.mode = ToolMode.SELECT
            logger.info(f"Calibration capture: {pixels:.2f} px, waiting for real length")
            return
        self.state = AwaitingCalibrationPoint(first=point)

    def submit_calibration(self, real_length: Union[str, float]) -> float:
        """
        Completes a pending calibration capture with the user-typed real length.

        Raises:
            InvalidInputError: If no capture is pending or the length is invalid;
                               the pending capture is kept so the prompt can stay open.
        """
        if self.pending_calibration_px is None:
            raise InvalidInputError("No calibration capture is pending")
        ppm = self.project.calibration.finalize(self.pending_calibration_px, real_length)
        self.pending_calibration_px = None
        return ppm

    def cancel_calibration(self) -> None:
        self.pending_calibration_px = None

    # -------------------------------------------------------------------------
    # Completion
    # -------------------------------------------------------------------------

    def _finish_linear(self) -> Optional[Union[Shape, TempMeasurement]]:
        material = self.material
        if (
            self.mode != ToolMode.DRAW
            or material is None
            or not isinstance(self.state, AccumulatingPoints)
            or self.state.kind != GeometryKind.LINEAR
            or len(self.state.points) < 2
        ):
            logger.debug("Finish ignored: no linear shape with 2+ points pending")
            return None
        return self._complete(material, self.state.points, closed=False)

    def _complete(self, material: Material, points: Tuple[Point, ...], closed: bool) -> Union[Shape, TempMeasurement]:
        self.state = IDLE
        if material.is_measure:
            self.temp_measurement = self._measure(material.geometry_kind, points, closed)
            logger.debug(f"Temp measurement: {self.temp_measurement.label}")
            return self.temp_measurement
        shape = Shape(
            material_id=material.id,
            points=points,
            geometry_kind=material.geometry_kind,
            closed=closed,
        )
        return self.project.add(shape)

    def _measure(self, kind: GeometryKind, points: Tuple[Point, ...], closed: bool) -> TempMeasurement:
        calibration = self.project.calibration
        if kind == GeometryKind.POINT:
            value, label = float(len(points)), format_units(len(points))
        elif not calibration.is_ready:
            value, label = None, config.NO_SCALE_LABEL
        elif kind == GeometryKind.AREA:
            value = calibration.to_square_meters(polygon_area(points))
            label = format_square_meters(value)
        else:
            value = calibration.to_meters(polyline_length(points))
            label = format_meters(value)
        return TempMeasurement(points=points, geometry_kind=kind, closed=closed, value=value, label=label)


def _point_to_segment_dist(p: Point, a: Point, b: Point) -> float:
    """Distance from point P to segment A-B."""
    dx, dy = b.x - a.x, b.y - a.y
    seg_len_sq = dx * dx + dy * dy
    if seg_len_sq == 0:
        return float(np.hypot(p.x - a.x, p.y - a.y))
    t = max(0.0, min(1.0, ((p.x - a.x) * dx + (p.y - a.y) * dy) / seg_len_sq))
    return float(np.hypot(p.x - (a.x + t * dx), p.y - (a.y + t * dy)))
