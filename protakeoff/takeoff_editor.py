"""
Interactive takeoff editor for floor plan images and PDFs.

Traces walls, areas and point items over a floor plan and shows per-material
quantities for the active sheet.

Controls:
    Left-click    Place vertex / select shape (select mode)
    Double-click  Finish line
    Enter         Finish line / close area
    Shift+click   Invert snapping for this click
    Escape        Cancel calibration prompt, else drawing, then temp measurement, then selection
    Delete        Delete selected shape
    1-9, 0        Pick material from the catalog (in catalog order)
    v             Select mode
    c             Calibrate mode
    u             Remove last shape on the active sheet
    h             Toggle visibility of the selected shape
    n             New sheet
    Tab           Next sheet
    Shift+c       Clear the active sheet (asks y/n)
    Shift+d       Delete the active sheet (asks y/n)
    Shift+m       Remove every shape of the selected (or current) material (asks y/n)
    x             Export Excel report
    q             Quit

Workflow:
    1. Open a plan: the editor starts in calibrate mode
    2. Click both ends of a known dimension and type its real length (m)
    3. Pick a material and trace
    4. Press 'x' to export the quantity report
"""

# fmt: off
# autopep8: off

# ProTakeoff imports
from protakeoff import config
from protakeoff.drawing import CancelResult, DrawingStateMachine, ToolMode
from protakeoff.errors import InvalidInputError, LastSheetError
from protakeoff.geometry_utils import format_meters, midpoint
from protakeoff.image_loader import load_plan
from protakeoff.materials import GeometryKind
from protakeoff.project import Project
from protakeoff.quantities import aggregate_project, segment_lengths
from protakeoff.shapes import Point
from protakeoff.takeoff_report import TakeoffReport

# Standard library imports
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

# Third-party imports
import matplotlib.pyplot as plt
from matplotlib.patches import Polygon
from matplotlib.widgets import TextBox
import numpy as np

logger = logging.getLogger(__name__)


class TakeoffEditor:
    """Matplotlib front-end driving a DrawingStateMachine.

    Args:
        plan_path: Optional plan to open on launch.
        project: Project to edit. A new project with the starter catalog is created if omitted.
        report_dir: Directory for exported reports.
    """

    _WINDOW_TITLE = "ProTakeoff - Editor"

    def __init__(
        self,
        plan_path:      Optional[Union[Path, str]]  = None,
        project:        Optional[Project]           = None,
        report_dir:     Optional[Path]              = None,
    ):
        self.plan_path                              = Path(plan_path) if plan_path else None
        self.project:       Project                 = project or Project()
        self.machine:       DrawingStateMachine     = DrawingStateMachine(self.project)
        self.report_dir                             = report_dir
        self.pixels:        Optional[np.ndarray]    = None

        # Matplotlib handles (set by build)
        self.fig                                    = None
        self.ax                                     = None
        self.ax_panel                               = None
        self.ax_status                              = None
        self.length_box:    Optional[TextBox]       = None
        self._rubber_band                           = None
        self._rubber_label                          = None
        self._snap_marker                           = None

        # Destructive action waiting for a y/n answer: (prompt, action)
        self._pending_action: Optional[Tuple[str, Callable[[], None]]] = None

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    def open_plan(self, path: Union[Path, str]) -> None:
        """Loads a new base image; calibration and sheets are reset."""
        self.pixels, image_state = load_plan(path)
        self.machine.load_image(image_state)
        self.plan_path = Path(path)
        if self.fig is not None:
            self._render()
            self._update_status("Calibrar: clique no início e no fim de uma medida conhecida", 'blue')

    def build(self, pixels: Optional[np.ndarray] = None) -> None:
        """Creates the figure and connects event handlers (without blocking)."""
        if pixels is not None:
            self.pixels = pixels

        self.fig = plt.figure(figsize=(16, 9), facecolor='#F5F5F0')
        if self.fig.canvas.manager is not None:
            self.fig.canvas.manager.set_window_title(self._WINDOW_TITLE)

        self.ax        = self.fig.add_axes([0.02, 0.10, 0.70, 0.86])
        self.ax_panel  = self.fig.add_axes([0.74, 0.10, 0.24, 0.86])
        self.ax_status = self.fig.add_axes([0.02, 0.02, 0.50, 0.05])
        ax_box         = self.fig.add_axes([0.68, 0.02, 0.15, 0.05])
        self.ax_panel.axis('off')
        self.ax_status.axis('off')

        self.length_box = TextBox(ax_box, "Distância real (m) ", initial="")
        self.length_box.on_submit(self._on_length_submit)

        self.fig.canvas.mpl_connect('button_press_event', self._on_click)
        self.fig.canvas.mpl_connect('motion_notify_event', self._on_mouse_motion)
        self.fig.canvas.mpl_connect('key_press_event', self._on_key_press)

        self._render()

    def launch(self):
        """Open the interactive editor window."""
        if self.plan_path is not None and self.pixels is None:
            self.open_plan(self.plan_path)
        self.build()

        print("\n=== ProTakeoff Editor ===")
        print("c: calibrate | 1-9: material | Enter/double-click: finish | Esc: cancel | x: report | q: quit")
        print("=========================\n")
        plt.show()

    # -------------------------------------------------------------------------
    # Event handlers
    # -------------------------------------------------------------------------

    def _on_click(self, event):
        """Route left-clicks in the plan axes to the state machine."""
        if event.inaxes != self.ax or event.button != 1 or event.xdata is None:
            return
        raw = Point(float(event.xdata), float(event.ydata))
        if event.dblclick:
            result = self.machine.on_double_click(raw)
        else:
            result = self.machine.on_click(raw, modifier=(event.key == 'shift'))

        if self.machine.pending_calibration_px is not None:
            self._update_status(
                f"Referência de {self.machine.pending_calibration_px:.1f} px: digite a distância real e Enter", 'orange')
        elif self.machine.temp_measurement is not None and result is self.machine.temp_measurement:
            self._update_status(f"Medição: {result.label}", 'green')
        elif self.machine.selected_shape is not None:
            material = self.project.catalog.find(self.machine.selected_shape.material_id)
            self._update_status(f"Selecionado: {material.name if material else '?'}", 'orange')
        self._render()

    def _on_mouse_motion(self, event):
        if event.inaxes != self.ax or event.xdata is None or self._rubber_band is None:
            return
        preview = self.machine.on_move(Point(float(event.xdata), float(event.ydata)), modifier=(event.key == 'shift'))
        if preview.anchor is not None:
            self._rubber_band.set_data([preview.anchor.x, preview.cursor.x], [preview.anchor.y, preview.cursor.y])
            self._rubber_label.set_position((preview.cursor.x + 10, preview.cursor.y + 10))
            self._rubber_label.set_text(preview.label or "")
        else:
            self._rubber_band.set_data([], [])
            self._rubber_label.set_text("")
        if preview.snap is not None:
            self._snap_marker.set_data([preview.snap.x], [preview.snap.y])
        else:
            self._snap_marker.set_data([], [])
        self.fig.canvas.draw_idle()

    def _on_key_press(self, event):
        """Handle keyboard shortcuts."""
        if self.length_box is not None and self.length_box.capturekeystrokes:
            return
        key = event.key
        if self._pending_action is not None:
            self._answer_confirmation(key)
            return
        if key == 'escape':
            if self.machine.pending_calibration_px is not None:
                self.machine.cancel_calibration()
                self.length_box.set_val("")
                self._update_status("Calibração cancelada", 'blue')
            else:
                result = self.machine.on_cancel()
                if result != CancelResult.NOTHING:
                    self._update_status(f"Cancelado ({result.value})", 'blue')
        elif key in ('delete', 'backspace'):
            removed = self.machine.on_delete()
            if removed is not None:
                self._update_status("Forma removida", 'green')
        elif key == 'enter':
            self.machine.on_confirm()
        elif key == 'v':
            self.machine.set_mode(ToolMode.SELECT)
            self._update_status("Modo seleção", 'blue')
        elif key == 'c':
            self.machine.set_mode(ToolMode.CALIBRATE)
            self._update_status("Calibrar: clique no início e no fim de uma medida conhecida", 'blue')
        elif key == 'u':
            self.project.remove_last()
        elif key == 'h':
            if self.machine.selected_shape_id is not None:
                self.project.toggle_visibility(self.machine.selected_shape_id)
        elif key == 'n':
            sheet = self.project.create_sheet()
            self.machine.switch_sheet(sheet.id)
            self._update_status(f"Nova prancha: {sheet.name}", 'blue')
        elif key == 'tab':
            self._cycle_sheet()
        elif key == 'C':
            sheet = self.project.active_sheet
            self._ask_confirmation(f"Limpar todas as medições de '{sheet.name}'?", self._clear_active_sheet)
        elif key == 'D':
            sheet = self.project.active_sheet
            self._ask_confirmation(f"Excluir a prancha '{sheet.name}'?", self._delete_active_sheet)
        elif key == 'M':
            material = self._target_material()
            if material is None:
                self._update_status("Selecione uma forma ou um material", 'red')
            else:
                self._ask_confirmation(f"Remover todas as formas de '{material.name}' em todas as pranchas?",
                                       lambda: self._remove_material(material.id))
        elif key == 'x':
            self._export_report()
        elif key == 'q':
            plt.close(self.fig)
            return
        elif key is not None and key.isdigit():
            self._pick_material(key)
        else:
            return
        self._render()

    def _on_length_submit(self, text: str):
        """Finalize calibration with the typed real length."""
        if self.machine.pending_calibration_px is None or not text.strip():
            return
        try:
            ppm = self.machine.submit_calibration(text)
        except InvalidInputError as exc:
            self._update_status(f"Valor inválido: {exc}", 'red')
            return
        self.length_box.set_val("")
        self._update_status(f"Escala definida: {ppm:.2f} px/m", 'green')
        self._render()

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def _ask_confirmation(self, prompt: str, action: Callable[[], None]):
        """Park a destructive action until the user answers y (anything else cancels)."""
        self._pending_action = (prompt, action)
        self._update_status(f"{prompt} (y/n)", 'red')

    def _answer_confirmation(self, key: Optional[str]):
        if key in (None, 'shift', 'control', 'alt'):
            return
        _, action = self._pending_action
        self._pending_action = None
        if key in ('y', 'Y'):
            action()
        else:
            self._update_status("Operação cancelada", 'blue')
        self._render()

    def _target_material(self):
        shape = self.machine.selected_shape
        if shape is not None:
            return self.project.catalog.find(shape.material_id)
        return self.machine.material

    def _clear_active_sheet(self):
        count = self.project.clear_sheet()
        self.machine.clear_selection()
        self._update_status(f"{count} medições removidas", 'green')

    def _delete_active_sheet(self):
        try:
            sheet = self.project.delete_sheet(self.project.active_sheet_id)
        except LastSheetError as exc:
            self._update_status(str(exc), 'red')
            return
        self.machine.switch_sheet(self.project.active_sheet_id)
        self._update_status(f"Prancha excluída: {sheet.name}", 'green')

    def _remove_material(self, material_id: str):
        count = self.project.remove_by_material(material_id)
        self.machine.clear_selection()
        self._update_status(f"{count} formas removidas", 'green')

    def _pick_material(self, key: str):
        index = 9 if key == '0' else int(key) - 1
        materials = self.project.catalog.list()
        if index >= len(materials):
            return
        material = materials[index]
        self.machine.set_material(material.id)
        self._update_status(f"Desenhando: {material.name} ({material.geometry_kind.value})", 'blue')

    def _cycle_sheet(self):
        ids = [s.id for s in self.project.sheets]
        current = ids.index(self.project.active_sheet_id)
        self.machine.switch_sheet(ids[(current + 1) % len(ids)])
        self._update_status(f"Prancha: {self.project.active_sheet.name}", 'blue')

    def _export_report(self) -> Optional[Path]:
        try:
            path = TakeoffReport(self.project, output_dir=self.report_dir).generate_report()
        except ValueError as exc:
            self._update_status(str(exc), 'red')
            return None
        self._update_status(f"Relatório: {path}", 'green')
        return path

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _update_status(self, message: str, color: str = 'blue'):
        if self.ax_status is None:
            return
        self.ax_status.clear()
        self.ax_status.axis('off')
        self.ax_status.text(0.0, 0.5, message, color=color, fontsize=10, va='center')
        self.fig.canvas.draw_idle()

    def _render(self):
        """Redraw the plan, the active sheet, pending work and the quantity panel."""
        if self.ax is None:
            return
        ax = self.ax
        xlim, ylim = ax.get_xlim(), ax.get_ylim()
        had_view = bool(ax.images)
        ax.clear()
        ax.set_axis_off()

        if self.pixels is not None:
            ax.imshow(self.pixels, interpolation='nearest')
            if had_view:
                ax.set_xlim(xlim)
                ax.set_ylim(ylim)

        calibration = self.project.calibration
        selected_id = self.machine.selected_shape_id
        for shape in self.project.active_sheet.shapes:
            if shape.hidden:
                continue
            material = self.project.catalog.find(shape.material_id)
            color = material.color if material else '#000000'
            width = 4.0 if shape.id == selected_id else 2.0
            xs = [p.x for p in shape.points]
            ys = [p.y for p in shape.points]

            if shape.geometry_kind == GeometryKind.AREA:
                alpha = material.fill_opacity if material and material.fill_opacity else 0.25
                ax.add_patch(Polygon(np.column_stack([xs, ys]), closed=True, facecolor=color,
                                     edgecolor=color, alpha=alpha, linewidth=width))
            elif shape.geometry_kind == GeometryKind.POINT:
                ax.plot(xs, ys, 'o', color=color, markersize=8 if shape.id != selected_id else 12)
            else:
                ax.plot(xs, ys, '-', color=color, linewidth=width, solid_capstyle='round')
                for (a, b), length in zip(zip(shape.points[:-1], shape.points[1:]), segment_lengths(shape, calibration)):
                    ax.text(*midpoint(a, b), format_meters(length),
                            fontsize=7, color='black', ha='center',
                            bbox=dict(boxstyle='round,pad=0.1', facecolor='white', alpha=0.7, edgecolor='none'))
            ax.plot(xs, ys, 'o', markersize=3, markerfacecolor='white', markeredgecolor=color, linestyle='none')

        temp = self.machine.temp_measurement
        if temp is not None:
            xs = [p.x for p in temp.points] + ([temp.points[0].x] if temp.closed else [])
            ys = [p.y for p in temp.points] + ([temp.points[0].y] if temp.closed else [])
            ax.plot(xs, ys, '--', color='#f59e0b', linewidth=2)
            ax.text(xs[-1] + 10, ys[-1] + 10, temp.label, color='white', fontsize=9,
                    bbox=dict(facecolor='black', alpha=0.8, edgecolor='none'))

        pending = self.machine.pending_points
        if pending:
            style = '--' if self.machine.mode == ToolMode.CALIBRATE else '-'
            ax.plot([p.x for p in pending], [p.y for p in pending], style, color='cyan', linewidth=2,
                    marker='o', markerfacecolor='white', markeredgecolor='black', markersize=5)

        self._rubber_band, = ax.plot([], [], '-', color='cyan', linewidth=1, alpha=0.7)
        self._snap_marker, = ax.plot([], [], 'o', markersize=10, markerfacecolor='none', markeredgecolor='#22c55e')
        self._rubber_label = ax.text(0, 0, "", color='white', fontsize=9,
                                     bbox=dict(facecolor='black', alpha=0.8, edgecolor='none'))

        self._render_panel()
        self.fig.canvas.draw_idle()

    def _panel_lines(self) -> List[str]:
        """Text lines of the quantity panel for the active sheet."""
        sheet_names = " | ".join(
            f"[{s.name}]" if s.id == self.project.active_sheet_id else s.name for s in self.project.sheets)
        lines = [sheet_names, f"Modo: {self.machine.mode.value}"]
        if self.machine.material is not None:
            lines.append(f"Material: {self.machine.material.name}")
        lines.append("")

        if not self.project.calibration.is_ready:
            lines.append(config.NO_SCALE_LABEL)
            return lines

        groups = aggregate_project(self.project, active_only=True)
        if not groups:
            lines.append("Nenhuma medição nesta prancha")
        for group in groups:
            line = f"{group.material.name}: {group.primary_label} ({group.count})"
            if group.vertical_area_label:
                line += f"  vert. {group.vertical_area_label}"
            lines.append(line)
        return lines

    def _render_panel(self):
        ax = self.ax_panel
        ax.clear()
        ax.axis('off')
        for i, line in enumerate(self._panel_lines()):
            ax.text(0.0, 1.0 - i * 0.04, line, fontsize=9, va='top', transform=ax.transAxes)


def main():
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    plan = sys.argv[1] if len(sys.argv) > 1 else None
    TakeoffEditor(plan_path=plan).launch()


if __name__ == "__main__":
    main()
