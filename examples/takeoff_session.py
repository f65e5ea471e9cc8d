"""
ProTakeoff Example: Scripted Quantity Takeoff
======================================================================================================

Drives the drawing state machine without a window, the same way the editor
does from mouse and keyboard events, and writes the Excel quantity report.

The session:
1. Loads a blank 1000 x 800 px plan (calibrate mode is entered automatically)
2. Calibrates with a 200 px reference segment that measures 5,00 m (40 px/m)
3. Sets a 2,80 m height on the internal wall material
4. Traces internal walls, a ceramic floor and two columns on "Térreo"
5. Adds a second sheet with a roof area
6. Takes a temporary distance measurement (never stored)
7. Prints per-sheet and whole-project totals and exports the report
"""

# fmt: off
# autopep8: off

# ProTakeoff imports
from protakeoff import DrawingStateMachine, ImageState, Point, Project, aggregate_project
from protakeoff.takeoff_report import TakeoffReport

# Standard library imports
import logging


def click_path(machine, coords):
    for x, y in coords:
        machine.on_click(Point(x, y))


def takeoff_session():

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    project = Project()
    machine = DrawingStateMachine(project)

    # Phase 1: plan and scale
    machine.load_image(ImageState(source=None, width=1000, height=800))
    click_path(machine, [(100, 700), (300, 700)])
    machine.submit_calibration("5,00")
    project.rename_sheet(project.active_sheet_id, "Térreo")

    # Phase 2: catalog edits
    project.catalog.update_height("wall-internal", "2,80")

    # Phase 3: trace the ground floor
    machine.set_material("wall-internal")
    click_path(machine, [(100, 100), (500, 100), (500, 400)])
    machine.on_double_click()
    click_path(machine, [(100, 250), (300, 250)])
    machine.on_confirm()

    machine.set_material("floor-ceramic")
    click_path(machine, [(100, 100), (500, 100), (500, 400), (100, 400), (102, 101)])

    machine.set_material("structure-column")
    click_path(machine, [(100, 100), (500, 400)])

    # Phase 4: roof on a second sheet
    roof_sheet = project.create_sheet("Cobertura")
    machine.switch_sheet(roof_sheet.id)
    machine.set_material("roof-tiles")
    click_path(machine, [(50, 50), (550, 50), (550, 450), (50, 450)])
    machine.on_confirm()

    # Phase 5: temporary measurement
    machine.set_material("measure-length")
    click_path(machine, [(50, 50), (550, 450)])
    temp = machine.on_confirm()
    print(f"Medição temporária: {temp.label}")

    # Phase 6: totals
    for sheet in project.sheets:
        machine.switch_sheet(sheet.id)
        print(f"\n--- {sheet.name} ---")
        for group in aggregate_project(project, active_only=True):
            line = f"{group.material.name:<24} {group.count:>3}  {group.primary_label:>12}"
            if group.vertical_area_label:
                line += f"  vert. {group.vertical_area_label}"
            print(line)

    print("\n--- Projeto ---")
    for group in aggregate_project(project):
        print(f"{group.material.name:<24} {group.count:>3}  {group.primary_label:>12}")

    TakeoffReport(project).generate_report()


if __name__ == "__main__":
    takeoff_session()
