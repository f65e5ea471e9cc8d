"""
ProTakeoff: Interactive Takeoff Editor

Opens a floor plan image or PDF (first page) and traces walls, floors and
point items over it. Usage:

    python examples/takeoff_editor.py path/to/plan.pdf

See protakeoff/takeoff_editor.py for the full list of controls.
"""

# fmt: off
# autopep8: off

from protakeoff.takeoff_editor import main

if __name__ == "__main__":
    main()
