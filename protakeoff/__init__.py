from .calibration import Calibration
from .drawing import CancelResult, DrawingStateMachine, Preview, ToolMode
from .errors import InvalidInputError, InvalidShapeError, LastSheetError, TakeoffError
from .materials import GeometryKind, Material, MaterialCatalog, MaterialCategory
from .project import Project, Sheet
from .quantities import QuantityGroup, ReportRow, aggregate, aggregate_project, report_rows
from .shapes import ImageState, Point, Shape, TempMeasurement
from . import geometry_utils, config
