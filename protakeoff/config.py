"""
ProTakeoff Configuration Module
===============================

Centralized configuration for the takeoff engine.
This module provides consistent constants throughout the codebase.
"""

# fmt: off
# autopep8: off

import os
from pathlib import Path

# Root directory of the project
PROJECT_ROOT        = Path(__file__).parent.parent

# Output directories (reports are written here unless a path is given)
OUTPUTS_DIR         = Path(os.getenv("PROTAKEOFF_OUTPUTS_DIR", str(PROJECT_ROOT / "outputs")))
REPORT_DIR          = OUTPUTS_DIR / "reports"

# ============================================================================
# DRAWING SETTINGS
# ============================================================================
# Snap radius in image pixels. Independent of canvas zoom.
SNAP_THRESHOLD_PX   = float(os.getenv("PROTAKEOFF_SNAP_PX", "6"))

# Snapping is on unless the user holds the modifier key (XOR with this flag)
SNAP_ENABLED        = True

# PDF pages are rasterized at this zoom factor (2.0 = twice the 72 dpi page size)
PDF_RENDER_ZOOM     = float(os.getenv("PROTAKEOFF_PDF_ZOOM", "2.0"))

# ============================================================================
# SHEETS
# ============================================================================
DEFAULT_SHEET_NAME  = "Prancha 1"
SHEET_NAME_PATTERN  = "Prancha {index}"

# ============================================================================
# LABELS
# ============================================================================
NO_SCALE_LABEL      = "Sem escala"
PENDING_LABEL       = "..."
CLOSING_LABEL       = "FECHAR"
REPORT_TITLE        = "Relatório de Quantitativos"

# Category label mapping used by the quantity report
CATEGORY_LABELS = {
    "wall"          : "Paredes",
    "floor"         : "Pisos",
    "structure"     : "Estrutura",
    "finish"        : "Acabamentos",
    "roof"          : "Cobertura",
    "measure"       : "Medições",
}

# Display order of the categories in the toolbar and in the report
CATEGORY_ORDER      = ["measure", "wall", "finish", "structure", "floor", "roof"]

# ============================================================================
# MATERIAL CATALOG SEED
# ============================================================================
# Each entry: id, name, category, geometry kind, color, line width (m), fill opacity, height (m)
DEFAULT_MATERIALS = [
    # Measurement tools (never aggregated)
    {"id": "measure-length",    "name": "Medir Distância",         "category": "measure",   "kind": "linear", "color": "#f59e0b", "line_width": None, "opacity": None, "height": None},
    {"id": "measure-area",      "name": "Medir Área",              "category": "measure",   "kind": "area",   "color": "#f59e0b", "line_width": None, "opacity": 0.25, "height": None},
    # Walls
    {"id": "wall-external",     "name": "Parede Externa",          "category": "wall",      "kind": "linear", "color": "#ef4444", "line_width": 0.20, "opacity": None, "height": None},
    {"id": "wall-internal",     "name": "Parede Interna",          "category": "wall",      "kind": "linear", "color": "#f97316", "line_width": 0.15, "opacity": None, "height": None},
    {"id": "wall-drywall",      "name": "Parede Drywall",          "category": "wall",      "kind": "linear", "color": "#a855f7", "line_width": 0.10, "opacity": None, "height": None},
    # Finishes
    {"id": "finish-baseboard",  "name": "Rodapé",                  "category": "finish",    "kind": "linear", "color": "#14b8a6", "line_width": 0.05, "opacity": None, "height": None},
    {"id": "finish-paint",      "name": "Pintura",                 "category": "finish",    "kind": "linear", "color": "#06b6d4", "line_width": 0.05, "opacity": None, "height": None},
    {"id": "finish-ceiling",    "name": "Forro",                   "category": "finish",    "kind": "area",   "color": "#84cc16", "line_width": None, "opacity": 0.30, "height": None},
    # Structure
    {"id": "structure-column",  "name": "Pilar",                   "category": "structure", "kind": "point",  "color": "#64748b", "line_width": 0.30, "opacity": None, "height": None},
    {"id": "structure-beam",    "name": "Viga",                    "category": "structure", "kind": "linear", "color": "#475569", "line_width": 0.20, "opacity": None, "height": None},
    # Floors
    {"id": "floor-ceramic",     "name": "Piso Cerâmico",           "category": "floor",     "kind": "area",   "color": "#3b82f6", "line_width": None, "opacity": 0.25, "height": None},
    {"id": "floor-screed",      "name": "Contrapiso",              "category": "floor",     "kind": "area",   "color": "#6366f1", "line_width": None, "opacity": 0.25, "height": None},
    # Roof
    {"id": "roof-tiles",        "name": "Telhado",                 "category": "roof",      "kind": "area",   "color": "#b45309", "line_width": None, "opacity": 0.30, "height": None},
    {"id": "roof-gutter",       "name": "Calha",                   "category": "roof",      "kind": "linear", "color": "#78350f", "line_width": 0.15, "opacity": None, "height": None},
]
