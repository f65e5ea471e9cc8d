"""
Generate the quantity takeoff Excel report for a project.

The workbook contains:
- Resumo sheet: one row per material grouped by category, with totals and vertical areas
- Itens sheet: per-shape breakdown (sheet, item number, converted value)
- Escala sheet: calibration metadata
"""

# ProTakeoff imports
from protakeoff import config
from protakeoff.geometry_utils import format_number
from protakeoff.project import Project
from protakeoff.quantities import aggregate_project, items_to_dataframe, sort_for_display, to_dataframe

# Standard library imports
from datetime import datetime
from pathlib import Path
from typing import Optional

# Third-party imports
import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter


class TakeoffReport:
    """Write a project's quantity groups to an .xlsx workbook."""

    def __init__(self, project: Project, output_dir: Optional[Path] = None, title: str = config.REPORT_TITLE):
        self.project = project
        self.output_dir = Path(output_dir) if output_dir is not None else config.REPORT_DIR
        self.title = title

        # Styles
        self.header_fill = PatternFill(start_color="D3D3D3", end_color="D3D3D3", fill_type="solid")
        self.category_fill = PatternFill(start_color="DBEAFE", end_color="DBEAFE", fill_type="solid")
        self.black_border = Border(
            left=Side(style='thin', color='000000'),
            right=Side(style='thin', color='000000'),
            top=Side(style='thin', color='000000'),
            bottom=Side(style='thin', color='000000'),
        )
        self.bold_font = Font(bold=True)

    def generate_report(self, filename: str = "quantitativos.xlsx") -> Path:
        """Generate the full Excel report and return its path."""
        if not self.project.calibration.is_ready:
            raise ValueError("Project has no scale; calibrate before generating the report")

        groups = sort_for_display(aggregate_project(self.project))

        wb = Workbook()
        ws_summary = wb.active
        ws_summary.title = "Resumo"
        self._build_summary_sheet(ws_summary, groups)

        ws_items = wb.create_sheet("Itens")
        self._build_items_sheet(ws_items, groups)

        ws_scale = wb.create_sheet("Escala")
        self._build_scale_sheet(ws_scale)

        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.output_dir / filename
        wb.save(output_path)
        print(f"Report saved to: {output_path}")
        return output_path

    def _write_header(self, ws, row: int, headers: list):
        for col, header in enumerate(headers, start=2):
            cell = ws.cell(row=row, column=col, value=header)
            cell.font = self.bold_font
            cell.fill = self.header_fill
            cell.border = self.black_border
            cell.alignment = Alignment(horizontal='center')

    def _build_summary_sheet(self, ws, groups):
        """Build the per-material summary, one block per category."""
        ws.sheet_view.showGridLines = False
        ws['B2'] = self.title
        ws['B2'].font = Font(size=16, bold=True)
        ws['B3'] = f"Gerado em {datetime.now():%d/%m/%Y %H:%M}"

        df = to_dataframe(groups)
        headers = ['Categoria', 'Material', 'Qtd. itens', 'Quantidade', 'Unidade', 'Altura (m)', 'Área vertical (m²)']
        row = 5
        self._write_header(ws, row, headers)

        current_category = None
        for record in df.to_dict("records"):
            if record["category"] != current_category:
                current_category = record["category"]
                row += 1
                cell = ws.cell(row=row, column=2, value=current_category)
                cell.font = self.bold_font
                for col in range(2, 2 + len(headers)):
                    ws.cell(row=row, column=col).fill = self.category_fill
                    ws.cell(row=row, column=col).border = self.black_border

            row += 1
            values = [
                '',
                record["material"],
                int(record["count"]),
                round(float(record["quantity"]), 2),
                record["unit"],
                '-' if pd.isna(record["height_m"]) else round(float(record["height_m"]), 2),
                '-' if pd.isna(record["vertical_area_m2"]) else round(float(record["vertical_area_m2"]), 2),
            ]
            for col, value in enumerate(values, start=2):
                cell = ws.cell(row=row, column=col, value=value)
                cell.border = self.black_border
                if col >= 4:
                    cell.alignment = Alignment(horizontal='right')
                if isinstance(value, float):
                    cell.number_format = '#,##0.00'

        self._autosize(ws, len(headers))

    def _build_items_sheet(self, ws, groups):
        """Build the per-shape breakdown."""
        df = items_to_dataframe(self.project, groups)
        headers = ['Material', 'Prancha', 'Item', 'Quantidade', 'Unidade', 'Oculto']
        self._write_header(ws, 2, headers)

        for row, item in enumerate(df.itertuples(index=False), start=3):
            values = [
                item.material,
                item.sheet,
                item.item,
                round(float(item.quantity), 2),
                item.unit,
                'sim' if item.hidden else 'não',
            ]
            for col, value in enumerate(values, start=2):
                ws.cell(row=row, column=col, value=value).border = self.black_border

        self._autosize(ws, len(headers))

    def _build_scale_sheet(self, ws):
        """Calibration metadata."""
        calibration = self.project.calibration
        image = self.project.image
        params = [
            ['Pixels por metro', format_number(calibration.pixels_per_meter, decimals=4)],
            ['Segmento de referência (px)', format_number(calibration.reference_px or 0.0)],
            ['Comprimento real (m)', format_number(calibration.reference_m or 0.0)],
            ['Imagem (px)', f"{image.width} x {image.height}" if image is not None else '-'],
            ['Pranchas', len(self.project.sheets)],
        ]
        self._write_header(ws, 2, ['Parâmetro', 'Valor'])
        for row, (name, value) in enumerate(params, start=3):
            ws.cell(row=row, column=2, value=name).border = self.black_border
            ws.cell(row=row, column=3, value=value).border = self.black_border
        self._autosize(ws, 2)

    @staticmethod
    def _autosize(ws, num_cols: int):
        for col in range(2, 2 + num_cols):
            letter = get_column_letter(col)
            width = max((len(str(c.value)) for c in ws[letter] if c.value is not None), default=8)
            ws.column_dimensions[letter].width = min(width + 4, 60)
