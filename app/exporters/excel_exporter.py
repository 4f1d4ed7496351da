"""
Excel export helper wrapping xlsxwriter.

Provides ``ExcelExporter`` — a stateful builder that constructs a styled
MisCompras workbook in memory and returns its bytes for streaming via
FastAPI's ``StreamingResponse``.

Usage example::

    exporter = ExcelExporter(title="Requerimientos 2026", filters={"Año": "2026"})
    exporter.add_header()
    exporter.add_kpi_row({"Total": 12, "Monto": 1500.0})
    exporter.add_data_table(headers, rows)
    file_bytes = exporter.finalize()

Design notes
------------
- Uses ``xlsxwriter`` in in-memory mode (``BytesIO``).
- Column widths are auto-sized from content length, capped at 60 characters.
- Monetary values use the format ``#,##0.00``.
- Alternating row shading uses light-grey every other data row.
"""

from __future__ import annotations

import io
from datetime import datetime
from typing import Any, Sequence

import xlsxwriter

_COLOR_PRIMARY = "#7c3aed"
_COLOR_WHITE = "#FFFFFF"
_COLOR_LIGHT_GREY = "#F3F4F6"
_COLOR_SUBHEADER_BG = "#2e1065"

_MAX_COL_WIDTH = 60
_MIN_COL_WIDTH = 8


class ExcelExporter:
    """Stateful Excel workbook builder for MisCompras reports.

    Creates a single worksheet with a title header, an optional KPI row, and
    a styled data table.

    Args:
        title: Workbook and sheet title, e.g. ``"Presupuestos 2026"``.
        filters: Applied filter labels to display in the header,
                 e.g. ``{"Año": "2026"}``.
        sheet_name: Name of the worksheet tab (default: ``"Datos"``).
    """

    def __init__(
        self,
        title: str,
        filters: dict[str, str] | None = None,
        sheet_name: str = "Datos",
        num_cols: int = 6,
    ) -> None:
        self._title = title
        self._filters = filters or {}

        self._buffer = io.BytesIO()
        self._workbook = xlsxwriter.Workbook(self._buffer, {"in_memory": True})
        self._worksheet = self._workbook.add_worksheet(sheet_name)

        self._current_row: int = 0
        # Width of the merged header band
        self._num_cols: int = max(num_cols, 2)

        self._formats: dict[str, Any] = self._build_formats()

    # -----------------------------------------------------------------------
    # Format factory
    # -----------------------------------------------------------------------

    def _build_formats(self) -> dict[str, Any]:
        wb = self._workbook
        celda = {
            "font_size": 9,
            "font_color": "#111827",
            "valign": "vcenter",
            "border": 1,
            "border_color": "#E5E7EB",
        }
        numero = {**celda, "align": "right", "num_format": "#,##0.00"}
        texto = {**celda, "align": "left"}

        return {
            "header_main": wb.add_format({
                "bold": True,
                "font_size": 16,
                "font_color": _COLOR_WHITE,
                "bg_color": _COLOR_PRIMARY,
                "align": "center",
                "valign": "vcenter",
            }),
            "header_sub": wb.add_format({
                "font_size": 10,
                "font_color": _COLOR_WHITE,
                "bg_color": _COLOR_SUBHEADER_BG,
                "align": "center",
                "valign": "vcenter",
            }),
            "filter_key": wb.add_format({
                "bold": True,
                "font_size": 9,
                "bg_color": "#E5E7EB",
                "align": "right",
            }),
            "filter_value": wb.add_format({
                "font_size": 9,
                "bg_color": "#F9FAFB",
                "align": "left",
            }),
            "kpi_label": wb.add_format({
                "bold": True,
                "font_size": 10,
                "bg_color": "#F5F3FF",
                "align": "center",
                "border": 1,
                "border_color": "#DDD6FE",
            }),
            "kpi_value": wb.add_format({
                "bold": True,
                "font_size": 12,
                "font_color": _COLOR_PRIMARY,
                "bg_color": "#F5F3FF",
                "align": "center",
                "num_format": "#,##0.00",
                "border": 1,
                "border_color": "#DDD6FE",
            }),
            "col_header": wb.add_format({
                "bold": True,
                "font_size": 10,
                "font_color": _COLOR_WHITE,
                "bg_color": _COLOR_SUBHEADER_BG,
                "align": "center",
                "valign": "vcenter",
                "border": 1,
                "text_wrap": True,
            }),
            "data_plain": wb.add_format({**texto, "bg_color": _COLOR_WHITE}),
            "data_alt": wb.add_format({**texto, "bg_color": _COLOR_LIGHT_GREY}),
            "data_number": wb.add_format({**numero, "bg_color": _COLOR_WHITE}),
            "data_number_alt": wb.add_format({**numero, "bg_color": _COLOR_LIGHT_GREY}),
        }

    # -----------------------------------------------------------------------
    # Public builder methods
    # -----------------------------------------------------------------------

    def add_header(self) -> "ExcelExporter":
        """Write the title band, the generation date and one row per filter.

        Returns:
            ``self`` for method chaining.
        """
        ws = self._worksheet
        last_col = self._num_cols - 1

        ws.set_row(self._current_row, 32)
        ws.merge_range(
            self._current_row, 0, self._current_row, last_col,
            f"MisCompras - {self._title}",
            self._formats["header_main"],
        )
        self._current_row += 1

        gen_ts = datetime.now().strftime("%d/%m/%Y %H:%M")
        ws.merge_range(
            self._current_row, 0, self._current_row, last_col,
            f"Generado: {gen_ts}",
            self._formats["header_sub"],
        )
        self._current_row += 1

        for key, value in self._filters.items():
            ws.write(self._current_row, 0, key, self._formats["filter_key"])
            ws.merge_range(
                self._current_row, 1, self._current_row, last_col,
                value,
                self._formats["filter_value"],
            )
            self._current_row += 1

        self._current_row += 1
        return self

    def add_kpi_row(self, kpis: dict[str, Any]) -> "ExcelExporter":
        """Write labelled summary values, one column per entry.

        Returns:
            ``self`` for method chaining.
        """
        ws = self._worksheet
        for col, (label, value) in enumerate(kpis.items()):
            ws.write(self._current_row, col, label, self._formats["kpi_label"])
            ws.write(self._current_row + 1, col, value, self._formats["kpi_value"])

        self._current_row += 3  # label row + value row + blank separator
        return self

    def add_data_table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[Any]],
        numeric_cols: set[int] | None = None,
    ) -> "ExcelExporter":
        """Write a styled data table with alternating row shading.

        Args:
            headers: Column header strings.
            rows: Data rows — each inner sequence must match the length of
                  ``headers``.
            numeric_cols: Zero-based column indices written with the money
                          format and right alignment.

        Returns:
            ``self`` for method chaining.
        """
        ws = self._worksheet
        numeric_cols = numeric_cols or set()

        col_widths: list[int] = [len(str(h)) for h in headers]

        ws.set_row(self._current_row, 20)
        for ci, hdr in enumerate(headers):
            ws.write(self._current_row, ci, hdr, self._formats["col_header"])
        self._current_row += 1

        for ri, data_row in enumerate(rows):
            sufijo = "_alt" if ri % 2 == 1 else ""
            for ci, cell_val in enumerate(data_row):
                base = "data_number" if ci in numeric_cols else "data_plain"
                if base == "data_plain" and sufijo:
                    fmt = self._formats["data_alt"]
                else:
                    fmt = self._formats[base + sufijo]

                if cell_val is None:
                    ws.write_blank(self._current_row, ci, None, fmt)
                else:
                    ws.write(self._current_row, ci, cell_val, fmt)

                cell_str = "" if cell_val is None else str(cell_val)
                col_widths[ci] = min(_MAX_COL_WIDTH, max(col_widths[ci], len(cell_str)))

            self._current_row += 1

        for ci, width in enumerate(col_widths):
            ws.set_column(ci, ci, max(width + 2, _MIN_COL_WIDTH))

        return self

    def finalize(self) -> bytes:
        """Close the workbook and return its bytes content.

        After calling ``finalize`` the exporter instance should not be reused.
        """
        self._workbook.close()
        return self._buffer.getvalue()
