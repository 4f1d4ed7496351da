"""
PDF rendering wrapping reportlab.

Provides ``PdfExporter`` — a stateful builder that lays out a MisCompras
document in memory and returns its bytes — plus two renderers:
``render_resumen_grupo`` for the summary attached to every requirement of a
mass-creation batch, and ``render_solicitud_ajuste`` for budget adjustment
requests.

Usage example::

    exporter = PdfExporter(title="Solicitud grupal #12", datos={"Creador": "Ana"})
    exporter.add_header()
    exporter.add_resumen({"Requerimientos": 3, "Monto estimado": 1500.0})
    exporter.add_table(headers, rows)
    file_bytes = exporter.build()

Design notes
------------
- Uses ``reportlab``'s ``SimpleDocTemplate`` with ``Platypus`` story elements.
- Each page includes a footer with page number and generation timestamp.
- Table rows alternate white / light-grey for readability.
- Long text cells are wrapped via ``Paragraph`` inside the table.
"""

from __future__ import annotations

import io
from datetime import datetime
from decimal import Decimal
from typing import Any, Sequence

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import cm, mm
from reportlab.platypus import (
    HRFlowable,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)
from xml.sax.saxutils import escape

# Design token colours as hex strings
_HEX_PRIMARY = "#7c3aed"
_HEX_DARK = "#2e1065"
_HEX_LIGHT_GREY = "#F3F4F6"
_HEX_MID_GREY = "#E5E7EB"
_HEX_TEXT = "#111827"
_HEX_WHITE = "#FFFFFF"


def _color(hex_color: str) -> Any:
    return colors.HexColor(hex_color)


def _texto(value: Any) -> str:
    """Format a cell value; numbers get thousands separators and 2 d.p."""
    if value is None:
        return ""
    if isinstance(value, (float, Decimal)):
        return f"{value:,.2f}"
    return escape(str(value))


class PdfExporter:
    """Stateful PDF document builder for MisCompras documents.

    Args:
        title: Document title, e.g. ``"Solicitud grupal #12"``.
        datos: Label/value pairs printed under the header band.
        landscape_mode: If ``True``, uses A4 landscape; otherwise portrait.
    """

    def __init__(
        self,
        title: str,
        datos: dict[str, str] | None = None,
        landscape_mode: bool = False,
    ) -> None:
        self._title = title
        self._datos = datos or {}

        self._buffer = io.BytesIO()
        page_size = landscape(A4) if landscape_mode else A4

        self._doc = SimpleDocTemplate(
            self._buffer,
            pagesize=page_size,
            rightMargin=1.5 * cm,
            leftMargin=1.5 * cm,
            topMargin=2 * cm,
            bottomMargin=2 * cm,
            title=f"MisCompras - {title}",
            author="MisCompras",
        )

        self._story: list[Any] = []
        self._gen_ts = datetime.now().strftime("%d/%m/%Y %H:%M")
        self._styles = self._build_styles()

    # -----------------------------------------------------------------------
    # Style factory
    # -----------------------------------------------------------------------

    def _build_styles(self) -> dict[str, ParagraphStyle]:
        def style(name: str, **kwargs: Any) -> ParagraphStyle:
            kwargs.setdefault("fontName", "Helvetica")
            kwargs.setdefault("fontSize", 8)
            kwargs.setdefault("textColor", _color(_HEX_TEXT))
            return ParagraphStyle(name, **kwargs)

        return {
            "title": style(
                "mc_title", fontName="Helvetica-Bold", fontSize=16,
                textColor=_color(_HEX_WHITE), alignment=TA_CENTER,
            ),
            "subtitle": style(
                "mc_subtitle", fontSize=9,
                textColor=_color(_HEX_WHITE), alignment=TA_CENTER,
            ),
            "dato_key": style(
                "mc_dato_key", fontName="Helvetica-Bold",
                textColor=_color(_HEX_DARK), alignment=TA_RIGHT,
            ),
            "dato_value": style("mc_dato_value", alignment=TA_LEFT),
            "resumen_label": style(
                "mc_resumen_label", fontName="Helvetica-Bold",
                textColor=_color(_HEX_DARK), alignment=TA_CENTER,
            ),
            "resumen_value": style(
                "mc_resumen_value", fontName="Helvetica-Bold", fontSize=12,
                textColor=_color(_HEX_PRIMARY), alignment=TA_CENTER,
            ),
            "section_heading": style(
                "mc_section", fontName="Helvetica-Bold", fontSize=11,
                textColor=_color(_HEX_DARK), spaceBefore=8, spaceAfter=4,
            ),
            "table_header": style(
                "mc_th", fontName="Helvetica-Bold",
                textColor=_color(_HEX_WHITE), alignment=TA_CENTER,
            ),
            "table_cell": style("mc_td", alignment=TA_LEFT),
            "table_cell_right": style("mc_td_right", alignment=TA_RIGHT),
        }

    # -----------------------------------------------------------------------
    # Page template (footer)
    # -----------------------------------------------------------------------

    def _on_page(self, canvas: Any, doc: Any) -> None:
        canvas.saveState()
        footer_text = f"MisCompras  |  Generado: {self._gen_ts}  |  Página {doc.page}"
        canvas.setFont("Helvetica", 7)
        canvas.setFillColor(_color(_HEX_MID_GREY))
        canvas.drawCentredString(self._doc.pagesize[0] / 2, 1.2 * cm, footer_text)
        canvas.restoreState()

    # -----------------------------------------------------------------------
    # Public builder methods
    # -----------------------------------------------------------------------

    def add_header(self) -> "PdfExporter":
        """Add the coloured title band and the label/value block.

        Returns:
            ``self`` for method chaining.
        """
        page_width = self._doc.width
        header_table = Table(
            [
                [Paragraph(escape(self._title), self._styles["title"])],
                [Paragraph(f"Generado: {self._gen_ts}", self._styles["subtitle"])],
            ],
            colWidths=[page_width],
        )
        header_table.setStyle(
            TableStyle([
                ("BACKGROUND", (0, 0), (0, 0), _color(_HEX_PRIMARY)),
                ("BACKGROUND", (0, 1), (0, 1), _color(_HEX_DARK)),
                ("TOPPADDING", (0, 0), (-1, -1), 8),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ])
        )
        self._story.append(header_table)
        self._story.append(Spacer(1, 4 * mm))

        if self._datos:
            datos_table = Table(
                [
                    [
                        Paragraph(f"{escape(k)}:", self._styles["dato_key"]),
                        Paragraph(_texto(v), self._styles["dato_value"]),
                    ]
                    for k, v in self._datos.items()
                ],
                colWidths=[4 * cm, page_width - 4 * cm],
            )
            datos_table.setStyle(
                TableStyle([
                    ("BACKGROUND", (0, 0), (-1, -1), _color(_HEX_LIGHT_GREY)),
                    ("GRID", (0, 0), (-1, -1), 0.25, _color(_HEX_MID_GREY)),
                    ("TOPPADDING", (0, 0), (-1, -1), 3),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
                ])
            )
            self._story.append(datos_table)
            self._story.append(Spacer(1, 6 * mm))

        return self

    def add_resumen(self, resumen: dict[str, Any]) -> "PdfExporter":
        """Add a single-row block of labelled totals."""
        if not resumen:
            return self

        labels_row = [Paragraph(escape(k), self._styles["resumen_label"]) for k in resumen]
        values_row = [
            Paragraph(_texto(v), self._styles["resumen_value"]) for v in resumen.values()
        ]
        col_width = self._doc.width / len(resumen)
        table = Table([labels_row, values_row], colWidths=[col_width] * len(resumen))
        table.setStyle(
            TableStyle([
                ("BACKGROUND", (0, 0), (-1, 0), _color("#F5F3FF")),
                ("BACKGROUND", (0, 1), (-1, 1), _color("#EDE9FE")),
                ("BOX", (0, 0), (-1, -1), 0.5, _color(_HEX_PRIMARY)),
                ("INNERGRID", (0, 0), (-1, -1), 0.25, _color(_HEX_MID_GREY)),
                ("TOPPADDING", (0, 0), (-1, -1), 5),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
            ])
        )
        self._story.append(table)
        self._story.append(Spacer(1, 6 * mm))
        return self

    def add_table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[Any]],
        col_widths: Sequence[float] | None = None,
        numeric_cols: set[int] | None = None,
        section_title: str = "Detalle",
    ) -> "PdfExporter":
        """Add a styled data table to the document.

        Args:
            headers: Column header strings.
            rows: Data rows — inner sequences must match the header length.
            col_widths: Optional explicit column widths in cm.  If ``None``,
                        columns are distributed evenly across the page width.
            numeric_cols: Zero-based column indices rendered right-aligned.
            section_title: Heading displayed above the table.

        Returns:
            ``self`` for method chaining.
        """
        numeric_cols = numeric_cols or set()
        n_cols = len(headers)

        self._story.append(Paragraph(escape(section_title), self._styles["section_heading"]))
        self._story.append(HRFlowable(width="100%", thickness=1, color=_color(_HEX_PRIMARY)))
        self._story.append(Spacer(1, 3 * mm))

        if col_widths is not None:
            computed_widths = [w * cm for w in col_widths]
        else:
            computed_widths = [self._doc.width / n_cols] * n_cols

        table_data: list[list[Any]] = [
            [Paragraph(escape(str(h)), self._styles["table_header"]) for h in headers]
        ]
        for data_row in rows:
            table_data.append([
                Paragraph(
                    _texto(cell),
                    self._styles["table_cell_right" if ci in numeric_cols else "table_cell"],
                )
                for ci, cell in enumerate(data_row)
            ])

        style_cmds: list[tuple[Any, ...]] = [
            ("BACKGROUND", (0, 0), (-1, 0), _color(_HEX_DARK)),
            ("GRID", (0, 0), (-1, -1), 0.25, _color(_HEX_MID_GREY)),
            ("TOPPADDING", (0, 0), (-1, -1), 3),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]
        for ri in range(1, len(table_data)):
            fondo = _HEX_LIGHT_GREY if ri % 2 == 0 else _HEX_WHITE
            style_cmds.append(("BACKGROUND", (0, ri), (-1, ri), _color(fondo)))

        rl_table = Table(table_data, colWidths=computed_widths, repeatRows=1)
        rl_table.setStyle(TableStyle(style_cmds))
        self._story.append(rl_table)
        self._story.append(Spacer(1, 4 * mm))
        return self

    def build(self) -> bytes:
        """Build the PDF document and return its bytes.

        After calling ``build`` the exporter instance should not be reused.
        """
        self._doc.build(
            self._story,
            onFirstPage=self._on_page,
            onLaterPages=self._on_page,
        )
        return self._buffer.getvalue()


def render_resumen_grupo(
    grupo_id: int,
    creador: str,
    requerimientos: Sequence[Any],
) -> bytes:
    """Render the summary of a mass-creation batch.

    Each requirement row lists title, description, estimated amount and
    area, in submission order.
    """
    total = sum((r.monto_estimado or Decimal("0")) for r in requerimientos)
    rows = [
        [
            i,
            r.titulo,
            r.descripcion or "",
            r.monto_estimado if r.monto_estimado is not None else "",
            r.area.nombre if r.area is not None else "",
        ]
        for i, r in enumerate(requerimientos, start=1)
    ]
    return (
        PdfExporter(
            title=f"Solicitud grupal #{grupo_id}",
            datos={
                "Creado por": creador,
                "Fecha": datetime.now().strftime("%d/%m/%Y"),
            },
        )
        .add_header()
        .add_resumen({"Requerimientos": len(requerimientos), "Monto estimado": total})
        .add_table(
            ["#", "Título", "Descripción", "Monto estimado", "Área"],
            rows,
            col_widths=[1.0, 4.5, 6.5, 3.0, 3.0],
            numeric_cols={0, 3},
            section_title="Requerimientos solicitados",
        )
        .build()
    )


def render_solicitud_ajuste(ajuste: Any) -> bytes:
    """Render a budget adjustment request, with the decision once there is one.

    *ajuste* needs ``presupuesto``, ``solicitado_por`` and ``origenes``
    loaded; ``revisado_por`` is printed when set.
    """
    tipo = "Aumento" if ajuste.tipo == "INCREASE" else "Movimiento"
    presupuesto = ajuste.presupuesto
    datos = {
        "Tipo": tipo,
        "Presupuesto destino": f"{presupuesto.codigo} - {presupuesto.titulo}",
        "Solicitado por": ajuste.solicitado_por.nombre_completo or ajuste.solicitado_por.email,
        "Fecha": (ajuste.created_at or datetime.now()).strftime("%d/%m/%Y"),
        "Motivo": ajuste.motivo,
        "Estado": ajuste.estado,
    }
    if ajuste.revisado_por is not None:
        datos["Revisado por"] = ajuste.revisado_por.nombre_completo or ajuste.revisado_por.email
    if ajuste.comentario_revision:
        datos["Comentario"] = ajuste.comentario_revision

    exporter = (
        PdfExporter(title=f"Solicitud de {tipo.lower()} {ajuste.codigo}", datos=datos)
        .add_header()
        .add_resumen({"Monto solicitado": ajuste.monto_solicitado})
    )
    if ajuste.origenes:
        exporter.add_table(
            ["Código", "Presupuesto origen", "Monto"],
            [
                [o.presupuesto.codigo, o.presupuesto.titulo, o.monto]
                for o in ajuste.origenes
            ],
            col_widths=[3.5, 11.0, 3.5],
            numeric_cols={2},
            section_title="Presupuestos de origen",
        )
    return exporter.build()
