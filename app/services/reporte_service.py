"""
Report service layer.

Builds the read-only ``.xlsx`` projections served under ``/api/reportes``:
requirements, budgets and suppliers. Each report is described by a helper
returning ``(title, headers, rows, kpis, numeric_cols)`` that is then fed
to ``ExcelExporter``.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from app.exporters.excel_exporter import ExcelExporter
from app.models.presupuesto import Presupuesto
from app.models.proveedor import Proveedor
from app.models.requerimiento import Requerimiento

logger = logging.getLogger(__name__)

REPORTES = ("requerimientos", "presupuestos", "proveedores")

_ReportData = tuple[str, list[str], list[list[Any]], dict[str, Any], set[int]]


def _numero(valor: Decimal | None) -> float:
    return float(valor) if valor is not None else 0.0


def _datos_requerimientos(db: Session, anio: int | None) -> _ReportData:
    query = db.query(Requerimiento)
    if anio is not None:
        query = query.filter(Requerimiento.anio == anio)
    requerimientos = query.order_by(Requerimiento.created_at.desc(), Requerimiento.id.desc()).all()

    headers = [
        "N° Requerimiento", "Detalle", "Valor de la compra", "Estado",
        "Estado trámite", "Proyecto", "Área", "Solicitante", "Fecha de solicitud",
    ]
    rows = [
        [
            f"REQ-{r.id:06d}",
            r.titulo,
            _numero(r.monto_total),
            r.estado,
            r.estado_adquisicion or "PENDIENTE",
            r.proyecto.nombre if r.proyecto else "N/A",
            r.area.nombre if r.area else "N/A",
            (r.creado_por.nombre_completo or r.creado_por.email) if r.creado_por else "N/A",
            r.created_at.strftime("%d/%m/%Y") if r.created_at else "",
        ]
        for r in requerimientos
    ]
    kpis = {
        "Requerimientos": len(rows),
        "Valor total": sum(row[2] for row in rows),
    }
    return "Reporte de Requerimientos", headers, rows, kpis, {2}


def _datos_presupuestos(db: Session, anio: int | None) -> _ReportData:
    query = db.query(Presupuesto)
    if anio is not None:
        query = query.filter(Presupuesto.anio == anio)
    presupuestos = query.order_by(Presupuesto.created_at.desc(), Presupuesto.id.desc()).all()

    headers = [
        "Código", "Proyecto", "Área", "Monto asignado", "Monto disponible",
        "Ejecución (%)", "Estado", "Líder responsable",
    ]
    rows: list[list[Any]] = []
    for p in presupuestos:
        monto = _numero(p.monto)
        disponible = _numero(p.disponible)
        ejecucion = round((monto - disponible) / monto * 100, 1) if monto > 0 else 0.0
        rows.append([
            p.codigo,
            p.proyecto.nombre if p.proyecto else "N/A",
            p.area.nombre if p.area else "N/A",
            monto,
            disponible,
            ejecucion,
            p.estado,
            (p.responsable.nombre_completo or p.responsable.email) if p.responsable else "N/A",
        ])
    kpis = {
        "Asignado": sum(row[3] for row in rows),
        "Disponible": sum(row[4] for row in rows),
    }
    return "Estado de Presupuestos", headers, rows, kpis, {3, 4, 5}


def _datos_proveedores(db: Session, anio: int | None) -> _ReportData:
    proveedores = db.query(Proveedor).order_by(Proveedor.nombre).all()
    headers = ["Proveedor", "NIT", "Correo de contacto", "Teléfono", "Dirección", "Estado"]
    rows = [
        [
            p.nombre,
            p.nit or "N/A",
            p.email_contacto or "N/A",
            p.telefono_contacto or "N/A",
            p.direccion or "N/A",
            "ACTIVO" if p.activo else "INACTIVO",
        ]
        for p in proveedores
    ]
    return "Catálogo de Proveedores", headers, rows, {"Proveedores": len(rows)}, set()


_DISPATCH = {
    "requerimientos": _datos_requerimientos,
    "presupuestos": _datos_presupuestos,
    "proveedores": _datos_proveedores,
}


def export_excel(db: Session, reporte: str, anio: int | None = None) -> bytes:
    """Build one report workbook and return its bytes.

    Args:
        db: Active SQLAlchemy session.
        reporte: One of ``REPORTES``.
        anio: Optional fiscal-year filter (ignored for suppliers).
    """
    titulo, headers, rows, kpis, numeric_cols = _DISPATCH[reporte](db, anio)
    filters = {"Año": str(anio)} if anio is not None and reporte != "proveedores" else {}

    file_bytes = (
        ExcelExporter(title=titulo, filters=filters, num_cols=len(headers))
        .add_header()
        .add_kpi_row(kpis)
        .add_data_table(headers, rows, numeric_cols=numeric_cols)
        .finalize()
    )
    logger.info("export_excel: reporte=%s filas=%d bytes=%d", reporte, len(rows), len(file_bytes))
    return file_bytes
