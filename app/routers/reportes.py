"""
Reports router.

Mounts under ``/api/reportes`` (prefix set in ``main.py``).

Each report is streamed as an ``.xlsx`` attachment whose filename follows
the pattern ``MisCompras_<reporte>_<YYYYMMDD_HHMMSS>.xlsx``.

Endpoints
---------
GET /requerimientos  — Requirements of the year with amounts and states.
GET /presupuestos    — Budgets with assigned and available amounts.
GET /proveedores     — Supplier catalogue with requirement counts.
"""

from __future__ import annotations

import datetime
import io
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.database import get_db
from app.exceptions import NoEncontradoError
from app.models.usuario import Usuario
from app.services import reporte_service
from app.services.auth_service import require_capability

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Reportes"])

_XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _make_filename(reporte: str) -> str:
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"MisCompras_{reporte}_{timestamp}.xlsx"


@router.get(
    "/{reporte}",
    summary="Exportar reporte a Excel (.xlsx)",
    description="Reportes disponibles: requerimientos, presupuestos, proveedores.",
    response_class=StreamingResponse,
    responses={
        200: {
            "description": "Archivo Excel generado exitosamente.",
            "content": {_XLSX_MEDIA_TYPE: {}},
        },
        403: {"description": "El rol no puede exportar reportes."},
        404: {"description": "Reporte desconocido."},
    },
)
def export_reporte(
    reporte: str,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("EXPORTAR_REPORTES"))],
    anio: Annotated[int | None, Query(ge=2000, le=2100)] = None,
) -> StreamingResponse:
    if reporte not in reporte_service.REPORTES:
        raise NoEncontradoError(
            f"Reporte '{reporte}' no existe. Disponibles: {', '.join(reporte_service.REPORTES)}."
        )
    logger.info("GET /reportes/%s anio=%s por=%s", reporte, anio, current_user.email)

    file_bytes = reporte_service.export_excel(db, reporte, anio)
    headers = {
        "Content-Disposition": f'attachment; filename="{_make_filename(reporte)}"',
        "Content-Length": str(len(file_bytes)),
    }
    return StreamingResponse(io.BytesIO(file_bytes), media_type=_XLSX_MEDIA_TYPE, headers=headers)
