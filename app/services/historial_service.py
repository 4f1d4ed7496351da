"""
Audit trail for requirements.

Rows are only ever appended. Writers call ``registrar`` inside their own
transaction; nothing here commits.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.models.historial_requerimiento import HistorialRequerimiento
from app.models.requerimiento import Requerimiento

logger = logging.getLogger(__name__)


def registrar(
    db: Session,
    accion: str,
    requerimiento_id: int,
    detalles: str,
    grupo_id: int | None = None,
) -> HistorialRequerimiento:
    """Append one audit entry to the session (flushed, not committed)."""
    entrada = HistorialRequerimiento(
        requerimiento_id=requerimiento_id,
        grupo_id=grupo_id,
        accion=accion,
        detalles=detalles,
    )
    db.add(entrada)
    db.flush()
    logger.debug(
        "historial: %s requerimiento_id=%d grupo_id=%s",
        accion, requerimiento_id, grupo_id,
    )
    return entrada


def listar_por_requerimiento(
    db: Session, requerimiento_id: int
) -> list[HistorialRequerimiento]:
    """Return every entry of a requirement, newest first."""
    return (
        db.query(HistorialRequerimiento)
        .filter(HistorialRequerimiento.requerimiento_id == requerimiento_id)
        .order_by(HistorialRequerimiento.id.desc())
        .all()
    )


def requerimientos_afectados(db: Session, entrada: HistorialRequerimiento) -> list[int]:
    """Project an entry onto the requirement ids it concerns.

    A group-wide entry is stored once against the first member; this expands
    it back to every member of the group.
    """
    if entrada.grupo_id is None:
        return [entrada.requerimiento_id]
    filas = (
        db.query(Requerimiento.id)
        .filter(Requerimiento.grupo_id == entrada.grupo_id)
        .order_by(Requerimiento.id)
        .all()
    )
    return [fila.id for fila in filas]
