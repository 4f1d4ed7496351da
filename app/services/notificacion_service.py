"""
Notification fan-out.

Recipients are derived from the role-capability table. Only in-app
notifications are produced; the e-mail list is logged so operators can see
who would have been mailed.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.exceptions import NoEncontradoError
from app.models.notificacion import Notificacion
from app.models.usuario import Usuario
from app.utils.constants import CAPACIDADES

logger = logging.getLogger(__name__)


def usuarios_con_capacidad(db: Session, capacidad: str) -> list[Usuario]:
    """Return active users whose role grants *capacidad*."""
    roles = CAPACIDADES.get(capacidad, frozenset())
    if not roles:
        return []
    return (
        db.query(Usuario)
        .filter(Usuario.rol.in_(sorted(roles)), Usuario.activo.is_(True))
        .order_by(Usuario.id)
        .all()
    )


def notificar(
    db: Session,
    usuario_id: int,
    titulo: str,
    mensaje: str,
    tipo: str = "INFO",
    requerimiento_id: int | None = None,
) -> Notificacion:
    notificacion = Notificacion(
        usuario_id=usuario_id,
        titulo=titulo,
        mensaje=mensaje,
        tipo=tipo,
        requerimiento_id=requerimiento_id,
    )
    db.add(notificacion)
    return notificacion


def notificar_capacidad(
    db: Session,
    capacidad: str,
    titulo: str,
    mensaje: str,
    tipo: str = "INFO",
    requerimiento_id: int | None = None,
) -> list[Notificacion]:
    """Notify every holder of *capacidad*; returns the rows added."""
    destinatarios = usuarios_con_capacidad(db, capacidad)
    logger.info(
        "Notificación '%s' para: %s",
        titulo, ",".join(u.email for u in destinatarios) or "(nadie)",
    )
    return [
        notificar(db, u.id, titulo, mensaje, tipo, requerimiento_id)
        for u in destinatarios
    ]


# ---------------------------------------------------------------------------
# Inbox operations
# ---------------------------------------------------------------------------


def listar_mis_notificaciones(db: Session, usuario: Usuario) -> list[Notificacion]:
    return (
        db.query(Notificacion)
        .filter(Notificacion.usuario_id == usuario.id)
        .order_by(Notificacion.created_at.desc(), Notificacion.id.desc())
        .all()
    )


def marcar_leida(db: Session, notificacion_id: int, usuario: Usuario) -> Notificacion:
    notificacion: Notificacion | None = (
        db.query(Notificacion)
        .filter(
            Notificacion.id == notificacion_id,
            Notificacion.usuario_id == usuario.id,
        )
        .first()
    )
    if notificacion is None:
        raise NoEncontradoError(f"Notificación {notificacion_id} no encontrada.")
    notificacion.leida = True
    db.commit()
    db.refresh(notificacion)
    return notificacion


def marcar_todas_leidas(db: Session, usuario: Usuario) -> int:
    actualizadas = (
        db.query(Notificacion)
        .filter(Notificacion.usuario_id == usuario.id, Notificacion.leida.is_(False))
        .update({Notificacion.leida: True}, synchronize_session=False)
    )
    db.commit()
    logger.info("marcar_todas_leidas: usuario_id=%d count=%d", usuario.id, actualizadas)
    return actualizadas
