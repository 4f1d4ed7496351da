"""
Notifications router.

Mounts under ``/api/notificaciones`` (prefix set in ``main.py``). Every
endpoint acts on the caller's own inbox.

Endpoints
---------
GET   /             — Own notifications, newest first.
PATCH /leidas       — Mark every own notification as read.
PATCH /{id}/leida   — Mark one notification as read.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.usuario import Usuario
from app.schemas.common import MessageResponse
from app.schemas.notificacion import NotificacionResponse
from app.services import notificacion_service
from app.services.auth_service import get_current_user

router = APIRouter(tags=["Notificaciones"])


@router.get(
    "",
    response_model=list[NotificacionResponse],
    summary="Mis notificaciones",
    responses={401: {"description": "Token JWT ausente o inválido."}},
)
def list_notificaciones(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
):
    return notificacion_service.listar_mis_notificaciones(db, current_user)


@router.patch(
    "/leidas",
    response_model=MessageResponse,
    summary="Marcar todas como leídas",
)
def mark_all_read(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
) -> MessageResponse:
    total = notificacion_service.marcar_todas_leidas(db, current_user)
    return MessageResponse(message="Notificaciones marcadas como leídas.", detail=str(total))


@router.patch(
    "/{notificacion_id}/leida",
    response_model=NotificacionResponse,
    summary="Marcar una notificación como leída",
    responses={404: {"description": "La notificación no existe o no es del usuario."}},
)
def mark_read(
    notificacion_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
):
    return notificacion_service.marcar_leida(db, notificacion_id, current_user)
