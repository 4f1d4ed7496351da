"""
Budget adjustments router.

Mounts under ``/api/ajustes`` (prefix set in ``main.py``).

Endpoints
---------
POST /                 — Request an INCREASE or a TRANSFER (any user).
GET  /mis              — The caller's own requests, newest first.
GET  /pendientes       — PENDING requests, oldest first (directors).
GET  /                 — Every request (``estado``, ``anio`` filters).
GET  /{id}             — One request with its sources.
POST /{id}/aprobar     — Apply the adjustment to the budgets (directors).
POST /{id}/rechazar    — Reject with an optional comment (directors).
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.usuario import Usuario
from app.schemas.ajuste import AjusteCreate, AjusteRechazo, AjusteResponse
from app.services import ajuste_service
from app.services.auth_service import get_current_user, require_capability

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Ajustes presupuestales"])


@router.post(
    "",
    response_model=AjusteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Solicitar ajuste presupuestal",
    description=(
        "Un ``TRANSFER`` debe listar presupuestos de origen cuya suma sea igual "
        "al monto solicitado y que tengan disponible suficiente."
    ),
    responses={
        400: {"description": "Los orígenes no suman el monto o no tienen disponible."},
        404: {"description": "Presupuesto destino u origen inexistente."},
    },
)
def create_ajuste(
    data: AjusteCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
):
    return ajuste_service.crear_ajuste(db, data, current_user)


@router.get("/mis", response_model=list[AjusteResponse], summary="Mis solicitudes de ajuste")
def list_mis_ajustes(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
):
    return ajuste_service.listar_mis_ajustes(db, current_user)


@router.get(
    "/pendientes",
    response_model=list[AjusteResponse],
    summary="Solicitudes de ajuste pendientes",
    responses={403: {"description": "Solo el DIRECTOR puede ver solicitudes pendientes."}},
)
def list_pendientes(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("APROBAR_AJUSTE"))],
):
    return ajuste_service.listar_pendientes(db, current_user)


@router.get("", response_model=list[AjusteResponse], summary="Historial de ajustes")
def list_ajustes(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
    estado: str | None = None,
    anio: Annotated[int | None, Query(ge=2000, le=2100)] = None,
):
    return ajuste_service.listar_ajustes(db, estado, anio)


@router.get(
    "/{ajuste_id}",
    response_model=AjusteResponse,
    summary="Detalle de solicitud de ajuste",
    responses={404: {"description": "La solicitud no existe."}},
)
def get_ajuste(
    ajuste_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
):
    return ajuste_service.obtener_ajuste(db, ajuste_id)


@router.post(
    "/{ajuste_id}/aprobar",
    response_model=AjusteResponse,
    summary="Aprobar ajuste",
    responses={
        400: {"description": "Ya procesada, o un origen ya no tiene disponible."},
        403: {"description": "Solo el DIRECTOR puede aprobar."},
        404: {"description": "La solicitud no existe."},
    },
)
def approve_ajuste(
    ajuste_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("APROBAR_AJUSTE"))],
):
    return ajuste_service.aprobar_ajuste(db, ajuste_id, current_user)


@router.post(
    "/{ajuste_id}/rechazar",
    response_model=AjusteResponse,
    summary="Rechazar ajuste",
    responses={
        400: {"description": "La solicitud ya fue procesada."},
        403: {"description": "Solo el DIRECTOR puede rechazar."},
        404: {"description": "La solicitud no existe."},
    },
)
def reject_ajuste(
    ajuste_id: int,
    data: AjusteRechazo,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("APROBAR_AJUSTE"))],
):
    return ajuste_service.rechazar_ajuste(db, ajuste_id, data.comentario, current_user)
