"""
Requirement groups router.

Mounts under ``/api/grupos`` (prefix set in ``main.py``).

Endpoints
---------
POST /                 — Mass-create requirements as one group (renders the summary PDF).
GET  /pendientes       — Pending-approval requirements bucketed by group.
POST /{id}/aprobar     — Sign off every member with the caller's approval flag.
POST /{id}/rechazar    — Reject every member of the group.
"""

from __future__ import annotations

import datetime
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.usuario import Usuario
from app.schemas.grupo import (
    AprobacionGrupoResponse,
    GrupoCreadoResponse,
    GrupoCreate,
    GrupoDecision,
    GrupoPendienteResponse,
    GrupoResponse,
)
from app.schemas.requerimiento import RequerimientoResponse
from app.services import grupo_service
from app.services.auth_service import get_current_user, require_capability

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Grupos"])


@router.post(
    "",
    response_model=GrupoCreadoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Crear solicitud grupal",
    description=(
        "Crea el grupo y todos sus requerimientos en una sola transacción. El "
        "documento resumen en PDF se adjunta a cada requerimiento."
    ),
    responses={
        422: {"description": "Algún borrador referencia un catálogo inexistente."},
        502: {"description": "No se pudo generar el documento resumen."},
    },
)
def create_grupo(
    data: GrupoCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
) -> GrupoCreadoResponse:
    grupo, requerimientos = grupo_service.crear_grupo(db, data, current_user)
    return GrupoCreadoResponse(
        grupo=GrupoResponse.model_validate(grupo),
        requerimientos=[RequerimientoResponse.model_validate(r) for r in requerimientos],
        pdf_url=grupo.pdf_url,
    )


@router.get(
    "/pendientes",
    response_model=list[GrupoPendienteResponse],
    summary="Solicitudes pendientes por grupo",
    description=(
        "Los requerimientos sin grupo se devuelven al final bajo el grupo "
        "sintético ``0`` (Solicitudes Individuales)."
    ),
)
def list_pendientes(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
    anio: Annotated[int | None, Query(ge=2000, le=2100)] = None,
):
    anio = anio or datetime.date.today().year
    return grupo_service.listar_grupos_pendientes(db, current_user, anio)


@router.post(
    "/{grupo_id}/aprobar",
    response_model=AprobacionGrupoResponse,
    summary="Aprobar solicitud grupal",
    description=(
        "Un coordinador marca la aprobación de coordinación; director, "
        "administrador o desarrollador marcan la aprobación senior. El grupo "
        "pasa a APPROVED cuando se cumplen las firmas requeridas."
    ),
    responses={
        403: {"description": "El rol no firma solicitudes grupales."},
        404: {"description": "El grupo no existe o no tiene requerimientos."},
    },
)
def approve_grupo(
    grupo_id: int,
    data: GrupoDecision,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("APROBAR_GRUPO"))],
):
    return grupo_service.aprobar_grupo(db, grupo_id, data, current_user)


@router.post(
    "/{grupo_id}/rechazar",
    response_model=AprobacionGrupoResponse,
    summary="Rechazar solicitud grupal",
    responses={
        403: {"description": "El rol no firma solicitudes grupales."},
        404: {"description": "El grupo no existe o no tiene requerimientos."},
    },
)
def reject_grupo(
    grupo_id: int,
    data: GrupoDecision,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("APROBAR_GRUPO"))],
) -> AprobacionGrupoResponse:
    afectados = grupo_service.rechazar_grupo(db, grupo_id, data, current_user)
    return AprobacionGrupoResponse(
        grupo_id=grupo_id,
        todos_aprobados=False,
        requerimientos_afectados=afectados,
        mensaje="Solicitud grupal rechazada.",
    )
