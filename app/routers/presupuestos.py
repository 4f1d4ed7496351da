"""
Budget ledger router.

Mounts under ``/api/presupuestos`` (prefix set in ``main.py``).

Endpoints
---------
GET    /               — Budgets visible to the caller (``anio``, ``estado`` filters).
GET    /{id}           — One budget.
POST   /               — Create a PENDING budget (directors).
PUT    /{id}           — Sparse edit; a new ``monto`` shifts ``disponible``.
DELETE /{id}           — Delete a budget no requirement references.
POST   /{id}/aprobar   — Approve or reject; only the assigned manager decides.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.usuario import Usuario
from app.schemas.common import MessageResponse
from app.schemas.presupuesto import (
    PresupuestoCreate,
    PresupuestoDecision,
    PresupuestoResponse,
    PresupuestoUpdate,
)
from app.services import presupuesto_service
from app.services.auth_service import get_current_user, require_capability

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Presupuestos"])


@router.get(
    "",
    response_model=list[PresupuestoResponse],
    summary="Listar presupuestos",
    description=(
        "Directores y roles con visibilidad global ven todos los presupuestos; "
        "el resto solo los APPROVED de los que es responsable."
    ),
)
def list_presupuestos(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
    anio: Annotated[int | None, Query(ge=2000, le=2100)] = None,
    estado: str | None = None,
):
    return presupuesto_service.listar_presupuestos(db, current_user, anio, estado)


@router.get(
    "/{presupuesto_id}",
    response_model=PresupuestoResponse,
    summary="Detalle de presupuesto",
    responses={404: {"description": "El presupuesto no existe."}},
)
def get_presupuesto(
    presupuesto_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
):
    return presupuesto_service.obtener_presupuesto(db, presupuesto_id)


@router.post(
    "",
    response_model=PresupuestoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Crear presupuesto",
    description="El código se genera como ``BUD-{anio}-{nnn}`` cuando no se envía.",
    responses={403: {"description": "Solo un director puede crear presupuestos."}},
)
def create_presupuesto(
    data: PresupuestoCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("GESTIONAR_PRESUPUESTO"))],
):
    return presupuesto_service.crear_presupuesto(db, data, current_user)


@router.put(
    "/{presupuesto_id}",
    response_model=PresupuestoResponse,
    summary="Editar presupuesto",
    responses={
        403: {"description": "Solo un director puede editar presupuestos."},
        404: {"description": "El presupuesto no existe."},
    },
)
def update_presupuesto(
    presupuesto_id: int,
    data: PresupuestoUpdate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("GESTIONAR_PRESUPUESTO"))],
):
    return presupuesto_service.actualizar_presupuesto(db, presupuesto_id, data, current_user)


@router.delete(
    "/{presupuesto_id}",
    response_model=MessageResponse,
    summary="Eliminar presupuesto",
    responses={
        400: {"description": "Hay requerimientos asociados al presupuesto."},
        403: {"description": "Solo un director puede eliminar presupuestos."},
        404: {"description": "El presupuesto no existe."},
    },
)
def delete_presupuesto(
    presupuesto_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("GESTIONAR_PRESUPUESTO"))],
) -> MessageResponse:
    presupuesto_service.eliminar_presupuesto(db, presupuesto_id, current_user)
    return MessageResponse(message="Presupuesto eliminado exitosamente.")


@router.post(
    "/{presupuesto_id}/aprobar",
    response_model=PresupuestoResponse,
    summary="Aprobar o rechazar presupuesto",
    responses={
        400: {"description": "El presupuesto ya fue procesado."},
        403: {"description": "Solo el responsable asignado puede decidir."},
        404: {"description": "El presupuesto no existe."},
    },
)
def approve_presupuesto(
    presupuesto_id: int,
    data: PresupuestoDecision,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
):
    return presupuesto_service.aprobar_presupuesto(db, presupuesto_id, data.aprobar, current_user)
