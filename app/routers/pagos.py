"""
Payment account router.

Mounts under ``/api/pagos`` (prefix set in ``main.py``).

Endpoints
---------
GET    /requerimiento/{id}            — Installments of a requirement, by number.
POST   /requerimiento/{id}            — Register the next installment.
PATCH  /requerimiento/{id}/multiples  — Enable or disable multiple payments.
PUT    /{pago_id}                     — Edit an installment.
DELETE /{pago_id}                     — Delete an installment.

The sum of a requirement's installments never exceeds its total; see
``pago_service`` for the exact checks and their order.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.usuario import Usuario
from app.schemas.common import MessageResponse
from app.schemas.pago import PagoCreate, PagoResponse, PagosMultiplesToggle, PagoUpdate
from app.schemas.requerimiento import RequerimientoResponse
from app.services import pago_service
from app.services.auth_service import get_current_user, require_capability

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pagos"])


@router.get(
    "/requerimiento/{requerimiento_id}",
    response_model=list[PagoResponse],
    summary="Listar pagos de un requerimiento",
)
def list_pagos(
    requerimiento_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
):
    return pago_service.listar_pagos(db, requerimiento_id)


@router.post(
    "/requerimiento/{requerimiento_id}",
    response_model=PagoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Registrar pago",
    description=(
        "Registra la siguiente cuota. Cuando la suma alcanza el total del "
        "requerimiento su estado de adquisición pasa a FINALIZADO."
    ),
    responses={
        400: {"description": "Pagos múltiples deshabilitados, máximo alcanzado o monto excedido."},
        404: {"description": "El requerimiento no existe."},
        422: {"description": "Monto ausente o no positivo."},
    },
)
def create_pago(
    requerimiento_id: int,
    data: PagoCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
):
    return pago_service.crear_pago(db, requerimiento_id, data, current_user)


@router.patch(
    "/requerimiento/{requerimiento_id}/multiples",
    response_model=RequerimientoResponse,
    summary="Habilitar o deshabilitar pagos múltiples",
)
def toggle_pagos_multiples(
    requerimiento_id: int,
    data: PagosMultiplesToggle,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
):
    return pago_service.cambiar_pagos_multiples(
        db, requerimiento_id, data.tiene_pagos_multiples, current_user
    )


@router.put(
    "/{pago_id}",
    response_model=PagoResponse,
    summary="Editar pago",
    responses={
        400: {"description": "El nuevo monto excede el total del requerimiento."},
        404: {"description": "El pago no existe."},
    },
)
def update_pago(
    pago_id: int,
    data: PagoUpdate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
):
    return pago_service.actualizar_pago(db, pago_id, data, current_user)


@router.delete(
    "/{pago_id}",
    response_model=MessageResponse,
    summary="Eliminar pago",
    responses={
        403: {"description": "El rol no puede eliminar pagos."},
        404: {"description": "El pago no existe."},
    },
)
def delete_pago(
    pago_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("ELIMINAR_PAGO"))],
) -> MessageResponse:
    pago_service.eliminar_pago(db, pago_id, current_user)
    return MessageResponse(message="Pago eliminado exitosamente.")
