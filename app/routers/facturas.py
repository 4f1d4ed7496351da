"""
Invoice router.

Mounts under ``/api/facturas`` (prefix set in ``main.py``).

Endpoints
---------
GET   /                 — Invoices visible to the caller (``estado``, ``proveedor_id`` filters).
POST  /                 — Receive an invoice with its mandatory PDF (multipart).
PATCH /{id}/verificar   — Link to an APPROVED requirement; status VERIFIED.
PATCH /{id}/aprobar     — Approve for payment.
PATCH /{id}/pagar       — Mark PAID and mirror as a payment on the requirement.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.database import get_db
from app.exceptions import DatosInvalidosError
from app.models.usuario import Usuario
from app.schemas.factura import FacturaCreate, FacturaPagar, FacturaResponse, FacturaVerificar
from app.services import factura_service
from app.services.auth_service import get_current_user, require_capability
from app.services.file_storage import ArchivoSubido

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Facturas"])

_PDF_CONTENT_TYPES: frozenset[str] = frozenset(
    {"application/pdf", "application/octet-stream"}
)


@router.get(
    "",
    response_model=list[FacturaResponse],
    summary="Listar facturas",
    description=(
        "Roles con visibilidad global ven todas las facturas; el resto ve las "
        "que subió o las asociadas a sus requerimientos."
    ),
)
def list_facturas(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
    estado: str | None = None,
    proveedor_id: int | None = None,
):
    return factura_service.listar_facturas(db, current_user, estado, proveedor_id)


@router.post(
    "",
    response_model=FacturaResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Recepcionar factura",
    responses={
        401: {"description": "Token JWT ausente o inválido."},
        422: {"description": "Falta el PDF o algún campo obligatorio."},
    },
)
async def create_factura(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
    numero_factura: Annotated[str | None, Form()] = None,
    monto: Annotated[str | None, Form()] = None,
    fecha_emision: Annotated[str | None, Form()] = None,
    proveedor_id: Annotated[str | None, Form()] = None,
    fecha_vencimiento: Annotated[str | None, Form()] = None,
    archivo: Annotated[UploadFile | None, File(description="Factura en PDF")] = None,
):
    try:
        data = FacturaCreate.model_validate(
            {
                "numero_factura": numero_factura,
                "monto": monto,
                "fecha_emision": fecha_emision,
                "proveedor_id": proveedor_id,
                "fecha_vencimiento": fecha_vencimiento,
            }
        )
    except ValidationError as exc:
        campos = ", ".join(str(err["loc"][0]) for err in exc.errors())
        raise DatosInvalidosError(f"Campos inválidos o faltantes: {campos}.") from exc

    subido = None
    if archivo is not None and archivo.filename:
        if (archivo.content_type or "") not in _PDF_CONTENT_TYPES:
            logger.warning(
                "Unexpected content_type='%s' for invoice file='%s'",
                archivo.content_type, archivo.filename,
            )
        subido = ArchivoSubido(archivo.filename, await archivo.read())

    return factura_service.crear_factura(db, data, subido, current_user)


@router.patch(
    "/{factura_id}/verificar",
    response_model=FacturaResponse,
    summary="Verificar factura contra la orden de compra",
    responses={
        400: {"description": "La orden de compra no está aprobada."},
        404: {"description": "Factura u orden inexistente."},
    },
)
def verify_factura(
    factura_id: int,
    data: FacturaVerificar,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
):
    return factura_service.verificar_factura(db, factura_id, data.requerimiento_id, current_user)


@router.patch(
    "/{factura_id}/aprobar",
    response_model=FacturaResponse,
    summary="Aprobar factura para pago",
    responses={
        403: {"description": "El rol no puede aprobar pagos."},
        404: {"description": "La factura no existe."},
    },
)
def approve_factura(
    factura_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("APROBAR_FACTURA"))],
):
    return factura_service.aprobar_factura(db, factura_id, current_user)


@router.patch(
    "/{factura_id}/pagar",
    response_model=FacturaResponse,
    summary="Registrar pago de factura",
    responses={404: {"description": "La factura no existe."}},
)
def pay_factura(
    factura_id: int,
    data: FacturaPagar,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
):
    return factura_service.pagar_factura(db, factura_id, data, current_user)
