"""
Invoice lifecycle service layer.

States: RECEIVED → VERIFIED (linked to an APPROVED requirement) → APPROVED
→ PAID. Paying an invoice linked to a requirement records one payment on
it with ``numero_pago = 1`` regardless of the payments already present;
see DESIGN.md for why that numbering is kept as is.
"""

from __future__ import annotations

import datetime
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.exceptions import DatosInvalidosError, NoEncontradoError, OrdenNoAprobadaError
from app.models.factura import Factura
from app.models.pago import Pago
from app.models.proveedor import Proveedor
from app.models.requerimiento import Requerimiento
from app.models.usuario import Usuario
from app.schemas.factura import FacturaCreate, FacturaPagar
from app.services import file_storage, historial_service
from app.services.auth_service import exigir_capacidad
from app.services.file_storage import ArchivoSubido
from app.utils.constants import tiene_capacidad

logger = logging.getLogger(__name__)


def _cargar(db: Session, factura_id: int) -> Factura:
    factura: Factura | None = db.query(Factura).filter(Factura.id == factura_id).first()
    if factura is None:
        raise NoEncontradoError(f"Factura con ID {factura_id} no encontrada.")
    return factura


def listar_facturas(
    db: Session,
    usuario: Usuario,
    estado: str | None = None,
    proveedor_id: int | None = None,
) -> list[Factura]:
    """List invoices, newest first.

    Without ``VER_TODAS_FACTURAS`` only invoices the caller uploaded, or
    whose requirement the caller owns, are returned.
    """
    query = db.query(Factura).outerjoin(
        Requerimiento, Factura.requerimiento_id == Requerimiento.id
    )
    if estado:
        query = query.filter(Factura.estado == estado)
    if proveedor_id is not None:
        query = query.filter(Factura.proveedor_id == proveedor_id)
    if not tiene_capacidad(usuario.rol, "VER_TODAS_FACTURAS"):
        query = query.filter(
            or_(
                Factura.creado_por_id == usuario.id,
                Requerimiento.creado_por_id == usuario.id,
            )
        )
    return query.order_by(Factura.created_at.desc(), Factura.id.desc()).all()


def crear_factura(
    db: Session,
    data: FacturaCreate,
    archivo: ArchivoSubido | None,
    usuario: Usuario,
) -> Factura:
    """Receive an invoice; the PDF is mandatory.

    Raises:
        DatosInvalidosError: If no file was uploaded or the supplier is unknown.
    """
    if archivo is None or not archivo.contenido:
        raise DatosInvalidosError("La factura en PDF es obligatoria.")
    if data.proveedor_id is not None and not (
        db.query(Proveedor.id).filter(Proveedor.id == data.proveedor_id).first()
    ):
        raise DatosInvalidosError(f"Proveedor con ID {data.proveedor_id} no existe.")

    ruta = file_storage.guardar_archivo(
        archivo.contenido, archivo.nombre, usuario.username or usuario.email
    )
    factura = Factura(
        numero_factura=data.numero_factura,
        proveedor_id=data.proveedor_id,
        monto=data.monto,
        fecha_emision=data.fecha_emision,
        fecha_vencimiento=data.fecha_vencimiento,
        estado="RECEIVED",
        archivo_url=ruta,
        creado_por_id=usuario.id,
    )
    db.add(factura)
    try:
        db.commit()
    except Exception:
        db.rollback()
        file_storage.delete_upload(ruta)
        raise
    db.refresh(factura)

    logger.info(
        "crear_factura: id=%d numero=%s por=%s", factura.id, factura.numero_factura, usuario.email
    )
    return factura


def verificar_factura(
    db: Session, factura_id: int, requerimiento_id: int, usuario: Usuario
) -> Factura:
    """Link the invoice to an APPROVED requirement and mark it VERIFIED.

    Raises:
        NoEncontradoError: Missing invoice or requirement.
        OrdenNoAprobadaError: The requirement is not APPROVED.
    """
    factura = _cargar(db, factura_id)
    requerimiento: Requerimiento | None = (
        db.query(Requerimiento).filter(Requerimiento.id == requerimiento_id).first()
    )
    if requerimiento is None:
        raise NoEncontradoError("Orden de compra (requerimiento) no encontrada.")
    if requerimiento.estado != "APPROVED":
        raise OrdenNoAprobadaError("La orden de compra no está aprobada.")

    factura.requerimiento_id = requerimiento.id
    factura.estado = "VERIFIED"
    db.commit()
    db.refresh(factura)

    logger.info(
        "verificar_factura: id=%d requerimiento_id=%d por=%s",
        factura_id, requerimiento_id, usuario.email,
    )
    return factura


def aprobar_factura(db: Session, factura_id: int, usuario: Usuario) -> Factura:
    exigir_capacidad(usuario, "APROBAR_FACTURA", "No tienes permiso para aprobar pagos.")
    factura = _cargar(db, factura_id)
    factura.estado = "APPROVED"
    db.commit()
    db.refresh(factura)
    logger.info("aprobar_factura: id=%d por=%s", factura_id, usuario.email)
    return factura


def pagar_factura(
    db: Session, factura_id: int, data: FacturaPagar, usuario: Usuario
) -> Factura:
    """Mark the invoice PAID and mirror it as a payment on its requirement."""
    factura = _cargar(db, factura_id)
    factura.estado = "PAID"

    if factura.requerimiento_id is not None:
        # TODO: number the payment from the requirement's count once the
        # product owner confirms the intended sequencing.
        pago = Pago(
            requerimiento_id=factura.requerimiento_id,
            numero_pago=1,
            monto=factura.monto,
            numero_factura=factura.numero_factura,
            fecha_pago=data.fecha_pago or datetime.date.today(),
            observaciones=(
                f"Pago generado desde Factura {factura.numero_factura}. "
                f"Transacción: {data.numero_transaccion or 'N/A'}"
            ),
        )
        db.add(pago)
        historial_service.registrar(
            db,
            "PAYMENT_REGISTERED",
            factura.requerimiento_id,
            f"Pago registrado desde la factura {factura.numero_factura} "
            f"por ${factura.monto:,.2f}",
        )

    db.commit()
    db.refresh(factura)

    logger.info(
        "pagar_factura: id=%d requerimiento_id=%s por=%s",
        factura_id, factura.requerimiento_id, usuario.email,
    )
    return factura
