"""
Payment account service layer.

Enforces the installment invariants of a requirement:

- with ``tiene_pagos_multiples`` off, at most one payment;
- never more than ``MAX_PAGOS`` payments;
- the sum of payments never exceeds the requirement total (``monto_total``,
  falling back to ``monto_real``); a total of zero disables this check.

Registering a payment moves ``estado_adquisicion`` to FINALIZADO once fully
paid, EN_TRAMITE otherwise, and audits the move only when the value
actually changes. The payment, that move and both audit entries commit
together.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from app.exceptions import (
    MaximoPagosAlcanzadoError,
    MontoExcedeRequerimientoError,
    MontoInvalidoError,
    NoEncontradoError,
    PagosMultiplesDeshabilitadosError,
)
from app.models.pago import Pago
from app.models.requerimiento import Requerimiento
from app.models.usuario import Usuario
from app.schemas.pago import PagoCreate, PagoUpdate
from app.services import historial_service
from app.services.auth_service import exigir_capacidad
from app.utils.constants import MAX_PAGOS

logger = logging.getLogger(__name__)

_CERO = Decimal("0")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def total_requerimiento(requerimiento: Requerimiento) -> Decimal:
    """Amount the payments are capped at (``0`` when the requirement has none)."""
    if requerimiento.monto_total is not None:
        return requerimiento.monto_total
    return requerimiento.monto_real or _CERO


def _validar_monto(monto: Decimal | None) -> Decimal:
    if monto is None or monto <= 0:
        raise MontoInvalidoError("El monto del pago es requerido y debe ser mayor a 0.")
    return monto


def _validar_tope(total: Decimal, nuevo_total: Decimal) -> None:
    if total > 0 and nuevo_total > total:
        raise MontoExcedeRequerimientoError(
            f"El total de pagos (${nuevo_total:,.2f}) excede el monto del "
            f"requerimiento (${total:,.2f})."
        )


def _cargar_requerimiento(db: Session, requerimiento_id: int) -> Requerimiento:
    requerimiento: Requerimiento | None = (
        db.query(Requerimiento).filter(Requerimiento.id == requerimiento_id).first()
    )
    if requerimiento is None:
        raise NoEncontradoError("Requerimiento no encontrado.")
    return requerimiento


def _cargar_pago(db: Session, pago_id: int) -> Pago:
    pago: Pago | None = db.query(Pago).filter(Pago.id == pago_id).first()
    if pago is None:
        raise NoEncontradoError("Pago no encontrado.")
    return pago


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------


def listar_pagos(db: Session, requerimiento_id: int) -> list[Pago]:
    _cargar_requerimiento(db, requerimiento_id)
    return (
        db.query(Pago)
        .filter(Pago.requerimiento_id == requerimiento_id)
        .order_by(Pago.numero_pago)
        .all()
    )


def crear_pago(
    db: Session, requerimiento_id: int, data: PagoCreate, usuario: Usuario
) -> Pago:
    """Register the next installment of a requirement.

    Raises:
        MontoInvalidoError: If ``monto`` is missing or not positive.
        NoEncontradoError: If the requirement does not exist.
        PagosMultiplesDeshabilitadosError: Second payment with the gate off.
        MaximoPagosAlcanzadoError: ``MAX_PAGOS`` payments already exist.
        MontoExcedeRequerimientoError: The new sum would exceed the total.
    """
    monto = _validar_monto(data.monto)
    requerimiento = _cargar_requerimiento(db, requerimiento_id)
    existentes = list(requerimiento.pagos)

    if not requerimiento.tiene_pagos_multiples and existentes:
        raise PagosMultiplesDeshabilitadosError(
            "Este requerimiento no tiene habilitados los pagos múltiples."
        )
    if len(existentes) >= MAX_PAGOS:
        raise MaximoPagosAlcanzadoError(f"Se ha alcanzado el máximo de {MAX_PAGOS} pagos.")

    numero_pago = len(existentes) + 1
    total = total_requerimiento(requerimiento)
    nuevo_total = sum((p.monto for p in existentes), _CERO) + monto
    _validar_tope(total, nuevo_total)

    pago = Pago(
        numero_pago=numero_pago,
        monto=monto,
        numero_factura=data.numero_factura,
        fecha_pago=data.fecha_pago,
        observaciones=data.observaciones,
    )
    requerimiento.pagos.append(pago)

    if total > 0:
        nuevo_estado = "FINALIZADO" if nuevo_total >= total else "EN_TRAMITE"
        if requerimiento.estado_adquisicion != nuevo_estado:
            requerimiento.estado_adquisicion = nuevo_estado
            historial_service.registrar(
                db,
                "STATUS_UPDATED",
                requerimiento.id,
                f"Estado de adquisición actualizado a {nuevo_estado} debido al registro de pago.",
            )

    historial_service.registrar(
        db,
        "PAYMENT_REGISTERED",
        requerimiento.id,
        f"Pago #{numero_pago} registrado por ${monto:,.2f} - "
        f"Factura: {data.numero_factura or 'N/A'}",
    )

    db.commit()
    db.refresh(pago)

    logger.info(
        "crear_pago: requerimiento_id=%d numero=%d monto=%s por=%s",
        requerimiento.id, numero_pago, monto, usuario.email,
    )
    return pago


def actualizar_pago(db: Session, pago_id: int, data: PagoUpdate, usuario: Usuario) -> Pago:
    """Sparse edit of an installment; the sum excludes the edited payment."""
    pago = _cargar_pago(db, pago_id)
    campos = data.campos_enviados()

    if "monto" in campos:
        campos["monto"] = _validar_monto(campos["monto"])
        requerimiento = pago.requerimiento
        otros = sum((p.monto for p in requerimiento.pagos if p.id != pago.id), _CERO)
        _validar_tope(total_requerimiento(requerimiento), otros + campos["monto"])

    for field, value in campos.items():
        setattr(pago, field, value)

    historial_service.registrar(
        db,
        "PAYMENT_UPDATED",
        pago.requerimiento_id,
        f"Pago #{pago.numero_pago} actualizado por {usuario.email}",
    )
    db.commit()
    db.refresh(pago)

    logger.info("actualizar_pago: id=%d fields=%s", pago_id, sorted(campos))
    return pago


def eliminar_pago(db: Session, pago_id: int, usuario: Usuario) -> None:
    """Delete an installment. ``estado_adquisicion`` is left as it was."""
    exigir_capacidad(usuario, "ELIMINAR_PAGO")
    pago = _cargar_pago(db, pago_id)

    historial_service.registrar(
        db,
        "PAYMENT_DELETED",
        pago.requerimiento_id,
        f"Pago #{pago.numero_pago} eliminado por {usuario.email}",
    )
    db.delete(pago)
    db.commit()

    logger.info("eliminar_pago: id=%d por=%s", pago_id, usuario.email)


def cambiar_pagos_multiples(
    db: Session, requerimiento_id: int, habilitar: bool, usuario: Usuario
) -> Requerimiento:
    requerimiento = _cargar_requerimiento(db, requerimiento_id)
    requerimiento.tiene_pagos_multiples = habilitar
    db.commit()
    db.refresh(requerimiento)
    logger.info(
        "cambiar_pagos_multiples: requerimiento_id=%d habilitar=%s por=%s",
        requerimiento_id, habilitar, usuario.email,
    )
    return requerimiento
