"""
Budget adjustment service layer.

Any user may ask for more money on a budget, either as a plain
``INCREASE`` or as a ``TRANSFER`` out of other budgets. A director decides.
Approval is the only point where the ledger moves: the target gains
``monto_solicitado`` on both ``monto`` and ``disponible``, each TRANSFER
source loses its share the same way, and every touched budget's
``version`` goes up by one.

Design notes
------------
- Source balances are validated when the request is made and again at
  approval, since requirements may have spent them in between.
- The request form is rendered to ``documentos/Ajuste_{codigo}.pdf`` on
  creation and re-rendered with the decision. A rendering failure rolls
  the whole operation back.
"""

from __future__ import annotations

import datetime
import logging
from decimal import Decimal
from pathlib import Path

from sqlalchemy.orm import Session

from app.exceptions import (
    AjusteYaProcesadoError,
    DatosInvalidosError,
    DependenciaError,
    DisponibleInsuficienteError,
    NoEncontradoError,
    ReglaNegocioError,
)
from app.exporters.pdf_exporter import render_solicitud_ajuste
from app.models.ajuste_presupuesto import AjusteOrigen, AjustePresupuesto
from app.models.presupuesto import Presupuesto
from app.models.usuario import Usuario
from app.schemas.ajuste import AjusteCreate, AjusteOrigenIn
from app.services import file_storage, notificacion_service, presupuesto_service
from app.services.auth_service import exigir_capacidad

logger = logging.getLogger(__name__)

# Largest gap tolerated between the sources' sum and the requested amount
_TOLERANCIA = Decimal("0.01")

_RECHAZO_SIN_COMENTARIO = "Rechazado sin comentarios"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _obtener_o_404(db: Session, ajuste_id: int) -> AjustePresupuesto:
    ajuste: AjustePresupuesto | None = (
        db.query(AjustePresupuesto).filter(AjustePresupuesto.id == ajuste_id).first()
    )
    if ajuste is None:
        raise NoEncontradoError(f"Solicitud de ajuste con ID {ajuste_id} no encontrada.")
    return ajuste


def _presupuesto(db: Session, presupuesto_id: int, rol: str) -> Presupuesto:
    presupuesto: Presupuesto | None = (
        db.query(Presupuesto).filter(Presupuesto.id == presupuesto_id).first()
    )
    if presupuesto is None:
        raise NoEncontradoError(f"Presupuesto {rol} ({presupuesto_id}) no encontrado.")
    return presupuesto


def _next_sequence(db: Session, anio: int) -> int:
    """Return ``max + 1`` over the ``ADJ-{anio}-NNNN`` codes already used."""
    prefix = f"ADJ-{anio}-"
    rows = (
        db.query(AjustePresupuesto.codigo)
        .filter(AjustePresupuesto.codigo.like(f"{prefix}%"))
        .all()
    )
    max_seq = 0
    for (codigo,) in rows:
        tail = codigo[len(prefix):]
        if tail.isdigit():
            max_seq = max(max_seq, int(tail))
    return max_seq + 1


def _validar_origenes(
    db: Session, monto_solicitado: Decimal, origenes: list[AjusteOrigenIn] | list[AjusteOrigen]
) -> None:
    """Check that the sources cover the amount exactly and can afford their share."""
    if not origenes:
        raise DatosInvalidosError(
            "Para movimientos, debe especificar los presupuestos de origen."
        )

    total = sum((Decimal(o.monto) for o in origenes), Decimal("0"))
    if abs(total - Decimal(monto_solicitado)) > _TOLERANCIA:
        raise ReglaNegocioError(
            f"La suma de los descuentos (${total:,.2f}) debe ser igual al monto "
            f"solicitado (${Decimal(monto_solicitado):,.2f})."
        )

    for origen in origenes:
        presupuesto = _presupuesto(db, origen.presupuesto_id, "origen")
        if presupuesto.disponible < Decimal(origen.monto):
            raise DisponibleInsuficienteError(
                f"El presupuesto {presupuesto.titulo} no tiene suficiente disponible "
                f"(${presupuesto.disponible:,.2f} < ${Decimal(origen.monto):,.2f})."
            )


def _renderizar(ajuste: AjustePresupuesto) -> tuple[Path, str]:
    """Write the request form and return ``(absolute path, stored path)``."""
    try:
        contenido = render_solicitud_ajuste(ajuste)
        documento, url = file_storage.ruta_documento(f"Ajuste_{ajuste.codigo}.pdf")
        documento.write_bytes(contenido)
    except Exception as exc:
        logger.exception("ajuste: could not render document for %s", ajuste.codigo)
        raise DependenciaError(
            "No se pudo generar el documento de la solicitud de ajuste."
        ) from exc
    return documento, url


# ---------------------------------------------------------------------------
# Read operations
# ---------------------------------------------------------------------------


def listar_mis_ajustes(db: Session, usuario: Usuario) -> list[AjustePresupuesto]:
    return (
        db.query(AjustePresupuesto)
        .filter(AjustePresupuesto.solicitado_por_id == usuario.id)
        .order_by(AjustePresupuesto.created_at.desc(), AjustePresupuesto.id.desc())
        .all()
    )


def listar_pendientes(db: Session, usuario: Usuario) -> list[AjustePresupuesto]:
    """PENDING requests, oldest first, for the director's queue."""
    exigir_capacidad(
        usuario, "APROBAR_AJUSTE", "Solo el DIRECTOR puede ver solicitudes pendientes."
    )
    return (
        db.query(AjustePresupuesto)
        .filter(AjustePresupuesto.estado == "PENDING")
        .order_by(AjustePresupuesto.created_at, AjustePresupuesto.id)
        .all()
    )


def listar_ajustes(
    db: Session, estado: str | None = None, anio: int | None = None
) -> list[AjustePresupuesto]:
    """Every request, newest first; ``anio`` filters on the request date."""
    query = db.query(AjustePresupuesto)
    if estado:
        query = query.filter(AjustePresupuesto.estado == estado)
    if anio is not None:
        query = query.filter(
            AjustePresupuesto.created_at >= datetime.datetime(anio, 1, 1),
            AjustePresupuesto.created_at < datetime.datetime(anio + 1, 1, 1),
        )
    return query.order_by(
        AjustePresupuesto.created_at.desc(), AjustePresupuesto.id.desc()
    ).all()


def obtener_ajuste(db: Session, ajuste_id: int) -> AjustePresupuesto:
    return _obtener_o_404(db, ajuste_id)


# ---------------------------------------------------------------------------
# Write operations
# ---------------------------------------------------------------------------


def crear_ajuste(db: Session, data: AjusteCreate, usuario: Usuario) -> AjustePresupuesto:
    """Register a PENDING adjustment request and notify the directors.

    Raises:
        NoEncontradoError: If the target or a source budget does not exist.
        DatosInvalidosError: If a TRANSFER lists no sources.
        ReglaNegocioError: If the sources do not add up to the requested amount.
        DisponibleInsuficienteError: If a source cannot cover its share.
        DependenciaError: If the request form cannot be rendered.
    """
    destino = _presupuesto(db, data.presupuesto_id, "destino")
    if data.tipo == "TRANSFER":
        _validar_origenes(db, data.monto_solicitado, data.origenes)

    anio = datetime.date.today().year
    documento = None
    try:
        ajuste = AjustePresupuesto(
            codigo=f"ADJ-{anio}-{_next_sequence(db, anio):04d}",
            tipo=data.tipo,
            presupuesto_id=destino.id,
            monto_solicitado=data.monto_solicitado,
            motivo=data.motivo,
            estado="PENDING",
            solicitado_por_id=usuario.id,
        )
        if data.tipo == "TRANSFER":
            ajuste.origenes = [
                AjusteOrigen(presupuesto_id=o.presupuesto_id, monto=o.monto)
                for o in data.origenes
            ]
        db.add(ajuste)
        db.flush()
        db.refresh(ajuste)

        documento, ajuste.documento_url = _renderizar(ajuste)

        etiqueta = "Aumento" if data.tipo == "INCREASE" else "Movimiento"
        notificacion_service.notificar_capacidad(
            db,
            "APROBAR_AJUSTE",
            f"Nueva Solicitud de {etiqueta}: {ajuste.codigo}",
            f"{usuario.nombre_completo or usuario.email} solicita "
            f"${Decimal(data.monto_solicitado):,.2f} para el presupuesto {destino.titulo}.",
            tipo="WARNING",
        )
        db.commit()
    except Exception:
        db.rollback()
        if documento is not None:
            documento.unlink(missing_ok=True)
        raise

    db.refresh(ajuste)
    logger.info(
        "crear_ajuste: %s tipo=%s presupuesto_id=%d monto=%s por=%s",
        ajuste.codigo, ajuste.tipo, destino.id, data.monto_solicitado, usuario.email,
    )
    return ajuste


def aprobar_ajuste(db: Session, ajuste_id: int, usuario: Usuario) -> AjustePresupuesto:
    """Apply a PENDING adjustment to the ledger and mark it APPROVED.

    Raises:
        PermisoDenegadoError: If the caller cannot approve adjustments.
        AjusteYaProcesadoError: If the request already left PENDING.
        DisponibleInsuficienteError: If a source no longer covers its share.
    """
    exigir_capacidad(usuario, "APROBAR_AJUSTE", "Solo el DIRECTOR puede aprobar solicitudes.")
    ajuste = _obtener_o_404(db, ajuste_id)
    if ajuste.estado != "PENDING":
        raise AjusteYaProcesadoError()

    try:
        if ajuste.tipo == "TRANSFER":
            _validar_origenes(db, ajuste.monto_solicitado, ajuste.origenes)
            for origen in ajuste.origenes:
                presupuesto_service.modificar_asignacion(db, origen.presupuesto_id, -origen.monto)
        presupuesto_service.modificar_asignacion(db, ajuste.presupuesto_id, ajuste.monto_solicitado)

        ajuste.estado = "APPROVED"
        ajuste.revisado_por_id = usuario.id
        ajuste.revisado_at = datetime.datetime.now()
        db.flush()
        db.refresh(ajuste)
        _renderizar(ajuste)

        notificacion_service.notificar(
            db,
            ajuste.solicitado_por_id,
            "Solicitud de ajuste aprobada",
            f"Su solicitud {ajuste.codigo} por ${ajuste.monto_solicitado:,.2f} fue "
            f"aprobada por {usuario.nombre_completo or usuario.email}.",
            tipo="SUCCESS",
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(ajuste)
    logger.info(
        "aprobar_ajuste: %s presupuesto_id=%d monto=%s por=%s",
        ajuste.codigo, ajuste.presupuesto_id, ajuste.monto_solicitado, usuario.email,
    )
    return ajuste


def rechazar_ajuste(
    db: Session, ajuste_id: int, comentario: str | None, usuario: Usuario
) -> AjustePresupuesto:
    exigir_capacidad(usuario, "APROBAR_AJUSTE", "Solo el DIRECTOR puede rechazar solicitudes.")
    ajuste = _obtener_o_404(db, ajuste_id)
    if ajuste.estado != "PENDING":
        raise AjusteYaProcesadoError()

    comentario = (comentario or "").strip() or _RECHAZO_SIN_COMENTARIO
    try:
        ajuste.estado = "REJECTED"
        ajuste.revisado_por_id = usuario.id
        ajuste.revisado_at = datetime.datetime.now()
        ajuste.comentario_revision = comentario
        db.flush()
        db.refresh(ajuste)
        _renderizar(ajuste)

        notificacion_service.notificar(
            db,
            ajuste.solicitado_por_id,
            "Solicitud de ajuste rechazada",
            f"Su solicitud {ajuste.codigo} fue rechazada: {comentario}",
            tipo="ERROR",
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(ajuste)
    logger.info("rechazar_ajuste: %s por=%s", ajuste.codigo, usuario.email)
    return ajuste
