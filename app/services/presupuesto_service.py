"""
Budget ledger service layer.

All database access for the ``/api/presupuestos`` endpoints lives here,
together with the two balance primitives the requirement and payment
services call from inside their own transactions.
``modificar_asignacion`` is the allocation counterpart used when a budget
adjustment is approved.

Design notes
------------
- ``descontar`` / ``reintegrar`` emit a single ``UPDATE ... SET disponible =
  disponible - :delta`` so the balance is never read-modified-written in
  Python. They flush but never commit; the caller owns the transaction.
- Negative balances are not blocked here. Callers validate before
  committing when they need to.
- Two concurrent edits of the same requirement can still compute their
  deltas from the same stale ``monto_real``; see DESIGN.md.
"""

from __future__ import annotations

import datetime
import logging
from decimal import Decimal

from sqlalchemy import case, or_
from sqlalchemy.orm import Session

from app.exceptions import (
    NoEncontradoError,
    PermisoDenegadoError,
    PresupuestoConRequerimientosError,
    PresupuestoYaProcesadoError,
)
from app.models.ajuste_presupuesto import AjusteOrigen, AjustePresupuesto
from app.models.presupuesto import Presupuesto
from app.models.requerimiento import Requerimiento
from app.models.usuario import Usuario
from app.schemas.presupuesto import PresupuestoCreate, PresupuestoUpdate
from app.services import notificacion_service
from app.services.auth_service import exigir_capacidad
from app.utils.constants import tiene_capacidad

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Balance primitives
# ---------------------------------------------------------------------------


def _ajustar_disponible(db: Session, presupuesto_id: int, delta: Decimal) -> None:
    filas = (
        db.query(Presupuesto)
        .filter(Presupuesto.id == presupuesto_id)
        .update(
            {Presupuesto.disponible: Presupuesto.disponible + delta},
            synchronize_session="fetch",
        )
    )
    if not filas:
        raise NoEncontradoError(f"Presupuesto con ID {presupuesto_id} no encontrado.")


def descontar(db: Session, presupuesto_id: int, monto: Decimal) -> None:
    """Decrease ``disponible`` by *monto* (a negative *monto* restores it)."""
    _ajustar_disponible(db, presupuesto_id, -Decimal(monto))
    logger.debug("descontar: presupuesto_id=%d monto=%s", presupuesto_id, monto)


def reintegrar(db: Session, presupuesto_id: int, monto: Decimal) -> None:
    """Increase ``disponible`` by *monto*."""
    _ajustar_disponible(db, presupuesto_id, Decimal(monto))
    logger.debug("reintegrar: presupuesto_id=%d monto=%s", presupuesto_id, monto)


def modificar_asignacion(db: Session, presupuesto_id: int, delta: Decimal) -> None:
    """Move ``monto`` and ``disponible`` together by *delta* and bump ``version``.

    Approved budget adjustments are the only caller.
    """
    filas = (
        db.query(Presupuesto)
        .filter(Presupuesto.id == presupuesto_id)
        .update(
            {
                Presupuesto.monto: Presupuesto.monto + delta,
                Presupuesto.disponible: Presupuesto.disponible + delta,
                Presupuesto.version: Presupuesto.version + 1,
            },
            synchronize_session="fetch",
        )
    )
    if not filas:
        raise NoEncontradoError(f"Presupuesto con ID {presupuesto_id} no encontrado.")
    logger.debug("modificar_asignacion: presupuesto_id=%d delta=%s", presupuesto_id, delta)


def resolver_presupuesto(
    db: Session, proyecto_id: int, area_id: int, anio: int | None = None
) -> int | None:
    """Return the id of the budget funding a ``(proyecto, area)`` pair.

    Preference order: the given fiscal year, then APPROVED status, then the
    most recently created. Returns ``None`` when the pair has no budget.
    """
    anio = anio or datetime.date.today().year
    fila = (
        db.query(Presupuesto.id)
        .filter(Presupuesto.proyecto_id == proyecto_id, Presupuesto.area_id == area_id)
        .order_by(
            case((Presupuesto.anio == anio, 0), else_=1),
            case((Presupuesto.estado == "APPROVED", 0), else_=1),
            Presupuesto.created_at.desc(),
            Presupuesto.id.desc(),
        )
        .first()
    )
    return fila.id if fila else None


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _obtener_o_404(db: Session, presupuesto_id: int) -> Presupuesto:
    presupuesto: Presupuesto | None = (
        db.query(Presupuesto).filter(Presupuesto.id == presupuesto_id).first()
    )
    if presupuesto is None:
        raise NoEncontradoError(f"Presupuesto con ID {presupuesto_id} no encontrado.")
    return presupuesto


def _next_sequence(db: Session, anio: int) -> int:
    """Return ``max + 1`` over the ``BUD-{anio}-NNN`` codes already used."""
    prefix = f"BUD-{anio}-"
    rows = (
        db.query(Presupuesto.codigo)
        .filter(Presupuesto.codigo.like(f"{prefix}%"))
        .all()
    )
    max_seq = 0
    for (codigo,) in rows:
        tail = codigo[len(prefix):]
        if tail.isdigit():
            max_seq = max(max_seq, int(tail))
    return max_seq + 1


def _codigo_libre(db: Session, codigo: str, excluir_id: int | None = None) -> str:
    """Append ``-1``, ``-2``... to *codigo* until it no longer collides."""
    candidato = codigo
    sufijo = 0
    while True:
        query = db.query(Presupuesto.id).filter(Presupuesto.codigo == candidato)
        if excluir_id is not None:
            query = query.filter(Presupuesto.id != excluir_id)
        if query.first() is None:
            return candidato
        sufijo += 1
        candidato = f"{codigo}-{sufijo}"


# ---------------------------------------------------------------------------
# Read operations
# ---------------------------------------------------------------------------


def listar_presupuestos(
    db: Session,
    usuario: Usuario,
    anio: int | None = None,
    estado: str | None = None,
) -> list[Presupuesto]:
    """List budgets visible to *usuario*.

    Directors and global viewers see every budget. Any other user only sees
    APPROVED budgets where they are the ``responsable``.
    """
    query = db.query(Presupuesto)
    if anio is not None:
        query = query.filter(Presupuesto.anio == anio)
    if estado:
        query = query.filter(Presupuesto.estado == estado)

    if not (
        tiene_capacidad(usuario.rol, "GESTIONAR_PRESUPUESTO")
        or tiene_capacidad(usuario.rol, "VER_TODOS_REQUERIMIENTOS")
    ):
        query = query.filter(
            Presupuesto.responsable_id == usuario.id,
            Presupuesto.estado == "APPROVED",
        )

    return query.order_by(Presupuesto.anio.desc(), Presupuesto.codigo).all()


def obtener_presupuesto(db: Session, presupuesto_id: int) -> Presupuesto:
    return _obtener_o_404(db, presupuesto_id)


def listar_anios(db: Session) -> list[int]:
    """Distinct fiscal years across budgets and requirements, newest first."""
    anios = {fila[0] for fila in db.query(Presupuesto.anio).distinct()}
    anios |= {fila[0] for fila in db.query(Requerimiento.anio).distinct()}
    anios.add(datetime.date.today().year)
    return sorted(anios, reverse=True)


# ---------------------------------------------------------------------------
# Write operations
# ---------------------------------------------------------------------------


def crear_presupuesto(
    db: Session, data: PresupuestoCreate, usuario: Usuario
) -> Presupuesto:
    """Create a PENDING budget whose full amount is available.

    Raises:
        PermisoDenegadoError: If the caller cannot manage budgets.
    """
    exigir_capacidad(usuario, "GESTIONAR_PRESUPUESTO", "Solo un director puede crear presupuestos.")

    anio = data.anio or datetime.date.today().year
    if data.codigo:
        codigo = _codigo_libre(db, data.codigo)
    else:
        codigo = f"BUD-{anio}-{_next_sequence(db, anio):03d}"

    presupuesto = Presupuesto(
        codigo=codigo,
        titulo=data.titulo,
        descripcion=data.descripcion,
        monto=data.monto,
        disponible=data.monto,
        anio=anio,
        fecha_expiracion=data.fecha_expiracion,
        estado="PENDING",
        version=1,
        proyecto_id=data.proyecto_id,
        area_id=data.area_id,
        categoria_id=data.categoria_id,
        responsable_id=data.responsable_id,
        creado_por_id=usuario.id,
    )
    db.add(presupuesto)
    db.flush()

    if data.responsable_id is not None:
        notificacion_service.notificar(
            db,
            data.responsable_id,
            "Nuevo presupuesto asignado",
            f"Se le asignó el presupuesto {codigo} ({presupuesto.titulo}) para su aprobación.",
            tipo="INFO",
        )

    db.commit()
    db.refresh(presupuesto)

    logger.info("crear_presupuesto: created %s (id=%d)", codigo, presupuesto.id)
    return presupuesto


def actualizar_presupuesto(
    db: Session, presupuesto_id: int, data: PresupuestoUpdate, usuario: Usuario
) -> Presupuesto:
    """Apply a sparse edit; a new ``monto`` shifts ``disponible`` by the difference."""
    exigir_capacidad(usuario, "GESTIONAR_PRESUPUESTO", "Solo un director puede editar presupuestos.")
    presupuesto = _obtener_o_404(db, presupuesto_id)

    cambios = data.campos_enviados()
    nuevo_monto = cambios.pop("monto", None)
    if nuevo_monto is not None and Decimal(nuevo_monto) != presupuesto.monto:
        reintegrar(db, presupuesto.id, Decimal(nuevo_monto) - presupuesto.monto)
        presupuesto.monto = nuevo_monto

    codigo = cambios.pop("codigo", None)
    if codigo and codigo != presupuesto.codigo:
        presupuesto.codigo = _codigo_libre(db, codigo, excluir_id=presupuesto.id)

    for field, value in cambios.items():
        if value is None and field in ("titulo", "proyecto_id", "area_id"):
            continue
        setattr(presupuesto, field, value)

    presupuesto.version = (presupuesto.version or 1) + 1
    db.commit()
    db.refresh(presupuesto)

    logger.info(
        "actualizar_presupuesto: id=%d version=%d fields=%s",
        presupuesto_id, presupuesto.version, list(data.campos_enviados().keys()),
    )
    return presupuesto


def eliminar_presupuesto(db: Session, presupuesto_id: int, usuario: Usuario) -> None:
    exigir_capacidad(usuario, "GESTIONAR_PRESUPUESTO", "Solo un director puede eliminar presupuestos.")
    presupuesto = _obtener_o_404(db, presupuesto_id)

    en_uso = (
        db.query(Requerimiento.id)
        .filter(Requerimiento.presupuesto_id == presupuesto_id)
        .count()
    )
    if en_uso:
        raise PresupuestoConRequerimientosError(
            f"El presupuesto {presupuesto.codigo} tiene {en_uso} requerimiento(s) asociados."
        )

    ajustes = (
        db.query(AjustePresupuesto.id)
        .filter(
            or_(
                AjustePresupuesto.presupuesto_id == presupuesto_id,
                AjustePresupuesto.origenes.any(AjusteOrigen.presupuesto_id == presupuesto_id),
            )
        )
        .count()
    )
    if ajustes:
        raise PresupuestoConRequerimientosError(
            f"El presupuesto {presupuesto.codigo} tiene {ajustes} solicitud(es) de ajuste asociadas."
        )

    db.delete(presupuesto)
    db.commit()
    logger.info("eliminar_presupuesto: id=%d", presupuesto_id)


def aprobar_presupuesto(
    db: Session, presupuesto_id: int, aprobar: bool, usuario: Usuario
) -> Presupuesto:
    """Approve or reject a PENDING budget; only its ``responsable`` may decide.

    Raises:
        PermisoDenegadoError: If the caller is not the assigned manager.
        PresupuestoYaProcesadoError: If the budget already left PENDING.
    """
    presupuesto = _obtener_o_404(db, presupuesto_id)
    if presupuesto.responsable_id != usuario.id:
        raise PermisoDenegadoError(
            "Solo el responsable asignado puede aprobar este presupuesto."
        )
    if presupuesto.estado != "PENDING":
        raise PresupuestoYaProcesadoError(
            f"El presupuesto {presupuesto.codigo} ya fue procesado ({presupuesto.estado})."
        )

    presupuesto.estado = "APPROVED" if aprobar else "REJECTED"
    presupuesto.aprobado_por_id = usuario.id
    presupuesto.aprobado_at = datetime.datetime.now()

    notificacion_service.notificar(
        db,
        presupuesto.creado_por_id,
        "Presupuesto aprobado" if aprobar else "Presupuesto rechazado",
        f"El presupuesto {presupuesto.codigo} fue "
        f"{'aprobado' if aprobar else 'rechazado'} por {usuario.email}.",
        tipo="SUCCESS" if aprobar else "ERROR",
    )

    db.commit()
    db.refresh(presupuesto)
    logger.info(
        "aprobar_presupuesto: id=%d estado=%s por=%s",
        presupuesto_id, presupuesto.estado, usuario.email,
    )
    return presupuesto
