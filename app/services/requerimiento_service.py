"""
Requirement lifecycle service layer.

Owns every transition of ``Requerimiento.estado`` (approval pipeline) and
``Requerimiento.estado_adquisicion`` (fulfilment pipeline) outside of the
group and payment flows, and keeps budget balances consistent with edits
to ``monto_real``.

Design notes
------------
- Every public write commits exactly once. The budget delta, the row write,
  attachment changes and the audit entry of ``actualizar_requerimiento``
  share that single commit; a failure rolls all of them back.
- Files are written to disk before the commit and removed again if it
  fails. Files of deleted attachments are removed only after the commit,
  tolerating missing files.
- Generated group documents are shared by every member of the group and
  are never removed from disk when one member drops them.
- Visibility: roles with ``VER_TODOS_REQUERIMIENTOS`` see everything; any
  other user sees what they created plus every requirement of the areas
  they direct.
"""

from __future__ import annotations

import datetime
import logging
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import (
    DatosInvalidosError,
    NoAutenticadoError,
    NoEncontradoError,
    PermisoDenegadoError,
)
from app.models.adjunto import Adjunto
from app.models.area import Area
from app.models.presupuesto import Presupuesto
from app.models.proveedor import Proveedor
from app.models.proyecto import Proyecto
from app.models.requerimiento import Requerimiento
from app.models.usuario import Usuario
from app.schemas.requerimiento import (
    AsientoCreate,
    EstadoUpdate,
    ObservacionesUpdate,
    RequerimientoCreate,
    RequerimientoUpdate,
)
from app.services import file_storage, historial_service, notificacion_service, presupuesto_service
from app.services.auth_service import exigir_capacidad
from app.services.file_storage import ArchivoSubido
from app.utils.constants import SIN_COMENTARIOS, tiene_capacidad

logger = logging.getLogger(__name__)

# Columns that cannot be cleared; an explicit null for them is ignored.
_NO_ANULABLES = frozenset({"titulo", "cantidad", "proyecto_id", "area_id"})

_CERO = Decimal("0")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _anio_actual() -> int:
    return datetime.date.today().year


def _cargar(db: Session, requerimiento_id: int) -> Requerimiento:
    requerimiento: Requerimiento | None = (
        db.query(Requerimiento).filter(Requerimiento.id == requerimiento_id).first()
    )
    if requerimiento is None:
        raise NoEncontradoError(f"Requerimiento con ID {requerimiento_id} no encontrado.")
    return requerimiento


def _validar_referencias(
    db: Session,
    proyecto_id: int | None = None,
    area_id: int | None = None,
    proveedor_id: int | None = None,
    presupuesto_id: int | None = None,
) -> None:
    """Check that every supplied foreign key points at an existing row."""
    if proyecto_id is not None and not db.query(Proyecto.id).filter(Proyecto.id == proyecto_id).first():
        raise DatosInvalidosError(f"Proyecto con ID {proyecto_id} no existe.")
    if area_id is not None and not db.query(Area.id).filter(Area.id == area_id).first():
        raise DatosInvalidosError(f"Área con ID {area_id} no existe.")
    if proveedor_id is not None and not db.query(Proveedor.id).filter(Proveedor.id == proveedor_id).first():
        raise DatosInvalidosError(f"Proveedor con ID {proveedor_id} no existe.")
    if presupuesto_id is not None and not db.query(Presupuesto.id).filter(Presupuesto.id == presupuesto_id).first():
        raise NoEncontradoError(f"Presupuesto con ID {presupuesto_id} no encontrado.")


def _commit_o_limpiar(db: Session, rutas_nuevas: Iterable[str]) -> None:
    """Commit; on failure roll back and remove the files written for this call."""
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        for ruta in rutas_nuevas:
            file_storage.delete_upload(ruta)
        raise


def _borrar_archivos(rutas: Iterable[str]) -> None:
    for ruta in rutas:
        if file_storage.es_documento_compartido(ruta):
            continue
        file_storage.delete_upload(ruta)


def areas_dirigidas_ids(db: Session, usuario: Usuario) -> list[int]:
    """Ids of the areas whose ``director_id`` is *usuario*."""
    return [fila.id for fila in db.query(Area.id).filter(Area.director_id == usuario.id)]


def filtro_visibilidad(db: Session, usuario: Usuario) -> Any | None:
    """Return the WHERE clause restricting requirements to what *usuario* may see.

    ``None`` means no restriction (global viewer).
    """
    if tiene_capacidad(usuario.rol, "VER_TODOS_REQUERIMIENTOS"):
        return None
    condicion = Requerimiento.creado_por_id == usuario.id
    areas = areas_dirigidas_ids(db, usuario)
    if areas:
        condicion = or_(condicion, Requerimiento.area_id.in_(areas))
    return condicion


def puede_ver(db: Session, usuario: Usuario, requerimiento: Requerimiento) -> bool:
    if tiene_capacidad(usuario.rol, "VER_TODOS_REQUERIMIENTOS"):
        return True
    if requerimiento.creado_por_id == usuario.id:
        return True
    return requerimiento.area_id in areas_dirigidas_ids(db, usuario)


def construir_requerimiento(
    db: Session,
    data: RequerimientoCreate,
    usuario: Usuario,
    grupo_id: int | None = None,
) -> Requerimiento:
    """Add a PENDING_APPROVAL requirement to the session (flushed, not committed).

    The budget is taken from the payload or resolved from
    ``(proyecto_id, area_id)``.
    """
    _validar_referencias(
        db,
        proyecto_id=data.proyecto_id,
        area_id=data.area_id,
        proveedor_id=data.proveedor_id,
        presupuesto_id=data.presupuesto_id,
    )
    anio = _anio_actual()
    presupuesto_id = data.presupuesto_id or presupuesto_service.resolver_presupuesto(
        db, data.proyecto_id, data.area_id, anio
    )

    requerimiento = Requerimiento(
        titulo=data.titulo,
        descripcion=data.descripcion,
        cantidad=data.cantidad,
        anio=anio,
        grupo_id=grupo_id,
        es_asiento=False,
        categoria=data.categoria,
        monto_estimado=data.monto_estimado,
        estado="PENDING_APPROVAL",
        estado_adquisicion="PENDIENTE",
        proyecto_id=data.proyecto_id,
        area_id=data.area_id,
        presupuesto_id=presupuesto_id,
        creado_por_id=usuario.id,
        proveedor_id=data.proveedor_id,
        nombre_proveedor_manual=data.nombre_proveedor_manual,
    )
    db.add(requerimiento)
    db.flush()
    return requerimiento


# ---------------------------------------------------------------------------
# Read operations
# ---------------------------------------------------------------------------


def obtener_requerimiento(db: Session, requerimiento_id: int, usuario: Usuario) -> Requerimiento:
    """Return one requirement with attachments, payments and history.

    Raises:
        NoEncontradoError: If it does not exist.
        PermisoDenegadoError: If it falls outside the caller's visibility.
    """
    requerimiento = _cargar(db, requerimiento_id)
    if not puede_ver(db, usuario, requerimiento):
        raise PermisoDenegadoError("No tienes acceso a este requerimiento.")
    return requerimiento


def listar_mis_requerimientos(
    db: Session,
    usuario: Usuario,
    anio: int | None = None,
    incluir_asientos: bool = False,
) -> list[Requerimiento]:
    query = db.query(Requerimiento).filter(
        Requerimiento.creado_por_id == usuario.id,
        Requerimiento.anio == (anio or _anio_actual()),
    )
    if not incluir_asientos:
        query = query.filter(Requerimiento.es_asiento.is_(False))
    return query.order_by(Requerimiento.created_at.desc(), Requerimiento.id.desc()).all()


def listar_requerimientos(
    db: Session,
    usuario: Usuario,
    anio: int | None = None,
    incluir_asientos: bool = False,
    estado: str | None = None,
) -> list[Requerimiento]:
    """List the year's requirements visible to *usuario*, newest first."""
    query = db.query(Requerimiento).filter(Requerimiento.anio == (anio or _anio_actual()))
    if not incluir_asientos:
        query = query.filter(Requerimiento.es_asiento.is_(False))
    if estado:
        query = query.filter(Requerimiento.estado == estado)

    condicion = filtro_visibilidad(db, usuario)
    if condicion is not None:
        query = query.filter(condicion)

    return query.order_by(Requerimiento.created_at.desc(), Requerimiento.id.desc()).all()


def listar_asientos(db: Session, usuario: Usuario, anio: int | None = None) -> list[Requerimiento]:
    exigir_capacidad(usuario, "VER_ASIENTOS")
    return (
        db.query(Requerimiento)
        .filter(
            Requerimiento.es_asiento.is_(True),
            Requerimiento.anio == (anio or _anio_actual()),
        )
        .order_by(Requerimiento.created_at.desc(), Requerimiento.id.desc())
        .all()
    )


# ---------------------------------------------------------------------------
# Write operations
# ---------------------------------------------------------------------------


def crear_requerimiento(
    db: Session,
    data: RequerimientoCreate,
    usuario: Usuario | None,
    archivos: Iterable[ArchivoSubido] = (),
) -> Requerimiento:
    """Create a PENDING_APPROVAL requirement with its uploaded attachments.

    Writes a CREATED audit entry and notifies every holder of
    ``NOTIFICAR_CREACION``.

    Raises:
        NoAutenticadoError: If no creator is given.
        DatosInvalidosError: If a referenced project, area or supplier is missing.
    """
    if usuario is None:
        raise NoAutenticadoError("Usuario no autenticado.")

    requerimiento = construir_requerimiento(db, data, usuario)

    guardados = file_storage.guardar_archivos(archivos, usuario.username or usuario.email)
    for nombre, ruta in guardados:
        requerimiento.adjuntos.append(Adjunto(nombre_archivo=nombre, archivo_url=ruta))

    historial_service.registrar(
        db,
        "CREATED",
        requerimiento.id,
        f"Requerimiento creado por {usuario.email} con {len(guardados)} adjunto(s)",
    )
    notificacion_service.notificar_capacidad(
        db,
        "NOTIFICAR_CREACION",
        "Nueva Solicitud Pendiente",
        f"Se ha creado el requerimiento: {requerimiento.titulo}",
        tipo="INFO",
        requerimiento_id=requerimiento.id,
    )

    _commit_o_limpiar(db, [ruta for _, ruta in guardados])
    db.refresh(requerimiento)

    logger.info(
        "crear_requerimiento: id=%d por=%s presupuesto_id=%s adjuntos=%d",
        requerimiento.id, usuario.email, requerimiento.presupuesto_id, len(guardados),
    )
    return requerimiento


def crear_asiento(db: Session, data: AsientoCreate, usuario: Usuario) -> Requerimiento:
    """Record an administrative entry that is already approved.

    The budget is charged ``monto_total`` immediately and no approval flag
    is consulted.

    Raises:
        PermisoDenegadoError: If the caller lacks ``CREAR_ASIENTO``.
        NoEncontradoError: If the budget does not exist.
    """
    exigir_capacidad(usuario, "CREAR_ASIENTO", "No tienes permiso para crear asientos.")
    _validar_referencias(
        db,
        proyecto_id=data.proyecto_id,
        area_id=data.area_id,
        proveedor_id=data.proveedor_id,
        presupuesto_id=data.presupuesto_id,
    )

    presupuesto_service.descontar(db, data.presupuesto_id, data.monto_total)

    asiento = Requerimiento(
        titulo=data.titulo,
        descripcion=data.descripcion,
        cantidad=data.cantidad,
        anio=_anio_actual(),
        es_asiento=True,
        categoria=data.categoria,
        monto_estimado=data.monto_estimado,
        monto_total=data.monto_total,
        monto_real=data.monto_real,
        estado="APPROVED",
        estado_adquisicion="EN_TRAMITE",
        proyecto_id=data.proyecto_id,
        area_id=data.area_id,
        presupuesto_id=data.presupuesto_id,
        creado_por_id=usuario.id,
        proveedor_id=data.proveedor_id,
        nombre_proveedor_manual=data.nombre_proveedor_manual,
        numero_orden_compra=data.numero_orden_compra,
        numero_factura=data.numero_factura,
        tiene_pagos_multiples=data.tiene_pagos_multiples,
    )
    db.add(asiento)
    db.flush()

    historial_service.registrar(
        db,
        "ASIENTO_CREATED",
        asiento.id,
        f"Asiento creado por {usuario.email} - Monto: ${data.monto_total:,.2f}",
    )

    db.commit()
    db.refresh(asiento)

    logger.info(
        "crear_asiento: id=%d presupuesto_id=%d monto=%s por=%s",
        asiento.id, data.presupuesto_id, data.monto_total, usuario.email,
    )
    return asiento


def actualizar_estado(
    db: Session, requerimiento_id: int, data: EstadoUpdate, usuario: Usuario
) -> Requerimiento:
    """Apply a sparse status patch.

    Empty values leave the stored field untouched. Always writes a
    STATUS_UPDATED entry and notifies the creator (``ERROR`` when the
    resulting status is REJECTED, ``INFO`` otherwise).
    """
    exigir_capacidad(usuario, "ACTUALIZAR_ESTADO")
    requerimiento = _cargar(db, requerimiento_id)
    campos = data.campos_enviados()

    if campos.get("estado"):
        requerimiento.estado = campos["estado"]
    if campos.get("estado_adquisicion"):
        requerimiento.estado_adquisicion = campos["estado_adquisicion"]
    if campos.get("recibido_a_satisfaccion") is not None:
        requerimiento.recibido_a_satisfaccion = campos["recibido_a_satisfaccion"]
    if campos.get("comentarios_satisfaccion"):
        requerimiento.comentarios_satisfaccion = campos["comentarios_satisfaccion"]

    detalle = f"Cambio de estado a {requerimiento.estado}"
    if campos.get("estado_adquisicion"):
        detalle += f" (adquisición: {requerimiento.estado_adquisicion})"
    historial_service.registrar(
        db,
        "STATUS_UPDATED",
        requerimiento.id,
        f"{detalle}. Por: {usuario.email}. "
        f"Comentario: {campos.get('observaciones') or SIN_COMENTARIOS}",
    )
    notificacion_service.notificar(
        db,
        requerimiento.creado_por_id,
        "Requerimiento Actualizado",
        f'Tu solicitud "{requerimiento.titulo}" ha sido actualizada. '
        f"Estado: {requerimiento.estado}",
        tipo="ERROR" if requerimiento.estado == "REJECTED" else "INFO",
        requerimiento_id=requerimiento.id,
    )

    db.commit()
    db.refresh(requerimiento)

    logger.info(
        "actualizar_estado: id=%d estado=%s adquisicion=%s por=%s",
        requerimiento.id, requerimiento.estado, requerimiento.estado_adquisicion, usuario.email,
    )
    return requerimiento


def actualizar_requerimiento(
    db: Session,
    requerimiento_id: int,
    data: RequerimientoUpdate,
    usuario: Usuario,
    archivos: Iterable[ArchivoSubido] = (),
) -> Requerimiento:
    """Full-detail edit with budget reconciliation and attachment changes.

    When ``monto_real`` is sent and differs from the stored value on a
    requirement with a budget, ``disponible`` moves by ``-(nuevo - viejo)``;
    a cleared amount counts as zero. An EDITED entry is written only when
    the amount, the purchase-order number or the attachments changed.
    """
    exigir_capacidad(usuario, "EDITAR_REQUERIMIENTO")
    requerimiento = _cargar(db, requerimiento_id)

    campos = data.campos_enviados()
    ids_eliminar = campos.pop("adjuntos_eliminar", None) or []
    _validar_referencias(
        db,
        proyecto_id=campos.get("proyecto_id"),
        area_id=campos.get("area_id"),
        proveedor_id=campos.get("proveedor_id"),
    )

    cambios: list[str] = []

    if "monto_real" in campos:
        nuevo = campos["monto_real"] or _CERO
        viejo = requerimiento.monto_real or _CERO
        if nuevo != viejo:
            if requerimiento.presupuesto_id is not None:
                presupuesto_service.descontar(db, requerimiento.presupuesto_id, nuevo - viejo)
            cambios.append(f"Monto actualizado a ${nuevo:,.2f}")

    if (
        "numero_orden_compra" in campos
        and campos["numero_orden_compra"] != requerimiento.numero_orden_compra
    ):
        cambios.append(f"OC actualizada a {campos['numero_orden_compra']}")

    for field, value in campos.items():
        if value is None and field in _NO_ANULABLES:
            continue
        setattr(requerimiento, field, value)

    rutas_eliminadas: list[str] = []
    if ids_eliminar:
        for adjunto in list(requerimiento.adjuntos):
            if adjunto.id in ids_eliminar:
                rutas_eliminadas.append(adjunto.archivo_url)
                requerimiento.adjuntos.remove(adjunto)
        if rutas_eliminadas:
            cambios.append(f"{len(rutas_eliminadas)} adjunto(s) eliminado(s)")

    guardados = file_storage.guardar_archivos(archivos, usuario.username or usuario.email)
    for nombre, ruta in guardados:
        requerimiento.adjuntos.append(Adjunto(nombre_archivo=nombre, archivo_url=ruta))
    if guardados:
        cambios.append(f"{len(guardados)} adjunto(s) agregado(s)")

    if cambios:
        historial_service.registrar(
            db,
            "EDITED",
            requerimiento.id,
            f"Detalles actualizados por {usuario.email}: {', '.join(cambios)}",
        )

    _commit_o_limpiar(db, [ruta for _, ruta in guardados])
    _borrar_archivos(rutas_eliminadas)
    db.refresh(requerimiento)

    logger.info(
        "actualizar_requerimiento: id=%d fields=%s cambios=%d por=%s",
        requerimiento.id, sorted(campos), len(cambios), usuario.email,
    )
    return requerimiento


def actualizar_observaciones(
    db: Session, requerimiento_id: int, data: ObservacionesUpdate, usuario: Usuario
) -> Requerimiento:
    """Let the owner (or a holder of ``EDITAR_OBSERVACIONES_AJENAS``) edit comments."""
    requerimiento = _cargar(db, requerimiento_id)
    if requerimiento.creado_por_id != usuario.id and not tiene_capacidad(
        usuario.rol, "EDITAR_OBSERVACIONES_AJENAS"
    ):
        raise PermisoDenegadoError("No tienes permiso para modificar este requerimiento.")

    if "comentarios_satisfaccion" in data.model_fields_set:
        requerimiento.comentarios_satisfaccion = data.comentarios_satisfaccion

    historial_service.registrar(
        db,
        "OBSERVATIONS_UPDATED",
        requerimiento.id,
        f"Observaciones actualizadas por {usuario.email}",
    )
    db.commit()
    db.refresh(requerimiento)
    logger.info("actualizar_observaciones: id=%d por=%s", requerimiento.id, usuario.email)
    return requerimiento


def eliminar_requerimiento(db: Session, requerimiento_id: int, usuario: Usuario) -> None:
    """Delete a requirement together with its attachments, payments, history
    and notifications. Invoices linked to it are kept and unlinked.
    """
    exigir_capacidad(usuario, "ELIMINAR_REQUERIMIENTO")
    requerimiento = _cargar(db, requerimiento_id)

    _borrar_archivos([adjunto.archivo_url for adjunto in requerimiento.adjuntos])

    db.delete(requerimiento)
    db.commit()

    logger.info("eliminar_requerimiento: id=%d por=%s", requerimiento_id, usuario.email)
