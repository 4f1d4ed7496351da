"""
Requirement group service layer (mass creation and mass approval).

Design notes
------------
- ``crear_grupo`` is one transaction: the group row, every requirement, the
  rendered summary document, its URL on the group and one attachment per
  requirement. A rendering failure is raised as ``DependenciaError`` and
  nothing is persisted; a document already written to disk is removed.
- Approval sets exactly one sign-off flag on every member; the group closes
  (every member to ``APPROVED``) according to ``is_group_fully_approved``.
- A group decision is audited once, against the first member, carrying
  ``grupo_id`` so ``historial_service.requerimientos_afectados`` can expand
  it back to the whole group.
"""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy.orm import Session

from app.exceptions import DependenciaError, NoEncontradoError, PermisoDenegadoError
from app.exporters.pdf_exporter import render_resumen_grupo
from app.models.adjunto import Adjunto
from app.models.grupo_requerimiento import GrupoRequerimiento
from app.models.requerimiento import Requerimiento
from app.models.usuario import Usuario
from app.schemas.grupo import (
    AprobacionGrupoResponse,
    CreadorGrupo,
    GrupoCreate,
    GrupoDecision,
    GrupoPendienteResponse,
)
from app.schemas.requerimiento import RequerimientoCreate, RequerimientoResponse
from app.services import file_storage, historial_service, notificacion_service
from app.services.auth_service import exigir_capacidad
from app.services.requerimiento_service import construir_requerimiento, filtro_visibilidad
from app.utils.constants import (
    GRUPO_INDIVIDUAL_ID,
    GRUPO_INDIVIDUAL_NOMBRE,
    SIN_COMENTARIOS,
    tiene_capacidad,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Approval policy
# ---------------------------------------------------------------------------


def is_group_fully_approved(requerimientos: Iterable[Requerimiento], rol_actor: str) -> bool:
    """Return True when the group can be closed out as APPROVED.

    A senior actor (``APROBACION_SENIOR``) closes the group on their own.
    Otherwise every member needs both the coordinator and the director flag.
    """
    if tiene_capacidad(rol_actor, "APROBACION_SENIOR"):
        return True
    return all(r.aprobacion_coordinador and r.aprobacion_director for r in requerimientos)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _cargar_grupo(db: Session, grupo_id: int) -> tuple[GrupoRequerimiento, list[Requerimiento]]:
    grupo: GrupoRequerimiento | None = (
        db.query(GrupoRequerimiento).filter(GrupoRequerimiento.id == grupo_id).first()
    )
    if grupo is None:
        raise NoEncontradoError(f"Grupo {grupo_id} no encontrado.")
    requerimientos = (
        db.query(Requerimiento)
        .filter(Requerimiento.grupo_id == grupo_id)
        .order_by(Requerimiento.id)
        .all()
    )
    if not requerimientos:
        raise NoEncontradoError(f"El grupo {grupo_id} no tiene requerimientos.")
    return grupo, requerimientos


def _nombre_documento(grupo_id: int) -> str:
    return f"Solicitud_Administrativa_{grupo_id}.pdf"


# ---------------------------------------------------------------------------
# Write operations
# ---------------------------------------------------------------------------


def crear_grupo(
    db: Session, data: GrupoCreate, usuario: Usuario
) -> tuple[GrupoRequerimiento, list[Requerimiento]]:
    """Create a group and all its requirements atomically.

    Raises:
        DatosInvalidosError: If a draft references a missing project, area
                             or supplier.
        NoEncontradoError: If the creator disappeared mid-transaction.
        DependenciaError: If the summary document cannot be rendered.
    """
    documento = None
    try:
        grupo = GrupoRequerimiento(creador_id=usuario.id)
        db.add(grupo)
        db.flush()

        requerimientos = [
            construir_requerimiento(
                db,
                RequerimientoCreate.model_validate(borrador.model_dump()),
                usuario,
                grupo_id=grupo.id,
            )
            for borrador in data.requerimientos
        ]

        creador: Usuario | None = db.query(Usuario).filter(Usuario.id == usuario.id).first()
        if creador is None:
            raise NoEncontradoError("El usuario creador no existe.")
        nombre_creador = creador.nombre_completo or creador.email

        nombre = _nombre_documento(grupo.id)
        try:
            contenido = render_resumen_grupo(grupo.id, nombre_creador, requerimientos)
            documento, url = file_storage.ruta_documento(nombre)
            documento.write_bytes(contenido)
        except Exception as exc:
            logger.exception("crear_grupo: could not render document for grupo_id=%d", grupo.id)
            raise DependenciaError(
                "No se pudo generar el documento de la solicitud grupal."
            ) from exc

        grupo.pdf_url = url
        for requerimiento in requerimientos:
            requerimiento.adjuntos.append(Adjunto(nombre_archivo=nombre, archivo_url=url))
            historial_service.registrar(
                db,
                "CREATED",
                requerimiento.id,
                f"Requerimiento creado por {creador.email} en la solicitud grupal #{grupo.id}",
            )

        notificacion_service.notificar_capacidad(
            db,
            "NOTIFICAR_CREACION_GRUPO",
            "Nueva Solicitud Grupal",
            f"{nombre_creador} creó una solicitud grupal con "
            f"{len(requerimientos)} requerimiento(s).",
            tipo="INFO",
            requerimiento_id=requerimientos[0].id,
        )

        db.commit()
    except Exception:
        db.rollback()
        if documento is not None:
            documento.unlink(missing_ok=True)
        raise

    db.refresh(grupo)
    for requerimiento in requerimientos:
        db.refresh(requerimiento)

    logger.info(
        "crear_grupo: grupo_id=%d requerimientos=%d por=%s",
        grupo.id, len(requerimientos), usuario.email,
    )
    return grupo, requerimientos


def aprobar_grupo(
    db: Session, grupo_id: int, data: GrupoDecision, usuario: Usuario
) -> AprobacionGrupoResponse:
    """Record the actor's sign-off on every member and close the group if allowed.

    COORDINATOR sets ``aprobacion_coordinador``; DIRECTOR, ADMIN and
    DEVELOPER set ``aprobacion_director``. Any other role is refused.
    """
    exigir_capacidad(usuario, "APROBAR_GRUPO")
    grupo, requerimientos = _cargar_grupo(db, grupo_id)

    if tiene_capacidad(usuario.rol, "APROBACION_COORDINADOR"):
        for requerimiento in requerimientos:
            requerimiento.aprobacion_coordinador = True
            requerimiento.comentario_coordinador = data.comentarios
    elif tiene_capacidad(usuario.rol, "APROBACION_SENIOR"):
        for requerimiento in requerimientos:
            requerimiento.aprobacion_director = True
            requerimiento.comentario_director = data.comentarios
    else:
        raise PermisoDenegadoError(
            "Solo un coordinador o un director puede aprobar solicitudes grupales."
        )
    db.flush()

    requerimientos = (
        db.query(Requerimiento)
        .filter(Requerimiento.grupo_id == grupo_id)
        .order_by(Requerimiento.id)
        .all()
    )
    todos_aprobados = is_group_fully_approved(requerimientos, usuario.rol)
    if todos_aprobados:
        for requerimiento in requerimientos:
            requerimiento.estado = "APPROVED"
        notificacion_service.notificar(
            db,
            grupo.creador_id,
            "Solicitud Grupal Aprobada",
            f"Tu solicitud grupal #{grupo.id} fue aprobada.",
            tipo="SUCCESS",
            requerimiento_id=requerimientos[0].id,
        )

    entrada = historial_service.registrar(
        db,
        "GROUP_APPROVED",
        requerimientos[0].id,
        f"Solicitud grupal #{grupo.id} aprobada por {usuario.email} ({usuario.rol}). "
        f"Comentario: {data.comentarios or SIN_COMENTARIOS}",
        grupo_id=grupo.id,
    )
    afectados = historial_service.requerimientos_afectados(db, entrada)

    db.commit()

    logger.info(
        "aprobar_grupo: grupo_id=%d rol=%s todos_aprobados=%s",
        grupo_id, usuario.rol, todos_aprobados,
    )
    return AprobacionGrupoResponse(
        grupo_id=grupo.id,
        todos_aprobados=todos_aprobados,
        requerimientos_afectados=afectados,
        mensaje=(
            "Solicitud grupal aprobada."
            if todos_aprobados
            else "Aprobación registrada; falta la firma del director."
        ),
    )


def rechazar_grupo(
    db: Session, grupo_id: int, data: GrupoDecision, usuario: Usuario
) -> list[int]:
    """Set every member to REJECTED; returns the affected requirement ids.

    The comment goes to ``comentario_coordinador`` for a coordinator and to
    ``comentario_director`` for every other allowed role.
    """
    exigir_capacidad(usuario, "APROBAR_GRUPO")
    grupo, requerimientos = _cargar_grupo(db, grupo_id)

    coordinador = tiene_capacidad(usuario.rol, "APROBACION_COORDINADOR")
    for requerimiento in requerimientos:
        requerimiento.estado = "REJECTED"
        if coordinador:
            requerimiento.comentario_coordinador = data.comentarios
        else:
            requerimiento.comentario_director = data.comentarios

    entrada = historial_service.registrar(
        db,
        "GROUP_REJECTED",
        requerimientos[0].id,
        f"Solicitud grupal #{grupo.id} rechazada por {usuario.email} ({usuario.rol}). "
        f"Comentario: {data.comentarios or SIN_COMENTARIOS}",
        grupo_id=grupo.id,
    )
    notificacion_service.notificar(
        db,
        grupo.creador_id,
        "Solicitud Grupal Rechazada",
        f"Tu solicitud grupal #{grupo.id} fue rechazada. "
        f"Comentario: {data.comentarios or SIN_COMENTARIOS}",
        tipo="ERROR",
        requerimiento_id=requerimientos[0].id,
    )
    afectados = historial_service.requerimientos_afectados(db, entrada)

    db.commit()
    logger.info("rechazar_grupo: grupo_id=%d rol=%s", grupo_id, usuario.rol)
    return afectados


# ---------------------------------------------------------------------------
# Read operations
# ---------------------------------------------------------------------------


def listar_grupos_pendientes(
    db: Session, usuario: Usuario, anio: int
) -> list[GrupoPendienteResponse]:
    """Pending-approval requirements of *anio*, bucketed by group.

    Visibility follows the requirement list rule. Requirements without a
    group are collected into the synthetic group ``0``, emitted last and
    only when non-empty.
    """
    query = db.query(Requerimiento).filter(
        Requerimiento.estado == "PENDING_APPROVAL",
        Requerimiento.anio == anio,
        Requerimiento.es_asiento.is_(False),
    )
    condicion = filtro_visibilidad(db, usuario)
    if condicion is not None:
        query = query.filter(condicion)
    pendientes = query.order_by(Requerimiento.created_at, Requerimiento.id).all()

    por_grupo: dict[int, list[Requerimiento]] = {}
    individuales: list[Requerimiento] = []
    for requerimiento in pendientes:
        if requerimiento.grupo_id is None:
            individuales.append(requerimiento)
        else:
            por_grupo.setdefault(requerimiento.grupo_id, []).append(requerimiento)

    resultado: list[GrupoPendienteResponse] = []
    for grupo_id, miembros in por_grupo.items():
        grupo = miembros[0].grupo
        creador = grupo.creador if grupo is not None else miembros[0].creado_por
        resultado.append(
            GrupoPendienteResponse(
                id=grupo_id,
                creador=CreadorGrupo(
                    id=creador.id,
                    nombre=creador.nombre_completo or creador.email,
                    email=creador.email,
                ),
                pdf_url=grupo.pdf_url if grupo is not None else None,
                created_at=grupo.created_at if grupo is not None else miembros[0].created_at,
                requerimientos=[RequerimientoResponse.model_validate(r) for r in miembros],
            )
        )
    resultado.sort(key=lambda g: (g.created_at, g.id), reverse=True)

    if individuales:
        resultado.append(
            GrupoPendienteResponse(
                id=GRUPO_INDIVIDUAL_ID,
                creador=CreadorGrupo(nombre=GRUPO_INDIVIDUAL_NOMBRE),
                pdf_url=None,
                created_at=individuales[0].created_at,
                requerimientos=[RequerimientoResponse.model_validate(r) for r in individuales],
            )
        )

    logger.debug(
        "listar_grupos_pendientes: usuario_id=%d grupos=%d individuales=%d",
        usuario.id, len(por_grupo), len(individuales),
    )
    return resultado
