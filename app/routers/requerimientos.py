"""
Requirements router.

Mounts under ``/api/requerimientos`` (prefix set in ``main.py``).

Creation and full edit accept ``multipart/form-data`` so attachments can
travel with the fields; every other write takes JSON.

Endpoints
---------
POST   /                     — Create a requirement (form + files).
POST   /asientos             — Create an already-approved administrative entry.
GET    /                     — Year's requirements visible to the caller.
GET    /mis                  — Requirements created by the caller.
GET    /asientos             — Year's asientos.
GET    /{id}                 — Detail with attachments, payments and history.
GET    /{id}/historial       — Audit trail only, newest first.
PATCH  /{id}/estado          — Sparse status patch.
PUT    /{id}                 — Full-detail edit (form + files).
PATCH  /{id}/observaciones   — Owner's satisfaction comments.
DELETE /{id}                 — Delete with cascade.

A form field sent as the literal ``"null"`` or as an empty string clears
that field; an absent field is left untouched.
"""

from __future__ import annotations

import json
import logging
from typing import Annotated, Any, NamedTuple

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from app.database import get_db
from app.exceptions import DatosInvalidosError
from app.models.usuario import Usuario
from app.schemas.common import MessageResponse
from app.schemas.requerimiento import (
    AsientoCreate,
    EstadoUpdate,
    HistorialResponse,
    ObservacionesUpdate,
    RequerimientoCreate,
    RequerimientoDetalleResponse,
    RequerimientoResponse,
    RequerimientoUpdate,
)
from app.services import historial_service, requerimiento_service
from app.services.auth_service import get_current_user, require_capability
from app.services.file_storage import ArchivoSubido

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Requerimientos"])

# Form keys that may repeat and are collected into a list
_CAMPOS_LISTA = frozenset({"adjuntos_eliminar"})


# ---------------------------------------------------------------------------
# Shared dependency: multipart form decoding
# ---------------------------------------------------------------------------


class FormularioRequerimiento(NamedTuple):
    """Raw form fields (only those actually sent) plus the uploaded files."""

    campos: dict[str, Any]
    archivos: list[ArchivoSubido]


async def _leer_formulario(request: Request) -> FormularioRequerimiento:
    form = await request.form()
    campos: dict[str, Any] = {}
    archivos: list[ArchivoSubido] = []

    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if value.filename:
                archivos.append(ArchivoSubido(value.filename, await value.read()))
            continue
        if isinstance(value, str) and value.strip() == "":
            value = None
        if key in _CAMPOS_LISTA:
            if isinstance(value, str) and value.lstrip().startswith("["):
                try:
                    valores = json.loads(value)
                except ValueError as exc:
                    raise DatosInvalidosError(f"{key}: lista JSON mal formada.") from exc
                campos.setdefault(key, []).extend(valores)
            elif value is not None:
                campos.setdefault(key, []).append(value)
            continue
        campos[key] = value

    return FormularioRequerimiento(campos, archivos)


def _validar(modelo: type[BaseModel], campos: dict[str, Any]) -> Any:
    try:
        return modelo.model_validate(campos)
    except ValidationError as exc:
        errores = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise DatosInvalidosError(errores) from exc


# ---------------------------------------------------------------------------
# Write operations
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=RequerimientoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Crear requerimiento",
    description=(
        "Crea un requerimiento en estado PENDING_APPROVAL. Si no se envía "
        "``presupuesto_id`` se resuelve a partir del par proyecto/área. Los "
        "archivos adjuntos se envían en el mismo formulario."
    ),
    responses={
        401: {"description": "Token JWT ausente o inválido."},
        422: {"description": "Campos obligatorios faltantes o referencias inexistentes."},
    },
)
def create_requerimiento(
    formulario: Annotated[FormularioRequerimiento, Depends(_leer_formulario)],
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
):
    data = _validar(RequerimientoCreate, formulario.campos)
    return requerimiento_service.crear_requerimiento(
        db, data, current_user, formulario.archivos
    )


@router.post(
    "/asientos",
    response_model=RequerimientoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Crear asiento",
    description=(
        "Registra un requerimiento ya aprobado (APPROVED / EN_TRAMITE) y descuenta "
        "``monto_total`` del presupuesto de inmediato."
    ),
    responses={
        403: {"description": "El rol no puede crear asientos."},
        404: {"description": "El presupuesto no existe."},
    },
)
def create_asiento(
    data: AsientoCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("CREAR_ASIENTO"))],
):
    return requerimiento_service.crear_asiento(db, data, current_user)


@router.patch(
    "/{requerimiento_id}/estado",
    response_model=RequerimientoResponse,
    summary="Actualizar estado",
    description=(
        "Actualización parcial de ``estado`` / ``estado_adquisicion`` y de la "
        "recepción a satisfacción. Siempre registra historial y notifica al creador."
    ),
    responses={
        403: {"description": "El rol no puede cambiar estados."},
        404: {"description": "El requerimiento no existe."},
    },
)
def update_estado(
    requerimiento_id: int,
    data: EstadoUpdate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("ACTUALIZAR_ESTADO"))],
):
    return requerimiento_service.actualizar_estado(db, requerimiento_id, data, current_user)


@router.put(
    "/{requerimiento_id}",
    response_model=RequerimientoResponse,
    summary="Editar requerimiento",
    description=(
        "Edición completa. Un cambio de ``monto_real`` ajusta el disponible del "
        "presupuesto por la diferencia. ``adjuntos_eliminar`` lista los adjuntos "
        "a quitar; los archivos nuevos viajan en el mismo formulario."
    ),
    responses={
        403: {"description": "El rol no puede editar requerimientos."},
        404: {"description": "El requerimiento no existe."},
    },
)
def update_requerimiento(
    requerimiento_id: int,
    formulario: Annotated[FormularioRequerimiento, Depends(_leer_formulario)],
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("EDITAR_REQUERIMIENTO"))],
):
    data = _validar(RequerimientoUpdate, formulario.campos)
    return requerimiento_service.actualizar_requerimiento(
        db, requerimiento_id, data, current_user, formulario.archivos
    )


@router.patch(
    "/{requerimiento_id}/observaciones",
    response_model=RequerimientoResponse,
    summary="Actualizar observaciones",
    responses={
        403: {"description": "Solo el creador o un rol autorizado puede editarlas."},
        404: {"description": "El requerimiento no existe."},
    },
)
def update_observaciones(
    requerimiento_id: int,
    data: ObservacionesUpdate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
):
    return requerimiento_service.actualizar_observaciones(
        db, requerimiento_id, data, current_user
    )


@router.delete(
    "/{requerimiento_id}",
    response_model=MessageResponse,
    summary="Eliminar requerimiento",
    responses={
        403: {"description": "El rol no puede eliminar requerimientos."},
        404: {"description": "El requerimiento no existe."},
    },
)
def delete_requerimiento(
    requerimiento_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("ELIMINAR_REQUERIMIENTO"))],
) -> MessageResponse:
    requerimiento_service.eliminar_requerimiento(db, requerimiento_id, current_user)
    return MessageResponse(message="Requerimiento eliminado exitosamente.")


# ---------------------------------------------------------------------------
# Read operations
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=list[RequerimientoResponse],
    summary="Listar requerimientos",
    description=(
        "Roles con visibilidad global ven todos los requerimientos del año; el "
        "resto ve los propios y los de las áreas que dirige."
    ),
)
def list_requerimientos(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
    anio: Annotated[int | None, Query(ge=2000, le=2100)] = None,
    incluir_asientos: bool = False,
    estado: str | None = None,
):
    return requerimiento_service.listar_requerimientos(
        db, current_user, anio, incluir_asientos, estado
    )


@router.get(
    "/mis",
    response_model=list[RequerimientoResponse],
    summary="Mis requerimientos",
)
def list_mis_requerimientos(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
    anio: Annotated[int | None, Query(ge=2000, le=2100)] = None,
    incluir_asientos: bool = False,
):
    return requerimiento_service.listar_mis_requerimientos(
        db, current_user, anio, incluir_asientos
    )


@router.get(
    "/asientos",
    response_model=list[RequerimientoResponse],
    summary="Listar asientos",
    responses={403: {"description": "El rol no puede ver asientos."}},
)
def list_asientos(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("VER_ASIENTOS"))],
    anio: Annotated[int | None, Query(ge=2000, le=2100)] = None,
):
    return requerimiento_service.listar_asientos(db, current_user, anio)


@router.get(
    "/{requerimiento_id}",
    response_model=RequerimientoDetalleResponse,
    summary="Detalle de requerimiento",
    responses={
        403: {"description": "Fuera de la visibilidad del usuario."},
        404: {"description": "El requerimiento no existe."},
    },
)
def get_requerimiento(
    requerimiento_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
):
    return requerimiento_service.obtener_requerimiento(db, requerimiento_id, current_user)


@router.get(
    "/{requerimiento_id}/historial",
    response_model=list[HistorialResponse],
    summary="Historial de un requerimiento",
    responses={
        403: {"description": "Fuera de la visibilidad del usuario."},
        404: {"description": "El requerimiento no existe."},
    },
)
def get_historial(
    requerimiento_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
):
    requerimiento_service.obtener_requerimiento(db, requerimiento_id, current_user)
    return historial_service.listar_por_requerimiento(db, requerimiento_id)
