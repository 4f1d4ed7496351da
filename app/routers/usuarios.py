"""
User administration router.

Mounts under ``/api/usuarios`` (prefix set in ``main.py``).

Endpoints
---------
GET    /                    — Users (``rol``, ``activo``, ``busqueda`` filters).
GET    /generar-password    — Random password suggestion.
PATCH  /me/password         — Change the caller's own password.
GET    /{id}                — One user.
POST   /                    — Create an account (admins).
PUT    /{id}                — Sparse edit (admins).
PATCH  /{id}/estado         — Toggle active status (admins, never oneself).
DELETE /{id}                — Delete an account without business records (admins).
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.usuario import Usuario
from app.schemas.common import MessageResponse
from app.schemas.usuario import (
    CambioPassword,
    PasswordGenerado,
    UsuarioCreate,
    UsuarioResponse,
    UsuarioUpdate,
)
from app.services import usuario_service
from app.services.auth_service import get_current_user, require_capability

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Usuarios"])


@router.get("", response_model=list[UsuarioResponse], summary="Listar usuarios")
def list_usuarios(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
    rol: str | None = None,
    activo: bool | None = None,
    busqueda: str | None = None,
):
    return usuario_service.listar_usuarios(db, rol, activo, busqueda)


@router.get(
    "/generar-password",
    response_model=PasswordGenerado,
    summary="Sugerir contraseña aleatoria",
)
def suggest_password(
    current_user: Annotated[Usuario, Depends(require_capability("GESTIONAR_USUARIOS"))],
) -> PasswordGenerado:
    return PasswordGenerado(password=usuario_service.generar_password())


@router.patch(
    "/me/password",
    response_model=MessageResponse,
    summary="Cambiar mi contraseña",
    responses={400: {"description": "La contraseña actual es incorrecta."}},
)
def change_own_password(
    data: CambioPassword,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
) -> MessageResponse:
    usuario_service.cambiar_password(db, current_user, data)
    return MessageResponse(message="Contraseña actualizada exitosamente.")


@router.get(
    "/{usuario_id}",
    response_model=UsuarioResponse,
    summary="Detalle de usuario",
    responses={404: {"description": "El usuario no existe."}},
)
def get_usuario(
    usuario_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
):
    return usuario_service.obtener_usuario(db, usuario_id)


@router.post(
    "",
    response_model=UsuarioResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Crear usuario",
    responses={
        400: {"description": "El email ya está registrado."},
        403: {"description": "Solo administradores."},
    },
)
def create_usuario(
    data: UsuarioCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("GESTIONAR_USUARIOS"))],
):
    return usuario_service.crear_usuario(db, data, current_user)


@router.put(
    "/{usuario_id}",
    response_model=UsuarioResponse,
    summary="Editar usuario",
    responses={
        400: {"description": "El email ya está en uso."},
        403: {"description": "Solo administradores."},
        404: {"description": "El usuario no existe."},
    },
)
def update_usuario(
    usuario_id: int,
    data: UsuarioUpdate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("GESTIONAR_USUARIOS"))],
):
    return usuario_service.actualizar_usuario(db, usuario_id, data, current_user)


@router.patch(
    "/{usuario_id}/estado",
    response_model=UsuarioResponse,
    summary="Activar o desactivar usuario",
    responses={400: {"description": "No se puede desactivar la propia cuenta."}},
)
def toggle_usuario(
    usuario_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("GESTIONAR_USUARIOS"))],
):
    return usuario_service.cambiar_estado(db, usuario_id, current_user)


@router.delete(
    "/{usuario_id}",
    response_model=MessageResponse,
    summary="Eliminar usuario",
    responses={
        400: {"description": "Cuenta propia o con registros asociados."},
        404: {"description": "El usuario no existe."},
    },
)
def delete_usuario(
    usuario_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_capability("GESTIONAR_USUARIOS"))],
) -> MessageResponse:
    usuario_service.eliminar_usuario(db, usuario_id, current_user)
    return MessageResponse(message="Usuario eliminado exitosamente.")
