"""
Pydantic v2 schemas for user management (CRUD) endpoints.

Separates write schemas (``UsuarioCreate``, ``UsuarioUpdate``) from the
read schema (``UsuarioResponse``) so the password hash never reaches an API
response.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.schemas.common import ParcialModel
from app.utils.constants import ROLES

# Re-export the canonical read schema so callers can import from one place.
from app.schemas.auth import UserResponse as UsuarioResponse  # noqa: F401


def _validar_rol(value: str | None) -> str | None:
    if value is not None and value not in ROLES:
        raise ValueError(f"Rol inválido: {value}. Valores permitidos: {ROLES}")
    return value


class UsuarioCreate(BaseModel):
    """Payload for creating a new user account (``POST /api/usuarios``).

    Only accessible with the ``GESTIONAR_USUARIOS`` capability.

    Attributes:
        email: Valid email address; unique, used as the login identifier.
        password: Plain-text password that will be hashed before storage.
        nombre_completo: Full display name for UI and notifications.
        rol: Role code from ``constants.ROLES``; defaults to ``USER``.
        username: Optional unique alias.
    """

    email: EmailStr = Field(..., description="Correo electrónico; identificador de acceso")
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Contraseña en texto plano; se almacenará hasheada con bcrypt",
    )
    nombre_completo: str = Field(..., min_length=3, max_length=300)
    rol: str = Field(default="USER", description=f"Valores permitidos: {ROLES}")
    username: str | None = Field(
        default=None,
        min_length=3,
        max_length=100,
        pattern=r"^[a-zA-Z0-9_.]+$",
    )

    _rol_valido = field_validator("rol")(_validar_rol)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "m.flores@museo.org",
                "password": "MuseoSecure2026!",
                "nombre_completo": "María Flores Quispe",
                "rol": "COORDINATOR",
            }
        }
    )


class UsuarioUpdate(ParcialModel):
    """Sparse edit of an existing user (``PUT /api/usuarios/{id}``).

    Omitting ``password`` leaves the stored hash unchanged.
    """

    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=8, max_length=128)
    nombre_completo: str | None = Field(default=None, min_length=3, max_length=300)
    rol: str | None = None
    username: str | None = Field(default=None, max_length=100)

    _rol_valido = field_validator("rol")(_validar_rol)


class CambioPassword(BaseModel):
    """Own password change (``PATCH /api/usuarios/me/password``)."""

    password_actual: str = Field(..., min_length=1)
    password_nuevo: str = Field(..., min_length=8, max_length=128)


class PasswordGenerado(BaseModel):
    password: str
