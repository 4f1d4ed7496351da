"""
Authentication business logic for the MisCompras API.

Provides:
- ``authenticate_user`` — credential verification against the DB.
- ``get_current_user`` — FastAPI dependency that extracts and validates
  the Bearer JWT from the ``Authorization`` header.
- ``require_capability`` — dependency factory that enforces the
  role-capability table on top of ``get_current_user``.
- ``exigir_capacidad`` — the same check for use inside services.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import get_db
from app.exceptions import NoAutenticadoError, PermisoDenegadoError
from app.models.usuario import Usuario
from app.utils.constants import tiene_capacidad
from app.utils.security import verify_password, verify_token

logger = logging.getLogger(__name__)

# ``auto_error=False`` so a missing header reaches our own handler and is
# reported with the NO_AUTENTICADO classification.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# ---------------------------------------------------------------------------
# Core authentication function
# ---------------------------------------------------------------------------


def authenticate_user(db: Session, email: str, password: str) -> Usuario | None:
    """Verify email/password credentials against the database.

    Returns ``None`` (instead of raising) so that callers control the error
    response. Unknown users and wrong passwords share the same outcome.
    """
    user: Usuario | None = (
        db.query(Usuario)
        .filter(Usuario.email == email, Usuario.activo.is_(True))
        .first()
    )

    if user is None:
        logger.debug("authenticate_user: unknown or inactive user '%s'", email)
        return None

    if not verify_password(password, user.password_hash):
        logger.debug("authenticate_user: wrong password for user '%s'", email)
        return None

    # Best-effort last-access timestamp
    try:
        user.ultimo_acceso = datetime.now(timezone.utc)
        db.commit()
    except SQLAlchemyError:  # pragma: no cover
        db.rollback()
        logger.warning("Could not update ultimo_acceso for user '%s'", email)

    return user


# ---------------------------------------------------------------------------
# FastAPI dependency: current authenticated user
# ---------------------------------------------------------------------------


def get_current_user(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> Usuario:
    """Resolve the caller's identity from a JWT.

    Raises:
        NoAutenticadoError: If the token is missing, invalid, or expired,
                            or the referenced user is gone or inactive.
    """
    if not token:
        raise NoAutenticadoError("No se proporcionó un token de acceso.")

    try:
        payload = verify_token(token)
    except ValueError:
        raise NoAutenticadoError("No se pudo validar las credenciales.")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise NoAutenticadoError("No se pudo validar las credenciales.")

    user: Usuario | None = (
        db.query(Usuario)
        .filter(Usuario.id == user_id, Usuario.activo.is_(True))
        .first()
    )
    if user is None:
        raise NoAutenticadoError("No se pudo validar las credenciales.")

    return user


# ---------------------------------------------------------------------------
# Capability enforcement
# ---------------------------------------------------------------------------


def exigir_capacidad(usuario: Usuario, capacidad: str, mensaje: str | None = None) -> None:
    """Raise ``PermisoDenegadoError`` unless *usuario*'s role has *capacidad*."""
    if not tiene_capacidad(usuario.rol, capacidad):
        logger.info(
            "Capability %s denied to user_id=%s rol=%s",
            capacidad, usuario.id, usuario.rol,
        )
        raise PermisoDenegadoError(mensaje)


def require_capability(capacidad: str):
    """Return a FastAPI dependency that restricts access to one capability.

    .. code-block:: python

        @router.delete("/{id}")
        def delete_endpoint(
            current_user: Usuario = Depends(require_capability("ELIMINAR_PAGO")),
        ):
            ...
    """

    def _check_capability(
        current_user: Annotated[Usuario, Depends(get_current_user)],
    ) -> Usuario:
        exigir_capacidad(current_user, capacidad)
        return current_user

    return _check_capability
