"""
User administration service layer.

Account management is restricted to ``GESTIONAR_USUARIOS``; listing and the
own-password change are open to any authenticated user. Nobody may
deactivate or delete their own account.
"""

from __future__ import annotations

import logging
import secrets

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.exceptions import (
    EmailDuplicadoError,
    NoEncontradoError,
    ReglaNegocioError,
    UsuarioConRegistrosError,
)
from app.models.ajuste_presupuesto import AjustePresupuesto
from app.models.area import Area
from app.models.factura import Factura
from app.models.grupo_requerimiento import GrupoRequerimiento
from app.models.notificacion import Notificacion
from app.models.presupuesto import Presupuesto
from app.models.requerimiento import Requerimiento
from app.models.usuario import Usuario
from app.schemas.usuario import CambioPassword, UsuarioCreate, UsuarioUpdate
from app.services.auth_service import exigir_capacidad
from app.utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)


def _cargar(db: Session, usuario_id: int) -> Usuario:
    usuario = db.query(Usuario).filter(Usuario.id == usuario_id).first()
    if usuario is None:
        raise NoEncontradoError("Usuario no encontrado.")
    return usuario


def _email_libre(db: Session, email: str, excluir_id: int | None = None) -> None:
    query = db.query(Usuario.id).filter(Usuario.email == email)
    if excluir_id is not None:
        query = query.filter(Usuario.id != excluir_id)
    if query.first() is not None:
        raise EmailDuplicadoError()


def _username_libre(db: Session, username: str, excluir_id: int | None = None) -> None:
    query = db.query(Usuario.id).filter(Usuario.username == username)
    if excluir_id is not None:
        query = query.filter(Usuario.id != excluir_id)
    if query.first() is not None:
        raise ReglaNegocioError("El nombre de usuario ya está en uso.")


# ---------------------------------------------------------------------------
# Read operations
# ---------------------------------------------------------------------------


def listar_usuarios(
    db: Session,
    rol: str | None = None,
    activo: bool | None = None,
    busqueda: str | None = None,
) -> list[Usuario]:
    """Users ordered by display name, optionally filtered by role, status or
    a case-insensitive match on name or email.
    """
    query = db.query(Usuario)
    if rol:
        query = query.filter(Usuario.rol == rol)
    if activo is not None:
        query = query.filter(Usuario.activo.is_(activo))
    if busqueda:
        patron = f"%{busqueda}%"
        query = query.filter(
            or_(Usuario.nombre_completo.ilike(patron), Usuario.email.ilike(patron))
        )
    return query.order_by(Usuario.nombre_completo, Usuario.id).all()


def obtener_usuario(db: Session, usuario_id: int) -> Usuario:
    return _cargar(db, usuario_id)


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------


def crear_usuario(db: Session, data: UsuarioCreate, actor: Usuario) -> Usuario:
    """Create an active account.

    Raises:
        PermisoDenegadoError: If *actor* cannot manage users.
        EmailDuplicadoError: If the email is already registered.
    """
    exigir_capacidad(actor, "GESTIONAR_USUARIOS")
    _email_libre(db, data.email)
    if data.username:
        _username_libre(db, data.username)

    usuario = Usuario(
        email=data.email,
        username=data.username,
        password_hash=hash_password(data.password),
        nombre_completo=data.nombre_completo,
        rol=data.rol,
        activo=True,
    )
    db.add(usuario)
    db.commit()
    db.refresh(usuario)
    logger.info("crear_usuario: id=%d email=%s rol=%s por=%s", usuario.id, usuario.email, usuario.rol, actor.email)
    return usuario


def actualizar_usuario(
    db: Session, usuario_id: int, data: UsuarioUpdate, actor: Usuario
) -> Usuario:
    """Apply a sparse edit; a new ``password`` replaces the stored hash."""
    exigir_capacidad(actor, "GESTIONAR_USUARIOS")
    usuario = _cargar(db, usuario_id)
    cambios = data.campos_enviados()

    email = cambios.pop("email", None)
    if email and email != usuario.email:
        _email_libre(db, email, excluir_id=usuario.id)
        usuario.email = email

    username = cambios.pop("username", None)
    if username and username != usuario.username:
        _username_libre(db, username, excluir_id=usuario.id)
        usuario.username = username

    password = cambios.pop("password", None)
    if password:
        usuario.password_hash = hash_password(password)

    for campo, valor in cambios.items():
        if valor is not None:
            setattr(usuario, campo, valor)

    db.commit()
    db.refresh(usuario)
    logger.info("actualizar_usuario: id=%d por=%s", usuario.id, actor.email)
    return usuario


def cambiar_estado(db: Session, usuario_id: int, actor: Usuario) -> Usuario:
    """Flip ``activo``. Deactivating one's own account is refused."""
    exigir_capacidad(actor, "GESTIONAR_USUARIOS")
    if usuario_id == actor.id:
        raise ReglaNegocioError("No puedes desactivar tu propia cuenta.")
    usuario = _cargar(db, usuario_id)
    usuario.activo = not usuario.activo
    db.commit()
    db.refresh(usuario)
    logger.info("cambiar_estado: id=%d activo=%s por=%s", usuario.id, usuario.activo, actor.email)
    return usuario


def eliminar_usuario(db: Session, usuario_id: int, actor: Usuario) -> None:
    """Delete an account that no business record references.

    Its notifications are removed and any area it directs is left without
    director.

    Raises:
        ReglaNegocioError: When *actor* targets their own account.
        UsuarioConRegistrosError: When business records reference the user.
    """
    exigir_capacidad(actor, "GESTIONAR_USUARIOS")
    if usuario_id == actor.id:
        raise ReglaNegocioError("No puedes eliminar tu propia cuenta.")
    usuario = _cargar(db, usuario_id)

    referencias = (
        db.query(Requerimiento.id).filter(Requerimiento.creado_por_id == usuario_id).first(),
        db.query(GrupoRequerimiento.id).filter(GrupoRequerimiento.creador_id == usuario_id).first(),
        db.query(Factura.id).filter(Factura.creado_por_id == usuario_id).first(),
        db.query(Presupuesto.id)
        .filter(
            or_(
                Presupuesto.creado_por_id == usuario_id,
                Presupuesto.responsable_id == usuario_id,
                Presupuesto.aprobado_por_id == usuario_id,
            )
        )
        .first(),
        db.query(AjustePresupuesto.id)
        .filter(
            or_(
                AjustePresupuesto.solicitado_por_id == usuario_id,
                AjustePresupuesto.revisado_por_id == usuario_id,
            )
        )
        .first(),
    )
    if any(ref is not None for ref in referencias):
        raise UsuarioConRegistrosError()

    db.query(Notificacion).filter(Notificacion.usuario_id == usuario_id).delete(
        synchronize_session=False
    )
    db.query(Area).filter(Area.director_id == usuario_id).update(
        {Area.director_id: None}, synchronize_session=False
    )
    db.delete(usuario)
    db.commit()
    logger.info("eliminar_usuario: id=%d por=%s", usuario_id, actor.email)


# ---------------------------------------------------------------------------
# Own account
# ---------------------------------------------------------------------------


def cambiar_password(db: Session, usuario: Usuario, data: CambioPassword) -> None:
    if not verify_password(data.password_actual, usuario.password_hash):
        raise ReglaNegocioError("La contraseña actual es incorrecta.")
    usuario.password_hash = hash_password(data.password_nuevo)
    db.commit()
    logger.info("cambiar_password: id=%d", usuario.id)


def generar_password() -> str:
    """Random 16-character hex password suggested to admins on account creation."""
    return secrets.token_hex(8)
