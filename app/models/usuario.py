"""Usuario model — application user with role-based access control."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Usuario(Base):
    """System user whose role drives every capability check.

    Roles:
        - USER: Creates requirements and sees only their own (or the ones
          of the areas they direct).
        - LEADER: Budget manager; approves budgets assigned to them.
        - COORDINATOR: First signature on grouped requirements.
        - DIRECTOR: Senior signature; creates and edits budgets.
        - ADMIN: Full access.
        - AUDITOR: Read-only global visibility.
        - DEVELOPER: Technical support account with senior privileges.

    Attributes:
        id: Primary key.
        username: Optional login alias; login is by email.
        email: Unique email address (login identifier).
        password_hash: Bcrypt-hashed password.
        nombre_completo: Full display name.
        rol: Role identifier from ``constants.ROLES``.
        activo: Whether the account is active.
        ultimo_acceso: Timestamp of the last successful login.
    """

    __tablename__ = "usuario"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=True)
    email = Column(String(200), unique=True, nullable=False)
    password_hash = Column(String(200), nullable=False)
    nombre_completo = Column(String(300), nullable=True)
    rol = Column(String(30), nullable=False, default="USER")
    activo = Column(Boolean, default=True, nullable=False)
    ultimo_acceso = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    areas_dirigidas = relationship(
        "Area", back_populates="director", lazy="select"
    )
    notificaciones = relationship(
        "Notificacion", back_populates="usuario", lazy="select"
    )
