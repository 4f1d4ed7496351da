"""Proveedor model — supplier that bills the institution."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from app.database import Base


class Proveedor(Base):
    """Supplier that can be attached to requirements and invoices.

    Attributes:
        id: Primary key.
        nombre: Legal or trade name.
        nit: Tax identifier (NIT).
        email_contacto: Contact email.
        telefono_contacto: Contact phone.
        direccion: Postal address.
        activo: Whether the supplier can still be selected.
    """

    __tablename__ = "proveedor"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nombre = Column(String(300), nullable=False)
    nit = Column(String(30), unique=True, nullable=True)
    email_contacto = Column(String(200), nullable=True)
    telefono_contacto = Column(String(50), nullable=True)
    direccion = Column(String(300), nullable=True)
    activo = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)
