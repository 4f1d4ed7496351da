"""Presupuesto model — financial allocation with a running available balance."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Presupuesto(Base):
    """Budget assigned to a (project, area) pair for one fiscal year.

    ``monto`` is the fixed ceiling. ``disponible`` is the remaining balance;
    it is decremented when an asiento is recorded or a requirement's
    ``monto_real`` grows, and restored when ``monto_real`` shrinks. Negative
    balances are not blocked at this level.

    Attributes:
        id: Primary key.
        codigo: Unique code, e.g. ``"BUD-2026-001"``.
        titulo: Short title.
        monto: Allocated amount.
        disponible: Remaining balance.
        anio: Fiscal year.
        estado: ``PENDING``, ``APPROVED`` or ``REJECTED``.
        version: Incremented on every edit by the director.
        responsable_id: Leader who must approve the budget.
        creado_por_id: Director who created it.
        aprobado_por_id: User who approved or rejected it.
    """

    __tablename__ = "presupuesto"

    id = Column(Integer, primary_key=True, autoincrement=True)
    codigo = Column(String(50), unique=True, nullable=False)
    titulo = Column(String(300), nullable=False)
    descripcion = Column(Text, nullable=True)
    monto = Column(Numeric(15, 2), nullable=False)
    disponible = Column(Numeric(15, 2), nullable=False)
    anio = Column(Integer, nullable=False, index=True)
    fecha_expiracion = Column(Date, nullable=True)
    estado = Column(String(20), nullable=False, default="PENDING")
    version = Column(Integer, nullable=False, default=1)
    documento_url = Column(String(500), nullable=True)
    proyecto_id = Column(Integer, ForeignKey("proyecto.id"), nullable=False)
    area_id = Column(Integer, ForeignKey("area.id"), nullable=False)
    categoria_id = Column(Integer, ForeignKey("categoria.id"), nullable=True)
    responsable_id = Column(Integer, ForeignKey("usuario.id"), nullable=True)
    creado_por_id = Column(Integer, ForeignKey("usuario.id"), nullable=False)
    aprobado_por_id = Column(Integer, ForeignKey("usuario.id"), nullable=True)
    aprobado_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    proyecto = relationship("Proyecto", lazy="select")
    area = relationship("Area", lazy="select")
    categoria = relationship("Categoria", lazy="select")
    responsable = relationship("Usuario", foreign_keys=[responsable_id], lazy="select")
    creado_por = relationship("Usuario", foreign_keys=[creado_por_id], lazy="select")
    aprobado_por = relationship("Usuario", foreign_keys=[aprobado_por_id], lazy="select")
    requerimientos = relationship(
        "Requerimiento", back_populates="presupuesto", lazy="select"
    )
