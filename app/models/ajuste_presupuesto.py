"""AjustePresupuesto model — request to raise a budget's allocation."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class AjustePresupuesto(Base):
    """Budget adjustment requested by any user and decided by a director.

    An ``INCREASE`` adds new money to the target budget. A ``TRANSFER`` moves
    it from the budgets listed in ``origenes``, whose amounts add up to
    ``monto_solicitado``. Nothing touches the ledger until the request is
    approved.

    Attributes:
        codigo: ``ADJ-{anio}-{seq:04d}``.
        tipo: ``INCREASE`` or ``TRANSFER``.
        estado: ``PENDING``, ``APPROVED`` or ``REJECTED``.
        documento_url: Rendered request form, under ``documentos/``.
    """

    __tablename__ = "ajuste_presupuesto"

    id = Column(Integer, primary_key=True, autoincrement=True)
    codigo = Column(String(30), unique=True, nullable=False)
    tipo = Column(String(20), nullable=False)
    presupuesto_id = Column(Integer, ForeignKey("presupuesto.id"), nullable=False, index=True)
    monto_solicitado = Column(Numeric(15, 2), nullable=False)
    motivo = Column(Text, nullable=False)
    estado = Column(String(20), nullable=False, default="PENDING")
    documento_url = Column(String(500), nullable=True)
    solicitado_por_id = Column(Integer, ForeignKey("usuario.id"), nullable=False)
    revisado_por_id = Column(Integer, ForeignKey("usuario.id"), nullable=True)
    revisado_at = Column(DateTime, nullable=True)
    comentario_revision = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    # Relationships
    presupuesto = relationship("Presupuesto", lazy="select")
    solicitado_por = relationship("Usuario", foreign_keys=[solicitado_por_id], lazy="select")
    revisado_por = relationship("Usuario", foreign_keys=[revisado_por_id], lazy="select")
    origenes = relationship(
        "AjusteOrigen",
        back_populates="ajuste",
        order_by="AjusteOrigen.id",
        lazy="select",
        cascade="all, delete-orphan",
    )


class AjusteOrigen(Base):
    """One source budget of a TRANSFER and the amount taken from it."""

    __tablename__ = "ajuste_origen"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ajuste_id = Column(
        Integer, ForeignKey("ajuste_presupuesto.id", ondelete="CASCADE"), nullable=False
    )
    presupuesto_id = Column(Integer, ForeignKey("presupuesto.id"), nullable=False)
    monto = Column(Numeric(15, 2), nullable=False)

    ajuste = relationship("AjustePresupuesto", back_populates="origenes")
    presupuesto = relationship("Presupuesto", lazy="select")
