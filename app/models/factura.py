"""Factura model — supplier invoice tracked independently from requirements."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Factura(Base):
    """Supplier invoice.

    States: ``RECEIVED`` → ``VERIFIED`` (linked to an approved requirement)
    → ``APPROVED`` → ``PAID`` (creates a payment on the linked requirement).
    """

    __tablename__ = "factura"

    id = Column(Integer, primary_key=True, autoincrement=True)
    numero_factura = Column(String(100), nullable=False)
    proveedor_id = Column(Integer, ForeignKey("proveedor.id"), nullable=True)
    monto = Column(Numeric(15, 2), nullable=False)
    fecha_emision = Column(Date, nullable=False)
    fecha_vencimiento = Column(Date, nullable=True)
    estado = Column(String(20), nullable=False, default="RECEIVED")
    archivo_url = Column(String(500), nullable=False)
    requerimiento_id = Column(Integer, ForeignKey("requerimiento.id"), nullable=True)
    creado_por_id = Column(Integer, ForeignKey("usuario.id"), nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    proveedor = relationship("Proveedor", lazy="select")
    requerimiento = relationship("Requerimiento", back_populates="facturas", lazy="select")
    creado_por = relationship("Usuario", lazy="select")
