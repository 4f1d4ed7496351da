"""Pago model — one payment installment against a requirement."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Pago(Base):
    """Payment installment.

    Attributes:
        numero_pago: 1-based position within the requirement, assigned as
                     ``existing count + 1`` at registration.
        monto: Installment amount.
        numero_factura: Supplier invoice number, if any.
        fecha_pago: Date the payment was made.
        observaciones: Free-text notes.
    """

    __tablename__ = "pago"

    id = Column(Integer, primary_key=True, autoincrement=True)
    requerimiento_id = Column(
        Integer, ForeignKey("requerimiento.id"), nullable=False, index=True
    )
    numero_pago = Column(Integer, nullable=False)
    monto = Column(Numeric(15, 2), nullable=False)
    numero_factura = Column(String(100), nullable=True)
    fecha_pago = Column(Date, nullable=True)
    observaciones = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    requerimiento = relationship("Requerimiento", back_populates="pagos")
