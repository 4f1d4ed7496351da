"""HistorialRequerimiento model — append-only audit trail of a requirement."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class HistorialRequerimiento(Base):
    """One lifecycle event.

    Rows are never updated. They are deleted only together with their
    requirement. Group-wide events set ``grupo_id`` and point
    ``requerimiento_id`` at the first member of the group.
    """

    __tablename__ = "historial_requerimiento"

    id = Column(Integer, primary_key=True, autoincrement=True)
    requerimiento_id = Column(
        Integer, ForeignKey("requerimiento.id"), nullable=False, index=True
    )
    grupo_id = Column(Integer, ForeignKey("grupo_requerimiento.id"), nullable=True)
    accion = Column(String(50), nullable=False)
    detalles = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    requerimiento = relationship("Requerimiento", back_populates="historial")
