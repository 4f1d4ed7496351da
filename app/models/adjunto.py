"""Adjunto model — file attached to a requirement."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Adjunto(Base):
    """Uploaded file (or generated document) linked to a requirement.

    ``archivo_url`` is the path relative to ``UPLOADS_DIR`` for uploads, or
    relative to ``DOCUMENTS_DIR`` for generated group summaries.
    """

    __tablename__ = "adjunto"

    id = Column(Integer, primary_key=True, autoincrement=True)
    requerimiento_id = Column(
        Integer, ForeignKey("requerimiento.id"), nullable=False, index=True
    )
    nombre_archivo = Column(String(300), nullable=False)
    archivo_url = Column(String(500), nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    requerimiento = relationship("Requerimiento", back_populates="adjuntos")
