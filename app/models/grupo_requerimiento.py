"""GrupoRequerimiento model — batch of requirements submitted together."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class GrupoRequerimiento(Base):
    """One mass-creation submission.

    Created in the same transaction as its requirements; afterwards only
    ``pdf_url`` (the rendered summary document) is ever written.
    """

    __tablename__ = "grupo_requerimiento"

    id = Column(Integer, primary_key=True, autoincrement=True)
    creador_id = Column(Integer, ForeignKey("usuario.id"), nullable=False)
    pdf_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    creador = relationship("Usuario", lazy="select")
    requerimientos = relationship(
        "Requerimiento",
        back_populates="grupo",
        order_by="Requerimiento.id",
        lazy="select",
    )
