"""Area model — organisational area of the museum, optionally led by a director."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.database import Base


class Area(Base):
    """Organisational area that requirements and budgets are assigned to.

    A user referenced by ``director_id`` sees every requirement of the area
    in the restricted list views, in addition to their own.
    """

    __tablename__ = "area"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nombre = Column(String(200), nullable=False)
    director_id = Column(Integer, ForeignKey("usuario.id"), nullable=True)
    activo = Column(Boolean, default=True, nullable=False)

    director = relationship("Usuario", back_populates="areas_dirigidas", lazy="select")
