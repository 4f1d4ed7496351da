"""Notificacion model — in-app notification addressed to one user."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Notificacion(Base):
    __tablename__ = "notificacion"

    id = Column(Integer, primary_key=True, autoincrement=True)
    usuario_id = Column(Integer, ForeignKey("usuario.id"), nullable=False, index=True)
    titulo = Column(String(300), nullable=False)
    mensaje = Column(Text, nullable=False)
    tipo = Column(String(20), nullable=False, default="INFO")
    leida = Column(Boolean, nullable=False, default=False)
    requerimiento_id = Column(Integer, ForeignKey("requerimiento.id"), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    usuario = relationship("Usuario", back_populates="notificaciones")
    requerimiento = relationship("Requerimiento", back_populates="notificaciones")
