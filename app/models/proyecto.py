"""Proyecto model — institutional project a requirement is charged to."""

from sqlalchemy import Boolean, Column, Integer, String

from app.database import Base


class Proyecto(Base):
    __tablename__ = "proyecto"

    id = Column(Integer, primary_key=True, autoincrement=True)
    codigo = Column(String(30), unique=True, nullable=False)
    nombre = Column(String(300), nullable=False)
    activo = Column(Boolean, default=True, nullable=False)
