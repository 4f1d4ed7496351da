"""Categoria model — spending category used to classify budgets."""

from sqlalchemy import Column, Integer, String

from app.database import Base


class Categoria(Base):
    __tablename__ = "categoria"

    id = Column(Integer, primary_key=True, autoincrement=True)
    codigo = Column(String(30), unique=True, nullable=False)
    nombre = Column(String(200), nullable=False)
