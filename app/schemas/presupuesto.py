"""
Pydantic v2 schemas for the budget ledger endpoints.
"""

from __future__ import annotations

import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import CatalogoRef, ParcialModel, UsuarioRef


class PresupuestoCreate(BaseModel):
    """Payload for creating a budget (DIRECTOR only).

    ``codigo`` is generated as ``BUD-{anio}-{seq:03d}`` when omitted.
    """

    titulo: str = Field(..., min_length=1, max_length=300)
    descripcion: str | None = None
    codigo: str | None = Field(default=None, max_length=50)
    monto: Decimal = Field(..., gt=0)
    proyecto_id: int = Field(..., ge=1)
    area_id: int = Field(..., ge=1)
    categoria_id: int | None = Field(default=None, ge=1)
    responsable_id: int | None = Field(default=None, ge=1)
    anio: int | None = Field(default=None, ge=2000, le=2100)
    fecha_expiracion: datetime.date | None = None


class PresupuestoUpdate(ParcialModel):
    titulo: str | None = Field(default=None, max_length=300)
    descripcion: str | None = None
    codigo: str | None = Field(default=None, max_length=50)
    monto: Decimal | None = Field(default=None, gt=0)
    proyecto_id: int | None = Field(default=None, ge=1)
    area_id: int | None = Field(default=None, ge=1)
    categoria_id: int | None = Field(default=None, ge=1)
    responsable_id: int | None = Field(default=None, ge=1)


class PresupuestoDecision(BaseModel):
    """``aprobar=True`` approves, ``False`` rejects."""

    aprobar: bool


class PresupuestoResponse(BaseModel):
    id: int
    codigo: str
    titulo: str
    descripcion: str | None = None
    monto: float
    disponible: float
    anio: int
    estado: str
    version: int
    fecha_expiracion: datetime.date | None = None
    proyecto_id: int
    area_id: int
    categoria_id: int | None = None
    responsable_id: int | None = None
    creado_por_id: int
    aprobado_por_id: int | None = None
    aprobado_at: datetime.datetime | None = None
    created_at: datetime.datetime
    proyecto: CatalogoRef | None = None
    area: CatalogoRef | None = None
    responsable: UsuarioRef | None = None

    model_config = ConfigDict(from_attributes=True)
