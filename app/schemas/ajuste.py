"""
Pydantic v2 schemas for budget adjustment requests.
"""

from __future__ import annotations

import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import UsuarioRef


class AjusteOrigenIn(BaseModel):
    presupuesto_id: int = Field(..., ge=1)
    monto: Decimal = Field(..., gt=0)


class AjusteCreate(BaseModel):
    """Payload for requesting an adjustment.

    ``origenes`` is required for a ``TRANSFER`` and ignored for an
    ``INCREASE``.
    """

    presupuesto_id: int = Field(..., ge=1)
    tipo: Literal["INCREASE", "TRANSFER"]
    monto_solicitado: Decimal = Field(..., gt=0)
    motivo: str = Field(..., min_length=1)
    origenes: list[AjusteOrigenIn] = Field(default_factory=list)


class AjusteRechazo(BaseModel):
    comentario: str | None = None


class PresupuestoRef(BaseModel):
    id: int
    codigo: str
    titulo: str
    disponible: float

    model_config = ConfigDict(from_attributes=True)


class AjusteOrigenResponse(BaseModel):
    id: int
    presupuesto_id: int
    monto: float
    presupuesto: PresupuestoRef | None = None

    model_config = ConfigDict(from_attributes=True)


class AjusteResponse(BaseModel):
    id: int
    codigo: str
    tipo: str
    presupuesto_id: int
    monto_solicitado: float
    motivo: str
    estado: str
    documento_url: str | None = None
    solicitado_por_id: int
    revisado_por_id: int | None = None
    revisado_at: datetime.datetime | None = None
    comentario_revision: str | None = None
    created_at: datetime.datetime
    presupuesto: PresupuestoRef | None = None
    solicitado_por: UsuarioRef | None = None
    revisado_por: UsuarioRef | None = None
    origenes: list[AjusteOrigenResponse] = []

    model_config = ConfigDict(from_attributes=True)
