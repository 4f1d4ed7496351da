"""
Pydantic v2 schemas for the payment account endpoints.
"""

from __future__ import annotations

import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import ParcialModel


class PagoCreate(BaseModel):
    """Payload for registering an installment.

    ``monto`` is validated by the service so that a missing or non-positive
    amount yields the ``MONTO_INVALIDO`` classification.
    """

    monto: Decimal | None = None
    numero_factura: str | None = Field(default=None, max_length=100)
    fecha_pago: datetime.date | None = None
    observaciones: str | None = None


class PagoUpdate(ParcialModel):
    monto: Decimal | None = None
    numero_factura: str | None = Field(default=None, max_length=100)
    fecha_pago: datetime.date | None = None
    observaciones: str | None = None


class PagosMultiplesToggle(BaseModel):
    tiene_pagos_multiples: bool


class PagoResponse(BaseModel):
    id: int
    requerimiento_id: int
    numero_pago: int
    monto: float
    numero_factura: str | None = None
    fecha_pago: datetime.date | None = None
    observaciones: str | None = None
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)
