"""
Pydantic v2 schemas for the invoice lifecycle endpoints.
"""

from __future__ import annotations

import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.common import CatalogoRef, UsuarioRef, normalizar_nulo


class FacturaVerificar(BaseModel):
    requerimiento_id: int = Field(..., ge=1)


class FacturaPagar(BaseModel):
    fecha_pago: datetime.date | None = None
    numero_transaccion: str | None = Field(default=None, max_length=100)


class FacturaResponse(BaseModel):
    id: int
    numero_factura: str
    proveedor_id: int | None = None
    monto: float
    fecha_emision: datetime.date
    fecha_vencimiento: datetime.date | None = None
    estado: str
    archivo_url: str
    requerimiento_id: int | None = None
    creado_por_id: int
    created_at: datetime.datetime
    proveedor: CatalogoRef | None = None
    creado_por: UsuarioRef | None = None

    model_config = ConfigDict(from_attributes=True)


class FacturaCreate(BaseModel):
    """Invoice reception form; the PDF travels as a multipart upload."""

    numero_factura: str = Field(..., min_length=1, max_length=100)
    proveedor_id: int | None = Field(default=None, ge=1)
    monto: Decimal = Field(..., gt=0)
    fecha_emision: datetime.date
    fecha_vencimiento: datetime.date | None = None

    @field_validator("proveedor_id", "fecha_vencimiento", mode="before")
    @classmethod
    def _vacio_a_nulo(cls, value):
        value = normalizar_nulo(value)
        return None if value == "" else value
