"""
Pydantic v2 schemas for the requirement lifecycle endpoints.

Input models cover creation (regular and asiento), the sparse status patch,
the full-detail edit and the owner's observations edit. Output models
flatten the related project, area, supplier and creator into small
references so list endpoints avoid N+1 serialisation.
"""

from __future__ import annotations

import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.common import CatalogoRef, ParcialModel, UsuarioRef, normalizar_nulo
from app.utils.constants import (
    CATEGORIAS_REQUERIMIENTO,
    ESTADOS_ADQUISICION,
    ESTADOS_REQUERIMIENTO,
)


# ---------------------------------------------------------------------------
# Input schemas (write operations)
# ---------------------------------------------------------------------------


class RequerimientoCreate(BaseModel):
    """Payload for creating a requirement (POST /).

    ``presupuesto_id`` is optional: when omitted the service resolves the
    budget from the ``(proyecto_id, area_id)`` pair.
    """

    titulo: str = Field(..., min_length=1, max_length=300)
    descripcion: str | None = None
    cantidad: str = Field(default="1", max_length=50)
    proyecto_id: int = Field(..., ge=1)
    area_id: int = Field(..., ge=1)
    proveedor_id: int | None = Field(default=None, ge=1)
    nombre_proveedor_manual: str | None = Field(default=None, max_length=300)
    presupuesto_id: int | None = Field(default=None, ge=1)
    monto_estimado: Decimal | None = Field(default=None, ge=0)
    categoria: str = Field(default="COMPRA")

    @field_validator(
        "proveedor_id",
        "nombre_proveedor_manual",
        "presupuesto_id",
        "monto_estimado",
        "descripcion",
        mode="before",
    )
    @classmethod
    def _vacio_a_nulo(cls, value):
        value = normalizar_nulo(value)
        return None if value == "" else value

    @field_validator("cantidad", mode="before")
    @classmethod
    def _cantidad_por_defecto(cls, value):
        return value or "1"

    @field_validator("categoria")
    @classmethod
    def _categoria_valida(cls, value: str) -> str:
        if value not in CATEGORIAS_REQUERIMIENTO:
            raise ValueError(f"Categoría inválida: {value}")
        return value


class AsientoCreate(RequerimientoCreate):
    """Payload for an administrative entry created already approved.

    The budget is mandatory and is charged ``monto_total`` immediately.
    """

    presupuesto_id: int = Field(..., ge=1)
    monto_total: Decimal = Field(..., gt=0)
    monto_real: Decimal | None = Field(default=None, ge=0)
    numero_orden_compra: str | None = Field(default=None, max_length=100)
    numero_factura: str | None = Field(default=None, max_length=100)
    tiene_pagos_multiples: bool = False


class EstadoUpdate(ParcialModel):
    """Sparse status patch (PATCH /{id}/estado).

    ``observaciones`` is the reviewer's comment copied into the audit trail.
    """

    estado: str | None = None
    estado_adquisicion: str | None = None
    observaciones: str | None = None
    recibido_a_satisfaccion: bool | None = None
    comentarios_satisfaccion: str | None = None

    @field_validator("estado")
    @classmethod
    def _estado_valido(cls, value: str | None) -> str | None:
        if value and value not in ESTADOS_REQUERIMIENTO:
            raise ValueError(f"Estado inválido: {value}")
        return value

    @field_validator("estado_adquisicion")
    @classmethod
    def _estado_adquisicion_valido(cls, value: str | None) -> str | None:
        if value and value not in ESTADOS_ADQUISICION:
            raise ValueError(f"Estado de adquisición inválido: {value}")
        return value


class RequerimientoUpdate(ParcialModel):
    """Full-detail edit (PUT /{id}).

    ``adjuntos_eliminar`` lists attachment ids to remove in the same call;
    new files travel alongside as multipart uploads.
    """

    titulo: str | None = Field(default=None, max_length=300)
    descripcion: str | None = None
    cantidad: str | None = Field(default=None, max_length=50)
    monto_total: Decimal | None = Field(default=None, ge=0)
    monto_real: Decimal | None = Field(default=None, ge=0)
    proyecto_id: int | None = Field(default=None, ge=1)
    area_id: int | None = Field(default=None, ge=1)
    proveedor_id: int | None = Field(default=None, ge=1)
    nombre_proveedor_manual: str | None = Field(default=None, max_length=300)
    numero_orden_compra: str | None = Field(default=None, max_length=100)
    numero_factura: str | None = Field(default=None, max_length=100)
    fecha_entrega: datetime.date | None = None
    recibido_a_satisfaccion: bool | None = None
    comentarios_satisfaccion: str | None = None
    adjuntos_eliminar: list[int] = Field(default_factory=list)

    @field_validator("adjuntos_eliminar", mode="before")
    @classmethod
    def _lista_vacia(cls, value):
        return [] if value is None else value


class ObservacionesUpdate(BaseModel):
    """Owner's satisfaction comments (PATCH /{id}/observaciones)."""

    comentarios_satisfaccion: str | None = None


# ---------------------------------------------------------------------------
# Output schemas
# ---------------------------------------------------------------------------


class AdjuntoResponse(BaseModel):
    id: int
    nombre_archivo: str
    archivo_url: str
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class PagoResumen(BaseModel):
    id: int
    numero_pago: int
    monto: float
    numero_factura: str | None = None
    fecha_pago: datetime.date | None = None

    model_config = ConfigDict(from_attributes=True)


class HistorialResponse(BaseModel):
    id: int
    accion: str
    detalles: str | None = None
    grupo_id: int | None = None
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class RequerimientoResponse(BaseModel):
    """Requirement as returned by list and write endpoints."""

    id: int
    titulo: str
    descripcion: str | None = None
    cantidad: str
    anio: int
    grupo_id: int | None = None
    es_asiento: bool
    categoria: str
    monto_estimado: float | None = None
    monto_total: float | None = None
    monto_real: float | None = None
    estado: str
    estado_adquisicion: str
    proyecto_id: int
    area_id: int
    presupuesto_id: int | None = None
    creado_por_id: int
    proveedor_id: int | None = None
    nombre_proveedor_manual: str | None = None
    numero_orden_compra: str | None = None
    numero_factura: str | None = None
    fecha_entrega: datetime.date | None = None
    recibido_a_satisfaccion: bool | None = None
    comentarios_satisfaccion: str | None = None
    tiene_pagos_multiples: bool
    aprobacion_coordinador: bool
    comentario_coordinador: str | None = None
    aprobacion_director: bool
    comentario_director: str | None = None
    created_at: datetime.datetime
    proyecto: CatalogoRef | None = None
    area: CatalogoRef | None = None
    proveedor: CatalogoRef | None = None
    creado_por: UsuarioRef | None = None
    adjuntos: list[AdjuntoResponse] = []
    pagos: list[PagoResumen] = []

    model_config = ConfigDict(from_attributes=True)


class RequerimientoDetalleResponse(RequerimientoResponse):
    """Detail view: adds the audit trail, newest first."""

    historial: list[HistorialResponse] = []
