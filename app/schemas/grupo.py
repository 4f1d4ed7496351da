"""
Pydantic v2 schemas for requirement groups (mass creation and approval).
"""

from __future__ import annotations

import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.requerimiento import RequerimientoResponse


class RequerimientoBorrador(BaseModel):
    """One row of the mass-creation form."""

    titulo: str = Field(..., min_length=1, max_length=300)
    descripcion: str | None = None
    cantidad: str = Field(default="1", max_length=50)
    proyecto_id: int = Field(..., ge=1)
    area_id: int = Field(..., ge=1)
    monto_estimado: Decimal | None = Field(default=None, ge=0)
    proveedor_id: int | None = Field(default=None, ge=1)
    nombre_proveedor_manual: str | None = Field(default=None, max_length=300)
    presupuesto_id: int | None = Field(default=None, ge=1)


class GrupoCreate(BaseModel):
    requerimientos: list[RequerimientoBorrador] = Field(..., min_length=1)


class GrupoDecision(BaseModel):
    """Comment attached to a group approval or rejection."""

    comentarios: str | None = None


class GrupoResponse(BaseModel):
    id: int
    creador_id: int
    pdf_url: str | None = None
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class GrupoCreadoResponse(BaseModel):
    grupo: GrupoResponse
    requerimientos: list[RequerimientoResponse]
    pdf_url: str


class AprobacionGrupoResponse(BaseModel):
    """Result of a group approval.

    ``todos_aprobados`` is true when the group was closed out and every
    member moved to ``APPROVED``.
    """

    grupo_id: int
    todos_aprobados: bool
    requerimientos_afectados: list[int]
    mensaje: str


class CreadorGrupo(BaseModel):
    id: int | None = None
    nombre: str
    email: str | None = None


class GrupoPendienteResponse(BaseModel):
    """Pending-approval entry: a real group or the synthetic group ``0``."""

    id: int
    creador: CreadorGrupo
    pdf_url: str | None = None
    created_at: datetime.datetime | None = None
    requerimientos: list[RequerimientoResponse]
