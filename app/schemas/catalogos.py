"""
Pydantic v2 schemas for the catalogue endpoints.

The list responses feed the dropdowns of the requirement and budget forms;
the create/update payloads back the administration screens.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import ParcialModel


class ProyectoResponse(BaseModel):
    id: int
    codigo: str
    nombre: str
    activo: bool = True

    model_config = ConfigDict(from_attributes=True)


class AreaResponse(BaseModel):
    id: int
    nombre: str
    director_id: int | None = None
    activo: bool = True

    model_config = ConfigDict(from_attributes=True)


class CategoriaResponse(BaseModel):
    id: int
    codigo: str
    nombre: str

    model_config = ConfigDict(from_attributes=True)


class ProveedorResponse(BaseModel):
    id: int
    nombre: str
    nit: str | None = None
    email_contacto: str | None = None
    telefono_contacto: str | None = None
    direccion: str | None = None
    activo: bool = True

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Administration payloads
# ---------------------------------------------------------------------------


class AreaCreate(BaseModel):
    nombre: str = Field(..., min_length=1, max_length=200)
    director_id: int | None = Field(default=None, ge=1)

    model_config = ConfigDict(str_strip_whitespace=True)


class AreaUpdate(ParcialModel):
    nombre: str | None = Field(default=None, min_length=1, max_length=200)
    director_id: int | None = Field(default=None, ge=1)
    activo: bool | None = None

    model_config = ConfigDict(str_strip_whitespace=True)


class ProyectoCreate(BaseModel):
    codigo: str = Field(..., min_length=1, max_length=30)
    nombre: str = Field(..., min_length=1, max_length=300)

    model_config = ConfigDict(str_strip_whitespace=True)


class ProyectoUpdate(ParcialModel):
    codigo: str | None = Field(default=None, min_length=1, max_length=30)
    nombre: str | None = Field(default=None, min_length=1, max_length=300)
    activo: bool | None = None

    model_config = ConfigDict(str_strip_whitespace=True)


class CategoriaCreate(BaseModel):
    codigo: str = Field(..., min_length=1, max_length=30)
    nombre: str = Field(..., min_length=1, max_length=200)

    model_config = ConfigDict(str_strip_whitespace=True)


class CategoriaUpdate(ParcialModel):
    codigo: str | None = Field(default=None, min_length=1, max_length=30)
    nombre: str | None = Field(default=None, min_length=1, max_length=200)

    model_config = ConfigDict(str_strip_whitespace=True)


class ProveedorCreate(BaseModel):
    nombre: str = Field(..., min_length=1, max_length=300)
    nit: str | None = Field(default=None, max_length=30)
    email_contacto: str | None = Field(default=None, max_length=200)
    telefono_contacto: str | None = Field(default=None, max_length=50)
    direccion: str | None = Field(default=None, max_length=300)

    model_config = ConfigDict(str_strip_whitespace=True)


class ProveedorUpdate(ParcialModel):
    nombre: str | None = Field(default=None, min_length=1, max_length=300)
    nit: str | None = Field(default=None, max_length=30)
    email_contacto: str | None = Field(default=None, max_length=200)
    telefono_contacto: str | None = Field(default=None, max_length=50)
    direccion: str | None = Field(default=None, max_length=300)
    activo: bool | None = None

    model_config = ConfigDict(str_strip_whitespace=True)


class EstadisticasCatalogo(BaseModel):
    """Row counts shown on the administration dashboard."""

    areas: int
    proyectos: int
    categorias: int
    proveedores: int
    usuarios: int
