"""
Catalogue router.

Mounts under ``/api/catalogos`` (prefix set in ``main.py``).

The list endpoints serve the dropdowns of the requirement, budget and
invoice forms. No pagination is applied because each catalogue is small.
``incluir_inactivos=true`` also returns deactivated rows for the
administration screens. Writes require ``GESTIONAR_CATALOGOS``.

All endpoints require a valid JWT (``get_current_user``).

Endpoints
---------
GET    /proyectos          — Active projects.
POST   /proyectos          — Create a project.
PUT    /proyectos/{id}     — Sparse edit.
DELETE /proyectos/{id}     — Delete an unused project.
GET    /areas              — Active areas (same write endpoints as projects).
GET    /categorias         — Budget categories (same write endpoints).
GET    /proveedores        — Active suppliers (same write endpoints).
GET    /anios              — Fiscal years with data (always includes the current one).
GET    /estadisticas       — Row counts for the administration dashboard.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.area import Area
from app.models.categoria import Categoria
from app.models.proveedor import Proveedor
from app.models.proyecto import Proyecto
from app.models.usuario import Usuario
from app.schemas.catalogos import (
    AreaCreate,
    AreaResponse,
    AreaUpdate,
    CategoriaCreate,
    CategoriaResponse,
    CategoriaUpdate,
    EstadisticasCatalogo,
    ProveedorCreate,
    ProveedorResponse,
    ProveedorUpdate,
    ProyectoCreate,
    ProyectoResponse,
    ProyectoUpdate,
)
from app.schemas.common import MessageResponse
from app.services import catalogo_service, presupuesto_service
from app.services.auth_service import get_current_user, require_capability

router = APIRouter(tags=["Catálogos"])

_AUTH_RESPONSES = {401: {"description": "Token JWT ausente o inválido."}}
_WRITE_RESPONSES = {
    400: {"description": "Nombre o código duplicado, o registro en uso."},
    403: {"description": "Solo un administrador puede gestionar catálogos."},
    404: {"description": "El registro no existe."},
}

Administrador = Annotated[Usuario, Depends(require_capability("GESTIONAR_CATALOGOS"))]


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


@router.get(
    "/proyectos",
    response_model=list[ProyectoResponse],
    summary="Listado de proyectos",
    responses=_AUTH_RESPONSES,
)
def list_proyectos(
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
    incluir_inactivos: bool = False,
) -> list[Proyecto]:
    query = db.query(Proyecto)
    if not incluir_inactivos:
        query = query.filter(Proyecto.activo.is_(True))
    return query.order_by(Proyecto.nombre).all()


@router.post(
    "/proyectos",
    response_model=ProyectoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Crear proyecto",
    responses=_WRITE_RESPONSES,
)
def create_proyecto(
    data: ProyectoCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Administrador,
):
    return catalogo_service.crear_proyecto(db, data, current_user)


@router.put(
    "/proyectos/{proyecto_id}",
    response_model=ProyectoResponse,
    summary="Editar proyecto",
    responses=_WRITE_RESPONSES,
)
def update_proyecto(
    proyecto_id: int,
    data: ProyectoUpdate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Administrador,
):
    return catalogo_service.actualizar_proyecto(db, proyecto_id, data, current_user)


@router.delete(
    "/proyectos/{proyecto_id}",
    response_model=MessageResponse,
    summary="Eliminar proyecto",
    responses=_WRITE_RESPONSES,
)
def delete_proyecto(
    proyecto_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Administrador,
) -> MessageResponse:
    catalogo_service.eliminar_proyecto(db, proyecto_id, current_user)
    return MessageResponse(message="Proyecto eliminado exitosamente.")


# ---------------------------------------------------------------------------
# Areas
# ---------------------------------------------------------------------------


@router.get(
    "/areas",
    response_model=list[AreaResponse],
    summary="Listado de áreas",
    responses=_AUTH_RESPONSES,
)
def list_areas(
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
    incluir_inactivos: bool = False,
) -> list[Area]:
    query = db.query(Area)
    if not incluir_inactivos:
        query = query.filter(Area.activo.is_(True))
    return query.order_by(Area.nombre).all()


@router.post(
    "/areas",
    response_model=AreaResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Crear área",
    responses=_WRITE_RESPONSES,
)
def create_area(
    data: AreaCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Administrador,
):
    return catalogo_service.crear_area(db, data, current_user)


@router.put(
    "/areas/{area_id}",
    response_model=AreaResponse,
    summary="Editar área",
    responses=_WRITE_RESPONSES,
)
def update_area(
    area_id: int,
    data: AreaUpdate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Administrador,
):
    return catalogo_service.actualizar_area(db, area_id, data, current_user)


@router.delete(
    "/areas/{area_id}",
    response_model=MessageResponse,
    summary="Eliminar área",
    responses=_WRITE_RESPONSES,
)
def delete_area(
    area_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Administrador,
) -> MessageResponse:
    catalogo_service.eliminar_area(db, area_id, current_user)
    return MessageResponse(message="Área eliminada exitosamente.")


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


@router.get(
    "/categorias",
    response_model=list[CategoriaResponse],
    summary="Listado de categorías presupuestales",
    responses=_AUTH_RESPONSES,
)
def list_categorias(
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
) -> list[Categoria]:
    return db.query(Categoria).order_by(Categoria.nombre).all()


@router.post(
    "/categorias",
    response_model=CategoriaResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Crear categoría",
    responses=_WRITE_RESPONSES,
)
def create_categoria(
    data: CategoriaCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Administrador,
):
    return catalogo_service.crear_categoria(db, data, current_user)


@router.put(
    "/categorias/{categoria_id}",
    response_model=CategoriaResponse,
    summary="Editar categoría",
    responses=_WRITE_RESPONSES,
)
def update_categoria(
    categoria_id: int,
    data: CategoriaUpdate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Administrador,
):
    return catalogo_service.actualizar_categoria(db, categoria_id, data, current_user)


@router.delete(
    "/categorias/{categoria_id}",
    response_model=MessageResponse,
    summary="Eliminar categoría",
    responses=_WRITE_RESPONSES,
)
def delete_categoria(
    categoria_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Administrador,
) -> MessageResponse:
    catalogo_service.eliminar_categoria(db, categoria_id, current_user)
    return MessageResponse(message="Categoría eliminada exitosamente.")


# ---------------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------------


@router.get(
    "/proveedores",
    response_model=list[ProveedorResponse],
    summary="Listado de proveedores",
    responses=_AUTH_RESPONSES,
)
def list_proveedores(
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
    incluir_inactivos: bool = False,
) -> list[Proveedor]:
    query = db.query(Proveedor)
    if not incluir_inactivos:
        query = query.filter(Proveedor.activo.is_(True))
    return query.order_by(Proveedor.nombre).all()


@router.post(
    "/proveedores",
    response_model=ProveedorResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Crear proveedor",
    responses=_WRITE_RESPONSES,
)
def create_proveedor(
    data: ProveedorCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Administrador,
):
    return catalogo_service.crear_proveedor(db, data, current_user)


@router.put(
    "/proveedores/{proveedor_id}",
    response_model=ProveedorResponse,
    summary="Editar proveedor",
    responses=_WRITE_RESPONSES,
)
def update_proveedor(
    proveedor_id: int,
    data: ProveedorUpdate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Administrador,
):
    return catalogo_service.actualizar_proveedor(db, proveedor_id, data, current_user)


@router.delete(
    "/proveedores/{proveedor_id}",
    response_model=MessageResponse,
    summary="Eliminar proveedor",
    responses=_WRITE_RESPONSES,
)
def delete_proveedor(
    proveedor_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Administrador,
) -> MessageResponse:
    catalogo_service.eliminar_proveedor(db, proveedor_id, current_user)
    return MessageResponse(message="Proveedor eliminado exitosamente.")


# ---------------------------------------------------------------------------
# Fiscal years and dashboard
# ---------------------------------------------------------------------------


@router.get(
    "/anios",
    response_model=list[int],
    summary="Años fiscales disponibles",
    responses=_AUTH_RESPONSES,
)
def list_anios(
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
) -> list[int]:
    return presupuesto_service.listar_anios(db)


@router.get(
    "/estadisticas",
    response_model=EstadisticasCatalogo,
    summary="Conteos para el panel de administración",
    responses={403: {"description": "Solo un administrador puede ver el panel."}},
)
def get_estadisticas(
    db: Annotated[Session, Depends(get_db)],
    current_user: Administrador,
) -> EstadisticasCatalogo:
    return catalogo_service.obtener_estadisticas(db, current_user)
