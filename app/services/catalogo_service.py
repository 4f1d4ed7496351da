"""
Catalogue administration service layer.

Create, edit and delete for areas, projects, categories and suppliers,
plus the counts shown on the administration dashboard. Every write needs
the ``GESTIONAR_CATALOGOS`` capability.

Design notes
------------
- Uniqueness: area by name, project by name or code, category by code,
  supplier by NIT when one is given. Names are compared case-insensitively.
- A row still referenced by requirements, budgets or invoices cannot be
  deleted; deactivate it instead (``activo=False``) so it drops out of the
  dropdowns.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.exceptions import (
    CatalogoDuplicadoError,
    CatalogoEnUsoError,
    DatosInvalidosError,
    NoEncontradoError,
)
from app.models.area import Area
from app.models.categoria import Categoria
from app.models.factura import Factura
from app.models.presupuesto import Presupuesto
from app.models.proveedor import Proveedor
from app.models.proyecto import Proyecto
from app.models.requerimiento import Requerimiento
from app.models.usuario import Usuario
from app.schemas.catalogos import (
    AreaCreate,
    AreaUpdate,
    CategoriaCreate,
    CategoriaUpdate,
    EstadisticasCatalogo,
    ProveedorCreate,
    ProveedorUpdate,
    ProyectoCreate,
    ProyectoUpdate,
)
from app.services.auth_service import exigir_capacidad

logger = logging.getLogger(__name__)

# Fields that a sparse edit may not clear
_NO_ANULABLES = frozenset({"nombre", "codigo", "activo"})


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _exigir_admin(usuario: Usuario) -> None:
    exigir_capacidad(
        usuario, "GESTIONAR_CATALOGOS", "Solo un administrador puede gestionar catálogos."
    )


def _obtener_o_404(db: Session, modelo: Any, registro_id: int, etiqueta: str) -> Any:
    registro = db.query(modelo).filter(modelo.id == registro_id).first()
    if registro is None:
        raise NoEncontradoError(f"{etiqueta} con ID {registro_id} no encontrado.")
    return registro


def _existe(db: Session, modelo: Any, excluir_id: int | None = None, **valores: str | None) -> bool:
    """True when another row matches any of the non-empty *valores*."""
    condiciones = [
        func.lower(getattr(modelo, campo)) == valor.lower()
        for campo, valor in valores.items()
        if valor
    ]
    if not condiciones:
        return False
    query = db.query(modelo.id).filter(or_(*condiciones))
    if excluir_id is not None:
        query = query.filter(modelo.id != excluir_id)
    return query.first() is not None


def _exigir_sin_uso(db: Session, dependencias: list[tuple[Any, str]], registro_id: int) -> None:
    for columna, etiqueta in dependencias:
        total = db.query(columna).filter(columna == registro_id).count()
        if total:
            raise CatalogoEnUsoError(
                f"No se puede eliminar, hay {total} {etiqueta} asociado(s)."
            )


def _aplicar(registro: Any, campos: dict[str, Any]) -> None:
    for field, value in campos.items():
        if value is None and field in _NO_ANULABLES:
            continue
        setattr(registro, field, value)


def _guardar(db: Session, registro: Any) -> Any:
    db.commit()
    db.refresh(registro)
    return registro


def _eliminar(db: Session, registro: Any) -> None:
    db.delete(registro)
    db.commit()


def _validar_director(db: Session, director_id: int | None) -> None:
    if director_id is not None and db.get(Usuario, director_id) is None:
        raise DatosInvalidosError(f"El usuario {director_id} no existe.")


# ---------------------------------------------------------------------------
# Areas
# ---------------------------------------------------------------------------


def crear_area(db: Session, data: AreaCreate, usuario: Usuario) -> Area:
    _exigir_admin(usuario)
    if _existe(db, Area, nombre=data.nombre):
        raise CatalogoDuplicadoError("Ya existe un área con ese nombre.")
    _validar_director(db, data.director_id)

    area = Area(nombre=data.nombre, director_id=data.director_id, activo=True)
    db.add(area)
    _guardar(db, area)
    logger.info("crear_area: id=%d nombre=%s por=%s", area.id, area.nombre, usuario.email)
    return area


def actualizar_area(db: Session, area_id: int, data: AreaUpdate, usuario: Usuario) -> Area:
    _exigir_admin(usuario)
    area = _obtener_o_404(db, Area, area_id, "Área")
    campos = data.campos_enviados()
    if _existe(db, Area, excluir_id=area_id, nombre=campos.get("nombre")):
        raise CatalogoDuplicadoError("Ya existe un área con ese nombre.")
    _validar_director(db, campos.get("director_id"))

    _aplicar(area, campos)
    return _guardar(db, area)


def eliminar_area(db: Session, area_id: int, usuario: Usuario) -> None:
    _exigir_admin(usuario)
    area = _obtener_o_404(db, Area, area_id, "Área")
    _exigir_sin_uso(
        db,
        [(Requerimiento.area_id, "requerimiento(s)"), (Presupuesto.area_id, "presupuesto(s)")],
        area_id,
    )
    _eliminar(db, area)
    logger.info("eliminar_area: id=%d por=%s", area_id, usuario.email)


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


def crear_proyecto(db: Session, data: ProyectoCreate, usuario: Usuario) -> Proyecto:
    _exigir_admin(usuario)
    if _existe(db, Proyecto, nombre=data.nombre, codigo=data.codigo):
        raise CatalogoDuplicadoError("Ya existe un proyecto con ese nombre o código.")

    proyecto = Proyecto(codigo=data.codigo, nombre=data.nombre, activo=True)
    db.add(proyecto)
    _guardar(db, proyecto)
    logger.info("crear_proyecto: id=%d codigo=%s por=%s", proyecto.id, proyecto.codigo, usuario.email)
    return proyecto


def actualizar_proyecto(
    db: Session, proyecto_id: int, data: ProyectoUpdate, usuario: Usuario
) -> Proyecto:
    _exigir_admin(usuario)
    proyecto = _obtener_o_404(db, Proyecto, proyecto_id, "Proyecto")
    campos = data.campos_enviados()
    if _existe(
        db, Proyecto, excluir_id=proyecto_id,
        nombre=campos.get("nombre"), codigo=campos.get("codigo"),
    ):
        raise CatalogoDuplicadoError("Ya existe un proyecto con ese nombre o código.")

    _aplicar(proyecto, campos)
    return _guardar(db, proyecto)


def eliminar_proyecto(db: Session, proyecto_id: int, usuario: Usuario) -> None:
    _exigir_admin(usuario)
    proyecto = _obtener_o_404(db, Proyecto, proyecto_id, "Proyecto")
    _exigir_sin_uso(
        db,
        [
            (Requerimiento.proyecto_id, "requerimiento(s)"),
            (Presupuesto.proyecto_id, "presupuesto(s)"),
        ],
        proyecto_id,
    )
    _eliminar(db, proyecto)
    logger.info("eliminar_proyecto: id=%d por=%s", proyecto_id, usuario.email)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


def crear_categoria(db: Session, data: CategoriaCreate, usuario: Usuario) -> Categoria:
    _exigir_admin(usuario)
    if _existe(db, Categoria, codigo=data.codigo):
        raise CatalogoDuplicadoError("Ya existe una categoría con ese código.")

    categoria = Categoria(codigo=data.codigo, nombre=data.nombre)
    db.add(categoria)
    _guardar(db, categoria)
    logger.info("crear_categoria: id=%d codigo=%s", categoria.id, categoria.codigo)
    return categoria


def actualizar_categoria(
    db: Session, categoria_id: int, data: CategoriaUpdate, usuario: Usuario
) -> Categoria:
    _exigir_admin(usuario)
    categoria = _obtener_o_404(db, Categoria, categoria_id, "Categoría")
    campos = data.campos_enviados()
    if _existe(db, Categoria, excluir_id=categoria_id, codigo=campos.get("codigo")):
        raise CatalogoDuplicadoError("Ya existe una categoría con ese código.")

    _aplicar(categoria, campos)
    return _guardar(db, categoria)


def eliminar_categoria(db: Session, categoria_id: int, usuario: Usuario) -> None:
    _exigir_admin(usuario)
    categoria = _obtener_o_404(db, Categoria, categoria_id, "Categoría")
    _exigir_sin_uso(db, [(Presupuesto.categoria_id, "presupuesto(s)")], categoria_id)
    _eliminar(db, categoria)
    logger.info("eliminar_categoria: id=%d por=%s", categoria_id, usuario.email)


# ---------------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------------


def crear_proveedor(db: Session, data: ProveedorCreate, usuario: Usuario) -> Proveedor:
    _exigir_admin(usuario)
    datos = {campo: (valor or None) for campo, valor in data.model_dump().items()}
    if _existe(db, Proveedor, nit=datos["nit"]):
        raise CatalogoDuplicadoError("Ya existe un proveedor con ese NIT.")

    proveedor = Proveedor(**datos, activo=True)
    db.add(proveedor)
    _guardar(db, proveedor)
    logger.info("crear_proveedor: id=%d nombre=%s", proveedor.id, proveedor.nombre)
    return proveedor


def actualizar_proveedor(
    db: Session, proveedor_id: int, data: ProveedorUpdate, usuario: Usuario
) -> Proveedor:
    _exigir_admin(usuario)
    proveedor = _obtener_o_404(db, Proveedor, proveedor_id, "Proveedor")
    campos = {
        campo: (valor if valor != "" else None)
        for campo, valor in data.campos_enviados().items()
    }
    if _existe(db, Proveedor, excluir_id=proveedor_id, nit=campos.get("nit")):
        raise CatalogoDuplicadoError("Ya existe un proveedor con ese NIT.")

    _aplicar(proveedor, campos)
    return _guardar(db, proveedor)


def eliminar_proveedor(db: Session, proveedor_id: int, usuario: Usuario) -> None:
    _exigir_admin(usuario)
    proveedor = _obtener_o_404(db, Proveedor, proveedor_id, "Proveedor")
    _exigir_sin_uso(
        db,
        [(Requerimiento.proveedor_id, "requerimiento(s)"), (Factura.proveedor_id, "factura(s)")],
        proveedor_id,
    )
    _eliminar(db, proveedor)
    logger.info("eliminar_proveedor: id=%d por=%s", proveedor_id, usuario.email)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


def obtener_estadisticas(db: Session, usuario: Usuario) -> EstadisticasCatalogo:
    _exigir_admin(usuario)
    return EstadisticasCatalogo(
        areas=db.query(Area).count(),
        proyectos=db.query(Proyecto).count(),
        categorias=db.query(Categoria).count(),
        proveedores=db.query(Proveedor).count(),
        usuarios=db.query(Usuario).count(),
    )
