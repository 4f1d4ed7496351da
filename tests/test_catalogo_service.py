"""Catalogue administration: uniqueness, in-use guards and the admin capability."""

from __future__ import annotations

import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.exceptions import (
    CatalogoDuplicadoError,
    CatalogoEnUsoError,
    DatosInvalidosError,
    NoEncontradoError,
    PermisoDenegadoError,
)
from app.models import Area, Categoria, Factura, Presupuesto, Proveedor, Proyecto
from app.schemas.catalogos import (
    AreaCreate,
    AreaUpdate,
    CategoriaCreate,
    CategoriaUpdate,
    ProveedorCreate,
    ProveedorUpdate,
    ProyectoCreate,
    ProyectoUpdate,
)
from app.services import catalogo_service

from conftest import nuevo_requerimiento


class TestAreas:
    def test_create(self, db, usuarios):
        area = catalogo_service.crear_area(
            db, AreaCreate(nombre="  Educación  ", director_id=usuarios["DIRECTOR"].id),
            usuarios["ADMIN"],
        )

        assert area.nombre == "Educación"
        assert area.director_id == usuarios["DIRECTOR"].id
        assert area.activo is True

    def test_duplicate_name_ignores_case(self, db, catalogo, usuarios):
        with pytest.raises(CatalogoDuplicadoError):
            catalogo_service.crear_area(db, AreaCreate(nombre="curaduría"), usuarios["ADMIN"])

    def test_unknown_director(self, db, usuarios):
        with pytest.raises(DatosInvalidosError):
            catalogo_service.crear_area(
                db, AreaCreate(nombre="Educación", director_id=9999), usuarios["ADMIN"]
            )

    def test_rename_to_own_name_is_allowed(self, db, catalogo, usuarios):
        area = catalogo_service.actualizar_area(
            db, catalogo.area.id, AreaUpdate(nombre="Curaduría", activo=False), usuarios["ADMIN"]
        )

        assert area.nombre == "Curaduría"
        assert area.activo is False

    def test_rename_onto_another_area(self, db, catalogo, usuarios):
        otra = catalogo_service.crear_area(db, AreaCreate(nombre="Educación"), usuarios["ADMIN"])

        with pytest.raises(CatalogoDuplicadoError):
            catalogo_service.actualizar_area(
                db, otra.id, AreaUpdate(nombre="Curaduría"), usuarios["ADMIN"]
            )

    def test_referenced_area_cannot_be_deleted(self, db, catalogo, usuarios):
        with pytest.raises(CatalogoEnUsoError, match="presupuesto"):
            catalogo_service.eliminar_area(db, catalogo.area.id, usuarios["ADMIN"])
        assert db.get(Area, catalogo.area.id) is not None

    def test_delete_unused(self, db, usuarios):
        area = catalogo_service.crear_area(db, AreaCreate(nombre="Educación"), usuarios["ADMIN"])

        catalogo_service.eliminar_area(db, area.id, usuarios["ADMIN"])

        assert db.get(Area, area.id) is None

    def test_unknown(self, db, usuarios):
        with pytest.raises(NoEncontradoError):
            catalogo_service.eliminar_area(db, 9999, usuarios["ADMIN"])


class TestProyectos:
    def test_duplicate_code_or_name(self, db, catalogo, usuarios):
        with pytest.raises(CatalogoDuplicadoError):
            catalogo_service.crear_proyecto(
                db, ProyectoCreate(codigo="p-botero", nombre="Otro nombre"), usuarios["ADMIN"]
            )
        with pytest.raises(CatalogoDuplicadoError):
            catalogo_service.crear_proyecto(
                db, ProyectoCreate(codigo="P-NUEVO", nombre="Exposición Botero"), usuarios["ADMIN"]
            )

    def test_null_does_not_clear_required_fields(self, db, catalogo, usuarios):
        proyecto = catalogo_service.actualizar_proyecto(
            db, catalogo.proyecto.id, ProyectoUpdate(nombre=None, activo=False), usuarios["ADMIN"]
        )

        assert proyecto.nombre == "Exposición Botero"
        assert proyecto.activo is False

    def test_referenced_by_requirement(self, db, usuarios):
        proyecto = catalogo_service.crear_proyecto(
            db, ProyectoCreate(codigo="P-NUEVO", nombre="Museo itinerante"), usuarios["ADMIN"]
        )
        area = catalogo_service.crear_area(db, AreaCreate(nombre="Educación"), usuarios["ADMIN"])
        catalogo = SimpleNamespace(proyecto=proyecto, area=area)
        nuevo_requerimiento(db, catalogo, usuarios["USER"])

        with pytest.raises(CatalogoEnUsoError, match="1 requerimiento"):
            catalogo_service.eliminar_proyecto(db, proyecto.id, usuarios["ADMIN"])

    def test_delete_unused(self, db, usuarios):
        proyecto = catalogo_service.crear_proyecto(
            db, ProyectoCreate(codigo="P-NUEVO", nombre="Museo itinerante"), usuarios["ADMIN"]
        )

        catalogo_service.eliminar_proyecto(db, proyecto.id, usuarios["ADMIN"])

        assert db.get(Proyecto, proyecto.id) is None


class TestCategorias:
    def test_create_and_edit(self, db, usuarios):
        categoria = catalogo_service.crear_categoria(
            db, CategoriaCreate(codigo="CAT-01", nombre="Montaje"), usuarios["ADMIN"]
        )
        categoria = catalogo_service.actualizar_categoria(
            db, categoria.id, CategoriaUpdate(nombre="Montaje y museografía"), usuarios["ADMIN"]
        )

        assert (categoria.codigo, categoria.nombre) == ("CAT-01", "Montaje y museografía")

    def test_duplicate_code(self, db, usuarios):
        catalogo_service.crear_categoria(
            db, CategoriaCreate(codigo="CAT-01", nombre="Montaje"), usuarios["ADMIN"]
        )
        with pytest.raises(CatalogoDuplicadoError):
            catalogo_service.crear_categoria(
                db, CategoriaCreate(codigo="cat-01", nombre="Otra"), usuarios["ADMIN"]
            )

    def test_referenced_by_budget(self, db, catalogo, usuarios):
        categoria = catalogo_service.crear_categoria(
            db, CategoriaCreate(codigo="CAT-01", nombre="Montaje"), usuarios["ADMIN"]
        )
        presupuesto = db.get(Presupuesto, catalogo.presupuesto.id)
        presupuesto.categoria_id = categoria.id
        db.commit()

        with pytest.raises(CatalogoEnUsoError):
            catalogo_service.eliminar_categoria(db, categoria.id, usuarios["ADMIN"])
        assert db.get(Categoria, categoria.id) is not None


class TestProveedores:
    def test_empty_strings_are_stored_as_null(self, db, usuarios):
        proveedor = catalogo_service.crear_proveedor(
            db, ProveedorCreate(nombre="Iluminación Andina", nit="", email_contacto=""),
            usuarios["ADMIN"],
        )

        assert proveedor.nit is None
        assert proveedor.email_contacto is None

    def test_suppliers_without_nit_never_collide(self, db, usuarios):
        catalogo_service.crear_proveedor(db, ProveedorCreate(nombre="A"), usuarios["ADMIN"])
        catalogo_service.crear_proveedor(db, ProveedorCreate(nombre="B"), usuarios["ADMIN"])

        assert db.query(Proveedor).count() == 2

    def test_duplicate_nit(self, db, catalogo, usuarios):
        with pytest.raises(CatalogoDuplicadoError):
            catalogo_service.crear_proveedor(
                db, ProveedorCreate(nombre="Otro", nit="901234567-1"), usuarios["ADMIN"]
            )

    def test_edit_clears_optional_field(self, db, catalogo, usuarios):
        proveedor = catalogo_service.actualizar_proveedor(
            db, catalogo.proveedor.id,
            ProveedorUpdate(direccion="Cra 7 # 12-30", nit=""), usuarios["ADMIN"],
        )

        assert proveedor.direccion == "Cra 7 # 12-30"
        assert proveedor.nit is None

    def test_referenced_by_invoice(self, db, catalogo, usuarios):
        db.add(
            Factura(
                numero_factura="FV-100",
                proveedor_id=catalogo.proveedor.id,
                monto=Decimal("80"),
                fecha_emision=datetime.date.today(),
                archivo_url="facturas/fv-100.pdf",
                creado_por_id=usuarios["USER"].id,
            )
        )
        db.commit()

        with pytest.raises(CatalogoEnUsoError, match="factura"):
            catalogo_service.eliminar_proveedor(db, catalogo.proveedor.id, usuarios["ADMIN"])


class TestPermisosYEstadisticas:
    @pytest.mark.parametrize("rol", ["DIRECTOR", "COORDINATOR", "USER", "DEVELOPER"])
    def test_only_admin_writes(self, db, usuarios, rol):
        with pytest.raises(PermisoDenegadoError):
            catalogo_service.crear_area(db, AreaCreate(nombre="Educación"), usuarios[rol])
        with pytest.raises(PermisoDenegadoError):
            catalogo_service.obtener_estadisticas(db, usuarios[rol])

    def test_counts(self, db, catalogo, usuarios):
        estadisticas = catalogo_service.obtener_estadisticas(db, usuarios["ADMIN"])

        assert estadisticas.areas == 1
        assert estadisticas.proyectos == 1
        assert estadisticas.categorias == 0
        assert estadisticas.proveedores == 1
        assert estadisticas.usuarios == len(usuarios)
