"""User administration: accounts, status toggle, deletion guard and own password."""

from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.exceptions import (
    EmailDuplicadoError,
    PermisoDenegadoError,
    ReglaNegocioError,
    UsuarioConRegistrosError,
)
from app.models import Area, Notificacion, Usuario
from app.schemas.ajuste import AjusteCreate
from app.schemas.usuario import CambioPassword, UsuarioCreate, UsuarioUpdate
from app.services import ajuste_service, usuario_service
from app.utils.security import verify_password

from conftest import PASSWORD, nuevo_requerimiento


def _alta(**kwargs) -> UsuarioCreate:
    datos = {
        "email": "m.flores@museo.org",
        "password": "MuseoSecure2026!",
        "nombre_completo": "María Flores",
        "rol": "COORDINATOR",
    }
    datos.update(kwargs)
    return UsuarioCreate(**datos)


class TestAlta:
    def test_admin_creates_hashed_account(self, db, usuarios):
        usuario = usuario_service.crear_usuario(db, _alta(), usuarios["ADMIN"])

        assert usuario.activo is True
        assert usuario.password_hash != "MuseoSecure2026!"
        assert verify_password("MuseoSecure2026!", usuario.password_hash)

    def test_duplicate_email(self, db, usuarios):
        with pytest.raises(EmailDuplicadoError):
            usuario_service.crear_usuario(db, _alta(email="user@museo.org"), usuarios["ADMIN"])

    def test_only_admins(self, db, usuarios):
        with pytest.raises(PermisoDenegadoError):
            usuario_service.crear_usuario(db, _alta(), usuarios["DIRECTOR"])

    def test_unknown_role_rejected_by_schema(self):
        with pytest.raises(ValidationError):
            _alta(rol="SUPERUSER")


class TestEdicion:
    def test_sparse_update_and_new_password(self, db, usuarios):
        objetivo = usuarios["USER"]
        actualizado = usuario_service.actualizar_usuario(
            db,
            objetivo.id,
            UsuarioUpdate(rol="LEADER", password="OtraClave2026"),
            usuarios["ADMIN"],
        )
        assert actualizado.rol == "LEADER"
        assert actualizado.email == "user@museo.org"
        assert verify_password("OtraClave2026", actualizado.password_hash)

    def test_email_taken_by_someone_else(self, db, usuarios):
        with pytest.raises(EmailDuplicadoError):
            usuario_service.actualizar_usuario(
                db, usuarios["USER"].id, UsuarioUpdate(email="leader@museo.org"), usuarios["ADMIN"]
            )

    def test_toggle_status(self, db, usuarios):
        assert usuario_service.cambiar_estado(db, usuarios["USER"].id, usuarios["ADMIN"]).activo is False
        assert usuario_service.cambiar_estado(db, usuarios["USER"].id, usuarios["ADMIN"]).activo is True

    def test_cannot_deactivate_self(self, db, usuarios):
        with pytest.raises(ReglaNegocioError):
            usuario_service.cambiar_estado(db, usuarios["ADMIN"].id, usuarios["ADMIN"])

    def test_listing_filters(self, db, usuarios):
        assert [u.rol for u in usuario_service.listar_usuarios(db, rol="AUDITOR")] == ["AUDITOR"]
        encontrados = usuario_service.listar_usuarios(db, busqueda="COORDINATOR@")
        assert [u.id for u in encontrados] == [usuarios["COORDINATOR"].id]


class TestBaja:
    def test_delete_clears_notifications_and_areas(self, db, usuarios):
        objetivo = usuarios["AUDITOR"]
        db.add(Area(nombre="Archivo", director_id=objetivo.id))
        db.add(Notificacion(usuario_id=objetivo.id, titulo="t", mensaje="m"))
        db.commit()

        usuario_service.eliminar_usuario(db, objetivo.id, usuarios["ADMIN"])

        assert db.get(Usuario, objetivo.id) is None
        assert db.query(Notificacion).filter_by(usuario_id=objetivo.id).count() == 0
        assert db.query(Area).filter_by(nombre="Archivo").one().director_id is None

    def test_user_with_requirements_is_kept(self, db, catalogo, usuarios):
        nuevo_requerimiento(db, catalogo, usuarios["USER"])
        with pytest.raises(UsuarioConRegistrosError):
            usuario_service.eliminar_usuario(db, usuarios["USER"].id, usuarios["ADMIN"])

    def test_budget_responsable_is_kept(self, db, catalogo, usuarios):
        with pytest.raises(UsuarioConRegistrosError):
            usuario_service.eliminar_usuario(db, usuarios["LEADER"].id, usuarios["ADMIN"])

    def test_adjustment_requester_is_kept(self, db, catalogo, usuarios):
        ajuste_service.crear_ajuste(
            db,
            AjusteCreate(
                presupuesto_id=catalogo.presupuesto.id,
                tipo="INCREASE",
                monto_solicitado=Decimal("50"),
                motivo="Señalética",
            ),
            usuarios["COORDINATOR"],
        )
        with pytest.raises(UsuarioConRegistrosError):
            usuario_service.eliminar_usuario(db, usuarios["COORDINATOR"].id, usuarios["ADMIN"])

    def test_cannot_delete_self(self, db, usuarios):
        with pytest.raises(ReglaNegocioError):
            usuario_service.eliminar_usuario(db, usuarios["ADMIN"].id, usuarios["ADMIN"])


class TestPasswordPropia:
    def test_change_with_current_password(self, db, usuarios):
        usuario = usuarios["USER"]
        usuario_service.cambiar_password(
            db, usuario, CambioPassword(password_actual=PASSWORD, password_nuevo="NuevaClave99")
        )
        assert verify_password("NuevaClave99", db.get(Usuario, usuario.id).password_hash)

    def test_wrong_current_password(self, db, usuarios):
        with pytest.raises(ReglaNegocioError):
            usuario_service.cambiar_password(
                db,
                usuarios["USER"],
                CambioPassword(password_actual="incorrecta", password_nuevo="NuevaClave99"),
            )

    def test_generated_password_length(self):
        assert len(usuario_service.generar_password()) == 16
