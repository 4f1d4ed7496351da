"""Requirement groups: mass creation with summary PDF and the two-step approval."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from app.exceptions import DependenciaError, PermisoDenegadoError
from app.models import GrupoRequerimiento, HistorialRequerimiento, Notificacion, Requerimiento
from app.schemas.grupo import GrupoCreate, GrupoDecision
from app.services import file_storage, grupo_service
from app.utils.constants import GRUPO_INDIVIDUAL_ID, GRUPO_INDIVIDUAL_NOMBRE

from conftest import nuevo_requerimiento


def _grupo(db, catalogo, usuario, n=2):
    data = GrupoCreate(
        requerimientos=[
            {
                "titulo": f"Ítem {i}",
                "proyecto_id": catalogo.proyecto.id,
                "area_id": catalogo.area.id,
                "monto_estimado": "120.50",
            }
            for i in range(1, n + 1)
        ]
    )
    return grupo_service.crear_grupo(db, data, usuario)


class TestIsGroupFullyApproved:
    def _req(self, coordinador, director):
        return SimpleNamespace(aprobacion_coordinador=coordinador, aprobacion_director=director)

    @pytest.mark.parametrize("rol", ["DIRECTOR", "ADMIN", "DEVELOPER"])
    def test_senior_actor_closes_alone(self, rol):
        assert grupo_service.is_group_fully_approved([self._req(False, False)], rol)

    def test_coordinator_needs_both_flags(self):
        assert not grupo_service.is_group_fully_approved([self._req(True, False)], "COORDINATOR")
        assert grupo_service.is_group_fully_approved([self._req(True, True)], "COORDINATOR")

    def test_every_member_counts(self):
        miembros = [self._req(True, True), self._req(True, False)]
        assert not grupo_service.is_group_fully_approved(miembros, "COORDINATOR")


class TestCrearGrupo:
    def test_creates_members_and_shared_document(self, db, catalogo, usuarios):
        grupo, requerimientos = _grupo(db, catalogo, usuarios["USER"], n=3)

        assert grupo.pdf_url == f"documentos/Solicitud_Administrativa_{grupo.id}.pdf"
        assert file_storage.ruta_absoluta(grupo.pdf_url).read_bytes().startswith(b"%PDF")
        assert len(requerimientos) == 3
        for requerimiento in requerimientos:
            assert requerimiento.grupo_id == grupo.id
            assert requerimiento.estado == "PENDING_APPROVAL"
            assert requerimiento.presupuesto_id == catalogo.presupuesto.id
            assert [a.archivo_url for a in requerimiento.adjuntos] == [grupo.pdf_url]

        creados = db.query(HistorialRequerimiento).filter_by(accion="CREATED").count()
        assert creados == 3

    def test_notifies_group_reviewers(self, db, catalogo, usuarios):
        _grupo(db, catalogo, usuarios["USER"])
        destinatarios = {
            n.usuario_id
            for n in db.query(Notificacion).filter_by(titulo="Nueva Solicitud Grupal")
        }
        assert destinatarios == {
            usuarios[rol].id for rol in ("LEADER", "COORDINATOR", "DIRECTOR", "ADMIN")
        }

    def test_render_failure_rolls_back(self, db, catalogo, usuarios, monkeypatch):
        def _falla(*args, **kwargs):
            raise RuntimeError("reportlab no disponible")

        monkeypatch.setattr(grupo_service, "render_resumen_grupo", _falla)

        with pytest.raises(DependenciaError):
            _grupo(db, catalogo, usuarios["USER"])
        assert db.query(GrupoRequerimiento).count() == 0
        assert db.query(Requerimiento).count() == 0


class TestAprobarGrupo:
    def test_coordinator_then_director(self, db, catalogo, usuarios):
        grupo, _ = _grupo(db, catalogo, usuarios["USER"])

        parcial = grupo_service.aprobar_grupo(
            db, grupo.id, GrupoDecision(comentarios="Visto bueno"), usuarios["COORDINATOR"]
        )
        assert parcial.todos_aprobados is False
        miembros = db.query(Requerimiento).filter_by(grupo_id=grupo.id).all()
        assert all(r.aprobacion_coordinador for r in miembros)
        assert all(r.estado == "PENDING_APPROVAL" for r in miembros)
        assert {r.comentario_coordinador for r in miembros} == {"Visto bueno"}

        final = grupo_service.aprobar_grupo(
            db, grupo.id, GrupoDecision(comentarios="Aprobado"), usuarios["DIRECTOR"]
        )
        assert final.todos_aprobados is True
        assert sorted(final.requerimientos_afectados) == sorted(r.id for r in miembros)
        assert all(r.estado == "APPROVED" for r in db.query(Requerimiento).filter_by(grupo_id=grupo.id))

        aviso = (
            db.query(Notificacion)
            .filter_by(usuario_id=usuarios["USER"].id, titulo="Solicitud Grupal Aprobada")
            .one()
        )
        assert aviso.tipo == "SUCCESS"

    def test_audit_entry_points_at_first_member(self, db, catalogo, usuarios):
        grupo, requerimientos = _grupo(db, catalogo, usuarios["USER"])
        grupo_service.aprobar_grupo(db, grupo.id, GrupoDecision(), usuarios["ADMIN"])

        entrada = db.query(HistorialRequerimiento).filter_by(accion="GROUP_APPROVED").one()
        assert entrada.requerimiento_id == min(r.id for r in requerimientos)
        assert entrada.grupo_id == grupo.id
        assert "Sin comentarios" in entrada.detalles

    def test_leader_cannot_sign(self, db, catalogo, usuarios):
        grupo, _ = _grupo(db, catalogo, usuarios["USER"])
        with pytest.raises(PermisoDenegadoError):
            grupo_service.aprobar_grupo(db, grupo.id, GrupoDecision(), usuarios["LEADER"])

    def test_plain_user_cannot_approve(self, db, catalogo, usuarios):
        grupo, _ = _grupo(db, catalogo, usuarios["USER"])
        with pytest.raises(PermisoDenegadoError):
            grupo_service.aprobar_grupo(db, grupo.id, GrupoDecision(), usuarios["USER"])


class TestRechazarGrupo:
    def test_coordinator_comment(self, db, catalogo, usuarios):
        grupo, _ = _grupo(db, catalogo, usuarios["USER"])
        afectados = grupo_service.rechazar_grupo(
            db, grupo.id, GrupoDecision(comentarios="Sin cotizaciones"), usuarios["COORDINATOR"]
        )

        miembros = db.query(Requerimiento).filter_by(grupo_id=grupo.id).all()
        assert sorted(afectados) == sorted(r.id for r in miembros)
        assert all(r.estado == "REJECTED" for r in miembros)
        assert {r.comentario_coordinador for r in miembros} == {"Sin cotizaciones"}
        assert {r.comentario_director for r in miembros} == {None}

    def test_leader_comment_goes_to_director_field(self, db, catalogo, usuarios):
        grupo, _ = _grupo(db, catalogo, usuarios["USER"])
        grupo_service.rechazar_grupo(
            db, grupo.id, GrupoDecision(comentarios="Fuera de plan"), usuarios["LEADER"]
        )
        miembros = db.query(Requerimiento).filter_by(grupo_id=grupo.id).all()
        assert {r.comentario_director for r in miembros} == {"Fuera de plan"}

    def test_creator_is_notified(self, db, catalogo, usuarios):
        grupo, _ = _grupo(db, catalogo, usuarios["USER"])
        grupo_service.rechazar_grupo(db, grupo.id, GrupoDecision(), usuarios["DIRECTOR"])
        aviso = (
            db.query(Notificacion)
            .filter_by(usuario_id=usuarios["USER"].id, titulo="Solicitud Grupal Rechazada")
            .one()
        )
        assert aviso.tipo == "ERROR"


class TestPendientes:
    def test_individual_bucket_comes_last(self, db, catalogo, usuarios):
        suelto = nuevo_requerimiento(db, catalogo, usuarios["USER"], titulo="Suelto")
        grupo, _ = _grupo(db, catalogo, usuarios["USER"])

        pendientes = grupo_service.listar_grupos_pendientes(
            db, usuarios["DIRECTOR"], catalogo.presupuesto.anio
        )
        assert [p.id for p in pendientes] == [grupo.id, GRUPO_INDIVIDUAL_ID]
        assert pendientes[-1].creador.nombre == GRUPO_INDIVIDUAL_NOMBRE
        assert [r.id for r in pendientes[-1].requerimientos] == [suelto.id]

    def test_closed_groups_drop_out(self, db, catalogo, usuarios):
        grupo, _ = _grupo(db, catalogo, usuarios["USER"])
        grupo_service.aprobar_grupo(db, grupo.id, GrupoDecision(), usuarios["DIRECTOR"])

        assert grupo_service.listar_grupos_pendientes(
            db, usuarios["DIRECTOR"], catalogo.presupuesto.anio
        ) == []

    def test_visibility_applies(self, db, catalogo, usuarios):
        _grupo(db, catalogo, usuarios["LEADER"])
        assert grupo_service.listar_grupos_pendientes(
            db, usuarios["USER"], catalogo.presupuesto.anio
        ) == []
