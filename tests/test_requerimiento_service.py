"""Requirement lifecycle: creation, asientos, status patch, edit and deletion."""

from __future__ import annotations

import datetime
from decimal import Decimal

import pytest

from app.exceptions import (
    DatosInvalidosError,
    NoAutenticadoError,
    NoEncontradoError,
    PermisoDenegadoError,
)
from app.models import (
    Adjunto,
    Factura,
    HistorialRequerimiento,
    Notificacion,
    Pago,
    Presupuesto,
    Requerimiento,
)
from app.schemas.requerimiento import (
    AsientoCreate,
    EstadoUpdate,
    ObservacionesUpdate,
    RequerimientoCreate,
    RequerimientoUpdate,
)
from app.services import file_storage, requerimiento_service
from app.services.file_storage import ArchivoSubido

from conftest import nuevo_requerimiento


def _disponible(db, catalogo) -> Decimal:
    return db.get(Presupuesto, catalogo.presupuesto.id).disponible


def _acciones(db, requerimiento_id) -> list[str]:
    return [
        h.accion
        for h in db.query(HistorialRequerimiento)
        .filter_by(requerimiento_id=requerimiento_id)
        .order_by(HistorialRequerimiento.id)
    ]


class TestCrear:
    def test_resolves_budget_and_logs_creation(self, db, catalogo, usuarios):
        requerimiento = nuevo_requerimiento(db, catalogo, usuarios["USER"])

        assert requerimiento.estado == "PENDING_APPROVAL"
        assert requerimiento.estado_adquisicion == "PENDIENTE"
        assert requerimiento.presupuesto_id == catalogo.presupuesto.id
        assert requerimiento.anio == datetime.date.today().year
        assert requerimiento.cantidad == "1"

        entrada = db.query(HistorialRequerimiento).filter_by(requerimiento_id=requerimiento.id).one()
        assert entrada.accion == "CREATED"
        assert entrada.detalles == "Requerimiento creado por user@museo.org con 0 adjunto(s)"

    def test_creation_does_not_touch_budget(self, db, catalogo, usuarios):
        nuevo_requerimiento(db, catalogo, usuarios["USER"])
        assert _disponible(db, catalogo) == Decimal("1000")

    def test_notifies_creation_reviewers(self, db, catalogo, usuarios):
        nuevo_requerimiento(db, catalogo, usuarios["USER"])
        destinatarios = {
            n.usuario_id
            for n in db.query(Notificacion).filter_by(titulo="Nueva Solicitud Pendiente")
        }
        assert destinatarios == {usuarios[rol].id for rol in ("ADMIN", "LEADER", "DIRECTOR")}

    def test_inactive_reviewers_are_skipped(self, db, catalogo, usuarios):
        usuarios["ADMIN"].activo = False
        db.commit()
        nuevo_requerimiento(db, catalogo, usuarios["USER"])
        assert not db.query(Notificacion).filter_by(usuario_id=usuarios["ADMIN"].id).count()

    def test_attachments_are_stored(self, db, catalogo, usuarios):
        requerimiento = requerimiento_service.crear_requerimiento(
            db,
            RequerimientoCreate(
                titulo="Papelería", proyecto_id=catalogo.proyecto.id, area_id=catalogo.area.id
            ),
            usuarios["USER"],
            [ArchivoSubido("cotización.pdf", b"%PDF-1.4 demo")],
        )

        (adjunto,) = requerimiento.adjuntos
        assert adjunto.nombre_archivo == "cotización.pdf"
        assert file_storage.ruta_absoluta(adjunto.archivo_url).read_bytes() == b"%PDF-1.4 demo"
        assert "con 1 adjunto(s)" in requerimiento.historial[0].detalles

    def test_requires_creator(self, db, catalogo):
        data = RequerimientoCreate(
            titulo="Sin dueño", proyecto_id=catalogo.proyecto.id, area_id=catalogo.area.id
        )
        with pytest.raises(NoAutenticadoError):
            requerimiento_service.crear_requerimiento(db, data, None)

    def test_unknown_project(self, db, catalogo, usuarios):
        with pytest.raises(DatosInvalidosError):
            nuevo_requerimiento(db, catalogo, usuarios["USER"], proyecto_id=9999)


class TestAsientos:
    def _asiento(self, catalogo, **kwargs) -> AsientoCreate:
        datos = {
            "titulo": "Pago póliza de seguros",
            "proyecto_id": catalogo.proyecto.id,
            "area_id": catalogo.area.id,
            "presupuesto_id": catalogo.presupuesto.id,
            "monto_total": Decimal("300"),
        }
        datos.update(kwargs)
        return AsientoCreate(**datos)

    def test_charges_budget_immediately(self, db, catalogo, usuarios):
        asiento = requerimiento_service.crear_asiento(db, self._asiento(catalogo), usuarios["LEADER"])

        assert asiento.es_asiento is True
        assert asiento.estado == "APPROVED"
        assert asiento.estado_adquisicion == "EN_TRAMITE"
        assert _disponible(db, catalogo) == Decimal("700")
        assert _acciones(db, asiento.id) == ["ASIENTO_CREATED"]

    def test_regular_users_cannot_create(self, db, catalogo, usuarios):
        with pytest.raises(PermisoDenegadoError):
            requerimiento_service.crear_asiento(db, self._asiento(catalogo), usuarios["USER"])
        assert _disponible(db, catalogo) == Decimal("1000")

    def test_hidden_from_regular_lists(self, db, catalogo, usuarios):
        asiento = requerimiento_service.crear_asiento(db, self._asiento(catalogo), usuarios["ADMIN"])

        assert requerimiento_service.listar_requerimientos(db, usuarios["ADMIN"]) == []
        con_asientos = requerimiento_service.listar_requerimientos(
            db, usuarios["ADMIN"], incluir_asientos=True
        )
        assert [r.id for r in con_asientos] == [asiento.id]
        assert [r.id for r in requerimiento_service.listar_asientos(db, usuarios["DIRECTOR"])] == [asiento.id]

    def test_asiento_list_requires_capability(self, db, usuarios):
        with pytest.raises(PermisoDenegadoError):
            requerimiento_service.listar_asientos(db, usuarios["COORDINATOR"])


class TestVisibilidad:
    def test_user_sees_own_and_directed_areas(self, db, catalogo, usuarios):
        propio = nuevo_requerimiento(db, catalogo, usuarios["USER"], titulo="Propio")
        ajeno = nuevo_requerimiento(db, catalogo, usuarios["LEADER"], titulo="Ajeno")

        visibles = requerimiento_service.listar_requerimientos(db, usuarios["USER"])
        assert [r.id for r in visibles] == [propio.id]
        with pytest.raises(PermisoDenegadoError):
            requerimiento_service.obtener_requerimiento(db, ajeno.id, usuarios["USER"])

        catalogo.area.director_id = usuarios["USER"].id
        db.commit()
        visibles = requerimiento_service.listar_requerimientos(db, usuarios["USER"])
        assert {r.id for r in visibles} == {propio.id, ajeno.id}

    def test_auditor_sees_everything(self, db, catalogo, usuarios):
        nuevo_requerimiento(db, catalogo, usuarios["USER"])
        assert len(requerimiento_service.listar_requerimientos(db, usuarios["AUDITOR"])) == 1

    def test_other_years_need_explicit_filter(self, db, catalogo, usuarios):
        requerimiento = nuevo_requerimiento(db, catalogo, usuarios["USER"])
        requerimiento.anio = 2020
        db.commit()

        assert requerimiento_service.listar_mis_requerimientos(db, usuarios["USER"]) == []
        assert len(requerimiento_service.listar_mis_requerimientos(db, usuarios["USER"], anio=2020)) == 1

    def test_missing_requirement(self, db, usuarios):
        with pytest.raises(NoEncontradoError):
            requerimiento_service.obtener_requerimiento(db, 9999, usuarios["ADMIN"])


class TestActualizarEstado:
    def test_sparse_patch_keeps_unsent_fields(self, db, catalogo, usuarios):
        requerimiento = nuevo_requerimiento(db, catalogo, usuarios["USER"])
        actualizado = requerimiento_service.actualizar_estado(
            db,
            requerimiento.id,
            EstadoUpdate(estado_adquisicion="EN_TRAMITE", estado=""),
            usuarios["LEADER"],
        )
        assert actualizado.estado == "PENDING_APPROVAL"
        assert actualizado.estado_adquisicion == "EN_TRAMITE"

    def test_logs_reviewer_comment(self, db, catalogo, usuarios):
        requerimiento = nuevo_requerimiento(db, catalogo, usuarios["USER"])
        requerimiento_service.actualizar_estado(
            db,
            requerimiento.id,
            EstadoUpdate(estado="PENDING_COORDINATION", observaciones="Revisar cotización"),
            usuarios["LEADER"],
        )
        entrada = (
            db.query(HistorialRequerimiento)
            .filter_by(requerimiento_id=requerimiento.id, accion="STATUS_UPDATED")
            .one()
        )
        assert "PENDING_COORDINATION" in entrada.detalles
        assert "Revisar cotización" in entrada.detalles

    @pytest.mark.parametrize(
        ("estado", "tipo"), [("REJECTED", "ERROR"), ("APPROVED", "INFO")]
    )
    def test_creator_notification_type(self, db, catalogo, usuarios, estado, tipo):
        requerimiento = nuevo_requerimiento(db, catalogo, usuarios["USER"])
        requerimiento_service.actualizar_estado(
            db, requerimiento.id, EstadoUpdate(estado=estado), usuarios["DIRECTOR"]
        )
        aviso = (
            db.query(Notificacion)
            .filter_by(usuario_id=usuarios["USER"].id, titulo="Requerimiento Actualizado")
            .one()
        )
        assert aviso.tipo == tipo

    def test_requires_capability(self, db, catalogo, usuarios):
        requerimiento = nuevo_requerimiento(db, catalogo, usuarios["USER"])
        with pytest.raises(PermisoDenegadoError):
            requerimiento_service.actualizar_estado(
                db, requerimiento.id, EstadoUpdate(estado="APPROVED"), usuarios["USER"]
            )


class TestActualizarRequerimiento:
    def test_monto_real_round_trip_restores_budget(self, db, catalogo, usuarios):
        requerimiento = nuevo_requerimiento(db, catalogo, usuarios["USER"])
        editor = usuarios["LEADER"]

        requerimiento_service.actualizar_requerimiento(
            db, requerimiento.id, RequerimientoUpdate(monto_real=Decimal("300")), editor
        )
        assert _disponible(db, catalogo) == Decimal("700")

        requerimiento_service.actualizar_requerimiento(
            db, requerimiento.id, RequerimientoUpdate(monto_real=Decimal("500")), editor
        )
        assert _disponible(db, catalogo) == Decimal("500")

        requerimiento_service.actualizar_requerimiento(
            db, requerimiento.id, RequerimientoUpdate(monto_real="null"), editor
        )
        assert _disponible(db, catalogo) == Decimal("1000")
        assert db.get(Requerimiento, requerimiento.id).monto_real is None

    def test_edited_entry_only_for_real_changes(self, db, catalogo, usuarios):
        requerimiento = nuevo_requerimiento(db, catalogo, usuarios["USER"])
        requerimiento_service.actualizar_requerimiento(
            db, requerimiento.id, RequerimientoUpdate(descripcion="Detalle"), usuarios["LEADER"]
        )
        assert "EDITED" not in _acciones(db, requerimiento.id)

        actualizado = requerimiento_service.actualizar_requerimiento(
            db, requerimiento.id, RequerimientoUpdate(monto_total=Decimal("900")), usuarios["LEADER"]
        )
        assert actualizado.monto_total == Decimal("900")
        assert "EDITED" not in _acciones(db, requerimiento.id)

        requerimiento_service.actualizar_requerimiento(
            db, requerimiento.id, RequerimientoUpdate(numero_orden_compra="OC-77"), usuarios["LEADER"]
        )
        assert _acciones(db, requerimiento.id)[-1] == "EDITED"

    def test_null_sentinel_clears_optional_fields_only(self, db, catalogo, usuarios):
        requerimiento = nuevo_requerimiento(
            db, catalogo, usuarios["USER"], proveedor_id=catalogo.proveedor.id
        )
        actualizado = requerimiento_service.actualizar_requerimiento(
            db,
            requerimiento.id,
            RequerimientoUpdate.model_validate({"proveedor_id": "null", "titulo": "null"}),
            usuarios["LEADER"],
        )
        assert actualizado.proveedor_id is None
        assert actualizado.titulo == "Vitrinas para sala 3"

    def test_attachment_swap(self, db, catalogo, usuarios):
        requerimiento = requerimiento_service.crear_requerimiento(
            db,
            RequerimientoCreate(
                titulo="Montaje", proyecto_id=catalogo.proyecto.id, area_id=catalogo.area.id
            ),
            usuarios["USER"],
            [ArchivoSubido("viejo.pdf", b"v")],
        )
        viejo = requerimiento.adjuntos[0]
        ruta_vieja = file_storage.ruta_absoluta(viejo.archivo_url)

        actualizado = requerimiento_service.actualizar_requerimiento(
            db,
            requerimiento.id,
            RequerimientoUpdate(adjuntos_eliminar=[viejo.id]),
            usuarios["LEADER"],
            [ArchivoSubido("nuevo.pdf", b"n")],
        )
        assert [a.nombre_archivo for a in actualizado.adjuntos] == ["nuevo.pdf"]
        assert not ruta_vieja.exists()
        assert _acciones(db, requerimiento.id)[-1] == "EDITED"

    def test_requires_capability(self, db, catalogo, usuarios):
        requerimiento = nuevo_requerimiento(db, catalogo, usuarios["USER"])
        with pytest.raises(PermisoDenegadoError):
            requerimiento_service.actualizar_requerimiento(
                db, requerimiento.id, RequerimientoUpdate(titulo="X"), usuarios["USER"]
            )


class TestObservaciones:
    def test_owner_can_edit(self, db, catalogo, usuarios):
        requerimiento = nuevo_requerimiento(db, catalogo, usuarios["USER"])
        actualizado = requerimiento_service.actualizar_observaciones(
            db,
            requerimiento.id,
            ObservacionesUpdate(comentarios_satisfaccion="Entregado completo"),
            usuarios["USER"],
        )
        assert actualizado.comentarios_satisfaccion == "Entregado completo"
        assert _acciones(db, requerimiento.id)[-1] == "OBSERVATIONS_UPDATED"

    def test_strangers_refused(self, db, catalogo, usuarios):
        requerimiento = nuevo_requerimiento(db, catalogo, usuarios["LEADER"])
        otro = usuarios["COORDINATOR"]
        with pytest.raises(PermisoDenegadoError):
            requerimiento_service.actualizar_observaciones(
                db, requerimiento.id, ObservacionesUpdate(comentarios_satisfaccion="x"), otro
            )

    def test_leader_may_edit_others(self, db, catalogo, usuarios):
        requerimiento = nuevo_requerimiento(db, catalogo, usuarios["USER"])
        requerimiento_service.actualizar_observaciones(
            db, requerimiento.id, ObservacionesUpdate(comentarios_satisfaccion="ok"), usuarios["LEADER"]
        )


class TestEliminar:
    def test_cascade_and_invoice_unlinked(self, db, catalogo, usuarios):
        requerimiento = requerimiento_service.crear_requerimiento(
            db,
            RequerimientoCreate(
                titulo="Montaje", proyecto_id=catalogo.proyecto.id, area_id=catalogo.area.id
            ),
            usuarios["USER"],
            [ArchivoSubido("cotizacion.pdf", b"c")],
        )
        ruta = file_storage.ruta_absoluta(requerimiento.adjuntos[0].archivo_url)
        db.add(Pago(requerimiento_id=requerimiento.id, numero_pago=1, monto=Decimal("10")))
        factura = Factura(
            numero_factura="FV-1",
            monto=Decimal("10"),
            fecha_emision=datetime.date.today(),
            archivo_url="2026/01/user/factura.pdf",
            requerimiento_id=requerimiento.id,
            creado_por_id=usuarios["USER"].id,
        )
        db.add(factura)
        db.commit()
        requerimiento_id = requerimiento.id

        requerimiento_service.eliminar_requerimiento(db, requerimiento_id, usuarios["ADMIN"])

        assert db.get(Requerimiento, requerimiento_id) is None
        for modelo in (Adjunto, Pago, HistorialRequerimiento, Notificacion):
            assert db.query(modelo).filter_by(requerimiento_id=requerimiento_id).count() == 0
        assert db.get(Factura, factura.id).requerimiento_id is None
        assert not ruta.exists()

    def test_requires_capability(self, db, catalogo, usuarios):
        requerimiento = nuevo_requerimiento(db, catalogo, usuarios["USER"])
        with pytest.raises(PermisoDenegadoError):
            requerimiento_service.eliminar_requerimiento(db, requerimiento.id, usuarios["LEADER"])
