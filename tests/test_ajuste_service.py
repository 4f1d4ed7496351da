"""Budget adjustment requests: INCREASE and TRANSFER, director decision, ledger effect."""

from __future__ import annotations

import datetime
from decimal import Decimal

import pytest

from app.exceptions import (
    AjusteYaProcesadoError,
    DatosInvalidosError,
    DependenciaError,
    DisponibleInsuficienteError,
    NoEncontradoError,
    PermisoDenegadoError,
    PresupuestoConRequerimientosError,
    ReglaNegocioError,
)
from app.models import AjusteOrigen, AjustePresupuesto, Notificacion, Presupuesto
from app.schemas.ajuste import AjusteCreate
from app.services import ajuste_service, file_storage, presupuesto_service


@pytest.fixture()
def origen(db, catalogo, usuarios):
    """A second APPROVED budget of 500 to move money out of."""
    presupuesto = Presupuesto(
        codigo="BUD-TEST-002",
        titulo="Catálogo impreso",
        monto=Decimal("500.00"),
        disponible=Decimal("500.00"),
        anio=catalogo.presupuesto.anio,
        estado="APPROVED",
        version=1,
        proyecto_id=catalogo.proyecto.id,
        area_id=catalogo.area.id,
        creado_por_id=usuarios["DIRECTOR"].id,
    )
    db.add(presupuesto)
    db.commit()
    db.refresh(presupuesto)
    return presupuesto


def _aumento(db, catalogo, usuario, monto="300"):
    data = AjusteCreate(
        presupuesto_id=catalogo.presupuesto.id,
        tipo="INCREASE",
        monto_solicitado=Decimal(monto),
        motivo="Ampliación de la sala 3",
    )
    return ajuste_service.crear_ajuste(db, data, usuario)


def _movimiento(db, catalogo, usuario, origenes, monto="200"):
    data = AjusteCreate(
        presupuesto_id=catalogo.presupuesto.id,
        tipo="TRANSFER",
        monto_solicitado=Decimal(monto),
        motivo="Reasignación desde el catálogo impreso",
        origenes=origenes,
    )
    return ajuste_service.crear_ajuste(db, data, usuario)


class TestCrearAjuste:
    def test_increase_is_pending_with_document(self, db, catalogo, usuarios):
        ajuste = _aumento(db, catalogo, usuarios["LEADER"])

        anio = datetime.date.today().year
        assert ajuste.codigo == f"ADJ-{anio}-0001"
        assert ajuste.estado == "PENDING"
        assert ajuste.solicitado_por_id == usuarios["LEADER"].id
        assert ajuste.documento_url == f"documentos/Ajuste_{ajuste.codigo}.pdf"
        assert file_storage.ruta_absoluta(ajuste.documento_url).read_bytes().startswith(b"%PDF")

    def test_codes_follow_the_yearly_sequence(self, db, catalogo, usuarios):
        _aumento(db, catalogo, usuarios["USER"])
        segundo = _aumento(db, catalogo, usuarios["USER"])

        assert segundo.codigo.endswith("-0002")

    def test_request_does_not_touch_the_ledger(self, db, catalogo, usuarios):
        _aumento(db, catalogo, usuarios["USER"])

        presupuesto = db.get(Presupuesto, catalogo.presupuesto.id)
        assert presupuesto.monto == Decimal("1000")
        assert presupuesto.disponible == Decimal("1000")
        assert presupuesto.version == 1

    def test_directors_are_notified(self, db, catalogo, usuarios):
        ajuste = _aumento(db, catalogo, usuarios["USER"])

        notificaciones = db.query(Notificacion).all()
        assert [n.usuario_id for n in notificaciones] == [usuarios["DIRECTOR"].id]
        assert notificaciones[0].titulo == f"Nueva Solicitud de Aumento: {ajuste.codigo}"
        assert notificaciones[0].tipo == "WARNING"

    def test_transfer_stores_sources(self, db, catalogo, usuarios, origen):
        ajuste = _movimiento(
            db, catalogo, usuarios["USER"], [{"presupuesto_id": origen.id, "monto": "200"}]
        )

        assert [(o.presupuesto_id, o.monto) for o in ajuste.origenes] == [
            (origen.id, Decimal("200"))
        ]
        notificacion = db.query(Notificacion).one()
        assert notificacion.titulo.startswith("Nueva Solicitud de Movimiento")

    def test_transfer_needs_sources(self, db, catalogo, usuarios):
        with pytest.raises(DatosInvalidosError):
            _movimiento(db, catalogo, usuarios["USER"], [])

    def test_transfer_sources_must_add_up(self, db, catalogo, usuarios, origen):
        with pytest.raises(ReglaNegocioError, match="suma"):
            _movimiento(
                db, catalogo, usuarios["USER"], [{"presupuesto_id": origen.id, "monto": "150"}]
            )
        assert db.query(AjustePresupuesto).count() == 0

    def test_transfer_source_must_afford_its_share(self, db, catalogo, usuarios, origen):
        with pytest.raises(DisponibleInsuficienteError):
            _movimiento(
                db, catalogo, usuarios["USER"],
                [{"presupuesto_id": origen.id, "monto": "600"}], monto="600",
            )

    def test_unknown_target(self, db, catalogo, usuarios):
        data = AjusteCreate(
            presupuesto_id=9999, tipo="INCREASE", monto_solicitado=Decimal("10"), motivo="x"
        )
        with pytest.raises(NoEncontradoError):
            ajuste_service.crear_ajuste(db, data, usuarios["USER"])

    def test_render_failure_rolls_back(self, db, catalogo, usuarios, monkeypatch):
        def _falla(*args, **kwargs):
            raise RuntimeError("reportlab no disponible")

        monkeypatch.setattr(ajuste_service, "render_solicitud_ajuste", _falla)

        with pytest.raises(DependenciaError):
            _aumento(db, catalogo, usuarios["USER"])
        assert db.query(AjustePresupuesto).count() == 0
        assert db.query(Notificacion).count() == 0


class TestAprobarAjuste:
    def test_increase_grows_amount_and_available(self, db, catalogo, usuarios):
        ajuste = _aumento(db, catalogo, usuarios["LEADER"])

        ajuste = ajuste_service.aprobar_ajuste(db, ajuste.id, usuarios["DIRECTOR"])

        assert ajuste.estado == "APPROVED"
        assert ajuste.revisado_por_id == usuarios["DIRECTOR"].id
        assert ajuste.revisado_at is not None
        presupuesto = db.get(Presupuesto, catalogo.presupuesto.id)
        assert presupuesto.monto == Decimal("1300")
        assert presupuesto.disponible == Decimal("1300")
        assert presupuesto.version == 2

    def test_transfer_moves_money_between_budgets(self, db, catalogo, usuarios, origen):
        ajuste = _movimiento(
            db, catalogo, usuarios["USER"], [{"presupuesto_id": origen.id, "monto": "200"}]
        )

        ajuste_service.aprobar_ajuste(db, ajuste.id, usuarios["DIRECTOR"])

        destino = db.get(Presupuesto, catalogo.presupuesto.id)
        fuente = db.get(Presupuesto, origen.id)
        assert (destino.monto, destino.disponible) == (Decimal("1200"), Decimal("1200"))
        assert (fuente.monto, fuente.disponible) == (Decimal("300"), Decimal("300"))
        assert destino.version == 2
        assert fuente.version == 2

    def test_requester_is_notified(self, db, catalogo, usuarios):
        ajuste = _aumento(db, catalogo, usuarios["LEADER"])
        ajuste_service.aprobar_ajuste(db, ajuste.id, usuarios["DIRECTOR"])

        notificacion = (
            db.query(Notificacion)
            .filter(Notificacion.usuario_id == usuarios["LEADER"].id)
            .one()
        )
        assert notificacion.tipo == "SUCCESS"
        assert ajuste.codigo in notificacion.mensaje

    @pytest.mark.parametrize("rol", ["LEADER", "COORDINATOR", "ADMIN"])
    def test_only_director_decides(self, db, catalogo, usuarios, rol):
        ajuste = _aumento(db, catalogo, usuarios["USER"])

        with pytest.raises(PermisoDenegadoError):
            ajuste_service.aprobar_ajuste(db, ajuste.id, usuarios[rol])
        with pytest.raises(PermisoDenegadoError):
            ajuste_service.rechazar_ajuste(db, ajuste.id, None, usuarios[rol])

    def test_cannot_decide_twice(self, db, catalogo, usuarios):
        ajuste = _aumento(db, catalogo, usuarios["USER"])
        ajuste_service.aprobar_ajuste(db, ajuste.id, usuarios["DIRECTOR"])

        with pytest.raises(AjusteYaProcesadoError):
            ajuste_service.aprobar_ajuste(db, ajuste.id, usuarios["DIRECTOR"])
        with pytest.raises(AjusteYaProcesadoError):
            ajuste_service.rechazar_ajuste(db, ajuste.id, "tarde", usuarios["DIRECTOR"])
        assert db.get(Presupuesto, catalogo.presupuesto.id).monto == Decimal("1300")

    def test_source_spent_since_request(self, db, catalogo, usuarios, origen):
        ajuste = _movimiento(
            db, catalogo, usuarios["USER"], [{"presupuesto_id": origen.id, "monto": "200"}]
        )
        presupuesto_service.descontar(db, origen.id, Decimal("400"))
        db.commit()

        with pytest.raises(DisponibleInsuficienteError):
            ajuste_service.aprobar_ajuste(db, ajuste.id, usuarios["DIRECTOR"])

        assert db.get(AjustePresupuesto, ajuste.id).estado == "PENDING"
        destino = db.get(Presupuesto, catalogo.presupuesto.id)
        assert destino.monto == Decimal("1000")
        assert destino.version == 1

    def test_unknown_request(self, db, usuarios):
        with pytest.raises(NoEncontradoError):
            ajuste_service.aprobar_ajuste(db, 9999, usuarios["DIRECTOR"])


class TestRechazarAjuste:
    def test_stores_comment_and_keeps_ledger(self, db, catalogo, usuarios):
        ajuste = _aumento(db, catalogo, usuarios["LEADER"])

        ajuste = ajuste_service.rechazar_ajuste(
            db, ajuste.id, "Sin justificación suficiente", usuarios["DIRECTOR"]
        )

        assert ajuste.estado == "REJECTED"
        assert ajuste.comentario_revision == "Sin justificación suficiente"
        assert db.get(Presupuesto, catalogo.presupuesto.id).monto == Decimal("1000")
        notificacion = (
            db.query(Notificacion)
            .filter(Notificacion.usuario_id == usuarios["LEADER"].id)
            .one()
        )
        assert notificacion.tipo == "ERROR"
        assert "Sin justificación suficiente" in notificacion.mensaje

    @pytest.mark.parametrize("comentario", [None, "   "])
    def test_default_comment(self, db, catalogo, usuarios, comentario):
        ajuste = _aumento(db, catalogo, usuarios["USER"])

        ajuste = ajuste_service.rechazar_ajuste(db, ajuste.id, comentario, usuarios["DIRECTOR"])

        assert ajuste.comentario_revision == "Rechazado sin comentarios"


class TestListados:
    def test_mine_only_lists_own_requests(self, db, catalogo, usuarios):
        propio = _aumento(db, catalogo, usuarios["USER"])
        _aumento(db, catalogo, usuarios["LEADER"])

        assert [a.id for a in ajuste_service.listar_mis_ajustes(db, usuarios["USER"])] == [
            propio.id
        ]

    def test_pending_queue_oldest_first(self, db, catalogo, usuarios):
        primero = _aumento(db, catalogo, usuarios["USER"])
        segundo = _aumento(db, catalogo, usuarios["USER"])
        decidido = _aumento(db, catalogo, usuarios["USER"])
        ajuste_service.rechazar_ajuste(db, decidido.id, None, usuarios["DIRECTOR"])

        pendientes = ajuste_service.listar_pendientes(db, usuarios["DIRECTOR"])

        assert [a.id for a in pendientes] == [primero.id, segundo.id]

    def test_pending_queue_needs_capability(self, db, usuarios):
        with pytest.raises(PermisoDenegadoError):
            ajuste_service.listar_pendientes(db, usuarios["LEADER"])

    def test_filters_by_state_and_year(self, db, catalogo, usuarios):
        aprobado = _aumento(db, catalogo, usuarios["USER"])
        ajuste_service.aprobar_ajuste(db, aprobado.id, usuarios["DIRECTOR"])
        _aumento(db, catalogo, usuarios["USER"])
        anio = datetime.date.today().year

        assert [a.id for a in ajuste_service.listar_ajustes(db, estado="APPROVED")] == [
            aprobado.id
        ]
        assert len(ajuste_service.listar_ajustes(db, anio=anio)) == 2
        assert ajuste_service.listar_ajustes(db, anio=anio - 1) == []


class TestLedgerGuards:
    def test_budget_with_adjustments_cannot_be_deleted(self, db, catalogo, usuarios, origen):
        _movimiento(
            db, catalogo, usuarios["USER"], [{"presupuesto_id": origen.id, "monto": "200"}]
        )

        with pytest.raises(PresupuestoConRequerimientosError):
            presupuesto_service.eliminar_presupuesto(db, origen.id, usuarios["DIRECTOR"])
        assert db.query(AjusteOrigen).count() == 1
