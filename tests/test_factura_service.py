"""Invoice lifecycle: reception, verification, approval and payment."""

from __future__ import annotations

import datetime
from decimal import Decimal

import pytest

from app.exceptions import (
    DatosInvalidosError,
    NoEncontradoError,
    OrdenNoAprobadaError,
    PermisoDenegadoError,
)
from app.models import HistorialRequerimiento, Pago
from app.schemas.factura import FacturaCreate, FacturaPagar
from app.services import factura_service, file_storage
from app.services.file_storage import ArchivoSubido

from conftest import nuevo_requerimiento

_PDF = ArchivoSubido("factura.pdf", b"%PDF-1.4 factura")


def _recibir(db, catalogo, usuario, **kwargs):
    datos = {
        "numero_factura": "FV-1001",
        "monto": Decimal("450.00"),
        "fecha_emision": datetime.date(2026, 3, 1),
        "proveedor_id": catalogo.proveedor.id,
    }
    datos.update(kwargs)
    return factura_service.crear_factura(db, FacturaCreate(**datos), _PDF, usuario)


@pytest.fixture()
def aprobado(db, catalogo, usuarios):
    requerimiento = nuevo_requerimiento(db, catalogo, usuarios["USER"])
    requerimiento.estado = "APPROVED"
    db.commit()
    return requerimiento


class TestRecepcion:
    def test_stores_pdf_as_received(self, db, catalogo, usuarios):
        factura = _recibir(db, catalogo, usuarios["USER"])

        assert factura.estado == "RECEIVED"
        assert factura.requerimiento_id is None
        assert file_storage.ruta_absoluta(factura.archivo_url).read_bytes() == _PDF.contenido

    @pytest.mark.parametrize("archivo", [None, ArchivoSubido("vacia.pdf", b"")])
    def test_pdf_is_mandatory(self, db, catalogo, usuarios, archivo):
        data = FacturaCreate(
            numero_factura="FV-1", monto=Decimal("1"), fecha_emision=datetime.date(2026, 1, 1)
        )
        with pytest.raises(DatosInvalidosError):
            factura_service.crear_factura(db, data, archivo, usuarios["USER"])

    def test_unknown_supplier(self, db, catalogo, usuarios):
        with pytest.raises(DatosInvalidosError):
            _recibir(db, catalogo, usuarios["USER"], proveedor_id=9999)

    def test_form_null_sentinel(self):
        data = FacturaCreate(
            numero_factura="FV-2",
            monto="10",
            fecha_emision="2026-01-01",
            proveedor_id="null",
            fecha_vencimiento="",
        )
        assert data.proveedor_id is None
        assert data.fecha_vencimiento is None


class TestCicloDeVida:
    def test_verify_links_approved_requirement(self, db, catalogo, usuarios, aprobado):
        factura = _recibir(db, catalogo, usuarios["USER"])
        verificada = factura_service.verificar_factura(db, factura.id, aprobado.id, usuarios["LEADER"])

        assert verificada.estado == "VERIFIED"
        assert verificada.requerimiento_id == aprobado.id

    def test_verify_refuses_pending_requirement(self, db, catalogo, usuarios):
        pendiente = nuevo_requerimiento(db, catalogo, usuarios["USER"])
        factura = _recibir(db, catalogo, usuarios["USER"])
        with pytest.raises(OrdenNoAprobadaError):
            factura_service.verificar_factura(db, factura.id, pendiente.id, usuarios["LEADER"])

    def test_verify_unknown_requirement(self, db, catalogo, usuarios):
        factura = _recibir(db, catalogo, usuarios["USER"])
        with pytest.raises(NoEncontradoError):
            factura_service.verificar_factura(db, factura.id, 9999, usuarios["LEADER"])

    def test_approval_requires_capability(self, db, catalogo, usuarios):
        factura = _recibir(db, catalogo, usuarios["USER"])
        with pytest.raises(PermisoDenegadoError):
            factura_service.aprobar_factura(db, factura.id, usuarios["COORDINATOR"])
        assert factura_service.aprobar_factura(db, factura.id, usuarios["DIRECTOR"]).estado == "APPROVED"

    def test_paying_mirrors_a_payment(self, db, catalogo, usuarios, aprobado):
        factura = _recibir(db, catalogo, usuarios["USER"])
        factura_service.verificar_factura(db, factura.id, aprobado.id, usuarios["LEADER"])
        factura_service.aprobar_factura(db, factura.id, usuarios["LEADER"])

        pagada = factura_service.pagar_factura(
            db, factura.id, FacturaPagar(numero_transaccion="TX-88"), usuarios["LEADER"]
        )
        assert pagada.estado == "PAID"

        pago = db.query(Pago).filter_by(requerimiento_id=aprobado.id).one()
        assert pago.numero_pago == 1
        assert pago.monto == Decimal("450")
        assert pago.numero_factura == "FV-1001"
        assert pago.fecha_pago == datetime.date.today()
        assert "TX-88" in pago.observaciones
        assert (
            db.query(HistorialRequerimiento)
            .filter_by(requerimiento_id=aprobado.id, accion="PAYMENT_REGISTERED")
            .count()
            == 1
        )

    def test_paying_unlinked_invoice_creates_no_payment(self, db, catalogo, usuarios):
        factura = _recibir(db, catalogo, usuarios["USER"])
        factura_service.pagar_factura(db, factura.id, FacturaPagar(), usuarios["LEADER"])
        assert db.query(Pago).count() == 0


class TestListado:
    def test_plain_user_sees_own_uploads(self, db, catalogo, usuarios):
        propia = _recibir(db, catalogo, usuarios["USER"])
        _recibir(db, catalogo, usuarios["LEADER"], numero_factura="FV-2")

        assert [f.id for f in factura_service.listar_facturas(db, usuarios["USER"])] == [propia.id]
        assert len(factura_service.listar_facturas(db, usuarios["AUDITOR"])) == 2

    def test_invoices_on_own_requirement_are_visible(self, db, catalogo, usuarios, aprobado):
        factura = _recibir(db, catalogo, usuarios["LEADER"])
        factura_service.verificar_factura(db, factura.id, aprobado.id, usuarios["LEADER"])

        assert [f.id for f in factura_service.listar_facturas(db, usuarios["USER"])] == [factura.id]

    def test_filters(self, db, catalogo, usuarios):
        factura = _recibir(db, catalogo, usuarios["USER"])
        factura_service.aprobar_factura(db, factura.id, usuarios["ADMIN"])

        assert factura_service.listar_facturas(db, usuarios["ADMIN"], estado="RECEIVED") == []
        assert len(
            factura_service.listar_facturas(db, usuarios["ADMIN"], proveedor_id=catalogo.proveedor.id)
        ) == 1
