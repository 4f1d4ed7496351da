"""In-app notifications: fan-out by capability and the caller's inbox."""

from __future__ import annotations

import pytest

from app.exceptions import NoEncontradoError
from app.models import Notificacion
from app.services import notificacion_service


def test_fan_out_reaches_active_holders_only(db, usuarios):
    usuarios["LEADER"].activo = False
    db.commit()

    filas = notificacion_service.notificar_capacidad(
        db, "NOTIFICAR_CREACION", "Nueva Solicitud Pendiente", "Hola"
    )
    db.commit()

    assert {n.usuario_id for n in filas} == {usuarios["ADMIN"].id, usuarios["DIRECTOR"].id}


def test_unknown_capability_notifies_nobody(db, usuarios):
    assert notificacion_service.notificar_capacidad(db, "NO_EXISTE", "t", "m") == []


def test_inbox_is_personal_and_newest_first(db, usuarios):
    primero = notificacion_service.notificar(db, usuarios["USER"].id, "Uno", "m")
    segundo = notificacion_service.notificar(db, usuarios["USER"].id, "Dos", "m")
    notificacion_service.notificar(db, usuarios["LEADER"].id, "Ajena", "m")
    db.commit()

    bandeja = notificacion_service.listar_mis_notificaciones(db, usuarios["USER"])
    assert [n.id for n in bandeja] == [segundo.id, primero.id]


def test_mark_one_read(db, usuarios):
    aviso = notificacion_service.notificar(db, usuarios["USER"].id, "Uno", "m")
    db.commit()

    assert notificacion_service.marcar_leida(db, aviso.id, usuarios["USER"]).leida is True


def test_cannot_mark_someone_elses(db, usuarios):
    aviso = notificacion_service.notificar(db, usuarios["LEADER"].id, "Uno", "m")
    db.commit()

    with pytest.raises(NoEncontradoError):
        notificacion_service.marcar_leida(db, aviso.id, usuarios["USER"])


def test_mark_all_read_counts_unread(db, usuarios):
    for titulo in ("Uno", "Dos", "Tres"):
        notificacion_service.notificar(db, usuarios["USER"].id, titulo, "m")
    notificacion_service.notificar(db, usuarios["LEADER"].id, "Ajena", "m")
    db.commit()

    assert notificacion_service.marcar_todas_leidas(db, usuarios["USER"]) == 3
    assert notificacion_service.marcar_todas_leidas(db, usuarios["USER"]) == 0
    assert db.query(Notificacion).filter_by(leida=False).count() == 1
