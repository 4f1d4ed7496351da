"""Role-capability table."""

from __future__ import annotations

import pytest

from app.utils.constants import CAPACIDADES, ROLES, tiene_capacidad


def test_every_role_in_table_is_known():
    for capacidad, roles in CAPACIDADES.items():
        assert roles <= set(ROLES), capacidad


@pytest.mark.parametrize(
    ("rol", "capacidad", "esperado"),
    [
        ("DIRECTOR", "GESTIONAR_PRESUPUESTO", True),
        ("ADMIN", "GESTIONAR_PRESUPUESTO", False),
        ("COORDINATOR", "APROBACION_COORDINADOR", True),
        ("LEADER", "APROBACION_SENIOR", False),
        ("DEVELOPER", "APROBACION_SENIOR", True),
        ("USER", "VER_TODOS_REQUERIMIENTOS", False),
        ("AUDITOR", "EXPORTAR_REPORTES", True),
        ("ADMIN", "GESTIONAR_USUARIOS", True),
        ("DIRECTOR", "APROBAR_AJUSTE", True),
        ("ADMIN", "APROBAR_AJUSTE", False),
        ("ADMIN", "GESTIONAR_CATALOGOS", True),
        ("DIRECTOR", "GESTIONAR_CATALOGOS", False),
    ],
)
def test_table_lookups(rol, capacidad, esperado):
    assert tiene_capacidad(rol, capacidad) is esperado


def test_unknown_capability_or_role_grants_nothing():
    assert not tiene_capacidad("ADMIN", "NO_EXISTE")
    assert not tiene_capacidad(None, "EXPORTAR_REPORTES")
