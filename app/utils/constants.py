"""
Application-wide constants for the MisCompras system.

Defines domain enumerations, the role-capability table and business rule
limits used across routers, services, and models.
"""

from typing import Final

# ---------------------------------------------------------------------------
# User roles
# ---------------------------------------------------------------------------

ROLES: Final[list[str]] = [
    "USER",
    "LEADER",
    "COORDINATOR",
    "DIRECTOR",
    "ADMIN",
    "AUDITOR",
    "DEVELOPER",
]

# ---------------------------------------------------------------------------
# Requirement approval pipeline (``Requerimiento.estado``)
# ---------------------------------------------------------------------------

ESTADOS_REQUERIMIENTO: Final[list[str]] = [
    "PENDING_APPROVAL",
    "PENDING_COORDINATION",
    "PENDING_FINANCE",
    "APPROVED",
    "APPROVED_FOR_PURCHASE",
    "REJECTED",
    "PAID",
]

# ---------------------------------------------------------------------------
# Requirement fulfilment pipeline (``Requerimiento.estado_adquisicion``)
# ---------------------------------------------------------------------------

ESTADOS_ADQUISICION: Final[list[str]] = [
    "PENDIENTE",
    "EN_TRAMITE",
    "ENTREGADO",
    "FINALIZADO",
    "ANULADO",
    "POSTERGADO",
]

# ---------------------------------------------------------------------------
# Invoice, budget and notification states
# ---------------------------------------------------------------------------

ESTADOS_FACTURA: Final[list[str]] = ["RECEIVED", "VERIFIED", "APPROVED", "PAID"]

ESTADOS_PRESUPUESTO: Final[list[str]] = ["PENDING", "APPROVED", "REJECTED"]

TIPOS_AJUSTE: Final[list[str]] = ["INCREASE", "TRANSFER"]

TIPOS_NOTIFICACION: Final[list[str]] = ["INFO", "SUCCESS", "WARNING", "ERROR"]

CATEGORIAS_REQUERIMIENTO: Final[list[str]] = ["COMPRA", "SERVICIO", "CONTRATO"]

# ---------------------------------------------------------------------------
# Audit trail actions (``HistorialRequerimiento.accion``)
# ---------------------------------------------------------------------------

ACCIONES_HISTORIAL: Final[list[str]] = [
    "CREATED",
    "ASIENTO_CREATED",
    "STATUS_UPDATED",
    "EDITED",
    "OBSERVATIONS_UPDATED",
    "GROUP_APPROVED",
    "GROUP_REJECTED",
    "PAYMENT_REGISTERED",
    "PAYMENT_UPDATED",
    "PAYMENT_DELETED",
]

# ---------------------------------------------------------------------------
# Role-capability table
#
# Every permission check in the services and routers goes through this
# mapping; no endpoint carries its own list of roles.
# ---------------------------------------------------------------------------

_VISORES_GLOBALES: Final[frozenset[str]] = frozenset(
    {"ADMIN", "DIRECTOR", "LEADER", "COORDINATOR", "AUDITOR", "DEVELOPER"}
)

CAPACIDADES: Final[dict[str, frozenset[str]]] = {
    "VER_TODOS_REQUERIMIENTOS": _VISORES_GLOBALES,
    "VER_TODAS_FACTURAS": _VISORES_GLOBALES,
    "CREAR_ASIENTO": frozenset({"ADMIN", "DIRECTOR", "LEADER"}),
    "VER_ASIENTOS": frozenset({"ADMIN", "DIRECTOR", "LEADER"}),
    "ACTUALIZAR_ESTADO": frozenset(
        {"LEADER", "DIRECTOR", "ADMIN", "COORDINATOR", "DEVELOPER"}
    ),
    "EDITAR_REQUERIMIENTO": frozenset(
        {"ADMIN", "DIRECTOR", "LEADER", "COORDINATOR", "DEVELOPER"}
    ),
    "ELIMINAR_REQUERIMIENTO": frozenset({"ADMIN", "DIRECTOR", "DEVELOPER"}),
    "APROBAR_GRUPO": frozenset(
        {"LEADER", "COORDINATOR", "DIRECTOR", "ADMIN", "DEVELOPER"}
    ),
    "APROBACION_COORDINADOR": frozenset({"COORDINATOR"}),
    "APROBACION_SENIOR": frozenset({"DIRECTOR", "ADMIN", "DEVELOPER"}),
    "ELIMINAR_PAGO": frozenset({"ADMIN", "DIRECTOR", "LEADER"}),
    "APROBAR_FACTURA": frozenset({"ADMIN", "DIRECTOR", "LEADER"}),
    "GESTIONAR_PRESUPUESTO": frozenset({"DIRECTOR"}),
    "APROBAR_AJUSTE": frozenset({"DIRECTOR"}),
    "GESTIONAR_CATALOGOS": frozenset({"ADMIN"}),
    "GESTIONAR_USUARIOS": frozenset({"ADMIN"}),
    "EDITAR_OBSERVACIONES_AJENAS": frozenset({"ADMIN", "DIRECTOR", "LEADER"}),
    "EXPORTAR_REPORTES": frozenset(
        {"ADMIN", "DIRECTOR", "LEADER", "AUDITOR", "DEVELOPER"}
    ),
    "NOTIFICAR_CREACION": frozenset({"ADMIN", "LEADER", "DIRECTOR"}),
    "NOTIFICAR_CREACION_GRUPO": frozenset(
        {"LEADER", "COORDINATOR", "DIRECTOR", "ADMIN"}
    ),
}


def tiene_capacidad(rol: str | None, capacidad: str) -> bool:
    """Return True when *rol* is granted *capacidad* by ``CAPACIDADES``.

    Unknown capabilities grant nothing.
    """
    return rol in CAPACIDADES.get(capacidad, frozenset())


# ---------------------------------------------------------------------------
# Business rule limits
# ---------------------------------------------------------------------------

MAX_PAGOS: Final[int] = 12

# Placeholder id and creator label for the synthetic group that collects
# pending requirements submitted outside a mass-creation batch.
GRUPO_INDIVIDUAL_ID: Final[int] = 0
GRUPO_INDIVIDUAL_NOMBRE: Final[str] = "Solicitudes Individuales"

SIN_COMENTARIOS: Final[str] = "Sin comentarios"
