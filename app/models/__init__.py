"""SQLAlchemy models package for MisCompras.

Importing all models here ensures that SQLAlchemy's mapper registry is
populated before ``Base.metadata.create_all()`` or Alembic migrations run.
The import order follows the foreign-key dependency graph so that parent
tables are always registered before their children.

Usage from other modules:
    from app.models import Requerimiento, Presupuesto
"""

# Users and organisational catalogues
from app.models.usuario import Usuario  # noqa: F401
from app.models.area import Area  # noqa: F401
from app.models.proyecto import Proyecto  # noqa: F401
from app.models.categoria import Categoria  # noqa: F401
from app.models.proveedor import Proveedor  # noqa: F401

# Budget ledger
from app.models.presupuesto import Presupuesto  # noqa: F401
from app.models.ajuste_presupuesto import AjusteOrigen, AjustePresupuesto  # noqa: F401

# Requirement lifecycle
from app.models.grupo_requerimiento import GrupoRequerimiento  # noqa: F401
from app.models.requerimiento import Requerimiento  # noqa: F401
from app.models.adjunto import Adjunto  # noqa: F401
from app.models.historial_requerimiento import HistorialRequerimiento  # noqa: F401

# Payments and invoices
from app.models.pago import Pago  # noqa: F401
from app.models.factura import Factura  # noqa: F401

# Cross-cutting concerns
from app.models.notificacion import Notificacion  # noqa: F401

__all__ = [
    "Usuario",
    "Area",
    "Proyecto",
    "Categoria",
    "Proveedor",
    "Presupuesto",
    "AjustePresupuesto",
    "AjusteOrigen",
    "GrupoRequerimiento",
    "Requerimiento",
    "Adjunto",
    "HistorialRequerimiento",
    "Pago",
    "Factura",
    "Notificacion",
]
