"""
Shared fixtures for the MisCompras test suite.

Every test runs against a fresh in-memory SQLite database. Uploaded files
and generated documents land in a temporary directory created once per
session. The environment is configured before ``app`` is imported so the
cached settings pick it up.
"""

from __future__ import annotations

import os
import tempfile
from decimal import Decimal
from types import SimpleNamespace

_STORAGE = tempfile.mkdtemp(prefix="miscompras-tests-")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOADS_DIR"] = os.path.join(_STORAGE, "uploads")
os.environ["DOCUMENTS_DIR"] = os.path.join(_STORAGE, "uploads", "documentos")
os.environ["JWT_SECRET"] = "miscompras-test-secret"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Area, Presupuesto, Proveedor, Proyecto, Usuario  # noqa: E402
from app.schemas.requerimiento import RequerimientoCreate  # noqa: E402
from app.services import requerimiento_service  # noqa: E402
from app.utils.security import create_access_token, hash_password  # noqa: E402

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

PASSWORD = "Museo2026!"
# bcrypt is slow on purpose; hash the shared password once per session
_PASSWORD_HASH = hash_password(PASSWORD)


# ---------------------------------------------------------------------------
# Database and HTTP client
# ---------------------------------------------------------------------------


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db):
    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def crear_usuario(db, rol: str, email: str | None = None, **kwargs) -> Usuario:
    usuario = Usuario(
        email=email or f"{rol.lower()}@museo.org",
        password_hash=_PASSWORD_HASH,
        nombre_completo=kwargs.pop("nombre_completo", f"Usuario {rol.title()}"),
        rol=rol,
        activo=kwargs.pop("activo", True),
        **kwargs,
    )
    db.add(usuario)
    db.commit()
    db.refresh(usuario)
    return usuario


def auth_headers(usuario: Usuario) -> dict[str, str]:
    token = create_access_token({"sub": str(usuario.id), "rol": usuario.rol})
    return {"Authorization": f"Bearer {token}"}


def nuevo_requerimiento(db, catalogo, usuario: Usuario, **kwargs):
    datos = {
        "titulo": "Vitrinas para sala 3",
        "proyecto_id": catalogo.proyecto.id,
        "area_id": catalogo.area.id,
        "monto_estimado": Decimal("250.00"),
    }
    datos.update(kwargs)
    return requerimiento_service.crear_requerimiento(
        db, RequerimientoCreate(**datos), usuario
    )


# ---------------------------------------------------------------------------
# Domain fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def usuarios(db) -> dict[str, Usuario]:
    """One active user per role, keyed by role."""
    return {
        rol: crear_usuario(db, rol)
        for rol in ("USER", "LEADER", "COORDINATOR", "DIRECTOR", "ADMIN", "AUDITOR", "DEVELOPER")
    }


@pytest.fixture()
def catalogo(db, usuarios):
    """Project, area, supplier and an APPROVED budget of 1000 for the pair."""
    proyecto = Proyecto(codigo="P-BOTERO", nombre="Exposición Botero")
    area = Area(nombre="Curaduría")
    proveedor = Proveedor(nombre="Montajes y Vitrinas S.A.S.", nit="901234567-1")
    db.add_all([proyecto, area, proveedor])
    db.flush()

    presupuesto = Presupuesto(
        codigo="BUD-TEST-001",
        titulo="Montaje exposición",
        monto=Decimal("1000.00"),
        disponible=Decimal("1000.00"),
        anio=requerimiento_service._anio_actual(),
        estado="APPROVED",
        version=1,
        proyecto_id=proyecto.id,
        area_id=area.id,
        responsable_id=usuarios["LEADER"].id,
        creado_por_id=usuarios["DIRECTOR"].id,
    )
    db.add(presupuesto)
    db.commit()
    for obj in (proyecto, area, proveedor, presupuesto):
        db.refresh(obj)
    return SimpleNamespace(
        proyecto=proyecto, area=area, proveedor=proveedor, presupuesto=presupuesto
    )
