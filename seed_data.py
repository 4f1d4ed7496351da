"""Seed data script for the MisCompras database.

Populates the database with realistic demo data for development: one user
per role, areas, projects, categories, suppliers, approved budgets and a
few requirements across the approval pipeline.
The script is idempotent: it checks for existing records before inserting.

Usage (from the repository root):
    python seed_data.py
"""

from __future__ import annotations

import sys
import os
from datetime import date
from decimal import Decimal

# Ensure the app package is importable when running from the repository root
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app.database import Base, SessionLocal, engine  # noqa: E402
from app.models import (  # noqa: E402
    Area,
    Categoria,
    HistorialRequerimiento,
    Presupuesto,
    Proveedor,
    Proyecto,
    Requerimiento,
    Usuario,
)
from app.utils.security import hash_password  # noqa: E402

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ANIO = date.today().year
DEMO_PASSWORD = "Museo2026!"


def _dec(value: float) -> Decimal:
    """Convert float to Decimal for Numeric columns."""
    return Decimal(str(round(value, 2)))


# ---------------------------------------------------------------------------
# Seed functions
# ---------------------------------------------------------------------------


def seed_usuarios(session) -> dict[str, Usuario]:
    """Insert one demo user per role, skipping emails that already exist."""
    datos = [
        ("admin.demo", "admin.demo@museo.org", "Administrador Museo", "ADMIN"),
        ("direccion", "direccion@museo.org", "Laura Restrepo", "DIRECTOR"),
        ("coordinacion", "coordinacion@museo.org", "Andrés Gómez", "COORDINATOR"),
        ("lider", "lider@museo.org", "Catalina Mejía", "LEADER"),
        ("curaduria", "curaduria@museo.org", "Juan Pablo Arango", "USER"),
        ("auditoria", "auditoria@museo.org", "Sofía Herrera", "AUDITOR"),
        ("soporte", "soporte@museo.org", "Equipo Soporte", "DEVELOPER"),
    ]
    usuarios: dict[str, Usuario] = {}
    for username, email, nombre, rol in datos:
        existente = session.query(Usuario).filter(Usuario.email == email).first()
        if existente is None:
            existente = Usuario(
                username=username,
                email=email,
                password_hash=hash_password(DEMO_PASSWORD),
                nombre_completo=nombre,
                rol=rol,
                activo=True,
            )
            session.add(existente)
        usuarios[rol] = existente
    session.flush()
    print(f"  [OK] Usuario — {len(datos)} usuarios demo (contraseña: {DEMO_PASSWORD}).")
    return usuarios


def seed_areas(session, usuarios: dict[str, Usuario]) -> list[Area]:
    if session.query(Area).count() > 0:
        print("  [SKIP] Area — table already has data.")
        return session.query(Area).order_by(Area.id).all()

    registros = [
        Area(nombre="Administrativa", director_id=usuarios["DIRECTOR"].id),
        Area(nombre="Curaduría", director_id=usuarios["LEADER"].id),
        Area(nombre="Educación y Cultura"),
        Area(nombre="Comunicaciones"),
    ]
    session.add_all(registros)
    session.flush()
    print(f"  [OK] Area — {len(registros)} registros insertados.")
    return registros


def seed_proyectos(session) -> list[Proyecto]:
    if session.query(Proyecto).count() > 0:
        print("  [SKIP] Proyecto — table already has data.")
        return session.query(Proyecto).order_by(Proyecto.id).all()

    registros = [
        Proyecto(codigo=f"P-BOTERO-{ANIO}", nombre=f"Exposición Fernando Botero {ANIO}"),
        Proyecto(codigo=f"P-FUNC-{ANIO}", nombre="Funcionamiento institucional"),
        Proyecto(codigo=f"P-EDU-{ANIO}", nombre="Programa educativo de mediación"),
    ]
    session.add_all(registros)
    session.flush()
    print(f"  [OK] Proyecto — {len(registros)} registros insertados.")
    return registros


def seed_categorias(session) -> list[Categoria]:
    if session.query(Categoria).count() > 0:
        print("  [SKIP] Categoria — table already has data.")
        return session.query(Categoria).order_by(Categoria.id).all()

    registros = [
        Categoria(codigo="MONTAJE", nombre="Montaje museográfico"),
        Categoria(codigo="PAPELERIA", nombre="Papelería e insumos"),
        Categoria(codigo="SERVICIOS", nombre="Servicios profesionales"),
        Categoria(codigo="MANTENIMIENTO", nombre="Mantenimiento"),
    ]
    session.add_all(registros)
    session.flush()
    print(f"  [OK] Categoria — {len(registros)} registros insertados.")
    return registros


def seed_proveedores(session) -> list[Proveedor]:
    if session.query(Proveedor).count() > 0:
        print("  [SKIP] Proveedor — table already has data.")
        return session.query(Proveedor).order_by(Proveedor.id).all()

    registros = [
        Proveedor(nombre="Papelería El Cid", nit="900123456-7", email_contacto="ventas@elcid.com"),
        Proveedor(nombre="Montajes y Vitrinas S.A.S.", nit="901234567-1", email_contacto="contacto@vitrinas.co"),
        Proveedor(nombre="Iluminación Escénica Ltda.", nit="800987654-3", telefono_contacto="604 444 1234"),
        Proveedor(nombre="Transportes de Arte Seguro", nit="830555111-9"),
    ]
    session.add_all(registros)
    session.flush()
    print(f"  [OK] Proveedor — {len(registros)} registros insertados.")
    return registros


def seed_presupuestos(
    session,
    usuarios: dict[str, Usuario],
    proyectos: list[Proyecto],
    areas: list[Area],
    categorias: list[Categoria],
) -> list[Presupuesto]:
    """Insert APPROVED budgets for the main (project, area) pairs."""
    if session.query(Presupuesto).count() > 0:
        print("  [SKIP] Presupuesto — table already has data.")
        return session.query(Presupuesto).order_by(Presupuesto.id).all()

    director = usuarios["DIRECTOR"]
    lider = usuarios["LEADER"]
    combinaciones = [
        (proyectos[0], areas[1], categorias[0], 120_000_000, "Montaje exposición Botero"),
        (proyectos[1], areas[0], categorias[1], 35_000_000, "Funcionamiento administrativo"),
        (proyectos[2], areas[2], categorias[2], 48_500_000, "Mediación educativa"),
    ]
    registros = []
    for seq, (proyecto, area, categoria, monto, titulo) in enumerate(combinaciones, start=1):
        registros.append(
            Presupuesto(
                codigo=f"BUD-{ANIO}-{seq:03d}",
                titulo=titulo,
                monto=_dec(monto),
                disponible=_dec(monto),
                anio=ANIO,
                estado="APPROVED",
                version=1,
                proyecto_id=proyecto.id,
                area_id=area.id,
                categoria_id=categoria.id,
                responsable_id=lider.id,
                creado_por_id=director.id,
                aprobado_por_id=lider.id,
            )
        )
    session.add_all(registros)
    session.flush()
    print(f"  [OK] Presupuesto — {len(registros)} registros insertados.")
    return registros


def seed_requerimientos(
    session,
    usuarios: dict[str, Usuario],
    presupuestos: list[Presupuesto],
    proveedores: list[Proveedor],
) -> None:
    """Insert a handful of requirements at different pipeline stages."""
    if session.query(Requerimiento).count() > 0:
        print("  [SKIP] Requerimiento — table already has data.")
        return

    solicitante = usuarios["USER"]
    datos = [
        ("Vitrinas para sala 3", presupuestos[0], proveedores[1], 18_500_000, "PENDING_APPROVAL", "PENDIENTE"),
        ("Resmas de papel y tóner", presupuestos[1], proveedores[0], 1_250_000, "APPROVED", "EN_TRAMITE"),
        ("Talleres de mediación", presupuestos[2], None, 6_000_000, "REJECTED", "ANULADO"),
    ]
    for titulo, presupuesto, proveedor, monto, estado, estado_adq in datos:
        requerimiento = Requerimiento(
            titulo=titulo,
            cantidad="1",
            anio=ANIO,
            categoria="COMPRA",
            monto_estimado=_dec(monto),
            monto_total=_dec(monto) if estado == "APPROVED" else None,
            estado=estado,
            estado_adquisicion=estado_adq,
            proyecto_id=presupuesto.proyecto_id,
            area_id=presupuesto.area_id,
            presupuesto_id=presupuesto.id,
            creado_por_id=solicitante.id,
            proveedor_id=proveedor.id if proveedor is not None else None,
        )
        session.add(requerimiento)
        session.flush()
        session.add(
            HistorialRequerimiento(
                requerimiento_id=requerimiento.id,
                accion="CREATED",
                detalles=f"Requerimiento creado por {solicitante.email} con 0 adjunto(s)",
            )
        )
    session.flush()
    print(f"  [OK] Requerimiento — {len(datos)} registros insertados.")


def main() -> None:
    """Run the complete seed process within a single database transaction."""
    print("=" * 60)
    print("  MisCompras — Seed Data Script")
    print(f"  Año: {ANIO}")
    print("=" * 60)

    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        print("\n[1/7] Usuarios...")
        usuarios = seed_usuarios(session)

        print("\n[2/7] Áreas...")
        areas = seed_areas(session, usuarios)

        print("\n[3/7] Proyectos...")
        proyectos = seed_proyectos(session)

        print("\n[4/7] Categorías...")
        categorias = seed_categorias(session)

        print("\n[5/7] Proveedores...")
        proveedores = seed_proveedores(session)

        print("\n[6/7] Presupuestos...")
        presupuestos = seed_presupuestos(session, usuarios, proyectos, areas, categorias)

        print("\n[7/7] Requerimientos...")
        seed_requerimientos(session, usuarios, presupuestos, proveedores)

        session.commit()
        print("\n" + "=" * 60)
        print("  Seed completado exitosamente.")
        print("=" * 60)

    except Exception as exc:
        session.rollback()
        print("\n[ERROR] Seed fallido — se hizo rollback.")
        print(f"  Detalle: {exc}")
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
