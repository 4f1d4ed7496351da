"""initial_schema

Crea todas las tablas de MisCompras: usuarios y catálogos, presupuestos,
requerimientos con sus grupos, adjuntos, pagos, historial, facturas y
notificaciones.

Revision ID: 3c9e1f0a7b21
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c9e1f0a7b21'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Usuarios y catálogos
    op.create_table(
        'usuario',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=100), nullable=True),
        sa.Column('email', sa.String(length=200), nullable=False),
        sa.Column('password_hash', sa.String(length=200), nullable=False),
        sa.Column('nombre_completo', sa.String(length=300), nullable=True),
        sa.Column('rol', sa.String(length=30), nullable=False),
        sa.Column('activo', sa.Boolean(), nullable=False),
        sa.Column('ultimo_acceso', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('username'),
    )
    op.create_table(
        'area',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('nombre', sa.String(length=200), nullable=False),
        sa.Column('director_id', sa.Integer(), nullable=True),
        sa.Column('activo', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['director_id'], ['usuario.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'proyecto',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('codigo', sa.String(length=30), nullable=False),
        sa.Column('nombre', sa.String(length=300), nullable=False),
        sa.Column('activo', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('codigo'),
    )
    op.create_table(
        'categoria',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('codigo', sa.String(length=30), nullable=False),
        sa.Column('nombre', sa.String(length=200), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('codigo'),
    )
    op.create_table(
        'proveedor',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('nombre', sa.String(length=300), nullable=False),
        sa.Column('nit', sa.String(length=30), nullable=True),
        sa.Column('email_contacto', sa.String(length=200), nullable=True),
        sa.Column('telefono_contacto', sa.String(length=50), nullable=True),
        sa.Column('direccion', sa.String(length=300), nullable=True),
        sa.Column('activo', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('nit'),
    )

    # Presupuestos
    op.create_table(
        'presupuesto',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('codigo', sa.String(length=50), nullable=False),
        sa.Column('titulo', sa.String(length=300), nullable=False),
        sa.Column('descripcion', sa.Text(), nullable=True),
        sa.Column('monto', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('disponible', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('anio', sa.Integer(), nullable=False),
        sa.Column('fecha_expiracion', sa.Date(), nullable=True),
        sa.Column('estado', sa.String(length=20), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('documento_url', sa.String(length=500), nullable=True),
        sa.Column('proyecto_id', sa.Integer(), nullable=False),
        sa.Column('area_id', sa.Integer(), nullable=False),
        sa.Column('categoria_id', sa.Integer(), nullable=True),
        sa.Column('responsable_id', sa.Integer(), nullable=True),
        sa.Column('creado_por_id', sa.Integer(), nullable=False),
        sa.Column('aprobado_por_id', sa.Integer(), nullable=True),
        sa.Column('aprobado_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['proyecto_id'], ['proyecto.id']),
        sa.ForeignKeyConstraint(['area_id'], ['area.id']),
        sa.ForeignKeyConstraint(['categoria_id'], ['categoria.id']),
        sa.ForeignKeyConstraint(['responsable_id'], ['usuario.id']),
        sa.ForeignKeyConstraint(['creado_por_id'], ['usuario.id']),
        sa.ForeignKeyConstraint(['aprobado_por_id'], ['usuario.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('codigo'),
    )
    op.create_index(op.f('ix_presupuesto_anio'), 'presupuesto', ['anio'])

    # Requerimientos
    op.create_table(
        'grupo_requerimiento',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('creador_id', sa.Integer(), nullable=False),
        sa.Column('pdf_url', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['creador_id'], ['usuario.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'requerimiento',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('titulo', sa.String(length=300), nullable=False),
        sa.Column('descripcion', sa.Text(), nullable=True),
        sa.Column('cantidad', sa.String(length=50), nullable=False),
        sa.Column('anio', sa.Integer(), nullable=False),
        sa.Column('grupo_id', sa.Integer(), nullable=True),
        sa.Column('es_asiento', sa.Boolean(), nullable=False),
        sa.Column('categoria', sa.String(length=30), nullable=False),
        sa.Column('monto_estimado', sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column('monto_total', sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column('monto_real', sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column('estado', sa.String(length=30), nullable=False),
        sa.Column('estado_adquisicion', sa.String(length=30), nullable=False),
        sa.Column('proyecto_id', sa.Integer(), nullable=False),
        sa.Column('area_id', sa.Integer(), nullable=False),
        sa.Column('presupuesto_id', sa.Integer(), nullable=True),
        sa.Column('creado_por_id', sa.Integer(), nullable=False),
        sa.Column('proveedor_id', sa.Integer(), nullable=True),
        sa.Column('nombre_proveedor_manual', sa.String(length=300), nullable=True),
        sa.Column('numero_orden_compra', sa.String(length=100), nullable=True),
        sa.Column('numero_factura', sa.String(length=100), nullable=True),
        sa.Column('fecha_entrega', sa.Date(), nullable=True),
        sa.Column('recibido_a_satisfaccion', sa.Boolean(), nullable=True),
        sa.Column('comentarios_satisfaccion', sa.Text(), nullable=True),
        sa.Column('tiene_pagos_multiples', sa.Boolean(), nullable=False),
        sa.Column('aprobacion_coordinador', sa.Boolean(), nullable=False),
        sa.Column('comentario_coordinador', sa.Text(), nullable=True),
        sa.Column('aprobacion_director', sa.Boolean(), nullable=False),
        sa.Column('comentario_director', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['grupo_id'], ['grupo_requerimiento.id']),
        sa.ForeignKeyConstraint(['proyecto_id'], ['proyecto.id']),
        sa.ForeignKeyConstraint(['area_id'], ['area.id']),
        sa.ForeignKeyConstraint(['presupuesto_id'], ['presupuesto.id']),
        sa.ForeignKeyConstraint(['creado_por_id'], ['usuario.id']),
        sa.ForeignKeyConstraint(['proveedor_id'], ['proveedor.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_requerimiento_anio'), 'requerimiento', ['anio'])
    op.create_index(op.f('ix_requerimiento_grupo_id'), 'requerimiento', ['grupo_id'])
    op.create_index(op.f('ix_requerimiento_area_id'), 'requerimiento', ['area_id'])
    op.create_index(op.f('ix_requerimiento_creado_por_id'), 'requerimiento', ['creado_por_id'])

    op.create_table(
        'adjunto',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('requerimiento_id', sa.Integer(), nullable=False),
        sa.Column('nombre_archivo', sa.String(length=300), nullable=False),
        sa.Column('archivo_url', sa.String(length=500), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['requerimiento_id'], ['requerimiento.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_adjunto_requerimiento_id'), 'adjunto', ['requerimiento_id'])

    op.create_table(
        'pago',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('requerimiento_id', sa.Integer(), nullable=False),
        sa.Column('numero_pago', sa.Integer(), nullable=False),
        sa.Column('monto', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('numero_factura', sa.String(length=100), nullable=True),
        sa.Column('fecha_pago', sa.Date(), nullable=True),
        sa.Column('observaciones', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['requerimiento_id'], ['requerimiento.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_pago_requerimiento_id'), 'pago', ['requerimiento_id'])

    op.create_table(
        'historial_requerimiento',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('requerimiento_id', sa.Integer(), nullable=False),
        sa.Column('grupo_id', sa.Integer(), nullable=True),
        sa.Column('accion', sa.String(length=50), nullable=False),
        sa.Column('detalles', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['requerimiento_id'], ['requerimiento.id']),
        sa.ForeignKeyConstraint(['grupo_id'], ['grupo_requerimiento.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        op.f('ix_historial_requerimiento_requerimiento_id'),
        'historial_requerimiento',
        ['requerimiento_id'],
    )

    # Facturas y notificaciones
    op.create_table(
        'factura',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('numero_factura', sa.String(length=100), nullable=False),
        sa.Column('proveedor_id', sa.Integer(), nullable=True),
        sa.Column('monto', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('fecha_emision', sa.Date(), nullable=False),
        sa.Column('fecha_vencimiento', sa.Date(), nullable=True),
        sa.Column('estado', sa.String(length=20), nullable=False),
        sa.Column('archivo_url', sa.String(length=500), nullable=False),
        sa.Column('requerimiento_id', sa.Integer(), nullable=True),
        sa.Column('creado_por_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['proveedor_id'], ['proveedor.id']),
        sa.ForeignKeyConstraint(['requerimiento_id'], ['requerimiento.id']),
        sa.ForeignKeyConstraint(['creado_por_id'], ['usuario.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'notificacion',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('usuario_id', sa.Integer(), nullable=False),
        sa.Column('titulo', sa.String(length=300), nullable=False),
        sa.Column('mensaje', sa.Text(), nullable=False),
        sa.Column('tipo', sa.String(length=20), nullable=False),
        sa.Column('leida', sa.Boolean(), nullable=False),
        sa.Column('requerimiento_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['usuario_id'], ['usuario.id']),
        sa.ForeignKeyConstraint(['requerimiento_id'], ['requerimiento.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_notificacion_usuario_id'), 'notificacion', ['usuario_id'])


def downgrade() -> None:
    op.drop_index(op.f('ix_notificacion_usuario_id'), table_name='notificacion')
    op.drop_table('notificacion')
    op.drop_table('factura')
    op.drop_index(
        op.f('ix_historial_requerimiento_requerimiento_id'),
        table_name='historial_requerimiento',
    )
    op.drop_table('historial_requerimiento')
    op.drop_index(op.f('ix_pago_requerimiento_id'), table_name='pago')
    op.drop_table('pago')
    op.drop_index(op.f('ix_adjunto_requerimiento_id'), table_name='adjunto')
    op.drop_table('adjunto')
    op.drop_index(op.f('ix_requerimiento_creado_por_id'), table_name='requerimiento')
    op.drop_index(op.f('ix_requerimiento_area_id'), table_name='requerimiento')
    op.drop_index(op.f('ix_requerimiento_grupo_id'), table_name='requerimiento')
    op.drop_index(op.f('ix_requerimiento_anio'), table_name='requerimiento')
    op.drop_table('requerimiento')
    op.drop_table('grupo_requerimiento')
    op.drop_index(op.f('ix_presupuesto_anio'), table_name='presupuesto')
    op.drop_table('presupuesto')
    op.drop_table('proveedor')
    op.drop_table('categoria')
    op.drop_table('proyecto')
    op.drop_table('area')
    op.drop_table('usuario')
