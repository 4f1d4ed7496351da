"""budget_adjustments

Agrega las solicitudes de ajuste presupuestal (aumentos y movimientos) y
sus presupuestos de origen.

Revision ID: 8d4b2f6e1c53
Revises: 3c9e1f0a7b21
Create Date: 2026-11-02 10:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '8d4b2f6e1c53'
down_revision: Union[str, None] = '3c9e1f0a7b21'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'ajuste_presupuesto',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('codigo', sa.String(length=30), nullable=False),
        sa.Column('tipo', sa.String(length=20), nullable=False),
        sa.Column('presupuesto_id', sa.Integer(), nullable=False),
        sa.Column('monto_solicitado', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('motivo', sa.Text(), nullable=False),
        sa.Column('estado', sa.String(length=20), nullable=False),
        sa.Column('documento_url', sa.String(length=500), nullable=True),
        sa.Column('solicitado_por_id', sa.Integer(), nullable=False),
        sa.Column('revisado_por_id', sa.Integer(), nullable=True),
        sa.Column('revisado_at', sa.DateTime(), nullable=True),
        sa.Column('comentario_revision', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['presupuesto_id'], ['presupuesto.id']),
        sa.ForeignKeyConstraint(['solicitado_por_id'], ['usuario.id']),
        sa.ForeignKeyConstraint(['revisado_por_id'], ['usuario.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('codigo'),
    )
    op.create_index(
        op.f('ix_ajuste_presupuesto_presupuesto_id'), 'ajuste_presupuesto', ['presupuesto_id']
    )
    op.create_table(
        'ajuste_origen',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('ajuste_id', sa.Integer(), nullable=False),
        sa.Column('presupuesto_id', sa.Integer(), nullable=False),
        sa.Column('monto', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.ForeignKeyConstraint(['ajuste_id'], ['ajuste_presupuesto.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['presupuesto_id'], ['presupuesto.id']),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    op.drop_table('ajuste_origen')
    op.drop_index(
        op.f('ix_ajuste_presupuesto_presupuesto_id'), table_name='ajuste_presupuesto'
    )
    op.drop_table('ajuste_presupuesto')
