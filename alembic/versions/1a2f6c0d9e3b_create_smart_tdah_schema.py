"""create_smart_tdah_schema

Revision ID: 1a2f6c0d9e3b
Revises:
Create Date: 2025-06-02 10:14:52.411207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '1a2f6c0d9e3b'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'alumnos',
        sa.Column('id_alumno', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=100), nullable=False),
        sa.Column('nombre', sa.String(length=50), nullable=False),
        sa.Column('apellidos', sa.String(length=100), nullable=False),
        sa.Column('genero', sa.String(length=10), nullable=True),
        sa.Column('curso', sa.String(length=20), nullable=True),
        sa.PrimaryKeyConstraint('id_alumno'),
        sa.UniqueConstraint('email'),
    )
    op.create_index(op.f('ix_alumnos_id_alumno'), 'alumnos', ['id_alumno'], unique=False)

    op.create_table(
        'ejercicios',
        sa.Column('id_ejercicio', sa.Integer(), nullable=False),
        sa.Column('id_alumno', sa.Integer(), nullable=False),
        sa.Column('aciertos', sa.Integer(), nullable=False),
        sa.Column('fallos', sa.Integer(), nullable=False),
        sa.Column('letras_correctas', sa.Integer(), nullable=False),
        sa.Column('date_inicio', sa.TIMESTAMP(), nullable=False),
        sa.Column('date_fin', sa.TIMESTAMP(), nullable=False),
        # Fácil / Normal / Difícil
        sa.Column('dificultad', sa.String(length=50), nullable=False),
        sa.Column('tipo_ejercicio', sa.String(length=50), nullable=False),
        sa.ForeignKeyConstraint(['id_alumno'], ['alumnos.id_alumno']),
        sa.PrimaryKeyConstraint('id_ejercicio'),
    )
    op.create_index(op.f('ix_ejercicios_id_ejercicio'), 'ejercicios', ['id_ejercicio'], unique=False)
    op.create_index(op.f('ix_ejercicios_id_alumno'), 'ejercicios', ['id_alumno'], unique=False)

    op.create_table(
        'profesores',
        sa.Column('id_profesor', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=100), nullable=False),
        sa.Column('nombre', sa.String(length=50), nullable=False),
        sa.Column('apellidos', sa.String(length=100), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('puede_gestionar_alumnos', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.PrimaryKeyConstraint('id_profesor'),
        sa.UniqueConstraint('email'),
    )
    op.create_index(op.f('ix_profesores_id_profesor'), 'profesores', ['id_profesor'], unique=False)

    op.create_table(
        'admins',
        sa.Column('id_admin', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=100), nullable=False),
        sa.Column('nombre', sa.String(length=50), nullable=False),
        sa.Column('apellidos', sa.String(length=100), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint('id_admin'),
        sa.UniqueConstraint('email'),
    )
    op.create_index(op.f('ix_admins_id_admin'), 'admins', ['id_admin'], unique=False)

    op.create_table(
        'profesor_alumno',
        sa.Column('id_profesor', sa.Integer(), nullable=False),
        sa.Column('id_alumno', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['id_profesor'], ['profesores.id_profesor'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['id_alumno'], ['alumnos.id_alumno'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id_profesor', 'id_alumno'),
    )


def downgrade() -> None:
    op.drop_table('profesor_alumno')
    op.drop_index(op.f('ix_admins_id_admin'), table_name='admins')
    op.drop_table('admins')
    op.drop_index(op.f('ix_profesores_id_profesor'), table_name='profesores')
    op.drop_table('profesores')
    op.drop_index(op.f('ix_ejercicios_id_alumno'), table_name='ejercicios')
    op.drop_index(op.f('ix_ejercicios_id_ejercicio'), table_name='ejercicios')
    op.drop_table('ejercicios')
    op.drop_index(op.f('ix_alumnos_id_alumno'), table_name='alumnos')
    op.drop_table('alumnos')
