"""initial_schema

Revision ID: 4f2a9c1d7e10
Revises:
Create Date: 2026-10-19 10:12:03.418551

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f2a9c1d7e10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'user',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_user_email'), 'user', ['email'], unique=True)
    op.create_index(op.f('ix_user_role'), 'user', ['role'], unique=False)

    op.create_table(
        'sweet',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('price >= 0', name='check_price_positive'),
        sa.CheckConstraint('quantity >= 0', name='check_quantity_positive'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_sweet_category'), 'sweet', ['category'], unique=False)
    op.create_index(op.f('ix_sweet_price'), 'sweet', ['price'], unique=False)
    op.create_index(op.f('ix_sweet_created_at'), 'sweet', ['created_at'], unique=False)
    # Unicité du nom insensible à la casse
    op.create_index('uq_sweet_name_lower', 'sweet', [sa.text('lower(name)')], unique=True)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('uq_sweet_name_lower', table_name='sweet')
    op.drop_index(op.f('ix_sweet_created_at'), table_name='sweet')
    op.drop_index(op.f('ix_sweet_price'), table_name='sweet')
    op.drop_index(op.f('ix_sweet_category'), table_name='sweet')
    op.drop_table('sweet')
    op.drop_index(op.f('ix_user_role'), table_name='user')
    op.drop_index(op.f('ix_user_email'), table_name='user')
    op.drop_table('user')
