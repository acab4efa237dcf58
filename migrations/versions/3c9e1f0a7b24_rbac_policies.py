"""rbac policies

Revision ID: 3c9e1f0a7b24
Revises:
Create Date: 2026-10-19 09:12:41.118305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c9e1f0a7b24'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DIMENSION_TABLES = ('roles', 'permissions', 'resources', 'scopes')


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column('is_deleted', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_by', sa.UUID(), nullable=True),
        sa.Column('updated_by', sa.UUID(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['updated_by'], ['users.id'], ondelete='SET NULL'),
    ]


def upgrade() -> None:
    # Users table (audit target only)
    op.create_table('users',
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('email', sa.String(length=255), nullable=False),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    # Dimension tables
    for table in DIMENSION_TABLES:
        op.create_table(table,
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=False),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f(f'ix_{table}_is_deleted'), table, ['is_deleted'], unique=False)
        op.create_index(op.f(f'ix_{table}_created_by'), table, ['created_by'], unique=False)
        # Names are unique among live rows only
        op.create_index(
            f'uq_{table}_active_name', table, ['name'], unique=True,
            postgresql_where=sa.text('NOT is_deleted'),
        )

    # Policies table
    op.create_table('policies',
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('role_id', sa.UUID(), nullable=False),
    sa.Column('permission_id', sa.UUID(), nullable=False),
    sa.Column('resource_id', sa.UUID(), nullable=False),
    sa.Column('scope_id', sa.UUID(), nullable=False),
    *_audit_columns(),
    sa.ForeignKeyConstraint(['role_id'], ['roles.id'], ondelete='NO ACTION'),
    sa.ForeignKeyConstraint(['permission_id'], ['permissions.id'], ondelete='NO ACTION'),
    sa.ForeignKeyConstraint(['resource_id'], ['resources.id'], ondelete='NO ACTION'),
    sa.ForeignKeyConstraint(['scope_id'], ['scopes.id'], ondelete='NO ACTION'),
    sa.PrimaryKeyConstraint('id'),
    # Covers soft-deleted rows too
    sa.UniqueConstraint('role_id', 'permission_id', 'resource_id', 'scope_id', name='uq_policy_tuple')
    )
    op.create_index(op.f('ix_policies_role_id'), 'policies', ['role_id'], unique=False)
    op.create_index(op.f('ix_policies_is_deleted'), 'policies', ['is_deleted'], unique=False)
    op.create_index(op.f('ix_policies_created_by'), 'policies', ['created_by'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_policies_created_by'), table_name='policies')
    op.drop_index(op.f('ix_policies_is_deleted'), table_name='policies')
    op.drop_index(op.f('ix_policies_role_id'), table_name='policies')
    op.drop_table('policies')
    for table in reversed(DIMENSION_TABLES):
        op.drop_index(f'uq_{table}_active_name', table_name=table)
        op.drop_index(op.f(f'ix_{table}_created_by'), table_name=table)
        op.drop_index(op.f(f'ix_{table}_is_deleted'), table_name=table)
        op.drop_table(table)
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
