"""add prompt components and presets

Revision ID: 001_prompt_components_presets
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_prompt_components_presets'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'prompt_components',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('owner_id', sa.String(length=255), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('usage_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "kind IN ('role', 'style', 'context', 'mode')",
            name='ck_prompt_components_kind',
        ),
        sa.CheckConstraint('usage_count >= 0', name='ck_prompt_components_usage_count'),
    )
    op.create_index('ix_prompt_components_owner_id', 'prompt_components', ['owner_id'])
    op.create_index('ix_prompt_components_owner_kind', 'prompt_components', ['owner_id', 'kind'])

    op.create_table(
        'prompt_presets',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('owner_id', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('role_component_id', sa.Uuid(), nullable=True),
        sa.Column('style_component_id', sa.Uuid(), nullable=True),
        sa.Column('context_component_id', sa.Uuid(), nullable=True),
        sa.Column('mode_component_id', sa.Uuid(), nullable=True),
        sa.Column('usage_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['role_component_id'], ['prompt_components.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['style_component_id'], ['prompt_components.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['context_component_id'], ['prompt_components.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['mode_component_id'], ['prompt_components.id'], ondelete='SET NULL'),
        sa.CheckConstraint('usage_count >= 0', name='ck_prompt_presets_usage_count'),
    )
    op.create_index('ix_prompt_presets_owner_id', 'prompt_presets', ['owner_id'])
    for slot in ('role', 'style', 'context', 'mode'):
        op.create_index(
            f'ix_prompt_presets_{slot}_component_id', 'prompt_presets', [f'{slot}_component_id']
        )


def downgrade() -> None:
    for slot in ('role', 'style', 'context', 'mode'):
        op.drop_index(f'ix_prompt_presets_{slot}_component_id', table_name='prompt_presets')
    op.drop_index('ix_prompt_presets_owner_id', table_name='prompt_presets')
    op.drop_table('prompt_presets')
    op.drop_index('ix_prompt_components_owner_kind', table_name='prompt_components')
    op.drop_index('ix_prompt_components_owner_id', table_name='prompt_components')
    op.drop_table('prompt_components')
