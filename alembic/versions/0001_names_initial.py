"""names initial schema

Revision ID: 0001_names_initial
Revises:
Create Date: 2026-10-17 00:00:00.000000
"""
from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = '0001_names_initial'
down_revision = None
branch_labels = None
depends_on = None

LANGUAGES = [
    {'code': 'en', 'label': 'English'},
    {'code': 'ta', 'label': 'Tamil'},
    {'code': 'fr', 'label': 'French'},
]


def upgrade() -> None:
    language = op.create_table(
        'language',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=8), nullable=False),
        sa.Column('label', sa.String(length=64), nullable=True),
    )
    op.create_index('ix_language_code', 'language', ['code'], unique=True)

    op.create_table(
        'name',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('canonical_key', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_name_canonical_key', 'name', ['canonical_key'], unique=True)

    op.create_table(
        'name_variant',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name_id', sa.Integer(), sa.ForeignKey('name.id', ondelete='CASCADE'), nullable=False),
        sa.Column('language_id', sa.Integer(), sa.ForeignKey('language.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('variant_name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('name_id', 'language_id', 'variant_name', name='uq_name_variant_name_lang_value'),
    )
    op.create_index('ix_name_variant_name_id', 'name_variant', ['name_id'])
    op.create_index('ix_name_variant_language_id', 'name_variant', ['language_id'])
    op.create_index('ix_name_variant_variant_name', 'name_variant', ['variant_name'])

    op.create_table(
        'name_meaning',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name_id', sa.Integer(), sa.ForeignKey('name.id', ondelete='CASCADE'), nullable=False),
        sa.Column('language_id', sa.Integer(), sa.ForeignKey('language.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('meaning', sa.String(length=1000), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('name_id', 'language_id', 'meaning', name='uq_name_meaning_name_lang_value'),
    )
    op.create_index('ix_name_meaning_name_id', 'name_meaning', ['name_id'])
    op.create_index('ix_name_meaning_language_id', 'name_meaning', ['language_id'])

    op.create_table(
        'name_search',
        sa.Column('name_id', sa.Integer(), sa.ForeignKey('name.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('tamil', sa.String(length=255), nullable=True),
        sa.Column('english', sa.JSON(), nullable=True),
        sa.Column('french', sa.JSON(), nullable=True),
        sa.Column('meaning_by_lang', sa.JSON(), nullable=True),
        sa.Column('search_blob', sa.Text(), nullable=False),
        sa.Column('refreshed_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'publish_audit',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('actor', sa.String(length=128), nullable=True),
        sa.Column('source', sa.String(length=100), nullable=True),
        sa.Column('total_rows', sa.Integer(), nullable=False),
        sa.Column('inserted', sa.Integer(), nullable=False),
        sa.Column('duplicates', sa.Integer(), nullable=False),
        sa.Column('sample_keys', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_publish_audit_actor', 'publish_audit', ['actor'])
    op.create_index('ix_publish_audit_created_at', 'publish_audit', ['created_at'])

    op.bulk_insert(language, LANGUAGES)


def downgrade() -> None:
    op.drop_table('publish_audit')
    op.drop_table('name_search')
    op.drop_table('name_meaning')
    op.drop_table('name_variant')
    op.drop_table('name')
    op.drop_index('ix_language_code', table_name='language')
    op.drop_table('language')
