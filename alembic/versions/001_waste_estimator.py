"""Waste Estimator - initial schema

Revision ID: 001_waste_estimator
Revises:
Create Date: 2025-01-15

Implements:
- Administrative hierarchy (zilla panchayats, blocks, gram panchayats, wards)
- Collectors
- Waste estimations
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = '001_waste_estimator'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'zilla_panchayats',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(50), nullable=False, unique=True),
        sa.Column('state', sa.String(100), nullable=False),
        sa.Column('district', sa.String(100), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'blocks',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(50), nullable=False, unique=True),
        sa.Column('zilla_id', sa.String(36),
                  sa.ForeignKey('zilla_panchayats.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(),
    )
    op.create_index('idx_blocks_zilla', 'blocks', ['zilla_id'])

    op.create_table(
        'gram_panchayats',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(50), nullable=False, unique=True),
        sa.Column('block_id', sa.String(36),
                  sa.ForeignKey('blocks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('population', sa.Integer(), nullable=True),
        sa.Column('area', sa.Float(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('population IS NULL OR population >= 0',
                           name='gram_panchayats_population_non_negative'),
    )
    op.create_index('idx_gram_panchayats_block', 'gram_panchayats', ['block_id'])
    op.create_index('idx_gram_panchayats_name', 'gram_panchayats', ['name'])

    op.create_table(
        'wards',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('ward_number', sa.Integer(), nullable=False),
        sa.Column('panchayat_id', sa.String(36),
                  sa.ForeignKey('gram_panchayats.id', ondelete='CASCADE'), nullable=False),
        sa.Column('households', sa.Integer(), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_wards_panchayat', 'wards', ['panchayat_id'])

    op.create_table(
        'collectors',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(32), nullable=False, unique=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='COLLECTOR'),
        sa.Column('panchayat_id', sa.String(36),
                  sa.ForeignKey('gram_panchayats.id', ondelete='CASCADE'), nullable=False),
        sa.Column('ward_id', sa.String(36),
                  sa.ForeignKey('wards.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("role IN ('COLLECTOR', 'SUPERVISOR')", name='collectors_role_valid'),
    )
    op.create_index('idx_collectors_panchayat', 'collectors', ['panchayat_id'])

    op.create_table(
        'waste_estimations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('panchayat_id', sa.String(36), sa.ForeignKey('gram_panchayats.id'), nullable=False),
        sa.Column('ward_id', sa.String(36), sa.ForeignKey('wards.id'), nullable=False),
        sa.Column('collector_id', sa.String(36), sa.ForeignKey('collectors.id'), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('image_name', sa.String(255), nullable=True),
        sa.Column('image_size', sa.Integer(), nullable=True),
        sa.Column('container_type', sa.String(100), nullable=True),
        sa.Column('container_volume_liters', sa.Float(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('material_type', sa.String(50), nullable=False),
        sa.Column('estimated_volume_liters', sa.Float(), nullable=False),
        sa.Column('density_kg_per_l', sa.Float(), nullable=False),
        sa.Column('estimated_weight_kg', sa.Float(), nullable=False),
        sa.Column('fullness_percent', sa.Float(), nullable=True),
        sa.Column('moisture_level', sa.String(10), nullable=True),
        sa.Column('contamination_level', sa.Float(), nullable=True),
        sa.Column('image_quality', sa.String(10), nullable=False),
        sa.Column('confidence', sa.Float(), nullable=False),
        sa.Column('ai_reasoning', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('collection_date', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "material_type IN ('mixed_msw', 'plastic', 'paper', 'glass', 'metal', 'organic', "
            "'textiles', 'e_waste', 'construction_debris', 'rubber', 'wood')",
            name='waste_estimations_material_valid',
        ),
        sa.CheckConstraint("moisture_level IS NULL OR moisture_level IN ('dry', 'moist', 'wet')",
                           name='waste_estimations_moisture_valid'),
        sa.CheckConstraint("image_quality IN ('good', 'medium', 'poor')",
                           name='waste_estimations_image_quality_valid'),
        sa.CheckConstraint("status IN ('PENDING', 'VERIFIED', 'REJECTED')",
                           name='waste_estimations_status_valid'),
        sa.CheckConstraint('confidence >= 0 AND confidence <= 1',
                           name='waste_estimations_confidence_range'),
        sa.CheckConstraint('estimated_volume_liters >= 0',
                           name='waste_estimations_volume_non_negative'),
    )
    op.create_index('idx_waste_estimations_panchayat', 'waste_estimations', ['panchayat_id'])
    op.create_index('idx_waste_estimations_ward', 'waste_estimations', ['ward_id'])
    op.create_index('idx_waste_estimations_collector', 'waste_estimations', ['collector_id'])
    op.create_index('idx_waste_estimations_collection_date', 'waste_estimations', ['collection_date'])
    op.create_index('idx_waste_estimations_status', 'waste_estimations', ['status'])


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_table('waste_estimations')
    op.drop_table('collectors')
    op.drop_table('wards')
    op.drop_table('gram_panchayats')
    op.drop_table('blocks')
    op.drop_table('zilla_panchayats')
