"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def _base_columns() -> list:
    return [
        sa.Column('id', sa.String(length=64), primary_key=True, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    # Create household_profiles table
    op.create_table(
        'household_profiles',
        *_base_columns(),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('citizenship', sa.String(length=50), nullable=True),
        sa.Column('employment_status', sa.String(length=50), nullable=True),
        sa.Column('has_disability', sa.Boolean(), nullable=True),
        sa.Column('is_pregnant', sa.Boolean(), nullable=True),
        sa.Column('has_children', sa.Boolean(), nullable=True),
        sa.Column('household_size', sa.Integer(), nullable=True),
        sa.Column('household_income', sa.Float(), nullable=True),
        sa.Column('income_period', sa.String(length=20), nullable=False, server_default='annual'),
        sa.Column('state', sa.String(length=50), nullable=True),
        sa.Column('county', sa.String(length=100), nullable=True),
        sa.Column('zip_code', sa.String(length=10), nullable=True),
        sa.Column('attributes', JSON_TYPE, nullable=False, server_default=sa.text("'{}'")),
    )

    # Create benefit_programs table
    op.create_table(
        'benefit_programs',
        *_base_columns(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('jurisdiction', sa.String(length=50), nullable=True),
        sa.Column('category', sa.String(length=50), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
    )
    op.create_index('ix_benefit_programs_name', 'benefit_programs', ['name'])
    op.create_index('ix_benefit_programs_active', 'benefit_programs', ['active'])

    # Create eligibility_rules table
    op.create_table(
        'eligibility_rules',
        *_base_columns(),
        sa.Column('program_id', sa.String(length=64), sa.ForeignKey('benefit_programs.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('rule_logic', JSON_TYPE, nullable=False),
        sa.Column('explanation', sa.Text(), nullable=True),
        sa.Column('required_fields', JSON_TYPE, nullable=False, server_default=sa.text("'[]'")),
        sa.Column('required_documents', JSON_TYPE, nullable=False, server_default=sa.text("'[]'")),
        sa.Column('next_steps', JSON_TYPE, nullable=False, server_default=sa.text("'[]'")),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('version', sa.String(length=20), nullable=True),
        sa.Column('effective_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expiration_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
    )
    op.create_index('ix_eligibility_rules_program_id', 'eligibility_rules', ['program_id'])

    # Create eligibility_results table (result cache)
    op.create_table(
        'eligibility_results',
        *_base_columns(),
        sa.Column('profile_id', sa.String(length=64), nullable=False),
        sa.Column('program_id', sa.String(length=64), nullable=False),
        sa.Column('rule_id', sa.String(length=64), nullable=False),
        sa.Column('rule_version', sa.String(length=20), nullable=True),
        sa.Column('eligible', sa.Boolean(), nullable=False),
        sa.Column('confidence', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('incomplete', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('needs_review', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('criteria_results', JSON_TYPE, nullable=True),
        sa.Column('missing_fields', JSON_TYPE, nullable=True),
        sa.Column('required_documents', JSON_TYPE, nullable=True),
        sa.Column('next_steps', JSON_TYPE, nullable=True),
        sa.Column('evaluated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('execution_time_ms', sa.Float(), nullable=False, server_default='0'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_eligibility_results_profile_id', 'eligibility_results', ['profile_id'])
    op.create_index('ix_eligibility_results_program_id', 'eligibility_results', ['program_id'])
    op.create_index('ix_eligibility_results_evaluated_at', 'eligibility_results', ['evaluated_at'])


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_index('ix_eligibility_results_evaluated_at', table_name='eligibility_results')
    op.drop_index('ix_eligibility_results_program_id', table_name='eligibility_results')
    op.drop_index('ix_eligibility_results_profile_id', table_name='eligibility_results')
    op.drop_table('eligibility_results')

    op.drop_index('ix_eligibility_rules_program_id', table_name='eligibility_rules')
    op.drop_table('eligibility_rules')

    op.drop_index('ix_benefit_programs_active', table_name='benefit_programs')
    op.drop_index('ix_benefit_programs_name', table_name='benefit_programs')
    op.drop_table('benefit_programs')

    op.drop_table('household_profiles')
