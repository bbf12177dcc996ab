"""Initial contract analysis schema.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

Creates the contracts, clauses, contract_templates, user_templates,
glossary_terms and audit_trail tables with their enum types.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None

contract_type = postgresql.ENUM(
    'employment_agreement', 'vendor_contract', 'lease_agreement',
    'partnership_deed', 'service_contract', 'other',
    name='contract_type', create_type=False,
)
risk_level = postgresql.ENUM('low', 'medium', 'high', 'critical', name='risk_level', create_type=False)
clause_category = postgresql.ENUM(
    'obligations', 'rights', 'prohibitions', 'termination', 'indemnity', 'liability',
    'confidentiality', 'ip_transfer', 'non_compete', 'auto_renewal', 'payment',
    'dispute_resolution', 'other',
    name='clause_category', create_type=False,
)
audit_action = postgresql.ENUM(
    'upload', 'analyze', 'export', 'template_generated', 'clause_edited', 'version_created',
    name='audit_action', create_type=False,
)
analysis_status = postgresql.ENUM(
    'pending', 'analyzing', 'completed', 'failed', name='analysis_status', create_type=False,
)

ENUMS = (contract_type, risk_level, clause_category, audit_action, analysis_status)


def _timestamps(updated: bool = True) -> list:
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())]
    if updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())
        )
    return columns


def upgrade() -> None:
    """Create enum types, then the six tables."""
    bind = op.get_bind()
    for enum_type in ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        'contracts',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('file_name', sa.String(), nullable=False),
        sa.Column('file_path', sa.String(), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=True),
        sa.Column('contract_type', contract_type, nullable=True),
        sa.Column('language', sa.String(), nullable=True, server_default='en'),
        sa.Column('parties', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('effective_date', sa.Date(), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('jurisdiction', sa.String(), nullable=True),
        sa.Column('composite_risk_score', sa.Integer(), nullable=True,
                  comment='0-100, banded into risk_level'),
        sa.Column('risk_level', risk_level, nullable=True),
        sa.Column('executive_summary', sa.Text(), nullable=True),
        sa.Column('analysis_status', analysis_status, nullable=False, server_default='pending'),
        sa.Column('analysis_lease_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('analyzed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('composite_risk_score BETWEEN 0 AND 100', name='ck_contracts_risk_score'),
    )
    op.create_index('ix_contracts_user_id', 'contracts', ['user_id'])
    op.create_index('ix_contracts_user_created', 'contracts', ['user_id', 'created_at'])

    op.create_table(
        'clauses',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('contract_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('contracts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('clause_number', sa.Integer(), nullable=False, comment='1-based, unique per contract'),
        sa.Column('original_text', sa.Text(), nullable=False),
        sa.Column('plain_explanation', sa.Text(), nullable=True),
        sa.Column('risk_rationale', sa.Text(), nullable=True),
        sa.Column('risk_score', sa.Integer(), nullable=True),
        sa.Column('risk_level', risk_level, nullable=True),
        sa.Column('category', clause_category, nullable=True),
        sa.Column('suggested_alternative', sa.Text(), nullable=True),
        sa.Column('negotiation_script', sa.Text(), nullable=True),
        sa.Column('compliance_flags', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('similarity_score', sa.Integer(), nullable=True),
        sa.Column('is_flagged', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint('contract_id', 'clause_number', name='uq_clauses_contract_number'),
        sa.CheckConstraint('risk_score BETWEEN 0 AND 100', name='ck_clauses_risk_score'),
    )
    op.create_index('ix_clauses_contract_id', 'clauses', ['contract_id'])

    op.create_table(
        'contract_templates',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('contract_type', contract_type, nullable=False),
        sa.Column('content', sa.Text(), nullable=False, comment='Body with {{variable}} placeholders'),
        sa.Column('variables', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('risk_posture', sa.String(), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'user_templates',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('template_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('contract_templates.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('variables_filled', postgresql.JSONB(), nullable=False, server_default='{}'),
        *_timestamps(),
    )
    op.create_index('ix_user_templates_user_id', 'user_templates', ['user_id'])

    op.create_table(
        'glossary_terms',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('term', sa.String(), nullable=False),
        sa.Column('definition_en', sa.Text(), nullable=False),
        sa.Column('definition_hi', sa.Text(), nullable=True),
        sa.Column('example_usage', sa.Text(), nullable=True),
        sa.Column('category', sa.String(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index('ix_glossary_terms_term', 'glossary_terms', ['term'])

    op.create_table(
        'audit_trail',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('contract_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('contracts.id', ondelete='SET NULL'), nullable=True),
        sa.Column('action', audit_action, nullable=False),
        sa.Column('action_details', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('ip_address', sa.String(), nullable=True),
        sa.Column('user_agent', sa.String(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index('ix_audit_trail_user_id', 'audit_trail', ['user_id'])
    op.create_index('ix_audit_trail_contract_id', 'audit_trail', ['contract_id'])


def downgrade() -> None:
    """Drop the tables, then their enum types."""
    op.drop_table('audit_trail')
    op.drop_table('glossary_terms')
    op.drop_table('user_templates')
    op.drop_table('contract_templates')
    op.drop_table('clauses')
    op.drop_table('contracts')

    bind = op.get_bind()
    for enum_type in reversed(ENUMS):
        enum_type.drop(bind, checkfirst=True)
