"""Create patient, transaction and interface tables

Revision ID: 3f9c2a1d7b40
Revises: 
Create Date: 2026-10-19 09:12:44.520318

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c2a1d7b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SENSITIVE = 'Encrypted - HIPAA sensitive'


def _id() -> sa.Column:
    return sa.Column('id', sa.String(length=36), nullable=False)


def _patient_id() -> sa.Column:
    return sa.Column(
        'patient_id',
        sa.String(length=36),
        sa.ForeignKey('patients.id', ondelete='CASCADE'),
        nullable=False,
    )


def _timestamp(name: str, comment: str | None = None) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text('now()'),
        comment=comment,
    )


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'patients',
        _id(),
        sa.Column('user_id', sa.String(length=255), nullable=False, comment='Owning user ID'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('given_name', sa.Text(), nullable=False),
        sa.Column('family_name', sa.Text(), nullable=False),
        sa.Column('gender', sa.Text(), nullable=True),
        sa.Column('birth_date', sa.Text(), nullable=True, comment=SENSITIVE),
        sa.Column('ssn', sa.Text(), nullable=True, comment=SENSITIVE),
        _timestamp('created_at', 'Record creation timestamp'),
        _timestamp('updated_at', 'Record last update timestamp'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_patients_user_id'), 'patients', ['user_id'], unique=False)

    op.create_table(
        'patient_telecoms',
        _id(),
        _patient_id(),
        sa.Column('system', sa.String(length=20), nullable=False, comment="'phone' | 'email'"),
        sa.Column('value', sa.Text(), nullable=True, comment=SENSITIVE),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'patient_addresses',
        _id(),
        _patient_id(),
        sa.Column('line1', sa.Text(), nullable=True, comment=SENSITIVE),
        sa.Column('line2', sa.Text(), nullable=True, comment=SENSITIVE),
        sa.Column('city', sa.Text(), nullable=True),
        sa.Column('state', sa.Text(), nullable=True),
        sa.Column('postal_code', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'insurances',
        _id(),
        _patient_id(),
        sa.Column('type', sa.String(length=20), nullable=False, comment="'Primary' | 'Secondary'"),
        sa.Column('provider', sa.Text(), nullable=False),
        sa.Column('policy_number', sa.Text(), nullable=True, comment=SENSITIVE),
        sa.Column('group_number', sa.Text(), nullable=True, comment=SENSITIVE),
        sa.Column('subscriber_id', sa.Text(), nullable=True, comment=SENSITIVE),
        sa.Column('subscriber_name', sa.Text(), nullable=True),
        sa.Column('relationship', sa.Text(), nullable=True),
        sa.Column('effective_date', sa.Text(), nullable=True),
        sa.Column('expiration_date', sa.Text(), nullable=True),
        sa.Column('deductible', sa.Text(), nullable=True),
        sa.Column('deductible_met', sa.Text(), nullable=True),
        sa.Column('max_benefit', sa.Text(), nullable=True),
        sa.Column('preventive_coverage', sa.Text(), nullable=True),
        sa.Column('basic_coverage', sa.Text(), nullable=True),
        sa.Column('major_coverage', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'appointments',
        _id(),
        _patient_id(),
        sa.Column('date', sa.Text(), nullable=False),
        sa.Column('time', sa.Text(), nullable=False),
        sa.Column('type', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('provider', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'treatments',
        _id(),
        _patient_id(),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('date', sa.Text(), nullable=False),
        sa.Column('cost', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'ai_call_history',
        _id(),
        _patient_id(),
        sa.Column('topic', sa.Text(), nullable=False),
        sa.Column('date', sa.Text(), nullable=False),
        sa.Column('time', sa.Text(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('duration', sa.Text(), nullable=True),
        sa.Column('agent', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'verification_statuses',
        _id(),
        _patient_id(),
        sa.Column('fetch_pms', sa.String(length=20), nullable=False),
        sa.Column('document_analysis', sa.String(length=20), nullable=False),
        sa.Column('api_verification', sa.String(length=20), nullable=False),
        sa.Column('call_center', sa.String(length=20), nullable=False),
        sa.Column('save_to_pms', sa.String(length=20), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('patient_id'),
    )
    for table in ('patient_telecoms', 'patient_addresses', 'insurances', 'appointments', 'treatments', 'ai_call_history'):
        op.create_index(op.f(f'ix_{table}_patient_id'), table, ['patient_id'], unique=False)

    op.create_table(
        'coverage_details',
        _id(),
        _patient_id(),
        sa.Column('annual_maximum', sa.Numeric(10, 2), nullable=True),
        sa.Column('annual_used', sa.Numeric(10, 2), nullable=True),
        sa.Column('deductible', sa.Numeric(10, 2), nullable=True),
        sa.Column('deductible_met', sa.Numeric(10, 2), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_coverage_details_patient_id'), 'coverage_details', ['patient_id'], unique=False)
    op.create_table(
        'procedures',
        _id(),
        sa.Column('coverage_id', sa.String(length=36), sa.ForeignKey('coverage_details.id', ondelete='CASCADE'), nullable=False),
        sa.Column('code', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('category', sa.Text(), nullable=False),
        sa.Column('coverage', sa.Text(), nullable=True),
        sa.Column('estimated_cost', sa.Text(), nullable=True),
        sa.Column('patient_pays', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_procedures_coverage_id'), 'procedures', ['coverage_id'], unique=False)
    op.create_table(
        'coverage_by_code',
        _id(),
        _patient_id(),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('sai_code', sa.Text(), nullable=True),
        sa.Column('ref_ins_code', sa.Text(), nullable=True),
        sa.Column('category', sa.Text(), nullable=True),
        sa.Column('field_name', sa.Text(), nullable=True),
        sa.Column('pre_step_value', sa.Text(), nullable=True),
        sa.Column('verified', sa.Boolean(), nullable=True),
        sa.Column('verified_by', sa.Text(), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('coverage_data', sa.Text(), nullable=True, comment='JSON string of complete coverage data'),
        _timestamp('timestamp'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_coverage_by_code_patient_id'), 'coverage_by_code', ['patient_id'], unique=False)

    # Transaction log
    op.create_table(
        'transactions',
        _id(),
        sa.Column('request_id', sa.String(length=64), nullable=False, comment='Human-readable request ID'),
        _patient_id(),
        sa.Column('stage_type', sa.String(length=10), nullable=False, comment='FETCH | API | FAX | CALL | SAVE'),
        sa.Column('method', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, comment='Waiting | SUCCESS | PARTIAL | FAILED'),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=True, comment='NULL until started'),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration', sa.Text(), nullable=True),
        sa.Column('patient_name', sa.Text(), nullable=False),
        sa.Column('insurance_provider', sa.Text(), nullable=True),
        sa.Column('insurance_rep', sa.Text(), nullable=True),
        sa.Column('run_by', sa.Text(), nullable=True),
        sa.Column('verification_score', sa.Integer(), nullable=True),
        sa.Column('fetch_status', sa.Text(), nullable=True),
        sa.Column('save_status', sa.Text(), nullable=True),
        sa.Column('response_code', sa.Text(), nullable=True),
        sa.Column('endpoint', sa.Text(), nullable=True),
        sa.Column('phone_number', sa.Text(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('eligibility_check', sa.Text(), nullable=True),
        sa.Column('benefits_verification', sa.Text(), nullable=True),
        sa.Column('coverage_details', sa.Text(), nullable=True),
        sa.Column('deductible_info', sa.Text(), nullable=True),
        sa.Column('transcript', sa.Text(), nullable=True),
        sa.Column('raw_response', sa.Text(), nullable=True),
        _timestamp('created_at', 'Record creation timestamp'),
        _timestamp('updated_at', 'Record last update timestamp'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_transactions_request_id'), 'transactions', ['request_id'], unique=False)
    op.create_index(op.f('ix_transactions_patient_id'), 'transactions', ['patient_id'], unique=False)
    op.create_index(op.f('ix_transactions_status'), 'transactions', ['status'], unique=False)
    op.create_index('idx_transactions_patient_start', 'transactions', ['patient_id', 'start_time'], unique=False)

    op.create_table(
        'call_communications',
        _id(),
        sa.Column('transaction_id', sa.String(length=36), sa.ForeignKey('transactions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('timestamp', sa.Text(), nullable=False),
        sa.Column('speaker', sa.String(length=20), nullable=False, comment="'AI' | 'InsuranceRep' | 'System'"),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('message_type', sa.String(length=20), nullable=False, comment='question | answer | confirmation | hold | transfer | note'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_call_communications_transaction_id'), 'call_communications', ['transaction_id'], unique=False)
    op.create_table(
        'transaction_data_verified',
        _id(),
        sa.Column('transaction_id', sa.String(length=36), sa.ForeignKey('transactions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('item', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_transaction_data_verified_transaction_id'), 'transaction_data_verified', ['transaction_id'], unique=False)

    # Interface tables (no FK to transactions or patients)
    op.create_table(
        'if_call_transaction_list',
        _id(),
        sa.Column('transaction_id', sa.String(length=36), nullable=False, comment='Original transaction ID (no FK)'),
        sa.Column('request_id', sa.String(length=64), nullable=False),
        sa.Column('patient_id', sa.String(length=36), nullable=False, comment='Patient ID (no FK)'),
        sa.Column('patient_name', sa.Text(), nullable=False),
        sa.Column('insurance_provider', sa.Text(), nullable=True),
        sa.Column('policy_number', sa.Text(), nullable=True, comment=SENSITIVE),
        sa.Column('group_number', sa.Text(), nullable=True, comment=SENSITIVE),
        sa.Column('subscriber_id', sa.Text(), nullable=True, comment=SENSITIVE),
        sa.Column('phone_number', sa.Text(), nullable=True),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('insurance_rep', sa.Text(), nullable=True),
        sa.Column('transcript', sa.Text(), nullable=True),
        _timestamp('created_at', 'Record creation timestamp'),
        sa.PrimaryKeyConstraint('id'),
    )
    for column in ('transaction_id', 'request_id', 'patient_id', 'status', 'created_at'):
        op.create_index(op.f(f'ix_if_call_transaction_list_{column}'), 'if_call_transaction_list', [column], unique=False)

    op.create_table(
        'if_call_coverage_code_list',
        _id(),
        sa.Column('if_call_transaction_id', sa.String(length=36), sa.ForeignKey('if_call_transaction_list.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sai_code', sa.Text(), nullable=True),
        sa.Column('ref_ins_code', sa.Text(), nullable=True),
        sa.Column('category', sa.Text(), nullable=True),
        sa.Column('field_name', sa.Text(), nullable=True),
        sa.Column('pre_step_value', sa.Text(), nullable=True),
        sa.Column('verified', sa.Boolean(), nullable=True),
        sa.Column('verified_by', sa.Text(), nullable=True),
        sa.Column('coverage_data', sa.Text(), nullable=True, comment='JSON string of complete coverage data'),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_if_call_coverage_code_list_if_call_transaction_id'), 'if_call_coverage_code_list', ['if_call_transaction_id'], unique=False)
    op.create_index('idx_if_call_coverage_code_verified', 'if_call_coverage_code_list', ['verified'], unique=False)

    op.create_table(
        'if_call_message_list',
        _id(),
        sa.Column('if_call_transaction_id', sa.String(length=36), sa.ForeignKey('if_call_transaction_list.id', ondelete='CASCADE'), nullable=False),
        sa.Column('timestamp', sa.Text(), nullable=False),
        sa.Column('speaker', sa.String(length=20), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('message_type', sa.String(length=20), nullable=False),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_if_call_message_list_if_call_transaction_id'), 'if_call_message_list', ['if_call_transaction_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('if_call_message_list')
    op.drop_table('if_call_coverage_code_list')
    op.drop_table('if_call_transaction_list')
    op.drop_table('transaction_data_verified')
    op.drop_table('call_communications')
    op.drop_table('transactions')
    op.drop_table('coverage_by_code')
    op.drop_table('procedures')
    op.drop_table('coverage_details')
    op.drop_table('verification_statuses')
    op.drop_table('ai_call_history')
    op.drop_table('treatments')
    op.drop_table('appointments')
    op.drop_table('insurances')
    op.drop_table('patient_addresses')
    op.drop_table('patient_telecoms')
    op.drop_table('patients')
