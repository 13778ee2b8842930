"""create users and otp_records

Revision ID: 8f3b2c1d4a57
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = '8f3b2c1d4a57'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=100), nullable=False),
        sa.Column('password_hash', sa.String(length=254), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('last_name', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='unverified'),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('last_auth_change', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )
    op.create_index('ix_users_email', 'users', ['email'])

    op.create_table(
        'otp_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('otp_type', sa.String(length=40), nullable=False),
        sa.Column('hashed_otp', sa.String(length=254), nullable=False),
        sa.Column('hashed_verification_token', sa.String(length=254), nullable=False),
        sa.Column('is_used', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('multi_use', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('failed_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name='fk_otp_records_user_id_users',
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_otp_records'),
    )
    op.create_index('ix_otp_records_user_type', 'otp_records', ['user_id', 'otp_type'])
    op.create_index('ix_otp_records_expires_at', 'otp_records', ['expires_at'])


def downgrade():
    op.drop_index('ix_otp_records_expires_at', table_name='otp_records')
    op.drop_index('ix_otp_records_user_type', table_name='otp_records')
    op.drop_table('otp_records')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
