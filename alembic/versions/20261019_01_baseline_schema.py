# alembic/versions/20261019_01_baseline_schema.py
"""Baseline schema: users, orders, chat sessions and chat messages

Revision ID: 20261019_01_baseline
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '20261019_01_baseline'
down_revision = None
branch_labels = None
depends_on = None

USER_ROLE = sa.Enum('CUSTOMER', 'ADMIN', name='userrole')
ORDER_TYPE = sa.Enum('OPTION', name='ordertype')
ORDER_STATUS = sa.Enum('ACTIVE', 'COMPLETED', 'CANCELLED', 'FAILED', name='orderstatus')
CHAT_STATUS = sa.Enum('OPEN', 'CLOSED', 'WAITING', name='chatstatus')
SENDER_TYPE = sa.Enum('USER', 'ADMIN', name='chatsendertype')


def upgrade() -> None:
    # USERS
    op.create_table('users',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('email', sa.String(length=255), nullable=False),
    sa.Column('password_hash', sa.String(length=255), nullable=True),
    sa.Column('first_name', sa.String(length=100), nullable=True),
    sa.Column('last_name', sa.String(length=100), nullable=True),
    sa.Column('role', USER_ROLE, server_default='CUSTOMER', nullable=False),
    sa.Column('account_balance', sa.Numeric(20, 8), server_default='0', nullable=False),
    sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    sa.CheckConstraint('account_balance >= 0', name='ck_users_balance_non_negative'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # ORDERS
    op.create_table('orders',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('user_id', sa.String(length=36), nullable=False),
    sa.Column('order_type', ORDER_TYPE, nullable=False),
    sa.Column('status', ORDER_STATUS, nullable=False),
    sa.Column('symbol', sa.String(length=32), nullable=False),
    sa.Column('amount', sa.Numeric(20, 8), nullable=False),
    sa.Column('currency', sa.String(length=10), nullable=False),
    sa.Column('ror', sa.Numeric(7, 4), nullable=False),
    sa.Column('entry_price', sa.Numeric(20, 8), nullable=False),
    sa.Column('period_seconds', sa.Integer(), nullable=False),
    sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
    sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
    sa.Column('profit', sa.Numeric(20, 8), nullable=True),
    sa.Column('is_won', sa.Boolean(), nullable=True),
    sa.Column('settled_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    sa.ForeignKeyConstraint(['user_id'], ['users.id']),
    sa.PrimaryKeyConstraint('id'),
    sa.CheckConstraint('amount > 0', name='ck_orders_amount_positive'),
    sa.CheckConstraint('ror > 0 AND ror <= 100', name='ck_orders_ror_range'),
    )
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_symbol', 'orders', ['symbol'])

    # CHAT SESSIONS
    op.create_table('chat_sessions',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('user_id', sa.String(length=36), nullable=False),
    sa.Column('admin_id', sa.String(length=36), nullable=True),
    sa.Column('status', CHAT_STATUS, nullable=False),
    sa.Column('last_message_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    sa.ForeignKeyConstraint(['user_id'], ['users.id']),
    sa.ForeignKeyConstraint(['admin_id'], ['users.id']),
    sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_chat_sessions_user_id', 'chat_sessions', ['user_id'])
    op.create_index('ix_chat_sessions_admin_id', 'chat_sessions', ['admin_id'])
    op.create_index('ix_chat_sessions_status', 'chat_sessions', ['status'])

    # CHAT MESSAGES
    op.create_table('chat_messages',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('session_id', sa.String(length=36), nullable=False),
    sa.Column('user_id', sa.String(length=36), nullable=False),
    sa.Column('sender_type', SENDER_TYPE, nullable=False),
    sa.Column('message', sa.Text(), nullable=False),
    sa.Column('image_url', sa.String(length=2048), nullable=True),
    sa.Column('audio_url', sa.String(length=2048), nullable=True),
    sa.Column('is_read', sa.Boolean(), server_default=sa.false(), nullable=False),
    sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.ForeignKeyConstraint(['session_id'], ['chat_sessions.id']),
    sa.ForeignKeyConstraint(['user_id'], ['users.id']),
    sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_chat_messages_session_created', 'chat_messages', ['session_id', 'created_at'])
    op.create_index('ix_chat_messages_user_id', 'chat_messages', ['user_id'])


def downgrade() -> None:
    op.drop_table('chat_messages')
    op.drop_table('chat_sessions')
    op.drop_table('orders')
    op.drop_table('users')
    bind = op.get_bind()
    for enum in (SENDER_TYPE, CHAT_STATUS, ORDER_STATUS, ORDER_TYPE, USER_ROLE):
        enum.drop(bind, checkfirst=True)
