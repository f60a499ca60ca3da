"""initial schema

Revision ID: b7e1c2d3a4f5
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the complete schema from scratch:
- users: credential store (unique lowercased email, bcrypt hash)
- sessions: SHA-256 token hash as primary key, one row per user at most
- accounts, expenses, incomes, budgets, recurring_expenses: owned records

Every owned table references users ON DELETE CASCADE; expenses and incomes
reference accounts ON DELETE SET NULL.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b7e1c2d3a4f5'
down_revision = None
branch_labels = None
depends_on = None


def _owner_column():
    return sa.Column(
        'user_id', sa.Integer(),
        sa.ForeignKey('users.id', ondelete='CASCADE'),
        nullable=False,
    )


def _account_column():
    return sa.Column(
        'account_id', sa.Integer(),
        sa.ForeignKey('accounts.id', ondelete='SET NULL'),
        nullable=True,
    )


def upgrade():
    # ============================================================================
    # users: credential store
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sqlite_autoincrement=True
    )

    # ============================================================================
    # sessions: only the token hash is stored
    # ============================================================================
    op.create_table(
        'sessions',
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        _owner_column(),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('token_hash'),
    )
    op.create_index('ix_sessions_user_id', 'sessions', ['user_id'])

    # ============================================================================
    # accounts
    # ============================================================================
    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('type', sa.String(length=64), nullable=False),
        sa.Column('balance', sa.Float(), nullable=False, server_default='0'),
        _owner_column(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_accounts_user_id', 'accounts', ['user_id'])

    # ============================================================================
    # expenses / incomes: dated, optionally linked to an account
    # ============================================================================
    op.create_table(
        'expenses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('category', sa.String(length=120), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('date', sa.DateTime(), nullable=False),
        _owner_column(),
        _account_column(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_expenses_user_id', 'expenses', ['user_id'])
    op.create_index('ix_expenses_account_id', 'expenses', ['account_id'])
    op.create_index('ix_expenses_date', 'expenses', ['date'])

    op.create_table(
        'incomes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('source', sa.String(length=120), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('date', sa.DateTime(), nullable=False),
        _owner_column(),
        _account_column(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_incomes_user_id', 'incomes', ['user_id'])
    op.create_index('ix_incomes_account_id', 'incomes', ['account_id'])
    op.create_index('ix_incomes_date', 'incomes', ['date'])

    # ============================================================================
    # budgets
    # ============================================================================
    op.create_table(
        'budgets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=120), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=False),
        _owner_column(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_budgets_user_id', 'budgets', ['user_id'])

    # ============================================================================
    # recurring_expenses: advanced by the materializer
    # ============================================================================
    op.create_table(
        'recurring_expenses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('category', sa.String(length=120), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('frequency', sa.String(length=16), nullable=False),
        sa.Column('next_due_date', sa.DateTime(), nullable=False),
        _owner_column(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_recurring_expenses_user_id', 'recurring_expenses', ['user_id'])
    op.create_index('ix_recurring_expenses_next_due_date', 'recurring_expenses', ['next_due_date'])


def downgrade():
    op.drop_table('recurring_expenses')
    op.drop_table('budgets')
    op.drop_table('incomes')
    op.drop_table('expenses')
    op.drop_table('accounts')
    op.drop_table('sessions')
    op.drop_table('users')
