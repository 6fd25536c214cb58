"""initial schema: users, elections, votes

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('password_hash', sa.String(length=200), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('wallet_address', sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_table(
        'elections',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('candidates', sa.JSON(), nullable=False),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=False),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('end_date > start_date', name='election_window_order'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'votes',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('election_id', sa.String(length=36), nullable=False),
        sa.Column('voter_id', sa.String(length=36), nullable=False),
        sa.Column('candidate', sa.String(length=100), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=True),
        sa.Column('transaction_hash', sa.String(length=66), nullable=False),
        sa.ForeignKeyConstraint(['voter_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('transaction_hash'),
        sa.UniqueConstraint('voter_id', 'election_id', name='unique_vote_per_election'),
    )
    op.create_index('ix_votes_election_id', 'votes', ['election_id'])
    op.create_index('ix_votes_voter_id', 'votes', ['voter_id'])


def downgrade():
    op.drop_index('ix_votes_voter_id', table_name='votes')
    op.drop_index('ix_votes_election_id', table_name='votes')
    op.drop_table('votes')
    op.drop_table('elections')
    op.drop_table('users')
