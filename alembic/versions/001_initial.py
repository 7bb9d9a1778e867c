"""Initial migration with the role enum, profiles and notes

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

role_enum = sa.Enum('admin', 'user', name='role')


def upgrade() -> None:
    # Create profile table (rows are inserted by the auth.users trigger)
    op.create_table(
        'profile',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('role', role_enum, nullable=False, server_default='user'),
        sa.PrimaryKeyConstraint('id', name='profile_pkey')
    )

    # Create note table
    op.create_table(
        'note',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ['user_id'], ['profile.id'],
            name='note_user_id_fkey', ondelete='CASCADE', onupdate='CASCADE'
        ),
        sa.PrimaryKeyConstraint('id', name='note_pkey')
    )
    op.create_index(op.f('ix_note_user_id'), 'note', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_note_user_id'), table_name='note')
    op.drop_table('note')
    op.drop_table('profile')
    role_enum.drop(op.get_bind(), checkfirst=True)
