"""Create stored_collections table.

Revision ID: 001_stored_collections
Revises:
Create Date: 2026-10-19

One row per persisted key (chat_users, chat_rooms, chat_messages,
chat_current_user) holding the whole JSON document and its version.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_stored_collections'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'stored_collections',
        sa.Column('key', sa.String(64), primary_key=True),
        sa.Column('payload', sa.Text(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('stored_collections')
