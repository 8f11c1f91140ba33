"""Create authors and books tables

Revision ID: 3f9a1c2d7b40
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9a1c2d7b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('authors',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('first_name', sa.String(length=150), nullable=False, comment="Author's first name"),
        sa.Column('last_name', sa.String(length=150), nullable=False, comment="Author's last name"),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_authors_last_name'), 'authors', ['last_name'], unique=False)

    op.create_table('books',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('author_id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=150), nullable=False, comment='Book title'),
        sa.Column('description', sa.String(length=2500), nullable=True, comment='Book description or summary'),
        sa.Column('amount_of_pages', sa.Integer(), nullable=True, comment='Number of pages'),
        sa.ForeignKeyConstraint(['author_id'], ['authors.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_books_author_id'), 'books', ['author_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_books_author_id'), table_name='books')
    op.drop_table('books')
    op.drop_index(op.f('ix_authors_last_name'), table_name='authors')
    op.drop_table('authors')
