"""Create documents table

Revision ID: create_documents_table
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = 'create_documents_table'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'documents',
        sa.Column('collection', sa.String(length=64), nullable=False),
        sa.Column('doc_id', sa.String(length=255), nullable=False),
        sa.Column('data', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('collection', 'doc_id')
    )
    op.create_index('idx_documents_collection', 'documents', ['collection'], unique=False)
    op.create_index('idx_documents_updated_at', 'documents', ['updated_at'], unique=False)
    # Partner-scoped job queries filter on these keys
    op.execute(
        "CREATE INDEX idx_documents_partner_status ON documents "
        "(collection, (data->>'partnerId'), (data->>'status'))"
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS idx_documents_partner_status")
    op.drop_index('idx_documents_updated_at', table_name='documents')
    op.drop_index('idx_documents_collection', table_name='documents')
    op.drop_table('documents')
