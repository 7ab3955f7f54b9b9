"""Store assistant file copies under a unique name

Revision ID: 8d3b6a41c2e0
Revises: 5c1f0e2a9b7d
Create Date: 2025-03-19 16:40:05.112934

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '8d3b6a41c2e0'
down_revision = '5c1f0e2a9b7d'
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table('assistant_files') as batch_op:
        batch_op.add_column(sa.Column('stored_name', sa.String(length=255), nullable=True))

    # Existing copies were written under the plain file name
    op.execute("UPDATE assistant_files SET stored_name = file_name WHERE stored_name IS NULL")

    with op.batch_alter_table('assistant_files') as batch_op:
        batch_op.alter_column('stored_name', existing_type=sa.String(length=255), nullable=False)
        batch_op.create_unique_constraint('uq_assistant_files_stored_name', ['stored_name'])


def downgrade():
    with op.batch_alter_table('assistant_files') as batch_op:
        batch_op.drop_constraint('uq_assistant_files_stored_name', type_='unique')
        batch_op.drop_column('stored_name')
