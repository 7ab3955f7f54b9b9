"""Initial schema: clients, groups, assistants, templates, threads, messages, files, sessions

Revision ID: 5c1f0e2a9b7d
Revises:
Create Date: 2025-03-02 10:12:31.418207

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c1f0e2a9b7d'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'groups',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        'clients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='user'),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('groups.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        'assistant_templates',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('groups.id'), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('instructions', sa.Text(), nullable=True),
        sa.Column('model', sa.String(length=64), nullable=True),
        sa.Column('temperature', sa.Float(), nullable=True),
        sa.Column('top_p', sa.Float(), nullable=True),
        sa.Column('avatar', sa.String(length=255), nullable=True),
        sa.Column('voice', sa.String(length=64), nullable=True),
        sa.Column('background', sa.String(length=255), nullable=True),
        sa.Column('language', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        'assistants',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('asst_id', sa.String(length=64), nullable=False, unique=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id'), nullable=False),
        sa.Column('template_id', sa.Integer(), sa.ForeignKey('assistant_templates.id'), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('instructions', sa.Text(), nullable=False),
        sa.Column('model', sa.String(length=64), nullable=False),
        sa.Column('temperature', sa.Float(), nullable=False),
        sa.Column('top_p', sa.Float(), nullable=False),
        sa.Column('avatar', sa.String(length=255), nullable=True),
        sa.Column('voice', sa.String(length=64), nullable=True),
        sa.Column('background', sa.String(length=255), nullable=True),
        sa.Column('language', sa.String(length=32), nullable=True),
        sa.Column('file_search', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('vector_store_id', sa.String(length=64), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_assistants_client_id', 'assistants', ['client_id'])
    op.create_table(
        'threads',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('thread_id', sa.String(length=64), nullable=False, unique=True),
        sa.Column('assistant_id', sa.Integer(), sa.ForeignKey('assistants.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        'messages',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('thread_id', sa.Integer(), sa.ForeignKey('threads.id'), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_messages_thread_id', 'messages', ['thread_id'])
    op.create_table(
        'files',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('thread_id', sa.Integer(), sa.ForeignKey('threads.id'), nullable=False),
        sa.Column('file_name', sa.String(length=255), nullable=False),
        sa.Column('original_name', sa.String(length=255), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=False),
        sa.Column('mime_type', sa.String(length=128), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        'assistant_files',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('assistant_id', sa.Integer(), sa.ForeignKey('assistants.id'), nullable=False),
        sa.Column('file_id', sa.String(length=64), nullable=False),
        sa.Column('vector_store_id', sa.String(length=64), nullable=False),
        sa.Column('file_name', sa.String(length=255), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        'assistant_functions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('assistant_id', sa.Integer(), sa.ForeignKey('assistants.id'), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('parameters', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('assistant_id', 'name', name='uq_assistant_function_name'),
    )
    op.create_table(
        'auth_sessions',
        sa.Column('token', sa.String(length=128), primary_key=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('group_name', sa.String(length=120), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
    )


def downgrade():
    op.drop_table('auth_sessions')
    op.drop_table('assistant_functions')
    op.drop_table('assistant_files')
    op.drop_table('files')
    op.drop_index('ix_messages_thread_id', table_name='messages')
    op.drop_table('messages')
    op.drop_table('threads')
    op.drop_index('ix_assistants_client_id', table_name='assistants')
    op.drop_table('assistants')
    op.drop_table('assistant_templates')
    op.drop_table('clients')
    op.drop_table('groups')
