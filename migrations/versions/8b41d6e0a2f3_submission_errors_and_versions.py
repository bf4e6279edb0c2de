"""submission errors and solution versions

Revision ID: 8b41d6e0a2f3
Revises: 3f8a2c1d9e07
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '8b41d6e0a2f3'
down_revision = '3f8a2c1d9e07'
branch_labels = None
depends_on = None


def upgrade():
    from sqlalchemy import inspect
    bind = op.get_bind()
    existing_tables = inspect(bind).get_table_names()

    if 'submission_error' not in existing_tables:
        op.create_table('submission_error',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('submission_id', sa.Integer(), nullable=False),
            sa.Column('error_message', sa.Text(), nullable=False),
            sa.Column('error_type', sa.String(length=20), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['submission_id'], ['submission.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        with op.batch_alter_table('submission_error', schema=None) as batch_op:
            batch_op.create_index(batch_op.f('ix_submission_error_submission_id'), ['submission_id'], unique=False)

    if 'solution_version' not in existing_tables:
        op.create_table('solution_version',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('submission_id', sa.Integer(), nullable=False),
            sa.Column('code', sa.Text(), nullable=False),
            sa.Column('language', sa.String(length=50), nullable=False),
            sa.Column('version_number', sa.Integer(), nullable=False),
            sa.Column('changelog', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['submission_id'], ['submission.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        with op.batch_alter_table('solution_version', schema=None) as batch_op:
            batch_op.create_index(batch_op.f('ix_solution_version_submission_id'), ['submission_id'], unique=False)


def downgrade():
    op.drop_table('solution_version')
    op.drop_table('submission_error')
