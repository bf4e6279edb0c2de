"""initial schema: users, extension tokens, problems, submissions, tags, statistics, activity

Revision ID: 3f8a2c1d9e07
Revises:
Create Date: 2026-03-01 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f8a2c1d9e07'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    from sqlalchemy import inspect
    bind = op.get_bind()
    existing_tables = inspect(bind).get_table_names()

    # db.create_all may already have built the tables
    if 'user' not in existing_tables:
        op.create_table('user',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('username', sa.String(length=80), nullable=False),
            sa.Column('email', sa.String(length=120), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        with op.batch_alter_table('user', schema=None) as batch_op:
            batch_op.create_index(batch_op.f('ix_user_username'), ['username'], unique=True)
            batch_op.create_index(batch_op.f('ix_user_email'), ['email'], unique=True)

    if 'extension_token' not in existing_tables:
        op.create_table('extension_token',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('token', sa.String(length=64), nullable=False),
            sa.Column('name', sa.String(length=100), nullable=True),
            sa.Column('revoked', sa.Boolean(), nullable=False),
            sa.Column('last_used', sa.DateTime(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['user.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        with op.batch_alter_table('extension_token', schema=None) as batch_op:
            batch_op.create_index(batch_op.f('ix_extension_token_user_id'), ['user_id'], unique=False)
            batch_op.create_index(batch_op.f('ix_extension_token_token'), ['token'], unique=True)

    if 'problem' not in existing_tables:
        op.create_table('problem',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('platform', sa.String(length=50), nullable=False),
            sa.Column('platform_id', sa.String(length=200), nullable=True),
            sa.Column('title', sa.String(length=200), nullable=False),
            sa.Column('difficulty', sa.String(length=20), nullable=False),
            sa.Column('url', sa.String(length=500), nullable=True),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('status', sa.String(length=20), nullable=False),
            sa.Column('last_attempted', sa.DateTime(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['user.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'platform_id', name='uq_problem_user_platform_id')
        )
        with op.batch_alter_table('problem', schema=None) as batch_op:
            batch_op.create_index(batch_op.f('ix_problem_user_id'), ['user_id'], unique=False)
            batch_op.create_index(batch_op.f('ix_problem_platform_id'), ['platform_id'], unique=False)
            batch_op.create_index(batch_op.f('ix_problem_url'), ['url'], unique=False)

    if 'tag' not in existing_tables:
        op.create_table('tag',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=100), nullable=False),
            sa.Column('color', sa.String(length=20), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['user.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'name', name='uq_tag_user_name')
        )
        with op.batch_alter_table('tag', schema=None) as batch_op:
            batch_op.create_index(batch_op.f('ix_tag_user_id'), ['user_id'], unique=False)

    if 'problem_tags' not in existing_tables:
        op.create_table('problem_tags',
            sa.Column('problem_id', sa.Integer(), nullable=False),
            sa.Column('tag_id', sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(['problem_id'], ['problem.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['tag_id'], ['tag.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('problem_id', 'tag_id')
        )

    if 'submission' not in existing_tables:
        op.create_table('submission',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('problem_id', sa.Integer(), nullable=False),
            sa.Column('external_id', sa.String(length=100), nullable=True),
            sa.Column('offline_id', sa.String(length=100), nullable=True),
            sa.Column('correlation_id', sa.String(length=100), nullable=True),
            sa.Column('code', sa.Text(), nullable=False),
            sa.Column('language', sa.String(length=50), nullable=False),
            sa.Column('status', sa.String(length=50), nullable=False),
            sa.Column('runtime', sa.String(length=50), nullable=True),
            sa.Column('memory', sa.String(length=50), nullable=True),
            sa.Column('submitted_at', sa.DateTime(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['problem_id'], ['problem.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['user_id'], ['user.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'problem_id', 'external_id',
                                name='uq_submission_user_problem_external')
        )
        with op.batch_alter_table('submission', schema=None) as batch_op:
            batch_op.create_index(batch_op.f('ix_submission_user_id'), ['user_id'], unique=False)
            batch_op.create_index(batch_op.f('ix_submission_problem_id'), ['problem_id'], unique=False)
            batch_op.create_index(batch_op.f('ix_submission_offline_id'), ['offline_id'], unique=False)

    if 'statistics' not in existing_tables:
        op.create_table('statistics',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('total_solved', sa.Integer(), nullable=False),
            sa.Column('easy_count', sa.Integer(), nullable=False),
            sa.Column('medium_count', sa.Integer(), nullable=False),
            sa.Column('hard_count', sa.Integer(), nullable=False),
            sa.Column('streak', sa.Integer(), nullable=False),
            sa.Column('longest_streak', sa.Integer(), nullable=False),
            sa.Column('last_solved', sa.Date(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['user.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id')
        )

    if 'activity' not in existing_tables:
        op.create_table('activity',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('date', sa.Date(), nullable=False),
            sa.Column('problems_attempted', sa.Integer(), nullable=False),
            sa.Column('problems_solved', sa.Integer(), nullable=False),
            sa.Column('streak_count', sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['user.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'date', name='uq_activity_user_date')
        )
        with op.batch_alter_table('activity', schema=None) as batch_op:
            batch_op.create_index(batch_op.f('ix_activity_user_id'), ['user_id'], unique=False)


def downgrade():
    op.drop_table('activity')
    op.drop_table('statistics')
    op.drop_table('submission')
    op.drop_table('problem_tags')
    op.drop_table('tag')
    op.drop_table('problem')
    op.drop_table('extension_token')
    op.drop_table('user')
