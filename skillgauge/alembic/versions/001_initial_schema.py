"""Initial database schema

Revision ID: 001
Revises:
Create Date: 2025-01-15 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Accounts and roles
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(32), nullable=False, unique=True),
        sa.Column('email', sa.String(255), nullable=True, unique=True),
        sa.Column('password_hash', sa.String(128), nullable=False),
        sa.Column('password_salt', sa.String(64), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('last_login', sa.DateTime(), nullable=True)
    )

    op.create_table(
        'roles',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(50), nullable=False, unique=True)
    )

    op.create_table(
        'user_roles',
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True)
    )

    # Question bank
    op.create_table(
        'questions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('category', sa.String(100), nullable=True, index=True),
        sa.Column('difficulty', sa.String(50), nullable=True),
        sa.Column('version', sa.String(50), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true(), index=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now())
    )

    op.create_table(
        'question_options',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('question_id', sa.String(36), sa.ForeignKey('questions.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False, server_default=sa.false())
    )

    # Attempts
    op.create_table(
        'assessments',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('finished_at', sa.DateTime(), nullable=True),
        sa.Column('score', sa.Numeric(5, 2), nullable=False),
        sa.Column('passed', sa.Boolean(), nullable=False)
    )
    op.create_index('idx_assessments_user_finished', 'assessments', ['user_id', 'finished_at'])

    op.create_table(
        'assessment_answers',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('assessment_id', sa.String(36), sa.ForeignKey('assessments.id', ondelete='CASCADE'),
                  nullable=False),
        sa.Column('question_id', sa.String(36), nullable=False),
        sa.Column('chosen_option_id', sa.String(36), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False),
        sa.UniqueConstraint('assessment_id', 'question_id', name='uq_assessment_answers_question')
    )

    op.create_table(
        'assessment_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('question_count', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('start_at', sa.DateTime(), nullable=True),
        sa.Column('end_at', sa.DateTime(), nullable=True),
        sa.Column('frequency_months', sa.Integer(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now())
    )

    # Workers: core columns only, optional columns arrive in later revisions
    op.create_table(
        'workers',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(32), nullable=False),
        sa.Column('national_id', sa.String(13), nullable=False, unique=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now())
    )

    op.create_table(
        'worker_profile_overlays',
        sa.Column('worker_id', sa.String(36), primary_key=True),
        sa.Column('profile', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now())
    )

    roles = sa.table('roles', sa.column('name', sa.String))
    op.bulk_insert(roles, [
        {'name': 'admin'},
        {'name': 'project_manager'},
        {'name': 'foreman'},
        {'name': 'worker'},
    ])


def downgrade():
    op.drop_table('worker_profile_overlays')
    op.drop_table('workers')
    op.drop_table('assessment_settings')
    op.drop_table('assessment_answers')
    op.drop_index('idx_assessments_user_finished', table_name='assessments')
    op.drop_table('assessments')
    op.drop_table('question_options')
    op.drop_table('questions')
    op.drop_table('user_roles')
    op.drop_table('roles')
    op.drop_table('users')
