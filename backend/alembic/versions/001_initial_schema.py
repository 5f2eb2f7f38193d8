"""Initial database schema

Revision ID: 001
Revises: 
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Create assessments table
    op.create_table(
        'assessments',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('passing_score_percent', sa.Integer(), nullable=False),
        sa.Column('time_limit_minutes', sa.Integer(), nullable=True),
        sa.Column('target_level', sa.String(16), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_assessments')
    )

    # Create assessment_questions table
    op.create_table(
        'assessment_questions',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('assessment_id', sa.String(64), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(32), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('options', sa.JSON(), nullable=True),
        sa.Column('correct_answer', sa.JSON(), nullable=False),
        sa.Column('competency_id', sa.String(64), nullable=False),
        sa.Column('difficulty', sa.String(16), nullable=False),
        sa.Column('explanation', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(1024), nullable=True),
        sa.ForeignKeyConstraint(
            ['assessment_id'], ['assessments.id'],
            name='fk_assessment_questions_assessment_id_assessments'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_assessment_questions'),
        sa.UniqueConstraint('assessment_id', 'position', name='uq_assessment_questions_position')
    )
    op.create_index('idx_assessment_questions_assessment', 'assessment_questions', ['assessment_id', 'position'])

    # Create assessment_sessions table
    op.create_table(
        'assessment_sessions',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('assessment_id', sa.String(64), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(
            ['assessment_id'], ['assessments.id'],
            name='fk_assessment_sessions_assessment_id_assessments'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_assessment_sessions')
    )
    op.create_index('ix_assessment_sessions_assessment_id', 'assessment_sessions', ['assessment_id'])
    op.create_index('ix_assessment_sessions_user_id', 'assessment_sessions', ['user_id'])
    op.create_index('ix_assessment_sessions_status', 'assessment_sessions', ['status'])
    op.create_index('idx_assessment_sessions_user_assessment', 'assessment_sessions', ['user_id', 'assessment_id'])

    # Create assessment_answers table
    op.create_table(
        'assessment_answers',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('session_id', sa.String(64), nullable=False),
        sa.Column('question_id', sa.String(64), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False),
        sa.Column('answered_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ['session_id'], ['assessment_sessions.id'],
            name='fk_assessment_answers_session_id_assessment_sessions'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_assessment_answers'),
        sa.UniqueConstraint('session_id', 'question_id', name='uq_assessment_answers_session_question')
    )
    op.create_index('idx_assessment_answers_session', 'assessment_answers', ['session_id', 'answered_at'])


def downgrade():
    op.drop_index('idx_assessment_answers_session', table_name='assessment_answers')
    op.drop_table('assessment_answers')
    op.drop_index('idx_assessment_sessions_user_assessment', table_name='assessment_sessions')
    op.drop_index('ix_assessment_sessions_status', table_name='assessment_sessions')
    op.drop_index('ix_assessment_sessions_user_id', table_name='assessment_sessions')
    op.drop_index('ix_assessment_sessions_assessment_id', table_name='assessment_sessions')
    op.drop_table('assessment_sessions')
    op.drop_index('idx_assessment_questions_assessment', table_name='assessment_questions')
    op.drop_table('assessment_questions')
    op.drop_table('assessments')
