from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c2a9b7d40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'quizzes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('marks_per_question', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('total_time_minutes', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('attempts_closed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('class_level', sa.String(length=10), nullable=True),
        sa.Column('test_type', sa.String(length=20), nullable=True),
        sa.Column('subject', sa.String(length=30), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'student_profiles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('phone_number', sa.String(length=20), nullable=False, unique=True),
        sa.Column('full_name', sa.String(length=100), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'questions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('quiz_id', sa.Integer(), sa.ForeignKey('quizzes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('option_a', sa.Text(), nullable=False),
        sa.Column('option_b', sa.Text(), nullable=False),
        sa.Column('option_c', sa.Text(), nullable=False),
        sa.Column('option_d', sa.Text(), nullable=False),
        sa.Column('correct_option', sa.String(length=1), nullable=True),
        sa.Column('question_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.UniqueConstraint('quiz_id', 'question_order', name='uq_questions_quiz_order'),
    )

    op.create_table(
        'quiz_attempts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('quiz_id', sa.Integer(), sa.ForeignKey('quizzes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_name', sa.String(length=100), nullable=False),
        sa.Column('user_address', sa.Text(), nullable=True),
        sa.Column('user_phone', sa.String(length=20), nullable=True),
        sa.Column('student_profile_id', sa.Integer(), sa.ForeignKey('student_profiles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_marks', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('correct_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('wrong_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('time_taken_seconds', sa.Integer(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index('ix_quiz_attempts_quiz_id', 'quiz_attempts', ['quiz_id'])
    op.create_index('ix_quiz_attempts_student_profile_id', 'quiz_attempts', ['student_profile_id'])

    op.create_table(
        'user_answers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('attempt_id', sa.Integer(), sa.ForeignKey('quiz_attempts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_id', sa.Integer(), sa.ForeignKey('questions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('selected_option', sa.String(length=1), nullable=True),
        sa.Column('is_correct', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index('ix_user_answers_attempt_id', 'user_answers', ['attempt_id'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'notification_reads',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('notification_id', sa.Integer(), sa.ForeignKey('notifications.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_profile_id', sa.Integer(), sa.ForeignKey('student_profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('read_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.UniqueConstraint('notification_id', 'student_profile_id', name='uq_notification_reads_pair'),
    )


def downgrade():
    op.drop_table('notification_reads')
    op.drop_table('notifications')
    op.drop_index('ix_user_answers_attempt_id', table_name='user_answers')
    op.drop_table('user_answers')
    op.drop_index('ix_quiz_attempts_student_profile_id', table_name='quiz_attempts')
    op.drop_index('ix_quiz_attempts_quiz_id', table_name='quiz_attempts')
    op.drop_table('quiz_attempts')
    op.drop_table('questions')
    op.drop_table('student_profiles')
    op.drop_table('quizzes')
