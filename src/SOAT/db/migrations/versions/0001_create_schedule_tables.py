"""create schools, students, schedules and student assessments

Revision ID: 0001_create_schedule_tables
Revises: 
Create Date: 2026-10-19 00:00:00

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_create_schedule_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return (
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def _range(column: str, low: int, high: int) -> sa.CheckConstraint:
    return sa.CheckConstraint(
        f"{column} IS NULL OR ({column} BETWEEN {low} AND {high})",
        name=f"ck_student_assessments_{column}_range",
    )


def upgrade() -> None:
    op.create_table(
        'schools',
        sa.Column('id', sa.Integer, nullable=False, autoincrement=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.Text),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_schools'),
        sa.UniqueConstraint('name', name='uq_schools_name'),
    )

    op.create_table(
        'students',
        sa.Column('id', sa.Integer, nullable=False, autoincrement=True),
        sa.Column('school_id', sa.Integer, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('grade', sa.String(length=32)),
        sa.Column('age', sa.Integer),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_students'),
        sa.ForeignKeyConstraint(
            ['school_id'], ['schools.id'],
            name='fk_students_school_id_schools', ondelete='CASCADE',
        ),
    )
    op.create_index('ix_students_school_id', 'students', ['school_id'])

    op.create_table(
        'schedules',
        sa.Column('id', sa.Integer, nullable=False, autoincrement=True),
        sa.Column('school_id', sa.Integer, nullable=False),
        sa.Column('scheduled_date', sa.Date, nullable=False),
        sa.Column('scheduled_time', sa.Time, nullable=False),
        sa.Column('duration_minutes', sa.Integer, nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='scheduled'),
        sa.Column('notes', sa.Text),
        sa.Column('version', sa.Integer, nullable=False, server_default='1'),
        sa.Column('cancelled_at', sa.DateTime(timezone=True)),
        sa.Column('cancellation_reason', sa.Text),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_schedules'),
        sa.ForeignKeyConstraint(
            ['school_id'], ['schools.id'],
            name='fk_schedules_school_id_schools', ondelete='RESTRICT',
        ),
        sa.CheckConstraint('duration_minutes > 0', name='ck_schedules_duration_positive'),
        sa.CheckConstraint(
            "status IN ('scheduled', 'in-progress', 'completed', 'cancelled')",
            name='ck_schedules_status_token',
        ),
    )
    op.create_index('ix_schedules_school_id', 'schedules', ['school_id'])
    op.create_index('ix_schedules_status', 'schedules', ['status'])

    op.create_table(
        'schedule_teachers',
        sa.Column('schedule_id', sa.Integer, nullable=False),
        sa.Column('teacher_id', sa.Integer, nullable=False),
        sa.PrimaryKeyConstraint('schedule_id', 'teacher_id', name='pk_schedule_teachers'),
        sa.ForeignKeyConstraint(
            ['schedule_id'], ['schedules.id'],
            name='fk_schedule_teachers_schedule_id_schedules', ondelete='CASCADE',
        ),
    )

    op.create_table(
        'schedule_lessons',
        sa.Column('schedule_id', sa.Integer, nullable=False),
        sa.Column('lesson_id', sa.Integer, nullable=False),
        sa.PrimaryKeyConstraint('schedule_id', 'lesson_id', name='pk_schedule_lessons'),
        sa.ForeignKeyConstraint(
            ['schedule_id'], ['schedules.id'],
            name='fk_schedule_lessons_schedule_id_schedules', ondelete='CASCADE',
        ),
    )

    op.create_table(
        'student_assessments',
        sa.Column('id', sa.Integer, nullable=False, autoincrement=True),
        sa.Column('schedule_id', sa.Integer, nullable=False),
        sa.Column('student_id', sa.Integer, nullable=False),
        sa.Column('attendance_status', sa.String(length=16)),
        sa.Column('knowledge_score', sa.Integer),
        sa.Column('participation_score', sa.Integer),
        sa.Column('personal_development_level', sa.SmallInteger),
        sa.Column('critical_thinking_level', sa.SmallInteger),
        sa.Column('team_work_level', sa.SmallInteger),
        sa.Column('academic_knowledge_level', sa.SmallInteger),
        sa.Column('notes', sa.Text),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_student_assessments'),
        sa.ForeignKeyConstraint(
            ['schedule_id'], ['schedules.id'],
            name='fk_student_assessments_schedule_id_schedules', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['student_id'], ['students.id'],
            name='fk_student_assessments_student_id_students', ondelete='CASCADE',
        ),
        sa.UniqueConstraint('schedule_id', 'student_id', name='uq_student_assessments_schedule_student'),
        sa.CheckConstraint(
            "attendance_status IS NULL OR attendance_status IN ('present', 'absent', 'late')",
            name='ck_student_assessments_attendance_token',
        ),
        _range('knowledge_score', 0, 100),
        _range('participation_score', 0, 100),
        _range('personal_development_level', 1, 4),
        _range('critical_thinking_level', 1, 4),
        _range('team_work_level', 1, 4),
        _range('academic_knowledge_level', 1, 4),
    )
    op.create_index('ix_student_assessments_schedule_id', 'student_assessments', ['schedule_id'])
    op.create_index('ix_student_assessments_student_id', 'student_assessments', ['student_id'])


def downgrade() -> None:
    op.drop_index('ix_student_assessments_student_id', table_name='student_assessments')
    op.drop_index('ix_student_assessments_schedule_id', table_name='student_assessments')
    op.drop_table('student_assessments')
    op.drop_table('schedule_lessons')
    op.drop_table('schedule_teachers')
    op.drop_index('ix_schedules_status', table_name='schedules')
    op.drop_index('ix_schedules_school_id', table_name='schedules')
    op.drop_table('schedules')
    op.drop_index('ix_students_school_id', table_name='students')
    op.drop_table('students')
    op.drop_table('schools')
