"""Initial course schema: sections, grading, pricing, payments, certificates.

Revision ID: e1f2a3b4c5d6
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision = "e1f2a3b4c5d6"
down_revision = None
branch_labels = None
depends_on = None

_NOW = sa.text("now()")


def _created_at(name: str = "created_at") -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False, server_default=_NOW)


def upgrade() -> None:
    # ── Enums ────────────────────────────────────────────────────────────
    enrollment_status = sa.Enum(
        "pending", "approved", "enrolled", "completed", "rejected", name="enrollment_status",
    )
    content_type = sa.Enum("lecture", "assignment", "project", name="content_type")
    content_grade_status = sa.Enum(
        "not_delivered", "submitted_ungraded", "graded", "watched", name="content_grade_status",
    )
    payment_status = sa.Enum("pending", "approved", "rejected", name="section_payment_status")
    cost_change_status = sa.Enum(
        "pending", "approved_auto", "approved_manual", "cancelled", name="cost_change_status",
    )
    quiz_attempt_status = sa.Enum("in_progress", "graded", name="quiz_attempt_status")
    certificate_request_status = sa.Enum(
        "requested", "approved", "rejected", name="certificate_request_status",
    )

    # ── courses / groups / sections / contents ───────────────────────────
    op.create_table(
        "courses",
        sa.Column("course_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("instructor_id", UUID(as_uuid=True), nullable=False),
        sa.Column("instructor_name", sa.String(200), nullable=False, server_default=""),
        sa.Column("cost_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("offers_certificate", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("certificate_mode", sa.String(30), nullable=False, server_default="automatic"),
        sa.Column(
            "instructor_certificate_release", sa.Boolean(), nullable=False, server_default=sa.false(),
        ),
        _created_at(),
        _created_at("updated_at"),
    )
    op.create_index("ix_courses_instructor_id", "courses", ["instructor_id"])

    op.create_table(
        "groups",
        sa.Column("group_id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "course_id", UUID(as_uuid=True),
            sa.ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("name", sa.String(200), nullable=False),
        _created_at(),
    )
    op.create_index("ix_groups_course_id", "groups", ["course_id"])

    op.create_table(
        "sections",
        sa.Column("section_id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "course_id", UUID(as_uuid=True),
            sa.ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "group_id", UUID(as_uuid=True),
            sa.ForeignKey("groups.group_id", ondelete="CASCADE"), nullable=True,
        ),
        sa.Column("name", sa.String(300), nullable=False),
        sa.Column("is_free", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("price_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("sort_order", sa.SmallInteger(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        _created_at("updated_at"),
        sa.CheckConstraint("price_cents >= 0", name="ck_sections_price_non_negative"),
    )
    op.create_index("ix_sections_course_id", "sections", ["course_id"])
    op.create_index("ix_sections_group_id", "sections", ["group_id"])

    op.create_table(
        "contents",
        sa.Column("content_id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "course_id", UUID(as_uuid=True),
            sa.ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "group_id", UUID(as_uuid=True),
            sa.ForeignKey("groups.group_id", ondelete="CASCADE"), nullable=True,
        ),
        sa.Column(
            "section_id", UUID(as_uuid=True),
            sa.ForeignKey("sections.section_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("content_type", content_type, nullable=False),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("duration_secs", sa.Integer(), nullable=True),
        sa.Column("sort_order", sa.SmallInteger(), nullable=False, server_default="0"),
        _created_at(),
    )
    op.create_index("ix_contents_section_id", "contents", ["section_id"])
    op.create_index("ix_contents_group_id", "contents", ["group_id"])
    op.create_index("ix_contents_course_id", "contents", ["course_id"])

    # ── quizzes ──────────────────────────────────────────────────────────
    op.create_table(
        "quizzes",
        sa.Column("quiz_id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "course_id", UUID(as_uuid=True),
            sa.ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "group_id", UUID(as_uuid=True),
            sa.ForeignKey("groups.group_id", ondelete="CASCADE"), nullable=True,
        ),
        sa.Column(
            "section_id", UUID(as_uuid=True),
            sa.ForeignKey("sections.section_id", ondelete="CASCADE"), nullable=True,
        ),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
    )
    op.create_index("ix_quizzes_group_id", "quizzes", ["group_id"])

    op.create_table(
        "quiz_attempts",
        sa.Column("attempt_id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "quiz_id", UUID(as_uuid=True),
            sa.ForeignKey("quizzes.quiz_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("student_id", UUID(as_uuid=True), nullable=False),
        sa.Column("status", quiz_attempt_status, nullable=False, server_default="in_progress"),
        sa.Column("score", sa.SmallInteger(), nullable=True),
        _created_at("submitted_at"),
    )
    op.create_index("ix_quiz_attempts_quiz_student", "quiz_attempts", ["quiz_id", "student_id"])

    # ── enrollments ──────────────────────────────────────────────────────
    op.create_table(
        "enrollments",
        sa.Column("enrollment_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("student_id", UUID(as_uuid=True), nullable=False),
        sa.Column(
            "course_id", UUID(as_uuid=True),
            sa.ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "group_id", UUID(as_uuid=True),
            sa.ForeignKey("groups.group_id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("status", enrollment_status, nullable=False, server_default="pending"),
        _created_at(),
        sa.UniqueConstraint("student_id", "course_id", name="uq_enrollments_student_course"),
    )
    op.create_index("ix_enrollments_student_id", "enrollments", ["student_id"])
    op.create_index("ix_enrollments_course_id", "enrollments", ["course_id"])

    op.create_table(
        "enrollment_sections",
        sa.Column(
            "enrollment_id", UUID(as_uuid=True),
            sa.ForeignKey("enrollments.enrollment_id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column(
            "section_id", UUID(as_uuid=True),
            sa.ForeignKey("sections.section_id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("granted_by_payment_id", UUID(as_uuid=True), nullable=True),
        _created_at("granted_at"),
    )
    op.create_index("ix_enrollment_sections_section_id", "enrollment_sections", ["section_id"])

    # ── grading ──────────────────────────────────────────────────────────
    op.create_table(
        "content_grades",
        sa.Column("grade_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("student_id", UUID(as_uuid=True), nullable=False),
        sa.Column(
            "content_id", UUID(as_uuid=True),
            sa.ForeignKey("contents.content_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "section_id", UUID(as_uuid=True),
            sa.ForeignKey("sections.section_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "course_id", UUID(as_uuid=True),
            sa.ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("status", content_grade_status, nullable=False, server_default="not_delivered"),
        sa.Column("grade_percent", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column("watched_duration_secs", sa.Integer(), nullable=True),
        sa.Column("graded_by", UUID(as_uuid=True), nullable=True),
        sa.Column("graded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        _created_at("updated_at"),
        sa.UniqueConstraint("student_id", "content_id", name="uq_content_grades_student_content"),
    )
    op.create_index("ix_content_grades_section_id", "content_grades", ["section_id"])

    op.create_table(
        "section_grades",
        sa.Column("section_grade_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("student_id", UUID(as_uuid=True), nullable=False),
        sa.Column(
            "section_id", UUID(as_uuid=True),
            sa.ForeignKey("sections.section_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("grade_percent", sa.Numeric(5, 2), nullable=True),
        _created_at("updated_at"),
        sa.UniqueConstraint("student_id", "section_id", name="uq_section_grades_student_section"),
    )
    op.create_index("ix_section_grades_section_id", "section_grades", ["section_id"])

    op.create_table(
        "content_progress",
        sa.Column("progress_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("student_id", UUID(as_uuid=True), nullable=False),
        sa.Column(
            "content_id", UUID(as_uuid=True),
            sa.ForeignKey("contents.content_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("group_id", UUID(as_uuid=True), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "student_id", "content_id", name="uq_content_progress_student_content",
        ),
    )
    op.create_index("ix_content_progress_content_id", "content_progress", ["content_id"])

    # ── section_payments ─────────────────────────────────────────────────
    op.create_table(
        "section_payments",
        sa.Column("payment_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("student_id", UUID(as_uuid=True), nullable=False),
        sa.Column(
            "section_id", UUID(as_uuid=True),
            sa.ForeignKey("sections.section_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "course_id", UUID(as_uuid=True),
            sa.ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("group_id", UUID(as_uuid=True), nullable=True),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("status", payment_status, nullable=False, server_default="pending"),
        sa.Column("rejection_reason", sa.String(500), nullable=True),
        _created_at("submitted_at"),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processed_by", UUID(as_uuid=True), nullable=True),
    )
    op.create_index(
        "ix_section_payments_student_section",
        "section_payments",
        ["student_id", "section_id", "submitted_at"],
    )
    op.create_index(
        "ix_section_payments_course_status", "section_payments", ["course_id", "status"],
    )

    # ── pricing ──────────────────────────────────────────────────────────
    op.create_table(
        "pending_cost_changes",
        sa.Column("change_id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "course_id", UUID(as_uuid=True),
            sa.ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("instructor_id", UUID(as_uuid=True), nullable=False),
        sa.Column("old_cost_cents", sa.Integer(), nullable=False),
        sa.Column("new_cost_cents", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("total_paid_sections_cents", sa.Integer(), nullable=False),
        sa.Column("scale_factor", sa.Numeric(12, 8), nullable=False),
        sa.Column("affected_sections", sa.JSON(), nullable=False),
        sa.Column("status", cost_change_status, nullable=False, server_default="pending"),
        sa.Column("reason", sa.String(500), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolved_by", UUID(as_uuid=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        _created_at(),
    )
    op.create_index(
        "ix_pending_cost_changes_course_status", "pending_cost_changes", ["course_id", "status"],
    )
    op.create_index(
        "ix_pending_cost_changes_expires_status", "pending_cost_changes", ["expires_at", "status"],
    )
    # At most one open change per course
    op.create_index(
        "uq_pending_cost_changes_open_per_course",
        "pending_cost_changes",
        ["course_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        "course_price_changes",
        sa.Column("record_id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "course_id", UUID(as_uuid=True),
            sa.ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("old_cost_cents", sa.Integer(), nullable=False),
        sa.Column("new_cost_cents", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("changed_by", UUID(as_uuid=True), nullable=False),
        sa.Column("changed_by_role", sa.String(20), nullable=False),
        sa.Column("reason", sa.String(500), nullable=True),
        sa.Column("sections_adjusted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("scale_factor", sa.Numeric(12, 8), nullable=True),
        sa.Column("affected_sections", sa.JSON(), nullable=True),
        sa.Column("pending_change_id", UUID(as_uuid=True), nullable=True),
        _created_at(),
    )
    op.create_index(
        "ix_course_price_changes_course_created",
        "course_price_changes",
        ["course_id", "created_at"],
    )

    # ── certificates ─────────────────────────────────────────────────────
    op.create_table(
        "certificate_requests",
        sa.Column("request_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("student_id", UUID(as_uuid=True), nullable=False),
        sa.Column(
            "course_id", UUID(as_uuid=True),
            sa.ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("group_id", UUID(as_uuid=True), nullable=True),
        sa.Column("course_grade", sa.Numeric(5, 2), nullable=True),
        sa.Column(
            "status", certificate_request_status, nullable=False, server_default="requested",
        ),
        sa.Column("rejection_reason", sa.String(500), nullable=True),
        sa.Column("processed_by", UUID(as_uuid=True), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.UniqueConstraint(
            "student_id", "course_id", name="uq_certificate_requests_student_course",
        ),
    )

    op.create_table(
        "certificates",
        sa.Column("certificate_id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "request_id", UUID(as_uuid=True),
            sa.ForeignKey("certificate_requests.request_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("student_id", UUID(as_uuid=True), nullable=False),
        sa.Column(
            "course_id", UUID(as_uuid=True),
            sa.ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("group_id", UUID(as_uuid=True), nullable=True),
        sa.Column("verification_code", sa.String(100), nullable=False, unique=True),
        sa.Column("course_title", sa.String(300), nullable=False, server_default=""),
        sa.Column("instructor_name", sa.String(200), nullable=False, server_default=""),
        sa.Column("score", sa.Numeric(5, 2), nullable=True),
        _created_at("issued_at"),
        sa.UniqueConstraint("student_id", "course_id", name="uq_certificates_student_course"),
    )
    op.create_index("ix_certificates_course_id", "certificates", ["course_id"])

    # ── admin_settings ───────────────────────────────────────────────────
    op.create_table(
        "admin_settings",
        sa.Column("settings_id", sa.String(32), primary_key=True),
        sa.Column("passing_grade", sa.SmallInteger(), nullable=False, server_default="60"),
        sa.Column("updated_by", UUID(as_uuid=True), nullable=True),
        _created_at("updated_at"),
        sa.CheckConstraint(
            "passing_grade >= 0 AND passing_grade <= 100", name="ck_admin_settings_passing_grade",
        ),
    )
    op.execute(
        "INSERT INTO admin_settings (settings_id, passing_grade) VALUES ('admin_settings', 60)"
    )


def downgrade() -> None:
    for table in (
        "admin_settings",
        "certificates",
        "certificate_requests",
        "course_price_changes",
        "pending_cost_changes",
        "section_payments",
        "content_progress",
        "section_grades",
        "content_grades",
        "enrollment_sections",
        "enrollments",
        "quiz_attempts",
        "quizzes",
        "contents",
        "sections",
        "groups",
        "courses",
    ):
        op.drop_table(table)

    for enum_name in (
        "certificate_request_status",
        "quiz_attempt_status",
        "cost_change_status",
        "section_payment_status",
        "content_grade_status",
        "content_type",
        "enrollment_status",
    ):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
