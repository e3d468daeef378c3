import enum

from sqlalchemy import Enum as SAEnum


class CertificateMode(str, enum.Enum):
    AUTOMATIC = "automatic"
    MANUAL_INSTRUCTOR = "manual_instructor"
    DISABLED = "disabled"


class EnrollmentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    ENROLLED = "enrolled"
    COMPLETED = "completed"
    REJECTED = "rejected"


class ContentType(str, enum.Enum):
    LECTURE = "lecture"
    ASSIGNMENT = "assignment"
    PROJECT = "project"


class ContentGradeStatus(str, enum.Enum):
    NOT_DELIVERED = "not_delivered"
    SUBMITTED_UNGRADED = "submitted_ungraded"
    GRADED = "graded"
    WATCHED = "watched"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CostChangeStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED_AUTO = "approved_auto"
    APPROVED_MANUAL = "approved_manual"
    CANCELLED = "cancelled"


class QuizAttemptStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    GRADED = "graded"


class CertificateRequestStatus(str, enum.Enum):
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"


def _values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


def _enum_type(enum_cls: type[enum.Enum], name: str) -> SAEnum:
    # Persist the lowercase values, not the member names.
    return SAEnum(enum_cls, name=name, values_callable=_values, validate_strings=True)


# SQLAlchemy Enum instances (reuse across models to avoid duplicate type creation)
enrollment_status_enum = _enum_type(EnrollmentStatus, "enrollment_status")
content_type_enum = _enum_type(ContentType, "content_type")
content_grade_status_enum = _enum_type(ContentGradeStatus, "content_grade_status")
payment_status_enum = _enum_type(PaymentStatus, "section_payment_status")
cost_change_status_enum = _enum_type(CostChangeStatus, "cost_change_status")
quiz_attempt_status_enum = _enum_type(QuizAttemptStatus, "quiz_attempt_status")
certificate_request_status_enum = _enum_type(
    CertificateRequestStatus, "certificate_request_status"
)
