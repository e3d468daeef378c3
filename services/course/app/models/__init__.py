# Import all models so Alembic can discover them via Base.metadata
from .admin_settings import AdminSettings
from .certificate import Certificate
from .certificate_request import CertificateRequest
from .content import Content
from .content_grade import ContentGrade
from .content_progress import ContentProgress
from .course import Course
from .enrollment import Enrollment, EnrollmentSection
from .group import Group
from .pending_cost_change import PendingCostChange
from .price_change import PriceChangeRecord
from .quiz import Quiz
from .quiz_attempt import QuizAttempt
from .section import Section
from .section_grade import SectionGrade
from .section_payment import SectionPayment

__all__ = [
    "AdminSettings",
    "Certificate",
    "CertificateRequest",
    "Content",
    "ContentGrade",
    "ContentProgress",
    "Course",
    "Enrollment",
    "EnrollmentSection",
    "Group",
    "PendingCostChange",
    "PriceChangeRecord",
    "Quiz",
    "QuizAttempt",
    "Section",
    "SectionGrade",
    "SectionPayment",
]
