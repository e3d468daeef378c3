"""Shared domain exception classes for the course service.

These are raised by service-layer code and caught by controllers
to map to appropriate HTTP responses:

- NotFoundError      → 404
- UnauthorizedError  → 403
- InvalidStateError  → 409
- ValidationError    → 422
"""


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------


class NotFoundError(Exception):
    """Base for missing entities."""

    resource = "Resource"

    def __init__(self, identifier: str = ""):
        self.identifier = identifier
        super().__init__(f"{self.resource} not found: {identifier}")


class CourseNotFoundError(NotFoundError):
    resource = "Course"


class GroupNotFoundError(NotFoundError):
    resource = "Group"


class SectionNotFoundError(NotFoundError):
    resource = "Section"


class ContentNotFoundError(NotFoundError):
    resource = "Content"


class EnrollmentNotFoundError(NotFoundError):
    resource = "Enrollment"


class PendingChangeNotFoundError(NotFoundError):
    resource = "Pending cost change"


class PaymentNotFoundError(NotFoundError):
    resource = "Section payment"


class CertificateRequestNotFoundError(NotFoundError):
    resource = "Certificate request"


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


class UnauthorizedError(Exception):
    """Raised when the caller is neither the course owner nor an admin."""

    def __init__(self, detail: str = "Not the course owner."):
        self.detail = detail
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Invalid state
# ---------------------------------------------------------------------------


class InvalidStateError(Exception):
    """Raised when an operation does not apply to the entity's current state."""


class ChangeAlreadyResolvedError(InvalidStateError):
    def __init__(self, change_id: str = "", status: str = ""):
        self.change_id = change_id
        self.status = status
        super().__init__(f"Cost change {change_id} already resolved ({status})")


class PendingChangeExistsError(InvalidStateError):
    """Raised when a course already has a pending cost change awaiting confirmation."""

    def __init__(self, change_id: str = ""):
        self.change_id = change_id
        super().__init__(f"Course already has a pending cost change: {change_id}")


class DuplicateCertificateRequestError(InvalidStateError):
    def __init__(self, status: str = ""):
        self.status = status
        super().__init__(f"Certificate request already {status}")


class CertificateNotEligibleError(InvalidStateError):
    """Raised when a certificate is requested in a state that does not allow it."""

    def __init__(self, eligibility_status: str = ""):
        self.eligibility_status = eligibility_status
        super().__init__(f"Not eligible for a certificate: {eligibility_status}")


class CertificateRequestAlreadyProcessedError(InvalidStateError):
    def __init__(self, status: str = ""):
        self.status = status
        super().__init__(f"Certificate request already {status}")


class StaleCostChangeError(InvalidStateError):
    """Raised when paid sections changed after a rescale plan was proposed."""

    def __init__(self, change_id: str = ""):
        self.change_id = change_id
        super().__init__(
            f"Paid sections changed since cost change {change_id} was proposed; "
            "cancel it and propose again"
        )


class PaymentAlreadySubmittedError(InvalidStateError):
    """Raised when a pending or approved payment already exists for the section."""


class PaymentAlreadyProcessedError(InvalidStateError):
    def __init__(self, status: str = ""):
        self.status = status
        super().__init__(f"Payment already {status}")


class SubmissionNotAllowedError(InvalidStateError):
    """Raised when a submission is awaiting grading or was already graded."""


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ValidationError(Exception):
    """Raised for values that must be rejected rather than clamped."""


class InvalidPriceError(ValidationError):
    def __init__(self, value: int | None = None):
        self.value = value
        super().__init__(f"Price must be a positive whole number of subunits: {value}")


class InvalidAmountError(ValidationError):
    def __init__(self, value: int | None = None):
        self.value = value
        super().__init__(f"Amount must be greater than zero: {value}")


class FreeSectionPaymentError(ValidationError):
    """Raised when a payment is submitted for a section that is unlocked by default."""


class InvalidPassingGradeError(ValidationError):
    def __init__(self, value: object = None):
        self.value = value
        super().__init__(f"Passing grade must be between 0 and 100: {value}")


class ContentTypeMismatchError(ValidationError):
    """Raised when an operation targets the wrong kind of content item."""

    def __init__(self, expected: str = "", actual: str = ""):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected {expected} content, got {actual}")


class CurrencyMismatchError(ValidationError):
    """Raised when a price is given in a currency other than the course's."""

    def __init__(self, expected: str = "", actual: str = ""):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Course is priced in {expected}, got {actual}")


class SectionBudgetExceededError(ValidationError):
    """Raised when paid section prices would add up to more than the course cost."""

    def __init__(self, course_cost: int = 0, allocated: int = 0, requested: int = 0):
        self.course_cost = course_cost
        self.allocated = allocated
        self.requested = requested
        available = max(course_cost - allocated, 0)
        super().__init__(
            f"Section price {requested} exceeds the course total {course_cost} "
            f"(already allocated {allocated}, available {available})"
        )


class CostBelowSectionMinimumError(ValidationError):
    """Raised when a new cost cannot keep every paid section at the minimum price."""

    def __init__(self, new_cost: int = 0, paid_sections: int = 0):
        self.new_cost = new_cost
        self.paid_sections = paid_sections
        super().__init__(
            f"Cost {new_cost} is too low to keep {paid_sections} paid sections priced"
        )


class UnknownContentTypeError(Exception):
    """Raised when content carries a type the grading rules do not know."""

    def __init__(self, content_type: str = ""):
        self.content_type = content_type
        super().__init__(f"Unknown content type: {content_type}")
