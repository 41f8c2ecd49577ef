"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidRecurrenceError(DomainException):
    """Frequency is unrecognized or interval is not a positive integer"""

    pass


class InvalidStartDateError(DomainException):
    """Obligation start date is missing or cannot be parsed"""

    pass


class InvalidOverrideError(DomainException):
    """Cycle override is malformed (negative amount, minimum above target, bad date)"""

    pass


class BackendAPIError(DomainException):
    """Hosted backend returned an error or is unavailable"""

    pass


class ObligationNotFoundError(DomainException):
    """Requested obligation record does not exist in the backend"""

    pass
