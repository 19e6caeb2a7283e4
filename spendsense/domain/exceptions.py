"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ConsentRequired(DomainException):
    """User has not opted in to data processing"""

    def __init__(self, message: str = "ConsentRequired: user has not opted in."):
        super().__init__(message)


class ToneViolation(DomainException):
    """Recommendation copy matched banned language"""

    def __init__(self, item_id: str, pattern: str):
        self.item_id = item_id
        self.pattern = pattern
        super().__init__(f"ToneViolation in {item_id}: matched /{pattern}/")


class CopyGenerationError(DomainException):
    """Text generation collaborator is unavailable or returned unusable output"""

    pass


class DataAccessError(DomainException):
    """Data store could not be read after bounded retries"""

    pass
