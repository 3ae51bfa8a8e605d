class DomainError(Exception):
    """Base exception for the reconciliation engine."""


class ValidationError(DomainError):
    """Raised when input data or configuration is invalid."""


class DataIntegrityError(DomainError):
    """Raised when a raw punch row lacks its employee code or timestamp."""


class ClassificationAmbiguityError(DomainError):
    """Raised when a punch cannot be placed against shift boundaries."""


class ComputationError(DomainError):
    """Storage or query failure while aggregating or computing metrics.

    Carries the number of rows skipped and errored so callers can report
    an explicit failure instead of a partial result.
    """

    def __init__(self, message: str, *, skipped: int = 0, errored: int = 0):
        super().__init__(message)
        self.skipped = int(skipped)
        self.errored = int(errored)


class ConcurrentUpdateError(ComputationError):
    """Raised when an attendance record changed between read and write."""


class AdjustmentFailure(DomainError):
    """Raised when a missing punch-out correction could not be written back."""
