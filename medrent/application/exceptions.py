from __future__ import annotations


class BookingError(RuntimeError):
    """Base class for every rejected booking operation."""
    pass


class ValidationError(BookingError):
    """Raised when stage input is missing or invalid. Recoverable by re-prompting."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class AvailabilityExhausted(BookingError):
    """Raised when no branch has a free unit for the requested category and dates."""

    def __init__(self, category_id: str, branches_checked: list[str]) -> None:
        super().__init__(
            f"No {category_id} units available at {', '.join(branches_checked) or 'any branch'}"
        )
        self.category_id = category_id
        self.branches_checked = branches_checked


class ExternalServiceError(BookingError):
    """Raised when availability, catalog or persistence backends fail or time out."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation


class InvariantViolation(BookingError):
    """Raised when a booking contract is broken (e.g. delivery before payment)."""
    pass


class InvalidTransition(InvariantViolation):
    """Raised when the requested stage is not reachable from the current stage."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Invalid booking transition: {current} → {target}")
        self.current = current
        self.target = target
