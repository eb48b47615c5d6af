"""Exceptions raised to callers of the optimizer."""

from itinerary_optimizer.models import AppError, ErrorCode


class InvalidInputError(ValueError):
    """Request rejected before any strategy ran.

    Distinct from an infeasible outcome, which is a valid (possibly empty)
    result and never raised.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        code: ErrorCode = ErrorCode.INVALID_INPUT,
    ) -> None:
        super().__init__(message)
        self.error = AppError(
            code=code,
            message=message,
            user_message="Invalid optimization request. Please check the places and constraints.",
            field=field,
        )

    @property
    def field(self) -> str | None:
        return self.error.field
