"""Error taxonomy shared by the booking workflow and the HTTP layer."""

from __future__ import annotations

from collections.abc import Sequence


class ClinicError(Exception):
    """Base error carrying a stable code and the HTTP status it maps to."""

    code = "INTERNAL_ERROR"
    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message

    def as_response(self) -> dict[str, object]:
        return {"error": self.public_message, "code": self.code}


class ValidationError(ClinicError):
    """A required booking or profile field is missing or malformed."""

    code = "VALIDATION_ERROR"
    status_code = 400
    public_message = "Invalid request"

    def __init__(self, fields: Sequence[str], message: str | None = None) -> None:
        self.fields = list(fields)
        super().__init__(message or f"Invalid fields: {', '.join(self.fields)}")

    def as_response(self) -> dict[str, object]:
        body = super().as_response()
        body["fields"] = self.fields
        return body


class NotFoundError(ClinicError):
    """A looked-up row does not exist."""

    code = "NOT_FOUND"
    status_code = 404

    def as_response(self) -> dict[str, object]:
        return {"error": self.message, "code": self.code}


class StorageWriteError(ClinicError):
    """An insert failed on a constraint violation or a connectivity problem."""

    code = "STORAGE_WRITE_ERROR"


class BookingFailed(ClinicError):
    """The booking workflow failed as a whole; ``__cause__`` holds the reason."""

    code = "BOOKING_FAILED"
