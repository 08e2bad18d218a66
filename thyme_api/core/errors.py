"""Exceptions shared by the record store, the scheduling core and the routes."""


class StoreError(Exception):
    """Raised when the external record store cannot serve a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StoreConfigurationError(StoreError):
    """Raised on first use of the store when its credentials are not configured."""


class BookingValidationError(ValueError):
    """Raised when an appointment cannot be booked as submitted."""


class BookingConflictError(Exception):
    """Raised when the requested slot is no longer free for any eligible advisor."""


class BookingApiError(Exception):
    """Raised by the booking API client when the server rejects a write."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
