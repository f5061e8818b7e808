from __future__ import annotations


class DiagnosticsError(Exception):
    """Base class for every failure raised by the diagnostics client."""


class InvalidArgumentError(DiagnosticsError, ValueError):
    def __init__(self, name: str, message: str | None = None) -> None:
        self.name = name
        super().__init__(message or f"'{name}' cannot be null or empty.")


class ProtocolViolationError(DiagnosticsError):
    """The service answered with success but broke its response contract."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class LeaseUnavailableError(DiagnosticsError):
    """No lease capacity is left in the namespace, or a held lease was lost."""

    def __init__(self, message: str = "The lease is unavailable.", *, status_code: int = 409) -> None:
        self.status_code = status_code
        super().__init__(message)


class ServiceRequestFailedError(DiagnosticsError):
    def __init__(
        self,
        status_code: int,
        *,
        message: str | None = None,
        reason: str | None = None,
        error_code: str | None = None,
        error_message: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.reason = reason
        self.error_code = error_code
        self.error_message = error_message

        super().__init__(str(self))

    @property
    def is_transient(self) -> bool:
        return self.status_code == 0 or self.status_code >= 500

    def __str__(self) -> str:
        if self.message:
            return self.message
        if self.error_code is not None:
            return f"Request failed with status {self.status_code}: {self.error_code}: {self.error_message}"
        return f"Request failed with status {self.status_code}"


__all__ = [
    "DiagnosticsError",
    "InvalidArgumentError",
    "LeaseUnavailableError",
    "ProtocolViolationError",
    "ServiceRequestFailedError",
]
