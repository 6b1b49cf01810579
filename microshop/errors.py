"""Service errors carrying a status code and a machine-readable reason."""

from __future__ import annotations


class ServiceError(Exception):
    """An error returned to callers of a service, with a status code and reason."""

    def __init__(self, code: int, reason: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.reason = reason
        self.message = message

    def __str__(self) -> str:
        return f"error: code = {self.code} reason = {self.reason} message = {self.message}"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, reason={self.reason!r}, "
            f"message={self.message!r})"
        )


def not_found(reason: str, message: str) -> ServiceError:
    """Build a 404 error."""
    return ServiceError(404, reason, message)


def bad_request(reason: str, message: str) -> ServiceError:
    """Build a 400 error."""
    return ServiceError(400, reason, message)


USER_NOT_FOUND = not_found("USER_NOT_FOUND", "users not found")
INVALID_ID = bad_request("Invalid_ID", "invalid id")
REPERTORY_NOT_FOUND = not_found("Repertory_NOT_FOUND", "repertory not found")
CONCURRENT_CONFLICT = ServiceError(500, "CONCURRENT_CONFLICT", "操作过于频繁")
INSUFFICIENT_STOCK = ServiceError(500, "INSUFFICIENT_STOCK", "库存不足")