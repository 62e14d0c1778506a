from typing import Optional


class StoreError(Exception):
    """Base class for every failure reported by the document store or identity service."""

    code = "unknown"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidArgumentError(StoreError):
    code = "invalid-argument"


class AuthenticationError(StoreError):
    code = "unauthenticated"


class PermissionDeniedError(StoreError):
    code = "permission-denied"


class NotFoundError(StoreError):
    code = "not-found"


class ConflictError(StoreError):
    code = "already-exists"


class TransportError(StoreError):
    code = "unavailable"


class SubscriptionError(StoreError):
    """The listen stream ended with a terminal error; resubscribe to recover."""

    code = "cancelled"


_BY_STATUS = {
    400: InvalidArgumentError,
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: NotFoundError,
    409: ConflictError,
}


def error_from_response(status_code: int, detail: Optional[str]) -> StoreError:
    cls = _BY_STATUS.get(status_code, StoreError)
    return cls(detail or f"HTTP {status_code}", status_code=status_code)
