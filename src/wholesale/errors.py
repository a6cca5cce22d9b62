"""Failure kinds that Protean does not already provide.

Validation failures use ``protean.exceptions.ValidationError`` and missing
carts or lines use ``protean.exceptions.ObjectNotFoundError``; everything
below complements those two.
"""


class RevisionConflictError(Exception):
    """The cart changed since the caller last read it."""

    def __init__(self, message: str, expected: int | None = None, actual: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.expected = expected
        self.actual = actual

    @classmethod
    def mismatch(cls, expected: int, actual: int) -> "RevisionConflictError":
        return cls(
            f"Cart was modified concurrently (expected revision {expected}, found {actual})",
            expected=expected,
            actual=actual,
        )


class CartServiceError(Exception):
    """Base class for failures talking to the cart service."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NetworkError(CartServiceError):
    """The request never produced a response."""


class CartTimeoutError(NetworkError):
    """The request did not complete within the configured timeout."""


class ServerError(CartServiceError):
    """The service answered with an unexpected non-2xx status."""


class OrderServiceError(Exception):
    """The external order-creation service could not be reached or rejected the request."""


class ConsistencyWarning(UserWarning):
    """The cart was cleared although some supplier sub-orders failed."""
