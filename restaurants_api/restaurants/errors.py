"""Restaurant API exceptions."""

from __future__ import annotations

RESTAURANT_NOT_FOUND = "Restaurante no encontrado"


class RestaurantAPIError(Exception):
    """Base exception for restaurant API errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationFailed(RestaurantAPIError):
    """Request input is missing or malformed."""

    status_code = 400


class NotFound(RestaurantAPIError):
    """A restaurant, or an element embedded in one, does not exist."""

    status_code = 404


class StoreUnavailable(RestaurantAPIError):
    """The document store could not be reached at startup."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.detail = detail
