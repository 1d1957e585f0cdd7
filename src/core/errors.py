"""Error taxonomy shared by the core, adapters and CLI.

Rules:
- Adapters translate transport/HTTP failures into these types; nothing above
  the adapters layer sees `httpx` exceptions.
- Callers decide recovery locally. Nothing here retries.
"""

from __future__ import annotations


class BlogDeskError(Exception):
    """Base class for every expected failure of the client."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    default_message = "Unexpected client error."


class ValidationError(BlogDeskError):
    """Empty or malformed input, usually caught before any network call."""

    default_message = "Invalid input."

    def __init__(self, message: str = "", *, fields: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.fields: dict[str, str] = dict(fields or {})


class Unauthorized(BlogDeskError):
    default_message = "Login required."


class Forbidden(BlogDeskError):
    default_message = "You are not allowed to do that."


class NotFound(BlogDeskError):
    default_message = "The requested item no longer exists."


class NetworkError(BlogDeskError):
    default_message = "Could not reach the server."


class IdentityResolutionFailure(BlogDeskError):
    """Token present but `/users/details` failed or returned malformed data."""

    default_message = "Could not verify your session. Please log in again."


class ApiError(BlogDeskError):
    """Unexpected HTTP status or a response body outside the `{data: ...}` envelope."""

    default_message = "The server returned an unexpected response."

    def __init__(self, message: str = "", *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EditTransitionError(BlogDeskError):
    """An edit-state transition was requested that is not offered right now."""

    default_message = "That action is not available."
