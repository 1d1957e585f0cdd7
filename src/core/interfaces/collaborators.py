"""Contratos de colaboradores externos.

Por qué Protocol:
- The core only needs the shape of these collaborators; the CLI, tests and
  any other front end plug in their own implementations.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import Identity


@runtime_checkable
class ConfirmationGate(Protocol):
    """Blocking yes/no decision before a destructive action.

    Destructive flows call the repository only after an explicit `True`.
    """

    async def confirm(self, title: str, message: str) -> bool:
        ...


@runtime_checkable
class NotificationSink(Protocol):
    """Receives user-facing messages. Fire-and-forget: must not block."""

    def success(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...


@runtime_checkable
class TokenPersistence(Protocol):
    """Storage for the bearer token. Used only by `SessionStore`."""

    def save(self, token: str) -> None:
        ...

    def load(self) -> str | None:
        ...

    def clear(self) -> None:
        """Remove the stored value entirely."""

        ...


@runtime_checkable
class IdentityProvider(Protocol):
    """Turns a bearer token into an `Identity` (the `/users/details` round trip).

    Raises `IdentityResolutionFailure` on any failure.
    """

    async def fetch_identity(self, token: str) -> Identity:
        ...
