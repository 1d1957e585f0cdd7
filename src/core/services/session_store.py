"""Session and identity lifecycle built on a bearer token.

A single `SessionStore` instance is created by `AppContext` and passed by
reference to every component that needs the token or the viewer's identity.

Rules:
- Fail-closed: any identity-resolution failure clears identity, token and the
  persisted token.
- `identity.id is not None` implies `token is not None` at every observable
  instant. Identity is always cleared before the token is.
- A resolution that completes after the token has changed is discarded.
"""

from __future__ import annotations

import structlog

from core.domain.models import Identity
from core.errors import IdentityResolutionFailure
from core.interfaces.collaborators import IdentityProvider, TokenPersistence

logger = structlog.get_logger()


def normalize_token(token: str | None) -> str | None:
    """Blank strings and a stored literal "null" mean "no token"."""

    if token is None:
        return None
    token = token.strip()
    if not token or token == "null":
        return None
    return token


class SessionStore:
    """Owns the bearer token and the resolved `Identity`."""

    def __init__(self, *, persistence: TokenPersistence, identity_provider: IdentityProvider) -> None:
        self._persistence = persistence
        self._identity_provider = identity_provider
        self._token: str | None = None
        self._identity = Identity.anonymous()
        self._generation = 0

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def identity(self) -> Identity:
        return self._identity

    @property
    def is_authenticated(self) -> bool:
        return self._identity.is_authenticated

    async def initialize(self) -> Identity:
        """Load the persisted token and resolve it.

        A persisted token that no longer resolves leaves the store anonymous
        instead of failing startup.
        """

        stored = normalize_token(self._persistence.load())
        if stored is None:
            self._reset(clear_persisted=False)
            return self._identity
        try:
            return await self.set_token(stored)
        except IdentityResolutionFailure:
            logger.warning("session.persisted_token_rejected")
            return self._identity

    async def set_token(self, token: str | None) -> Identity:
        """Replace the token. A non-null token is persisted and resolved."""

        token = normalize_token(token)
        if token is None:
            self._reset(clear_persisted=True)
            return self._identity

        if token != self._token:
            self._identity = Identity.anonymous()
        self._token = token
        self._generation += 1
        self._persistence.save(token)
        return await self.resolve_identity()

    async def resolve_identity(self) -> Identity:
        """Resolve the current token into an identity.

        Raises `IdentityResolutionFailure` after clearing the session when the
        backend rejects the token or answers with something unusable.
        """

        token = self._token
        if token is None:
            self._reset(clear_persisted=False)
            return self._identity

        generation = self._generation
        try:
            identity = await self._identity_provider.fetch_identity(token)
        except IdentityResolutionFailure:
            if generation == self._generation:
                logger.warning("session.identity_resolution_failed")
                self._reset(clear_persisted=True)
            raise
        if identity.id is None:
            if generation == self._generation:
                self._reset(clear_persisted=True)
            raise IdentityResolutionFailure("Identity response has no user id.")

        if generation != self._generation:
            logger.debug("session.stale_resolution_discarded")
            return self._identity

        self._identity = identity
        logger.info("session.identity_resolved", user_id=identity.id, is_admin=identity.is_admin)
        return identity

    def logout(self) -> None:
        """Clear token, identity and persisted state. Safe to call repeatedly."""

        self._reset(clear_persisted=True)
        logger.info("session.logged_out")

    def close(self) -> None:
        """Drop in-memory state; the persisted token survives for the next start."""

        self._reset(clear_persisted=False)

    def _reset(self, *, clear_persisted: bool) -> None:
        self._identity = Identity.anonymous()
        self._token = None
        self._generation += 1
        if clear_persisted:
            self._persistence.clear()
