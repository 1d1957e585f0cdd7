"""Adaptador para `/users/*`.

- `fetch_identity` implements `core.interfaces.IdentityProvider`.
- `register` creates an account; the backend answers without an envelope we
  rely on, so only the status code matters.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from adapters.http_client import send, send_json
from core.domain.models import Identity, Registration
from core.errors import BlogDeskError, IdentityResolutionFailure, ValidationError

logger = structlog.get_logger()


def _identity_from_payload(data: Any) -> Identity:
    if not isinstance(data, dict):
        raise IdentityResolutionFailure("Identity payload is not an object.")
    user_id = data.get("_id")
    if not isinstance(user_id, str) or not user_id:
        raise IdentityResolutionFailure("Identity payload has no user id.")
    is_admin = data.get("isAdmin")
    email = data.get("email")
    return Identity(
        id=user_id,
        is_admin=is_admin if isinstance(is_admin, bool) else False,
        email=email if isinstance(email, str) else "",
    )


class UsersApi:
    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def fetch_identity(self, token: str) -> Identity:
        try:
            data = await send_json(self._client, "GET", "/users/details", token=token)
        except BlogDeskError as exc:
            logger.info("users.details_failed", error_type=type(exc).__name__)
            raise IdentityResolutionFailure() from exc
        return _identity_from_payload(data)

    async def register(self, registration: Registration) -> None:
        problems = registration.problems()
        if problems:
            raise ValidationError("Please fix validation errors.", fields=problems)

        await send(self._client, "POST", "/users/register", json=registration.to_payload())
        logger.info("users.registered")
