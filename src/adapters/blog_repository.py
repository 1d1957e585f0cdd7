"""Repositorio de blogs (`/blogs`).

Checks run in this order so that bad input never costs a round trip:
validation, token presence, then (for update/delete) a read of the current
record for the ownership check, then the mutation itself.

No version or `updatedAt` check is made on write: the server applies the last
write it receives.
"""

from __future__ import annotations

import httpx
import structlog

from adapters.http_client import optional_entity, parse_entities, parse_entity, send, send_json
from core.domain.models import Blog, BlogFields, Identity
from core.domain.permissions import can_create_blog, can_delete_blog, can_edit_blog
from core.errors import Forbidden, Unauthorized, ValidationError
from core.services.session_store import SessionStore

logger = structlog.get_logger()


def _validate(fields: BlogFields) -> BlogFields:
    problems = fields.missing()
    if problems:
        raise ValidationError("Title and content cannot be empty.", fields=problems)
    return fields


class ContentRepository:
    """CRUD against the blog-post collection."""

    def __init__(self, client: httpx.AsyncClient, session: SessionStore) -> None:
        self._client = client
        self._session = session

    def _require_token(self) -> str:
        token = self._session.token
        if token is None:
            raise Unauthorized()
        return token

    async def list_blogs(self) -> list[Blog]:
        data = await send_json(self._client, "GET", "/blogs")
        return parse_entities(Blog, data)

    async def get(self, blog_id: str) -> Blog:
        data = await send_json(self._client, "GET", f"/blogs/{blog_id}")
        return parse_entity(Blog, data)

    async def create(self, identity: Identity, fields: BlogFields) -> Blog:
        _validate(fields)
        token = self._require_token()
        if not can_create_blog(identity):
            raise Unauthorized()

        data = await send_json(
            self._client,
            "POST",
            "/blogs",
            token=token,
            json={"title": fields.title, "content": fields.content},
        )
        blog = parse_entity(Blog, data)
        logger.info("blogs.created", blog_id=blog.id)
        return blog

    async def update(self, identity: Identity, blog_id: str, fields: BlogFields) -> Blog:
        _validate(fields)
        token = self._require_token()
        current = await self.get(blog_id)
        if not can_edit_blog(identity, current):
            raise Forbidden("Only the author can edit this blog.")

        response = await send(
            self._client,
            "PATCH",
            f"/blogs/{blog_id}",
            token=token,
            json={"title": fields.title, "content": fields.content},
        )
        logger.info("blogs.updated", blog_id=blog_id)
        updated = optional_entity(Blog, response)
        if updated is None:
            return await self.get(blog_id)
        return updated

    async def delete(self, identity: Identity, blog_id: str) -> None:
        token = self._require_token()
        current = await self.get(blog_id)
        if not can_delete_blog(identity, current):
            raise Forbidden("Only the author or an admin can delete this blog.")

        await send(self._client, "DELETE", f"/blogs/{blog_id}", token=token)
        logger.info("blogs.deleted", blog_id=blog_id)
