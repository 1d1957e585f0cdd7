"""Repositorio de comentarios (`/comments`).

Reading comments requires a token, unlike reading blogs.

The backend has no single-comment read, so `update`/`delete` take the loaded
`Comment` (and, for delete, its `Blog`) to check ownership locally; the ids in
the request path come from those entities. Without a single read there is no
read-back after `update`: a bare acknowledgement yields `None` and the view
refetches the whole thread.
"""

from __future__ import annotations

import httpx
import structlog

from adapters.http_client import optional_entity, parse_entities, parse_entity, send, send_json
from core.domain.models import Blog, Comment, Identity
from core.domain.permissions import can_delete_comment, can_edit_comment
from core.errors import Forbidden, Unauthorized, ValidationError
from core.services.session_store import SessionStore

logger = structlog.get_logger()


def _clean_text(text: str) -> str:
    cleaned = text.strip()
    if not cleaned:
        raise ValidationError("Comment cannot be empty.", fields={"comment": "Comment cannot be empty."})
    return cleaned


class CommentRepository:
    """CRUD against the comment sub-collection of a blog."""

    def __init__(self, client: httpx.AsyncClient, session: SessionStore) -> None:
        self._client = client
        self._session = session

    def _require_token(self) -> str:
        token = self._session.token
        if token is None:
            raise Unauthorized("Login to see and write comments.")
        return token

    async def list_for_blog(self, blog_id: str) -> list[Comment]:
        token = self._require_token()
        data = await send_json(self._client, "GET", f"/comments/{blog_id}", token=token)
        return parse_entities(Comment, data)

    async def create(self, identity: Identity, blog_id: str, text: str) -> Comment:
        text = _clean_text(text)
        token = self._require_token()
        if identity.id is None:
            raise Unauthorized("Login to comment.")

        data = await send_json(
            self._client,
            "POST",
            f"/comments/{blog_id}",
            token=token,
            json={"comment": text},
        )
        comment = parse_entity(Comment, data)
        logger.info("comments.created", blog_id=blog_id, comment_id=comment.id)
        return comment

    async def update(self, identity: Identity, comment: Comment, text: str) -> Comment | None:
        """PATCH the comment. Returns the server's copy, or None when it sends none."""

        text = _clean_text(text)
        token = self._require_token()
        if not can_edit_comment(identity, comment):
            raise Forbidden("Only the author can edit this comment.")

        response = await send(
            self._client,
            "PATCH",
            f"/comments/update/{comment.id}",
            token=token,
            json={"comment": text},
        )
        logger.info("comments.updated", comment_id=comment.id)
        return optional_entity(Comment, response)

    async def delete(self, identity: Identity, blog: Blog, comment: Comment) -> None:
        token = self._require_token()
        if not can_delete_comment(identity, blog, comment):
            raise Forbidden("You cannot delete this comment.")

        await send(self._client, "DELETE", f"/comments/delete/{comment.id}", token=token)
        logger.info("comments.deleted", blog_id=blog.id, comment_id=comment.id)
