"""Composition root.

`open_app_context()` builds the HTTP client, the single `SessionStore`, the
repositories and hands out views/editors wired to them. Front ends (the CLI,
tests) get everything through the yielded `AppContext` instead of globals.

Lifecycle:
1. build `httpx.AsyncClient`
2. `SessionStore.initialize()` (persisted token -> identity)
3. yield
4. `SessionStore.close()`, then the client is closed
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

import httpx
import structlog

from adapters.blog_repository import ContentRepository
from adapters.comment_repository import CommentRepository
from adapters.http_client import build_async_client
from adapters.token_store import FileTokenStore
from adapters.users_api import UsersApi
from core.config import AppSettings
from core.domain.models import Blog
from core.interfaces.collaborators import ConfirmationGate, NotificationSink, TokenPersistence
from core.services.content_views import BlogFeed, CommentThread
from core.services.edit_state import BlogEditor
from core.services.session_store import SessionStore

logger = structlog.get_logger()


@dataclass
class AppContext:
    settings: AppSettings
    session: SessionStore
    users: UsersApi
    blogs: ContentRepository
    comments: CommentRepository
    confirmation: ConfirmationGate
    notifier: NotificationSink

    def blog_feed(self) -> BlogFeed:
        return BlogFeed(
            repository=self.blogs,
            session=self.session,
            confirmation=self.confirmation,
            notifier=self.notifier,
        )

    def comment_thread(self, blog: Blog) -> CommentThread:
        return CommentThread(
            blog,
            repository=self.comments,
            session=self.session,
            confirmation=self.confirmation,
            notifier=self.notifier,
        )

    def blog_editor(self, blog: Blog) -> BlogEditor:
        """Editor for a single blog detail view (fresh read via `GET /blogs/{id}`)."""

        return BlogEditor(
            blog,
            repository=self.blogs,
            session=self.session,
            confirmation=self.confirmation,
            notifier=self.notifier,
        )


@asynccontextmanager
async def open_app_context(
    settings: AppSettings | None = None,
    *,
    confirmation: ConfirmationGate,
    notifier: NotificationSink,
    persistence: TokenPersistence | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[AppContext]:
    settings = settings or AppSettings()
    persistence = persistence or FileTokenStore(settings.resolved_token_file())

    async with build_async_client(settings, transport=transport) as client:
        users = UsersApi(client)
        session = SessionStore(persistence=persistence, identity_provider=users)
        await session.initialize()
        logger.debug("app.started", base_url=settings.api_base_url, authenticated=session.is_authenticated)
        try:
            yield AppContext(
                settings=settings,
                session=session,
                users=users,
                blogs=ContentRepository(client, session),
                comments=CommentRepository(client, session),
                confirmation=confirmation,
                notifier=notifier,
            )
        finally:
            session.close()
            logger.debug("app.stopped")
