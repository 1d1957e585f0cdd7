"""List-backed views: the blog feed and a blog's comment thread.

Every successful mutation made through a view (or through an editor the view
handed out) is followed by a full refetch of the list. Local copies are never
patched in place; the server's answer replaces them.
"""

from __future__ import annotations

import structlog

from adapters.blog_repository import ContentRepository
from adapters.comment_repository import CommentRepository
from core.domain.models import Blog, BlogFields, Comment
from core.domain.permissions import can_create_blog
from core.errors import BlogDeskError, Unauthorized
from core.interfaces.collaborators import ConfirmationGate, NotificationSink
from core.services.edit_state import BlogEditor, CommentEditor, EditMode
from core.services.session_store import SessionStore

logger = structlog.get_logger()


class BlogFeed:
    """All blogs, plus creation and per-blog editors."""

    def __init__(
        self,
        *,
        repository: ContentRepository,
        session: SessionStore,
        confirmation: ConfirmationGate,
        notifier: NotificationSink,
    ) -> None:
        self._repository = repository
        self._session = session
        self._confirmation = confirmation
        self._notifier = notifier
        self.blogs: list[Blog] = []
        self.loading = False
        self.last_error: BlogDeskError | None = None

    def can_create(self) -> bool:
        return can_create_blog(self._session.identity)

    async def refresh(self) -> list[Blog]:
        """Refetch every blog. On failure the previous list is kept."""

        self.loading = True
        try:
            self.blogs = await self._repository.list_blogs()
            self.last_error = None
        except BlogDeskError as exc:
            self.last_error = exc
            logger.info("feed.refresh_failed", error_type=type(exc).__name__)
            self._notifier.error(exc.message)
        finally:
            self.loading = False
        return self.blogs

    async def create(self, fields: BlogFields) -> Blog | None:
        try:
            blog = await self._repository.create(self._session.identity, fields)
        except BlogDeskError as exc:
            self.last_error = exc
            self._notifier.error(exc.message)
            return None
        self._notifier.success("Blog added successfully!")
        await self.refresh()
        return blog

    def find(self, blog_id: str) -> Blog | None:
        return next((blog for blog in self.blogs if blog.id == blog_id), None)

    def editor_for(self, blog: Blog) -> BlogEditor:
        return BlogEditor(
            blog,
            repository=self._repository,
            session=self._session,
            confirmation=self._confirmation,
            notifier=self._notifier,
            reload=self._reload_blog,
            on_removed=self._after_removed,
        )

    async def _reload_blog(self, blog: Blog) -> Blog | None:
        await self.refresh()
        return self.find(blog.id)

    async def _after_removed(self, blog: Blog) -> None:
        await self.refresh()


class CommentThread:
    """Comments of one blog, with one `CommentEditor` per comment.

    Reading comments needs a login. Without one the thread reports itself
    unavailable instead of raising.
    """

    def __init__(
        self,
        blog: Blog,
        *,
        repository: CommentRepository,
        session: SessionStore,
        confirmation: ConfirmationGate,
        notifier: NotificationSink,
    ) -> None:
        self.blog = blog
        self._repository = repository
        self._session = session
        self._confirmation = confirmation
        self._notifier = notifier
        self.comments: list[Comment] = []
        self.available = True
        self.unavailable_reason: str | None = None
        self._editors: dict[str, CommentEditor] = {}

    async def refresh(self) -> list[Comment]:
        try:
            comments = await self._repository.list_for_blog(self.blog.id)
        except Unauthorized as exc:
            logger.info("comments.unavailable", blog_id=self.blog.id)
            self.available = False
            self.unavailable_reason = exc.message
            self.comments = []
            self._editors.clear()
            return self.comments
        except BlogDeskError as exc:
            logger.info("comments.refresh_failed", blog_id=self.blog.id, error_type=type(exc).__name__)
            self._notifier.error(exc.message)
            return self.comments

        self.available = True
        self.unavailable_reason = None
        self.comments = comments
        self._sync_editors()
        return self.comments

    async def post(self, text: str) -> Comment | None:
        try:
            comment = await self._repository.create(self._session.identity, self.blog.id, text)
        except BlogDeskError as exc:
            self._notifier.error(exc.message)
            return None
        self._notifier.success("Comment added!")
        await self.refresh()
        return comment

    def find(self, comment_id: str) -> Comment | None:
        return next((c for c in self.comments if c.id == comment_id), None)

    def editor(self, comment_id: str) -> CommentEditor:
        return self._editors[comment_id]

    def editors(self) -> list[CommentEditor]:
        return [self._editors[c.id] for c in self.comments if c.id in self._editors]

    def _sync_editors(self) -> None:
        # Editors mid-edit survive a refetch so their drafts are not lost.
        fresh: dict[str, CommentEditor] = {}
        for comment in self.comments:
            existing = self._editors.get(comment.id)
            if existing is not None and existing.mode is not EditMode.REMOVED:
                if existing.mode is EditMode.VIEWING and not existing.is_pending:
                    existing.replace_entity(comment)
                fresh[comment.id] = existing
            else:
                fresh[comment.id] = self._new_editor(comment)
        self._editors = fresh

    def _new_editor(self, comment: Comment) -> CommentEditor:
        return CommentEditor(
            comment,
            blog=self.blog,
            repository=self._repository,
            session=self._session,
            confirmation=self._confirmation,
            notifier=self._notifier,
            reload=self._reload_comment,
            on_removed=self._after_removed,
        )

    async def _reload_comment(self, comment: Comment) -> Comment | None:
        await self.refresh()
        return self.find(comment.id)

    async def _after_removed(self, comment: Comment) -> None:
        await self.refresh()
