"""Per-entity edit-mode state machines.

One instance governs one blog post or one comment:

    VIEWING --begin_edit--> EDITING --submit ok / cancel--> VIEWING
    VIEWING --request_delete (confirmed, ok)--> REMOVED   (terminal)

Rules:
- Transitions are offered only when the viewer holds the matching capability
  (see `available_actions`). Asking for one that is not offered raises
  `EditTransitionError`.
- After a successful submit the committed entity is replaced by a fresh read,
  never by the local draft.
- A failed submit stays in EDITING with the draft intact and emits exactly
  one error notification.
- While a submit or delete is in flight the machine refuses another one.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable, Generic, TypeVar

import structlog

from core.domain.models import Blog, BlogFields, Comment
from core.domain.permissions import (
    Capability,
    can_delete_blog,
    can_delete_comment,
    can_edit_blog,
    can_edit_comment,
)
from core.errors import BlogDeskError, EditTransitionError, NotFound
from core.interfaces.collaborators import ConfirmationGate, NotificationSink
from core.services.session_store import SessionStore

logger = structlog.get_logger()

EntityT = TypeVar("EntityT", Blog, Comment)

if TYPE_CHECKING:
    from adapters.blog_repository import ContentRepository
    from adapters.comment_repository import CommentRepository


class EditMode(str, Enum):
    VIEWING = "viewing"
    EDITING = "editing"
    REMOVED = "removed"


class EditStateMachine(Generic[EntityT]):
    """Shared transition logic; subclasses bind fields, permissions and I/O."""

    editable_fields: tuple[str, ...] = ()
    saved_message = "Saved."
    removed_message = "Deleted."
    delete_title = "Delete this item?"
    delete_message = "You won't be able to undo this action."

    def __init__(
        self,
        entity: EntityT,
        *,
        session: SessionStore,
        confirmation: ConfirmationGate,
        notifier: NotificationSink,
        reload: Callable[[EntityT], Awaitable[EntityT | None]] | None = None,
        on_removed: Callable[[EntityT], Awaitable[None]] | None = None,
    ) -> None:
        self._entity = entity
        self._session = session
        self._confirmation = confirmation
        self._notifier = notifier
        self._reload = reload
        self._on_removed = on_removed
        self._mode = EditMode.VIEWING
        self._draft: dict[str, str] | None = None
        self._pending = False
        self.last_error: BlogDeskError | None = None

    @property
    def entity(self) -> EntityT:
        return self._entity

    @property
    def mode(self) -> EditMode:
        return self._mode

    @property
    def draft(self) -> dict[str, str] | None:
        return dict(self._draft) if self._draft is not None else None

    @property
    def is_pending(self) -> bool:
        return self._pending

    def replace_entity(self, entity: EntityT) -> None:
        """Accept a fresher committed copy (e.g. after a list refetch)."""

        if entity.id != self._entity.id:
            raise ValueError("Cannot replace an entity with a different id.")
        self._entity = entity

    def can_edit(self) -> bool:
        raise NotImplementedError

    def can_delete(self) -> bool:
        raise NotImplementedError

    def available_actions(self) -> frozenset[Capability]:
        if self._mode is not EditMode.VIEWING or self._pending:
            return frozenset()
        actions: set[Capability] = set()
        if self.can_edit():
            actions.add(Capability.EDIT)
        if self.can_delete():
            actions.add(Capability.DELETE)
        return frozenset(actions)

    def begin_edit(self) -> dict[str, str]:
        if Capability.EDIT not in self.available_actions():
            raise EditTransitionError("Editing is not available here.")
        self._draft = {name: str(getattr(self._entity, name)) for name in self.editable_fields}
        self._mode = EditMode.EDITING
        self.last_error = None
        return dict(self._draft)

    def change_draft(self, field: str, value: str) -> None:
        if self._mode is not EditMode.EDITING or self._draft is None:
            raise EditTransitionError("Not editing.")
        if self._pending:
            raise EditTransitionError("A save is in progress.")
        if field not in self.editable_fields:
            raise EditTransitionError(f"'{field}' is not an editable field.")
        self._draft[field] = value

    def cancel(self) -> None:
        if self._mode is not EditMode.EDITING:
            raise EditTransitionError("Not editing.")
        if self._pending:
            raise EditTransitionError("A save is in progress.")
        self._draft = None
        self._mode = EditMode.VIEWING
        self.last_error = None

    async def submit(self) -> bool:
        """Save the draft. Returns True when the machine is back in VIEWING."""

        if self._mode is not EditMode.EDITING or self._draft is None:
            raise EditTransitionError("Not editing.")
        if self._pending:
            logger.debug("edit.submit_ignored_pending", entity_id=self._entity.id)
            return False

        draft = dict(self._draft)
        self._pending = True
        try:
            try:
                await self._save(draft)
            except BlogDeskError as exc:
                self._fail(exc)
                return False

            self._draft = None
            self._mode = EditMode.VIEWING
            self.last_error = None
            self._notifier.success(self.saved_message)
            await self._refresh()
            return True
        finally:
            self._pending = False

    async def request_delete(self) -> bool:
        """Confirm, then delete. Returns True once the entity is REMOVED."""

        if self._pending:
            logger.debug("edit.delete_ignored_pending", entity_id=self._entity.id)
            return False
        if Capability.DELETE not in self.available_actions():
            raise EditTransitionError("Deleting is not available here.")

        self._pending = True
        try:
            if not await self._confirmation.confirm(self.delete_title, self.delete_message):
                logger.debug("edit.delete_declined", entity_id=self._entity.id)
                return False
            try:
                await self._remove()
            except NotFound:
                logger.info("edit.delete_already_gone", entity_id=self._entity.id)
            except BlogDeskError as exc:
                self._fail(exc)
                return False
            else:
                self._notifier.success(self.removed_message)

            self._mode = EditMode.REMOVED
            self.last_error = None
        finally:
            self._pending = False

        if self._on_removed is not None:
            await self._on_removed(self._entity)
        return True

    async def _save(self, draft: dict[str, str]) -> None:
        raise NotImplementedError

    async def _remove(self) -> None:
        raise NotImplementedError

    async def _refresh(self) -> None:
        if self._reload is None:
            return
        try:
            fresh = await self._reload(self._entity)
        except BlogDeskError as exc:
            logger.warning("edit.reload_failed", entity_id=self._entity.id, error=exc.message)
            self._notifier.error(f"Saved, but reloading failed: {exc.message}")
            return
        if fresh is not None:
            self._entity = fresh

    def _fail(self, exc: BlogDeskError) -> None:
        self.last_error = exc
        logger.info("edit.failed", entity_id=self._entity.id, error_type=type(exc).__name__)
        self._notifier.error(exc.message)


class BlogEditor(EditStateMachine[Blog]):
    editable_fields = ("title", "content")
    saved_message = "Blog updated!"
    removed_message = "Blog deleted."
    delete_title = "Are you sure?"
    delete_message = "This will permanently delete the blog."

    def __init__(
        self,
        blog: Blog,
        *,
        repository: ContentRepository,
        session: SessionStore,
        confirmation: ConfirmationGate,
        notifier: NotificationSink,
        reload: Callable[[Blog], Awaitable[Blog | None]] | None = None,
        on_removed: Callable[[Blog], Awaitable[None]] | None = None,
    ) -> None:
        super().__init__(
            blog,
            session=session,
            confirmation=confirmation,
            notifier=notifier,
            reload=reload or self._read_back,
            on_removed=on_removed,
        )
        self._repository = repository

    async def _read_back(self, blog: Blog) -> Blog:
        return await self._repository.get(blog.id)

    def can_edit(self) -> bool:
        return can_edit_blog(self._session.identity, self._entity)

    def can_delete(self) -> bool:
        return can_delete_blog(self._session.identity, self._entity)

    async def _save(self, draft: dict[str, str]) -> None:
        fields = BlogFields(title=draft["title"], content=draft["content"])
        await self._repository.update(self._session.identity, self._entity.id, fields)

    async def _remove(self) -> None:
        await self._repository.delete(self._session.identity, self._entity.id)


class CommentEditor(EditStateMachine[Comment]):
    editable_fields = ("comment",)
    saved_message = "Comment updated!"
    removed_message = "Comment deleted."
    delete_title = "Delete this comment?"
    delete_message = "You won't be able to undo this action."

    def __init__(
        self,
        comment: Comment,
        *,
        blog: Blog,
        repository: CommentRepository,
        session: SessionStore,
        confirmation: ConfirmationGate,
        notifier: NotificationSink,
        reload: Callable[[Comment], Awaitable[Comment | None]] | None = None,
        on_removed: Callable[[Comment], Awaitable[None]] | None = None,
    ) -> None:
        super().__init__(
            comment,
            session=session,
            confirmation=confirmation,
            notifier=notifier,
            reload=reload,
            on_removed=on_removed,
        )
        self._blog = blog
        self._repository = repository

    @property
    def blog(self) -> Blog:
        return self._blog

    def can_edit(self) -> bool:
        return can_edit_comment(self._session.identity, self._entity)

    def can_delete(self) -> bool:
        return can_delete_comment(self._session.identity, self._blog, self._entity)

    async def _save(self, draft: dict[str, str]) -> None:
        await self._repository.update(self._session.identity, self._entity, draft["comment"])

    async def _remove(self) -> None:
        await self._repository.delete(self._session.identity, self._blog, self._entity)
