"""Permission rules for blogs and comments.

Pure and synchronous: a function of the viewer's `Identity` and the
ownership metadata on the resource. No I/O happens here.

Ownership comparisons never treat two missing ids as a match, so an anonymous
viewer is never the "owner" of content whose author is unknown.
"""

from __future__ import annotations

from enum import Enum

from core.domain.models import Blog, Comment, Identity


class Capability(str, Enum):
    """Actions a viewer may perform on a resource instance."""

    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"


def _same_user(viewer_id: str | None, owner_id: str | None) -> bool:
    return viewer_id is not None and owner_id is not None and viewer_id == owner_id


def _is_admin(identity: Identity) -> bool:
    return identity.is_admin is True


def can_create_blog(identity: Identity) -> bool:
    return identity.id is not None


def can_edit_blog(identity: Identity, blog: Blog) -> bool:
    return _same_user(identity.id, blog.author_id)


def can_delete_blog(identity: Identity, blog: Blog) -> bool:
    return _is_admin(identity) or _same_user(identity.id, blog.author_id)


def can_edit_comment(identity: Identity, comment: Comment) -> bool:
    return _same_user(identity.id, comment.author_id)


def can_delete_comment(identity: Identity, blog: Blog, comment: Comment) -> bool:
    return (
        _is_admin(identity)
        or _same_user(identity.id, blog.author_id)
        or _same_user(identity.id, comment.author_id)
    )


def blog_capabilities(identity: Identity, blog: Blog) -> frozenset[Capability]:
    caps: set[Capability] = set()
    if can_edit_blog(identity, blog):
        caps.add(Capability.EDIT)
    if can_delete_blog(identity, blog):
        caps.add(Capability.DELETE)
    return frozenset(caps)


def comment_capabilities(identity: Identity, blog: Blog, comment: Comment) -> frozenset[Capability]:
    caps: set[Capability] = set()
    if can_edit_comment(identity, comment):
        caps.add(Capability.EDIT)
    if can_delete_comment(identity, blog, comment):
        caps.add(Capability.DELETE)
    return frozenset(caps)
