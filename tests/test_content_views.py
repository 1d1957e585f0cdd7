import pytest

from core.domain.models import BlogFields
from core.services.edit_state import EditMode


@pytest.mark.asyncio
async def test_feed_refresh_keeps_previous_list_on_failure(app_ctx, backend, notifier):
    backend.add_blog("b1", "u1")
    feed = app_ctx.blog_feed()
    await feed.refresh()

    backend.outage = True
    await feed.refresh()

    assert [b.id for b in feed.blogs] == ["b1"]
    assert feed.last_error is not None
    assert len(notifier.errors) == 1
    assert feed.loading is False


@pytest.mark.asyncio
async def test_feed_create_refetches(app_ctx, backend, notifier):
    await app_ctx.session.set_token("tok-u1")
    feed = app_ctx.blog_feed()
    assert feed.can_create()

    blog = await feed.create(BlogFields(title="Fresh", content="Post"))

    assert feed.find(blog.id) is not None
    assert notifier.successes == ["Blog added successfully!"]
    assert backend.requests[-1].method == "GET" and backend.requests[-1].url.path == "/blogs"


@pytest.mark.asyncio
async def test_feed_create_when_anonymous(app_ctx, backend, notifier):
    feed = app_ctx.blog_feed()
    assert not feed.can_create()

    assert await feed.create(BlogFields(title="t", content="c")) is None
    assert notifier.errors == ["Login required."]
    assert backend.calls("POST") == []


@pytest.mark.asyncio
async def test_feed_editor_refetches_after_edit_and_delete(app_ctx, backend):
    backend.add_blog("b1", "u1")
    backend.add_blog("b2", "u1")
    await app_ctx.session.set_token("tok-u1")
    feed = app_ctx.blog_feed()
    await feed.refresh()

    editor = feed.editor_for(feed.find("b1"))
    editor.begin_edit()
    editor.change_draft("title", "Renamed")
    await editor.submit()
    assert feed.find("b1").title == "Renamed"
    assert editor.entity.title == "Renamed"

    await editor.request_delete()
    assert [b.id for b in feed.blogs] == ["b2"]


@pytest.mark.asyncio
async def test_thread_unavailable_without_login(app_ctx, backend, notifier):
    backend.add_blog("b1", "u1")
    thread = app_ctx.comment_thread(await app_ctx.blogs.get("b1"))

    await thread.refresh()

    assert not thread.available
    assert "Login" in thread.unavailable_reason
    assert thread.comments == []
    assert notifier.errors == []


@pytest.mark.asyncio
async def test_thread_post_refetches(app_ctx, backend, notifier):
    backend.add_blog("b1", "u1")
    await app_ctx.session.set_token("tok-u2")
    thread = app_ctx.comment_thread(await app_ctx.blogs.get("b1"))
    await thread.refresh()
    assert thread.available

    comment = await thread.post("First!")

    assert [c.id for c in thread.comments] == [comment.id]
    assert notifier.successes == ["Comment added!"]
    assert thread.editor(comment.id).entity.comment == "First!"


@pytest.mark.asyncio
async def test_thread_post_blank_is_rejected(app_ctx, backend, notifier):
    backend.add_blog("b1", "u1")
    await app_ctx.session.set_token("tok-u2")
    thread = app_ctx.comment_thread(await app_ctx.blogs.get("b1"))

    assert await thread.post("   ") is None
    assert notifier.errors == ["Comment cannot be empty."]


@pytest.mark.asyncio
async def test_editing_comment_survives_unrelated_refetch(app_ctx, backend):
    backend.add_blog("b1", "u1")
    backend.add_comment("c1", "b1", "u2", text="mine")
    await app_ctx.session.set_token("tok-u2")
    thread = app_ctx.comment_thread(await app_ctx.blogs.get("b1"))
    await thread.refresh()

    editor = thread.editor("c1")
    editor.begin_edit()
    editor.change_draft("comment", "half-typed")
    await thread.post("another one")

    assert thread.editor("c1") is editor
    assert editor.mode is EditMode.EDITING
    assert editor.draft == {"comment": "half-typed"}
    assert len(thread.editors()) == 2


@pytest.mark.asyncio
async def test_comment_edit_and_delete_through_thread(app_ctx, backend, notifier):
    backend.add_blog("b1", "u1")
    backend.add_comment("c1", "b1", "u2", text="before")
    backend.add_comment("c2", "b1", "u2", text="keep")
    await app_ctx.session.set_token("tok-u2")
    thread = app_ctx.comment_thread(await app_ctx.blogs.get("b1"))
    await thread.refresh()

    editor = thread.editor("c1")
    editor.begin_edit()
    editor.change_draft("comment", "after")
    assert await editor.submit()
    assert thread.find("c1").comment == "after"
    assert editor.entity.comment == "after"

    assert await editor.request_delete()
    assert [c.id for c in thread.comments] == ["c2"]
    assert notifier.successes == ["Comment updated!", "Comment deleted."]


@pytest.mark.asyncio
async def test_blog_author_removes_comment_from_own_blog(app_ctx, backend):
    backend.add_blog("b1", "u1")
    backend.add_comment("c1", "b1", "u2")
    await app_ctx.session.set_token("tok-u1")
    thread = app_ctx.comment_thread(await app_ctx.blogs.get("b1"))
    await thread.refresh()

    assert await thread.editor("c1").request_delete()
    assert thread.comments == []


@pytest.mark.asyncio
async def test_comment_edit_with_bare_acknowledgement_shows_server_copy(app_ctx, backend):
    backend.add_blog("b1", "u1")
    backend.add_comment("c1", "b1", "u2", text="before")
    backend.bare_comment_updates = True
    await app_ctx.session.set_token("tok-u2")
    thread = app_ctx.comment_thread(await app_ctx.blogs.get("b1"))
    await thread.refresh()

    editor = thread.editor("c1")
    editor.begin_edit()
    editor.change_draft("comment", "after")
    assert await editor.submit()

    assert editor.entity.comment == "after"
    assert backend.requests[-1].method == "GET"
