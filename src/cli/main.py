"""CLI de blogdesk (Typer).

Thin front end over the core: every command opens an `AppContext`, forwards
the user's intent to a view or editor and renders the result with rich.
Notifications and confirmations go through `RichNotifier` and
`RichConfirmationGate`.
"""

from __future__ import annotations

import asyncio
from typing import AsyncContextManager, Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console

from cli import doctor
from cli.ui_components import (
    RichConfirmationGate,
    RichNotifier,
    build_blog_panel,
    build_blogs_table,
    build_comments_table,
    build_identity_panel,
)
from core.config import AppSettings
from core.domain.models import BlogFields, Registration
from core.domain.permissions import Capability, blog_capabilities, comment_capabilities
from core.errors import BlogDeskError, NotFound, ValidationError
from core.logging_setup import configure_logging
from core.services.app_context import AppContext, open_app_context
from core.services.edit_state import CommentEditor

T = TypeVar("T")

app = typer.Typer(no_args_is_help=True, help="Read, write and discuss blog posts from the terminal.")
blogs_app = typer.Typer(no_args_is_help=True, help="Browse and manage blog posts.")
comments_app = typer.Typer(no_args_is_help=True, help="Write, edit and delete comments.")
app.add_typer(blogs_app, name="blogs")
app.add_typer(comments_app, name="comments")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def _app_context() -> AsyncContextManager[AppContext]:
    return open_app_context(
        AppSettings(),
        confirmation=RichConfirmationGate(_console),
        notifier=RichNotifier(_console),
    )


def _run(action: Callable[[AppContext], Awaitable[T]]) -> T:
    """Run `action` inside a fresh context; expected errors exit with code 1."""

    async def runner() -> T:
        async with _app_context() as ctx:
            return await action(ctx)

    try:
        return asyncio.run(runner())
    except ValidationError as exc:
        _console.print(f"[red]Error:[/red] {exc.message}")
        for field, problem in exc.fields.items():
            _console.print(f"  [yellow]{field}[/yellow]: {problem}")
        raise typer.Exit(code=1)
    except BlogDeskError as exc:
        _console.print(f"[red]Error:[/red] {exc.message}")
        raise typer.Exit(code=1)


def _exit_unless(ok: bool) -> None:
    if not ok:
        raise typer.Exit(code=1)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs.")) -> None:
    settings = AppSettings()
    configure_logging("DEBUG" if verbose else settings.log_level, json_output=settings.log_json)


@app.command()
def login(token: str = typer.Argument(..., help="Bearer token issued by the API.")) -> None:
    """Store a bearer token and verify it against the API."""

    async def action(ctx: AppContext) -> None:
        await ctx.session.set_token(token)
        ctx.notifier.success("Logged in.")
        _console.print(build_identity_panel(ctx.session.identity))

    _run(action)


@app.command()
def logout() -> None:
    """Forget the stored token."""

    async def action(ctx: AppContext) -> None:
        ctx.session.logout()
        ctx.notifier.success("Logged out.")

    _run(action)


@app.command()
def whoami() -> None:
    """Show who the stored token belongs to."""

    async def action(ctx: AppContext) -> None:
        _console.print(build_identity_panel(ctx.session.identity))

    _run(action)


@app.command()
def register() -> None:
    """Create an account (interactive)."""

    registration = Registration(
        full_name=typer.prompt("Full name"),
        email=typer.prompt("Email"),
        mobile_no=typer.prompt("Mobile number (09XXXXXXXXX)"),
        password=typer.prompt("Password", hide_input=True),
        confirm_password=typer.prompt("Confirm password", hide_input=True),
    )

    async def action(ctx: AppContext) -> None:
        await ctx.users.register(registration)
        ctx.notifier.success("Registration successful! Log in with the token the API gives you.")

    _run(action)


@blogs_app.command("list")
def list_blogs() -> None:
    """List every blog post."""

    async def action(ctx: AppContext) -> None:
        feed = ctx.blog_feed()
        await feed.refresh()
        _exit_unless(feed.last_error is None)
        identity = ctx.session.identity
        caps = {blog.id: blog_capabilities(identity, blog) for blog in feed.blogs}
        if not feed.blogs:
            _console.print("[dim]No blogs yet. Try adding one![/dim]")
            return
        _console.print(build_blogs_table(feed.blogs, editable=caps))

    _run(action)


@blogs_app.command("show")
def show_blog(blog_id: str = typer.Argument(...)) -> None:
    """Show one blog post and its comments."""

    async def action(ctx: AppContext) -> None:
        blog = await ctx.blogs.get(blog_id)
        _console.print(build_blog_panel(blog))

        thread = ctx.comment_thread(blog)
        await thread.refresh()
        if not thread.available:
            _console.print(f"[yellow]Comments unavailable:[/yellow] {thread.unavailable_reason}")
        elif not thread.comments:
            _console.print("[dim]No comments yet. Be the first to share your thoughts![/dim]")
        else:
            identity = ctx.session.identity
            caps = {c.id: comment_capabilities(identity, blog, c) for c in thread.comments}
            _console.print(build_comments_table(thread.comments, editable=caps))

    _run(action)


@blogs_app.command("create")
def create_blog(
    title: str = typer.Option(..., "--title", "-t", prompt=True),
    content: str = typer.Option(..., "--content", "-c", prompt=True),
) -> None:
    """Publish a new blog post."""

    async def action(ctx: AppContext) -> None:
        feed = ctx.blog_feed()
        blog = await feed.create(BlogFields(title=title, content=content))
        _exit_unless(blog is not None)

    _run(action)


@blogs_app.command("edit")
def edit_blog(
    blog_id: str = typer.Argument(...),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    content: Optional[str] = typer.Option(None, "--content", "-c"),
) -> None:
    """Edit one of your blog posts. Omitted fields keep their current value."""

    async def action(ctx: AppContext) -> None:
        editor = ctx.blog_editor(await ctx.blogs.get(blog_id))
        if Capability.EDIT not in editor.available_actions():
            ctx.notifier.error("Only the author can edit this blog.")
            raise typer.Exit(code=1)
        editor.begin_edit()
        if title is not None:
            editor.change_draft("title", title)
        if content is not None:
            editor.change_draft("content", content)
        _exit_unless(await editor.submit())
        _console.print(build_blog_panel(editor.entity))

    _run(action)


@blogs_app.command("delete")
def delete_blog(blog_id: str = typer.Argument(...)) -> None:
    """Delete a blog post (asks for confirmation)."""

    async def action(ctx: AppContext) -> None:
        try:
            blog = await ctx.blogs.get(blog_id)
        except NotFound:
            _console.print("[dim]Already gone.[/dim]")
            return
        editor = ctx.blog_editor(blog)
        if Capability.DELETE not in editor.available_actions():
            ctx.notifier.error("Only the author or an admin can delete this blog.")
            raise typer.Exit(code=1)
        await editor.request_delete()
        _exit_unless(editor.last_error is None)

    _run(action)


async def _comment_editor(ctx: AppContext, blog_id: str, comment_id: str) -> CommentEditor:
    thread = ctx.comment_thread(await ctx.blogs.get(blog_id))
    await thread.refresh()
    if not thread.available:
        ctx.notifier.error(thread.unavailable_reason or "Comments unavailable.")
        raise typer.Exit(code=1)
    if thread.find(comment_id) is None:
        raise NotFound("No such comment on this blog.")
    return thread.editor(comment_id)


@comments_app.command("add")
def add_comment(
    blog_id: str = typer.Argument(...),
    text: str = typer.Argument(..., help="Comment text."),
) -> None:
    """Comment on a blog post."""

    async def action(ctx: AppContext) -> None:
        thread = ctx.comment_thread(await ctx.blogs.get(blog_id))
        _exit_unless(await thread.post(text) is not None)

    _run(action)


@comments_app.command("edit")
def edit_comment(
    blog_id: str = typer.Argument(...),
    comment_id: str = typer.Argument(...),
    text: str = typer.Argument(..., help="New comment text."),
) -> None:
    """Edit one of your comments."""

    async def action(ctx: AppContext) -> None:
        editor = await _comment_editor(ctx, blog_id, comment_id)
        if Capability.EDIT not in editor.available_actions():
            ctx.notifier.error("Only the author can edit this comment.")
            raise typer.Exit(code=1)
        editor.begin_edit()
        editor.change_draft("comment", text)
        _exit_unless(await editor.submit())

    _run(action)


@comments_app.command("delete")
def delete_comment(
    blog_id: str = typer.Argument(...),
    comment_id: str = typer.Argument(...),
) -> None:
    """Delete a comment (asks for confirmation)."""

    async def action(ctx: AppContext) -> None:
        editor = await _comment_editor(ctx, blog_id, comment_id)
        if Capability.DELETE not in editor.available_actions():
            ctx.notifier.error("You cannot delete this comment.")
            raise typer.Exit(code=1)
        await editor.request_delete()
        _exit_unless(editor.last_error is None)

    _run(action)


def run() -> None:
    app()
