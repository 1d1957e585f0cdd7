"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Implementa los colaboradores de UI del core (notificaciones y confirmación).
"""

from __future__ import annotations

import asyncio
from datetime import datetime

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table
from rich.text import Text

from core.domain.models import Blog, Comment, Identity
from core.domain.permissions import Capability


def format_date(value: datetime | None, *, with_time: bool = False) -> str:
    if value is None:
        return "Date not available"
    if with_time:
        return value.strftime("%b %d, %Y %H:%M")
    return value.strftime("%b %d, %Y")


class RichNotifier:
    """`NotificationSink` that prints one colored line per message."""

    def __init__(self, console: Console) -> None:
        self._console = console

    def success(self, message: str) -> None:
        self._console.print(f"[green]✔[/green] {message}")

    def error(self, message: str) -> None:
        self._console.print(f"[red]✖[/red] {message}")


class RichConfirmationGate:
    """`ConfirmationGate` backed by an interactive rich prompt.

    The prompt blocks on stdin, so it runs in a worker thread to keep the
    event loop free.
    """

    def __init__(self, console: Console) -> None:
        self._console = console

    async def confirm(self, title: str, message: str) -> bool:
        self._console.print(Panel(message, title=title, border_style="red"))
        return await asyncio.to_thread(
            Confirm.ask, "Yes, delete it?", console=self._console, default=False
        )


def build_identity_panel(identity: Identity) -> Panel:
    if not identity.is_authenticated:
        return Panel(Text("Not logged in.", style="dim"), title="Session", border_style="yellow")
    body = Text()
    body.append(f"{identity.email or '(no email)'}\n", style="bold")
    body.append(f"id: {identity.id}\n", style="dim")
    body.append("role: admin" if identity.is_admin else "role: member")
    return Panel(body, title="Session", border_style="green")


def build_blogs_table(blogs: list[Blog], *, editable: dict[str, frozenset[Capability]] | None = None) -> Table:
    table = Table(title="Blog Posts")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title", style="bold magenta")
    table.add_column("Author", style="white")
    table.add_column("Added on", style="cyan")
    table.add_column("You can", style="green")
    editable = editable or {}
    for blog in blogs:
        caps = editable.get(blog.id, frozenset())
        table.add_row(
            blog.id,
            blog.title,
            (blog.author.full_name if blog.author else None) or "Unknown",
            format_date(blog.created_at),
            ", ".join(sorted(cap.value for cap in caps)),
        )
    return table


def build_blog_panel(blog: Blog) -> Panel:
    body = Text()
    body.append(blog.content.strip() + "\n\n")
    author = (blog.author.full_name if blog.author else None) or "Unknown"
    footer = f"Author: {author} • Created: {format_date(blog.created_at, with_time=True)}"
    if blog.was_edited:
        footer += f" • Updated: {format_date(blog.updated_at, with_time=True)}"
    body.append(footer, style="dim")
    return Panel(body, title=Text(blog.title, style="bold magenta"), border_style="magenta")


def build_comments_table(
    comments: list[Comment], *, editable: dict[str, frozenset[Capability]] | None = None
) -> Table:
    table = Table(title="Comments")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Comment", style="white")
    table.add_column("By", style="cyan")
    table.add_column("When", style="dim")
    table.add_column("You can", style="green")
    editable = editable or {}
    for comment in comments:
        caps = editable.get(comment.id, frozenset())
        table.add_row(
            comment.id,
            comment.comment,
            (comment.author.full_name if comment.author else None) or "Anonymous",
            format_date(comment.created_at, with_time=True),
            ", ".join(sorted(cap.value for cap in caps)),
        )
    return table
