"""Modelos del dominio (Pydantic v2).

Notes:
- Field aliases match the backend wire format (`_id`, `fullName`, `createdAt`).
  Python code uses snake_case names; `populate_by_name` allows both.
- These models describe *what* a blog or comment is, not *how* it is fetched.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

_MOBILE_RE = re.compile(r"09\d{9}")


class Identity(BaseModel):
    """The viewer, as resolved from a bearer token.

    `is_admin` and `email` are only meaningful while `id` is set. The null
    identity (`Identity.anonymous()`) stands for "nobody is logged in".
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    is_admin: bool | None = None
    email: str = ""

    @classmethod
    def anonymous(cls) -> "Identity":
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.id is not None


def _coerce_ref(value: Any) -> Any:
    # Unpopulated references arrive as a bare id string.
    if isinstance(value, str):
        return {"_id": value} if value else None
    return value


class Author(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str | None = Field(default=None, alias="_id")
    full_name: str | None = Field(default=None, alias="fullName")


class Blog(BaseModel):
    """A blog post. Owned by at most one author."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(..., min_length=1, alias="_id")
    title: str = ""
    content: str = ""
    author: Author | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @field_validator("author", mode="before")
    @classmethod
    def _populate_author(cls, value: Any) -> Any:
        return _coerce_ref(value)

    @property
    def author_id(self) -> str | None:
        return self.author.id if self.author else None

    @property
    def was_edited(self) -> bool:
        return bool(self.updated_at and self.created_at and self.updated_at != self.created_at)


class Comment(BaseModel):
    """A comment, always scoped to exactly one blog."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(..., min_length=1, alias="_id")
    blog_id: str | None = Field(default=None, alias="blogId")
    comment: str = ""
    author: Author | None = Field(default=None, alias="userId")
    created_at: datetime | None = Field(default=None, alias="createdAt")

    @field_validator("author", mode="before")
    @classmethod
    def _populate_author(cls, value: Any) -> Any:
        return _coerce_ref(value)

    @field_validator("blog_id", mode="before")
    @classmethod
    def _flatten_blog_ref(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return value.get("_id")
        return value

    @property
    def author_id(self) -> str | None:
        return self.author.id if self.author else None


class BlogFields(BaseModel):
    """Editable fields of a blog, as sent on create/update."""

    title: str = ""
    content: str = ""

    def missing(self) -> dict[str, str]:
        errors: dict[str, str] = {}
        if not self.title.strip():
            errors["title"] = "Title cannot be empty."
        if not self.content.strip():
            errors["content"] = "Content cannot be empty."
        return errors


class Registration(BaseModel):
    """Sign-up form data for `/users/register`."""

    full_name: str = ""
    email: str = ""
    mobile_no: str = ""
    password: str = ""
    confirm_password: str = ""

    def problems(self) -> dict[str, str]:
        errors: dict[str, str] = {}
        if not self.full_name.strip():
            errors["full_name"] = "Full name is required."
        if "@" not in self.email:
            errors["email"] = "Invalid email."
        if not _MOBILE_RE.fullmatch(self.mobile_no.strip()):
            errors["mobile_no"] = "Must be a valid PH mobile number."
        if len(self.password) < 8:
            errors["password"] = "Password must be at least 8 characters."
        if self.password != self.confirm_password:
            errors["confirm_password"] = "Passwords do not match."
        return errors

    def to_payload(self) -> dict[str, str]:
        return {
            "fullName": self.full_name.strip(),
            "email": self.email.strip(),
            "password": self.password,
            "mobileNo": self.mobile_no.strip(),
        }
