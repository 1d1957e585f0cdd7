"""Shared fixtures: an in-memory fake of the blog API behind httpx.MockTransport.

The fake mirrors the real backend's routes, envelope and permission rules so
client-side checks and server-side answers can both be exercised. Every
request is recorded on `backend.requests`.
"""

import itertools
import json
import re

import httpx
import pytest
import pytest_asyncio

from core.config import AppSettings
from core.errors import IdentityResolutionFailure
from core.services.app_context import open_app_context


USERS = {
    "tok-u1": {"_id": "u1", "isAdmin": False, "email": "u1@example.com", "fullName": "User One"},
    "tok-u2": {"_id": "u2", "isAdmin": False, "email": "u2@example.com", "fullName": "User Two"},
    "tok-admin": {"_id": "adm", "isAdmin": True, "email": "admin@example.com", "fullName": "Admin"},
}


def _json(status, payload):
    return httpx.Response(status, json=payload)


class FakeBackend:
    def __init__(self):
        self.blogs = {}
        self.comments = {}
        self.requests = []
        self.outage = False
        self.fail_next = {}
        self.bare_comment_updates = False
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    # seeding

    def _now(self):
        return f"2024-01-01T00:{next(self._clock) % 60:02d}:00.000Z"

    def add_blog(self, blog_id, author_id, title="Hello", content="World"):
        ts = self._now()
        self.blogs[blog_id] = {
            "_id": blog_id,
            "title": title,
            "content": content,
            "author": author_id,
            "createdAt": ts,
            "updatedAt": ts,
        }
        return blog_id

    def add_comment(self, comment_id, blog_id, author_id, text="Nice post"):
        self.comments[comment_id] = {
            "_id": comment_id,
            "blogId": blog_id,
            "comment": text,
            "userId": author_id,
            "createdAt": self._now(),
        }
        return comment_id

    # helpers

    def calls(self, method=None):
        return [r for r in self.requests if method is None or r.method == method]

    def _user_ref(self, user_id):
        for user in USERS.values():
            if user["_id"] == user_id:
                return {"_id": user_id, "fullName": user["fullName"]}
        return {"_id": user_id, "fullName": None}

    def _blog_out(self, blog):
        return {**blog, "author": self._user_ref(blog["author"])}

    def _comment_out(self, comment):
        return {**comment, "userId": self._user_ref(comment["userId"])}

    def _user(self, request):
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            return None
        return USERS.get(header[len("Bearer "):])

    # transport handler

    def handler(self, request):
        self.requests.append(request)
        if self.outage:
            raise httpx.ConnectError("connection refused", request=request)

        method, path = request.method, request.url.path
        forced = self.fail_next.pop((method, path), None)
        if forced is not None:
            return _json(forced, {"error": f"forced {forced}"})

        body = json.loads(request.content) if request.content else {}
        user = self._user(request)

        if path == "/users/details" and method == "GET":
            if user is None:
                return _json(401, {"error": "Invalid token"})
            return _json(200, {"data": {k: user[k] for k in ("_id", "isAdmin", "email")}})

        if path == "/users/register" and method == "POST":
            return _json(201, {"message": "Registered successfully"})

        if path == "/blogs":
            if method == "GET":
                return _json(200, {"data": [self._blog_out(b) for b in self.blogs.values()]})
            if method == "POST":
                if user is None:
                    return _json(401, {"error": "Unauthorized"})
                blog_id = f"b{next(self._ids)}"
                self.add_blog(blog_id, user["_id"], body["title"], body["content"])
                return _json(201, {"data": self._blog_out(self.blogs[blog_id])})

        match = re.fullmatch(r"/blogs/([^/]+)", path)
        if match:
            blog = self.blogs.get(match.group(1))
            if method == "GET":
                if blog is None:
                    return _json(404, {"error": "Blog not found"})
                return _json(200, {"data": self._blog_out(blog)})
            if user is None:
                return _json(401, {"error": "Unauthorized"})
            if blog is None:
                return _json(404, {"error": "Blog not found"})
            if method == "PATCH":
                if blog["author"] != user["_id"]:
                    return _json(403, {"error": "Not the author"})
                blog.update(title=body["title"], content=body["content"], updatedAt=self._now())
                return _json(200, {"message": "Blog updated"})
            if method == "DELETE":
                if blog["author"] != user["_id"] and not user["isAdmin"]:
                    return _json(403, {"error": "Forbidden"})
                del self.blogs[blog["_id"]]
                return _json(200, {"message": "Blog deleted"})

        match = re.fullmatch(r"/comments/update/([^/]+)", path)
        if match and method == "PATCH":
            if user is None:
                return _json(401, {"error": "Unauthorized"})
            comment = self.comments.get(match.group(1))
            if comment is None:
                return _json(404, {"error": "Comment not found"})
            if comment["userId"] != user["_id"]:
                return _json(403, {"error": "Forbidden"})
            comment["comment"] = body["comment"]
            if self.bare_comment_updates:
                return _json(200, {"message": "Comment updated"})
            return _json(200, {"data": self._comment_out(comment)})

        match = re.fullmatch(r"/comments/delete/([^/]+)", path)
        if match and method == "DELETE":
            if user is None:
                return _json(401, {"error": "Unauthorized"})
            comment = self.comments.get(match.group(1))
            if comment is None:
                return _json(404, {"error": "Comment not found"})
            blog = self.blogs.get(comment["blogId"], {})
            if user["_id"] not in (comment["userId"], blog.get("author")) and not user["isAdmin"]:
                return _json(403, {"error": "Forbidden"})
            del self.comments[comment["_id"]]
            return _json(200, {"message": "Comment deleted"})

        match = re.fullmatch(r"/comments/([^/]+)", path)
        if match:
            if user is None:
                return _json(401, {"error": "Unauthorized"})
            blog_id = match.group(1)
            if method == "GET":
                items = [self._comment_out(c) for c in self.comments.values() if c["blogId"] == blog_id]
                return _json(200, {"data": items})
            if method == "POST":
                if blog_id not in self.blogs:
                    return _json(404, {"error": "Blog not found"})
                comment_id = f"c{next(self._ids)}"
                self.add_comment(comment_id, blog_id, user["_id"], body["comment"])
                return _json(201, {"data": self._comment_out(self.comments[comment_id])})

        return _json(404, {"error": f"No route for {method} {path}"})


class GatedProvider:
    """Identity provider whose answers can be held back per token."""

    def __init__(self, identities):
        self.identities = identities
        self.gates = {}
        self.calls = []

    async def fetch_identity(self, token):
        self.calls.append(token)
        gate = self.gates.get(token)
        if gate is not None:
            await gate.wait()
        if token not in self.identities:
            raise IdentityResolutionFailure()
        return self.identities[token]


class MemoryTokenStore:
    def __init__(self, token=None):
        self.token = token
        self.cleared = 0

    def save(self, token):
        self.token = token

    def load(self):
        return self.token

    def clear(self):
        self.token = None
        self.cleared += 1


class RecordingNotifier:
    def __init__(self):
        self.successes = []
        self.errors = []

    def success(self, message):
        self.successes.append(message)

    def error(self, message):
        self.errors.append(message)


class ScriptedConfirmation:
    def __init__(self, answer=True):
        self.answer = answer
        self.asked = []

    async def confirm(self, title, message):
        self.asked.append((title, message))
        return self.answer


@pytest.fixture()
def backend():
    return FakeBackend()


@pytest.fixture()
def transport(backend):
    return httpx.MockTransport(backend.handler)


@pytest.fixture()
def token_store():
    return MemoryTokenStore()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def confirmation():
    return ScriptedConfirmation(answer=True)


@pytest.fixture()
def settings(tmp_path):
    return AppSettings(api_base_url="http://api.test", token_file=tmp_path / "token")


@pytest_asyncio.fixture()
async def app_ctx(settings, transport, token_store, notifier, confirmation):
    """A fully wired AppContext talking to the fake backend, logged out."""
    async with open_app_context(
        settings,
        confirmation=confirmation,
        notifier=notifier,
        persistence=token_store,
        transport=transport,
    ) as ctx:
        yield ctx
