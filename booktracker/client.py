"""
Client-side session handling and a thin API client.

``SessionStore`` keeps the logged-in user and token between runs, the same
state the browser dashboard caches. ``BookshelfClient`` replays that token on
every book call and drops the session as soon as the server rejects it.
"""

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


@dataclass
class Session:
    user: dict
    token: str


class SessionStore:
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Optional[Session]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            session = Session(user=data["user"], token=data["token"])
        except (OSError, ValueError, KeyError, TypeError):
            logger.warning("Ignoring unreadable session file %s", self.path)
            return None
        if not session.token or not isinstance(session.user, dict):
            return None
        return session

    def save(self, session: Session) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(asdict(session)), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class SessionExpired(ApiError):
    pass


class BookshelfClient:
    def __init__(self, http: httpx.Client, store: SessionStore):
        self.http = http
        self.store = store

    @staticmethod
    def _message(response: httpx.Response) -> str:
        try:
            return response.json().get("message") or response.reason_phrase
        except (ValueError, AttributeError):
            return response.reason_phrase

    def _request(self, method: str, url: str, **kwargs) -> Any:
        response = self.http.request(method, url, **kwargs)
        if response.is_success:
            return response.json()
        raise ApiError(response.status_code, self._message(response))

    def _authed(self, method: str, url: str, **kwargs) -> Any:
        session = self.store.load()
        if session is None:
            raise SessionExpired(401, "Not logged in.")

        headers = {"Authorization": f"Bearer {session.token}"}
        response = self.http.request(method, url, headers=headers, **kwargs)
        if response.status_code in (401, 403):
            self.store.clear()
            raise SessionExpired(
                response.status_code,
                "Session expired or unauthorized. Please log in again.",
            )
        if not response.is_success:
            raise ApiError(response.status_code, self._message(response))
        return response.json()

    # Accounts
    def register(self, username: str, email: str, password: str) -> str:
        data = self._request(
            "POST", "/register",
            json={"username": username, "email": email, "password": password},
        )
        return data["message"]

    def login(self, email: str, password: str) -> Session:
        data = self._request("POST", "/login", json={"email": email, "password": password})
        session = Session(user=data["user"], token=data["token"])
        self.store.save(session)
        return session

    def logout(self) -> None:
        self.store.clear()

    @property
    def current_user(self) -> Optional[dict]:
        session = self.store.load()
        return session.user if session else None

    # Books
    def list_books(self) -> list[dict]:
        return self._authed("GET", "/books")

    def add_book(self, title: str, author: str, recommendation: str | None = None,
                 published_year: int | None = None) -> int:
        data = self._authed(
            "POST", "/books",
            json={
                "title": title,
                "author": author,
                "recommendation": recommendation,
                "published_year": published_year,
            },
        )
        return data["bookId"]

    def update_book(self, book_id: int, title: str, author: str, recommendation: str | None = None,
                    published_year: int | None = None) -> str:
        data = self._authed(
            "PUT", f"/books/{book_id}",
            json={
                "title": title,
                "author": author,
                "recommendation": recommendation,
                "published_year": published_year,
            },
        )
        return data["message"]

    def delete_book(self, book_id: int) -> str:
        return self._authed("DELETE", f"/books/{book_id}")["message"]
