"""HTTP client for the chat API.

Mirrors the server's phone validation so obviously bad input never leaves
the client, and keeps track of the session's current user.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from chatlite.models import ChatSummary, Contact, Message, User
from chatlite.utils import validate_phone


class ClientError(Exception):
    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class ChatClient:
    def __init__(self, base_url: str = "http://localhost:8000", session: Any = None):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.current_user: Optional[User] = None

    def _call(self, method: str, path: str, body: Optional[dict] = None) -> Any:
        resp = self.session.request(method, self.base_url + path, json=body)
        if resp.status_code >= 400:
            try:
                detail = resp.json().get("detail", resp.text)
            except ValueError:
                detail = resp.text
            logging.warning(
                "%s %s failed: %s %s", method, path, resp.status_code, detail
            )
            raise ClientError(resp.status_code, str(detail))
        return resp.json()

    @staticmethod
    def _phone(phone: str) -> str:
        try:
            return validate_phone(phone.strip())
        except ValueError as exc:
            raise ClientError(400, str(exc)) from exc

    def register(self, name: str, phone: str) -> User:
        if not name.strip():
            raise ClientError(400, "name is required")
        data = self._call(
            "POST", "/register", {"name": name.strip(), "phone": self._phone(phone)}
        )
        self.current_user = User.model_validate(data["user"])
        return self.current_user

    def login(self, phone: str) -> User:
        data = self._call("POST", "/login", {"phone": self._phone(phone)})
        self.current_user = User.model_validate(data["user"])
        return self.current_user

    def logout(self) -> None:
        if self.current_user is None:
            return
        self._call("POST", "/logout", {"phone": self.current_user.phone})
        self.current_user = None

    def heartbeat(self) -> Optional[User]:
        if self.current_user is None:
            return None
        data = self._call("POST", "/heartbeat", {"phone": self.current_user.phone})
        self.current_user = User.model_validate(data["user"])
        return self.current_user

    def _me(self) -> User:
        if self.current_user is None:
            raise ClientError(401, "not logged in")
        return self.current_user

    def users(self) -> list[User]:
        return [User.model_validate(u) for u in self._call("GET", "/users")]

    def add_contact(self, name: str, phone: str) -> Contact:
        body = {
            "userPhone": self._me().phone,
            "contactName": name,
            "contactPhone": self._phone(phone),
        }
        data = self._call("POST", "/contacts", body)
        return Contact.model_validate(data["contact"])

    def contacts(self) -> list[Contact]:
        data = self._call("GET", f"/contacts/{self._me().phone}")
        return [Contact.model_validate(c) for c in data]

    def send(self, receiver: str, content: str, is_image: bool = False) -> Message:
        body = {
            "sender": self._me().phone,
            "receiver": receiver,
            "message": content,
            "isImage": is_image,
        }
        data = self._call("POST", "/messages", body)
        return Message.model_validate(data["message"])

    def messages(self, contact_phone: str) -> list[Message]:
        data = self._call("GET", f"/messages/{self._me().phone}/{contact_phone}")
        return [Message.model_validate(m) for m in data]

    def chats(self) -> list[ChatSummary]:
        data = self._call("GET", f"/chats/{self._me().phone}")
        return [ChatSummary.model_validate(s) for s in data]

    def update_profile(
        self,
        name: Optional[str] = None,
        bio: Optional[str] = None,
        profile_pic: Optional[str] = None,
    ) -> User:
        body: dict[str, Any] = {"phone": self._me().phone}
        if name is not None:
            body["name"] = name
        if bio is not None:
            body["bio"] = bio
        if profile_pic is not None:
            body["profilePic"] = profile_pic
        data = self._call("PUT", "/profile", body)
        self.current_user = User.model_validate(data["user"])
        return self.current_user
