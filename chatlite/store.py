"""Chat store: users, per-owner contacts and dual-written message threads.

The whole state is one JSON document (see ``chatlite.db``). Every mutation
runs under the store lock as validate -> mutate -> persist, and a failed
write restores the previous in-memory state before ``PersistenceFailure``
propagates, so callers never observe a half-applied operation.
"""

from __future__ import annotations

import copy
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any, Callable, Iterator, Optional

from chatlite.db import JsonDocument
from chatlite.errors import (
    DuplicateContact,
    DuplicatePhone,
    InvalidInput,
    NotFound,
)
from chatlite.models import (
    DEFAULT_PROFILE_PIC,
    ChatSummary,
    Contact,
    Message,
    User,
)
from chatlite.utils import (
    isoformat,
    notify_message,
    now_utc,
    parse_timestamp,
    validate_phone,
)


def _check_phone(phone: str) -> str:
    try:
        return validate_phone(phone)
    except ValueError as exc:
        raise InvalidInput(str(exc)) from exc


def _check_text(value: Optional[str], field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{field} is required")
    return value.strip()


class ChatStore:
    def __init__(
        self,
        document: JsonDocument,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self._document = document
        self._clock = clock
        self._lock = threading.RLock()
        self._data: dict[str, Any] = document.load()

    @classmethod
    def open(cls, path: str) -> "ChatStore":
        return cls(JsonDocument(path))

    @contextmanager
    def _transaction(self) -> Iterator[dict[str, Any]]:
        with self._lock:
            snapshot = copy.deepcopy(self._data)
            try:
                yield self._data
                self._document.save(self._data)
            except BaseException:
                self._data = snapshot
                raise

    def _find_user(self, phone: str) -> Optional[dict[str, Any]]:
        for user in self._data["users"]:
            if user["phone"] == phone:
                return user
        return None

    def _require_user(self, phone: str) -> dict[str, Any]:
        user = self._find_user(phone)
        if user is None:
            raise NotFound(f"user {phone} not found")
        return user

    # ------------------------------------------------------------------
    # Users and presence
    # ------------------------------------------------------------------

    def register(self, name: str, phone: str) -> User:
        name = _check_text(name, "name")
        _check_phone(phone)
        with self._transaction() as data:
            if self._find_user(phone) is not None:
                raise DuplicatePhone(f"phone number {phone} already registered")
            user = User(name=name, phone=phone, last_seen=isoformat(self._clock()))
            data["users"].append(user.to_wire())
            data["contacts"].setdefault(phone, [])
            data["chats"].setdefault(phone, {})
        logging.info("registered user %s", phone)
        return user

    def login(self, phone: str) -> User:
        _check_phone(phone)
        with self._transaction():
            user = self._require_user(phone)
            user["status"] = "online"
            user["lastSeen"] = isoformat(self._clock())
            return User.model_validate(user)

    def logout(self, phone: str) -> None:
        """Mark a user offline. Unknown phones are ignored."""
        with self._lock:
            if self._find_user(phone) is None:
                return
            with self._transaction():
                self._require_user(phone)["status"] = "offline"

    def heartbeat(self, phone: str) -> User:
        _check_phone(phone)
        with self._transaction():
            user = self._require_user(phone)
            user["status"] = "online"
            user["lastSeen"] = isoformat(self._clock())
            return User.model_validate(user)

    def sweep_presence(
        self, timeout: float, now: Optional[datetime] = None
    ) -> list[str]:
        """Mark online users without a recent heartbeat as offline.

        Returns the phones whose status changed.
        """
        cutoff = (now or self._clock()) - timedelta(seconds=timeout)
        with self._lock:
            stale = [
                user["phone"]
                for user in self._data["users"]
                if user.get("status") == "online"
                and (
                    not user.get("lastSeen")
                    or parse_timestamp(user["lastSeen"]) < cutoff
                )
            ]
            if not stale:
                return []
            with self._transaction():
                for phone in stale:
                    self._require_user(phone)["status"] = "offline"
        return stale

    def list_users(self) -> list[User]:
        with self._lock:
            return [User.model_validate(u) for u in self._data["users"]]

    def get_user(self, phone: str) -> User:
        with self._lock:
            return User.model_validate(self._require_user(phone))

    def update_profile(
        self,
        phone: str,
        name: Optional[str] = None,
        bio: Optional[str] = None,
        profile_pic: Optional[str] = None,
    ) -> User:
        _check_phone(phone)
        if name is not None:
            name = _check_text(name, "name")
        with self._transaction() as data:
            user = self._require_user(phone)
            if name is not None:
                user["name"] = name
            if bio is not None:
                user["bio"] = bio
            if profile_pic is not None:
                user["profilePic"] = profile_pic
            # Every owner's list, not only the updated user's own.
            for contacts in data["contacts"].values():
                for contact in contacts:
                    if contact["phone"] == phone and contact.get("isUser"):
                        contact["name"] = user["name"]
                        contact["profilePic"] = user["profilePic"]
            return User.model_validate(user)

    # ------------------------------------------------------------------
    # Contacts
    # ------------------------------------------------------------------

    def add_contact(
        self, owner_phone: str, contact_name: str, contact_phone: str
    ) -> Contact:
        _check_phone(owner_phone)
        contact_name = _check_text(contact_name, "contact name")
        _check_phone(contact_phone)
        with self._transaction() as data:
            contacts = data["contacts"].setdefault(owner_phone, [])
            if any(c["phone"] == contact_phone for c in contacts):
                raise DuplicateContact(f"contact {contact_phone} already added")
            target = self._find_user(contact_phone)
            contact = Contact(
                name=contact_name,
                phone=contact_phone,
                is_user=target is not None,
                profile_pic=target["profilePic"] if target else DEFAULT_PROFILE_PIC,
            )
            contacts.append(contact.to_wire())
        return contact

    def get_contacts(self, owner_phone: str) -> list[Contact]:
        with self._lock:
            return [
                Contact.model_validate(c)
                for c in self._data["contacts"].get(owner_phone, [])
            ]

    def get_contact_info(self, owner_phone: str, phone: str) -> Contact:
        """Resolve how ``phone`` is displayed to ``owner_phone``."""
        with self._lock:
            for contact in self._data["contacts"].get(owner_phone, []):
                if contact["phone"] == phone:
                    return Contact.model_validate(contact)
            user = self._find_user(phone)
            if user is not None:
                return Contact(
                    name=user["name"],
                    phone=phone,
                    is_user=True,
                    profile_pic=user["profilePic"],
                )
            return Contact(name=phone, phone=phone)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def send_message(
        self, sender: str, receiver: str, content: str, is_image: bool = False
    ) -> Message:
        _check_phone(sender)
        _check_phone(receiver)
        if not isinstance(content, str) or not content:
            raise InvalidInput("message is required")
        with self._transaction() as data:
            message = Message(
                sender=sender,
                content=content,
                is_image=is_image,
                timestamp=isoformat(self._clock()),
            )
            record = message.to_wire()
            chats = data["chats"]
            chats.setdefault(sender, {}).setdefault(receiver, []).append(record)
            chats.setdefault(receiver, {}).setdefault(sender, []).append(dict(record))
        notify_message({"receiver": receiver, **message.to_wire()})
        return message

    def get_chat_messages(self, user_phone: str, contact_phone: str) -> list[Message]:
        with self._lock:
            thread = self._data["chats"].get(user_phone, {}).get(contact_phone, [])
            return [Message.model_validate(m) for m in thread]

    def get_chat_list(self, user_phone: str) -> list[ChatSummary]:
        with self._lock:
            summaries = []
            for partner, thread in self._data["chats"].get(user_phone, {}).items():
                if not thread:
                    continue
                last = thread[-1]
                info = self.get_contact_info(user_phone, partner)
                partner_user = self._find_user(partner)
                summaries.append(
                    ChatSummary(
                        phone=partner,
                        name=info.name,
                        profile_pic=info.profile_pic,
                        last_message=last["content"],
                        is_image=last.get("isImage", False),
                        timestamp=last["timestamp"],
                        online=bool(
                            partner_user and partner_user.get("status") == "online"
                        ),
                    )
                )
        summaries.sort(key=lambda s: parse_timestamp(s.timestamp), reverse=True)
        return summaries
