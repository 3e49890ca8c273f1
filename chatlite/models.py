"""Pydantic models for users, contacts, messages and chat summaries.

Field names are snake_case in Python and camelCase on the wire and on disk.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BIO = "Hey there! I'm using WhatsApp Clone"
DEFAULT_PROFILE_PIC = "https://via.placeholder.com/150"


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class User(WireModel):
    name: str
    phone: str
    bio: str = DEFAULT_BIO
    profile_pic: str = Field(DEFAULT_PROFILE_PIC, alias="profilePic")
    status: Literal["online", "offline"] = "online"
    last_seen: Optional[str] = Field(None, alias="lastSeen")


class Contact(WireModel):
    name: str
    phone: str
    is_user: bool = Field(False, alias="isUser")
    profile_pic: str = Field(DEFAULT_PROFILE_PIC, alias="profilePic")


class Message(WireModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    sender: str
    content: str
    is_image: bool = Field(False, alias="isImage")
    timestamp: str


class ChatSummary(WireModel):
    phone: str
    name: str
    profile_pic: str = Field(alias="profilePic")
    last_message: str = Field(alias="lastMessage")
    is_image: bool = Field(False, alias="isImage")
    timestamp: str
    online: bool = False
