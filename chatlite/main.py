"""FastAPI application exposing the chat store."""

from __future__ import annotations

import logging
from typing import NoReturn, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from chatlite.db import STORE_PATH
from chatlite.errors import (
    DuplicateContact,
    DuplicatePhone,
    InvalidInput,
    NotFound,
    PersistenceFailure,
    StoreError,
)
from chatlite.maintenance import nightly_backup
from chatlite.presence import start_presence_monitor
from chatlite.store import ChatStore

app = FastAPI(title="chatlite")
SCHEDULER = BackgroundScheduler()


def get_store(request: Request) -> ChatStore:
    """FastAPI dependency that returns the app's store, opening it on first use."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        store = ChatStore.open(STORE_PATH)
        request.app.state.store = store
    return store


def raise_http(exc: StoreError) -> NoReturn:
    if isinstance(exc, NotFound):
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if isinstance(exc, (InvalidInput, DuplicatePhone, DuplicateContact)):
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if isinstance(exc, PersistenceFailure):
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    raise exc


@app.on_event("startup")
def _startup() -> None:
    store = ChatStore.open(STORE_PATH)
    app.state.store = store
    SCHEDULER.start()
    start_presence_monitor(SCHEDULER, store)
    SCHEDULER.add_job(nightly_backup, "cron", hour=0)
    logging.info("chat store loaded from %s", STORE_PATH)


@app.on_event("shutdown")
def _shutdown() -> None:
    if SCHEDULER.running:
        SCHEDULER.shutdown(wait=False)


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


class CamelIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RegisterIn(CamelIn):
    name: str
    phone: str


class PhoneIn(CamelIn):
    phone: str


@app.post("/register")
def api_register(data: RegisterIn, store: ChatStore = Depends(get_store)) -> dict:
    try:
        user = store.register(data.name, data.phone)
    except StoreError as exc:
        raise_http(exc)
    return {"success": True, "user": user.to_wire()}


@app.post("/login")
def api_login(data: PhoneIn, store: ChatStore = Depends(get_store)) -> dict:
    try:
        user = store.login(data.phone)
    except StoreError as exc:
        raise_http(exc)
    return {"success": True, "user": user.to_wire()}


@app.post("/logout")
def api_logout(data: PhoneIn, store: ChatStore = Depends(get_store)) -> dict:
    try:
        store.logout(data.phone)
    except StoreError as exc:
        raise_http(exc)
    return {"success": True}


@app.post("/heartbeat")
def api_heartbeat(data: PhoneIn, store: ChatStore = Depends(get_store)) -> dict:
    try:
        user = store.heartbeat(data.phone)
    except StoreError as exc:
        raise_http(exc)
    return {"success": True, "user": user.to_wire()}


@app.get("/users")
def list_users(store: ChatStore = Depends(get_store)) -> list[dict]:
    return [u.to_wire() for u in store.list_users()]


@app.get("/users/{phone}")
def get_user(phone: str, store: ChatStore = Depends(get_store)) -> dict:
    try:
        return store.get_user(phone).to_wire()
    except StoreError as exc:
        raise_http(exc)


class ContactIn(CamelIn):
    user_phone: str = Field(alias="userPhone")
    contact_name: str = Field(alias="contactName")
    contact_phone: str = Field(alias="contactPhone")


@app.post("/contacts")
def add_contact(data: ContactIn, store: ChatStore = Depends(get_store)) -> dict:
    try:
        contact = store.add_contact(
            data.user_phone, data.contact_name, data.contact_phone
        )
    except StoreError as exc:
        raise_http(exc)
    return {"success": True, "contact": contact.to_wire()}


@app.get("/contacts/{phone}")
def get_contacts(phone: str, store: ChatStore = Depends(get_store)) -> list[dict]:
    return [c.to_wire() for c in store.get_contacts(phone)]


class MessageIn(CamelIn):
    sender: str
    receiver: str
    message: str
    is_image: bool = Field(False, alias="isImage")


@app.post("/messages")
def send_message(data: MessageIn, store: ChatStore = Depends(get_store)) -> dict:
    try:
        msg = store.send_message(
            data.sender, data.receiver, data.message, data.is_image
        )
    except StoreError as exc:
        raise_http(exc)
    return {"success": True, "message": msg.to_wire()}


@app.get("/messages/{user}/{contact}")
def get_messages(
    user: str, contact: str, store: ChatStore = Depends(get_store)
) -> list[dict]:
    return [m.to_wire() for m in store.get_chat_messages(user, contact)]


@app.get("/chats/{phone}")
def get_chat_list(phone: str, store: ChatStore = Depends(get_store)) -> list[dict]:
    return [s.to_wire() for s in store.get_chat_list(phone)]


class ProfileIn(CamelIn):
    phone: str
    name: Optional[str] = None
    bio: Optional[str] = None
    profile_pic: Optional[str] = Field(None, alias="profilePic")


@app.put("/profile")
def update_profile(data: ProfileIn, store: ChatStore = Depends(get_store)) -> dict:
    try:
        user = store.update_profile(
            data.phone, name=data.name, bio=data.bio, profile_pic=data.profile_pic
        )
    except StoreError as exc:
        raise_http(exc)
    return {"success": True, "user": user.to_wire()}
