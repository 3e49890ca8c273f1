"""Utility helpers for phone validation, timestamps and webhooks."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Optional

import requests

MESSAGE_WEBHOOK_URL = os.getenv("MESSAGE_WEBHOOK_URL")

PHONE_LENGTH = 6


def validate_phone(phone: str) -> str:
    """Check that a phone is exactly six ASCII digits.

    Raises ValueError if the phone is malformed.
    """
    if not isinstance(phone, str):
        raise ValueError("phone must be a string")
    if len(phone) != PHONE_LENGTH or not (phone.isascii() and phone.isdigit()):
        raise ValueError(f"phone number must be {PHONE_LENGTH} digits")
    return phone


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def notify_message(payload: dict) -> None:
    """POST a new message to the configured webhook if set."""
    url: Optional[str] = MESSAGE_WEBHOOK_URL
    if not url:
        return
    try:
        requests.post(url, json=payload, timeout=5)
    except Exception as exc:  # pragma: no cover - network errors
        logging.warning("webhook post failed: %s", exc)
