"""JSON document persistence for the chat store."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from chatlite.errors import PersistenceFailure

STORE_PATH = os.getenv("CHATLITE_STORE_PATH", "./chatlite.json")


def empty_document() -> dict[str, Any]:
    return {"users": [], "contacts": {}, "chats": {}}


class JsonDocument:
    """A single JSON file rewritten in full on every save."""

    def __init__(self, path: str | os.PathLike = STORE_PATH) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, Any]:
        if not self.path.exists():
            return empty_document()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PersistenceFailure(f"cannot read {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise PersistenceFailure(f"{self.path} does not hold a JSON object")
        for key, default in empty_document().items():
            data.setdefault(key, default)
        return data

    def save(self, data: dict[str, Any]) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(
                json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8"
            )
            os.replace(tmp, self.path)
        except (OSError, TypeError, ValueError) as exc:
            logging.error("failed to persist store to %s: %s", self.path, exc)
            raise PersistenceFailure(f"cannot write {self.path}: {exc}") from exc
