"""Heartbeat-based presence: periodically mark silent users offline."""

from __future__ import annotations

import logging
import os

from apscheduler.schedulers.base import BaseScheduler

from chatlite.store import ChatStore

PRESENCE_TIMEOUT_SECONDS = float(os.getenv("PRESENCE_TIMEOUT_SECONDS", "90"))
PRESENCE_SWEEP_SECONDS = float(os.getenv("PRESENCE_SWEEP_SECONDS", "30"))


def sweep(store: ChatStore, timeout: float = PRESENCE_TIMEOUT_SECONDS) -> list[str]:
    try:
        changed = store.sweep_presence(timeout)
    except Exception as exc:  # pragma: no cover - surfaced in logs only
        logging.error("presence sweep failed: %s", exc)
        return []
    if changed:
        logging.info("marked offline: %s", ", ".join(changed))
    return changed


def start_presence_monitor(scheduler: BaseScheduler, store: ChatStore):
    return scheduler.add_job(
        sweep,
        "interval",
        seconds=PRESENCE_SWEEP_SECONDS,
        args=[store],
        id="presence-sweep",
        replace_existing=True,
    )
