"""Maintenance tasks such as store backups and backup retention."""

import logging
import os
import shutil
from datetime import datetime, timedelta, timezone

from chatlite.db import STORE_PATH
from chatlite.utils import now_utc

BACKUP_DIR = os.getenv(
    "BACKUP_DIR", os.path.join(os.path.dirname(os.path.dirname(__file__)), "backups")
)
BACKUP_RETENTION_DAYS = int(os.getenv("BACKUP_RETENTION_DAYS", "30"))


def backup_store(
    store_path: str = STORE_PATH, backup_dir: str = BACKUP_DIR
) -> str | None:
    if not os.path.exists(store_path):
        logging.info("no store at %s, skipping backup", store_path)
        return None
    os.makedirs(backup_dir, exist_ok=True)
    timestamp = now_utc().strftime("%Y%m%d%H%M%S")
    target = os.path.join(backup_dir, f"chatlite-{timestamp}.json")
    shutil.copy(store_path, target)
    return target


def purge_old_backups(
    backup_dir: str = BACKUP_DIR, retention_days: int = BACKUP_RETENTION_DAYS
) -> list[str]:
    if not os.path.isdir(backup_dir):
        return []
    cutoff = now_utc() - timedelta(days=retention_days)
    removed = []
    for name in sorted(os.listdir(backup_dir)):
        if not (name.startswith("chatlite-") and name.endswith(".json")):
            continue
        try:
            taken = datetime.strptime(
                name[len("chatlite-") : -len(".json")], "%Y%m%d%H%M%S"
            ).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
        if taken < cutoff:
            os.remove(os.path.join(backup_dir, name))
            removed.append(name)
    return removed


def nightly_backup(store_path: str = STORE_PATH, backup_dir: str = BACKUP_DIR) -> None:
    path = backup_store(store_path, backup_dir)
    removed = purge_old_backups(backup_dir)
    logging.info(
        "nightly backup saved to %s, purged %d old backups", path, len(removed)
    )


if __name__ == "__main__":
    nightly_backup()
