from __future__ import annotations

import os

from chatlite.maintenance import backup_store, nightly_backup, purge_old_backups


def test_backup_copies_store(store, store_path, tmp_path):
    store.register("Alice", "111111")
    backups = tmp_path / "backups"

    target = backup_store(str(store_path), str(backups))

    assert os.path.basename(target).startswith("chatlite-")
    with open(target, encoding="utf-8") as f:
        assert f.read() == store_path.read_text(encoding="utf-8")


def test_backup_without_store(tmp_path):
    assert backup_store(str(tmp_path / "missing.json"), str(tmp_path / "b")) is None


def test_purge_old_backups(tmp_path):
    backups = tmp_path / "backups"
    backups.mkdir()
    (backups / "chatlite-20000101000000.json").write_text("{}")
    (backups / "chatlite-99990101000000.json").write_text("{}")
    (backups / "notes.txt").write_text("keep")

    removed = purge_old_backups(str(backups), retention_days=30)

    assert removed == ["chatlite-20000101000000.json"]
    assert sorted(os.listdir(backups)) == ["chatlite-99990101000000.json", "notes.txt"]


def test_nightly_backup(store, store_path, tmp_path):
    store.register("Alice", "111111")
    backups = tmp_path / "backups"

    nightly_backup(str(store_path), str(backups))

    assert len(os.listdir(backups)) == 1
