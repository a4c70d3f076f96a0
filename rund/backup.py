from __future__ import annotations

import hashlib
import logging
import pathlib
import shutil
import time

LOGGER = logging.getLogger(__name__)

SETTLE_SECONDS = 0.5


def file_hash(path: pathlib.Path) -> str:
    """Compute the SHA-256 hash of the given file."""
    hash_sha256 = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            hash_sha256.update(chunk)
    return hash_sha256.hexdigest()


def backup_name(path: pathlib.Path, stamp: int) -> str:
    stem = path.stem or "file"
    return f"{stem}_{stamp}{path.suffix}"


def create_backup(path: pathlib.Path, backup_dir: pathlib.Path, now: float | None = None) -> pathlib.Path:
    """Copy `path` to `<backup_dir>/<stem>_<unix-ts><ext>` and return the copy's path."""
    backup_dir.mkdir(parents=True, exist_ok=True)
    stamp = int(now if now is not None else time.time())
    target = backup_dir / backup_name(path, stamp)
    shutil.copy2(path, target)
    return target


class BackupWatch:
    """
    Remember a file's hash before the app runs; after it exits, back the
    file up if its content changed.
    """

    def __init__(self, path: pathlib.Path, backup_dir: pathlib.Path):
        self.path = path
        self.backup_dir = backup_dir
        self.initial_hash = file_hash(path) if path.exists() else None
        LOGGER.debug("Watching %s (hash=%s)", path, self.initial_hash)

    def changed(self) -> bool:
        if not self.path.exists():
            return False
        return file_hash(self.path) != self.initial_hash

    def finish(self, settle: float = SETTLE_SECONDS) -> pathlib.Path | None:
        if settle:
            time.sleep(settle)
        if not self.changed():
            LOGGER.debug("No changes in %s, skipping backup", self.path)
            return None
        return create_backup(self.path, self.backup_dir)
