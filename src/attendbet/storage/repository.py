"""File-backed bet persistence - one JSON document per bet."""

from __future__ import annotations

import json
import os
import re
import tempfile
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog
from pydantic import ValidationError

from attendbet.errors import NotFoundError, StorageFailureError
from attendbet.models import Bet, BetDraft

log = structlog.get_logger(__name__)

_FILE_RE = re.compile(r"^bet-(\d+)\.json$")


class JsonBetRepository:
    """Stores each bet as ``bet-<id>.json`` under data_dir. No caching: every read hits disk.

    Read-modify-write sequences for one bet are serialized by a per-id lock;
    id assignment is serialized by a store-wide lock. Both are in-process only.
    """

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)
        self._store_lock = threading.Lock()
        self._locks_guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}

    def _path(self, bet_id: int) -> Path:
        return self.data_dir / f"bet-{bet_id}.json"

    def _lock_for(self, bet_id: int) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(bet_id)
            if lock is None:
                lock = self._locks[bet_id] = threading.Lock()
            return lock

    @contextmanager
    def locked(self, bet_id: int) -> Iterator[None]:
        """Hold the bet's lock for a load -> mutate -> save sequence."""
        with self._lock_for(bet_id):
            yield

    def _ensure_dir(self) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageFailureError(f"Cannot create data directory {self.data_dir}: {e}") from e

    def _read(self, path: Path) -> Bet:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise
        except OSError as e:
            log.error("storage_failure", op="read", path=str(path), error=str(e))
            raise StorageFailureError(f"Cannot read {path.name}: {e}") from e
        try:
            return Bet.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            log.error("storage_failure", op="parse", path=str(path), error=str(e))
            raise StorageFailureError(f"Malformed bet document {path.name}: {e}") from e

    def _write(self, bet: Bet) -> None:
        """Write to a temp file in the same directory, then atomically replace."""
        self._ensure_dir()
        path = self._path(bet.id)
        payload = json.dumps(bet.to_document(), indent=2, ensure_ascii=False)
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".bet-{bet.id}-", suffix=".tmp", dir=self.data_dir)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            log.error("storage_failure", op="write", path=str(path), error=str(e))
            raise StorageFailureError(f"Cannot write {path.name}: {e}") from e

    def _ids(self) -> list[int]:
        if not self.data_dir.exists():
            return []
        try:
            names = os.listdir(self.data_dir)
        except OSError as e:
            raise StorageFailureError(f"Cannot list {self.data_dir}: {e}") from e
        return [int(m.group(1)) for m in map(_FILE_RE.match, names) if m]

    def create(self, draft: BetDraft) -> Bet:
        """Assign max(id) + 1 (or 1), persist and return the new bet."""
        with self._store_lock:
            ids = self._ids()
            bet = Bet.from_draft(draft, max(ids) + 1 if ids else 1)
            self._write(bet)
        log.info("bet_created", bet_id=bet.id, participants=len(bet.participants))
        return bet

    def get(self, bet_id: int) -> Bet:
        try:
            return self._read(self._path(bet_id))
        except FileNotFoundError:
            raise NotFoundError(f"Bet not found: {bet_id}", bet_id=bet_id) from None

    def list(self) -> list[Bet]:
        """All bets, most recent (highest id) first."""
        bets = []
        for bet_id in sorted(self._ids(), reverse=True):
            try:
                bets.append(self._read(self._path(bet_id)))
            except FileNotFoundError:
                continue  # deleted between listing and reading
        return bets

    def save(self, bet: Bet) -> None:
        """Overwrite an existing bet. NotFoundError if it was never created or was deleted."""
        with self.locked(bet.id):
            self._save_unlocked(bet)

    def _save_unlocked(self, bet: Bet) -> None:
        if not self._path(bet.id).exists():
            raise NotFoundError(f"Bet not found: {bet.id}", bet_id=bet.id)
        self._write(bet)

    def update(self, bet_id: int, mutate: Callable[[Bet], Bet]) -> Bet:
        """Load, apply ``mutate`` and save under the bet's lock. Returns the saved bet."""
        with self.locked(bet_id):
            bet = self.get(bet_id)
            updated = mutate(bet)
            self._save_unlocked(updated)
        return updated

    def delete(self, bet_id: int) -> None:
        with self.locked(bet_id):
            try:
                self._path(bet_id).unlink()
            except FileNotFoundError:
                raise NotFoundError(f"Bet not found: {bet_id}", bet_id=bet_id) from None
            except OSError as e:
                log.error("storage_failure", op="delete", bet_id=bet_id, error=str(e))
                raise StorageFailureError(f"Cannot delete bet {bet_id}: {e}") from e
            with self._locks_guard:
                self._locks.pop(bet_id, None)
        log.info("bet_deleted", bet_id=bet_id)
