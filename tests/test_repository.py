"""JSON file repository: identity, ordering, errors, locking."""

import json
import os
import threading
from datetime import date
from pathlib import Path

import pytest

from attendbet.errors import NotFoundError, StorageFailureError
from attendbet.ledger import register_day
from attendbet.models import BetDraft
from attendbet.storage.repository import JsonBetRepository

from conftest import END, LATER, START


@pytest.fixture
def repo(tmp_path):
    return JsonBetRepository(tmp_path / "data")


def _draft() -> BetDraft:
    return BetDraft(start_date=START, end_date=END, absence_limit=1, entry_fee=20.0, participants=["A", "B"])


def test_ids_start_at_one_and_increment(repo):
    assert [repo.create(_draft()).id for _ in range(3)] == [1, 2, 3]


def test_next_id_follows_max_existing(repo):
    for _ in range(3):
        repo.create(_draft())
    repo.delete(2)
    repo.delete(3)
    assert repo.create(_draft()).id == 2


def test_list_most_recent_first(repo):
    assert repo.list() == []
    for _ in range(3):
        repo.create(_draft())
    (repo.data_dir / "notes.txt").write_text("ignored")
    assert [b.id for b in repo.list()] == [3, 2, 1]


def test_get_roundtrips_document(repo):
    created = repo.create(_draft())
    assert repo.get(created.id) == created
    doc = json.loads((repo.data_dir / "bet-1.json").read_text())
    assert doc == {
        "id": 1,
        "startDate": "2025-01-01",
        "endDate": "2025-01-05",
        "absenceLimit": 1,
        "entryFee": 20.0,
        "participants": ["A", "B"],
        "days": [],
    }


def test_get_missing_raises_not_found(repo):
    with pytest.raises(NotFoundError):
        repo.get(42)


def test_save_requires_existing_bet(repo):
    bet = repo.create(_draft())
    repo.delete(bet.id)
    with pytest.raises(NotFoundError):
        repo.save(bet)


def test_save_overwrites(repo):
    bet = repo.create(_draft())
    repo.save(register_day(bet, START, {"A": True, "B": False}, LATER))
    doc = json.loads((repo.data_dir / "bet-1.json").read_text())
    assert doc["days"] == [{"date": "2025-01-01", "attendance": {"A": True, "B": False}}]


def test_delete_twice_raises_not_found(repo):
    bet = repo.create(_draft())
    repo.delete(bet.id)
    with pytest.raises(NotFoundError):
        repo.delete(bet.id)


def test_update_persists_mutation(repo):
    bet = repo.create(_draft())
    out = repo.update(bet.id, lambda b: register_day(b, START, {"A": True, "B": True}, LATER))
    assert repo.get(bet.id) == out
    assert out.days[0].date == date(2025, 1, 1)


def test_update_failure_leaves_document_unchanged(repo):
    bet = repo.create(_draft())

    def boom(b):
        raise NotFoundError("nope")

    with pytest.raises(NotFoundError):
        repo.update(bet.id, boom)
    assert repo.get(bet.id).id == bet.id


def test_malformed_document_is_storage_failure(repo):
    repo.create(_draft())
    (repo.data_dir / "bet-1.json").write_text("{not json")
    with pytest.raises(StorageFailureError):
        repo.get(1)
    with pytest.raises(StorageFailureError):
        repo.list()


def test_concurrent_creates_get_unique_ids(repo):
    ids: list[int] = []
    lock = threading.Lock()

    def worker():
        bet = repo.create(_draft())
        with lock:
            ids.append(bet.id)

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert sorted(ids) == list(range(1, 11))


def test_concurrent_updates_do_not_lose_writes(repo):
    bet = repo.create(_draft())

    def bump(b):
        return b.model_copy(update={"entry_fee": b.entry_fee + 1})

    threads = [threading.Thread(target=repo.update, args=(bet.id, bump)) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert repo.get(bet.id).entry_fee == 40.0


def _fail(*args, **kwargs):
    raise OSError("disk full")


def _leftover_tmp(repo):
    return list(repo.data_dir.glob(".bet-*.tmp"))


def test_create_write_failure_is_storage_failure(repo, monkeypatch):
    repo.data_dir.mkdir(parents=True)
    monkeypatch.setattr(os, "replace", _fail)
    with pytest.raises(StorageFailureError):
        repo.create(_draft())
    assert _leftover_tmp(repo) == []
    monkeypatch.undo()
    assert repo.list() == []


def test_save_write_failure_keeps_previous_document(repo, monkeypatch):
    bet = repo.create(_draft())
    monkeypatch.setattr(os, "replace", _fail)
    with pytest.raises(StorageFailureError):
        repo.save(register_day(bet, START, {"A": True, "B": True}, LATER))
    assert _leftover_tmp(repo) == []
    monkeypatch.undo()
    assert repo.get(bet.id).days == []


def test_data_dir_that_is_a_file_is_storage_failure(tmp_path):
    blocker = tmp_path / "data"
    blocker.write_text("not a directory")
    with pytest.raises(StorageFailureError):
        JsonBetRepository(blocker / "nested").create(_draft())


def test_delete_failure_is_storage_failure(repo, monkeypatch):
    bet = repo.create(_draft())
    monkeypatch.setattr(Path, "unlink", _fail)
    with pytest.raises(StorageFailureError):
        repo.delete(bet.id)
    monkeypatch.undo()
    assert repo.get(bet.id).id == bet.id


def test_delete_releases_bet_lock(repo):
    bet = repo.create(_draft())
    repo.update(bet.id, lambda b: b)
    assert bet.id in repo._locks
    repo.delete(bet.id)
    assert bet.id not in repo._locks
