from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from accounts.store import Account, AccountStore, find_by_id, least_recently_used, parse_timestamp
from oauth.exceptions import AccountNotFoundError, ConfigurationError, PersistenceError, RosterError

FIXED_NOW = datetime(2025, 3, 4, 5, 6, 7, tzinfo=timezone.utc)


def _store(path: Path) -> AccountStore:
    store = AccountStore(path, clock=lambda: FIXED_NOW)
    store.load()
    return store


def test_never_used_outranks_any_used() -> None:
    accounts = [
        Account("old", last_used="1999-01-01T00:00:00Z"),
        Account("fresh", last_used=None),
        Account("newer", last_used="2024-06-01T00:00:00Z"),
    ]
    assert least_recently_used(accounts).id == "fresh"


def test_earliest_timestamp_wins_among_used() -> None:
    accounts = [
        Account("c", last_used="2024-03-01T00:00:00Z"),
        Account("a", last_used="2024-01-01T00:00:00Z"),
        Account("b", last_used="2024-02-01T00:00:00Z"),
    ]
    assert least_recently_used(accounts).id == "a"


def test_timestamps_compare_across_offsets() -> None:
    accounts = [
        Account("utc", last_used="2024-01-01T10:00:00Z"),
        # 09:30 UTC
        Account("tokyo", last_used="2024-01-01T18:30:00+09:00"),
    ]
    assert least_recently_used(accounts).id == "tokyo"


def test_exact_ties_keep_roster_order() -> None:
    accounts = [
        Account("first", last_used="2024-01-01T00:00:00Z"),
        Account("second", last_used="2024-01-01T00:00:00+00:00"),
    ]
    assert least_recently_used(accounts).id == "first"

    never = [Account("x"), Account("y")]
    assert least_recently_used(never).id == "x"


def test_empty_roster_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        least_recently_used([])


def test_find_by_id_is_exact() -> None:
    accounts = [Account("alpha"), Account("alphabet")]
    assert find_by_id(accounts, "alpha") is accounts[0]
    assert find_by_id(accounts, "ALPHA") is None
    assert find_by_id(accounts, "alp") is None


def test_parse_timestamp_handles_z_and_naive() -> None:
    assert parse_timestamp("2024-01-01T00:00:00Z") == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-01T00:00:00") == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_load_reads_roster(write_roster) -> None:
    path = write_roster(
        [
            {"id": "a", "email": "a@example.com", "lastUsed": None},
            {"id": "b", "email": "b@example.com", "lastUsed": "2024-01-01T00:00:00Z", "note": "work"},
        ]
    )
    store = _store(path)

    assert [a.id for a in store.accounts] == ["a", "b"]
    assert store.get("b").extra == {"note": "work"}
    assert store.least_recently_used().id == "a"


def test_get_unknown_account_lists_available(write_roster) -> None:
    store = _store(write_roster([{"id": "a"}, {"id": "b"}]))

    with pytest.raises(AccountNotFoundError) as excinfo:
        store.get("zzz")

    assert excinfo.value.available == ["a", "b"]
    assert "a, b" in str(excinfo.value)


def test_mark_used_updates_only_that_account(write_roster) -> None:
    path = write_roster(
        [
            {"id": "a", "email": "a@example.com", "lastUsed": None},
            {"id": "b", "email": "b@example.com", "lastUsed": "2024-01-01T00:00:00Z", "note": "keep me"},
        ]
    )
    before = json.loads(path.read_text())["accounts"]
    store = _store(path)

    store.mark_used("a")

    after = json.loads(path.read_text())["accounts"]
    assert after[0] == {"id": "a", "email": "a@example.com", "lastUsed": "2025-03-04T05:06:07Z"}
    assert after[1] == before[1]

    reread = _store(path)
    assert reread.get("a").last_used_at == FIXED_NOW
    assert reread.least_recently_used().id == "b"


def test_mark_used_writes_other_records_back_as_loaded(write_roster) -> None:
    path = write_roster(
        [
            {"email": "a@example.com", "id": "a"},
            {"email": "b@example.com", "note": "keep me", "id": "b"},
        ]
    )
    before = json.loads(path.read_text())["accounts"]
    store = _store(path)

    store.mark_used("a")

    after = json.loads(path.read_text())["accounts"]
    assert list(after[1].items()) == list(before[1].items())
    assert "lastUsed" not in after[1]
    assert list(after[0].items()) == [
        ("email", "a@example.com"),
        ("id", "a"),
        ("lastUsed", "2025-03-04T05:06:07Z"),
    ]


def test_mark_used_keeps_top_level_keys(tmp_path: Path) -> None:
    path = tmp_path / "accounts.json"
    path.write_text(json.dumps({"version": 2, "accounts": [{"id": "a", "email": "", "lastUsed": None}]}))

    _store(path).mark_used("a")

    assert json.loads(path.read_text())["version"] == 2


def test_mark_used_failure_is_not_committed(write_roster, monkeypatch: pytest.MonkeyPatch) -> None:
    path = write_roster([{"id": "a", "email": "", "lastUsed": None}])
    original = path.read_text()
    store = _store(path)

    def broken_write(target, data, mode=None, indent=2):
        raise PersistenceError(target, OSError("read-only file system"))

    monkeypatch.setattr("accounts.store.write_json_atomically", broken_write)

    with pytest.raises(PersistenceError):
        store.mark_used("a")

    assert store.get("a").last_used is None
    assert path.read_text() == original


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("{not json", "Failed to parse"),
        ('{"accounts": {}}', "accounts"),
        ('{"accounts": [{"email": "x@example.com"}]}', "no id"),
        ('{"accounts": [{"id": "a"}, {"id": "a"}]}', "Duplicate"),
        ('{"accounts": [{"id": "a", "lastUsed": "yesterday"}]}', "Invalid lastUsed"),
    ],
)
def test_malformed_roster_is_rejected(tmp_path: Path, content: str, message: str) -> None:
    path = tmp_path / "accounts.json"
    path.write_text(content)

    with pytest.raises(RosterError, match=message):
        AccountStore(path).load()


def test_missing_roster_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(RosterError, match="not found"):
        AccountStore(tmp_path / "nope.json").load()
