from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from topups.loader import (
    DuplicateCompanyIdError,
    RecordMappingError,
    SourceReadError,
    TopUpError,
    load_companies,
    load_json_data,
    load_users,
)


def _write_json(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def _user(user_id: int, **overrides: object) -> dict:
    record = {
        "id": user_id,
        "first_name": f"First{user_id}",
        "last_name": f"Last{user_id}",
        "email": f"user{user_id}@example.com",
        "company_id": 1,
        "email_status": True,
        "active_status": True,
        "tokens": 10,
    }
    record.update(overrides)
    return record


def test_load_json_data_missing_file(tmp_path: Path) -> None:
    missing = tmp_path / "users.json"

    with pytest.raises(SourceReadError) as excinfo:
        load_json_data(missing)

    assert str(excinfo.value).startswith(f"Error loading {missing}: ")
    assert excinfo.value.source == missing


def test_load_json_data_malformed_json(tmp_path: Path) -> None:
    source = tmp_path / "companies.json"
    source.write_text("[{", encoding="utf-8")

    with pytest.raises(SourceReadError):
        load_json_data(source)


def test_load_json_data_requires_array_of_objects(tmp_path: Path) -> None:
    with pytest.raises(SourceReadError, match="expected a JSON array"):
        load_json_data(_write_json(tmp_path / "a.json", {"id": 1}))

    with pytest.raises(SourceReadError, match="item 1 is not a JSON object"):
        load_json_data(_write_json(tmp_path / "b.json", [{}, 3]))


def test_load_users_preserves_input_order(tmp_path: Path) -> None:
    source = _write_json(tmp_path / "users.json", [_user(3), _user(1), _user(2)])

    users = load_users(source)

    assert [user.id for user in users] == [3, 1, 2]
    assert all(user.top_up == 0 and user.email_sent is False for user in users)


def test_load_users_halts_on_first_bad_record(tmp_path: Path) -> None:
    bad = _user(2, tokens="lots")
    source = _write_json(tmp_path / "users.json", [_user(1), bad, _user(3, id="x")])

    with pytest.raises(RecordMappingError) as excinfo:
        load_users(source)

    assert excinfo.value.kind == "user"
    assert excinfo.value.record == bad
    assert str(excinfo.value).startswith(f"Unable to load user {bad} - ")
    assert isinstance(excinfo.value, TopUpError)


def test_load_users_warns_about_duplicate_ids(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    source = _write_json(tmp_path / "users.json", [_user(1), _user(2), _user(1)])

    with caplog.at_level(logging.WARNING, logger="topups.loader"):
        users = load_users(source)

    assert len(users) == 3
    assert "Duplicate user ids" in caplog.text
    assert ": 1" in caplog.text


def test_load_companies_keyed_by_id(tmp_path: Path) -> None:
    source = _write_json(
        tmp_path / "companies.json",
        [
            {"id": "2", "name": "Beta", "top_up": 5, "email_status": False},
            {"id": 1, "name": "Alpha", "top_up": "20", "email_status": True},
        ],
    )

    companies = load_companies(source)

    assert list(companies) == [2, 1]
    assert companies[1].name == "Alpha"
    assert companies[1].top_up == 20
    assert companies[2].email_status is False


def test_load_companies_rejects_duplicate_ids(tmp_path: Path) -> None:
    source = _write_json(
        tmp_path / "companies.json",
        [
            {"id": 4, "name": "First Co", "top_up": 5, "email_status": True},
            {"id": 4, "name": "Second Co", "top_up": 9, "email_status": True},
        ],
    )

    with pytest.raises(DuplicateCompanyIdError) as excinfo:
        load_companies(source)

    assert str(excinfo.value) == (
        "Duplicate company id found: 'Second Co' and 'First Co' both have id 4."
    )
    assert excinfo.value.company_id == 4


def test_load_companies_reports_bad_record(tmp_path: Path) -> None:
    record = {"id": 1, "name": "Alpha", "email_status": True}
    source = _write_json(tmp_path / "companies.json", [record])

    with pytest.raises(RecordMappingError, match="Unable to load company") as excinfo:
        load_companies(source)

    assert excinfo.value.kind == "company"
    assert "top_up" in str(excinfo.value)
