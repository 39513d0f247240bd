import json

import pytest

from shortener.core.errors import NotFound, ValidationError
from shortener.services.users import hash_password


def write_document(user_store, document):
    with open(user_store.storage.path, "w", encoding="utf-8") as f:
        json.dump(document, f)


def test_migrate_fills_missing_fields(user_store):
    write_document(user_store, {"users": [
        {"username": "old", "passwordHash": "x"},
        {"id": "42", "username": "admin", "passwordHash": "y", "isAdmin": True},
        {"id": "43", "username": "flag", "passwordHash": "z", "isAdmin": "yes"},
    ]})

    assert user_store.migrate() == 2

    users = {u.username: u for u in user_store.list()}
    assert users["old"].id
    assert users["old"].is_admin is False
    assert users["admin"].id == "42"
    assert users["admin"].is_admin is True
    assert users["flag"].is_admin is False


def test_migrate_is_idempotent(user_store, mocker):
    write_document(user_store, {"users": [{"username": "old", "passwordHash": "x"}]})
    user_store.migrate()
    first_id = user_store.list()[0].id

    save = mocker.spy(user_store.storage, "save")
    assert user_store.migrate() == 2
    assert save.call_count == 0
    assert user_store.list()[0].id == first_id


def test_migrate_empty_store(user_store):
    assert user_store.migrate() == 2
    assert user_store.list() == []


def test_create_and_authenticate(user_store):
    user = user_store.create("alice", "secret-1", email="alice@example.com")
    assert user.password_hash != "secret-1"
    assert user_store.authenticate("alice", "secret-1").id == user.id
    assert user_store.authenticate("alice", "wrong") is None
    assert user_store.authenticate("nobody", "secret-1") is None


def test_create_duplicate_username(user_store):
    user_store.create("alice", "secret-1")
    with pytest.raises(ValidationError):
        user_store.create("alice", "secret-2")


def test_delete_user(user_store):
    user = user_store.create("alice", "secret-1")
    user_store.delete(user.id)
    with pytest.raises(NotFound):
        user_store.get(user.id)
    with pytest.raises(NotFound):
        user_store.delete(user.id)


def test_ensure_admin_only_when_empty(user_store):
    assert user_store.ensure_admin(None, None) is None
    admin = user_store.ensure_admin("root", "root-password")
    assert admin.is_admin
    assert user_store.ensure_admin("root2", "root-password") is None
    assert [u.username for u in user_store.list()] == ["root"]


def test_migrate_turns_numeric_ids_into_strings(user_store):
    write_document(user_store, {"users": [{"id": 1, "username": "a", "passwordHash": hash_password("x")}]})

    assert user_store.migrate() == 2

    user = user_store.authenticate("a", "x")
    assert user is not None
    assert user.id == "1"
    with open(user_store.storage.path, encoding="utf-8") as f:
        assert json.load(f)["users"][0]["id"] == "1"


def test_migrate_from_first_version_stringifies_ids(user_store):
    write_document(user_store, {"version": 1, "users": [
        {"id": 7, "username": "seven", "passwordHash": "x", "isAdmin": False},
    ]})

    assert user_store.migrate() == 2
    assert user_store.get("7").username == "seven"


def test_list_skips_invalid_user_rows(user_store):
    write_document(user_store, {"version": 2, "users": [
        {"id": "1", "username": "ok", "passwordHash": "x"},
        {"id": "2", "passwordHash": "y"},
    ]})

    assert [u.username for u in user_store.list()] == ["ok"]
