import os

import pytest

from panel.errors import DirectoryCreationError, DuplicateUsername
from panel.users import PASSWORD_ALPHABET, UserRegistry, generate_password


def _user(name, tmp_path, **extra):
    user = {
        "username": name,
        "password": "pw",
        "permissions": "R",
        "directory": str(tmp_path / "homes" / name),
    }
    user.update(extra)
    return user


def test_add_to_config_without_users(tmp_path):
    config = {"port": 80}
    registry = UserRegistry(config)

    registry.upsert(_user("alice", tmp_path), is_edit=False)

    assert [u["username"] for u in config["users"]] == ["alice"]
    assert os.path.isdir(tmp_path / "homes" / "alice")


def test_add_duplicate_is_rejected(tmp_path):
    config = {"users": [_user("alice", tmp_path)]}
    before = [dict(u) for u in config["users"]]

    with pytest.raises(DuplicateUsername):
        UserRegistry(config).upsert(_user("alice", tmp_path, password="other"), is_edit=False)

    assert config["users"] == before


def test_usernames_are_case_sensitive(tmp_path):
    config = {"users": [_user("alice", tmp_path)]}
    UserRegistry(config).upsert(_user("Alice", tmp_path), is_edit=False)
    assert [u["username"] for u in config["users"]] == ["alice", "Alice"]


def test_edit_replaces_in_place(tmp_path):
    config = {"users": [_user("a", tmp_path), _user("b", tmp_path), _user("c", tmp_path)]}

    UserRegistry(config).upsert(_user("b", tmp_path, permissions="CRUD"), is_edit=True)

    assert [u["username"] for u in config["users"]] == ["a", "b", "c"]
    assert config["users"][1]["permissions"] == "CRUD"


def test_edit_unknown_user_appends(tmp_path):
    config = {"users": [_user("a", tmp_path)]}
    UserRegistry(config).upsert(_user("new", tmp_path), is_edit=True)
    assert [u["username"] for u in config["users"]] == ["a", "new"]


def test_extra_user_keys_are_kept(tmp_path):
    config = {"users": []}
    UserRegistry(config).upsert(_user("a", tmp_path, rules=[{"path": "/x"}]), is_edit=False)
    assert config["users"][0]["rules"] == [{"path": "/x"}]


def test_directory_failure_leaves_users_unchanged(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    config = {"users": [_user("a", tmp_path)]}
    before = [dict(u) for u in config["users"]]

    with pytest.raises(DirectoryCreationError) as exc:
        UserRegistry(config).upsert(
            _user("b", tmp_path, directory=str(blocker / "sub")), is_edit=False
        )

    assert str(blocker / "sub") in str(exc.value)
    assert config["users"] == before


def test_existing_directory_is_fine(tmp_path):
    home = tmp_path / "shared"
    home.mkdir()
    config = {"users": []}
    registry = UserRegistry(config)
    registry.upsert(_user("a", tmp_path, directory=str(home)), is_edit=False)
    registry.upsert(_user("b", tmp_path, directory=str(home)), is_edit=False)
    assert len(config["users"]) == 2


def test_remove_all_matches(tmp_path):
    config = {"users": [_user("a", tmp_path), _user("b", tmp_path), _user("a", tmp_path)]}
    removed = UserRegistry(config).remove("a")
    assert removed == 2
    assert [u["username"] for u in config["users"]] == ["b"]


def test_remove_unknown_user_is_noop(tmp_path):
    config = {"users": [_user("a", tmp_path)]}
    before = [dict(u) for u in config["users"]]
    assert UserRegistry(config).remove("ghost") == 0
    assert config["users"] == before


def test_remove_without_users_key(tmp_path):
    config = {"port": 80}
    assert UserRegistry(config).remove("ghost") == 0
    assert "users" not in config


def test_check_unique(tmp_path):
    UserRegistry({"users": [_user("alice", tmp_path), _user("Alice", tmp_path)]}).check_unique()
    UserRegistry({"port": 80}).check_unique()

    registry = UserRegistry({"users": [_user("bob", tmp_path), _user("bob", tmp_path)]})
    with pytest.raises(DuplicateUsername) as excinfo:
        registry.check_unique()
    assert excinfo.value.username == "bob"


def test_generate_password_length_and_alphabet():
    assert len(PASSWORD_ALPHABET) == 62
    assert len(set(PASSWORD_ALPHABET)) == 62
    for length in (1, 16, 64):
        password = generate_password(length)
        assert len(password) == length
        assert set(password) <= set(PASSWORD_ALPHABET)


def test_generate_password_covers_alphabet():
    # 12400 uniform draws miss a given symbol with probability ~e^-200
    sample = generate_password(62 * 200)
    assert set(sample) == set(PASSWORD_ALPHABET)
