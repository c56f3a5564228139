"""
DavPanel - User Registry
==========================
A view over the ``users`` list inside a configuration dictionary.

The registry never touches the file itself: callers read a configuration
with ConfigStore.read(), mutate it through the registry, then persist the
whole configuration with ConfigStore.write(). The two steps run back to back
within one request but are not atomic across a crash.

Rules:
    - Usernames are unique (exact, case-sensitive match).
    - Adding a user whose name exists fails with DuplicateUsername.
    - Editing a user that does not exist appends it.
    - Removing a user that does not exist is a no-op.
    - A user's home directory is created before the list changes.

Usage:
    config = store.read()
    registry = UserRegistry(config)
    registry.upsert({"username": "alice", ...}, is_edit=False)
    store.write(config)
"""

import os
import random
import string
from typing import Any

from panel.errors import DirectoryCreationError, DuplicateUsername
from panel.log import PanelLogger


class UserRegistry:
    """
    Mutating view over ``config["users"]``.

    Attributes:
        config: The configuration dictionary being edited (shared, not copied).
    """

    def __init__(self, config: dict, logger: PanelLogger | None = None):
        self.config = config
        self.logger = logger or PanelLogger()

    @property
    def users(self) -> list[dict[str, Any]]:
        """The live user list, created on first access if absent."""
        if not isinstance(self.config.get("users"), list):
            self.config["users"] = []
        return self.config["users"]

    def list_users(self) -> list[dict[str, Any]]:
        """Return the stored users without materializing an empty list."""
        users = self.config.get("users")
        return list(users) if isinstance(users, list) else []

    def find(self, username: str) -> int:
        """Index of the first user named ``username``, or -1."""
        for index, user in enumerate(self.list_users()):
            if isinstance(user, dict) and user.get("username") == username:
                return index
        return -1

    def check_unique(self) -> None:
        """
        Verify that no username appears twice in the list.

        Raises:
            DuplicateUsername: Naming the first repeated username.
        """
        seen = set()
        for user in self.list_users():
            if not isinstance(user, dict):
                continue
            username = user.get("username")
            if username in seen:
                raise DuplicateUsername(username)
            seen.add(username)

    def upsert(self, user: dict[str, Any], is_edit: bool) -> None:
        """
        Add a new user or replace an existing one.

        Args:
            user:    The complete user record.
            is_edit: True to replace the user with the same name (or append
                     if there is none); False to add and reject duplicates.

        Raises:
            DuplicateUsername:      Adding a name that already exists.
            DirectoryCreationError: The user's directory could not be made.
        """
        username = user.get("username")
        index = self.find(username)

        if not is_edit and index != -1:
            raise DuplicateUsername(username)

        ensure_directory(user.get("directory"))

        if index != -1:
            self.users[index] = user
            self.logger.info("USERS", f"User updated: {username}")
        else:
            self.users.append(user)
            self.logger.info("USERS", f"User added: {username}")

    def remove(self, username: str) -> int:
        """
        Remove every user named ``username``.

        Returns:
            Number of removed entries (0 when the user did not exist).
        """
        before = self.list_users()
        kept = [u for u in before if not (isinstance(u, dict) and u.get("username") == username)]
        removed = len(before) - len(kept)
        if isinstance(self.config.get("users"), list):
            self.config["users"] = kept
        if removed:
            self.logger.info("USERS", f"User deleted: {username}")
        return removed


def ensure_directory(path: str | None) -> None:
    """
    Make sure ``path`` exists as a directory, creating parents as needed.

    Existing directories are left alone, so concurrent calls are harmless.
    An empty path is skipped.

    Raises:
        DirectoryCreationError: If the directory cannot be created.
    """
    if not path:
        return
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise DirectoryCreationError(path) from e


# -- Password Generation ------------------------------------------------------

# 26 lowercase + 26 uppercase + 10 digits
PASSWORD_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
DEFAULT_PASSWORD_LENGTH = 16


def generate_password(length: int = DEFAULT_PASSWORD_LENGTH) -> str:
    """
    Generate a random alphanumeric password.

    Each character is drawn independently and uniformly from the 62-symbol
    alphabet. Convenience for filling the user form, not a secrets generator.
    """
    return "".join(random.choice(PASSWORD_ALPHABET) for _ in range(length))
