"""
DavPanel - Configuration Store
================================
Owns the WebDAV server's YAML configuration file.

The file is the single source of truth: it is read fresh on every API call
and written back in full after every change. There is no in-process cache,
so several admin sessions always see the latest saved state. There is also
no locking, so two concurrent edits are last-write-wins.

Writes are all-or-nothing: the document is serialized first, written to a
temporary file next to the target, and moved into place with an atomic
rename. A failed write leaves the old file untouched.

Keys the panel does not model (``rules``, ``rulesBehavior`` or anything else
the WebDAV server understands) are carried through unchanged.

Usage:
    store = ConfigStore("/etc/webdav/config.yaml")
    config = store.read()              # creates defaults if file is missing
    config["port"] = 8081
    store.write(config)
    store.merge({"debug": False})      # read + shallow update + write
"""

import os
import tempfile
from typing import Any

import yaml

from panel.errors import ReadError, WriteError
from panel.log import PanelLogger


# Configuration synthesized when the file does not exist yet.
# Matches the defaults of the WebDAV server itself.
DEFAULTS = {
    "address": "0.0.0.0",
    "port": 80,
    "tls": False,
    "cert": ".cert",
    "key": ".key",
    "prefix": "/",
    "debug": True,
    "noSniff": False,
    "behindProxy": False,
    "directory": ".",
    "permissions": "R",
    "rules": [],
    "rulesBehavior": "overwrite",
    "log": {
        "format": "console",
        "colors": True,
        "outputs": ["stderr"],
    },
    "cors": {
        "enabled": False,
        "credentials": True,
        "allowed_headers": ["Depth"],
        "allowed_hosts": ["http://localhost:8080"],
        "allowed_methods": ["GET"],
        "exposed_headers": ["Content-Length", "Content-Range"],
    },
    "users": [
        {
            "username": "admin",
            "password": "admin",
            "permissions": "CRUD",
            "directory": "/",
        },
    ],
}


def default_config() -> dict:
    """Return a fresh, independent copy of the default configuration."""
    return _deep_copy(DEFAULTS)


class ConfigStore:
    """
    Read/write access to one YAML configuration file.

    Attributes:
        config_path: Full path to the configuration file.
        logger:      Tagged logger for read/write events.
    """

    def __init__(self, config_path: str, logger: PanelLogger | None = None):
        """
        Initialize the store.

        Args:
            config_path: Path to the WebDAV server's config.yaml.
            logger:      Logger instance; a terminal-only logger if None.
        """
        self.config_path = config_path
        self.logger = logger or PanelLogger()

    def exists(self) -> bool:
        """Check whether the configuration file exists, without parsing it."""
        return os.path.exists(self.config_path)

    def read(self) -> dict:
        """
        Load the configuration from disk.

        A missing file is replaced by the default configuration, which is
        saved before being returned. A file that exists but cannot be parsed
        is reported, never overwritten.

        Returns:
            The configuration as a plain dictionary.

        Raises:
            ReadError: If the file is unreadable, malformed, or the default
                       configuration could not be saved.
        """
        if not self.exists():
            self.logger.info("CONFIG", f"Config file does not exist: {self.config_path}")
            config = default_config()
            try:
                self.write(config)
            except WriteError as e:
                raise ReadError(f"Failed to create default config file: {e}") from e
            self.logger.info("CONFIG", "Default config file created")
            return config

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ReadError(f"Config file is not valid YAML: {e}") from e
        except OSError as e:
            raise ReadError(f"Unable to read configuration file: {e}") from e

        if not isinstance(config, dict):
            raise ReadError(
                f"Config file must contain a mapping, got {type(config).__name__}"
            )
        return config

    def write(self, config: dict) -> None:
        """
        Replace the configuration file with the given configuration.

        Args:
            config: The full configuration dictionary.

        Raises:
            WriteError: If serialization or any filesystem step fails.
        """
        try:
            text = yaml.safe_dump(
                config,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            )
        except yaml.YAMLError as e:
            raise WriteError(f"Cannot serialize configuration: {e}") from e

        # Replace the file a symlinked path points to, not the link itself
        target = os.path.realpath(self.config_path)
        directory = os.path.dirname(target)
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=directory, prefix=".config-", suffix=".yaml.tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            # Keep the mode of the file being replaced
            mode = os.stat(target).st_mode & 0o777 if os.path.exists(target) else 0o644
            os.chmod(tmp_path, mode)
            os.replace(tmp_path, target)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise WriteError(f"Failed to write configuration file: {e}") from e

        self.logger.info("CONFIG", f"Config file written: {self.config_path}")

    def merge(self, partial: dict[str, Any]) -> dict:
        """
        Shallow-merge a partial configuration and save.

        Every key in ``partial`` replaces the stored key (nested sections are
        replaced wholesale); keys not in ``partial`` are left as they are.

        Args:
            partial: Top-level keys to overwrite.

        Returns:
            The full merged configuration.

        Raises:
            ReadError / WriteError: From the underlying read or write.
        """
        config = self.read()
        config.update(partial)
        self.write(config)
        return config


# -- Helper Functions ---------------------------------------------------------

def _deep_copy(d: dict) -> dict:
    """Create a deep copy of a nested dictionary of plain values."""
    result = {}
    for key, value in d.items():
        if isinstance(value, dict):
            result[key] = _deep_copy(value)
        elif isinstance(value, list):
            result[key] = [
                _deep_copy(item) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value
    return result
