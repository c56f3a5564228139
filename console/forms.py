"""
DavPanel - Form Sections
==========================
Typed state of each editable panel in the admin console.

Each section knows how to fill itself from a configuration (falling back to
the same defaults the store synthesizes) and how to turn itself back into
the payload the API expects. ``FIELDS`` is the explicit manifest of
attribute name -> configuration key for the plain fields of a section;
anything not in the manifest (permission checkboxes, comma-separated lists)
is converted by hand in from_config() / to_payload().

Sections:
    ServerSection - address, port, TLS, flags, server-wide permissions
    LogSection    - log format, colors, stderr output
    CorsSection   - CORS switches and comma-separated lists
    UserForm      - the add/edit user form
"""

from dataclasses import dataclass
from typing import Any, ClassVar

from panel.config import DEFAULTS
from panel.permissions import DEFAULT_PERMISSIONS, LETTERS, Permission


# =============================================================================
# Helpers
# =============================================================================

def split_list(text: str | None) -> list[str]:
    """Split a comma-separated field into trimmed, non-empty tokens."""
    return [token.strip() for token in (text or "").split(",") if token.strip()]


def join_list(items: list[str] | None) -> str:
    """Render a list for a comma-separated text field."""
    return ", ".join(str(item) for item in items or [])


def checked_permissions(value: Any) -> Permission:
    """
    Turn a stored permissions string into checkbox state.

    A letter is checked if it appears anywhere in the string; anything else
    in the string is ignored, so a hand-edited value never breaks the form.
    """
    text = value if isinstance(value, str) else ""
    return Permission.from_letters(**{letter: letter in text for letter in LETTERS})


def parse_port(value: Any) -> int:
    """Coerce the port field; an unparsable value becomes the default port."""
    try:
        return int(value) or DEFAULTS["port"]
    except (TypeError, ValueError):
        return DEFAULTS["port"]


def _value_or_default(config: dict, key: str) -> Any:
    """Stored value of a top-level key; null or blank text falls back to the default."""
    value = config.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return DEFAULTS[key]
    return value


def _section(config: dict, key: str) -> dict:
    """Return a nested section of the configuration, or {} if missing."""
    value = config.get(key)
    return value if isinstance(value, dict) else {}


# =============================================================================
# Sections
# =============================================================================

@dataclass
class ServerSection:
    """Server settings panel."""

    FIELDS: ClassVar[dict[str, str]] = {
        "address": "address",
        "port": "port",
        "prefix": "prefix",
        "directory": "directory",
        "tls": "tls",
        "cert": "cert",
        "key": "key",
        "debug": "debug",
        "no_sniff": "noSniff",
        "behind_proxy": "behindProxy",
    }

    address: str = DEFAULTS["address"]
    port: int = DEFAULTS["port"]
    prefix: str = DEFAULTS["prefix"]
    directory: str = DEFAULTS["directory"]
    tls: bool = DEFAULTS["tls"]
    cert: str = DEFAULTS["cert"]
    key: str = DEFAULTS["key"]
    debug: bool = DEFAULTS["debug"]
    no_sniff: bool = DEFAULTS["noSniff"]
    behind_proxy: bool = DEFAULTS["behindProxy"]
    permissions: Permission = Permission.R

    @classmethod
    def from_config(cls, config: dict) -> "ServerSection":
        values = {
            attr: _value_or_default(config, key) for attr, key in cls.FIELDS.items()
        }
        values["permissions"] = checked_permissions(
            config.get("permissions") or DEFAULT_PERMISSIONS
        )
        return cls(**values)

    def to_payload(self) -> dict[str, Any]:
        payload = {}
        for attr, key in self.FIELDS.items():
            value = getattr(self, attr)
            payload[key] = value.strip() if isinstance(value, str) else value
        payload["port"] = parse_port(self.port)
        payload["permissions"] = self.permissions.to_string() or DEFAULT_PERMISSIONS
        return payload


@dataclass
class LogSection:
    """
    Log settings panel. Only the "stderr" output has a checkbox; any other
    outputs found in the configuration are kept as they are.
    """

    FIELDS: ClassVar[dict[str, str]] = {
        "format": "format",
        "colors": "colors",
    }

    format: str = DEFAULTS["log"]["format"]
    colors: bool = DEFAULTS["log"]["colors"]
    stderr: bool = True
    other_outputs: tuple[str, ...] = ()

    @classmethod
    def from_config(cls, config: dict) -> "LogSection":
        log = _section(config, "log")
        outputs = log.get("outputs", DEFAULTS["log"]["outputs"]) or []
        return cls(
            format=log.get("format") or DEFAULTS["log"]["format"],
            colors=log.get("colors") is not False,
            stderr="stderr" in outputs,
            other_outputs=tuple(o for o in outputs if o != "stderr"),
        )

    def to_payload(self) -> dict[str, Any]:
        payload = {key: getattr(self, attr) for attr, key in self.FIELDS.items()}
        payload["outputs"] = (["stderr"] if self.stderr else []) + list(self.other_outputs)
        return payload


@dataclass
class CorsSection:
    """CORS panel. List values are edited as comma-separated text."""

    FIELDS: ClassVar[dict[str, str]] = {
        "enabled": "enabled",
        "credentials": "credentials",
    }
    LIST_FIELDS: ClassVar[dict[str, str]] = {
        "headers": "allowed_headers",
        "hosts": "allowed_hosts",
        "methods": "allowed_methods",
        "exposed_headers": "exposed_headers",
    }

    enabled: bool = DEFAULTS["cors"]["enabled"]
    credentials: bool = DEFAULTS["cors"]["credentials"]
    headers: str = join_list(DEFAULTS["cors"]["allowed_headers"])
    hosts: str = join_list(DEFAULTS["cors"]["allowed_hosts"])
    methods: str = join_list(DEFAULTS["cors"]["allowed_methods"])
    exposed_headers: str = join_list(DEFAULTS["cors"]["exposed_headers"])

    @classmethod
    def from_config(cls, config: dict) -> "CorsSection":
        cors = _section(config, "cors")
        values = {
            attr: bool(cors.get(key, DEFAULTS["cors"][key]))
            for attr, key in cls.FIELDS.items()
        }
        for attr, key in cls.LIST_FIELDS.items():
            items = cors.get(key)
            values[attr] = join_list(items if items is not None else DEFAULTS["cors"][key])
        return cls(**values)

    def to_payload(self) -> dict[str, Any]:
        payload = {key: getattr(self, attr) for attr, key in self.FIELDS.items()}
        for attr, key in self.LIST_FIELDS.items():
            payload[key] = split_list(getattr(self, attr))
        return payload


@dataclass
class UserForm:
    """The add/edit user form. A fresh instance is the empty "add" form."""

    FIELDS: ClassVar[dict[str, str]] = {
        "username": "username",
        "password": "password",
        "directory": "directory",
    }

    username: str = ""
    password: str = ""
    directory: str = "."
    permissions: Permission = Permission.R

    @classmethod
    def from_user(cls, user: dict) -> "UserForm":
        """Fill the form for editing an existing user."""
        return cls(
            username=user.get("username", ""),
            password=user.get("password") or "",
            directory=user.get("directory") or "/",
            permissions=checked_permissions(user.get("permissions") or DEFAULT_PERMISSIONS),
        )

    def validate(self) -> list[str]:
        """Return the problems that block submission (empty when valid)."""
        errors = []
        if not self.username.strip():
            errors.append("Username is required")
        if not self.password:
            errors.append("Password is required")
        if not self.permissions:
            errors.append("Select at least one permission")
        return errors

    def to_payload(self) -> dict[str, Any]:
        payload = {key: getattr(self, attr) for attr, key in self.FIELDS.items()}
        # Password is submitted exactly as typed
        payload["username"] = self.username.strip()
        payload["directory"] = self.directory.strip()
        payload["permissions"] = self.permissions.to_string()
        return payload
