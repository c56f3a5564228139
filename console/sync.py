"""
DavPanel - Form Sync Controller
=================================
Keeps the console's editable sections in step with the configuration API.

The controller runs on one asyncio loop. Every API call is awaited, so it
suspends only the action that made it; other actions keep working. Each
panel (server, log, CORS, users) saves on its own, with its own
notification, and never waits for another panel.

There is no shared snapshot of the whole configuration. The server panel
sends its own fields; the log and CORS panels send only their own section.
A save therefore never replays stale values of another panel. Two admins
editing the same field still race: the last save wins.

Flow on load:
    1. Health probe (/api/health)
    2. Fetch configuration (/api/config) and fill every section
    3. Fetch users (/api/users)

Errors:
    NetworkError - the request never got a response
    ApiError     - the API answered with success=false or an HTTP error
Both are caught per action and turned into error notifications.

Usage:
    async with httpx.AsyncClient(base_url="http://localhost:3001") as client:
        console = FormSyncController(client)
        await console.load()
        console.cors.methods = "GET, PUT"
        await console.save_cors()
"""

from typing import Any
from urllib.parse import quote

import httpx

from console.forms import CorsSection, LogSection, ServerSection, UserForm
from console.notify import Notifier


API_BASE = "/api"


class NetworkError(Exception):
    """The request failed at the transport level."""


class ApiError(Exception):
    """The API reported a failure."""


class FormSyncController:
    """
    Console state and the actions that sync it with the API.

    Attributes:
        client:    HTTP client pointed at the panel server.
        notifier:  Where success/error messages go.
        server:    Server settings section.
        log:       Log settings section.
        cors:      CORS settings section.
        user_form: The add/edit user form.
        editing:   Username being edited, or None when adding.
        users:     Last fetched user list.
    """

    def __init__(self, client: httpx.AsyncClient, notifier: Notifier | None = None):
        self.client = client
        self.notifier = notifier or Notifier()
        self.server = ServerSection()
        self.log = LogSection()
        self.cors = CorsSection()
        self.user_form = UserForm()
        self.editing: str | None = None
        self.users: list[dict[str, Any]] = []
        self.healthy = False

    # =========================================================================
    # Transport
    # =========================================================================

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        """
        Send one API request and return its JSON body.

        Raises:
            NetworkError: On connection failures and timeouts.
            ApiError:     On success=false bodies and HTTP error statuses.
        """
        try:
            response = await self.client.request(method, f"{API_BASE}{path}", **kwargs)
        except httpx.TransportError as e:
            raise NetworkError(str(e) or type(e).__name__) from e

        try:
            result = response.json()
        except ValueError:
            result = None

        if isinstance(result, dict) and result.get("success") is False:
            raise ApiError(result.get("error") or f"HTTP error! status: {response.status_code}")
        if response.is_error or not isinstance(result, dict):
            raise ApiError(f"HTTP error! status: {response.status_code}")
        return result

    async def _call(self, failure: str, method: str, path: str, **kwargs) -> dict | None:
        """Run _request(); on failure show ``failure + reason`` and return None."""
        try:
            return await self._request(method, path, **kwargs)
        except (NetworkError, ApiError) as e:
            self.notifier.show(f"{failure}{e}", "error")
            return None

    # =========================================================================
    # Loading
    # =========================================================================

    async def health_check(self) -> bool:
        """Probe the backend. Reports connection problems to the user."""
        result = await self._call("Cannot connect to backend service: ", "GET", "/health")
        self.healthy = bool(result) and result.get("status") == "ok"
        return self.healthy

    async def load(self) -> bool:
        """Health probe, then configuration, then users."""
        if not await self.health_check():
            return False
        return await self.reload_config()

    async def reload_config(self) -> bool:
        """Fetch the configuration, refill every section, refresh users."""
        self.notifier.show("Loading configuration...", "info")
        result = await self._call("Failed to load configuration: ", "GET", "/config")
        if result is None:
            return False
        self.populate(result.get("config") or {})
        await self.refresh_users()
        self.notifier.show("Configuration loaded")
        return True

    def populate(self, config: dict) -> None:
        """Fill all sections from a configuration, defaults for missing keys."""
        self.server = ServerSection.from_config(config)
        self.log = LogSection.from_config(config)
        self.cors = CorsSection.from_config(config)

    async def refresh_users(self) -> bool:
        result = await self._call("Failed to load users: ", "GET", "/users")
        if result is None:
            return False
        self.users = result.get("users") or []
        return True

    # =========================================================================
    # Section saves
    # =========================================================================

    async def save_server(self, section: ServerSection | None = None) -> bool:
        """Save the server panel, then reload so every panel shows saved state."""
        section = section or self.server
        result = await self._call(
            "Failed to save server configuration: ", "POST", "/config/server",
            json={"serverConfig": section.to_payload()},
        )
        if result is None:
            return False
        self.notifier.show(result.get("message", "Server configuration saved"))
        await self.reload_config()
        return True

    async def save_log(self, section: LogSection | None = None) -> bool:
        section = section or self.log
        result = await self._call(
            "Failed to save log configuration: ", "POST", "/config/server",
            json={"serverConfig": {"log": section.to_payload()}},
        )
        if result is None:
            return False
        self.notifier.show("Log configuration saved")
        return True

    async def save_cors(self, section: CorsSection | None = None) -> bool:
        section = section or self.cors
        result = await self._call(
            "Failed to save CORS configuration: ", "POST", "/config/server",
            json={"serverConfig": {"cors": section.to_payload()}},
        )
        if result is None:
            return False
        self.notifier.show("CORS configuration saved")
        return True

    # =========================================================================
    # Users
    # =========================================================================

    def start_add_user(self) -> None:
        """Open an empty user form."""
        self.user_form = UserForm()
        self.editing = None

    def start_edit_user(self, user: dict) -> None:
        """Open the user form filled with an existing user."""
        self.user_form = UserForm.from_user(user)
        self.editing = user.get("username")

    def close_user_form(self) -> None:
        self.user_form = UserForm()
        self.editing = None

    async def save_user(self, form: UserForm | None = None, is_edit: bool | None = None) -> bool:
        """
        Submit the user form.

        Validation problems are shown without contacting the server. On
        success the form is closed and the user list refreshed.

        Args:
            form:    Form to submit (defaults to the open form).
            is_edit: Replace an existing user (defaults to whether the open
                     form was started with start_edit_user()).
        """
        form = form or self.user_form
        if is_edit is None:
            is_edit = self.editing is not None

        errors = form.validate()
        if errors:
            for message in errors:
                self.notifier.show(message, "error")
            return False

        result = await self._call(
            "Failed to save user: ", "POST", "/users",
            json={"user": form.to_payload(), "isEdit": is_edit},
        )
        if result is None:
            return False
        self.notifier.show(result.get("message", "User saved"))
        self.close_user_form()
        await self.refresh_users()
        return True

    async def delete_user(self, username: str) -> bool:
        result = await self._call(
            "Failed to delete user: ", "DELETE", f"/users/{quote(username, safe='')}",
        )
        if result is None:
            return False
        self.notifier.show(result.get("message", "User deleted"))
        await self.refresh_users()
        return True

    async def generate_password(self, form: UserForm | None = None) -> str | None:
        """Fill the user form's password with a server-generated one."""
        form = form or self.user_form
        result = await self._call("Failed to generate password: ", "GET", "/generate-password")
        if result is None:
            return None
        form.password = result["password"]
        self.notifier.show("Random password generated")
        return form.password

    # =========================================================================
    # Service
    # =========================================================================

    async def restart(self) -> bool:
        """Restart the WebDAV service; the reply waits for the command."""
        self.notifier.show("Restarting WebDAV server...", "info")
        result = await self._call("Failed to restart server: ", "POST", "/restart")
        if result is None:
            return False
        self.notifier.show(result.get("message", "WebDAV server restarted"))
        return True
