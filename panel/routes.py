"""
DavPanel - REST API Routes
============================
All HTTP API endpoints of the administration panel.

Route groups:
    /api/config             - Read the configuration / merge server settings
    /api/users              - List / add / edit / delete WebDAV users
    /api/generate-password  - Random password for the user form
    /api/restart            - Restart the external WebDAV service
    /api/health             - Liveness and config-file presence

Every endpoint reads the configuration file fresh, optionally changes it,
and optionally writes it back. File access runs in the thread pool so a slow
disk only delays its own request. Failures are never raised to the client as
server errors: they come back as ``{"success": false, "error": "..."}``.
"""

from typing import Any

from fastapi import APIRouter, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from panel.config import ConfigStore
from panel.errors import PanelError
from panel.log import PanelLogger
from panel.permissions import Permission
from panel.restart import RestartRunner
from panel.users import DEFAULT_PASSWORD_LENGTH, UserRegistry, generate_password


# =============================================================================
# Request Models (Pydantic)
# =============================================================================

class UserModel(BaseModel):
    """A WebDAV user as submitted by the panel. Unknown keys are kept."""
    model_config = ConfigDict(extra="allow")

    username: str = Field(..., min_length=1, description="Unique login name")
    password: str = Field(..., min_length=1, description="Plaintext password")
    permissions: str = Field(..., min_length=1, description="Subset of CRUD")
    directory: str | None = Field(None, description="Home directory, created if missing")

    @field_validator("permissions")
    @classmethod
    def check_permissions(cls, value: str) -> str:
        """Letters from C/R/U/D, each once. Stored exactly as given."""
        Permission.parse(value)
        return value

class UserSaveRequest(BaseModel):
    """Add a new user, or replace one when isEdit is true."""
    user: UserModel
    isEdit: bool = False

class ServerConfigRequest(BaseModel):
    """
    Partial configuration. Every top-level key given here replaces the
    stored key; keys not given are left unchanged.
    """
    serverConfig: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Router Factory
# =============================================================================

def create_router(
    config_store: ConfigStore,
    restart_runner: RestartRunner,
    logger: PanelLogger | None = None,
) -> APIRouter:
    """
    Create and configure the API router with all endpoints.

    Args:
        config_store:   Reads/writes the WebDAV configuration file.
        restart_runner: Runs the external restart command.
        logger:         Tagged logger for reported failures.

    Returns:
        Configured APIRouter with all endpoints registered.
    """
    router = APIRouter(prefix="/api")
    logger = logger or config_store.logger

    def fail(error: PanelError) -> JSONResponse:
        """Render a component failure as a structured error response."""
        logger.error(str(error))
        content = {"success": False, "error": str(error)}
        for stream in ("output", "stderr"):
            text = getattr(error, stream, None)
            if text is not None:
                content[stream] = text
        return JSONResponse(status_code=error.status_code, content=content)

    def merge_config(partial: dict) -> None:
        if "users" in partial:
            UserRegistry({"users": partial["users"]}, logger).check_unique()
        config_store.merge(partial)

    def save_user(user: dict, is_edit: bool) -> None:
        config = config_store.read()
        UserRegistry(config, logger).upsert(user, is_edit)
        config_store.write(config)

    def delete_user(username: str) -> None:
        config = config_store.read()
        UserRegistry(config, logger).remove(username)
        config_store.write(config)

    # =========================================================================
    # CONFIG ROUTES
    # =========================================================================

    @router.get("/config")
    async def get_config():
        """Get the full current configuration (defaults created if missing)."""
        try:
            config = await run_in_threadpool(config_store.read)
        except PanelError as e:
            return fail(e)
        return {"success": True, "config": config}

    @router.post("/config/server")
    async def update_server_config(req: ServerConfigRequest):
        """
        Merge partial settings into the configuration and save.
        Used for the server, log, and CORS panels alike. A replacement user
        list with a repeated username is rejected.
        """
        try:
            await run_in_threadpool(merge_config, req.serverConfig)
        except PanelError as e:
            return fail(e)
        return {"success": True, "message": "Server configuration updated"}

    # =========================================================================
    # USER ROUTES
    # =========================================================================

    @router.get("/users")
    async def list_users():
        """List all WebDAV users, passwords included."""
        try:
            config = await run_in_threadpool(config_store.read)
        except PanelError as e:
            return fail(e)
        return {"success": True, "users": UserRegistry(config, logger).list_users()}

    @router.post("/users")
    async def upsert_user(req: UserSaveRequest):
        """
        Add or edit a user. The user's directory is created first.
        Adding a name that already exists is rejected; editing a name that
        does not exist adds it.
        """
        try:
            user = req.user.model_dump()
            if user["directory"] is None:
                del user["directory"]
            await run_in_threadpool(save_user, user, req.isEdit)
        except PanelError as e:
            return fail(e)
        action = "updated" if req.isEdit else "added"
        return {"success": True, "message": f"User {action} successfully"}

    @router.delete("/users/{username:path}")
    async def remove_user(username: str):
        """Delete a user. Deleting an unknown user is not an error."""
        try:
            await run_in_threadpool(delete_user, username)
        except PanelError as e:
            return fail(e)
        return {"success": True, "message": "User deleted successfully"}

    @router.get("/generate-password")
    async def new_password(
        length: int = Query(DEFAULT_PASSWORD_LENGTH, ge=1, le=256, description="Password length"),
    ):
        """Generate a random alphanumeric password for the user form."""
        return {"success": True, "password": generate_password(length)}

    # =========================================================================
    # SERVICE ROUTES
    # =========================================================================

    @router.post("/restart")
    async def restart_webdav():
        """
        Restart the WebDAV service. The response is sent once the command
        has finished (or timed out); its output is returned verbatim.
        """
        try:
            result = await restart_runner.run()
        except PanelError as e:
            return fail(e)
        return {
            "success": True,
            "message": "WebDAV server restarted successfully",
            "output": result.output,
            "stderr": result.stderr,
        }

    @router.get("/health")
    async def health():
        """Report liveness and whether the config file is present."""
        return {
            "status": "ok",
            "config": {
                "exists": config_store.exists(),
                "path": config_store.config_path,
            },
        }

    return router
