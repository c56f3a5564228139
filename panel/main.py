"""
DavPanel - FastAPI Application
================================
Creates and configures the FastAPI web application behind the panel.

Responsibilities:
    - Create the FastAPI app instance with CORS and metadata
    - Build the configuration store, logger and restart runner
    - Register API routes
    - Render request validation failures in the panel's error format

Settings not passed to create_app() are read from the environment, so the
factory can be handed to uvicorn directly:

    CONFIG_PATH      Path of the WebDAV config.yaml
    RESTART_COMMAND  Shell command that restarts WebDAV
    RESTART_TIMEOUT  Seconds before the restart command is killed
    LOG_DIR          Directory for per-day log files (optional)
"""

import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from panel.config import ConfigStore
from panel.log import PanelLogger
from panel.restart import DEFAULT_RESTART_COMMAND, DEFAULT_RESTART_TIMEOUT, RestartRunner
from panel.routes import create_router


PROJECT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_CONFIG_PATH = os.path.join(PROJECT_DIR, "config.yaml")


def create_app(
    config_path: str | None = None,
    restart_command: str | None = None,
    restart_timeout: float | None = None,
    log_dir: str | None = None,
) -> FastAPI:
    """
    Application factory: create and configure the FastAPI instance.

    Args:
        config_path:     WebDAV configuration file. Falls back to
                         $CONFIG_PATH, then <project>/config.yaml.
        restart_command: Restart shell command. Falls back to
                         $RESTART_COMMAND, then "systemctl restart webdav".
        restart_timeout: Restart timeout in seconds. Falls back to
                         $RESTART_TIMEOUT, then 30.
        log_dir:         Log file directory. Falls back to $LOG_DIR;
                         terminal only when unset.

    Returns:
        Configured FastAPI application ready to run with uvicorn.
    """
    # -- Resolve settings ------------------------------------------------------
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH") or DEFAULT_CONFIG_PATH
    if restart_command is None:
        restart_command = os.environ.get("RESTART_COMMAND") or DEFAULT_RESTART_COMMAND
    if restart_timeout is None:
        restart_timeout = float(os.environ.get("RESTART_TIMEOUT") or DEFAULT_RESTART_TIMEOUT)
    if log_dir is None:
        log_dir = os.environ.get("LOG_DIR") or None

    # -- Initialize components -------------------------------------------------
    logger = PanelLogger(log_dir)
    config_store = ConfigStore(config_path, logger)
    restart_runner = RestartRunner(restart_command, restart_timeout, logger)

    # -- Create FastAPI app ----------------------------------------------------
    app = FastAPI(
        title="DavPanel",
        description="Administration panel for a WebDAV server configuration",
        version="1.0.0",
        docs_url="/docs",
        redoc_url=None,
    )

    # -- CORS middleware -------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -- Validation errors in panel format -------------------------------------
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        logger.error(f"Invalid request to {request.url.path}: {location} {message}")
        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "error": f"{location}: {message}" if location else message,
            },
        )

    # -- Store components on app state -----------------------------------------
    app.state.config_store = config_store
    app.state.restart_runner = restart_runner
    app.state.logger = logger

    # -- Register API routes ---------------------------------------------------
    app.include_router(create_router(
        config_store=config_store,
        restart_runner=restart_runner,
        logger=logger,
    ))

    return app
