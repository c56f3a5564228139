#!/usr/bin/env python3
"""
DavPanel - Entry Point
========================
One-command startup for the WebDAV administration panel.

Usage:
    python app.py                          # Default port and config path
    python app.py /etc/webdav/config.yaml  # Custom config file
    python app.py --port 9000              # Custom port

Settings are resolved as environment variable first, then command-line
argument, then built-in default:

    PORT         / --port       / 3001
    HOST         / --host       / 0.0.0.0
    CONFIG_PATH  / config_path  / <project>/config.yaml

This script:
    1. Loads environment variables from .env
    2. Resolves the port and configuration file path
    3. Checks the configuration file (creating defaults if missing)
    4. Starts the uvicorn server with the FastAPI app factory
"""

import os
import argparse
import uvicorn
from dotenv import load_dotenv


def resolve_settings(argv: list[str] | None = None) -> dict:
    """
    Resolve host, port and config path from environment, arguments, defaults.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).

    Returns:
        Dict with "host", "port" and "config_path".
    """
    from panel.main import DEFAULT_CONFIG_PATH

    parser = argparse.ArgumentParser(
        description="DavPanel - WebDAV Administration Panel",
    )
    parser.add_argument(
        "config_path", nargs="?", default=None,
        help="Path of the WebDAV config.yaml (overridden by $CONFIG_PATH)",
    )
    parser.add_argument(
        "--port", type=int, default=None,
        help="Port number for the panel (overridden by $PORT)",
    )
    parser.add_argument(
        "--host", type=str, default=None,
        help="Host binding address (overridden by $HOST)",
    )
    args = parser.parse_args(argv)

    return {
        "host": os.environ.get("HOST") or args.host or "0.0.0.0",
        "port": int(os.environ.get("PORT") or args.port or 3001),
        "config_path": os.environ.get("CONFIG_PATH") or args.config_path or DEFAULT_CONFIG_PATH,
    }


def main():
    """Load .env, resolve settings, check the config file, start the server."""

    # -- Load environment variables from .env ----------------------------------
    project_dir = os.path.dirname(os.path.abspath(__file__))
    env_path = os.path.join(project_dir, ".env")
    if os.path.exists(env_path):
        load_dotenv(env_path)

    settings = resolve_settings()
    config_path = settings["config_path"]

    # The app factory reads the path from the environment
    os.environ["CONFIG_PATH"] = config_path

    # -- Print startup banner --------------------------------------------------
    print()
    print("  DavPanel - WebDAV Administration Panel")
    print()
    print(f"  Console     : http://{settings['host']}:{settings['port']}")
    print(f"  Config path : {config_path}")
    print(f"  Working dir : {os.getcwd()}")
    print(f"  Config file exists: {os.path.exists(config_path)}")
    print()

    # -- Check configuration file ----------------------------------------------
    from panel.config import ConfigStore
    from panel.errors import ReadError

    try:
        ConfigStore(config_path).read()
        print("[INIT] Configuration file loaded successfully", flush=True)
    except ReadError as e:
        print(f"[INIT] Failed to load configuration file: {e}", flush=True)

    # -- Start the web server --------------------------------------------------
    uvicorn.run(
        "panel.main:create_app",
        factory=True,
        host=settings["host"],
        port=settings["port"],
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
