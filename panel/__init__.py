"""
DavPanel - Server Package
=========================
The web administration panel for a separately running WebDAV server.

This package provides:
- FastAPI application exposing the configuration REST API
- Read/write access to the WebDAV server's YAML configuration file
- User credential management inside that same file
- A restart trigger for the external WebDAV service

Architecture:
    main.py        -> FastAPI app creation, middleware, error rendering
    config.py      -> Read/write the YAML configuration file (ConfigStore)
    users.py       -> User list view over the configuration (UserRegistry)
    routes.py      -> All REST API endpoint handlers
    restart.py     -> External restart command runner
    permissions.py -> C/R/U/D capability flags
    errors.py      -> Error taxonomy shared by all components
    log.py         -> Tagged console/file logger
"""
