"""
DavPanel - Error Types
========================
Failures raised by the configuration components. The API layer catches
every PanelError and turns it into a ``{"success": false, "error": ...}``
response; nothing here is retried.
"""


class PanelError(Exception):
    """Base class for all panel component failures."""

    # HTTP status the API reports for this failure
    status_code = 500


class ReadError(PanelError):
    """The configuration file could not be read or parsed."""


class WriteError(PanelError):
    """The configuration file could not be written."""


class DuplicateUsername(PanelError):
    """A user with the same username already exists."""

    status_code = 400

    def __init__(self, username: str):
        super().__init__("Username already exists")
        self.username = username


class DirectoryCreationError(PanelError):
    """A user's home directory could not be created."""

    def __init__(self, path: str):
        super().__init__(f"Unable to create user directory: {path}")
        self.path = path


class ExternalCommandError(PanelError):
    """The external restart command failed or timed out."""

    def __init__(self, message: str, output: str = "", stderr: str = ""):
        super().__init__(message)
        self.output = output
        self.stderr = stderr
