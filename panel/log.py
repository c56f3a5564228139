"""
DavPanel - Panel Logger
=========================
Tagged logger used by the configuration components.

Every line looks like ``[HH:MM:SS] [TAG] message`` and is printed to the
terminal. When a log directory is configured the same line is appended to a
per-day file (``YYYY-MM-DD.log``), so an operator can see which admin action
touched the WebDAV configuration and when.

Tags:
    [CONFIG]  - configuration file reads, writes, defaults
    [USERS]   - user added / updated / deleted
    [RESTART] - external restart command
    [ERROR]   - any failure reported to an API caller
"""

import os
from datetime import datetime


class PanelLogger:
    """
    Dual-output logger: terminal always, per-day log files optionally.

    Attributes:
        log_dir: Directory for log files, or None for terminal only.
    """

    def __init__(self, log_dir: str | None = None):
        self.log_dir = log_dir
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

    def _get_log_path(self) -> str:
        """Get today's log file path."""
        today = datetime.now().strftime("%Y-%m-%d")
        return os.path.join(self.log_dir, f"{today}.log")

    def _write(self, text: str) -> None:
        """Append a line to today's log file."""
        if not self.log_dir:
            return
        try:
            with open(self._get_log_path(), "a", encoding="utf-8") as f:
                f.write(text + "\n")
        except OSError as e:
            print(f"[WARN] Cannot write log file: {e}", flush=True)

    def log(self, tag: str, text: str) -> str:
        """
        Emit one tagged line.

        Args:
            tag:  Short category without brackets, e.g. "CONFIG".
            text: The message.

        Returns:
            The formatted line (handy for tests).
        """
        ts = datetime.now().strftime("%H:%M:%S")
        line = f"[{ts}] [{tag}] {text}"
        self._write(line)
        print(line, flush=True)
        return line

    def info(self, tag: str, text: str) -> str:
        return self.log(tag, text)

    def error(self, text: str) -> str:
        return self.log("ERROR", text)
