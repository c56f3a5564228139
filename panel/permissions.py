"""
DavPanel - Permission Flags
=============================
WebDAV permissions are stored as a compact letter string such as "CRUD" or
"R". Inside the panel they are handled as a set of four capability flags and
only turned back into a string at the storage and wire boundary.

    C - Create
    R - Read
    U - Update
    D - Delete

Usage:
    perms = Permission.parse("RD")      # Permission.R | Permission.D
    Permission.R in perms               # True
    perms.to_string()                   # "RD"
"""

import enum


class Permission(enum.Flag):
    """Capability flags encoded by a WebDAV permissions string."""

    NONE = 0
    C = enum.auto()
    R = enum.auto()
    U = enum.auto()
    D = enum.auto()

    @classmethod
    def parse(cls, value: str | None) -> "Permission":
        """
        Parse a permissions string into flags.

        Letters may appear in any order but each at most once.

        Args:
            value: Permissions string (e.g. "CRUD"). None or "" gives NONE.

        Returns:
            The combined flag value.

        Raises:
            ValueError: On an unknown or repeated letter.
        """
        result = cls.NONE
        for letter in value or "":
            try:
                flag = cls[letter]
            except KeyError:
                raise ValueError(f"Unknown permission letter: {letter!r}") from None
            if flag in result:
                raise ValueError(f"Permission letter repeated: {letter!r}")
            result |= flag
        return result

    @classmethod
    def from_letters(cls, **letters: bool) -> "Permission":
        """Build flags from checkbox-style keyword arguments, e.g. R=True."""
        result = cls.NONE
        for letter, checked in letters.items():
            if checked:
                result |= cls[letter]
        return result

    def to_string(self) -> str:
        """Format as a letter string, always in C, R, U, D order."""
        return "".join(letter for letter in LETTERS if Permission[letter] in self)


# Canonical letter order used for formatting and form checkboxes
LETTERS = ("C", "R", "U", "D")

# Server-wide permission used when the stored value is empty
DEFAULT_PERMISSIONS = "R"

