from __future__ import annotations


class PatchedConicError(Exception):
    """Base class for every error raised by this package."""


class CaseError(PatchedConicError, ValueError):
    """Malformed body definitions or simulation parameters."""


class UnknownBodyError(PatchedConicError, KeyError):
    """A body was looked up by a name the system does not know."""


class OrbitError(PatchedConicError, ValueError):
    """An orbit cannot be built or an orbit-only operation was misused."""
