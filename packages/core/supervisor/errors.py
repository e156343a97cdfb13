from __future__ import annotations


class LauncherError(Exception):
    """Base class for launcher failures."""


class SpawnError(LauncherError):
    """The external program could not be started at all."""


class QueryError(LauncherError):
    """The process table could not be read (or the read timed out)."""


class CatalogError(LauncherError):
    """A tile id is unknown or its command cannot be resolved."""
