"""Exceptions raised by MTFS."""

import builtins


class MTFSError(Exception):
    """Base exception for MTFS errors."""

    pass


class InvalidConfigurationError(MTFSError, ValueError):
    """A configuration value (e.g. chunk size) is outside its allowed range."""

    pass


class PathNotFoundError(MTFSError, FileNotFoundError):
    """The build target does not exist."""

    pass


class NotADirectoryError(MTFSError, builtins.NotADirectoryError):
    """The build target exists but is not a directory."""

    pass


class EntryUnreadableError(MTFSError, OSError):
    """A single filesystem entry could not be turned into a node.

    Raised per entry during a build and downgraded to a warning by the
    enclosing directory.
    """

    pass


class StructuralViolationError(MTFSError, RuntimeError):
    """A child was attached to a file node, or a missing child was attached."""

    pass
