"""Exception hierarchy for twoslash-cli.

Filesystem errors are never wrapped; they propagate as the builtin
``OSError`` subclasses.
"""


class TwoslashCliError(Exception):
    """Base exception for all twoslash-cli errors."""


class SettingsError(TwoslashCliError):
    """Raised when an embedded ``<!-- twoslash: ... -->`` comment cannot be parsed."""


class TwoslashError(TwoslashCliError):
    """Raised when a twoslash sample fails to compile the way it claims to."""


class TypeCheckerError(TwoslashCliError):
    """Raised when the configured type checker cannot be run."""
