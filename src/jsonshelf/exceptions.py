"""Exception hierarchy for jsonshelf.

All exceptions inherit from :class:`JsonShelfError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`jsonshelf.exit_codes`.

These exceptions describe *caller* mistakes and configuration problems.
Faults inside the cache itself (unreadable files, corrupt entries, a full
disk) are never raised out of
:class:`~jsonshelf.cache.store.FileCacheStore` operations; they are logged
and degrade to a miss or a no-op.

Subclass hierarchy::

    JsonShelfError (exit 1)
    +-- InvalidUsageError    (exit 2)
    |   +-- NamespaceError   (exit 2)
    +-- ConfigError          (exit 1)
    +-- KeyDerivationError   (exit 1)
"""

from jsonshelf.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)


class JsonShelfError(Exception):
    """Base exception for all jsonshelf errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`jsonshelf.exit_codes`. The CLI entry point
    catches this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(JsonShelfError):
    """Raised for invalid arguments such as a malformed JSON value on the CLI."""

    exit_code = EXIT_INVALID_USAGE


class NamespaceError(InvalidUsageError):
    """Raised when a namespace name cannot be mapped to a safe directory."""


class ConfigError(JsonShelfError):
    """Raised for configuration problems (invalid JSON, failed validation)."""

    exit_code = EXIT_GENERIC_FAILURE


class KeyDerivationError(JsonShelfError):
    """Raised when a call parameter cannot be reduced to a canonical string.

    Unlike cache faults this is propagated: a caller cannot safely use an
    undefined key.
    """

    exit_code = EXIT_GENERIC_FAILURE
