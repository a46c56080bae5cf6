"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to an error category. The exception classes in
:mod:`jsonshelf.exceptions` and the CLI commands exit with these values.
Shell wrappers can inspect the exit code of the ``jsonshelf`` admin
command without parsing stderr.

Example::

    $ jsonshelf get recipes/search 0f3a...
    $ echo $?
    4   # EXIT_NOT_FOUND -- no live entry for that key
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments (bad namespace, bad JSON value)."""

EXIT_NOT_FOUND = 4
"""The requested cache entry does not exist or has expired."""
