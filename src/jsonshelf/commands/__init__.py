"""Built-in CLI sub-commands for jsonshelf.

* :mod:`~jsonshelf.commands.cache` -- ``namespaces``, ``stats``, ``get``,
  ``put``, ``invalidate``, ``clear`` and ``key``, registered directly on
  the root app.
* :mod:`~jsonshelf.commands.config` -- the ``config`` sub-application for
  viewing and editing global settings.
"""
