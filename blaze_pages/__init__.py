"""Build hashed, offline-capable static documentation sites.

This package exposes the CLI entry points used by ``blaze build`` and
``blaze budgets``.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from blaze_pages import main
>>> main()  # doctest: +SKIP
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
