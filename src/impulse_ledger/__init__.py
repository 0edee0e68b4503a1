"""Impulse Ledger server.

A small multi-tenant shared ledger: rooms track members who log signed
impulse-control entries, from which a weekly balance, deposit rate, streak
and room leaderboard are derived.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
``api/server.py`` and ``api/routes/health.py`` import ``__version__`` from here.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ---------------------------------------------------------------------------
# Package version, read from pyproject.toml via importlib.metadata.
#
# When the package is imported without being installed we fall back to the
# declared version so the application can still start.
# ---------------------------------------------------------------------------
try:
    __version__: str = version("impulse-ledger")
except PackageNotFoundError:
    __version__ = "0.1.0"
