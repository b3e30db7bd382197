"""
tablero package
---------------

Branch reporting dashboard service: close-outs, outgoing stock and
kardex movements per branch, plus Wallet loyalty passes.  Importing
``tablero`` loads :mod:`tablero.main` and exposes the ``app`` instance
for ASGI servers.
"""

from .main import app  # noqa: F401
