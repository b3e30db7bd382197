"""
Route aggregation package for the branch reporting service.

Each module defines an ``APIRouter`` instance that groups related
endpoints together; ``main.py`` registers them on the application.
"""

__all__ = [
    "reports",
    "passes",
]

from . import reports, passes  # noqa: E402,F401
