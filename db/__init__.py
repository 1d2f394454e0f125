"""db package exports for the project's database layer.

This file makes the `db` directory a package and re-exports commonly used
symbols to simplify imports in scripts (e.g. `from db import Base`).
"""
from .models import Base  # noqa: F401
from .session import get_session, make_engine, reconfigure  # noqa: F401

__all__ = ["Base", "get_session", "make_engine", "reconfigure"]
