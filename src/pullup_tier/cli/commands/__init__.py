"""CLI command modules; importing this package registers them on the app."""

from . import ranking, scoring, users

__all__ = ["ranking", "scoring", "users"]
