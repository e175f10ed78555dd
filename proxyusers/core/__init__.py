"""Core configuration, database, errors and password hashing."""

from proxyusers.core.config import get_settings, settings
from proxyusers.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
