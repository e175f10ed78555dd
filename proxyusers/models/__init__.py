"""SQLAlchemy ORM models."""

from proxyusers.models.account import Account
from proxyusers.models.base import Base

__all__ = ["Account", "Base"]
