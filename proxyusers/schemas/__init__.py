"""Pydantic request/response schemas."""

from proxyusers.schemas.account import (
    AccountChanges,
    AccountCreate,
    AccountRead,
    RoleTag,
)

__all__ = [
    "AccountChanges",
    "AccountCreate",
    "AccountRead",
    "RoleTag",
]
