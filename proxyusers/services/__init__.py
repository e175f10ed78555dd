"""Account lifecycle and store services."""

from proxyusers.services.accounts import AccountStore
from proxyusers.services.lifecycle import AccountLifecycleGuard

__all__ = ["AccountLifecycleGuard", "AccountStore"]
