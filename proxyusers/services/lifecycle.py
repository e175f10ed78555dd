"""Hash-on-save and authentication rules for proxy user accounts."""

import logging
import secrets
from typing import TYPE_CHECKING

from proxyusers.core.config import get_settings
from proxyusers.core.exceptions import InvalidInputError
from proxyusers.core.security import RandomBytes, generate_salt, hash_password, hashes_match
from proxyusers.models import Account
from proxyusers.schemas.account import AccountChanges, AccountCreate

if TYPE_CHECKING:
    from proxyusers.core.config import Settings

logger = logging.getLogger(__name__)


class AccountLifecycleGuard:
    """
    Runs before every persist of an account.

    A new salt is drawn and the password re-hashed only when the change set
    explicitly carries a password longer than REHASH_MIN_LENGTH. Any other
    save leaves salt and hash untouched and consumes no randomness.
    """

    def __init__(
        self,
        settings: "Settings | None" = None,
        random_bytes: RandomBytes = secrets.token_bytes,
    ) -> None:
        self._settings = settings or get_settings()
        self._random_bytes = random_bytes

    def before_save(
        self,
        previous: Account | None,
        changes: AccountCreate | AccountChanges,
    ) -> Account:
        """
        Apply a change set and return the account ready for persistence.

        previous is None for the first save, in which case changes must be an
        AccountCreate. The plaintext password is never stored on the account.
        """
        if previous is None:
            if not isinstance(changes, AccountCreate):
                raise TypeError("First save of an account requires AccountCreate")
            account = Account(
                username=changes.username,
                password_hash="",
                salt=None,
                **changes.model_dump(exclude={"username", "password"}),
            )
        else:
            if not isinstance(changes, AccountChanges):
                raise TypeError("Updating an account requires AccountChanges")
            account = previous
            for name in sorted(changes.model_fields_set - {"password"}):
                value = getattr(changes, name)
                setattr(account, name, list(value) if name == "roles" else value)

        if "password" in changes.model_fields_set:
            self._change_password(account, changes.password)
        return account

    def _change_password(self, account: Account, plaintext: str | None) -> None:
        min_length = self._settings.REHASH_MIN_LENGTH
        if not plaintext or len(plaintext) <= min_length:
            # Existing hash and salt are kept; the new value is dropped.
            logger.warning(
                "Password change for %s not applied: %s characters, more than %s required",
                account.username,
                len(plaintext or ""),
                min_length,
            )
            return
        account.salt = generate_salt(self._random_bytes, self._settings)
        account.password_hash = hash_password(plaintext, account.salt, self._settings)
        logger.info("Password changed for %s", account.username)

    def authenticate(self, account: Account, candidate: str) -> bool:
        """True only if candidate hashes to the stored hash. Never raises."""
        if not account.salt or not account.password_hash:
            return False
        try:
            candidate_hash = hash_password(candidate, account.salt, self._settings)
        except (InvalidInputError, UnicodeError, TypeError, AttributeError):
            return False
        return hashes_match(account.password_hash, candidate_hash)

    @staticmethod
    def effective_role(account: Account) -> str:
        return account.get_role()

    @staticmethod
    def is_admin(account: Account) -> bool:
        return account.is_admin()
