"""Account store: queries and persistence for proxy users over a SQLAlchemy session."""

import logging
from collections.abc import Generator, Mapping
from contextlib import contextmanager
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from proxyusers.core.exceptions import (
    AccountNotFoundError,
    UniquenessConflictError,
    ValidationError,
)
from proxyusers.models import Account
from proxyusers.schemas.account import AccountChanges, AccountCreate
from proxyusers.services.lifecycle import AccountLifecycleGuard

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)


def _validate(model: type[PayloadT], payload: PayloadT | Mapping[str, Any]) -> PayloadT:
    """Validate a raw payload, translating pydantic errors to field messages."""
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        errors: dict[str, str] = {}
        for err in e.errors():
            field = ".".join(str(part) for part in err["loc"]) or "__root__"
            errors.setdefault(field, err["msg"])
        raise ValidationError(errors) from e


class AccountStore:
    """
    Lists, finds, creates, updates and removes accounts.

    Every create/update passes through the lifecycle guard before the session
    is committed. Duplicate username or email surfaces as
    UniquenessConflictError.
    """

    def __init__(self, session: Session, guard: AccountLifecycleGuard | None = None) -> None:
        self._session = session
        self._guard = guard or AccountLifecycleGuard()

    def list_all_users(self) -> list[Account]:
        return self._session.query(Account).order_by(Account.id).all()

    def list_approved_users(self) -> list[Account]:
        return (
            self._session.query(Account)
            .filter(Account.approved.is_(True))
            .order_by(Account.id)
            .all()
        )

    def list_pending_users(self) -> list[Account]:
        return (
            self._session.query(Account)
            .filter(Account.approved.is_(False))
            .order_by(Account.id)
            .all()
        )

    def find_user(self, username: str) -> Account | None:
        return self._session.query(Account).filter(Account.username == username).first()

    def create(self, payload: AccountCreate | Mapping[str, Any]) -> Account:
        """Validate and persist a new account. Raises ValidationError or UniquenessConflictError."""
        changes = _validate(AccountCreate, payload)
        account = self._guard.before_save(None, changes)
        with self._transaction(account.username):
            self._session.add(account)
        self._session.refresh(account)
        logger.info("Created account %s (roles=%s)", account.username, account.roles)
        return account

    def update(self, username: str, changes: AccountChanges | Mapping[str, Any]) -> Account:
        """Apply a change set to an existing account and persist it."""
        account = self._get(username)
        validated = _validate(AccountChanges, changes)
        with self._transaction(username):
            self._guard.before_save(account, validated)
        self._session.refresh(account)
        logger.info(
            "Updated account %s (fields=%s)",
            username,
            ",".join(sorted(validated.model_fields_set)),
        )
        return account

    def approve(self, username: str) -> Account:
        return self.update(username, {"approved": True})

    def remove(self, username: str) -> None:
        account = self._get(username)
        with self._transaction(username):
            self._session.delete(account)
        logger.info("Removed account %s", username)

    def remove_all(self) -> int:
        """Delete every account; returns the number removed."""
        with self._transaction():
            deleted = self._session.query(Account).delete(synchronize_session=False)
        if deleted > 0:
            logger.info("Removed all accounts: count=%s", deleted)
        return deleted

    def authenticate(self, username: str, password: str) -> bool:
        """
        Check a username/password pair.

        Unknown user and wrong password both return False.
        """
        account = self.find_user(username)
        if account is None:
            return False
        return self._guard.authenticate(account, password)

    def _get(self, username: str) -> Account:
        account = self.find_user(username)
        if account is None:
            raise AccountNotFoundError(f"No account named '{username}'")
        return account

    @contextmanager
    def _transaction(self, username: str | None = None) -> Generator[Session, None, None]:
        """Commit on success; roll back on any error and re-raise it."""
        try:
            yield self._session
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            logger.warning("Username or email already in use: %s", username)
            raise UniquenessConflictError(
                f"Username or email already in use for account '{username}'"
            ) from e
        except Exception as e:
            logger.warning("Commit failed, rolling back: %s", str(e))
            self._session.rollback()
            raise
