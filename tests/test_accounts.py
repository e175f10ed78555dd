"""Integration tests for proxyusers.services.accounts against an in-memory SQLite store."""

import secrets
import unittest
from datetime import datetime
from unittest.mock import MagicMock, patch

from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from proxyusers.core.exceptions import (
    AccountNotFoundError,
    UniquenessConflictError,
    ValidationError,
)
from proxyusers.models import Account, Base
from proxyusers.services.accounts import AccountStore
from proxyusers.services.lifecycle import AccountLifecycleGuard


def _session() -> Session:
    """Fresh in-memory database with the schema created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False)()


class StoreTestCase(unittest.TestCase):
    """Seeds an approved user (bob) and a pending admin (carl)."""

    def setUp(self) -> None:
        self.random_calls = 0

        def random_bytes(n: int) -> bytes:
            self.random_calls += 1
            return secrets.token_bytes(n)

        self.session = _session()
        self.store = AccountStore(self.session, AccountLifecycleGuard(random_bytes=random_bytes))
        self.store.create(
            {
                "username": "bob",
                "password": "bobbobbob",
                "email": "bob@here.com",
                "approved": True,
            }
        )
        self.store.create(
            {
                "username": "carl",
                "password": "carlcarlcarl",
                "email": "carl@here.com",
                "roles": ["admin"],
            }
        )

    def tearDown(self) -> None:
        self.session.close()


class TestReadUsers(StoreTestCase):
    def test_list_all_users(self) -> None:
        self.assertEqual(len(self.store.list_all_users()), 2)

    def test_list_approved_users(self) -> None:
        approved = self.store.list_approved_users()
        self.assertEqual([u.username for u in approved], ["bob"])

    def test_list_pending_users(self) -> None:
        pending = self.store.list_pending_users()
        self.assertEqual([u.username for u in pending], ["carl"])

    def test_find_user(self) -> None:
        self.assertEqual(self.store.find_user("bob").email, "bob@here.com")

    def test_find_unknown_user(self) -> None:
        self.assertIsNone(self.store.find_user("nobody"))


class TestCreateUsers(StoreTestCase):
    def test_missing_email(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self.store.create({"username": "dave", "password": "davedavedave"})
        self.assertEqual(ctx.exception.errors["email"], "Please enter your email address")
        self.assertIsNone(self.store.find_user("dave"))

    def test_short_password(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self.store.create({"username": "tim", "password": "aa", "email": "tim@here.com"})
        self.assertEqual(
            ctx.exception.errors["password"], "Password should be at least 8 characters"
        )

    def test_duplicate_username(self) -> None:
        with self.assertRaises(UniquenessConflictError):
            self.store.create(
                {"username": "bob", "password": "kdkdkdkdkdk", "email": "bbb@here.com"}
            )
        self.assertEqual(len(self.store.list_all_users()), 2)

    def test_duplicate_email(self) -> None:
        with self.assertRaises(UniquenessConflictError):
            self.store.create(
                {"username": "robert", "password": "kdkdkdkdkdk", "email": "bob@here.com"}
            )
        self.assertIsNone(self.store.find_user("robert"))

    def test_created_timestamp(self) -> None:
        self.assertIsInstance(self.store.find_user("bob").created_at, datetime)

    def test_plaintext_never_persisted(self) -> None:
        row = self.session.execute(
            text("SELECT password, salt FROM proxy_users WHERE username = 'bob'")
        ).one()
        self.assertNotEqual(row.password, "bobbobbob")
        self.assertTrue(row.salt)


class TestUpdateUsers(StoreTestCase):
    def test_update_device_type_keeps_credentials(self) -> None:
        self.store.create(
            {"username": "jim", "password": "usususususu", "email": "jim@here.com"}
        )
        before = self.store.find_user("jim")
        salt, password_hash, created = before.salt, before.password_hash, before.created_at
        calls = self.random_calls

        updated = self.store.update("jim", {"device_type": "nexus7"})
        self.assertEqual(updated.device_type, "nexus7")
        self.assertEqual(updated.salt, salt)
        self.assertEqual(updated.password_hash, password_hash)
        self.assertEqual(updated.created_at, created)
        self.assertEqual(self.random_calls, calls)

    def test_password_change(self) -> None:
        old_salt = self.store.find_user("bob").salt
        self.store.update("bob", {"password": "newpassword"})
        self.assertNotEqual(self.store.find_user("bob").salt, old_salt)
        self.assertTrue(self.store.authenticate("bob", "newpassword"))
        self.assertFalse(self.store.authenticate("bob", "bobbobbob"))

    def test_short_password_change_ignored(self) -> None:
        self.store.update("bob", {"password": "abc"})
        self.assertTrue(self.store.authenticate("bob", "bobbobbob"))

    def test_username_is_immutable(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self.store.update("bob", {"username": "robert"})
        self.assertIn("username", ctx.exception.errors)

    def test_invalid_email_on_update(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self.store.update("bob", {"email": "bob"})
        self.assertEqual(ctx.exception.errors["email"], "Please enter a valid email address")

    def test_email_conflict_on_update(self) -> None:
        with self.assertRaises(UniquenessConflictError):
            self.store.update("bob", {"email": "carl@here.com"})
        self.assertEqual(self.store.find_user("bob").email, "bob@here.com")

    def test_update_unknown_user(self) -> None:
        with self.assertRaises(AccountNotFoundError):
            self.store.update("nobody", {"approved": True})

    def test_approve(self) -> None:
        self.store.approve("carl")
        self.assertEqual(len(self.store.list_approved_users()), 2)
        self.assertEqual(self.store.list_pending_users(), [])

    def test_vm_assignment(self) -> None:
        self.store.update(
            "bob",
            {"vm_id": "vm-1", "vm_ip": "10.0.0.5", "vm_ip_id": "fip-1", "volume_id": "vol-1"},
        )
        bob = self.store.find_user("bob")
        self.assertEqual(
            (bob.vm_id, bob.vm_ip, bob.vm_ip_id, bob.volume_id),
            ("vm-1", "10.0.0.5", "fip-1", "vol-1"),
        )


class TestAuthentication(StoreTestCase):
    def test_valid_user(self) -> None:
        self.assertTrue(self.store.authenticate("bob", "bobbobbob"))

    def test_bad_password(self) -> None:
        self.assertFalse(self.store.authenticate("bob", "aaaaaaa"))

    def test_unknown_user_same_as_bad_password(self) -> None:
        self.assertFalse(self.store.authenticate("nobody", "bobbobbob"))


class TestUserRoles(StoreTestCase):
    def test_default_role(self) -> None:
        bob = self.store.find_user("bob")
        self.assertEqual(bob.get_role(), "user")
        self.assertFalse(bob.is_admin())

    def test_admin(self) -> None:
        carl = self.store.find_user("carl")
        self.assertTrue(carl.is_admin())
        self.assertEqual(carl.get_role(), "admin")

    def test_demote_admin(self) -> None:
        self.store.update("carl", {"roles": ["user", "admin"]})
        self.assertFalse(self.store.find_user("carl").is_admin())


class TestRemoveUsers(StoreTestCase):
    def test_remove(self) -> None:
        self.store.remove("bob")
        self.assertIsNone(self.store.find_user("bob"))
        self.assertEqual(len(self.store.list_all_users()), 1)

    def test_remove_unknown(self) -> None:
        with self.assertRaises(AccountNotFoundError):
            self.store.remove("nobody")

    def test_remove_all(self) -> None:
        self.assertEqual(self.store.remove_all(), 2)
        self.assertEqual(self.store.list_all_users(), [])


class TestRollbackOnFailure(unittest.TestCase):
    """A failed commit is rolled back and the original error re-raised."""

    def _failing_session(self) -> MagicMock:
        session = MagicMock()
        session.commit.side_effect = OperationalError("COMMIT", None, Exception("disk I/O error"))
        return session

    def test_remove_all(self) -> None:
        session = self._failing_session()
        session.query.return_value.delete.return_value = 2
        with self.assertRaises(OperationalError):
            AccountStore(session).remove_all()
        session.rollback.assert_called_once()

    def test_remove(self) -> None:
        session = self._failing_session()
        session.query.return_value.filter.return_value.first.return_value = Account(username="bob")
        with self.assertRaises(OperationalError):
            AccountStore(session).remove("bob")
        session.rollback.assert_called_once()

    def test_update(self) -> None:
        session = self._failing_session()
        session.query.return_value.filter.return_value.first.return_value = Account(username="bob")
        with self.assertRaises(OperationalError):
            AccountStore(session).update("bob", {"device_type": "nexus7"})
        session.rollback.assert_called_once()
        session.refresh.assert_not_called()


class TestSessionUsableAfterFailure(StoreTestCase):
    def test_failed_update_is_rolled_back(self) -> None:
        with patch.object(
            self.session,
            "commit",
            side_effect=OperationalError("COMMIT", None, Exception("database is locked")),
        ):
            with self.assertRaises(OperationalError):
                self.store.update("bob", {"device_type": "nexus7"})
        self.assertEqual(self.store.find_user("bob").device_type, "")
        self.store.update("bob", {"device_type": "nexus10"})
        self.assertEqual(self.store.find_user("bob").device_type, "nexus10")


if __name__ == "__main__":
    unittest.main()
