"""Unit tests for app.services.accounts and app.services.account_store: registration and moderation."""

import json
import unittest
from unittest.mock import MagicMock

from sqlalchemy.exc import IntegrityError

from app.core.cache import profile_key
from app.core.config import get_settings
from app.core.errors import ConflictError, StoreUnavailableError, ValidationError
from app.core.security import verify_password
from app.models import Account
from app.services.account_store import AccountStore
from app.services.accounts import AccountManager, validate_registration
from tests.fakes import fast_hash, make_cache, make_db_session


class TestValidateRegistration(unittest.TestCase):
    """Rules are checked in order and the first failure wins."""

    def assertRejected(self, message: str, *fields: object) -> None:
        with self.assertRaises(ValidationError) as ctx:
            validate_registration(*fields)
        self.assertEqual(ctx.exception.message, message)
        self.assertEqual(ctx.exception.rejection_kind, "invalid_input")

    def test_missing_username(self) -> None:
        self.assertRejected("Username must not be empty.", None, "pw", "pw")

    def test_blank_username(self) -> None:
        self.assertRejected("Username must not be empty.", "   ", "pw", "pw")

    def test_username_too_long(self) -> None:
        self.assertRejected("Username must be at most 50 characters.", "a" * 51, "pw", "pw")

    def test_username_length_counted_after_trim(self) -> None:
        self.assertEqual(validate_registration("  " + "a" * 50 + "  ", "pw", "pw"), "a" * 50)

    def test_missing_password(self) -> None:
        self.assertRejected("Password must not be empty.", "alice", None, "pw")

    def test_empty_confirmation(self) -> None:
        self.assertRejected("Password must not be empty.", "alice", "pw", "")

    def test_password_too_long(self) -> None:
        self.assertRejected("Password must be at most 50 characters.", "alice", "p" * 51, "p" * 51)

    def test_mismatch(self) -> None:
        self.assertRejected("Passwords do not match.", "alice", "pw1234", "pw4321")

    def test_username_checked_before_password(self) -> None:
        self.assertRejected("Username must not be empty.", "", None, None)

    def test_returns_trimmed_username(self) -> None:
        self.assertEqual(validate_registration("  alice ", "pw1234", "pw1234"), "alice")


class TestRegisterWithMockStore(unittest.TestCase):
    """Store interaction for rejected registrations."""

    def setUp(self) -> None:
        self.store = MagicMock()
        cache, _ = make_cache()
        self.manager = AccountManager(self.store, cache, get_settings(), hasher=fast_hash)

    def test_invalid_input_does_not_query_store(self) -> None:
        result = self.manager.register("alice", "pw1234", "pw9999")
        self.assertFalse(result.success)
        self.assertEqual(result.rejection_kind, "invalid_input")
        self.store.find_by_username.assert_not_called()
        self.store.insert.assert_not_called()

    def test_existing_username_is_conflict_without_insert(self) -> None:
        self.store.find_by_username.return_value = MagicMock(spec=Account)
        result = self.manager.register(" alice ", "pw1234", "pw1234")
        self.assertFalse(result.success)
        self.assertEqual(result.rejection_kind, "conflict")
        self.assertEqual(result.message, "Username already exists.")
        self.store.find_by_username.assert_called_once_with("alice")
        self.store.insert.assert_not_called()

    def test_insert_conflict_from_store_is_conflict(self) -> None:
        self.store.find_by_username.return_value = None
        self.store.insert.side_effect = ConflictError("Username already exists.")
        result = self.manager.register("alice", "pw1234", "pw1234")
        self.assertEqual(result.rejection_kind, "conflict")


class TestRegisterWithDatabase(unittest.TestCase):
    """Registration against a real (SQLite) accounts table."""

    def setUp(self) -> None:
        self.db = make_db_session()
        self.store = AccountStore(self.db)
        self.cache, self.redis = make_cache()
        self.settings = get_settings()
        self.manager = AccountManager(self.store, self.cache, self.settings, hasher=fast_hash)

    def tearDown(self) -> None:
        self.db.close()

    def test_first_account_gets_id_one_and_defaults(self) -> None:
        self.assertIsNone(self.store.find_max_id())
        result = self.manager.register("alice", "pw1234", "pw1234")
        self.assertTrue(result.success)
        self.assertIsNone(result.rejection_kind)

        account = self.store.find_by_username("alice")
        self.assertEqual(account.id, 1)
        self.assertEqual(account.display_name, f"{self.settings.DISPLAY_NAME_PREFIX}1")
        self.assertEqual(account.display_name, "用户_1")
        self.assertEqual(account.avatar_url, self.settings.DEFAULT_AVATAR_URL)
        self.assertEqual(account.bio, self.settings.DEFAULT_BIO)
        self.assertEqual(account.exp, 0)
        self.assertEqual(account.status, "active")
        self.assertEqual(account.role, "user")
        self.assertIsNotNone(account.created_at)
        self.assertIsNone(account.deleted_at)
        self.assertTrue(verify_password("pw1234", account.password_hash))

    def test_next_id_is_previous_max_plus_one(self) -> None:
        self.manager.register("alice", "pw1234", "pw1234")
        previous_max = self.store.find_max_id()
        self.manager.register("bob", "pw1234", "pw1234")
        self.assertEqual(self.store.find_by_username("bob").id, previous_max + 1)
        self.assertEqual(self.store.find_by_username("bob").display_name, "用户_2")

    def test_duplicate_username_rejected(self) -> None:
        self.manager.register("alice", "pw1234", "pw1234")
        result = self.manager.register("alice", "other1", "other1")
        self.assertFalse(result.success)
        self.assertEqual(result.rejection_kind, "conflict")
        self.assertEqual(self.store.find_max_id(), 1)

    def test_unique_index_reports_conflict(self) -> None:
        self.manager.register("alice", "pw1234", "pw1234")
        with self.assertRaises(ConflictError):
            self.store.insert(Account(username="alice", password_hash="x"))
        # Session is usable again after the rollback.
        self.assertEqual(self.store.find_max_id(), 1)

    def test_id_after_rolled_back_insert_is_above_previous_max(self) -> None:
        self.manager.register("alice", "pw1234", "pw1234")
        with self.assertRaises(ConflictError):
            self.store.insert(Account(username="alice", password_hash="x"))
        self.manager.register("bob", "pw1234", "pw1234")
        self.assertGreater(self.store.find_by_username("bob").id, 1)
        self.assertEqual(self.store.find_max_id(), self.store.find_by_username("bob").id)

    def test_other_constraint_violation_is_store_failure(self) -> None:
        with self.assertRaises(StoreUnavailableError) as ctx:
            self.store.insert(Account(username="bob", password_hash="x", exp=-1))
        self.assertNotIsInstance(ctx.exception, ConflictError)
        self.assertEqual(ctx.exception.operation, "insert")
        self.assertIsNone(self.store.find_by_username("bob"))

    def test_constraint_name_decides_conflict(self) -> None:
        def integrity_error(constraint: str) -> IntegrityError:
            orig = MagicMock()
            orig.diag.constraint_name = constraint
            return IntegrityError("INSERT INTO accounts ...", {}, orig)

        session = MagicMock()
        store = AccountStore(session)
        session.flush.side_effect = integrity_error("ix_accounts_username")
        with self.assertRaises(ConflictError):
            store.insert(Account(username="alice", password_hash="x"))
        session.flush.side_effect = integrity_error("ck_accounts_exp_non_negative")
        with self.assertRaises(StoreUnavailableError):
            store.insert(Account(username="alice", password_hash="x"))
        self.assertEqual(session.rollback.call_count, 2)

    def test_registration_writes_nothing_to_cache(self) -> None:
        self.manager.register("alice", "pw1234", "pw1234")
        self.assertEqual(self.redis.values, {})


class TestSetStatus(unittest.TestCase):
    """Moderation updates the store and overwrites the profile cache entry."""

    def setUp(self) -> None:
        self.db = make_db_session()
        self.store = AccountStore(self.db)
        self.cache, self.redis = make_cache()
        self.manager = AccountManager(self.store, self.cache, get_settings(), hasher=fast_hash)
        self.manager.register("alice", "pw1234", "pw1234")

    def tearDown(self) -> None:
        self.db.close()

    def test_ban_overwrites_profile_cache(self) -> None:
        self.redis.values[profile_key(1)] = "{}"
        record = self.manager.set_status(1, "banned")
        self.assertEqual(record.status, "banned")
        self.assertEqual(self.store.find_by_id(1).status, "banned")
        cached = json.loads(self.redis.values[profile_key(1)])
        self.assertEqual(cached["status"], "banned")
        self.assertEqual(self.redis.ttls[profile_key(1)], get_settings().PROFILE_CACHE_TTL_SEC)

    def test_unban_overwrites_profile_cache(self) -> None:
        self.manager.set_status(1, "banned")
        self.manager.set_status(1, "active")
        self.assertEqual(json.loads(self.redis.values[profile_key(1)])["status"], "active")

    def test_ban_survives_cache_outage(self) -> None:
        self.redis.fail_on.add("set")
        record = self.manager.set_status(1, "banned")
        self.assertEqual(record.status, "banned")

    def test_unknown_account(self) -> None:
        self.assertIsNone(self.manager.set_status(99, "banned"))

    def test_unknown_status(self) -> None:
        with self.assertRaises(ValidationError):
            self.manager.set_status(1, "suspended")


if __name__ == "__main__":
    unittest.main()
