"""Tests for the app.scripts.manage_account operator CLI."""

import unittest
from unittest.mock import MagicMock, patch

from app.scripts import manage_account
from app.services.account_store import AccountStore
from tests.fakes import make_cache, make_db_session


class TestManageAccount(unittest.TestCase):
    """create and set-status go through AccountManager and report via exit code."""

    def setUp(self) -> None:
        self.db = make_db_session()
        self.cache, self.redis = make_cache()
        patches = [
            patch.object(manage_account, "SessionLocal", MagicMock(return_value=self.db)),
            patch.object(manage_account, "get_cache", MagicMock(return_value=self.cache)),
        ]
        for p in patches:
            p.start()
            self.addCleanup(p.stop)

    def tearDown(self) -> None:
        self.db.close()

    def test_create_then_duplicate(self) -> None:
        self.assertEqual(manage_account.main(["create", "alice", "pw1234"]), 0)
        self.assertEqual(manage_account.main(["create", "alice", "pw1234"]), 1)
        self.assertEqual(AccountStore(self.db).find_max_id(), 1)

    def test_set_status(self) -> None:
        manage_account.main(["create", "alice", "pw1234"])
        self.redis.values["profile:1"] = "{}"
        self.assertEqual(manage_account.main(["set-status", "1", "banned"]), 0)
        self.assertEqual(AccountStore(self.db).find_by_id(1).status, "banned")
        self.assertIn('"status":"banned"', self.redis.values["profile:1"])

    def test_set_status_unknown_account(self) -> None:
        self.assertEqual(manage_account.main(["set-status", "99", "banned"]), 1)

    def test_rejects_unknown_status(self) -> None:
        with self.assertRaises(SystemExit):
            manage_account.main(["set-status", "1", "suspended"])


if __name__ == "__main__":
    unittest.main()
