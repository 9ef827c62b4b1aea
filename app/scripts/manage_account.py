"""
Operator commands for member accounts. Run from project root:
  python -m app.scripts.manage_account create USERNAME PASSWORD
  python -m app.scripts.manage_account set-status ACCOUNT_ID {active,banned}
Example:
  python -m app.scripts.manage_account set-status 42 banned
"""
import argparse
import logging
import sys

from app.core.cache import get_cache
from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.errors import DependencyError
from app.services.account_store import AccountStore
from app.services.accounts import VALID_STATUSES, AccountManager

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage member accounts.")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="Register an account (same rules as the API)")
    create.add_argument("username", help="Username (1-50 chars after trimming)")
    create.add_argument("password", help="Password (1-50 chars)")

    set_status = sub.add_parser("set-status", help="Ban or unban an account")
    set_status.add_argument("account_id", type=int)
    set_status.add_argument("status", choices=list(VALID_STATUSES))
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    db = SessionLocal()
    try:
        manager = AccountManager(AccountStore(db), get_cache(), get_settings())
        if args.command == "create":
            result = manager.register(args.username, args.password, args.password)
            if not result.success:
                print(result.message, file=sys.stderr)
                return 1
            print(f"Created account '{args.username.strip()}'.")
            return 0

        record = manager.set_status(args.account_id, args.status)
        if record is None:
            print(f"Account {args.account_id} does not exist.", file=sys.stderr)
            return 1
        print(f"Account {record.id} is now {record.status}.")
        return 0
    except DependencyError as e:
        logger.exception("Account command failed: %s", e.message)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
