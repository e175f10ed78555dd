"""
Print proxy user accounts as JSON lines. Run from project root:
  python -m proxyusers.scripts.list_users [--approved | --pending]
"""
from dotenv import load_dotenv

load_dotenv()

import argparse
import sys

from proxyusers.core.database import SessionLocal
from proxyusers.schemas.account import AccountRead
from proxyusers.services.accounts import AccountStore


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="List proxy user accounts.")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--approved", action="store_true", help="Only approved accounts")
    group.add_argument("--pending", action="store_true", help="Only accounts awaiting approval")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        store = AccountStore(db)
        if args.approved:
            accounts = store.list_approved_users()
        elif args.pending:
            accounts = store.list_pending_users()
        else:
            accounts = store.list_all_users()
        for account in accounts:
            print(AccountRead.model_validate(account).model_dump_json())
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
