"""
Create a proxy user account. Run from project root:
  python -m proxyusers.scripts.create_user USERNAME PASSWORD EMAIL [role] [--approved]
Example:
  python -m proxyusers.scripts.create_user carl carlcarlcarl carl@here.com admin --approved
"""
from dotenv import load_dotenv

load_dotenv()

import argparse
import logging
import sys

from proxyusers.core.database import SessionLocal
from proxyusers.core.exceptions import UniquenessConflictError, ValidationError
from proxyusers.models.account import ROLE_USER, ROLES
from proxyusers.services.accounts import AccountStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a proxy user account.")
    parser.add_argument("username", help="Unique username")
    parser.add_argument("password", help="Password (more than 8 characters)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("role", nargs="?", default=ROLE_USER, choices=ROLES)
    parser.add_argument(
        "--approved",
        action="store_true",
        help="Mark the account as approved for use",
    )
    parser.add_argument("--device-type", default="", help="Device type of the user")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )

    db = SessionLocal()
    try:
        store = AccountStore(db)
        account = store.create(
            {
                "username": args.username,
                "password": args.password,
                "email": args.email,
                "roles": [args.role],
                "approved": args.approved,
                "device_type": args.device_type,
            }
        )
        print(f"Created user '{account.username}' with role '{account.get_role()}'.")
        return 0
    except ValidationError as e:
        for field, message in e.errors.items():
            print(f"{field}: {message}", file=sys.stderr)
        return 1
    except UniquenessConflictError:
        print(f"User '{args.username}' or email '{args.email}' already exists.", file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
