#!/usr/bin/env python3
"""
Jobly -- job board REST API.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8000 --reload
  python main.py init-db
  python main.py create-admin alice --email alice@example.com
  python main.py create-admin alice --email alice@example.com --password s3cret

Environment variables (or .env):
  SECRET_KEY     JWT signing key, at least 32 characters. Required unless DEBUG=true.
  DATABASE_URL   SQLAlchemy URL. Defaults to a SQLite file jobly.db next to this script.
  DEBUG          true to auto-generate SECRET_KEY for local development.
"""

import argparse
import getpass
import sys
from typing import Optional

from board.models import User
from board.store import BoardStore
from core.config import get_settings
from core.errors import JoblyError


def _read_password(given: Optional[str]) -> Optional[str]:
    """Return the password from the command line, or prompt for it twice."""
    if given:
        return given
    first = getpass.getpass("  Password: ")
    second = getpass.getpass("  Repeat password: ")
    if first != second:
        print("  [!] Passwords do not match.")
        return None
    return first


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def cmd_init_db(args: argparse.Namespace) -> int:
    """Create every table that does not exist yet. Safe to run repeatedly."""
    store = BoardStore(args.database_url)
    try:
        print(f"  Schema ready ({store.engine.dialect.name}).")
        if not store.has_users():
            print("  No users yet. Run 'python main.py create-admin <username>' to add one.")
    finally:
        store.close()
    return 0


def cmd_create_admin(args: argparse.Namespace) -> int:
    password = _read_password(args.password)
    if not password:
        return 1
    if not 5 <= len(password) <= 20:
        print("  [!] Password must be between 5 and 20 characters.")
        return 1

    store = BoardStore(args.database_url)
    try:
        user = store.register(
            User(
                username=args.username,
                first_name=args.first_name,
                last_name=args.last_name,
                email=args.email,
                is_admin=True,
            ),
            password,
        )
    except JoblyError as e:
        print(f"  [!] {e.message}")
        return 1
    finally:
        store.close()

    print(f"  Admin '{user.username}' created.")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="jobly",
        description="Job board REST API: companies, jobs, users and applications.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --reload
  python main.py init-db
  DATABASE_URL=postgresql://jobly@localhost/jobly python main.py init-db
  python main.py create-admin admin --email admin@example.com
        """,
    )
    parser.add_argument(
        "--database-url",
        metavar="URL",
        default=None,
        help="SQLAlchemy database URL (default: DATABASE_URL from the environment)",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes")
    serve.set_defaults(func=cmd_serve)

    init_db = sub.add_parser("init-db", help="Create the database schema")
    init_db.set_defaults(func=cmd_init_db)

    admin = sub.add_parser("create-admin", help="Create an admin user")
    admin.add_argument("username", help="Login name, at most 25 characters")
    admin.add_argument("--email", required=True, help="Contact email")
    admin.add_argument("--first-name", default="Admin", help="First name (default: Admin)")
    admin.add_argument("--last-name", default="User", help="Last name (default: User)")
    admin.add_argument(
        "--password",
        default=None,
        help="Password (prompted for when omitted, which keeps it out of shell history)",
    )
    admin.set_defaults(func=cmd_create_admin)

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0

    # Fail early on a bad SECRET_KEY / BCRYPT_WORK_FACTOR before touching the DB.
    get_settings()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
