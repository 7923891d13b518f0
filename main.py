#!/usr/bin/env python3
"""
TaskVault -- multi-user task tracker API.

Usage:
  python main.py serve
  python main.py serve --port 8080 --reload
  python main.py signup alice@example.com

Environment variables (see core/config.py for the full list):
  SECRET_KEY      JWT signing key, at least 32 characters. Required unless DEBUG=true.
  DATABASE_URL    SQLAlchemy URL. Defaults to a SQLite file in the project root.
  PORT            Listen port for `serve` (default 3000).
"""

import argparse
import getpass
import sys

from core.config import get_settings
from core.errors import TaskVaultError


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "api.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
    )
    return 0


def _signup(args: argparse.Namespace) -> int:
    """Create an account from the terminal without going through HTTP."""
    from auth.service import Authenticator
    from auth.sessions import SessionRegistry
    from auth.store import AccountStore

    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Confirm password: "):
        print("  [!] Passwords do not match.")
        return 1

    settings = get_settings()
    store = AccountStore(settings.database_url)
    try:
        authenticator = Authenticator(store, SessionRegistry(expire_seconds=settings.token_expire_seconds))
        account = authenticator.signup(args.email, password)
    except TaskVaultError as e:
        print(f"  [!] {e.message}")
        return 1
    finally:
        store.close()

    print(f"  Account {account.email} created (id {account.id}).")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="taskvault",
        description="Multi-user task tracker API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  SECRET_KEY=... DATABASE_URL=sqlite:///prod.db python main.py serve
  python main.py signup alice@example.com
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST setting)")
    serve.add_argument("--port", type=int, default=None, help="Listen port (default: PORT setting)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    serve.set_defaults(func=_serve)

    signup = sub.add_parser("signup", help="Create an account; prompts for the password")
    signup.add_argument("email", help="Email address of the new account")
    signup.set_defaults(func=_signup)

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
