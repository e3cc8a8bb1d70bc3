#!/usr/bin/env python3
"""
Auth Service -- credential login, email 2FA, and revocable JWT sessions.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8000
  python main.py serve --reload
  python main.py add-user bob@example.com
  python main.py add-user alice@example.com --requires-2fa

Environment variables (or .env):
  SECRET_KEY                  Required unless DEBUG=true. At least 32 chars.
  USER_STORE_BACKEND          memory | sql (default memory)
  DATABASE_URL                SQLAlchemy URL for the sql backend.
  BANNED_TOKEN_STORE_BACKEND  memory | redis (default memory)
  TWO_FA_STORE_BACKEND        memory | redis (default memory)
  REDIS_URL                   Redis URL for the redis backends.

add-user writes to the configured identity store, so it is only useful with
USER_STORE_BACKEND=sql; the memory backend forgets the user on exit.
"""

import argparse
import asyncio
import getpass
import sys

from auth.errors import AuthServiceError
from auth.service import build_auth_service
from core.config import get_settings


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


async def _add_user(email: str, password: str, requires_2fa: bool) -> None:
    service = build_auth_service(get_settings())
    try:
        await service.signup(email, password, requires_2fa)
    finally:
        await service.close()


def _add_user_command(args: argparse.Namespace) -> int:
    settings = get_settings()
    if settings.user_store_backend == "memory":
        print("  [!] USER_STORE_BACKEND=memory -- the user will not outlive this process.")

    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Repeat password: "):
        print("  [!] Passwords do not match.")
        return 1

    try:
        asyncio.run(_add_user(args.email, password, args.requires_2fa))
    except AuthServiceError as exc:
        print(f"  [!] {exc.message}")
        return 1
    print(f"  [+] Created {args.email} (2FA {'on' if args.requires_2fa else 'off'})")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Auth service -- login, 2FA, and session revocation.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (dev only).")
    serve.set_defaults(func=_serve)

    add_user = sub.add_parser("add-user", help="Create a user in the configured identity store.")
    add_user.add_argument("email")
    add_user.add_argument("--requires-2fa", action="store_true", help="Require an emailed code at login.")
    add_user.set_defaults(func=_add_user_command)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
