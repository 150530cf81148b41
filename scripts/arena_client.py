#!/usr/bin/env python3
"""
Drive the game client from the command line.

Usage:
    python scripts/arena_client.py register <email> <username> <password>
    python scripts/arena_client.py login <identifier> <password> [--regenerate]

Environment Variables:
    API_URL: Auth service base URL including the API prefix
             (default: http://localhost:8000/api/v1)
    TOKEN_STORE_URL, TOKEN_STORE_API_KEY and the other token store settings
    are read from .env like the service settings.
"""

import argparse
import asyncio
import os
import sys

import dotenv

from arena_auth.core.exceptions import AppException
from arena_auth.services.game_client import build_game_client

dotenv.load_dotenv()


async def run(args: argparse.Namespace) -> int:
    client = build_game_client(os.getenv("API_URL", "http://localhost:8000/api/v1"))
    client.start()
    try:
        if args.command == "register":
            await client.register(args.email, args.username, args.password)
        else:
            await client.login(args.identifier, args.password)
            await client.coordinator.wait_idle()
            if args.regenerate:
                await client.regenerate_token()
    except AppException:
        print(f"✗ {client.status}", file=sys.stderr)
        return 1
    finally:
        await client.close()

    print(f"✓ {client.status}")
    if client.token:
        print(f"   Token: {client.token}")
    return 0


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Log in or register against the auth service")
    subparsers = parser.add_subparsers(dest="command", required=True)

    register = subparsers.add_parser("register", help="Create an account")
    register.add_argument("email")
    register.add_argument("username")
    register.add_argument("password")

    login = subparsers.add_parser("login", help="Log in and provision a game token")
    login.add_argument("identifier", help="Email or username")
    login.add_argument("password")
    login.add_argument(
        "--regenerate",
        action="store_true",
        help="Replace the token right after it was provisioned",
    )

    sys.exit(asyncio.run(run(parser.parse_args())))


if __name__ == "__main__":
    main()
