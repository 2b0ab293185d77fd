#!/usr/bin/env python3
"""
Create an OWNER account, or promote an existing account to OWNER.

Usage:
    ENV=staging python scripts/create_owner.py --username alice
    ENV=staging python scripts/create_owner.py --username alice --password s3cret
"""

import argparse
import asyncio
import getpass
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

# Load environment-specific .env file
env = os.getenv("ENV", "local")
env_file = f".env.{env}"
if os.path.exists(env_file):
    load_dotenv(env_file)
    print(f"Loaded environment from: {env_file}")

from sqlalchemy import select

from app.db import get_db_session
from app.models import Role, User
from app.services.auth import get_password_hash
from app.services.auth.auth_service import normalize_username, validate_registration


async def create_owner(username: str, password: str | None) -> str:
    """Returns "created" or "promoted"."""
    async with get_db_session() as db:
        user = await db.scalar(select(User).where(User.username == normalize_username(username)))

        if user is not None:
            user.role = Role.OWNER.value
            user.is_banned = False
            return "promoted"

        if not password:
            raise SystemExit("A password is required to create a new account")

        username = validate_registration(username, password)
        db.add(
            User(
                username=username,
                password_hash=get_password_hash(password),
                role=Role.OWNER.value,
            )
        )
        return "created"


def main():
    parser = argparse.ArgumentParser(description="Bootstrap an OWNER account")
    parser.add_argument("--username", required=True, help="Account username")
    parser.add_argument("--password", help="Password for a new account (prompted if omitted)")
    args = parser.parse_args()

    password = args.password
    if password is None:
        password = getpass.getpass("Password (leave empty to only promote): ") or None

    outcome = asyncio.run(create_owner(args.username, password))
    print(f"{args.username.lower()}: {outcome} as OWNER")


if __name__ == "__main__":
    main()
