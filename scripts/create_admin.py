"""
Admin Bootstrap Script

Promoting a user to admin over HTTP requires an admin token, so the very
first admin has to be created directly in the database. This script
registers the email if needed and sets its role to admin.

Run from project root:
    python scripts/create_admin.py owner@example.com
"""

import argparse
import asyncio
import os
import sys
from typing import Optional

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.config import get_settings, setup_logging
from app.services.resources import UserHandler
from app.services.store import MongoDocumentStore


async def create_admin(email: str, name: Optional[str] = None) -> bool:
    settings = get_settings()
    uri = settings.resolved_mongodb_uri
    if not uri:
        print("\n❌ No MongoDB configured. Set MONGODB_URI or DB_USER/DB_SECRET.")
        return False

    store = MongoDocumentStore(uri, settings.database_name)
    await store.connect()
    try:
        users = UserHandler(store)
        user = {"email": email}
        if name:
            user["name"] = name
        await users.register(user)

        existing = await users.find_by_email(email)
        result = await users.promote(str(existing["_id"]))
    finally:
        await store.close()

    print("=" * 60)
    print(f"👤 {email}")
    print(f"   Matched: {result.matched_count}  Modified: {result.modified_count}")
    print("✅ User is now an admin")
    print("=" * 60)
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Grant the admin role to a user")
    parser.add_argument("email", help="Email of the user to promote")
    parser.add_argument("--name", help="Display name if the user has to be created")
    args = parser.parse_args()

    setup_logging()
    ok = asyncio.run(create_admin(args.email, args.name))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
