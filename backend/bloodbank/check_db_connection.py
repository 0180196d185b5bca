"""Check that MongoDB is reachable with the configured MONGO_URI.

Run: ``python -m bloodbank.check_db_connection`` (or ``bloodbank-check-db``).
Exits 0 when the database answers, 1 otherwise.
"""

from __future__ import annotations

import sys

from pymongo.errors import PyMongoError

from bloodbank.config import Settings, get_settings
from bloodbank.database import Database


TROUBLESHOOTING_HINTS = (
    "1. Check if MongoDB is running (local) or network access is configured (Atlas)",
    "2. Verify MONGO_URI in backend/.env file",
    "3. Check username/password if using Atlas",
    "4. Ensure IP address is whitelisted in Atlas Network Access",
)


def main(settings: Settings | None = None, database: Database | None = None) -> int:
    settings = settings or get_settings()
    database = database or Database.from_settings(settings)

    print("Testing MongoDB connection...")
    print(f"Connection String: {settings.masked_mongo_uri}")

    try:
        database.client.admin.command("ping")
        info = database.describe()
    except PyMongoError as exc:
        print("MongoDB Connection Failed!", file=sys.stderr)
        print(f"Error: {exc}", file=sys.stderr)
        print("\nTroubleshooting:")
        for hint in TROUBLESHOOTING_HINTS:
            print(hint)
        return 1
    finally:
        database.close()

    print("MongoDB Connected Successfully!")
    print(f"Database: {info.name}")
    print(f"Host: {info.host}")
    print(f"Collections: {', '.join(info.collections) if info.collections else 'None (database is empty)'}")
    print("Connection test completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
