#!/usr/bin/env python3
"""Drop every interview collection and start from an empty database."""

import sys

from dotenv import load_dotenv

load_dotenv()

from interview_api.database import get_database, mongodb_enabled

COLLECTIONS = [
    "sessions",
    "college_job_templates",
    "audit_log",
]


def reset_all_collections():
    """Drop all collections and start fresh."""
    db = get_database()

    print("Clearing all collections...")
    for collection_name in COLLECTIONS:
        try:
            db[collection_name].drop()
            print(f"   dropped {collection_name}")
        except Exception as e:
            print(f"   could not drop {collection_name}: {e}")

    print("\nDatabase reset complete.")
    print("Restart running API processes so their session caches start empty.")


if __name__ == "__main__":
    if not mongodb_enabled():
        print("MongoDB is not enabled. Set ENABLE_MONGODB=true in .env")
        sys.exit(1)

    print("Resetting the interview database.")
    print("   This will DELETE ALL sessions, templates and audit entries.")

    confirm = input("\nAre you sure? Type 'yes' to continue: ")
    if confirm.lower() == 'yes':
        reset_all_collections()
    else:
        print("Reset cancelled.")
