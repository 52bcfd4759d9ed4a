#!/usr/bin/env python3
"""Initialize the root record, bump the quiz set version or grant admin membership."""

import argparse

from dotenv import load_dotenv

load_dotenv()

from quizzer.errors import QuizzerError
from quizzer.services.content_store import ContentStore


def init_database(store: ContentStore, version=None, admins=()):
    """Create the root record if needed, then apply the requested changes."""
    store.connect()

    if store.ensure_root_record():
        print("✓ Created root initializer record with a fresh jwtSecret")
    else:
        print("✓ Root initializer record already present")

    if version:
        store.set_quiz_set_version(version)
        print(f"✓ Quiz set version set to {version}")

    for user_mail in admins:
        store.grant_admin(user_mail.strip().lower())
        print(f"✓ Granted admin privileges to {user_mail}")


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--version", help="new quizSetVersion, e.g. 1.2.0")
    parser.add_argument("--admin", action="append", default=[], help="e-mail to grant admin privileges")
    args = parser.parse_args(argv)

    store = ContentStore()
    try:
        init_database(store, version=args.version, admins=args.admin)
    except QuizzerError as exc:
        print(f"❌ {exc}")
        return 1
    finally:
        store.disconnect()

    print("\n✅ Database initialization complete!")
    print("   Restart the server to pick up a new quiz set version.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
