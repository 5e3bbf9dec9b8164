"""Re-home orphaned bookmarks into General and drop dangling folder links.

Usage:
    python scripts/reconcile_bookmark_folders.py [--user-id USER_ID]
"""

import argparse
import asyncio
import os
import sys

# Add parent dir to path to find the app modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Base, async_session_maker, engine
import models  # noqa: F401
from services.bookmark_reconcile import reconcile_bookmark_folders_service


async def reconcile_async(user_id):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_maker() as db:
        summary = await reconcile_bookmark_folders_service(db, user_id=user_id)

    await engine.dispose()
    return summary


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--user-id", default=None, help="Only reconcile this user's bookmarks.")
    args = parser.parse_args(argv)

    print(f"🔍 Reconciling bookmark folders for {args.user_id or 'all users'}...")
    try:
        summary = asyncio.run(reconcile_async(args.user_id))
    except Exception as exc:
        print(f"❌ Reconcile failed: {exc}")
        return 1

    print(f"✅ Dangling links removed: {summary['dangling_links_removed']}")
    print(f"✅ Bookmarks re-linked to General: {summary['bookmarks_relinked']}")
    print(f"✅ Users affected: {summary['users_affected']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
