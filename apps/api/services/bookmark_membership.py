"""Bookmark folder membership rules.

Every bookmark belongs to at least one folder, and every user owns exactly one
default "General" folder that is created on first use. The helpers here are the
only place those two rules are enforced; HTTP-facing services call them instead
of writing folders or links for the default case themselves.

All helpers flush but never commit, so they compose into the caller's
transaction. Uniqueness is left to the database: a losing insert raises
IntegrityError inside a SAVEPOINT, which is rolled back before the existing row
is re-read.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.bookmark import Bookmark
from models.bookmark_folder import DEFAULT_FOLDER_NAME, BookmarkFolder, folder_name_key
from models.bookmark_folder_link import BookmarkFolderLink

logger = logging.getLogger(__name__)


UNIQUE_VIOLATION_SQLSTATE = "23505"


def is_unique_violation(exc: IntegrityError) -> bool:
    """True for duplicate-key errors; foreign-key and NOT NULL failures return False."""
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate:
        return sqlstate == UNIQUE_VIOLATION_SQLSTATE
    # sqlite3 carries no SQLSTATE, only the message.
    return "UNIQUE constraint failed" in str(orig)


async def insert_unless_duplicate(db: AsyncSession, row) -> bool:
    """Insert ``row``; return False instead of raising when a unique key already exists.

    Any other integrity error is re-raised after its SAVEPOINT is rolled back.
    """
    try:
        async with db.begin_nested():
            db.add(row)
    except IntegrityError as exc:
        if not is_unique_violation(exc):
            raise
        return False
    return True


async def _find_default_folder(user_id: str, db: AsyncSession) -> Optional[BookmarkFolder]:
    result = await db.execute(
        select(BookmarkFolder)
        .where(
            BookmarkFolder.user_id == user_id,
            BookmarkFolder.is_default.is_(True),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def ensure_default_folder(user_id: str, db: AsyncSession) -> str:
    """Return the id of the user's General folder, creating it on first use."""
    existing = await _find_default_folder(user_id, db)
    if existing:
        return existing.id

    folder = BookmarkFolder(
        user_id=user_id,
        name=DEFAULT_FOLDER_NAME,
        name_key=folder_name_key(DEFAULT_FOLDER_NAME),
        sort_order=0,
        is_default=True,
    )
    if await insert_unless_duplicate(db, folder):
        logger.info("bookmark_default_folder_created user=%s folder=%s", user_id, folder.id)
        return folder.id

    # Another request created it first.
    existing = await _find_default_folder(user_id, db)
    if existing is None:
        raise RuntimeError(f"Default folder for user {user_id} collided with a non-default folder")
    return existing.id


async def get_general_folder_id(user_id: str, db: AsyncSession) -> str:
    folder = await _find_default_folder(user_id, db)
    if folder is None:
        return await ensure_default_folder(user_id, db)
    return folder.id


async def find_bookmark(user_id: str, nugget_id: str, db: AsyncSession) -> Optional[Bookmark]:
    result = await db.execute(
        select(Bookmark).where(
            Bookmark.user_id == user_id,
            Bookmark.nugget_id == nugget_id,
        )
    )
    return result.scalar_one_or_none()


async def get_or_create_bookmark(user_id: str, nugget_id: str, db: AsyncSession) -> str:
    """Return the bookmark id for (user, nugget); at most one row ever exists per pair."""
    existing = await find_bookmark(user_id, nugget_id, db)
    if existing:
        return existing.id

    bookmark = Bookmark(user_id=user_id, nugget_id=nugget_id)
    if await insert_unless_duplicate(db, bookmark):
        return bookmark.id

    existing = await find_bookmark(user_id, nugget_id, db)
    if existing is None:
        raise RuntimeError(f"Bookmark for user {user_id} nugget {nugget_id} vanished after a duplicate insert")
    return existing.id


async def count_folder_links(bookmark_id: str, db: AsyncSession) -> int:
    result = await db.execute(
        select(func.count(BookmarkFolderLink.id)).where(BookmarkFolderLink.bookmark_id == bookmark_id)
    )
    return int(result.scalar() or 0)


async def link_bookmark_to_folder(bookmark_id: str, folder_id: str, user_id: str, db: AsyncSession) -> bool:
    """Create the (bookmark, folder) link; False when it already existed."""
    existing = await db.execute(
        select(BookmarkFolderLink.id).where(
            BookmarkFolderLink.bookmark_id == bookmark_id,
            BookmarkFolderLink.folder_id == folder_id,
        )
    )
    if existing.scalar_one_or_none():
        return False
    link = BookmarkFolderLink(user_id=user_id, bookmark_id=bookmark_id, folder_id=folder_id)
    return await insert_unless_duplicate(db, link)


async def ensure_bookmark_in_general_folder(bookmark_id: str, user_id: str, db: AsyncSession) -> bool:
    """Re-home a bookmark with no folder links into General.

    Returns True when a link was created. A link created concurrently by
    another request counts as success.
    """
    if await count_folder_links(bookmark_id, db) > 0:
        return False

    general_folder_id = await get_general_folder_id(user_id, db)
    created = await link_bookmark_to_folder(bookmark_id, general_folder_id, user_id, db)
    if created:
        logger.info("bookmark_relinked_to_general user=%s bookmark=%s", user_id, bookmark_id)
    return created
