"""Repair sweep for bookmark folder membership.

Two kinds of drift can exist in stored data:

* links whose bookmark or folder row is gone (older data, or a cascade that was
  interrupted half-way), and
* bookmarks with no folder links at all (legacy bookmarks saved before folders
  existed, or bookmarks whose only folder was deleted).

The sweep removes the former and links the latter into their owner's General
folder, creating that folder where needed.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from sqlalchemy import delete, exists, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.bookmark import Bookmark
from models.bookmark_folder import BookmarkFolder
from models.bookmark_folder_link import BookmarkFolderLink
from services.bookmark_membership import ensure_bookmark_in_general_folder

logger = logging.getLogger(__name__)


async def remove_dangling_links(db: AsyncSession, user_id: Optional[str] = None) -> int:
    query = (
        select(BookmarkFolderLink.id)
        .outerjoin(Bookmark, Bookmark.id == BookmarkFolderLink.bookmark_id)
        .outerjoin(BookmarkFolder, BookmarkFolder.id == BookmarkFolderLink.folder_id)
        .where(or_(Bookmark.id.is_(None), BookmarkFolder.id.is_(None)))
    )
    if user_id:
        query = query.where(BookmarkFolderLink.user_id == user_id)
    link_ids = list((await db.execute(query)).scalars().all())
    if not link_ids:
        return 0

    await db.execute(
        delete(BookmarkFolderLink)
        .where(BookmarkFolderLink.id.in_(link_ids))
        .execution_options(synchronize_session=False)
    )
    return len(link_ids)


async def reconcile_bookmark_folders_service(db: AsyncSession, user_id: Optional[str] = None) -> Dict[str, int]:
    """Run the sweep for one user, or for everyone when ``user_id`` is None."""
    dangling_removed = await remove_dangling_links(db, user_id)

    has_link = exists().where(BookmarkFolderLink.bookmark_id == Bookmark.id)
    query = select(Bookmark.id, Bookmark.user_id).where(~has_link).order_by(Bookmark.user_id, Bookmark.created_at)
    if user_id:
        query = query.where(Bookmark.user_id == user_id)
    orphans = (await db.execute(query)).all()

    relinked = 0
    affected_users = set()
    for bookmark_id, owner_id in orphans:
        if await ensure_bookmark_in_general_folder(bookmark_id, owner_id, db):
            relinked += 1
            affected_users.add(owner_id)
    await db.commit()

    summary = {
        "dangling_links_removed": dangling_removed,
        "bookmarks_relinked": relinked,
        "users_affected": len(affected_users),
    }
    logger.info(
        "bookmark_reconcile user=%s dangling_removed=%s relinked=%s users=%s",
        user_id or "*",
        dangling_removed,
        relinked,
        len(affected_users),
    )
    return summary
