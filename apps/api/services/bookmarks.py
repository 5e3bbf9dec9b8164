"""Bookmark and bookmark-folder-link services."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import HTTPException
from sqlalchemy import delete, exists, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.bookmark import Bookmark
from models.bookmark_folder import BookmarkFolder
from models.bookmark_folder_link import BookmarkFolderLink
from services.bookmark_membership import (
    count_folder_links,
    ensure_bookmark_in_general_folder,
    ensure_default_folder,
    find_bookmark,
    get_general_folder_id,
    get_or_create_bookmark,
    link_bookmark_to_folder,
)

logger = logging.getLogger(__name__)


async def _folder_ids_for_bookmark(bookmark_id: str, db: AsyncSession) -> List[str]:
    result = await db.execute(
        select(BookmarkFolderLink.folder_id)
        .where(BookmarkFolderLink.bookmark_id == bookmark_id)
        .order_by(BookmarkFolderLink.created_at.asc(), BookmarkFolderLink.id.asc())
    )
    return list(result.scalars().all())


async def _get_owned_bookmark(user_id: str, bookmark_id: str, db: AsyncSession) -> Bookmark:
    bookmark = await db.get(Bookmark, bookmark_id)
    if bookmark is None or bookmark.user_id != user_id:
        raise HTTPException(status_code=404, detail="Bookmark not found")
    return bookmark


async def list_bookmarks_by_folder_service(user_id: str, folder_id: str, db: AsyncSession) -> Dict[str, Any]:
    """Nugget ids in a folder.

    General also lists legacy bookmarks that have no folder links at all.
    """
    general_folder_id = await get_general_folder_id(user_id, db)
    await db.commit()

    in_folder = exists().where(
        BookmarkFolderLink.bookmark_id == Bookmark.id,
        BookmarkFolderLink.folder_id == folder_id,
    )
    if folder_id == general_folder_id:
        has_any_link = exists().where(BookmarkFolderLink.bookmark_id == Bookmark.id)
        membership = or_(in_folder, ~has_any_link)
    else:
        membership = in_folder

    result = await db.execute(
        select(Bookmark.nugget_id)
        .where(Bookmark.user_id == user_id, membership)
        .order_by(Bookmark.created_at.asc(), Bookmark.id.asc())
    )
    return {"nuggetIds": list(result.scalars().all())}


async def create_bookmark_service(user_id: str, nugget_id: str, db: AsyncSession) -> Dict[str, Any]:
    """Save a nugget; the bookmark always ends up linked to General."""
    bookmark_id = await get_or_create_bookmark(user_id, nugget_id, db)
    general_folder_id = await ensure_default_folder(user_id, db)
    await link_bookmark_to_folder(bookmark_id, general_folder_id, user_id, db)
    await db.commit()

    folder_ids = await _folder_ids_for_bookmark(bookmark_id, db)
    logger.info("bookmark_create user=%s nugget=%s bookmark=%s", user_id, nugget_id, bookmark_id)
    return {"bookmarkId": bookmark_id, "folderIds": folder_ids}


async def delete_bookmark_service(user_id: str, nugget_id: str, db: AsyncSession) -> None:
    bookmark = await find_bookmark(user_id, nugget_id, db)
    if bookmark is None:
        raise HTTPException(status_code=404, detail="Bookmark not found")

    bookmark_id = bookmark.id
    await db.execute(
        delete(BookmarkFolderLink)
        .where(BookmarkFolderLink.bookmark_id == bookmark_id)
        .execution_options(synchronize_session=False)
    )
    await db.delete(bookmark)
    await db.commit()
    logger.info("bookmark_delete user=%s nugget=%s bookmark=%s", user_id, nugget_id, bookmark_id)


async def get_bookmark_folders_for_nugget_service(user_id: str, nugget_id: str, db: AsyncSession) -> Dict[str, Any]:
    bookmark = await find_bookmark(user_id, nugget_id, db)
    if bookmark is None:
        return {"folderIds": []}
    return {"folderIds": await _folder_ids_for_bookmark(bookmark.id, db)}


async def add_bookmark_to_folders_service(
    user_id: str,
    bookmark_id: str,
    folder_ids: List[str],
    db: AsyncSession,
) -> Dict[str, Any]:
    """Link a bookmark into several folders; existing links are counted as skipped."""
    await _get_owned_bookmark(user_id, bookmark_id, db)

    unique_folder_ids = list(dict.fromkeys(folder_ids))
    result = await db.execute(
        select(BookmarkFolder.id).where(
            BookmarkFolder.id.in_(unique_folder_ids),
            BookmarkFolder.user_id == user_id,
        )
    )
    if len(set(result.scalars().all())) != len(unique_folder_ids):
        raise HTTPException(status_code=400, detail="One or more folders not found")

    created = 0
    for folder_id in unique_folder_ids:
        if await link_bookmark_to_folder(bookmark_id, folder_id, user_id, db):
            created += 1
    await db.commit()

    skipped = len(folder_ids) - created
    logger.info(
        "bookmark_folder_links_add user=%s bookmark=%s created=%s skipped=%s",
        user_id,
        bookmark_id,
        created,
        skipped,
    )
    return {
        "message": "Bookmark added to folders",
        "created": created,
        "skipped": skipped,
    }


async def remove_bookmark_from_folder_service(
    user_id: str,
    bookmark_id: str,
    folder_id: str,
    db: AsyncSession,
) -> None:
    await _get_owned_bookmark(user_id, bookmark_id, db)

    general_folder_id = await get_general_folder_id(user_id, db)
    # Guard counts links only; a bookmark whose single link is a custom folder
    # is also refused removal from General, even though no General link exists.
    if folder_id == general_folder_id and await count_folder_links(bookmark_id, db) == 1:
        raise HTTPException(
            status_code=400,
            detail="Cannot remove bookmark from General folder if it is the only folder",
        )

    await db.execute(
        delete(BookmarkFolderLink)
        .where(
            BookmarkFolderLink.bookmark_id == bookmark_id,
            BookmarkFolderLink.folder_id == folder_id,
        )
        .execution_options(synchronize_session=False)
    )
    await ensure_bookmark_in_general_folder(bookmark_id, user_id, db)
    await db.commit()
    logger.info("bookmark_folder_link_remove user=%s bookmark=%s folder=%s", user_id, bookmark_id, folder_id)
