"""Bookmark folder CRUD services."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.bookmark_folder import BookmarkFolder, folder_name_key
from models.bookmark_folder_link import BookmarkFolderLink
from services.bookmark_membership import ensure_default_folder, insert_unless_duplicate, is_unique_violation

logger = logging.getLogger(__name__)

DUPLICATE_FOLDER_NAME = "Folder name already exists"


def _folder_payload(folder: BookmarkFolder) -> Dict[str, Any]:
    return {
        "id": folder.id,
        "userId": folder.user_id,
        "name": folder.name,
        "order": int(folder.sort_order or 0),
        "isDefault": bool(folder.is_default),
        "createdAt": folder.created_at.isoformat() if folder.created_at else None,
    }


async def _name_taken(user_id: str, name_key: str, db: AsyncSession, exclude_id: Optional[str] = None) -> bool:
    query = select(BookmarkFolder.id).where(
        BookmarkFolder.user_id == user_id,
        BookmarkFolder.name_key == name_key,
    )
    if exclude_id:
        query = query.where(BookmarkFolder.id != exclude_id)
    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


async def _get_owned_folder(user_id: str, folder_id: str, db: AsyncSession) -> BookmarkFolder:
    folder = await db.get(BookmarkFolder, folder_id)
    if folder is None:
        raise HTTPException(status_code=404, detail="Folder not found")
    if folder.user_id != user_id:
        raise HTTPException(status_code=403, detail="Not authorized")
    return folder


async def list_bookmark_folders_service(user_id: str, db: AsyncSession) -> List[Dict[str, Any]]:
    await ensure_default_folder(user_id, db)
    await db.commit()

    result = await db.execute(
        select(BookmarkFolder)
        .where(BookmarkFolder.user_id == user_id)
        .order_by(BookmarkFolder.sort_order.asc(), BookmarkFolder.created_at.asc(), BookmarkFolder.id.asc())
    )
    return [_folder_payload(folder) for folder in result.scalars().all()]


async def create_bookmark_folder_service(
    user_id: str,
    name: str,
    order: Optional[int],
    db: AsyncSession,
) -> Dict[str, Any]:
    # General must exist first so a custom folder can never take its name.
    await ensure_default_folder(user_id, db)

    trimmed = name.strip()
    name_key = folder_name_key(trimmed)
    if await _name_taken(user_id, name_key, db):
        raise HTTPException(status_code=409, detail=DUPLICATE_FOLDER_NAME)

    if order is None:
        result = await db.execute(
            select(func.max(BookmarkFolder.sort_order)).where(BookmarkFolder.user_id == user_id)
        )
        max_order = result.scalar()
        order = (int(max_order) if max_order is not None else -1) + 1

    folder = BookmarkFolder(
        user_id=user_id,
        name=trimmed,
        name_key=name_key,
        sort_order=order,
        is_default=False,
    )
    if not await insert_unless_duplicate(db, folder):
        raise HTTPException(status_code=409, detail=DUPLICATE_FOLDER_NAME)
    await db.commit()

    logger.info("bookmark_folder_create user=%s folder=%s order=%s", user_id, folder.id, order)
    return _folder_payload(folder)


async def rename_bookmark_folder_service(
    user_id: str,
    folder_id: str,
    name: str,
    db: AsyncSession,
) -> Dict[str, Any]:
    folder = await _get_owned_folder(user_id, folder_id, db)
    if folder.is_default:
        raise HTTPException(status_code=403, detail="Cannot rename default folder")

    trimmed = name.strip()
    name_key = folder_name_key(trimmed)
    if folder_name_key(folder.name) == name_key:
        return _folder_payload(folder)

    if await _name_taken(user_id, name_key, db, exclude_id=folder.id):
        raise HTTPException(status_code=400, detail=DUPLICATE_FOLDER_NAME)

    try:
        async with db.begin_nested():
            folder.name = trimmed
            folder.name_key = name_key
    except IntegrityError as exc:
        if not is_unique_violation(exc):
            raise
        raise HTTPException(status_code=400, detail=DUPLICATE_FOLDER_NAME)
    await db.commit()

    logger.info("bookmark_folder_rename user=%s folder=%s", user_id, folder.id)
    return _folder_payload(folder)


async def delete_bookmark_folder_service(user_id: str, folder_id: str, db: AsyncSession) -> None:
    """Delete a custom folder and its links. Bookmarks themselves are kept."""
    folder = await _get_owned_folder(user_id, folder_id, db)
    if folder.is_default:
        raise HTTPException(status_code=400, detail="Cannot delete default folder")

    links = await db.execute(
        delete(BookmarkFolderLink)
        .where(BookmarkFolderLink.folder_id == folder.id)
        .execution_options(synchronize_session=False)
    )
    await db.delete(folder)
    await db.commit()

    logger.info(
        "bookmark_folder_delete user=%s folder=%s links_removed=%s",
        user_id,
        folder_id,
        links.rowcount,
    )
