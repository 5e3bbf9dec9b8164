"""Router for bookmarks (keyed by nugget id from the client's point of view)."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context
from routers.rate_limit import rate_limit
from services.bookmarks import (
    create_bookmark_service,
    delete_bookmark_service,
    get_bookmark_folders_for_nugget_service,
    list_bookmarks_by_folder_service,
)

router = APIRouter()
logger = logging.getLogger(__name__)


class CreateBookmarkRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    nugget_id: str = Field(..., alias="nuggetId", min_length=1)

    @field_validator("nugget_id")
    @classmethod
    def strip_nugget_id(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("nuggetId is required")
        return stripped


@router.get("")
async def list_bookmarks_by_folder(
    folder_id: Optional[str] = Query(default=None, alias="folderId"),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Nugget ids bookmarked in a folder."""
    if not folder_id:
        raise HTTPException(status_code=400, detail="folderId query parameter is required")
    try:
        return await list_bookmarks_by_folder_service(auth.user_id, folder_id, db)
    except HTTPException:
        raise
    except Exception:
        logger.exception("[Bookmarks] list by folder failed user=%s folder=%s", auth.user_id, folder_id)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("", status_code=201)
async def create_bookmark(
    request: CreateBookmarkRequest,
    _rate_limit: None = Depends(rate_limit("bookmark_create", limit=600, window_seconds=3600)),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await create_bookmark_service(auth.user_id, request.nugget_id, db)
    except HTTPException:
        raise
    except Exception:
        logger.exception("[Bookmarks] create bookmark failed user=%s nugget=%s", auth.user_id, request.nugget_id)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{nugget_id}", status_code=204, response_class=Response)
async def delete_bookmark(
    nugget_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Remove the bookmark and every folder link it has."""
    try:
        await delete_bookmark_service(auth.user_id, nugget_id, db)
    except HTTPException:
        raise
    except Exception:
        logger.exception("[Bookmarks] delete bookmark failed user=%s nugget=%s", auth.user_id, nugget_id)
        raise HTTPException(status_code=500, detail="Internal server error")
    return Response(status_code=204)


@router.get("/{nugget_id}/folders")
async def get_bookmark_folders_for_nugget(
    nugget_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Folder ids containing the nugget's bookmark; empty when never bookmarked."""
    try:
        return await get_bookmark_folders_for_nugget_service(auth.user_id, nugget_id, db)
    except HTTPException:
        raise
    except Exception:
        logger.exception("[Bookmarks] get folders failed user=%s nugget=%s", auth.user_id, nugget_id)
        raise HTTPException(status_code=500, detail="Internal server error")
