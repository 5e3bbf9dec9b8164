"""Router for adding bookmarks to folders and removing them again."""

import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context
from routers.rate_limit import rate_limit
from services.bookmarks import add_bookmark_to_folders_service, remove_bookmark_from_folder_service

router = APIRouter()
logger = logging.getLogger(__name__)


class AddBookmarkToFoldersRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bookmark_id: str = Field(..., alias="bookmarkId", min_length=1)
    folder_ids: List[Annotated[str, Field(min_length=1)]] = Field(..., alias="folderIds", min_length=1)


@router.post("", status_code=201)
async def add_bookmark_to_folders(
    request: AddBookmarkToFoldersRequest,
    _rate_limit: None = Depends(rate_limit("bookmark_folder_links", limit=600, window_seconds=3600)),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Idempotent: folders the bookmark is already in are reported as skipped."""
    try:
        return await add_bookmark_to_folders_service(auth.user_id, request.bookmark_id, request.folder_ids, db)
    except HTTPException:
        raise
    except Exception:
        logger.exception("[BookmarkFolderLinks] add failed user=%s bookmark=%s", auth.user_id, request.bookmark_id)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("", status_code=204, response_class=Response)
async def remove_bookmark_from_folder(
    bookmark_id: Optional[str] = Query(default=None, alias="bookmarkId"),
    folder_id: Optional[str] = Query(default=None, alias="folderId"),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Remove one link; a bookmark left without folders falls back to General."""
    if not bookmark_id or not folder_id:
        raise HTTPException(status_code=400, detail="bookmarkId and folderId query parameters are required")
    try:
        await remove_bookmark_from_folder_service(auth.user_id, bookmark_id, folder_id, db)
    except HTTPException:
        raise
    except Exception:
        logger.exception(
            "[BookmarkFolderLinks] remove failed user=%s bookmark=%s folder=%s",
            auth.user_id,
            bookmark_id,
            folder_id,
        )
        raise HTTPException(status_code=500, detail="Internal server error")
    return Response(status_code=204)
