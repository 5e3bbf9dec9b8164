"""Router for bookmark folder CRUD."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models.bookmark_folder import FOLDER_NAME_MAX_LENGTH
from routers.auth_scope import AuthContext, get_auth_context
from routers.rate_limit import rate_limit
from services.bookmark_folders import (
    create_bookmark_folder_service,
    delete_bookmark_folder_service,
    list_bookmark_folders_service,
    rename_bookmark_folder_service,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _required_name(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError("Name cannot be empty")
    return stripped


class CreateFolderRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=FOLDER_NAME_MAX_LENGTH)
    order: Optional[int] = None

    strip_name = field_validator("name")(_required_name)


class UpdateFolderRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=FOLDER_NAME_MAX_LENGTH)

    strip_name = field_validator("name")(_required_name)


@router.get("")
async def list_bookmark_folders(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """All folders of the caller, General first by order."""
    try:
        return await list_bookmark_folders_service(auth.user_id, db)
    except HTTPException:
        raise
    except Exception:
        logger.exception("[BookmarkFolders] list folders failed user=%s", auth.user_id)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("", status_code=201)
async def create_bookmark_folder(
    request: CreateFolderRequest,
    _rate_limit: None = Depends(rate_limit("bookmark_folder_create", limit=120, window_seconds=3600)),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await create_bookmark_folder_service(auth.user_id, request.name, request.order, db)
    except HTTPException:
        raise
    except Exception:
        logger.exception("[BookmarkFolders] create folder failed user=%s", auth.user_id)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/{folder_id}")
async def update_bookmark_folder(
    folder_id: str,
    request: UpdateFolderRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Rename a folder. The default folder cannot be renamed."""
    try:
        return await rename_bookmark_folder_service(auth.user_id, folder_id, request.name, db)
    except HTTPException:
        raise
    except Exception:
        logger.exception("[BookmarkFolders] update folder failed user=%s folder=%s", auth.user_id, folder_id)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{folder_id}", status_code=204, response_class=Response)
async def delete_bookmark_folder(
    folder_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Delete a folder and its links; bookmarks are kept."""
    try:
        await delete_bookmark_folder_service(auth.user_id, folder_id, db)
    except HTTPException:
        raise
    except Exception:
        logger.exception("[BookmarkFolders] delete folder failed user=%s folder=%s", auth.user_id, folder_id)
        raise HTTPException(status_code=500, detail="Internal server error")
    return Response(status_code=204)
