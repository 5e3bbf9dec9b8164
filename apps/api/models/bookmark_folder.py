"""BookmarkFolder model: named, ordered, user-owned grouping of bookmarks."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base


DEFAULT_FOLDER_NAME = "General"
FOLDER_NAME_MAX_LENGTH = 100


def folder_name_key(name: str) -> str:
    """Case-insensitive uniqueness key for a folder name."""
    return (name or "").strip().lower()


class BookmarkFolder(Base):
    """User folder. Exactly one per user has is_default set ("General")."""

    __tablename__ = "bookmark_folders"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)
    name = Column(String(FOLDER_NAME_MAX_LENGTH), nullable=False)
    name_key = Column(String(FOLDER_NAME_MAX_LENGTH), nullable=False)
    sort_order = Column("order", Integer, nullable=False, default=0)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    links = relationship("BookmarkFolderLink", back_populates="folder", passive_deletes=True)

    __table_args__ = (
        UniqueConstraint("user_id", "name_key", name="uq_bookmark_folders_user_name_key"),
        Index("ix_bookmark_folders_user_order", "user_id", "order"),
    )
