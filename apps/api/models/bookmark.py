"""Bookmark model: a user's saved reference to a nugget."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base


class Bookmark(Base):
    """One row per (user, nugget); folder membership lives in BookmarkFolderLink."""

    __tablename__ = "bookmarks"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)
    nugget_id = Column(String, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    folder_links = relationship("BookmarkFolderLink", back_populates="bookmark", passive_deletes=True)

    __table_args__ = (
        UniqueConstraint("user_id", "nugget_id", name="uq_bookmarks_user_nugget"),
    )
