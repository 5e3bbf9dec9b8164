"""BookmarkFolderLink model: many-to-many bridge between bookmarks and folders."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base


class BookmarkFolderLink(Base):
    """Membership of one bookmark in one folder, scoped by user_id."""

    __tablename__ = "bookmark_folder_links"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)
    bookmark_id = Column(String, ForeignKey("bookmarks.id"), nullable=False, index=True)
    folder_id = Column(String, ForeignKey("bookmark_folders.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    bookmark = relationship("Bookmark", back_populates="folder_links")
    folder = relationship("BookmarkFolder", back_populates="links")

    __table_args__ = (
        UniqueConstraint("bookmark_id", "folder_id", name="uq_bookmark_folder_links_bookmark_folder"),
    )
