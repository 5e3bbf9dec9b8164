"""Models package."""

from .bookmark import Bookmark
from .bookmark_folder import BookmarkFolder
from .bookmark_folder_link import BookmarkFolderLink
