"""Routers package."""

from . import (
    health,
    bookmark_folders,
    bookmarks,
    bookmark_folder_links,
)
