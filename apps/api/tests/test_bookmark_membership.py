import pytest
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select

from models.bookmark import Bookmark
from models.bookmark_folder import BookmarkFolder
from models.bookmark_folder_link import BookmarkFolderLink
from services import bookmark_membership
from services.bookmark_membership import (
    count_folder_links,
    ensure_bookmark_in_general_folder,
    ensure_default_folder,
    get_general_folder_id,
    get_or_create_bookmark,
    insert_unless_duplicate,
    link_bookmark_to_folder,
)


USER_ID = "membership-user"


async def _count(db, model, *criteria) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(*criteria))
    return int(result.scalar() or 0)


@pytest.mark.asyncio
async def test_ensure_default_folder_is_lazy_and_idempotent(db_session):
    assert await _count(db_session, BookmarkFolder, BookmarkFolder.user_id == USER_ID) == 0

    first = await ensure_default_folder(USER_ID, db_session)
    second = await ensure_default_folder(USER_ID, db_session)
    await db_session.commit()

    assert first == second
    folder = await db_session.get(BookmarkFolder, first)
    assert folder.name == "General"
    assert folder.sort_order == 0
    assert folder.is_default is True
    assert await _count(db_session, BookmarkFolder, BookmarkFolder.user_id == USER_ID) == 1


@pytest.mark.asyncio
async def test_default_folders_are_per_user(db_session):
    mine = await ensure_default_folder(USER_ID, db_session)
    theirs = await ensure_default_folder("someone-else", db_session)
    assert mine != theirs


@pytest.mark.asyncio
async def test_get_general_folder_id_creates_missing_folder(db_session):
    folder_id = await get_general_folder_id(USER_ID, db_session)
    assert folder_id == await ensure_default_folder(USER_ID, db_session)


@pytest.mark.asyncio
async def test_get_or_create_bookmark_returns_existing_row(db_session):
    first = await get_or_create_bookmark(USER_ID, "nugget-1", db_session)
    second = await get_or_create_bookmark(USER_ID, "nugget-1", db_session)
    other = await get_or_create_bookmark(USER_ID, "nugget-2", db_session)
    await db_session.commit()

    assert first == second
    assert other != first
    assert await _count(db_session, Bookmark, Bookmark.user_id == USER_ID) == 2


@pytest.mark.asyncio
async def test_get_or_create_bookmark_recovers_from_losing_insert_race(db_session, session_maker, monkeypatch):
    async with session_maker() as other_session:
        winner = Bookmark(user_id=USER_ID, nugget_id="raced")
        other_session.add(winner)
        await other_session.commit()
        winner_id = winner.id

    real_find = bookmark_membership.find_bookmark
    calls = {"count": 0}

    async def stale_first_lookup(user_id, nugget_id, db):
        calls["count"] += 1
        if calls["count"] == 1:
            return None
        return await real_find(user_id, nugget_id, db)

    monkeypatch.setattr(bookmark_membership, "find_bookmark", stale_first_lookup)

    bookmark_id = await get_or_create_bookmark(USER_ID, "raced", db_session)
    await db_session.commit()

    assert bookmark_id == winner_id
    assert calls["count"] == 2
    assert await _count(db_session, Bookmark, Bookmark.nugget_id == "raced") == 1


@pytest.mark.asyncio
async def test_insert_unless_duplicate_keeps_session_usable(db_session):
    bookmark_id = await get_or_create_bookmark(USER_ID, "nugget-1", db_session)
    folder_id = await ensure_default_folder(USER_ID, db_session)

    first = BookmarkFolderLink(user_id=USER_ID, bookmark_id=bookmark_id, folder_id=folder_id)
    duplicate = BookmarkFolderLink(user_id=USER_ID, bookmark_id=bookmark_id, folder_id=folder_id)
    assert await insert_unless_duplicate(db_session, first) is True
    assert await insert_unless_duplicate(db_session, duplicate) is False
    await db_session.commit()

    assert await count_folder_links(bookmark_id, db_session) == 1


@pytest.mark.asyncio
async def test_link_bookmark_to_folder_is_idempotent(db_session):
    bookmark_id = await get_or_create_bookmark(USER_ID, "nugget-1", db_session)
    folder_id = await ensure_default_folder(USER_ID, db_session)

    assert await link_bookmark_to_folder(bookmark_id, folder_id, USER_ID, db_session) is True
    assert await link_bookmark_to_folder(bookmark_id, folder_id, USER_ID, db_session) is False
    assert await count_folder_links(bookmark_id, db_session) == 1


@pytest.mark.asyncio
async def test_ensure_bookmark_in_general_folder_only_fills_empty_membership(db_session):
    bookmark_id = await get_or_create_bookmark(USER_ID, "nugget-1", db_session)

    assert await ensure_bookmark_in_general_folder(bookmark_id, USER_ID, db_session) is True
    general_id = await get_general_folder_id(USER_ID, db_session)
    result = await db_session.execute(
        select(BookmarkFolderLink.folder_id).where(BookmarkFolderLink.bookmark_id == bookmark_id)
    )
    assert list(result.scalars().all()) == [general_id]

    assert await ensure_bookmark_in_general_folder(bookmark_id, USER_ID, db_session) is False
    assert await count_folder_links(bookmark_id, db_session) == 1


@pytest.mark.asyncio
async def test_ensure_bookmark_in_general_folder_leaves_custom_membership_alone(db_session):
    bookmark_id = await get_or_create_bookmark(USER_ID, "nugget-1", db_session)
    await ensure_default_folder(USER_ID, db_session)
    custom = BookmarkFolder(user_id=USER_ID, name="Research", name_key="research", sort_order=1)
    db_session.add(custom)
    await db_session.flush()
    await link_bookmark_to_folder(bookmark_id, custom.id, USER_ID, db_session)

    assert await ensure_bookmark_in_general_folder(bookmark_id, USER_ID, db_session) is False
    result = await db_session.execute(
        select(BookmarkFolderLink.folder_id).where(BookmarkFolderLink.bookmark_id == bookmark_id)
    )
    assert list(result.scalars().all()) == [custom.id]


@pytest.mark.asyncio
async def test_ensure_default_folder_recovers_from_losing_insert_race(db_session, session_maker, monkeypatch):
    async with session_maker() as other_session:
        winner_id = await ensure_default_folder(USER_ID, other_session)
        await other_session.commit()

    real_find = bookmark_membership._find_default_folder
    calls = {"count": 0}

    async def stale_first_lookup(user_id, db):
        calls["count"] += 1
        if calls["count"] == 1:
            return None
        return await real_find(user_id, db)

    monkeypatch.setattr(bookmark_membership, "_find_default_folder", stale_first_lookup)

    folder_id = await ensure_default_folder(USER_ID, db_session)
    await db_session.commit()

    assert folder_id == winner_id
    assert calls["count"] == 2
    assert await _count(db_session, BookmarkFolder, BookmarkFolder.user_id == USER_ID) == 1


@pytest.mark.asyncio
async def test_released_savepoints_roll_back_with_the_session(db_session):
    bookmark_id = await get_or_create_bookmark(USER_ID, "nugget-1", db_session)
    await ensure_bookmark_in_general_folder(bookmark_id, USER_ID, db_session)
    await db_session.rollback()

    assert await _count(db_session, Bookmark, Bookmark.user_id == USER_ID) == 0
    assert await _count(db_session, BookmarkFolder, BookmarkFolder.user_id == USER_ID) == 0
    assert await _count(db_session, BookmarkFolderLink, BookmarkFolderLink.user_id == USER_ID) == 0


@pytest.mark.asyncio
async def test_insert_unless_duplicate_raises_non_unique_integrity_errors(db_session):
    bookmark_id = await get_or_create_bookmark(USER_ID, "nugget-1", db_session)
    broken = BookmarkFolderLink(user_id=USER_ID, bookmark_id=bookmark_id, folder_id=None)

    with pytest.raises(IntegrityError):
        await insert_unless_duplicate(db_session, broken)

    # Only the savepoint was rolled back; the bookmark is still pending in the transaction.
    await db_session.commit()
    assert await _count(db_session, Bookmark, Bookmark.id == bookmark_id) == 1
    assert await count_folder_links(bookmark_id, db_session) == 0
