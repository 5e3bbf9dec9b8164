"""bookmarks, bookmark folders and folder links

Revision ID: 20261018_000001
Revises:
Create Date: 2026-10-18 00:00:01.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261018_000001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "bookmarks",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("nugget_id", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "nugget_id", name="uq_bookmarks_user_nugget"),
    )
    op.create_index("ix_bookmarks_user_id", "bookmarks", ["user_id"], unique=False)
    op.create_index("ix_bookmarks_nugget_id", "bookmarks", ["nugget_id"], unique=False)

    op.create_table(
        "bookmark_folders",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("name_key", sa.String(length=100), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "name_key", name="uq_bookmark_folders_user_name_key"),
    )
    op.create_index("ix_bookmark_folders_user_id", "bookmark_folders", ["user_id"], unique=False)
    op.create_index("ix_bookmark_folders_user_order", "bookmark_folders", ["user_id", "order"], unique=False)

    op.create_table(
        "bookmark_folder_links",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("bookmark_id", sa.String(), nullable=False),
        sa.Column("folder_id", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["bookmark_id"], ["bookmarks.id"], ),
        sa.ForeignKeyConstraint(["folder_id"], ["bookmark_folders.id"], ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("bookmark_id", "folder_id", name="uq_bookmark_folder_links_bookmark_folder"),
    )
    op.create_index("ix_bookmark_folder_links_user_id", "bookmark_folder_links", ["user_id"], unique=False)
    op.create_index("ix_bookmark_folder_links_bookmark_id", "bookmark_folder_links", ["bookmark_id"], unique=False)
    op.create_index("ix_bookmark_folder_links_folder_id", "bookmark_folder_links", ["folder_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_bookmark_folder_links_folder_id", table_name="bookmark_folder_links")
    op.drop_index("ix_bookmark_folder_links_bookmark_id", table_name="bookmark_folder_links")
    op.drop_index("ix_bookmark_folder_links_user_id", table_name="bookmark_folder_links")
    op.drop_table("bookmark_folder_links")
    op.drop_index("ix_bookmark_folders_user_order", table_name="bookmark_folders")
    op.drop_index("ix_bookmark_folders_user_id", table_name="bookmark_folders")
    op.drop_table("bookmark_folders")
    op.drop_index("ix_bookmarks_nugget_id", table_name="bookmarks")
    op.drop_index("ix_bookmarks_user_id", table_name="bookmarks")
    op.drop_table("bookmarks")
