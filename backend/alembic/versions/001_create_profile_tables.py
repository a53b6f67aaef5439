"""Create profile tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates profile, profile_details, profile_posts and profile_images.
How:   Every child table references profile.id with ON DELETE CASCADE;
       posts and images are indexed by (owner, date) for the newest-first
       listings.

Rollback: downgrade() drops all four tables (destructive).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "profile",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("first_name", sa.String(255), nullable=True),
        sa.Column("last_name", sa.String(255), nullable=True),
        sa.Column("e_mail", sa.String(255), nullable=False),
        # pbkdf2_sha256$<iterations>$<salt>$<hash>
        sa.Column("password", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_profile"),
        sa.UniqueConstraint("e_mail", name="uq_profile_e_mail"),
    )

    op.create_table(
        "profile_details",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("certificate", sa.Text(), nullable=True),
        sa.Column("school", sa.Text(), nullable=True),
        sa.Column("place", sa.Text(), nullable=True),
        sa.Column("about_me", sa.Text(), nullable=True),
        sa.Column("links", sa.Text(), nullable=True),
        sa.Column("profile_pic", sa.String(255), nullable=True),
        sa.Column("profile_background", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_profile_details"),
        sa.ForeignKeyConstraint(
            ["id"], ["profile.id"], name="fk_profile_details_profile", ondelete="CASCADE"
        ),
    )

    op.create_table(
        "profile_posts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("post", sa.Text(), nullable=True),
        sa.Column("pics", sa.String(255), nullable=True, server_default=sa.text("''")),
        # epoch milliseconds
        sa.Column("date", sa.BigInteger(), nullable=False),
        sa.Column("posts_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.PrimaryKeyConstraint("posts_id", name="pk_profile_posts"),
        sa.ForeignKeyConstraint(
            ["id"], ["profile.id"], name="fk_profile_posts_profile", ondelete="CASCADE"
        ),
    )
    op.create_index("idx_profile_posts_owner_date", "profile_posts", ["id", sa.text("date DESC")])

    op.create_table(
        "profile_images",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("image", sa.String(255), nullable=False),
        sa.Column("date", sa.BigInteger(), nullable=False),
        sa.Column("images_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.PrimaryKeyConstraint("images_id", name="pk_profile_images"),
        sa.ForeignKeyConstraint(
            ["id"], ["profile.id"], name="fk_profile_images_profile", ondelete="CASCADE"
        ),
    )
    op.create_index("idx_profile_images_owner_date", "profile_images", ["id", sa.text("date DESC")])


def downgrade() -> None:
    op.drop_index("idx_profile_images_owner_date", table_name="profile_images")
    op.drop_table("profile_images")
    op.drop_index("idx_profile_posts_owner_date", table_name="profile_posts")
    op.drop_table("profile_posts")
    op.drop_table("profile_details")
    op.drop_table("profile")
