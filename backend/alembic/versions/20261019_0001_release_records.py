"""release records table

Revision ID: 20261019_0001
Revises: None
Create Date: 2026-10-19 10:30:00

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "releases",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("program", sa.String(length=128), nullable=False),
        sa.Column("sort_key", sa.String(length=16), nullable=False),
        sa.Column("version", sa.String(length=64), nullable=False),
        sa.Column("release_notes", sa.JSON(), nullable=False),
        sa.Column("is_latest", sa.Boolean(), nullable=False),
        sa.Column("is_unstable", sa.Boolean(), nullable=False),
        sa.Column("show_in_changelog", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("program", "sort_key", name="uq_releases_program_sort_key"),
    )
    op.create_index("ix_releases_program", "releases", ["program"], unique=False)
    op.create_index("ix_releases_sort_key", "releases", ["sort_key"], unique=False)
    op.create_index("ix_releases_is_latest", "releases", ["is_latest"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_releases_is_latest", table_name="releases")
    op.drop_index("ix_releases_sort_key", table_name="releases")
    op.drop_index("ix_releases_program", table_name="releases")
    op.drop_table("releases")
