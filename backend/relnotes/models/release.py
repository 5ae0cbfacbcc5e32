from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from relnotes.db.base import Base
from relnotes.domain.release_event import PROGRAM_MAX_LENGTH, VERSION_MAX_LENGTH
from relnotes.models.common import utcnow


class Release(Base):
    __tablename__ = "releases"
    __table_args__ = (UniqueConstraint("program", "sort_key", name="uq_releases_program_sort_key"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    program: Mapped[str] = mapped_column(String(PROGRAM_MAX_LENGTH), index=True)
    sort_key: Mapped[str] = mapped_column(String(16), index=True)
    version: Mapped[str] = mapped_column(String(VERSION_MAX_LENGTH))
    release_notes: Mapped[list[dict[str, str]]] = mapped_column(JSON, default=list)
    is_latest: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    is_unstable: Mapped[bool] = mapped_column(Boolean, default=False)
    show_in_changelog: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
