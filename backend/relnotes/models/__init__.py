"""SQLAlchemy model package for the release notes registry."""

from relnotes.models.release import Release

__all__ = [
    "Release",
]
