from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from relnotes.core.program_catalog import normalize_program
from relnotes.domain.release_errors import ReleaseConflictError, ReleaseNotFoundError
from relnotes.domain.version_key import encode_version_key
from relnotes.models import Release


def insert_release(*, db: Session, record: Release) -> Release:
    program = normalize_program(record.program)
    version = record.version
    record.program = program
    db.add(record)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ReleaseConflictError(program, version) from exc
    db.refresh(record)
    return record


def get_latest_release(*, db: Session, program: str) -> Release:
    partition = normalize_program(program)
    release = (
        db.query(Release)
        .filter(Release.program == partition, Release.is_latest.is_(True))
        .order_by(Release.sort_key.asc())
        .first()
    )
    if release is None:
        raise ReleaseNotFoundError(partition)
    return release


def get_release_by_version(*, db: Session, program: str, version: str) -> Release | None:
    return (
        db.query(Release)
        .filter(
            Release.program == normalize_program(program),
            Release.sort_key == encode_version_key(version),
        )
        .first()
    )


def list_releases(*, db: Session, program: str) -> list[Release]:
    """Every record of a program, newest first by sort key, hidden rows included."""
    return (
        db.query(Release)
        .filter(Release.program == normalize_program(program))
        .order_by(Release.sort_key.asc())
        .all()
    )
