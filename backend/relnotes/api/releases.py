from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from relnotes.db.session import get_db_session
from relnotes.domain.release_errors import (
    ReleaseConflictError,
    ReleaseNotFoundError,
    ReleaseValidationError,
)
from relnotes.models import Release
from relnotes.services.artifact_linker import ArtifactLinker, get_artifact_linker
from relnotes.services.release_registry import (
    ChangelogEntry,
    build_changelog,
    check_version,
    ingest_release,
)

router = APIRouter(prefix="/api", tags=["releases"])


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReleaseNoteResponse(CamelModel):
    description: str
    type: str


class ReleaseResponse(CamelModel):
    id: int
    program: str
    sort_key: str
    version: str
    release_notes: list[ReleaseNoteResponse]
    is_latest: bool
    is_unstable: bool
    show_in_changelog: bool
    created_at: datetime


class VersionCheckResponse(CamelModel):
    is_latest: bool
    is_unstable: bool
    latest_version: str
    download: str


class ReleaseNoteGroupResponse(CamelModel):
    type: str
    changes: list[str]


class ChangelogEntryResponse(CamelModel):
    version: str
    release_notes: list[ReleaseNoteGroupResponse]
    date: str
    unstable: bool
    version_stamp: str
    latest: bool
    download_url: str


def _to_release_response(item: Release) -> ReleaseResponse:
    return ReleaseResponse(
        id=item.id,
        program=item.program,
        sort_key=item.sort_key,
        version=item.version,
        release_notes=[ReleaseNoteResponse(**note) for note in item.release_notes or []],
        is_latest=item.is_latest,
        is_unstable=item.is_unstable,
        show_in_changelog=item.show_in_changelog,
        created_at=item.created_at,
    )


def _to_changelog_response(entry: ChangelogEntry) -> ChangelogEntryResponse:
    return ChangelogEntryResponse(
        version=entry.version,
        release_notes=[
            ReleaseNoteGroupResponse(type=group.type, changes=group.changes) for group in entry.release_notes
        ],
        date=entry.date,
        unstable=entry.unstable,
        version_stamp=entry.version_stamp,
        latest=entry.latest,
        download_url=entry.download_url,
    )


@router.post("/release-new-version/{program}", response_model=ReleaseResponse)
def post_release_new_version(
    program: str,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db_session),
) -> ReleaseResponse:
    try:
        record = ingest_release(db=db, program=program, payload=payload)
    except ReleaseValidationError as exc:
        raise HTTPException(status_code=422, detail=f"invalid_release_event:{exc}") from exc
    except ReleaseConflictError as exc:
        raise HTTPException(status_code=409, detail="release_already_exists") from exc
    return _to_release_response(record)


@router.get("/release-validate-version/{program}/{version}", response_model=VersionCheckResponse)
def get_release_validate_version(
    program: str,
    version: str,
    db: Session = Depends(get_db_session),
    linker: ArtifactLinker = Depends(get_artifact_linker),
) -> VersionCheckResponse:
    try:
        result = check_version(db=db, program=program, caller_version=version, linker=linker)
    except ReleaseNotFoundError as exc:
        raise HTTPException(status_code=404, detail="latest_release_not_found") from exc
    return VersionCheckResponse(
        is_latest=result.is_latest,
        is_unstable=result.is_unstable,
        latest_version=result.latest_version,
        download=result.download,
    )


@router.get("/release-change-log/{program}", response_model=list[ChangelogEntryResponse])
def get_release_change_log(
    program: str,
    db: Session = Depends(get_db_session),
    linker: ArtifactLinker = Depends(get_artifact_linker),
) -> list[ChangelogEntryResponse]:
    entries = build_changelog(db=db, program=program, linker=linker)
    return [_to_changelog_response(entry) for entry in entries]
