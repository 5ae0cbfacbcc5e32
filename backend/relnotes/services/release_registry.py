from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from relnotes.core.program_catalog import normalize_program
from relnotes.domain.release_errors import ReleaseConflictError, ReleaseValidationError
from relnotes.domain.release_event import PROGRAM_MAX_LENGTH, ReleaseEvent
from relnotes.domain.version_key import encode_version_key, parse_version_number
from relnotes.models import Release
from relnotes.services.artifact_linker import ArtifactLinker
from relnotes.services.observability import emit_structured_log
from relnotes.services.release_store import (
    get_latest_release,
    get_release_by_version,
    insert_release,
    list_releases,
)

BUG_NOTE_TYPE = "Bug"
BUG_FIXES_LABEL = "Bug fixes"
NEW_FEATURES_LABEL = "New features"


@dataclass
class VersionCheckResult:
    is_latest: bool
    is_unstable: bool = False
    latest_version: str = ""
    download: str = ""


@dataclass
class ReleaseNoteGroup:
    type: str
    changes: list[str] = field(default_factory=list)


@dataclass
class ChangelogEntry:
    version: str
    release_notes: list[ReleaseNoteGroup]
    date: str
    unstable: bool
    version_stamp: str
    latest: bool
    download_url: str


def _parse_event(payload: dict[str, Any] | ReleaseEvent) -> ReleaseEvent:
    if isinstance(payload, ReleaseEvent):
        return payload
    try:
        return ReleaseEvent.model_validate(payload)
    except ValidationError as exc:
        raise ReleaseValidationError(f"schema_errors:{exc.error_count()}") from exc


def ingest_release(*, db: Session, program: str, payload: dict[str, Any] | ReleaseEvent) -> Release:
    partition = normalize_program(program)
    if not partition:
        raise ReleaseValidationError("missing_program")
    if len(partition) > PROGRAM_MAX_LENGTH:
        raise ReleaseValidationError(f"program_too_long:{len(partition)}")

    event = _parse_event(payload)
    version = event.version
    if parse_version_number(version) is None:
        raise ReleaseValidationError(f"unparseable_version:{version}")

    record = Release(
        program=partition,
        sort_key=encode_version_key(version),
        version=version,
        release_notes=event.release_notes(),
        is_latest=False,
        is_unstable=True,
        show_in_changelog=True,
    )
    try:
        record = insert_release(db=db, record=record)
    except ReleaseConflictError:
        emit_structured_log(
            component="release_registry",
            event="release_ingest_conflict",
            level=logging.WARNING,
            program=partition,
            version=version,
        )
        raise

    emit_structured_log(
        component="release_registry",
        event="release_ingested",
        program=record.program,
        version=record.version,
        sort_key=record.sort_key,
        note_count=len(record.release_notes),
    )
    return record


def check_version(
    *,
    db: Session,
    program: str,
    caller_version: str,
    linker: ArtifactLinker,
) -> VersionCheckResult:
    latest = get_latest_release(db=db, program=program)
    if caller_version == latest.version:
        result = VersionCheckResult(is_latest=True)
    else:
        user_release = get_release_by_version(db=db, program=program, version=caller_version)
        result = VersionCheckResult(
            is_latest=False,
            is_unstable=user_release.is_unstable if user_release is not None else False,
            # Encoded key, not the version string; existing clients read it this way.
            latest_version=latest.sort_key,
            download=linker.link_for(program, caller_version),
        )

    emit_structured_log(
        component="release_registry",
        event="version_checked",
        program=latest.program,
        caller_version=caller_version,
        is_latest=result.is_latest,
    )
    return result


def group_release_notes(notes: list[dict[str, str]] | None) -> list[ReleaseNoteGroup]:
    """Bucket notes by type: bug groups first, every other type labelled as features."""
    grouped: dict[str, list[str]] = {}
    for note in notes or []:
        grouped.setdefault(note.get("type", ""), []).append(note.get("description", ""))

    ordered = sorted(grouped.items(), key=lambda item: 0 if item[0] == BUG_NOTE_TYPE else 1)
    return [
        ReleaseNoteGroup(
            type=BUG_FIXES_LABEL if note_type == BUG_NOTE_TYPE else NEW_FEATURES_LABEL,
            changes=changes,
        )
        for note_type, changes in ordered
    ]


def _download_url_for(release: Release, linker: ArtifactLinker) -> str:
    if release.is_latest or release.is_unstable:
        return linker.link_for(release.program, release.version)
    return ""


def build_changelog(*, db: Session, program: str, linker: ArtifactLinker) -> list[ChangelogEntry]:
    releases = list_releases(db=db, program=program)
    entries = [
        ChangelogEntry(
            version=release.sort_key,
            release_notes=group_release_notes(release.release_notes),
            date=release.created_at.date().isoformat(),
            unstable=release.is_unstable,
            version_stamp=release.version,
            latest=release.is_latest,
            download_url=_download_url_for(release, linker),
        )
        for release in releases
        if release.show_in_changelog
    ]

    emit_structured_log(
        component="release_registry",
        event="changelog_built",
        program=normalize_program(program),
        entries=len(entries),
        hidden=len(releases) - len(entries),
    )
    return entries
