from __future__ import annotations

import argparse
from dataclasses import asdict
import json
from pathlib import Path

from relnotes.db.session import SessionLocal
from relnotes.domain.release_errors import (
    ReleaseConflictError,
    ReleaseNotFoundError,
    ReleaseValidationError,
)
from relnotes.services.artifact_linker import build_artifact_linker
from relnotes.services.release_registry import build_changelog, check_version, ingest_release


def _to_payload(item) -> dict[str, object]:
    return {
        "id": item.id,
        "program": item.program,
        "sort_key": item.sort_key,
        "version": item.version,
        "release_notes": item.release_notes,
        "is_latest": item.is_latest,
        "is_unstable": item.is_unstable,
        "show_in_changelog": item.show_in_changelog,
        "created_at": item.created_at.isoformat() if item.created_at else None,
    }


def _read_event(path: str) -> dict:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ReleaseValidationError(f"event_file_unreadable:{path}") from exc
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ReleaseValidationError(f"event_file_not_json:{path}") from exc


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Manage release notes records in the registry DB")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest_parser = subparsers.add_parser("ingest")
    ingest_parser.add_argument("--program", required=True)
    ingest_parser.add_argument("--event-file", required=True)

    check_parser = subparsers.add_parser("check")
    check_parser.add_argument("--program", required=True)
    check_parser.add_argument("--version", required=True)

    changelog_parser = subparsers.add_parser("changelog")
    changelog_parser.add_argument("--program", required=True)

    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        if args.command == "ingest":
            try:
                release = ingest_release(db=db, program=args.program, payload=_read_event(args.event_file))
            except ReleaseValidationError as exc:
                print(json.dumps({"error": "invalid_release_event", "detail": str(exc)}))
                return 3
            except ReleaseConflictError as exc:
                print(json.dumps({"error": "release_already_exists", "program": exc.program, "version": exc.version}))
                return 2
            print(json.dumps(_to_payload(release)))
            return 0

        if args.command == "check":
            try:
                result = check_version(
                    db=db,
                    program=args.program,
                    caller_version=args.version,
                    linker=build_artifact_linker(),
                )
            except ReleaseNotFoundError as exc:
                print(json.dumps({"error": "latest_release_not_found", "program": exc.program}))
                return 2
            print(json.dumps(asdict(result)))
            return 0

        if args.command == "changelog":
            entries = build_changelog(db=db, program=args.program, linker=build_artifact_linker())
            print(json.dumps([asdict(entry) for entry in entries]))
            return 0

        print(json.dumps({"error": "unsupported_command"}))
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
