from __future__ import annotations

import os
from pathlib import Path
import sys
import unittest
from unittest.mock import patch

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from relnotes.db.base import Base
from relnotes.domain.release_errors import (
    ReleaseConflictError,
    ReleaseNotFoundError,
    ReleaseValidationError,
)
from relnotes.domain.version_key import encode_version_key
from relnotes.models import Release
from relnotes.services import release_registry
from relnotes.services.release_registry import (
    ReleaseNoteGroup,
    build_changelog,
    check_version,
    group_release_notes,
    ingest_release,
)


class RecordingLinker:
    def __init__(self, distributable: set[str] | None = None) -> None:
        self.distributable = distributable or set()
        self.calls: list[tuple[str, str]] = []

    def link_for(self, program: str, version: str) -> str:
        self.calls.append((program, version))
        if program.lower() not in self.distributable:
            return ""
        return f"https://artifacts.example/{program}/{version}.zip?sig=x"


def _event(version, work_items: list[tuple[str, str]] | None = None) -> dict:
    return {
        "resource": {
            "data": {
                "workItems": [
                    {"fields": {"System.WorkItemType": item_type, "System.Title": title}}
                    for item_type, title in (work_items or [])
                ]
            },
            "environment": {"release": {"name": version}},
        }
    }


class ReleaseRegistryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine("sqlite+pysqlite:///:memory:")
        Base.metadata.create_all(self.engine)
        self.session_factory = sessionmaker(bind=self.engine, autoflush=False, autocommit=False)

    def tearDown(self) -> None:
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def _seed(self, program: str, version: str, **flags) -> None:
        with self.session_factory() as db:
            db.add(
                Release(
                    program=program,
                    sort_key=encode_version_key(version),
                    version=version,
                    release_notes=flags.get("notes", []),
                    is_latest=flags.get("is_latest", False),
                    is_unstable=flags.get("is_unstable", False),
                    show_in_changelog=flags.get("show_in_changelog", True),
                )
            )
            db.commit()

    def test_ingest_builds_unstable_record_from_event(self) -> None:
        payload = _event("1.4.2", [("Bug", "Fix crash"), ("User Story", "Dark mode"), ("Bug", "Fix crash")])
        with self.session_factory() as db:
            record = ingest_release(db=db, program="Server", payload=payload)

            self.assertEqual(record.program, "server")
            self.assertEqual(record.version, "1.4.2")
            self.assertEqual(record.sort_key, encode_version_key("1.4.2"))
            self.assertFalse(record.is_latest)
            self.assertTrue(record.is_unstable)
            self.assertTrue(record.show_in_changelog)
            self.assertEqual(
                record.release_notes,
                [
                    {"description": "Fix crash", "type": "Bug"},
                    {"description": "Dark mode", "type": "User Story"},
                    {"description": "Fix crash", "type": "Bug"},
                ],
            )

    def test_ingest_without_work_items_has_no_notes(self) -> None:
        payload = {"resource": {"environment": {"release": {"name": 1042}}}}
        with self.session_factory() as db:
            record = ingest_release(db=db, program="server", payload=payload)
            self.assertEqual(record.version, "1042")
            self.assertEqual(record.release_notes, [])

    def test_ingest_twice_conflicts(self) -> None:
        with self.session_factory() as db:
            ingest_release(db=db, program="server", payload=_event("1.4.2", [("Bug", "first")]))
            with self.assertRaises(ReleaseConflictError):
                ingest_release(db=db, program="SERVER", payload=_event("1.4.2", [("Bug", "second")]))

        with self.session_factory() as db:
            rows = db.query(Release).all()
            self.assertEqual(len(rows), 1)
            self.assertEqual(rows[0].release_notes[0]["description"], "first")

    def test_ingest_rejects_malformed_events(self) -> None:
        cases = {
            "missing_resource": {},
            "missing_release_name": {"resource": {"environment": {"release": {}}}},
            "empty_release_name": _event(""),
            "unparseable_version": _event("1.4.2-rc1"),
            "bad_work_item": {
                "resource": {
                    "data": {"workItems": [{"fields": {"System.Title": "no type"}}]},
                    "environment": {"release": {"name": "1.0"}},
                }
            },
        }
        with self.session_factory() as db:
            for name, payload in cases.items():
                with self.subTest(case=name):
                    with self.assertRaises(ReleaseValidationError):
                        ingest_release(db=db, program="server", payload=payload)
            with self.assertRaises(ReleaseValidationError):
                ingest_release(db=db, program="  ", payload=_event("1.0"))
            self.assertEqual(db.query(Release).count(), 0)

    def test_ingest_rejects_values_wider_than_their_columns(self) -> None:
        with self.session_factory() as db:
            with self.assertRaises(ReleaseValidationError):
                ingest_release(db=db, program="server", payload=_event("0" * 80 + "1"))
            with self.assertRaises(ReleaseValidationError):
                ingest_release(db=db, program="p" * 129, payload=_event("1.0"))
            self.assertEqual(db.query(Release).count(), 0)

            record = ingest_release(db=db, program="p" * 128, payload=_event("0" * 63 + "1"))
            self.assertEqual(len(record.version), 64)
            self.assertEqual(record.sort_key, encode_version_key("1"))

    def test_ingest_trims_whitespace_around_release_name(self) -> None:
        with self.session_factory() as db:
            record = ingest_release(db=db, program="server", payload=_event(" 1.4.2 "))

        self.assertEqual(record.version, "1.4.2")
        self.assertEqual(record.sort_key, encode_version_key("1.4.2"))

    def test_garbage_caller_version_shares_key_with_zero_release(self) -> None:
        self._seed("server", "1.0", is_latest=True)
        self._seed("server", "0.0.0", is_unstable=True)

        with self.session_factory() as db:
            result = check_version(db=db, program="server", caller_version="garbage", linker=RecordingLinker())

        self.assertFalse(result.is_latest)
        self.assertTrue(result.is_unstable)

    def test_check_version_fast_path_skips_other_lookups(self) -> None:
        self._seed("server", "1.4.2", is_latest=True)
        linker = RecordingLinker({"server"})

        with self.session_factory() as db, patch.object(release_registry, "get_release_by_version") as lookup:
            result = check_version(db=db, program="Server", caller_version="1.4.2", linker=linker)

        self.assertTrue(result.is_latest)
        lookup.assert_not_called()
        self.assertEqual(linker.calls, [])

    def test_check_version_for_older_known_release(self) -> None:
        self._seed("desktop", "1.5.0", is_latest=True)
        self._seed("desktop", "1.4.2", is_unstable=False)

        with self.session_factory() as db:
            result = check_version(db=db, program="desktop", caller_version="1.4.2", linker=RecordingLinker())

        self.assertFalse(result.is_latest)
        self.assertFalse(result.is_unstable)
        self.assertEqual(result.latest_version, encode_version_key("1.5.0"))
        self.assertEqual(result.download, "")

    def test_check_version_reports_unstable_caller_and_download(self) -> None:
        self._seed("server", "1.5.0", is_latest=True)
        self._seed("server", "1.6.0", is_unstable=True)
        linker = RecordingLinker({"server"})

        with self.session_factory() as db:
            result = check_version(db=db, program="server", caller_version="1.6.0", linker=linker)

        self.assertTrue(result.is_unstable)
        self.assertEqual(result.download, "https://artifacts.example/server/1.6.0.zip?sig=x")
        self.assertEqual(linker.calls, [("server", "1.6.0")])

    def test_check_version_unknown_caller_defaults_to_stable(self) -> None:
        self._seed("server", "1.5.0", is_latest=True)

        with self.session_factory() as db:
            result = check_version(db=db, program="server", caller_version="0.0.1", linker=RecordingLinker())

        self.assertFalse(result.is_latest)
        self.assertFalse(result.is_unstable)

    def test_check_version_without_latest_raises(self) -> None:
        self._seed("server", "1.5.0", is_unstable=True)

        with self.session_factory() as db:
            with self.assertRaises(ReleaseNotFoundError):
                check_version(db=db, program="server", caller_version="1.5.0", linker=RecordingLinker())
            with self.assertRaises(ReleaseNotFoundError):
                check_version(db=db, program="unknown", caller_version="1.0", linker=RecordingLinker())

    def test_group_release_notes_puts_bug_fixes_first(self) -> None:
        notes = [
            {"type": "Feature", "description": "B"},
            {"type": "Bug", "description": "A"},
            {"type": "Task", "description": "D"},
            {"type": "Bug", "description": "C"},
        ]

        self.assertEqual(
            group_release_notes(notes),
            [
                ReleaseNoteGroup(type="Bug fixes", changes=["A", "C"]),
                ReleaseNoteGroup(type="New features", changes=["B"]),
                ReleaseNoteGroup(type="New features", changes=["D"]),
            ],
        )
        self.assertEqual(group_release_notes([]), [])

    def test_changelog_keeps_store_order_and_download_rules(self) -> None:
        self._seed("server", "1.4.2", is_latest=True, notes=[{"type": "Feature", "description": "B"}])
        self._seed("server", "1.3.0", notes=[{"type": "Bug", "description": "old"}])
        self._seed("server", "1.6.0", is_unstable=True, notes=[{"type": "Bug", "description": "A"}])
        self._seed("server", "1.5.0", show_in_changelog=False)
        linker = RecordingLinker({"server"})

        with self.session_factory() as db:
            entries = build_changelog(db=db, program="SERVER", linker=linker)

        self.assertEqual([entry.version_stamp for entry in entries], ["1.6.0", "1.4.2", "1.3.0"])
        self.assertEqual([entry.version for entry in entries], [encode_version_key(v) for v in ["1.6.0", "1.4.2", "1.3.0"]])
        self.assertTrue(entries[0].unstable)
        self.assertTrue(entries[1].latest)
        self.assertTrue(entries[0].download_url.endswith("1.6.0.zip?sig=x"))
        self.assertTrue(entries[1].download_url.endswith("1.4.2.zip?sig=x"))
        self.assertEqual(entries[2].download_url, "")
        self.assertEqual(entries[2].release_notes, [ReleaseNoteGroup(type="Bug fixes", changes=["old"])])
        self.assertRegex(entries[0].date, r"^\d{4}-\d{2}-\d{2}$")
        self.assertEqual(linker.calls, [("server", "1.6.0"), ("server", "1.4.2")])

    def test_changelog_for_unknown_program_is_empty(self) -> None:
        with self.session_factory() as db:
            self.assertEqual(build_changelog(db=db, program="nothing", linker=RecordingLinker()), [])


if __name__ == "__main__":
    unittest.main()
