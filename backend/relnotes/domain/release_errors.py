from __future__ import annotations


class ReleaseValidationError(ValueError):
    """Raised when a release event cannot be turned into a release record."""


class ReleaseConflictError(RuntimeError):
    """Raised when a program already has a record for the ingested version."""

    def __init__(self, program: str, version: str) -> None:
        super().__init__(f"release_already_exists:{program}:{version}")
        self.program = program
        self.version = version


class ReleaseNotFoundError(LookupError):
    """Raised when a program has no record flagged as latest."""

    def __init__(self, program: str) -> None:
        super().__init__(f"latest_release_not_found:{program}")
        self.program = program
