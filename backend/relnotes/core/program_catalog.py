from __future__ import annotations

from dataclasses import dataclass, field

from relnotes.core.config import Settings

DEFAULT_ARTIFACT_NAME_TEMPLATE = "{display_name}.{version}.zip"


def normalize_program(program: str) -> str:
    return (program or "").strip().lower()


@dataclass(frozen=True)
class ProgramProfile:
    program: str
    distributable: bool
    display_name: str
    artifact_name_template: str = DEFAULT_ARTIFACT_NAME_TEMPLATE

    def artifact_name(self, version: str) -> str:
        return self.artifact_name_template.format(
            program=self.program,
            display_name=self.display_name,
            version=version,
        )


@dataclass
class ProgramCatalog:
    """Per-program download settings; unknown programs are metadata-only."""

    profiles: dict[str, ProgramProfile] = field(default_factory=dict)
    artifact_name_template: str = DEFAULT_ARTIFACT_NAME_TEMPLATE

    def profile_for(self, program: str) -> ProgramProfile:
        key = normalize_program(program)
        profile = self.profiles.get(key)
        if profile is not None:
            return profile
        return ProgramProfile(
            program=key,
            distributable=False,
            display_name=key.capitalize(),
            artifact_name_template=self.artifact_name_template,
        )

    def is_distributable(self, program: str) -> bool:
        return self.profile_for(program).distributable


def program_catalog_from_settings(settings: Settings) -> ProgramCatalog:
    template = settings.artifact_name_template or DEFAULT_ARTIFACT_NAME_TEMPLATE
    display_names = settings.program_display_names
    distributable = set(settings.distributable_programs)

    profiles: dict[str, ProgramProfile] = {}
    for program in sorted(distributable | set(display_names)):
        profiles[program] = ProgramProfile(
            program=program,
            distributable=program in distributable,
            display_name=display_names.get(program) or program.capitalize(),
            artifact_name_template=template,
        )
    return ProgramCatalog(profiles=profiles, artifact_name_template=template)
