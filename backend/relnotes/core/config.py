from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Release Notes API"
    database_url: str = "sqlite+pysqlite:///./release_notes.db"
    artifact_bucket: str = "releases"
    artifact_region: str | None = None
    artifact_endpoint_url: str | None = None
    artifact_access_key_id: str | None = None
    artifact_secret_access_key: str | None = None
    artifact_link_ttl_hours: int = 24
    artifact_name_template: str = "{display_name}.{version}.zip"
    distributable_programs_csv: str = "server"
    program_display_names_csv: str = ""
    cors_allowed_origins_csv: str = ""

    @property
    def cors_allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_allowed_origins_csv.split(",") if origin.strip()]

    @property
    def distributable_programs(self) -> list[str]:
        return [name.strip().lower() for name in self.distributable_programs_csv.split(",") if name.strip()]

    @property
    def program_display_names(self) -> dict[str, str]:
        names: dict[str, str] = {}
        for part in self.program_display_names_csv.split(","):
            program, sep, display_name = part.partition("=")
            if not sep or not program.strip() or not display_name.strip():
                continue
            names[program.strip().lower()] = display_name.strip()
        return names


@lru_cache
def get_settings() -> Settings:
    return Settings()
