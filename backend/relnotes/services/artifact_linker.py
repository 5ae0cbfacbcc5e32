from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import boto3
from botocore.config import Config as BotoConfig

from relnotes.core.config import Settings, get_settings
from relnotes.core.program_catalog import ProgramCatalog, program_catalog_from_settings

DEFAULT_LINK_TTL = timedelta(hours=24)


@dataclass(frozen=True)
class ArtifactRef:
    bucket: str
    key: str


class ArtifactLinker:
    """Issues short-lived read-only download links for release artifacts."""

    def __init__(
        self,
        *,
        client: Any,
        bucket: str,
        catalog: ProgramCatalog,
        ttl: timedelta = DEFAULT_LINK_TTL,
    ) -> None:
        self.client = client
        self.bucket = bucket
        self.catalog = catalog
        self.ttl = ttl

    def object_ref(self, name: str) -> ArtifactRef:
        return ArtifactRef(bucket=self.bucket, key=name)

    def issue_read_url(self, ref: ArtifactRef, ttl: timedelta) -> str:
        return self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": ref.bucket, "Key": ref.key},
            ExpiresIn=int(ttl.total_seconds()),
        )

    def link_for(self, program: str, version: str) -> str:
        profile = self.catalog.profile_for(program)
        if not profile.distributable:
            return ""
        ref = self.object_ref(profile.artifact_name(version))
        return self.issue_read_url(ref, self.ttl)


def build_s3_client(settings: Settings):
    return boto3.client(
        "s3",
        region_name=settings.artifact_region,
        endpoint_url=settings.artifact_endpoint_url,
        aws_access_key_id=settings.artifact_access_key_id,
        aws_secret_access_key=settings.artifact_secret_access_key,
        config=BotoConfig(signature_version="s3v4"),
    )


def build_artifact_linker(settings: Settings | None = None) -> ArtifactLinker:
    settings = settings or get_settings()
    return ArtifactLinker(
        client=build_s3_client(settings),
        bucket=settings.artifact_bucket,
        catalog=program_catalog_from_settings(settings),
        ttl=timedelta(hours=settings.artifact_link_ttl_hours),
    )


def get_artifact_linker() -> ArtifactLinker:
    return build_artifact_linker()
