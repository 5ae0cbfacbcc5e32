"""Inbound release-event payload posted by the release pipeline."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Column widths of releases.version and releases.program.
VERSION_MAX_LENGTH = 64
PROGRAM_MAX_LENGTH = 128


class WorkItemFields(BaseModel):
    work_item_type: str = Field(alias="System.WorkItemType")
    title: str = Field(alias="System.Title")


class WorkItem(BaseModel):
    fields: WorkItemFields


class ReleaseEventData(BaseModel):
    work_items: list[WorkItem] = Field(default_factory=list, alias="workItems")


class ReleaseInfo(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str = Field(min_length=1, max_length=VERSION_MAX_LENGTH)


class ReleaseEnvironment(BaseModel):
    release: ReleaseInfo


class ReleaseEventResource(BaseModel):
    data: ReleaseEventData = Field(default_factory=ReleaseEventData)
    environment: ReleaseEnvironment


class ReleaseEvent(BaseModel):
    resource: ReleaseEventResource

    @property
    def version(self) -> str:
        return self.resource.environment.release.name.strip()

    def release_notes(self) -> list[dict[str, str]]:
        return [
            {"description": item.fields.title, "type": item.fields.work_item_type}
            for item in self.resource.data.work_items
        ]
