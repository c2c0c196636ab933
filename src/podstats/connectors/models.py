"""Raw objects produced by connectors, before normalization."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from podstats.exceptions import MalformedMarkerError


class ContainerSpec(BaseModel):
    """Declared resources of one container (quantity strings, e.g. "128Mi")."""

    name: str
    requests: dict[str, str] = Field(default_factory=dict)
    limits: dict[str, str] = Field(default_factory=dict)


class ContainerUsage(BaseModel):
    """Observed resource consumption of one container."""

    name: str
    usage: dict[str, str] = Field(default_factory=dict)


class WorkloadSpecSnapshot(BaseModel):
    """Resource requests and limits declared by a pod."""

    tag: Literal["workload_spec"] = "workload_spec"
    name: str
    namespace: str
    labels: dict[str, str] = Field(default_factory=dict)
    created_at: datetime | None = None
    containers: list[ContainerSpec] = Field(default_factory=list)


class UsageSnapshot(BaseModel):
    """One metrics-server sample for a pod."""

    tag: Literal["usage"] = "usage"
    name: str
    namespace: str
    labels: dict[str, str] = Field(default_factory=dict)
    timestamp: datetime | None = None
    window: str | None = None
    containers: list[ContainerUsage] = Field(default_factory=list)


RawObject = Annotated[
    Union[WorkloadSpecSnapshot, UsageSnapshot],
    Field(discriminator="tag"),
]


class ResumeMarker(BaseModel):
    """Bookmark event from a watch stream.

    Carries the raw bookmark object; the resume token is read from
    ``metadata.resourceVersion`` by whoever owns the stream's token.
    """

    payload: dict[str, Any] = Field(default_factory=dict)

    def token(self) -> str:
        """Return the resume token, raising MalformedMarkerError if absent."""
        metadata = self.payload.get("metadata")
        if not isinstance(metadata, dict):
            raise MalformedMarkerError("bookmark has no metadata")
        version = metadata.get("resourceVersion")
        if not isinstance(version, str) or not version:
            raise MalformedMarkerError(f"bookmark has no usable resourceVersion: {version!r}")
        return version


class ListOptions(BaseModel):
    """Options passed to Lister.list.

    ``allow_bookmarks`` asks for best-effort consistency bookmarks; sources
    that cannot honour it on a plain list ignore it.
    """

    allow_bookmarks: bool = True
    label_selector: str | None = None
    limit: int | None = Field(default=None, ge=1)


class WatchOptions(BaseModel):
    """Options passed to Watcher.watch."""

    resume_token: str = ""
    allow_bookmarks: bool = True
    label_selector: str | None = None
