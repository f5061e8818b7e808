from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import ConfigDict, field_validator

from .common import ServiceModel


class ArtifactKind(str, Enum):
    DUMP = "Dump"
    GC_DUMP = "GCDump"
    TRACE = "Trace"
    LOGS = "Logs"
    METRICS = "Metrics"
    EXCEPTIONS = "Exceptions"

    @classmethod
    def _missing_(cls, value: object) -> "ArtifactKind | None":
        if isinstance(value, str):
            lowered = value.lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        return None

    @classmethod
    def parse(cls, value: "ArtifactKind | str") -> "ArtifactKind | str":
        """Map a known kind to its member; unknown kinds pass through as plain strings."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return value

    def __str__(self) -> str:
        return self.value


def artifact_kind_segment(kind: ArtifactKind | str) -> str:
    return kind.value if isinstance(kind, ArtifactKind) else str(kind)


@dataclass(frozen=True, slots=True)
class UploadToken:
    """Blob URI carrying a time-limited write credential."""

    blob_uri: str


class ArtifactAccepted(ServiceModel):
    model_config = ConfigDict(extra="allow")

    artifact_id: str | None = None
    artifact_kind: ArtifactKind | str | None = None

    @field_validator("artifact_kind", mode="before")
    @classmethod
    def _parse_kind(cls, value: Any) -> Any:
        if isinstance(value, str):
            return ArtifactKind.parse(value)
        return value


class AppProfile(ServiceModel):
    model_config = ConfigDict(extra="allow")

    app_id: str | None = None
    i_key: str | None = None
