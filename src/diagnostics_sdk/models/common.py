from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class ServiceModel(BaseModel):
    """Wire record exchanged with the ingestion service.

    Property names are camelCase on the wire and matched case-insensitively on
    read, so `iKey`, `ikey` and `IKEY` all populate `i_key`.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _match_keys_case_insensitively(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        known: dict[str, str] = {}
        for name, field in cls.model_fields.items():
            alias = field.alias or name
            known[name.lower()] = alias
            known[alias.lower()] = alias
        return {known.get(str(key).lower(), key): value for key, value in data.items()}

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ServiceErrorDetail(ServiceModel):
    code: str | None = None
    message: str | None = None


class ErrorResponse(ServiceModel):
    error: ServiceErrorDetail | None = None


@dataclass(frozen=True, slots=True)
class ETag:
    """Opaque blob version token, only ever compared for equality by the service."""

    value: str

    def header_value(self) -> str:
        # HTTP header form: quoted unless already quoted, weak or the wildcard.
        if self.value == "*" or self.value.startswith('"') or self.value.startswith("W/"):
            return self.value
        return f'"{self.value}"'

    def __str__(self) -> str:
        return self.value
