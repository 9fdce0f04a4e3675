from typing import Any

from pydantic.dataclasses import dataclass

from ocm_bootstrap.errors import InvalidConfigDataError
from ocm_bootstrap.utils.yaml_loader import load_yaml


@dataclass(frozen=True)
class ResourceRef:
    name: str


@dataclass(frozen=True)
class LocalizationRule:
    name: str
    file: str
    resource: ResourceRef
    image: str | None = None
    repository: str | None = None
    tag: str | None = None


@dataclass(frozen=True)
class ConfigData:
    localization: list[LocalizationRule]

    @classmethod
    def parse(cls, data: bytes | str) -> "ConfigData":
        try:
            document: Any = load_yaml(data)
        except Exception as e:
            raise InvalidConfigDataError(f"failed to decode config data: {e}") from e
        if document is None:
            document = {}
        if not isinstance(document, dict):
            raise InvalidConfigDataError("failed to decode config data: expected a mapping")
        try:
            return cls(localization=document.get("localization") or [])
        except Exception as e:
            raise InvalidConfigDataError(f"failed to decode config data: {e}") from e
