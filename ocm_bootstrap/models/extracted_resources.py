from pydantic.dataclasses import dataclass

from .name_tag import NameTag


@dataclass(frozen=True)
class ExtractedResources:
    component_manifest: bytes
    ocm_config: bytes
    images: dict[str, NameTag]
    components: list[str]
