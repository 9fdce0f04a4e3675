from typing import Any

from pydantic.dataclasses import dataclass

OCI_IMAGE_TYPE = "ociImage"
LOCAL_BLOB_ACCESS = "localBlob"


@dataclass(frozen=True)
class Resource:
    name: str
    type: str
    access: dict[str, Any]
    version: str | None = None

    @property
    def access_type(self) -> str:
        # access types may carry a version suffix, e.g. localBlob/v1
        return str(self.access.get("type", "")).split("/")[0]

    @property
    def is_image(self) -> bool:
        return self.type == OCI_IMAGE_TYPE

    @property
    def image_reference(self) -> str | None:
        return self.access.get("imageReference")
