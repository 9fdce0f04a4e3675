from pydantic.dataclasses import dataclass

from ocm_bootstrap.errors import MalformedImageReferenceError


@dataclass(frozen=True)
class NameTag:
    name: str
    tag: str

    @classmethod
    def from_reference(cls, reference: str) -> "NameTag":
        """Split an image reference such as ghcr.io/fluxcd/source-controller:v1.0.0 on its last colon."""
        if "@" in reference:
            raise MalformedImageReferenceError(f"image reference {reference!r} is pinned by digest, a tag is required")
        name, sep, tag = reference.rpartition(":")
        # a colon followed by a path belongs to a registry port, not a tag
        if not sep or not name or not tag or "/" in tag:
            raise MalformedImageReferenceError(f"image reference {reference!r} has no tag")
        return cls(name=name, tag=tag)

    def __str__(self) -> str:
        return f"{self.name}:{self.tag}"
