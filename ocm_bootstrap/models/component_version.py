from typing import Any

from pydantic.dataclasses import dataclass

from .resource import Resource


@dataclass(frozen=True)
class ComponentReference:
    name: str
    component_name: str
    version: str


@dataclass(frozen=True)
class ComponentVersion:
    name: str
    version: str
    resources: list[Resource]
    references: list[ComponentReference]

    @classmethod
    def from_descriptor(cls, data: dict[str, Any]) -> "ComponentVersion":
        """Build from a component descriptor document, schema v2 or v3alpha1."""
        if "component" in data:
            component = data["component"]
            name, version = component["name"], component["version"]
            resources = component.get("resources") or []
            references = component.get("componentReferences") or []
        else:
            metadata, spec = data["metadata"], data.get("spec") or {}
            name, version = metadata["name"], metadata["version"]
            resources = spec.get("resources") or []
            references = spec.get("references") or []
        return cls(
            name=name,
            version=version,
            resources=[
                Resource(name=r["name"], type=r["type"], access=dict(r.get("access") or {}), version=r.get("version"))
                for r in resources
            ],
            references=[
                ComponentReference(name=r["name"], component_name=r["componentName"], version=r["version"])
                for r in references
            ],
        )

    def find_reference(self, name: str) -> ComponentReference | None:
        return next((r for r in self.references if r.name == name), None)
