from dataclasses import dataclass, field

from ocm_bootstrap.errors import ErrorList

from .component_version import ComponentVersion
from .extracted_resources import ExtractedResources


@dataclass
class InstallationRun:
    component: str
    constraint: str
    component_version: ComponentVersion | None = None
    resources: ExtractedResources | None = None
    manifest: bytes | None = None
    manifest_path: str | None = None
    pushed: bool = False
    applied: bool = False
    health_errors: ErrorList = field(default_factory=ErrorList)

    @property
    def version(self) -> str | None:
        return self.component_version.version if self.component_version else None
