import io
import json
import logging
import tarfile
from typing import Any, BinaryIO, Protocol

from ruamel.yaml import YAML

from ocm_bootstrap.clients.oci_registry_client import OCIRegistryClient
from ocm_bootstrap.errors import (
    ComponentNotFoundError,
    RegistryError,
    RegistryNotFoundError,
    ResourceAccessError,
    VersionNotFoundError,
)
from ocm_bootstrap.models import ComponentVersion, Resource
from ocm_bootstrap.models.resource import LOCAL_BLOB_ACCESS
from ocm_bootstrap.utils.yaml_loader import get_yaml_instance

logger = logging.getLogger(__name__)

DESCRIPTORS_PREFIX = "component-descriptors"
DESCRIPTOR_FILE = "component-descriptor.yaml"


class ComponentRepository(Protocol):
    def list_versions(self, name: str, timeout: float | None = None) -> list[str]: ...

    def get(self, name: str, version: str, timeout: float | None = None) -> ComponentVersion: ...

    def open_resource(
        self, component_version: ComponentVersion, resource: Resource, timeout: float | None = None
    ) -> BinaryIO: ...


def to_tag(version: str) -> str:
    # OCI tags cannot carry "+", build metadata is stored as ".build-"
    return version.replace("+", ".build-")


def from_tag(tag: str) -> str:
    return tag.replace(".build-", "+")


class OCIComponentRepository:
    """Component versions stored in an OCI registry following the OCM mapping.

    A descriptor of component c at version v lives in
    <base>/component-descriptors/c:v; its local blobs are layers of the same
    artifact, addressed by digest.
    """

    def __init__(self, location: str, username: str | None = None, password: str | None = None):
        host, _, base = location.removeprefix("https://").removeprefix("http://").partition("/")
        scheme = "http://" if location.startswith("http://") else "https://"
        self.base: str = base.strip("/")
        self.client: OCIRegistryClient = OCIRegistryClient(f"{scheme}{host}", username, password)
        self.yaml: YAML = get_yaml_instance()

    def repository_of(self, name: str) -> str:
        return "/".join(p for p in (self.base, DESCRIPTORS_PREFIX, name) if p)

    def list_versions(self, name: str, timeout: float | None = None) -> list[str]:
        try:
            tags = self.client.list_tags(self.repository_of(name), timeout=timeout)
        except RegistryNotFoundError as e:
            raise ComponentNotFoundError(f"component {name} not found") from e
        return [from_tag(t) for t in tags]

    def get(self, name: str, version: str, timeout: float | None = None) -> ComponentVersion:
        repository = self.repository_of(name)
        try:
            manifest = self.client.get_manifest(repository, to_tag(version), timeout=timeout)
        except RegistryNotFoundError as e:
            raise VersionNotFoundError(f"component version {name}:{version} not found") from e
        layer = self._descriptor_layer(repository, manifest, timeout)
        data = self.client.get_blob(repository, layer["digest"], timeout=timeout)
        descriptor = self._decode_descriptor(data, layer.get("mediaType", ""))
        try:
            return ComponentVersion.from_descriptor(descriptor)
        except Exception as e:
            raise RegistryError(f"invalid component descriptor of {name}:{version}: {e}") from e

    def open_resource(
        self, component_version: ComponentVersion, resource: Resource, timeout: float | None = None
    ) -> BinaryIO:
        if resource.access_type != LOCAL_BLOB_ACCESS:
            raise ResourceAccessError(
                f"access type {resource.access_type!r} of resource {resource.name} is not supported"
            )
        digest = resource.access.get("localReference")
        if not digest:
            raise ResourceAccessError(f"resource {resource.name} has no local reference")
        logger.debug(f"Opening resource {resource.name} of {component_version.name}:{component_version.version}")
        try:
            return self.client.open_blob(self.repository_of(component_version.name), digest, timeout=timeout)
        except RegistryError as e:
            raise ResourceAccessError(f"failed to access resource {resource.name}: {e}") from e

    def _descriptor_layer(self, repository: str, manifest: dict[str, Any], timeout: float | None) -> dict[str, Any]:
        config = manifest.get("config") or {}
        if config.get("digest"):
            config_data = json.loads(self.client.get_blob(repository, config["digest"], timeout=timeout))
            layer = (config_data or {}).get("componentDescriptorLayer")
            if layer:
                return layer
        layers = manifest.get("layers") or []
        if not layers:
            raise RegistryError(f"no component descriptor layer in {repository}")
        return layers[0]

    def _decode_descriptor(self, data: bytes, media_type: str) -> dict[str, Any]:
        if media_type.endswith("+tar") or media_type.endswith("tar"):
            with tarfile.open(fileobj=io.BytesIO(data)) as archive:
                try:
                    member = archive.extractfile(DESCRIPTOR_FILE)
                except KeyError as e:
                    raise RegistryError(f"{DESCRIPTOR_FILE} not found in descriptor layer") from e
                if member is None:
                    raise RegistryError(f"{DESCRIPTOR_FILE} is not a file")
                data = member.read()
        if media_type.endswith("+json"):
            return json.loads(data)
        return self.yaml.load(data.decode("utf-8"))
