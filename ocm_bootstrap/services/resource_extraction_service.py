import logging

from ocm_bootstrap.errors import (
    BootstrapError,
    MalformedImageReferenceError,
    MissingRequiredResourceError,
    ResourceAccessError,
)
from ocm_bootstrap.models import ComponentVersion, ExtractedResources, NameTag, Resource
from ocm_bootstrap.repositories import ComponentRepository
from ocm_bootstrap.utils.compression import auto_decompress
from ocm_bootstrap.utils.context import RunContext
from ocm_bootstrap.utils.logging import setup_logger

OCM_CONFIG_RESOURCE = "ocm-config"
REQUEST_TIMEOUT = 60.0


class ResourceExtractionService:
    def __init__(self, repository: ComponentRepository):
        self.repository: ComponentRepository = repository
        self.logger: logging.Logger = setup_logger("ResourceExtractionService")

    def extract(self, ctx: RunContext, component_version: ComponentVersion, component_name: str) -> ExtractedResources:
        component_manifest: bytes | None = None
        ocm_config: bytes | None = None
        images: dict[str, NameTag] = {}
        components: list[str] = []

        for resource in component_version.resources:
            ctx.check()
            if resource.name == component_name:
                component_manifest = self.read_resource(ctx, component_version, resource)
            elif resource.name == OCM_CONFIG_RESOURCE:
                ocm_config = self.read_resource(ctx, component_version, resource)
            elif resource.is_image:
                reference = resource.image_reference
                if not reference:
                    raise MalformedImageReferenceError(f"image resource {resource.name} has no image reference")
                images[resource.name] = NameTag.from_reference(reference)
                components.append(resource.name)

        coordinates = f"{component_version.name}:{component_version.version}"
        if not component_manifest:
            raise MissingRequiredResourceError(f"resource {component_name} not found in {coordinates}")
        if not ocm_config:
            raise MissingRequiredResourceError(f"resource {OCM_CONFIG_RESOURCE} not found in {coordinates}")
        self.logger.info(f"Extracted {component_name} manifests and {len(images)} image resources from {coordinates}")
        return ExtractedResources(
            component_manifest=component_manifest,
            ocm_config=ocm_config,
            images=images,
            components=components,
        )

    def read_resource(self, ctx: RunContext, component_version: ComponentVersion, resource: Resource) -> bytes:
        stream = self.repository.open_resource(component_version, resource, timeout=ctx.timeout(REQUEST_TIMEOUT))
        try:
            reader, decompressed = auto_decompress(stream)
            if decompressed:
                self.logger.debug(f"Decompressing resource {resource.name}")
            with reader:
                return reader.read()
        except BootstrapError:
            raise
        except Exception as e:
            raise ResourceAccessError(f"failed to read resource {resource.name}: {e}") from e
        finally:
            stream.close()
