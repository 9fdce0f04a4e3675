import logging
import os
from typing import Any

from ocm_bootstrap.clients.kustomize_client import KustomizeClient
from ocm_bootstrap.errors import ManifestSerializationError, MissingImageResourceError
from ocm_bootstrap.models import ConfigData, NameTag
from ocm_bootstrap.models.options import DEFAULT_IMAGE_HOST
from ocm_bootstrap.utils.context import RunContext
from ocm_bootstrap.utils.locks import directory_lock
from ocm_bootstrap.utils.logging import setup_logger
from ocm_bootstrap.utils.yaml_loader import dump_yaml

COMPONENTS_FILE = "gotk-components.yaml"
KUSTOMIZATION_FILE = "kustomization.yaml"
KUSTOMIZATION_API_VERSION = "kustomize.config.k8s.io/v1beta1"
BUILD_TIMEOUT = 120.0


class ManifestGenerationService:
    def __init__(
        self,
        kustomize: KustomizeClient,
        default_image_host: str = DEFAULT_IMAGE_HOST,
        strict_localization: bool = False,
    ):
        self.kustomize: KustomizeClient = kustomize
        self.default_image_host: str = default_image_host
        self.strict_localization: bool = strict_localization
        self.logger: logging.Logger = setup_logger("ManifestGenerationService")

    def generate(
        self,
        ctx: RunContext,
        component_manifest: bytes,
        ocm_config: bytes,
        images: dict[str, NameTag],
        work_dir: str,
    ) -> bytes:
        """Render the component manifest with its images localized to the extracted references."""
        config = ConfigData.parse(ocm_config)
        kustomization = self.kustomization(config, images)
        os.makedirs(work_dir, exist_ok=True)
        with directory_lock(work_dir):
            with open(os.path.join(work_dir, COMPONENTS_FILE), "wb") as f:
                f.write(component_manifest)
            try:
                content = dump_yaml(kustomization)
            except Exception as e:
                raise ManifestSerializationError(f"failed to serialize kustomization: {e}") from e
            with open(os.path.join(work_dir, KUSTOMIZATION_FILE), "w") as f:
                f.write(content)
            ctx.check()
            return self.kustomize.build(work_dir, timeout=ctx.timeout(BUILD_TIMEOUT))

    def kustomization(self, config: ConfigData, images: dict[str, NameTag]) -> dict[str, Any]:
        kustomization: dict[str, Any] = {
            "apiVersion": KUSTOMIZATION_API_VERSION,
            "kind": "Kustomization",
            "resources": [f"./{COMPONENTS_FILE}"],
        }
        overrides: list[dict[str, str]] = []
        seen: set[str] = set()
        for rule in config.localization:
            resource_name = rule.resource.name
            image = images.get(resource_name)
            if image is None:
                if self.strict_localization:
                    raise MissingImageResourceError(
                        f"localization {rule.name} references unknown image resource {resource_name}"
                    )
                self.logger.warning(f"Skipping localization {rule.name}: no image resource {resource_name}")
                continue
            name = f"{self.default_image_host}/{resource_name}"
            # several rules may localize the same image in different fields
            if name in seen:
                continue
            seen.add(name)
            overrides.append({"name": name, "newName": image.name, "newTag": image.tag})
        if overrides:
            kustomization["images"] = overrides
        return kustomization
