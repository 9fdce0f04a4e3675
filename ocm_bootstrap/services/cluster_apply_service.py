import logging
import os

from kubernetes.client.exceptions import ApiException

from ocm_bootstrap.clients.kube_client import KubeClient
from ocm_bootstrap.services.manifest_generation_service import KUSTOMIZATION_FILE
from ocm_bootstrap.utils.context import RunContext
from ocm_bootstrap.utils.logging import setup_logger

APPLY_TIMEOUT = 300.0


class ClusterApplyService:
    def __init__(self, kube: KubeClient):
        self.kube: KubeClient = kube
        self.logger: logging.Logger = setup_logger("ClusterApplyService")

    def must_install_manifests(self, name: str, namespace: str) -> bool:
        """Manifests go straight to the cluster until a sync object has applied a revision."""
        try:
            kustomization = self.kube.get_kustomization(name, namespace)
        except ApiException as e:
            self.logger.warning(f"Failed to look up Kustomization {namespace}/{name}: {e.reason}")
            return True
        if kustomization is None:
            return True
        return not (kustomization.get("status") or {}).get("lastAppliedRevision")

    def apply_components(self, ctx: RunContext, repository_path: str, manifest_path: str, sync_namespace: str) -> bool:
        """Apply the committed manifests when no sync agent delivers them yet; returns whether it applied."""
        if not self.must_install_manifests(sync_namespace, sync_namespace):
            self.logger.info(f"Kustomization {sync_namespace}/{sync_namespace} is in place, skipping apply")
            return False
        ctx.check()
        components_yaml = os.path.join(repository_path, manifest_path)
        directory = os.path.dirname(components_yaml)
        if os.path.isfile(os.path.join(directory, KUSTOMIZATION_FILE)):
            # the kustomization carries the patches of the components
            self.logger.info(f"Applying components and patches of {directory}")
            self.kube.apply(directory, kustomize=True, timeout=ctx.timeout(APPLY_TIMEOUT))
        else:
            self.logger.info(f"Applying {components_yaml}")
            self.kube.apply(components_yaml, timeout=ctx.timeout(APPLY_TIMEOUT))
        return True
