import logging
import os
import posixpath
from typing import Any

from kubernetes.client.exceptions import ApiException

from ocm_bootstrap.clients.kube_client import KUSTOMIZATION_GROUP, KUSTOMIZATION_VERSION, KubeClient
from ocm_bootstrap.errors import ApplyError
from ocm_bootstrap.models import InstallOptions
from ocm_bootstrap.services.manifest_generation_service import (
    COMPONENTS_FILE,
    KUSTOMIZATION_API_VERSION,
    KUSTOMIZATION_FILE,
)
from ocm_bootstrap.utils.context import RunContext
from ocm_bootstrap.utils.logging import setup_logger
from ocm_bootstrap.utils.yaml_loader import dump_all_yaml, dump_yaml

SYNC_FILE = "gotk-sync.yaml"
SOURCE_API_VERSION = "source.toolkit.fluxcd.io/v1"
SYNC_KUSTOMIZATION_INTERVAL = 600.0
SECRET_USERNAME = "git"
APPLY_TIMEOUT = 120.0


def go_duration(seconds: float) -> str:
    """Format seconds the way Go prints a time.Duration, e.g. 1m0s."""
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m{secs}s"
    return f"{secs}s"


class SyncReconciliationService:
    def __init__(self, kube: KubeClient):
        self.kube: KubeClient = kube
        self.logger: logging.Logger = setup_logger("SyncReconciliationService")

    def reconcile_source_secret(self, ctx: RunContext, options: InstallOptions) -> None:
        ctx.check()
        try:
            self.kube.apply_secret(
                options.sync_namespace,
                options.sync_namespace,
                {"username": SECRET_USERNAME, "password": options.token},
            )
        except ApiException as e:
            raise ApplyError(f"failed to reconcile source secret: {e.reason}") from e

    def reconcile_sync_config(self, ctx: RunContext, options: InstallOptions, reconciler) -> None:
        """Commit the sync manifests next to the components and apply them to the cluster."""
        directory = posixpath.normpath(posixpath.join(options.target_path, options.sync_namespace))
        files = {
            posixpath.join(directory, SYNC_FILE): dump_all_yaml(self.sync_manifests(options)),
            posixpath.join(directory, KUSTOMIZATION_FILE): dump_yaml(self.kustomization()),
        }
        reconciler.commit_and_push(ctx, files, "Add Flux sync manifests")
        ctx.check()
        self.logger.info(f"Applying sync manifests of {directory}")
        self.kube.apply(os.path.join(reconciler.git.path, directory), kustomize=True, timeout=ctx.timeout(APPLY_TIMEOUT))

    def sync_manifests(self, options: InstallOptions) -> list[dict[str, Any]]:
        name = namespace = options.sync_namespace
        path = "./" if options.target_path == "." else f"./{options.target_path.removeprefix('./')}"
        git_repository = {
            "apiVersion": SOURCE_API_VERSION,
            "kind": "GitRepository",
            "metadata": {"name": name, "namespace": namespace},
            "spec": {
                "interval": go_duration(options.interval),
                "ref": {"branch": options.branch},
                "secretRef": {"name": name},
                "url": options.test_url or options.url,
            },
        }
        kustomization = {
            "apiVersion": f"{KUSTOMIZATION_GROUP}/{KUSTOMIZATION_VERSION}",
            "kind": "Kustomization",
            "metadata": {"name": name, "namespace": namespace},
            "spec": {
                "interval": go_duration(SYNC_KUSTOMIZATION_INTERVAL),
                "path": path,
                "prune": True,
                "sourceRef": {"kind": "GitRepository", "name": name},
            },
        }
        return [git_repository, kustomization]

    @staticmethod
    def kustomization() -> dict[str, Any]:
        return {
            "apiVersion": KUSTOMIZATION_API_VERSION,
            "kind": "Kustomization",
            "resources": [COMPONENTS_FILE, SYNC_FILE],
        }
