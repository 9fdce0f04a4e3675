import base64
import logging
import subprocess
from typing import Any

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException

from ocm_bootstrap.errors import ApplyError

logger = logging.getLogger(__name__)

KUSTOMIZATION_GROUP = "kustomize.toolkit.fluxcd.io"
KUSTOMIZATION_VERSION = "v1"
KUSTOMIZATION_PLURAL = "kustomizations"
FIELD_MANAGER = "ocm-bootstrap"


class KubeClient:
    """Cluster access: reads and secrets through the API, manifests through kubectl."""

    def __init__(self, kubeconfig: str | None = None, context: str | None = None, kubectl: str = "kubectl"):
        self.kubeconfig: str | None = kubeconfig
        self.context: str | None = context
        self.kubectl: str = kubectl
        self._api_client: client.ApiClient | None = None

    @property
    def api_client(self) -> client.ApiClient:
        if self._api_client is None:
            self._api_client = config.new_client_from_config(config_file=self.kubeconfig, context=self.context)
        return self._api_client

    def get_kustomization(self, name: str, namespace: str) -> dict[str, Any] | None:
        api = client.CustomObjectsApi(self.api_client)
        try:
            return api.get_namespaced_custom_object(
                KUSTOMIZATION_GROUP, KUSTOMIZATION_VERSION, namespace, KUSTOMIZATION_PLURAL, name
            )
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    def get_deployment(self, name: str, namespace: str) -> client.V1Deployment | None:
        api = client.AppsV1Api(self.api_client)
        try:
            return api.read_namespaced_deployment(name, namespace)
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    def apply_secret(self, name: str, namespace: str, string_data: dict[str, str]) -> None:
        api = client.CoreV1Api(self.api_client)
        body = client.V1Secret(
            metadata=client.V1ObjectMeta(name=name, namespace=namespace),
            type="Opaque",
            data={k: base64.b64encode(v.encode()).decode() for k, v in string_data.items()},
        )
        try:
            api.read_namespaced_secret(name, namespace)
        except ApiException as e:
            if e.status != 404:
                raise
            self._ensure_namespace(namespace)
            api.create_namespaced_secret(namespace, body)
            logger.info(f"Created secret {namespace}/{name}")
            return
        api.replace_namespaced_secret(name, namespace, body)
        logger.info(f"Updated secret {namespace}/{name}")

    def apply(self, path: str, kustomize: bool = False, timeout: float | None = None) -> str:
        """Server-side apply a manifest file, or a kustomization directory when kustomize is set."""
        cmd = [self.kubectl, "apply", "--server-side", "--force-conflicts", f"--field-manager={FIELD_MANAGER}"]
        cmd += ["-k", path] if kustomize else ["-f", path]
        if self.kubeconfig:
            cmd.append(f"--kubeconfig={self.kubeconfig}")
        if self.context:
            cmd.append(f"--context={self.context}")
        try:
            result = subprocess.run(cmd, check=False, capture_output=True, text=True, timeout=timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ApplyError(f"failed to apply {path}: {e}") from e
        if result.returncode != 0:
            logger.error(f"kubectl apply exited with code {result.returncode}")
            raise ApplyError(f"failed to apply {path}: {result.stderr.strip()}")
        return result.stdout

    def _ensure_namespace(self, namespace: str) -> None:
        api = client.CoreV1Api(self.api_client)
        try:
            api.create_namespace(client.V1Namespace(metadata=client.V1ObjectMeta(name=namespace)))
            logger.info(f"Created namespace {namespace}")
        except ApiException as e:
            if e.status != 409:
                raise
