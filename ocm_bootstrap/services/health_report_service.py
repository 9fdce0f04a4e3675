import logging
from typing import Any

from kubernetes import client

from ocm_bootstrap.clients.kube_client import KubeClient
from ocm_bootstrap.errors import ErrorList, HealthCheckTimeoutError, OperationCancelledError
from ocm_bootstrap.models.options import DEFAULT_POLL_INTERVAL
from ocm_bootstrap.utils.context import RunContext
from ocm_bootstrap.utils.logging import setup_logger
from ocm_bootstrap.utils.polling import poll_until


def deployment_ready(deployment: client.V1Deployment) -> bool:
    status = deployment.status
    if status is None:
        return False
    if (status.observed_generation or 0) < (deployment.metadata.generation or 0):
        return False
    replicas = deployment.spec.replicas if deployment.spec.replicas is not None else 1
    return (status.updated_replicas or 0) >= replicas and (status.available_replicas or 0) >= replicas


def ready_condition(obj: dict[str, Any]) -> dict[str, Any] | None:
    conditions = (obj.get("status") or {}).get("conditions") or []
    return next((c for c in conditions if c.get("type") == "Ready"), None)


class HealthReportService:
    def __init__(self, kube: KubeClient, poll_interval: float = DEFAULT_POLL_INTERVAL):
        self.kube: KubeClient = kube
        self.poll_interval: float = poll_interval
        self.logger: logging.Logger = setup_logger("HealthReportService")

    def verify(
        self, ctx: RunContext, sync_namespace: str, namespace: str, components: list[str], timeout: float
    ) -> None:
        """Run both health checks and report all of their failures together."""
        errors = ErrorList()
        checks = (
            lambda: self.report_sync_health(ctx, sync_namespace, sync_namespace, timeout),
            lambda: self.report_components_health(ctx, namespace, components, timeout),
        )
        for check in checks:
            try:
                check()
            except OperationCancelledError:
                raise
            except Exception as e:
                self.logger.error(f"Health check failed: {e}")
                errors.add(e)
        if not errors.is_empty():
            raise HealthCheckTimeoutError(errors)

    def report_sync_health(self, ctx: RunContext, name: str, namespace: str, timeout: float) -> None:
        self.logger.info(f"Waiting for Kustomization {namespace}/{name} to reconcile")
        poll_until(
            ctx,
            lambda: self._kustomization_state(name, namespace),
            f"Kustomization {namespace}/{name}",
            self.poll_interval,
            timeout,
        )
        self.logger.info(f"Kustomization {namespace}/{name} reconciled")

    def report_components_health(self, ctx: RunContext, namespace: str, components: list[str], timeout: float) -> None:
        if not components:
            return
        self.logger.info(f"Waiting for components {', '.join(components)} in {namespace} to become ready")
        poll_until(
            ctx,
            lambda: self._components_state(namespace, components),
            f"components in {namespace}",
            self.poll_interval,
            timeout,
        )
        self.logger.info(f"All components in {namespace} are healthy")

    def _kustomization_state(self, name: str, namespace: str) -> tuple[bool, str]:
        kustomization = self.kube.get_kustomization(name, namespace)
        if kustomization is None:
            return False, "not found"
        generation = (kustomization.get("metadata") or {}).get("generation")
        observed = (kustomization.get("status") or {}).get("observedGeneration")
        if generation is not None and observed != generation:
            return False, "reconciliation in progress"
        condition = ready_condition(kustomization)
        if condition is None:
            return False, "no Ready condition"
        message = f"{condition.get('reason', '')}: {condition.get('message', '')}"
        return condition.get("status") == "True", message

    def _components_state(self, namespace: str, components: list[str]) -> tuple[bool, str]:
        pending = []
        for name in components:
            deployment = self.kube.get_deployment(name, namespace)
            if deployment is None or not deployment_ready(deployment):
                pending.append(name)
        if pending:
            return False, f"not ready: {', '.join(pending)}"
        return True, "ready"
