from unittest.mock import MagicMock
import pytest
from kubernetes import client
from kubernetes.client.exceptions import ApiException
from ocm_bootstrap.errors import ConvergenceTimeoutError, HealthCheckTimeoutError, OperationCancelledError
from ocm_bootstrap.services.health_report_service import HealthReportService, deployment_ready
from ocm_bootstrap.utils.context import RunContext

READY_KUSTOMIZATION = {
    "metadata": {"generation": 2},
    "status": {
        "observedGeneration": 2,
        "conditions": [{"type": "Ready", "status": "True", "reason": "ReconciliationSucceeded", "message": "Applied"}],
    },
}


def make_deployment(replicas=1, updated=1, available=1, generation=1, observed=1):
    return client.V1Deployment(
        metadata=client.V1ObjectMeta(name="source-controller", generation=generation),
        spec=client.V1DeploymentSpec(
            replicas=replicas,
            selector=client.V1LabelSelector(match_labels={"app": "source-controller"}),
            template=client.V1PodTemplateSpec(),
        ),
        status=client.V1DeploymentStatus(
            replicas=replicas,
            updated_replicas=updated,
            available_replicas=available,
            observed_generation=observed,
        ),
    )


@pytest.fixture
def kube():
    k = MagicMock()
    k.get_kustomization.return_value = READY_KUSTOMIZATION
    k.get_deployment.return_value = make_deployment()
    return k


@pytest.fixture
def service(kube):
    svc = HealthReportService(kube, poll_interval=0.01)
    svc.logger = MagicMock()
    return svc


@pytest.mark.parametrize("deployment,expected", [
    (make_deployment(), True),
    (make_deployment(replicas=2, updated=2, available=1), False),
    (make_deployment(updated=0), False),
    (make_deployment(generation=3, observed=2), False),
])
def test_deployment_ready(deployment, expected):
    assert deployment_ready(deployment) is expected


def test_verify_healthy(service, kube):
    service.verify(RunContext(), "flux-system", "flux-system", ["source-controller", "kustomize-controller"], timeout=1)
    kube.get_kustomization.assert_called_with("flux-system", "flux-system")
    assert kube.get_deployment.call_count == 2


def test_sync_not_ready_still_checks_components(service, kube):
    kube.get_kustomization.return_value = {
        "metadata": {"generation": 1},
        "status": {"observedGeneration": 1, "conditions": [{"type": "Ready", "status": "False", "reason": "BuildFailed", "message": "kustomize build failed"}]},
    }
    with pytest.raises(HealthCheckTimeoutError) as exc:
        service.verify(RunContext(), "flux-system", "flux-system", ["source-controller"], timeout=0.05)
    assert len(exc.value.errors) == 1
    assert isinstance(exc.value.errors[0], ConvergenceTimeoutError)
    assert "BuildFailed" in str(exc.value)
    assert str(exc.value).startswith("failed to report health, please try again later")
    kube.get_deployment.assert_called_with("source-controller", "flux-system")


def test_both_checks_fail(service, kube):
    kube.get_kustomization.return_value = None
    kube.get_deployment.return_value = None
    with pytest.raises(HealthCheckTimeoutError) as exc:
        service.verify(RunContext(), "flux-system", "ocm-system", ["ocm-controller"], timeout=0.05)
    assert len(exc.value.errors) == 2


def test_components_pending_reported(service, kube):
    kube.get_deployment.return_value = make_deployment(available=0)
    with pytest.raises(HealthCheckTimeoutError, match="not ready: source-controller"):
        service.verify(RunContext(), "flux-system", "flux-system", ["source-controller"], timeout=0.05)


def test_api_errors_are_aggregated(service, kube):
    kube.get_kustomization.side_effect = ApiException(status=500)
    with pytest.raises(HealthCheckTimeoutError) as exc:
        service.verify(RunContext(), "flux-system", "flux-system", ["source-controller"], timeout=1)
    assert isinstance(exc.value.errors[0], ApiException)


def test_stale_generation_is_not_ready(service, kube):
    kube.get_kustomization.return_value = {**READY_KUSTOMIZATION, "metadata": {"generation": 3}}
    with pytest.raises(HealthCheckTimeoutError, match="reconciliation in progress"):
        service.verify(RunContext(), "flux-system", "flux-system", [], timeout=0.05)


def test_cancellation_is_not_aggregated(service, kube):
    ctx = RunContext()
    ctx.cancel()
    with pytest.raises(OperationCancelledError):
        service.verify(ctx, "flux-system", "flux-system", ["source-controller"], timeout=1)
    kube.get_deployment.assert_not_called()
