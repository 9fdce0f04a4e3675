import logging
from contextlib import contextmanager
from typing import Iterator

from ocm_bootstrap.clients.git_client import GitClient
from ocm_bootstrap.clients.kube_client import KubeClient
from ocm_bootstrap.clients.kustomize_client import KustomizeClient
from ocm_bootstrap.errors import HealthCheckTimeoutError, InstallError, OperationCancelledError
from ocm_bootstrap.models import InstallationRun, InstallOptions
from ocm_bootstrap.repositories import ComponentRepository
from ocm_bootstrap.services.cluster_apply_service import ClusterApplyService
from ocm_bootstrap.services.git_reconciliation_service import GitReconciliationService
from ocm_bootstrap.services.health_report_service import HealthReportService
from ocm_bootstrap.services.manifest_generation_service import ManifestGenerationService
from ocm_bootstrap.services.resource_extraction_service import ResourceExtractionService
from ocm_bootstrap.services.sync_reconciliation_service import SyncReconciliationService
from ocm_bootstrap.services.version_resolution_service import VersionResolutionService
from ocm_bootstrap.utils.context import RunContext
from ocm_bootstrap.utils.logging import setup_logger


class ComponentInstallService:
    """Installs one component version into the management repository and the cluster.

    The steps run in order: resolve the version, extract its resources,
    render the manifests, commit them, apply them when no sync object
    delivers them yet, reconcile the sync objects and wait for health.
    """

    def __init__(
        self,
        component_name: str,
        constraint: str,
        options: InstallOptions,
        repository: ComponentRepository,
        kube: KubeClient,
        kustomize: KustomizeClient | None = None,
        git: GitClient | None = None,
    ):
        self.component_name: str = component_name
        self.constraint: str = constraint
        self.options: InstallOptions = options.with_defaults()
        self.logger: logging.Logger = setup_logger("ComponentInstallService")

        git = git or GitClient(self.options.dir, self.options.username, self.options.token, self.options.transport)
        self.resolver: VersionResolutionService = VersionResolutionService(repository)
        self.extractor: ResourceExtractionService = ResourceExtractionService(repository)
        self.generator: ManifestGenerationService = ManifestGenerationService(
            kustomize or KustomizeClient(),
            self.options.default_image_host,
            self.options.strict_localization,
        )
        self.reconciler: GitReconciliationService = GitReconciliationService(git, self.options, SyncReconciliationService(kube))
        self.applier: ClusterApplyService = ClusterApplyService(kube)
        self.health: HealthReportService = HealthReportService(kube, self.options.poll_interval)

    def install(self, ctx: RunContext, component: str, resource_name: str | None = None) -> InstallationRun:
        """Install component; its manifests are read from the resource resource_name (default: component)."""
        run = InstallationRun(component=component, constraint=self.constraint)
        run.manifest_path = self.options.manifest_path()

        with self._step("resolve component version", run):
            run.component_version = self.resolver.resolve(ctx, self.component_name, self.constraint)
        self.logger.info(f"Installing {component} with version {run.version}")

        with self._step("extract resources", run):
            run.resources = self.extractor.extract(ctx, run.component_version, resource_name or component)

        with self._step("generate manifests", run, path=self.options.render_dir):
            run.manifest = self.generator.generate(
                ctx,
                run.resources.component_manifest,
                run.resources.ocm_config,
                run.resources.images,
                self.options.render_dir,
            )

        with self._step("reconcile repository", run, path=run.manifest_path):
            run.pushed = self.reconciler.reconcile(
                ctx,
                run.manifest_path,
                run.manifest.decode("utf-8"),
                f"Add {component} {run.version} component manifests",
            )

        with self._step("apply components", run, path=run.manifest_path):
            run.applied = self.applier.apply_components(
                ctx, self.options.dir, run.manifest_path, self.options.sync_namespace
            )

        if self.options.sync:
            with self._step("reconcile sync configuration", run):
                self.reconciler.reconcile_sync(ctx)

        try:
            self.health.verify(
                ctx,
                self.options.sync_namespace,
                self.options.namespace,
                run.resources.components,
                self.options.timeout,
            )
        except HealthCheckTimeoutError as e:
            for error in e.errors:
                run.health_errors.add(error)
            raise InstallError("verify health", e, component, run.version) from e

        self.logger.info(f"Installed {component} {run.version}")
        return run

    @contextmanager
    def _step(self, operation: str, run: InstallationRun, path: str | None = None) -> Iterator[None]:
        try:
            yield
        except (OperationCancelledError, InstallError):
            raise
        except Exception as e:
            raise InstallError(operation, e, run.component, run.version, path) from e
