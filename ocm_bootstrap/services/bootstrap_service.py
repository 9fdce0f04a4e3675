import logging
import os
import tempfile
from typing import override

from pydantic.dataclasses import dataclass

from ocm_bootstrap.clients.kube_client import KubeClient
from ocm_bootstrap.clients.kustomize_client import KustomizeClient
from ocm_bootstrap.clients.provider_registry import GitProvider, ProviderOptions, ProviderRegistry
from ocm_bootstrap.errors import InvalidInputError, NotFoundError
from ocm_bootstrap.models import BootstrapOptions, ComponentReference, InstallationRun, InstallOptions
from ocm_bootstrap.repositories import ComponentRepository, OCIComponentRepository
from ocm_bootstrap.services.install_service import ComponentInstallService
from ocm_bootstrap.services.service import Service
from ocm_bootstrap.services.version_resolution_service import VersionResolutionService
from ocm_bootstrap.utils.context import RunContext
from ocm_bootstrap.utils.logging import setup_logger

SYNC_NAMESPACE = "flux-system"


@dataclass(frozen=True)
class InstallProfile:
    namespace: str
    resource: str
    sync: bool


PROFILES: dict[str, InstallProfile] = {
    "flux": InstallProfile(namespace=SYNC_NAMESPACE, resource="flux", sync=True),
    "ocm-controller": InstallProfile(namespace="ocm-system", resource="ocm-controller-file", sync=False),
}


class BootstrapService(Service):
    """Creates the management repository and installs the bootstrap components into it."""

    def __init__(
        self,
        options: BootstrapOptions,
        providers: ProviderRegistry,
        repository: ComponentRepository | None = None,
        kube: KubeClient | None = None,
        kustomize: KustomizeClient | None = None,
        ctx: RunContext | None = None,
    ):
        self.options: BootstrapOptions = options.with_defaults()
        self.provider: GitProvider = providers.build(
            ProviderOptions(
                provider=self.options.provider,
                token=self.options.token,
                hostname=self.options.hostname,
                destructive=self.options.destructive,
            )
        )
        self.repository: ComponentRepository = repository or OCIComponentRepository(
            self.options.registry, self.options.registry_username, self.options.registry_password
        )
        self.kube: KubeClient = kube or KubeClient(self.options.kubeconfig or None, self.options.kube_context or None)
        self.kustomize: KustomizeClient = kustomize or KustomizeClient()
        self.ctx: RunContext = ctx or RunContext()
        self.logger: logging.Logger = setup_logger("BootstrapService")
        self.management_repository = None
        self.url: str = ""
        self.runs: list[InstallationRun] = []

    @override
    def run(self) -> None:
        if self.options.from_file:
            raise InvalidInputError("bootstrap from file is not supported yet")
        self.logger.info(f"Running bootstrap of {self.options.owner}/{self.options.repository_name}")

        self.reconcile_management_repository()
        references = self.fetch_bootstrap_component_references()

        for component, reference in references:
            self.logger.info(f"Installing {component} with version {reference.version}")
            with tempfile.TemporaryDirectory(prefix=f"{component}-install-") as tmp:
                self.runs.append(self.install_component(component, reference, tmp))

        self.logger.info("Bootstrap completed successfully")

    def reconcile_management_repository(self) -> None:
        """Get or create the management repository and remember its clone URL."""
        self.management_repository = self.provider.reconcile_repository(
            self.options.owner,
            self.options.repository_name,
            self.options.personal,
            self.options.description,
            self.options.default_branch,
            self.options.visibility,
        )
        self.url = self.provider.clone_url(self.management_repository, self.options.transport_type)
        self.logger.info(f"Management repository {self.url} is ready")

    def fetch_bootstrap_component_references(self) -> list[tuple[str, ComponentReference]]:
        """Resolve the bootstrap component and return its references to the requested components.

        The references keep the order of the requested components.
        """
        for component in self.options.components:
            if component not in PROFILES:
                raise InvalidInputError(f"unknown component {component!r}")
        resolver = VersionResolutionService(self.repository)
        bootstrap = resolver.resolve(self.ctx, self.options.bootstrap_component, self.options.bootstrap_version)
        references = []
        for component in self.options.components:
            reference = bootstrap.find_reference(component)
            if reference is None:
                raise NotFoundError(
                    f"component {bootstrap.name}:{bootstrap.version} has no reference to {component}"
                )
            references.append((component, reference))
        return references

    def install_component(self, component: str, reference: ComponentReference, work_dir: str) -> InstallationRun:
        profile = PROFILES[component]
        install_options = InstallOptions(
            url=self.url,
            namespace=profile.namespace,
            dir=os.path.join(work_dir, "repository"),
            render_dir=os.path.join(work_dir, "render"),
            branch=self.options.default_branch,
            target_path=self.options.target,
            username=self.options.owner,
            token=self.options.token,
            transport=self.options.transport_type,
            commit_message_appendix=self.options.commit_message_appendix,
            interval=self.options.interval,
            timeout=self.options.timeout,
            sync=profile.sync,
            sync_namespace=SYNC_NAMESPACE,
        )
        installer = ComponentInstallService(
            reference.component_name,
            reference.version,
            install_options,
            self.repository,
            self.kube,
            self.kustomize,
        )
        return installer.install(self.ctx, component, profile.resource)

    def delete_management_repository(self) -> None:
        if self.management_repository is None:
            raise InvalidInputError("management repository is not set")
        self.provider.delete_repository(self.management_repository)
