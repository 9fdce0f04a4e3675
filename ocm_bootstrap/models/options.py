import posixpath
from dataclasses import replace

from pydantic.dataclasses import dataclass

DEFAULT_BRANCH = "main"
DEFAULT_VISIBILITY = "private"
DEFAULT_TRANSPORT = "https"
DEFAULT_DESCRIPTION = "Management repository for the Open Component Model"
DEFAULT_IMAGE_HOST = "ghcr.io/fluxcd"
DEFAULT_COMMIT_AUTHOR = "Flux"
DEFAULT_PROVIDER = "github"
DEFAULT_BOOTSTRAP_COMPONENT = "ocm.software/mpas/bootstrap"
DEFAULT_BOOTSTRAP_VERSION = ">=0.0.0"
DEFAULT_COMPONENTS = ("flux", "ocm-controller")
DEFAULT_INTERVAL = 60.0
DEFAULT_TIMEOUT = 300.0
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_CLONE_RETRY_DELAY = 2.0


@dataclass(frozen=True)
class InstallOptions:
    """Settings of a single component installation.

    url: clone URL of the management repository.
    namespace: cluster namespace of the component; also names the
        directory below target_path that holds its manifests.
    dir: local directory of the Git working copy.
    render_dir: directory for the kustomize rendering, defaults to <dir>.render.
    branch: branch to clone, commit to and sync from.
    target_path: path inside the repository the cluster syncs.
    username / token: credentials for Git over HTTP(S) and the source secret.
    transport: "https" or "http"; "http" allows credentials over plain HTTP.
    test_url: replaces url in the generated sync source, for e2e setups
        where the cluster reaches the repository under another address.
    commit_message_appendix: appended to every commit message.
    commit_author: author name of the commits.
    default_image_host: host the manifests reference images under; image
        overrides are computed for <default_image_host>/<resource name>.
    interval: reconcile interval of the generated sync objects, in seconds.
    timeout: bound of every health check, in seconds.
    poll_interval: delay between two health checks, in seconds.
    clone_retry_delay: wait before the single clone retry, in seconds.
    strict_localization: fail on localization rules without image resource.
    sync: whether to reconcile the source secret and sync configuration.
    sync_namespace: namespace and name of the sync objects that deliver the
        repository to the cluster, defaults to namespace.
    """

    url: str
    namespace: str
    dir: str
    render_dir: str = ""
    branch: str = ""
    target_path: str = ""
    username: str = ""
    token: str = ""
    transport: str = ""
    test_url: str = ""
    commit_message_appendix: str = ""
    commit_author: str = ""
    default_image_host: str = ""
    interval: float = 0
    timeout: float = 0
    poll_interval: float = 0
    clone_retry_delay: float = 0
    strict_localization: bool = False
    sync: bool = True
    sync_namespace: str = ""

    def with_defaults(self) -> "InstallOptions":
        return replace(
            self,
            render_dir=self.render_dir or f"{self.dir.rstrip('/')}.render",
            branch=self.branch or DEFAULT_BRANCH,
            target_path=self.target_path.strip("/") or ".",
            transport=self.transport or DEFAULT_TRANSPORT,
            commit_author=self.commit_author or DEFAULT_COMMIT_AUTHOR,
            default_image_host=self.default_image_host or DEFAULT_IMAGE_HOST,
            interval=self.interval or DEFAULT_INTERVAL,
            timeout=self.timeout or DEFAULT_TIMEOUT,
            poll_interval=self.poll_interval or DEFAULT_POLL_INTERVAL,
            clone_retry_delay=self.clone_retry_delay or DEFAULT_CLONE_RETRY_DELAY,
            sync_namespace=self.sync_namespace or self.namespace,
        )

    def manifest_path(self, file_name: str = "gotk-components.yaml") -> str:
        return posixpath.normpath(posixpath.join(self.target_path, self.namespace, file_name))


@dataclass(frozen=True)
class BootstrapOptions:
    """Settings of a bootstrap run.

    owner / repository_name: location of the management repository; the
        name may carry sub-organisations separated by "/".
    personal: the owner is a user instead of an organisation.
    registry: OCI location of the component repository, e.g.
        ghcr.io/open-component-model/mpas-bootstrap-component.
    components: components to install, in installation order.
    from_file: install from a component archive; not supported.
    """

    owner: str
    repository_name: str
    registry: str
    token: str = ""
    provider: str = ""
    hostname: str = ""
    description: str = ""
    default_branch: str = ""
    visibility: str = ""
    personal: bool = False
    target: str = ""
    from_file: str = ""
    transport_type: str = ""
    registry_username: str = ""
    registry_password: str = ""
    kubeconfig: str = ""
    kube_context: str = ""
    components: tuple[str, ...] = ()
    bootstrap_component: str = ""
    bootstrap_version: str = ""
    commit_message_appendix: str = ""
    interval: float = 0
    timeout: float = 0
    destructive: bool = False

    def with_defaults(self) -> "BootstrapOptions":
        return replace(
            self,
            provider=self.provider or DEFAULT_PROVIDER,
            description=self.description or DEFAULT_DESCRIPTION,
            default_branch=self.default_branch or DEFAULT_BRANCH,
            visibility=self.visibility or DEFAULT_VISIBILITY,
            transport_type=self.transport_type or DEFAULT_TRANSPORT,
            target=self.target.rstrip("/"),
            components=self.components or DEFAULT_COMPONENTS,
            bootstrap_component=self.bootstrap_component or DEFAULT_BOOTSTRAP_COMPONENT,
            bootstrap_version=self.bootstrap_version or DEFAULT_BOOTSTRAP_VERSION,
            interval=self.interval or DEFAULT_INTERVAL,
            timeout=self.timeout or DEFAULT_TIMEOUT,
        )
