from typing import Callable, Protocol

from pydantic.dataclasses import dataclass

from ocm_bootstrap.clients.github_client import GitHubProvider
from ocm_bootstrap.errors import InvalidInputError

PROVIDER_GITHUB = "github"


@dataclass(frozen=True)
class ProviderOptions:
    provider: str
    token: str
    hostname: str = ""
    destructive: bool = False


class GitProvider(Protocol):
    def reconcile_repository(
        self, owner: str, name: str, personal: bool, description: str, default_branch: str, visibility: str
    ): ...

    def clone_url(self, repo, transport: str) -> str: ...

    def delete_repository(self, repo) -> None: ...


ProviderFactory = Callable[[ProviderOptions], GitProvider]


class ProviderRegistry:
    """Maps provider names to the factories building their clients."""

    def __init__(self):
        self._factories: dict[str, ProviderFactory] = {}

    def register(self, name: str, factory: ProviderFactory) -> None:
        self._factories[name] = factory

    def names(self) -> list[str]:
        return sorted(self._factories)

    def build(self, options: ProviderOptions) -> GitProvider:
        factory = self._factories.get(options.provider)
        if factory is None:
            supported = ", ".join(self.names()) or "none"
            raise InvalidInputError(f"provider {options.provider} not supported, supported providers: {supported}")
        return factory(options)


def _github_factory(options: ProviderOptions) -> GitProvider:
    return GitHubProvider(options.token, hostname=options.hostname or None, destructive=options.destructive)


def default_provider_registry() -> ProviderRegistry:
    registry = ProviderRegistry()
    registry.register(PROVIDER_GITHUB, _github_factory)
    return registry
