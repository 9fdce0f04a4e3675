import logging

from github import Auth, Github, GithubException, UnknownObjectException
from github.Repository import Repository

from ocm_bootstrap.errors import ProviderError

logger = logging.getLogger(__name__)


def split_sub_organizations(name: str) -> tuple[list[str], str]:
    elements = name.split("/")
    return elements[:-1], elements[-1]


class GitHubProvider:
    def __init__(self, token: str, hostname: str | None = None, destructive: bool = False):
        if not token:
            logger.error("A GitHub token is mandatory")
            raise EnvironmentError("Missing GitHub token")
        base_url = f"https://{hostname}/api/v3" if hostname and hostname != "github.com" else "https://api.github.com"
        self.client: Github = Github(auth=Auth.Token(token), base_url=base_url)
        self.destructive: bool = destructive

    def reconcile_repository(
        self,
        owner: str,
        name: str,
        personal: bool,
        description: str,
        default_branch: str,
        visibility: str,
    ) -> Repository:
        """Return the repository owner/name, creating it when it does not exist."""
        sub_orgs, repo_name = split_sub_organizations(name)
        if sub_orgs:
            raise ProviderError(f"GitHub does not support sub-organizations in {name}")
        full_name = f"{owner}/{repo_name}"
        try:
            return self.client.get_repo(full_name)
        except UnknownObjectException:
            logger.info(f"Repository {full_name} not found, creating it")
        except GithubException as e:
            raise ProviderError(f"failed to get Git repository {full_name}: {e}") from e

        try:
            account = self.client.get_user() if personal else self.client.get_organization(owner)
            repo = account.create_repo(
                repo_name,
                description=description,
                private=visibility != "public",
                auto_init=True,
            )
            if default_branch and repo.default_branch != default_branch:
                head = repo.get_branch(repo.default_branch).commit.sha
                repo.create_git_ref(f"refs/heads/{default_branch}", head)
                repo.edit(default_branch=default_branch)
        except GithubException as e:
            raise ProviderError(f"failed to create new Git repository {full_name}: {e}") from e
        logger.info(f"Created repository {full_name}")
        return repo

    def clone_url(self, repo: Repository, transport: str) -> str:
        if transport == "ssh":
            raise ProviderError("SSH transport is not supported")
        return repo.clone_url

    def delete_repository(self, repo: Repository) -> None:
        if not self.destructive:
            raise ProviderError(f"refusing to delete {repo.full_name} without destructive actions enabled")
        try:
            repo.delete()
        except GithubException as e:
            raise ProviderError(f"failed to delete management repository {repo.full_name}: {e}") from e
        logger.info(f"Deleted repository {repo.full_name}")
