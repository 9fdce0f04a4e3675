from unittest.mock import MagicMock
import pytest
from github import GithubException, UnknownObjectException
from ocm_bootstrap.clients.github_client import GitHubProvider, split_sub_organizations
from ocm_bootstrap.errors import ProviderError


@pytest.fixture
def provider(monkeypatch):
    monkeypatch.setattr("ocm_bootstrap.clients.github_client.Github", MagicMock())
    return GitHubProvider("fake-token")


def test_missing_token():
    with pytest.raises(EnvironmentError):
        GitHubProvider("")


def test_split_sub_organizations():
    assert split_sub_organizations("a/b/repo") == (["a", "b"], "repo")
    assert split_sub_organizations("repo") == ([], "repo")


def test_reconcile_existing_repository(provider):
    repo = MagicMock()
    provider.client.get_repo.return_value = repo
    assert provider.reconcile_repository("acme", "management", False, "desc", "main", "private") is repo
    provider.client.get_organization.assert_not_called()


def test_reconcile_creates_org_repository(provider):
    provider.client.get_repo.side_effect = UnknownObjectException(404, {}, {})
    repo = MagicMock(default_branch="main")
    provider.client.get_organization.return_value.create_repo.return_value = repo
    assert provider.reconcile_repository("acme", "management", False, "desc", "main", "private") is repo
    provider.client.get_organization.assert_called_once_with("acme")
    kwargs = provider.client.get_organization.return_value.create_repo.call_args.kwargs
    assert kwargs["private"] is True
    assert kwargs["auto_init"] is True
    repo.edit.assert_not_called()


def test_reconcile_creates_personal_repository_with_branch(provider):
    provider.client.get_repo.side_effect = UnknownObjectException(404, {}, {})
    repo = MagicMock(default_branch="master")
    provider.client.get_user.return_value.create_repo.return_value = repo
    provider.reconcile_repository("alice", "management", True, "desc", "main", "public")
    assert provider.client.get_user.return_value.create_repo.call_args.kwargs["private"] is False
    repo.create_git_ref.assert_called_once()
    repo.edit.assert_called_once_with(default_branch="main")


def test_reconcile_failure(provider):
    provider.client.get_repo.side_effect = GithubException(500, {}, {})
    with pytest.raises(ProviderError):
        provider.reconcile_repository("acme", "management", False, "desc", "main", "private")


def test_sub_organizations_not_supported(provider):
    with pytest.raises(ProviderError):
        provider.reconcile_repository("acme", "team/management", False, "desc", "main", "private")


def test_clone_url(provider):
    repo = MagicMock(clone_url="https://github.com/acme/management.git")
    assert provider.clone_url(repo, "https") == "https://github.com/acme/management.git"
    with pytest.raises(ProviderError):
        provider.clone_url(repo, "ssh")


def test_delete_requires_destructive(provider):
    repo = MagicMock(full_name="acme/management")
    with pytest.raises(ProviderError):
        provider.delete_repository(repo)
    provider.destructive = True
    provider.delete_repository(repo)
    repo.delete.assert_called_once()
