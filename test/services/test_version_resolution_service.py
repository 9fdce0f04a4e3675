from unittest.mock import MagicMock
import pytest
from ocm_bootstrap.errors import (
    ComponentNotFoundError,
    InvalidConstraintError,
    MalformedVersionError,
    VersionNotFoundError,
)
from ocm_bootstrap.services.version_resolution_service import VersionResolutionService
from ocm_bootstrap.utils.context import RunContext


@pytest.fixture
def repository():
    return MagicMock()


@pytest.fixture
def service(repository):
    svc = VersionResolutionService(repository)
    svc.logger = MagicMock()
    return svc


def test_first_match_in_listing_order(service, repository):
    repository.list_versions.return_value = ["v0.1.0", "v0.2.0", "v0.1.1"]
    assert service.resolve_version(RunContext(), "ocm.software/fluxcd", "v0.1.x") == "v0.1.0"


def test_listing_order_wins_over_highest(service, repository):
    repository.list_versions.return_value = ["v0.1.1", "v0.1.0"]
    assert service.resolve_version(RunContext(), "ocm.software/fluxcd", ">=0.1.0") == "v0.1.1"
    repository.list_versions.return_value = ["v0.1.0", "v0.1.1"]
    assert service.resolve_version(RunContext(), "ocm.software/fluxcd", ">=0.1.0") == "v0.1.0"


def test_resolve_fetches_with_listed_version_string(service, repository):
    repository.list_versions.return_value = ["v0.2.0", "v0.3.0"]
    cv = MagicMock()
    repository.get.return_value = cv
    assert service.resolve(RunContext(), "ocm.software/fluxcd", "~0.3") is cv
    assert repository.get.call_args[0] == ("ocm.software/fluxcd", "v0.3.0")


def test_malformed_version_anywhere_fails(service, repository):
    repository.list_versions.return_value = ["v0.1.0", "latest"]
    with pytest.raises(MalformedVersionError):
        service.resolve_version(RunContext(), "ocm.software/fluxcd", "v0.1.x")


def test_no_matching_version(service, repository):
    repository.list_versions.return_value = ["v0.1.0", "v0.2.0"]
    with pytest.raises(VersionNotFoundError):
        service.resolve_version(RunContext(), "ocm.software/fluxcd", ">=1.0.0")


def test_empty_version_list(service, repository):
    repository.list_versions.return_value = []
    with pytest.raises(VersionNotFoundError):
        service.resolve_version(RunContext(), "ocm.software/fluxcd", ">=0.0.0")


def test_invalid_constraint_before_listing(service, repository):
    with pytest.raises(InvalidConstraintError):
        service.resolve_version(RunContext(), "ocm.software/fluxcd", ">>1")
    repository.list_versions.assert_not_called()


def test_unknown_component(service, repository):
    repository.list_versions.side_effect = ComponentNotFoundError("not found")
    with pytest.raises(ComponentNotFoundError):
        service.resolve(RunContext(), "ocm.software/unknown", ">=0.0.0")
