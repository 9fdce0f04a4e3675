import io
import json
import os
import tarfile
from unittest.mock import MagicMock
import pytest
from ocm_bootstrap.errors import (
    ComponentNotFoundError,
    RegistryNotFoundError,
    ResourceAccessError,
    VersionNotFoundError,
)
from ocm_bootstrap.models import Resource
from ocm_bootstrap.repositories import OCIComponentRepository
from ocm_bootstrap.repositories.component_repository import from_tag, to_tag

ASSETS_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "assets")
DESCRIPTOR_MEDIA_TYPE = "application/vnd.ocm.software.component-descriptor.v2+yaml+tar"


def descriptor_tar():
    with open(os.path.join(ASSETS_DIR, "component-descriptor.yaml"), "rb") as f:
        data = f.read()
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as archive:
        info = tarfile.TarInfo("component-descriptor.yaml")
        info.size = len(data)
        archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


@pytest.fixture
def repository():
    repo = OCIComponentRepository("ghcr.io/open-component-model/mpas-bootstrap-component")
    repo.client = MagicMock()
    return repo


def test_location_is_split_into_host_and_base():
    repo = OCIComponentRepository("http://localhost:5000/ocm")
    assert repo.client.registry_url == "http://localhost:5000"
    assert repo.repository_of("ocm.software/fluxcd") == "ocm/component-descriptors/ocm.software/fluxcd"


def test_tag_mapping():
    assert to_tag("v1.0.0+build.1") == "v1.0.0.build-build.1"
    assert from_tag("v1.0.0.build-build.1") == "v1.0.0+build.1"


def test_list_versions(repository):
    repository.client.list_tags.return_value = ["v0.1.0", "v0.2.0.build-1"]
    assert repository.list_versions("ocm.software/fluxcd") == ["v0.1.0", "v0.2.0+1"]
    repository.client.list_tags.assert_called_once_with(
        "open-component-model/mpas-bootstrap-component/component-descriptors/ocm.software/fluxcd", timeout=None
    )


def test_list_versions_unknown_component(repository):
    repository.client.list_tags.side_effect = RegistryNotFoundError("not found")
    with pytest.raises(ComponentNotFoundError):
        repository.list_versions("ocm.software/unknown")


def test_get_reads_descriptor_layer(repository):
    layer = {"digest": "sha256:layer", "mediaType": DESCRIPTOR_MEDIA_TYPE}
    repository.client.get_manifest.return_value = {"config": {"digest": "sha256:config"}, "layers": [layer]}
    blobs = {
        "sha256:config": json.dumps({"componentDescriptorLayer": layer}).encode(),
        "sha256:layer": descriptor_tar(),
    }
    repository.client.get_blob.side_effect = lambda repo, digest, timeout=None: blobs[digest]
    cv = repository.get("ocm.software/fluxcd", "v2.1.0")
    assert cv.name == "ocm.software/fluxcd"
    assert cv.version == "v2.1.0"
    assert len(cv.resources) == 4


def test_get_unknown_version(repository):
    repository.client.get_manifest.side_effect = RegistryNotFoundError("not found")
    with pytest.raises(VersionNotFoundError):
        repository.get("ocm.software/fluxcd", "v9.9.9")


def test_open_local_blob(repository):
    cv = MagicMock()
    cv.name = "ocm.software/fluxcd"
    resource = Resource(name="flux", type="file", access={"type": "localBlob", "localReference": "sha256:abc"})
    repository.open_resource(cv, resource)
    repository.client.open_blob.assert_called_once_with(
        "open-component-model/mpas-bootstrap-component/component-descriptors/ocm.software/fluxcd",
        "sha256:abc",
        timeout=None,
    )


def test_open_unsupported_access(repository):
    resource = Resource(name="image", type="ociImage", access={"type": "ociArtifact", "imageReference": "a:b"})
    with pytest.raises(ResourceAccessError):
        repository.open_resource(MagicMock(), resource)
