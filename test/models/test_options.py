from ocm_bootstrap.models import BootstrapOptions, InstallOptions


def test_install_options_defaults():
    options = InstallOptions(url="https://example.com/repo.git", namespace="flux-system", dir="/tmp/repo").with_defaults()
    assert options.branch == "main"
    assert options.target_path == "."
    assert options.render_dir == "/tmp/repo.render"
    assert options.commit_author == "Flux"
    assert options.default_image_host == "ghcr.io/fluxcd"
    assert options.sync_namespace == "flux-system"
    assert options.manifest_path() == "flux-system/gotk-components.yaml"


def test_install_options_keep_explicit_values():
    options = InstallOptions(
        url="https://example.com/repo.git",
        namespace="ocm-system",
        dir="/tmp/repo",
        target_path="/clusters/dev/",
        branch="develop",
        sync_namespace="flux-system",
    ).with_defaults()
    assert options.branch == "develop"
    assert options.sync_namespace == "flux-system"
    assert options.manifest_path() == "clusters/dev/ocm-system/gotk-components.yaml"


def test_bootstrap_options_defaults():
    options = BootstrapOptions(owner="acme", repository_name="management", registry="ghcr.io/acme").with_defaults()
    assert options.provider == "github"
    assert options.visibility == "private"
    assert options.components == ("flux", "ocm-controller")
    assert options.bootstrap_version == ">=0.0.0"
