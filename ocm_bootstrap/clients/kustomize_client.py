import logging
import subprocess

from ocm_bootstrap.errors import TemplatingError

logger = logging.getLogger(__name__)


class KustomizeClient:
    def __init__(self, binary: str = "kustomize"):
        self.binary: str = binary

    def build(self, directory: str, timeout: float | None = None) -> bytes:
        cmd = [self.binary, "build", directory]
        try:
            result = subprocess.run(cmd, check=False, capture_output=True, timeout=timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise TemplatingError(f"kustomize build failed: {e}") from e
        if result.returncode != 0:
            stderr = result.stderr.decode(errors="replace").strip()
            logger.error(f"kustomize build exited with code {result.returncode}")
            raise TemplatingError(f"kustomize build failed: {stderr}")
        return result.stdout
