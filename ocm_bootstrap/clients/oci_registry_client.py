import logging
import re
from typing import Any, BinaryIO
from urllib.parse import urljoin

import requests

from ocm_bootstrap.errors import RegistryError, RegistryNotFoundError

logger = logging.getLogger(__name__)

MANIFEST_MEDIA_TYPES = ", ".join([
    "application/vnd.oci.image.manifest.v1+json",
    "application/vnd.docker.distribution.manifest.v2+json",
])

_CHALLENGE_PARAM_RE = re.compile(r'(\w+)="([^"]*)"')
_NEXT_LINK_RE = re.compile(r'<([^>]+)>;\s*rel="next"')


class OCIRegistryClient:
    """Read-only client of the OCI distribution API of one registry host."""

    def __init__(
        self,
        registry_url: str,
        username: str | None = None,
        password: str | None = None,
        timeout: float = 30,
    ):
        if "://" not in registry_url:
            registry_url = f"https://{registry_url}"
        self.registry_url: str = registry_url.rstrip("/")
        self.timeout: float = timeout
        self.session: requests.Session = requests.Session()
        self._credentials: tuple[str, str] | None = (username, password or "") if username else None
        self._tokens: dict[str, str] = {}

    def list_tags(self, repository: str, timeout: float | None = None) -> list[str]:
        """Return the tags of a repository in the order the registry lists them."""
        tags: list[str] = []
        url: str | None = f"{self.registry_url}/v2/{repository}/tags/list"
        while url:
            response = self._get(repository, url, timeout=timeout)
            if response.status_code == 404:
                raise RegistryNotFoundError(f"repository {repository} not found")
            self._raise_for_status(response, f"list tags of {repository}")
            tags.extend(response.json().get("tags") or [])
            url = self._next_page(response)
        return tags

    def get_manifest(self, repository: str, reference: str, timeout: float | None = None) -> dict[str, Any]:
        url = f"{self.registry_url}/v2/{repository}/manifests/{reference}"
        response = self._get(repository, url, headers={"Accept": MANIFEST_MEDIA_TYPES}, timeout=timeout)
        if response.status_code == 404:
            raise RegistryNotFoundError(f"manifest {repository}:{reference} not found")
        self._raise_for_status(response, f"get manifest {repository}:{reference}")
        return response.json()

    def get_blob(self, repository: str, digest: str, timeout: float | None = None) -> bytes:
        response = self._get(repository, f"{self.registry_url}/v2/{repository}/blobs/{digest}", timeout=timeout)
        self._raise_for_status(response, f"get blob {repository}@{digest}")
        return response.content

    def open_blob(self, repository: str, digest: str, timeout: float | None = None) -> BinaryIO:
        """Stream a blob; the caller closes the returned stream."""
        response = self._get(repository, f"{self.registry_url}/v2/{repository}/blobs/{digest}", timeout=timeout, stream=True)
        self._raise_for_status(response, f"get blob {repository}@{digest}")
        response.raw.decode_content = True
        return response.raw

    def _get(self, repository: str, url: str, **kwargs) -> requests.Response:
        try:
            return self._request("GET", repository, url, **kwargs)
        except requests.RequestException as e:
            raise RegistryError(f"request to {url} failed: {e}") from e

    def _request(
        self,
        method: str,
        repository: str,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        stream: bool = False,
    ) -> requests.Response:
        headers = dict(headers or {})
        token = self._tokens.get(repository)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        timeout = timeout or self.timeout
        response = self.session.request(method, url, headers=headers, timeout=timeout, stream=stream)
        if response.status_code == 401 and "WWW-Authenticate" in response.headers:
            challenge = response.headers["WWW-Authenticate"]
            if challenge.lower().startswith("bearer"):
                self._tokens[repository] = self._fetch_token(challenge, repository, timeout)
                headers["Authorization"] = f"Bearer {self._tokens[repository]}"
            elif self._credentials:
                return self.session.request(
                    method, url, headers=headers, auth=self._credentials, timeout=timeout, stream=stream
                )
            else:
                return response
            response = self.session.request(method, url, headers=headers, timeout=timeout, stream=stream)
        return response

    def _fetch_token(self, challenge: str, repository: str, timeout: float) -> str:
        params = dict(_CHALLENGE_PARAM_RE.findall(challenge))
        realm = params.pop("realm", None)
        if not realm:
            raise RegistryError(f"authentication challenge without realm: {challenge}")
        params.setdefault("scope", f"repository:{repository}:pull")
        logger.debug(f"Fetching registry token for {repository} from {realm}")
        try:
            response = self.session.get(realm, params=params, auth=self._credentials, timeout=timeout)
        except requests.RequestException as e:
            raise RegistryError(f"failed to fetch registry token from {realm}: {e}") from e
        self._raise_for_status(response, f"fetch registry token for {repository}")
        body = response.json()
        token = body.get("token") or body.get("access_token")
        if not token:
            raise RegistryError(f"no token in response of {realm}")
        return token

    def _next_page(self, response: requests.Response) -> str | None:
        match = _NEXT_LINK_RE.search(response.headers.get("Link", ""))
        if not match:
            return None
        return urljoin(self.registry_url, match.group(1))

    @staticmethod
    def _raise_for_status(response: requests.Response, action: str) -> None:
        if response.status_code >= 400:
            raise RegistryError(f"failed to {action}: status code {response.status_code}")
