"""npm registry lookups."""

from __future__ import annotations

from urllib.parse import quote

import requests
from requests import Response

DEFAULT_REGISTRY_URL = "https://registry.npmjs.org"
DEFAULT_TIMEOUT_SECONDS = 5.0

# abbreviated packument
ACCEPT = "application/vnd.npm.install-v1+json; q=1.0, application/json; q=0.8"


class RegistryError(RuntimeError):
    """Raised when the registry cannot be queried or returns an unexpected payload."""


# single attempt; callers report a failure instead of retrying
def _http_get(url: str, timeout: float) -> Response:
    return requests.get(url, headers={"Accept": ACCEPT}, timeout=timeout)


def packument_url(name: str, registry_url: str = DEFAULT_REGISTRY_URL) -> str:
    # scoped names keep the leading "@" but encode the slash
    return f"{registry_url.rstrip('/')}/{quote(name, safe='@')}"


def fetch_published_versions(
    name: str,
    registry_url: str = DEFAULT_REGISTRY_URL,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> list[str] | None:
    """Return the versions already published for ``name``.

    Returns None when the registry does not know the package (first publish).
    """
    url = packument_url(name, registry_url)
    try:
        response = _http_get(url, timeout)
    except requests.RequestException as exc:
        raise RegistryError(f"Failed to query {url}: {exc}") from exc

    if response.status_code == 404:
        return None
    if response.status_code != 200:
        raise RegistryError(f"Unexpected status code {response.status_code} from {url}")

    try:
        payload = response.json()
    except ValueError as exc:
        raise RegistryError(f"Registry returned invalid JSON for {name}") from exc

    versions = payload.get("versions") if isinstance(payload, dict) else None
    if not isinstance(versions, dict):
        return []
    return sorted(versions)
