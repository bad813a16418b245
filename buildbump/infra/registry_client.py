"""
Container registry client infrastructure for buildbump.

Lists the tags of an image repository through the Docker Registry
HTTP API v2:

    GET /v2/<name>/tags/list?n=<page_size>

Pagination follows the RFC 5988 Link header the registry returns.
A repository that does not exist yet (404 / NAME_UNKNOWN) has no tags,
which is what lets the very first build of an application succeed.

The registry is eventually consistent; a tag pushed moments ago may
not be listed yet. Nothing here caches results.
"""

import logging
from typing import List, Optional
from urllib.parse import urljoin

import requests

from ..exit_codes import RegistryError

logger = logging.getLogger(__name__)

# Default page size for tag listing
DEFAULT_PAGE_SIZE = 100

# Upper bound on followed Link pages
MAX_PAGES = 50


class RegistryClient:
    """
    Client for the Docker Registry HTTP API v2.

    Example:
        client = RegistryClient("https://registry.homelab.local", namespace="homelab")
        tags = client.list_tags("app-example")
    """

    def __init__(
        self,
        base_url: str,
        namespace: str = "",
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: int = 10,
        verify_tls: bool = True,
        page_size: int = DEFAULT_PAGE_SIZE,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize RegistryClient.

        Args:
            base_url: Registry root URL (e.g., "https://registry.local:5000")
            namespace: Prefix prepended to application names ("homelab" -> "homelab/app")
            username: Basic auth user, if the registry requires it
            password: Basic auth password
            timeout: HTTP request timeout in seconds
            verify_tls: Verify the registry's TLS certificate
            page_size: Tags requested per page
            session: Pre-built requests session (for testing)
        """
        if base_url and '://' not in base_url:
            base_url = f"https://{base_url}"
        self.base_url = (base_url or "").rstrip('/')
        self.namespace = namespace.strip('/') if namespace else ""
        self.timeout = timeout
        self.page_size = page_size
        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json'})
        self.session.verify = verify_tls
        if username:
            self.session.auth = (username, password or "")

    @classmethod
    def from_config(cls, config: dict) -> 'RegistryClient':
        """Create from the `registry` section of the configuration."""
        registry = config.get('registry', {})
        return cls(
            base_url=registry.get('url', ''),
            namespace=registry.get('namespace', ''),
            username=registry.get('username') or None,
            password=registry.get('password') or None,
            timeout=registry.get('timeout_seconds', 10),
            verify_tls=registry.get('verify_tls', True),
        )

    def repository_name(self, application: str) -> str:
        """Full repository name for an application."""
        application = application.strip('/')
        if self.namespace:
            return f"{self.namespace}/{application}"
        return application

    def image_reference(self, application: str, tag: str) -> str:
        """Pushable image reference, e.g. registry.local/homelab/app:v1.0.0."""
        host = self.base_url.split('://', 1)[-1]
        name = self.repository_name(application)
        if host:
            return f"{host}/{name}:{tag}"
        return f"{name}:{tag}"

    def list_tags(self, application: str) -> List[str]:
        """
        List every tag of an application's image repository.

        Args:
            application: Application identifier (image name without namespace)

        Returns:
            Tag strings in registry order; empty if the repository does not exist

        Raises:
            RegistryError: If the registry is unreachable or answers with an error
        """
        if not self.base_url:
            raise RegistryError("Registry URL is not configured (registry.url)")

        name = self.repository_name(application)
        url = f"{self.base_url}/v2/{name}/tags/list"
        params = {'n': self.page_size}
        tags: List[str] = []

        for _ in range(MAX_PAGES):
            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
            except requests.RequestException as e:
                raise RegistryError(f"Registry request for {name} failed: {e}") from e

            if response.status_code == 404:
                logger.debug(f"Repository {name} not found in registry; no tags yet")
                return tags

            if response.status_code != 200:
                raise RegistryError(
                    f"Registry returned HTTP {response.status_code} listing tags for {name}",
                    status_code=response.status_code,
                )

            try:
                data = response.json()
            except ValueError as e:
                raise RegistryError(f"Malformed tag list for {name}: {e}") from e

            tags.extend(data.get('tags') or [])

            next_url = _next_link(response)
            if not next_url:
                break
            url = urljoin(self.base_url + '/', next_url)
            params = None
        else:
            logger.warning(f"Stopped following tag pages for {name} after {MAX_PAGES} pages")

        logger.debug(f"Registry lists {len(tags)} tags for {name}")
        return tags


def _next_link(response: requests.Response) -> Optional[str]:
    """Extract the rel="next" target from a Link header, if any."""
    link = response.links.get('next') if response.links else None
    if link:
        return link.get('url')
    return None
