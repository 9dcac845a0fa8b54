"""
Maven repository clients used to fetch BOM POMs.

Every client implements ``fetch_pom(coordinates) -> bytes`` and raises
``ArtifactNotFoundError`` when the POM does not exist, or ``ResolutionError``
when the repository cannot be read. Clients do not retry.
"""

import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import requests

from ..config.settings import Settings, get_settings
from ..core.exceptions import ArtifactNotFoundError, create_fetch_error
from ..core.logging_config import get_logger
from ..processing.maven_model import Coordinates

logger = get_logger("repository")


def pom_path(coordinates: Coordinates) -> str:
    """Path of a POM relative to the root of a Maven repository."""
    if not coordinates.version:
        raise ArtifactNotFoundError(coordinates)
    group_path = coordinates.group_id.replace('.', '/')
    artifact_id = coordinates.artifact_id
    version = coordinates.version
    return f"{group_path}/{artifact_id}/{version}/{artifact_id}-{version}.pom"


class RepositoryClient(ABC):
    """Base class for repository clients, holding the POM cache."""

    def __init__(self):
        self._pom_cache: Dict[Coordinates, bytes] = {}
        self._cache_lock = threading.RLock()

    @property
    def locations(self) -> List[str]:
        return []

    def fetch_pom(self, coordinates: Coordinates) -> bytes:
        """Fetch the POM for ``coordinates``, caching successful fetches."""
        with self._cache_lock:
            cached = self._pom_cache.get(coordinates)
        if cached is not None:
            return cached

        content = self._fetch(coordinates)
        if content is None:
            raise ArtifactNotFoundError(coordinates, self.locations)

        with self._cache_lock:
            self._pom_cache[coordinates] = content
        return content

    @abstractmethod
    def _fetch(self, coordinates: Coordinates) -> Optional[bytes]:
        """Return the raw POM document, or None when this repository does not have it."""
        raise NotImplementedError

    def clear_cache(self):
        with self._cache_lock:
            self._pom_cache.clear()


class LocalRepositoryClient(RepositoryClient):
    """Reads POMs from a directory laid out as a Maven repository."""

    def __init__(self, root: str):
        super().__init__()
        self.root = Path(root)

    @property
    def locations(self) -> List[str]:
        return [str(self.root)]

    def _fetch(self, coordinates: Coordinates) -> Optional[bytes]:
        path = self.root / pom_path(coordinates)
        if not path.is_file():
            return None
        try:
            content = path.read_bytes()
        except OSError as e:
            raise create_fetch_error(coordinates, str(path), e)
        logger.debug(f"Read {coordinates} from {path}", coordinates=str(coordinates))
        return content


class HttpRepositoryClient(RepositoryClient):
    """Fetches POMs over HTTP from one or more remote repositories, in order."""

    def __init__(self, repository_urls: Sequence[str], timeout: float = 30.0,
                 session: Optional[requests.Session] = None, user_agent: Optional[str] = None):
        super().__init__()
        self.repository_urls = [url.rstrip('/') for url in repository_urls]
        self.timeout = timeout
        self.session = session or requests.Session()
        if user_agent:
            self.session.headers['User-Agent'] = user_agent

    @property
    def locations(self) -> List[str]:
        return list(self.repository_urls)

    def _fetch(self, coordinates: Coordinates) -> Optional[bytes]:
        relative_path = pom_path(coordinates)
        for base_url in self.repository_urls:
            url = f"{base_url}/{relative_path}"
            try:
                response = self.session.get(url, timeout=self.timeout)
            except requests.RequestException as e:
                raise create_fetch_error(coordinates, url, e)

            if response.status_code == 404:
                logger.debug(f"{coordinates} not found at {base_url}", coordinates=str(coordinates))
                continue

            try:
                response.raise_for_status()
            except requests.HTTPError as e:
                raise create_fetch_error(coordinates, url, e)

            logger.debug(f"Downloaded {coordinates} from {url}", coordinates=str(coordinates))
            return response.content
        return None


class CompositeRepositoryClient(RepositoryClient):
    """Searches several clients in order; the first one that has the POM wins."""

    def __init__(self, clients: Sequence[RepositoryClient]):
        super().__init__()
        self.clients = list(clients)

    @property
    def locations(self) -> List[str]:
        return [location for client in self.clients for location in client.locations]

    def _fetch(self, coordinates: Coordinates) -> Optional[bytes]:
        for client in self.clients:
            content = client._fetch(coordinates)
            if content is not None:
                return content
        return None


def create_repository_client(settings: Optional[Settings] = None) -> RepositoryClient:
    """Build the repository client described by the settings."""
    settings = settings or get_settings()
    clients: List[RepositoryClient] = []
    if settings.local_repository:
        clients.append(LocalRepositoryClient(settings.local_repository))
    if settings.repository_urls:
        clients.append(HttpRepositoryClient(
            settings.repository_urls,
            timeout=settings.request_timeout_seconds,
            user_agent=settings.user_agent,
        ))
    if len(clients) == 1:
        return clients[0]
    return CompositeRepositoryClient(clients)
