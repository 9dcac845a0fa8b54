import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, Optional

import pytest

from dependency_management.config.settings import PomCustomizationSettings
from dependency_management.processing.maven_model import Coordinates
from dependency_management.processing.pom_resolver import PomResolver
from dependency_management.processing.pom_tree import parse_pom_text
from dependency_management.services.dependency_management_container import DependencyManagementContainer
from dependency_management.services.pom_configurer import PomDependencyManagementConfigurer
from dependency_management.services.repository_client import LocalRepositoryClient, RepositoryClient

MAVEN_REPO = Path(__file__).parent / "resources" / "maven-repo"


class InMemoryRepositoryClient(RepositoryClient):
    """Serves POMs from a dict keyed by ``group:artifact:version`` and counts fetches."""

    def __init__(self, poms: Dict[str, str]):
        super().__init__()
        self.poms = dict(poms)
        self.fetches = []

    @property
    def locations(self):
        return ["memory"]

    def _fetch(self, coordinates: Coordinates) -> Optional[bytes]:
        self.fetches.append(str(coordinates))
        pom = self.poms.get(str(coordinates))
        return pom.encode("utf-8") if pom is not None else None


@pytest.fixture
def maven_repo() -> Path:
    return MAVEN_REPO


@pytest.fixture
def repository_client(maven_repo):
    return LocalRepositoryClient(str(maven_repo))


@pytest.fixture
def pom_resolver(repository_client):
    return PomResolver(repository_client)


@pytest.fixture
def container(pom_resolver):
    return DependencyManagementContainer(pom_resolver)


@pytest.fixture
def configure():
    """Configure a POM for a container and return its root element."""

    def _configure(container, pom_text="<project></project>", settings=None, properties=None,
                   declared_dependencies=None) -> ET.Element:
        root = parse_pom_text(pom_text)
        configurer = PomDependencyManagementConfigurer(
            container,
            settings if settings is not None else PomCustomizationSettings(),
            current_properties=properties,
            declared_dependencies=declared_dependencies,
        )
        configurer.configure_pom(root)
        return root

    return _configure


def managed_nodes(root: ET.Element):
    """``dependencyManagement/dependencies/dependency`` nodes of an un-namespaced POM."""
    return root.findall("dependencyManagement/dependencies/dependency")


def node_values(node: ET.Element) -> Dict[str, Optional[str]]:
    return {child.tag: child.text for child in node if child.tag != "exclusions"}
