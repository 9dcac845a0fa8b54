"""
Writes dependency management into a POM that is about to be published.

Every node is computed before the tree is touched, so a failure while
resolving leaves the POM exactly as it was.
"""

import xml.etree.ElementTree as ET
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..config.settings import ImportedBomAction, PomCustomizationSettings
from ..core.exceptions import ConfigurationError
from ..core.logging_config import get_logger, timed_operation
from ..processing.maven_model import (
    Coordinates,
    DeclaredDependency,
    DependencyScope,
    ManagedDependency,
    ManagementKey,
)
from ..processing.maven_parser import MavenParser
from ..processing.pom_tree import (
    PomTree,
    get_or_create_child,
    local_name,
    namespace_of,
    qualified,
    root_of,
)
from ..processing.properties import as_property_source
from .dependency_management_container import DependencyManagementContainer, EffectiveEntry

logger = get_logger("pom_configurer")


def import_node(coordinates: Coordinates) -> ManagedDependency:
    """The ``scope=import``, ``type=pom`` entry that imports a BOM."""
    return ManagedDependency(coordinates, scope=DependencyScope.IMPORT.value, type="pom")


class PomDependencyManagementConfigurer:
    """Adds a project's dependency management to a POM tree."""

    def __init__(self, container: DependencyManagementContainer,
                 settings: Optional[PomCustomizationSettings] = None,
                 current_properties=None,
                 declared_dependencies: Optional[Iterable[DeclaredDependency]] = None,
                 parser: Optional[MavenParser] = None):
        self.container = container
        self.settings = settings if settings is not None else PomCustomizationSettings()
        self.current_properties = as_property_source(current_properties)
        self.declared_dependencies = (
            list(declared_dependencies) if declared_dependencies is not None else None
        )
        self.parser = parser or MavenParser()

    def configure_pom(self, pom: PomTree) -> None:
        """Append the dependency management entries to ``pom``.

        Raises ``ConfigurationError`` for an invalid POM or settings and
        ``ResolutionError`` when an imported BOM cannot be resolved.
        """
        if not isinstance(self.settings, PomCustomizationSettings):
            raise ConfigurationError(
                f"Expected PomCustomizationSettings, got {type(self.settings).__name__}",
                config_key="settings"
            )
        if not self.settings.enabled:
            logger.debug("POM customization is disabled")
            return

        root = root_of(pom) if pom is not None else None
        if not isinstance(root, ET.Element) or local_name(root) != 'project':
            raise ConfigurationError("POM has no <project> root element", config_key="pom")

        with timed_operation("pom_configurer", "configure_pom"):
            entries = self.managed_entries(root)
            namespace = namespace_of(root)
            nodes = [self._dependency_node(entry, namespace) for entry in entries]

            dependencies = get_or_create_child(get_or_create_child(root, 'dependencyManagement'), 'dependencies')
            dependencies.extend(nodes)

        logger.info(f"Added {len(nodes)} managed dependencies to the POM",
                    imports=len(self.container.imports), overrides=len(self.container.overrides))

    def managed_entries(self, root: ET.Element) -> List[ManagedDependency]:
        """Entries to write, in order."""
        declared = self.declared_dependencies
        if declared is None:
            declared = self.parser.extract_declared_dependencies(root)
        classifiers = self._classifiers_by_artifact(declared)

        effective = self.container.effective_entries(self.current_properties)
        effective_keys = {entry.dependency.key for entry in effective}

        def expand(managed: ManagedDependency) -> List[ManagedDependency]:
            if managed.classifier is not None:
                return []
            return [
                managed.with_classifier(classifier)
                for classifier in classifiers.get((managed.group_id, managed.artifact_id), ())
                if (managed.group_id, managed.artifact_id, classifier) not in effective_keys
            ]

        if self.settings.imported_bom_action == ImportedBomAction.COPY:
            bom_entries = self._copied_bom_entries(effective, expand)
        else:
            bom_entries = self._imported_bom_entries(effective, expand)

        override_entries = []
        for entry in effective:
            if not entry.from_bom:
                override_entries.append(entry.dependency)
                override_entries.extend(expand(entry.dependency))

        return bom_entries + override_entries

    def _imported_bom_entries(self, effective: List[EffectiveEntry], expand) -> List[ManagedDependency]:
        """Overridden entries of every import, then the imports themselves."""
        winners = {entry.dependency.key: entry for entry in effective}
        written: Set[ManagementKey] = set()
        entries: List[ManagedDependency] = []

        for record, changed in self.container.property_overrides(self.current_properties):
            for managed in changed:
                winner = winners.get(managed.key)
                # Explicit overrides and later imports take precedence
                if winner is None or winner.source is not record or managed.key in written:
                    continue
                written.add(managed.key)
                entries.append(managed)
                entries.extend(expand(managed))

            for entry in effective:
                if entry.source is record and entry.dependency.key not in written:
                    entries.extend(expand(entry.dependency))

        for record in reversed(self.container.imports):
            entries.append(import_node(record.coordinates))
        return entries

    def _copied_bom_entries(self, effective: List[EffectiveEntry], expand) -> List[ManagedDependency]:
        """Every entry contributed by imported BOMs, written explicitly."""
        entries: List[ManagedDependency] = []
        for entry in effective:
            if entry.from_bom:
                entries.append(entry.dependency)
                entries.extend(expand(entry.dependency))
        return entries

    @staticmethod
    def _classifiers_by_artifact(declared: Iterable[DeclaredDependency]) -> Dict[Tuple[str, str], List[str]]:
        classifiers: Dict[Tuple[str, str], List[str]] = OrderedDict()
        for dependency in declared:
            if not dependency.classifier:
                continue
            known = classifiers.setdefault((dependency.group_id, dependency.artifact_id), [])
            if dependency.classifier not in known:
                known.append(dependency.classifier)
        return classifiers

    @staticmethod
    def _dependency_node(managed: ManagedDependency, namespace: Optional[str]) -> ET.Element:
        node = ET.Element(qualified('dependency', namespace))

        def add(parent: ET.Element, tag: str, text: Optional[str]):
            if text is not None:
                ET.SubElement(parent, qualified(tag, namespace)).text = text

        add(node, 'groupId', managed.group_id)
        add(node, 'artifactId', managed.artifact_id)
        add(node, 'version', managed.version)
        add(node, 'type', managed.type)
        add(node, 'classifier', managed.classifier)
        add(node, 'scope', managed.scope)

        if managed.exclusions:
            exclusions = ET.SubElement(node, qualified('exclusions', namespace))
            for exclusion in managed.exclusions:
                exclusion_node = ET.SubElement(exclusions, qualified('exclusion', namespace))
                add(exclusion_node, 'groupId', exclusion.group_id)
                add(exclusion_node, 'artifactId', exclusion.artifact_id)

        return node
