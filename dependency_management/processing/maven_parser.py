"""
Maven POM parser.
Extracts the parts of a POM that take part in dependency management:
coordinates, parent, properties, managed dependencies and declared dependencies.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from ..core.exceptions import create_parse_error
from .maven_model import Coordinates, DeclaredDependency, RawManagedEntry
from .pom_tree import child_text, find_child, find_children, find_path, local_name


@dataclass
class PomDocument:
    """Parsed POM representation, with values exactly as written."""
    coordinates: Coordinates
    parent: Optional[Coordinates] = None
    packaging: str = "jar"
    properties: Dict[str, str] = field(default_factory=dict)
    dependency_management: List[RawManagedEntry] = field(default_factory=list)
    dependencies: List[DeclaredDependency] = field(default_factory=list)

    @property
    def builtin_properties(self) -> Dict[str, str]:
        """Built-in project properties, as Maven exposes them to placeholders."""
        props = {}
        values = {
            'groupId': self.coordinates.group_id,
            'artifactId': self.coordinates.artifact_id,
            'version': self.coordinates.version,
            'packaging': self.packaging,
        }
        for name, value in values.items():
            if value is not None:
                props[f'project.{name}'] = value
                props[f'pom.{name}'] = value
        if self.parent:
            props['project.parent.groupId'] = self.parent.group_id
            props['project.parent.artifactId'] = self.parent.artifact_id
            if self.parent.version:
                props['project.parent.version'] = self.parent.version
        return props


class MavenParser:
    """Maven POM parser for dependency management."""

    def parse_pom(self, pom_content: Union[str, bytes], source: Optional[object] = None) -> PomDocument:
        """Parse POM file content, either text or raw bytes.

        Bytes are decoded according to the XML declaration, defaulting to UTF-8.

        ``source`` identifies the document in error messages, usually the
        coordinates it was fetched for.
        """
        try:
            root = ET.fromstring(pom_content)
        except ET.ParseError as e:
            raise create_parse_error(source, f"Invalid POM XML: {e}", cause=e)

        if local_name(root) != 'project':
            raise create_parse_error(source, f"Root element is <{local_name(root)}>, expected <project>")

        parent = self._extract_parent(root)
        return PomDocument(
            coordinates=self._extract_coordinates(root, parent, source),
            parent=parent,
            packaging=child_text(root, 'packaging') or 'jar',
            properties=self._extract_properties(root),
            dependency_management=self._extract_dependency_management(root),
            dependencies=self.extract_declared_dependencies(root),
        )

    def _extract_coordinates(self, root: ET.Element, parent: Optional[Coordinates],
                             source: Optional[object]) -> Coordinates:
        """Extract Maven coordinates from POM, inheriting from the parent where absent."""
        group_id = child_text(root, 'groupId')
        artifact_id = child_text(root, 'artifactId')
        version = child_text(root, 'version')

        if parent is not None:
            group_id = group_id or parent.group_id
            version = version or parent.version

        if not group_id or not artifact_id:
            raise create_parse_error(source, "Missing required coordinates: groupId or artifactId")

        coordinates = Coordinates(group_id, artifact_id, version)
        if parent is not None and parent.same_artifact(coordinates):
            raise create_parse_error(source, f"POM {coordinates.ga_coordinates} declares itself as its parent")
        return coordinates

    def _extract_parent(self, root: ET.Element) -> Optional[Coordinates]:
        """Extract parent coordinates from POM."""
        parent = find_child(root, 'parent')
        if parent is None:
            return None

        group_id = child_text(parent, 'groupId')
        artifact_id = child_text(parent, 'artifactId')
        version = child_text(parent, 'version')

        if group_id and artifact_id and version:
            return Coordinates(group_id, artifact_id, version)
        return None

    def _extract_properties(self, root: ET.Element) -> Dict[str, str]:
        """Extract properties from POM."""
        properties = {}
        props_element = find_child(root, 'properties')

        if props_element is not None:
            for prop in props_element:
                if not isinstance(prop.tag, str):
                    continue
                properties[local_name(prop)] = (prop.text or '').strip()

        return properties

    def _extract_dependency_management(self, root: ET.Element) -> List[RawManagedEntry]:
        """Extract dependency management from POM."""
        entries = []
        deps_element = find_path(root, 'dependencyManagement/dependencies')

        if deps_element is not None:
            for dep in find_children(deps_element, 'dependency'):
                entry = self._parse_managed_entry(dep)
                if entry:
                    entries.append(entry)

        return entries

    def _parse_managed_entry(self, dep_element: ET.Element) -> Optional[RawManagedEntry]:
        """Parse a single dependency element."""
        group_id = child_text(dep_element, 'groupId')
        artifact_id = child_text(dep_element, 'artifactId')

        if not group_id or not artifact_id:
            return None

        exclusions = []
        exclusions_element = find_child(dep_element, 'exclusions')
        if exclusions_element is not None:
            for exclusion in find_children(exclusions_element, 'exclusion'):
                excl_group = child_text(exclusion, 'groupId')
                excl_artifact = child_text(exclusion, 'artifactId')
                if excl_group and excl_artifact:
                    exclusions.append((excl_group, excl_artifact))

        return RawManagedEntry(
            group_id=group_id,
            artifact_id=artifact_id,
            version=child_text(dep_element, 'version'),
            classifier=child_text(dep_element, 'classifier'),
            scope=child_text(dep_element, 'scope'),
            type=child_text(dep_element, 'type'),
            exclusions=tuple(exclusions),
        )

    def extract_declared_dependencies(self, root: ET.Element) -> List[DeclaredDependency]:
        """Extract the project's own ``dependencies`` block."""
        dependencies = []
        deps_element = find_child(root, 'dependencies')

        if deps_element is not None:
            for dep in find_children(deps_element, 'dependency'):
                group_id = child_text(dep, 'groupId')
                artifact_id = child_text(dep, 'artifactId')
                if not group_id or not artifact_id:
                    continue
                dependencies.append(DeclaredDependency(
                    group_id=group_id,
                    artifact_id=artifact_id,
                    classifier=child_text(dep, 'classifier'),
                    version=child_text(dep, 'version'),
                    scope=child_text(dep, 'scope'),
                ))

        return dependencies
