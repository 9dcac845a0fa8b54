"""
Helpers for working with POM documents as ``xml.etree.ElementTree`` trees.

POMs may or may not declare the Maven namespace. Lookups here are written
against local tag names and qualify them with the root element's namespace.
"""

import xml.etree.ElementTree as ET
from typing import List, Optional, Union

MAVEN_NAMESPACE = "http://maven.apache.org/POM/4.0.0"

PomTree = Union[ET.ElementTree, ET.Element]


def root_of(pom: PomTree) -> Optional[ET.Element]:
    """Return the root element of a tree or the element itself."""
    if isinstance(pom, ET.ElementTree):
        return pom.getroot()
    return pom


def namespace_of(element: ET.Element) -> Optional[str]:
    """Extract XML namespace from an element's tag."""
    if isinstance(element.tag, str) and element.tag.startswith('{'):
        return element.tag[1:].split('}')[0]
    return None


def local_name(element: ET.Element) -> str:
    """Tag name without namespace prefix."""
    tag = element.tag if isinstance(element.tag, str) else ''
    return tag.split('}')[-1] if '}' in tag else tag


def qualified(tag: str, namespace: Optional[str]) -> str:
    return f"{{{namespace}}}{tag}" if namespace else tag


def find_child(parent: ET.Element, tag: str) -> Optional[ET.Element]:
    """Find a direct child by local tag name."""
    for child in parent:
        if local_name(child) == tag:
            return child
    return None


def find_children(parent: ET.Element, tag: str) -> List[ET.Element]:
    """Find all direct children with the given local tag name."""
    return [child for child in parent if local_name(child) == tag]


def find_path(parent: ET.Element, path: str) -> Optional[ET.Element]:
    """Follow a ``/`` separated path of local tag names from ``parent``."""
    current = parent
    for tag in path.split('/'):
        if current is None:
            return None
        current = find_child(current, tag)
    return current


def child_text(parent: ET.Element, tag: str) -> Optional[str]:
    """Stripped text of a direct child, or None when absent or blank."""
    element = find_child(parent, tag)
    if element is not None and element.text and element.text.strip():
        return element.text.strip()
    return None


def get_or_create_child(parent: ET.Element, tag: str) -> ET.Element:
    """Return the named child, appending it (in the parent's namespace) if missing."""
    child = find_child(parent, tag)
    if child is None:
        child = ET.SubElement(parent, qualified(tag, namespace_of(parent)))
    return child


def parse_pom_text(text: Union[str, bytes]) -> ET.Element:
    """Parse POM text or bytes into its root element."""
    return ET.fromstring(text)


def serialize_pom(pom: PomTree) -> str:
    """Serialize a POM tree back to text, keeping the default Maven namespace unprefixed."""
    root = root_of(pom)
    namespace = namespace_of(root)
    if namespace:
        ET.register_namespace('', namespace)
    return ET.tostring(root, encoding="unicode")
