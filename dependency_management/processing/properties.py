"""
Property sources used to substitute ``${...}`` placeholders while resolving BOMs.

Sources are immutable. ``layer`` composes two sources into a new one so the
same base can be reused with different overlays.
"""

import re
from abc import ABC, abstractmethod
from typing import Dict, Iterator, Mapping, Optional, Tuple

PROPERTY_PATTERN = re.compile(r'\$\{([^}]+)\}')

# Bounds expansion of values that reference other properties
MAX_SUBSTITUTION_DEPTH = 16


class PropertySource(ABC):
    """An ordered, overridable name to value lookup."""

    @abstractmethod
    def get(self, name: str) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def names(self) -> Iterator[str]:
        raise NotImplementedError

    def layer(self, overlay: "PropertySource") -> "PropertySource":
        """Return a source that checks ``overlay`` first and falls back to this one."""
        if overlay is None or overlay.is_empty():
            return self
        if self.is_empty():
            return overlay
        return LayeredPropertySource(overlay, self)

    def is_empty(self) -> bool:
        return next(iter(self.names()), None) is None

    def snapshot(self) -> Dict[str, str]:
        """Flatten the source into a plain dict of effective values."""
        values = {}
        for name in self.names():
            if name not in values:
                value = self.get(name)
                if value is not None:
                    values[name] = value
        return values

    def fingerprint(self) -> Tuple[Tuple[str, str], ...]:
        """Hashable form of ``snapshot`` for use in cache keys."""
        return tuple(sorted(self.snapshot().items()))

    def substitute(self, template: Optional[str]) -> Optional[str]:
        """Replace every resolvable ``${name}``; unresolved placeholders are left as they are."""
        if not template or '${' not in template:
            return template

        def replace(match):
            value = self.get(match.group(1).strip())
            return match.group(0) if value is None else value

        resolved = template
        for _ in range(MAX_SUBSTITUTION_DEPTH):
            expanded = PROPERTY_PATTERN.sub(replace, resolved)
            if expanded == resolved:
                break
            resolved = expanded
        return resolved


class MapPropertySource(PropertySource):
    """Property source backed by a mapping."""

    def __init__(self, properties: Optional[Mapping[str, object]] = None):
        self._properties: Dict[str, str] = {
            str(name): str(value)
            for name, value in (properties or {}).items()
            if value is not None
        }

    def get(self, name: str) -> Optional[str]:
        return self._properties.get(name)

    def names(self) -> Iterator[str]:
        return iter(self._properties)

    def is_empty(self) -> bool:
        return not self._properties

    def __repr__(self) -> str:
        return f"MapPropertySource({self._properties!r})"


class LayeredPropertySource(PropertySource):
    """An overlay on top of a base source; the overlay wins."""

    def __init__(self, overlay: PropertySource, base: PropertySource):
        self.overlay = overlay
        self.base = base

    def get(self, name: str) -> Optional[str]:
        value = self.overlay.get(name)
        if value is None:
            value = self.base.get(name)
        return value

    def names(self) -> Iterator[str]:
        seen = set()
        for source in (self.overlay, self.base):
            for name in source.names():
                if name not in seen:
                    seen.add(name)
                    yield name

    def __repr__(self) -> str:
        return f"LayeredPropertySource(overlay={self.overlay!r}, base={self.base!r})"


EMPTY_PROPERTIES = MapPropertySource()


def as_property_source(properties) -> PropertySource:
    """Accept a ``PropertySource``, a mapping or ``None``."""
    if properties is None:
        return EMPTY_PROPERTIES
    if isinstance(properties, PropertySource):
        return properties
    return MapPropertySource(properties)
