"""
BOM resolution.

Resolving a BOM fetches its POM, merges the properties of its parent chain,
substitutes placeholders with the caller's overlay taking precedence, and
flattens its ``dependencyManagement`` into a table of managed dependencies,
expanding imported BOMs depth-first in place.
"""

import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..core.exceptions import ErrorContext, ResolutionError
from ..core.logging_config import get_logger, timed_operation
from .maven_model import Coordinates, Exclusion, ManagedDependency, ManagementKey, RawManagedEntry
from .maven_parser import MavenParser, PomDocument
from .properties import MapPropertySource, PropertySource, as_property_source

logger = get_logger("resolver")

# Precedence of entries within one BOM: lower wins
_IMPORTED_PRECEDENCE = 1_000_000


@dataclass(frozen=True)
class ResolvedBom:
    """Result of resolving a BOM."""
    coordinates: Coordinates
    management: Tuple[ManagedDependency, ...]
    declared_properties: Dict[str, str] = field(default_factory=dict)
    inherited_properties: Dict[str, str] = field(default_factory=dict)
    _index: Dict[ManagementKey, ManagedDependency] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_index", {entry.key: entry for entry in self.management})

    def find(self, group_id: str, artifact_id: str,
             classifier: Optional[str] = None) -> Optional[ManagedDependency]:
        return self._index.get((group_id, artifact_id, classifier))


class PomResolver:
    """Resolves BOMs through a repository client."""

    def __init__(self, repository_client, parser: Optional[MavenParser] = None,
                 cache_size: int = 256, max_depth: int = 50):
        self.repository_client = repository_client
        self.parser = parser or MavenParser()
        self.cache_size = cache_size
        self.max_depth = max_depth
        self._cache: "OrderedDict[tuple, ResolvedBom]" = OrderedDict()
        self._cache_lock = threading.RLock()

    def resolve(self, coordinates: Coordinates, properties=None) -> ResolvedBom:
        """Resolve ``coordinates`` with ``properties`` as the overlay.

        Raises ``ResolutionError`` if the BOM, its parents or any BOM it
        imports cannot be fetched or parsed.
        """
        overlay = as_property_source(properties)
        with timed_operation("resolver", "resolve", coordinates=str(coordinates)):
            return self._resolve(coordinates, overlay, ())

    def _resolve(self, coordinates: Coordinates, overlay: PropertySource,
                 chain: Tuple[Coordinates, ...]) -> ResolvedBom:
        cache_key = (coordinates, overlay.fingerprint())
        cached = self._cache_get(cache_key)
        if cached is not None:
            return cached

        if coordinates in chain:
            cycle = " -> ".join(str(c) for c in chain + (coordinates,))
            raise ResolutionError(f"BOM import cycle detected: {cycle}", coordinates=coordinates)
        if len(chain) >= self.max_depth:
            raise ResolutionError(
                f"BOM imports of {chain[0]} are nested more than {self.max_depth} levels deep",
                coordinates=coordinates
            )
        chain = chain + (coordinates,)

        hierarchy = self._load_hierarchy(coordinates, chain)
        document = hierarchy[-1]

        inherited: Dict[str, str] = {}
        for ancestor in hierarchy[:-1]:
            inherited.update(ancestor.properties)
        declared = dict(inherited)
        declared.update(document.properties)

        # Built-in project properties always describe this POM and are not passed to imports
        accumulated = MapPropertySource(declared).layer(overlay)
        effective = accumulated.layer(MapPropertySource(document.builtin_properties))

        candidates: List[Tuple[int, ManagedDependency]] = []
        for level, pom in enumerate(reversed(hierarchy)):
            entries = self._resolve_entries(pom, level, effective, accumulated, chain)
            # Ancestors' entries come first in the flattened table
            candidates[0:0] = entries

        resolved = ResolvedBom(
            coordinates=coordinates,
            management=self._deduplicate(candidates),
            declared_properties=dict(document.properties),
            inherited_properties=inherited,
        )
        logger.debug(
            f"Resolved {coordinates} with {len(resolved.management)} managed dependencies",
            coordinates=str(coordinates),
            depth=len(chain),
        )
        self._cache_put(cache_key, resolved)
        return resolved

    def _load(self, coordinates: Coordinates) -> PomDocument:
        content = self.repository_client.fetch_pom(coordinates)
        return self.parser.parse_pom(content, source=coordinates)

    def _load_hierarchy(self, coordinates: Coordinates,
                        chain: Tuple[Coordinates, ...]) -> List[PomDocument]:
        """Load a POM and its parents, root ancestor first."""
        hierarchy = [self._load(coordinates)]
        seen = {coordinates}
        while hierarchy[0].parent is not None:
            parent = hierarchy[0].parent
            if parent in seen or parent in chain:
                raise ResolutionError(f"Parent cycle detected at {parent}", coordinates=coordinates)
            if len(hierarchy) + len(chain) > self.max_depth:
                raise ResolutionError(f"Parents of {coordinates} are nested too deeply",
                                      coordinates=coordinates)
            seen.add(parent)
            hierarchy.insert(0, self._load(parent))
        return hierarchy

    def _resolve_entries(self, pom: PomDocument, level: int, properties: PropertySource,
                         accumulated: PropertySource,
                         chain: Tuple[Coordinates, ...]) -> List[Tuple[int, ManagedDependency]]:
        """Resolve one POM's own entries. ``level`` is 0 for the BOM itself, 1 for its parent..."""
        entries: List[Tuple[int, ManagedDependency]] = []
        for raw in pom.dependency_management:
            if raw.is_bom_import:
                imported = self._import_coordinates(raw, properties, pom)
                nested = self._resolve(imported, accumulated, chain)
                entries.extend((_IMPORTED_PRECEDENCE, entry) for entry in nested.management)
                continue

            managed = self._to_managed(raw, properties, pom)
            if managed is not None:
                entries.append((level, managed))
        return entries

    def _import_coordinates(self, raw: RawManagedEntry, properties: PropertySource,
                            pom: PomDocument) -> Coordinates:
        values = [properties.substitute(value) for value in (raw.group_id, raw.artifact_id, raw.version)]
        unresolved = [value for value in values if value is None or '${' in value]
        if unresolved:
            context = ErrorContext(
                component="resolver",
                operation="import",
                coordinates=str(pom.coordinates),
                context_data={"import": f"{raw.group_id}:{raw.artifact_id}:{raw.version}"},
            )
            raise ResolutionError(
                f"Cannot resolve BOM import {raw.group_id}:{raw.artifact_id}:{raw.version} "
                f"in {pom.coordinates}: unresolved properties",
                coordinates=pom.coordinates,
                context=context,
            )
        return Coordinates(*values)

    def _to_managed(self, raw: RawManagedEntry, properties: PropertySource,
                    pom: PomDocument) -> Optional[ManagedDependency]:
        version = properties.substitute(raw.version)
        if not version:
            logger.warning(
                f"Ignoring managed dependency {raw.group_id}:{raw.artifact_id} "
                f"without a version in {pom.coordinates}",
                coordinates=str(pom.coordinates),
            )
            return None

        exclusions = [
            Exclusion(properties.substitute(group), properties.substitute(artifact))
            for group, artifact in raw.exclusions
        ]
        return ManagedDependency(
            coordinates=Coordinates(
                properties.substitute(raw.group_id),
                properties.substitute(raw.artifact_id),
                version,
            ),
            classifier=properties.substitute(raw.classifier),
            exclusions=tuple(exclusions),
            scope=raw.scope,
            type=raw.type,
        )

    @staticmethod
    def _deduplicate(candidates: List[Tuple[int, ManagedDependency]]) -> Tuple[ManagedDependency, ...]:
        """Keep one entry per key: lowest precedence value wins, then the first occurrence."""
        winners: Dict[ManagementKey, Tuple[int, int]] = {}
        for index, (precedence, entry) in enumerate(candidates):
            current = winners.get(entry.key)
            if current is None or precedence < current[0]:
                winners[entry.key] = (precedence, index)
        selected = sorted(index for _, index in winners.values())
        return tuple(candidates[index][1] for index in selected)

    def _cache_get(self, key) -> Optional[ResolvedBom]:
        with self._cache_lock:
            resolved = self._cache.get(key)
            if resolved is not None:
                self._cache.move_to_end(key)
            return resolved

    def _cache_put(self, key, resolved: ResolvedBom):
        if self.cache_size <= 0:
            return
        with self._cache_lock:
            self._cache[key] = resolved
            self._cache.move_to_end(key)
            while len(self._cache) > self.cache_size:
                self._cache.popitem(last=False)

    def clear_cache(self):
        with self._cache_lock:
            self._cache.clear()

