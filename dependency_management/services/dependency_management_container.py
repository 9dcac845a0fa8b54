"""
Dependency management container.

Records BOM imports and explicitly managed versions in the order they were
requested and computes the effective dependency management table on demand.
Nothing is resolved when an import is recorded: property overrides made at
any point before the table is requested must be honoured.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from ..core.exceptions import ConstructionError
from ..core.logging_config import get_logger, timed_operation
from ..processing.maven_model import Coordinates, Exclusion, ManagedDependency, ordered_exclusions
from ..processing.pom_resolver import PomResolver, ResolvedBom
from ..processing.properties import EMPTY_PROPERTIES, PropertySource, as_property_source
from .override_diff import OverrideDiffEngine

logger = get_logger("container")

ExclusionLike = Union[Exclusion, str]
DependencySetEntry = Union[str, Tuple[str, Iterable[ExclusionLike]]]


def to_exclusions(exclusions: Optional[Iterable[ExclusionLike]]) -> Tuple[Exclusion, ...]:
    """Accept ``Exclusion`` instances or ``group:artifact`` strings."""
    return ordered_exclusions(
        exclusion if isinstance(exclusion, Exclusion) else Exclusion.parse(exclusion)
        for exclusion in (exclusions or ())
    )


@dataclass(frozen=True, eq=False)
class ImportRecord:
    """A BOM import, with the properties supplied when it was imported."""
    requested_by: Optional[str]
    coordinates: Coordinates
    properties: PropertySource = field(default=EMPTY_PROPERTIES)

    def properties_with(self, current_properties: PropertySource) -> PropertySource:
        """Current properties layered over the import's own properties."""
        return self.properties.layer(current_properties)


@dataclass(frozen=True, eq=False)
class OverrideRecord:
    """An explicitly managed version of a single artifact."""
    requested_by: Optional[str]
    group_id: str
    artifact_id: str
    version: str
    exclusions: Tuple[Exclusion, ...] = ()

    def to_managed(self) -> ManagedDependency:
        return ManagedDependency(
            coordinates=Coordinates(self.group_id, self.artifact_id, self.version),
            exclusions=self.exclusions,
        )


@dataclass(frozen=True)
class EffectiveEntry:
    """An entry of the effective table together with the record it came from."""
    dependency: ManagedDependency
    source: Union[ImportRecord, OverrideRecord]

    @property
    def from_bom(self) -> bool:
        return isinstance(self.source, ImportRecord)


class DependencyManagementContainer:
    """Accumulates BOM imports and managed versions for one project."""

    def __init__(self, pom_resolver: PomResolver):
        self.pom_resolver = pom_resolver
        self.override_diff = OverrideDiffEngine(pom_resolver)
        self._imports: List[ImportRecord] = []
        self._overrides: List[OverrideRecord] = []

    @property
    def imports(self) -> Tuple[ImportRecord, ...]:
        return tuple(self._imports)

    @property
    def overrides(self) -> Tuple[OverrideRecord, ...]:
        return tuple(self._overrides)

    def import_bom(self, requested_by: Optional[str], coordinates: Union[Coordinates, str],
                   properties=None) -> ImportRecord:
        """Record the import of a BOM. Resolution is deferred until the table is needed."""
        if isinstance(coordinates, str):
            coordinates = Coordinates.parse(coordinates)
        if not coordinates.version:
            raise ConstructionError(f"Imported BOM {coordinates} must have a version", field_name="version")

        record = ImportRecord(requested_by, coordinates, as_property_source(properties))
        self._imports.append(record)
        logger.debug(f"Recorded import of {coordinates}", coordinates=str(coordinates),
                     requested_by=requested_by)
        return record

    def add_managed_version(self, requested_by: Optional[str], group_id: str, artifact_id: str,
                            version: str, exclusions: Optional[Iterable[ExclusionLike]] = None) -> OverrideRecord:
        """Record an explicitly managed version."""
        coordinates = Coordinates(group_id, artifact_id, version)
        if not version or not str(version).strip():
            raise ConstructionError(f"Managed version of {coordinates} must not be empty", field_name="version")

        record = OverrideRecord(requested_by, group_id, artifact_id, version, to_exclusions(exclusions))
        for exclusion in record.exclusions:
            if exclusion.matches(group_id, artifact_id):
                logger.warning(f"Managed version {coordinates} excludes itself through {exclusion}",
                               coordinates=str(coordinates), exclusion=str(exclusion))
        self._overrides.append(record)
        logger.debug(f"Recorded managed version {coordinates}", coordinates=str(coordinates),
                     requested_by=requested_by)
        return record

    def add_dependency_set(self, requested_by: Optional[str], group_id: str, version: str,
                           entries: Sequence[DependencySetEntry]) -> List[OverrideRecord]:
        """Manage several artifacts that share a group and a version.

        Each entry is an artifact id, or an ``(artifact_id, exclusions)`` pair.
        """
        records = []
        for entry in entries:
            if isinstance(entry, str):
                artifact_id, exclusions = entry, ()
            else:
                artifact_id, exclusions = entry
            records.append(self.add_managed_version(requested_by, group_id, artifact_id, version, exclusions))
        return records

    def resolve_import(self, record: ImportRecord, current_properties=None) -> ResolvedBom:
        return self.pom_resolver.resolve(
            record.coordinates,
            record.properties_with(as_property_source(current_properties)),
        )

    def effective_entries(self, current_properties=None) -> List[EffectiveEntry]:
        """Effective table with provenance.

        Explicit overrides come first, most recent first, followed by the
        entries of each imported BOM, most recently imported first. The first
        entry seen for a ``(group, artifact, classifier)`` key wins.
        """
        current = as_property_source(current_properties)
        seen = set()
        entries: List[EffectiveEntry] = []

        with timed_operation("container", "effective_management",
                             imports=len(self._imports), overrides=len(self._overrides)):
            for override in reversed(self._overrides):
                managed = override.to_managed()
                if managed.key not in seen:
                    seen.add(managed.key)
                    entries.append(EffectiveEntry(managed, override))

            for record in reversed(self._imports):
                for managed in self.resolve_import(record, current).management:
                    if managed.key not in seen:
                        seen.add(managed.key)
                        entries.append(EffectiveEntry(managed, record))

        return entries

    def effective_management(self, current_properties=None) -> List[ManagedDependency]:
        """The effective dependency management table."""
        return [entry.dependency for entry in self.effective_entries(current_properties)]

    def property_overrides(self, current_properties=None) -> List[Tuple[ImportRecord, List[ManagedDependency]]]:
        """Entries of each import changed by properties, most recently imported first."""
        current = as_property_source(current_properties)
        return [(record, self.override_diff.diff(record, current)) for record in reversed(self._imports)]

    def find_managed(self, group_id: str, artifact_id: str, current_properties=None,
                     classifier: Optional[str] = None) -> Optional[ManagedDependency]:
        key = (group_id, artifact_id, classifier)
        for managed in self.effective_management(current_properties):
            if managed.key == key:
                return managed
        return None

    def managed_version(self, group_id: str, artifact_id: str, current_properties=None,
                        classifier: Optional[str] = None) -> Optional[str]:
        """Managed version of an artifact, or None when it is not managed."""
        managed = self.find_managed(group_id, artifact_id, current_properties, classifier)
        return managed.version if managed else None

    def managed_exclusions(self, group_id: str, artifact_id: str, current_properties=None,
                           classifier: Optional[str] = None) -> Tuple[Exclusion, ...]:
        managed = self.find_managed(group_id, artifact_id, current_properties, classifier)
        return managed.exclusions if managed else ()

    def is_empty(self) -> bool:
        return not self._imports and not self._overrides
