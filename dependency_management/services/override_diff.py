"""
Detection of managed versions changed by property overrides.

A generated POM only imports a BOM; whoever consumes it resolves the BOM with
the BOM's own properties. Entries whose resolution differs because of the
producer's properties have to be written to the POM explicitly.
"""

from typing import List

from ..core.logging_config import get_logger
from ..processing.maven_model import ManagedDependency
from ..processing.pom_resolver import PomResolver
from ..processing.properties import EMPTY_PROPERTIES, PropertySource, as_property_source

logger = get_logger("override_diff")


class OverrideDiffEngine:
    """Diffs a BOM resolved with overrides against the BOM resolved on its own."""

    def __init__(self, pom_resolver: PomResolver):
        self.pom_resolver = pom_resolver

    def diff(self, import_record, current_properties: PropertySource = None) -> List[ManagedDependency]:
        """Entries of the import that differ from the BOM's own resolution.

        An entry is reported when its version changed, or when it is only
        managed because of the overrides. Entries are reported in the order of
        the overridden resolution.
        """
        current = as_property_source(current_properties)
        overridden = self.pom_resolver.resolve(
            import_record.coordinates, import_record.properties_with(current)
        )
        default = self.pom_resolver.resolve(import_record.coordinates, EMPTY_PROPERTIES)

        changed = []
        for entry in overridden.management:
            original = default.find(entry.group_id, entry.artifact_id, entry.classifier)
            if original is None or original.version != entry.version:
                changed.append(entry)

        if changed:
            logger.info(
                f"{len(changed)} managed versions of {import_record.coordinates} are overridden",
                coordinates=str(import_record.coordinates),
                overridden=[str(entry) for entry in changed],
            )
        return changed
