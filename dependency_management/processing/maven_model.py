"""
Maven artifact model: coordinates, exclusions and managed dependencies.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Optional, Tuple

from ..core.exceptions import ConstructionError

WILDCARD = "*"


class DependencyScope(Enum):
    """Maven dependency scopes."""
    COMPILE = "compile"
    PROVIDED = "provided"
    RUNTIME = "runtime"
    TEST = "test"
    SYSTEM = "system"
    IMPORT = "import"


def _require(value: Optional[str], field_name: str, owner: str) -> None:
    if value is None or not str(value).strip():
        raise ConstructionError(f"{owner} {field_name} must not be empty", field_name=field_name)


@dataclass(frozen=True)
class Coordinates:
    """Maven artifact coordinates (GAV)."""
    group_id: str
    artifact_id: str
    version: Optional[str] = None

    def __post_init__(self):
        _require(self.group_id, "group_id", "Coordinates")
        _require(self.artifact_id, "artifact_id", "Coordinates")

    @classmethod
    def parse(cls, notation: str) -> "Coordinates":
        """Parse ``group:artifact[:version]`` notation."""
        parts = notation.strip().split(":") if notation else []
        if len(parts) not in (2, 3):
            raise ConstructionError(
                f"Invalid coordinates '{notation}', expected group:artifact[:version]",
                field_name="coordinates"
            )
        return cls(*parts)

    @property
    def ga_coordinates(self) -> str:
        """Get group:artifact coordinates."""
        return f"{self.group_id}:{self.artifact_id}"

    def same_artifact(self, other: "Coordinates") -> bool:
        """Check whether both coordinates identify the same artifact, ignoring version."""
        return self.group_id == other.group_id and self.artifact_id == other.artifact_id

    def __str__(self) -> str:
        if self.version:
            return f"{self.group_id}:{self.artifact_id}:{self.version}"
        return self.ga_coordinates


@dataclass(frozen=True)
class Exclusion:
    """An exclusion of a transitive dependency. Either field may be ``*``."""
    group_id: str
    artifact_id: str

    def __post_init__(self):
        _require(self.group_id, "group_id", "Exclusion")
        _require(self.artifact_id, "artifact_id", "Exclusion")

    @classmethod
    def parse(cls, notation: str) -> "Exclusion":
        """Parse ``group:artifact`` notation."""
        parts = notation.strip().split(":") if notation else []
        if len(parts) != 2:
            raise ConstructionError(
                f"Invalid exclusion '{notation}', expected group:artifact",
                field_name="exclusion"
            )
        return cls(*parts)

    def matches(self, group_id: str, artifact_id: str) -> bool:
        return (self.group_id in (WILDCARD, group_id)
                and self.artifact_id in (WILDCARD, artifact_id))

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"


def ordered_exclusions(exclusions: Optional[Iterable[Exclusion]]) -> Tuple[Exclusion, ...]:
    """Deduplicate exclusions, keeping the first occurrence of each."""
    seen = []
    for exclusion in exclusions or ():
        if exclusion not in seen:
            seen.append(exclusion)
    return tuple(seen)


ManagementKey = Tuple[str, str, Optional[str]]


@dataclass(frozen=True)
class ManagedDependency:
    """A managed version, with optional classifier, exclusions, scope and type."""
    coordinates: Coordinates
    classifier: Optional[str] = None
    exclusions: Tuple[Exclusion, ...] = ()
    scope: Optional[str] = None
    type: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "exclusions", ordered_exclusions(self.exclusions))

    @property
    def group_id(self) -> str:
        return self.coordinates.group_id

    @property
    def artifact_id(self) -> str:
        return self.coordinates.artifact_id

    @property
    def version(self) -> Optional[str]:
        return self.coordinates.version

    @property
    def key(self) -> ManagementKey:
        """Identity of the entry: entries with the same key are duplicates."""
        return (self.group_id, self.artifact_id, self.classifier)

    @property
    def is_bom_import(self) -> bool:
        return self.scope == DependencyScope.IMPORT.value and self.type == "pom"

    def with_classifier(self, classifier: Optional[str]) -> "ManagedDependency":
        return replace(self, classifier=classifier)

    def __str__(self) -> str:
        text = str(self.coordinates)
        if self.classifier:
            text += f":{self.classifier}"
        return text


@dataclass(frozen=True)
class DeclaredDependency:
    """A dependency declared by the build, as seen by classifier expansion."""
    group_id: str
    artifact_id: str
    classifier: Optional[str] = None
    version: Optional[str] = None
    scope: Optional[str] = None


@dataclass(frozen=True)
class RawManagedEntry:
    """A ``dependencyManagement`` entry as written in a POM, before property substitution."""
    group_id: str
    artifact_id: str
    version: Optional[str] = None
    classifier: Optional[str] = None
    scope: Optional[str] = None
    type: Optional[str] = None
    exclusions: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @property
    def is_bom_import(self) -> bool:
        return self.scope == DependencyScope.IMPORT.value and (self.type or "jar") == "pom"
