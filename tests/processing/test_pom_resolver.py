import threading

import pytest

from conftest import InMemoryRepositoryClient
from dependency_management.core.exceptions import ArtifactNotFoundError, ResolutionError
from dependency_management.processing.maven_model import Coordinates, Exclusion
from dependency_management.processing.pom_resolver import PomResolver


def versions(resolved):
    return [(entry.artifact_id, entry.version) for entry in resolved.management]


def test_resolve_simple_bom(pom_resolver):
    resolved = pom_resolver.resolve(Coordinates("test", "alpha-pom-customization-bom", "1.0"))

    assert resolved.coordinates == Coordinates("test", "alpha-pom-customization-bom", "1.0")
    assert versions(resolved) == [("alpha", "1.0")]
    assert resolved.find("test", "alpha").version == "1.0"
    assert resolved.find("test", "bravo") is None


def test_imported_bom_is_expanded_in_place(pom_resolver):
    resolved = pom_resolver.resolve(Coordinates("test", "platform-dependencies", "1.0"))

    assert versions(resolved) == [
        ("logging", "1.2"),
        ("framework-core", "1.0"),
        ("framework-context", "1.0"),
        ("framework-beans", "1.0"),
        ("platform-tools", "1.0"),
    ]
    assert resolved.declared_properties == {"framework.version": "1.0", "logging.version": "1.2"}
    assert all(not entry.is_bom_import for entry in resolved.management)


def test_exclusions_are_carried_into_the_table(pom_resolver):
    resolved = pom_resolver.resolve(Coordinates("test", "platform-dependencies", "1.0"))

    assert resolved.find("test", "logging").exclusions == (
        Exclusion("commons-logging", "commons-logging"),
        Exclusion("*", "legacy-*"),
    )


def test_overlay_properties_change_imported_bom(pom_resolver):
    resolved = pom_resolver.resolve(
        Coordinates("test", "platform-dependencies", "1.0"),
        {"framework.version": "2.0", "logging.version": "1.3"},
    )

    assert versions(resolved) == [
        ("logging", "1.3"),
        ("framework-core", "2.0"),
        ("framework-context", "2.0"),
        ("framework-beans", "2.0"),
        ("framework-indexer", "2.0"),
        ("platform-tools", "1.0"),
    ]


def test_builtin_project_properties_cannot_be_overridden(pom_resolver):
    resolved = pom_resolver.resolve(
        Coordinates("test", "platform-dependencies", "1.0"),
        {"project.version": "9.9", "pom.version": "9.9", "framework.version": "2.0"},
    )

    assert resolved.find("test", "platform-tools").version == "1.0"
    assert resolved.find("test", "framework-core").version == "2.0"
    assert resolved.find("test", "framework-indexer").version == "2.0"


def test_parent_entries_and_properties_are_inherited(pom_resolver):
    resolved = pom_resolver.resolve(Coordinates("test", "child-bom", "1.0"))

    assert resolved.coordinates.version == "1.0"
    assert resolved.find("test", "shared").version == "5.0"
    assert resolved.find("test", "parent-only").version == "1.5"
    assert resolved.find("test", "child-only").version == "5.0"
    assert resolved.find("test", "redeclared").version == "2.0"
    assert resolved.inherited_properties == {"shared.version": "4.0", "parent.only.version": "1.5"}


def test_own_entries_win_over_imported_entries(pom_resolver):
    resolved = pom_resolver.resolve(Coordinates("test", "precedence-bom", "1.0"))

    assert [str(entry) for entry in resolved.management] == [
        "test:first:1.0",
        "test:bravo:1.0",
        "test:alpha:9.0",
        "test:native:3.0:linux",
    ]
    assert resolved.find("test", "native") is None
    assert resolved.find("test", "native", "linux").version == "3.0"


def test_later_conflicting_import_loses_to_earlier_one():
    poms = {
        "g:outer:1": _bom("outer", imports=["first", "second"]),
        "g:first:1": _bom("first", managed={"lib": "1.0"}),
        "g:second:1": _bom("second", managed={"lib": "2.0", "extra": "2.0"}),
    }
    resolver = PomResolver(InMemoryRepositoryClient(poms))

    resolved = resolver.resolve(Coordinates("g", "outer", "1"))

    assert versions(resolved) == [("lib", "1.0"), ("extra", "2.0")]


def test_missing_bom_raises_artifact_not_found(pom_resolver):
    with pytest.raises(ArtifactNotFoundError) as exc_info:
        pom_resolver.resolve(Coordinates("test", "does-not-exist", "1.0"))

    assert isinstance(exc_info.value, ResolutionError)
    assert exc_info.value.coordinates == Coordinates("test", "does-not-exist", "1.0")


def test_malformed_bom_raises_resolution_error(pom_resolver):
    with pytest.raises(ResolutionError):
        pom_resolver.resolve(Coordinates("test", "malformed", "1.0"))


def test_import_cycle_is_detected(pom_resolver):
    with pytest.raises(ResolutionError) as exc_info:
        pom_resolver.resolve(Coordinates("test", "cycle-a", "1.0"))

    assert "cycle" in str(exc_info.value)


def test_unresolvable_import_coordinates_raise(pom_resolver):
    with pytest.raises(ResolutionError) as exc_info:
        pom_resolver.resolve(Coordinates("test", "unresolved-import", "1.0"))

    assert "${undefined.version}" in str(exc_info.value)


def test_import_coordinates_can_come_from_overlay(pom_resolver):
    resolved = pom_resolver.resolve(
        Coordinates("test", "unresolved-import", "1.0"), {"undefined.version": "2.0"}
    )

    assert resolved.find("test", "framework-indexer").version == "2.0"


def test_entries_without_version_are_skipped():
    poms = {
        "g:bom:1": """<project><groupId>g</groupId><artifactId>bom</artifactId><version>1</version>
            <dependencyManagement><dependencies>
                <dependency><groupId>g</groupId><artifactId>versionless</artifactId></dependency>
                <dependency><groupId>g</groupId><artifactId>lib</artifactId><version>1.0</version></dependency>
            </dependencies></dependencyManagement></project>""",
    }
    resolver = PomResolver(InMemoryRepositoryClient(poms))

    assert versions(resolver.resolve(Coordinates("g", "bom", "1"))) == [("lib", "1.0")]


def test_resolutions_are_cached_per_property_set():
    poms = {
        "g:outer:1": _bom("outer", imports=["inner"]),
        "g:inner:1": _bom("inner", managed={"lib": "${lib.version}"}, properties={"lib.version": "1.0"}),
    }
    client = InMemoryRepositoryClient(poms)
    resolver = PomResolver(client)
    outer = Coordinates("g", "outer", "1")

    first = resolver.resolve(outer)
    assert resolver.resolve(outer) is first
    assert resolver.resolve(outer, {}) is first

    overridden = resolver.resolve(outer, {"lib.version": "2.0"})
    assert overridden is not first
    assert overridden.find("g", "lib").version == "2.0"
    assert first.find("g", "lib").version == "1.0"

    # POMs are cached by the repository client
    assert client.fetches == ["g:outer:1", "g:inner:1"]

    resolver.clear_cache()
    assert resolver.resolve(outer) is not first


def test_cache_is_bounded():
    poms = {"g:inner:1": _bom("inner", managed={"lib": "${lib.version}"})}
    resolver = PomResolver(InMemoryRepositoryClient(poms), cache_size=2)
    inner = Coordinates("g", "inner", "1")

    first = resolver.resolve(inner, {"lib.version": "1"})
    resolver.resolve(inner, {"lib.version": "2"})
    resolver.resolve(inner, {"lib.version": "3"})

    assert resolver.resolve(inner, {"lib.version": "1"}) is not first


def test_concurrent_resolution_returns_equal_tables(pom_resolver):
    coordinates = Coordinates("test", "platform-dependencies", "1.0")
    results = []

    def resolve():
        results.append(pom_resolver.resolve(coordinates, {"framework.version": "2.0"}))

    threads = [threading.Thread(target=resolve) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(results) == 8
    assert len({result.management for result in results}) == 1


def _bom(artifact_id, managed=None, imports=(), properties=None):
    lines = [f"<project><groupId>g</groupId><artifactId>{artifact_id}</artifactId><version>1</version>"]
    if properties:
        lines.append("<properties>")
        lines.extend(f"<{name}>{value}</{name}>" for name, value in properties.items())
        lines.append("</properties>")
    lines.append("<dependencyManagement><dependencies>")
    for imported in imports:
        lines.append(
            f"<dependency><groupId>g</groupId><artifactId>{imported}</artifactId><version>1</version>"
            "<type>pom</type><scope>import</scope></dependency>"
        )
    for name, version in (managed or {}).items():
        lines.append(
            f"<dependency><groupId>g</groupId><artifactId>{name}</artifactId>"
            f"<version>{version}</version></dependency>"
        )
    lines.append("</dependencies></dependencyManagement></project>")
    return "".join(lines)
