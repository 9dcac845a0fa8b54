from dependency_management.processing.maven_model import Coordinates
from dependency_management.processing.properties import MapPropertySource
from dependency_management.services.dependency_management_container import ImportRecord
from dependency_management.services.override_diff import OverrideDiffEngine

PLATFORM = Coordinates("test", "platform-dependencies", "1.0")


def test_no_overrides_means_no_diff(pom_resolver):
    engine = OverrideDiffEngine(pom_resolver)

    assert engine.diff(ImportRecord(None, PLATFORM)) == []
    assert engine.diff(ImportRecord(None, PLATFORM), {"unrelated": "value"}) == []


def test_overridden_version_is_reported(pom_resolver):
    engine = OverrideDiffEngine(pom_resolver)

    changed = engine.diff(ImportRecord(None, PLATFORM), {"logging.version": "1.3"})

    assert [str(entry) for entry in changed] == ["test:logging:1.3"]
    assert len(changed[0].exclusions) == 2


def test_entries_added_by_overrides_are_reported(pom_resolver):
    engine = OverrideDiffEngine(pom_resolver)

    changed = engine.diff(ImportRecord(None, PLATFORM), {"framework.version": "2.0"})

    assert [entry.artifact_id for entry in changed] == [
        "framework-core", "framework-context", "framework-beans", "framework-indexer",
    ]
    assert [entry.artifact_id for entry in changed].count("framework-indexer") == 1


def test_properties_supplied_with_the_import_are_diffed(pom_resolver):
    engine = OverrideDiffEngine(pom_resolver)
    record = ImportRecord(None, PLATFORM, MapPropertySource({"logging.version": "1.4"}))

    assert [str(entry) for entry in engine.diff(record)] == ["test:logging:1.4"]
    assert [str(entry) for entry in engine.diff(record, {"logging.version": "1.5"})] == ["test:logging:1.5"]


def test_override_equal_to_default_is_not_reported(pom_resolver):
    engine = OverrideDiffEngine(pom_resolver)

    assert engine.diff(ImportRecord(None, PLATFORM), {"framework.version": "1.0"}) == []
