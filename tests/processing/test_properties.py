import pytest

from dependency_management.processing.properties import (
    EMPTY_PROPERTIES,
    LayeredPropertySource,
    MapPropertySource,
    PropertySource,
    as_property_source,
)


def test_overlay_wins_when_layered():
    base = MapPropertySource({"a": "base", "b": "only-base"})
    overlay = MapPropertySource({"a": "overlay", "c": "only-overlay"})

    layered = base.layer(overlay)

    assert layered.get("a") == "overlay"
    assert layered.get("b") == "only-base"
    assert layered.get("c") == "only-overlay"
    assert layered.get("missing") is None
    assert layered.snapshot() == {"a": "overlay", "b": "only-base", "c": "only-overlay"}


def test_layering_with_empty_sources_returns_the_other_source():
    source = MapPropertySource({"a": "1"})
    assert source.layer(EMPTY_PROPERTIES) is source
    assert EMPTY_PROPERTIES.layer(source) is source
    assert isinstance(source.layer(MapPropertySource({"b": "2"})), LayeredPropertySource)


def test_layering_does_not_modify_either_source():
    base = MapPropertySource({"a": "1"})
    base.layer(MapPropertySource({"a": "2"}))
    assert base.get("a") == "1"


def test_substitute_resolves_nested_references():
    source = MapPropertySource({"spring.version": "${base.version}.RELEASE", "base.version": "4.3.5"})
    assert source.substitute("${spring.version}") == "4.3.5.RELEASE"
    assert source.substitute("v-${base.version}-${base.version}") == "v-4.3.5-4.3.5"


def test_substitute_leaves_unresolved_placeholders():
    source = MapPropertySource({"a": "1"})
    assert source.substitute("${missing}") == "${missing}"
    assert source.substitute("${a}-${missing}") == "1-${missing}"
    assert source.substitute(None) is None
    assert source.substitute("plain") == "plain"


def test_self_referencing_property_terminates():
    source = MapPropertySource({"loop": "${loop}"})
    assert source.substitute("${loop}") == "${loop}"


def test_fingerprint_reflects_effective_values():
    first = MapPropertySource({"a": "1"}).layer(MapPropertySource({"a": "2"}))
    second = MapPropertySource({"a": "2"})
    assert first.fingerprint() == second.fingerprint()
    assert MapPropertySource({"a": "1"}).fingerprint() != second.fingerprint()


def test_as_property_source_accepts_mappings_and_none():
    assert as_property_source(None) is EMPTY_PROPERTIES
    source = MapPropertySource({"a": "1"})
    assert as_property_source(source) is source
    assert as_property_source({"a": 1}).get("a") == "1"


def test_property_source_requires_lookup_methods():
    class NamesOnly(PropertySource):
        def names(self):
            return iter(())

    with pytest.raises(TypeError):
        NamesOnly()
