from dependency_management.config import settings as settings_module
from dependency_management.config.settings import (
    MAVEN_CENTRAL_URL,
    ImportedBomAction,
    LogLevel,
    PomCustomizationSettings,
    Settings,
)


def test_defaults():
    settings = Settings()

    assert settings.repository_urls == [MAVEN_CENTRAL_URL]
    assert settings.local_repository is None
    assert settings.log_level == LogLevel.INFO
    assert settings.resolution_cache_size == 256
    assert settings.validate_settings() == []


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("DEPENDENCY_MANAGEMENT_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("DEPENDENCY_MANAGEMENT_REPOSITORY_URLS", '["https://repo.example/maven2"]')
    monkeypatch.setenv("DEPENDENCY_MANAGEMENT_REQUEST_TIMEOUT_SECONDS", "2.5")

    settings = Settings()

    assert settings.log_level == LogLevel.DEBUG
    assert settings.repository_urls == ["https://repo.example/maven2"]
    assert settings.request_timeout_seconds == 2.5


def test_validation_warnings():
    warnings = Settings(
        repository_urls=["http://insecure.example"],
        request_timeout_seconds=0,
        resolution_cache_size=-1,
    ).validate_settings()

    assert any("HTTPS" in warning for warning in warnings)
    assert any("timeout" in warning for warning in warnings)
    assert any("cache" in warning for warning in warnings)

    assert any("No repositories" in warning for warning in Settings(repository_urls=[]).validate_settings())


def test_pom_customization_defaults_and_environment(monkeypatch):
    customization = PomCustomizationSettings()
    assert customization.enabled
    assert customization.imported_bom_action == ImportedBomAction.IMPORT

    monkeypatch.setenv("DEPENDENCY_MANAGEMENT_POM_ENABLED", "false")
    monkeypatch.setenv("DEPENDENCY_MANAGEMENT_POM_IMPORTED_BOM_ACTION", "copy")
    customization = PomCustomizationSettings()
    assert not customization.enabled
    assert customization.imported_bom_action == ImportedBomAction.COPY


def test_reload_settings(monkeypatch):
    original = settings_module.get_settings()
    monkeypatch.setenv("DEPENDENCY_MANAGEMENT_RESOLUTION_CACHE_SIZE", "8")
    try:
        reloaded = settings_module.reload_settings()
        assert reloaded.resolution_cache_size == 8
        assert settings_module.get_settings() is reloaded
    finally:
        monkeypatch.setattr(settings_module, "settings", original)
