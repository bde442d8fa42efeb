from bridge_console.config.settings import Settings


def test_defaults(monkeypatch):
    for name in ("CACHE_STALE_SECONDS", "CACHE_REFETCH_TRIGGERS", "ENVIRONMENT", "CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.cache_stale_seconds == 0
    assert settings.cache_gc_seconds == 600
    assert settings.default_page_size == 10
    assert settings.get_refetch_triggers_list() == ["focus", "reconnect"]
    assert settings.is_production is False


def test_values_come_from_environment(monkeypatch):
    monkeypatch.setenv("CACHE_STALE_SECONDS", "300")
    monkeypatch.setenv("CACHE_REFETCH_TRIGGERS", " Focus , ")
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("CORS_ORIGINS", "https://console.acme-it.com, https://admin.acme-it.com")

    settings = Settings(_env_file=None)

    assert settings.cache_stale_seconds == 300
    assert settings.get_refetch_triggers_list() == ["focus"]
    assert settings.is_production
    assert settings.get_cors_origins_list() == ["https://console.acme-it.com", "https://admin.acme-it.com"]
