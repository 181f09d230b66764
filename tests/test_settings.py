from servers.lifecycle.settings import Settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("API_URL", raising=False)
    settings = Settings(_env_file=None)
    assert settings.api_url == "http://localhost:3000/api"
    assert settings.metadata_retry_attempts == 3
    assert settings.gateway_port == 8007


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("API_URL", "https://projects.example.edu/api")
    monkeypatch.setenv("GATEWAY_API_KEY", "secret")
    monkeypatch.setenv("LOG_JSON", "false")

    settings = Settings(_env_file=None)

    assert settings.api_url == "https://projects.example.edu/api"
    assert settings.gateway_api_key == "secret"
    assert settings.log_json is False
