from __future__ import annotations

import pytest

from signalsmith.config import (
    ConfigurationError,
    MissingConfigurationError,
    get_directory_config,
    get_enrichment_settings,
    require_env_var,
    require_env_vars,
)
from signalsmith.config.directory import DEFAULT_DIRECTORY_BASE_URL


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", " value ")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_raises_when_any_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_VAR", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_VAR"])

    assert "MISSING_VAR" in str(exc.value)


def test_require_env_var_handles_blank_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError):
        require_env_var("EXAMPLE_VAR")


def test_enrichment_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "SIGNALSMITH_SIMILARITY_THRESHOLD",
        "SIGNALSMITH_MIN_LINK_CONFIDENCE",
        "SIGNALSMITH_CONTENT_HASH_TYPES",
        "SIGNALSMITH_BATCH_SIZE",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = get_enrichment_settings()

    assert settings.similarity_threshold == pytest.approx(0.8)
    assert settings.min_link_confidence == "low"
    assert settings.content_hash_filing_types == frozenset({"ma-event"})
    assert settings.default_batch_size == 20


def test_enrichment_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SIGNALSMITH_SIMILARITY_THRESHOLD", "0.9")
    monkeypatch.setenv("SIGNALSMITH_MIN_LINK_CONFIDENCE", "Medium")
    monkeypatch.setenv("SIGNALSMITH_CONTENT_HASH_TYPES", "ma-event, Hiring-Event,")
    monkeypatch.setenv("SIGNALSMITH_BATCH_DELAY_SECONDS", "0")

    settings = get_enrichment_settings()

    assert settings.similarity_threshold == pytest.approx(0.9)
    assert settings.min_link_confidence == "medium"
    assert settings.content_hash_filing_types == frozenset({"ma-event", "hiring-event"})
    assert settings.batch_delay_seconds == 0.0


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("SIGNALSMITH_SIMILARITY_THRESHOLD", "1.5"),
        ("SIGNALSMITH_SIMILARITY_THRESHOLD", "high"),
        ("SIGNALSMITH_MIN_LINK_CONFIDENCE", "none"),
        ("SIGNALSMITH_MIN_LINK_CONFIDENCE", "certain"),
        ("SIGNALSMITH_BATCH_SIZE", "twenty"),
    ],
)
def test_enrichment_settings_reject_invalid_values(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        get_enrichment_settings()


def test_directory_config_requires_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DIRECTORY_API_KEY", raising=False)

    with pytest.raises(MissingConfigurationError):
        get_directory_config()


def test_directory_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DIRECTORY_API_KEY", "secret-token")
    monkeypatch.delenv("DIRECTORY_BASE_URL", raising=False)
    monkeypatch.setenv("DIRECTORY_RATE_LIMIT_CALLS", "5")

    config = get_directory_config()

    assert config.api_key == "secret-token"
    assert config.resilience.base_url == DEFAULT_DIRECTORY_BASE_URL
    assert config.resilience.default_headers is not None
    assert config.resilience.default_headers["token"] == "secret-token"
    assert config.resilience.ratelimit is not None
    assert config.resilience.ratelimit.max_calls == 5
    assert config.resilience.cache is not None
    should_cache = config.resilience.cache.should_cache
    assert should_cache is not None
    assert should_cache({"profiles": {"https://www.linkedin.com/in/jane": {}}})
    assert not should_cache({"profiles": {}})
