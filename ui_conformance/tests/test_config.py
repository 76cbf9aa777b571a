"""Configuration layering and profiles."""
import pytest

from ui_conformance import env_defaults
from ui_conformance.config import DEFAULT_BASE_URL, ConformanceConfig


@pytest.fixture
def clean_env(monkeypatch):
    for key in (
        "UI_BASE_URL", "UI_SMOKE_BASE_URL", "UI_SEARCH_QUERY", "UI_EXPECTED_RESULT",
        "UI_RESULTS_TIMEOUT", "PLAYWRIGHT_HEADLESS", "UI_LIVE",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(env_defaults, "get_env_default", lambda key: None)
    return monkeypatch


def test_defaults_target_react_dev(clean_env):
    config = ConformanceConfig()

    assert config.base_url == DEFAULT_BASE_URL
    assert config.search_query == "custom hook"
    assert config.expected_result == "Reusing Logic with Custom Hooks"
    assert config.playwright_headless is True
    assert config.live is False
    assert [p.name for p in config.profiles()] == ["primary"]


def test_environment_overrides(clean_env):
    clean_env.setenv("UI_BASE_URL", "https://mirror.example.test/docs")
    clean_env.setenv("UI_RESULTS_TIMEOUT", "2.5")
    clean_env.setenv("PLAYWRIGHT_HEADLESS", "false")

    config = ConformanceConfig()

    assert config.url("/learn") == "https://mirror.example.test/docs/learn"
    assert config.results_timeout == 2.5
    assert config.playwright_headless is False


def test_smoke_profile_and_use_profile_copy(clean_env):
    clean_env.setenv("UI_SMOKE_BASE_URL", "https://preview.example.test/")
    config = ConformanceConfig()
    primary, smoke = config.profiles()

    with config.use_profile(smoke) as active:
        assert config.base_url == "https://preview.example.test/"
        active.search_query = "effect"
        assert config.search_query == "effect"

    assert config.base_url == primary.base_url
    assert smoke.search_query == "custom hook"


def test_defaults_file_parsing(tmp_path):
    path = tmp_path / ".env.defaults"
    path.write_text(
        "# comment\n"
        "UI_BASE_URL='https://from-file.example.test/'\n"
        'UI_SEARCH_QUERY="state hook"\n'
        "MALFORMED LINE\n"
        "=no-key\n",
        encoding="utf-8",
    )

    assert env_defaults.load_defaults(path) == {
        "UI_BASE_URL": "https://from-file.example.test/",
        "UI_SEARCH_QUERY": "state hook",
    }


def test_environment_wins_over_defaults_file(monkeypatch):
    monkeypatch.setattr(env_defaults, "get_env_default", lambda key: "from-file")
    monkeypatch.setenv("UI_SEARCH_QUERY", "from-env")

    assert env_defaults.setting("UI_SEARCH_QUERY", "fallback") == "from-env"
    monkeypatch.delenv("UI_SEARCH_QUERY")
    assert env_defaults.setting("UI_SEARCH_QUERY", "fallback") == "from-file"


def test_empty_expected_result_accepts_any_top_hit(clean_env):
    clean_env.setenv("UI_EXPECTED_RESULT", "")

    assert ConformanceConfig().expected_result is None


def test_empty_value_in_defaults_file_is_kept(monkeypatch):
    monkeypatch.delenv("UI_EXPECTED_RESULT", raising=False)
    monkeypatch.setattr(env_defaults, "get_env_default", lambda key: "" if key == "UI_EXPECTED_RESULT" else None)

    assert env_defaults.setting("UI_EXPECTED_RESULT", "fallback") == ""
    assert ConformanceConfig().expected_result is None
