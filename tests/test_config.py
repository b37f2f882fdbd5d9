"""Tests for configuration loading, saving and environment overrides."""

import json

import pytest

from reelmatch.config import (
    ReelmatchConfig,
    apply_env_overrides,
    get_config_path,
    load_config,
    save_config,
    update_config,
)
from reelmatch.errors import ConfigError


@pytest.fixture
def config_home(tmp_path, monkeypatch):
    """Point the XDG config directory at a temporary path."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    return tmp_path


def test_config_path_uses_xdg(config_home):
    assert get_config_path() == config_home / "reelmatch" / "config.json"


def test_defaults_without_file(config_home):
    config = load_config(environ={})

    assert config.llm.model == "gemini-1.5-flash"
    assert config.llm.api_key is None
    assert config.vector.backend == "local"
    assert config.vector.index_name == "omdb-database"
    assert config.similarity.threshold == pytest.approx(0.3)
    assert config.similarity.batch_size == 50
    assert config.processing.concurrency == 5
    assert config.processing.batch_delay == pytest.approx(3.0)


def test_save_and_load(config_home):
    config = ReelmatchConfig()
    config.llm.model = "gemini-2.0-flash"
    config.similarity.threshold = 0.4

    path = save_config(config)
    assert path.exists()

    loaded = load_config(environ={})
    assert loaded.llm.model == "gemini-2.0-flash"
    assert loaded.similarity.threshold == pytest.approx(0.4)


def test_partial_file_keeps_defaults(config_home):
    path = get_config_path()
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({"vector": {"backend": "pinecone"}}))

    config = load_config(environ={})
    assert config.vector.backend == "pinecone"
    assert config.vector.namespace == "__default__"
    assert config.llm.provider == "gemini"


def test_corrupt_file_falls_back_to_defaults(config_home):
    path = get_config_path()
    path.parent.mkdir(parents=True)
    path.write_text("{not json")

    assert load_config(environ={}).llm.model == "gemini-1.5-flash"


def test_unknown_key_is_config_error(config_home):
    with pytest.raises(ConfigError):
        ReelmatchConfig.from_dict({"llm": {"colour": "blue"}})


class TestEnvOverrides:
    """Tests for environment variable overrides."""

    def test_overrides_applied(self):
        config = apply_env_overrides(ReelmatchConfig(), {
            "GEMINI_API_KEY": "g-key",
            "GEMINI_MODEL": "gemini-pro",
            "GEMINI_MAX_TOKENS": "2048",
            "GEMINI_TEMPERATURE": "0.9",
            "PINECONE_API_KEY": "p-key",
            "PINECONE_INDEX_NAME": "movies",
            "PINECONE_HOST": "movies.svc.pinecone.io",
            "DATABASE_URL": "sqlite:///tmp.db",
        })

        assert config.llm.api_key == "g-key"
        assert config.llm.model == "gemini-pro"
        assert config.llm.max_tokens == 2048
        assert config.llm.temperature == pytest.approx(0.9)
        assert config.vector.api_key == "p-key"
        assert config.vector.index_name == "movies"
        assert config.vector.host == "movies.svc.pinecone.io"
        assert config.database.url == "sqlite:///tmp.db"

    def test_empty_values_ignored(self):
        config = apply_env_overrides(ReelmatchConfig(), {"GEMINI_API_KEY": "", "GEMINI_MAX_TOKENS": ""})
        assert config.llm.api_key is None
        assert config.llm.max_tokens == 1024

    def test_bad_number(self):
        with pytest.raises(ConfigError):
            apply_env_overrides(ReelmatchConfig(), {"GEMINI_MAX_TOKENS": "lots"})

    def test_env_wins_over_file(self, config_home):
        config = ReelmatchConfig()
        config.llm.api_key = "from-file"
        save_config(config)

        assert load_config(environ={"GEMINI_API_KEY": "from-env"}).llm.api_key == "from-env"


class TestUpdateConfig:
    """Tests for partial configuration updates."""

    def test_updates_only_given_values(self, config_home):
        update_config(llm_model="gemini-2.0-flash")
        config = update_config(similarity_batch_size=100, processing_concurrency=2)

        assert config.llm.model == "gemini-2.0-flash"
        assert config.similarity.batch_size == 100
        assert config.processing.concurrency == 2
        assert config.similarity.threshold == pytest.approx(0.3)

        saved = json.loads(get_config_path().read_text())
        assert saved["similarity"]["batch_size"] == 100

    def test_env_values_not_written(self, config_home, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "secret")
        update_config(llm_temperature=0.5)

        saved = json.loads(get_config_path().read_text())
        assert saved["llm"]["api_key"] is None
        assert saved["llm"]["temperature"] == 0.5

    def test_invalid_backend(self, config_home):
        with pytest.raises(ConfigError):
            update_config(vector_backend="faiss")
        assert not get_config_path().exists()
