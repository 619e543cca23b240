"""Tests for memo_sync.config -- runtime config resolution and validation.

NOT to be confused with test_config_loader.py (YAML config files)
or test_config_schema.py (Pydantic models).
"""

import logging

import pytest

from memo_sync.config import Config, load_config, validate_config
from memo_sync.config_schema import StoreConfig, SyncConfig, UnifiedConfig
from memo_sync.gateways.firestore import DEFAULT_BASE_URL

_ENV_VARS = (
    "MEMO_SYNC_PROJECT_ID",
    "MEMO_SYNC_TOKEN",
    "MEMO_SYNC_DATABASE",
    "MEMO_SYNC_BASE_URL",
    "MEMO_SYNC_MAX_PARALLEL_REQUESTS",
    "MEMO_SYNC_COLLECTIONS_DIR",
    "FIRESTORE_EMULATOR_HOST",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# -------------------------------------------------------------------------
# validate_config()
# -------------------------------------------------------------------------


class TestValidateConfig:
    def test_valid_config(self):
        validate_config(Config(project_id="demo", token="t"))

    def test_empty_project_id(self):
        with pytest.raises(ValueError, match="project id cannot be empty"):
            validate_config(Config(project_id="  "))

    def test_invalid_url_no_scheme(self):
        config = Config(project_id="demo", base_url="example.com")
        with pytest.raises(ValueError, match="Invalid base URL"):
            validate_config(config)

    def test_invalid_url_ftp_scheme(self):
        config = Config(project_id="demo", base_url="ftp://example.com")
        with pytest.raises(ValueError, match="Invalid base URL"):
            validate_config(config)

    def test_trailing_slash_stripped(self):
        config = Config(
            project_id="demo", base_url="http://localhost:8080/"
        )
        validate_config(config)
        assert config.base_url == "http://localhost:8080"

    def test_empty_root_collection(self):
        config = Config(project_id="demo", root_collection="/")
        with pytest.raises(ValueError, match="Root collection"):
            validate_config(config)

    def test_missing_token_warns_on_https(self, caplog):
        with caplog.at_level(logging.WARNING, logger="memo_sync.config"):
            validate_config(Config(project_id="demo"))
        assert "No access token" in caplog.text

    def test_missing_token_silent_on_http(self, caplog):
        config = Config(project_id="demo", base_url="http://localhost:8080")
        with caplog.at_level(logging.WARNING, logger="memo_sync.config"):
            validate_config(config)
        assert "No access token" not in caplog.text


# -------------------------------------------------------------------------
# load_config()
# -------------------------------------------------------------------------


class TestLoadConfig:
    def test_missing_project_raises(self):
        with pytest.raises(ValueError, match="project id not found"):
            load_config()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("MEMO_SYNC_PROJECT_ID", "env-project")
        monkeypatch.setenv("MEMO_SYNC_TOKEN", "env-token")
        monkeypatch.setenv("MEMO_SYNC_DATABASE", "other")

        config = load_config()

        assert config.project_id == "env-project"
        assert config.token == "env-token"
        assert config.database == "other"
        assert config.base_url == DEFAULT_BASE_URL

    def test_cli_overrides_env(self, monkeypatch):
        monkeypatch.setenv("MEMO_SYNC_PROJECT_ID", "env-project")
        monkeypatch.setenv("MEMO_SYNC_COLLECTIONS_DIR", "env-dir")

        config = load_config(
            project_id="cli-project", collections_dir="cli-dir", debug=True
        )

        assert config.project_id == "cli-project"
        assert config.collections_dir == "cli-dir"
        assert config.debug is True

    def test_env_overrides_yaml(self, monkeypatch):
        monkeypatch.setenv("MEMO_SYNC_PROJECT_ID", "env-project")
        unified = UnifiedConfig(store=StoreConfig(project_id="yaml-project"))

        assert load_config(unified=unified).project_id == "env-project"

    def test_yaml_fallback(self):
        unified = UnifiedConfig(
            store=StoreConfig(
                project_id="yaml-project",
                base_url="http://firestore.internal:9000",
                timeout=5.0,
                max_parallel_requests=3,
            ),
            sync=SyncConfig(
                collections_dir="data",
                state_dir="state",
                root_collection="/public/",
            ),
        )

        config = load_config(unified=unified)

        assert config.project_id == "yaml-project"
        assert config.base_url == "http://firestore.internal:9000"
        assert config.timeout == 5.0
        assert config.max_parallel_requests == 3
        assert config.collections_dir == "data"
        assert config.state_dir == "state"
        assert config.root_collection == "public"

    def test_emulator_host(self, monkeypatch):
        monkeypatch.setenv("FIRESTORE_EMULATOR_HOST", "localhost:8080")

        config = load_config(project_id="demo")

        assert config.base_url == "http://localhost:8080"

    def test_explicit_base_url_beats_emulator(self, monkeypatch):
        monkeypatch.setenv("FIRESTORE_EMULATOR_HOST", "localhost:8080")
        monkeypatch.setenv("MEMO_SYNC_BASE_URL", "http://other:1234")

        assert load_config(project_id="demo").base_url == "http://other:1234"

    def test_max_parallel_from_env(self, monkeypatch):
        monkeypatch.setenv("MEMO_SYNC_MAX_PARALLEL_REQUESTS", "12")

        assert load_config(project_id="demo").max_parallel_requests == 12

    @pytest.mark.parametrize("value", ["0", "101", "many"])
    def test_max_parallel_invalid(self, monkeypatch, value):
        monkeypatch.setenv("MEMO_SYNC_MAX_PARALLEL_REQUESTS", value)

        with pytest.raises(ValueError, match="between 1 and 100"):
            load_config(project_id="demo")
