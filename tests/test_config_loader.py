"""Tests for memo_sync.config_loader -- finding and merging config files."""

import textwrap

import pytest

from memo_sync.config_loader import (
    discover_config_files,
    expand_env,
    load_unified_config,
    merge_sections,
    read_config_file,
)
from memo_sync.config_schema import UnifiedConfig


def _write(path, text: str):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return path


@pytest.fixture
def layout(tmp_path, monkeypatch):
    """Empty project dir as CWD and an empty HOME."""
    home = tmp_path / "home"
    project = tmp_path / "project"
    home.mkdir()
    project.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("MEMO_SYNC_CONFIG", raising=False)
    monkeypatch.chdir(project)
    return {
        "project": project / ".memo_sync" / "config.yml",
        "global": home / ".config" / "memo_sync" / "config.yml",
        "root": tmp_path,
    }


# -------------------------------------------------------------------------
# Environment references
# -------------------------------------------------------------------------


class TestExpandEnv:
    def test_token_from_environment(self, monkeypatch):
        monkeypatch.setenv("FIRESTORE_TOKEN", "secret")
        assert expand_env({"store": {"token": "${FIRESTORE_TOKEN}"}}) == {
            "store": {"token": "secret"}
        }

    def test_default_for_unset_variable(self, monkeypatch):
        monkeypatch.delenv("EMULATOR", raising=False)
        assert (
            expand_env("http://${EMULATOR:-localhost:8080}")
            == "http://localhost:8080"
        )

    def test_unset_without_default_is_empty(self, monkeypatch):
        monkeypatch.delenv("MISSING_TOKEN", raising=False)
        assert expand_env("${MISSING_TOKEN}") == ""

    def test_non_strings_untouched(self):
        assert expand_env({"store": {"timeout": 5.0}}) == {
            "store": {"timeout": 5.0}
        }


# -------------------------------------------------------------------------
# Single file parsing
# -------------------------------------------------------------------------


class TestReadConfigFile:
    def test_sections(self, tmp_path):
        path = _write(
            tmp_path / "config.yml",
            """\
            store:
              project_id: demo
            sync:
              collections_dir: content/collections
            """,
        )

        assert read_config_file(path) == {
            "store": {"project_id": "demo"},
            "sync": {"collections_dir": "content/collections"},
        }

    def test_empty_file_and_empty_section(self, tmp_path):
        assert read_config_file(_write(tmp_path / "a.yml", "")) == {}
        assert read_config_file(_write(tmp_path / "b.yml", "logging:\n")) == {
            "logging": {}
        }

    def test_unknown_section_rejected(self, tmp_path):
        path = _write(tmp_path / "config.yml", "trac:\n  url: x\n")

        with pytest.raises(ValueError, match="unknown section.*trac"):
            read_config_file(path)

    def test_list_root_rejected(self, tmp_path):
        path = _write(tmp_path / "config.yml", "- store\n")

        with pytest.raises(ValueError, match="expected a mapping"):
            read_config_file(path)

    def test_scalar_section_rejected(self, tmp_path):
        path = _write(tmp_path / "config.yml", "store: demo\n")

        with pytest.raises(ValueError, match="'store' must be a mapping"):
            read_config_file(path)

    def test_invalid_yaml(self, tmp_path):
        path = _write(tmp_path / "config.yml", "store: [unclosed\n")

        with pytest.raises(ValueError, match="Invalid YAML"):
            read_config_file(path)


def test_merge_sections_is_per_key():
    merged = merge_sections(
        [
            {"store": {"project_id": "global", "token": "t"}},
            {"store": {"project_id": "local"}, "logging": {"level": "DEBUG"}},
        ]
    )

    assert merged == {
        "store": {"project_id": "local", "token": "t"},
        "logging": {"level": "DEBUG"},
    }


# -------------------------------------------------------------------------
# Discovery and loading
# -------------------------------------------------------------------------


class TestDiscovery:
    def test_nothing_found(self, layout):
        assert discover_config_files() == []
        assert load_unified_config() == UnifiedConfig()

    def test_precedence_order(self, layout, monkeypatch):
        explicit = _write(layout["root"] / "ci.yml", "{}\n")
        _write(layout["project"], "{}\n")
        _write(layout["global"], "{}\n")
        monkeypatch.setenv("MEMO_SYNC_CONFIG", str(explicit))

        found = discover_config_files()

        assert [p.resolve() for p in found] == [
            explicit.resolve(),
            layout["project"].resolve(),
            layout["global"].resolve(),
        ]

    def test_yaml_extension(self, layout):
        path = _write(layout["project"].with_suffix(".yaml"), "{}\n")

        assert [p.resolve() for p in discover_config_files()] == [
            path.resolve()
        ]

    def test_missing_explicit_file(self, layout, monkeypatch):
        monkeypatch.setenv("MEMO_SYNC_CONFIG", str(layout["root"] / "nope.yml"))

        with pytest.raises(ValueError, match="missing file"):
            discover_config_files()


class TestLoadUnifiedConfig:
    def test_project_overrides_global_per_key(self, layout, monkeypatch):
        monkeypatch.setenv("FIRESTORE_TOKEN", "secret")
        _write(
            layout["global"],
            """\
            store:
              project_id: shared
              token: ${FIRESTORE_TOKEN}
            logging:
              level: WARNING
            """,
        )
        _write(
            layout["project"],
            """\
            store:
              project_id: memo-app
            sync:
              root_collection: public
            """,
        )

        config = load_unified_config()

        assert config.store.project_id == "memo-app"
        assert config.store.token == "secret"
        assert config.sync.root_collection == "public"
        assert config.sync.collections_dir == "collections"
        assert config.logging.level == "WARNING"

    def test_env_reference_coerced_to_field_type(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SYNC_PARALLEL", "12")
        path = _write(
            tmp_path / "config.yml",
            "store:\n  max_parallel_requests: ${SYNC_PARALLEL}\n",
        )

        assert load_unified_config([path]).store.max_parallel_requests == 12

    def test_misspelt_key_rejected(self, tmp_path):
        path = _write(tmp_path / "config.yml", "store:\n  projectid: demo\n")

        with pytest.raises(ValueError):
            load_unified_config([path])

    def test_out_of_range_value_rejected(self, tmp_path):
        path = _write(
            tmp_path / "config.yml", "store:\n  max_parallel_requests: 500\n"
        )

        with pytest.raises(ValueError):
            load_unified_config([path])
