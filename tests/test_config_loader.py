"""Tests for codesync.config_loader — hierarchical config loading."""

import textwrap

import pytest

from codesync.config_loader import (
    _interpolate_tree,
    _load_yaml,
    discover_config_files,
    interpolate_env_vars,
    load_hierarchical_config,
)

# -------------------------------------------------------------------------
# Env var interpolation
# -------------------------------------------------------------------------


class TestInterpolateEnvVars:
    """Tests for ${VAR} and ${VAR:-default} substitution."""

    def test_replaces_set_var(self, monkeypatch):
        monkeypatch.setenv("MY_HOST", "localhost")
        assert interpolate_env_vars("${MY_HOST}") == "localhost"

    def test_unset_var_replaced_with_empty(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ}") == ""

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ:-fallback}") == "fallback"

    def test_default_ignored_when_set(self, monkeypatch):
        monkeypatch.setenv("MY_PORT", "8080")
        assert interpolate_env_vars("${MY_PORT:-3000}") == "8080"

    def test_multiple_vars_in_one_string(self, monkeypatch):
        monkeypatch.setenv("HOST_A", "codegen.local")
        monkeypatch.setenv("PORT_A", "3003")
        assert interpolate_env_vars("https://${HOST_A}:${PORT_A}") == (
            "https://codegen.local:3003"
        )

    def test_unterminated_kept(self):
        assert interpolate_env_vars("${OOPS") == "${OOPS"

    def test_tree_interpolation(self, monkeypatch):
        monkeypatch.setenv("TOKEN_X", "abc")
        data = {"server": {"token": "${TOKEN_X}", "timeout": 30}, "l": ["${TOKEN_X}"]}
        assert _interpolate_tree(data) == {
            "server": {"token": "abc", "timeout": 30},
            "l": ["abc"],
        }


# -------------------------------------------------------------------------
# !include
# -------------------------------------------------------------------------


class TestIncludes:
    """Tests for the !include tag."""

    def test_include_relative(self, tmp_path):
        (tmp_path / "server.yml").write_text("host: https://codegen.example.com\n")
        main = tmp_path / "config.yml"
        main.write_text("server: !include server.yml\n")

        assert _load_yaml(main) == {"server": {"host": "https://codegen.example.com"}}

    def test_missing_include(self, tmp_path):
        main = tmp_path / "config.yml"
        main.write_text("server: !include nope.yml\n")

        with pytest.raises(FileNotFoundError, match="Include file not found"):
            _load_yaml(main)

    def test_circular_include(self, tmp_path):
        (tmp_path / "a.yml").write_text("b: !include b.yml\n")
        (tmp_path / "b.yml").write_text("a: !include a.yml\n")

        with pytest.raises(ValueError, match="Circular include"):
            _load_yaml(tmp_path / "a.yml")


# -------------------------------------------------------------------------
# Discovery and merge
# -------------------------------------------------------------------------


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """CWD and HOME inside tmp_path, no CODESYNC_CONFIG."""
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("CODESYNC_CONFIG", raising=False)
    monkeypatch.chdir(work)
    return work, home


class TestDiscoverConfigFiles:
    def test_none_found(self, isolated):
        assert discover_config_files() == []

    def test_precedence_order(self, isolated, monkeypatch, tmp_path):
        work, home = isolated
        explicit = tmp_path / "explicit.yml"
        explicit.write_text("{}\n")
        (work / ".codesync").mkdir()
        (work / ".codesync" / "config.yml").write_text("{}\n")
        (home / ".config" / "codesync").mkdir(parents=True)
        (home / ".config" / "codesync" / "config.yml").write_text("{}\n")
        monkeypatch.setenv("CODESYNC_CONFIG", str(explicit))

        found = discover_config_files()

        assert found[0] == explicit.resolve()
        assert found[1] == (work / ".codesync" / "config.yml").resolve()
        assert found[2] == home / ".config" / "codesync" / "config.yml"


class TestLoadHierarchicalConfig:
    def test_empty_without_files(self, isolated):
        assert load_hierarchical_config() == {}

    def test_closer_file_wins(self, isolated, monkeypatch):
        work, home = isolated
        monkeypatch.setenv("CS_TEST_TOKEN", "from-env")
        (home / ".config" / "codesync").mkdir(parents=True)
        (home / ".config" / "codesync" / "config.yml").write_text(
            textwrap.dedent(
                """\
                server:
                  host: https://home.example.com
                logging:
                  level: DEBUG
                """
            )
        )
        (work / ".codesync").mkdir()
        (work / ".codesync" / "config.yml").write_text(
            textwrap.dedent(
                """\
                server:
                  host: https://project.example.com
                  token: ${CS_TEST_TOKEN}
                """
            )
        )

        merged = load_hierarchical_config()

        assert merged["server"] == {
            "host": "https://project.example.com",
            "token": "from-env",
        }
        assert merged["logging"] == {"level": "DEBUG"}

    def test_non_mapping_ignored(self, isolated):
        work, _ = isolated
        (work / ".codesync").mkdir()
        (work / ".codesync" / "config.yml").write_text("- a\n- b\n")

        assert load_hierarchical_config() == {}
