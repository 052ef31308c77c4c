"""Tests for sync version resolution and confirmation strategies."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from conftest import FakeCodegenClient

from codesync.errors import (
    ConflictError,
    SyncAbortedError,
    UserInputError,
    VersionRangeError,
)
from codesync.sync.models import ResolveConflict, ResolvedProject, SyncOptions
from codesync.sync.repo_config import ProjectConfig, RepoConfig
from codesync.sync.resolver import (
    PromptConfirmer,
    StaticConfirmer,
    VersionResolver,
    create_confirmer,
    find_breaking_versions,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _config(*stored: tuple[str, str]) -> RepoConfig:
    """Repo config with one stored project per ``(project_id, range)``."""
    return RepoConfig(
        projects=[
            ProjectConfig(project_id=pid, project_name=pid.upper(), version=rng)
            for pid, rng in stored
        ]
    )


def _resolver(client, config, answer=True):
    return VersionResolver(client, config, StaticConfirmer(answer))


# ---------------------------------------------------------------------------
# Confirmers
# ---------------------------------------------------------------------------


class TestPromptConfirmer:
    @pytest.mark.parametrize("answer", ["", "y", "Y", "yes", " YES "])
    def test_accepts(self, answer):
        with patch("builtins.input", return_value=answer) as mock_input:
            assert PromptConfirmer().confirm("Continue?") is True
        mock_input.assert_called_once_with("Continue? (Y/n) ")

    @pytest.mark.parametrize("answer", ["n", "no", "nope"])
    def test_declines(self, answer):
        with patch("builtins.input", return_value=answer):
            assert PromptConfirmer().confirm("Continue?") is False

    def test_closed_stdin_declines(self):
        with patch("builtins.input", side_effect=EOFError):
            assert PromptConfirmer().confirm("Continue?") is False


class TestCreateConfirmer:
    def test_non_interactive_is_static_no(self):
        confirmer = create_confirmer(non_interactive=True)
        assert isinstance(confirmer, StaticConfirmer)
        assert confirmer.confirm("anything") is False

    def test_interactive_prompts(self):
        assert isinstance(create_confirmer(non_interactive=False), PromptConfirmer)


# ---------------------------------------------------------------------------
# find_breaking_versions
# ---------------------------------------------------------------------------


class TestFindBreakingVersions:
    def test_outside_range_is_breaking(self):
        breaking = find_breaking_versions(
            [ResolvedProject(project_id="p1", version="2.0.0")],
            _config(("p1", "^1.0.0")),
        )
        assert [b.describe() for b in breaking] == ["p1@^1.0.0=>v2.0.0"]

    def test_prerelease_of_next_major_is_breaking(self):
        breaking = find_breaking_versions(
            [ResolvedProject(project_id="p1", version="2.0.0-beta.1")],
            _config(("p1", "^1.0.0")),
        )
        assert [b.describe() for b in breaking] == ["p1@^1.0.0=>v2.0.0-beta.1"]

    def test_inside_range_and_unknown_projects_ok(self):
        breaking = find_breaking_versions(
            [
                ResolvedProject(project_id="p1", version="1.4.0"),
                ResolvedProject(project_id="new", version="9.0.0"),
            ],
            _config(("p1", "^1.0.0")),
        )
        assert breaking == []


# ---------------------------------------------------------------------------
# VersionResolver
# ---------------------------------------------------------------------------


class TestVersionResolver:
    def test_no_projects_raises_without_calling_service(self):
        client = FakeCodegenClient()

        with pytest.raises(UserInputError, match="--projects"):
            _resolver(client, RepoConfig()).resolve(SyncOptions())

        assert client.calls == []

    def test_defaults_to_stored_projects(self):
        client = FakeCodegenClient()
        client.resolve(ResolvedProject(project_id="p1", version="1.0.0"))
        config = _config(("p1", "^1.0.0"))

        _resolver(client, config).resolve(SyncOptions())

        (targets,), _ = client.calls_to("resolve_sync")[0]
        assert [(t.project_id, t.version_range) for t in targets] == [
            ("p1", "^1.0.0")
        ]

    def test_targets_carry_components_and_flags(self):
        client = FakeCodegenClient()
        client.resolve(ResolvedProject(project_id="p2", version="1.0.0"))

        _resolver(client, RepoConfig()).resolve(
            SyncOptions(projects=["p2"], components=["Button"], recursive=True)
        )

        (targets,), kwargs = client.calls_to("resolve_sync")[0]
        assert targets[0].version_range == "latest"
        assert targets[0].component_id_or_names == ["Button"]
        assert kwargs == {"recursive": True, "include_dependencies": False}

    def test_conflicts_checked_before_empty_result(self):
        client = FakeCodegenClient()
        client.conflicts = [
            ResolveConflict(project_id="dep", versions=["1.0.0", "2.0.0"])
        ]

        with pytest.raises(ConflictError, match="dep"):
            _resolver(client, RepoConfig()).resolve(SyncOptions(projects=["p1"]))

    def test_empty_resolution_raises(self):
        client = FakeCodegenClient()

        with pytest.raises(UserInputError, match="Found nothing to sync"):
            _resolver(client, RepoConfig()).resolve(SyncOptions(projects=["p1"]))

    def test_breaking_non_interactive_raises(self):
        client = FakeCodegenClient()
        client.resolve(ResolvedProject(project_id="p1", version="2.0.0"))
        confirmer = MagicMock()
        config = _config(("p1", "^1.0.0"))

        with pytest.raises(VersionRangeError, match=r"p1@\^1.0.0=>v2.0.0"):
            VersionResolver(client, config, confirmer).resolve(
                SyncOptions(non_interactive=True)
            )

        confirmer.confirm.assert_not_called()
        assert config.projects[0].version == "^1.0.0"

    def test_breaking_declined_aborts(self):
        client = FakeCodegenClient()
        client.resolve(ResolvedProject(project_id="p1", version="2.0.0"))
        config = _config(("p1", "^1.0.0"))

        with pytest.raises(SyncAbortedError):
            _resolver(client, config, answer=False).resolve(SyncOptions())

        assert config.projects[0].version == "^1.0.0"

    def test_breaking_with_closed_stdin_aborts(self):
        client = FakeCodegenClient()
        client.resolve(ResolvedProject(project_id="p1", version="2.0.0"))
        config = _config(("p1", "^1.0.0"))
        resolver = VersionResolver(client, config, PromptConfirmer())

        with patch("builtins.input", side_effect=EOFError):
            with pytest.raises(SyncAbortedError):
                resolver.resolve(SyncOptions())

        assert config.projects[0].version == "^1.0.0"

    def test_breaking_accepted_rewrites_range(self):
        client = FakeCodegenClient()
        client.resolve(ResolvedProject(project_id="p1", version="2.0.0"))
        config = _config(("p1", "^1.0.0"))

        resolved = _resolver(client, config, answer=True).resolve(SyncOptions())

        assert [p.version for p in resolved] == ["2.0.0"]
        assert config.projects[0].version == "^2.0.0"

    def test_latest_range_rewritten_to_caret(self):
        client = FakeCodegenClient()
        client.resolve(ResolvedProject(project_id="p1", version="1.3.0"))
        config = _config(("p1", "latest"))

        _resolver(client, config).resolve(SyncOptions())

        assert config.projects[0].version == "^1.3.0"

    def test_invalid_version_leaves_range_unchanged(self):
        client = FakeCodegenClient()
        client.resolve(ResolvedProject(project_id="p1", version="draft"))
        config = _config(("p1", "latest"))

        _resolver(client, config).resolve(SyncOptions())

        assert config.projects[0].version == "latest"

    def test_resolution_order_preserved(self):
        client = FakeCodegenClient()
        client.resolve(
            ResolvedProject(project_id="dep", version="1.0.0"),
            ResolvedProject(project_id="p1", version="1.0.0"),
        )

        resolved = _resolver(client, RepoConfig()).resolve(
            SyncOptions(projects=["p1"])
        )

        assert [p.project_id for p in resolved] == ["dep", "p1"]
