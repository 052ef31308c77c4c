"""Tests for sync/repo_config.py — codesync.json models and store."""

import json

from codesync.file_handler import BufferedFileSystem
from codesync.sync.repo_config import (
    CONFIG_FILE_NAME,
    ComponentConfig,
    ImportSpec,
    ProjectConfig,
    RepoConfig,
    RepoConfigStore,
)


def _component(comp_id="c1"):
    return ComponentConfig(
        id=comp_id,
        name="Button",
        project_id="p1",
        render_module_file_path="plasmic/p/PlasmicButton.tsx",
        import_spec=ImportSpec(module_path="Button.tsx"),
        css_file_path="plasmic/p/PlasmicButton.css",
    )


class TestRepoConfig:
    """Tests for RepoConfig defaults and lookups."""

    def test_defaults(self):
        config = RepoConfig()
        assert config.src_dir == "src/components"
        assert config.default_plasmic_dir == "./plasmic"
        assert config.code.scheme == "blackbox"
        assert config.code.lang == "ts"
        assert config.projects == []

    def test_find_project_and_known_ids(self):
        config = RepoConfig(
            projects=[
                ProjectConfig(
                    project_id="p1", project_name="P", components=[_component()]
                )
            ]
        )
        assert config.find_project("p1").project_name == "P"
        assert config.find_project("nope") is None
        assert config.known_component_ids() == {"c1"}

    def test_camel_case_keys_parsed(self):
        config = RepoConfig.model_validate(
            {
                "srcDir": "src",
                "projects": [
                    {
                        "projectId": "p1",
                        "projectName": "P",
                        "components": [
                            {
                                "id": "c1",
                                "name": "Button",
                                "projectId": "p1",
                                "renderModuleFilePath": "r.tsx",
                                "importSpec": {"modulePath": "Button.tsx"},
                                "cssFilePath": "r.css",
                                "scheme": "direct",
                            }
                        ],
                    }
                ],
            }
        )
        comp = config.projects[0].components[0]
        assert comp.import_spec.module_path == "Button.tsx"
        assert comp.scheme == "direct"


class TestRepoConfigStore:
    """Tests for RepoConfigStore load/save."""

    def test_missing_file_gives_defaults(self, tmp_path):
        store = RepoConfigStore(tmp_path)
        assert not store.exists
        assert store.load() == RepoConfig()

    def test_unknown_keys_preserved(self, tmp_path):
        (tmp_path / CONFIG_FILE_NAME).write_text(
            json.dumps({"platform": "nextjs", "srcDir": "src"})
        )
        store = RepoConfigStore(tmp_path)

        dumped = json.loads(store.dumps(store.load()))

        assert dumped["platform"] == "nextjs"
        assert dumped["srcDir"] == "src"

    def test_unset_scheme_omitted(self):
        config = RepoConfig(
            projects=[
                ProjectConfig(
                    project_id="p1", project_name="P", components=[_component()]
                )
            ]
        )
        data = json.loads(RepoConfigStore.dumps(config))
        comp = data["projects"][0]["components"][0]
        assert "scheme" not in comp
        assert comp["importSpec"] == {"modulePath": "Button.tsx"}

    def test_save_is_staged(self, tmp_path):
        store = RepoConfigStore(tmp_path)
        fs = BufferedFileSystem(tmp_path / "src")

        store.save(RepoConfig(post_sync_commands=["echo hi"]), fs)
        assert not store.exists

        fs.flush()
        assert json.loads(store.path.read_text())["postSyncCommands"] == [
            "echo hi"
        ]
