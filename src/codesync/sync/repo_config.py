"""Persisted repository configuration (``codesync.json``).

The repo config is the single source of truth for which projects and
components are managed locally, where their files live and which code
scheme each component uses.  The models are **mutable** on purpose: a
sync run updates them in place and persists once at the end.

JSON keys are camelCase (``projectId``, ``importSpec.modulePath``); the
Python attributes are snake_case.  Unknown keys are preserved so that a
round-trip never drops settings written by other tools.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from codesync.file_handler import BufferedFileSystem

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "codesync.json"

Scheme = Literal["blackbox", "direct"]


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        validate_assignment=True,
    )


class ImportSpec(_ConfigModel):
    module_path: str


class ComponentConfig(_ConfigModel):
    """A managed component.  Identity is ``id``; ``name`` may change."""

    id: str
    name: str
    type: str = "managed"
    project_id: str
    render_module_file_path: str
    import_spec: ImportSpec
    css_file_path: str
    scheme: Scheme | None = None


class IconConfig(_ConfigModel):
    id: str
    name: str
    module_file_path: str


class ProjectConfig(_ConfigModel):
    project_id: str
    project_name: str
    version: str = "latest"
    css_file_path: str = ""
    components: list[ComponentConfig] = Field(default_factory=list)
    icons: list[IconConfig] = Field(default_factory=list)


class GlobalVariantGroupConfig(_ConfigModel):
    id: str
    name: str
    project_id: str
    context_file_path: str


class GlobalVariantsConfig(_ConfigModel):
    variant_groups: list[GlobalVariantGroupConfig] = Field(
        default_factory=list
    )


class StyleConfig(_ConfigModel):
    scheme: str = "css"
    default_style_css_file_path: str = ""


class CodeConfig(_ConfigModel):
    lang: Literal["ts", "js"] = "ts"
    scheme: Scheme = "blackbox"


class TokensConfig(_ConfigModel):
    tokens_file_path: str = "plasmic-tokens.theo.json"


class RepoConfig(_ConfigModel):
    """Top-level ``codesync.json`` document.

    Every section has defaults, so ``RepoConfig()`` describes an empty,
    freshly initialised repository.
    """

    src_dir: str = "src/components"
    default_plasmic_dir: str = "./plasmic"
    code: CodeConfig = Field(default_factory=CodeConfig)
    style: StyleConfig = Field(default_factory=StyleConfig)
    tokens: TokensConfig = Field(default_factory=TokensConfig)
    projects: list[ProjectConfig] = Field(default_factory=list)
    global_variants: GlobalVariantsConfig = Field(
        default_factory=GlobalVariantsConfig
    )
    post_sync_commands: list[str] = Field(default_factory=list)

    def find_project(self, project_id: str) -> ProjectConfig | None:
        """Return the stored project with *project_id*, if any."""
        for project in self.projects:
            if project.project_id == project_id:
                return project
        return None

    def known_component_ids(self) -> set[str]:
        """Ids of every component stored under any project."""
        return {c.id for p in self.projects for c in p.components}


class RepoConfigStore:
    """Load and persist ``codesync.json`` for a repository root.

    Args:
        root_dir: Directory containing ``codesync.json``.
    """

    def __init__(self, root_dir: Path) -> None:
        self.root_dir = root_dir

    @property
    def path(self) -> Path:
        return self.root_dir / CONFIG_FILE_NAME

    @property
    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> RepoConfig:
        """Load the repo config.

        Returns:
            The parsed config, or a default ``RepoConfig`` when the file
            does not exist yet (first-ever sync).
        """
        if not self.exists:
            logger.info(
                "%s not found in %s -- starting from defaults",
                CONFIG_FILE_NAME,
                self.root_dir,
            )
            return RepoConfig()
        with open(self.path, encoding="utf-8") as fh:
            return RepoConfig.model_validate(json.load(fh))

    def save(self, config: RepoConfig, fs: BufferedFileSystem) -> None:
        """Stage the serialized config in *fs*.

        The config is written together with every other staged file when
        *fs* is flushed, so a failed run never persists a half-updated
        config.
        """
        fs.write(self.path, self.dumps(config), force=True)

    @staticmethod
    def dumps(config: RepoConfig) -> str:
        data = config.model_dump(
            mode="json", by_alias=True, exclude_none=True
        )
        return json.dumps(data, indent=2) + "\n"
