"""Pydantic models for the sync engine.

Defines the data contracts used across all sync modules:

- Remote payloads (``ResolveResult``, ``ProjectBundle``,
  ``ComponentBundle``, ``GlobalVariantBundle``, ``IconBundle``,
  ``StyleConfigResponse``, ``ProjectSyncMetadata``): validated at the
  client boundary before any field is trusted.
- Run inputs (``SyncOptions``, ``ProjectSyncTarget``).
- Deferred work (``PendingMerge``) and its bookkeeping
  (``ComponentUpdateSummary``, ``BreakingVersion``).
- Results (``ComponentSyncResult``, ``MergeResult``, ``ProjectSyncResult``,
  ``SyncReport``).

All models are frozen (immutable).  Remote payloads use camelCase JSON
keys.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Wire(BaseModel):
    """Base for payloads exchanged with the code-generation service."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class ProjectSyncTarget(_Wire):
    """One user-specified project to resolve."""

    project_id: str
    version_range: str = "latest"
    component_id_or_names: list[str] | None = None


class ResolvedProject(_Wire):
    """A project version chosen by the remote resolver."""

    project_id: str
    version: str
    component_ids: list[str] = Field(default_factory=list)
    icon_ids: list[str] = Field(default_factory=list)


class ResolveConflict(_Wire):
    project_id: str
    versions: list[str] = Field(default_factory=list)


class ResolveResult(_Wire):
    projects: list[ResolvedProject] = Field(default_factory=list)
    conflicts: list[ResolveConflict] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Bundles
# ---------------------------------------------------------------------------


class ProjectMetaBundle(_Wire):
    project_id: str
    project_name: str
    css_file_name: str
    css_rules: str = ""


class ComponentBundle(_Wire):
    """Generated code for one component.

    Attributes:
        name_in_id_to_uuid: Per-node identity mapping, used by structural
            mergers to follow renamed elements.
    """

    id: str
    component_name: str
    render_module: str
    skeleton_module: str
    css_rules: str = ""
    render_module_file_name: str
    skeleton_module_file_name: str
    css_file_name: str
    scheme: Literal["blackbox", "direct"] = "blackbox"
    name_in_id_to_uuid: list[tuple[str, str]] = Field(default_factory=list)


class GlobalVariantBundle(_Wire):
    id: str
    name: str
    context_module: str
    context_file_name: str


class IconBundle(_Wire):
    id: str
    name: str
    module: str
    file_name: str


class IconsResponse(_Wire):
    icons: list[IconBundle] = Field(default_factory=list)


class StyleToken(_Wire):
    id: str
    name: str
    type: str
    value: str


class ProjectBundle(_Wire):
    project_config: ProjectMetaBundle
    components: list[ComponentBundle] = Field(default_factory=list)
    global_variants: list[GlobalVariantBundle] = Field(default_factory=list)
    used_tokens: list[StyleToken] = Field(default_factory=list)


class StyleConfigResponse(_Wire):
    default_style_css_file_name: str
    default_style_css_rules: str = ""


class ComponentSyncMetadata(_Wire):
    id: str
    skeleton_module: str


class ProjectSyncMetadata(_Wire):
    """Merge-base metadata for a project at a given revision."""

    project_id: str
    revision: int
    components: list[ComponentSyncMetadata] = Field(default_factory=list)

    def skeleton_for(self, component_id: str) -> str | None:
        for component in self.components:
            if component.id == component_id:
                return component.skeleton_module
        return None


# ---------------------------------------------------------------------------
# Run inputs and deferred work
# ---------------------------------------------------------------------------


class SyncOptions(BaseModel):
    """Flags controlling one sync run."""

    projects: list[str] = Field(default_factory=list)
    components: list[str] = Field(default_factory=list)
    only_existing: bool = False
    force_overwrite: bool = False
    new_component_scheme: Literal["blackbox", "direct"] | None = None
    append_jsx_on_missing_base: bool = False
    recursive: bool = False
    include_dependencies: bool = False
    non_interactive: bool = False

    model_config = {"frozen": True}


class BreakingVersion(BaseModel):
    """A resolved version that falls outside the stored range."""

    project_id: str
    stored_range: str
    resolved_version: str

    model_config = {"frozen": True}

    def describe(self) -> str:
        return (
            f"{self.project_id}@{self.stored_range}=>v{self.resolved_version}"
        )


class ComponentUpdateSummary(BaseModel):
    skeleton_module_modified: bool

    model_config = {"frozen": True}


class PendingMerge(BaseModel):
    """Deferred reconciliation of a hand-edited direct-scheme skeleton.

    Plain data only: the merge itself is carried out by the merge
    scheduler once the configuration of every project is final.
    """

    project_id: str
    component_id: str
    skeleton_module_path: str
    edited_skeleton_content: str
    new_skeleton_content: str
    name_in_id_to_uuid: list[tuple[str, str]] = Field(default_factory=list)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class ComponentAction(str, Enum):
    """What the reconciler did with a component's skeleton module."""

    CREATED = "created"
    MERGE_PENDING = "merge_pending"
    SKELETON_KEPT = "skeleton_kept"
    SKELETON_OVERWRITTEN = "skeleton_overwritten"
    SKELETON_PROTECTED = "skeleton_protected"


class MergeOutcome(str, Enum):
    MERGED = "merged"
    OVERWRITTEN = "overwritten"


class ComponentSyncResult(BaseModel):
    project_id: str
    component_id: str
    component_name: str
    action: ComponentAction

    model_config = {"frozen": True}


class MergeResult(BaseModel):
    component_id: str
    skeleton_module_path: str
    outcome: MergeOutcome

    model_config = {"frozen": True}


class ProjectSyncResult(BaseModel):
    project_id: str
    project_name: str
    version: str
    version_range: str

    model_config = {"frozen": True}


class SyncReport(BaseModel):
    """Aggregate report for a full sync run.

    Attributes:
        projects: Projects synced, in processing order.
        components: Per-component reconciliation results.
        merges: Deferred merges that were executed.
        files_written: Paths actually written by the final flush.
        post_sync_commands: Commands run after the flush.
        started_at: ISO 8601 timestamp when the run started.
        completed_at: ISO 8601 timestamp when the run completed.
    """

    projects: list[ProjectSyncResult] = Field(default_factory=list)
    components: list[ComponentSyncResult] = Field(default_factory=list)
    merges: list[MergeResult] = Field(default_factory=list)
    files_written: list[str] = Field(default_factory=list)
    post_sync_commands: list[str] = Field(default_factory=list)
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    def components_with(
        self, action: ComponentAction
    ) -> list[ComponentSyncResult]:
        return [c for c in self.components if c.action == action]

    @property
    def created(self) -> list[ComponentSyncResult]:
        return self.components_with(ComponentAction.CREATED)

    @property
    def protected(self) -> list[ComponentSyncResult]:
        """Skeletons left untouched despite carrying a managed marker."""
        return self.components_with(ComponentAction.SKELETON_PROTECTED)
