"""Per-run state shared by the sync stages.

A ``RunContext`` is created once per sync run and passed explicitly through
the orchestrator, the reconciler, the asset syncers and the merge scheduler.
It owns everything a run mutates: the in-memory repo config, the buffered
file system, the component update summary, the pending-merge queue and the
result lists that end up in the ``SyncReport``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from codesync.file_handler import BufferedFileSystem
from codesync.sync.models import (
    ComponentSyncResult,
    ComponentUpdateSummary,
    MergeResult,
    PendingMerge,
    ProjectSyncResult,
    SyncOptions,
)
from codesync.sync.repo_config import RepoConfig


@dataclass
class RunContext:
    config: RepoConfig
    options: SyncOptions
    fs: BufferedFileSystem
    summary: dict[str, ComponentUpdateSummary] = field(default_factory=dict)
    pending_merges: list[PendingMerge] = field(default_factory=list)
    project_results: list[ProjectSyncResult] = field(default_factory=list)
    component_results: list[ComponentSyncResult] = field(
        default_factory=list
    )
    merge_results: list[MergeResult] = field(default_factory=list)

    @property
    def new_component_scheme(self) -> str:
        return self.options.new_component_scheme or self.config.code.scheme
