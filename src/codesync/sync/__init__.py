"""Code sync reconciliation engine.

Public API for reconciling hand-editable generated code in a repository
with freshly generated code from the remote code-generation service.

Architecture
------------
A run is a two-phase pipeline.  The first phase syncs every resolved
project and only *enqueues* merges of hand-edited (``direct`` scheme)
skeletons as plain ``PendingMerge`` descriptors.  The second phase runs
once the repo config is final: pending merges are executed with imports
resolved against final paths, then import statements are fixed globally.
All writes go through a ``BufferedFileSystem`` flushed at the very end.

Modules:

- ``engine``      -- ``SyncEngine``: orchestrates a full sync run.
- ``resolver``    -- ``VersionResolver`` and confirmation strategies.
- ``reconciler``  -- ``ComponentReconciler``: per-component state machine,
  project config and global variants.
- ``merger``      -- ``MergeScheduler`` and the ``merge3`` three-way merger.
- ``assets``      -- style tokens, icons, default style sheet.
- ``imports``     -- rewriting of annotated import statements.
- ``converter``   -- TSX to JSX conversion.
- ``mapper``      -- ``PathLayout``: default repository paths.
- ``versions``    -- version parsing and range satisfaction.
- ``repo_config`` -- ``codesync.json`` models and store.
- ``context``     -- ``RunContext``: per-run state.
- ``models``      -- remote payloads, options and report models.
- ``reporter``    -- human-readable and JSON report formatting.

Usage example
-------------
::

    from pathlib import Path
    from codesync.core.client import CodegenClient
    from codesync.sync import SyncEngine, SyncOptions, format_sync_report
    from codesync.sync.repo_config import RepoConfigStore

    engine = SyncEngine(
        client=CodegenClient(config),
        store=RepoConfigStore(Path(".")),
        options=SyncOptions(projects=["p1"], non_interactive=True),
    )
    report = engine.run()
    print(format_sync_report(report))
"""

from .engine import SyncEngine
from .models import (
    ComponentAction,
    MergeOutcome,
    PendingMerge,
    SyncOptions,
    SyncReport,
)
from .reporter import format_error, format_sync_report, report_to_json
from .resolver import VersionResolver

__all__ = [
    "ComponentAction",
    "MergeOutcome",
    "PendingMerge",
    "SyncEngine",
    "SyncOptions",
    "SyncReport",
    "VersionResolver",
    "format_error",
    "format_sync_report",
    "report_to_json",
]
