"""Sync orchestrator that drives a full code-sync run.

The ``SyncEngine`` ties together the version resolver, the component
reconciler, the asset syncers and the merge scheduler.  It:

1. Loads the repo config (``codesync.json``).
2. Resolves the project versions to sync.
3. Syncs every resolved project, in reverse resolution order: global
   variants, project config, components, style tokens, icons.
4. Materializes unset component schemes.
5. Writes the default style sheet and stages the updated config.
6. Executes deferred merges, then fixes import statements globally.
7. Flushes every staged file in one batch.
8. Runs the configured post-sync commands.

All file writes are staged in a ``BufferedFileSystem``; any error before
step 7 leaves the working tree untouched.  Errors propagate to the caller.
"""

from __future__ import annotations

import json
import logging
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from codesync import __version__
from codesync.file_handler import BufferedFileSystem
from codesync.sync.assets import (
    sync_project_icon_assets,
    sync_style_config,
    upsert_style_tokens,
)
from codesync.sync.context import RunContext
from codesync.sync.converter import (
    CommandScriptConverter,
    ScriptConverter,
    convert_icons,
    convert_project_bundle,
)
from codesync.sync.imports import fix_all_import_statements
from codesync.sync.merger import (
    CachedSyncMetadataProvider,
    MergeScheduler,
    SkeletonMerger,
    ThreeWaySkeletonMerger,
)
from codesync.sync.models import (
    ProjectSyncResult,
    ResolvedProject,
    SyncOptions,
    SyncReport,
)
from codesync.sync.reconciler import (
    ComponentReconciler,
    sync_global_variants,
    sync_project_config,
)
from codesync.sync.repo_config import RepoConfigStore
from codesync.sync.resolver import Confirmer, VersionResolver, create_confirmer
from codesync.sync.versions import LATEST, to_caret_range

if TYPE_CHECKING:
    from codesync.core.client import CodegenClient

logger = logging.getLogger(__name__)

REACT_WEB_PACKAGE = "@plasmicapp/react-web"


def find_installed_version(root_dir: Path, package: str) -> str | None:
    """Return the version of *package* installed under ``node_modules``."""
    manifest = root_dir / "node_modules" / package / "package.json"
    if not manifest.is_file():
        return None
    try:
        return json.loads(manifest.read_text(encoding="utf-8")).get("version")
    except (OSError, ValueError) as exc:
        logger.debug("Cannot read %s: %s", manifest, exc)
        return None


class SyncEngine:
    """Orchestrate one sync run.

    Args:
        client: Code-generation service client.
        store: Store of the repository's ``codesync.json``.
        options: Run flags.
        confirmer: Asked about breaking version upgrades.  Defaults to
            ``create_confirmer(options.non_interactive)``.
        converter: TSX to JSX converter used when ``code.lang`` is ``js``.
        merger: Skeleton merge strategy.  Defaults to a three-way merge
            against the service's merge base.
        cli_version: Version reported to the service.
    """

    def __init__(
        self,
        client: CodegenClient,
        store: RepoConfigStore,
        options: SyncOptions,
        confirmer: Confirmer | None = None,
        converter: ScriptConverter | None = None,
        merger: SkeletonMerger | None = None,
        cli_version: str = __version__,
    ) -> None:
        self.client = client
        self.store = store
        self.options = options
        self.confirmer = confirmer or create_confirmer(options.non_interactive)
        self.converter = converter or CommandScriptConverter()
        self.merger = merger or ThreeWaySkeletonMerger(
            CachedSyncMetadataProvider(client),
            append_jsx_on_missing_base=options.append_jsx_on_missing_base,
        )
        self.cli_version = cli_version

    @property
    def root_dir(self) -> Path:
        return self.store.root_dir

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def run(self) -> SyncReport:
        """Execute a full sync run.

        Returns:
            A ``SyncReport`` describing what was done.

        Raises:
            SyncError: Any handled failure; no file has been written.
        """
        started_at = datetime.now(timezone.utc).isoformat()

        config = self.store.load()
        fs = BufferedFileSystem(self.root_dir / config.src_dir)
        run = RunContext(config=config, options=self.options, fs=fs)

        try:
            resolver = VersionResolver(self.client, config, self.confirmer)
            resolved = resolver.resolve(self.options)
            requested = set(resolver.requested_project_ids(self.options))

            react_web_version = find_installed_version(
                self.root_dir, REACT_WEB_PACKAGE
            )
            # Leaves of the dependency tree first
            for project in reversed(resolved):
                if project.project_id in requested:
                    version_range = LATEST
                else:
                    version_range = to_caret_range(project.version) or LATEST
                self._sync_project(run, project, version_range, react_web_version)

            self._materialize_schemes(run)
            sync_style_config(run, self.client.gen_style_config())
            self.store.save(config, fs)

            MergeScheduler(run, self.merger).execute()
            fix_all_import_statements(run)
        except BaseException:
            logger.debug("Sync failed, discarding %d staged files", len(fs.staged_paths))
            fs.discard()
            raise

        written = fs.flush()
        commands = self._run_post_sync_commands(config.post_sync_commands)

        return SyncReport(
            projects=run.project_results,
            components=run.component_results,
            merges=run.merge_results,
            files_written=[str(p) for p in written],
            post_sync_commands=commands,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
        )

    # ------------------------------------------------------------------
    # Per-project sync
    # ------------------------------------------------------------------

    def _sync_project(
        self,
        run: RunContext,
        resolved: ResolvedProject,
        version_range: str,
        react_web_version: str | None,
    ) -> None:
        project_id = resolved.project_id
        existing = run.config.find_project(project_id)
        existing_schemes = [
            (c.id, c.scheme) for c in (existing.components if existing else [])
        ]

        bundle = self.client.project_components(
            project_id,
            cli_version=self.cli_version,
            react_web_version=react_web_version,
            new_component_scheme=run.new_component_scheme,
            existing_component_schemes=existing_schemes,
            component_ids=resolved.component_ids,
            version=resolved.version,
        )
        if run.config.code.lang == "js":
            bundle = convert_project_bundle(bundle, self.converter)

        components = bundle.components
        if run.options.only_existing:
            known = run.config.known_component_ids()
            components = [c for c in components if c.id in known]

        sync_global_variants(run, project_id, bundle.global_variants)
        project = sync_project_config(run, bundle.project_config, version_range)
        ComponentReconciler(run).sync_components(
            project, resolved.version, components
        )
        upsert_style_tokens(run, project_id, bundle.used_tokens)

        # An empty icon list would fetch every icon
        if resolved.icon_ids:
            icons = self.client.project_icons(
                project_id, version_range, resolved.icon_ids
            ).icons
            if run.config.code.lang == "js":
                icons = convert_icons(icons, self.converter)
            sync_project_icon_assets(run, project_id, icons)

        run.project_results.append(
            ProjectSyncResult(
                project_id=project_id,
                project_name=project.project_name,
                version=resolved.version,
                version_range=project.version,
            )
        )

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    @staticmethod
    def _materialize_schemes(run: RunContext) -> None:
        default = run.config.code.scheme
        for project in run.config.projects:
            for component in project.components:
                if not component.scheme:
                    component.scheme = default

    def _run_post_sync_commands(self, commands: list[str]) -> list[str]:
        ran: list[str] = []
        for cmd in commands:
            logger.info("Running post-sync command: %s", cmd)
            completed = subprocess.run(cmd, shell=True, cwd=self.root_dir)
            if completed.returncode != 0:
                logger.debug(
                    "Post-sync command exited with %d", completed.returncode
                )
            ran.append(cmd)
        return ran
