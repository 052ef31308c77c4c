"""Deferred skeleton merges for direct-scheme components.

Uses the ``merge3`` library for three-way merging (the same algorithm used
by Bazaar/Breezy).

Key design choices:

* Merges run only after every project has been synced, schemes have been
  materialized and the repo config has been staged, because import paths
  in all three inputs are resolved against the final configuration.
* The merge base is the skeleton the service generated for the revision
  recorded in the edited file's ``// plasmic-managed-jsx/<revision>``
  marker.  Base metadata is fetched once per ``(project, revision)``.  The
  base is import-resolved with the same context as the other two inputs.
* Conflict markers follow Git convention with custom labels:
  ``<<<<<<< EDITED``, ``=======``, ``>>>>>>> GENERATED``.  A merge with
  conflicts is reported as a failure; markers never reach the working tree.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Protocol

from merge3 import Merge3

from codesync.errors import MergeFailure, RevisionNotFoundError
from codesync.sync.imports import (
    FixImportContext,
    build_fix_import_context,
    replace_imports,
)
from codesync.sync.models import (
    MergeOutcome,
    MergeResult,
    PendingMerge,
    ProjectSyncMetadata,
)

if TYPE_CHECKING:
    from codesync.core.client import CodegenClient
    from codesync.sync.context import RunContext

logger = logging.getLogger(__name__)

MANAGED_JSX_MARKER = re.compile(r"//\s*plasmic-managed-jsx/(\d+)")

_START_MARKER = "<<<<<<< EDITED"


def has_managed_marker(content: str) -> bool:
    """Whether *content* carries a managed-edit marker."""
    return MANAGED_JSX_MARKER.search(content) is not None


def managed_revision(content: str) -> int | None:
    """Return the revision recorded in the managed-edit marker, if any."""
    match = MANAGED_JSX_MARKER.search(content)
    return int(match.group(1)) if match else None


def attempt_merge(
    base_content: str,
    edited_content: str,
    generated_content: str,
) -> tuple[str, bool]:
    """Perform a three-way merge of hand edits and regenerated code.

    Args:
        base_content: The skeleton generated at the edited file's revision.
        edited_content: The developer's current skeleton.
        generated_content: The freshly generated skeleton.

    Returns:
        A tuple of ``(merged_text, has_conflicts)``.
    """
    m3 = Merge3(
        base_content.splitlines(True),
        edited_content.splitlines(True),
        generated_content.splitlines(True),
    )
    merged_text = "".join(
        m3.merge_lines(
            name_a="EDITED",
            name_b="GENERATED",
            start_marker=_START_MARKER,
            mid_marker="=======",
            end_marker=">>>>>>> GENERATED",
        )
    )
    return merged_text, _START_MARKER in merged_text


# ---------------------------------------------------------------------------
# Merge collaborators
# ---------------------------------------------------------------------------


class SkeletonMerger(Protocol):
    """Protocol for skeleton merge strategies."""

    def merge(
        self,
        pending: PendingMerge,
        edited: str,
        generated: str,
        imports: FixImportContext,
    ) -> str | None:
        """Merge import-resolved *edited* and *generated* skeletons.

        Args:
            pending: The deferred merge.  Structural mergers can follow
                renamed elements through ``pending.name_in_id_to_uuid``.
            edited: The developer's skeleton, imports resolved.
            generated: The new skeleton, imports resolved.
            imports: Final import paths, for resolving any other input
                (such as a merge base) the same way.

        Returns:
            The merged skeleton, or ``None`` when no merge is possible.
        """
        ...  # pragma: no cover


class CachedSyncMetadataProvider:
    """Fetch merge-base metadata once per ``(project_id, revision)``."""

    def __init__(self, client: CodegenClient) -> None:
        self._client = client
        self._cache: dict[tuple[str, int], ProjectSyncMetadata] = {}

    def get(self, project_id: str, revision: int) -> ProjectSyncMetadata:
        """
        Raises:
            RevisionNotFoundError: If the service no longer has *revision*.
            UpstreamServiceError: For any other service failure.
        """
        key = (project_id, revision)
        if key not in self._cache:
            self._cache[key] = self._client.project_sync_metadata(
                project_id, revision
            )
        return self._cache[key]


class ThreeWaySkeletonMerger:
    """Line-based three-way merge against the generated merge base.

    Args:
        metadata: Provider of merge-base skeletons.
        append_jsx_on_missing_base: When no base can be found, keep the
            edited skeleton and append the generated one as a comment
            instead of failing.
    """

    def __init__(
        self,
        metadata: CachedSyncMetadataProvider,
        append_jsx_on_missing_base: bool = False,
    ) -> None:
        self.metadata = metadata
        self.append_jsx_on_missing_base = append_jsx_on_missing_base

    def merge(
        self,
        pending: PendingMerge,
        edited: str,
        generated: str,
        imports: FixImportContext,
    ) -> str | None:
        base = self._base_for(pending, edited)
        if base is None:
            if self.append_jsx_on_missing_base:
                logger.warning(
                    "No merge base for %s; appending generated code as a comment",
                    pending.skeleton_module_path,
                )
                return _append_as_comment(edited, generated)
            return None

        if pending.name_in_id_to_uuid:
            logger.debug(
                "Line merge of %s ignores %d element ids",
                pending.skeleton_module_path,
                len(pending.name_in_id_to_uuid),
            )
        base = replace_imports(base, pending.skeleton_module_path, imports)
        merged, has_conflicts = attempt_merge(base, edited, generated)
        if has_conflicts:
            logger.info(
                "Three-way merge of %s has conflicts",
                pending.skeleton_module_path,
            )
            return None
        logger.info("Clean three-way merge for %s", pending.skeleton_module_path)
        return merged

    def _base_for(self, pending: PendingMerge, edited: str) -> str | None:
        revision = managed_revision(edited)
        if revision is None:
            logger.debug(
                "%s has no managed-edit marker", pending.skeleton_module_path
            )
            return None
        try:
            metadata = self.metadata.get(pending.project_id, revision)
        except RevisionNotFoundError:
            logger.debug(
                "Revision %d of project %s not found",
                revision,
                pending.project_id,
            )
            return None
        return metadata.skeleton_for(pending.component_id)


def _append_as_comment(edited: str, generated: str) -> str:
    body = generated.replace("*/", "* /")
    sep = "" if edited.endswith("\n") else "\n"
    return f"{edited}{sep}\n/*\n{body}\n*/\n"


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


class MergeScheduler:
    """Execute every ``PendingMerge`` of a run, in enqueue order.

    Must run after all projects are synced, schemes are materialized and
    the repo config is staged.

    Args:
        run: The current ``RunContext``.
        merger: Strategy producing merged skeletons.
    """

    def __init__(self, run: RunContext, merger: SkeletonMerger) -> None:
        self.run = run
        self.merger = merger

    def execute(self) -> list[MergeResult]:
        """Merge all pending skeletons.

        Returns:
            One ``MergeResult`` per executed merge.

        Raises:
            MergeFailure: If a merge fails without ``--force-overwrite``.
        """
        ctx = build_fix_import_context(self.run.config)
        results: list[MergeResult] = []
        while self.run.pending_merges:
            pending = self.run.pending_merges.pop(0)
            path = pending.skeleton_module_path
            edited = replace_imports(pending.edited_skeleton_content, path, ctx)
            generated = replace_imports(
                pending.new_skeleton_content, path, ctx
            )

            merged = self.merger.merge(pending, edited, generated, ctx)
            if merged is not None:
                self.run.fs.write(path, merged, force=True)
                outcome = MergeOutcome.MERGED
            elif self.run.options.force_overwrite:
                logger.warning(
                    "Overwrite %s despite merge failure", path
                )
                self.run.fs.write(path, generated, force=True)
                outcome = MergeOutcome.OVERWRITTEN
            else:
                raise MergeFailure(f"Cannot merge {path}.")

            result = MergeResult(
                component_id=pending.component_id,
                skeleton_module_path=path,
                outcome=outcome,
            )
            results.append(result)
            self.run.merge_results.append(result)
        return results
