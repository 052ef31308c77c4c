"""Version resolution for a sync run.

Decides which version of every project gets synced:

- builds one ``ProjectSyncTarget`` per requested (or stored) project and
  asks the service to resolve them together with their dependencies;
- rejects root conflicts and empty resolutions;
- detects resolved versions that fall outside the stored version range and
  either fails (non-interactive) or asks a ``Confirmer``;
- rewrites stored ranges to caret ranges of the resolved versions.

Confirmation strategies:

- ``PromptConfirmer``: asks on stdin, defaulting to yes.
- ``StaticConfirmer``: answers every question the same way.

The ``create_confirmer()`` factory picks one from the run flags.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from codesync.errors import (
    ConflictError,
    SyncAbortedError,
    UserInputError,
    VersionRangeError,
)
from codesync.sync.models import (
    BreakingVersion,
    ProjectSyncTarget,
    ResolvedProject,
    SyncOptions,
)
from codesync.sync.versions import LATEST, satisfies, to_caret_range

if TYPE_CHECKING:
    from codesync.core.client import CodegenClient
    from codesync.sync.repo_config import RepoConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Confirmers
# ---------------------------------------------------------------------------


class Confirmer(Protocol):
    """Protocol for yes/no questions asked during a run."""

    def confirm(self, message: str) -> bool:
        ...  # pragma: no cover


class PromptConfirmer:
    """Ask on the terminal.  An empty answer means yes; closed stdin means no."""

    def confirm(self, message: str) -> bool:
        try:
            answer = input(f"{message} (Y/n) ").strip().lower()
        except EOFError:
            logger.warning("No answer on stdin; declining: %s", message)
            return False
        return answer in ("", "y", "yes")


class StaticConfirmer:
    """Always give the same answer."""

    def __init__(self, answer: bool) -> None:
        self.answer = answer

    def confirm(self, message: str) -> bool:
        logger.debug("Auto-answering %r with %s", message, self.answer)
        return self.answer


def create_confirmer(non_interactive: bool) -> Confirmer:
    """Return the confirmer matching the run's interactivity.

    Non-interactive runs never prompt; ``VersionResolver`` fails before
    asking in that mode, so the static answer is only a safety net.
    """
    if non_interactive:
        return StaticConfirmer(False)
    return PromptConfirmer()


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def find_breaking_versions(
    resolved: list[ResolvedProject], config: RepoConfig
) -> list[BreakingVersion]:
    """Resolved projects whose version is outside their stored range.

    Projects not yet stored are never breaking.
    """
    breaking: list[BreakingVersion] = []
    for project in resolved:
        stored = config.find_project(project.project_id)
        if stored is None:
            continue
        if not satisfies(project.version, stored.version):
            breaking.append(
                BreakingVersion(
                    project_id=project.project_id,
                    stored_range=stored.version,
                    resolved_version=project.version,
                )
            )
    return breaking


class VersionResolver:
    """Resolve target versions for a sync run.

    Args:
        client: Code-generation service client.
        config: The in-memory repo config; stored ranges are rewritten in
            place once resolution is accepted.
        confirmer: Asked whether to proceed past breaking versions in
            interactive runs.
    """

    def __init__(
        self,
        client: CodegenClient,
        config: RepoConfig,
        confirmer: Confirmer,
    ) -> None:
        self.client = client
        self.config = config
        self.confirmer = confirmer

    def requested_project_ids(self, options: SyncOptions) -> list[str]:
        if options.projects:
            return list(options.projects)
        return [p.project_id for p in self.config.projects]

    def resolve(self, options: SyncOptions) -> list[ResolvedProject]:
        """Resolve every project to sync, in resolution order.

        Raises:
            UserInputError: Nothing to sync, or nothing resolved.
            ConflictError: The service reports conflicts among the roots.
            VersionRangeError: Breaking versions in a non-interactive run.
            SyncAbortedError: The user declined the breaking versions.
        """
        project_ids = self.requested_project_ids(options)
        if not project_ids:
            raise UserInputError(
                "Don't know which projects to sync; please specify via "
                "--projects."
            )

        targets = []
        for project_id in project_ids:
            stored = self.config.find_project(project_id)
            targets.append(
                ProjectSyncTarget(
                    project_id=project_id,
                    version_range=stored.version if stored else LATEST,
                    component_id_or_names=list(options.components) or None,
                )
            )

        result = self.client.resolve_sync(
            targets,
            recursive=options.recursive,
            include_dependencies=options.include_dependencies,
        )

        if result.conflicts:
            details = ", ".join(
                f"{c.project_id} ({' vs '.join(c.versions)})"
                for c in result.conflicts
            )
            raise ConflictError(f"Sync resolution failed. Conflicts: {details}")

        if not result.projects:
            raise UserInputError(
                "Found nothing to sync - make sure the project id, "
                "component id, or component names are valid."
            )

        breaking = find_breaking_versions(result.projects, self.config)
        if breaking:
            described = ", ".join(b.describe() for b in breaking)
            if options.non_interactive:
                raise VersionRangeError(
                    "Unable to sync these projects due to conflicting "
                    f"versions: {described}"
                )
            logger.warning(
                "This sync will generate components outside of these "
                "projects' version ranges: %s",
                described,
            )
            if not self.confirmer.confirm("Do you want to continue?"):
                raise SyncAbortedError("Sync aborted by user.")

        self._rewrite_stored_ranges(result.projects)
        return list(result.projects)

    def _rewrite_stored_ranges(self, resolved: list[ResolvedProject]) -> None:
        for project in resolved:
            stored = self.config.find_project(project.project_id)
            caret = to_caret_range(project.version)
            if stored is not None and caret:
                if stored.version != caret:
                    logger.debug(
                        "Version range of %s: %s -> %s",
                        project.project_id,
                        stored.version,
                        caret,
                    )
                stored.version = caret
