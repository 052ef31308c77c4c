"""Error taxonomy for sync runs.

Every failure a sync run can surface is a ``SyncError`` subclass carrying
an error category, a human-readable message and a corrective action the
user can take.  The CLI renders them uniformly; library code never exits
the process on its own.

- ``UserInputError``        -- nothing to sync, or invalid ids/names.
- ``ConflictError``         -- requested root projects resolve inconsistently.
- ``VersionRangeError``     -- resolved version outside the stored range
  in non-interactive mode.
- ``SyncAbortedError``      -- the user declined a breaking upgrade.
- ``MissingFileError``      -- an existing component's skeleton is gone.
- ``FileConflictError``     -- a new file would clobber an existing one.
- ``MergeFailure``          -- edited and generated skeletons cannot merge.
- ``ScriptConversionError`` -- TSX to JSX conversion failed.
- ``UpstreamServiceError``  -- the code-generation service failed.
- ``RevisionNotFoundError`` -- merge-base revision unknown to the service.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base class for all handled sync failures."""

    error_type = "sync_error"
    default_action = "Re-run with --debug for more details."

    def __init__(
        self, message: str, corrective_action: str | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.corrective_action = corrective_action or self.default_action


class UserInputError(SyncError):
    error_type = "user_input"
    default_action = (
        "Check the project ids passed via --projects and the component "
        "names passed via --components."
    )


class ConflictError(SyncError):
    error_type = "conflict"
    default_action = (
        "Sync the conflicting projects separately, or pin them to "
        "compatible versions."
    )


class VersionRangeError(SyncError):
    error_type = "version_range"
    default_action = (
        "Re-run without --non-interactive to confirm the upgrade, or "
        "widen the version range in codesync.json."
    )


class SyncAbortedError(SyncError):
    error_type = "aborted"
    default_action = "No files were changed."


class MissingFileError(SyncError):
    error_type = "missing_file"
    default_action = (
        "Restore the file, or remove the component from codesync.json "
        "if you deleted it on purpose."
    )


class FileConflictError(SyncError):
    error_type = "file_conflict"
    default_action = (
        "Move the existing file out of the way, then re-run the sync."
    )


class MergeFailure(SyncError):
    error_type = "merge_failure"
    default_action = (
        "If you just switched the component from blackbox to direct, "
        "use --force-overwrite to force the switch."
    )


class ScriptConversionError(SyncError):
    error_type = "script_conversion"
    default_action = (
        "Check the codegen.transpile_command setting "
        "(CODESYNC_TRANSPILE_COMMAND)."
    )


class UpstreamServiceError(SyncError):
    """The remote code-generation service returned an error."""

    error_type = "upstream"
    default_action = "Check your credentials and retry later."

    def __init__(
        self,
        message: str,
        corrective_action: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, corrective_action)
        self.status_code = status_code


class RevisionNotFoundError(UpstreamServiceError):
    """The service does not know the requested project revision."""

    error_type = "revision_not_found"

    def __init__(
        self,
        message: str,
        revision: int | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.revision = revision
