"""Per-component reconciliation and project-level config sync.

``ComponentReconciler`` classifies every incoming component bundle and
decides what happens to its files:

==================  ==========================================================
State               Action
==================  ==========================================================
``NEW``             write skeleton, render module and CSS (must not exist);
                    register a ``ComponentConfig``
``DIRECT``          keep the hand-edited skeleton; enqueue a ``PendingMerge``
``BLACKBOX``        keep the skeleton
``BLACKBOX_MARKED`` overwrite with ``--force-overwrite``, otherwise warn
==================  ==========================================================

Render modules and CSS of existing components are always regenerated.
"""

from __future__ import annotations

import logging
from enum import Enum

from codesync.errors import MissingFileError
from codesync.sync.context import RunContext
from codesync.sync.mapper import PathLayout
from codesync.sync.merger import has_managed_marker
from codesync.sync.models import (
    ComponentAction,
    ComponentBundle,
    ComponentSyncResult,
    ComponentUpdateSummary,
    GlobalVariantBundle,
    PendingMerge,
    ProjectMetaBundle,
)
from codesync.sync.repo_config import (
    CONFIG_FILE_NAME,
    ComponentConfig,
    GlobalVariantGroupConfig,
    ImportSpec,
    ProjectConfig,
)

logger = logging.getLogger(__name__)


class ComponentState(str, Enum):
    NEW = "new"
    DIRECT = "direct"
    BLACKBOX = "blackbox"
    BLACKBOX_MARKED = "blackbox_marked"


# ---------------------------------------------------------------------------
# Project config and global variants
# ---------------------------------------------------------------------------


def sync_project_config(
    run: RunContext, meta: ProjectMetaBundle, version_range: str
) -> ProjectConfig:
    """Get or create the stored project and write its project CSS.

    A new project is seeded with *version_range*; an existing one keeps its
    stored range.  The project name is refreshed from the bundle.
    """
    layout = PathLayout(run.config)
    default_css = layout.project_file(meta.project_name, meta.css_file_name)

    project = run.config.find_project(meta.project_id)
    is_new = project is None
    if project is None:
        project = ProjectConfig(
            project_id=meta.project_id,
            project_name=meta.project_name,
            version=version_range,
            css_file_path=default_css,
        )
        run.config.projects.append(project)
        logger.info("Added project %s (%s)", meta.project_name, meta.project_id)

    project.project_name = meta.project_name
    if not project.css_file_path:
        project.css_file_path = default_css

    run.fs.write(project.css_file_path, meta.css_rules, force=not is_new)
    return project


def sync_global_variants(
    run: RunContext, project_id: str, bundles: list[GlobalVariantBundle]
) -> None:
    layout = PathLayout(run.config)
    groups = run.config.global_variants.variant_groups
    by_id = {g.id: g for g in groups}
    for bundle in bundles:
        logger.info(
            "Syncing global variant %s [%s/%s]", bundle.name, project_id, bundle.id
        )
        group = by_id.get(bundle.id)
        is_new = group is None
        if group is None:
            group = GlobalVariantGroupConfig(
                id=bundle.id,
                name=bundle.name,
                project_id=project_id,
                context_file_path=layout.global_file(bundle.context_file_name),
            )
            groups.append(group)
            by_id[bundle.id] = group
        run.fs.write(
            group.context_file_path, bundle.context_module, force=not is_new
        )


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


class ComponentReconciler:
    """Reconcile the component bundles of one project.

    Args:
        run: The current ``RunContext``.
    """

    def __init__(self, run: RunContext) -> None:
        self.run = run
        self.layout = PathLayout(run.config)

    def classify(
        self, stored: ComponentConfig | None, skeleton: str | None
    ) -> ComponentState:
        """Return the reconciliation state of a component.

        An existing component with no stored scheme follows the
        repository-wide ``code.scheme``.
        """
        if stored is None:
            return ComponentState.NEW
        scheme = stored.scheme or self.run.config.code.scheme
        if scheme == "direct":
            return ComponentState.DIRECT
        if skeleton is not None and has_managed_marker(skeleton):
            return ComponentState.BLACKBOX_MARKED
        return ComponentState.BLACKBOX

    def sync_components(
        self,
        project: ProjectConfig,
        version: str,
        bundles: list[ComponentBundle],
    ) -> list[ComponentSyncResult]:
        """Reconcile *bundles* against the components stored in *project*.

        Raises:
            FileConflictError: A new component's file already exists.
            MissingFileError: An existing component's skeleton is gone.
        """
        by_id = {c.id: c for c in project.components}
        results = []
        for bundle in bundles:
            logger.info(
                "Syncing component %s %s [%s/%s %s]",
                bundle.component_name,
                version,
                project.project_id,
                bundle.id,
                project.version,
            )
            stored = by_id.get(bundle.id)
            if stored is None:
                stored = self._create(project, bundle)
                by_id[bundle.id] = stored
                action = ComponentAction.CREATED
            else:
                action = self._update(project, stored, bundle)

            force = action != ComponentAction.CREATED
            self.run.fs.write(
                stored.render_module_file_path, bundle.render_module, force=force
            )
            self.run.fs.write(stored.css_file_path, bundle.css_rules, force=force)

            self.run.summary[bundle.id] = ComponentUpdateSummary(
                skeleton_module_modified=action
                in (
                    ComponentAction.CREATED,
                    ComponentAction.MERGE_PENDING,
                    ComponentAction.SKELETON_OVERWRITTEN,
                )
            )
            result = ComponentSyncResult(
                project_id=project.project_id,
                component_id=bundle.id,
                component_name=bundle.component_name,
                action=action,
            )
            results.append(result)
            self.run.component_results.append(result)
        return results

    def _create(
        self, project: ProjectConfig, bundle: ComponentBundle
    ) -> ComponentConfig:
        stored = ComponentConfig(
            id=bundle.id,
            name=bundle.component_name,
            project_id=project.project_id,
            render_module_file_path=self.layout.project_file(
                project.project_name, bundle.render_module_file_name
            ),
            import_spec=ImportSpec(module_path=bundle.skeleton_module_file_name),
            css_file_path=self.layout.project_file(
                project.project_name, bundle.css_file_name
            ),
            scheme=self.run.new_component_scheme,
        )
        project.components.append(stored)
        self.run.fs.write(
            stored.import_spec.module_path, bundle.skeleton_module, force=False
        )
        return stored

    def _update(
        self,
        project: ProjectConfig,
        stored: ComponentConfig,
        bundle: ComponentBundle,
    ) -> ComponentAction:
        if stored.name != bundle.component_name:
            logger.info(
                "Component %s renamed to %s", stored.name, bundle.component_name
            )
            stored.name = bundle.component_name

        path = stored.import_spec.module_path
        try:
            edited = self.run.fs.read(path)
        except FileNotFoundError:
            logger.warning(
                "%s is missing. If you deleted this component, remember to "
                "remove the component from %s",
                path,
                CONFIG_FILE_NAME,
            )
            raise MissingFileError(
                f"Skeleton module {path} of component {stored.name} is missing."
            ) from None

        state = self.classify(stored, edited)
        match state:
            case ComponentState.DIRECT:
                self.run.pending_merges.append(
                    PendingMerge(
                        project_id=project.project_id,
                        component_id=stored.id,
                        skeleton_module_path=path,
                        edited_skeleton_content=edited,
                        new_skeleton_content=bundle.skeleton_module,
                        name_in_id_to_uuid=bundle.name_in_id_to_uuid,
                    )
                )
                return ComponentAction.MERGE_PENDING
            case ComponentState.BLACKBOX_MARKED if self.run.options.force_overwrite:
                self.run.fs.write(path, bundle.skeleton_module, force=True)
                return ComponentAction.SKELETON_OVERWRITTEN
            case ComponentState.BLACKBOX_MARKED:
                logger.warning(
                    'File %s is likely in "direct" scheme. If you intend to '
                    "switch the code scheme from direct to blackbox, use "
                    "--force-overwrite to force the switch.",
                    path,
                )
                return ComponentAction.SKELETON_PROTECTED
            case _:
                return ComponentAction.SKELETON_KEPT
