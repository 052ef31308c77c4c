"""Rewrite generated import statements to their final repository paths.

Generated modules annotate every import of another managed artifact::

    import PlasmicButton from "./PlasmicButton";  // plasmic-import: abc123/render

The annotation names the artifact's uuid and kind.  Once the repo config is
final, ``replace_imports`` rewrites the specifier to the relative path of
that artifact as recorded in the config.  Unannotated lines and unknown
uuids are left untouched.

Supported kinds: ``component`` (skeleton module), ``render``, ``css``,
``projectcss``, ``globalVariant``, ``icon``, ``defaultcss``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from codesync.sync.mapper import relative_import_path
from codesync.sync.repo_config import RepoConfig

if TYPE_CHECKING:
    from codesync.file_handler import BufferedFileSystem
    from codesync.sync.context import RunContext

logger = logging.getLogger(__name__)

_IMPORT_PATTERN = re.compile(
    r"""^(?P<head>[ \t]*import\s+(?:[^'";]*?\s+from\s+)?)"""
    r"""(?P<quote>['"])(?P<path>[^'"]+)(?P=quote)"""
    r"""(?P<tail>;?[ \t]*//[ \t]*plasmic-import:[ \t]*"""
    r"""(?P<uuid>[\w-]+)/(?P<kind>\w+).*)$""",
    re.MULTILINE,
)


@dataclass
class FixImportContext:
    """Lookup of final paths, keyed by artifact kind and uuid."""

    paths: dict[tuple[str, str], str] = field(default_factory=dict)
    default_css_path: str | None = None

    def lookup(self, kind: str, uuid: str) -> str | None:
        if kind == "defaultcss":
            return self.default_css_path or None
        return self.paths.get((kind, uuid))


def build_fix_import_context(config: RepoConfig) -> FixImportContext:
    """Index every artifact path recorded in *config*."""
    ctx = FixImportContext(
        default_css_path=config.style.default_style_css_file_path
    )
    for project in config.projects:
        ctx.paths[("projectcss", project.project_id)] = project.css_file_path
        for comp in project.components:
            ctx.paths[("component", comp.id)] = comp.import_spec.module_path
            ctx.paths[("render", comp.id)] = comp.render_module_file_path
            ctx.paths[("css", comp.id)] = comp.css_file_path
        for icon in project.icons:
            ctx.paths[("icon", icon.id)] = icon.module_file_path
    for group in config.global_variants.variant_groups:
        ctx.paths[("globalVariant", group.id)] = group.context_file_path
    return ctx


def replace_imports(
    content: str, from_path: str, ctx: FixImportContext
) -> str:
    """Rewrite annotated import specifiers in *content*.

    Args:
        content: Module source.
        from_path: Path of the module itself, relative to ``srcDir``.
        ctx: Final artifact paths.

    Returns:
        The source with every resolvable annotated import rewritten.
    """

    def _replace(match: re.Match) -> str:
        target = ctx.lookup(match.group("kind"), match.group("uuid"))
        if not target:
            logger.debug(
                "No path known for %s/%s imported by %s",
                match.group("uuid"),
                match.group("kind"),
                from_path,
            )
            return match.group(0)
        spec = relative_import_path(from_path, target)
        quote = match.group("quote")
        return (
            f"{match.group('head')}{quote}{spec}{quote}{match.group('tail')}"
        )

    return _IMPORT_PATTERN.sub(_replace, content)


def _fix_file(
    fs: BufferedFileSystem, path: str, ctx: FixImportContext
) -> bool:
    if not fs.exists(path):
        logger.warning("Cannot fix imports, file is missing: %s", path)
        return False
    original = fs.read(path)
    fixed = replace_imports(original, path, ctx)
    if fixed == original:
        return False
    fs.write(path, fixed, force=True)
    return True


def fix_all_import_statements(run: RunContext) -> int:
    """Fix imports across every generated module touched by the run.

    Render modules of every synced component are fixed; skeleton modules
    only when the run modified them, so untouched hand-edited files stay
    byte-identical.  Global-variant context modules are always fixed.

    Args:
        run: The ``RunContext`` of the current sync.

    Returns:
        Number of files rewritten.
    """
    ctx = build_fix_import_context(run.config)
    fixed = 0
    for project in run.config.projects:
        for comp in project.components:
            summary = run.summary.get(comp.id)
            if summary is None:
                continue
            if _fix_file(run.fs, comp.render_module_file_path, ctx):
                fixed += 1
            if summary.skeleton_module_modified and _fix_file(
                run.fs, comp.import_spec.module_path, ctx
            ):
                fixed += 1
    for group in run.config.global_variants.variant_groups:
        if _fix_file(run.fs, group.context_file_path, ctx):
            fixed += 1
    logger.info("Fixed import statements in %d files", fixed)
    return fixed
