"""TSX to JSX conversion for repositories that use plain JavaScript.

When ``code.lang`` is ``"js"`` every generated module (render, skeleton,
icon, global-variant context) goes through a ``ScriptConverter`` before the
reconciler sees it.  Conversion strips type annotations, keeps JSX, and
renames ``.tsx`` files to ``.jsx``.

The default converter pipes module source through an external transpiler
command (esbuild by default) on stdin/stdout.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from typing import Protocol

from codesync.errors import ScriptConversionError
from codesync.sync.models import (
    ComponentBundle,
    GlobalVariantBundle,
    IconBundle,
    ProjectBundle,
)

logger = logging.getLogger(__name__)

DEFAULT_TRANSPILE_COMMAND = (
    "npx --yes esbuild --loader=tsx --jsx=preserve --log-level=warning"
)


class ScriptConverter(Protocol):
    """Protocol for TSX to JSX converters."""

    def convert(self, file_name: str, content: str) -> tuple[str, str]:
        """Return ``(new_file_name, new_content)``.

        Files that are not ``.tsx`` are returned unchanged.
        """
        ...  # pragma: no cover


def to_jsx_file_name(file_name: str) -> str:
    if file_name.endswith(".tsx"):
        return file_name[: -len(".tsx")] + ".jsx"
    return file_name


class CommandScriptConverter:
    """Convert TSX by running an external transpiler command.

    Args:
        command: Shell-style command line reading TSX on stdin and writing
            JavaScript on stdout.
        timeout: Seconds to wait for each invocation.
    """

    def __init__(
        self,
        command: str = DEFAULT_TRANSPILE_COMMAND,
        timeout: float = 60,
    ) -> None:
        self.command = command
        self.timeout = timeout

    def convert(self, file_name: str, content: str) -> tuple[str, str]:
        if not file_name.endswith(".tsx"):
            return file_name, content
        try:
            result = subprocess.run(
                shlex.split(self.command),
                input=content,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError) as exc:
            raise ScriptConversionError(
                f"Could not convert {file_name} to JSX: {exc}"
            ) from exc
        if result.returncode != 0:
            raise ScriptConversionError(
                f"Could not convert {file_name} to JSX: "
                f"{result.stderr.strip() or 'exit code ' + str(result.returncode)}"
            )
        return to_jsx_file_name(file_name), result.stdout


def convert_project_bundle(
    bundle: ProjectBundle, converter: ScriptConverter
) -> ProjectBundle:
    """Convert render, skeleton and global-variant modules of *bundle*."""
    components: list[ComponentBundle] = []
    for comp in bundle.components:
        render_name, render = converter.convert(
            comp.render_module_file_name, comp.render_module
        )
        skeleton_name, skeleton = converter.convert(
            comp.skeleton_module_file_name, comp.skeleton_module
        )
        components.append(
            comp.model_copy(
                update={
                    "render_module_file_name": render_name,
                    "render_module": render,
                    "skeleton_module_file_name": skeleton_name,
                    "skeleton_module": skeleton,
                }
            )
        )

    variants: list[GlobalVariantBundle] = []
    for gv in bundle.global_variants:
        name, module = converter.convert(gv.context_file_name, gv.context_module)
        variants.append(
            gv.model_copy(
                update={"context_file_name": name, "context_module": module}
            )
        )

    logger.debug(
        "Converted %d components and %d global variants to JSX",
        len(components),
        len(variants),
    )
    return bundle.model_copy(
        update={"components": components, "global_variants": variants}
    )


def convert_icons(
    icons: list[IconBundle], converter: ScriptConverter
) -> list[IconBundle]:
    converted: list[IconBundle] = []
    for icon in icons:
        name, module = converter.convert(icon.file_name, icon.module)
        converted.append(
            icon.model_copy(update={"file_name": name, "module": module})
        )
    return converted
