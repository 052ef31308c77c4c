"""Config-driven file layout for generated artifacts.

Translates remote bundle file names into repository paths (relative to the
repo's ``srcDir``) and computes relative import specifiers between them.

Layout:

1. **Component files** -- render module and CSS live under
   ``<defaultPlasmicDir>/<snake_case(projectName)>/``.
2. **Skeleton modules** -- stay at the bundle's file name, directly under
   ``srcDir``, where developers edit them.
3. **Project CSS and icons** -- share the per-project directory.
4. **Global-variant contexts and the default style sheet** -- live directly
   under ``<defaultPlasmicDir>/``.
"""

from __future__ import annotations

import posixpath
import re

from codesync.sync.repo_config import RepoConfig

_WORD_PATTERN = re.compile(
    r"[A-Z]{2,}(?=[A-Z][a-z]+[0-9]*|\b|_|$)|[A-Z]?[a-z]+[0-9]*|[A-Z]+|[0-9]+"
)

SCRIPT_EXTENSIONS = (".tsx", ".ts", ".jsx", ".js")


def snake_case(name: str) -> str:
    """Convert a display name to ``snake_case``.

    ``"My Project"`` and ``"MyProject"`` both become ``"my_project"``.
    """
    return "_".join(w.lower() for w in _WORD_PATTERN.findall(name))


def strip_script_extension(path: str) -> str:
    for ext in SCRIPT_EXTENSIONS:
        if path.endswith(ext):
            return path[: -len(ext)]
    return path


def relative_import_path(from_file: str, to_file: str) -> str:
    """Return the import specifier that *from_file* uses to reach *to_file*.

    Both paths are relative to ``srcDir``.  Script extensions are dropped
    (module resolution adds them back); other extensions such as ``.css``
    are kept.
    """
    from_dir = posixpath.dirname(posixpath.normpath(from_file)) or "."
    rel = posixpath.relpath(posixpath.normpath(to_file), from_dir)
    rel = strip_script_extension(rel)
    if not rel.startswith("."):
        rel = f"./{rel}"
    return rel


class PathLayout:
    """Compute default repository paths for generated files.

    Args:
        config: The repo config supplying ``defaultPlasmicDir``.
    """

    def __init__(self, config: RepoConfig) -> None:
        self._config = config

    @property
    def root(self) -> str:
        return self._config.default_plasmic_dir

    def _join(self, *parts: str) -> str:
        return posixpath.normpath(posixpath.join(self.root, *parts))

    def project_dir(self, project_name: str) -> str:
        return self._join(snake_case(project_name))

    def project_file(self, project_name: str, file_name: str) -> str:
        """Path of a per-project generated file (render, CSS, icon)."""
        return self._join(snake_case(project_name), file_name)

    def global_file(self, file_name: str) -> str:
        """Path of a file shared by all projects."""
        return self._join(file_name)
