"""Shared pytest fixtures for codesync tests."""

import json
from pathlib import Path

import pytest

from codesync.config import Config
from codesync.errors import RevisionNotFoundError
from codesync.sync.models import (
    ComponentBundle,
    GlobalVariantBundle,
    IconBundle,
    IconsResponse,
    ProjectBundle,
    ProjectMetaBundle,
    ProjectSyncMetadata,
    ResolvedProject,
    ResolveResult,
    StyleConfigResponse,
    StyleToken,
)

SRC_DIR = "src/components"


# ---------------------------------------------------------------------------
# Bundle builders
# ---------------------------------------------------------------------------


def make_component(
    comp_id: str,
    name: str,
    skeleton: str | None = None,
    render: str | None = None,
    css: str | None = None,
    scheme: str = "blackbox",
) -> ComponentBundle:
    """Component bundle whose render module imports its project CSS."""
    return ComponentBundle(
        id=comp_id,
        component_name=name,
        render_module=render
        if render is not None
        else f"// render {name}\n",
        skeleton_module=skeleton
        if skeleton is not None
        else (
            f'import Plasmic{name} from "./Plasmic{name}"; '
            f"// plasmic-import: {comp_id}/render\n"
            f"export default Plasmic{name};\n"
        ),
        css_rules=css if css is not None else f".{name} {{}}\n",
        render_module_file_name=f"Plasmic{name}.tsx",
        skeleton_module_file_name=f"{name}.tsx",
        css_file_name=f"Plasmic{name}.css",
        scheme=scheme,
    )


def make_bundle(
    project_id: str,
    project_name: str,
    components: list[ComponentBundle] | None = None,
    global_variants: list[GlobalVariantBundle] | None = None,
    tokens: list[StyleToken] | None = None,
) -> ProjectBundle:
    snake = project_name.lower().replace(" ", "_")
    return ProjectBundle(
        project_config=ProjectMetaBundle(
            project_id=project_id,
            project_name=project_name,
            css_file_name=f"plasmic_{snake}.css",
            css_rules=f".{snake} {{}}\n",
        ),
        components=components or [],
        global_variants=global_variants or [],
        used_tokens=tokens or [],
    )


# ---------------------------------------------------------------------------
# Fake remote client
# ---------------------------------------------------------------------------


class FakeCodegenClient:
    """In-memory stand-in for ``CodegenClient``.

    Tests populate ``resolved``, ``conflicts``, ``bundles``, ``icons`` and
    ``metadata``; every call is recorded in ``calls``.
    """

    def __init__(self) -> None:
        self.resolved: list[ResolvedProject] = []
        self.conflicts: list = []
        self.bundles: dict[str, ProjectBundle] = {}
        self.icons: dict[str, list[IconBundle]] = {}
        self.metadata: dict[tuple[str, int], ProjectSyncMetadata] = {}
        self.style = StyleConfigResponse(
            default_style_css_file_name="plasmic__default_style.css",
            default_style_css_rules=".plasmic_default {}\n",
        )
        self.calls: list[tuple[str, tuple, dict]] = []

    def resolve(self, *projects: ResolvedProject) -> None:
        self.resolved = list(projects)

    def calls_to(self, name: str) -> list[tuple[tuple, dict]]:
        return [(a, k) for n, a, k in self.calls if n == name]

    def resolve_sync(self, targets, recursive=False, include_dependencies=False):
        self.calls.append(
            (
                "resolve_sync",
                (targets,),
                {
                    "recursive": recursive,
                    "include_dependencies": include_dependencies,
                },
            )
        )
        return ResolveResult(projects=self.resolved, conflicts=self.conflicts)

    def project_components(self, project_id, **kwargs):
        self.calls.append(("project_components", (project_id,), kwargs))
        return self.bundles[project_id]

    def project_icons(self, project_id, version_range, icon_ids):
        self.calls.append(
            ("project_icons", (project_id, version_range, icon_ids), {})
        )
        return IconsResponse(icons=self.icons.get(project_id, []))

    def gen_style_config(self):
        self.calls.append(("gen_style_config", (), {}))
        return self.style

    def project_sync_metadata(self, project_id, revision):
        self.calls.append(
            ("project_sync_metadata", (project_id, revision), {})
        )
        key = (project_id, revision)
        if key not in self.metadata:
            raise RevisionNotFoundError(
                f"revision {revision} not found", revision=revision
            )
        return self.metadata[key]


# ---------------------------------------------------------------------------
# Repository helpers
# ---------------------------------------------------------------------------


def write_repo_config(root: Path, data: dict) -> Path:
    path = root / "codesync.json"
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    return path


def read_repo_config(root: Path) -> dict:
    return json.loads((root / "codesync.json").read_text(encoding="utf-8"))


def src_file(root: Path, rel: str) -> Path:
    return root / SRC_DIR / rel


def snapshot_tree(root: Path) -> dict[str, str]:
    """Relative path -> content of every file under *root*."""
    return {
        str(p.relative_to(root)): p.read_text(encoding="utf-8")
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def fake_client():
    return FakeCodegenClient()


@pytest.fixture
def repo(tmp_path):
    """An empty repository root with its ``srcDir`` created."""
    (tmp_path / SRC_DIR).mkdir(parents=True)
    return tmp_path


@pytest.fixture
def mock_config():
    """Create a Config instance for testing."""
    return Config(
        host="https://codegen.example.com",
        user="dev@example.com",
        token="secret-token",
        insecure=False,
    )
