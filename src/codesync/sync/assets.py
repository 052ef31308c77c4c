"""Style tokens, icons and the default style sheet."""

from __future__ import annotations

import json
import logging

from codesync.sync.context import RunContext
from codesync.sync.mapper import PathLayout
from codesync.sync.models import IconBundle, StyleConfigResponse, StyleToken
from codesync.sync.repo_config import IconConfig

logger = logging.getLogger(__name__)


def upsert_style_tokens(
    run: RunContext, project_id: str, tokens: list[StyleToken]
) -> int:
    """Insert or replace *tokens* in the JSON tokens file.

    The file holds ``{"props": [...]}``; each prop is keyed by the token id
    stored in ``meta.id``.  Props of other projects are preserved.

    Returns:
        Number of tokens upserted.
    """
    if not tokens:
        return 0
    path = run.config.tokens.tokens_file_path
    if run.fs.exists(path):
        data = json.loads(run.fs.read(path) or "{}")
    else:
        data = {}
    props: list[dict] = data.setdefault("props", [])
    index = {
        p.get("meta", {}).get("id"): i for i, p in enumerate(props)
    }
    for token in tokens:
        prop = {
            "name": token.name,
            "type": token.type,
            "value": token.value,
            "meta": {"projectId": project_id, "id": token.id},
        }
        if token.id in index:
            props[index[token.id]] = prop
        else:
            index[token.id] = len(props)
            props.append(prop)
    run.fs.write(path, json.dumps(data, indent=2) + "\n", force=True)
    logger.info("Upserted %d style tokens into %s", len(tokens), path)
    return len(tokens)


def sync_project_icon_assets(
    run: RunContext, project_id: str, icons: list[IconBundle]
) -> None:
    project = run.config.find_project(project_id)
    if project is None:
        raise KeyError(f"Project {project_id} is not in the repo config")
    layout = PathLayout(run.config)
    by_id = {i.id: i for i in project.icons}
    for icon in icons:
        logger.info("Syncing icon %s [%s/%s]", icon.name, project_id, icon.id)
        stored = by_id.get(icon.id)
        is_new = stored is None
        if stored is None:
            stored = IconConfig(
                id=icon.id,
                name=icon.name,
                module_file_path=layout.project_file(
                    project.project_name, icon.file_name
                ),
            )
            project.icons.append(stored)
            by_id[icon.id] = stored
        stored.name = icon.name
        run.fs.write(stored.module_file_path, icon.module, force=not is_new)


def sync_style_config(run: RunContext, response: StyleConfigResponse) -> str:
    """Write the default style sheet and record its path.

    Returns:
        Path of the style sheet, relative to ``srcDir``.
    """
    style = run.config.style
    if not style.default_style_css_file_path:
        style.default_style_css_file_path = PathLayout(run.config).global_file(
            response.default_style_css_file_name
        )
    run.fs.write(
        style.default_style_css_file_path,
        response.default_style_css_rules,
        force=True,
    )
    return style.default_style_css_file_path
