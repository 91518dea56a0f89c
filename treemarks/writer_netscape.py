from __future__ import annotations

import html
from pathlib import Path
from typing import List

from .log import get_logger
from .model import FOLDER, Node

log = get_logger(__name__)


def write_bookmarks_html(*, out_path: Path, root: Node, title_root: str) -> None:
    """Write a browser-importable Netscape bookmark file.

    Sibling order is kept as stored. A folder with ns_root "toolbar" gets
    PERSONAL_TOOLBAR_FOLDER="true"; tags go into a comma separated TAGS attribute.
    """
    out_path.write_text(render_bookmarks_html(root, title_root=title_root), encoding="utf-8")
    log.info("Wrote bookmarks HTML: %s", out_path)


def render_bookmarks_html(root: Node, *, title_root: str) -> str:
    lines: List[str] = []
    lines.append("<!DOCTYPE NETSCAPE-Bookmark-file-1>")
    lines.append("<!-- This is an automatically generated file. DO NOT EDIT! -->")
    lines.append('<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">')
    lines.append(f"<TITLE>{html.escape(title_root)}</TITLE>")
    lines.append(f"<H1>{html.escape(title_root)}</H1>")
    lines.append("<DL><p>")
    _write_children(lines, root.contents, indent="    ")
    lines.append("</DL><p>")
    return "\n".join(lines) + "\n"


def _write_children(lines: List[str], nodes: List[Node], indent: str) -> None:
    for node in nodes:
        title = node.title or ""
        if node.type == FOLDER:
            attrs = _date_attrs(node)
            if node.ns_root == "toolbar":
                attrs.append('PERSONAL_TOOLBAR_FOLDER="true"')
            lines.append(f"{indent}<DT><H3{_join(attrs)}>{html.escape(title)}</H3>")
            lines.append(f"{indent}<DL><p>")
            _write_children(lines, node.contents, indent + "    ")
            lines.append(f"{indent}</DL><p>")
            continue

        url = node.url or ""
        attrs = [f'HREF="{html.escape(url, quote=True)}"']
        attrs.extend(_date_attrs(node))
        if node.icon:
            attrs.append(f'ICON="{html.escape(node.icon, quote=True)}"')
        if node.tags:
            attrs.append(f'TAGS="{html.escape(",".join(node.tags), quote=True)}"')
        lines.append(f"{indent}<DT><A{_join(attrs)}>{html.escape(title or url)}</A>")


def _date_attrs(node: Node) -> List[str]:
    attrs: List[str] = []
    if node.add_date is not None:
        attrs.append(f'ADD_DATE="{node.add_date}"')
    if node.last_modified is not None:
        attrs.append(f'LAST_MODIFIED="{node.last_modified}"')
    return attrs


def _join(attrs: List[str]) -> str:
    return "".join(f" {a}" for a in attrs)
