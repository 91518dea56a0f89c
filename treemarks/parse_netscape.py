from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup  # type: ignore

from .log import get_logger
from .model import BOOKMARK, FOLDER, Node

log = get_logger(__name__)
_WS_RE = re.compile(r"\s+")
_TAG_SPLIT_RE = re.compile(r"[,\s]+")


def parse_bookmarks_html(path: Path) -> Tuple[List[Node], str]:
    """Read a Netscape bookmark export into top-level nodes, keeping folder nesting and order."""
    text = path.read_text(encoding="utf-8", errors="replace")
    return parse_bookmarks_text(text)


def parse_bookmarks_text(text: str) -> Tuple[List[Node], str]:
    soup = BeautifulSoup(text, "lxml")

    h1 = soup.find("h1")
    root_title = h1.get_text(strip=True) if h1 else "Bookmarks"

    dl = soup.find("dl")
    if dl is None:
        raise ValueError("Could not find <DL> root in bookmarks file")

    nodes = _walk_dl(dl)
    log.debug("Parsed %d top-level entries from bookmarks HTML", len(nodes))
    return nodes, root_title


def _walk_dl(dl) -> List[Node]:
    out: List[Node] = []
    for dt in _own_dts(dl):
        h3 = dt.find("h3", recursive=False)
        if h3 is not None:
            name = _WS_RE.sub(" ", h3.get_text(strip=True))
            sub_dl = _folder_dl(dt)
            if sub_dl is None:
                log.warning("Folder without DL: %s", name)
            out.append(
                Node(
                    title=name,
                    type=FOLDER,
                    add_date=_maybe_int(h3.get("add_date")),
                    last_modified=_maybe_int(h3.get("last_modified")),
                    ns_root="toolbar" if _is_true(h3.get("personal_toolbar_folder")) else None,
                    contents=_walk_dl(sub_dl) if sub_dl is not None else [],
                )
            )
            continue

        a = dt.find("a", recursive=False)
        if a is not None and a.get("href"):
            tags = a.get("tags") or ""
            out.append(
                Node(
                    title=_WS_RE.sub(" ", a.get_text(strip=True)),
                    type=BOOKMARK,
                    url=a.get("href"),
                    add_date=_maybe_int(a.get("add_date")),
                    last_modified=_maybe_int(a.get("last_modified")),
                    icon=a.get("icon_uri") or a.get("icon") or None,
                    tags=[t for t in _TAG_SPLIT_RE.split(tags) if t],
                )
            )
    return out


def _folder_dl(dt):
    # A folder's DL sits either inside its DT or right after it; never past
    # another DT, which would be a later sibling's contents.
    for candidate in dt.find_all("dl"):
        if candidate.find_parent("dt") is dt:
            return candidate
    for sib in dt.find_next_siblings():
        if sib.name == "dl":
            return sib
        if sib.name != "p":
            break
    return None


def _own_dts(dl):
    # Exports leave <DT> unclosed, so parsers nest them unpredictably; a DT
    # belongs to the closest enclosing DL.
    for dt in dl.find_all("dt"):
        if dt.find_parent("dl") is dl:
            yield dt


def _is_true(v: Optional[str]) -> bool:
    return (v or "").strip().lower() == "true"


def _maybe_int(v):
    if v is None:
        return None
    try:
        return int(v)
    except Exception:
        return None
