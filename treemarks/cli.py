from __future__ import annotations

import argparse
import json
import sqlite3
import sys
import time
from pathlib import Path
from typing import List, Optional

from . import __version__
from .build import StructureCorrupted
from .config import Settings, load_settings
from .document import dump_tree_json, load_tree_json
from .log import LogConfig, get_logger, setup_logging
from .model import Node
from .parse_netscape import parse_bookmarks_html
from .store import ListStore
from .writer_netscape import write_bookmarks_html

log = get_logger(__name__)


def main(argv: List[str] | None = None) -> int:
    p = argparse.ArgumentParser(
        prog="treemarks",
        description="Store nested bookmark trees in SQLite and export them again.",
    )
    p.add_argument("-V", "--version", action="version", version=f"treemarks {__version__}")
    p.add_argument("--config", default=None, help="YAML config file (optional). Env vars override defaults.")
    p.add_argument("--db", default=None, help="SQLite database path (overrides env/config).")
    p.add_argument("--log-level", default=None, help="DEBUG/INFO/WARN/ERROR (overrides env/config).")
    p.add_argument("--no-color", action="store_true", help="Disable colored logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    imp = sub.add_parser("import", help="Store a nested JSON bookmark tree as a list.")
    imp.add_argument("--json", required=True, help="JSON document: array of nodes, or object with contents/children.")
    _add_write_args(imp)

    imp_html = sub.add_parser("import-html", help="Store a Netscape bookmarks HTML export as a list.")
    imp_html.add_argument("--html", required=True, help="Netscape bookmark file (browser export).")
    _add_write_args(imp_html)

    exp = sub.add_parser("export", help="Write the flat export document of a list without folders.")
    exp.add_argument("--list-id", required=True, type=int)
    exp.add_argument("--out", default=None, help="Output path (default: stdout).")

    show = sub.add_parser("show", help="Write the nested JSON tree of a list.")
    show.add_argument("--list-id", required=True, type=int)
    show.add_argument("--out", default=None, help="Output path (default: stdout).")

    exp_html = sub.add_parser("export-html", help="Write a list as Netscape bookmarks HTML.")
    exp_html.add_argument("--list-id", required=True, type=int)
    exp_html.add_argument("--out", required=True, help="Output HTML path.")

    lst = sub.add_parser("lists", help="Show the lists a user owns.")
    lst.add_argument("--user", required=True, help="Owner user id.")

    args = p.parse_args(argv)
    cfg = load_settings(args.config)
    if args.db:
        cfg.db_path = args.db
    if args.log_level:
        cfg.log_level = args.log_level
    if args.no_color:
        cfg.no_color = True
    setup_logging(LogConfig(level=cfg.log_level, no_color=cfg.no_color, log_file=cfg.log_file or None))

    handlers = {
        "import": _cmd_import,
        "import-html": _cmd_import_html,
        "export": _cmd_export,
        "show": _cmd_show,
        "export-html": _cmd_export_html,
        "lists": _cmd_lists,
    }
    handler = handlers.get(args.cmd)
    if handler is None:
        return 2
    try:
        return handler(args, cfg)
    except StructureCorrupted as e:
        log.error("List %s is corrupted: %s", getattr(args, "list_id", "?"), e)
        return 2
    except sqlite3.Error as e:
        log.error("Database error (%s): %s", cfg.db_path, e)
        return 2


def _add_write_args(sp: argparse.ArgumentParser) -> None:
    sp.add_argument("--name", required=True, help="List name.")
    sp.add_argument("--user", required=True, help="Owner user id.")
    sp.add_argument("--list-id", type=int, default=None, help="Overwrite this existing list instead of creating one.")


def _cmd_import(args, cfg: Settings) -> int:
    src = Path(args.json)
    if not src.exists():
        log.error("Input file not found: %s", src)
        return 2
    try:
        tree = load_tree_json(src.read_text(encoding="utf-8"))
    except ValueError as e:
        # Covers both JSON decode and pydantic validation errors.
        log.error("Failed to read bookmark document %s: %s", src, e)
        return 2
    return _store_tree(tree, args, cfg)


def _cmd_import_html(args, cfg: Settings) -> int:
    src = Path(args.html)
    if not src.exists():
        log.error("Input file not found: %s", src)
        return 2
    try:
        tree, _root_title = parse_bookmarks_html(src)
    except ValueError as e:
        log.error("Failed to parse bookmarks HTML: %s", e)
        return 2
    return _store_tree(tree, args, cfg)


def _store_tree(tree, args, cfg: Settings) -> int:
    t0 = time.time()
    with ListStore(cfg.db_path, busy_timeout_ms=cfg.busy_timeout_ms) as store:
        try:
            list_id = store.insert_structured_list(tree, args.name, _user_id(args.user), args.list_id)
        except ValueError as e:
            log.error("Failed to store list: %s", e)
            return 2
    print(list_id)
    log.info("Stored list %d in %d ms.", list_id, int((time.time() - t0) * 1000))
    return 0


def _cmd_export(args, cfg: Settings) -> int:
    with _open_readonly(cfg) as store:
        text = store.serialize_list(args.list_id, ns_root=cfg.export_ns_root, title=cfg.export_title)
    _emit(text, args.out)
    return 0


def _cmd_show(args, cfg: Settings) -> int:
    root = _load_structure(args.list_id, cfg)
    if root is None:
        return 2
    _emit(dump_tree_json(root), args.out)
    return 0


def _cmd_export_html(args, cfg: Settings) -> int:
    root = _load_structure(args.list_id, cfg)
    if root is None:
        return 2
    write_bookmarks_html(out_path=Path(args.out), root=root, title_root=cfg.export_html_title)
    return 0


def _load_structure(list_id: int, cfg: Settings) -> Optional[Node]:
    with _open_readonly(cfg) as store:
        try:
            return store.create_structure(list_id)
        except StructureCorrupted:
            # Handled by main() with the corruption message; must not fall into the ValueError branch.
            raise
        except ValueError as e:
            log.error("%s", e)
            return None


def _cmd_lists(args, cfg: Settings) -> int:
    with _open_readonly(cfg) as store:
        lists = store.get_lists(store.get_list_ids(_user_id(args.user)))
    print(json.dumps([{"id": x.id, "name": x.name, "head": x.head} for x in lists], ensure_ascii=False))
    return 0


def _open_readonly(cfg: Settings) -> ListStore:
    return ListStore(cfg.db_path, readonly=True, busy_timeout_ms=cfg.busy_timeout_ms)


def _emit(text: str, out: Optional[str]) -> None:
    if out:
        Path(out).write_text(text + "\n", encoding="utf-8")
        log.info("Wrote %s", out)
    else:
        sys.stdout.write(text + "\n")


def _user_id(raw: str):
    # Numeric user ids stay integers so they match rows written by other callers.
    try:
        return int(raw)
    except ValueError:
        return raw
