from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .build import build_flat_list, build_tree
from .document import EXPORT_NS_ROOT, EXPORT_TITLE, flat_export_json
from .flatten import flatten_tree, head_of
from .ids import assign_ids
from .log import get_logger
from .model import BookmarkList, Node, NodeRow

log = get_logger(__name__)

# Keeps IN (...) lists under SQLite's host parameter limit.
_IN_CHUNK = 500

_SCHEMA = """
CREATE TABLE IF NOT EXISTS lists (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    head TEXT
);
CREATE TABLE IF NOT EXISTS nodes (
    id TEXT PRIMARY KEY,
    add_date INTEGER,
    last_modified INTEGER,
    ns_root TEXT,
    title TEXT,
    type TEXT NOT NULL CHECK (type IN ('folder', 'bookmark')),
    icon TEXT,
    url TEXT
);
CREATE TABLE IF NOT EXISTS listnode (
    list_id INTEGER NOT NULL REFERENCES lists(id),
    node_id TEXT NOT NULL REFERENCES nodes(id),
    next_node TEXT,
    first_child TEXT,
    PRIMARY KEY (list_id, node_id)
);
CREATE TABLE IF NOT EXISTS tags (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS nodetag (
    node_id TEXT NOT NULL REFERENCES nodes(id),
    tag_id INTEGER NOT NULL REFERENCES tags(id),
    PRIMARY KEY (node_id, tag_id)
);
CREATE TABLE IF NOT EXISTS userlist (
    user_id INTEGER NOT NULL,
    list_id INTEGER NOT NULL REFERENCES lists(id),
    PRIMARY KEY (user_id, list_id)
);
"""

_UPSERT_NODE = """
INSERT INTO nodes (id, add_date, last_modified, ns_root, title, type, icon, url)
VALUES (?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET
    add_date=excluded.add_date,
    last_modified=excluded.last_modified,
    ns_root=excluded.ns_root,
    title=excluded.title,
    type=excluded.type,
    icon=excluded.icon,
    url=excluded.url
"""

_UPSERT_POINTER = """
INSERT INTO listnode (list_id, node_id, next_node, first_child)
VALUES (?, ?, ?, ?)
ON CONFLICT(list_id, node_id) DO UPDATE SET
    next_node=excluded.next_node,
    first_child=excluded.first_child
"""


@dataclass
class WritePlan:
    """Everything one structured-list write puts into the tables, derived from flat rows."""

    head: Optional[str]
    node_contents: List[tuple] = field(default_factory=list)
    node_pointers: List[Tuple[str, Optional[str], Optional[str]]] = field(default_factory=list)
    tag_names: List[str] = field(default_factory=list)
    node_tags: List[Tuple[str, str]] = field(default_factory=list)


def plan_write(rows: Sequence[NodeRow], head: Optional[str]) -> WritePlan:
    plan = WritePlan(head=head)
    seen_tags = set()
    for r in rows:
        plan.node_contents.append(r.content_values())
        plan.node_pointers.append((r.id, r.next_node, r.first_child))
        for tag in r.tags:
            plan.node_tags.append((r.id, tag))
            if tag not in seen_tags:
                seen_tags.add(tag)
                plan.tag_names.append(tag)
    return plan


class ListStore:
    def __init__(self, db_path: Path | str, *, readonly: bool = False, busy_timeout_ms: int = 5000):
        self.db_path = Path(db_path)
        self.readonly = readonly
        self.busy_timeout_ms = max(0, int(busy_timeout_ms))
        self.conn: sqlite3.Connection | None = None

    def __enter__(self) -> "ListStore":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> None:
        mode = "ro" if self.readonly else "rwc"
        if not self.readonly:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        uri = f"file:{self.db_path.as_posix()}?mode={mode}"
        timeout_s = max(0.1, self.busy_timeout_ms / 1000.0) if self.busy_timeout_ms > 0 else 0.1
        # Autocommit mode: transactions are opened explicitly by `transaction()`.
        self.conn = sqlite3.connect(uri, uri=True, timeout=timeout_s, isolation_level=None)
        self.conn.row_factory = sqlite3.Row
        if self.busy_timeout_ms > 0:
            self.conn.execute(f"PRAGMA busy_timeout = {self.busy_timeout_ms}")
        self.conn.execute("PRAGMA foreign_keys = ON")
        if not self.readonly:
            self.init_schema()

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def init_schema(self) -> None:
        self._assert_writable()
        self._cursor().executescript(_SCHEMA)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        """Unit of work: commits when the block exits cleanly, rolls back on any exception."""
        self._assert_writable()
        c = self._cursor()
        # Take the write lock up front so tag inserts and their id lookups see one snapshot.
        c.execute("BEGIN IMMEDIATE")
        try:
            yield c
            c.execute("COMMIT")
        except BaseException:
            if self.conn is not None and self.conn.in_transaction:
                try:
                    c.execute("ROLLBACK")
                except sqlite3.Error as rollback_err:
                    log.error("Rollback failed: %s", rollback_err)
            raise

    def insert_structured_list(
        self,
        tree: Sequence[Node],
        list_name: str,
        user_id: int | str,
        list_id: Optional[int] = None,
    ) -> int:
        """Store a nested tree as a list owned by `user_id` and return the list id.

        With `list_id` the existing list is renamed and re-pointed and its nodes
        upserted; without it a new list is created. The whole write is one
        transaction.
        """
        nodes = assign_ids(tree)
        rows = flatten_tree(nodes)
        plan = plan_write(rows, head_of(nodes))

        with self.transaction() as c:
            if list_id is None:
                c.execute("INSERT INTO lists (name, head) VALUES (?, ?)", (list_name, plan.head))
                list_id = int(c.lastrowid)
            else:
                c.execute(
                    "UPDATE lists SET name = ?, head = ? WHERE id = ?",
                    (list_name, plan.head, list_id),
                )
                if c.rowcount == 0:
                    raise ValueError(f"list id not found: {list_id}")

            c.execute(
                "INSERT INTO userlist (user_id, list_id) VALUES (?, ?) ON CONFLICT DO NOTHING",
                (user_id, list_id),
            )
            if plan.node_contents:
                c.executemany(_UPSERT_NODE, plan.node_contents)
                c.executemany(
                    _UPSERT_POINTER,
                    [(list_id, node_id, nxt, child) for node_id, nxt, child in plan.node_pointers],
                )
            if plan.tag_names:
                c.executemany(
                    "INSERT INTO tags (name) VALUES (?) ON CONFLICT(name) DO NOTHING",
                    [(name,) for name in plan.tag_names],
                )
                tag_ids = self._tag_ids(c, plan.tag_names)
                c.executemany(
                    "INSERT INTO nodetag (node_id, tag_id) VALUES (?, ?) ON CONFLICT DO NOTHING",
                    [(node_id, tag_ids[name]) for node_id, name in plan.node_tags],
                )

        log.info(
            "Stored list %s (%d nodes, %d tags) for user %s",
            list_id,
            len(plan.node_contents),
            len(plan.tag_names),
            user_id,
        )
        return list_id

    def get_list_ids(self, user_id: int | str) -> List[int]:
        c = self._cursor()
        rows = c.execute(
            "SELECT list_id FROM userlist WHERE user_id = ? ORDER BY list_id",
            (user_id,),
        ).fetchall()
        return [int(r["list_id"]) for r in rows]

    def get_lists(self, list_ids: Iterable[int]) -> List[BookmarkList]:
        out: List[BookmarkList] = []
        c = self._cursor()
        for chunk in _chunks(list(list_ids), _IN_CHUNK):
            placeholders = ", ".join(["?"] * len(chunk))
            rows = c.execute(
                f"SELECT id, name, head FROM lists WHERE id IN ({placeholders}) ORDER BY id",
                chunk,
            ).fetchall()
            out.extend(BookmarkList(id=int(r["id"]), name=r["name"], head=r["head"]) for r in rows)
        return out

    def get_list_head(self, list_id: int) -> Optional[str]:
        row = self._cursor().execute("SELECT head FROM lists WHERE id = ?", (list_id,)).fetchone()
        if row is None:
            raise ValueError(f"list id not found: {list_id}")
        return row["head"]

    def get_nodes_from_list(self, list_id: int) -> List[NodeRow]:
        rows = self._cursor().execute(
            """
            SELECT n.id, n.add_date, n.last_modified, n.ns_root, n.title, n.type, n.icon, n.url,
                   ln.next_node, ln.first_child
            FROM listnode ln
            JOIN nodes n ON n.id = ln.node_id
            WHERE ln.list_id = ?
            """,
            (list_id,),
        ).fetchall()
        return [
            NodeRow(
                id=r["id"],
                add_date=r["add_date"],
                last_modified=r["last_modified"],
                ns_root=r["ns_root"],
                title=r["title"],
                type=r["type"],
                icon=r["icon"],
                url=r["url"],
                next_node=r["next_node"],
                first_child=r["first_child"],
            )
            for r in rows
        ]

    def add_tags_to_nodes(self, rows: Sequence[NodeRow]) -> None:
        """Fill in `tags` (sorted by name) on each row from the association table."""
        by_id: Dict[str, NodeRow] = {}
        for r in rows:
            r.tags = []
            by_id[r.id] = r
        c = self._cursor()
        for chunk in _chunks(list(by_id), _IN_CHUNK):
            placeholders = ", ".join(["?"] * len(chunk))
            tag_rows = c.execute(
                f"""
                SELECT nt.node_id, t.name
                FROM nodetag nt
                JOIN tags t ON t.id = nt.tag_id
                WHERE nt.node_id IN ({placeholders})
                ORDER BY t.name
                """,
                chunk,
            ).fetchall()
            for tr in tag_rows:
                by_id[tr["node_id"]].tags.append(tr["name"])

    def serialize_list(
        self,
        list_id: int,
        *,
        ns_root: str = EXPORT_NS_ROOT,
        title: str = EXPORT_TITLE,
    ) -> str:
        """Flat export document of a list with no folder nesting.

        Raises StructureCorrupted if the stored rows do not form exactly one chain.
        """
        ordered = build_flat_list(self.get_nodes_from_list(list_id))
        return flat_export_json(ordered, ns_root=ns_root, title=title)

    def create_structure(self, list_id: int) -> Node:
        head = self.get_list_head(list_id)
        rows = self.get_nodes_from_list(list_id)
        self.add_tags_to_nodes(rows)
        return build_tree(rows, head)

    def _tag_ids(self, c: sqlite3.Cursor, names: Sequence[str]) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for chunk in _chunks(list(names), _IN_CHUNK):
            placeholders = ", ".join(["?"] * len(chunk))
            for r in c.execute(f"SELECT id, name FROM tags WHERE name IN ({placeholders})", chunk):
                out[r["name"]] = int(r["id"])
        return out

    def _assert_writable(self) -> None:
        if self.readonly:
            raise RuntimeError("database opened in readonly mode")

    def _cursor(self) -> sqlite3.Cursor:
        if self.conn is None:
            raise RuntimeError("database is not open")
        return self.conn.cursor()


def _chunks(items: List, size: int) -> Iterator[List]:
    for i in range(0, len(items), size):
        yield items[i : i + size]
