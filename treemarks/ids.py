from __future__ import annotations

import re
import uuid
from dataclasses import replace
from typing import Any, Iterable, List

from .model import Node

_UUID4_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_uuid4(value: Any) -> bool:
    return isinstance(value, str) and _UUID4_RE.match(value) is not None


def new_id() -> str:
    return str(uuid.uuid4())


def force_uuid(value: Any) -> str:
    """Keep a valid UUID-v4 id so re-submitted nodes upsert in place; otherwise mint one."""
    if is_uuid4(value):
        return value
    return new_id()


def assign_ids(nodes: Iterable[Node]) -> List[Node]:
    """Return a copy of the tree where every node, at any depth, has a UUID-v4 id.

    The input is left untouched. Running it on its own output changes nothing.
    """
    out: List[Node] = []
    for node in nodes:
        out.append(
            replace(
                node,
                id=force_uuid(node.id),
                tags=list(node.tags),
                contents=assign_ids(node.contents),
            )
        )
    return out
