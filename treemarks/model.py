from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

FOLDER = "folder"
BOOKMARK = "bookmark"


@dataclass
class Node:
    """One bookmark or folder in nested form. A folder owns its `contents`."""

    id: Optional[str] = None
    add_date: Optional[int] = None
    last_modified: Optional[int] = None
    ns_root: Optional[str] = None
    title: Optional[str] = None
    type: str = BOOKMARK
    icon: Optional[str] = None
    url: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    contents: List["Node"] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.contents:
            self.type = FOLDER

    @property
    def is_folder(self) -> bool:
        return bool(self.contents)


@dataclass
class NodeRow:
    """Flat, stored form of a node: scalar columns plus sibling/child pointers."""

    id: str
    add_date: Optional[int] = None
    last_modified: Optional[int] = None
    ns_root: Optional[str] = None
    title: Optional[str] = None
    type: str = BOOKMARK
    icon: Optional[str] = None
    url: Optional[str] = None
    next_node: Optional[str] = None
    first_child: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    def content_values(self) -> tuple:
        return (
            self.id,
            self.add_date,
            self.last_modified,
            self.ns_root,
            self.title,
            self.type,
            self.icon,
            self.url,
        )


@dataclass
class BookmarkList:
    id: int
    name: str
    head: Optional[str] = None
