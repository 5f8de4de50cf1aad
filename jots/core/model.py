from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Union


SCHEMA_VERSION = 1
MIN_CONTENT_LENGTH = 10

Status = Literal["pending", "in_progress", "completed", "blocked"]
ItemType = Literal["epic", "task", "subtask"]
Level = Literal["epic", "task", "subtask", "any"]

STATUSES: tuple[str, ...] = ("pending", "in_progress", "completed", "blocked")
ITEM_TYPES: tuple[str, ...] = ("epic", "task", "subtask")
ACTIONABLE_STATUSES: frozenset[str] = frozenset({"pending", "in_progress"})


@dataclass(frozen=True)
class Subtask:
    id: str
    content: str
    priority: int
    created_at: str
    status: Status = "pending"

    updated_at: Optional[str] = None
    completed_at: Optional[str] = None
    implementation_description: Optional[str] = None
    notes: Optional[tuple[str, ...]] = None
    deps: Optional[tuple[str, ...]] = None


@dataclass(frozen=True)
class Task:
    id: str
    content: str
    priority: int
    created_at: str
    status: Status = "pending"

    updated_at: Optional[str] = None
    completed_at: Optional[str] = None
    implementation_description: Optional[str] = None
    notes: Optional[tuple[str, ...]] = None
    deps: Optional[tuple[str, ...]] = None
    subtasks: tuple[Subtask, ...] = ()


@dataclass(frozen=True)
class Epic:
    id: str
    content: str
    priority: int
    created_at: str
    status: Status = "pending"

    updated_at: Optional[str] = None
    completed_at: Optional[str] = None
    implementation_description: Optional[str] = None
    notes: Optional[tuple[str, ...]] = None
    deps: Optional[tuple[str, ...]] = None
    tasks: tuple[Task, ...] = ()


Item = Union[Epic, Task, Subtask]


@dataclass(frozen=True)
class State:
    version: int = SCHEMA_VERSION
    epics: tuple[Epic, ...] = ()
    tasks: tuple[Task, ...] = ()  # standalone tasks, not attached to any epic


@dataclass(frozen=True)
class ItemChanges:
    """Partial update. Fields left as None are not touched."""

    content: Optional[str] = None
    priority: Optional[int] = None
    status: Optional[Status] = None
    implementation_description: Optional[str] = None
    notes: Optional[tuple[str, ...]] = None
    deps: Optional[tuple[str, ...]] = None

    def is_empty(self) -> bool:
        return all(
            v is None
            for v in (
                self.content,
                self.priority,
                self.status,
                self.implementation_description,
                self.notes,
                self.deps,
            )
        )

    def as_dict(self) -> dict[str, object]:
        out: dict[str, object] = {}
        for key in ("content", "priority", "status", "implementation_description", "notes", "deps"):
            value = getattr(self, key)
            if value is not None:
                out[key] = list(value) if isinstance(value, tuple) else value
        return out


@dataclass(frozen=True)
class FlatItem:
    """Read-only projection of any entity plus its parent/children context."""

    type: ItemType
    id: str
    content: str
    priority: int
    status: Status
    created_at: str
    depth: int
    has_children: bool
    children_count: int
    completed_children_count: int

    updated_at: Optional[str] = None
    completed_at: Optional[str] = None
    implementation_description: Optional[str] = None
    notes: Optional[tuple[str, ...]] = None
    deps: Optional[tuple[str, ...]] = None
    epic_id: Optional[str] = None
    epic_content: Optional[str] = None
    task_id: Optional[str] = None
    task_content: Optional[str] = None
    is_standalone: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "type": self.type,
            "id": self.id,
            "content": self.content,
            "priority": self.priority,
            "status": self.status,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "completed_at": self.completed_at,
            "implementation_description": self.implementation_description,
            "notes": list(self.notes) if self.notes is not None else None,
            "deps": list(self.deps) if self.deps is not None else None,
            "epic_id": self.epic_id,
            "epic_content": self.epic_content,
            "task_id": self.task_id,
            "task_content": self.task_content,
            "depth": self.depth,
            "has_children": self.has_children,
            "children_count": self.children_count,
            "completed_children_count": self.completed_children_count,
            "is_standalone": self.is_standalone,
        }
