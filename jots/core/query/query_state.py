from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, TypeVar, Union

from jots.core.model import (
    ACTIONABLE_STATUSES,
    Epic,
    FlatItem,
    ItemType,
    Level,
    State,
    Status,
    Subtask,
    Task,
)


V = TypeVar("V")
OneOrMany = Union[V, Iterable[V]]


# ---------------------------------------------------------------------------
# Flatten
# ---------------------------------------------------------------------------


def _flatten_epic(epic: Epic) -> FlatItem:
    return FlatItem(
        type="epic",
        id=epic.id,
        content=epic.content,
        priority=epic.priority,
        status=epic.status,
        created_at=epic.created_at,
        updated_at=epic.updated_at,
        completed_at=epic.completed_at,
        implementation_description=epic.implementation_description,
        notes=epic.notes,
        deps=epic.deps,
        depth=0,
        has_children=len(epic.tasks) > 0,
        children_count=len(epic.tasks),
        completed_children_count=sum(1 for t in epic.tasks if t.status == "completed"),
    )


def _flatten_task(epic: Optional[Epic], task: Task) -> FlatItem:
    standalone = epic is None
    return FlatItem(
        type="task",
        id=task.id,
        content=task.content,
        priority=task.priority,
        status=task.status,
        created_at=task.created_at,
        updated_at=task.updated_at,
        completed_at=task.completed_at,
        implementation_description=task.implementation_description,
        notes=task.notes,
        deps=task.deps,
        epic_id=epic.id if epic else None,
        epic_content=epic.content if epic else None,
        depth=0 if standalone else 1,
        has_children=len(task.subtasks) > 0,
        children_count=len(task.subtasks),
        completed_children_count=sum(1 for s in task.subtasks if s.status == "completed"),
        is_standalone=standalone,
    )


def _flatten_subtask(epic: Optional[Epic], task: Task, sub: Subtask) -> FlatItem:
    standalone = epic is None
    return FlatItem(
        type="subtask",
        id=sub.id,
        content=sub.content,
        priority=sub.priority,
        status=sub.status,
        created_at=sub.created_at,
        updated_at=sub.updated_at,
        completed_at=sub.completed_at,
        implementation_description=sub.implementation_description,
        notes=sub.notes,
        deps=sub.deps,
        epic_id=epic.id if epic else None,
        epic_content=epic.content if epic else None,
        task_id=task.id,
        task_content=task.content,
        depth=1 if standalone else 2,
        has_children=False,
        children_count=0,
        completed_children_count=0,
        is_standalone=standalone,
    )


def flatten_state(state: State) -> list[FlatItem]:
    """One FlatItem per entity, in document order (not priority order)."""

    items: list[FlatItem] = []
    for epic in state.epics:
        items.append(_flatten_epic(epic))
        for task in epic.tasks:
            items.append(_flatten_task(epic, task))
            for sub in task.subtasks:
                items.append(_flatten_subtask(epic, task, sub))

    for task in state.tasks:
        items.append(_flatten_task(None, task))
        for sub in task.subtasks:
            items.append(_flatten_subtask(None, task, sub))
    return items


# ---------------------------------------------------------------------------
# Next / context
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NextResult:
    item: Optional[FlatItem]
    queue_depth: int
    blocked_by_deps: int


def _deps_satisfied(item: FlatItem, status_by_id: dict[str, Status]) -> bool:
    # An id that resolves nowhere never counts as satisfied.
    return all(status_by_id.get(dep) == "completed" for dep in item.deps or ())


def get_next(state: State, *, level: Level = "any") -> NextResult:
    flat = flatten_state(state)
    status_by_id: dict[str, Status] = {}
    for i in flat:
        status_by_id.setdefault(i.id, i.status)

    actionable = [i for i in flat if i.status in ACTIONABLE_STATUSES]
    if level != "any":
        actionable = [i for i in actionable if i.type == level]

    ready = [i for i in actionable if _deps_satisfied(i, status_by_id)]
    blocked = len(actionable) - len(ready)

    if level == "any":
        ready.sort(key=lambda i: (i.priority, -i.depth))
    else:
        ready.sort(key=lambda i: i.priority)

    return NextResult(item=ready[0] if ready else None, queue_depth=len(ready), blocked_by_deps=blocked)


@dataclass(frozen=True)
class ContextSummary:
    total_epics: int
    completed_epics: int
    total_tasks: int
    completed_tasks: int
    total_subtasks: int
    completed_subtasks: int
    in_progress_items: list[FlatItem] = field(default_factory=list)
    blocked_items: list[FlatItem] = field(default_factory=list)
    next_item: Optional[FlatItem] = None

    def to_dict(self) -> dict[str, object]:
        return {
            "total_epics": self.total_epics,
            "completed_epics": self.completed_epics,
            "total_tasks": self.total_tasks,
            "completed_tasks": self.completed_tasks,
            "total_subtasks": self.total_subtasks,
            "completed_subtasks": self.completed_subtasks,
            "in_progress_items": [i.to_dict() for i in self.in_progress_items],
            "blocked_items": [i.to_dict() for i in self.blocked_items],
            "next_item": self.next_item.to_dict() if self.next_item else None,
        }


def get_context(state: State) -> ContextSummary:
    flat = flatten_state(state)

    def _count(kind: ItemType, completed: bool = False) -> int:
        return sum(1 for i in flat if i.type == kind and (not completed or i.status == "completed"))

    return ContextSummary(
        total_epics=_count("epic"),
        completed_epics=_count("epic", completed=True),
        total_tasks=_count("task"),
        completed_tasks=_count("task", completed=True),
        total_subtasks=_count("subtask"),
        completed_subtasks=_count("subtask", completed=True),
        in_progress_items=[i for i in flat if i.status == "in_progress"],
        blocked_items=[i for i in flat if i.status == "blocked"],
        next_item=get_next(state).item,
    )


# ---------------------------------------------------------------------------
# Filter / list / find
# ---------------------------------------------------------------------------


def _as_set(value: OneOrMany[V]) -> set[V]:
    if isinstance(value, (str, int)):
        return {value}  # type: ignore[arg-type]
    return set(value)  # type: ignore[arg-type]


def _resolve_parent(items: list[FlatItem], kind: ItemType, query: str) -> Optional[str]:
    """Exact id first, then the first case-insensitive content match."""
    candidates = [i for i in items if i.type == kind]
    for c in candidates:
        if c.id == query:
            return c.id
    q = query.lower()
    for c in candidates:
        if q in c.content.lower():
            return c.id
    return None


def filter_items(
    state: State,
    *,
    status: Optional[OneOrMany[Status]] = None,
    priority: Optional[OneOrMany[int]] = None,
    kind: Optional[OneOrMany[ItemType]] = None,
    epic: Optional[str] = None,
    task: Optional[str] = None,
    search: Optional[str] = None,
) -> list[FlatItem]:
    """Intersect the given filters over the flattened state.

    Parent scopes (epic, task) resolve against the full list and are applied
    first; an unresolvable parent yields no items.
    """

    all_items = flatten_state(state)
    items = all_items

    if epic is not None:
        epic_id = _resolve_parent(all_items, "epic", epic)
        if epic_id is None:
            return []
        items = [i for i in items if i.epic_id == epic_id or i.id == epic_id]

    if task is not None:
        task_id = _resolve_parent(all_items, "task", task)
        if task_id is None:
            return []
        items = [i for i in items if i.task_id == task_id or i.id == task_id]

    if status is not None:
        statuses = _as_set(status)
        items = [i for i in items if i.status in statuses]

    if priority is not None:
        priorities = _as_set(priority)
        items = [i for i in items if i.priority in priorities]

    if kind is not None:
        kinds = _as_set(kind)
        items = [i for i in items if i.type in kinds]

    if search is not None:
        s = search.lower()
        items = [i for i in items if s in i.content.lower()]

    return items


def list_epics(state: State) -> list[FlatItem]:
    return filter_items(state, kind="epic")


def list_tasks(state: State, epic: Optional[str] = None) -> list[FlatItem]:
    return filter_items(state, kind="task", epic=epic or None)


def list_subtasks(state: State, task: Optional[str] = None) -> list[FlatItem]:
    return filter_items(state, kind="subtask", task=task or None)


def find_by_id(state: State, item_id: str) -> Optional[FlatItem]:
    for item in flatten_state(state):
        if item.id == item_id:
            return item
    return None


def fuzzy_find(state: State, query: str) -> list[FlatItem]:
    """Exact id match short-circuits to one item; otherwise every content match."""

    flat = flatten_state(state)
    for item in flat:
        if item.id == query:
            return [item]
    q = query.lower()
    return [i for i in flat if q in i.content.lower()]


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving a user-supplied identifier to a single item."""

    item: Optional[FlatItem]
    matches: list[FlatItem]

    @property
    def ambiguous(self) -> bool:
        return self.item is None and len(self.matches) > 1


def resolve_item(state: State, query: str, *, kind: Optional[ItemType] = None) -> Resolution:
    matches = fuzzy_find(state, query)
    if kind is not None:
        matches = [m for m in matches if m.type == kind]
    if len(matches) == 1:
        return Resolution(item=matches[0], matches=matches)
    return Resolution(item=None, matches=matches)
