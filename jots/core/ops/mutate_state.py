from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Optional, Sequence, TypeVar

from jots.core.errors import OperationError
from jots.core.ids import ClockFn, IdFn, generate_id, timestamp
from jots.core.model import SCHEMA_VERSION, Epic, FlatItem, Item, ItemChanges, State, Subtask, Task


T = TypeVar("T", Epic, Task, Subtask)


@dataclass(frozen=True)
class OpResult:
    state: Optional[State]
    item: Optional[Item] = None
    error: Optional[OperationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _fail(code: str, message: str, path: Optional[str] = None) -> OpResult:
    return OpResult(state=None, error=OperationError(code=code, message=message, path=path))


def _opt_tuple(values: Optional[Iterable[str]]) -> Optional[tuple[str, ...]]:
    return tuple(values) if values is not None else None


def _index_of(items: Sequence[Item], item_id: str) -> int:
    for i, item in enumerate(items):
        if item.id == item_id:
            return i
    return -1


def _replace_at(items: tuple[T, ...], index: int, item: T) -> tuple[T, ...]:
    return items[:index] + (item,) + items[index + 1 :]


def _drop_at(items: tuple[T, ...], index: int) -> tuple[T, ...]:
    return items[:index] + items[index + 1 :]


def create_empty_state() -> State:
    return State(version=SCHEMA_VERSION, epics=(), tasks=())


# ---------------------------------------------------------------------------
# Locating tasks: a task lives either under an epic or in State.tasks.
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _TaskSlot:
    task: Task
    task_index: int
    epic: Optional[Epic] = None
    epic_index: int = -1


def _locate_task(state: State, task_id: str, epic_id: Optional[str]) -> tuple[Optional[_TaskSlot], Optional[OpResult]]:
    if epic_id is None:
        ti = _index_of(state.tasks, task_id)
        if ti < 0:
            return None, _fail("E_TASK_NOT_FOUND", f"Standalone task not found: {task_id}", "tasks")
        return _TaskSlot(task=state.tasks[ti], task_index=ti), None

    ei = _index_of(state.epics, epic_id)
    if ei < 0:
        return None, _fail("E_EPIC_NOT_FOUND", f"Epic not found: {epic_id}", "epics")
    epic = state.epics[ei]
    ti = _index_of(epic.tasks, task_id)
    if ti < 0:
        return None, _fail("E_TASK_NOT_FOUND", f"Task not found: {task_id} (epic {epic_id})", f"epics.{ei}.tasks")
    return _TaskSlot(task=epic.tasks[ti], task_index=ti, epic=epic, epic_index=ei), None


def _store_task(state: State, slot: _TaskSlot, task: Task, now: str) -> State:
    """Write task back into its slot; an owning epic gets its updated_at refreshed."""
    if slot.epic is None:
        return replace(state, tasks=_replace_at(state.tasks, slot.task_index, task))
    epic = replace(slot.epic, tasks=_replace_at(slot.epic.tasks, slot.task_index, task), updated_at=now)
    return replace(state, epics=_replace_at(state.epics, slot.epic_index, epic))


# ---------------------------------------------------------------------------
# Add
# ---------------------------------------------------------------------------


def add_epic(
    state: State,
    *,
    content: str,
    priority: int,
    notes: Optional[Iterable[str]] = None,
    deps: Optional[Iterable[str]] = None,
    new_id: IdFn = generate_id,
    clock: ClockFn = timestamp,
) -> OpResult:
    epic = Epic(
        id=new_id(),
        content=content,
        priority=priority,
        status="pending",
        created_at=clock(),
        notes=_opt_tuple(notes),
        deps=_opt_tuple(deps),
    )
    return OpResult(state=replace(state, epics=state.epics + (epic,)), item=epic)


def add_task(
    state: State,
    *,
    content: str,
    priority: int,
    epic_id: Optional[str] = None,
    notes: Optional[Iterable[str]] = None,
    deps: Optional[Iterable[str]] = None,
    new_id: IdFn = generate_id,
    clock: ClockFn = timestamp,
) -> OpResult:
    """Append a task to an epic, or to the standalone list when epic_id is None."""

    now = clock()
    task = Task(
        id=new_id(),
        content=content,
        priority=priority,
        status="pending",
        created_at=now,
        notes=_opt_tuple(notes),
        deps=_opt_tuple(deps),
    )

    if not epic_id:
        return OpResult(state=replace(state, tasks=state.tasks + (task,)), item=task)

    ei = _index_of(state.epics, epic_id)
    if ei < 0:
        return _fail("E_EPIC_NOT_FOUND", f"Epic not found: {epic_id}", "epics")

    epic = state.epics[ei]
    epic = replace(epic, tasks=epic.tasks + (task,), updated_at=now)
    return OpResult(state=replace(state, epics=_replace_at(state.epics, ei, epic)), item=task)


def add_subtask(
    state: State,
    *,
    content: str,
    priority: int,
    task_id: str,
    epic_id: Optional[str] = None,
    notes: Optional[Iterable[str]] = None,
    deps: Optional[Iterable[str]] = None,
    new_id: IdFn = generate_id,
    clock: ClockFn = timestamp,
) -> OpResult:
    """Append a subtask to a task. epic_id=None means the task is standalone."""

    if not task_id:
        return _fail("E_MISSING_PARENT", "a subtask needs a parent task id")

    slot, err = _locate_task(state, task_id, epic_id or None)
    if err is not None:
        return err
    assert slot is not None

    now = clock()
    subtask = Subtask(
        id=new_id(),
        content=content,
        priority=priority,
        status="pending",
        created_at=now,
        notes=_opt_tuple(notes),
        deps=_opt_tuple(deps),
    )
    task = replace(slot.task, subtasks=slot.task.subtasks + (subtask,), updated_at=now)
    return OpResult(state=_store_task(state, slot, task, now), item=subtask)


def add_standalone_subtask(
    state: State,
    *,
    content: str,
    priority: int,
    task_id: str,
    notes: Optional[Iterable[str]] = None,
    deps: Optional[Iterable[str]] = None,
    new_id: IdFn = generate_id,
    clock: ClockFn = timestamp,
) -> OpResult:
    return add_subtask(
        state,
        content=content,
        priority=priority,
        task_id=task_id,
        epic_id=None,
        notes=notes,
        deps=deps,
        new_id=new_id,
        clock=clock,
    )


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


def apply_changes(item: T, changes: ItemChanges, now: str) -> T:
    """Apply only the fields present in changes; updated_at always moves.

    completed_at is set when the incoming status is completed and is left
    alone otherwise, including when status moves away from completed.
    """

    fields: dict[str, object] = {"updated_at": now}
    for key in ("content", "priority", "status", "implementation_description", "notes", "deps"):
        value = getattr(changes, key)
        if value is not None:
            fields[key] = value
    if changes.status == "completed":
        fields["completed_at"] = now
    return replace(item, **fields)


def update_epic(state: State, *, epic_id: str, changes: ItemChanges, clock: ClockFn = timestamp) -> OpResult:
    ei = _index_of(state.epics, epic_id)
    if ei < 0:
        return _fail("E_EPIC_NOT_FOUND", f"Epic not found: {epic_id}", "epics")
    epic = apply_changes(state.epics[ei], changes, clock())
    return OpResult(state=replace(state, epics=_replace_at(state.epics, ei, epic)), item=epic)


def update_task(
    state: State,
    *,
    task_id: str,
    changes: ItemChanges,
    epic_id: Optional[str] = None,
    clock: ClockFn = timestamp,
) -> OpResult:
    slot, err = _locate_task(state, task_id, epic_id or None)
    if err is not None:
        return err
    assert slot is not None

    now = clock()
    task = apply_changes(slot.task, changes, now)
    return OpResult(state=_store_task(state, slot, task, now), item=task)


def update_subtask(
    state: State,
    *,
    task_id: str,
    subtask_id: str,
    changes: ItemChanges,
    epic_id: Optional[str] = None,
    clock: ClockFn = timestamp,
) -> OpResult:
    if not task_id:
        return _fail("E_MISSING_PARENT", f"updating subtask {subtask_id} requires its task id")

    slot, err = _locate_task(state, task_id, epic_id or None)
    if err is not None:
        return err
    assert slot is not None

    si = _index_of(slot.task.subtasks, subtask_id)
    if si < 0:
        return _fail("E_SUBTASK_NOT_FOUND", f"Subtask not found: {subtask_id} (task {task_id})")

    now = clock()
    subtask = apply_changes(slot.task.subtasks[si], changes, now)
    task = replace(slot.task, subtasks=_replace_at(slot.task.subtasks, si, subtask), updated_at=now)
    return OpResult(state=_store_task(state, slot, task, now), item=subtask)


def update_standalone_task(
    state: State, *, task_id: str, changes: ItemChanges, clock: ClockFn = timestamp
) -> OpResult:
    return update_task(state, task_id=task_id, changes=changes, epic_id=None, clock=clock)


def update_standalone_subtask(
    state: State,
    *,
    task_id: str,
    subtask_id: str,
    changes: ItemChanges,
    clock: ClockFn = timestamp,
) -> OpResult:
    return update_subtask(
        state, task_id=task_id, subtask_id=subtask_id, changes=changes, epic_id=None, clock=clock
    )


def update_item(state: State, item: FlatItem, changes: ItemChanges, *, clock: ClockFn = timestamp) -> OpResult:
    """Route an update using the parent context carried by a FlatItem."""

    if item.type == "epic":
        return update_epic(state, epic_id=item.id, changes=changes, clock=clock)
    if item.type == "task":
        return update_task(state, task_id=item.id, changes=changes, epic_id=item.epic_id, clock=clock)
    if not item.task_id:
        return _fail("E_MISSING_PARENT", f"Subtask has no task reference: {item.id}")
    return update_subtask(
        state,
        task_id=item.task_id,
        subtask_id=item.id,
        changes=changes,
        epic_id=item.epic_id,
        clock=clock,
    )


# ---------------------------------------------------------------------------
# Mark complete (with upward cascade)
# ---------------------------------------------------------------------------

_COMPLETE = ItemChanges(status="completed")


def _all_completed(children: Sequence[Item]) -> bool:
    return len(children) > 0 and all(c.status == "completed" for c in children)


def mark_complete(state: State, item_id: str, *, clock: ClockFn = timestamp) -> OpResult:
    """Complete one item by bare id, then cascade completion upward.

    Search order: epics, their tasks, their subtasks, then standalone tasks and
    their subtasks. A parent is completed once all its children are; the
    cascade stops at the first level where that does not hold, or where the
    parent is already completed. An item that is already completed is left
    untouched and the same state is returned.
    """

    now = clock()
    fixed_clock: ClockFn = lambda: now  # noqa: E731

    for epic in state.epics:
        if epic.id == item_id:
            if epic.status == "completed":
                return OpResult(state=state, item=epic)
            return update_epic(state, epic_id=epic.id, changes=_COMPLETE, clock=fixed_clock)

        for task in epic.tasks:
            if task.id == item_id:
                return _complete_task(state, task, epic.id, fixed_clock)
            for sub in task.subtasks:
                if sub.id == item_id:
                    return _complete_subtask(state, sub, task.id, epic.id, fixed_clock)

    for task in state.tasks:
        if task.id == item_id:
            return _complete_task(state, task, None, fixed_clock)
        for sub in task.subtasks:
            if sub.id == item_id:
                return _complete_subtask(state, sub, task.id, None, fixed_clock)

    return _fail("E_ITEM_NOT_FOUND", f"Item not found: {item_id}")


def _complete_task(state: State, task: Task, epic_id: Optional[str], clock: ClockFn) -> OpResult:
    if task.status == "completed":
        return OpResult(state=state, item=task)
    res = update_task(state, task_id=task.id, changes=_COMPLETE, epic_id=epic_id, clock=clock)
    if not res.ok or epic_id is None:
        return res
    assert res.state is not None
    return OpResult(state=_cascade_epic(res.state, epic_id, clock), item=res.item)


def _complete_subtask(
    state: State, sub: Subtask, task_id: str, epic_id: Optional[str], clock: ClockFn
) -> OpResult:
    if sub.status == "completed":
        return OpResult(state=state, item=sub)
    res = update_subtask(
        state, task_id=task_id, subtask_id=sub.id, changes=_COMPLETE, epic_id=epic_id, clock=clock
    )
    if not res.ok:
        return res
    assert res.state is not None

    slot, _ = _locate_task(res.state, task_id, epic_id)
    if slot is None or slot.task.status == "completed" or not _all_completed(slot.task.subtasks):
        return res

    promoted = update_task(res.state, task_id=task_id, changes=_COMPLETE, epic_id=epic_id, clock=clock)
    assert promoted.state is not None
    if epic_id is None:
        return OpResult(state=promoted.state, item=res.item)
    return OpResult(state=_cascade_epic(promoted.state, epic_id, clock), item=res.item)


def _cascade_epic(state: State, epic_id: str, clock: ClockFn) -> State:
    ei = _index_of(state.epics, epic_id)
    if ei < 0:
        return state
    epic = state.epics[ei]
    if epic.status == "completed" or not _all_completed(epic.tasks):
        return state
    res = update_epic(state, epic_id=epic_id, changes=_COMPLETE, clock=clock)
    assert res.state is not None
    return res.state


# ---------------------------------------------------------------------------
# Remove
# ---------------------------------------------------------------------------


def remove_item(state: State, item_id: str, *, clock: ClockFn = timestamp) -> OpResult:
    """Delete an item and everything it owns. Ancestors keep their status."""

    for ei, epic in enumerate(state.epics):
        if epic.id == item_id:
            return OpResult(state=replace(state, epics=_drop_at(state.epics, ei)), item=epic)

        for ti, task in enumerate(epic.tasks):
            if task.id == item_id:
                updated = replace(epic, tasks=_drop_at(epic.tasks, ti), updated_at=clock())
                return OpResult(state=replace(state, epics=_replace_at(state.epics, ei, updated)), item=task)

            si = _index_of(task.subtasks, item_id)
            if si >= 0:
                now = clock()
                slot = _TaskSlot(task=task, task_index=ti, epic=epic, epic_index=ei)
                trimmed = replace(task, subtasks=_drop_at(task.subtasks, si), updated_at=now)
                return OpResult(state=_store_task(state, slot, trimmed, now), item=task.subtasks[si])

    for ti, task in enumerate(state.tasks):
        if task.id == item_id:
            return OpResult(state=replace(state, tasks=_drop_at(state.tasks, ti)), item=task)

        si = _index_of(task.subtasks, item_id)
        if si >= 0:
            now = clock()
            slot = _TaskSlot(task=task, task_index=ti)
            trimmed = replace(task, subtasks=_drop_at(task.subtasks, si), updated_at=now)
            return OpResult(state=_store_task(state, slot, trimmed, now), item=task.subtasks[si])

    return _fail("E_ITEM_NOT_FOUND", f"Item not found: {item_id}")
