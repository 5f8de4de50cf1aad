from __future__ import annotations

import re
from collections import Counter
from datetime import datetime
from typing import Any, Iterable, Optional, TypeVar, cast

from jots.core.errors import JotsError, StateValidationError
from jots.core.model import (
    MIN_CONTENT_LENGTH,
    SCHEMA_VERSION,
    STATUSES,
    Epic,
    State,
    Status,
    Subtask,
    Task,
)


E = TypeVar("E", bound=JotsError)

# ISO-8601 UTC with a Z suffix; fractional seconds optional.
_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z$")


class _Collector:
    def __init__(self, file: Optional[str]) -> None:
        self.file = file
        self.errors: list[StateValidationError] = []

    def add(self, code: str, message: str, path: str) -> None:
        self.errors.append(
            StateValidationError(code=code, message=message, file=self.file, path=path)
        )


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def _is_list_of_str(v: Any) -> bool:
    return isinstance(v, list) and all(isinstance(x, str) for x in v)


def _is_timestamp(v: Any) -> bool:
    if not isinstance(v, str) or not _TIMESTAMP_RE.match(v):
        return False
    try:
        datetime.fromisoformat(v[:19])
    except ValueError:
        return False
    return True


def validate_state(
    raw: Any, *, file: Optional[str] = None
) -> tuple[Optional[State], list[StateValidationError]]:
    """Validate an untrusted document against the state schema.

    Returns (state, errors). State is None when errors exist; every violation
    is reported, each tagged with its dotted path (e.g. epics.0.tasks.1.content).
    """

    c = _Collector(file)

    if not isinstance(raw, dict):
        c.add("E_INVALID_TOP_LEVEL", "document must be an object", "(root)")
        return None, sort_errors(c.errors)

    version = raw.get("version")
    if version is None:
        c.add("E_REQUIRED_FIELD", "version is required", "version")
    elif not _is_int(version) or version != SCHEMA_VERSION:
        c.add(
            "E_INVALID_VERSION",
            f"unsupported version: {version!r} (expected {SCHEMA_VERSION})",
            "version",
        )

    epics: list[Epic] = []
    raw_epics = raw.get("epics", [])
    if not isinstance(raw_epics, list):
        c.add("E_INVALID_TYPE", "epics must be an array", "epics")
    else:
        for i, raw_epic in enumerate(raw_epics):
            epic = _validate_epic(c, raw_epic, f"epics.{i}")
            if epic is not None:
                epics.append(epic)

    tasks: list[Task] = []
    raw_tasks = raw.get("tasks", [])
    if raw_tasks is None:
        raw_tasks = []
    if not isinstance(raw_tasks, list):
        c.add("E_INVALID_TYPE", "tasks must be an array", "tasks")
    else:
        for i, raw_task in enumerate(raw_tasks):
            task = _validate_task(c, raw_task, f"tasks.{i}")
            if task is not None:
                tasks.append(task)

    if not c.errors:
        _check_unique_ids(c, raw)

    if c.errors:
        return None, sort_errors(c.errors)

    return State(version=SCHEMA_VERSION, epics=tuple(epics), tasks=tuple(tasks)), []


def summarize_state(state: State) -> str:
    counts = Counter()
    done = Counter()
    for epic in state.epics:
        counts["epic"] += 1
        done["epic"] += epic.status == "completed"
        for task in epic.tasks:
            counts["task"] += 1
            done["task"] += task.status == "completed"
            for sub in task.subtasks:
                counts["subtask"] += 1
                done["subtask"] += sub.status == "completed"
    for task in state.tasks:
        counts["task"] += 1
        done["task"] += task.status == "completed"
        for sub in task.subtasks:
            counts["subtask"] += 1
            done["subtask"] += sub.status == "completed"

    parts = [f"{t}s={done[t]}/{counts[t]}" for t in ("epic", "task", "subtask")]
    return f"OK: version {state.version} (" + ", ".join(parts) + " completed)"


def _common_fields(c: _Collector, raw: dict[str, Any], path: str, kind: str) -> Optional[dict[str, Any]]:
    """Check the attributes shared by epics, tasks and subtasks.

    Returns the typed keyword arguments, or None when any of them is invalid.
    """

    before = len(c.errors)

    item_id = raw.get("id")
    if not isinstance(item_id, str) or not item_id:
        c.add("E_REQUIRED_FIELD", "id is required and must be a non-empty string", f"{path}.id")

    content = raw.get("content")
    if not isinstance(content, str):
        c.add("E_REQUIRED_FIELD", "content is required and must be a string", f"{path}.content")
    elif len(content) < MIN_CONTENT_LENGTH:
        c.add(
            "E_CONTENT_TOO_SHORT",
            f"{kind} content must be at least {MIN_CONTENT_LENGTH} characters",
            f"{path}.content",
        )

    priority = raw.get("priority")
    if priority is None:
        c.add("E_REQUIRED_FIELD", "priority is required", f"{path}.priority")
    elif not _is_int(priority) or not 1 <= priority <= 5:
        c.add("E_INVALID_PRIORITY", "priority must be an integer from 1 to 5", f"{path}.priority")

    status = raw.get("status", "pending")
    if not isinstance(status, str) or status not in STATUSES:
        c.add("E_INVALID_ENUM", f"status must be one of {list(STATUSES)}", f"{path}.status")

    created_at = raw.get("created_at")
    if created_at is None:
        c.add("E_REQUIRED_FIELD", "created_at is required", f"{path}.created_at")
    elif not _is_timestamp(created_at):
        c.add("E_INVALID_TIMESTAMP", "created_at must be an ISO-8601 UTC datetime", f"{path}.created_at")

    for key in ("updated_at", "completed_at"):
        value = raw.get(key)
        if value is not None and not _is_timestamp(value):
            c.add("E_INVALID_TIMESTAMP", f"{key} must be an ISO-8601 UTC datetime", f"{path}.{key}")

    impl = raw.get("implementation_description")
    if impl is not None and not isinstance(impl, str):
        c.add(
            "E_INVALID_TYPE",
            "implementation_description must be a string",
            f"{path}.implementation_description",
        )

    for key in ("notes", "deps"):
        value = raw.get(key)
        if value is not None and not _is_list_of_str(value):
            c.add("E_INVALID_TYPE", f"{key} must be an array of strings", f"{path}.{key}")

    if len(c.errors) > before:
        return None

    notes = raw.get("notes")
    deps = raw.get("deps")
    return {
        "id": cast(str, item_id),
        "content": cast(str, content),
        "priority": cast(int, priority),
        "status": cast(Status, status),
        "created_at": cast(str, created_at),
        "updated_at": raw.get("updated_at"),
        "completed_at": raw.get("completed_at"),
        "implementation_description": impl,
        "notes": tuple(notes) if notes is not None else None,
        "deps": tuple(deps) if deps is not None else None,
    }


def _children(c: _Collector, raw: dict[str, Any], key: str, path: str) -> list[Any]:
    value = raw.get(key, [])
    if value is None:
        return []
    if not isinstance(value, list):
        c.add("E_INVALID_TYPE", f"{key} must be an array", f"{path}.{key}")
        return []
    return value


def _validate_subtask(c: _Collector, raw: Any, path: str) -> Optional[Subtask]:
    if not isinstance(raw, dict):
        c.add("E_INVALID_TYPE", "subtask must be an object", path)
        return None
    fields = _common_fields(c, raw, path, "Subtask")
    if fields is None:
        return None
    return Subtask(**fields)


def _validate_task(c: _Collector, raw: Any, path: str) -> Optional[Task]:
    if not isinstance(raw, dict):
        c.add("E_INVALID_TYPE", "task must be an object", path)
        return None
    fields = _common_fields(c, raw, path, "Task")

    subtasks: list[Subtask] = []
    for i, raw_sub in enumerate(_children(c, raw, "subtasks", path)):
        sub = _validate_subtask(c, raw_sub, f"{path}.subtasks.{i}")
        if sub is not None:
            subtasks.append(sub)

    if fields is None:
        return None
    return Task(**fields, subtasks=tuple(subtasks))


def _validate_epic(c: _Collector, raw: Any, path: str) -> Optional[Epic]:
    if not isinstance(raw, dict):
        c.add("E_INVALID_TYPE", "epic must be an object", path)
        return None
    fields = _common_fields(c, raw, path, "Epic")

    tasks: list[Task] = []
    for i, raw_task in enumerate(_children(c, raw, "tasks", path)):
        task = _validate_task(c, raw_task, f"{path}.tasks.{i}")
        if task is not None:
            tasks.append(task)

    if fields is None:
        return None
    return Epic(**fields, tasks=tuple(tasks))


def _iter_ids(raw: dict[str, Any]) -> Iterable[tuple[str, str]]:
    """Yield (id, path) for every entity, in document order."""
    for ei, epic in enumerate(raw.get("epics") or []):
        yield epic["id"], f"epics.{ei}.id"
        for ti, task in enumerate(epic.get("tasks") or []):
            yield task["id"], f"epics.{ei}.tasks.{ti}.id"
            for si, sub in enumerate(task.get("subtasks") or []):
                yield sub["id"], f"epics.{ei}.tasks.{ti}.subtasks.{si}.id"
    for ti, task in enumerate(raw.get("tasks") or []):
        yield task["id"], f"tasks.{ti}.id"
        for si, sub in enumerate(task.get("subtasks") or []):
            yield sub["id"], f"tasks.{ti}.subtasks.{si}.id"


def _check_unique_ids(c: _Collector, raw: dict[str, Any]) -> None:
    # Only called once the structure is known to be well-typed.
    seen: set[str] = set()
    for item_id, path in _iter_ids(raw):
        if item_id in seen:
            c.add("E_DUPLICATE_ID", f"duplicate id: {item_id}", path)
            continue
        seen.add(item_id)


def _path_key(path: Optional[str]) -> tuple[tuple[int, int, str], ...]:
    # list indexes compare numerically: epics.2 before epics.10
    return tuple((0, int(p), "") if p.isdigit() else (1, 0, p) for p in (path or "").split("."))


def sort_errors(errors: Iterable[E]) -> list[E]:
    return sorted(
        list(errors),
        key=lambda e: (
            e.file or "",
            _path_key(e.path),
            e.code,
        ),
    )
