from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from jots.core.errors import StateLoadError
from jots.core.model import Epic, State, Subtask, Task
from jots.core.ops.mutate_state import create_empty_state


logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "jots.json"


def find_state_file(start_dir: Optional[Path] = None, filename: str = DEFAULT_FILENAME) -> Optional[Path]:
    """Search start_dir and then each parent for filename."""

    cur = (start_dir or Path.cwd()).resolve()
    for d in [cur, *cur.parents]:
        candidate = d / filename
        if candidate.is_file():
            logger.debug("found state file %s", candidate)
            return candidate
    return None


def load_raw_state(path: Union[str, Path]) -> dict[str, Any]:
    """Load a JSON/YAML state document.

    Does not coerce types; validate_state owns shape checking.
    """

    p = Path(path)
    if not p.exists():
        raise StateLoadError(
            code="E_FILE_NOT_FOUND",
            message="no state file found; run 'jots init' to create one",
            file=str(p),
        )

    suffix = p.suffix.lower()
    if suffix not in {".json", ".yaml", ".yml"}:
        raise StateLoadError(
            code="E_UNSUPPORTED_FORMAT",
            message="supported formats are .json and .yaml/.yml",
            file=str(p),
        )

    try:
        raw_text = p.read_text(encoding="utf-8")
    except OSError as e:  # pragma: no cover
        raise StateLoadError(code="E_FILE_READ", message=str(e), file=str(p)) from e

    try:
        if suffix == ".json":
            data = json.loads(raw_text)
        else:
            data = yaml.safe_load(raw_text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        code = "E_JSON_PARSE" if suffix == ".json" else "E_YAML_PARSE"
        raise StateLoadError(code=code, message=str(e), file=str(p)) from e

    if not isinstance(data, dict):
        raise StateLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="top-level document must be a mapping/object",
            file=str(p),
        )

    logger.debug("loaded %s (%d epics)", p, len(data.get("epics") or []))
    return data


def _item_fields(item: Union[Epic, Task, Subtask]) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": item.id,
        "content": item.content,
        "priority": item.priority,
        "status": item.status,
        "created_at": item.created_at,
    }
    # Unset optional fields are omitted, matching existing documents.
    for key in ("updated_at", "completed_at", "implementation_description"):
        value = getattr(item, key)
        if value is not None:
            out[key] = value
    if item.notes is not None:
        out["notes"] = list(item.notes)
    if item.deps is not None:
        out["deps"] = list(item.deps)
    return out


def _task_to_dict(task: Task) -> dict[str, Any]:
    out = _item_fields(task)
    out["subtasks"] = [_item_fields(s) for s in task.subtasks]
    return out


def state_to_dict(state: State) -> dict[str, Any]:
    epics: list[dict[str, Any]] = []
    for epic in state.epics:
        e = _item_fields(epic)
        e["tasks"] = [_task_to_dict(t) for t in epic.tasks]
        epics.append(e)
    return {
        "version": state.version,
        "epics": epics,
        "tasks": [_task_to_dict(t) for t in state.tasks],
    }


def write_state(state: State, path: Union[str, Path]) -> Path:
    p = Path(path)
    if str(p.parent) not in (".", ""):
        p.parent.mkdir(parents=True, exist_ok=True)

    data = state_to_dict(state)
    if p.suffix.lower() in {".yaml", ".yml"}:
        text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    else:
        text = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    p.write_text(text, encoding="utf-8")
    logger.debug("wrote %s", p)
    return p


def init_state(path: Union[str, Path], *, force: bool = False) -> Path:
    p = Path(path)
    if p.exists() and not force:
        raise StateLoadError(code="E_FILE_EXISTS", message="file already exists", file=str(p))
    return write_state(create_empty_state(), p)
