from __future__ import annotations

import json
import logging
import re
import sys
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console
from rich.text import Text

from jots.core.config import ConfigError, JotsConfig, load_config
from jots.core.errors import JotsError, OperationError, StateLoadError, StateValidationError
from jots.core.io.state_file import find_state_file, init_state, load_raw_state, write_state
from jots.core.lint.lint_state import lint_state
from jots.core.model import ITEM_TYPES, MIN_CONTENT_LENGTH, STATUSES, FlatItem, ItemChanges, State
from jots.core.ops.mutate_state import (
    OpResult,
    add_epic,
    add_subtask,
    add_task,
    create_empty_state,
    mark_complete,
    remove_item,
    update_item,
)
from jots.core.query.query_state import (
    filter_items,
    flatten_state,
    get_context,
    get_next,
    resolve_item,
)
from jots.core.validate.validate_state import sort_errors, summarize_state, validate_state

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console(highlight=False, soft_wrap=True)

STATUS_ICONS: dict[str, str] = {"pending": "○", "in_progress": "◐", "completed": "●", "blocked": "◌"}
PRIORITY_STYLES: dict[int, str] = {1: "red", 2: "yellow", 3: "cyan", 4: "blue", 5: "bright_black"}
LIST_KINDS: dict[str, Optional[str]] = {"epics": "epic", "tasks": "task", "subtasks": "subtask", "all": None}
MAX_CANDIDATES = 5

USAGE: dict[str, Any] = {
    "tool": "jots",
    "data_file": "jots.json",
    "hierarchy": list(ITEM_TYPES),
    "statuses": list(STATUSES),
    "priorities": [1, 2, 3, 4, 5],
    "commands": {
        "init": {"flags": ["--force"]},
        "add": {
            "args": ["type:epic|task|subtask", "content:string"],
            "flags": ["--epic/-e", "--task/-t", "--priority/-p", "--depends-on/-d", "--format"],
        },
        "list": {
            "args": ["type:epics|tasks|subtasks|all"],
            "flags": ["--epic/-e", "--task/-t", "--status/-s", "--priority/-p", "--deps", "--format"],
        },
        "next": {"flags": ["--level/-l:epic|task|subtask|any", "--format"]},
        "context": {"flags": ["--format"]},
        "done": {"args": ["identifier:string"], "flags": ["--impl/-i", "--format"]},
        "update": {
            "args": ["identifier:string"],
            "flags": [
                "--content/-c",
                "--priority/-p",
                "--status/-s",
                "--add-dep",
                "--remove-dep",
                "--note/-n",
                "--impl/-i",
                "--format",
            ],
        },
        "remove": {"args": ["identifier:string"], "flags": ["--format"]},
        "validate": {"flags": ["--format"]},
        "usage": {"flags": []},
    },
    "global_flags": ["--file/-f", "--verbose/-v"],
}


@app.callback()
def _callback(
    ctx: typer.Context,
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Path to the state file (.json/.yaml)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
) -> None:
    """jots: hierarchical task list (epic -> task -> subtask)."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )
    ctx.obj = {"file": file}


# ---------------------------------------------------------------------------
# Plumbing: config, state path, load/save, output
# ---------------------------------------------------------------------------


def _config(fmt: str, command: str) -> JotsConfig:
    try:
        return load_config()
    except ConfigError as e:
        _fail(fmt, command, [JotsError(code="E_CONFIG_INVALID", message=str(e), path="config")], 2)


def _state_path(ctx: typer.Context, cfg: JotsConfig) -> Path:
    explicit = (ctx.obj or {}).get("file")
    if explicit:
        return Path(explicit)
    configured = Path(cfg.state_file)
    if configured.is_absolute() or len(configured.parts) > 1:
        return configured
    return find_state_file(filename=cfg.state_file) or Path.cwd() / cfg.state_file


def _check_format(fmt: str, command: str) -> None:
    if fmt not in ("text", "json"):
        err = StateValidationError(
            code=f"E_{command.upper()}_UNKNOWN_FORMAT",
            message=f"unknown format: {fmt} (choose one of: text, json)",
            file=None,
            path="format",
        )
        _print_errors([err])
        raise typer.Exit(code=2)


def _load(ctx: typer.Context, fmt: str, command: str, *, create: bool = False) -> tuple[State, Path, JotsConfig]:
    cfg = _config(fmt, command)
    path = _state_path(ctx, cfg)

    try:
        raw = load_raw_state(path)
    except StateLoadError as e:
        if create and e.code == "E_FILE_NOT_FOUND":
            logger.debug("no state at %s; starting empty", path)
            return create_empty_state(), path, cfg
        _fail(fmt, command, [e], 1)

    state, errors = validate_state(raw, file=str(path))
    if errors:
        _fail(fmt, command, errors, 2)
    assert state is not None
    return state, path, cfg


def _save(state: State, path: Path, command: str) -> None:
    write_state(state, path)
    logger.debug("%s: saved %s", command, path)


def _emit_json(command: str, ok: bool, exit_code: int = 0, **fields: Any) -> None:
    payload: dict[str, Any] = {"tool": "jots", "command": command, "ok": ok}
    payload.update(fields)
    typer.echo(json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False))
    if exit_code:
        raise typer.Exit(code=exit_code)


def _to_item(e: JotsError) -> dict[str, Any]:
    if isinstance(e, StateLoadError):
        source = "load"
    elif isinstance(e, StateValidationError):
        source = "validate"
    elif isinstance(e, OperationError):
        source = "operation"
    else:
        source = "cli"
    return {
        "code": e.code,
        "message": e.message,
        "file": e.file,
        "path": e.path,
        "severity": "error",
        "source": source,
    }


def _fail(fmt: str, command: str, errors: list[Any], exit_code: int, **fields: Any) -> NoReturn:
    if fmt == "json":
        _emit_json(
            command,
            False,
            exit_code=exit_code,
            error_count=len(errors),
            errors=[_to_item(e) for e in errors],
            **fields,
        )
    _print_errors(errors)
    raise typer.Exit(code=exit_code)


def _print_errors(errors: list[Any]) -> None:
    for e in sort_errors(errors):
        typer.echo(str(e), err=True)


def _op_or_fail(res: OpResult, fmt: str, command: str) -> State:
    if not res.ok:
        assert res.error is not None
        _fail(fmt, command, [res.error], 1)
    assert res.state is not None
    return res.state


def _parse_priority(value: str, fmt: str, command: str) -> int:
    m = re.match(r"^p?([1-5])$", value.strip(), re.IGNORECASE)
    if not m:
        _fail(
            fmt,
            command,
            [JotsError(code="E_INVALID_PRIORITY", message=f"invalid priority: {value} (use p1-p5)", path="priority")],
            2,
        )
    return int(m.group(1))


def _check_content(content: str, fmt: str, command: str) -> None:
    if len(content) < MIN_CONTENT_LENGTH:
        _fail(
            fmt,
            command,
            [
                JotsError(
                    code="E_CONTENT_TOO_SHORT",
                    message=f"content must be at least {MIN_CONTENT_LENGTH} characters",
                    path="content",
                )
            ],
            2,
        )


def _split_csv(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def _resolve(state: State, query: str, fmt: str, command: str, *, kind: Optional[str] = None) -> FlatItem:
    """Resolve an identifier to exactly one item, or exit listing what matched."""

    res = resolve_item(state, query, kind=kind)  # type: ignore[arg-type]
    if res.item is not None:
        return res.item

    label = kind or "item"
    if res.ambiguous:
        _ambiguous(res.matches, query, label, fmt, command)
    _fail(fmt, command, [OperationError(code="E_NOT_FOUND", message=f"no {label} found matching: {query}")], 1)


def _ambiguous(matches: list[FlatItem], query: str, label: str, fmt: str, command: str) -> NoReturn:
    shown = matches[:MAX_CANDIDATES]
    if fmt == "json":
        err = OperationError(code="E_AMBIGUOUS_MATCH", message=f"multiple {label}s match: {query}")
        _fail(
            fmt,
            command,
            [err],
            1,
            matches=[{"id": m.id, "type": m.type, "content": m.content} for m in shown],
        )

    typer.echo(f"Multiple matches found for: {query}", err=True)
    for m in shown:
        typer.echo(f"  [{m.type}] {m.content} ({m.id})", err=True)
    if len(matches) > len(shown):
        typer.echo(f"  ... and {len(matches) - len(shown)} more", err=True)
    typer.echo("Use the exact ID.", err=True)
    raise typer.Exit(code=1)


def _resolve_deps(
    state: State, queries: list[str], kind: str, epic_id: Optional[str], task_id: Optional[str]
) -> list[str]:
    """Map dependency queries to ids within the item's sibling scope.

    Unresolved queries are kept verbatim; validate reports them as invalid deps.
    """

    def in_scope(i: FlatItem) -> bool:
        if kind == "epic":
            return i.type == "epic"
        if kind == "task":
            return i.type == "task" and i.epic_id == epic_id
        return i.type == "subtask" and i.task_id == task_id

    scoped = [i for i in flatten_state(state) if in_scope(i)]
    out: list[str] = []
    for q in queries:
        exact = next((i.id for i in scoped if i.id == q), None)
        if exact is None:
            ql = q.lower()
            exact = next((i.id for i in scoped if ql in i.content.lower()), q)
        out.append(exact)
    return out


def _item_text(item: FlatItem, *, show_deps: bool = False) -> Text:
    text = Text("  " * item.depth)
    text.append(f"{STATUS_ICONS.get(item.status, '?')} ")
    text.append(item.content)
    text.append(f" [{item.id}]", style="dim")
    text.append(f" P{item.priority}", style=PRIORITY_STYLES.get(item.priority, ""))
    if item.has_children:
        text.append(f" ({item.completed_children_count}/{item.children_count})", style="dim")
    if show_deps and item.deps:
        text.append(f" deps: {', '.join(item.deps)}", style="dim")
    return text


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("init")
def init(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Overwrite an existing state file"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Create an empty state file."""
    _check_format(format, "init")
    cfg = _config(format, "init")
    explicit = (ctx.obj or {}).get("file")
    path = Path(explicit) if explicit else Path.cwd() / cfg.state_file

    if path.exists() and not force:
        if format == "json":
            _emit_json("init", True, path=str(path), created=False)
            return
        typer.echo(f"Skipped: {path} already exists (use --force to overwrite)")
        return

    init_state(path, force=force)
    if format == "json":
        _emit_json("init", True, path=str(path), created=True)
        return
    typer.echo(f"OK: created {path}")


@app.command("add")
def add(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Type: epic, task, or subtask"),
    content: str = typer.Argument(..., help="Description of the item"),
    epic: Optional[str] = typer.Option(None, "--epic", "-e", help="Epic ID or name (for task/subtask)"),
    task: Optional[str] = typer.Option(None, "--task", "-t", help="Task ID or name (for subtask)"),
    priority: Optional[str] = typer.Option(None, "--priority", "-p", help="Priority p1-p5"),
    depends_on: Optional[str] = typer.Option(
        None, "--depends-on", "-d", help="Dependencies (comma-separated IDs or names)"
    ),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Add an epic, task (standalone when no --epic), or subtask."""
    _check_format(format, "add")
    if kind not in ITEM_TYPES:
        _fail(
            format,
            "add",
            [JotsError(code="E_UNKNOWN_TYPE", message=f"unknown type: {kind} (use: epic, task, subtask)", path="type")],
            2,
        )
    _check_content(content, format, "add")

    state, path, cfg = _load(ctx, format, "add", create=True)
    prio = _parse_priority(priority, format, "add") if priority else cfg.default_priority
    dep_queries = _split_csv(depends_on)

    if kind == "epic":
        deps = _resolve_deps(state, dep_queries, "epic", None, None) if dep_queries else None
        res = add_epic(state, content=content, priority=prio, deps=deps)
    elif kind == "task":
        epic_id = _resolve(state, epic, format, "add", kind="epic").id if epic else None
        deps = _resolve_deps(state, dep_queries, "task", epic_id, None) if dep_queries else None
        res = add_task(state, content=content, priority=prio, epic_id=epic_id, deps=deps)
    else:
        if not task:
            _fail(
                format,
                "add",
                [JotsError(code="E_MISSING_PARENT", message="--task is required for adding a subtask", path="task")],
                2,
            )
        parent = _resolve_subtask_parent(state, task or "", epic, format)
        deps = _resolve_deps(state, dep_queries, "subtask", parent.epic_id, parent.id) if dep_queries else None
        res = add_subtask(
            state, content=content, priority=prio, task_id=parent.id, epic_id=parent.epic_id, deps=deps
        )

    new_state = _op_or_fail(res, format, "add")
    _save(new_state, path, "add")
    assert res.item is not None

    if format == "json":
        _emit_json("add", True, type=kind, id=res.item.id, content=res.item.content)
        return
    typer.echo(f"Added {kind}: {res.item.content} ({res.item.id})")


def _resolve_subtask_parent(state: State, task: str, epic: Optional[str], fmt: str) -> FlatItem:
    if epic is None:
        return _resolve(state, task, fmt, "add", kind="task")
    epic_id = _resolve(state, epic, fmt, "add", kind="epic").id
    tasks = filter_items(state, kind="task", epic=epic_id)
    scoped = [t for t in tasks if t.id == task]
    if not scoped:
        tl = task.lower()
        scoped = [t for t in tasks if tl in t.content.lower()]
    if len(scoped) > 1:
        _ambiguous(scoped, task, "task", fmt, "add")
    if not scoped:
        _fail(
            fmt,
            "add",
            [OperationError(code="E_NOT_FOUND", message=f"no task found matching: {task} (epic {epic_id})")],
            1,
        )
    return scoped[0]


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    kind: str = typer.Argument("epics", help="Type: epics, tasks, subtasks, or all"),
    epic: Optional[str] = typer.Option(None, "--epic", "-e", help="Filter by epic ID or name"),
    task: Optional[str] = typer.Option(None, "--task", "-t", help="Filter by task ID or name"),
    status: Optional[str] = typer.Option(None, "--status", "-s", help="Filter by status (comma-separated)"),
    priority: Optional[str] = typer.Option(None, "--priority", "-p", help="Filter by priority (comma-separated)"),
    deps: bool = typer.Option(False, "--deps", help="Show dependencies"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """List epics, tasks, subtasks, or everything."""
    _check_format(format, "list")
    if kind not in LIST_KINDS:
        _fail(
            format,
            "list",
            [JotsError(code="E_UNKNOWN_TYPE", message=f"unknown type: {kind} (use: epics, tasks, subtasks, all)", path="type")],
            2,
        )

    statuses = _split_csv(status)
    bad = [s for s in statuses if s not in STATUSES]
    if bad:
        _fail(
            format,
            "list",
            [JotsError(code="E_INVALID_ENUM", message=f"unknown status: {', '.join(bad)}", path="status")],
            2,
        )
    priorities = [_parse_priority(p, format, "list") for p in _split_csv(priority)]

    state, _, _ = _load(ctx, format, "list")
    items = filter_items(
        state,
        kind=LIST_KINDS[kind],  # type: ignore[arg-type]
        epic=epic,
        task=task,
        status=statuses or None,  # type: ignore[arg-type]
        priority=priorities or None,
    )

    if format == "json":
        _emit_json("list", True, count=len(items), items=[i.to_dict() for i in items])
        return

    if not items:
        typer.echo("No items found.")
        return
    for item in items:
        console.print(_item_text(item, show_deps=deps))
    console.print(Text(f"({len(items)} items)", style="dim"))


@app.command("next")
def next_cmd(
    ctx: typer.Context,
    level: str = typer.Option("any", "--level", "-l", help="Level: epic, task, subtask, or any"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Show the highest-priority item whose dependencies are done."""
    _check_format(format, "next")
    if level not in (*ITEM_TYPES, "any"):
        _fail(
            format,
            "next",
            [JotsError(code="E_UNKNOWN_LEVEL", message=f"unknown level: {level} (use: epic, task, subtask, any)", path="level")],
            2,
        )

    state, _, _ = _load(ctx, format, "next")
    result = get_next(state, level=level)  # type: ignore[arg-type]

    if format == "json":
        _emit_json(
            "next",
            True,
            item=result.item.to_dict() if result.item else None,
            queue_depth=result.queue_depth,
            blocked_by_deps=result.blocked_by_deps,
            has_more=result.queue_depth > 1,
        )
        return

    item = result.item
    if item is None:
        msg = "No pending items."
        if result.blocked_by_deps:
            msg += f" ({result.blocked_by_deps} blocked by deps)"
        typer.echo(msg)
        return

    console.print(Text(f"Next {item.type}:"))
    console.print(Text(f"  {item.content}"))
    console.print(Text(f"  ID: {item.id} | Priority: P{item.priority} | Status: {item.status}"))
    if item.epic_content and item.type != "epic":
        console.print(Text(f"  Epic: {item.epic_content}"))
    if item.task_content and item.type == "subtask":
        console.print(Text(f"  Task: {item.task_content}"))
    queue = f"({result.queue_depth} items in queue"
    if result.blocked_by_deps:
        queue += f", {result.blocked_by_deps} blocked by deps"
    console.print(Text(queue + ")", style="dim"))


@app.command("context")
def context(
    ctx: typer.Context,
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Progress summary: counts, in-progress and blocked items, next item."""
    _check_format(format, "context")
    state, _, _ = _load(ctx, format, "context")
    summary = get_context(state)

    if format == "json":
        _emit_json("context", True, **summary.to_dict())
        return

    console.rule("JOTS CONTEXT")
    console.print("Progress:")
    console.print(f"  Epics:    {summary.completed_epics}/{summary.total_epics}")
    console.print(f"  Tasks:    {summary.completed_tasks}/{summary.total_tasks}")
    console.print(f"  Subtasks: {summary.completed_subtasks}/{summary.total_subtasks}")

    for title, items in (("In Progress", summary.in_progress_items), ("Blocked", summary.blocked_items)):
        if not items:
            continue
        console.print(f"\n{title}:")
        for i in items:
            console.print(Text(f"  [{i.type}] {i.content} ({i.id})"))

    if summary.next_item:
        n = summary.next_item
        console.print("\nNext:")
        console.print(Text(f"  [{n.type}] {n.content} ({n.id})"))
    console.rule()


@app.command("done")
def done(
    ctx: typer.Context,
    identifier: str = typer.Argument(..., help="ID or text to match"),
    impl: Optional[str] = typer.Option(None, "--impl", "-i", help="Implementation description (what was done)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Mark an item completed; parents complete when all their children are."""
    _check_format(format, "done")
    state, path, _ = _load(ctx, format, "done")
    item = _resolve(state, identifier, format, "done")

    if item.status == "completed":
        if format == "json":
            _emit_json("done", True, already_complete=True, item=item.to_dict())
            return
        typer.echo(f"Already completed: {item.content}")
        return

    if impl:
        state = _op_or_fail(
            update_item(state, item, ItemChanges(implementation_description=impl)), format, "done"
        )
    new_state = _op_or_fail(mark_complete(state, item.id), format, "done")
    _save(new_state, path, "done")

    if format == "json":
        _emit_json("done", True, completed={"id": item.id, "type": item.type, "content": item.content})
        return
    typer.echo(f"Completed: {item.content} ({item.id})")


@app.command("update")
def update(
    ctx: typer.Context,
    identifier: str = typer.Argument(..., help="ID or text to match"),
    content: Optional[str] = typer.Option(None, "--content", "-c", help="New content"),
    priority: Optional[str] = typer.Option(None, "--priority", "-p", help="New priority: p1-p5"),
    status: Optional[str] = typer.Option(
        None, "--status", "-s", help="New status: pending, in_progress, completed, blocked"
    ),
    add_dep: Optional[str] = typer.Option(None, "--add-dep", help="Add dependencies (comma-separated)"),
    remove_dep: Optional[str] = typer.Option(None, "--remove-dep", help="Remove dependencies (comma-separated)"),
    note: Optional[list[str]] = typer.Option(None, "--note", "-n", help="Append a note (repeatable)"),
    impl: Optional[str] = typer.Option(None, "--impl", "-i", help="Implementation description"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Update fields of an existing item."""
    _check_format(format, "update")
    if status is not None and status not in STATUSES:
        _fail(
            format,
            "update",
            [JotsError(code="E_INVALID_ENUM", message=f"status must be one of {list(STATUSES)}", path="status")],
            2,
        )
    if content is not None:
        _check_content(content, format, "update")
    prio = _parse_priority(priority, format, "update") if priority else None

    state, path, _ = _load(ctx, format, "update")
    item = _resolve(state, identifier, format, "update")

    new_deps: Optional[tuple[str, ...]] = None
    if add_dep or remove_dep:
        current = list(item.deps or ())
        for dep in _resolve_deps(state, _split_csv(add_dep), item.type, item.epic_id, item.task_id):
            if dep not in current:
                current.append(dep)
        removals = set(_resolve_deps(state, _split_csv(remove_dep), item.type, item.epic_id, item.task_id))
        new_deps = tuple(d for d in current if d not in removals)

    notes = tuple(item.notes or ()) + tuple(note) if note else None

    changes = ItemChanges(
        content=content,
        priority=prio,
        status=status,  # type: ignore[arg-type]
        implementation_description=impl,
        notes=notes,
        deps=new_deps,
    )
    if changes.is_empty():
        _fail(
            format,
            "update",
            [
                JotsError(
                    code="E_NO_CHANGES",
                    message="no changes specified; use --content, --priority, --status, --add-dep, --remove-dep, --note or --impl",
                )
            ],
            2,
        )

    new_state = _op_or_fail(update_item(state, item, changes), format, "update")
    _save(new_state, path, "update")

    if format == "json":
        _emit_json("update", True, updated={"id": item.id, "type": item.type, "changes": changes.as_dict()})
        return
    typer.echo(f"Updated: {content or item.content} ({item.id})")


@app.command("remove")
def remove(
    ctx: typer.Context,
    identifier: str = typer.Argument(..., help="ID or text to match"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Remove an item and everything under it."""
    _check_format(format, "remove")
    state, path, _ = _load(ctx, format, "remove")
    item = _resolve(state, identifier, format, "remove")

    new_state = _op_or_fail(remove_item(state, item.id), format, "remove")
    _save(new_state, path, "remove")

    if format == "json":
        _emit_json("remove", True, removed={"id": item.id, "type": item.type, "content": item.content})
        return
    typer.echo(f"Removed: {item.content} ({item.id})")


@app.command("validate")
def validate(
    ctx: typer.Context,
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Validate the state file schema, then report consistency warnings."""
    _check_format(format, "validate")
    state, path, _ = _load(ctx, format, "validate")
    lint = lint_state(state, file=str(path))

    if format == "json":
        _emit_json(
            "validate",
            True,
            path=str(path),
            error_count=0,
            errors=[],
            warnings=[str(w) for w in lint.warnings],
            suggestions=[str(s) for s in lint.suggestions],
        )
        return

    typer.echo(summarize_state(state))
    if lint.warnings:
        typer.echo("\nWarnings:")
        for w in lint.warnings:
            typer.echo(f"  {w.message}")
    if lint.suggestions:
        typer.echo("\nSuggestions:")
        for s in lint.suggestions:
            typer.echo(f"  {s.message}")


@app.command("usage")
def usage() -> None:
    """Print a compact, machine-readable command summary."""
    typer.echo(json.dumps(USAGE, indent=2))


def main() -> None:
    app(prog_name="jots")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()
