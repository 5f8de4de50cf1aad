from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence, Union

from jots.core.errors import LintIssue
from jots.core.model import Epic, State, Subtask, Task


# Consistency rules that run on an already-valid state:
# - L_COMPLETED_WITH_INCOMPLETE_CHILDREN: completed epic/task with unfinished children
# - L_SUGGEST_COMPLETE: every child done but the parent is not
# - L_SELF_DEPENDENCY: deps contains the item's own id
# - L_INVALID_DEP: deps id does not resolve within the item's scope
# - L_CIRCULAR_DEPENDENCY: dependency cycle within a scope

Node = Union[Epic, Task, Subtask]


@dataclass(frozen=True)
class LintResult:
    warnings: list[LintIssue] = field(default_factory=list)
    suggestions: list[LintIssue] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.warnings and not self.suggestions


def lint_state(state: State, *, file: Optional[str] = None) -> LintResult:
    """Lint a validated state.

    Never fails; an empty state yields an empty result. Warnings and
    suggestions come out in document order.
    """

    result = LintResult()

    _check_deps(result, state.epics, "epics", "Epic", file)
    for ei, epic in enumerate(state.epics):
        _lint_epic(result, epic, f"epics.{ei}", file)

    _check_deps(result, state.tasks, "tasks", "Task", file)
    for ti, task in enumerate(state.tasks):
        _lint_task(result, task, f"tasks.{ti}", file)

    return result


def _label(node: Node) -> str:
    return f'"{node.content[:30]}..."'


def _lint_epic(result: LintResult, epic: Epic, path: str, file: Optional[str]) -> None:
    incomplete = [t for t in epic.tasks if t.status != "completed"]
    if epic.status == "completed" and incomplete:
        result.warnings.append(
            LintIssue(
                code="L_COMPLETED_WITH_INCOMPLETE_CHILDREN",
                message=f"Epic {_label(epic)} is completed but has {len(incomplete)} incomplete task(s)",
                file=file,
                path=f"{path}.status",
            )
        )

    _check_deps(result, epic.tasks, f"{path}.tasks", "Task", file)
    for ti, task in enumerate(epic.tasks):
        _lint_task(result, task, f"{path}.tasks.{ti}", file)

    if epic.status != "completed" and epic.tasks and not incomplete:
        result.suggestions.append(
            LintIssue(
                code="L_SUGGEST_COMPLETE",
                message=f"Epic {_label(epic)} has all tasks complete - consider marking it complete",
                file=file,
                path=f"{path}.status",
            )
        )


def _lint_task(result: LintResult, task: Task, path: str, file: Optional[str]) -> None:
    incomplete = [s for s in task.subtasks if s.status != "completed"]
    if task.status == "completed" and incomplete:
        result.warnings.append(
            LintIssue(
                code="L_COMPLETED_WITH_INCOMPLETE_CHILDREN",
                message=f"Task {_label(task)} is completed but has {len(incomplete)} incomplete subtask(s)",
                file=file,
                path=f"{path}.status",
            )
        )
    elif task.status != "completed" and task.subtasks and not incomplete:
        result.suggestions.append(
            LintIssue(
                code="L_SUGGEST_COMPLETE",
                message=f"Task {_label(task)} has all subtasks complete - consider marking it complete",
                file=file,
                path=f"{path}.status",
            )
        )

    _check_deps(result, task.subtasks, f"{path}.subtasks", "Subtask", file)


def _check_deps(
    result: LintResult,
    siblings: Sequence[Node],
    path: str,
    kind: str,
    file: Optional[str],
) -> None:
    """Dependency checks for one scope: the given siblings and nothing else."""

    scope = {n.id for n in siblings}
    id_to_deps: dict[str, list[str]] = {}
    id_to_index: dict[str, int] = {}

    for i, node in enumerate(siblings):
        id_to_index.setdefault(node.id, i)
        deps = list(node.deps or ())
        id_to_deps[node.id] = [d for d in deps if d in scope]
        for dep in deps:
            if dep == node.id:
                result.warnings.append(
                    LintIssue(
                        code="L_SELF_DEPENDENCY",
                        message=f"{kind} {_label(node)} depends on itself",
                        file=file,
                        path=f"{path}.{i}.deps",
                    )
                )
            elif dep not in scope:
                result.warnings.append(
                    LintIssue(
                        code="L_INVALID_DEP",
                        message=f"{kind} {_label(node)} has invalid dep: {dep}",
                        file=file,
                        path=f"{path}.{i}.deps",
                    )
                )

    for nid, msg in _detect_cycles(id_to_deps):
        result.warnings.append(
            LintIssue(
                code="L_CIRCULAR_DEPENDENCY",
                message=f"{kind} {msg}",
                file=file,
                path=f"{path}.{id_to_index.get(nid, 0)}.deps",
            )
        )


def _cycle_key(cycle: list[str]) -> tuple[str, ...]:
    """Rotation-independent identity of an ordered cycle (closing node excluded)."""
    start = cycle.index(min(cycle))
    return tuple(cycle[start:] + cycle[:start])


def _detect_cycles(id_to_deps: dict[str, list[str]]) -> list[tuple[str, str]]:
    WHITE, GRAY, BLACK = 0, 1, 2
    color: dict[str, int] = {nid: WHITE for nid in id_to_deps.keys()}
    emitted: set[tuple[str, ...]] = set()
    out: list[tuple[str, str]] = []

    for root in list(color.keys()):
        if color[root] != WHITE:
            continue

        color[root] = GRAY
        path: list[str] = [root]
        frames: list[tuple[str, Iterator[str]]] = [(root, iter(id_to_deps.get(root, [])))]

        while frames:
            u, deps = frames[-1]
            v = next(deps, None)
            if v is None:
                frames.pop()
                path.pop()
                color[u] = BLACK
                continue
            if v not in color:
                continue
            if color[v] == GRAY:
                # v is still on the active path: v ... u -> v
                cycle = path[path.index(v):]
                key = _cycle_key(cycle)
                if key not in emitted:
                    emitted.add(key)
                    out.append((u, "circular dependency: " + " -> ".join(cycle + [v])))
            elif color[v] == WHITE:
                color[v] = GRAY
                path.append(v)
                frames.append((v, iter(id_to_deps.get(v, []))))

    return out
