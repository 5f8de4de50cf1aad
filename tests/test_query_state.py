from pathlib import Path

from jots.core.io.state_file import load_raw_state
from jots.core.model import ItemChanges
from jots.core.ops.mutate_state import add_epic, create_empty_state, mark_complete, update_task
from jots.core.query.query_state import (
    filter_items,
    find_by_id,
    flatten_state,
    fuzzy_find,
    get_context,
    get_next,
    list_epics,
    list_subtasks,
    list_tasks,
    resolve_item,
)
from jots.core.validate.validate_state import validate_state


EXAMPLES = Path(__file__).resolve().parents[1] / "examples"


def _example():
    state, errors = validate_state(load_raw_state(EXAMPLES / "jots.json"))
    assert errors == []
    return state


def test_flatten_covers_every_entity_in_document_order():
    items = flatten_state(_example())
    assert len(items) == 2 + 4 + 5
    assert [i.id for i in items[:4]] == ["m1k2ep01", "m1k2tk01", "m1k2st01", "m1k2st02"]
    assert [i.id for i in items[-2:]] == ["m1k2tk04", "m1k2st05"]


def test_flatten_parent_context_and_depth():
    by_id = {i.id: i for i in flatten_state(_example())}

    epic = by_id["m1k2ep01"]
    assert (epic.depth, epic.children_count, epic.completed_children_count) == (0, 2, 1)

    sub = by_id["m1k2st03"]
    assert sub.depth == 2
    assert sub.epic_id == "m1k2ep01"
    assert sub.task_id == "m1k2tk02"
    assert sub.task_content == "Implement password hashing"
    assert not sub.is_standalone

    standalone = by_id["m1k2tk04"]
    assert standalone.depth == 0
    assert standalone.is_standalone
    assert standalone.epic_id is None

    standalone_sub = by_id["m1k2st05"]
    assert standalone_sub.depth == 1
    assert standalone_sub.task_id == "m1k2tk04"


def test_flatten_empty_state():
    assert flatten_state(create_empty_state()) == []


def test_next_prefers_priority_then_depth():
    result = get_next(_example())
    assert result.item.id == "m1k2ep01"
    assert result.queue_depth == 5
    assert result.blocked_by_deps == 2


def test_next_by_level_keeps_document_order_on_ties():
    tasks = get_next(_example(), level="task")
    assert tasks.item.id == "m1k2tk02"
    assert tasks.queue_depth == 2

    subs = get_next(_example(), level="subtask")
    assert subs.item.id == "m1k2st03"
    assert subs.blocked_by_deps == 1


def test_next_any_prefers_deeper_item_on_priority_tie():
    state = update_task(_example(), task_id="m1k2tk04", changes=ItemChanges(priority=1)).state
    # epic and standalone task are both p1 at depth 0: document order wins
    assert get_next(state).item.id == "m1k2ep01"

    state = _example()
    for sid in ("m1k2st03", "m1k2st05"):
        state = mark_complete(state, sid).state
    state = update_task(state, task_id="m1k2tk02", epic_id="m1k2ep01", changes=ItemChanges(priority=1)).state
    # p1 epic (depth 0) vs p1 task (depth 1)
    assert get_next(state).item.id == "m1k2tk02"


def test_dependency_gating():
    state = _example()
    before = get_next(state, level="subtask")
    assert before.queue_depth == 2
    assert before.blocked_by_deps == 1

    state = mark_complete(state, "m1k2st03").state
    after = get_next(state, level="subtask")
    assert after.queue_depth == 2
    assert after.blocked_by_deps == 0
    assert after.item.id == "m1k2st05"


def test_epic_level_dependency_gating():
    state = add_epic(create_empty_state(), content="First epic in the chain", priority=2, new_id=lambda: "E1").state
    state = add_epic(state, content="Second epic in the chain", priority=1, deps=["E1"], new_id=lambda: "E2").state

    before = get_next(state, level="epic")
    assert before.item.id == "E1"
    assert before.blocked_by_deps == 1

    after = get_next(mark_complete(state, "E1").state, level="epic")
    assert after.item.id == "E2"
    assert after.blocked_by_deps == 0


def test_unresolved_dep_never_satisfied():
    state = update_task(
        _example(), task_id="m1k2tk04", changes=ItemChanges(deps=("ghost",))
    ).state
    result = get_next(state, level="task")
    assert result.item.id == "m1k2tk02"
    assert result.blocked_by_deps == 1


def test_next_on_empty_state():
    result = get_next(create_empty_state())
    assert result.item is None
    assert result.queue_depth == 0
    assert result.blocked_by_deps == 0


def test_context_summary():
    ctx = get_context(_example())
    assert (ctx.total_epics, ctx.completed_epics) == (2, 0)
    assert (ctx.total_tasks, ctx.completed_tasks) == (4, 1)
    assert (ctx.total_subtasks, ctx.completed_subtasks) == (5, 2)
    assert [i.id for i in ctx.in_progress_items] == ["m1k2ep01", "m1k2st05"]
    assert [i.id for i in ctx.blocked_items] == ["m1k2tk03"]
    assert ctx.next_item.id == "m1k2ep01"
    assert ctx.to_dict()["next_item"]["id"] == "m1k2ep01"


def test_filter_by_status_priority_and_kind():
    state = _example()
    assert [i.id for i in filter_items(state, status="in_progress")] == ["m1k2ep01", "m1k2st05"]
    assert [i.id for i in filter_items(state, status=["blocked", "in_progress"], kind="task")] == ["m1k2tk03"]
    assert [i.id for i in filter_items(state, priority=[1], kind="subtask")] == ["m1k2st01"]
    assert [i.id for i in filter_items(state, search="HASHING", kind="subtask")] == ["m1k2st03", "m1k2st04"]


def test_filter_by_parent_name_or_id():
    state = _example()
    assert [i.id for i in list_tasks(state, epic="authentication")] == ["m1k2tk01", "m1k2tk02"]
    assert [i.id for i in list_subtasks(state, task="m1k2tk02")] == ["m1k2st03", "m1k2st04"]
    assert filter_items(state, epic="no such epic") == []


def test_list_helpers():
    state = _example()
    assert [i.id for i in list_epics(state)] == ["m1k2ep01", "m1k2ep02"]
    assert len(list_tasks(state)) == 4
    assert len(list_subtasks(state)) == 5


def test_find_by_id():
    state = _example()
    assert find_by_id(state, "m1k2st05").type == "subtask"
    assert find_by_id(state, "nope") is None


def test_fuzzy_find_exact_id_short_circuits():
    state = _example()
    assert [i.id for i in fuzzy_find(state, "m1k2tk02")] == ["m1k2tk02"]
    # every id contains "m1k2" but none equals it
    assert len(fuzzy_find(state, "m1k2")) == 0
    assert [i.id for i in fuzzy_find(state, "wireframe")] == ["m1k2st01", "m1k2st02"]


def test_resolve_item_outcomes():
    state = _example()

    one = resolve_item(state, "ci runner")
    assert one.item.id == "m1k2tk04"
    assert not one.ambiguous

    many = resolve_item(state, "hashing")
    assert many.item is None
    assert many.ambiguous
    assert [m.id for m in many.matches] == ["m1k2tk02", "m1k2st03", "m1k2st04"]

    narrowed = resolve_item(state, "hashing", kind="task")
    assert narrowed.item.id == "m1k2tk02"

    none = resolve_item(state, "kubernetes")
    assert none.item is None
    assert not none.ambiguous
    assert none.matches == []
