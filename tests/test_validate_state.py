from pathlib import Path

from jots.core.io.state_file import load_raw_state
from jots.core.validate.validate_state import summarize_state, validate_state


EXAMPLES = Path(__file__).resolve().parents[1] / "examples"
TS = "2025-01-10T09:00:00.000Z"


def _item(**overrides):
    raw = {"id": "abcd1234", "content": "A valid piece of content", "priority": 2, "created_at": TS}
    raw.update(overrides)
    return raw


def _codes(errors):
    return [(e.code, e.path) for e in errors]


def test_validate_example_state():
    state, errors = validate_state(load_raw_state(EXAMPLES / "jots.json"))
    assert errors == []
    assert state is not None
    assert [e.id for e in state.epics] == ["m1k2ep01", "m1k2ep02"]
    assert [t.id for t in state.tasks] == ["m1k2tk04"]
    assert state.epics[0].tasks[1].deps == ("m1k2tk01",)
    assert state.epics[0].notes == ("Session tokens live in redis",)


def test_short_content_reports_dotted_path():
    state, errors = validate_state(load_raw_state(EXAMPLES / "invalid-short-content.json"))
    assert state is None
    assert _codes(errors) == [("E_CONTENT_TOO_SHORT", "epics.0.content")]


def test_unsupported_version_is_rejected():
    state, errors = validate_state(load_raw_state(EXAMPLES / "invalid-version.json"))
    assert state is None
    assert _codes(errors) == [("E_INVALID_VERSION", "version")]


def test_missing_version_is_required():
    _, errors = validate_state({"epics": []})
    assert _codes(errors) == [("E_REQUIRED_FIELD", "version")]


def test_boolean_version_is_not_an_int():
    _, errors = validate_state({"version": True, "epics": []})
    assert _codes(errors) == [("E_INVALID_VERSION", "version")]


def test_top_level_must_be_object():
    state, errors = validate_state(["not", "a", "mapping"])
    assert state is None
    assert errors[0].code == "E_INVALID_TOP_LEVEL"


def test_missing_tasks_key_defaults_to_empty():
    state, errors = validate_state({"version": 1, "epics": []})
    assert errors == []
    assert state is not None
    assert state.tasks == ()


def test_status_defaults_to_pending():
    state, errors = validate_state({"version": 1, "epics": [_item(tasks=[])]})
    assert errors == []
    assert state.epics[0].status == "pending"


def test_every_violation_is_reported():
    raw = {
        "version": 1,
        "epics": [
            _item(
                priority=6,
                status="done",
                created_at="yesterday",
                tasks=[_item(id="t1", priority=True, subtasks=[_item(id="s1", content="tiny")])],
            )
        ],
    }
    state, errors = validate_state(raw, file="state.json")
    assert state is None
    assert _codes(errors) == [
        ("E_INVALID_TIMESTAMP", "epics.0.created_at"),
        ("E_INVALID_PRIORITY", "epics.0.priority"),
        ("E_INVALID_ENUM", "epics.0.status"),
        ("E_INVALID_PRIORITY", "epics.0.tasks.0.priority"),
        ("E_CONTENT_TOO_SHORT", "epics.0.tasks.0.subtasks.0.content"),
    ]
    assert all(e.file == "state.json" for e in errors)
    assert str(errors[0]).startswith("state.json:epics.0.created_at: E_INVALID_TIMESTAMP:")


def test_wrong_types_for_lists_and_strings():
    raw = {
        "version": 1,
        "epics": [_item(notes="one note", deps=[1, 2], implementation_description=5, tasks={})],
        "tasks": "nope",
    }
    _, errors = validate_state(raw)
    assert _codes(errors) == [
        ("E_INVALID_TYPE", "epics.0.deps"),
        ("E_INVALID_TYPE", "epics.0.implementation_description"),
        ("E_INVALID_TYPE", "epics.0.notes"),
        ("E_INVALID_TYPE", "epics.0.tasks"),
        ("E_INVALID_TYPE", "tasks"),
    ]


def test_required_fields():
    _, errors = validate_state({"version": 1, "epics": [{"tasks": []}]})
    assert _codes(errors) == [
        ("E_REQUIRED_FIELD", "epics.0.content"),
        ("E_REQUIRED_FIELD", "epics.0.created_at"),
        ("E_REQUIRED_FIELD", "epics.0.id"),
        ("E_REQUIRED_FIELD", "epics.0.priority"),
    ]


def test_duplicate_ids_across_levels():
    raw = {
        "version": 1,
        "epics": [_item(id="same", tasks=[_item(id="same")])],
        "tasks": [],
    }
    state, errors = validate_state(raw)
    assert state is None
    assert _codes(errors) == [("E_DUPLICATE_ID", "epics.0.tasks.0.id")]


def test_optional_timestamps_are_checked():
    raw = {"version": 1, "epics": [_item(updated_at="2025-13-40T00:00:00Z", tasks=[])]}
    _, errors = validate_state(raw)
    assert _codes(errors) == [("E_INVALID_TIMESTAMP", "epics.0.updated_at")]


def test_summarize_counts_completed_items():
    state, _ = validate_state(load_raw_state(EXAMPLES / "jots.json"))
    assert summarize_state(state) == "OK: version 1 (epics=0/2, tasks=1/4, subtasks=2/5 completed)"


def test_error_paths_sort_indexes_numerically():
    epics = [_item(id=f"e{i}", tasks=[]) for i in range(11)]
    epics[2]["content"] = "short"
    epics[10]["content"] = "short"
    _, errors = validate_state({"version": 1, "epics": epics})
    assert [e.path for e in errors] == ["epics.2.content", "epics.10.content"]
