import json
from pathlib import Path

import pytest
import yaml

from jots.core.errors import StateLoadError
from jots.core.io.state_file import find_state_file, init_state, load_raw_state, state_to_dict, write_state
from jots.core.model import ItemChanges
from jots.core.ops.mutate_state import add_epic, create_empty_state, update_epic
from jots.core.validate.validate_state import validate_state


EXAMPLES = Path(__file__).resolve().parents[1] / "examples"
TS = "2025-02-01T00:00:00.000Z"


def test_load_missing_file():
    with pytest.raises(StateLoadError) as exc:
        load_raw_state(EXAMPLES / "does-not-exist.json")
    assert exc.value.code == "E_FILE_NOT_FOUND"


def test_load_unsupported_suffix(tmp_path):
    p = tmp_path / "state.toml"
    p.write_text("version = 1\n", encoding="utf-8")
    with pytest.raises(StateLoadError) as exc:
        load_raw_state(p)
    assert exc.value.code == "E_UNSUPPORTED_FORMAT"


def test_load_bad_json(tmp_path):
    p = tmp_path / "jots.json"
    p.write_text("{not json", encoding="utf-8")
    with pytest.raises(StateLoadError) as exc:
        load_raw_state(p)
    assert exc.value.code == "E_JSON_PARSE"
    assert exc.value.file == str(p)


def test_load_non_mapping(tmp_path):
    p = tmp_path / "jots.json"
    p.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(StateLoadError) as exc:
        load_raw_state(p)
    assert exc.value.code == "E_INVALID_TOP_LEVEL"


def test_load_yaml_example():
    state, errors = validate_state(load_raw_state(EXAMPLES / "jots.yaml"))
    assert errors == []
    assert state.epics[0].tasks[0].content == "Replace setup.cfg metadata"


def test_write_omits_unset_optionals(tmp_path):
    state = add_epic(
        create_empty_state(), content="Plan the quarterly roadmap", priority=1, new_id=lambda: "E", clock=lambda: TS
    ).state
    p = write_state(state, tmp_path / "jots.json")

    text = p.read_text(encoding="utf-8")
    assert text.endswith("}\n")
    data = json.loads(text)
    assert data == {
        "version": 1,
        "epics": [
            {
                "id": "E",
                "content": "Plan the quarterly roadmap",
                "priority": 1,
                "status": "pending",
                "created_at": TS,
                "tasks": [],
            }
        ],
        "tasks": [],
    }


def test_write_then_load_keeps_example_intact(tmp_path):
    raw = load_raw_state(EXAMPLES / "jots.json")
    state, _ = validate_state(raw)
    p = write_state(state, tmp_path / "copy.json")
    assert load_raw_state(p) == raw


def test_write_yaml(tmp_path):
    state = add_epic(create_empty_state(), content="Plan the quarterly roadmap", priority=1).state
    state = update_epic(state, epic_id=state.epics[0].id, changes=ItemChanges(notes=("first",))).state
    p = write_state(state, tmp_path / "jots.yaml")
    data = yaml.safe_load(p.read_text(encoding="utf-8"))
    assert data["epics"][0]["notes"] == ["first"]
    assert state_to_dict(state) == data


def test_init_state_refuses_overwrite(tmp_path):
    p = init_state(tmp_path / "jots.json")
    assert json.loads(p.read_text(encoding="utf-8")) == {"version": 1, "epics": [], "tasks": []}
    with pytest.raises(StateLoadError) as exc:
        init_state(p)
    assert exc.value.code == "E_FILE_EXISTS"
    init_state(p, force=True)


def test_find_state_file_walks_up(tmp_path):
    root = tmp_path / "project"
    nested = root / "src" / "pkg"
    nested.mkdir(parents=True)
    init_state(root / "jots.json")
    assert find_state_file(nested) == (root / "jots.json").resolve()
    assert find_state_file(nested, filename="other.json") is None
