import json
import os

import pytest
from patched_conics import case as case_io
from patched_conics.case import default_encounters_path, load_encounters, save_encounters
from patched_conics.config import BodyDef, SolverParams, case_from_dict, load_case, to_json
from patched_conics.encounter import Encounter, EncounterKind
from patched_conics.errors import CaseError

HERE = os.path.dirname(os.path.abspath(__file__))
SAMPLE_CASE = os.path.join(HERE, "..", "cases", "sun_moon_probe", "case.json")


def make_case_dict():
    return {
        "solver": {"end_time": 1000.0, "time_step": 10.0},
        "focus": "Sun",
        "bodies": {
            "Earth": {"mass": 6e24, "position": [1.5e11, 0.0], "velocity": [0.0, 29800.0], "parent": "Sun"},
            "Sun": {"mass": 2e30, "position": [0.0, 0.0]},
        },
    }


def make_encounters():
    return [Encounter.entrance("Probe", "Moon", 12.5), Encounter.exit("Probe", "Sun", 99.0)]


def test_case_from_dict():
    c = case_from_dict(make_case_dict())
    assert c.solver == SolverParams(end_time=1000.0, time_step=10.0)
    assert c.focus == "Sun"
    assert c.bodies["Earth"] == BodyDef(6e24, (1.5e11, 0.0), (0.0, 29800.0), "Sun")
    assert c.bodies["Sun"].parent is None
    assert c.solver.n_steps == 100


def test_load_sample_case():
    c = load_case(SAMPLE_CASE)
    assert set(c.bodies) == {"Sun", "Moon", "Probe"}
    assert c.bodies["Probe"].parent == "Sun"


def test_case_json_round_trip(tmp_path):
    c = case_from_dict(make_case_dict())
    path = str(tmp_path / "case.json")
    to_json(c, path)
    assert load_case(path) == c


def test_bad_cases():
    bad = make_case_dict()
    bad["bodies"]["Sun"]["velocity"] = [1.0, 0.0]
    with pytest.raises(CaseError):
        case_from_dict(bad)

    bad = make_case_dict()
    bad["bodies"]["Earth"]["mass"] = -1.0
    with pytest.raises(CaseError):
        case_from_dict(bad)

    bad = make_case_dict()
    bad["bodies"]["Earth"]["position"] = [1.0]
    with pytest.raises(CaseError):
        case_from_dict(bad)

    bad = make_case_dict()
    bad["bodies"]["Earth"]["colour"] = "blue"
    with pytest.raises(CaseError):
        case_from_dict(bad)

    bad = make_case_dict()
    bad["solver"]["time_step"] = 0.0
    with pytest.raises(CaseError):
        case_from_dict(bad)

    bad = make_case_dict()
    bad["focus"] = "Mars"
    with pytest.raises(CaseError):
        case_from_dict(bad)

    with pytest.raises(CaseError):
        case_from_dict({"bodies": {}})

    bad = make_case_dict()
    bad["bodies"] = [["Sun", 2e30]]
    with pytest.raises(CaseError):
        case_from_dict(bad)


def test_encounter_round_trip(tmp_path):
    path = str(tmp_path / "encounters.json")
    save_encounters(make_encounters(), path)
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    assert raw[0] == {"kind": "entrance", "object": "Probe", "new_parent": "Moon", "time": 12.5}
    assert load_encounters(path) == make_encounters()
    assert not os.path.exists(path + ".tmp")


def test_failed_save_keeps_old_schedule(tmp_path, monkeypatch):
    path = str(tmp_path / "encounters.json")
    save_encounters(make_encounters(), path)

    def boom(*args, **kwargs):
        raise OSError("disk full")
    monkeypatch.setattr(case_io.json, "dump", boom)
    with pytest.raises(OSError):
        save_encounters([Encounter.exit("X", "Y", 1.0)], path)
    monkeypatch.undo()

    assert load_encounters(path) == make_encounters()
    assert not os.path.exists(path + ".tmp")


def test_bad_encounter_records(tmp_path):
    path = str(tmp_path / "encounters.json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump([{"kind": "sideways", "object": "A", "new_parent": "B", "time": 1.0}], f)
    with pytest.raises(CaseError):
        load_encounters(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"kind": "exit"}, f)
    with pytest.raises(CaseError):
        load_encounters(path)


def test_default_path():
    p = default_encounters_path(SAMPLE_CASE)
    assert os.path.basename(p) == "encounters.json"
    assert os.path.dirname(p) == os.path.dirname(os.path.abspath(SAMPLE_CASE))
    assert EncounterKind("exit") is EncounterKind.EXIT


if __name__ == "__main__":
    test_case_from_dict()
    test_load_sample_case()
    test_bad_cases()
    print("OK")
