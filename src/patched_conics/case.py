"""Encounter schedule files.

A schedule is a JSON list of ``{"kind", "object", "new_parent", "time"}``
records. Saving goes through a temporary file and ``os.replace`` so an
existing schedule is either fully replaced or left alone.
"""
from __future__ import annotations

import json
import os
from typing import Any, Dict, Iterable, List

from .encounter import Encounter, EncounterKind
from .errors import CaseError


def encounter_to_dict(e: Encounter) -> Dict[str, Any]:
    return {"kind": e.kind.value, "object": e.object, "new_parent": e.new_parent, "time": e.time}


def encounter_from_dict(d: Dict[str, Any]) -> Encounter:
    try:
        return Encounter(EncounterKind(d["kind"]), str(d["object"]), str(d["new_parent"]), float(d["time"]))
    except (KeyError, TypeError, ValueError) as e:
        raise CaseError(f"bad encounter record {d!r}") from e


def load_encounters(path: str) -> List[Encounter]:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise CaseError(f"{path}: expected a list of encounters")
    return [encounter_from_dict(d) for d in raw]


def save_encounters(encounters: Iterable[Encounter], path: str) -> None:
    rows = [encounter_to_dict(e) for e in encounters]
    out_dir = os.path.dirname(path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    tmp = path + ".tmp"
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(rows, f, indent=2)
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.remove(tmp)


def default_encounters_path(case_path: str) -> str:
    """``encounters.json`` next to the case file."""
    return os.path.join(os.path.dirname(os.path.abspath(case_path)), "encounters.json")
