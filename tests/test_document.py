import copy
import json
from types import MappingProxyType

import pytest

from resume.document import (
    DocumentNormalizer,
    InvalidInput,
    NormalizerConfig,
    clear_non_conforming_data,
    deduplicate_summaries,
    normalize_resume_data,
    normalize_stored_data,
    validate_resume_data,
)
from resume.schema import SECTION_FIELDS, VISIBILITY_KEYS

LEGACY = {
    "basics": {
        "name": "Ada",
        "location": {"city": "London"},
        "profiles": [{"network": "GitHub"}, {"network": "X", "visible": False}],
        "x-custom": "kept",
    },
    "work": [
        {"name": "A"},
        {"name": "B", "visible": False},
        {"name": "C", "visible": None},
        {"name": "D", "visible": "false"},
        {"name": "E", "visible": 0},
    ],
    "skills": "not a list",
    "icon": {"data": "img", "position": {"top": 5, "right": 6}, "size": {"width": 40, "height": 50}},
    "sectionVisibility": {"work": False},
    "meta": {"version": "v1"},
    "nonConformingData": {"parsingErrors": ["x"], "invalidFields": []},
    "summaries": [{"id": "s1", "target": "Acme", "summary": "..."}],
}


@pytest.mark.parametrize("bad", [None, "resume", 5, [1, 2], True])
def test_non_objects_are_rejected(bad):
    with pytest.raises(InvalidInput):
        normalize_resume_data(bad)


def test_empty_object_gets_full_shape():
    doc = normalize_resume_data({})
    assert doc["basics"]["name"] == ""
    assert doc["basics"]["location"] == {
        "address": "", "postalCode": "", "city": "", "countryCode": "", "region": "",
    }
    assert doc["basics"]["profiles"] == []
    for section in SECTION_FIELDS:
        assert doc[section] == []
    assert doc["sectionVisibility"] == {k: True for k in VISIBILITY_KEYS}
    assert "nonConformingData" not in doc
    assert "meta" not in doc


def test_only_literal_false_hides_an_item():
    doc = normalize_resume_data(LEGACY)
    assert [w["visible"] for w in doc["work"]] == [True, False, True, True, True]
    assert [p["visible"] for p in doc["basics"]["profiles"]] == [True, False]
    for section in SECTION_FIELDS:
        assert all(isinstance(item["visible"], bool) for item in doc[section])


def test_legacy_shapes():
    doc = normalize_resume_data(LEGACY)
    assert doc["skills"] == []
    assert doc["basics"]["location"]["city"] == "London"
    assert doc["basics"]["x-custom"] == "kept"
    assert doc["icon"] == {"data": "img", "position": {"top": 5, "right": 6}, "size": 40}
    assert doc["sectionVisibility"]["work"] is False
    assert doc["sectionVisibility"]["education"] is True
    assert doc["meta"] == {"version": "v1"}
    assert doc["nonConformingData"] == LEGACY["nonConformingData"]
    assert doc["summaries"] == LEGACY["summaries"]


@pytest.mark.parametrize("icon, size", [
    ({"data": "i", "size": {"height": 50}}, 50),
    ({"data": "i", "size": {"width": 30, "height": 50}}, 30),
])
def test_icon_size_migration(icon, size):
    doc = normalize_resume_data({"icon": icon})
    assert doc["icon"]["size"] == size
    assert doc["icon"]["position"] == {"top": 20, "right": 20}


def test_icon_already_migrated_is_untouched():
    icon = {"data": "i", "position": {"top": 1, "right": 2}, "size": 70}
    assert normalize_resume_data({"icon": icon})["icon"] is icon
    odd = {"data": "i", "size": {"width": 0}}
    assert normalize_resume_data({"icon": odd})["icon"] is odd


@pytest.mark.parametrize("data", [{}, LEGACY, {"basics": "oops", "work": [{"visible": False}]}])
def test_normalize_is_idempotent(data):
    once = normalize_resume_data(data)
    assert normalize_resume_data(once) == once


def test_input_is_not_mutated():
    before = copy.deepcopy(LEGACY)
    normalize_resume_data(LEGACY)
    assert LEGACY == before


def test_injected_visibility_defaults():
    config = NormalizerConfig(section_visibility=MappingProxyType({**{k: True for k in VISIBILITY_KEYS}, "references": False}))
    doc = DocumentNormalizer(config).normalize({})
    assert doc["sectionVisibility"]["references"] is False
    # the shared default is unaffected
    assert normalize_resume_data({})["sectionVisibility"]["references"] is True


def test_validate_resume_data():
    assert validate_resume_data({"basics": {}}) == (True, [])
    ok, errors = validate_resume_data({"work": {"name": "x"}})
    assert not ok
    assert "basics section is required and must be an object" in errors
    assert "work must be an array if present" in errors
    assert validate_resume_data("x") == (False, ["Resume data must be an object"])


def test_normalize_stored_data():
    assert normalize_stored_data("{broken") is None
    assert normalize_stored_data(json.dumps({"work": []})) is None
    doc = normalize_stored_data(json.dumps({"basics": {"name": "Ada"}, "work": [{"name": "A"}]}))
    assert doc["basics"]["name"] == "Ada"
    assert doc["work"][0]["visible"] is True


def test_clear_non_conforming_data():
    doc = normalize_resume_data(LEGACY)
    cleared = clear_non_conforming_data(doc)
    assert "nonConformingData" not in cleared
    assert "nonConformingData" in doc


def test_deduplicate_summaries():
    summaries = [
        {"id": "1", "target": "Acme", "summary": "old", "createdAt": "2024-01-01T00:00:00Z"},
        {"id": "2", "target": "acme", "summary": "new", "createdAt": "2024-01-01T00:00:00Z", "lastUsed": "2025-03-01T00:00:00Z"},
        {"id": "3", "target": "Globex", "summary": "g", "createdAt": "2024-02-01T00:00:00Z"},
        {"id": "4", "target": "ACME", "summary": "older", "createdAt": "2023-01-01T00:00:00Z"},
    ]
    out = deduplicate_summaries(summaries)
    assert [s["id"] for s in out] == ["2", "3"]
    assert out[0]["target"] == "Acme"
    assert deduplicate_summaries(None) == []
