import json
from datetime import datetime

import pytest

from importers.json_resume import load_resume_json
from resume.document import normalize_resume_data, validate_resume_data
from resume.envelope import (
    EXTENDED_RESUME_SCHEMA_VERSION,
    convert_from_extended_format,
    convert_to_extended_format,
    default_extensions,
    export_backup_json,
    export_resume_as_json,
    import_from_backup,
    is_extended_format,
    validate_extended_resume_data,
)

DOCUMENT = normalize_resume_data({
    "basics": {"name": "Ada Lovelace", "profiles": [{"network": "GitHub", "visible": False}]},
    "work": [
        {"name": "Analytical Engines", "highlights": ["Wrote the first program", {"content": "Secret", "visible": False}]},
        {"name": "Hidden Job", "visible": False, "highlights": []},
    ],
    "education": [{"institution": "Home", "courses": [{"name": "Maths"}]}],
    "projects": [{"name": "Notes", "keywords": ["math"], "roles": [{"name": "Author", "visible": False}], "highlights": []}],
    "sectionVisibility": {"awards": False},
    "nonConformingData": {"parsingErrors": ["bad row"], "invalidFields": []},
    "summaries": [{"id": "s1", "target": "Acme", "summary": "Hi", "createdAt": "2025-01-01T00:00:00Z"}],
    "activeSummaryId": "s1",
})


def envelope(**overrides):
    data = {
        "basics": {"name": "x"},
        "work": [],
        "$extensions": {
            "$schemaVersion": "1.1.0",
            "visibility": {"sections": {}, "items": {}, "subItems": {}},
            "backup": {"format": "extended"},
        },
    }
    data.update(overrides)
    return data


def test_missing_extensions():
    res = validate_extended_resume_data({"basics": {}})
    assert res.is_valid is False
    assert res.schema_version is None
    assert res.is_supported is False
    assert any("extensions" in e for e in res.errors)
    assert res.migration_needed is None


def test_not_an_object():
    res = validate_extended_resume_data(["x"])
    assert res.errors == ["Invalid data: expected object"]
    assert res.schema_version is None


def test_missing_schema_version():
    res = validate_extended_resume_data({"$extensions": {"$schemaVersion": 2}})
    assert not res.is_valid
    assert res.errors == ["Missing $extensions.$schemaVersion"]


def test_supported_envelope():
    res = validate_extended_resume_data(envelope())
    assert res.is_valid and res.is_supported
    assert res.schema_version == "1.1.0"
    assert res.errors == [] and res.warnings == []
    assert res.migration_needed is False


def test_unsupported_version_is_an_error_and_never_needs_migration():
    data = envelope()
    data["$extensions"]["$schemaVersion"] = "2.0.0"
    res = validate_extended_resume_data(data)
    assert res.is_valid is False
    assert res.is_supported is False
    assert res.schema_version == "2.0.0"
    assert "2.0.0" in res.errors[0] and "1.0.0, 1.1.0" in res.errors[0]
    assert res.migration_needed is False


def test_structural_errors_and_warnings():
    data = envelope(work={"name": "x"})
    del data["basics"]
    data["$extensions"] = {"$schemaVersion": "1.0.0"}
    res = validate_extended_resume_data(data)
    assert "Missing required JSON Resume property: basics" in res.errors
    assert "work should be an array" in res.errors
    assert res.warnings == ["Missing visibility extensions - will use defaults", "Missing backup metadata"]


def test_is_extended_format():
    assert is_extended_format(envelope())
    assert not is_extended_format({"basics": {}})
    assert not is_extended_format({"$extensions": {"$schemaVersion": ""}})
    assert not is_extended_format("{}")


def test_default_extensions(monkeypatch):
    monkeypatch.setenv("APP_VERSION", "3.2.1")
    ext = default_extensions()
    assert ext["$schemaVersion"] == EXTENDED_RESUME_SCHEMA_VERSION
    assert all(ext["visibility"]["sections"].values())
    assert len(ext["visibility"]["sections"]) == 12
    assert ext["visibility"]["items"] == {} and ext["visibility"]["subItems"] == {}
    backup = ext["backup"]
    assert backup["format"] == "extended"
    assert backup["preservesVisibility"] is True and backup["preservesAppData"] is True
    assert backup["appVersion"] == "3.2.1"
    assert backup["exportedAt"].endswith("Z")
    datetime.fromisoformat(backup["exportedAt"].replace("Z", "+00:00"))
    assert ext["app"]["editCount"] == 0
    assert ext["summaries"] == []
    assert ext["activeSummaryId"] is None


def test_convert_to_extended_moves_visibility_out():
    ext = convert_to_extended_format(DOCUMENT)
    vis = ext["$extensions"]["visibility"]

    assert all("visible" not in w for w in ext["work"])
    assert ext["work"][0]["highlights"] == ["Wrote the first program", "Secret"]
    assert ext["education"][0]["courses"] == ["Maths"]
    assert "visible" not in ext["basics"]["profiles"][0]

    assert vis["items"]["work"] == [True, False]
    assert vis["items"]["profiles"] == [False]
    assert vis["subItems"]["work"] == {"0": {"highlights": [True, False]}}
    assert vis["subItems"]["projects"]["0"] == {"keywords": [True], "roles": [False]}
    assert vis["sections"]["awards"] is False
    assert ext["$extensions"]["nonConforming"] == DOCUMENT["nonConformingData"]
    assert ext["$extensions"]["activeSummaryId"] == "s1"
    assert validate_extended_resume_data(ext).is_valid


def test_backup_round_trip_keeps_visibility():
    restored = import_from_backup(export_backup_json(DOCUMENT))
    assert restored.is_valid and restored.is_extended
    doc = restored.document

    assert [w["visible"] for w in doc["work"]] == [True, False]
    assert doc["work"][0]["highlights"] == [
        {"content": "Wrote the first program", "visible": True},
        {"content": "Secret", "visible": False},
    ]
    assert doc["projects"][0]["roles"] == [{"name": "Author", "visible": False}]
    assert doc["basics"]["profiles"][0]["visible"] is False
    assert doc["sectionVisibility"]["awards"] is False
    assert doc["sectionVisibility"]["work"] is True
    assert doc["nonConformingData"] == DOCUMENT["nonConformingData"]
    assert doc["activeSummaryId"] == "s1"
    assert normalize_resume_data(doc) == doc


def test_missing_visibility_entries_mean_visible():
    data = envelope(work=[{"name": "A", "highlights": ["x"]}])
    data["$extensions"]["visibility"] = {"items": {"work": []}, "subItems": {"work": {"0": {}}}}
    doc = convert_from_extended_format(data)
    assert doc["work"][0]["visible"] is True
    assert doc["work"][0]["highlights"] == [{"content": "x", "visible": True}]


def test_import_from_backup_failures():
    assert import_from_backup("{oops").is_valid is False

    plain = import_from_backup(json.dumps({"basics": {}}))
    assert plain.is_extended is False
    assert plain.errors == ["Not a backup file - use regular import for JSON Resume or HR-Open formats"]

    data = envelope()
    data["$extensions"]["$schemaVersion"] = "0.9.0"
    old = import_from_backup(json.dumps(data))
    assert old.is_valid is False and old.is_extended is True
    assert old.schema_version == "0.9.0"
    assert old.document is None


def test_export_resume_as_json_strips_flags():
    out = json.loads(export_resume_as_json(DOCUMENT))
    assert "$extensions" not in out
    assert all("visible" not in w for w in out["work"])
    assert "visible" not in out["basics"]["profiles"][0]
    assert out["basics"]["name"] == "Ada Lovelace"


@pytest.mark.parametrize("empty", [{}, "", 0, False])
def test_empty_non_list_section_is_an_error(empty):
    res = validate_extended_resume_data(envelope(work=empty))
    assert res.is_valid is False
    assert "work should be an array" in res.errors

    ok, errors = validate_resume_data({"basics": {}, "work": empty})
    assert not ok
    assert "work must be an array if present" in errors


def test_null_section_counts_as_absent():
    assert validate_extended_resume_data(envelope(work=None)).is_valid
    assert validate_resume_data({"basics": {}, "work": None}) == (True, [])


def _malformed(**extension_overrides):
    data = envelope(work=[{"name": "A", "highlights": ["x"]}])
    data["$extensions"].update(extension_overrides)
    return data


@pytest.mark.parametrize("data", [
    envelope(basics="oops", work=[{"name": "A", "highlights": ["x"]}]),
    envelope(basics={"name": "x", "profiles": "none"}, work=[{"name": "A", "highlights": ["x"]}]),
    _malformed(visibility="all"),
    _malformed(visibility={"sections": [1, 2]}),
    _malformed(visibility={"sections": {"work": "no"}}),
    _malformed(visibility={"items": "x", "subItems": [1]}),
    _malformed(visibility={"items": {"work": "nope"}, "subItems": {"work": "nope"}}),
    _malformed(visibility={"subItems": {"work": {"0": "nope"}}}),
    _malformed(summaries={"s1": "hi"}),
])
def test_malformed_extensions_restore_with_defaults(data):
    assert validate_extended_resume_data(data).is_valid

    restored = import_from_backup(json.dumps(data))
    assert restored.is_valid
    doc = restored.document
    assert all(doc["sectionVisibility"].values())
    assert isinstance(doc["basics"]["profiles"], list)
    if doc["work"]:
        assert doc["work"][0]["visible"] is True
        assert doc["work"][0]["highlights"] == [{"content": "x", "visible": True}]
    assert "summaries" not in doc

    loaded = load_resume_json(json.dumps(data))
    assert loaded.has_errors is False
    assert loaded.document == doc
