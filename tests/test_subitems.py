from resume import subitems
from resume.subitems import Annotated, Plain


def test_from_raw_picks_the_variant():
    assert subitems.from_raw("Shipped v2", subitems.HIGHLIGHT) == Plain("Shipped v2")
    assert subitems.from_raw({"content": "Shipped v2"}, subitems.HIGHLIGHT) == Annotated("Shipped v2", True)
    assert subitems.from_raw({"name": "SQL", "visible": False}, subitems.NAMED) == Annotated("SQL", False)


def test_both_forms_are_visible_by_default():
    assert subitems.is_visible("Python", subitems.NAMED)
    assert subitems.is_visible({"name": "Python"}, subitems.NAMED)
    assert subitems.is_visible({"name": "Python", "visible": None}, subitems.NAMED)
    assert not subitems.is_visible({"name": "Python", "visible": False}, subitems.NAMED)


def test_get_text():
    assert subitems.get_text("Led a team", subitems.HIGHLIGHT) == "Led a team"
    assert subitems.get_text({"content": "Led a team"}, subitems.HIGHLIGHT) == "Led a team"
    assert subitems.get_text({"name": "Algorithms"}, subitems.NAMED) == "Algorithms"


def test_normalize_returns_explicit_objects():
    values = ["a", {"content": "b", "visible": False}]
    assert subitems.normalize_all(values, subitems.HIGHLIGHT) == [
        {"content": "a", "visible": True},
        {"content": "b", "visible": False},
    ]
    assert values == ["a", {"content": "b", "visible": False}]


def test_visible_only_leaves_storage_alone():
    hidden = {"name": "COBOL", "visible": False}
    shown = {"name": "Go"}
    assert subitems.visible_only(["Rust", hidden, shown], subitems.NAMED) == ["Rust", shown]


def test_with_visibility():
    assert Plain("x").with_visibility(True) == Plain("x")
    assert Plain("x").with_visibility(False) == Annotated("x", False)
    assert Annotated("x", False).with_visibility(True) == Annotated("x", True)
