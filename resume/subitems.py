"""
Highlights, courses, keywords and roles are stored either as bare strings or as
``{"content"|"name": ..., "visible": ...}`` objects. Both forms are visible
unless the object says ``visible: False``.

``from_raw`` turns either form into a ``Plain`` or ``Annotated`` value so the
rest of the code never has to test for the storage shape itself.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Union

HIGHLIGHT = "content"
NAMED = "name"


@dataclass(frozen=True)
class Plain:
    text: str

    @property
    def is_visible(self) -> bool:
        return True

    def to_raw(self, text_key: str) -> Dict[str, Any]:
        return {text_key: self.text, "visible": True}

    def with_visibility(self, visible: bool) -> "SubItem":
        if visible:
            return self
        return Annotated(self.text, False)


@dataclass(frozen=True)
class Annotated:
    text: str
    visible: bool = True

    @property
    def is_visible(self) -> bool:
        return self.visible

    def to_raw(self, text_key: str) -> Dict[str, Any]:
        return {text_key: self.text, "visible": self.visible}

    def with_visibility(self, visible: bool) -> "SubItem":
        return Annotated(self.text, visible)


SubItem = Union[Plain, Annotated]


def from_raw(value: Any, text_key: str) -> SubItem:
    if isinstance(value, dict):
        text = value.get(text_key)
        return Annotated("" if text is None else str(text), value.get("visible") is not False)
    return Plain("" if value is None else str(value))


def get_text(value: Any, text_key: str) -> str:
    return from_raw(value, text_key).text


def is_visible(value: Any, text_key: str) -> bool:
    return from_raw(value, text_key).is_visible


def normalize(value: Any, text_key: str) -> Dict[str, Any]:
    """Object form with an explicit visibility flag. Returns a new dict."""
    return from_raw(value, text_key).to_raw(text_key)


def normalize_all(values: Iterable[Any], text_key: str) -> List[Dict[str, Any]]:
    return [normalize(v, text_key) for v in values]


def visible_only(values: Iterable[Any], text_key: str) -> List[Any]:
    """Filters without touching storage: the stored values come back as they were."""
    return [v for v in values if is_visible(v, text_key)]


def texts(values: Iterable[Any], text_key: str) -> List[str]:
    return [get_text(v, text_key) for v in values]
