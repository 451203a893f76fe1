"""
Document normalization.

Every document that enters the editor, whatever its source (LinkedIn import,
JSON Resume, HR Open, a restored backup, stored state), goes through
``normalize_resume_data`` so that the rest of the app can rely on its shape:
every section present, every item with an explicit ``visible`` flag, legacy
structures migrated.
"""
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .schema import (
    BASICS_STRING_FIELDS,
    DEFAULT_SECTION_VISIBILITY,
    LOCATION_FIELDS,
    SECTION_FIELDS,
)

logger = logging.getLogger(__name__)

LEGACY_ICON_FALLBACK_SIZE = 60
LEGACY_ICON_POSITION = MappingProxyType({"top": 20, "right": 20})


class InvalidInput(ValueError):
    """Raised when the input is not a usable object at all."""


@dataclass(frozen=True)
class NormalizerConfig:
    section_visibility: Mapping[str, bool] = field(default_factory=lambda: DEFAULT_SECTION_VISIBILITY)
    sections: Tuple[str, ...] = SECTION_FIELDS


def ensure_items_have_visibility(items: List[Any]) -> List[Any]:
    """Only a literal ``False`` keeps an item hidden."""
    out = []
    for item in items:
        if isinstance(item, dict):
            item = {**item, "visible": item.get("visible") is not False}
        out.append(item)
    return out


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def ensure_basics(data: Dict[str, Any]) -> Dict[str, Any]:
    basics = _as_dict(data.get("basics"))
    location = _as_dict(basics.get("location"))
    profiles = basics.get("profiles")

    normalized = {**basics}
    for key in BASICS_STRING_FIELDS:
        normalized[key] = basics.get(key) or ""
    normalized["location"] = {k: location.get(k) or "" for k in LOCATION_FIELDS}
    normalized["profiles"] = ensure_items_have_visibility(profiles) if isinstance(profiles, list) else []
    return {**data, "basics": normalized}


def ensure_arrays(data: Dict[str, Any], sections=SECTION_FIELDS) -> Dict[str, Any]:
    out = {**data}
    for section in sections:
        if not isinstance(out.get(section), list):
            out[section] = []
    return out


def migrate_icon(data: Dict[str, Any]) -> Dict[str, Any]:
    """Collapse the old ``size: {width, height}`` icon shape into one number."""
    icon = data.get("icon")
    if not isinstance(icon, dict):
        return data
    size = icon.get("size")
    if _is_number(size):
        return data
    if isinstance(size, dict) and (size.get("width") or size.get("height")):
        return {
            **data,
            "icon": {
                "data": icon.get("data"),
                "position": icon.get("position") or dict(LEGACY_ICON_POSITION),
                "size": size.get("width") or size.get("height") or LEGACY_ICON_FALLBACK_SIZE,
            },
        }
    return data


class DocumentNormalizer:
    def __init__(self, config: Optional[NormalizerConfig] = None):
        self.config = config or NormalizerConfig()

    def normalize(self, data: Any) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise InvalidInput("Invalid resume data: expected object")

        normalized = ensure_basics(data)
        normalized = ensure_arrays(normalized, self.config.sections)
        normalized = migrate_icon(normalized)

        for section in self.config.sections:
            normalized[section] = ensure_items_have_visibility(normalized[section])

        partial = data.get("sectionVisibility")
        normalized["sectionVisibility"] = {
            **self.config.section_visibility,
            **(partial if isinstance(partial, dict) else {}),
        }

        # opaque side-channel data is carried over as-is
        for key in ("nonConformingData", "meta"):
            if key in data:
                normalized[key] = data[key]
        return normalized


_default_normalizer = DocumentNormalizer()


def normalize_resume_data(data: Any) -> Dict[str, Any]:
    return _default_normalizer.normalize(data)


def validate_resume_data(data: Any) -> Tuple[bool, List[str]]:
    errors: List[str] = []
    if not isinstance(data, dict):
        return False, ["Resume data must be an object"]

    if not isinstance(data.get("basics"), dict):
        errors.append("basics section is required and must be an object")
    for section in SECTION_FIELDS:
        if data.get(section) is not None and not isinstance(data[section], list):
            errors.append(f"{section} must be an array if present")
    return not errors, errors


def normalize_stored_data(json_string: str) -> Optional[Dict[str, Any]]:
    """Load previously saved editor state, or ``None`` if it is not usable."""
    try:
        parsed = json.loads(json_string)
    except (TypeError, ValueError) as e:
        logger.error("Failed to parse stored data: %s", e)
        return None

    ok, errors = validate_resume_data(parsed)
    if not ok:
        logger.warning("Stored data validation failed: %s", errors)
        return None
    return normalize_resume_data(parsed)


def clear_non_conforming_data(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if k != "nonConformingData"}


def _summary_timestamp(summary: Dict[str, Any]) -> float:
    raw = summary.get("lastUsed") or summary.get("createdAt") or ""
    try:
        return datetime.fromisoformat(str(raw).replace("Z", "+00:00")).timestamp()
    except ValueError:
        return float("-inf")


def deduplicate_summaries(summaries: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """One summary per target (case-insensitive); the most recently used wins."""
    unique: Dict[str, Dict[str, Any]] = {}
    for summary in summaries or []:
        key = str(summary.get("target", "")).lower()
        existing = unique.get(key)
        if existing is None:
            unique[key] = summary
        elif _summary_timestamp(summary) > _summary_timestamp(existing):
            unique[key] = {**summary, "target": existing.get("target")}
    return list(unique.values())
