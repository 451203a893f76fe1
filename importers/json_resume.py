"""
JSON import: JSON Resume v1.2.1, HR Open, and our own extended backups.

Whatever cannot be mapped is kept in ``nonConformingData`` for the user to
review instead of being dropped.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from parsing.normalizers import safe_list, safe_string
from resume import subitems
from resume.document import normalize_resume_data
from resume.envelope import is_extended_format, restore_backup
from resume.schema import (
    BASICS_STRING_FIELDS,
    DEFAULT_SECTION_VISIBILITY,
    ITEM_STRING_FIELDS,
    LOCATION_FIELDS,
    PROFILE_STRING_FIELDS,
    SECTION_FIELDS,
    SUBITEM_FIELDS,
    empty_resume_data,
    invalid_field,
    non_conforming_bucket,
)

from .hr_open import convert_hr_open_to_json_resume, is_hr_open

logger = logging.getLogger(__name__)

INVALID_FORMAT = "Invalid resume format. Expected JSON Resume v1.2.1 or HR Open format."
HR_OPEN_CONVERTED = "Successfully converted from HR Open format"

ICON_DEFAULT_POSITION = 24
ICON_DEFAULT_SIZE = 56
PHOTO_SIZE = 60
PHOTO_TOP = 20
PHOTO_OFFSET = 80


@dataclass
class ImportResult:
    document: Dict[str, Any]
    has_errors: bool
    validation_errors: List[str] = field(default_factory=list)
    non_conforming_data: Optional[Dict[str, Any]] = None


def _decode(json_string: str) -> Tuple[Any, Optional[str]]:
    try:
        return json.loads(json_string), None
    except (TypeError, ValueError) as e:
        return None, str(e) or "Invalid JSON format or unsupported file structure"


def _unreadable(json_string: str, message: str) -> ImportResult:
    logger.warning("Resume import failed: %s", message)
    document = empty_resume_data()
    document["nonConformingData"] = non_conforming_bucket(
        parsing_errors=[message], raw_text=json_string, original_data=None
    )
    return ImportResult(document, True, [message], document["nonConformingData"])


def is_json_resume(data: Any) -> bool:
    if not isinstance(data, dict) or not isinstance(data.get("basics"), dict):
        return False
    return all(data.get(s) is None or isinstance(data[s], list) for s in SECTION_FIELDS)


def _field(obj: Any, key: str) -> Any:
    return obj.get(key) if isinstance(obj, dict) else None


def _clean_sub_items(values: Any, text_key: str) -> List[Any]:
    return [
        subitems.normalize(v, text_key) if isinstance(v, dict) else safe_string(v)
        for v in safe_list(values)
    ]


def clean_item(section: str, item: Any, invalid_fields: List[Dict[str, Any]]) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {k: safe_string(_field(item, k)) for k in ITEM_STRING_FIELDS[section]}
    for sub_field, text_key in SUBITEM_FIELDS.get(section, {}).items():
        raw = _field(item, sub_field)
        if raw and not isinstance(raw, list):
            invalid_fields.append(
                invalid_field(section, sub_field, raw, f"Expected array, got {type(raw).__name__}")
            )
        cleaned[sub_field] = _clean_sub_items(raw, text_key)
    cleaned["visible"] = _field(item, "visible") is not False
    return cleaned


def _clean_basics(raw: Any) -> Dict[str, Any]:
    location = _field(raw, "location")
    basics: Dict[str, Any] = {k: safe_string(_field(raw, k)) for k in BASICS_STRING_FIELDS}
    basics["location"] = {k: safe_string(_field(location, k)) for k in LOCATION_FIELDS}
    basics["profiles"] = [
        {
            **{k: safe_string(_field(p, k)) for k in PROFILE_STRING_FIELDS},
            "visible": _field(p, "visible") is not False,
        }
        for p in safe_list(_field(raw, "profiles"))
    ]
    if not basics["image"].strip():
        basics["image"] = ""
    return basics


def _num(value: Any, default: float) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return default


def _apply_images(parsed: Dict[str, Any], document: Dict[str, Any]) -> None:
    image = document["basics"]["image"]
    if image:
        # basics.image doubles as the photo, at the default photo slot
        document["photo"] = {
            "data": image,
            "position": {"top": PHOTO_TOP, "right": PHOTO_TOP + PHOTO_OFFSET},
            "size": PHOTO_SIZE,
        }

    icon = parsed.get("icon")
    if isinstance(icon, dict) and icon.get("data"):
        position = icon.get("position") if isinstance(icon.get("position"), dict) else {}
        size = icon.get("size")
        document["icon"] = {
            "data": icon["data"],
            "position": {
                "top": _num(position.get("top"), ICON_DEFAULT_POSITION),
                "right": _num(position.get("right"), ICON_DEFAULT_POSITION),
            },
            "size": ICON_DEFAULT_SIZE if size is None else size,
        }


def import_resume_data(json_string: str) -> ImportResult:
    parsed, error = _decode(json_string)
    if error:
        return _unreadable(json_string, error)
    return _import_parsed(parsed)


def _import_parsed(parsed: Any) -> ImportResult:
    if is_hr_open(parsed):
        logger.info("Detected HR Open format, converting")
        return ImportResult(convert_hr_open_to_json_resume(parsed), False, [HR_OPEN_CONVERTED])

    errors: List[str] = []
    invalid_fields: List[Dict[str, Any]] = []
    has_errors = False

    if not is_json_resume(parsed):
        errors.append(INVALID_FORMAT)
        has_errors = True
    source = parsed if isinstance(parsed, dict) else {}

    document: Dict[str, Any] = {"basics": _clean_basics(source.get("basics"))}
    for section in SECTION_FIELDS:
        document[section] = [clean_item(section, item, invalid_fields) for item in safe_list(source.get(section))]
    visibility = source.get("sectionVisibility")
    document["sectionVisibility"] = {
        **DEFAULT_SECTION_VISIBILITY,
        **(visibility if isinstance(visibility, dict) else {}),
    }
    for key in ("meta", "summaries", "activeSummaryId"):
        if key in source:
            document[key] = source[key]
    _apply_images(source, document)

    if invalid_fields or not isinstance(parsed, dict):
        has_errors = True
        document["nonConformingData"] = non_conforming_bucket(
            parsing_errors=errors, invalid_fields=invalid_fields, original_data=parsed
        )

    return ImportResult(document, has_errors, errors, document.get("nonConformingData"))


def load_resume_json(json_string: str) -> ImportResult:
    """Single entry point for any JSON the user hands us."""
    parsed, error = _decode(json_string)
    if error:
        return _unreadable(json_string, error)

    if is_extended_format(parsed):
        backup = restore_backup(parsed)
        if not backup.is_valid:
            document = empty_resume_data()
            document["nonConformingData"] = non_conforming_bucket(
                parsing_errors=backup.errors, original_data=parsed
            )
            return ImportResult(document, True, backup.errors, document["nonConformingData"])
        return ImportResult(backup.document, False, backup.warnings)

    result = _import_parsed(parsed)
    result.document = normalize_resume_data(result.document)
    return result
