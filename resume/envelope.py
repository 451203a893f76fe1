"""
Versioned backup envelope.

A backup is a plain JSON Resume document with every app-specific piece of data
(visibility flags, non-conforming import data, named summaries, app metadata)
moved into a separate ``$extensions`` namespace, so the file stays readable by
other JSON Resume tools.

Schema evolution: never change existing fields, only add new optional ones with
sensible defaults. MINOR bumps keep old backups readable; a MAJOR bump needs a
migration function.

    1.1.0  added ``summaries`` / ``activeSummaryId``
"""
import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from . import subitems
from .document import normalize_resume_data
from .schema import SECTION_FIELDS, SUBITEM_FIELDS, VISIBILITY_KEYS

logger = logging.getLogger(__name__)

EXTENDED_RESUME_SCHEMA_VERSION = "1.1.0"
SUPPORTED_SCHEMA_VERSIONS = ("1.0.0", "1.1.0")
EXTENDED_SCHEMA_URL = "https://github.com/yourusername/no-strings-resume/schemas/extended-resume-v1.json"
JSON_RESUME_SCHEMA_URL = "https://raw.githubusercontent.com/jsonresume/resume-schema/v1.0.0/schema.json"
EXPORTED_BY = "No Strings Resume Builder"
BACKUP_FORMAT = "extended"
TEMPLATE_VERSION = "1.0.0"

EXTENSIONS_KEY = "$extensions"
SCHEMA_VERSION_KEY = "$schemaVersion"


@dataclass
class EnvelopeValidation:
    is_valid: bool
    schema_version: Optional[str]
    is_supported: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    migration_needed: Optional[bool] = None


@dataclass
class BackupImportResult:
    document: Optional[Dict[str, Any]]
    is_valid: bool
    is_extended: bool
    schema_version: Optional[str]
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def get_app_version() -> str:
    return os.getenv("APP_VERSION") or "1.0.0"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _backup_metadata(exported_at: str) -> Dict[str, Any]:
    return {
        "exportedAt": exported_at,
        "exportedBy": EXPORTED_BY,
        "appVersion": get_app_version(),
        "format": BACKUP_FORMAT,
        "preservesVisibility": True,
        "preservesAppData": True,
    }


def default_extensions() -> Dict[str, Any]:
    """Extensions block for a brand-new resume."""
    return {
        SCHEMA_VERSION_KEY: EXTENDED_RESUME_SCHEMA_VERSION,
        "$extendedSchema": EXTENDED_SCHEMA_URL,
        "visibility": {
            "sections": {k: True for k in VISIBILITY_KEYS},
            "items": {},
            "subItems": {},
        },
        "backup": _backup_metadata(_now_iso()),
        "app": {"editCount": 0, "templateVersion": TEMPLATE_VERSION},
        "summaries": [],
        "activeSummaryId": None,
    }


def _short_circuit(error: str) -> EnvelopeValidation:
    return EnvelopeValidation(is_valid=False, schema_version=None, is_supported=False, errors=[error])


def validate_extended_resume_data(data: Any) -> EnvelopeValidation:
    if not isinstance(data, dict):
        return _short_circuit("Invalid data: expected object")

    extensions = data.get(EXTENSIONS_KEY)
    if not isinstance(extensions, dict):
        return _short_circuit(f"Missing {EXTENSIONS_KEY} object")

    schema_version = extensions.get(SCHEMA_VERSION_KEY)
    if not schema_version or not isinstance(schema_version, str):
        return _short_circuit(f"Missing {EXTENSIONS_KEY}.{SCHEMA_VERSION_KEY}")

    errors: List[str] = []
    warnings: List[str] = []

    is_supported = schema_version in SUPPORTED_SCHEMA_VERSIONS
    if not is_supported:
        errors.append(
            f"Unsupported schema version: {schema_version}. "
            f"Supported: {', '.join(SUPPORTED_SCHEMA_VERSIONS)}"
        )

    if "basics" not in data:
        errors.append("Missing required JSON Resume property: basics")

    if not extensions.get("visibility"):
        warnings.append("Missing visibility extensions - will use defaults")
    if not extensions.get("backup"):
        warnings.append("Missing backup metadata")

    for section in SECTION_FIELDS:
        if data.get(section) is not None and not isinstance(data[section], list):
            errors.append(f"{section} should be an array")

    is_valid = not errors
    # An unsupported version is already an error above, so this stays False.
    # Kept until it is decided whether old versions should migrate instead.
    migration_needed = is_valid and not is_supported
    return EnvelopeValidation(
        is_valid=is_valid,
        schema_version=schema_version,
        is_supported=is_supported,
        errors=errors,
        warnings=warnings,
        migration_needed=migration_needed,
    )


def is_extended_format(data: Any) -> bool:
    if not isinstance(data, dict):
        return False
    extensions = data.get(EXTENSIONS_KEY)
    return isinstance(extensions, dict) and bool(extensions.get(SCHEMA_VERSION_KEY))


def _strip_visible(item: Any) -> Any:
    if not isinstance(item, dict):
        return item
    return {k: v for k, v in item.items() if k != "visible"}


def _item_visible(item: Any) -> bool:
    return not (isinstance(item, dict) and item.get("visible") is False)


def convert_to_extended_format(document: Dict[str, Any]) -> Dict[str, Any]:
    """Move visibility and app data out of the document into ``$extensions``."""
    now = _now_iso()
    basics = document.get("basics") or {}
    profiles = basics.get("profiles") or []

    item_visibility: Dict[str, List[bool]] = {}
    sub_item_visibility: Dict[str, Dict[str, Dict[str, List[bool]]]] = {}

    if profiles:
        item_visibility["profiles"] = [_item_visible(p) for p in profiles]

    clean: Dict[str, Any] = {
        "$schema": JSON_RESUME_SCHEMA_URL,
        "basics": {**basics, "profiles": [_strip_visible(p) for p in profiles]},
    }

    for section in SECTION_FIELDS:
        items = document.get(section) or []
        sub_fields = SUBITEM_FIELDS.get(section, {})
        if items:
            item_visibility[section] = [_item_visible(i) for i in items]
            if sub_fields:
                sub_item_visibility[section] = {}

        cleaned_items = []
        for index, item in enumerate(items):
            cleaned = _strip_visible(item)
            if isinstance(cleaned, dict):
                flags = {}
                for sub_field, text_key in sub_fields.items():
                    values = cleaned.get(sub_field)
                    if not isinstance(values, list):
                        continue
                    if values:
                        flags[sub_field] = [subitems.is_visible(v, text_key) for v in values]
                    cleaned[sub_field] = subitems.texts(values, text_key)
                if flags:
                    # JSON object keys are strings
                    sub_item_visibility[section][str(index)] = flags
            cleaned_items.append(cleaned)
        clean[section] = cleaned_items

    if "meta" in document:
        clean["meta"] = document["meta"]

    extensions: Dict[str, Any] = {
        SCHEMA_VERSION_KEY: EXTENDED_RESUME_SCHEMA_VERSION,
        "$extendedSchema": EXTENDED_SCHEMA_URL,
        "visibility": {
            "sections": dict(document.get("sectionVisibility") or {}),
            "items": item_visibility,
            "subItems": sub_item_visibility,
        },
        "backup": _backup_metadata(now),
        "app": {"lastSaved": now, "editCount": 0, "templateVersion": TEMPLATE_VERSION},
        "summaries": list(document.get("summaries") or []),
        "activeSummaryId": document.get("activeSummaryId"),
    }
    if document.get("nonConformingData") is not None:
        extensions["nonConforming"] = document["nonConformingData"]

    clean[EXTENSIONS_KEY] = extensions
    return clean


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def convert_from_extended_format(extended: Dict[str, Any]) -> Dict[str, Any]:
    """Inverse of ``convert_to_extended_format``; missing or malformed flags mean visible."""
    extensions = _as_dict(extended.get(EXTENSIONS_KEY))
    visibility = _as_dict(extensions.get("visibility"))
    items_vis = _as_dict(visibility.get("items"))
    sub_vis = _as_dict(visibility.get("subItems"))

    def item_flag(section: str, index: int) -> bool:
        flags = items_vis.get(section)
        if isinstance(flags, list) and index < len(flags) and isinstance(flags[index], bool):
            return flags[index]
        return True

    def sub_flag(section: str, index: int, sub_field: str, sub_index: int) -> bool:
        per_item = sub_vis.get(section)
        if not isinstance(per_item, dict):
            return True
        entry = per_item.get(str(index), per_item.get(index))
        if not isinstance(entry, dict):
            return True
        flags = entry.get(sub_field)
        if isinstance(flags, list) and sub_index < len(flags) and isinstance(flags[sub_index], bool):
            return flags[sub_index]
        return True

    basics = _as_dict(extended.get("basics"))
    profiles = _as_list(basics.get("profiles"))
    document: Dict[str, Any] = {
        "basics": {
            **basics,
            "profiles": [
                {**p, "visible": item_flag("profiles", i)} if isinstance(p, dict) else p
                for i, p in enumerate(profiles)
            ],
        }
    }

    for section in SECTION_FIELDS:
        sub_fields = SUBITEM_FIELDS.get(section, {})
        restored = []
        for index, item in enumerate(_as_list(extended.get(section))):
            if not isinstance(item, dict):
                restored.append(item)
                continue
            item = {**item, "visible": item_flag(section, index)}
            for sub_field, text_key in sub_fields.items():
                if isinstance(item.get(sub_field), list):
                    item[sub_field] = [
                        subitems.from_raw(v, text_key)
                        .with_visibility(sub_flag(section, index, sub_field, j))
                        .to_raw(text_key)
                        for j, v in enumerate(item[sub_field])
                    ]
            restored.append(item)
        document[section] = restored

    if "meta" in extended:
        document["meta"] = extended["meta"]
    document["sectionVisibility"] = {
        k: v for k, v in _as_dict(visibility.get("sections")).items() if isinstance(v, bool)
    }
    if extensions.get("nonConforming") is not None:
        document["nonConformingData"] = extensions["nonConforming"]
    if _as_list(extensions.get("summaries")):
        document["summaries"] = list(extensions["summaries"])
    if extensions.get("activeSummaryId"):
        document["activeSummaryId"] = extensions["activeSummaryId"]
    return document


def import_from_backup(json_string: str) -> BackupImportResult:
    try:
        parsed = json.loads(json_string)
    except (TypeError, ValueError) as e:
        return BackupImportResult(None, False, False, None, errors=[str(e) or "Invalid JSON format"])
    return restore_backup(parsed)


def restore_backup(parsed: Any) -> BackupImportResult:
    if not is_extended_format(parsed):
        return BackupImportResult(
            None, False, False, None,
            errors=["Not a backup file - use regular import for JSON Resume or HR-Open formats"],
        )

    validation = validate_extended_resume_data(parsed)
    if not validation.is_valid:
        return BackupImportResult(
            None, False, True, validation.schema_version,
            errors=validation.errors, warnings=validation.warnings,
        )
    if not validation.is_supported:
        return BackupImportResult(
            None, False, True, validation.schema_version,
            errors=[f"Unsupported backup version: {validation.schema_version}"],
            warnings=validation.warnings,
        )

    document = normalize_resume_data(convert_from_extended_format(parsed))
    logger.info("Restored backup (schema %s)", validation.schema_version)
    return BackupImportResult(
        document, True, True, validation.schema_version, warnings=validation.warnings,
    )


def export_backup_json(document: Dict[str, Any]) -> str:
    return json.dumps(convert_to_extended_format(document), indent=2)


def export_resume_as_json(document: Dict[str, Any]) -> str:
    """Plain JSON Resume without our visibility flags or extensions."""
    basics = document.get("basics") or {}
    clean: Dict[str, Any] = {
        "basics": {**basics, "profiles": [_strip_visible(p) for p in basics.get("profiles") or []]},
    }
    for section in SECTION_FIELDS:
        clean[section] = [_strip_visible(i) for i in document.get(section) or []]
    return json.dumps(clean, indent=2)
