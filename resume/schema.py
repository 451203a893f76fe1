"""
Shape of the resume document (JSON Resume v1.2.1 plus our extensions).
"""
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

SECTION_FIELDS = (
    "work",
    "volunteer",
    "education",
    "skills",
    "projects",
    "awards",
    "certificates",
    "publications",
    "languages",
    "interests",
    "references",
)

VISIBILITY_KEYS = ("basics",) + SECTION_FIELDS

DEFAULT_SECTION_VISIBILITY: Mapping[str, bool] = MappingProxyType({k: True for k in VISIBILITY_KEYS})

ITEM_STRING_FIELDS: Mapping[str, tuple] = MappingProxyType({
    "work": ("name", "location", "description", "position", "url", "startDate", "endDate", "summary"),
    "volunteer": ("organization", "position", "url", "startDate", "endDate", "summary"),
    "education": ("institution", "url", "area", "studyType", "startDate", "endDate", "score"),
    "skills": ("name", "level"),
    "projects": ("name", "description", "startDate", "endDate", "url", "entity", "type"),
    "awards": ("title", "date", "awarder", "summary"),
    "certificates": ("name", "date", "issuer", "url"),
    "publications": ("name", "publisher", "releaseDate", "url", "summary"),
    "languages": ("language", "fluency"),
    "interests": ("name",),
    "references": ("name", "reference"),
})
PROFILE_STRING_FIELDS = ("network", "username", "url")

BASICS_STRING_FIELDS = ("name", "label", "image", "email", "phone", "url", "summary")
LOCATION_FIELDS = ("address", "postalCode", "city", "countryCode", "region")

# section -> sub-item list -> key holding the text when the sub-item is an object
SUBITEM_FIELDS: Mapping[str, Mapping[str, str]] = MappingProxyType({
    "work": MappingProxyType({"highlights": "content"}),
    "volunteer": MappingProxyType({"highlights": "content"}),
    "education": MappingProxyType({"courses": "name"}),
    "skills": MappingProxyType({"keywords": "name"}),
    "projects": MappingProxyType({"highlights": "content", "keywords": "name", "roles": "name"}),
    "interests": MappingProxyType({"keywords": "name"}),
})


def empty_location() -> Dict[str, str]:
    return {k: "" for k in LOCATION_FIELDS}


def empty_basics() -> Dict[str, Any]:
    basics: Dict[str, Any] = {k: "" for k in BASICS_STRING_FIELDS}
    basics["location"] = empty_location()
    basics["profiles"] = []
    return basics


def empty_resume_data() -> Dict[str, Any]:
    data: Dict[str, Any] = {"basics": empty_basics()}
    for field in SECTION_FIELDS:
        data[field] = []
    data["sectionVisibility"] = dict(DEFAULT_SECTION_VISIBILITY)
    return data


def non_conforming_bucket(
    parsing_errors: Optional[List[str]] = None,
    invalid_fields: Optional[List[Dict[str, Any]]] = None,
    raw_text: Optional[str] = None,
    original_data: Any = None,
) -> Dict[str, Any]:
    """Side-channel for import data we could not place in the document."""
    bucket: Dict[str, Any] = {
        "parsingErrors": list(parsing_errors or []),
        "invalidFields": list(invalid_fields or []),
    }
    if raw_text is not None:
        bucket["rawText"] = raw_text
    bucket["originalData"] = original_data
    return bucket


def invalid_field(section: str, field: str, value: Any, reason: str) -> Dict[str, Any]:
    return {"section": section, "field": field, "value": value, "reason": reason}
