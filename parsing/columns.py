import re
from types import MappingProxyType
from typing import Mapping

# Keys are lower-cased with single spaces; see _lookup_key.
COLUMN_MAPPINGS: Mapping[str, str] = MappingProxyType({
    # Profile.csv
    "first name": "firstName",
    "firstname": "firstName",
    "last name": "lastName",
    "lastname": "lastName",
    "maiden name": "maidenName",
    "headline": "headline",
    "summary": "summary",
    "email address": "emailAddress",
    "email": "emailAddress",
    "geo location": "geoLocation",
    "geolocation": "geoLocation",
    "industry": "industry",
    "websites": "websites",
    "twitter handles": "twitterHandles",
    # Positions.csv
    "company name": "companyName",
    "company": "companyName",
    "title": "title",
    "description": "description",
    "location": "location",
    "started on": "startDate",
    "start date": "startDate",
    "startdate": "startDate",
    "finished on": "endDate",
    "end date": "endDate",
    "enddate": "endDate",
    # Education.csv
    "school name": "schoolName",
    "school": "schoolName",
    "degree name": "degreeName",
    "degree": "degreeName",
    "field of study": "fieldOfStudy",
    "field": "fieldOfStudy",
    "notes": "notes",
    "activities": "activities",
    # Skills.csv
    "name": "name",
    "endorsement count": "endorsementCount",
    "endorsements": "endorsementCount",
    # Languages.csv
    "proficiency": "proficiency",
    # Certifications.csv
    "authority": "authority",
    "license number": "licenseNumber",
    "url": "url",
})

_NON_WORD_RE = re.compile(r"[^\w\s]")
_SPACE_THEN_CHAR_RE = re.compile(r"\s+(.)")


def _lookup_key(header: str) -> str:
    return " ".join(header.lower().split())


def camelize(header: str) -> str:
    """Fallback for headers we have no curated name for: "Job Role (US)" -> "jobRoleUS"."""
    text = _NON_WORD_RE.sub("", header.strip())
    text = _SPACE_THEN_CHAR_RE.sub(lambda m: m.group(1).upper(), text)
    return text[:1].lower() + text[1:]


def normalize_column_name(header: str) -> str:
    mapped = COLUMN_MAPPINGS.get(_lookup_key(header))
    if mapped:
        return mapped
    return camelize(header)
