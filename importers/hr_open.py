"""
HR Open Standards LER-RS <-> JSON Resume document.

Only the parts that have a counterpart on both sides are mapped: person,
narratives (summary), employment histories, education, skills and
certifications.
"""
import json
from typing import Any, Dict

from resume import subitems
from resume.schema import empty_resume_data

HR_OPEN_TYPE = "http://schema.hropenstandards.org/4.4/recruiting/json/ler-rs/LER-RSType.json"


def _get(obj: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


def is_hr_open(data: Any) -> bool:
    return bool(_get(data, "person", "name"))


def convert_hr_open_to_json_resume(hr_open: Dict[str, Any]) -> Dict[str, Any]:
    document = empty_resume_data()
    person = hr_open.get("person")
    communication = hr_open.get("communication")
    address = _get(person, "location", "address")
    if not isinstance(communication, dict):
        communication = {}
    if not isinstance(address, dict):
        address = {}

    name = _get(person, "name", "formatted") or (
        f"{_get(person, 'name', 'given') or ''} {_get(person, 'name', 'family') or ''}".strip()
    )
    summary = next(
        (n.get("content") for n in _list(hr_open.get("narratives")) if isinstance(n, dict) and n.get("type") == "summary"),
        None,
    )

    basics = document["basics"]
    basics["name"] = name or ""
    basics["email"] = _get(person, "communication", "email") or communication.get("email") or ""
    basics["phone"] = _get(person, "communication", "phone") or communication.get("phone") or ""
    basics["url"] = _get(person, "communication", "web") or communication.get("web") or ""
    basics["summary"] = summary or ""
    basics["location"] = {
        "address": address.get("line") or "",
        "postalCode": address.get("postalCode") or "",
        "city": address.get("city") or "",
        "countryCode": address.get("country") or "",
        "region": address.get("countrySubDivisions") or "",
    }

    document["work"] = [
        {
            "name": _get(emp, "organization", "name") or "",
            "location": _get(emp, "organization", "location") or "",
            "description": _get(emp, "organization", "description") or "",
            "position": _get(emp, "position", "title") or "",
            "url": _get(emp, "organization", "website") or "",
            "startDate": _get(emp, "position", "startDate") or "",
            "endDate": _get(emp, "position", "endDate") or "",
            "summary": _get(emp, "position", "description") or "",
            "highlights": _list(_get(emp, "position", "highlights")),
            "visible": True,
        }
        for emp in _list(hr_open.get("employmentHistories"))
    ]
    document["education"] = [
        {
            "institution": _get(edu, "institution", "name") or "",
            "url": _get(edu, "institution", "url") or "",
            "area": _get(edu, "program", "name") or "",
            "studyType": _get(edu, "program", "type") or "",
            "startDate": _get(edu, "dates", "start") or "",
            "endDate": _get(edu, "dates", "end") or "",
            "score": _get(edu, "score") or "",
            "courses": _list(_get(edu, "courses")),
            "visible": True,
        }
        for edu in _list(hr_open.get("educationAndLearnings"))
    ]
    document["skills"] = [
        {
            "name": _get(skill, "name") or "",
            "level": _get(skill, "proficiencyLevel") or "",
            "keywords": _list(_get(skill, "keywords")),
            "visible": True,
        }
        for skill in _list(hr_open.get("skills"))
    ]
    document["certificates"] = [
        {
            "name": _get(cert, "name") or "",
            "date": _get(cert, "date") or "",
            "issuer": _get(cert, "issuingAuthority") or "",
            "url": _get(cert, "url") or "",
            "visible": True,
        }
        for cert in _list(hr_open.get("certifications"))
    ]
    return document


def _shown(items: Any) -> list:
    return [i for i in _list(items) if isinstance(i, dict) and i.get("visible") is not False]


def _visible_texts(values: Any, text_key: str) -> list:
    return subitems.texts(subitems.visible_only(_list(values), text_key), text_key)


def convert_to_hr_open(document: Dict[str, Any]) -> Dict[str, Any]:
    """JSON Resume document -> HR Open LER-RS. Hidden items and sub-items are left out."""
    basics = document.get("basics") if isinstance(document.get("basics"), dict) else {}
    location = basics.get("location") if isinstance(basics.get("location"), dict) else {}
    name = basics.get("name") or ""
    given, _, family = name.partition(" ")
    summary = basics.get("summary") or ""

    return {
        "type": HR_OPEN_TYPE,
        "person": {
            "name": {"formatted": name, "given": given, "family": family},
            "communication": {
                "email": basics.get("email") or "",
                "phone": basics.get("phone") or "",
                "web": basics.get("url") or "",
            },
            "location": {
                "address": {
                    "line": location.get("address") or "",
                    "city": location.get("city") or "",
                    "postalCode": location.get("postalCode") or "",
                    "countrySubDivisions": location.get("region") or "",
                    "country": location.get("countryCode") or "",
                }
            },
        },
        "narratives": [{"type": "summary", "content": summary}] if summary else [],
        "employmentHistories": [
            {
                "organization": {
                    "name": work.get("name", ""),
                    "website": work.get("url", ""),
                    "location": work.get("location", ""),
                    "description": work.get("description", ""),
                },
                "position": {
                    "title": work.get("position", ""),
                    "startDate": work.get("startDate", ""),
                    "endDate": work.get("endDate", ""),
                    "description": work.get("summary", ""),
                    "highlights": _visible_texts(work.get("highlights"), subitems.HIGHLIGHT),
                },
            }
            for work in _shown(document.get("work"))
        ],
        "educationAndLearnings": [
            {
                "institution": {"name": edu.get("institution", ""), "url": edu.get("url", "")},
                "program": {"name": edu.get("area", ""), "type": edu.get("studyType", "")},
                "dates": {"start": edu.get("startDate", ""), "end": edu.get("endDate", "")},
                "score": edu.get("score", ""),
                "courses": _visible_texts(edu.get("courses"), subitems.NAMED),
            }
            for edu in _shown(document.get("education"))
        ],
        "skills": [
            {
                "name": skill.get("name", ""),
                "proficiencyLevel": skill.get("level", ""),
                "keywords": _visible_texts(skill.get("keywords"), subitems.NAMED),
            }
            for skill in _shown(document.get("skills"))
        ],
        "certifications": [
            {
                "name": cert.get("name", ""),
                "issuingAuthority": cert.get("issuer", ""),
                "date": cert.get("date", ""),
                "url": cert.get("url", ""),
            }
            for cert in _shown(document.get("certificates"))
        ],
    }


def export_hr_open_json(document: Dict[str, Any]) -> str:
    return json.dumps(convert_to_hr_open(document), indent=2)
