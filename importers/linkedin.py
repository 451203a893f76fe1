"""
LinkedIn "Get a copy of your data" export (ZIP of CSV files) -> resume document.

Each CSV member is handled on its own; a broken file is reported and skipped
while the rest of the archive is still imported.
"""
import io
import logging
import zipfile
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from parsing.csv_reader import parse_csv
from parsing.normalizers import (
    convert_linkedin_date,
    estimate_skill_level,
    parse_endorsement_count,
)
from resume.schema import empty_resume_data

logger = logging.getLogger(__name__)

LINKEDIN_MARKER_FILES = ("Profile.csv", "Positions.csv", "Education.csv", "Skills.csv", "Connections.csv")

EXTRACT_FAILED = "Failed to extract ZIP file"
NOT_LINKEDIN = "ZIP file does not appear to contain LinkedIn export data"
NOTHING_PROCESSED = "No recognizable LinkedIn data files found in ZIP"

DEFAULT_FLUENCY = "Native speaker"

Extractor = Callable[[bytes], Dict[str, bytes]]


@dataclass
class LinkedInImportResult:
    document: Dict[str, Any]
    has_errors: bool
    validation_errors: List[str] = field(default_factory=list)
    processed_files: List[str] = field(default_factory=list)


def extract_zip_members(payload: bytes) -> Dict[str, bytes]:
    members: Dict[str, bytes] = {}
    with zipfile.ZipFile(io.BytesIO(payload)) as zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            members[info.filename] = zf.read(info)
    return members


def detect_linkedin_files(filenames) -> bool:
    lowered = [name.lower() for name in filenames]
    return any(marker.lower() in name for marker in LINKEDIN_MARKER_FILES for name in lowered)


def decode_member(data: bytes) -> str:
    return data.decode("utf-8-sig", errors="replace")


# --- per-file processors ---
def process_profile(content: str, document: Dict[str, Any]) -> None:
    rows = parse_csv(content)
    if not rows:
        return
    profile = rows[0]
    basics = document["basics"]

    first, last = profile.get("firstName"), profile.get("lastName")
    if first or last:
        basics["name"] = f"{first or ''} {last or ''}".strip()
    if profile.get("headline"):
        basics["label"] = profile["headline"]
    if profile.get("summary"):
        basics["summary"] = profile["summary"]
    if profile.get("emailAddress"):
        basics["email"] = profile["emailAddress"]
    city = profile.get("geoLocation") or profile.get("location")
    if city:
        basics["location"]["city"] = city


def process_positions(content: str, document: Dict[str, Any]) -> None:
    document["work"] = [
        {
            "name": p.get("companyName", ""),
            "location": p.get("location", ""),
            "description": "",
            "position": p.get("title", ""),
            "url": "",
            "startDate": convert_linkedin_date(p.get("startDate", "")),
            "endDate": convert_linkedin_date(p.get("endDate", "")),
            "summary": p.get("description", ""),
            "highlights": [],
            "visible": True,
        }
        for p in parse_csv(content)
    ]


def process_education(content: str, document: Dict[str, Any]) -> None:
    document["education"] = [
        {
            "institution": e.get("schoolName", ""),
            "url": "",
            "area": e.get("fieldOfStudy", ""),
            "studyType": e.get("degreeName", ""),
            "startDate": convert_linkedin_date(e.get("startDate", "")),
            "endDate": convert_linkedin_date(e.get("endDate", "")),
            "score": "",
            "courses": [],
            "visible": True,
        }
        for e in parse_csv(content)
    ]


def process_skills(content: str, document: Dict[str, Any]) -> None:
    document["skills"] = [
        {
            "name": s["name"],
            "level": estimate_skill_level(parse_endorsement_count(s.get("endorsementCount")).value),
            "keywords": [],
            "visible": True,
        }
        for s in parse_csv(content)
        if s.get("name")
    ]


def process_languages(content: str, document: Dict[str, Any]) -> None:
    document["languages"] = [
        {
            "language": lang["name"],
            "fluency": lang.get("proficiency") or DEFAULT_FLUENCY,
            "visible": True,
        }
        for lang in parse_csv(content)
        if lang.get("name")
    ]


def process_certifications(content: str, document: Dict[str, Any]) -> None:
    # "Finished On" is exported too but the resume schema only has an issue date
    document["certificates"] = [
        {
            "name": c["name"],
            "date": convert_linkedin_date(c.get("startDate", "")),
            "issuer": c.get("authority", ""),
            "url": c.get("url", ""),
            "visible": True,
        }
        for c in parse_csv(content)
        if c.get("name")
    ]


PROCESSORS = (
    ("profile.csv", process_profile),
    ("positions.csv", process_positions),
    ("education.csv", process_education),
    ("skills.csv", process_skills),
    ("languages.csv", process_languages),
    ("certifications.csv", process_certifications),
)


def _failed(message: str) -> LinkedInImportResult:
    return LinkedInImportResult(
        document=empty_resume_data(), has_errors=True, validation_errors=[message], processed_files=[]
    )


def parse_linkedin_zip(payload: bytes, extract: Extractor = extract_zip_members) -> LinkedInImportResult:
    try:
        files = extract(payload)
    except Exception as e:
        logger.error("LinkedIn archive could not be extracted: %s", e)
        return _failed(EXTRACT_FAILED)

    if not detect_linkedin_files(files):
        logger.info("Archive has no LinkedIn export files: %s", list(files))
        return _failed(NOT_LINKEDIN)

    document = empty_resume_data()
    errors: List[str] = []
    processed: List[str] = []
    has_errors = False

    for filename, data in files.items():
        lower = filename.lower()
        processor = next((fn for marker, fn in PROCESSORS if marker in lower), None)
        if processor is None:
            continue
        try:
            processor(decode_member(data), document)
        except Exception as e:
            logger.warning("Error processing %s: %s", filename, e)
            errors.append(f"Error processing {filename}: {str(e) or type(e).__name__}")
            has_errors = True
            continue
        processed.append(filename)
        logger.info("Imported %s", filename)

    if not processed:
        errors.append(NOTHING_PROCESSED)
        has_errors = True

    return LinkedInImportResult(
        document=document,
        has_errors=has_errors or bool(errors),
        validation_errors=errors,
        processed_files=processed,
    )
