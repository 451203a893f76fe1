import json
import logging
import os
from typing import Any, Dict, Optional

try:
    from supabase import create_client, Client
except Exception:
    create_client = None
    Client = None  # type: ignore

from resume.envelope import BackupImportResult, convert_to_extended_format, restore_backup

logger = logging.getLogger(__name__)


def get_supabase() -> Optional["Client"]:
    """Client for backup storage, or ``None`` when credentials are not configured."""
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_KEY")
    if not url or not key or not create_client:
        logger.info("Supabase not configured; backups stay local")
        return None
    try:
        return create_client(url, key)
    except Exception as e:
        logger.warning("Could not create Supabase client: %s", e)
        return None


def resume_table() -> str:
    return os.getenv("SUPABASE_RESUME_TABLE", "resumes")


def save_backup(sb: "Client", resume_id: str, document: Dict[str, Any]) -> Dict[str, Any]:
    """Upsert the enveloped document. If the table is missing this raises; the app reports it."""
    envelope = convert_to_extended_format(document)
    backup = envelope["$extensions"]["backup"]
    sb.table(resume_table()).upsert({
        "id": resume_id,
        "schema_version": envelope["$extensions"]["$schemaVersion"],
        "exported_at": backup["exportedAt"],
        "data": envelope,
    }).execute()
    return envelope


def load_backup(sb: "Client", resume_id: str) -> Optional[BackupImportResult]:
    res = sb.table(resume_table()).select("data").eq("id", resume_id).limit(1).execute()
    rows = res.data or []
    if not rows:
        return None
    data = rows[0].get("data")
    # jsonb comes back decoded; a text column does not
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except ValueError as e:
            logger.warning("Stored backup %s is not valid JSON: %s", resume_id, e)
            return BackupImportResult(None, False, False, None, errors=[f"Stored backup is not valid JSON: {e}"])
    return restore_backup(data)
