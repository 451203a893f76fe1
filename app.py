import json
import logging
import os
import uuid
from typing import Any, Dict, List

import pandas as pd
import streamlit as st
from dotenv import load_dotenv

from importers.hr_open import export_hr_open_json
from importers.json_resume import ImportResult, load_resume_json
from importers.linkedin import parse_linkedin_zip
from resume.document import clear_non_conforming_data
from resume.envelope import export_backup_json, export_resume_as_json
from resume.schema import SECTION_FIELDS, empty_resume_data
from services.db import get_supabase, load_backup, save_backup

load_dotenv()
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# --- Page Config ---
st.set_page_config(
    page_title="Resume Import",
    page_icon="📄",
    layout="wide",
)

CUSTOM_CSS = """
<style>
:root { --radius: 16px; --ring: 1px solid rgba(255,255,255,0.06); }
.block-container { padding-top: 1.25rem; max-width: 1200px; }
.stepper { display:flex; gap:.5rem; margin-bottom: .75rem; }
.step { padding: .45rem .85rem; border-radius: 999px; font-weight: 700; opacity:.7; border: var(--ring); }
.step.active { opacity:1; background: linear-gradient(90deg, rgba(30,121,255,.25), rgba(139,92,246,.25)); }
[data-testid="stFileUploader"] { border-radius: var(--radius); border: var(--ring); }
.small { opacity: 0.75; font-size: 0.9rem; }
</style>
"""
st.markdown(CUSTOM_CSS, unsafe_allow_html=True)


# --- Session State ---
def _init_state():
    ss = st.session_state
    ss.setdefault("step", 1)
    ss.setdefault("resume_id", str(uuid.uuid4()))
    ss.setdefault("document", None)
    ss.setdefault("messages", [])
    ss.setdefault("has_errors", False)
    ss.setdefault("processed_files", [])
    ss.setdefault("sb", get_supabase())

_init_state()

STEPS = [(1, "Import"), (2, "Review"), (3, "Export")]

def stepper():
    st.markdown('<div class="stepper">', unsafe_allow_html=True)
    cols = st.columns(len(STEPS))
    for i, (num, label) in enumerate(STEPS):
        with cols[i]:
            cls = "step active" if st.session_state.step == num else "step"
            st.markdown(f"<div class='{cls}'> {num}. {label} </div>", unsafe_allow_html=True)
    st.markdown('</div>', unsafe_allow_html=True)

def _accept(document: Dict[str, Any], has_errors: bool, messages: List[str], processed: List[str]):
    ss = st.session_state
    ss.document = document
    ss.has_errors = has_errors
    ss.messages = messages
    ss.processed_files = processed
    ss.step = 2

# --- Step 1: Import ---
def step_import():
    st.subheader("1) Import your data")
    st.info("Upload a LinkedIn data export (.zip), a JSON Resume / HR Open file, or a backup made here.")
    file = st.file_uploader("Drop a file", type=["zip", "json"], accept_multiple_files=False)

    c1, c2 = st.columns(2)
    with c1:
        if st.button("Start from an empty resume"):
            _accept(empty_resume_data(), False, [], [])
    with c2:
        if st.session_state.sb and st.button("Load my saved backup"):
            try:
                restored = load_backup(st.session_state.sb, st.session_state.resume_id)
            except Exception as e:
                st.warning(f"Supabase load skipped: {e}")
                restored = None
            if restored is None:
                st.info("No saved backup yet.")
            elif not restored.is_valid:
                st.error("; ".join(restored.errors))
            else:
                _accept(restored.document, False, restored.warnings, [])

    if file is None:
        return

    if file.name.lower().endswith(".zip"):
        with st.spinner("Reading LinkedIn export…"):
            result = parse_linkedin_zip(file.getvalue())
        if result.has_errors and not result.processed_files:
            for msg in result.validation_errors:
                st.error(msg)
            return
        st.toast(f"Imported {len(result.processed_files)} file(s)", icon="✅")
        _accept(result.document, result.has_errors, result.validation_errors, result.processed_files)
    else:
        raw = file.getvalue()
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            text = raw.decode("latin-1", errors="ignore")
        imported: ImportResult = load_resume_json(text)
        _accept(imported.document, imported.has_errors, imported.validation_errors, [file.name])

# --- Step 2: Review ---
def step_review():
    st.subheader("2) Review")
    doc = st.session_state.document
    if not doc:
        st.info("Import something first.")
        return

    for msg in st.session_state.messages:
        (st.warning if st.session_state.has_errors else st.caption)(msg)
    if st.session_state.processed_files:
        st.caption("Processed: " + ", ".join(st.session_state.processed_files))

    basics = doc["basics"]
    st.markdown(f"### {basics.get('name') or '(no name)'}")
    st.markdown(f"<div class='small'>{basics.get('label', '')} · {basics.get('email', '')} · {basics['location'].get('city', '')}</div>", unsafe_allow_html=True)

    for section in SECTION_FIELDS:
        items = doc.get(section) or []
        if not items:
            continue
        with st.expander(f"{section.title()} ({len(items)})", expanded=section in ("work", "education")):
            st.dataframe(pd.DataFrame(items).astype(str), use_container_width=True, hide_index=True)

    _non_conforming(doc)

    if st.button("Continue →", type="primary"):
        st.session_state.step = 3

def _non_conforming(doc: Dict[str, Any]):
    bucket = doc.get("nonConformingData")
    if not bucket:
        return
    st.markdown("### Needs manual review")
    st.write("Some of the imported data could not be mapped. Nothing was dropped; it is kept here.")
    for err in bucket.get("parsingErrors") or []:
        st.markdown(f"- {err}")
    fields = bucket.get("invalidFields") or []
    if fields:
        st.dataframe(pd.DataFrame(fields).astype(str), use_container_width=True, hide_index=True)
    if bucket.get("rawText"):
        st.text_area("Raw input", bucket["rawText"], height=160)
    if st.button("Mark as reviewed"):
        st.session_state.document = clear_non_conforming_data(doc)
        st.toast("Cleared", icon="🧹")

# --- Step 3: Export ---
def step_export():
    st.subheader("3) Export")
    doc = st.session_state.document
    if not doc:
        st.info("Import something first.")
        return

    name = (doc["basics"].get("name") or "resume").replace(" ", "_")
    c1, c2, c3 = st.columns(3)
    with c1:
        st.download_button("Download backup (keeps visibility)", export_backup_json(doc),
                           file_name=f"{name}_backup.json", mime="application/json")
    with c2:
        st.download_button("Download JSON Resume", export_resume_as_json(doc),
                           file_name=f"{name}.json", mime="application/json")
    with c3:
        st.download_button("Download HR Open", export_hr_open_json(doc),
                           file_name=f"{name}_hropen.json", mime="application/json")

    if st.session_state.sb and st.button("Save backup to my account"):
        try:
            save_backup(st.session_state.sb, st.session_state.resume_id, doc)
            st.toast("Saved", icon="💾")
        except Exception as e:
            st.warning(f"Supabase upsert skipped: {e}")

    with st.expander("Backup preview", expanded=False):
        st.json(json.loads(export_backup_json(doc)))

# --- Router ---
stepper()

if st.session_state.step == 1:
    step_import()
elif st.session_state.step == 2:
    step_review()
else:
    step_export()
