# streamlit_app.py – Student Portfolio & Certificate Tracker
# Portfolio cards and certificate checklist backed by a spreadsheet-style remote store

from __future__ import annotations

import asyncio
import logging
import sys
import uuid
from datetime import date
from pathlib import Path

# make src/ importable without installing the package
sys.path.insert(0, str(Path(__file__).parent / "src"))

import plotly.graph_objects as go
import streamlit as st

from portfolio_tracker.config import get_settings
from portfolio_tracker.errors import TrackerError
from portfolio_tracker.images import has_image
from portfolio_tracker.models import (
    ALL_CATEGORIES,
    CATEGORY_IDS,
    PortfolioDraft,
)
from portfolio_tracker.services import TrackerServices, build_services
from portfolio_tracker.views import CATEGORY_LABEL, card_header_html, image_source, quick_login_key

# Color constants
BG_CARD      = "#FFFFFF"
TEAL         = "#14B8A6"
BLUE         = "#0078D4"
GREEN        = "#107C41"
TEXT_MUTED   = "#616161"
BORDER       = "#E1DFDD"

logging.basicConfig(
    level=get_settings().app.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


# ─── Page config ─────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="Student Portfolio & Certificates",
    page_icon="🎓",
    layout="wide",
)

st.markdown(f"""
<style>
  [data-testid="stAppViewContainer"] {{ background: #F5F5F5; }}
  .pt-card {{
    background:{BG_CARD}; border:1px solid {BORDER}; border-left:4px solid {TEAL};
    border-radius:6px; padding:12px 16px; margin-bottom:6px;
  }}
  .pt-cat  {{ color:{TEXT_MUTED}; font-size:0.75rem; font-weight:600; text-transform:uppercase; }}
  .pt-date {{ color:{TEXT_MUTED}; font-size:0.75rem; }}
</style>
""", unsafe_allow_html=True)


# ─── Helpers ──────────────────────────────────────────────────────────────────

def _run(coro):
    """Drive one component coroutine to completion from a Streamlit callback."""
    return asyncio.run(coro)


def _client_id() -> str:
    """Per-browser id kept in the URL so saved identities stay with their browser."""
    cid = st.query_params.get("cid")
    if not cid:
        cid = uuid.uuid4().hex
        st.query_params["cid"] = cid
    return cid


def _services() -> TrackerServices:
    if "services" not in st.session_state:
        st.session_state["services"] = build_services(get_settings(), client_id=_client_id())
    return st.session_state["services"]


def _flush_notices(services: TrackerServices) -> None:
    for notice in services.notices.drain():
        st.toast(notice.message, icon=notice.icon)


def _attempt(coro) -> bool:
    """Run *coro*; failures were already posted as notices."""
    try:
        _run(coro)
    except TrackerError as exc:
        logging.getLogger(__name__).info("Action failed: %s", exc)
        return False
    return True


# ─── Sidebar: connection status ───────────────────────────────────────────────

services = _services()
settings = services.settings

with st.sidebar:
    st.markdown("### 🎓 Portfolio Tracker")
    for label, status in settings.status_summary().items():
        st.caption(f"**{label}** · {status}")
    st.divider()
    st.page_link("pages/1_Admin_Dashboard.py", label="Admin dashboard", icon="🔐")

st.title("🎓 Student Portfolio & Certificates")

tab_portfolio, tab_certs = st.tabs(["📁 Portfolio", "📜 Certificates"])


# ─── Portfolio tab ────────────────────────────────────────────────────────────

def _student_login(services: TrackerServices) -> None:
    with st.form("student_login"):
        name = st.text_input("Your name", placeholder="e.g. Kim Minji")
        submitted = st.form_submit_button("Start →", type="primary")
    if submitted and _attempt(services.session.login_student(name)):
        st.session_state.pop("portfolio_loaded_for", None)
        st.rerun()

    known = _run(services.session.known_students())
    if known:
        st.caption("Quick login")
        cols = st.columns(min(len(known), 6))
        for idx, student in enumerate(known[:12]):
            if cols[idx % len(cols)].button(student.name, key=quick_login_key(student, idx)):
                if _attempt(services.session.login_student(student.name)):
                    st.session_state.pop("portfolio_loaded_for", None)
                    st.rerun()


def _portfolio_form(services: TrackerServices) -> None:
    portfolio = services.portfolio
    edit_id = st.session_state.get("edit_id")
    draft = portfolio.edit_draft(edit_id) if edit_id else None
    if draft is None:
        edit_id, draft = None, PortfolioDraft(category=CATEGORY_IDS[0], title="", description="")

    with st.form("portfolio_form", clear_on_submit=True):
        st.markdown("#### ✏️ Edit project" if edit_id else "#### ➕ Add a project")
        category = st.selectbox(
            "Category", CATEGORY_IDS,
            index=CATEGORY_IDS.index(draft.category) if draft.category in CATEGORY_IDS else 0,
            format_func=lambda c: CATEGORY_LABEL[c],
        )
        title = st.text_input("Title", value=draft.title)
        description = st.text_area("How did it go?", value=draft.description)
        upload = st.file_uploader("Photo (max 5 MB)", type=["png", "jpg", "jpeg", "gif", "webp"])
        keep_image = bool(draft.image) and st.checkbox("Keep current photo", value=True)
        submitted = st.form_submit_button("Save", type="primary")

    if edit_id and st.button("Cancel editing"):
        st.session_state.pop("edit_id", None)
        st.rerun()

    if not submitted:
        return

    image = draft.image if keep_image else ""
    if upload is not None:
        try:
            image = _run(portfolio.attach_image(upload.getvalue()))
        except TrackerError:
            return
    new_draft = PortfolioDraft(category=category, title=title, description=description, image=image)
    if _attempt(portfolio.save(new_draft, edit_id=edit_id)):
        st.session_state.pop("edit_id", None)
        st.rerun()


def _portfolio_cards(services: TrackerServices) -> None:
    portfolio = services.portfolio
    options = [ALL_CATEGORIES] + CATEGORY_IDS
    choice = st.radio(
        "Filter", options, horizontal=True,
        index=options.index(portfolio.active_filter) if portfolio.active_filter in options else 0,
        format_func=lambda c: "🗂️ All" if c == ALL_CATEGORIES else CATEGORY_LABEL[c],
    )
    items = portfolio.filter(choice)
    if not items:
        st.info("No projects here yet. Add your first one above!")
        return

    pending_delete = st.session_state.get("confirm_delete")
    for item in items:
        with st.container():
            st.markdown(card_header_html(item), unsafe_allow_html=True)
            if has_image(item.image):
                st.image(image_source(item.image), width=360)
            st.write(item.description)
            c_edit, c_del, _ = st.columns([1, 1, 6])
            if c_edit.button("Edit", key=f"edit_{item.id}"):
                st.session_state["edit_id"] = item.id
                st.rerun()
            if c_del.button("Delete", key=f"del_{item.id}"):
                st.session_state["confirm_delete"] = item.id
                st.rerun()
            if pending_delete == item.id:
                st.warning("Delete this project permanently?")
                c_yes, c_no, _ = st.columns([1, 1, 6])
                if c_yes.button("Yes, delete", key=f"yes_{item.id}", type="primary"):
                    _attempt(portfolio.delete(item.id, confirm=lambda prompt: True))
                    st.session_state.pop("confirm_delete", None)
                    st.rerun()
                if c_no.button("Cancel", key=f"no_{item.id}"):
                    st.session_state.pop("confirm_delete", None)
                    st.rerun()


with tab_portfolio:
    owner = services.session.context.current_user
    if not owner:
        _student_login(services)
    else:
        head, out = st.columns([6, 1])
        head.subheader(f"📁 {owner}'s portfolio")
        if out.button("Log out", key="student_logout"):
            services.logout_student()
            st.session_state.pop("portfolio_loaded_for", None)
            st.session_state.pop("edit_id", None)
            st.rerun()

        if st.session_state.get("portfolio_loaded_for") != owner:
            _run(services.portfolio.load(owner))
            st.session_state["portfolio_loaded_for"] = owner

        _portfolio_form(services)
        st.divider()
        _portfolio_cards(services)


# ─── Certificates tab ────────────────────────────────────────────────────────

def _progress_gauge(percent: int) -> go.Figure:
    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=percent,
        number={"suffix": "%"},
        gauge={
            "axis": {"range": [0, 100]},
            "bar": {"color": TEAL},
            "steps": [{"range": [0, 100], "color": "#E6F7F5"}],
        },
    ))
    fig.update_layout(height=220, margin=dict(l=20, r=20, t=20, b=10))
    return fig


with tab_certs:
    tracker = services.certificates
    viewer = services.session.context.current_cert_user
    if not viewer:
        with st.form("cert_login"):
            name = st.text_input("Student name", placeholder="Whose certificates?")
            submitted = st.form_submit_button("Show certificates", type="primary")
        if submitted:
            try:
                services.session.login_cert_viewer(name)
            except TrackerError:
                pass
            else:
                st.session_state.pop("certs_loaded_for", None)
                st.rerun()
    else:
        head, out = st.columns([6, 1])
        head.subheader(f"📜 {viewer}'s certificates")
        if out.button("Change", key="cert_logout"):
            services.logout_cert_viewer()
            st.session_state.pop("certs_loaded_for", None)
            st.rerun()

        if st.session_state.get("certs_loaded_for") != viewer:
            _run(tracker.load(viewer))
            st.session_state["certs_loaded_for"] = viewer

        progress = tracker.progress()
        g_col, m_col = st.columns([2, 3])
        g_col.plotly_chart(_progress_gauge(progress.percent), use_container_width=True)
        m_col.metric("Obtained", f"{progress.obtained} / {progress.total}")
        m_col.progress(progress.percent / 100)
        m_col.caption(f"{progress.remaining} to go")

        for status in tracker.statuses:
            d = status.definition
            with st.container():
                c_info, c_date, c_btn = st.columns([5, 2, 2])
                mark = "✅" if status.obtained else "⬜"
                c_info.markdown(f"{mark} **{d['icon']} {d['name']}** · {d['label']}")
                c_info.caption(d["description"])
                if status.obtained:
                    c_date.caption(f"Obtained {status.obtained_date}")
                    if c_btn.button("Not obtained", key=f"cert_off_{d['name']}"):
                        _attempt(tracker.toggle(d["name"], True, record_id=status.record_id))
                        st.rerun()
                else:
                    when = c_date.date_input("Date", value=date.today(),
                                             key=f"cert_date_{d['name']}",
                                             label_visibility="collapsed")
                    if c_btn.button("Obtained!", key=f"cert_on_{d['name']}", type="primary"):
                        _attempt(tracker.toggle(d["name"], False, obtained_date=when.isoformat()))
                        st.rerun()


_flush_notices(services)
