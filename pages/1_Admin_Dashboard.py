"""
pages/1_Admin_Dashboard.py – Admin-only overview of every student's data.

Lists all portfolio items and certificate records, charts projects per
category, deletes items and downloads the server-built CSV exports.
Protected by the store's admin.login (rpc transport only).
"""

from __future__ import annotations

import asyncio
import sys
import uuid
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pandas as pd
import plotly.express as px
import streamlit as st

from portfolio_tracker.config import TRANSPORT_RPC, get_settings
from portfolio_tracker.errors import TrackerError
from portfolio_tracker.models import PORTFOLIO_CATEGORIES
from portfolio_tracker.services import TrackerServices, build_services

# ─── Page config ─────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="Admin Dashboard – Portfolio Tracker",
    page_icon="🔐",
    layout="wide",
)

# ─── Theme constants ──────────────────────────────────────────────────────────
CARD_BG = "#FFFFFF"
BLUE    = "#0078D4"
TEAL    = "#14B8A6"
GREEN   = "#107C10"
GREY    = "#616161"

CATEGORY_LABEL = {c["id"]: c["label"] for c in PORTFOLIO_CATEGORIES}


# ─── Helpers ──────────────────────────────────────────────────────────────────

def _card(label: str, value: str, color: str = BLUE) -> str:
    return f"""
    <div style="background:{CARD_BG};border-left:4px solid {color};border-radius:4px;
                padding:10px 16px;min-width:160px;margin-bottom:8px;
                border:1px solid #E1DFDD;box-shadow:0 1px 2px rgba(0,0,0,0.04);">
      <div style="color:{GREY};font-size:0.7rem;font-weight:600;text-transform:uppercase;
                  letter-spacing:.06em;margin-bottom:3px;">{label}</div>
      <div style="color:#1B1B1B;font-size:1.2rem;font-weight:700;">{value}</div>
    </div>"""


def _run(coro):
    return asyncio.run(coro)


def _client_id() -> str:
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


services = _services()
admin = services.admin

st.title("🔐 Admin Dashboard")

if services.settings.store.transport != TRANSPORT_RPC:
    st.warning("The admin dashboard needs the rpc store transport (STORE_TRANSPORT=rpc).")
    st.stop()


# ─── Login gate ───────────────────────────────────────────────────────────────

if not services.session.context.admin_authed:
    with st.form("admin_login"):
        password = st.text_input("Admin password", type="password")
        submitted = st.form_submit_button("Unlock", type="primary")
    if submitted:
        try:
            _run(admin.login(password))
        except TrackerError:
            pass
        else:
            st.session_state["admin_refresh"] = True
            st.rerun()
    _flush_notices(services)
    st.stop()


c_refresh, c_logout, _ = st.columns([1, 1, 6])
if c_refresh.button("🔄 Refresh"):
    st.session_state["admin_refresh"] = True
if c_logout.button("Log out"):
    admin.logout()
    st.rerun()

if st.session_state.pop("admin_refresh", False) or not admin.snapshot.portfolios:
    _run(admin.refresh())

snapshot = admin.snapshot


# ─── Overview cards ───────────────────────────────────────────────────────────

m1, m2, m3 = st.columns(3)
m1.markdown(_card("Students", str(len(snapshot.student_names)), BLUE), unsafe_allow_html=True)
m2.markdown(_card("Projects", str(len(snapshot.portfolios)), TEAL), unsafe_allow_html=True)
m3.markdown(_card("Certificates", str(len(snapshot.certificates)), GREEN), unsafe_allow_html=True)

counts = admin.category_counts()
if counts:
    df_counts = pd.DataFrame(
        [{"category": CATEGORY_LABEL.get(k, k), "projects": v} for k, v in counts.items()]
    ).sort_values("projects", ascending=False)
    fig = px.bar(df_counts, x="category", y="projects", color_discrete_sequence=[TEAL])
    fig.update_layout(height=300, margin=dict(l=10, r=10, t=30, b=10), title="Projects per category")
    st.plotly_chart(fig, use_container_width=True)


# ─── Portfolios ───────────────────────────────────────────────────────────────

st.subheader("📁 Portfolios")
if snapshot.portfolios:
    df_p = pd.DataFrame([
        {
            "id":       p.id,
            "student":  p.student_name,
            "category": CATEGORY_LABEL.get(p.category, p.category),
            "title":    p.title,
            "created":  p.created_at.strftime("%Y-%m-%d %H:%M") if p.created_at else "",
            "image":    "yes" if p.image else "",
        }
        for p in snapshot.portfolios
    ])
    st.dataframe(df_p, use_container_width=True, hide_index=True)

    with st.expander("🗑️ Delete a project"):
        target = st.selectbox(
            "Project", [p.id for p in snapshot.portfolios],
            format_func=lambda pid: next(
                f"{p.student_name} · {p.title}" for p in snapshot.portfolios if p.id == pid
            ),
        )
        sure = st.checkbox("I understand this cannot be undone")
        if st.button("Delete", type="primary", disabled=not sure):
            try:
                _run(admin.delete_portfolio(target, confirm=lambda prompt: sure))
            except TrackerError:
                pass
            st.rerun()
else:
    st.info("No portfolio items yet.")


# ─── Certificates ─────────────────────────────────────────────────────────────

st.subheader("📜 Certificates")
if snapshot.certificates:
    df_c = pd.DataFrame([
        {"id": c.id, "student": c.student_name, "certificate": c.cert_name,
         "obtained": c.obtained_date}
        for c in snapshot.certificates
    ])
    st.dataframe(df_c, use_container_width=True, hide_index=True)

    per_student = df_c.groupby("student").size().reset_index(name="certificates")
    fig_c = px.bar(per_student, x="student", y="certificates", color_discrete_sequence=[GREEN])
    fig_c.update_layout(height=260, margin=dict(l=10, r=10, t=30, b=10), title="Certificates per student")
    st.plotly_chart(fig_c, use_container_width=True)
else:
    st.info("No certificate records yet.")


# ─── Export ───────────────────────────────────────────────────────────────────

st.subheader("⬇️ Export")
e1, e2 = st.columns(2)
for col, kind in ((e1, "portfolios"), (e2, "certificates")):
    if col.button(f"Prepare {kind}.csv", key=f"prep_{kind}"):
        try:
            st.session_state[f"export_{kind}"] = _run(admin.export(kind))
        except TrackerError:
            st.session_state.pop(f"export_{kind}", None)
    data = st.session_state.get(f"export_{kind}")
    if data:
        col.download_button(
            f"Download {kind}.csv", data=data,
            file_name=f"{kind}.csv", mime="text/csv", key=f"dl_{kind}",
        )

_flush_notices(services)
