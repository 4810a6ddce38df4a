"""
views.py – Display helpers shared by the Streamlit pages and the console demo.

Nothing here imports Streamlit; the pages pass the returned strings and
bytes straight to ``st.markdown`` / ``st.image`` / ``st.button``.
Every user-supplied value that lands in HTML goes through ``html.escape``.
"""

from __future__ import annotations

import base64
import html
from typing import Union

from portfolio_tracker.images import is_inline_image
from portfolio_tracker.models import PORTFOLIO_CATEGORIES, PortfolioItem, Student

CATEGORY_LABEL: dict[str, str] = {c["id"]: f'{c["icon"]} {c["label"]}' for c in PORTFOLIO_CATEGORIES}


def category_label(category: str) -> str:
    """Icon + label for known categories, the raw value otherwise."""
    return CATEGORY_LABEL.get(category, category or "—")


def card_header_html(item: PortfolioItem) -> str:
    created = item.created_at.strftime("%Y-%m-%d") if item.created_at else ""
    return f"""
    <div class="pt-card">
      <div class="pt-cat">{html.escape(category_label(item.category))}</div>
      <div style="font-size:1.05rem;font-weight:700;">{html.escape(item.title)}</div>
      <div class="pt-date">{created}</div>
    </div>"""


def quick_login_key(student: Student, index: int) -> str:
    """Widget key for a quick-login button; unique even without a record id."""
    return f"quick_{index}_{student.id or student.name}"


def image_source(value: str) -> Union[bytes, str]:
    """st.image takes URLs directly; inline data URIs are decoded first."""
    if is_inline_image(value):
        return base64.b64decode(value.split(",", 1)[1])
    return value
