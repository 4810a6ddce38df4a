"""
Data models for the Portfolio & Certificate Tracker.

Records arrive from two transports that disagree on field names
(``student`` vs ``student_name``, ``image_data`` vs ``image``, ``cert`` vs
``cert_name``); the models accept both spellings and always dump the
canonical one.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# ─── Portfolio categories ────────────────────────────────────────────────────

# Sentinel understood by PortfolioCollectionManager.filter(): no filtering.
ALL_CATEGORIES = "all"

PORTFOLIO_CATEGORIES: list[dict] = [
    {"id": "project",     "label": "Project",      "icon": "🛠️"},
    {"id": "circuit",     "label": "Circuit",      "icon": "🔌"},
    {"id": "coding",      "label": "Coding",       "icon": "💻"},
    {"id": "competition", "label": "Competition",  "icon": "🏆"},
    {"id": "certificate", "label": "Certificate",  "icon": "📜"},
    {"id": "activity",    "label": "Activity",     "icon": "🤝"},
]

CATEGORY_IDS = [c["id"] for c in PORTFOLIO_CATEGORIES]


# ─── Certificate catalog ─────────────────────────────────────────────────────

# Fixed catalog.  ``name`` is the identity key stored remotely and matched
# exactly; ``label`` and ``description`` are display-only.

CERT_CATALOG: list[dict] = [
    {
        "name":        "전자캐드기능사",
        "label":       "Electronic CAD Craftsman",
        "icon":        "📐",
        "description": "Certifies electronic circuit CAD design skills.",
    },
    {
        "name":        "전자기능사",
        "label":       "Electronics Craftsman",
        "icon":        "⚡",
        "description": "Hands-on basics of electronic parts and circuits.",
    },
    {
        "name":        "임베디드기능사",
        "label":       "Embedded Systems Craftsman",
        "icon":        "🔧",
        "description": "Certifies embedded system development skills.",
    },
    {
        "name":        "전기기능사",
        "label":       "Electrical Craftsman",
        "icon":        "🔌",
        "description": "Installation and maintenance of electrical equipment.",
    },
    {
        "name":        "프로그래밍기능사",
        "label":       "Programming Craftsman",
        "icon":        "💻",
        "description": "Certifies software programming skills.",
    },
    {
        "name":        "컴퓨터활용능력",
        "label":       "Computer Literacy",
        "icon":        "🖥️",
        "description": "Computer usage and data processing skills.",
    },
    {
        "name":        "ITQ",
        "label":       "Information Technology Qualification",
        "icon":        "📄",
        "description": "Word processor, spreadsheet and presentation skills.",
    },
]

CERT_NAMES = [c["name"] for c in CERT_CATALOG]
CATALOG_SIZE = len(CERT_CATALOG)


def get_cert_definition(cert_name: str) -> Optional[dict]:
    """Return the catalog entry for *cert_name* (exact match), or None."""
    return next((c for c in CERT_CATALOG if c["name"] == cert_name), None)


# ─── Remote records ──────────────────────────────────────────────────────────

class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("id", mode="before", check_fields=False)
    @classmethod
    def _id_to_str(cls, v):
        # spreadsheet rows sometimes carry numeric ids
        return str(v) if v is not None else v


class Student(_Record):
    id:   Optional[str] = None   # not every store returns one
    name: str


class PortfolioItem(_Record):
    id:           str
    student_name: str = Field(validation_alias=AliasChoices("student_name", "student"))
    category:     str = ""
    title:        str = ""
    description:  str = ""
    image:        str = Field(default="", validation_alias=AliasChoices("image", "image_data"))
    created_at:   Optional[datetime] = None

    @field_validator("image", mode="before")
    @classmethod
    def _none_image_is_empty(cls, v):
        return v or ""

    @field_validator("created_at", mode="before")
    @classmethod
    def _blank_timestamp_is_none(cls, v):
        return v if v not in ("", 0) else None


class CertificateRecord(_Record):
    id:            str
    student_name:  str = Field(validation_alias=AliasChoices("student_name", "student"))
    cert_name:     str = Field(validation_alias=AliasChoices("cert_name", "cert"))
    obtained:      bool = True
    obtained_date: str = ""

    @field_validator("obtained_date", mode="before")
    @classmethod
    def _date_to_str(cls, v):
        if v is None:
            return ""
        # sheets hand back full timestamps for date cells
        return str(v)[:10]


# ─── Client-side inputs and views ────────────────────────────────────────────

@dataclass
class PortfolioDraft:
    """What the add/edit form collects before it is validated and saved."""
    category:    str
    title:       str
    description: str
    image:       str = ""   # data URI, hosted URL, or "" for no image

    def to_payload(self, student_name: str) -> dict:
        return {
            "student_name": student_name,
            "category":     self.category,
            "title":        self.title.strip(),
            "description":  self.description.strip(),
            "image":        self.image,
        }


@dataclass
class CertificateStatus:
    """One catalog certificate paired with the student's record, if any."""
    definition: dict
    record:     Optional[CertificateRecord] = None

    @property
    def name(self) -> str:
        return self.definition["name"]

    @property
    def obtained(self) -> bool:
        # a record means obtained, whatever its flag says
        return self.record is not None

    @property
    def obtained_date(self) -> str:
        return self.record.obtained_date if self.record is not None else ""

    @property
    def record_id(self) -> Optional[str]:
        return self.record.id if self.record is not None else None


@dataclass
class CertificateProgress:
    obtained: int
    total:    int

    @property
    def remaining(self) -> int:
        return self.total - self.obtained

    @property
    def percent(self) -> int:
        return round(100 * self.obtained / self.total) if self.total else 0
