"""
guardrails.py – Local input guardrails
======================================
Every write is checked here before the Remote Store Client is touched.
A BLOCK violation stops the operation locally: no request is sent.

Guardrail levels
----------------
BLOCK   – Hard-stop: the operation does not proceed.
WARN    – Soft-stop: the operation proceeds with a visible warning.
INFO    – Advisory: informational note only.

Guards implemented
------------------
Identity guards (session login):
  G-01  Name must be non-empty after trimming

Portfolio guards (before save):
  G-02  Category selected
  G-03  Title non-empty after trimming
  G-04  Description non-empty after trimming
  G-05  Unknown category (accepted, WARN)
  G-06  Active student required

Image guards (before any decode):
  G-07  Uploaded file at most 5 MiB

Certificate guards (before toggle):
  G-08  Certificate name is in the fixed catalog
  G-09  Obtained date, when given, is YYYY-MM-DD
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from portfolio_tracker.errors import ValidationError
from portfolio_tracker.models import CATEGORY_IDS, PortfolioDraft, get_cert_definition


# ─── Enums & data models ─────────────────────────────────────────────────────

class GuardrailLevel(str, Enum):
    BLOCK = "BLOCK"
    WARN  = "WARN"
    INFO  = "INFO"


@dataclass
class GuardrailViolation:
    code:    str
    level:   GuardrailLevel
    message: str
    field:   str = ""   # which field triggered the violation


@dataclass
class GuardrailResult:
    passed:     bool
    violations: list[GuardrailViolation] = field(default_factory=list)

    @property
    def blocked(self) -> bool:
        return any(v.level == GuardrailLevel.BLOCK for v in self.violations)

    @property
    def warnings(self) -> list[GuardrailViolation]:
        return [v for v in self.violations if v.level == GuardrailLevel.WARN]

    @property
    def first_block(self) -> Optional[GuardrailViolation]:
        return next((v for v in self.violations if v.level == GuardrailLevel.BLOCK), None)

    def summary(self) -> str:
        if not self.violations:
            return "✅ All guardrails passed."
        lines = [f"{'🚫' if v.level == GuardrailLevel.BLOCK else '⚠️' if v.level == GuardrailLevel.WARN else 'ℹ️'} [{v.code}] {v.message}" for v in self.violations]
        return "\n".join(lines)

    def raise_if_blocked(self) -> None:
        """Raise ValidationError carrying this result when any rule blocks."""
        block = self.first_block
        if block is not None:
            raise ValidationError(block.message, result=self)


def _result(violations: list[GuardrailViolation]) -> GuardrailResult:
    return GuardrailResult(
        passed=not any(v.level == GuardrailLevel.BLOCK for v in violations),
        violations=violations,
    )


# ─── Constants ────────────────────────────────────────────────────────────────

MAX_UPLOAD_BYTES = 5 * 1024 * 1024

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# ─── Identity guardrails ─────────────────────────────────────────────────────

class IdentityGuardrails:
    """G-01: checks run before a student or certificate viewer logs in."""

    def check_name(self, name: str) -> GuardrailResult:
        violations: list[GuardrailViolation] = []
        if not (name or "").strip():
            violations.append(GuardrailViolation(
                code="G-01", level=GuardrailLevel.BLOCK, field="name",
                message="Please enter your name.",
            ))
        return _result(violations)


# ─── Portfolio guardrails ────────────────────────────────────────────────────

class PortfolioGuardrails:
    """G-02 … G-07: checks run before a portfolio item or image is accepted."""

    def check_draft(self, draft: PortfolioDraft, owner: Optional[str]) -> GuardrailResult:
        violations: list[GuardrailViolation] = []

        # G-06
        if not owner:
            violations.append(GuardrailViolation(
                code="G-06", level=GuardrailLevel.BLOCK, field="student_name",
                message="Log in as a student before saving a project.",
            ))

        # G-02 / G-05
        if not draft.category:
            violations.append(GuardrailViolation(
                code="G-02", level=GuardrailLevel.BLOCK, field="category",
                message="Please choose a category.",
            ))
        elif draft.category not in CATEGORY_IDS:
            violations.append(GuardrailViolation(
                code="G-05", level=GuardrailLevel.WARN, field="category",
                message=f"Category '{draft.category}' is not one of the standard categories.",
            ))

        # G-03
        if not (draft.title or "").strip():
            violations.append(GuardrailViolation(
                code="G-03", level=GuardrailLevel.BLOCK, field="title",
                message="Please enter a project title.",
            ))

        # G-04
        if not (draft.description or "").strip():
            violations.append(GuardrailViolation(
                code="G-04", level=GuardrailLevel.BLOCK, field="description",
                message="Please describe how the project went.",
            ))

        return _result(violations)

    def check_upload_size(self, size_bytes: int) -> GuardrailResult:
        violations: list[GuardrailViolation] = []
        if size_bytes > MAX_UPLOAD_BYTES:
            violations.append(GuardrailViolation(
                code="G-07", level=GuardrailLevel.BLOCK, field="image",
                message=(
                    f"Image is {size_bytes / (1024 * 1024):.1f} MB; "
                    "files must be 5 MB or smaller."
                ),
            ))
        return _result(violations)


# ─── Certificate guardrails ──────────────────────────────────────────────────

class CertificateGuardrails:
    """G-08 / G-09: checks run before a certificate toggle is sent."""

    def check_toggle(self, cert_name: str, obtained_date: Optional[str]) -> GuardrailResult:
        violations: list[GuardrailViolation] = []

        if get_cert_definition(cert_name) is None:
            violations.append(GuardrailViolation(
                code="G-08", level=GuardrailLevel.BLOCK, field="cert_name",
                message=f"'{cert_name}' is not a tracked certificate.",
            ))

        if obtained_date:
            valid = bool(_ISO_DATE.match(obtained_date))
            if valid:
                try:
                    date.fromisoformat(obtained_date)
                except ValueError:
                    valid = False
            if not valid:
                violations.append(GuardrailViolation(
                    code="G-09", level=GuardrailLevel.BLOCK, field="obtained_date",
                    message=f"Obtained date '{obtained_date}' must look like 2026-03-15.",
                ))

        return _result(violations)
