"""
certificates.py – Certificate Status Tracker
============================================
Tracks obtained / not-obtained state for the fixed certificate catalog.

Domain rule: a remote record for (student, certificate) means *obtained*;
no record means *not obtained*.  There is no stored "false" state, so
un-obtaining a certificate deletes its record.

Each ``CertificateStatus`` carries an optional reference to that record.
Toggles are never applied locally: every toggle is a remote round trip
followed by a full reload.  Progress is always computed against the catalog
size, so stray remote records (unknown names, duplicates) never count.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from portfolio_tracker.errors import StoreError, ValidationError
from portfolio_tracker.guardrails import CertificateGuardrails
from portfolio_tracker.models import (
    CATALOG_SIZE,
    CERT_CATALOG,
    CertificateProgress,
    CertificateRecord,
    CertificateStatus,
)
from portfolio_tracker.notices import NoticeBoard
from portfolio_tracker.session import SessionCache
from portfolio_tracker.store_client import RemoteStoreClient, StoreOperation

logger = logging.getLogger(__name__)


def resolve_statuses(records: list[CertificateRecord]) -> list[CertificateStatus]:
    """Pair each catalog entry with the first record of the same name."""
    return [
        CertificateStatus(
            definition=cert,
            record=next((r for r in records if r.cert_name == cert["name"]), None),
        )
        for cert in CERT_CATALOG
    ]


class CertificateStatusTracker:
    def __init__(self, client: RemoteStoreClient, session: SessionCache,
                 notices: NoticeBoard, *, page_limit: int = 100,
                 today: Callable[[], date] = date.today):
        self.client     = client
        self.session    = session
        self.notices    = notices
        self.page_limit = page_limit
        self._today     = today
        self._guard     = CertificateGuardrails()
        self._statuses: list[CertificateStatus] = resolve_statuses([])

    @property
    def owner(self) -> Optional[str]:
        return self.session.context.current_cert_user

    @property
    def statuses(self) -> list[CertificateStatus]:
        return list(self._statuses)

    async def load(self, owner: Optional[str] = None) -> list[CertificateStatus]:
        owner = owner or self.owner
        records: list[CertificateRecord] = []
        if owner:
            try:
                result = await self.client.call(
                    StoreOperation.CERTS_LIST,
                    {"student_name": owner, "limit": self.page_limit},
                )
                rows = result["certificates"]
            except StoreError as exc:
                logger.warning("Certificate load failed for %s: %s", owner, exc)
                rows = []

            for row in rows:
                try:
                    record = CertificateRecord.model_validate(row)
                except PydanticValidationError:
                    logger.debug("Skipping malformed certificate row: %r", row)
                    continue
                if record.student_name == owner:
                    records.append(record)

        self._statuses = resolve_statuses(records)
        return self.statuses

    def reset(self) -> None:
        self._statuses = resolve_statuses([])

    def status(self, cert_name: str) -> Optional[CertificateStatus]:
        return next((s for s in self._statuses if s.name == cert_name), None)

    def progress(self) -> CertificateProgress:
        obtained = sum(1 for s in self._statuses if s.obtained)
        return CertificateProgress(obtained=obtained, total=CATALOG_SIZE)

    async def toggle(self, cert_name: str, currently_obtained: bool,
                     record_id: Optional[str] = None,
                     obtained_date: Optional[str] = None) -> list[CertificateStatus]:
        """Flip one certificate via the store, then reload every status."""
        owner = self.owner
        obtained_date = (obtained_date or "").strip()

        check = self._guard.check_toggle(cert_name, obtained_date)
        if check.blocked:
            self.notices.error(check.first_block.message)
            check.raise_if_blocked()
        if not owner:
            self.notices.error("Enter a student name to track certificates.")
            raise ValidationError("No active certificate viewer.")

        try:
            if currently_obtained and record_id:
                await self.client.call(StoreOperation.CERTS_DELETE, {"id": record_id})
                message = f"{cert_name} marked as not obtained."
            else:
                await self.client.call(StoreOperation.CERTS_UPSERT, {
                    "student_name":  owner,
                    "cert_name":     cert_name,
                    "obtained":      True,
                    "obtained_date": obtained_date or self._today().isoformat(),
                })
                message = f"🎉 Congratulations on obtaining {cert_name}!"
        except StoreError as exc:
            self.notices.error(f"Could not update {cert_name}: {exc}")
            raise

        logger.info("Certificate %s toggled for %s", cert_name, owner)
        self.notices.success(message)
        return await self.load(owner)
