"""
admin.py – Admin console
========================
Cross-student view used by the Admin Dashboard page.

  login(password)              admin.login → token kept in the session
  refresh()                    portfolios + certificates, fetched concurrently
  delete_portfolio(id, confirm)
  export(kind)                 server-built CSV, returned as bytes
  category_counts()            per-category totals of the last refresh
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from portfolio_tracker.errors import ProtocolError, StoreError, ValidationError
from portfolio_tracker.models import CertificateRecord, PortfolioItem
from portfolio_tracker.notices import NoticeBoard
from portfolio_tracker.portfolio import ConfirmFn, confirm_action, newest_first
from portfolio_tracker.session import SessionCache
from portfolio_tracker.store_client import RemoteStoreClient, StoreOperation

logger = logging.getLogger(__name__)

EXPORT_KINDS = ("portfolios", "certificates")


@dataclass
class AdminSnapshot:
    portfolios:   list[PortfolioItem]     = field(default_factory=list)
    certificates: list[CertificateRecord] = field(default_factory=list)

    @property
    def student_names(self) -> list[str]:
        names = {p.student_name for p in self.portfolios}
        names.update(c.student_name for c in self.certificates)
        return sorted(names)


class AdminConsole:
    def __init__(self, client: RemoteStoreClient, session: SessionCache,
                 notices: NoticeBoard, page_limit: int = 100):
        self.client     = client
        self.session    = session
        self.notices    = notices
        self.page_limit = page_limit
        self.snapshot   = AdminSnapshot()

    @property
    def token(self) -> Optional[str]:
        return self.session.context.admin_token

    def _require_token(self) -> str:
        if not self.token:
            raise ValidationError("Admin login required.")
        return self.token

    async def login(self, password: str) -> None:
        try:
            result = await self.client.call(StoreOperation.ADMIN_LOGIN, {"password": password})
        except ValidationError:
            self.notices.error("Please enter the admin password.")
            raise
        except StoreError as exc:
            self.notices.error(f"Admin login failed: {exc}")
            raise
        self.session.set_admin_token(result["token"])
        logger.info("Admin logged in")
        self.notices.success("Admin dashboard unlocked.")

    def logout(self) -> None:
        self.session.logout_admin()
        self.snapshot = AdminSnapshot()

    async def _read(self, operation: StoreOperation, key: str,
                    model: type[BaseModel]) -> list:
        try:
            result = await self.client.call(
                operation, {"limit": self.page_limit}, token=self._require_token(),
            )
        except StoreError as exc:
            logger.warning("%s unavailable: %s", operation.value, exc)
            return []
        rows = []
        for row in result[key]:
            try:
                rows.append(model.model_validate(row))
            except PydanticValidationError:
                logger.debug("Skipping malformed %s row: %r", key, row)
        return rows

    async def refresh(self) -> AdminSnapshot:
        """Reload both collections; they are disjoint, so fetch them together."""
        self._require_token()
        portfolios, certificates = await asyncio.gather(
            self._read(StoreOperation.ADMIN_PORTFOLIOS_LIST, "portfolios", PortfolioItem),
            self._read(StoreOperation.ADMIN_CERTS_LIST, "certificates", CertificateRecord),
        )
        self.snapshot = AdminSnapshot(
            portfolios=newest_first(portfolios), certificates=certificates,
        )
        return self.snapshot

    async def delete_portfolio(self, item_id: str, confirm: ConfirmFn) -> bool:
        if not confirm_action(confirm, "Delete this student's project permanently?"):
            return False
        try:
            await self.client.call(
                StoreOperation.ADMIN_PORTFOLIOS_DELETE, {"id": item_id},
                token=self._require_token(),
            )
        except StoreError as exc:
            self.notices.error(f"Could not delete the project: {exc}")
            raise
        self.notices.info("Project deleted.")
        await self.refresh()
        return True

    async def export(self, kind: str) -> bytes:
        """Download the server-built CSV for *kind* (portfolios | certificates)."""
        if kind not in EXPORT_KINDS:
            raise ValidationError(f"Unknown export kind: {kind!r}")
        try:
            result = await self.client.call(
                StoreOperation.ADMIN_EXPORT, {"kind": kind}, token=self._require_token(),
            )
            return base64.b64decode(result["csv_base64"], validate=True)
        except binascii.Error as exc:
            self.notices.error("Export failed: the server sent an unreadable file.")
            raise ProtocolError("admin.export returned invalid base64") from exc
        except StoreError as exc:
            self.notices.error(f"Export failed: {exc}")
            raise

    def category_counts(self) -> dict[str, int]:
        return dict(Counter(p.category or "uncategorised" for p in self.snapshot.portfolios))
