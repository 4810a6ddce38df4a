"""
session.py – Session / identity cache
=====================================
Owns the ``SessionContext`` (who is the current student, who is viewing
certificates, is an admin token held) and mirrors it into the local durable
store so a reload restores the same actors.

Lifecycle
---------
  SessionCache(...)          created once at startup, context empty
  .restore()                 silent: reads the durable keys, no notices,
                             no remote calls
  .login_student(name)       ensures the student exists remotely, persists,
                             posts the welcome notice
  .login_cert_viewer(name)   persists, posts the "status loaded" notice
  .logout_*()                clears the active identity and its durable key

Every other component only *reads* ``session.context``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from portfolio_tracker.database import (
    KEY_ADMIN_TOKEN,
    KEY_CERT_VIEWER,
    KEY_STUDENT,
    LocalStore,
)
from portfolio_tracker.errors import StoreError, ValidationError
from portfolio_tracker.guardrails import IdentityGuardrails
from portfolio_tracker.models import Student
from portfolio_tracker.notices import NoticeBoard
from portfolio_tracker.store_client import RemoteStoreClient, StoreOperation

logger = logging.getLogger(__name__)


@dataclass
class SessionContext:
    current_user:      Optional[str] = None   # portfolio owner
    current_cert_user: Optional[str] = None   # certificate viewer
    admin_token:       Optional[str] = None

    @property
    def admin_authed(self) -> bool:
        return bool(self.admin_token)


class SessionCache:
    def __init__(self, client: RemoteStoreClient, local: LocalStore,
                 notices: NoticeBoard, page_limit: int = 100):
        self.client     = client
        self.local      = local
        self.notices    = notices
        self.page_limit = page_limit
        self._context   = SessionContext()
        self._guard     = IdentityGuardrails()

    @property
    def context(self) -> SessionContext:
        return self._context

    # ── restore ──────────────────────────────────────────────────────────────

    def restore(self) -> SessionContext:
        """Reload the saved identities.  Never posts a notice."""
        saved = self.local.all()
        self._context = SessionContext(
            current_user      = saved.get(KEY_STUDENT),
            current_cert_user = saved.get(KEY_CERT_VIEWER),
            admin_token       = saved.get(KEY_ADMIN_TOKEN),
        )
        logger.info(
            "Session restored for client %s: student=%s cert_viewer=%s admin=%s",
            self.local.client_id, self._context.current_user, self._context.current_cert_user,
            self._context.admin_authed,
        )
        return self._context

    # ── student ──────────────────────────────────────────────────────────────

    def _checked_name(self, name: str) -> str:
        result = self._guard.check_name(name)
        if result.blocked:
            self.notices.error(result.first_block.message)
            result.raise_if_blocked()
        return name.strip()

    async def login_student(self, name: str) -> SessionContext:
        name = self._checked_name(name)
        try:
            await self.client.call(StoreOperation.STUDENTS_ENSURE, {"name": name})
        except StoreError as exc:
            self.notices.error(f"Could not sign in {name}: {exc}")
            raise

        self._context.current_user = name
        self.local.set(KEY_STUDENT, name)
        logger.info("Student logged in: %s", name)
        self.notices.success(f"Welcome, {name}! 🎉")
        return self._context

    def logout_student(self) -> None:
        logger.info("Student logged out: %s", self._context.current_user)
        self._context.current_user = None
        self.local.delete(KEY_STUDENT)

    async def known_students(self, limit: Optional[int] = None) -> list[Student]:
        """Registered students for the quick-login list; [] when unreachable."""
        try:
            result = await self.client.call(
                StoreOperation.STUDENTS_LIST, {"limit": limit or self.page_limit},
            )
        except StoreError as exc:
            logger.warning("Student list unavailable: %s", exc)
            return []

        students: list[Student] = []
        for row in result["students"]:
            try:
                students.append(Student.model_validate(row))
            except PydanticValidationError:
                logger.debug("Skipping malformed student row: %r", row)
        return students

    # ── certificate viewer ───────────────────────────────────────────────────

    def login_cert_viewer(self, name: str) -> SessionContext:
        name = self._checked_name(name)
        self._context.current_cert_user = name
        self.local.set(KEY_CERT_VIEWER, name)
        logger.info("Certificate viewer logged in: %s", name)
        self.notices.info(f"Loaded certificate status for {name}.")
        return self._context

    def logout_cert_viewer(self) -> None:
        self._context.current_cert_user = None
        self.local.delete(KEY_CERT_VIEWER)

    # ── admin ────────────────────────────────────────────────────────────────

    def set_admin_token(self, token: str) -> None:
        if not token:
            raise ValidationError("Empty admin token.")
        self._context.admin_token = token
        self.local.set(KEY_ADMIN_TOKEN, token)

    def logout_admin(self) -> None:
        self._context.admin_token = None
        self.local.delete(KEY_ADMIN_TOKEN)
