"""
portfolio.py – Portfolio Collection Manager
===========================================
Holds the active student's portfolio items and keeps them in line with the
remote store by *optimistic refresh*: every successful write is followed by
a full reload, never by patching the cached list.

  load(owner)               newest first; remote errors → [] (never raised)
  save(draft, edit_id)      create, or full replace of an existing item
  delete(item_id, confirm)  only after confirm(prompt) returns True
  filter(category)          view over the cache; "all" returns everything
  attach_image(raw_bytes)   size check → downscale → data URI / hosted URL

The store is not trusted to scope results: rows whose ``student_name`` is
not exactly the owner are dropped after every load.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from portfolio_tracker.errors import ConfirmationDeclined, StoreError, ValidationError
from portfolio_tracker.guardrails import PortfolioGuardrails
from portfolio_tracker.images import prepare_image
from portfolio_tracker.models import ALL_CATEGORIES, PortfolioDraft, PortfolioItem
from portfolio_tracker.notices import NoticeBoard
from portfolio_tracker.session import SessionCache
from portfolio_tracker.store_client import RemoteStoreClient, StoreOperation

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[str], bool]


def confirm_action(confirm: ConfirmFn, prompt: str) -> bool:
    """Ask *confirm*; a False answer or ConfirmationDeclined both mean no."""
    try:
        return bool(confirm(prompt))
    except ConfirmationDeclined:
        return False


def newest_first(items: list[PortfolioItem]) -> list[PortfolioItem]:
    """Sort by created_at descending; undated items go last, order kept."""
    return sorted(
        items,
        key=lambda i: (i.created_at is None,
                       -i.created_at.timestamp() if i.created_at else 0.0),
    )


class PortfolioCollectionManager:
    """In-memory portfolio cache for the current student."""

    def __init__(self, client: RemoteStoreClient, session: SessionCache,
                 notices: NoticeBoard, *, image_hosting: bool = False,
                 page_limit: int = 100):
        self.client        = client
        self.session       = session
        self.notices       = notices
        self.image_hosting = image_hosting
        self.page_limit    = page_limit
        self.active_filter = ALL_CATEGORIES
        self._items: list[PortfolioItem] = []
        self._guard = PortfolioGuardrails()

    @property
    def owner(self) -> Optional[str]:
        return self.session.context.current_user

    @property
    def items(self) -> list[PortfolioItem]:
        return list(self._items)

    # ── reads ────────────────────────────────────────────────────────────────

    async def load(self, owner: Optional[str] = None) -> list[PortfolioItem]:
        owner = owner or self.owner
        if not owner:
            self._items = []
            return []

        try:
            result = await self.client.call(
                StoreOperation.PORTFOLIOS_LIST,
                {"student_name": owner, "limit": self.page_limit},
            )
        except StoreError as exc:
            logger.warning("Portfolio load failed for %s: %s", owner, exc)
            self._items = []
            return []

        items: list[PortfolioItem] = []
        for row in result["portfolios"]:
            try:
                item = PortfolioItem.model_validate(row)
            except PydanticValidationError:
                logger.debug("Skipping malformed portfolio row: %r", row)
                continue
            if item.student_name == owner:
                items.append(item)

        dropped = len(result["portfolios"]) - len(items)
        if dropped:
            logger.debug("Dropped %d portfolio rows not owned by %s", dropped, owner)

        self._items = newest_first(items)
        return self.items

    def find(self, item_id: str) -> Optional[PortfolioItem]:
        return next((i for i in self._items if i.id == item_id), None)

    def filter(self, category: str = ALL_CATEGORIES) -> list[PortfolioItem]:
        """Select the category to show and return the matching cached items."""
        self.active_filter = category or ALL_CATEGORIES
        return self.visible()

    def visible(self) -> list[PortfolioItem]:
        if self.active_filter == ALL_CATEGORIES:
            return list(self._items)
        return [i for i in self._items if i.category == self.active_filter]

    def edit_draft(self, item_id: str) -> Optional[PortfolioDraft]:
        """Pre-filled form values for editing a cached item."""
        item = self.find(item_id)
        if item is None:
            return None
        return PortfolioDraft(
            category=item.category, title=item.title,
            description=item.description, image=item.image,
        )

    def reset(self) -> None:
        self._items = []
        self.active_filter = ALL_CATEGORIES

    # ── writes ───────────────────────────────────────────────────────────────

    async def save(self, draft: PortfolioDraft,
                   edit_id: Optional[str] = None) -> list[PortfolioItem]:
        owner = self.owner
        check = self._guard.check_draft(draft, owner)
        if check.warnings:
            logger.info("Draft accepted with warnings:\n%s", check.summary())
        if check.blocked:
            self.notices.error(check.first_block.message)
            check.raise_if_blocked()

        payload = draft.to_payload(owner)
        try:
            if edit_id:
                await self.client.call(StoreOperation.PORTFOLIOS_UPDATE, {"id": edit_id, **payload})
            else:
                await self.client.call(StoreOperation.PORTFOLIOS_CREATE, payload)
        except StoreError as exc:
            self.notices.error(f"Could not save the project: {exc}")
            raise

        logger.info("Portfolio %s for %s", "updated" if edit_id else "created", owner)
        self.notices.success("Project updated! ✏️" if edit_id else "Project added! 🎉")
        return await self.load(owner)

    async def delete(self, item_id: str, confirm: ConfirmFn) -> bool:
        """Delete after confirmation.  Returns False when the user declines."""
        if not confirm_action(confirm, "Delete this project permanently?"):
            logger.debug("Delete of %s declined", item_id)
            return False

        try:
            await self.client.call(StoreOperation.PORTFOLIOS_DELETE, {"id": item_id})
        except StoreError as exc:
            self.notices.error(f"Could not delete the project: {exc}")
            raise

        self.notices.info("Project deleted.")
        await self.load()
        return True

    # ── images ───────────────────────────────────────────────────────────────

    async def attach_image(self, raw: bytes) -> str:
        """Turn an uploaded file into the value stored in ``PortfolioItem.image``."""
        try:
            prepared = prepare_image(raw)
        except ValidationError as exc:
            self.notices.error(exc.message)
            raise

        if not self.image_hosting:
            return prepared.data_uri

        if not self.owner:
            self.notices.error("Log in as a student before uploading images.")
            raise ValidationError("No active student for image upload.")
        try:
            result = await self.client.call(
                StoreOperation.IMAGES_UPLOAD,
                {"student_name": self.owner, "data_uri": prepared.data_uri},
            )
        except StoreError as exc:
            self.notices.error(f"Image upload failed: {exc}")
            raise
        return result["url"]
