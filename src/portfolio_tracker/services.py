"""
services.py – wires the components together for one front end instance.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from portfolio_tracker.admin import AdminConsole
from portfolio_tracker.certificates import CertificateStatusTracker
from portfolio_tracker.config import Settings
from portfolio_tracker.database import DEFAULT_CLIENT_ID, LocalStore
from portfolio_tracker.notices import Notice, NoticeBoard
from portfolio_tracker.portfolio import PortfolioCollectionManager
from portfolio_tracker.session import SessionCache
from portfolio_tracker.store_client import RemoteStoreClient


@dataclass
class TrackerServices:
    settings:     Settings
    client:       RemoteStoreClient
    local:        LocalStore
    notices:      NoticeBoard
    session:      SessionCache
    portfolio:    PortfolioCollectionManager
    certificates: CertificateStatusTracker
    admin:        AdminConsole

    def logout_student(self) -> None:
        self.session.logout_student()
        self.portfolio.reset()

    def logout_cert_viewer(self) -> None:
        self.session.logout_cert_viewer()
        self.certificates.reset()


def build_services(settings: Settings,
                   http_transport: Optional[httpx.AsyncBaseTransport] = None,
                   on_notice: Optional[Callable[[Notice], None]] = None,
                   client_id: str = DEFAULT_CLIENT_ID) -> TrackerServices:
    """Create every component and restore *client_id*'s saved session (silently).

    Each browser gets its own ``client_id`` so saved identities never leak
    between visitors sharing the same server.
    """
    limit   = settings.store.page_limit
    client  = RemoteStoreClient.from_settings(settings.store, http_transport=http_transport)
    local   = LocalStore(settings.cache.db_path, client_id=client_id)
    notices = NoticeBoard(listener=on_notice)
    session = SessionCache(client, local, notices, page_limit=limit)
    session.restore()

    return TrackerServices(
        settings     = settings,
        client       = client,
        local        = local,
        notices      = notices,
        session      = session,
        portfolio    = PortfolioCollectionManager(
            client, session, notices,
            image_hosting=settings.store.image_hosting, page_limit=limit,
        ),
        certificates = CertificateStatusTracker(client, session, notices, page_limit=limit),
        admin        = AdminConsole(client, session, notices, page_limit=limit),
    )
