"""
portfolio_tracker – Student Portfolio & Certificate Tracker
===========================================================
Client-side data-sync and local-cache layer for a student portfolio and
certification tracker backed by a spreadsheet-style remote store.

Module map
----------
  config.py          Settings loaded from .env (transport, URLs, timeouts).
  errors.py          TrackerError taxonomy.
  notices.py         Transient user-facing notices (toasts).
  guardrails.py      Local input rules; BLOCK → ValidationError.
  models.py          Pydantic records, certificate catalog, categories.
  database.py        SQLite key store for the saved identities.
  store_client.py    Remote Store Client (table + rpc transports, httpx).
  session.py         SessionContext + restore / login / logout.
  images.py          Upload size check, downscale, JPEG data URI.
  portfolio.py       Portfolio Collection Manager.
  certificates.py    Certificate Status Tracker.
  admin.py           Admin console (token login, dashboard, export).
  services.py        build_services(): wires everything for a front end.

Control flow
------------
  UI event → component validates (guardrails) → RemoteStoreClient.call()
  → on success the component reloads from the store → UI re-renders.
"""
__version__ = "0.1.0"
