"""
store_client.py – Remote Store Client
=====================================
Wraps every network call to the remote store behind one coroutine:

    result = await client.call(StoreOperation.PORTFOLIOS_LIST,
                               {"student_name": "Kim", "limit": 100})

Operation contract
------------------
``StoreOperation`` is the closed set of operations.  Each one has a pydantic
params model (validated before any I/O) and, where the caller needs a value
back, a required result key with its expected type.

Transports
----------
  TableTransport   REST-like table API.  tables/<collection> for list/create,
                   tables/<collection>/<id> for update/delete.  List bodies are
                   {"data": [...]}; ``search`` is a loose full-text match.
  RpcTransport     One endpoint.  POST {"action", "payload"[, "token"]} and
                   an envelope {"ok": bool, ...}; ok=false carries "error".

Neither transport is trusted to scope results to a student: callers always
re-filter by owner name.

Failure mapping
---------------
  connection error / timeout / cancel   → NetworkError   (reads retried once)
  HTTP ≥ 400, {"ok": false}             → ServerError(message)
  undecodable body, missing result key  → ProtocolError
  bad params, unknown operation         → ValidationError (no request sent)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Optional

import httpx
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from portfolio_tracker.config import TRANSPORT_RPC, StoreConfig
from portfolio_tracker.errors import (
    NetworkError,
    ProtocolError,
    ServerError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)


# ─── Operations ──────────────────────────────────────────────────────────────

class StoreOperation(str, Enum):
    STUDENTS_LIST           = "students.list"
    STUDENTS_ENSURE         = "students.ensure"
    PORTFOLIOS_LIST         = "portfolios.listByStudent"
    PORTFOLIOS_CREATE       = "portfolios.create"
    PORTFOLIOS_UPDATE       = "portfolios.update"
    PORTFOLIOS_DELETE       = "portfolios.delete"
    CERTS_LIST              = "certs.listByStudent"
    CERTS_UPSERT            = "certs.upsert"
    CERTS_DELETE            = "certs.delete"
    ADMIN_LOGIN             = "admin.login"
    ADMIN_PORTFOLIOS_LIST   = "admin.portfolios.list"
    ADMIN_CERTS_LIST        = "admin.certs.list"
    ADMIN_PORTFOLIOS_DELETE = "admin.portfolios.delete"
    ADMIN_EXPORT            = "admin.export"
    IMAGES_UPLOAD           = "images.upload"


class _Params(BaseModel):
    model_config = {"extra": "forbid"}


class LimitParams(_Params):
    limit: int = Field(default=100, ge=1)


class NameParams(_Params):
    name: str = Field(min_length=1)


class StudentListParams(_Params):
    student_name: str = Field(min_length=1)
    limit:        int = Field(default=100, ge=1)


class IdParams(_Params):
    id: str = Field(min_length=1)


class PortfolioParams(_Params):
    student_name: str = Field(min_length=1)
    category:     str = Field(min_length=1)
    title:        str = Field(min_length=1)
    description:  str = Field(min_length=1)
    image:        str = ""


class PortfolioUpdateParams(PortfolioParams):
    id: str = Field(min_length=1)


class CertUpsertParams(_Params):
    student_name:  str = Field(min_length=1)
    cert_name:     str = Field(min_length=1)
    obtained:      bool = True
    obtained_date: str = Field(min_length=1)


class AdminLoginParams(_Params):
    password: str = Field(min_length=1)


class ExportParams(_Params):
    kind: Literal["portfolios", "certificates"]


class ImageUploadParams(_Params):
    student_name: str = Field(min_length=1)
    data_uri:     str = Field(min_length=1)


@dataclass(frozen=True)
class OperationSpec:
    params:      type[_Params]
    read:        bool                    # safe to retry
    result_key:  Optional[str] = None    # key the result must carry
    result_type: Optional[type] = None


OPERATIONS: dict[StoreOperation, OperationSpec] = {
    StoreOperation.STUDENTS_LIST:           OperationSpec(LimitParams, True, "students", list),
    StoreOperation.STUDENTS_ENSURE:         OperationSpec(NameParams, False),
    StoreOperation.PORTFOLIOS_LIST:         OperationSpec(StudentListParams, True, "portfolios", list),
    StoreOperation.PORTFOLIOS_CREATE:       OperationSpec(PortfolioParams, False),
    StoreOperation.PORTFOLIOS_UPDATE:       OperationSpec(PortfolioUpdateParams, False),
    StoreOperation.PORTFOLIOS_DELETE:       OperationSpec(IdParams, False),
    StoreOperation.CERTS_LIST:              OperationSpec(StudentListParams, True, "certificates", list),
    StoreOperation.CERTS_UPSERT:            OperationSpec(CertUpsertParams, False),
    StoreOperation.CERTS_DELETE:            OperationSpec(IdParams, False),
    StoreOperation.ADMIN_LOGIN:             OperationSpec(AdminLoginParams, False, "token", str),
    StoreOperation.ADMIN_PORTFOLIOS_LIST:   OperationSpec(LimitParams, True, "portfolios", list),
    StoreOperation.ADMIN_CERTS_LIST:        OperationSpec(LimitParams, True, "certificates", list),
    StoreOperation.ADMIN_PORTFOLIOS_DELETE: OperationSpec(IdParams, False),
    StoreOperation.ADMIN_EXPORT:            OperationSpec(ExportParams, True, "csv_base64", str),
    StoreOperation.IMAGES_UPLOAD:           OperationSpec(ImageUploadParams, False, "url", str),
}


# ─── Cancellation ────────────────────────────────────────────────────────────

class CancelToken:
    """Cooperative cancellation for one call.

    ``cancel()`` aborts the in-flight request (it surfaces as NetworkError);
    a token cancelled before the call starts prevents the request entirely.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._tasks: set[asyncio.Future] = set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        for task in list(self._tasks):
            task.cancel()

    def _attach(self, task: asyncio.Future) -> None:
        self._tasks.add(task)

    def _detach(self, task: asyncio.Future) -> None:
        self._tasks.discard(task)


# ─── Transports ──────────────────────────────────────────────────────────────

def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            if body.get(key):
                return str(body[key])
    text = response.text.strip()
    return text[:200] if text else f"HTTP {response.status_code}"


class StoreTransport:
    """Shared HTTP plumbing.  Subclasses map operations onto requests."""

    name = "base"

    def __init__(self, timeout_s: float = 10.0,
                 http_transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout_s = timeout_s
        # injected by tests (httpx.MockTransport); None means real network
        self._http_transport = http_transport

    async def send(self, operation: StoreOperation, params: dict,
                   token: Optional[str] = None) -> Any:
        raise NotImplementedError

    async def _request(self, method: str, url: str, *,
                       json: Any = None, query: Optional[dict] = None) -> Any:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_s,
                follow_redirects=True,
                transport=self._http_transport,
            ) as http:
                response = await http.request(method, url, json=json, params=query)
        except httpx.TimeoutException as exc:
            raise NetworkError(f"{method} {url} timed out after {self.timeout_s:g}s") from exc
        except httpx.TransportError as exc:
            raise NetworkError(f"{method} {url} failed: {exc}") from exc

        if response.status_code >= 400:
            raise ServerError(_error_message(response), status=response.status_code)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ProtocolError(f"{method} {url} returned a non-JSON body") from exc


class TableTransport(StoreTransport):
    """REST-like table API (tables/students, tables/portfolios, tables/certificates)."""

    name = "table"

    UNSUPPORTED = frozenset({
        StoreOperation.ADMIN_LOGIN,
        StoreOperation.ADMIN_EXPORT,
        StoreOperation.IMAGES_UPLOAD,
    })

    def __init__(self, base_url: str, page_limit: int = 100, **kwargs):
        super().__init__(**kwargs)
        self.base_url   = base_url.rstrip("/") + "/"
        self.page_limit = page_limit
        self._handlers = {
            StoreOperation.STUDENTS_LIST:           self._students_list,
            StoreOperation.STUDENTS_ENSURE:         self._students_ensure,
            StoreOperation.PORTFOLIOS_LIST:         self._portfolios_list,
            StoreOperation.PORTFOLIOS_CREATE:       self._portfolios_create,
            StoreOperation.PORTFOLIOS_UPDATE:       self._portfolios_update,
            StoreOperation.PORTFOLIOS_DELETE:       self._portfolios_delete,
            StoreOperation.CERTS_LIST:              self._certs_list,
            StoreOperation.CERTS_UPSERT:            self._certs_upsert,
            StoreOperation.CERTS_DELETE:            self._certs_delete,
            StoreOperation.ADMIN_PORTFOLIOS_LIST:   self._admin_portfolios_list,
            StoreOperation.ADMIN_CERTS_LIST:        self._admin_certs_list,
            StoreOperation.ADMIN_PORTFOLIOS_DELETE: self._portfolios_delete,
        }

    async def send(self, operation, params, token=None):
        if operation in self.UNSUPPORTED:
            raise ProtocolError(f"{operation.value} is not supported by the table transport")
        return await self._handlers[operation](params)

    # ── helpers ──────────────────────────────────────────────────────────────

    def _url(self, collection: str, record_id: Optional[str] = None) -> str:
        url = f"{self.base_url}tables/{collection}"
        return f"{url}/{record_id}" if record_id else url

    async def _list(self, collection: str, **query) -> list[dict]:
        body = await self._request("GET", self._url(collection), query=query)
        if not isinstance(body, dict) or not isinstance(body.get("data", []), list):
            raise ProtocolError(f"tables/{collection} did not return a data list")
        return body.get("data") or []

    @staticmethod
    def _row(fields: dict) -> dict:
        # the table schema names the image column image_data
        row = dict(fields)
        if "image" in row:
            row["image_data"] = row.pop("image")
        return row

    # ── operations ───────────────────────────────────────────────────────────

    async def _students_list(self, p):
        return {"students": await self._list("students", limit=p["limit"])}

    async def _students_ensure(self, p):
        rows = await self._list("students", search=p["name"], limit=self.page_limit)
        existing = next((r for r in rows if r.get("name") == p["name"]), None)
        if existing is not None:
            return {"student": existing, "created": False}
        created = await self._request("POST", self._url("students"), json={"name": p["name"]})
        return {"student": created or {"name": p["name"]}, "created": True}

    async def _portfolios_list(self, p):
        rows = await self._list("portfolios", search=p["student_name"],
                                limit=p["limit"], sort="-created_at")
        return {"portfolios": rows}

    async def _portfolios_create(self, p):
        created = await self._request("POST", self._url("portfolios"), json=self._row(p))
        return {"portfolio": created}

    async def _portfolios_update(self, p):
        fields = {k: v for k, v in p.items() if k != "id"}
        updated = await self._request("PUT", self._url("portfolios", p["id"]), json=self._row(fields))
        return {"portfolio": updated}

    async def _portfolios_delete(self, p):
        await self._request("DELETE", self._url("portfolios", p["id"]))
        return {}

    async def _certs_list(self, p):
        rows = await self._list("certificates", search=p["student_name"], limit=p["limit"])
        return {"certificates": rows}

    async def _certs_upsert(self, p):
        created = await self._request("POST", self._url("certificates"), json=p)
        return {"certificate": created}

    async def _certs_delete(self, p):
        await self._request("DELETE", self._url("certificates", p["id"]))
        return {}

    async def _admin_portfolios_list(self, p):
        return {"portfolios": await self._list("portfolios", limit=p["limit"], sort="-created_at")}

    async def _admin_certs_list(self, p):
        return {"certificates": await self._list("certificates", limit=p["limit"])}


class RpcTransport(StoreTransport):
    """Single web-app endpoint taking {"action", "payload"}."""

    name = "rpc"

    def __init__(self, url: str, **kwargs):
        super().__init__(**kwargs)
        self.url = url

    async def send(self, operation, params, token=None):
        body: dict[str, Any] = {"action": operation.value, "payload": params}
        if token:
            body["token"] = token
        envelope = await self._request("POST", self.url, json=body)
        if not isinstance(envelope, dict) or "ok" not in envelope:
            raise ProtocolError(f"{operation.value}: response is not an {{ok: ...}} envelope")
        if not envelope["ok"]:
            message = envelope.get("error") or envelope.get("message") or f"{operation.value} failed"
            raise ServerError(str(message))
        return {k: v for k, v in envelope.items() if k != "ok"}


# ─── Client ──────────────────────────────────────────────────────────────────

class RemoteStoreClient:
    """Validates, bounds, retries and checks every remote store call."""

    def __init__(self, transport: StoreTransport, *, timeout_s: float = 10.0,
                 read_retries: int = 1, retry_backoff_s: float = 0.5):
        self.transport       = transport
        self.timeout_s       = timeout_s
        self.read_retries    = read_retries
        self.retry_backoff_s = retry_backoff_s

    @classmethod
    def from_settings(cls, store: StoreConfig,
                      http_transport: Optional[httpx.AsyncBaseTransport] = None) -> "RemoteStoreClient":
        if store.transport == TRANSPORT_RPC:
            transport: StoreTransport = RpcTransport(
                store.rpc_url, timeout_s=store.timeout_s, http_transport=http_transport,
            )
        else:
            transport = TableTransport(
                store.base_url, page_limit=store.page_limit,
                timeout_s=store.timeout_s, http_transport=http_transport,
            )
        return cls(
            transport,
            timeout_s       = store.timeout_s,
            read_retries    = store.read_retries,
            retry_backoff_s = store.retry_backoff_s,
        )

    async def call(self, operation: StoreOperation | str, params: Optional[dict] = None, *,
                   token: Optional[str] = None,
                   cancel: Optional[CancelToken] = None) -> dict:
        try:
            op = StoreOperation(operation)
        except ValueError as exc:
            raise ValidationError(f"Unknown store operation: {operation!r}") from exc
        spec = OPERATIONS[op]

        try:
            payload = spec.params.model_validate(params or {}).model_dump()
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Invalid parameters for {op.value}: {exc.error_count()} error(s)"
            ) from exc

        attempts = 1 + (max(self.read_retries, 0) if spec.read else 0)
        for attempt in range(1, attempts + 1):
            if cancel is not None and cancel.cancelled:
                raise NetworkError(f"{op.value} cancelled")
            try:
                logger.debug("→ %s via %s (attempt %d)", op.value, self.transport.name, attempt)
                result = await self._bounded(op, self.transport.send(op, payload, token), cancel)
                break
            except NetworkError as exc:
                if attempt >= attempts or (cancel is not None and cancel.cancelled):
                    logger.warning("%s failed: %s", op.value, exc)
                    raise
                logger.info("Retrying %s after network error: %s", op.value, exc)
                await asyncio.sleep(self.retry_backoff_s * attempt)
            except StoreError as exc:
                logger.warning("%s failed: %s", op.value, exc)
                raise

        return self._check_result(op, spec, result)

    async def _bounded(self, op: StoreOperation, coro, cancel: Optional[CancelToken]) -> Any:
        task = asyncio.ensure_future(coro)
        if cancel is not None:
            cancel._attach(task)
        try:
            return await asyncio.wait_for(task, timeout=self.timeout_s)
        except asyncio.TimeoutError as exc:
            raise NetworkError(f"{op.value} timed out after {self.timeout_s:g}s") from exc
        except asyncio.CancelledError:
            if cancel is not None and cancel.cancelled:
                raise NetworkError(f"{op.value} cancelled") from None
            raise
        finally:
            if cancel is not None:
                cancel._detach(task)

    @staticmethod
    def _check_result(op: StoreOperation, spec: OperationSpec, result: Any) -> dict:
        if result is None:
            result = {}
        if not isinstance(result, dict):
            raise ProtocolError(f"{op.value} returned {type(result).__name__}, expected an object")
        if spec.result_key is not None:
            value = result.get(spec.result_key)
            if not isinstance(value, spec.result_type):
                raise ProtocolError(
                    f"{op.value} response is missing '{spec.result_key}' "
                    f"({spec.result_type.__name__})"
                )
        return result
