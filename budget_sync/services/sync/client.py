"""
Spreadsheet Sync Client

Talks to one spreadsheet script endpoint. Authentication is a static
shared secret in the query string.

Writes (POST) never raise. Whatever happens, the caller gets a
SyncResponse: the HTTP status and body, or status -1 with the error
text when the request never completed. Local state is already
committed by then and is not rolled back.

Reads (GET) raise a SyncError subclass describing how they failed, or
return the decoded Envelope.

DESIGN DECISION: No retries, no dedup, no backoff here. Failed writes
are handed to the Outbox by the caller, and only replayed when the
caller asks for it.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Type, Union

import httpx
import structlog
from pydantic import BaseModel

from budget_sync.config.settings import SheetsEndpointSettings
from budget_sync.decoding.records import decode_envelope
from budget_sync.errors import (
    EmptyBodyError,
    HTMLErrorPageError,
    HTTPStatusError,
    NetworkError,
)
from budget_sync.models.remote import (
    Envelope,
    RecordT,
    RemoteCategory,
    RemotePaymentMethod,
    RemoteTransaction,
)


logger = structlog.get_logger(__name__)

DEFAULT_FETCH_LIMIT = 300


class SyncResponse(BaseModel):
    """Outcome of a POST: HTTP status (or -1) and the response text."""

    status: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def format_api_date(value: Union[date, datetime]) -> str:
    """yyyy-MM-dd in UTC. Naive datetimes are taken as UTC already."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date().isoformat()
    return value.isoformat()


def transaction_payload(
    remote_id: str,
    amount: Decimal,
    date: datetime,
    category_name: Optional[str],
    payment_name: Optional[str],
    merchant_name: Optional[str] = None,
    note: Optional[str] = None,
    transaction_type: str = "",
) -> dict[str, Any]:
    return {
        "type": "transaction",
        "remoteID": remote_id,
        "amount": float(amount),
        "dateISO": format_api_date(date),
        "categoryName": category_name or "",
        "paymentMethod": payment_name or "",
        "merchantName": merchant_name or "",
        "note": note or "",
        "transactionType": transaction_type,
    }


def category_payload(
    remote_id: str,
    name: str,
    emoji: Optional[str],
    sort_index: int,
    is_income: bool,
) -> dict[str, Any]:
    return {
        "type": "category",
        "remoteID": remote_id,
        "name": name,
        "emoji": emoji or "",
        "sortIndex": sort_index,
        "isIncome": is_income,
    }


def payment_payload(
    remote_id: str,
    name: str,
    emoji: Optional[str],
    sort_index: int,
) -> dict[str, Any]:
    return {
        "type": "paymentMethod",
        "remoteID": remote_id,
        "name": name,
        "emoji": emoji or "",
        "sortIndex": sort_index,
    }


class SheetsSyncClient:
    """
    Async client for the spreadsheet script.

    The endpoint and secret come from injected settings. An
    httpx.AsyncClient can be injected too (tests use a MockTransport);
    otherwise one is created lazily and owned by this client.
    """

    def __init__(
        self,
        settings: SheetsEndpointSettings,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._settings = settings
        self._http = http_client
        self._owns_http = http_client is None

    def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=self._settings.timeout_seconds)
            self._owns_http = True
        return self._http

    async def aclose(self) -> None:
        if self._owns_http and self._http is not None and not self._http.is_closed:
            await self._http.aclose()
        self._http = None

    async def __aenter__(self) -> "SheetsSyncClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    @property
    def base_url(self) -> str:
        return self._settings.base_url

    def _secret(self) -> str:
        return self._settings.secret.get_secret_value()

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def post_transaction(
        self,
        remote_id: str,
        amount: Decimal,
        date: datetime,
        category_name: Optional[str],
        payment_name: Optional[str],
        merchant_name: Optional[str] = None,
        note: Optional[str] = None,
        transaction_type: str = "",
    ) -> SyncResponse:
        """Mirror a transaction row."""
        payload = transaction_payload(
            remote_id, amount, date, category_name, payment_name,
            merchant_name, note, transaction_type,
        )
        return await self.post_payload(payload)

    async def post_category(
        self,
        remote_id: str,
        name: str,
        emoji: Optional[str],
        sort_index: int,
        is_income: bool,
    ) -> SyncResponse:
        """Mirror a category row."""
        payload = category_payload(remote_id, name, emoji, sort_index, is_income)
        return await self.post_payload(payload)

    async def post_payment(
        self,
        remote_id: str,
        name: str,
        emoji: Optional[str],
        sort_index: int,
    ) -> SyncResponse:
        """Mirror a payment method row."""
        payload = payment_payload(remote_id, name, emoji, sort_index)
        return await self.post_payload(payload)

    async def post_payload(self, payload: dict[str, Any]) -> SyncResponse:
        """
        POST a JSON body to the endpoint.

        Never raises: transport failures come back as status -1.
        """
        try:
            response = await self._get_http().post(
                self.base_url,
                params={"secret": self._secret()},
                json=payload,
                headers={"Content-Type": "application/json"},
                follow_redirects=True,
            )
        except httpx.InvalidURL as e:
            logger.error("sheets_post_bad_url", type=payload.get("type"), error=str(e))
            return SyncResponse(status=-1, body=f"bad url: {e}")
        except httpx.HTTPError as e:
            message = f"network error: {e}"
            logger.warning("sheets_post_network_error", type=payload.get("type"), error=str(e))
            return SyncResponse(status=-1, body=message)

        text = response.text
        logger.info(
            "sheets_post_response",
            type=payload.get("type"),
            remote_id=payload.get("remoteID"),
            status=response.status_code,
            body=text[:200],
        )
        return SyncResponse(status=response.status_code, body=text)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_transactions(
        self,
        start_date: Union[date, datetime],
        end_date: Union[date, datetime],
        limit: int = DEFAULT_FETCH_LIMIT,
    ) -> Envelope[RemoteTransaction]:
        """
        Transactions between start_date and end_date (inclusive, by day).

        Raises:
            TransportError: network, HTTP status, empty body or HTML page
            DecodeError: envelope could not be decoded
        """
        params = {
            "startDate": format_api_date(start_date),
            "endDate": format_api_date(end_date),
            "limit": str(limit),
        }
        return await self._fetch("getTransactions", RemoteTransaction, params)

    async def get_categories(self) -> Envelope[RemoteCategory]:
        """All categories, in server order."""
        return await self._fetch("getCategories", RemoteCategory)

    async def get_payment_methods(self) -> Envelope[RemotePaymentMethod]:
        """All payment methods, in server order."""
        return await self._fetch("getPaymentMethods", RemotePaymentMethod)

    async def _fetch(
        self,
        action: str,
        record_type: Type[RecordT],
        params: Optional[dict[str, str]] = None,
    ) -> Envelope[RecordT]:
        body = await self._get(action, params or {})
        envelope = decode_envelope(body, record_type)
        logger.info(
            "sheets_fetch_decoded",
            action=action,
            count=len(envelope.records),
            dropped=envelope.dropped,
        )
        return envelope

    async def _get(self, action: str, params: dict[str, str]) -> bytes:
        """
        GET the endpoint and return the raw body.

        Everything that goes wrong before decoding is raised here.
        """
        query = {"secret": self._secret(), "action": action, **params}
        try:
            response = await self._get_http().get(
                self.base_url,
                params=query,
                follow_redirects=True,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("sheets_get_network_error", action=action, error=str(e))
            raise NetworkError(f"network error: {e}") from e

        logger.debug("sheets_get_status", action=action, status=response.status_code)
        if not response.is_success:
            raise HTTPStatusError(response.status_code, response.text)

        body = response.content
        if not body.strip():
            raise EmptyBodyError("No data received from server")

        text = body.decode("utf-8", errors="replace")
        if "<html" in text.lower():
            logger.warning("sheets_get_html_page", action=action, snippet=text[:200])
            raise HTMLErrorPageError(text[:200])

        return body
