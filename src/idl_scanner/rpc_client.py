"""
Async JSON-RPC client for the IDL Scanner.

A thin httpx wrapper that speaks the ledger's JSON-RPC dialect. Only
getAccountInfo is needed: one call at a time, with optional retries and
exponential backoff.
"""

import asyncio
import base64
import binascii
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError
from solders.pubkey import Pubkey

from . import __version__
from .address import parse_address
from .errors import InvalidAddress
from .models import Commitment

logger = logging.getLogger(__name__)


class RPCClientError(Exception):
    """Custom exception for RPC transport and protocol errors."""
    pass


def _is_transient(status_code: int) -> bool:
    """Rate limiting and server errors are worth retrying, other statuses are not."""
    return status_code == 429 or status_code >= 500


class RpcAccount(BaseModel):
    """The `value` object of a getAccountInfo response."""
    data: List[str]
    executable: bool
    lamports: int = Field(ge=0)
    owner: str
    rent_epoch: Optional[int] = Field(default=None, alias="rentEpoch")
    space: Optional[int] = None

    def raw_data(self) -> bytes:
        """Decode the base64 account data."""
        if len(self.data) != 2 or self.data[1] != "base64":
            raise RPCClientError(f"Unexpected account data encoding: {self.data[1:]}")
        try:
            return base64.b64decode(self.data[0], validate=True)
        except (binascii.Error, ValueError) as e:
            raise RPCClientError(f"Malformed base64 account data: {e}") from e

    def owner_key(self) -> Pubkey:
        try:
            return parse_address(self.owner)
        except InvalidAddress as e:
            raise RPCClientError(f"Malformed owner address '{self.owner}': {e}") from e


class RPCClient:
    """
    Async JSON-RPC client for a ledger node.

    Features:
    - Async/await support via httpx
    - Optional retries with exponential backoff (off by default)
    - Timeout handling
    - Request logging
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: int = 30,
        max_retries: int = 1,
        commitment: Commitment = Commitment.CONFIRMED,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.commitment = commitment
        self.transport = transport

        self._client: Optional[httpx.AsyncClient] = None
        self._request_id = 0

    async def __aenter__(self) -> "RPCClient":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    async def start(self) -> None:
        """Initialize the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                transport=self.transport,
                headers={
                    "User-Agent": f"IDL-Scanner/{__version__}",
                    "Content-Type": "application/json",
                },
            )
            logger.debug("RPC client initialized")

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug("RPC client closed")

    async def call(self, method: str, params: List[Any]) -> Any:
        """
        Make a JSON-RPC call and return its `result`.

        Args:
            method: JSON-RPC method name
            params: Positional parameters

        Returns:
            The decoded `result` member of the response

        Raises:
            RPCClientError: On transport failure, HTTP error status,
                JSON-RPC error object or a malformed response
        """
        if self._client is None:
            await self.start()

        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        last_error = None
        for attempt in range(self.max_retries):
            try:
                start_time = datetime.now()
                response = await self._client.post(self.rpc_url, json=payload)
                elapsed = (datetime.now() - start_time).total_seconds()
                logger.debug(f"{method} -> {response.status_code} ({elapsed:.2f}s)")

                response.raise_for_status()
                return self._unwrap(method, response)

            except httpx.TimeoutException as e:
                last_error = e
                logger.warning(f"Timeout on attempt {attempt + 1}/{self.max_retries} for {method}")

            except httpx.ConnectError as e:
                last_error = e
                logger.warning(f"Connection error on attempt {attempt + 1}/{self.max_retries} for {method}")

            except httpx.HTTPStatusError as e:
                if not _is_transient(e.response.status_code):
                    raise RPCClientError(f"{method} failed: {e}") from e
                last_error = e
                logger.warning(f"HTTP error on attempt {attempt + 1}/{self.max_retries} for {method}: {e}")

            except httpx.HTTPError as e:
                last_error = e
                logger.warning(f"HTTP error on attempt {attempt + 1}/{self.max_retries} for {method}: {e}")

            # Exponential backoff
            if attempt < self.max_retries - 1:
                await asyncio.sleep(2 ** attempt)

        if self.max_retries == 1:
            raise RPCClientError(f"{method} failed: {last_error}")
        raise RPCClientError(f"{method} failed after {self.max_retries} attempts: {last_error}")

    def _unwrap(self, method: str, response: httpx.Response) -> Any:
        try:
            body = response.json()
        except ValueError as e:
            raise RPCClientError(f"{method} returned a non-JSON body") from e

        if not isinstance(body, dict):
            raise RPCClientError(f"{method} returned an unexpected body: {body!r}")

        error = body.get("error")
        if error:
            if isinstance(error, dict):
                raise RPCClientError(f"{method} error {error.get('code')}: {error.get('message')}")
            raise RPCClientError(f"{method} error: {error}")

        if "result" not in body:
            raise RPCClientError(f"{method} response has no result")
        return body["result"]

    async def get_account_info(self, address: Pubkey) -> Optional[RpcAccount]:
        """
        Fetch an account with base64-encoded data.

        Returns:
            The account, or None if no account exists at the address
        """
        params: List[Any] = [
            str(address),
            {"encoding": "base64", "commitment": self.commitment.value},
        ]
        result = await self.call("getAccountInfo", params)

        if not isinstance(result, dict) or "value" not in result:
            raise RPCClientError(f"getAccountInfo returned an unexpected result: {result!r}")

        value: Optional[Dict[str, Any]] = result["value"]
        if value is None:
            return None

        try:
            return RpcAccount.model_validate(value)
        except ValidationError as e:
            raise RPCClientError(f"Malformed account in getAccountInfo response: {e}") from e
