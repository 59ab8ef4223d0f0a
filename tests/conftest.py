"""
Shared fixtures for the IDL Scanner tests.
"""

import base64
import json
from typing import Dict, List, Optional

import httpx
import pytest
from solders.pubkey import Pubkey

from idl_scanner.errors import QueryError, RetrievalError
from idl_scanner.models import AccountRecord, ProgramBinary
from idl_scanner.retriever import BPF_LOADER

PROGRAM_ID = Pubkey.from_string("Fg6PaFpoGXkYsidMpWTK6W2BeZ7FEfcYkg476zPFsLnS")

ANCHOR_BINARY = b"\x7fELF" + b"\x00" * 64 + b"anchor:idl" + b"\x01" * 32 + b"IdlCreateAccount" + b"\x00" * 16
PLAIN_BINARY = b"\x7fELF" + b"\x00" * 64 + b"no markers in here" + b"\x00" * 16


class FakeLedger:
    """In-memory Ledger that records every call."""

    def __init__(
        self,
        binary: bytes = PLAIN_BINARY,
        account: Optional[AccountRecord] = None,
        fetch_error: Optional[Exception] = None,
        query_error: Optional[Exception] = None,
    ):
        self.binary = binary
        self.account = account
        self.fetch_error = fetch_error
        self.query_error = query_error
        self.fetched: List[Pubkey] = []
        self.queried: List[Pubkey] = []
        self.on_query = None

    async def __aenter__(self) -> "FakeLedger":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None

    async def fetch(self, program_id: Pubkey) -> ProgramBinary:
        self.fetched.append(program_id)
        if self.fetch_error:
            raise self.fetch_error
        return ProgramBinary(program_id=program_id, loader=BPF_LOADER, data=self.binary)

    async def query(self, address: Pubkey) -> Optional[AccountRecord]:
        self.queried.append(address)
        if self.on_query:
            self.on_query(address)
        if self.query_error:
            raise self.query_error
        return self.account


def account_value(
    data: bytes,
    owner: Pubkey,
    executable: bool = False,
    lamports: int = 1_461_600,
) -> dict:
    """Build the `value` object of a getAccountInfo response."""
    return {
        "data": [base64.b64encode(data).decode(), "base64"],
        "executable": executable,
        "lamports": lamports,
        "owner": str(owner),
        "rentEpoch": 18446744073709551615,
        "space": len(data),
    }


class FakeRpcNode:
    """Answers getAccountInfo from a dict of address -> account value."""

    def __init__(self, accounts: Dict[str, Optional[dict]]):
        self.accounts = accounts
        self.requests: List[dict] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        address = body["params"][0]
        return httpx.Response(
            200,
            json={
                "jsonrpc": "2.0",
                "id": body["id"],
                "result": {
                    "context": {"slot": 250_000_000},
                    "value": self.accounts.get(address),
                },
            },
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def requested_addresses(self) -> List[str]:
        return [r["params"][0] for r in self.requests]


@pytest.fixture
def program_id() -> Pubkey:
    return PROGRAM_ID


@pytest.fixture
def fake_ledger():
    """Factory for FakeLedger instances."""
    return FakeLedger


@pytest.fixture
def rpc_node():
    """Factory for FakeRpcNode instances."""
    return FakeRpcNode


@pytest.fixture
def retrieval_error() -> RetrievalError:
    return RetrievalError("Failed to fetch account: connection refused")


@pytest.fixture
def query_error() -> QueryError:
    return QueryError("Failed to query account: 503 Service Unavailable")


@pytest.fixture
def anchor_binary() -> bytes:
    return ANCHOR_BINARY


@pytest.fixture
def plain_binary() -> bytes:
    return PLAIN_BINARY


@pytest.fixture
def make_account():
    """Factory for getAccountInfo `value` objects."""
    return account_value
