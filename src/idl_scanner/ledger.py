"""
Ledger capability interface for the IDL Scanner.

The pipeline only needs two calls from the ledger: fetch a program
binary and query an account. RpcLedger provides both over JSON-RPC;
tests can pass any object with the same two coroutines.
"""

import logging
from typing import Optional, Protocol

import httpx
from solders.pubkey import Pubkey

from .models import AccountRecord, ProgramBinary, ScanConfig
from .query import AccountQueryClient
from .retriever import BinaryRetriever
from .rpc_client import RPCClient

logger = logging.getLogger(__name__)

CLUSTER_URLS = {
    "mainnet-beta": "https://api.mainnet-beta.solana.com",
    "mainnet": "https://api.mainnet-beta.solana.com",
    "devnet": "https://api.devnet.solana.com",
    "testnet": "https://api.testnet.solana.com",
    "localhost": "http://127.0.0.1:8899",
}


def resolve_rpc_url(url_or_moniker: str) -> str:
    """Expand a cluster moniker (m/d/t/l or full name) into an RPC URL."""
    value = url_or_moniker.strip()
    shorthand = {"m": "mainnet-beta", "d": "devnet", "t": "testnet", "l": "localhost"}
    value = shorthand.get(value, value)
    return CLUSTER_URLS.get(value, value)


class Ledger(Protocol):
    """What the scan pipeline needs from the ledger."""

    async def fetch(self, program_id: Pubkey) -> ProgramBinary:
        ...

    async def query(self, address: Pubkey) -> Optional[AccountRecord]:
        ...


class RpcLedger:
    """
    Ledger backed by a JSON-RPC node.

    Owns one RPCClient shared by the retriever and the query client.
    """

    def __init__(self, config: ScanConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.rpc_client = RPCClient(
            rpc_url=resolve_rpc_url(config.rpc_url),
            timeout=config.timeout,
            max_retries=config.max_retries,
            commitment=config.commitment,
            transport=transport,
        )
        logger.debug(f"Using RPC endpoint {self.rpc_client.rpc_url}")
        self.retriever = BinaryRetriever(self.rpc_client)
        self.query_client = AccountQueryClient(self.rpc_client)

    async def __aenter__(self) -> "RpcLedger":
        await self.rpc_client.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.rpc_client.close()

    async def fetch(self, program_id: Pubkey) -> ProgramBinary:
        return await self.retriever.fetch(program_id)

    async def query(self, address: Pubkey) -> Optional[AccountRecord]:
        return await self.query_client.query(address)
