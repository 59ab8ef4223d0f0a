"""
Chain Query Client for the IDL Scanner.

Reads the live state of a single account. A missing account is a
normal answer (None), only transport or protocol failures are errors.
"""

import logging
from typing import Optional

from solders.pubkey import Pubkey

from .errors import QueryError
from .models import AccountRecord
from .rpc_client import RPCClient, RPCClientError

logger = logging.getLogger(__name__)


class AccountQueryClient:
    """Looks up account existence and metadata, one attempt per call."""

    def __init__(self, rpc_client: RPCClient):
        self.rpc_client = rpc_client

    async def query(self, address: Pubkey) -> Optional[AccountRecord]:
        """
        Query an account.

        Returns:
            AccountRecord if the account exists, otherwise None

        Raises:
            QueryError: If the ledger call fails or the response is malformed
        """
        try:
            account = await self.rpc_client.get_account_info(address)
            if account is None:
                logger.info(f"Account {address} not found")
                return None

            record = AccountRecord(
                address=address,
                owner=account.owner_key(),
                lamports=account.lamports,
                data_length=len(account.raw_data()),
                executable=account.executable,
            )
        except RPCClientError as e:
            raise QueryError(f"Failed to query account {address}: {e}") from e

        logger.info(f"Account {address} found: owner={record.owner} lamports={record.lamports}")
        return record
