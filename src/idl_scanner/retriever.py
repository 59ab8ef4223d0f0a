"""
Binary Retriever for the IDL Scanner.

Fetches the executable bytes of a deployed program, following the
upgradeable loader's programdata indirection, and stages the dump in a
transient file that is always removed afterwards.
"""

import logging
import os
import struct
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from solders.pubkey import Pubkey

from .errors import RetrievalError, StagingError
from .models import ProgramBinary
from .rpc_client import RPCClient, RPCClientError, RpcAccount

logger = logging.getLogger(__name__)

BPF_LOADER_DEPRECATED = Pubkey.from_string("BPFLoader1111111111111111111111111111111111")
BPF_LOADER = Pubkey.from_string("BPFLoader2111111111111111111111111111111111")
BPF_LOADER_UPGRADEABLE = Pubkey.from_string("BPFLoaderUpgradeab1e11111111111111111111111")
LOADER_V4 = Pubkey.from_string("LoaderV411111111111111111111111111111111111")

# Upgradeable loader state tags (u32, little-endian)
UPGRADEABLE_PROGRAM_TAG = 2
UPGRADEABLE_PROGRAMDATA_TAG = 3

# tag (4) + programdata address (32)
PROGRAM_ACCOUNT_SIZE = 36
# tag (4) + slot (8) + option flag (1) + upgrade authority (32)
PROGRAMDATA_HEADER_SIZE = 45
# slot (8) + authority (32) + status (8)
LOADER_V4_HEADER_SIZE = 48


class BinaryRetriever:
    """
    Retrieves program binaries from the ledger.

    Supports programs owned by the deprecated, legacy, upgradeable and v4
    loaders. Every read goes to the node; nothing is cached.
    """

    def __init__(self, rpc_client: RPCClient):
        self.rpc_client = rpc_client

    async def fetch(self, program_id: Pubkey) -> ProgramBinary:
        """
        Fetch the full executable for a program.

        Args:
            program_id: Address of the program account

        Returns:
            ProgramBinary with the ELF bytes

        Raises:
            RetrievalError: If the account is missing, not an executable
                program, or the ledger call fails
        """
        account = await self._get_account(program_id)
        if account is None:
            raise RetrievalError(f"Program account {program_id} does not exist")
        if not account.executable:
            raise RetrievalError(f"Account {program_id} is not executable")

        loader = self._owner(account, program_id)
        data = self._decode(account, program_id)

        if loader == BPF_LOADER_UPGRADEABLE:
            elf = await self._fetch_programdata(program_id, data)
        elif loader == LOADER_V4:
            if len(data) < LOADER_V4_HEADER_SIZE:
                raise RetrievalError(f"Loader v4 account {program_id} is too small ({len(data)} bytes)")
            elf = data[LOADER_V4_HEADER_SIZE:]
        elif loader in (BPF_LOADER, BPF_LOADER_DEPRECATED):
            elf = data
        else:
            raise RetrievalError(f"Account {program_id} is owned by {loader}, which is not a program loader")

        logger.info(f"Retrieved {len(elf)} bytes for program {program_id} (loader {loader})")
        return ProgramBinary(program_id=program_id, loader=loader, data=elf)

    async def _fetch_programdata(self, program_id: Pubkey, program_data: bytes) -> bytes:
        if len(program_data) < PROGRAM_ACCOUNT_SIZE:
            raise RetrievalError(f"Upgradeable program account {program_id} is too small")

        (tag,) = struct.unpack_from("<I", program_data, 0)
        if tag != UPGRADEABLE_PROGRAM_TAG:
            raise RetrievalError(f"Account {program_id} is not an upgradeable program (state tag {tag})")

        programdata_address = Pubkey.from_bytes(program_data[4:PROGRAM_ACCOUNT_SIZE])
        logger.debug(f"Program {program_id} stores its code in {programdata_address}")

        account = await self._get_account(programdata_address)
        if account is None:
            raise RetrievalError(f"Programdata account {programdata_address} does not exist (program closed?)")

        data = self._decode(account, programdata_address)
        if len(data) < PROGRAMDATA_HEADER_SIZE:
            raise RetrievalError(f"Programdata account {programdata_address} is too small")

        (tag,) = struct.unpack_from("<I", data, 0)
        if tag != UPGRADEABLE_PROGRAMDATA_TAG:
            raise RetrievalError(f"Account {programdata_address} is not programdata (state tag {tag})")

        return data[PROGRAMDATA_HEADER_SIZE:]

    async def _get_account(self, address: Pubkey) -> Optional[RpcAccount]:
        try:
            return await self.rpc_client.get_account_info(address)
        except RPCClientError as e:
            raise RetrievalError(f"Failed to fetch account {address}: {e}") from e

    @staticmethod
    def _decode(account: RpcAccount, address: Pubkey) -> bytes:
        try:
            return account.raw_data()
        except RPCClientError as e:
            raise RetrievalError(f"Failed to decode account {address}: {e}") from e

    @staticmethod
    def _owner(account: RpcAccount, address: Pubkey) -> Pubkey:
        try:
            return account.owner_key()
        except RPCClientError as e:
            raise RetrievalError(f"Failed to decode owner of {address}: {e}") from e


@contextmanager
def stage_binary(
    binary: ProgramBinary,
    directory: Optional[Union[str, Path]] = None,
) -> Iterator[Path]:
    """
    Write a program dump to a transient file and remove it on exit.

    The file is deleted whether the body succeeds or raises.

    Args:
        binary: The program binary to stage
        directory: Where to write the dump (default: the system temp dir)

    Yields:
        Path to the staged dump

    Raises:
        StagingError: If the dump cannot be created or written
    """
    try:
        fd, name = tempfile.mkstemp(
            prefix=f"{binary.program_id}_",
            suffix="_program_dump.so",
            dir=str(directory) if directory is not None else None,
        )
    except OSError as e:
        raise StagingError(f"Cannot create program dump in {directory or tempfile.gettempdir()}: {e}") from e

    path = Path(name)
    try:
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(binary.data)
        except OSError as e:
            raise StagingError(f"Failed to write program dump {path}: {e}") from e
        logger.info(f"Program dumped to {path}")
        yield path
    finally:
        try:
            path.unlink()
            logger.info(f"Dump file {path} deleted")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to delete the dump file {path}: {e}")
