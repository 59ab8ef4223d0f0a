"""
Scan pipeline for the IDL Scanner.

Runs the stages strictly in order: retrieve, stage and scan the binary,
then, only when both markers are present, derive the IDL address and
query it. Produces a ScanReport.
"""

import logging
from typing import Optional

from solders.pubkey import Pubkey

from .derivation import idl_address
from .errors import StagingError
from .ledger import Ledger
from .models import AccountRecord, ScanConfig, ScanReport
from .retriever import stage_binary
from .scanner import scan_markers
from .verdict import evaluate

logger = logging.getLogger(__name__)


class IdlAccountScanner:
    """
    Checks one program for an unclaimed, predictable IDL account.

    At most one ledger call is outstanding at a time. The staged dump is
    removed before scan() returns or raises.
    """

    def __init__(self, ledger: Ledger, config: Optional[ScanConfig] = None):
        self.ledger = ledger
        self.config = config or ScanConfig()

    async def scan(self, program_id: Pubkey) -> ScanReport:
        """
        Run a complete scan.

        Args:
            program_id: Address of the program to check

        Returns:
            ScanReport with the verdict and its evidence

        Raises:
            RetrievalError: If the program binary cannot be fetched
            NoValidSeedBump: If the signer derivation is exhausted
            StagingError: If the transient dump cannot be written or read
            QueryError: If the IDL account query fails
        """
        logger.info(f"Starting IDL account scan for {program_id}")

        binary = await self.ledger.fetch(program_id)

        with stage_binary(binary, self.config.staging_dir) as staged_path:
            try:
                data = staged_path.read_bytes()
            except OSError as e:
                raise StagingError(f"Failed to read program dump {staged_path}: {e}") from e
            markers = scan_markers(data)

            signer = None
            address = None
            account: Optional[AccountRecord] = None
            if markers.both_present:
                signer, address = idl_address(program_id)
                account = await self.ledger.query(address)
            else:
                logger.info("IDL markers missing, skipping account check")

            verdict, summary = evaluate(markers, account, program_id)

        logger.info(f"Scan of {program_id} finished: {verdict.value}")

        return ScanReport(
            program_id=program_id,
            verdict=verdict,
            summary=summary,
            binary_size=len(data),
            loader=binary.loader,
            staged_path=staged_path,
            markers=markers,
            signer_address=signer.address if signer else None,
            signer_bump=signer.bump if signer else None,
            idl_address=address,
            account=account,
        )
