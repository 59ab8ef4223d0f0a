"""
Data models for the IDL Scanner.

Pydantic models for configuration, account snapshots and scan reports,
plus the plain dataclasses passed between pipeline stages.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from solders.pubkey import Pubkey


class Verdict(str, Enum):
    """Final classification of a scanned program."""
    INCONCLUSIVE = "Inconclusive"
    LIKELY_VULNERABLE = "LikelyVulnerable"
    LIKELY_SAFE = "LikelySafe"


class Commitment(str, Enum):
    """Ledger commitment levels accepted by the RPC node."""
    PROCESSED = "processed"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"


# --- Configuration Models ---

class ScanConfig(BaseModel):
    """Configuration for a scan."""
    rpc_url: str = "https://api.mainnet-beta.solana.com"
    timeout: int = Field(default=30, ge=1, le=300)
    max_retries: int = Field(default=1, ge=1, le=10)  # attempts per RPC call
    commitment: Commitment = Commitment.CONFIRMED
    staging_dir: Optional[Path] = None  # defaults to the system temp dir


# --- Pipeline Models ---

@dataclass(frozen=True)
class ProgramBinary:
    """Executable bytes of a deployed program."""
    program_id: Pubkey
    loader: Pubkey
    data: bytes

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class MarkerScan:
    """Which IDL markers were found in a program binary."""
    anchor_idl: bool
    idl_create_account: bool

    @property
    def both_present(self) -> bool:
        return self.anchor_idl and self.idl_create_account


@dataclass(frozen=True)
class ProgramSigner:
    """A program-derived address together with the bump that produced it."""
    address: Pubkey
    bump: int


class AccountRecord(BaseModel):
    """Live snapshot of an account as observed on the ledger."""
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    address: Pubkey
    owner: Pubkey
    lamports: int = Field(ge=0)
    data_length: int = Field(ge=0)
    executable: bool = False


# --- Report Models ---

class ScanReport(BaseModel):
    """Verdict for one program together with its supporting evidence."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    program_id: Pubkey
    verdict: Verdict
    summary: str

    # Retrieval
    binary_size: int = 0
    loader: Optional[Pubkey] = None
    staged_path: Optional[Path] = None

    # Evidence
    markers: MarkerScan
    signer_address: Optional[Pubkey] = None
    signer_bump: Optional[int] = None
    idl_address: Optional[Pubkey] = None
    account: Optional[AccountRecord] = None

    @property
    def account_checked(self) -> bool:
        """Whether the derivation and account query ran."""
        return self.idl_address is not None

    @property
    def owner_matches_program(self) -> Optional[bool]:
        """Whether the existing IDL account is owned by the scanned program."""
        if self.account is None:
            return None
        return self.account.owner == self.program_id
