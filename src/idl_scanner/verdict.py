"""
Verdict Engine for the IDL Scanner.

Pure combination of the marker scan and the optional account snapshot.
"""

from typing import Optional, Tuple

from solders.pubkey import Pubkey

from .models import AccountRecord, MarkerScan, Verdict

NOT_APPLICABLE = "no IDL tooling detected; not applicable"
UNCLAIMED = "predictable account not yet claimed; an attacker could claim it first"
CLAIMED_BY_PROGRAM = "IDL account exists and is owned by the program"
CLAIMED_BY_OTHER = "IDL account exists but is owned by {owner}, not the program; verify it was not hijacked"


def evaluate(
    markers: MarkerScan,
    account: Optional[AccountRecord],
    program_id: Pubkey,
) -> Tuple[Verdict, str]:
    """
    Classify a program from its marker scan and IDL account snapshot.

    Args:
        markers: Result of scanning the program binary
        account: The IDL account if it exists, None if absent or not queried
        program_id: The scanned program, the expected owner of the account

    Returns:
        (verdict, one-line summary)
    """
    if not markers.both_present:
        return Verdict.INCONCLUSIVE, NOT_APPLICABLE

    if account is None:
        return Verdict.LIKELY_VULNERABLE, UNCLAIMED

    if account.owner == program_id:
        return Verdict.LIKELY_SAFE, CLAIMED_BY_PROGRAM
    return Verdict.LIKELY_SAFE, CLAIMED_BY_OTHER.format(owner=account.owner)
